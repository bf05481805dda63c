"""
Rendering package for the visible chat log and its controls.
"""

from .transcript import Transcript, TranscriptEntry, EntryHandle, EntryRole, ScrollState
from .loading import Controls, LoadingIndicator
from .markup import render_markdown, render_plain_text, sanitize_html

__all__ = [
    "Transcript",
    "TranscriptEntry",
    "EntryHandle",
    "EntryRole",
    "ScrollState",
    "Controls",
    "LoadingIndicator",
    "render_markdown",
    "render_plain_text",
    "sanitize_html",
]
