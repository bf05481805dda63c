"""
Agent Module - Chat context and intent dispatch for the boarding assistant.
"""

from .dispatcher import (
    ChatContext,
    Dispatcher,
    create_chat_context,
    SendMessage,
    SubmitBooking,
    AskPlaypen,
    TogglePreview,
)

__all__ = [
    "ChatContext",
    "Dispatcher",
    "create_chat_context",
    "SendMessage",
    "SubmitBooking",
    "AskPlaypen",
    "TogglePreview",
]
