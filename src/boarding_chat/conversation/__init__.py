"""
Conversation package for the ongoing exchange with the LLM.

This package provides:
- Turn, TextPart, AttachmentPart: What one user exchange carries
- ConversationSession: The single session owning the message history
- StreamingConsumer: Renders a streamed reply into the transcript
"""

from .turn import Turn, TextPart, AttachmentPart, HistoryMessage
from .session import ConversationSession, ResponseStream
from .streaming import StreamingConsumer, StreamOutcome

__all__ = [
    "Turn",
    "TextPart",
    "AttachmentPart",
    "HistoryMessage",
    "ConversationSession",
    "ResponseStream",
    "StreamingConsumer",
    "StreamOutcome",
]
