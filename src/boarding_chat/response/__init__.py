"""
Response Module - System instruction and canned prompt text.
"""

from .prompts import SYSTEM_INSTRUCTION, PLAYPEN_QUESTION, greeting_message

__all__ = [
    "SYSTEM_INSTRUCTION",
    "PLAYPEN_QUESTION",
    "greeting_message",
]
