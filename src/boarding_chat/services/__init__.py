"""
Services package - external LLM service boundary.
"""

from .llm_service import ChatService, GeminiChatService, create_gemini_service

__all__ = [
    "ChatService",
    "GeminiChatService",
    "create_gemini_service",
]
