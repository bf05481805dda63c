"""
Rabbit boarding chat assistant.

A chat assistant backed by Google Gemini with a booking form whose
submissions join the same conversation.
"""

__version__ = "0.1.0"
