"""
Error handling module for the rabbit boarding chat assistant.

This module provides the error handling infrastructure including:
- Custom exception hierarchy for all error types
- User-facing error message generation for the chat transcript
- Handlers that log errors and recover at the boundary
- Logging configuration

Main Components:
    - exceptions: Custom exception classes for all error scenarios
    - error_messages: User-friendly message generation
    - handlers: Logging and transcript reporting helpers
    - logging_config: loguru setup and structured event helpers
"""

from .exceptions import (
    # Base exception
    ChatWidgetError,

    # Startup errors
    ConfigurationError,
    InitializationError,

    # Business logic errors
    BookingValidationError,
    MissingFieldsError,
    InvalidStayDatesError,
    AttachmentError,

    # LLM provider errors
    LLMProviderError,
    StreamError,
    ServiceUnavailableError,

    # Programming errors
    InvalidTurnError,
    TurnInFlightError,
    StreamConsumedError,
    EntryFinalizedError,
)

from .error_messages import (
    get_error_message,
    format_date_friendly,
    format_field_list,
)

from .handlers import (
    get_error_severity,
    log_error,
    report_error,
)

from .logging_config import (
    configure_logging,
    init_logging,
    log_booking_event,
    log_conversation_event,
    log_api_call,
    LogContext,
)

__all__ = [
    # Exceptions
    "ChatWidgetError",
    "ConfigurationError",
    "InitializationError",
    "BookingValidationError",
    "MissingFieldsError",
    "InvalidStayDatesError",
    "AttachmentError",
    "LLMProviderError",
    "StreamError",
    "ServiceUnavailableError",
    "InvalidTurnError",
    "TurnInFlightError",
    "StreamConsumedError",
    "EntryFinalizedError",

    # Error Messages
    "get_error_message",
    "format_date_friendly",
    "format_field_list",

    # Error Handlers
    "get_error_severity",
    "log_error",
    "report_error",

    # Logging
    "configure_logging",
    "init_logging",
    "log_booking_event",
    "log_conversation_event",
    "log_api_call",
    "LogContext",
]
