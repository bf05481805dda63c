"""
Custom Exception Classes for the Rabbit Boarding Chat Assistant.

This module defines exception classes for different error categories:
- Startup Errors (configuration, service initialization)
- Business Logic Errors (booking form validation, photo attachments)
- Technical Errors (LLM provider, streaming)
- Programming Errors at component seams (turn shape, busy guard, transcript)

Each exception includes context for error recovery and logging.
"""

from datetime import date
from typing import Optional, Any, Dict, List


class ChatWidgetError(Exception):
    """Base exception for all chat assistant errors."""

    def __init__(
        self,
        message: str,
        user_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        recoverable: bool = True
    ):
        """
        Initialize chat assistant error.

        Args:
            message: Technical error message for logging
            user_message: User-friendly message for the chat transcript
            context: Additional context for error recovery
            recoverable: Whether the error is recoverable
        """
        super().__init__(message)
        self.message = message
        self.user_message = user_message or message
        self.context = context or {}
        self.recoverable = recoverable


# ============================================================================
# Startup Errors
# ============================================================================

class ConfigurationError(ChatWidgetError):
    """Raised when required configuration (such as the API key) is missing or unreadable."""

    def __init__(self, message: str, setting: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            user_message=(
                "The booking assistant isn't configured right now. "
                "Please contact us directly to arrange your rabbit's stay."
            ),
            context={"setting": setting, **kwargs},
            recoverable=False,
        )
        self.setting = setting


class InitializationError(ChatWidgetError):
    """
    Raised when the LLM service could not be constructed.

    Examples:
    - Service unreachable
    - Bad credentials
    - Unknown model identifier
    """

    def __init__(
        self,
        message: str,
        provider: str = "gemini",
        original_error: Optional[Exception] = None,
        **kwargs
    ):
        context = {
            "provider": provider,
            "original_error": str(original_error) if original_error else None,
            **kwargs
        }
        super().__init__(
            message,
            user_message=(
                "Sorry, our chat assistant is unavailable at the moment. "
                "Please try again later or contact us directly."
            ),
            context=context,
            recoverable=False,
        )
        self.provider = provider
        self.original_error = original_error


# ============================================================================
# Business Logic Errors
# ============================================================================

class BookingValidationError(ChatWidgetError):
    """
    Raised when booking form validation fails.

    No network call is made and the form is left intact for correction.
    """

    def __init__(
        self,
        message: str,
        user_message: Optional[str] = None,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        """
        Initialize booking validation error.

        Args:
            message: Technical error message
            user_message: User-friendly message
            field: Field that failed validation
            value: Invalid value
            **kwargs: Additional context
        """
        context = {
            "field": field,
            "value": value,
            **kwargs
        }
        super().__init__(message, user_message, context, recoverable=True)
        self.field = field
        self.value = value


class MissingFieldsError(BookingValidationError):
    """Raised when required booking form fields are empty."""

    def __init__(self, fields: List[str], labels: Optional[List[str]] = None, **kwargs):
        message = f"Missing required fields: {', '.join(fields)}"
        super().__init__(
            message=message,
            field=fields[0] if fields else None,
            missing_fields=fields,
            **kwargs
        )
        self.fields = fields
        self.labels = labels or fields


class InvalidStayDatesError(BookingValidationError):
    """Raised when check-in/check-out dates are missing, unparseable or out of order."""

    def __init__(
        self,
        reason: str,
        check_in: Optional[date] = None,
        check_out: Optional[date] = None,
        **kwargs
    ):
        """
        Initialize stay dates error.

        Args:
            reason: One of "missing", "unparseable" or "order"
            check_in: Parsed check-in date, when available
            check_out: Parsed check-out date, when available
            **kwargs: Additional context
        """
        message = f"Invalid stay dates ({reason}): check_in={check_in}, check_out={check_out}"
        super().__init__(
            message=message,
            field="check-out" if reason == "order" else "check-in",
            reason=reason,
            check_in=check_in,
            check_out=check_out,
            **kwargs
        )
        self.reason = reason
        self.check_in = check_in
        self.check_out = check_out


class AttachmentError(ChatWidgetError):
    """
    Raised when the pet photo cannot be encoded.

    Examples:
    - File missing or unreadable
    - Empty file
    - File larger than the configured limit
    """

    def __init__(
        self,
        message: str,
        filename: Optional[str] = None,
        original_error: Optional[Exception] = None,
        **kwargs
    ):
        context = {
            "filename": filename,
            "original_error": str(original_error) if original_error else None,
            **kwargs
        }
        super().__init__(message, context=context, recoverable=True)
        self.filename = filename
        self.original_error = original_error


# ============================================================================
# Technical Errors - LLM Provider
# ============================================================================

class LLMProviderError(ChatWidgetError):
    """
    Raised when the LLM provider fails.

    Examples:
    - Gemini timeouts
    - Rate limits
    - Connection failures
    - Blocked or empty candidates
    """

    def __init__(
        self,
        message: str,
        provider: str = "gemini",
        error_type: str = "unknown",
        original_error: Optional[Exception] = None,
        retry_possible: bool = True,
        **kwargs
    ):
        """
        Initialize LLM provider error.

        Args:
            message: Error message
            provider: LLM provider name
            error_type: Type of error (stream, unavailable, blocked, connection)
            original_error: Original exception
            retry_possible: Whether the user may retry
            **kwargs: Additional context
        """
        context = {
            "provider": provider,
            "error_type": error_type,
            "original_error": str(original_error) if original_error else None,
            "retry_possible": retry_possible,
            **kwargs
        }
        super().__init__(message, context=context, recoverable=retry_possible)
        self.provider = provider
        self.error_type = error_type
        self.original_error = original_error
        self.retry_possible = retry_possible


class StreamError(LLMProviderError):
    """Raised when a turn fails before or while its reply is streaming."""

    def __init__(self, message: str, provider: str = "gemini", **kwargs):
        super().__init__(
            message=message,
            provider=provider,
            error_type=kwargs.pop("error_type", "stream"),
            retry_possible=True,
            **kwargs
        )


class ServiceUnavailableError(LLMProviderError):
    """Raised on every turn once the session failed to initialize."""

    def __init__(self, provider: str = "gemini", **kwargs):
        super().__init__(
            message=f"{provider} session is not available",
            provider=provider,
            error_type="unavailable",
            retry_possible=False,
            **kwargs
        )


# ============================================================================
# Programming Errors
# ============================================================================

class InvalidTurnError(ChatWidgetError):
    """Raised when a turn is built without any non-empty part."""

    def __init__(self, message: str = "A turn needs at least one non-empty part", **kwargs):
        super().__init__(message, context=kwargs, recoverable=True)


class TurnInFlightError(ChatWidgetError):
    """Raised when a turn is sent while the previous reply is still streaming."""

    def __init__(self, message: str = "A turn is already in flight", **kwargs):
        super().__init__(
            message,
            user_message="Please wait for the current reply to finish.",
            context=kwargs,
            recoverable=True,
        )


class StreamConsumedError(ChatWidgetError):
    """Raised when a response stream is iterated a second time."""

    def __init__(self, message: str = "Response stream can only be iterated once", **kwargs):
        super().__init__(message, context=kwargs, recoverable=False)


class EntryFinalizedError(ChatWidgetError):
    """Raised when a transcript entry is mutated after it became immutable."""

    def __init__(self, entry_id: int, role: str, **kwargs):
        super().__init__(
            f"Transcript entry {entry_id} ({role}) can no longer be changed",
            context={"entry_id": entry_id, "role": role, **kwargs},
            recoverable=False,
        )
        self.entry_id = entry_id
        self.role = role
