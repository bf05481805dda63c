"""
Centralized error handling utilities for the chat assistant.

This module provides utilities for:
- Choosing a log severity per error category
- Logging errors with their context
- Recovering at the boundary by turning an error into a transcript entry
"""
from typing import Optional, Any, Dict, TYPE_CHECKING
from loguru import logger

from .exceptions import (
    ChatWidgetError,
    ConfigurationError,
    InitializationError,
    BookingValidationError,
    AttachmentError,
    LLMProviderError,
    TurnInFlightError,
)
from .error_messages import get_error_message

if TYPE_CHECKING:
    from ..rendering.transcript import Transcript, EntryHandle


def get_error_severity(error: Exception) -> str:
    """
    Pick the log level for an error.

    Args:
        error: Exception that occurred

    Returns:
        Loguru level name
    """
    if isinstance(error, (ConfigurationError, InitializationError)):
        return "CRITICAL"
    elif isinstance(error, (BookingValidationError, TurnInFlightError)):
        return "INFO"
    elif isinstance(error, AttachmentError):
        return "WARNING"
    elif isinstance(error, LLMProviderError):
        return "ERROR"
    return "ERROR"


def log_error(
    error: Exception,
    additional_context: Optional[Dict[str, Any]] = None
) -> str:
    """
    Log error with full context.

    Args:
        error: Exception that occurred
        additional_context: Additional context information

    Returns:
        The severity the error was logged with
    """
    severity = get_error_severity(error)
    context: Dict[str, Any] = dict(additional_context or {})
    if isinstance(error, ChatWidgetError):
        context.update(error.context)
        context["recoverable"] = error.recoverable

    logger.log(
        severity,
        f"{type(error).__name__}: {error} | context={context}"
    )

    # Unexpected errors get a stack trace
    if not isinstance(error, ChatWidgetError):
        logger.opt(exception=error).debug("Stack trace:")

    return severity


def report_error(
    error: Exception,
    transcript: "Transcript",
    additional_context: Optional[Dict[str, Any]] = None
) -> "EntryHandle":
    """
    Recover from an error by logging it and showing it in the chat log.

    Args:
        error: Exception that occurred
        transcript: Transcript receiving the error entry
        additional_context: Additional context for the log line

    Returns:
        Handle of the error entry that was appended
    """
    from ..rendering.transcript import EntryRole

    log_error(error, additional_context)
    return transcript.append(EntryRole.ERROR, get_error_message(error))
