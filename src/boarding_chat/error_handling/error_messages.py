"""
User-facing error message generation for the chat transcript.

This module turns exceptions into short, friendly messages shown as error
entries in the chat log. Every failure category gets a distinct message so
the visitor can tell a form problem from a connection problem.
"""
from datetime import date
from loguru import logger

from .exceptions import (
    ChatWidgetError,
    ConfigurationError,
    InitializationError,
    BookingValidationError,
    MissingFieldsError,
    InvalidStayDatesError,
    AttachmentError,
    LLMProviderError,
    StreamError,
    ServiceUnavailableError,
    TurnInFlightError,
)


def format_date_friendly(date_obj: date) -> str:
    """
    Format a date for display in the chat.

    Args:
        date_obj: Date to format

    Returns:
        Friendly date string (e.g., "Friday 10 January 2025")
    """
    return f"{date_obj.strftime('%A')} {date_obj.day} {date_obj.strftime('%B %Y')}"


def format_field_list(labels: list[str]) -> str:
    """
    Join field labels into a readable list.

    Args:
        labels: Human readable field labels

    Returns:
        "A", "A and B" or "A, B and C"
    """
    if not labels:
        return ""
    if len(labels) == 1:
        return labels[0]
    return f"{', '.join(labels[:-1])} and {labels[-1]}"


def get_missing_fields_message(error: MissingFieldsError) -> str:
    """Message for required fields left empty."""
    return f"Please fill in the required fields: {format_field_list(error.labels)}."


def get_invalid_stay_dates_message(error: InvalidStayDatesError) -> str:
    """Message for check-in/check-out problems."""
    if error.reason == "missing":
        return "Please choose both a check-in and a check-out date."
    if error.reason == "unparseable":
        return "I couldn't read the check-in or check-out date. Please pick them again."

    message = "The check-out date must be after the check-in date."
    if error.check_in and error.check_out:
        message += (
            f" You picked check-in on {format_date_friendly(error.check_in)} "
            f"and check-out on {format_date_friendly(error.check_out)}."
        )
    return message


def get_attachment_error_message(error: AttachmentError) -> str:
    """Message for a photo that could not be read."""
    name = f" \"{error.filename}\"" if error.filename else ""
    return (
        f"Sorry, I couldn't read the photo{name}. "
        "Please choose another image or submit the form without a photo."
    )


def get_llm_provider_error_message(error: LLMProviderError) -> str:
    """Message for provider failures."""
    if isinstance(error, ServiceUnavailableError):
        return (
            "Sorry, our chat assistant is unavailable at the moment. "
            "Please try again later or contact us directly."
        )
    if error.error_type == "blocked":
        return "Sorry, I can't answer that one. Could you rephrase your question?"
    if error.error_type == "empty":
        return "Sorry, I didn't get a reply that time. Please send your message again."
    if isinstance(error, StreamError):
        return "Sorry, the connection dropped while I was replying. Please send your message again."
    return "Sorry, something went wrong talking to the assistant. Please try again."


def get_error_message(error: Exception) -> str:
    """
    Get the user-facing message for any exception.

    This is the main entry point for converting exceptions into transcript
    error entries.

    Args:
        error: Exception that occurred

    Returns:
        Message suitable for the chat transcript
    """
    if isinstance(error, MissingFieldsError):
        return get_missing_fields_message(error)
    elif isinstance(error, InvalidStayDatesError):
        return get_invalid_stay_dates_message(error)
    elif isinstance(error, BookingValidationError):
        return error.user_message
    elif isinstance(error, AttachmentError):
        return get_attachment_error_message(error)
    elif isinstance(error, LLMProviderError):
        return get_llm_provider_error_message(error)
    elif isinstance(error, (ConfigurationError, InitializationError, TurnInFlightError)):
        return error.user_message
    elif isinstance(error, ChatWidgetError):
        return "Sorry, something went wrong. Please try again."
    else:
        logger.error(f"Unhandled error type: {type(error).__name__}: {str(error)}")
        return "Sorry, something unexpected happened. Please try again."
