"""
Centralized logging configuration for the chat assistant.

This module configures loguru for structured logging with different
levels and formats for development vs production.
"""
import sys
from pathlib import Path
from typing import Optional
from loguru import logger


LOG_FORMATS = {
    "simple": "<level>{level: <8}</level> | <level>{message}</level>",
    "detailed": (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<level>{message}</level>"
    ),
}


def _is_booking_record(record) -> bool:
    return record["extra"].get("category") == "BOOKING"


def _file_sinks(log_level: str, rotation: str, retention: str) -> list:
    """
    File sinks as (file name, sink options).

    Booking events also get their own long-lived audit file.
    """
    return [
        ("chat_{time:YYYY-MM-DD}.log", {"level": log_level, "rotation": rotation, "retention": retention}),
        ("errors_{time:YYYY-MM-DD}.log", {"level": "ERROR", "rotation": rotation, "retention": retention}),
        ("bookings_{time:YYYY-MM-DD}.log", {
            "level": "INFO",
            "rotation": "1 day",
            "retention": "1 year",
            "filter": _is_booking_record,
        }),
    ]


def configure_logging(
    log_level: str = "INFO",
    log_to_file: bool = True,
    log_dir: str = "logs",
    rotation: str = "100 MB",
    retention: str = "30 days",
    format_type: str = "detailed"
) -> None:
    """
    Configure loguru logging for the application.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Whether to log to files in addition to console
        log_dir: Directory for log files
        rotation: When to rotate log files (e.g., "100 MB", "1 day")
        retention: How long to keep old log files
        format_type: Format style ("simple", "detailed")
    """
    logger.remove()
    format_string = LOG_FORMATS.get(format_type, LOG_FORMATS["detailed"])

    logger.add(
        sys.stderr,
        format=format_string,
        level=log_level,
        colorize=True,
        backtrace=True,
        diagnose=False
    )

    if log_to_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        for file_name, options in _file_sinks(log_level, rotation, retention):
            logger.add(
                log_path / file_name,
                format=format_string,
                compression="zip",
                backtrace=True,
                diagnose=False,
                **options
            )

    logger.info(
        f"Logging configured: level={log_level}, "
        f"file_logging={log_to_file}, "
        f"format={format_type}"
    )


def log_booking_event(
    event_type: str,
    rabbit_name: Optional[str] = None,
    details: Optional[dict] = None
) -> None:
    """
    Log a booking-form event for the audit trail.

    Args:
        event_type: Type of event (e.g., "SUBMITTED", "REJECTED", "SENT")
        rabbit_name: Name of the rabbit on the form
        details: Additional event details
    """
    details = details or {}

    logger.bind(category="BOOKING").info(
        f"BOOKING {event_type} | "
        f"rabbit={rabbit_name} | "
        f"details={details}"
    )


def log_conversation_event(
    event_type: str,
    turn_number: Optional[int] = None,
    details: Optional[dict] = None
) -> None:
    """
    Log a conversation-related event.

    Args:
        event_type: Type of event (e.g., "STARTED", "TURN_SENT", "TURN_COMPLETED", "TURN_FAILED")
        turn_number: Sequence number of the turn in the session
        details: Additional event details
    """
    details = details or {}

    logger.bind(category="CONVERSATION").info(
        f"CONVERSATION {event_type} | "
        f"turn={turn_number} | "
        f"details={details}"
    )


def log_api_call(
    service: str,
    operation: str,
    success: bool,
    duration: float,
    details: Optional[dict] = None
) -> None:
    """
    Log an external API call.

    Args:
        service: Service name (e.g., "gemini")
        operation: Operation performed (e.g., "stream_reply", "get_model")
        success: Whether the call succeeded
        duration: Duration in seconds
        details: Additional call details
    """
    details = details or {}
    level = "INFO" if success else "WARNING"

    logger.bind(category="API").log(
        level,
        f"API {service}.{operation} | "
        f"success={success} | "
        f"duration={duration:.3f}s | "
        f"details={details}"
    )


class LogContext:
    """
    Context manager for adding context to all logs within a block.

    Example:
        with LogContext(turn=3, intent="SubmitBooking"):
            logger.info("Submitting booking")
    """

    def __init__(self, **context):
        self.context = context
        self.token = None

    def __enter__(self):
        self.token = logger.contextualize(**self.context)
        self.token.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token:
            self.token.__exit__(exc_type, exc_val, exc_tb)


# Defaults per APP_ENV; unknown environments use "development"
ENVIRONMENT_PRESETS = {
    "production": {"log_level": "INFO", "format_type": "detailed", "rotation": "100 MB", "retention": "90 days"},
    "development": {"log_level": "DEBUG", "format_type": "detailed", "rotation": "50 MB", "retention": "7 days"},
    "test": {"log_level": "WARNING", "format_type": "simple", "file_sinks": False},
}


def init_logging(
    environment: str = "development",
    log_level: Optional[str] = None,
    log_to_file: bool = True,
    log_dir: str = "logs"
) -> None:
    """
    Initialize logging with environment-specific settings.

    Args:
        environment: Environment name ("development", "production", "test")
        log_level: Overrides the environment's default level
        log_to_file: Whether file sinks are wanted at all. The test
            environment never writes files.
        log_dir: Directory for log files
    """
    preset = dict(ENVIRONMENT_PRESETS.get(environment, ENVIRONMENT_PRESETS["development"]))
    file_sinks = preset.pop("file_sinks", True)
    default_level = preset.pop("log_level")

    configure_logging(
        log_level=log_level or default_level,
        log_to_file=log_to_file and file_sinks,
        log_dir=log_dir,
        **preset
    )

    logger.info(f"Logging initialized for {environment} environment")
