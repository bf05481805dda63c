"""
Configuration module for the rabbit boarding chat assistant.

Loads environment variables and provides configuration settings including
the Gemini API key, model selection and logging options.
"""
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field

from .error_handling.exceptions import ConfigurationError


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        gemini_api_key: Google Gemini API key (secret, supplied out-of-band)
        gemini_model: Gemini model identifier
        system_instruction_file: Optional file overriding the built-in system instruction
        business_name: Business name used in greetings
        max_attachment_bytes: Largest pet photo accepted by the booking form
        verify_service_on_start: Check the model endpoint while starting up
    """

    # LLM Provider
    gemini_api_key: Optional[str] = Field(
        default=None,
        alias="GEMINI_API_KEY",
        description="Google Gemini API key"
    )

    gemini_model: str = Field(
        default="gemini-1.5-flash",
        alias="GEMINI_MODEL",
        description="Gemini model identifier"
    )

    system_instruction_file: Optional[Path] = Field(
        default=None,
        alias="SYSTEM_INSTRUCTION_FILE",
        description="Path to a text file replacing the built-in system instruction"
    )

    verify_service_on_start: bool = Field(
        default=True,
        alias="VERIFY_SERVICE_ON_START",
        description="Check that the model is reachable before the chat opens"
    )

    # Business Configuration
    business_name: str = Field(
        default="Hoppy Stays Rabbit Boarding",
        alias="BUSINESS_NAME",
        description="Business name shown in the greeting"
    )

    max_attachment_bytes: int = Field(
        default=10 * 1024 * 1024,
        gt=0,
        alias="MAX_ATTACHMENT_BYTES",
        description="Maximum size of an uploaded pet photo in bytes"
    )

    # Logging Configuration
    app_env: str = Field(
        default="development",
        alias="APP_ENV",
        description="Environment name (development, production, test)"
    )

    log_level: Optional[str] = Field(
        default=None,
        alias="LOG_LEVEL",
        description="Overrides the environment's default log level"
    )

    log_to_file: bool = Field(
        default=True,
        alias="LOG_TO_FILE",
        description="Write rotating log files in addition to the console"
    )

    log_dir: str = Field(
        default="logs",
        alias="LOG_DIR",
        description="Directory for log files"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"
        populate_by_name = True


def get_settings() -> Settings:
    """
    Load settings from the environment.

    The result is meant to be built once at startup and handed to the chat
    context; nothing in the package caches it globally.

    Returns:
        Settings instance with loaded configuration
    """
    return Settings()


def get_api_key(settings: Settings) -> str:
    """
    Get the Gemini API key.

    Args:
        settings: Loaded application settings

    Returns:
        API key string

    Raises:
        ConfigurationError: If the API key is not configured
    """
    if not settings.gemini_api_key or not settings.gemini_api_key.strip():
        raise ConfigurationError(
            "Gemini API key not configured. "
            "Please set GEMINI_API_KEY environment variable.",
            setting="GEMINI_API_KEY",
        )
    return settings.gemini_api_key.strip()


def load_system_instruction(settings: Settings, default: str) -> str:
    """
    Return the system instruction for the model.

    The instruction is an opaque payload: it is read verbatim and never
    parsed.

    Args:
        settings: Loaded application settings
        default: Built-in instruction used when no override file is set

    Returns:
        System instruction text

    Raises:
        ConfigurationError: If the override file cannot be read
    """
    path = settings.system_instruction_file
    if path is None:
        return default

    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read system instruction file {path}: {e}",
            setting="SYSTEM_INSTRUCTION_FILE",
        ) from e
