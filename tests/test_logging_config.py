"""
Unit tests for logging configuration.
"""
import sys

import pytest
from loguru import logger

from boarding_chat.error_handling.logging_config import (
    configure_logging,
    init_logging,
    log_booking_event,
)


@pytest.fixture
def restore_logger():
    yield
    logger.remove()
    logger.add(sys.stderr, level="WARNING")


def read_log(log_dir, prefix: str) -> str:
    files = sorted(log_dir.glob(f"{prefix}_*.log"))
    assert len(files) == 1
    return files[0].read_text(encoding="utf-8")


class TestFileSinks:
    """Test the file sink layout."""

    def test_booking_events_routed(self, tmp_path, restore_logger):
        """Booking events land in the chat and booking files, not the error file."""
        configure_logging(log_level="INFO", log_dir=str(tmp_path), format_type="simple")

        log_booking_event("SUBMITTED", "Biscuit", {"nights": 5})
        logger.info("ordinary line")
        logger.complete()

        bookings = read_log(tmp_path, "bookings")
        assert "BOOKING SUBMITTED | rabbit=Biscuit" in bookings
        assert "ordinary line" not in bookings
        assert "BOOKING SUBMITTED" in read_log(tmp_path, "chat")
        assert "BOOKING SUBMITTED" not in read_log(tmp_path, "errors")

    def test_errors_file(self, tmp_path, restore_logger):
        """Errors are copied into the error file."""
        configure_logging(log_level="INFO", log_dir=str(tmp_path), format_type="simple")

        logger.error("stream dropped")
        logger.complete()

        assert "stream dropped" in read_log(tmp_path, "errors")

    def test_no_files_when_disabled(self, tmp_path, restore_logger):
        """Console-only logging creates no files."""
        configure_logging(log_to_file=False, log_dir=str(tmp_path / "logs"))

        assert not (tmp_path / "logs").exists()


class TestEnvironmentPresets:
    """Test per-environment defaults."""

    def test_test_environment_never_writes_files(self, tmp_path, restore_logger):
        """The test preset ignores the file flag."""
        init_logging("test", log_to_file=True, log_dir=str(tmp_path / "logs"))

        assert not (tmp_path / "logs").exists()

    def test_development_writes_files(self, tmp_path, restore_logger):
        """Unknown environments fall back to development, which writes files."""
        init_logging("staging", log_dir=str(tmp_path / "logs"))

        assert (tmp_path / "logs").is_dir()
