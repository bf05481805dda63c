"""
Pytest configuration and shared fixtures.
"""
import sys
from pathlib import Path
from typing import List, Optional

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from boarding_chat.config import Settings
from boarding_chat.agent.dispatcher import ChatContext, Dispatcher, create_chat_context
from boarding_chat.booking.encoder import UploadedFile
from boarding_chat.booking.form import BookingFormSnapshot
from boarding_chat.rendering.transcript import Transcript


class FakeChatService:
    """
    Chat service that plays back scripted replies. No network calls.

    Each script is a list of fragments; an exception instance in the list is
    raised at that point of the stream.
    """

    provider = "fake"

    def __init__(self, replies: Optional[List[list]] = None):
        self.replies: List[list] = list(replies or [])
        self.calls: List[list] = []
        self.on_fragment = None

    async def stream_reply(self, contents):
        self.calls.append(contents)
        script = self.replies.pop(0)
        for item in script:
            if isinstance(item, BaseException):
                raise item
            if self.on_fragment is not None:
                self.on_fragment(item)
            yield item


@pytest.fixture(scope="function")
def settings(tmp_path) -> Settings:
    """
    Settings with a fake API key and no startup check.
    """
    return Settings(
        _env_file=None,
        GEMINI_API_KEY="test_gemini_key",
        VERIFY_SERVICE_ON_START=False,
        LOG_TO_FILE=False,
        LOG_DIR=str(tmp_path / "logs"),
    )


@pytest.fixture(scope="function")
def fake_service() -> FakeChatService:
    return FakeChatService()


@pytest.fixture(scope="function")
def chat_context(settings: Settings, fake_service: FakeChatService) -> ChatContext:
    """
    Chat context wired to the fake service.
    """
    return create_chat_context(settings, service_factory=lambda *args, **kwargs: fake_service)


@pytest.fixture(scope="function")
def dispatcher(chat_context: ChatContext) -> Dispatcher:
    return Dispatcher(chat_context)


@pytest.fixture(scope="function")
def transcript() -> Transcript:
    return Transcript()


@pytest.fixture(scope="function")
def booking_values() -> dict:
    """
    A complete, valid booking form.
    """
    return {
        "rabbit-name": "Biscuit",
        "gender": "Female",
        "age": "3",
        "breed": "Holland Lop",
        "medical-condition": "",
        "temperament": "Shy at first, then cuddly",
        "favorites": "Parsley, cardboard tunnels",
        "habits": "Digs in the corner",
        "routine": "Pellets at 8am, greens at 6pm",
        "special-requirements": "",
        "sterilised": "Yes",
        "vaccinated": "Yes",
        "first-time": "No",
        "previous-experience": "Stayed with a friend last summer",
        "check-in": "2025-01-05",
        "check-out": "2025-01-10",
    }


@pytest.fixture(scope="function")
def booking_snapshot(booking_values: dict) -> BookingFormSnapshot:
    return BookingFormSnapshot(values=booking_values)


@pytest.fixture(scope="function")
def photo_file(tmp_path) -> UploadedFile:
    """
    A small fake JPEG on disk.
    """
    path = tmp_path / "biscuit.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0fakejpeg\xff\xd9")
    return UploadedFile(filename="biscuit.jpg", path=path, content_type="image/jpeg")
