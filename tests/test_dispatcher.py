"""
Integration tests for the chat context and intent dispatcher.

These tests wire the real session, transcript, loading indicator and form
orchestrator together around a scripted chat service.

Tests:
- Startup greeting and startup failures
- Chat messages and the busy state while streaming
- Booking submissions with and without a photo
- Playpen shortcut and photo preview toggling
"""
import pytest

from boarding_chat.agent.dispatcher import (
    AskPlaypen,
    Dispatcher,
    SendMessage,
    SubmitBooking,
    TogglePreview,
    create_chat_context,
)
from boarding_chat.booking.encoder import UploadedFile
from boarding_chat.booking.form import BOOKING_HEADER, BookingFormSnapshot
from boarding_chat.config import Settings
from boarding_chat.error_handling.exceptions import InitializationError, StreamError
from boarding_chat.rendering.transcript import EntryRole
from boarding_chat.response.prompts import PLAYPEN_QUESTION

from tests.conftest import FakeChatService


def roles(context):
    return [entry.role for entry in context.transcript.entries]


class TestStartup:
    """Test chat context construction."""

    def test_greeting_shown(self, chat_context):
        """A ready chat opens with a final assistant greeting."""
        entries = chat_context.transcript.entries

        assert chat_context.available
        assert len(entries) == 1
        assert entries[0].role == EntryRole.ASSISTANT
        assert entries[0].final
        assert chat_context.controls.all_enabled

    def test_factory_receives_settings(self, settings):
        """The factory gets the key, model, instruction and verify flag."""
        calls = []

        def factory(*args, **kwargs):
            calls.append((args, kwargs))
            return FakeChatService()

        create_chat_context(settings, service_factory=factory)

        (api_key, model, instruction), kwargs = calls[0]
        assert api_key == "test_gemini_key"
        assert model == settings.gemini_model
        assert "rabbit" in instruction.lower()
        assert kwargs == {"verify": False}

    def test_missing_api_key(self, tmp_path):
        """Without a key the chat is unusable and says so."""
        settings = Settings(_env_file=None, GEMINI_API_KEY="", LOG_TO_FILE=False)

        context = create_chat_context(settings, service_factory=lambda *a, **k: FakeChatService())

        assert not context.available
        assert context.controls.all_disabled
        assert roles(context) == [EntryRole.ERROR]

    def test_initialization_failure(self, settings):
        """A failing service disables the controls permanently."""
        def factory(*args, **kwargs):
            raise InitializationError("unknown model")

        context = create_chat_context(settings, service_factory=factory)

        assert not context.session.is_available
        assert context.controls.permanently_disabled
        assert "unavailable" in context.transcript.entries[0].source

    def test_unexpected_factory_error_wrapped(self, settings):
        """Any factory exception leaves an unusable session instead of raising."""
        def factory(*args, **kwargs):
            raise RuntimeError("socket closed")

        context = create_chat_context(settings, service_factory=factory)

        assert isinstance(context.session.init_error, InitializationError)
        assert roles(context) == [EntryRole.ERROR]

    @pytest.mark.asyncio
    async def test_unavailable_chat_rejects_turns(self, settings):
        """Turns on an unusable chat do nothing."""
        def factory(*args, **kwargs):
            raise InitializationError("bad key")

        context = create_chat_context(settings, service_factory=factory)
        dispatcher = Dispatcher(context)

        assert not await dispatcher.dispatch(SendMessage("hello"))
        assert roles(context) == [EntryRole.ERROR]
        assert context.controls.all_disabled


class TestSendMessage:
    """Test chat messages."""

    @pytest.mark.asyncio
    async def test_reply_streamed(self, dispatcher, chat_context, fake_service):
        """The user entry is followed by the streamed reply."""
        fake_service.replies = [["We board ", "**rabbits** only."]]

        assert await dispatcher.dispatch(SendMessage("Do you take guinea pigs?"))

        entries = chat_context.transcript.entries
        assert [e.role for e in entries] == [EntryRole.ASSISTANT, EntryRole.USER, EntryRole.ASSISTANT]
        assert entries[1].source == "Do you take guinea pigs?"
        assert "<strong>rabbits</strong>" in entries[2].html
        assert entries[2].final

    @pytest.mark.asyncio
    async def test_busy_while_streaming(self, dispatcher, chat_context, fake_service):
        """Controls stay disabled and the placeholder stays up until the reply ends."""
        observed = []
        fake_service.on_fragment = lambda fragment: observed.append(
            (chat_context.controls.all_disabled, chat_context.loading.is_busy)
        )
        fake_service.replies = [["a", "b", "c"]]

        await dispatcher.dispatch(SendMessage("hi"))

        assert observed == [(True, True)] * 3
        assert chat_context.controls.all_enabled
        assert EntryRole.LOADING not in roles(chat_context)

    @pytest.mark.asyncio
    async def test_blank_message_ignored(self, dispatcher, chat_context, fake_service):
        """Blank input sends nothing."""
        assert not await dispatcher.dispatch(SendMessage("   "))

        assert fake_service.calls == []
        assert len(chat_context.transcript.entries) == 1

    @pytest.mark.asyncio
    async def test_rejected_while_busy(self, dispatcher, chat_context, fake_service):
        """A second turn during a pending one is rejected."""
        chat_context.loading.set_busy(True)

        assert not await dispatcher.dispatch(SendMessage("again"))
        assert fake_service.calls == []

    @pytest.mark.asyncio
    async def test_stream_failure_then_recovery(self, dispatcher, chat_context, fake_service):
        """A failed reply shows an error and the next message still works."""
        fake_service.replies = [["Hel", StreamError("dropped")], ["Hello!"]]

        assert not await dispatcher.dispatch(SendMessage("hi"))
        assert roles(chat_context)[-2:] == [EntryRole.ASSISTANT, EntryRole.ERROR]
        assert chat_context.controls.all_enabled

        assert await dispatcher.dispatch(SendMessage("hi again"))
        assert chat_context.transcript.entries[-1].source == "Hello!"
        assert len(chat_context.session.history) == 2

    @pytest.mark.asyncio
    async def test_render_failure_releases_session(self, dispatcher, chat_context, fake_service):
        """A rendering error mid-stream still lets the next message through."""
        failed = []

        def flaky_view(event, entry):
            if event == "update" and not failed:
                failed.append(entry.entry_id)
                raise RuntimeError("view crashed")

        chat_context.transcript.add_listener(flaky_view)
        fake_service.replies = [["Hi", " there"], ["Back again"]]

        assert not await dispatcher.dispatch(SendMessage("hi"))
        assert not chat_context.session.in_flight
        assert chat_context.controls.all_enabled
        assert chat_context.session.history == []

        assert await dispatcher.dispatch(SendMessage("again"))
        assert chat_context.transcript.entries[-1].source == "Back again"

    @pytest.mark.asyncio
    async def test_unknown_intent(self, dispatcher):
        """Unknown intents are a programming error."""
        with pytest.raises(TypeError):
            await dispatcher.dispatch("hello")


class TestPlaypen:
    """Test the playpen shortcut."""

    @pytest.mark.asyncio
    async def test_sends_fixed_question(self, dispatcher, chat_context, fake_service):
        """The shortcut sends the fixed playpen question."""
        fake_service.replies = [["The playpen upgrade..."]]

        assert await dispatcher.dispatch(AskPlaypen())

        assert fake_service.calls[0][-1] == {"role": "user", "parts": [PLAYPEN_QUESTION]}
        assert chat_context.transcript.entries[1].source == PLAYPEN_QUESTION


class TestSubmitBooking:
    """Test booking submissions."""

    @pytest.mark.asyncio
    async def test_text_booking(self, dispatcher, chat_context, fake_service, booking_snapshot):
        """A valid form sends its text and resets after the reply."""
        chat_context.booking_form.snapshot = booking_snapshot
        fake_service.replies = [["Thanks, Biscuit is booked in!"]]

        assert await dispatcher.dispatch(SubmitBooking())

        sent = fake_service.calls[0][-1]["parts"]
        assert len(sent) == 1
        assert sent[0].startswith(BOOKING_HEADER)
        assert roles(chat_context) == [EntryRole.ASSISTANT, EntryRole.USER, EntryRole.ASSISTANT]
        assert chat_context.booking_form.snapshot.values == {}

    @pytest.mark.asyncio
    async def test_booking_with_photo(self, dispatcher, chat_context, fake_service, booking_values, photo_file):
        """The photo is sent first and previewed in the chat log."""
        fake_service.replies = [["What a cute bun!"]]
        snapshot = BookingFormSnapshot(values=booking_values, photo=photo_file)

        assert await dispatcher.dispatch(SubmitBooking(snapshot))

        sent = fake_service.calls[0][-1]["parts"]
        assert sent[0] == {"mime_type": "image/jpeg", "data": photo_file.path.read_bytes()}
        assert sent[1].startswith(BOOKING_HEADER)

        preview = chat_context.transcript.entries[2]
        assert preview.role == EntryRole.USER
        assert preview.raw_markup
        assert "<img" in preview.html
        assert "data:image/jpeg;base64," in preview.html

    @pytest.mark.asyncio
    async def test_invalid_dates_send_nothing(self, dispatcher, chat_context, fake_service, booking_values):
        """Bad dates show an error, send nothing and keep the form."""
        booking_values["check-in"] = "2025-01-10"
        booking_values["check-out"] = "2025-01-05"
        snapshot = BookingFormSnapshot(values=booking_values)
        chat_context.booking_form.snapshot = snapshot

        assert not await dispatcher.dispatch(SubmitBooking())

        assert fake_service.calls == []
        assert roles(chat_context) == [EntryRole.ASSISTANT, EntryRole.ERROR]
        assert "check-out date must be after" in chat_context.transcript.entries[-1].source
        assert chat_context.booking_form.snapshot is snapshot
        assert chat_context.controls.all_enabled

    @pytest.mark.asyncio
    async def test_missing_fields_listed(self, dispatcher, chat_context, fake_service, booking_values):
        """Missing fields are named in the error entry."""
        booking_values["gender"] = ""

        assert not await dispatcher.dispatch(SubmitBooking(BookingFormSnapshot(values=booking_values)))

        assert "Gender" in chat_context.transcript.entries[-1].source
        assert fake_service.calls == []

    @pytest.mark.asyncio
    async def test_failed_reply_keeps_form(self, dispatcher, chat_context, fake_service, booking_snapshot):
        """The form survives a failed reply so it can be resubmitted."""
        chat_context.booking_form.snapshot = booking_snapshot
        fake_service.replies = [[StreamError("reset")]]

        assert not await dispatcher.dispatch(SubmitBooking())

        assert chat_context.booking_form.snapshot is booking_snapshot
        assert roles(chat_context)[-1] == EntryRole.ERROR


class TestTogglePreview:
    """Test photo preview toggling."""

    @pytest.mark.asyncio
    async def test_preview_set_and_cleared(self, dispatcher, chat_context, photo_file):
        """Picking a photo previews it; clearing removes it."""
        form = chat_context.booking_form

        assert await dispatcher.dispatch(TogglePreview(photo_file))
        assert form.preview_uri.startswith("data:image/jpeg;base64,")
        assert form.snapshot.photo == photo_file

        assert await dispatcher.dispatch(TogglePreview(None))
        assert form.preview_uri is None
        assert form.snapshot.photo is None

    @pytest.mark.asyncio
    async def test_unreadable_photo_reported(self, dispatcher, chat_context, tmp_path):
        """A photo that cannot be read shows an error and no preview."""
        missing = UploadedFile(filename="gone.jpg", path=tmp_path / "gone.jpg")

        assert not await dispatcher.dispatch(TogglePreview(missing))

        assert chat_context.booking_form.preview is None
        assert roles(chat_context)[-1] == EntryRole.ERROR

    @pytest.mark.asyncio
    async def test_previewed_photo_submitted(self, dispatcher, chat_context, fake_service,
                                             booking_snapshot, photo_file):
        """A previewed photo travels with a submission of the live form."""
        chat_context.booking_form.snapshot = booking_snapshot
        fake_service.replies = [["Lovely!"]]

        await dispatcher.dispatch(TogglePreview(photo_file))
        assert await dispatcher.dispatch(SubmitBooking())

        sent = fake_service.calls[0][-1]["parts"]
        assert sent[0]["mime_type"] == "image/jpeg"
        assert chat_context.booking_form.preview is None
