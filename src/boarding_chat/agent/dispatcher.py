"""
Chat context and intent dispatcher.

The ChatContext is built once at startup and carries every component the
page needs. UI events are mapped to named intents which the Dispatcher
routes to the session, the form orchestrator and the transcript.
"""
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from loguru import logger

from ..config import Settings, get_api_key, load_system_instruction
from ..conversation.session import ConversationSession
from ..conversation.streaming import StreamingConsumer, StreamOutcome
from ..conversation.turn import Turn
from ..booking.encoder import EncodedFile, UploadedFile, encode_file
from ..booking.form import BookingForm, BookingFormSnapshot, FormOrchestrator
from ..rendering.loading import Controls, LoadingIndicator
from ..rendering.markup import image_preview_markup
from ..rendering.transcript import EntryRole, Transcript
from ..response.prompts import PLAYPEN_QUESTION, SYSTEM_INSTRUCTION, greeting_message
from ..services.llm_service import ChatService, create_gemini_service
from ..error_handling.exceptions import (
    AttachmentError,
    BookingValidationError,
    ChatWidgetError,
    ConfigurationError,
    InitializationError,
    ServiceUnavailableError,
    TurnInFlightError,
)
from ..error_handling.handlers import report_error
from ..error_handling.logging_config import LogContext, log_booking_event


ServiceFactory = Callable[..., ChatService]


# ============================================================================
# Intents
# ============================================================================

@dataclass
class SendMessage:
    """Visitor typed a chat message."""

    text: str


@dataclass
class SubmitBooking:
    """Visitor submitted the booking form. Falls back to the live form when no snapshot is given."""

    snapshot: Optional[BookingFormSnapshot] = None


@dataclass
class AskPlaypen:
    """Visitor clicked the playpen question shortcut."""


@dataclass
class TogglePreview:
    """Visitor picked (or cleared) a pet photo."""

    photo: Optional[UploadedFile] = None


Intent = Union[SendMessage, SubmitBooking, AskPlaypen, TogglePreview]


# ============================================================================
# Context
# ============================================================================

@dataclass
class ChatContext:
    """Everything the chat page needs, constructed once."""

    settings: Settings
    session: ConversationSession
    transcript: Transcript
    controls: Controls
    loading: LoadingIndicator
    consumer: StreamingConsumer
    booking_form: BookingForm = field(default_factory=BookingForm)
    form_orchestrator: FormOrchestrator = field(default_factory=FormOrchestrator)

    @property
    def available(self) -> bool:
        return self.session.is_available and not self.controls.permanently_disabled


def create_chat_context(
    settings: Settings,
    service_factory: Optional[ServiceFactory] = None,
) -> ChatContext:
    """
    Build the chat context and start the conversation session.

    A missing API key or a failing service leaves the session unusable,
    disables the controls for good and shows an error entry; nothing is
    raised.

    Args:
        settings: Application settings
        service_factory: Builds the chat service from
            (api_key, model_name, system_instruction, verify=...).
            Defaults to the Gemini service.

    Returns:
        Ready ChatContext
    """
    transcript = Transcript()
    controls = Controls()
    loading = LoadingIndicator(transcript, controls)
    factory = service_factory or create_gemini_service

    try:
        api_key = get_api_key(settings)
        instruction = load_system_instruction(settings, SYSTEM_INSTRUCTION)
        try:
            service = factory(
                api_key,
                settings.gemini_model,
                instruction,
                verify=settings.verify_service_on_start,
            )
        except ChatWidgetError:
            raise
        except Exception as e:
            raise InitializationError(
                f"Chat service construction failed: {e}",
                original_error=e,
            ) from e
        session = ConversationSession(service)

    except (ConfigurationError, InitializationError) as e:
        logger.error(f"Chat unavailable: {e}")
        session = ConversationSession(None, init_error=e)
        controls.disable_permanently()
        report_error(e, transcript)

    else:
        greeting = transcript.append(EntryRole.ASSISTANT, greeting_message(settings.business_name))
        transcript.finalize(greeting)
        logger.info("✓ Chat context ready")

    return ChatContext(
        settings=settings,
        session=session,
        transcript=transcript,
        controls=controls,
        loading=loading,
        consumer=StreamingConsumer(transcript),
        form_orchestrator=FormOrchestrator(settings.max_attachment_bytes),
    )


# ============================================================================
# Dispatcher
# ============================================================================

class Dispatcher:
    """
    Routes intents to the chat components.

    Turn-starting intents are rejected while a turn is pending or when the
    chat is unavailable, which keeps at most one turn in flight.

    Args:
        context: Chat context built by create_chat_context
    """

    def __init__(self, context: ChatContext):
        self.context = context
        self.last_outcome: Optional[StreamOutcome] = None

    async def dispatch(self, intent: Intent) -> bool:
        """
        Handle one intent.

        Args:
            intent: The intent to handle

        Returns:
            True if the intent completed successfully

        Raises:
            TypeError: If the intent type is unknown
        """
        handlers = {
            SendMessage: self._send_message,
            SubmitBooking: self._submit_booking,
            AskPlaypen: self._ask_playpen,
            TogglePreview: self._toggle_preview,
        }
        handler = handlers.get(type(intent))
        if handler is None:
            raise TypeError(f"Unknown intent: {intent!r}")

        with LogContext(intent=type(intent).__name__):
            logger.debug(f"Dispatching {type(intent).__name__}")
            return await handler(intent)

    def _can_start_turn(self) -> bool:
        if not self.context.available:
            logger.warning("Turn rejected: chat is unavailable")
            return False
        if self.context.loading.is_busy or self.context.session.in_flight:
            logger.warning("Turn rejected: a turn is already pending")
            return False
        return True

    async def _stream_turn(self, turn: Turn) -> StreamOutcome:
        """Send a turn and render its reply. Caller holds the busy state."""
        try:
            stream = self.context.session.send_turn(turn)
        except (ServiceUnavailableError, TurnInFlightError) as e:
            outcome = StreamOutcome(error=e)
            outcome.error_entry = report_error(e, self.context.transcript)
        else:
            outcome = await self.context.consumer.consume(stream)
        self.last_outcome = outcome
        return outcome

    async def _send_text(self, text: str) -> bool:
        if not text.strip():
            logger.debug("Ignoring blank message")
            return False
        if not self._can_start_turn():
            return False

        self.context.transcript.append(EntryRole.USER, text)
        async with self.context.loading.busy():
            outcome = await self._stream_turn(Turn.from_text(text))
        return outcome.ok

    async def _send_message(self, intent: SendMessage) -> bool:
        return await self._send_text(intent.text)

    async def _ask_playpen(self, intent: AskPlaypen) -> bool:
        return await self._send_text(PLAYPEN_QUESTION)

    async def _submit_booking(self, intent: SubmitBooking) -> bool:
        if not self._can_start_turn():
            return False

        form = self.context.booking_form
        snapshot = intent.snapshot or form.snapshot
        transcript = self.context.transcript

        async with self.context.loading.busy():
            try:
                turn = await self.context.form_orchestrator.submit(snapshot)
            except (BookingValidationError, AttachmentError) as e:
                report_error(e, transcript)
                return False

        # No await until the next busy block, so no other turn can start here
        transcript.append(EntryRole.USER, turn.text)
        for attachment in turn.attachments:
            preview = EncodedFile(mime_type=attachment.mime_type, data=attachment.data)
            transcript.append(
                EntryRole.USER,
                image_preview_markup(preview.data_uri(), alt="Photo of your rabbit"),
                raw_markup=True,
            )

        async with self.context.loading.busy():
            outcome = await self._stream_turn(turn)

        if outcome.ok:
            form.reset()
            log_booking_event("SENT", snapshot.value("rabbit-name") or None)
        return outcome.ok

    async def _toggle_preview(self, intent: TogglePreview) -> bool:
        form = self.context.booking_form
        if intent.photo is None:
            form.set_preview(None)
            form.snapshot = form.snapshot.model_copy(update={"photo": None})
            return True

        try:
            encoded = await encode_file(intent.photo, self.context.settings.max_attachment_bytes)
        except AttachmentError as e:
            form.set_preview(None)
            report_error(e, self.context.transcript)
            return False

        form.set_preview(encoded)
        form.snapshot = form.snapshot.model_copy(update={"photo": intent.photo})
        return True
