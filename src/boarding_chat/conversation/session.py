"""
Conversation session owning the single ongoing exchange with the LLM.

The session is created once at startup and keeps the accumulated message
history. Each call to ``send_turn`` returns a ``ResponseStream``: a
forward-only, single-use async iterator of reply fragments.
"""

from typing import AsyncIterator, List, Optional

from loguru import logger

from .turn import Turn, HistoryMessage
from ..services.llm_service import ChatService
from ..error_handling.exceptions import (
    ChatWidgetError,
    ServiceUnavailableError,
    StreamConsumedError,
    TurnInFlightError,
)
from ..error_handling.logging_config import log_conversation_event


class ResponseStream:
    """
    Single-use stream of reply fragments for one turn.

    Iterating a second time raises ``StreamConsumedError``. When iteration
    ends, either by exhaustion or by an error, the session is told so the
    next turn can be sent. A consumer that stops early must call
    ``aclose()``.
    """

    def __init__(self, session: "ConversationSession", turn: Turn, turn_number: int):
        self._session = session
        self._turn = turn
        self.turn_number = turn_number
        self._started = False
        self._settled = False
        self._iterator = None
        self.text = ""

    @property
    def settled(self) -> bool:
        return self._settled

    def __aiter__(self) -> AsyncIterator[str]:
        if self._started:
            raise StreamConsumedError(turn=self.turn_number)
        self._started = True
        self._iterator = self._iterate()
        return self._iterator

    async def aclose(self) -> None:
        """
        Abandon the stream and release the session. No-op once settled.

        A reply abandoned part way is not committed to the history.
        """
        if self._iterator is not None:
            await self._iterator.aclose()
        if not self._settled:
            self._settle(error=StreamConsumedError("Stream closed before completion", turn=self.turn_number))

    async def _iterate(self) -> AsyncIterator[str]:
        parts: List[str] = []
        replies = self._session._service.stream_reply(self._session._contents_with(self._turn))
        try:
            async for fragment in replies:
                parts.append(fragment)
                self.text = "".join(parts)
                yield fragment
        except BaseException as e:
            self._settle(error=e)
            raise
        finally:
            close_replies = getattr(replies, "aclose", None)
            if close_replies is not None:
                await close_replies()
        self._settle()

    def _settle(self, error: Optional[BaseException] = None) -> None:
        if self._settled:
            return
        self._settled = True
        self._session._on_settled(self, error)


class ConversationSession:
    """
    The single stateful conversation with the LLM.

    Construct with a ready service, or with ``service=None`` and the error
    that prevented construction. An unusable session fails every turn
    immediately with ``ServiceUnavailableError`` without attempting I/O.

    Attributes:
        provider: Name of the LLM provider, used in errors and logs
    """

    def __init__(
        self,
        service: Optional[ChatService],
        init_error: Optional[ChatWidgetError] = None,
        provider: str = "gemini",
    ):
        self._service = service
        self.init_error = init_error
        self.provider = provider
        self._history: List[HistoryMessage] = []
        self._in_flight: Optional[ResponseStream] = None
        self._turn_count = 0

        if service is None:
            logger.warning(f"Conversation session unusable: {init_error}")
        else:
            log_conversation_event("STARTED", details={"provider": provider})

    @property
    def is_available(self) -> bool:
        return self._service is not None

    @property
    def in_flight(self) -> bool:
        return self._in_flight is not None

    @property
    def history(self) -> List[HistoryMessage]:
        """Committed messages, oldest first. Returns a copy."""
        return list(self._history)

    @property
    def turn_count(self) -> int:
        return self._turn_count

    def send_turn(self, turn: Turn) -> ResponseStream:
        """
        Send one turn and return the stream of reply fragments.

        Nothing is sent until the stream is iterated.

        Args:
            turn: The validated turn to send

        Returns:
            ResponseStream yielding text fragments

        Raises:
            ServiceUnavailableError: If the session failed to initialize
            TurnInFlightError: If the previous reply has not settled
        """
        if self._service is None:
            raise ServiceUnavailableError(provider=self.provider)
        if self._in_flight is not None:
            raise TurnInFlightError(turn=self._in_flight.turn_number)

        self._turn_count += 1
        stream = ResponseStream(self, turn, self._turn_count)
        self._in_flight = stream

        log_conversation_event(
            "TURN_SENT",
            turn_number=self._turn_count,
            details={
                "parts": len(turn.parts),
                "attachments": len(turn.attachments),
                "text_chars": len(turn.text),
            },
        )
        return stream

    def _contents_with(self, turn: Turn) -> List[dict]:
        return [m.to_content() for m in self._history] + [
            {"role": "user", "parts": turn.to_contents()}
        ]

    def _on_settled(self, stream: ResponseStream, error: Optional[BaseException]) -> None:
        if self._in_flight is stream:
            self._in_flight = None

        if error is not None:
            # Nothing is committed so the history keeps strict user/model alternation
            log_conversation_event(
                "TURN_FAILED",
                turn_number=stream.turn_number,
                details={"error": type(error).__name__, "partial_chars": len(stream.text)},
            )
            return

        if not stream.text:
            log_conversation_event("TURN_EMPTY", turn_number=stream.turn_number)
            return

        self._history.append(HistoryMessage(role="user", parts=stream._turn.to_contents()))
        self._history.append(HistoryMessage(role="model", parts=[stream.text]))
        log_conversation_event(
            "TURN_COMPLETED",
            turn_number=stream.turn_number,
            details={"reply_chars": len(stream.text), "history": len(self._history)},
        )
