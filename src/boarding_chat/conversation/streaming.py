"""
Streaming consumer: drains a reply stream into the transcript.

Every fragment re-renders the whole accumulated text into a single
assistant entry. A failure part way through keeps whatever was already
shown and adds a separate error entry.
"""

from dataclasses import dataclass
from typing import AsyncIterable, Optional

from loguru import logger

from ..rendering.transcript import EntryHandle, EntryRole, Transcript
from ..error_handling.exceptions import StreamError
from ..error_handling.handlers import report_error


@dataclass
class StreamOutcome:
    """Result of consuming one reply stream."""

    text: str = ""
    fragments: int = 0
    entry: Optional[EntryHandle] = None
    error: Optional[Exception] = None
    error_entry: Optional[EntryHandle] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class StreamingConsumer:
    """
    Renders a reply stream token by token.

    Args:
        transcript: Chat log to render into
    """

    def __init__(self, transcript: Transcript):
        self.transcript = transcript

    async def consume(self, stream: AsyncIterable[str]) -> StreamOutcome:
        """
        Consume a reply stream to completion or failure.

        Failures are recovered here: they are logged, reported as an error
        entry and returned in the outcome rather than raised.

        Args:
            stream: Async iterable of text fragments

        Returns:
            StreamOutcome describing what was rendered
        """
        outcome = StreamOutcome()
        buffer = ""

        try:
            try:
                async for fragment in stream:
                    if not fragment:
                        continue
                    buffer += fragment
                    outcome.fragments += 1
                    outcome.text = buffer
                    if outcome.entry is None:
                        outcome.entry = self.transcript.append(EntryRole.ASSISTANT, buffer)
                    else:
                        self.transcript.update(outcome.entry, buffer)
            finally:
                # Releases the session when rendering fails mid-stream
                aclose = getattr(stream, "aclose", None)
                if aclose is not None:
                    await aclose()
        except Exception as e:
            logger.warning(
                f"Reply stream failed after {outcome.fragments} fragments: {e}"
            )
            if outcome.entry is not None:
                self.transcript.finalize(outcome.entry)
            outcome.error = e
            outcome.error_entry = report_error(
                e, self.transcript, {"fragments": outcome.fragments}
            )
            return outcome

        if outcome.entry is None:
            outcome.error = StreamError("Model returned an empty reply", error_type="empty")
            outcome.error_entry = report_error(outcome.error, self.transcript)
            return outcome

        self.transcript.finalize(outcome.entry)
        logger.debug(f"Reply complete | fragments={outcome.fragments} | chars={len(buffer)}")
        return outcome
