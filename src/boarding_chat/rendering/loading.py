"""
Loading indicator and the turn-initiating controls.

While busy, the message input, the chat send button and the booking form
submit button are disabled and a single placeholder entry is shown. This is
what keeps at most one turn in flight.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from loguru import logger
from pydantic import BaseModel

from .transcript import EntryHandle, EntryRole, Transcript


LOADING_TEXT = "Thinking..."


class Controls(BaseModel):
    """
    Enabled state of the interactive controls.

    Attributes:
        message_input: Text box for chat messages
        send_button: Chat send button
        booking_submit: Booking form submit button
        permanently_disabled: Set after an initialization failure; nothing
            re-enables the controls afterwards
    """

    message_input: bool = True
    send_button: bool = True
    booking_submit: bool = True
    permanently_disabled: bool = False

    @property
    def all_enabled(self) -> bool:
        return self.message_input and self.send_button and self.booking_submit

    @property
    def all_disabled(self) -> bool:
        return not (self.message_input or self.send_button or self.booking_submit)

    def set_enabled(self, enabled: bool) -> None:
        enabled = enabled and not self.permanently_disabled
        self.message_input = enabled
        self.send_button = enabled
        self.booking_submit = enabled

    def disable_permanently(self) -> None:
        self.permanently_disabled = True
        self.set_enabled(False)


class LoadingIndicator:
    """
    Toggles the controls and the placeholder entry for a pending exchange.

    Args:
        transcript: Chat log receiving the placeholder
        controls: Controls to enable/disable
    """

    def __init__(self, transcript: Transcript, controls: Controls):
        self.transcript = transcript
        self.controls = controls
        self._placeholder: Optional[EntryHandle] = None

    @property
    def is_busy(self) -> bool:
        return self._placeholder is not None

    def set_busy(self, busy: bool) -> None:
        """
        Show or clear the busy state. Idempotent in both directions.

        Args:
            busy: True while a turn is pending
        """
        if busy:
            self.controls.set_enabled(False)
            if self._placeholder is None:
                self._placeholder = self.transcript.append(EntryRole.LOADING, LOADING_TEXT)
                logger.debug("Loading indicator shown")
            return

        if self._placeholder is not None:
            self.transcript.remove(self._placeholder)
            self._placeholder = None
            logger.debug("Loading indicator cleared")
        self.controls.set_enabled(True)

    @asynccontextmanager
    async def busy(self) -> AsyncIterator["LoadingIndicator"]:
        """Stay busy for the duration of the block, whatever its outcome."""
        self.set_busy(True)
        try:
            yield self
        finally:
            self.set_busy(False)
