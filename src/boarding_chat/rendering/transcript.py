"""
Transcript renderer for the visible chat log.

Entries are appended as the conversation progresses. Only a streaming
assistant entry may change after it is created, and only the loading
placeholder may ever be removed. Every append and update scrolls the view
to the newest entry.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from loguru import logger
from pydantic import BaseModel

from .markup import render_markdown, render_plain_text, render_user_markup
from ..error_handling.exceptions import EntryFinalizedError


class EntryRole(str, Enum):
    """Sender role of a transcript entry."""

    USER = "user"
    ASSISTANT = "assistant"
    ERROR = "error"
    LOADING = "loading"

    def __str__(self) -> str:
        return self.value


class TranscriptEntry(BaseModel):
    """
    One rendered item in the chat log.

    Attributes:
        entry_id: Monotonic identifier
        role: Sender role
        source: Content as given by the caller
        html: Rendered, safe markup
        final: True once the entry can no longer change
        raw_markup: True when a caller flagged user content as markup
    """

    entry_id: int
    role: EntryRole
    source: str
    html: str
    final: bool = True
    raw_markup: bool = False


@dataclass(frozen=True)
class EntryHandle:
    """Reference to an appended entry."""

    entry_id: int
    role: EntryRole


@dataclass
class ScrollState:
    """Where the transcript view is scrolled to."""

    anchor: Optional[int] = None
    scroll_count: int = 0


TranscriptListener = Callable[[str, TranscriptEntry], None]


class Transcript:
    """
    The visible chat log.

    Listeners registered with ``add_listener`` receive ``(event, entry)``
    for the events "append", "update", "finalize" and "remove". The entry
    passed is a snapshot, so later changes do not affect it.
    """

    def __init__(self):
        self._entries: Dict[int, TranscriptEntry] = {}
        self._next_id = 1
        self._listeners: List[TranscriptListener] = []
        self.scroll = ScrollState()

    @property
    def entries(self) -> List[TranscriptEntry]:
        """Entries in display order."""
        return [self._entries[k].model_copy() for k in sorted(self._entries)]

    def get(self, handle: EntryHandle) -> Optional[TranscriptEntry]:
        entry = self._entries.get(handle.entry_id)
        return entry.model_copy() if entry else None

    def add_listener(self, listener: TranscriptListener) -> None:
        self._listeners.append(listener)

    def append(self, role: EntryRole, content: str, raw_markup: bool = False) -> EntryHandle:
        """
        Append an entry and scroll to it.

        Args:
            role: Sender role
            content: Markdown for the assistant, literal text otherwise
            raw_markup: Treat user content as markup. Only valid for the
                user role.

        Returns:
            Handle of the new entry

        Raises:
            ValueError: If raw_markup is requested for a non-user role
        """
        role = EntryRole(role)
        if raw_markup and role != EntryRole.USER:
            raise ValueError(f"raw_markup is only allowed for user entries, not {role}")

        entry = TranscriptEntry(
            entry_id=self._next_id,
            role=role,
            source=content,
            html=self._render(role, content, raw_markup),
            final=role != EntryRole.ASSISTANT,
            raw_markup=raw_markup,
        )
        self._next_id += 1
        self._entries[entry.entry_id] = entry

        logger.debug(f"Transcript append | id={entry.entry_id} | role={role}")
        self._scroll_to_newest()
        self._notify("append", entry)
        return EntryHandle(entry.entry_id, role)

    def update(self, handle: EntryHandle, content: str) -> None:
        """
        Replace the content of a streaming assistant entry.

        Args:
            handle: Entry to update
            content: Full accumulated markdown

        Raises:
            EntryFinalizedError: If the entry is final, not an assistant
                entry, or gone
        """
        entry = self._entries.get(handle.entry_id)
        if entry is None or entry.final or entry.role != EntryRole.ASSISTANT:
            raise EntryFinalizedError(handle.entry_id, str(handle.role))

        entry.source = content
        entry.html = self._render(entry.role, content, False)
        self._scroll_to_newest()
        self._notify("update", entry)

    def finalize(self, handle: EntryHandle) -> None:
        """Mark an entry final. Finalizing twice is a no-op."""
        entry = self._entries.get(handle.entry_id)
        if entry is None or entry.final:
            return
        entry.final = True
        self._notify("finalize", entry)

    def remove(self, handle: EntryHandle) -> bool:
        """
        Remove the loading placeholder.

        Args:
            handle: Placeholder handle

        Returns:
            True if an entry was removed

        Raises:
            EntryFinalizedError: If the entry is not a loading placeholder
        """
        entry = self._entries.get(handle.entry_id)
        if entry is None:
            return False
        if entry.role != EntryRole.LOADING:
            raise EntryFinalizedError(handle.entry_id, str(entry.role), operation="remove")

        del self._entries[handle.entry_id]
        self._scroll_to_newest()
        self._notify("remove", entry)
        return True

    def to_html(self) -> str:
        """Render the whole log as chat-message markup."""
        return "\n".join(
            f'<div class="message {entry.role.value}" data-entry-id="{entry.entry_id}">'
            f"{entry.html}</div>"
            for entry in self.entries
        )

    def _render(self, role: EntryRole, content: str, raw_markup: bool) -> str:
        if role == EntryRole.ASSISTANT:
            return render_markdown(content)
        if raw_markup:
            return render_user_markup(content)
        return render_plain_text(content)

    def _scroll_to_newest(self) -> None:
        self.scroll.anchor = max(self._entries) if self._entries else None
        self.scroll.scroll_count += 1

    def _notify(self, event: str, entry: TranscriptEntry) -> None:
        snapshot = entry.model_copy()
        for listener in self._listeners:
            listener(event, snapshot)
