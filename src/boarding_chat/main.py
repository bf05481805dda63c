"""
Main entry point for the rabbit boarding chat assistant.

Runs the chat in a terminal: typed lines become chat messages, and a few
slash commands stand in for the page's buttons and booking form.

Commands:
    /playpen            Ask about the playpen upgrade
    /photo <path>       Attach (preview) a pet photo
    /nophoto            Remove the attached photo
    /book <form.json>   Submit a booking form from a JSON file of field values
    /quit               Leave
"""
import asyncio
import json
import sys
from pathlib import Path
from typing import Dict

from loguru import logger

from .agent.dispatcher import (
    AskPlaypen,
    ChatContext,
    Dispatcher,
    SendMessage,
    SubmitBooking,
    TogglePreview,
    create_chat_context,
)
from .booking.encoder import UploadedFile
from .booking.form import BookingFormSnapshot
from .config import get_settings
from .error_handling.logging_config import init_logging
from .rendering.transcript import EntryRole, TranscriptEntry


class TerminalView:
    """Prints transcript events, streaming assistant text as it arrives."""

    def __init__(self, out=sys.stdout):
        self.out = out
        self._printed: Dict[int, int] = {}

    def __call__(self, event: str, entry: TranscriptEntry) -> None:
        if entry.role == EntryRole.ASSISTANT:
            self._stream_assistant(event, entry)
        elif event == "append" and entry.role == EntryRole.LOADING:
            self.out.write(f"  ({entry.source})\n")
        elif event == "append" and entry.role == EntryRole.ERROR:
            self.out.write(f"! {entry.source}\n")
        elif event == "append" and entry.role == EntryRole.USER and entry.raw_markup:
            self.out.write("you: [photo attached]\n")
        self.out.flush()

    def _stream_assistant(self, event: str, entry: TranscriptEntry) -> None:
        printed = self._printed.get(entry.entry_id)
        if printed is None:
            self.out.write("assistant: ")
            printed = 0
        if event in ("append", "update"):
            self.out.write(entry.source[printed:])
            self._printed[entry.entry_id] = len(entry.source)
        elif event == "finalize":
            self.out.write("\n")


def _load_form(path: str) -> BookingFormSnapshot:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Booking form file must contain a JSON object")
    return BookingFormSnapshot.from_mapping(data)


async def chat_loop(context: ChatContext) -> int:
    """
    Run the interactive chat until the visitor quits.

    Args:
        context: Chat context built before the event loop started

    Returns:
        Process exit code
    """
    view = TerminalView()
    context.transcript.add_listener(view)
    for entry in context.transcript.entries:
        view("append", entry)
        view("finalize", entry)

    if not context.available:
        logger.error("Chat is unavailable, exiting")
        return 2

    dispatcher = Dispatcher(context)

    while True:
        try:
            line = await asyncio.to_thread(input, "you: ")
        except EOFError:
            return 0

        line = line.strip()
        if not line:
            continue
        command, _, argument = line.partition(" ")
        argument = argument.strip()

        if command == "/quit":
            return 0
        elif command == "/playpen":
            await dispatcher.dispatch(AskPlaypen())
        elif command == "/photo" and argument:
            photo = UploadedFile(filename=Path(argument).name, path=Path(argument))
            if await dispatcher.dispatch(TogglePreview(photo)):
                print(f"  (photo {photo.filename} attached)")
        elif command == "/nophoto":
            await dispatcher.dispatch(TogglePreview(None))
        elif command == "/book" and argument:
            try:
                snapshot = _load_form(argument)
            except (OSError, ValueError) as e:
                print(f"! Could not load booking form: {e}")
                continue
            if snapshot.photo is None:
                snapshot.photo = context.booking_form.snapshot.photo
            await dispatcher.dispatch(SubmitBooking(snapshot))
        else:
            await dispatcher.dispatch(SendMessage(line))


def main() -> int:
    """
    Main entry point for the chat assistant application.

    The chat context, including the blocking startup service check, is
    built outside the event loop.
    """
    settings = get_settings()
    init_logging(
        settings.app_env,
        log_level=settings.log_level,
        log_to_file=settings.log_to_file,
        log_dir=settings.log_dir,
    )

    try:
        context = create_chat_context(settings)
        return asyncio.run(chat_loop(context))
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
        return 130
    finally:
        logger.info("Application shutting down...")


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
