#!/usr/bin/env python3
"""
Walk-through demo for the rabbit boarding chat assistant.

This script runs the happy path through the chat:
1. Greeting
2. A free-text question
3. The playpen shortcut
4. Attaching a pet photo
5. Submitting the booking form

Usage:
    python scripts/demo.py [--live] [--photo PATH]

Options:
    --live          Talk to Gemini using GEMINI_API_KEY from the environment
                    (default: a scripted offline assistant)
    --photo PATH    Photo to attach to the booking (default: a tiny generated PNG)
"""
import argparse
import asyncio
import base64
import json
import sys
import tempfile
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from boarding_chat.agent.dispatcher import (
    AskPlaypen,
    Dispatcher,
    SendMessage,
    SubmitBooking,
    TogglePreview,
    create_chat_context,
)
from boarding_chat.booking.encoder import UploadedFile
from boarding_chat.booking.form import BookingFormSnapshot
from boarding_chat.config import get_settings
from boarding_chat.error_handling.logging_config import init_logging
from boarding_chat.rendering.transcript import EntryRole, TranscriptEntry


SAMPLE_FORM = Path(__file__).parent.parent / "examples" / "booking_form.json"

# 1x1 transparent PNG
TINY_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)

SCRIPTED_REPLIES = [
    ["Yes! We board ", "rabbits of all breeds, ", "with **daily free-roam time**."],
    ["The **playpen upgrade** gives your bunny ", "a larger pen with tunnels and toys."],
    ["Thank you! ", "I've got Biscuit's details. ", "We'll confirm the stay by email."],
]


class Colors:
    """ANSI color codes for terminal output."""
    BLUE = '\033[94m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    CYAN = '\033[96m'
    BOLD = '\033[1m'
    END = '\033[0m'


def print_header(text: str):
    """Print a formatted header."""
    print(f"\n{Colors.BOLD}{Colors.BLUE}{'=' * 60}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.BLUE}{text.center(60)}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.BLUE}{'=' * 60}{Colors.END}\n")


class ScriptedChatService:
    """Offline stand-in for Gemini that replays canned replies."""

    provider = "scripted"

    def __init__(self, replies):
        self.replies = list(replies)

    async def stream_reply(self, contents):
        for fragment in self.replies.pop(0):
            await asyncio.sleep(0.15)
            yield fragment


class ColorView:
    """Transcript listener printing entries as they change."""

    def __init__(self):
        self._shown = {}

    def __call__(self, event: str, entry: TranscriptEntry):
        if entry.role == EntryRole.ASSISTANT:
            shown = self._shown.get(entry.entry_id, 0)
            if event == "append":
                print(f"{Colors.GREEN}🐰 Assistant: {Colors.END}", end="")
            if event in ("append", "update"):
                print(entry.source[shown:], end="", flush=True)
                self._shown[entry.entry_id] = len(entry.source)
            elif event == "finalize":
                print()
        elif event != "append":
            return
        elif entry.role == EntryRole.USER:
            text = "[photo preview]" if entry.raw_markup else entry.source
            print(f"{Colors.CYAN}👤 You: {Colors.END}{text}")
        elif entry.role == EntryRole.ERROR:
            print(f"{Colors.RED}✗ {entry.source}{Colors.END}")
        elif entry.role == EntryRole.LOADING:
            print(f"{Colors.YELLOW}   {entry.source}{Colors.END}")


async def run_demo(live: bool, photo_path: Path) -> int:
    settings = get_settings()
    init_logging("test")

    factory = None
    if not live:
        factory = lambda *args, **kwargs: ScriptedChatService(SCRIPTED_REPLIES)  # noqa: E731
        settings = settings.model_copy(update={"gemini_api_key": settings.gemini_api_key or "offline-demo"})
    context = create_chat_context(settings, service_factory=factory)
    view = ColorView()
    context.transcript.add_listener(view)

    print_header("STEP 1: Greeting")
    for entry in context.transcript.entries:
        view("append", entry)
        view("finalize", entry)
    if not context.available:
        return 1

    dispatcher = Dispatcher(context)

    print_header("STEP 2: Asking a question")
    await dispatcher.dispatch(SendMessage("Do you take rabbits, and do they get time out of the pen?"))

    print_header("STEP 3: Playpen shortcut")
    await dispatcher.dispatch(AskPlaypen())

    print_header("STEP 4: Attaching a photo")
    photo = UploadedFile(filename=photo_path.name, path=photo_path)
    if await dispatcher.dispatch(TogglePreview(photo)):
        print(f"{Colors.GREEN}✓ Preview ready ({len(context.booking_form.preview_uri)} chars){Colors.END}")

    print_header("STEP 5: Submitting the booking")
    snapshot = BookingFormSnapshot.from_mapping(json.loads(SAMPLE_FORM.read_text(encoding="utf-8")))
    snapshot.photo = context.booking_form.snapshot.photo
    if await dispatcher.dispatch(SubmitBooking(snapshot)):
        print_header("Demo Completed Successfully!")
        return 0

    print_header("Demo Completed with Errors")
    return 1


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Walk-through demo of the boarding chat assistant")
    parser.add_argument("--live", action="store_true", help="Use Gemini instead of scripted replies")
    parser.add_argument("--photo", type=Path, default=None, help="Photo to attach to the booking")
    args = parser.parse_args()

    try:
        with tempfile.TemporaryDirectory() as tmp:
            photo_path = args.photo
            if photo_path is None:
                photo_path = Path(tmp) / "biscuit.png"
                photo_path.write_bytes(TINY_PNG)
            sys.exit(asyncio.run(run_demo(args.live, photo_path)))
    except KeyboardInterrupt:
        print("\nDemo interrupted by user.")
        sys.exit(130)


if __name__ == "__main__":
    main()
