"""
Unit tests for the terminal entry point.
"""
import asyncio
import io
from unittest.mock import patch

import pytest

from boarding_chat import main as entry
from boarding_chat.agent.dispatcher import create_chat_context
from boarding_chat.error_handling.exceptions import InitializationError
from boarding_chat.rendering.transcript import EntryRole


class TestMain:
    """Test process start-up."""

    def test_context_built_outside_event_loop(self, settings):
        """The chat context (and its blocking service check) is built before the loop runs."""
        loop_states = []

        def build_context(loaded_settings):
            try:
                asyncio.get_running_loop()
                loop_states.append("running")
            except RuntimeError:
                loop_states.append("none")

            def failing_factory(*args, **kwargs):
                raise InitializationError("service unreachable")

            return create_chat_context(loaded_settings, service_factory=failing_factory)

        with patch.object(entry, "get_settings", return_value=settings), \
             patch.object(entry, "init_logging"), \
             patch.object(entry, "create_chat_context", side_effect=build_context):
            exit_code = entry.main()

        assert loop_states == ["none"]
        assert exit_code == 2

    def test_keyboard_interrupt(self, settings):
        """Ctrl-C exits with the conventional code."""
        with patch.object(entry, "get_settings", return_value=settings), \
             patch.object(entry, "init_logging"), \
             patch.object(entry, "create_chat_context", side_effect=KeyboardInterrupt):
            assert entry.main() == 130


class TestTerminalView:
    """Test streamed terminal output."""

    def test_streams_only_new_text(self, transcript):
        """Each update prints only the text added since the last one."""
        out = io.StringIO()
        transcript.add_listener(entry.TerminalView(out))
        handle = transcript.append(EntryRole.ASSISTANT, "Hi")
        transcript.update(handle, "Hi there")
        transcript.finalize(handle)

        assert out.getvalue() == "assistant: Hi there\n"

    @pytest.mark.parametrize("role, expected", [("error", "! oops\n"), ("loading", "  (oops)\n")])
    def test_other_roles(self, transcript, role, expected):
        """Errors and the placeholder print on their own line."""
        out = io.StringIO()
        transcript.add_listener(entry.TerminalView(out))

        transcript.append(role, "oops")

        assert out.getvalue() == expected
