"""Tests for the Rich console factory."""

from kanbanctl.output.console import create_console, get_output, style_for_priority


class TestConsole:
    def test_renders_to_buffer(self) -> None:
        console = create_console(no_color=True, width=40)
        console.print("hello")
        assert get_output(console) == "hello\n"

    def test_priority_styles(self) -> None:
        assert style_for_priority("high") == "kb.priority.high"
        assert style_for_priority("urgent") == ""
