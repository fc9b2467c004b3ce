"""
Tests for in-place terminal updates.
"""

import io

from t2.terminal import CLEAR_LINE, TerminalControl


class FakeTTY(io.StringIO):
    def isatty(self):
        return True


class TestTerminalControl:
    """Tests for TerminalControl."""

    def test_non_tty_appends(self):
        stream = io.StringIO()
        terminal = TerminalControl(stream)
        terminal.update_in_place(["a", "b"])
        terminal.update_in_place(["c"])
        assert stream.getvalue() == "a\nb\nc\n"

    def test_first_update_on_tty_does_not_move_cursor(self):
        stream = FakeTTY()
        TerminalControl(stream).update_in_place(["one", "two"])
        assert "\033[" + "2A" not in stream.getvalue()
        assert stream.getvalue() == f"{CLEAR_LINE}one\n{CLEAR_LINE}two\n"

    def test_second_update_overwrites_previous_block(self):
        stream = FakeTTY()
        terminal = TerminalControl(stream)
        terminal.update_in_place(["one", "two"])
        stream.seek(0)
        stream.truncate()

        terminal.update_in_place(["three", "four"])
        assert stream.getvalue() == f"\033[2A{CLEAR_LINE}three\n{CLEAR_LINE}four\n"

    def test_shorter_block_clears_leftover_lines(self):
        stream = FakeTTY()
        terminal = TerminalControl(stream)
        terminal.update_in_place(["one", "two", "three"])
        stream.seek(0)
        stream.truncate()

        terminal.update_in_place(["only"])
        assert stream.getvalue() == (
            f"\033[3A{CLEAR_LINE}only\n{CLEAR_LINE}\n{CLEAR_LINE}\n"
        )

    def test_print_line_starts_new_block(self):
        stream = FakeTTY()
        terminal = TerminalControl(stream)
        terminal.update_in_place(["summary"])
        terminal.print_line("[Skipped] No speech detected")
        stream.seek(0)
        stream.truncate()

        terminal.update_in_place(["next"])
        assert stream.getvalue() == f"{CLEAR_LINE}next\n"

    def test_is_terminal(self):
        assert TerminalControl(FakeTTY()).is_terminal() is True
        assert TerminalControl(io.StringIO()).is_terminal() is False

    def test_in_place_disabled_appends_on_tty(self):
        stream = FakeTTY()
        terminal = TerminalControl(stream, in_place=False)
        terminal.update_in_place(["a"])
        terminal.update_in_place(["b"])
        assert stream.getvalue() == "a\nb\n"
