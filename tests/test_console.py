"""Tests for console devices."""

import io
import os

import pytest
from lc3vm.console import EOF_CODE, BufferedConsole, TerminalConsole, raw_mode
from lc3vm.errors import InputUnderflow


@pytest.fixture
def pipe():
    read_fd, write_fd = os.pipe()
    yield read_fd, write_fd
    for fd in (read_fd, write_fd):
        try:
            os.close(fd)
        except OSError:
            pass


class TestBufferedConsole:
    def test_read_sequence(self):
        """Characters are read in order until the buffer is empty."""
        console = BufferedConsole("ab")
        assert console.poll_input()
        assert console.read_char() == ord("a")
        assert console.last_in_code == ord("a")
        assert console.read_char() == ord("b")
        assert not console.poll_input()

    def test_underflow(self):
        """Reading an empty buffer raises InputUnderflow."""
        with pytest.raises(InputUnderflow):
            BufferedConsole().read_char()

    def test_output(self):
        """Output keeps the low byte of each code."""
        console = BufferedConsole()
        console.write_char(0x148)
        console.write_char(ord("i"))
        assert console.get_output() == "Hi"
        assert console.last_out_code == ord("i")
        console.reset_io_codes()
        assert console.last_out_code is None

    def test_non_ascii_input_is_utf8_bytes(self):
        """Characters outside ASCII arrive as their UTF-8 bytes."""
        console = BufferedConsole("\u20ac")
        codes = [console.read_char() for _ in range(3)]
        assert codes == [0xE2, 0x82, 0xAC]
        assert not console.poll_input()

    def test_wide_character_is_not_truncated(self):
        """A character above xFF is never folded into its low byte."""
        console = BufferedConsole("\u0141")
        assert [console.read_char(), console.read_char()] == [0xC5, 0x81]


class TestTerminalConsole:
    def test_poll_and_read(self, pipe):
        """Poll reports pending bytes and read consumes them."""
        read_fd, write_fd = pipe
        console = TerminalConsole(fd=read_fd, output=io.BytesIO())
        assert console.poll_input() is False
        os.write(write_fd, b"z")
        assert console.poll_input() is True
        assert console.read_char() == ord("z")
        assert console.poll_input() is False

    def test_eof(self, pipe):
        """End of input reads as xFFFF."""
        read_fd, write_fd = pipe
        os.close(write_fd)
        console = TerminalConsole(fd=read_fd, output=io.BytesIO())
        assert console.read_char() == EOF_CODE == 0xFFFF

    def test_write_low_byte(self):
        """Only the low byte is written."""
        output = io.BytesIO()
        console = TerminalConsole(fd=0, output=output)
        console.write_char(0x0141)
        console.write_char(0xE9)
        console.flush()
        assert output.getvalue() == b"A\xe9"


class TestRawMode:
    def test_non_tty_is_untouched(self, pipe):
        """Non-terminal descriptors are left alone."""
        read_fd, _ = pipe
        with raw_mode(read_fd):
            pass

    def test_restores_on_error(self, pipe):
        """The block's exception propagates."""
        read_fd, _ = pipe
        with pytest.raises(KeyboardInterrupt):
            with raw_mode(read_fd):
                raise KeyboardInterrupt

    def test_tty_mode_restored(self):
        """Terminal attributes are restored on exit."""
        termios = pytest.importorskip("termios")
        pty = pytest.importorskip("pty")
        master, slave = pty.openpty()
        try:
            before = termios.tcgetattr(slave)
            with pytest.raises(KeyboardInterrupt):
                with raw_mode(slave):
                    lflag = termios.tcgetattr(slave)[3]
                    assert not lflag & termios.ICANON
                    assert not lflag & termios.ECHO
                    raise KeyboardInterrupt
            assert termios.tcgetattr(slave) == before
        finally:
            os.close(master)
            os.close(slave)
