"""Console devices for LC-3 keyboard and display I/O."""

import os
import select
import sys
from contextlib import contextmanager
from typing import BinaryIO, Iterator, Optional, Protocol

from .errors import InputUnderflow


# getchar() returns EOF (-1); stored in a 16-bit register that is 0xFFFF
EOF_CODE = 0xFFFF


class Console(Protocol):
    """Character device consumed by memory-mapped I/O and trap routines."""

    def poll_input(self) -> bool: ...

    def read_char(self) -> int: ...

    def write_char(self, code: int) -> None: ...

    def flush(self) -> None: ...


class BufferedConsole:
    """In-memory console: input from a string, output collected in a buffer.

    Input is consumed as the UTF-8 bytes of ``input_text``, one byte per read.
    """

    def __init__(self, input_text: str = ""):
        self._input = input_text.encode("utf-8")
        self._input_pos = 0
        self._output: list[str] = []
        self.last_in_code: Optional[int] = None
        self.last_out_code: Optional[int] = None

    def poll_input(self) -> bool:
        return self._input_pos < len(self._input)

    def read_char(self) -> int:
        """Read next byte from input buffer as a character code."""
        self.last_in_code = None
        if self._input_pos >= len(self._input):
            raise InputUnderflow("Input buffer is empty")
        self.last_in_code = self._input[self._input_pos]
        self._input_pos += 1
        return self.last_in_code

    def write_char(self, code: int) -> None:
        """Write character to output buffer."""
        self.last_out_code = code & 0xFF
        self._output.append(chr(self.last_out_code))

    def flush(self) -> None:
        pass

    def get_output(self) -> str:
        """Get accumulated output as string."""
        return "".join(self._output)

    def reset_io_codes(self) -> None:
        """Reset last I/O codes for new instruction."""
        self.last_in_code = None
        self.last_out_code = None


class TerminalConsole:
    """Console backed by the process's stdin file descriptor and stdout."""

    def __init__(self, fd: Optional[int] = None, output: Optional[BinaryIO] = None):
        self.fd = sys.stdin.fileno() if fd is None else fd
        self.output = sys.stdout.buffer if output is None else output

    def poll_input(self) -> bool:
        """Check for a pending character without blocking."""
        readable, _, _ = select.select([self.fd], [], [], 0)
        return bool(readable)

    def read_char(self) -> int:
        data = os.read(self.fd, 1)
        if not data:
            return EOF_CODE
        return data[0]

    def write_char(self, code: int) -> None:
        self.output.write(bytes([code & 0xFF]))

    def flush(self) -> None:
        self.output.flush()


@contextmanager
def raw_mode(fd: Optional[int] = None) -> Iterator[None]:
    """Disable line buffering and echo on a terminal for the duration.

    The original terminal attributes are restored on exit, whatever the
    reason for leaving the block. Non-TTY descriptors are left untouched.
    """
    if fd is None:
        fd = sys.stdin.fileno()
    if not os.isatty(fd):
        yield
        return

    import termios

    original = termios.tcgetattr(fd)
    updated = termios.tcgetattr(fd)
    updated[3] &= ~(termios.ICANON | termios.ECHO)
    termios.tcsetattr(fd, termios.TCSANOW, updated)
    try:
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSANOW, original)
