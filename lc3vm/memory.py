"""Memory model for the LC-3 virtual machine."""

from typing import Iterable, Optional

from .console import Console


MEMORY_SIZE = 1 << 16
ADDRESS_MASK = MEMORY_SIZE - 1
WORD_MASK = 0xFFFF

# Memory-mapped device registers
KBSR = 0xFE00  # keyboard status
KBDR = 0xFE02  # keyboard data
DSR = 0xFE04  # display status
DDR = 0xFE06  # display data

KEYBOARD_READY = 1 << 15


class Memory:
    """65536-word address space with memory-mapped keyboard registers.

    Reading KBSR polls the attached console. Display registers are plain
    storage; console output goes through the trap routines only.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        initial_values: Optional[dict[int, int]] = None,
    ):
        self.console = console
        self._data: list[int] = [0] * MEMORY_SIZE

        if initial_values:
            for addr, val in initial_values.items():
                self.write(addr, val)

    def read(self, addr: int) -> int:
        """Read a word, polling the keyboard when KBSR is addressed."""
        addr &= ADDRESS_MASK
        if addr == KBSR:
            if self.console is not None and self.console.poll_input():
                self._data[KBSR] = KEYBOARD_READY
                self._data[KBDR] = self.console.read_char() & WORD_MASK
            else:
                self._data[KBSR] = 0
        return self._data[addr]

    def write(self, addr: int, value: int) -> None:
        self._data[addr & ADDRESS_MASK] = value & WORD_MASK

    def peek(self, addr: int) -> int:
        """Read a word without device side effects."""
        return self._data[addr & ADDRESS_MASK]

    def load_words(self, origin: int, words: Iterable[int]) -> int:
        """Store consecutive words from ``origin``, stopping at the top of memory.

        Returns the number of words stored.
        """
        addr = origin & ADDRESS_MASK
        count = 0
        for word in words:
            if addr >= MEMORY_SIZE:
                break
            self._data[addr] = word & WORD_MASK
            addr += 1
            count += 1
        return count

    def get_watched(self, addresses: list[int]) -> dict[str, int]:
        """Get values at watched addresses as string-keyed dict."""
        result = {}
        for addr in addresses:
            result[str(addr)] = self._data[addr & ADDRESS_MASK]
        return result

    def snapshot(self) -> list[int]:
        """Return a copy of the entire memory."""
        return self._data.copy()
