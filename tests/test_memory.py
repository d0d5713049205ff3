"""Tests for the Memory module."""

import pytest
from lc3vm.console import BufferedConsole
from lc3vm.memory import Memory, MEMORY_SIZE, KBSR, KBDR, DSR, DDR


class TestMemory:
    """Memory module tests."""

    def test_default_initialization(self):
        """Memory initializes with zeros."""
        mem = Memory()
        assert mem.snapshot() == [0] * MEMORY_SIZE

    def test_write_and_read(self):
        """Can write and read back values."""
        mem = Memory()
        mem.write(0x3000, 42)
        assert mem.read(0x3000) == 42

    def test_round_trip_every_plain_address(self):
        """Every non-device address is plain storage."""
        mem = Memory()
        for addr in range(MEMORY_SIZE):
            if addr == KBSR:
                continue
            value = (addr * 7 + 1) & 0xFFFF
            mem.write(addr, value)
            assert mem.read(addr) == value

    def test_addresses_wrap(self):
        """Addresses are taken mod 2**16."""
        mem = Memory()
        mem.write(0x10005, 9)
        assert mem.read(5) == 9
        assert mem.read(-1 & 0x1FFFF) == mem.read(0xFFFF)

    def test_values_truncated(self):
        """Values are stored as 16-bit words."""
        mem = Memory()
        mem.write(0, 0x12345)
        assert mem.read(0) == 0x2345
        mem.write(0, -1)
        assert mem.read(0) == 0xFFFF

    def test_initial_values(self):
        """Memory can be initialized with values."""
        mem = Memory(initial_values={0x4000: 10, 0x4001: 8})
        assert mem.read(0x4000) == 10
        assert mem.read(0x4001) == 8
        assert mem.read(0x3FFF) == 0

    def test_load_words_clamps_at_top(self):
        """load_words stops at xFFFF."""
        mem = Memory()
        stored = mem.load_words(0xFFFE, [1, 2, 3])
        assert stored == 2
        assert mem.read(0xFFFE) == 1
        assert mem.read(0xFFFF) == 2
        assert mem.read(0) == 0

    def test_get_watched(self):
        """Get watched addresses as dict."""
        mem = Memory(initial_values={80: 10, 81: 8})
        assert mem.get_watched([80, 81, 82]) == {"80": 10, "81": 8, "82": 0}

    def test_snapshot(self):
        """Snapshot returns copy of memory."""
        mem = Memory(initial_values={0: 1})
        snap = mem.snapshot()
        snap[0] = 99
        assert mem.read(0) == 1


class TestKeyboardRegisters:
    """Reading KBSR polls the console."""

    def test_pending_character(self):
        """A pending key sets KBSR and fills KBDR."""
        console = BufferedConsole("a")
        mem = Memory(console=console)
        assert mem.read(KBSR) == 0x8000
        assert mem.read(KBDR) == ord("a")
        assert not console.poll_input()

    def test_no_pending_character_clears_status(self):
        """No key clears KBSR."""
        mem = Memory(console=BufferedConsole(""))
        mem.write(KBSR, 0x8000)
        assert mem.read(KBSR) == 0

    def test_without_console(self):
        """KBSR reads zero with no console attached."""
        mem = Memory()
        mem.write(KBSR, 0x8000)
        assert mem.read(KBSR) == 0

    def test_status_consumes_one_character_per_poll(self):
        """Each ready poll consumes one character."""
        console = BufferedConsole("xy")
        mem = Memory(console=console)
        mem.read(KBSR)
        assert mem.read(KBDR) == ord("x")
        mem.read(KBSR)
        assert mem.read(KBDR) == ord("y")
        assert mem.read(KBSR) == 0
        assert mem.read(KBDR) == ord("y")

    def test_peek_has_no_side_effects(self):
        """peek of KBSR does not poll."""
        console = BufferedConsole("a")
        mem = Memory(console=console)
        assert mem.peek(KBSR) == 0
        assert console.poll_input()

    def test_data_register_read_does_not_poll(self):
        """Reading KBDR does not poll."""
        console = BufferedConsole("a")
        mem = Memory(console=console)
        assert mem.read(KBDR) == 0
        assert console.poll_input()

    @pytest.mark.parametrize("addr", [DSR, DDR])
    def test_display_registers_are_plain_storage(self, addr):
        """DSR and DDR store what is written."""
        console = BufferedConsole()
        mem = Memory(console=console)
        mem.write(addr, 0x41)
        assert mem.read(addr) == 0x41
        assert console.get_output() == ""
