"""CPU state model for the LC-3 virtual machine."""

from enum import IntEnum


WORD_MASK = 0xFFFF
REGISTER_COUNT = 8
PC_START = 0x3000

R0 = 0
R7 = 7


class ConditionFlag(IntEnum):
    """Condition codes; exactly one is held in COND at any time."""
    POSITIVE = 1 << 0
    ZERO = 1 << 1
    NEGATIVE = 1 << 2


def sign_extend(value: int, bit_count: int) -> int:
    """Sign-extend the low ``bit_count`` bits of ``value`` to a 16-bit word."""
    value &= (1 << bit_count) - 1
    if (value >> (bit_count - 1)) & 1:
        value |= (WORD_MASK << bit_count) & WORD_MASK
    return value


def to_signed(value: int) -> int:
    """Interpret a 16-bit word as a two's-complement integer."""
    value &= WORD_MASK
    return value - 0x10000 if value & 0x8000 else value


class CPU:
    """Register file: R0-R7, PC, COND and the running flag."""

    def __init__(self, start_address: int = PC_START):
        self.registers: list[int] = [0] * REGISTER_COUNT
        self.pc: int = start_address & WORD_MASK
        self.cond: ConditionFlag = ConditionFlag.ZERO
        self.running: bool = True

    def set_register(self, index: int, value: int) -> None:
        """Set a general register, truncating to 16 bits."""
        self.registers[index] = value & WORD_MASK

    def set_pc(self, value: int) -> None:
        self.pc = value & WORD_MASK

    def update_flags(self, index: int) -> None:
        """Recompute COND from the value just written to register ``index``."""
        value = self.registers[index]
        if value == 0:
            self.cond = ConditionFlag.ZERO
        elif value >> 15:
            self.cond = ConditionFlag.NEGATIVE
        else:
            self.cond = ConditionFlag.POSITIVE

    def cond_name(self) -> str:
        return self.cond.name[0]

    def get_state(self) -> dict:
        """Get current register state as dictionary."""
        return {
            "registers": list(self.registers),
            "pc": self.pc,
            "cond": self.cond_name(),
            "running": self.running,
        }

    def reset(self, start_address: int = PC_START) -> None:
        """Reset CPU to initial state."""
        self.registers = [0] * REGISTER_COUNT
        self.pc = start_address & WORD_MASK
        self.cond = ConditionFlag.ZERO
        self.running = True
