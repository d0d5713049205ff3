"""Trap routines (system calls) for the LC-3 virtual machine."""

from enum import IntEnum
from typing import Callable

from .console import Console
from .cpu import CPU, R0
from .memory import MEMORY_SIZE, Memory


IN_PROMPT = "Enter a character: "
HALT_MESSAGE = "HALT\n"


class TrapVector(IntEnum):
    GETC = 0x20  # read a character, no echo
    OUT = 0x21  # write a character
    PUTS = 0x22  # write a string of one character per word
    IN = 0x23  # prompt, read and echo a character
    PUTSP = 0x24  # write a string of two characters per word
    HALT = 0x25  # stop the machine


def _write_text(console: Console, text: str) -> None:
    for char in text:
        console.write_char(ord(char))


def trap_getc(cpu: CPU, mem: Memory, console: Console) -> None:
    """GETC: R0 := character code, not echoed."""
    cpu.set_register(R0, console.read_char())
    cpu.update_flags(R0)


def trap_out(cpu: CPU, mem: Memory, console: Console) -> None:
    """OUT: write low byte of R0."""
    console.write_char(cpu.registers[R0])
    console.flush()


def trap_puts(cpu: CPU, mem: Memory, console: Console) -> None:
    """PUTS: write one character per word from MEM[R0] up to a zero word.

    Reads at most one full pass over memory, wrapping at the top.
    """
    addr = cpu.registers[R0]
    for offset in range(MEMORY_SIZE):
        word = mem.peek(addr + offset)
        if not word:
            break
        console.write_char(word)
    console.flush()


def trap_in(cpu: CPU, mem: Memory, console: Console) -> None:
    """IN: prompt, read a character and echo it; R0 := character code."""
    _write_text(console, IN_PROMPT)
    console.flush()
    code = console.read_char()
    console.write_char(code)
    console.flush()
    cpu.set_register(R0, code)
    cpu.update_flags(R0)


def trap_putsp(cpu: CPU, mem: Memory, console: Console) -> None:
    """PUTSP: write two characters per word (low byte first) up to a zero word."""
    addr = cpu.registers[R0]
    for offset in range(MEMORY_SIZE):
        word = mem.peek(addr + offset)
        if not word:
            break
        console.write_char(word & 0xFF)
        high = word >> 8
        if high:
            console.write_char(high)
    console.flush()


def trap_halt(cpu: CPU, mem: Memory, console: Console) -> None:
    """HALT: announce and clear the running flag."""
    _write_text(console, HALT_MESSAGE)
    console.flush()
    cpu.running = False


TrapRoutine = Callable[[CPU, Memory, Console], None]

TRAP_ROUTINES: dict[TrapVector, TrapRoutine] = {
    TrapVector.GETC: trap_getc,
    TrapVector.OUT: trap_out,
    TrapVector.PUTS: trap_puts,
    TrapVector.IN: trap_in,
    TrapVector.PUTSP: trap_putsp,
    TrapVector.HALT: trap_halt,
}


def run_trap(vector: int, cpu: CPU, mem: Memory, console: Console) -> None:
    """Run the routine for ``vector``. Unknown vectors do nothing."""
    routine = TRAP_ROUTINES.get(vector)
    if routine is not None:
        routine(cpu, mem, console)
