"""Instruction execution for the LC-3 virtual machine."""

from enum import IntEnum
from typing import Callable, Optional

from .console import Console
from .cpu import CPU, R7, sign_extend, to_signed
from .memory import Memory
from .traps import TrapVector, run_trap


class Opcode(IntEnum):
    BR = 0x0
    ADD = 0x1
    LD = 0x2
    ST = 0x3
    JSR = 0x4
    AND = 0x5
    LDR = 0x6
    STR = 0x7
    RTI = 0x8  # unused
    NOT = 0x9
    LDI = 0xA
    STI = 0xB
    JMP = 0xC
    RES = 0xD  # reserved
    LEA = 0xE
    TRAP = 0xF


def opcode_of(instr: int) -> Opcode:
    return Opcode((instr >> 12) & 0xF)


def _dr(instr: int) -> int:
    """Bits [11:9]: destination (or source for stores)."""
    return (instr >> 9) & 0x7


def _sr1(instr: int) -> int:
    """Bits [8:6]: first source or base register."""
    return (instr >> 6) & 0x7


def _pc_offset9(instr: int) -> int:
    return sign_extend(instr & 0x1FF, 9)


def _second_operand(instr: int, cpu: CPU) -> int:
    """ADD/AND operand: imm5 when bit 5 is set, otherwise SR2."""
    if (instr >> 5) & 0x1:
        return sign_extend(instr & 0x1F, 5)
    return cpu.registers[instr & 0x7]


# Instruction executor type; returns the new PC for control transfers
InstructionExecutor = Callable[[int, CPU, Memory, Console], Optional[int]]


def execute_br(instr: int, cpu: CPU, mem: Memory, console: Console) -> Optional[int]:
    """BR nzp: if (nzp & COND) PC := PC + off9"""
    if _dr(instr) & cpu.cond:
        return cpu.pc + _pc_offset9(instr)
    return None


def execute_add(instr: int, cpu: CPU, mem: Memory, console: Console) -> Optional[int]:
    """ADD DR, SR1, SR2|imm5: DR := SR1 + operand"""
    dr = _dr(instr)
    cpu.set_register(dr, cpu.registers[_sr1(instr)] + _second_operand(instr, cpu))
    cpu.update_flags(dr)
    return None


def execute_ld(instr: int, cpu: CPU, mem: Memory, console: Console) -> Optional[int]:
    """LD DR, off9: DR := MEM[PC + off9]"""
    dr = _dr(instr)
    cpu.set_register(dr, mem.read(cpu.pc + _pc_offset9(instr)))
    cpu.update_flags(dr)
    return None


def execute_st(instr: int, cpu: CPU, mem: Memory, console: Console) -> Optional[int]:
    """ST SR, off9: MEM[PC + off9] := SR"""
    mem.write(cpu.pc + _pc_offset9(instr), cpu.registers[_dr(instr)])
    return None


def execute_jsr(instr: int, cpu: CPU, mem: Memory, console: Console) -> Optional[int]:
    """JSR off11 / JSRR BaseR: R7 := PC, then jump"""
    return_addr = cpu.pc
    cpu.set_register(R7, return_addr)
    if (instr >> 11) & 0x1:
        return return_addr + sign_extend(instr & 0x7FF, 11)
    return cpu.registers[_sr1(instr)]


def execute_and(instr: int, cpu: CPU, mem: Memory, console: Console) -> Optional[int]:
    """AND DR, SR1, SR2|imm5: DR := SR1 AND operand (bitwise)."""
    dr = _dr(instr)
    cpu.set_register(dr, cpu.registers[_sr1(instr)] & _second_operand(instr, cpu))
    cpu.update_flags(dr)
    return None


def execute_ldr(instr: int, cpu: CPU, mem: Memory, console: Console) -> Optional[int]:
    """LDR DR, BaseR, off6: DR := MEM[BaseR + off6]"""
    dr = _dr(instr)
    addr = cpu.registers[_sr1(instr)] + sign_extend(instr & 0x3F, 6)
    cpu.set_register(dr, mem.read(addr))
    cpu.update_flags(dr)
    return None


def execute_str(instr: int, cpu: CPU, mem: Memory, console: Console) -> Optional[int]:
    """STR SR, BaseR, off6: MEM[BaseR + off6] := SR"""
    addr = cpu.registers[_sr1(instr)] + sign_extend(instr & 0x3F, 6)
    mem.write(addr, cpu.registers[_dr(instr)])
    return None


def execute_not(instr: int, cpu: CPU, mem: Memory, console: Console) -> Optional[int]:
    """NOT DR, SR: DR := bitwise complement of SR"""
    dr = _dr(instr)
    cpu.set_register(dr, ~cpu.registers[_sr1(instr)])
    cpu.update_flags(dr)
    return None


def execute_ldi(instr: int, cpu: CPU, mem: Memory, console: Console) -> Optional[int]:
    """LDI DR, off9: DR := MEM[MEM[PC + off9]]"""
    dr = _dr(instr)
    indirect_addr = mem.read(cpu.pc + _pc_offset9(instr))
    cpu.set_register(dr, mem.read(indirect_addr))
    cpu.update_flags(dr)
    return None


def execute_sti(instr: int, cpu: CPU, mem: Memory, console: Console) -> Optional[int]:
    """STI SR, off9: MEM[MEM[PC + off9]] := SR"""
    indirect_addr = mem.read(cpu.pc + _pc_offset9(instr))
    mem.write(indirect_addr, cpu.registers[_dr(instr)])
    return None


def execute_jmp(instr: int, cpu: CPU, mem: Memory, console: Console) -> Optional[int]:
    """JMP BaseR: PC := BaseR (RET is JMP R7)"""
    return cpu.registers[_sr1(instr)]


def execute_lea(instr: int, cpu: CPU, mem: Memory, console: Console) -> Optional[int]:
    """LEA DR, off9: DR := PC + off9"""
    dr = _dr(instr)
    cpu.set_register(dr, cpu.pc + _pc_offset9(instr))
    cpu.update_flags(dr)
    return None


def execute_trap(instr: int, cpu: CPU, mem: Memory, console: Console) -> Optional[int]:
    """TRAP vect8: R7 := PC, run the trap routine"""
    cpu.set_register(R7, cpu.pc)
    run_trap(instr & 0xFF, cpu, mem, console)
    return None


def execute_reserved(instr: int, cpu: CPU, mem: Memory, console: Console) -> Optional[int]:
    """RTI and the reserved opcode do nothing."""
    return None


# Instruction dispatch table
INSTRUCTION_EXECUTORS: dict[Opcode, InstructionExecutor] = {
    Opcode.BR: execute_br,
    Opcode.ADD: execute_add,
    Opcode.LD: execute_ld,
    Opcode.ST: execute_st,
    Opcode.JSR: execute_jsr,
    Opcode.AND: execute_and,
    Opcode.LDR: execute_ldr,
    Opcode.STR: execute_str,
    Opcode.RTI: execute_reserved,
    Opcode.NOT: execute_not,
    Opcode.LDI: execute_ldi,
    Opcode.STI: execute_sti,
    Opcode.JMP: execute_jmp,
    Opcode.RES: execute_reserved,
    Opcode.LEA: execute_lea,
    Opcode.TRAP: execute_trap,
}


def execute_instruction(
    instr: int,
    cpu: CPU,
    mem: Memory,
    console: Console,
) -> None:
    """Execute a single, already fetched instruction.

    The PC must already point past ``instr``; PC-relative operands and
    saved return addresses are computed from it.
    """
    executor = INSTRUCTION_EXECUTORS[opcode_of(instr)]
    new_pc = executor(instr, cpu, mem, console)
    if new_pc is not None:
        cpu.set_pc(new_pc)


def _offset_text(value: int) -> str:
    return f"#{to_signed(value)}"


def disassemble(instr: int) -> str:
    """Render an instruction word as LC-3 assembly text."""
    instr &= 0xFFFF
    op = opcode_of(instr)
    dr = _dr(instr)
    sr1 = _sr1(instr)

    if op in (Opcode.ADD, Opcode.AND):
        if (instr >> 5) & 0x1:
            operand = _offset_text(sign_extend(instr & 0x1F, 5))
        else:
            operand = f"R{instr & 0x7}"
        return f"{op.name} R{dr}, R{sr1}, {operand}"
    if op == Opcode.BR:
        flags = "".join(
            name for bit, name in ((4, "n"), (2, "z"), (1, "p")) if dr & bit
        )
        if not flags:
            return "NOP"
        return f"BR{flags} {_offset_text(_pc_offset9(instr))}"
    if op in (Opcode.LD, Opcode.LDI, Opcode.LEA, Opcode.ST, Opcode.STI):
        return f"{op.name} R{dr}, {_offset_text(_pc_offset9(instr))}"
    if op in (Opcode.LDR, Opcode.STR):
        return f"{op.name} R{dr}, R{sr1}, {_offset_text(sign_extend(instr & 0x3F, 6))}"
    if op == Opcode.NOT:
        return f"NOT R{dr}, R{sr1}"
    if op == Opcode.JMP:
        return "RET" if sr1 == R7 else f"JMP R{sr1}"
    if op == Opcode.JSR:
        if (instr >> 11) & 0x1:
            return f"JSR {_offset_text(sign_extend(instr & 0x7FF, 11))}"
        return f"JSRR R{sr1}"
    if op == Opcode.TRAP:
        vector = instr & 0xFF
        try:
            return TrapVector(vector).name
        except ValueError:
            return f"TRAP x{vector:02X}"
    return op.name
