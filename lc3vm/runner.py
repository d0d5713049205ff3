"""Fetch/execute loop and headless program runner with tracing."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from .console import BufferedConsole, Console
from .cpu import CPU, PC_START
from .errors import ErrorInfo, StepLimitExceeded, VMError
from .instructions import disassemble, execute_instruction
from .loader import LoadedImage, load_image_bytes
from .memory import Memory


logger = logging.getLogger(__name__)


def step(cpu: CPU, mem: Memory, console: Console) -> int:
    """Run one fetch/execute cycle and return the instruction word.

    The PC is incremented before the instruction executes.
    """
    instr = mem.read(cpu.pc)
    cpu.set_pc(cpu.pc + 1)
    execute_instruction(instr, cpu, mem, console)
    return instr


def run(
    cpu: CPU,
    mem: Memory,
    console: Console,
    max_steps: Optional[int] = None,
    on_step: Optional[Callable[[int, int, int], None]] = None,
) -> int:
    """Execute until HALT clears the running flag.

    Args:
        cpu: Register file to run
        mem: Memory holding the loaded program
        console: Device used by traps and keyboard registers
        max_steps: Stop with StepLimitExceeded after this many instructions
        on_step: Called with (steps, address, instruction) after each cycle

    Returns:
        Number of instructions executed
    """
    steps = 0
    while cpu.running:
        if max_steps is not None and steps >= max_steps:
            raise StepLimitExceeded(
                f"Step limit exceeded: {max_steps}",
                step=steps,
                addr=cpu.pc,
            )
        addr = cpu.pc
        try:
            instr = step(cpu, mem, console)
        except VMError as e:
            e.step = steps + 1
            e.addr = addr
            e.instruction = mem.peek(addr)
            raise
        steps += 1
        if on_step is not None:
            on_step(steps, addr, instr)
    return steps


@dataclass
class RunOptions:
    """Options for headless program execution."""
    start_address: int = PC_START
    max_steps: int = 1_000_000
    trace: bool = False
    trace_watch: list[int] = field(default_factory=list)
    trace_registers: bool = True
    initial_memory: dict[int, int] = field(default_factory=dict)
    max_trace_rows: int = 10_000


@dataclass
class TraceRow:
    """Single row of execution trace."""
    step: int
    addr: int
    instruction: int
    pc: int
    cond: str
    mem: dict[str, int]
    registers: Optional[list[int]] = None
    in_code: Optional[int] = None
    out_code: Optional[int] = None
    instr_text: str = ""

    def to_dict(self) -> dict:
        result = {
            "step": self.step,
            "addr": self.addr,
            "instruction": self.instruction,
            "pc": self.pc,
            "cond": self.cond,
            "mem": self.mem,
        }
        if self.registers is not None:
            result["registers"] = self.registers
        result["in_code"] = self.in_code
        result["out_code"] = self.out_code
        result["instr_text"] = self.instr_text
        return result


@dataclass
class RunResult:
    """Result of program execution."""
    status: str  # "ok" | "error"
    output_text: str
    steps_executed: int
    final_state: dict
    loaded: list[dict]
    trace_watch: list[int]
    trace: list[dict]
    error: Optional[ErrorInfo] = None

    def to_dict(self) -> dict:
        result = {
            "status": self.status,
            "output_text": self.output_text,
            "steps_executed": self.steps_executed,
            "final_state": self.final_state,
            "loaded": self.loaded,
            "trace_watch": self.trace_watch,
            "trace": self.trace,
        }
        if self.error:
            result["error"] = self.error.to_dict()
        return result


def run_images(
    images: list[bytes],
    input_text: str = "",
    options: Optional[RunOptions] = None,
) -> RunResult:
    """Load images in order and run them against a buffered console.

    Args:
        images: Raw image contents (origin word followed by program words)
        input_text: Characters available to GETC, IN and the keyboard registers
        options: Execution options

    Returns:
        RunResult with execution status, output, and trace
    """
    if options is None:
        options = RunOptions()

    trace_rows: list[dict] = []
    loaded: list[LoadedImage] = []
    error_info: Optional[ErrorInfo] = None
    steps_executed = 0

    console = BufferedConsole(input_text)
    memory = Memory(console=console, initial_values=options.initial_memory)
    cpu = CPU(start_address=options.start_address)
    trace_watch = sorted(set(options.trace_watch))

    def record(step_no: int, addr: int, instr: int) -> None:
        nonlocal steps_executed
        steps_executed = step_no
        if not options.trace or len(trace_rows) >= options.max_trace_rows:
            return
        row = TraceRow(
            step=step_no,
            addr=addr,
            instruction=instr,
            pc=cpu.pc,
            cond=cpu.cond_name(),
            mem=memory.get_watched(trace_watch),
            registers=list(cpu.registers) if options.trace_registers else None,
            in_code=console.last_in_code,
            out_code=console.last_out_code,
            instr_text=disassemble(instr),
        )
        trace_rows.append(row.to_dict())
        console.reset_io_codes()

    try:
        for index, data in enumerate(images):
            loaded.append(load_image_bytes(memory, data, path=f"image[{index}]"))

        logger.debug("Running from x%04X", cpu.pc)
        run(cpu, memory, console, max_steps=options.max_steps, on_step=record)
        logger.debug("Halted after %d steps", steps_executed)
    except VMError as e:
        logger.debug("Run stopped: %s", e.message)
        error_info = e.to_error_info()

    return RunResult(
        status="ok" if error_info is None else "error",
        output_text=console.get_output(),
        steps_executed=steps_executed,
        final_state=cpu.get_state(),
        loaded=[image.to_dict() for image in loaded],
        trace_watch=trace_watch,
        trace=trace_rows,
        error=error_info,
    )
