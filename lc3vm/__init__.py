"""LC-3 Virtual Machine Core Package."""

from .cpu import CPU, ConditionFlag, PC_START, sign_extend
from .memory import Memory
from .console import BufferedConsole, TerminalConsole, raw_mode
from .loader import LoadedImage, load_image, load_image_bytes, load_image_file
from .instructions import Opcode, disassemble, execute_instruction
from .traps import TrapVector
from .runner import run, run_images, step, RunOptions, RunResult
from .errors import VMError, LoadError, VMRuntimeError, StepLimitExceeded, InputUnderflow

__all__ = [
    "CPU",
    "ConditionFlag",
    "PC_START",
    "sign_extend",
    "Memory",
    "BufferedConsole",
    "TerminalConsole",
    "raw_mode",
    "LoadedImage",
    "load_image",
    "load_image_bytes",
    "load_image_file",
    "Opcode",
    "disassemble",
    "execute_instruction",
    "TrapVector",
    "run",
    "run_images",
    "step",
    "RunOptions",
    "RunResult",
    "VMError",
    "LoadError",
    "VMRuntimeError",
    "StepLimitExceeded",
    "InputUnderflow",
]
