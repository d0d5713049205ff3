"""Custom exceptions for the LC-3 virtual machine."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ErrorInfo:
    """Structured error information for API responses."""
    type: str
    message: str
    step: int
    addr: int
    instruction: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "message": self.message,
            "step": self.step,
            "addr": self.addr,
            "instruction": self.instruction,
        }


class VMError(Exception):
    """Base exception for all VM errors."""

    def __init__(
        self,
        message: str,
        step: int = 0,
        addr: int = 0,
        instruction: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.step = step
        self.addr = addr
        self.instruction = instruction

    def to_error_info(self) -> ErrorInfo:
        return ErrorInfo(
            type=self.__class__.__name__,
            message=self.message,
            step=self.step,
            addr=self.addr,
            instruction=self.instruction,
        )


class LoadError(VMError):
    """Program image could not be opened or has no origin word."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class VMRuntimeError(VMError):
    """Error during program execution."""
    pass


class StepLimitExceeded(VMRuntimeError):
    """Maximum step count exceeded."""
    pass


class InputUnderflow(VMRuntimeError):
    """Console read with empty input buffer."""
    pass
