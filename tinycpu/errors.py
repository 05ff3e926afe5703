"""
Error taxonomy for the assembler and emulator.

    TinyCpuError
    ├── SourceError        unreadable input / unwritable output
    ├── AssemblerError     anything found while assembling (line-aware)
    │   ├── LexError         bad numeric literal, missing operand
    │   ├── ResolutionError  unknown label, label cycle
    │   └── EncodeError      operand does not fit its field, too many slots
    ├── LoadError          program does not fit the ROM, bad hex text
    └── DecodeError        instruction word not in the opcode table
"""

from typing import Optional


class TinyCpuError(Exception):
    """Base class for every error raised by tinycpu."""


class SourceError(TinyCpuError):
    """Raised when a source, ROM or output file cannot be read or written."""
    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class AssemblerError(TinyCpuError):
    """Raised on assembly errors."""
    def __init__(self, message: str, line_num: int = 0, token: str = ""):
        self.line_num = line_num
        self.token = token
        super().__init__(f"Line {line_num}: {message}" if line_num else message)


class LexError(AssemblerError):
    """Malformed numeric literal, or an operand missing at end of input."""


class ResolutionError(AssemblerError):
    """A symbolic label could not be resolved to a byte value."""


class EncodeError(AssemblerError):
    """A resolved operand does not fit the opcode layout."""


class LoadError(TinyCpuError):
    """Raised when a program cannot be loaded into the emulator ROM."""


class DecodeError(TinyCpuError):
    """Raised when an instruction word is not in the opcode table."""
    def __init__(self, b0: int, b1: int, pc: Optional[int] = None):
        self.raw = bytes([b0 & 0xFF, b1 & 0xFF])
        self.pc = pc
        where = f" at slot {pc}" if pc is not None else ""
        super().__init__(f"Unknown instruction {b0:02X} {b1:02X}{where}")
