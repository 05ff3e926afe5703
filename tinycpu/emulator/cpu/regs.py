"""
Tiny CPU Emulator — Register File + Program Counter

Register model:
  V0-VE — general purpose, 8-bit
  VF    — 8-bit, overwritten by add (carry) and sub (borrow)
  PC    — program counter in instruction slots, not bytes
"""

from typing import List

from ...isa import FLAG_REGISTER, NUM_REGISTERS


class Registers:
    """Register file, program counter and step counter."""

    __slots__ = ('V', 'PC', 'steps')

    def __init__(self):
        self.V: List[int] = [0] * NUM_REGISTERS
        self.PC: int = 0
        self.steps: int = 0

    def __getitem__(self, index: int) -> int:
        return self.V[index & 0xF]

    def __setitem__(self, index: int, value: int):
        self.V[index & 0xF] = value & 0xFF

    # --- VF flag access ---

    @property
    def flag(self) -> int:
        return self.V[FLAG_REGISTER]

    @flag.setter
    def flag(self, value: int):
        self.V[FLAG_REGISTER] = 1 if value else 0

    # --- Display ---

    def display(self) -> str:
        """Format register state for trace output."""
        regs = ' '.join(f"V{i:X}={v:02X}" for i, v in enumerate(self.V))
        return f"PC={self.PC:02X} {regs}"

    def snapshot(self) -> List[int]:
        return list(self.V)

    def reset(self):
        """Power-on state: everything zero."""
        self.V = [0] * NUM_REGISTERS
        self.PC = 0
        self.steps = 0
