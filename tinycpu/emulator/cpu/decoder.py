"""
Tiny CPU Emulator — Instruction fetch + decode

Fetches the two bytes of slot PC from the program buffer and decodes
them through the shared opcode table (tinycpu.isa). Dispatch on the
decoded mnemonic happens in emu.py.

  slot i occupies bytes 2*i and 2*i+1
  byte 0 = [n0 n1], byte 1 = [n2 n3]
"""

from dataclasses import dataclass
from typing import Dict

from ...errors import DecodeError
from ...isa import SLOT_SIZE, OpcodeDef, decode

__all__ = ['Decoded', 'DecodeError', 'decode_slot', 'fetch']


@dataclass(frozen=True)
class Decoded:
    """One decoded instruction word."""
    opdef: OpcodeDef
    fields: Dict[str, int]
    raw: bytes
    pc: int

    @property
    def mnemonic(self) -> str:
        return self.opdef.mnemonic

    @property
    def x(self) -> int:
        return self.fields.get('x', 0)

    @property
    def y(self) -> int:
        return self.fields.get('y', 0)

    @property
    def nn(self) -> int:
        return self.fields.get('nn', 0)


def fetch(program: bytes, pc: int) -> bytes:
    """Return the two raw bytes of instruction slot pc."""
    offset = pc * SLOT_SIZE
    return bytes(program[offset:offset + SLOT_SIZE])


def decode_slot(program: bytes, pc: int) -> Decoded:
    """Fetch and decode the instruction at slot pc.

    Raises DecodeError when the word is not in the opcode table.
    """
    raw = fetch(program, pc)
    opdef, fields = decode(raw[0], raw[1], pc)
    return Decoded(opdef, fields, raw, pc)
