"""
Tiny CPU Instruction Set — the single opcode table.

Both the assembler (mnemonic -> bytes) and the emulator decoder
(bytes -> mnemonic) go through this module, so the two sides cannot
drift apart.

Machine model:
  V0-VF  — 16 registers, 8 bits each. VF is the carry/borrow flag.
  MEM    — 256 bytes, address $FF is the output port.
  PC     — 8-bit program counter over instruction *slots* (2 bytes each).

Every instruction is one slot: two bytes, four nibbles [n0 n1 n2 n3].

Layouts:
  IMM     [n0 n1] [NN]     jump NN
  XY      [n0 n1] [X  Y]   ifeq/ifneq/ifle/setrr/add/sub/and/or/xor
  X_LOW   [n0 n1] [0  X]   setrpc/setpcr
  X_HIGH  [n0 n1] [X  0]   not
  X_IMM   [n0 X ] [NN]     setrm/setrc/setmr

Opcode table:
  00NN  jump NN       PC = NN
  10XY  ifeq VX VY    skip next slot if VX == VY
  20XY  ifneq VX VY   skip next slot if VX != VY
  30XY  ifle VX VY    skip next slot if VX <= VY
  40XY  setrr VX VY   VX = VY
  410X  setrpc VX     VX = PC
  5XNN  setrm VX NN   VX = MEM[NN]
  6XNN  setrc VX NN   VX = NN
  700X  setpcr VX     PC = VX
  8XNN  setmr NN VX   MEM[NN] = VX   (NN = $FF also prints VX)
  90XY  add VX VY     VX = VX + VY, VF = carry
  91XY  sub VX VY     VX = VX - VY, VF = borrow
  A0XY  and VX VY     VX = VX & VY
  A1XY  or VX VY      VX = VX | VY
  A2XY  xor VX VY     VX = VX ^ VY
  A3X0  not VX        VX = ~VX
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .errors import DecodeError

__all__ = [
    'NUM_REGISTERS', 'FLAG_REGISTER', 'MEMORY_SIZE', 'OUTPUT_PORT',
    'MAX_SLOTS', 'SLOT_SIZE', 'OpcodeDef', 'OPCODES', 'encode', 'decode',
    'split_nibbles',
]


# ──────────────────────────────────────────────
# Machine constants
# ──────────────────────────────────────────────

NUM_REGISTERS = 16
FLAG_REGISTER = 0xF     # VF
MEMORY_SIZE = 256
OUTPUT_PORT = 0xFF
MAX_SLOTS = 256         # PC and labels are 8-bit
SLOT_SIZE = 2           # bytes per instruction


# ──────────────────────────────────────────────
# Layouts, operand roles, control flow kinds
# ──────────────────────────────────────────────

IMM = 'IMM'
XY = 'XY'
X_LOW = 'X_LOW'
X_HIGH = 'X_HIGH'
X_IMM = 'X_IMM'

# Operand roles. 'x'/'y' are register indices (one nibble), 'nn' is a byte.
BYTE_ROLE = 'nn'

NEXT = 'NEXT'   # advance one slot
JUMP = 'JUMP'   # handler sets PC, no increment
SKIP = 'SKIP'   # advance one slot, one more if the condition holds


@dataclass(frozen=True)
class OpcodeDef:
    """One row of the opcode table."""
    mnemonic: str
    n0: int
    n1: Optional[int]           # None for X_IMM (n1 carries the register)
    layout: str
    operands: Tuple[str, ...]   # roles in source order
    flow: str = NEXT
    description: str = ""

    @property
    def opcode_byte(self) -> int:
        """First byte with a zero register nibble (X_IMM) or the fixed n1."""
        return (self.n0 << 4) | (self.n1 or 0)

    def pattern(self) -> str:
        """Byte pattern as written in the opcode table, e.g. '5XNN'."""
        hi = f"{self.n0:X}" + ("X" if self.n1 is None else f"{self.n1:X}")
        lo = {IMM: 'NN', XY: 'XY', X_LOW: '0X', X_HIGH: 'X0', X_IMM: 'NN'}[self.layout]
        return hi + lo


# ──────────────────────────────────────────────
# Opcode table
# ──────────────────────────────────────────────

OPCODES: Dict[str, OpcodeDef] = {}


def _op(mnemonic: str, n0: int, n1: Optional[int], layout: str,
        operands: Tuple[str, ...], flow: str = NEXT, description: str = ""):
    """Register an opcode entry."""
    OPCODES[mnemonic] = OpcodeDef(mnemonic, n0, n1, layout, operands, flow, description)


# ── Flow ──
_op('jump',   0x0, 0x0,  IMM,    ('nn',),     JUMP, "PC = NN")
# ── Conditionals ──
_op('ifeq',   0x1, 0x0,  XY,     ('x', 'y'),  SKIP, "skip next slot if VX == VY")
_op('ifneq',  0x2, 0x0,  XY,     ('x', 'y'),  SKIP, "skip next slot if VX != VY")
_op('ifle',   0x3, 0x0,  XY,     ('x', 'y'),  SKIP, "skip next slot if VX <= VY")
# ── Registers ──
_op('setrr',  0x4, 0x0,  XY,     ('x', 'y'),  NEXT, "VX = VY")
_op('setrpc', 0x4, 0x1,  X_LOW,  ('x',),      NEXT, "VX = PC")
_op('setrm',  0x5, None, X_IMM,  ('x', 'nn'), NEXT, "VX = MEM[NN]")
_op('setrc',  0x6, None, X_IMM,  ('x', 'nn'), NEXT, "VX = NN")
_op('setpcr', 0x7, 0x0,  X_LOW,  ('x',),      JUMP, "PC = VX")
# ── Memory ──
_op('setmr',  0x8, None, X_IMM,  ('nn', 'x'), NEXT, "MEM[NN] = VX")
# ── Math ──
_op('add',    0x9, 0x0,  XY,     ('x', 'y'),  NEXT, "VX = VX + VY, VF = carry")
_op('sub',    0x9, 0x1,  XY,     ('x', 'y'),  NEXT, "VX = VX - VY, VF = borrow")
# ── Bit ops ──
_op('and',    0xA, 0x0,  XY,     ('x', 'y'),  NEXT, "VX = VX & VY")
_op('or',     0xA, 0x1,  XY,     ('x', 'y'),  NEXT, "VX = VX | VY")
_op('xor',    0xA, 0x2,  XY,     ('x', 'y'),  NEXT, "VX = VX ^ VY")
_op('not',    0xA, 0x3,  X_HIGH, ('x',),      NEXT, "VX = ~VX")


# ──────────────────────────────────────────────
# Reverse lookup for the decoder
# ──────────────────────────────────────────────
# High nibble -> entries. Nibbles with a single entry decode on n0
# alone; shared nibbles (4, 9, A) also need an exact n1 match.

_BY_HIGH_NIBBLE: Dict[int, List[OpcodeDef]] = {}
for _def in OPCODES.values():
    _BY_HIGH_NIBBLE.setdefault(_def.n0, []).append(_def)
del _def


def split_nibbles(b0: int, b1: int) -> Tuple[int, int, int, int]:
    """Split an instruction word into [n0, n1, n2, n3]."""
    return (b0 >> 4) & 0xF, b0 & 0xF, (b1 >> 4) & 0xF, b1 & 0xF


def encode(opdef: OpcodeDef, fields: Dict[str, int]) -> bytes:
    """Pack resolved operand fields into the two instruction bytes.

    fields maps role -> value ('x', 'y' in 0-15, 'nn' in 0-255).
    Range checking is the caller's job; values are masked here.
    """
    x = fields.get('x', 0) & 0xF
    y = fields.get('y', 0) & 0xF
    nn = fields.get('nn', 0) & 0xFF

    if opdef.layout == X_IMM:
        return bytes([(opdef.n0 << 4) | x, nn])

    b0 = opdef.opcode_byte
    if opdef.layout == IMM:
        return bytes([b0, nn])
    if opdef.layout == XY:
        return bytes([b0, (x << 4) | y])
    if opdef.layout == X_LOW:
        return bytes([b0, x])
    if opdef.layout == X_HIGH:
        return bytes([b0, x << 4])
    raise ValueError(f"Unknown layout: {opdef.layout}")


def decode(b0: int, b1: int, pc: Optional[int] = None) -> Tuple[OpcodeDef, Dict[str, int]]:
    """Decode one instruction word into (opcode entry, fields).

    Raises DecodeError for nibble patterns that are not in the table.
    """
    n0, n1, n2, n3 = split_nibbles(b0, b1)
    candidates = _BY_HIGH_NIBBLE.get(n0)
    if not candidates:
        raise DecodeError(b0, b1, pc)

    if len(candidates) == 1:
        opdef = candidates[0]
    else:
        opdef = next((d for d in candidates if d.n1 == n1), None)
        if opdef is None:
            raise DecodeError(b0, b1, pc)

    layout = opdef.layout
    if layout == IMM:
        return opdef, {'nn': b1}
    if layout == XY:
        return opdef, {'x': n2, 'y': n3}
    if layout == X_LOW:
        return opdef, {'x': n3}
    if layout == X_HIGH:
        return opdef, {'x': n2}
    return opdef, {'x': n1, 'nn': b1}   # X_IMM
