#!/usr/bin/env python3
"""
Tiny CPU Disassembler
=====================
Turns a binary back into assembly text using the shared opcode table.

The output re-assembles to the same bytes:
  - jump targets get '@L<slot>' labels, placed before their slot
  - setmr is written address first ('setmr 0xFF V0')
  - words that do not decode become '/* ?? B1 23 */' comments and
    are dropped on re-assembly

API Usage:
    from tinycpu.disassembler import disassemble, disassemble_text

    for inst in disassemble(binary):
        print(inst.format())      # " 0: 60 05  setrc V0 0x05"

    print(disassemble_text(binary))
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional

from .errors import DecodeError
from .isa import BYTE_ROLE, SLOT_SIZE, OpcodeDef, decode

__all__ = ['DisassembledInstruction', 'disassemble', 'disassemble_text',
           'format_instruction']


@dataclass
class DisassembledInstruction:
    """One slot of a disassembled program."""
    slot: int
    raw: bytes
    opdef: Optional[OpcodeDef]     # None if the word does not decode
    fields: Dict[str, int]

    @property
    def valid(self) -> bool:
        return self.opdef is not None

    @property
    def hex_str(self) -> str:
        return ' '.join(f'{b:02X}' for b in self.raw)

    def text(self, labels: Optional[Dict[int, str]] = None) -> str:
        if self.opdef is None:
            return f"/* ?? {self.hex_str} */"
        return format_instruction(self.opdef, self.fields, labels)

    def format(self) -> str:
        return f"{self.slot:>3}: {self.hex_str}  {self.text()}"


def format_instruction(opdef: OpcodeDef, fields: Dict[str, int],
                       labels: Optional[Dict[int, str]] = None) -> str:
    """Render one decoded instruction as source text."""
    parts = [opdef.mnemonic]
    for role in opdef.operands:
        value = fields[role]
        if role != BYTE_ROLE:
            parts.append(f"V{value:X}")
        elif opdef.mnemonic == 'jump' and labels and value in labels:
            parts.append(f"@{labels[value]}")
        else:
            parts.append(f"0x{value:02X}")
    return ' '.join(parts)


def disassemble(data: bytes) -> List[DisassembledInstruction]:
    """Decode every complete slot in data. A trailing odd byte is ignored."""
    result = []
    for slot in range(len(data) // SLOT_SIZE):
        raw = bytes(data[slot * SLOT_SIZE:(slot + 1) * SLOT_SIZE])
        try:
            opdef, fields = decode(raw[0], raw[1], slot)
        except DecodeError:
            opdef, fields = None, {}
        result.append(DisassembledInstruction(slot, raw, opdef, fields))
    return result


def disassemble_text(data: bytes, show_bytes: bool = True) -> str:
    """Disassemble to assembly source, labelling jump targets."""
    insts = disassemble(data)
    targets = sorted({i.fields['nn'] for i in insts
                      if i.valid and i.opdef.mnemonic == 'jump'})
    labels = {slot: f"L{slot:02X}" for slot in targets}

    lines = []
    for inst in insts:
        if inst.slot in labels:
            lines.append(f"@{labels[inst.slot]}")
        text = inst.text(labels)
        if show_bytes and inst.valid:
            lines.append(f"    {text:<24}/* {inst.slot:3d}: {inst.hex_str} */")
        else:
            lines.append(f"    {text}")

    # Targets past the last slot are bound explicitly
    for slot in targets:
        if slot >= len(insts):
            lines.append(f"@{labels[slot]} = 0x{slot:02X}")
    return '\n'.join(lines) + '\n'
