"""
Two-Pass Assembler for the tiny CPU.

Input:  assembly text (see lexer.py for the token syntax)
Output: raw binary, two bytes per instruction, in source order

How the two-pass algorithm works:
  Pass 1: Walk the token stream with an explicit slot counter.
          '@name' binds name to the current slot (the address of the
          next instruction) without consuming a slot; '@name = value'
          binds it to the value. Each mnemonic records an Instruction
          whose operands are still Labels, and advances the counter.
  Pass 2: Resolve every operand through the symbol table, check it
          fits its field, and pack it with isa.encode().

Invariant: an implicit label's value == the instruction-slot index at
the point of definition. Jump targets are slot indices, not byte
offsets, on both the assembler and the emulator side.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

from . import config
from .errors import AssemblerError, EncodeError, SourceError
from .isa import BYTE_ROLE, MAX_SLOTS, OPCODES, OpcodeDef, encode
from .labels import Label, Symbol, SymbolTable, Value
from .lexer import Lexer, Token, TokenType

log = logging.getLogger(__name__)

__all__ = ['Instruction', 'Assembler', 'assemble', 'assemble_file']


@dataclass
class Instruction:
    """An instruction between pass 1 and pass 2."""
    opdef: OpcodeDef
    operands: List[Label]
    slot: int
    line: int = 0
    source: str = ""
    encoded: bytes = b''


class Assembler:
    """Two-pass tiny CPU assembler.

    Usage:
        asm = Assembler()
        binary = asm.assemble(source_text)
        print(asm.get_listing())
    """

    def __init__(self):
        self.symbols = SymbolTable()
        self.slot: int = 0                       # instruction-slot counter
        self.instructions: List[Instruction] = []
        self.slot_labels: Dict[int, List[str]] = {}  # implicit labels by slot
        self.binary: bytearray = bytearray()

    def assemble(self, source: str) -> bytes:
        """Assemble source text into binary.

        Raises a subclass of AssemblerError (LexError, ResolutionError,
        EncodeError) on the first problem found.
        """
        self.symbols = SymbolTable()
        self.slot = 0
        self.instructions = []
        self.slot_labels = {}
        self.binary = bytearray()

        tokens = Lexer(source).tokenize()
        self._pass1(tokens)
        self._pass2()

        log.info("Assembled %d instruction(s), %d byte(s), %d label(s)",
                 len(self.instructions), len(self.binary), len(self.symbols))
        return bytes(self.binary)

    # ══════════════════════════════════════════════
    # Pass 1: labels and intermediate instructions
    # ══════════════════════════════════════════════

    def _pass1(self, tokens: List[Token]):
        pos = 0
        while pos < len(tokens):
            tok = tokens[pos]
            pos += 1

            if tok.type == TokenType.LABEL_DEF:
                if pos < len(tokens) and tokens[pos].type == TokenType.ASSIGN:
                    value_tok = tokens[pos + 1]
                    pos += 2
                    self.symbols.define(tok.value, _to_label(value_tok), tok.line)
                else:
                    self.symbols.define(tok.value, Value(self.slot), tok.line)
                    self.slot_labels.setdefault(self.slot, []).append(tok.value)
                continue

            if tok.type == TokenType.MNEMONIC:
                opdef = OPCODES[tok.value]
                count = len(opdef.operands)
                operand_toks = tokens[pos:pos + count]
                pos += count
                self.instructions.append(Instruction(
                    opdef=opdef,
                    operands=[_to_label(t) for t in operand_toks],
                    slot=self.slot,
                    line=tok.line,
                    source=" ".join([opdef.mnemonic] + [t.text for t in operand_toks]),
                ))
                self.slot += 1
                continue

            raise AssemblerError(f"Unexpected token {tok.text!r}", tok.line, tok.text)

    # ══════════════════════════════════════════════
    # Pass 2: resolve and encode
    # ══════════════════════════════════════════════

    def _pass2(self):
        if len(self.instructions) > MAX_SLOTS:
            extra = self.instructions[MAX_SLOTS]
            raise EncodeError(
                f"Program has {len(self.instructions)} instructions, "
                f"the PC addresses at most {MAX_SLOTS} slots", extra.line)

        for inst in self.instructions:
            fields = self._resolve_fields(inst)
            inst.encoded = encode(inst.opdef, fields)
            self.binary.extend(inst.encoded)

    def _resolve_fields(self, inst: Instruction) -> Dict[str, int]:
        """Resolve an instruction's operands and map them onto layout roles."""
        values = [self.symbols.resolve(op) for op in inst.operands]
        roles = list(inst.opdef.operands)

        # setmr: whichever operand is written as a register name is the
        # register, otherwise the table order (NN, VX) applies.
        if inst.opdef.mnemonic == 'setmr' and values[0].register and not values[1].register:
            roles.reverse()

        fields = {}
        for role, value in zip(roles, values):
            if role == BYTE_ROLE:
                if value.register:
                    raise EncodeError(
                        f"{inst.opdef.mnemonic}: expected a byte value, got register {value}",
                        inst.line, inst.source)
                if not 0 <= value.value <= 0xFF:
                    raise EncodeError(
                        f"{inst.opdef.mnemonic}: value {value.value} does not fit in a byte",
                        inst.line, inst.source)
            elif not 0 <= value.value <= 0xF:
                raise EncodeError(
                    f"{inst.opdef.mnemonic}: register index {value.value} out of range (0-15)",
                    inst.line, inst.source)
            fields[role] = value.value
        return fields

    # ══════════════════════════════════════════════
    # Listing
    # ══════════════════════════════════════════════

    def get_listing(self) -> str:
        """Return a human-readable listing: slot, bytes, source, then symbols."""
        lines = [f"{'SLOT':>4}  {'BYTES':<5}  SOURCE", "-" * 40]
        for inst in self.instructions:
            hex_str = ' '.join(f'{b:02X}' for b in inst.encoded)
            names = ' '.join(f'@{n}' for n in self.slot_labels.get(inst.slot, []))
            prefix = f"{names}  " if names else ""
            lines.append(f"{inst.slot:>4}  {hex_str:<5}  {prefix}{inst.source}")

        resolved = self.symbols.resolved()
        if resolved:
            lines.append("")
            lines.append("SYMBOLS")
            for name in sorted(resolved):
                lines.append(f"  @{name:<16} {resolved[name]:>3}  (0x{resolved[name]:02X})")
        return '\n'.join(lines)


def _to_label(tok: Token) -> Label:
    if tok.type == TokenType.LABEL_REF:
        return Symbol(tok.value, tok.line)
    return Value(tok.value, register=tok.type == TokenType.REGISTER)


# ──────────────────────────────────────────────
# Convenience functions
# ──────────────────────────────────────────────

def assemble(source: str) -> bytes:
    """Assemble source text, return the binary."""
    return Assembler().assemble(source)


def assemble_file(path: Union[str, Path], output: Optional[Union[str, Path]] = None,
                  assembler: Optional[Assembler] = None) -> Path:
    """Assemble a source file and write the binary next to it.

    The output defaults to the same path with the binary suffix
    (prog.asm -> prog.bin). Returns the output path. Pass an Assembler
    to keep its listing and symbols afterwards.
    """
    path = Path(path)
    try:
        source = path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise SourceError(f"cannot read source: {e}", str(path)) from e

    binary = (assembler or Assembler()).assemble(source)

    out = Path(output) if output else path.with_suffix(config.BINARY_SUFFIX)
    try:
        out.write_bytes(binary)
    except OSError as e:
        raise SourceError(f"cannot write binary: {e}", str(out)) from e
    log.info("Wrote %d byte(s) to %s", len(binary), out)
    return out
