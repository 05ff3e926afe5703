"""
Tiny CPU toolchain
==================
A 16-bit fixed-width instruction set (16 registers, 256 bytes of memory,
an 8-bit program counter over instruction slots) with an assembler, a
disassembler and an emulator that share one opcode table.

Architecture:
    ┌──────────┐    ┌──────────┐    ┌────────────┐    ┌──────────┐    ┌──────────┐
    │ Source   │───>│  Lexer   │───>│ Assembler  │───>│  Binary  │───>│ Emulator │
    │ (.asm)   │    │ (tokens) │    │ (2 passes) │    │  (.bin)  │    │ (output) │
    └──────────┘    └──────────┘    └────────────┘    └──────────┘    └──────────┘
                                          │                                │
                                          └──────── isa.OPCODES ───────────┘

    - isa.py:          the opcode table, encode()/decode() of instruction words
    - lexer.py:        whitespace tokenizer, /* */ comments, literals, labels
    - labels.py:       Symbol/Value labels and the symbol table
    - assembler.py:    two-pass label resolution and encoding
    - disassembler.py: binary back to source text
    - emulator/:       registers, memory, decoder, ALU, execution loop
"""

__version__ = "0.1.0"

from .errors import (TinyCpuError, SourceError, AssemblerError, LexError,
                     ResolutionError, EncodeError, LoadError, DecodeError)
from .isa import OPCODES
from .lexer import Lexer, Token, TokenType
from .assembler import Assembler, assemble, assemble_file
from .disassembler import disassemble, disassemble_text
from .emulator import Emulator, StopReason, run_program


def assemble_and_run(source: str, max_steps=None) -> list:
    """Assemble source text and run it, return the values written to $FF.

    Full pipeline: Lexer -> Assembler -> Emulator.
    """
    return run_program(assemble(source), max_steps=max_steps)
