"""
Lexer / Tokenizer for tiny CPU assembly.

Source is a stream of whitespace-delimited tokens:

    /* comment */          comment region, opened by a token starting
                           with '/*' and closed by a token ending with '*/'
    @loop                  label definition: value = next instruction slot
    @limit = 0x10          label definition with an explicit value
    setrc V0 @limit        mnemonic followed by its operands

Operands are decimal (42), hex (0x2A), binary (0b101010), register
names (V0-VF) or label references (@name).

Comments are filtered per token, not per character: '/*' and '*/' must
be separated from other text by whitespace.

Classification depends on position: '@name' is a definition where a
statement starts and a reference where an operand is expected. The
lexer knows operand counts from the opcode table, so it does that
split and the assembler only sees classified tokens.
"""

from __future__ import annotations
import enum
import logging
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple, Union

from .errors import LexError
from .isa import OPCODES

log = logging.getLogger(__name__)

__all__ = ['TokenType', 'Token', 'Lexer', 'parse_number', 'tokenize']


# ──────────────────────────────────────────────
# Token types
# ──────────────────────────────────────────────

class TokenType(enum.Enum):
    MNEMONIC = "MNEMONIC"
    LABEL_DEF = "LABEL_DEF"
    LABEL_REF = "LABEL_REF"
    ASSIGN = "ASSIGN"
    NUMBER = "NUMBER"
    REGISTER = "REGISTER"


@dataclass
class Token:
    type: TokenType
    value: Union[str, int]      # mnemonic / label name / integer value
    text: str
    line: int

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, L{self.line})"


# ──────────────────────────────────────────────
# Literals
# ──────────────────────────────────────────────

_REGISTER_RE = re.compile(r'^[vV]([0-9a-fA-F])$')
_HEX_RE = re.compile(r'^[0-9a-fA-F]+$')
_BIN_RE = re.compile(r'^[01]+$')
_DEC_RE = re.compile(r'^[0-9]+$')


def parse_number(text: str, line: int = 0) -> int:
    """Parse a byte literal: 0x.. (hex), 0b.. (binary) or decimal.

    Raises LexError when the digits do not match the base or the value
    does not fit in a byte.
    """
    if text[:2] in ('0x', '0X'):
        digits, base, kind = text[2:], 16, "hex"
        valid = _HEX_RE.match(digits)
    elif text[:2] in ('0b', '0B'):
        digits, base, kind = text[2:], 2, "binary"
        valid = _BIN_RE.match(digits)
    else:
        digits, base, kind = text, 10, "decimal"
        valid = _DEC_RE.match(digits)

    if not valid:
        raise LexError(f"Not {kind}: '{text}'", line, text)

    value = int(digits, base)
    if value > 0xFF:
        raise LexError(f"Value out of byte range: '{text}' ({value})", line, text)
    return value


# ──────────────────────────────────────────────
# Lexer
# ──────────────────────────────────────────────

class Lexer:
    """Turns source text into classified tokens.

    Usage:
        tokens = Lexer(source).tokenize()
    """

    def __init__(self, source: str):
        self.source = source
        self._words: List[Tuple[str, int]] = []
        self._pos = 0

    def tokenize(self) -> List[Token]:
        self._words = list(self._strip_comments())
        self._pos = 0
        tokens: List[Token] = []

        while self._pos < len(self._words):
            text, line = self._next()

            if text.startswith('@'):
                tokens.append(Token(TokenType.LABEL_DEF, text[1:], text, line))
                if self._peek() == '=':
                    eq_text, eq_line = self._next()
                    tokens.append(Token(TokenType.ASSIGN, eq_text, eq_text, eq_line))
                    tokens.append(self._operand(line))
                continue

            mnemonic = text.lower()
            opdef = OPCODES.get(mnemonic)
            if opdef is None:
                log.debug("Line %d: skipping unrecognized token '%s'", line, text)
                continue

            tokens.append(Token(TokenType.MNEMONIC, mnemonic, text, line))
            for _ in opdef.operands:
                tokens.append(self._operand(line))

        return tokens

    def _operand(self, line: int) -> Token:
        """Consume and classify the next token as an operand."""
        if self._pos >= len(self._words):
            raise LexError("Expected value/operand, reached end of input", line)
        text, line = self._next()

        if text.startswith('@'):
            return Token(TokenType.LABEL_REF, text[1:], text, line)
        match = _REGISTER_RE.match(text)
        if match:
            return Token(TokenType.REGISTER, int(match.group(1), 16), text, line)
        return Token(TokenType.NUMBER, parse_number(text, line), text, line)

    def _next(self) -> Tuple[str, int]:
        word = self._words[self._pos]
        self._pos += 1
        return word

    def _peek(self) -> Optional[str]:
        if self._pos < len(self._words):
            return self._words[self._pos][0]
        return None

    def _strip_comments(self) -> Iterator[Tuple[str, int]]:
        """Yield (token, line) pairs outside /* ... */ regions."""
        in_comment = False
        for line_num, line in enumerate(self.source.splitlines(), 1):
            for word in line.split():
                if word.startswith('/*'):
                    # '/*...*/' as one token opens and closes; inside an
                    # open region it neither nests nor closes it
                    if not in_comment:
                        in_comment = not (len(word) >= 4 and word.endswith('*/'))
                    continue
                if word.endswith('*/'):
                    in_comment = False
                    continue
                if in_comment:
                    continue
                yield word, line_num


def tokenize(source: str) -> List[Token]:
    """Convenience wrapper: tokenize source text."""
    return Lexer(source).tokenize()
