"""
Tiny CPU Emulator — ALU operations

Arithmetic functions return (result_byte, flag) where flag is the value
the caller stores in VF. Bitwise functions return just the result:
they never touch VF.

  add8: flag = 1 if the true sum exceeds 255 (carry)
  sub8: flag = 1 if the true difference is negative (borrow, VY > VX)
"""

from typing import Tuple


def add8(a: int, b: int) -> Tuple[int, int]:
    """VX + VY in a 9-bit domain. Result is the low byte."""
    result = a + b
    return result & 0xFF, 1 if result > 0xFF else 0


def sub8(a: int, b: int) -> Tuple[int, int]:
    """VX - VY in a signed domain. Result is the low byte (two's complement)."""
    result = a - b
    return result & 0xFF, 1 if result < 0 else 0


def and8(a: int, b: int) -> int:
    return (a & b) & 0xFF


def or8(a: int, b: int) -> int:
    return (a | b) & 0xFF


def xor8(a: int, b: int) -> int:
    return (a ^ b) & 0xFF


def not8(a: int) -> int:
    """Bitwise complement of one byte."""
    return ~a & 0xFF
