"""
Opcode table tests.

Every entry is checked in both directions: encode() must produce the
documented byte pattern and decode() must map it back to the same
entry and fields.
"""

import pytest

from tinycpu.errors import DecodeError
from tinycpu.isa import OPCODES, JUMP, NEXT, SKIP, decode, encode, split_nibbles


class TestOpcodeTable:
    """The opcode table itself: size, byte patterns, flow kinds."""

    def test_sixteen_mnemonics(self):
        assert len(OPCODES) == 16

    def test_patterns(self):
        """Each entry renders its documented pattern, e.g. setrm → 5XNN"""
        expected = {
            'jump': '00NN', 'ifeq': '10XY', 'ifneq': '20XY', 'ifle': '30XY',
            'setrr': '40XY', 'setrpc': '410X', 'setrm': '5XNN', 'setrc': '6XNN',
            'setpcr': '700X', 'setmr': '8XNN', 'add': '90XY', 'sub': '91XY',
            'and': 'A0XY', 'or': 'A1XY', 'xor': 'A2XY', 'not': 'A3X0',
        }
        for mnem, pattern in expected.items():
            assert OPCODES[mnem].pattern() == pattern, mnem

    def test_flow_kinds(self):
        """jump/setpcr set PC, conditionals skip, the rest advance"""
        assert OPCODES['jump'].flow == JUMP
        assert OPCODES['setpcr'].flow == JUMP
        for mnem in ('ifeq', 'ifneq', 'ifle'):
            assert OPCODES[mnem].flow == SKIP
        assert OPCODES['add'].flow == NEXT

    def test_split_nibbles(self):
        assert split_nibbles(0x9A, 0xBC) == (0x9, 0xA, 0xB, 0xC)


class TestEncode:
    """Field packing per layout."""

    def test_layouts(self):
        """One case per mnemonic, hand-encoded from the table"""
        cases = [
            ('jump',   {'nn': 0x12},          b'\x00\x12'),
            ('ifeq',   {'x': 1, 'y': 2},      b'\x10\x12'),
            ('ifle',   {'x': 0xA, 'y': 0xB},  b'\x30\xAB'),
            ('setrr',  {'x': 3, 'y': 4},      b'\x40\x34'),
            ('setrpc', {'x': 5},              b'\x41\x05'),
            ('setrm',  {'x': 2, 'nn': 0x40},  b'\x52\x40'),
            ('setrc',  {'x': 0xF, 'nn': 0x7},  b'\x6F\x07'),
            ('setpcr', {'x': 9},              b'\x70\x09'),
            ('setmr',  {'x': 0, 'nn': 0xFF},  b'\x80\xFF'),
            ('add',    {'x': 0, 'y': 1},      b'\x90\x01'),
            ('sub',    {'x': 0, 'y': 1},      b'\x91\x01'),
            ('and',    {'x': 1, 'y': 2},      b'\xA0\x12'),
            ('or',     {'x': 1, 'y': 2},      b'\xA1\x12'),
            ('xor',    {'x': 1, 'y': 2},      b'\xA2\x12'),
            ('not',    {'x': 7},              b'\xA3\x70'),
        ]
        for mnem, fields, expected in cases:
            result = encode(OPCODES[mnem], fields)
            assert result == expected, f"{mnem}: expected {expected.hex()}, got {result.hex()}"


class TestDecode:
    """Bytes back to (entry, fields), illegal words rejected."""

    def test_every_entry_decodes_to_itself(self):
        """encode then decode returns the same entry and operand fields"""
        fields = {'x': 0xC, 'y': 0x3, 'nn': 0x5A}
        for opdef in OPCODES.values():
            raw = encode(opdef, fields)
            decoded, got = decode(raw[0], raw[1])
            assert decoded is opdef
            for role in opdef.operands:
                assert got[role] == fields[role], f"{opdef.mnemonic}.{role}"

    def test_single_entry_nibble_ignores_n1(self):
        """07 10 → jump 0x10"""
        # jump is the only 0x0 entry: n1 is not checked
        opdef, fields = decode(0x07, 0x10)
        assert opdef.mnemonic == 'jump'
        assert fields == {'nn': 0x10}

    def test_x_imm_register_in_n1(self):
        """6A 33 → setrc VA 0x33"""
        opdef, fields = decode(0x6A, 0x33)
        assert opdef.mnemonic == 'setrc'
        assert fields == {'x': 0xA, 'nn': 0x33}

    @pytest.mark.parametrize("b0", [0x42, 0x92, 0xA4, 0xB0, 0xC0, 0xD0, 0xE0, 0xF0])
    def test_illegal_words(self, b0):
        """Unused n1 on shared nibbles and all of B-F raise DecodeError"""
        with pytest.raises(DecodeError) as exc:
            decode(b0, 0x00, pc=3)
        assert exc.value.pc == 3
        assert exc.value.raw == bytes([b0, 0x00])
        assert "slot 3" in str(exc.value)
