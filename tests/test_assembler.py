"""
Assembler tests.

Tests the two-pass assembler against hand-encoded tiny CPU machine
code: label resolution (forward, backward, chained), operand checks,
listing output and file handling.
"""

import pytest

from tinycpu.assembler import Assembler, assemble, assemble_file
from tinycpu.errors import (AssemblerError, EncodeError, LexError,
                            ResolutionError, SourceError)


def _hex(source: str) -> str:
    return assemble(source).hex(' ').upper()


class TestEncoding:
    """Source text → exact bytes."""

    def test_add_and_print(self):
        """setrc/setrc/add/setmr → 60 05 61 03 90 01 80 FF"""
        src = "setrc V0 0x05\nsetrc V1 0x03\nadd V0 V1\nsetmr 0xFF V0\n"
        assert _hex(src) == "60 05 61 03 90 01 80 FF"

    def test_all_mnemonics(self):
        """Every mnemonic once, against the table"""
        cases = [
            ("jump 0x12",       "00 12"),
            ("ifeq V1 V2",      "10 12"),
            ("ifneq V1 V2",     "20 12"),
            ("ifle V1 V2",      "30 12"),
            ("setrr V3 V4",     "40 34"),
            ("setrpc V5",       "41 05"),
            ("setrm V2 0x40",   "52 40"),
            ("setrc VF 7",      "6F 07"),
            ("setpcr V9",       "70 09"),
            ("setmr 0x20 V3",   "83 20"),
            ("add V0 V1",       "90 01"),
            ("sub V0 V1",       "91 01"),
            ("and V1 V2",       "A0 12"),
            ("or V1 V2",        "A1 12"),
            ("xor V1 V2",       "A2 12"),
            ("not V7",          "A3 70"),
        ]
        for src, expected in cases:
            assert _hex(src) == expected, src

    def test_empty_source(self):
        """No instructions → empty binary"""
        assert assemble("") == b''
        assert assemble("/* nothing here */") == b''

    def test_numbers_as_register_indices(self):
        assert _hex("add 0 1") == "90 01"

    def test_setmr_register_first(self):
        """setmr V3 0x20 and setmr 0x20 V3 encode the same"""
        assert _hex("setmr V3 0x20") == "83 20"
        assert _hex("setmr 0x20 V3") == "83 20"

    def test_setmr_through_register_label(self):
        assert _hex("@r = V3 setmr 0x20 @r") == "83 20"

    def test_binary_and_decimal_literals(self):
        assert _hex("setrc V0 0b1010 setrc V1 10") == "60 0A 61 0A"


class TestLabels:
    """Two-pass label resolution."""

    def test_forward_reference(self):
        """jump @end before @end is defined → 00 03"""
        src = """
            setrc V0 1
            jump @end
            setrc V0 2
        @end
            setmr 0xFF V0
        """
        assert _hex(src) == "60 01 00 03 60 02 80 FF"

    def test_backward_reference(self):
        """Labels bind to the slot of the next instruction"""
        src = "@top setrc V0 1 @again add V0 V0 jump @again jump @top"
        assert _hex(src) == "60 01 90 00 00 01 00 00"

    def test_label_does_not_take_a_slot(self):
        """Labels bind without advancing the slot counter"""
        asm = Assembler()
        asm.assemble("@a @b setrc V0 1 @c")
        assert asm.symbols.resolved() == {'a': 0, 'b': 0, 'c': 1}
        assert len(asm.instructions) == 1

    def test_explicit_values(self):
        """@name = value with a number, a register and another label"""
        src = "@limit = 0x10 @acc = V2 @alias = @limit setrc @acc @alias"
        assert _hex(src) == "62 10"

    def test_label_defined_after_use_in_assignment(self):
        assert _hex("@a = @b jump @a @b = 7") == "00 07"

    def test_unknown_label(self):
        """ResolutionError carries the line of the reference"""
        with pytest.raises(ResolutionError, match="Label not found") as exc:
            assemble("setrc V0 1\njump @nowhere")
        assert exc.value.line_num == 2

    def test_cycle(self):
        with pytest.raises(ResolutionError, match="cycle"):
            assemble("@a = @b @b = @a jump @a")

    def test_redefinition_last_wins(self):
        assert _hex("@x = 1 @x = 2 jump @x") == "00 02"


class TestErrors:
    """Operand checks and typed errors."""

    def test_all_errors_are_assembler_errors(self):
        for cls in (LexError, ResolutionError, EncodeError):
            assert issubclass(cls, AssemblerError)

    def test_register_where_byte_expected(self):
        """setrc V0 V1 → EncodeError"""
        with pytest.raises(EncodeError, match="expected a byte"):
            assemble("setrc V0 V1")

    def test_register_index_out_of_range(self):
        """add V0 0x10 → EncodeError"""
        with pytest.raises(EncodeError, match="out of range"):
            assemble("add V0 0x10")

    def test_bad_literal(self):
        with pytest.raises(LexError):
            assemble("setrc V0 0x1G")

    def test_too_many_instructions(self):
        """256 instructions fit, 257 do not"""
        assert len(assemble("setrc V0 1\n" * 256)) == 512
        with pytest.raises(EncodeError, match="256"):
            assemble("setrc V0 1\n" * 257)


class TestListing:
    """Listing text and per-instruction records."""

    def test_listing_contents(self):
        """Slot, bytes, labels, source and the SYMBOLS section"""
        asm = Assembler()
        asm.assemble("@start setrc V0 5\njump @start")
        listing = asm.get_listing()
        assert "SLOT" in listing
        assert "60 05" in listing
        assert "@start  setrc V0 5" in listing
        assert "00 00" in listing
        assert "SYMBOLS" in listing

    def test_instruction_records(self):
        asm = Assembler()
        asm.assemble("setrc V0 5\n\nadd V0 V0")
        assert [i.slot for i in asm.instructions] == [0, 1]
        assert [i.line for i in asm.instructions] == [1, 3]
        assert asm.instructions[1].encoded == b'\x90\x00'


class TestAssembleFile:
    """File in, file out."""

    def test_default_output(self, tmp_path):
        """prog.asm → prog.bin"""
        src = tmp_path / "prog.asm"
        src.write_text("setrc V0 5 setmr 0xFF V0", encoding="utf-8")
        out = assemble_file(src)
        assert out == tmp_path / "prog.bin"
        assert out.read_bytes() == bytes.fromhex("6005 80FF")

    def test_explicit_output(self, tmp_path):
        src = tmp_path / "prog.asm"
        src.write_text("not V1", encoding="utf-8")
        out = assemble_file(src, tmp_path / "other.rom")
        assert out.read_bytes() == b'\xA3\x10'

    def test_keeps_assembler_state(self, tmp_path):
        """A passed-in Assembler holds the listing of the written binary"""
        src = tmp_path / "prog.asm"
        src.write_text("@top setrc V0 5 jump @top", encoding="utf-8")
        asm = Assembler()
        out = assemble_file(src, assembler=asm)
        assert bytes(asm.binary) == out.read_bytes()
        assert "@top  setrc V0 5" in asm.get_listing()

    def test_missing_source(self, tmp_path):
        with pytest.raises(SourceError):
            assemble_file(tmp_path / "missing.asm")
