"""Disassembler tests: instruction text, jump labels, re-assembly."""

from tinycpu import assemble
from tinycpu.disassembler import disassemble, disassemble_text


class TestDisassemble:
    """Slot-by-slot decoding."""

    def test_instructions(self):
        """setmr prints address first, registers as VX"""
        insts = disassemble(bytes.fromhex("6005 80FF A370 0003"))
        assert [i.text() for i in insts] == [
            "setrc V0 0x05", "setmr 0xFF V0", "not V7", "jump 0x03"]
        assert insts[1].format() == "  1: 80 FF  setmr 0xFF V0"

    def test_invalid_word(self):
        """Undecodable words become comments"""
        insts = disassemble(bytes.fromhex("C123"))
        assert not insts[0].valid
        assert insts[0].text() == "/* ?? C1 23 */"

    def test_odd_byte_ignored(self):
        assert len(disassemble(bytes.fromhex("600580"))) == 1


class TestDisassembleText:
    """Full text output."""

    def test_jump_targets_get_labels(self):
        """Jump targets are labelled @L<slot>"""
        text = disassemble_text(assemble("@top setrc V0 1 jump @top"), show_bytes=False)
        assert text.splitlines() == ["@L00", "    setrc V0 0x01", "    jump @L00"]

    def test_target_past_end(self):
        """A target beyond the program is bound explicitly"""
        text = disassemble_text(bytes.fromhex("0010"), show_bytes=False)
        assert "@L10 = 0x10" in text

    def test_reassembles_to_same_bytes(self):
        """disassemble → assemble gives back the same binary"""
        src = """
            setrc V0 3
            setrc V1 1
        @loop
            setmr 0xFF V0
            sub V0 V1
            ifeq V0 V2
            jump @end
            jump @loop
        @end
            setrpc V4
            setpcr V4
            not V5
            setrm V6 0x20
        """
        binary = assemble(src)
        assert assemble(disassemble_text(binary)) == binary
        assert assemble(disassemble_text(binary, show_bytes=False)) == binary

    def test_invalid_words_drop_out(self):
        """Comment lines vanish on re-assembly"""
        binary = bytes.fromhex("6001 F0F0 6102")
        text = disassemble_text(binary)
        assert "?? F0 F0" in text
        assert assemble(text) == bytes.fromhex("6001 6102")
