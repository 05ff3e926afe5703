"""Symbol table tests."""

import logging

import pytest

from tinycpu.errors import ResolutionError
from tinycpu.labels import Symbol, SymbolTable, Value


class TestResolve:
    """Label → Value resolution."""

    def test_value_passes_through(self):
        table = SymbolTable()
        assert table.resolve(Value(7)) == Value(7)

    def test_symbol(self):
        table = SymbolTable()
        table.define("loop", Value(3))
        assert table.resolve(Symbol("loop")) == Value(3)

    def test_chain(self):
        """@a → @b → @c → V2 resolves transitively"""
        table = SymbolTable()
        table.define("a", Symbol("b"))
        table.define("b", Symbol("c"))
        table.define("c", Value(2, register=True))
        assert table.resolve(Symbol("a")) == Value(2, register=True)

    def test_unknown(self):
        """Missing name → ResolutionError naming the label"""
        with pytest.raises(ResolutionError, match="Label not found: '@nowhere'"):
            SymbolTable().resolve(Symbol("nowhere", line=4))

    def test_cycle(self):
        """@a → @b → @a is reported as a cycle"""
        table = SymbolTable()
        table.define("a", Symbol("b"))
        table.define("b", Symbol("a"))
        with pytest.raises(ResolutionError, match="cycle"):
            table.resolve(Symbol("a"))

    def test_self_reference(self):
        table = SymbolTable()
        table.define("a", Symbol("a"))
        with pytest.raises(ResolutionError):
            table.resolve(Symbol("a"))


class TestDefine:
    """Binding names and inspecting the table."""

    def test_redefinition_last_wins(self, caplog):
        """Second binding replaces the first, with a warning"""
        table = SymbolTable()
        table.define("x", Value(1), line=1)
        with caplog.at_level(logging.WARNING, logger="tinycpu"):
            table.define("x", Value(2), line=5)
        assert table.resolve(Symbol("x")) == Value(2)
        assert "redefined" in caplog.text

    def test_container_protocol(self):
        """resolved() skips names that do not resolve"""
        table = SymbolTable()
        table.define("x", Value(1))
        table.define("y", Symbol("missing"))
        assert "x" in table
        assert "z" not in table
        assert len(table) == 2
        assert table.resolved() == {"x": 1}

    def test_str(self):
        assert str(Symbol("loop")) == "@loop"
        assert str(Value(0xA, register=True)) == "VA"
        assert str(Value(5)) == "0x05"
