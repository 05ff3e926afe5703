"""
Labels and the symbol table.

An operand is a Label in one of two states:

  Symbol(name)        — unresolved reference to '@name'
  Value(value, reg)   — resolved byte; reg is True when it was written
                        as a register name (V0-VF)

Every Symbol must become a Value before encoding. resolve() is the
only place that happens, so nothing symbolic can reach the encoder.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, Union

from .errors import ResolutionError

log = logging.getLogger(__name__)

__all__ = ['Symbol', 'Value', 'Label', 'SymbolTable']


@dataclass(frozen=True)
class Symbol:
    name: str
    line: int = 0

    def __str__(self):
        return f"@{self.name}"


@dataclass(frozen=True)
class Value:
    value: int
    register: bool = False

    def __str__(self):
        return f"V{self.value:X}" if self.register else f"0x{self.value:02X}"


Label = Union[Symbol, Value]


class SymbolTable:
    """Label name -> Label. Explicit definitions may point at other labels."""

    def __init__(self):
        self._entries: Dict[str, Label] = {}
        self._lines: Dict[str, int] = {}

    def define(self, name: str, label: Label, line: int = 0):
        """Bind name to label. Redefinition replaces the old binding."""
        if name in self._entries:
            log.warning("Line %d: label '@%s' redefined (was defined on line %d)",
                        line, name, self._lines[name])
        self._entries[name] = label
        self._lines[name] = line
        log.debug("Line %d: @%s = %s", line, name, label)

    def resolve(self, label: Label) -> Value:
        """Resolve a Label to a Value, following label-to-label chains.

        Raises ResolutionError for an unknown name or a reference cycle.
        """
        seen = []
        while True:
            if isinstance(label, Value):
                return label
            if not isinstance(label, Symbol):
                raise ResolutionError(f"Unresolvable operand: {label!r}")
            if label.name in seen:
                chain = " -> ".join(f"@{n}" for n in seen + [label.name])
                raise ResolutionError(f"Label cycle: {chain}", label.line, str(label))
            if label.name not in self._entries:
                raise ResolutionError(f"Label not found: '@{label.name}'",
                                      label.line, str(label))
            seen.append(label.name)
            label = self._entries[label.name]

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def resolved(self) -> Dict[str, int]:
        """All names resolved to plain ints (skips names that do not resolve)."""
        result = {}
        for name, label in self._entries.items():
            try:
                result[name] = self.resolve(label).value
            except ResolutionError:
                continue
        return result
