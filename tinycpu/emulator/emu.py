"""
Tiny CPU Emulator — Main Emulator Class

Integrates:
  - Register file + PC (cpu/regs.py)
  - Instruction decoder (cpu/decoder.py, shared table in tinycpu.isa)
  - ALU operations (cpu/alu.py)
  - 256-byte data memory with output port (mem/memory.py)

Execution model:
  1. Stop if PC >= number of loaded slots
  2. Fetch bytes 2*PC and 2*PC+1, decode through the opcode table
  3. Execute the handler
  4. Advance PC by the opcode's flow kind:
       NEXT  PC += 1
       SKIP  PC += 1, plus 1 more if the condition held
       JUMP  PC already set by the handler, no increment

Termination reasons:
  - DONE:     PC ran past the last loaded slot
  - ILLEGAL:  instruction word not in the opcode table (see .fault)
  - BREAK:    breakpoint slot hit
  - TIMEOUT:  max_steps exceeded
"""

from __future__ import annotations
import logging
import re
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set, Union

from .. import config
from ..disassembler import format_instruction
from ..errors import DecodeError, LoadError, SourceError
from ..isa import JUMP, MAX_SLOTS, SKIP, SLOT_SIZE
from .cpu import alu
from .cpu.decoder import Decoded, decode_slot
from .cpu.regs import Registers
from .mem.memory import Memory

log = logging.getLogger(__name__)

__all__ = ['StopReason', 'Emulator', 'run_program']


class StopReason(Enum):
    DONE = 'DONE'
    ILLEGAL = 'ILLEGAL'
    BREAK = 'BREAK'
    TIMEOUT = 'TIMEOUT'


class Emulator:
    """Tiny CPU emulator.

    Usage:
        emu = Emulator()
        emu.load_program(binary)
        reason = emu.run()
        print(emu.mem.output)       # values written to $FF
    """

    def __init__(self, capacity: int = config.ROM_CAPACITY):
        self.capacity = capacity
        self.regs = Registers()
        self.mem = Memory()

        self.program: bytes = b''
        self.slot_count: int = 0
        self.fault: Optional[DecodeError] = None

        # Breakpoints: set of slots that trigger BREAK
        self._breakpoints: Set[int] = set()
        self._break_pc: Optional[int] = None

        self._trace = False
        self._trace_output: List[str] = []

        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load_program(self, data: bytes):
        """Load a binary program into ROM and reset the machine.

        The slot count is fixed here: len(data) // 2. A trailing odd
        byte is ignored. The 8-bit PC addresses at most MAX_SLOTS slots,
        whatever the ROM capacity.
        """
        data = bytes(data)
        if len(data) > self.capacity:
            raise LoadError(f"Program is {len(data)} bytes, ROM capacity is {self.capacity}")
        if len(data) // SLOT_SIZE > MAX_SLOTS:
            raise LoadError(f"Program has {len(data) // SLOT_SIZE} slots, "
                            f"the PC addresses at most {MAX_SLOTS}")
        if len(data) % SLOT_SIZE:
            log.warning("Program has an odd length (%d bytes), last byte ignored", len(data))

        self.program = data
        self.slot_count = len(data) // SLOT_SIZE
        self.reset()
        log.info("Program size: %d slot(s)", self.slot_count)
        log.debug("ROM: %s", ' '.join(f'{b:02X}' for b in data))

    def load_hex(self, text: str):
        """Load a program written as hex digit pairs (whitespace ignored)."""
        digits = ''.join(text.split())
        if len(digits) % 2:
            raise LoadError(f"Hex program has an odd number of digits ({len(digits)})")
        bad = re.search(r'[^0-9a-fA-F]', digits)
        if bad:
            raise LoadError(f"Not hex: {bad.group(0)!r} at digit {bad.start()}")
        self.load_program(bytes(int(digits[i:i + 2], 16) for i in range(0, len(digits), 2)))

    def load_file(self, path: Union[str, Path], hex_text: Optional[bool] = None):
        """Load a program file, raw binary or hex text.

        hex_text=None picks the format from the file suffix.
        """
        path = Path(path)
        if hex_text is None:
            hex_text = path.suffix.lower() in config.HEX_SUFFIXES
        try:
            if hex_text:
                self.load_hex(path.read_text(encoding='utf-8'))
            else:
                self.load_program(path.read_bytes())
        except (OSError, UnicodeDecodeError) as e:
            raise SourceError(f"cannot read program: {e}", str(path)) from e

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    @property
    def finished(self) -> bool:
        return self.regs.PC >= self.slot_count

    def step(self) -> Optional[StopReason]:
        """Execute one instruction. Returns StopReason if stopped, else None."""
        pc = self.regs.PC
        if pc >= self.slot_count:
            return StopReason.DONE

        if pc in self._breakpoints and self._break_pc != pc:
            self._break_pc = pc
            return StopReason.BREAK
        self._break_pc = None

        try:
            inst = decode_slot(self.program, pc)
        except DecodeError as e:
            self.fault = e
            log.error("%s", e)
            return StopReason.ILLEGAL

        if self._trace:
            self._trace_output.append(
                f"{pc:3d}: {inst.raw.hex(' ').upper()}  "
                f"{format_instruction(inst.opdef, inst.fields):<16} {self.regs.display()}")

        taken = self._dispatch[inst.mnemonic](inst)

        flow = inst.opdef.flow
        if flow == SKIP:
            self.regs.PC += 2 if taken else 1
        elif flow != JUMP:
            self.regs.PC += 1

        self.regs.steps += 1
        return None

    def run(self, max_steps: Optional[int] = config.MAX_STEPS,
            raise_on_fault: bool = False) -> StopReason:
        """Run until termination condition.

        Args:
            max_steps: Instructions to execute before TIMEOUT (None = no limit)
            raise_on_fault: Re-raise the DecodeError instead of returning ILLEGAL
        """
        executed = 0
        while True:
            if max_steps is not None and executed >= max_steps:
                return StopReason.TIMEOUT
            reason = self.step()
            if reason is not None:
                if reason == StopReason.ILLEGAL and raise_on_fault:
                    raise self.fault
                log.debug("Stopped: %s after %d step(s)", reason.value, self.regs.steps)
                return reason
            executed += 1

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(inst) -> Optional[bool]
    # Conditionals return True when the next slot is skipped.

    def _build_dispatch(self) -> Dict[str, Callable[[Decoded], Optional[bool]]]:
        """Build mnemonic → handler dispatch table."""
        return {
            # ── Flow ──
            'jump':   self._op_jump,
            'setpcr': self._op_setpcr,
            # ── Conditionals ──
            'ifeq':   self._op_ifeq,
            'ifneq':  self._op_ifneq,
            'ifle':   self._op_ifle,
            # ── Registers / memory ──
            'setrr':  self._op_setrr,
            'setrpc': self._op_setrpc,
            'setrm':  self._op_setrm,
            'setrc':  self._op_setrc,
            'setmr':  self._op_setmr,
            # ── Math ──
            'add':    self._op_add,
            'sub':    self._op_sub,
            # ── Bit ops ──
            'and':    self._op_and,
            'or':     self._op_or,
            'xor':    self._op_xor,
            'not':    self._op_not,
        }

    def _op_jump(self, inst: Decoded):
        self.regs.PC = inst.nn

    def _op_setpcr(self, inst: Decoded):
        self.regs.PC = self.regs[inst.x]

    def _op_ifeq(self, inst: Decoded) -> bool:
        return self.regs[inst.x] == self.regs[inst.y]

    def _op_ifneq(self, inst: Decoded) -> bool:
        return self.regs[inst.x] != self.regs[inst.y]

    def _op_ifle(self, inst: Decoded) -> bool:
        return self.regs[inst.x] <= self.regs[inst.y]

    def _op_setrr(self, inst: Decoded):
        self.regs[inst.x] = self.regs[inst.y]

    def _op_setrpc(self, inst: Decoded):
        self.regs[inst.x] = self.regs.PC

    def _op_setrm(self, inst: Decoded):
        self.regs[inst.x] = self.mem.read8(inst.nn)

    def _op_setrc(self, inst: Decoded):
        self.regs[inst.x] = inst.nn

    def _op_setmr(self, inst: Decoded):
        self.mem.write8(inst.nn, self.regs[inst.x])

    def _op_add(self, inst: Decoded):
        result, carry = alu.add8(self.regs[inst.x], self.regs[inst.y])
        self.regs[inst.x] = result
        self.regs.flag = carry

    def _op_sub(self, inst: Decoded):
        result, borrow = alu.sub8(self.regs[inst.x], self.regs[inst.y])
        self.regs[inst.x] = result
        self.regs.flag = borrow

    def _op_and(self, inst: Decoded):
        self.regs[inst.x] = alu.and8(self.regs[inst.x], self.regs[inst.y])

    def _op_or(self, inst: Decoded):
        self.regs[inst.x] = alu.or8(self.regs[inst.x], self.regs[inst.y])

    def _op_xor(self, inst: Decoded):
        self.regs[inst.x] = alu.xor8(self.regs[inst.x], self.regs[inst.y])

    def _op_not(self, inst: Decoded):
        self.regs[inst.x] = alu.not8(self.regs[inst.x])

    # ══════════════════════════════════════════════
    # Breakpoint API
    # ══════════════════════════════════════════════

    def add_breakpoint(self, slot: int):
        """Stop with BREAK before executing this slot."""
        self._breakpoints.add(slot)

    def remove_breakpoint(self, slot: int):
        self._breakpoints.discard(slot)

    def clear_breakpoints(self):
        self._breakpoints.clear()

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True):
        """Record one line per executed instruction (state before execution)."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def reset(self):
        """Reset registers, memory and PC. The loaded program stays."""
        self.regs.reset()
        self.mem.reset()
        self.fault = None
        self._break_pc = None
        self._trace_output.clear()


def run_program(data: bytes, max_steps: Optional[int] = config.MAX_STEPS) -> List[int]:
    """Load and run a binary, return the values written to the output port.

    Raises DecodeError on an illegal instruction.
    """
    emu = Emulator()
    emu.load_program(data)
    emu.run(max_steps=max_steps, raise_on_fault=True)
    return list(emu.mem.output)
