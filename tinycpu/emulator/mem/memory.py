"""
Tiny CPU Emulator — 256-byte data memory with an output port

Memory map:
  $00–$FE  RAM
  $FF      Output port — a write is stored like any other and the
           value is also emitted (appended to `output` and passed to
           every output callback)

Program code does not live here: the ROM buffer is separate and
addressed by instruction slot (see emu.py).
"""

from typing import Callable, Dict, List

from ...isa import MEMORY_SIZE, OUTPUT_PORT


class Memory:
    """Flat 256-byte memory.

    Output port writes go to self.output (for programmatic inspection)
    and to callbacks registered with add_output_handler() (the CLI
    prints from there).
    """

    def __init__(self):
        self._mem = bytearray(MEMORY_SIZE)
        self.output: List[int] = []
        self._output_handlers: List[Callable[[int], None]] = []
        # Watchpoints: addr → [callback(addr, old_val, new_val)]
        self._watchpoints: Dict[int, List[Callable]] = {}

    # --- Core read/write ---

    def read8(self, addr: int) -> int:
        return self._mem[addr & 0xFF]

    def write8(self, addr: int, value: int):
        """Write one byte. Writing OUTPUT_PORT also emits the value."""
        addr &= 0xFF
        value &= 0xFF
        old = self._mem[addr]
        self._mem[addr] = value

        for cb in self._watchpoints.get(addr, ()):
            cb(addr, old, value)

        if addr == OUTPUT_PORT:
            self.output.append(value)
            for handler in self._output_handlers:
                handler(value)

    # --- Output port ---

    def add_output_handler(self, handler: Callable[[int], None]):
        """Call handler(value) on every write to the output port."""
        self._output_handlers.append(handler)

    # --- Watchpoints ---

    def add_watchpoint(self, addr: int, callback: Callable):
        """Call callback(addr, old_val, new_val) on every write to addr."""
        self._watchpoints.setdefault(addr & 0xFF, []).append(callback)

    def remove_watchpoint(self, addr: int, callback: Callable = None):
        """Remove a watchpoint. If callback is None, removes all on that addr."""
        addr &= 0xFF
        if addr not in self._watchpoints:
            return
        if callback is None:
            del self._watchpoints[addr]
        else:
            self._watchpoints[addr] = [cb for cb in self._watchpoints[addr] if cb != callback]

    # --- Inspection ---

    def nonzero(self) -> Dict[int, int]:
        """{addr: value} for every non-zero cell."""
        return {addr: val for addr, val in enumerate(self._mem) if val}

    def hexdump(self, start: int = 0, length: int = MEMORY_SIZE) -> str:
        """Produce a hex dump of memory for debugging."""
        lines = []
        for offset in range(0, length, 16):
            addr = (start + offset) & 0xFF
            row = [self._mem[(addr + i) & 0xFF] for i in range(16)]
            hex_bytes = ' '.join(f'{b:02X}' for b in row)
            ascii_bytes = ''.join(chr(b) if 0x20 <= b < 0x7F else '.' for b in row)
            lines.append(f'{addr:02X}  {hex_bytes}  {ascii_bytes}')
        return '\n'.join(lines)

    def reset(self):
        self._mem = bytearray(MEMORY_SIZE)
        self.output.clear()
