"""
Tiny CPU emulator.

    from tinycpu.emulator import Emulator, StopReason

    emu = Emulator()
    emu.load_program(binary)
    assert emu.run() is StopReason.DONE
    print(emu.mem.output)
"""

from .emu import Emulator, StopReason, run_program

__all__ = ['Emulator', 'StopReason', 'run_program']
