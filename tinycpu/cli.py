#!/usr/bin/env python3
"""
tinykit — tiny CPU toolchain
============================

One CLI for everything:
    tinykit asm      — Assemble source to a raw binary (prog.asm -> prog.bin)
    tinykit run      — Run a binary (or hex text, or .asm source) in the emulator
    tinykit disasm   — Disassemble a binary back to source

Usage:
    tinykit <command> [options]
    tinykit <command> --help

Examples:
    tinykit asm count.asm
    tinykit asm count.asm -o out/count.bin --listing
    tinykit run count.bin
    tinykit run count.asm --trace --dump
    tinykit run rom.hex --max-steps 10000
    tinykit disasm count.bin -o count_roundtrip.asm
"""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from . import __version__, config
from .assembler import Assembler, assemble_file
from .disassembler import disassemble_text
from .emulator import Emulator, StopReason
from .errors import SourceError, TinyCpuError
from .log import LOGGER_NAME, setup_logging

log = logging.getLogger(LOGGER_NAME + ".cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tinykit",
        description="Tiny CPU toolchain — assemble, run, disassemble",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""commands:
  asm        Assemble source to a raw binary
  run        Run a program in the emulator
  disasm     Disassemble a binary to source
""",
    )
    parser.add_argument("--version", action="version", version=f"tinykit {__version__}")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Increase verbosity (-v info, -vv debug)")
    parser.add_argument("-q", "--quiet", action="store_true",
                        help="Only log errors")
    parser.add_argument("--log-file", help="Also write a full debug log to this file")
    sub = parser.add_subparsers(dest="command", metavar="command")

    # ── asm ──────────────────────────────────────────────────────────────
    p_asm = sub.add_parser("asm", help="Assemble source to a raw binary")
    p_asm.add_argument("input", help="Input source file")
    p_asm.add_argument("-o", "--output",
                       help=f"Output binary (default: input with {config.BINARY_SUFFIX})")
    p_asm.add_argument("--listing", action="store_true", help="Print listing to stdout")

    # ── run ──────────────────────────────────────────────────────────────
    p_run = sub.add_parser("run", help="Run a program in the emulator")
    p_run.add_argument("input", help="Program: raw binary, hex text, or source")
    p_run.add_argument("--hex", action="store_true",
                       help="Treat the input as hex text regardless of suffix")
    p_run.add_argument("--max-steps", type=int, default=config.MAX_STEPS,
                       help="Stop after this many instructions (default: no limit)")
    p_run.add_argument("--capacity", type=int, default=config.ROM_CAPACITY,
                       help=f"ROM capacity in bytes (default: {config.ROM_CAPACITY})")
    p_run.add_argument("--trace", action="store_true",
                       help="Print an instruction trace to stderr after the run")
    p_run.add_argument("--dump", action="store_true",
                       help="Print registers and non-zero memory after the run")

    # ── disasm ───────────────────────────────────────────────────────────
    p_dis = sub.add_parser("disasm", help="Disassemble a binary to source")
    p_dis.add_argument("input", help="Input binary (or hex text with --hex)")
    p_dis.add_argument("--hex", action="store_true", help="Input is hex text")
    p_dis.add_argument("--no-bytes", action="store_true",
                       help="Omit the slot/byte comments")
    p_dis.add_argument("-o", "--output", help="Output file (default: stdout)")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    if args.quiet:
        level = logging.ERROR
    else:
        level = {0: config.LOG_LEVEL, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    setup_logging(console_level=level, log_file=args.log_file)

    try:
        return COMMANDS[args.command](args)
    except TinyCpuError as e:
        log.error("%s", e)
        return 1


# ═════════════════════════════════════════════════════════════════════════════
# COMMAND IMPLEMENTATIONS
# ═════════════════════════════════════════════════════════════════════════════

def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SourceError(f"cannot read: {e}", str(path)) from e


# ── asm ──────────────────────────────────────────────────────────────────
def cmd_asm(args) -> int:
    asm = Assembler()
    out = assemble_file(args.input, args.output, asm)
    log.info("Assembled %s -> %s", args.input, out)

    if args.listing:
        print(asm.get_listing())
    return 0


# ── run ──────────────────────────────────────────────────────────────────
def cmd_run(args) -> int:
    path = Path(args.input)
    emu = Emulator(capacity=args.capacity)

    if path.suffix.lower() == config.SOURCE_SUFFIX and not args.hex:
        asm = Assembler()
        emu.load_program(asm.assemble(_read_text(path)))
    else:
        emu.load_file(path, hex_text=True if args.hex else None)

    emu.mem.add_output_handler(lambda value: print(value, flush=True))
    emu.enable_trace(args.trace)

    reason = emu.run(max_steps=args.max_steps)

    if args.trace:
        print(emu.get_trace(), file=sys.stderr)
    if args.dump:
        _dump_state(emu)

    if reason == StopReason.TIMEOUT:
        log.warning("Stopped after %d step(s) (--max-steps), PC=%d",
                    emu.regs.steps, emu.regs.PC)
        return 1
    if reason == StopReason.ILLEGAL:
        return 1
    return 0


def _dump_state(emu: Emulator):
    console = Console()

    regs = Table(title=f"Registers (PC={emu.regs.PC}, steps={emu.regs.steps})")
    for i in range(len(emu.regs.V)):
        regs.add_column(f"V{i:X}", justify="right")
    regs.add_row(*(str(v) for v in emu.regs.V))
    console.print(regs)

    cells = emu.mem.nonzero()
    mem = Table(title="Memory (non-zero)")
    mem.add_column("Addr", justify="right")
    mem.add_column("Hex", justify="right")
    mem.add_column("Dec", justify="right")
    for addr, value in cells.items():
        mem.add_row(f"0x{addr:02X}", f"0x{value:02X}", str(value))
    console.print(mem)


# ── disasm ───────────────────────────────────────────────────────────────
def cmd_disasm(args) -> int:
    path = Path(args.input)
    # Load through the emulator so hex text and capacity are handled the same way
    emu = Emulator()
    emu.load_file(path, hex_text=True if args.hex else None)
    text = disassemble_text(emu.program, show_bytes=not args.no_bytes)

    if args.output:
        try:
            Path(args.output).write_text(text, encoding="utf-8")
        except OSError as e:
            raise SourceError(f"cannot write: {e}", args.output) from e
        log.info("Disassembled %d slot(s) -> %s", emu.slot_count, args.output)
    else:
        sys.stdout.write(text)
    return 0


# ═════════════════════════════════════════════════════════════════════════════
# COMMAND DISPATCH TABLE
# ═════════════════════════════════════════════════════════════════════════════

COMMANDS = {
    "asm": cmd_asm,
    "run": cmd_run,
    "disasm": cmd_disasm,
}


if __name__ == "__main__":
    sys.exit(main())
