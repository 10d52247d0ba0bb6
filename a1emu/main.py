#!/usr/bin/env python3
"""
a1emu -- MOS 6502 / Apple-1 style emulator.

Main entry point.  Parses command-line arguments, builds the machine from
ROM images, and runs it in a pygame terminal window or headless.

Usage examples::

    # Run the functional test image headless, stop when it settles
    python main.py --preset test --headless

    # Woz monitor and Integer BASIC in a window
    python main.py --preset basic --rom-dir roms

    # Arbitrary images
    python main.py --rom a1boot.bin@FF00 --rom prog.bin@0300 --entry 0300

    # Check the opcode table
    python main.py --self-test
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

from a1emu.core.instructions import INSTRUCTIONS, count_instructions, validate_table
from a1emu.core.types import Status
from a1emu.platform.terminal import Apple1Terminal, ConsoleTerminal
from a1emu.shell.runner import run
from a1emu.shell.services.machine_factory import (
    PRESETS,
    MachineFactory,
    parse_address,
    parse_rom_spec,
)


# ---------------------------------------------------------------------------
# CLI definition
# ---------------------------------------------------------------------------

def _address(text: str) -> int:
    try:
        return parse_address(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def _rom_spec(text: str):
    try:
        return parse_rom_spec(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def _build_parser() -> argparse.ArgumentParser:
    """Construct the argument parser."""
    parser = argparse.ArgumentParser(
        prog="a1emu",
        description=(
            "a1emu -- MOS 6502 emulator with an Apple-1 style terminal.  "
            "Load ROM images and run them in a pygame window or headless."
        ),
    )

    # ROMs
    parser.add_argument(
        "--rom", "-r",
        action="append",
        type=_rom_spec,
        default=[],
        metavar="PATH@ADDR[:SIZE]",
        help=(
            "Load a ROM image at ADDR and mount SIZE bytes (hex; default: the "
            "file size).  May be given more than once."
        ),
    )
    parser.add_argument(
        "--preset", "-p",
        choices=sorted(PRESETS),
        default=None,
        help="Load a preset ROM set.  Default: test, unless --rom is given.",
    )
    parser.add_argument(
        "--rom-dir",
        default="rom",
        metavar="DIR",
        help="Directory holding the preset ROM files.  Default: rom.",
    )
    parser.add_argument(
        "--entry", "-e",
        type=_address,
        default=None,
        metavar="ADDR",
        help="Start address (hex).  Default: the preset's, else the reset vector.",
    )

    # Display
    parser.add_argument(
        "--charmap",
        default=None,
        metavar="PATH",
        help="Character ROM for the terminal window.  Default: ROM_DIR/a1chr.bin.",
    )
    parser.add_argument(
        "--scale", "-s",
        type=int,
        default=2,
        help="Window scale factor (1-8).  Default: 2.",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        default=False,
        help="Run without a window; terminal output goes to stdout.",
    )

    # Execution
    parser.add_argument(
        "--max-steps",
        type=int,
        default=None,
        metavar="N",
        help="Stop after N instructions.",
    )
    parser.add_argument(
        "--legacy-branch-timing",
        action="store_true",
        default=False,
        help="Charge taken branches 2 cycles instead of 3.",
    )

    # Debugging
    parser.add_argument(
        "--trace", "-t",
        action="store_true",
        default=False,
        help="Print the CPU state after every instruction.",
    )
    parser.add_argument(
        "--dump",
        action="store_true",
        default=False,
        help="Write ram.bin and mem.bin on exit.",
    )
    parser.add_argument(
        "--self-test",
        action="store_true",
        default=False,
        help="Validate the opcode table and exit.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Increase log verbosity (-v for INFO, -vv for DEBUG).",
    )

    return parser


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

def _configure_logging(verbosity: int) -> None:
    """Set up the root logger based on requested verbosity."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


# ---------------------------------------------------------------------------
# Self test
# ---------------------------------------------------------------------------

def _self_test() -> int:
    errors = validate_table(INSTRUCTIONS)
    for msg in errors:
        print(msg)
    print(f"{count_instructions(INSTRUCTIONS)} instructions implemented.")
    return 1 if errors else 0


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def _make_peripheral(args: argparse.Namespace):
    if args.headless:
        return ConsoleTerminal()
    charmap = args.charmap or os.path.join(args.rom_dir, "a1chr.bin")
    return Apple1Terminal(charmap, scale=args.scale)


def main(argv: Optional[List[str]] = None) -> int:
    """Application entry point.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` to use ``sys.argv``.

    Returns
    -------
    int
        Exit code (0 on success).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)
    logger = logging.getLogger("a1emu.main")

    if args.self_test:
        return _self_test()

    if args.max_steps is not None and args.max_steps < 0:
        print("Error: --max-steps must not be negative", file=sys.stderr)
        return 1

    preset = args.preset
    if preset is None and not args.rom:
        preset = "test"

    try:
        vm = MachineFactory.create(
            roms=args.rom,
            preset=preset,
            rom_dir=args.rom_dir,
            entry=args.entry,
            peripheral=_make_peripheral(args),
            legacy_branch_timing=args.legacy_branch_timing,
        )
    except (RuntimeError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except Exception as exc:
        logger.exception("Failed to create machine")
        print(f"Error creating machine: {exc}", file=sys.stderr)
        return 1

    logger.info("Starting emulation ...")
    status = Status.OK
    try:
        status = run(vm, max_steps=args.max_steps, trace=args.trace)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as exc:
        logger.exception("Fatal error during emulation")
        print(f"Fatal error: {exc}", file=sys.stderr)
        return 1
    finally:
        if args.dump:
            vm.bus.dump()
        vm.teardown()

    if status == Status.ILLEGAL_INSTRUCTION:
        print(
            f"Error: illegal instruction at ${vm.cpu.get_pc():04X} "
            f"after {vm.step_count} steps",
            file=sys.stderr,
        )
        return 1

    logger.info("Exited cleanly after %d steps, %d cycles", vm.step_count, vm.cycle_count)
    return 0


if __name__ == "__main__":
    sys.exit(main())
