"""Headless host: run a ROM for a fixed number of frames."""

import argparse
import sys
from typing import Optional, Sequence

from tqdm import tqdm

from chip8vm.errors import Chip8Error
from chip8vm.logging import LOG_LEVELS, ConsoleLogger
from chip8vm.machine import Machine
from chip8vm.quirks import PRESETS, quirks_from_name
from chip8vm.rendering import save_screenshot


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chip8vm",
        description="Run a CHIP-8 ROM headlessly for a number of frames",
    )
    parser.add_argument("rom", type=str, help="Path to the ROM image")
    parser.add_argument(
        "--frames",
        type=int,
        default=60,
        help="Number of frames to run (default: 60)",
    )
    parser.add_argument(
        "--ipf",
        type=int,
        default=10,
        help="Instructions per frame (default: 10)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for the random-byte instruction (default: 0)",
    )
    parser.add_argument(
        "--quirks",
        choices=sorted(PRESETS.keys()),
        default="default",
        help="Quirks preset (default: default)",
    )
    parser.add_argument(
        "--screenshot",
        type=str,
        default=None,
        help="Save the final framebuffer to this image file",
    )
    parser.add_argument(
        "--keys",
        type=str,
        default="",
        help="Hex digits of keys held down for the whole run, e.g. '5a'",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default="INFO",
        help="Console log level (default: INFO)",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable the progress bar",
    )
    return parser


def run(args: argparse.Namespace) -> int:
    """Run the machine as described by parsed arguments; return an exit code."""
    logger = ConsoleLogger(name="chip8vm", log_level=args.log_level)
    machine = Machine(quirks=quirks_from_name(args.quirks), seed=args.seed, logger=logger)

    try:
        machine.load_file(args.rom)
    except (OSError, Chip8Error) as error:
        logger.error(f"Cannot load {args.rom}: {error}")
        return 2

    for digit in args.keys:
        machine.set_key(int(digit, 16), True)

    executed = 0
    exit_code = 0
    progress = tqdm(total=args.frames, desc="Frames", unit="frame", disable=args.no_progress)
    try:
        for _ in range(args.frames):
            executed += machine.frame(args.ipf)
            progress.update(1)
    except Chip8Error:
        # The machine already logged the fault with its opcode and PC.
        logger.critical("Emulation halted")
        exit_code = 1
    finally:
        progress.close()

    logger.info(
        f"Executed {executed} instructions, pc=0x{machine.pc:04X}, "
        f"delay={machine.delay_timer}, sound={machine.sound_timer}"
    )

    if args.screenshot:
        save_screenshot(machine.display, args.screenshot)
        logger.info(f"Screenshot saved: {args.screenshot}")

    return exit_code


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.frames < 0 or args.ipf < 0:
        parser.error("--frames and --ipf must be non-negative")
    try:
        [int(digit, 16) for digit in args.keys]
    except ValueError:
        parser.error(f"--keys must be hex digits, got '{args.keys}'")
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
