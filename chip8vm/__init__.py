"""CHIP-8 virtual machine package."""

from chip8vm.constants import *
from chip8vm.errors import (
    Chip8Error, RomTooLarge, InvalidKeyIndex, MemoryOutOfBounds,
    StackFault, StackOverflow, StackUnderflow, UnknownOpcode, DebugWriteError,
)
from chip8vm.quirks import Quirks
from chip8vm.state import EmulatorState, create_state, tick_timers
from chip8vm.decode import DecodedInstruction, Op, decode
from chip8vm.emulator import execute, fetch, step, load_rom, run_batch, run_frame
from chip8vm.machine import Machine
from chip8vm.rendering import display_to_rgb, create_color_scheme, save_screenshot

__all__ = [
    "Machine",
    "Quirks",
    "EmulatorState",
    "create_state",
    "tick_timers",
    "fetch",
    "execute",
    "step",
    "load_rom",
    "run_batch",
    "run_frame",
    "DecodedInstruction",
    "Op",
    "decode",
    "Chip8Error",
    "RomTooLarge",
    "InvalidKeyIndex",
    "MemoryOutOfBounds",
    "StackFault",
    "StackOverflow",
    "StackUnderflow",
    "UnknownOpcode",
    "DebugWriteError",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "MAX_ROM_SIZE",
    "display_to_rgb",
    "create_color_scheme",
    "save_screenshot",
]
