"""Inspection and patching helpers for debugging tools.

Snapshots are numpy copies, so nothing a debugger does with them can reach
back into a running machine. Writers take a state and return a new one after
validating the value; a rejected write raises ``DebugWriteError``.
"""

from typing import Optional

import jax.numpy as jnp
import numpy as np
from chex import dataclass

from chip8vm.constants import (
    MEMORY_SIZE, NUM_REGISTERS, SCREEN_WIDTH, SCREEN_HEIGHT, STACK_SIZE,
)
from chip8vm.decode import DecodedInstruction, Op, decode
from chip8vm.errors import DebugWriteError, UnknownOpcode
from chip8vm.state import EmulatorState


@dataclass(frozen=True)
class MachineSnapshot:
    """Copy of the architectural state at one point in time."""
    memory: np.ndarray
    registers: np.ndarray
    pc: int
    sp: int
    index: int
    delay_timer: int
    sound_timer: int
    stack: np.ndarray
    keypad: np.ndarray
    display: np.ndarray


def snapshot(state: EmulatorState) -> MachineSnapshot:
    """Take a read-only copy of ``state``."""
    def frozen(array):
        copy = np.array(array)
        copy.setflags(write=False)
        return copy

    return MachineSnapshot(
        memory=frozen(state.memory),
        registers=frozen(state.V),
        pc=int(state.pc),
        sp=int(state.stack.pointer),
        index=int(state.I),
        delay_timer=int(state.delay_timer),
        sound_timer=int(state.sound_timer),
        stack=frozen(state.stack.data),
        keypad=frozen(state.keypad),
        display=frozen(state.display),
    )


def _check(field: str, value, upper: int):
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or not 0 <= value < upper:
        raise DebugWriteError(field, value)
    return int(value)


def set_memory(state: EmulatorState, address: int, value: int) -> EmulatorState:
    """Write one byte of memory."""
    address = _check("address", address, MEMORY_SIZE)
    value = _check("memory value", value, 0x100)
    return state.replace(memory=state.memory.at[address].set(jnp.astype(value, jnp.uint8)))


def set_register(state: EmulatorState, register: int, value: int) -> EmulatorState:
    """Write a general-purpose register."""
    register = _check("register", register, NUM_REGISTERS)
    value = _check(f"V{register:X}", value, 0x100)
    return state.replace(V=state.V.at[register].set(jnp.astype(value, jnp.uint8)))


def set_index(state: EmulatorState, value: int) -> EmulatorState:
    """Write the index register (12-bit addresses only)."""
    value = _check("I", value, MEMORY_SIZE)
    return state.replace(I=jnp.astype(value, jnp.uint16))


def set_pc(state: EmulatorState, value: int) -> EmulatorState:
    """Write the program counter (12-bit addresses only)."""
    value = _check("pc", value, MEMORY_SIZE)
    return state.replace(pc=jnp.astype(value, jnp.uint16))


def set_timers(state: EmulatorState, delay: Optional[int] = None, sound: Optional[int] = None) -> EmulatorState:
    """Write the delay and/or sound timer."""
    if delay is not None:
        state = state.replace(delay_timer=jnp.astype(_check("delay timer", delay, 0x100), jnp.uint8))
    if sound is not None:
        state = state.replace(sound_timer=jnp.astype(_check("sound timer", sound, 0x100), jnp.uint8))
    return state


def set_pixel(state: EmulatorState, x: int, y: int, on: bool) -> EmulatorState:
    """Write one framebuffer pixel. Collision is not computed."""
    x = _check("x", x, SCREEN_WIDTH)
    y = _check("y", y, SCREEN_HEIGHT)
    return state.replace(display=state.display.at[x, y].set(bool(on)))


def set_stack(state: EmulatorState, position: int, address: int) -> EmulatorState:
    """Write one saved return address."""
    position = _check("stack position", position, STACK_SIZE)
    address = _check("stack address", address, MEMORY_SIZE)
    stack = state.stack.replace(data=state.stack.data.at[position].set(jnp.astype(address, jnp.uint16)))
    return state.replace(stack=stack)


def set_stack_pointer(state: EmulatorState, pointer: int) -> EmulatorState:
    """Write the stack depth."""
    pointer = _check("sp", pointer, STACK_SIZE + 1)
    return state.replace(stack=state.stack.replace(pointer=jnp.astype(pointer, jnp.int32)))


def _mnemonic(inst: DecodedInstruction) -> str:
    x, y, n, nn, nnn = inst.x, inst.y, inst.n, inst.nn, inst.nnn
    return {
        Op.CLS: "CLS",
        Op.RET: "RET",
        Op.JP: f"JP 0x{nnn:03X}",
        Op.CALL: f"CALL 0x{nnn:03X}",
        Op.SE_BYTE: f"SE V{x:X}, 0x{nn:02X}",
        Op.SNE_BYTE: f"SNE V{x:X}, 0x{nn:02X}",
        Op.SE_REG: f"SE V{x:X}, V{y:X}",
        Op.LD_BYTE: f"LD V{x:X}, 0x{nn:02X}",
        Op.ADD_BYTE: f"ADD V{x:X}, 0x{nn:02X}",
        Op.LD_REG: f"LD V{x:X}, V{y:X}",
        Op.OR: f"OR V{x:X}, V{y:X}",
        Op.AND: f"AND V{x:X}, V{y:X}",
        Op.XOR: f"XOR V{x:X}, V{y:X}",
        Op.ADD_REG: f"ADD V{x:X}, V{y:X}",
        Op.SUB: f"SUB V{x:X}, V{y:X}",
        Op.SHR: f"SHR V{x:X}, V{y:X}",
        Op.SUBN: f"SUBN V{x:X}, V{y:X}",
        Op.SHL: f"SHL V{x:X}, V{y:X}",
        Op.SNE_REG: f"SNE V{x:X}, V{y:X}",
        Op.LD_I: f"LD I, 0x{nnn:03X}",
        Op.JP_V0: f"JP V0, 0x{nnn:03X}",
        Op.RND: f"RND V{x:X}, 0x{nn:02X}",
        Op.DRW: f"DRW V{x:X}, V{y:X}, {n}",
        Op.SKP: f"SKP V{x:X}",
        Op.SKNP: f"SKNP V{x:X}",
        Op.LD_VX_DT: f"LD V{x:X}, DT",
        Op.LD_K: f"LD V{x:X}, K",
        Op.LD_DT_VX: f"LD DT, V{x:X}",
        Op.LD_ST_VX: f"LD ST, V{x:X}",
        Op.ADD_I: f"ADD I, V{x:X}",
        Op.LD_F: f"LD F, V{x:X}",
        Op.LD_B: f"LD B, V{x:X}",
        Op.LD_I_VX: f"LD [I], V{x:X}",
        Op.LD_VX_I: f"LD V{x:X}, [I]",
    }[inst.op]


def disassemble(instruction: int) -> str:
    """Assembly-style text for one instruction word; unknown words render as data."""
    try:
        return _mnemonic(decode(instruction))
    except UnknownOpcode:
        return f"DW 0x{int(instruction) & 0xFFFF:04X}"
