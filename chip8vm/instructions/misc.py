"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import DecodedInstruction
from chip8vm.constants import FONT_START, FONT_CHAR_SIZE, NUM_REGISTERS
from chip8vm.faults import FaultCode, flag_fault
from chip8vm.memory import out_of_bounds, read_bytes, write_bytes


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer))


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x])


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return state.replace(sound_timer=state.V[instruction.x])


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX1E - Add VX to I register. VF is not affected."""
    new_i = state.I + jnp.astype(state.V[instruction.x], jnp.uint16)
    return state.replace(I=jnp.astype(new_i, jnp.uint16))


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX0A - Wait for key press.

    Nothing suspends here: with no key down the PC is moved back onto this
    instruction, so it runs again on the next cycle until a key is held.
    The lowest pressed key index is stored in VX.
    """
    pressed = jnp.any(state.keypad)
    pressed_key = jnp.astype(jnp.argmax(state.keypad), jnp.uint8)
    return state.replace(
        V=jnp.where(pressed, state.V.at[instruction.x].set(pressed_key), state.V),
        pc=jnp.where(pressed, state.pc, state.pc - 2).astype(jnp.uint16),
    )


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX29 - Set I to location of sprite for digit VX."""
    digit = jnp.astype(state.V[instruction.x] & 0xF, jnp.uint16)
    return state.replace(I=jnp.astype(FONT_START + digit * FONT_CHAR_SIZE, jnp.uint16))


def _flag_out_of_range(state: EmulatorState, address, length) -> EmulatorState:
    return flag_fault(
        state, out_of_bounds(address, length), FaultCode.MEMORY_OUT_OF_BOUNDS,
        address=address, length=length,
    )


def execute_bcd_conversion(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]
    digits = jnp.stack([
        value // 100,
        (value // 10) % 10,
        value % 10
    ]).astype(jnp.uint8)
    new_memory = write_bytes(state.memory, state.I, digits, 3)
    return _flag_out_of_range(state.replace(memory=new_memory), state.I, 3)


def _advance_index(state: EmulatorState, instruction: DecodedInstruction):
    if state.quirks.load_store_increments_index:
        return jnp.astype(jnp.astype(state.I, jnp.int32) + instruction.x + 1, jnp.uint16)
    return state.I


def execute_store_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I."""
    count = instruction.x + 1
    new_memory = write_bytes(state.memory, state.I, state.V, count)
    new_state = state.replace(memory=new_memory, I=_advance_index(state, instruction))
    return _flag_out_of_range(new_state, state.I, count)


def execute_load_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I."""
    count = instruction.x + 1
    values = read_bytes(state.memory, state.I, NUM_REGISTERS)
    new_V = jnp.where(jnp.arange(NUM_REGISTERS) < count, values, state.V)
    new_state = state.replace(V=new_V, I=_advance_index(state, instruction))
    return _flag_out_of_range(new_state, state.I, count)
