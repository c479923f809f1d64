"""CHIP-8 display operations."""

import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import DecodedInstruction
from chip8vm.constants import SCREEN_WIDTH, SCREEN_HEIGHT, SPRITE_WIDTH, FLAG_REGISTER
from chip8vm.faults import FaultCode, flag_fault
from chip8vm.memory import out_of_bounds, read_bytes

MAX_SPRITE_HEIGHT = 16

# Pre-computed coordinate grids for display operations
xx, yy = jnp.meshgrid(jnp.arange(SCREEN_WIDTH), jnp.arange(SCREEN_HEIGHT), indexing='ij')


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N, wrapping at the screen edges."""
    height = instruction.n
    rows = read_bytes(state.memory, state.I, MAX_SPRITE_HEIGHT)
    sprite_rows = jnp.where(jnp.arange(MAX_SPRITE_HEIGHT) < height, rows, jnp.uint8(0))

    sprite_x = state.V[instruction.x] % SCREEN_WIDTH
    sprite_y = state.V[instruction.y] % SCREEN_HEIGHT

    # Offsets of every screen cell relative to the sprite origin, modulo the screen size.
    col_offset = (xx - sprite_x) % SCREEN_WIDTH
    row_offset = (yy - sprite_y) % SCREEN_HEIGHT
    in_sprite = (col_offset < SPRITE_WIDTH) & (row_offset < height)

    sprite_bytes = sprite_rows[jnp.minimum(row_offset, MAX_SPRITE_HEIGHT - 1)]
    bits = (sprite_bytes >> (SPRITE_WIDTH - 1 - jnp.minimum(col_offset, SPRITE_WIDTH - 1))) & 1
    sprite = jnp.astype(bits, jnp.bool_) & in_sprite

    collision = jnp.any(state.display & sprite)
    new_state = state.replace(
        display=state.display ^ sprite,
        V=state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8))
    )
    return flag_fault(
        new_state, out_of_bounds(state.I, height), FaultCode.MEMORY_OUT_OF_BOUNDS,
        address=state.I, length=height,
    )
