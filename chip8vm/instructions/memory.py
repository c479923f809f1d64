"""CHIP-8 memory and register operations."""

from typing import Callable, Optional

import jax
import jax.numpy as jnp
import numpy as np
from jax.experimental import io_callback
from chip8vm.state import EmulatorState
from chip8vm.decode import DecodedInstruction


def execute_set(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """6XNN - Set VX = NN."""
    return state.replace(V=state.V.at[instruction.x].set(jnp.astype(instruction.nn, jnp.uint8)))


def execute_add(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """7XNN - Add NN to VX (wraps, VF untouched)."""
    return state.replace(V=state.V.at[instruction.x].add(jnp.astype(instruction.nn, jnp.uint8)))


def execute_set_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """ANNN - Set I = NNN."""
    return state.replace(I=jnp.astype(instruction.nnn, jnp.uint16))


def _store_random(state: EmulatorState, instruction: DecodedInstruction, random_value) -> EmulatorState:
    masked = jnp.astype(random_value, jnp.uint8) & jnp.astype(instruction.nn, jnp.uint8)
    return state.replace(V=state.V.at[instruction.x].set(masked))


def make_random_instruction(random_source: Optional[Callable[[], int]] = None):
    """Factory for CXNN - Set VX = random & NN.

    Without ``random_source`` the byte comes from the PRNG key carried in the
    state, which is split and advanced. With one, the host callable is invoked
    once per executed CXNN, also from compiled code, and the key is untouched.
    """
    if random_source is None:
        def random_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
            key, subkey = jax.random.split(state.rng)
            random_value = jax.random.randint(subkey, shape=(), minval=0, maxval=256, dtype=jnp.int32)
            return _store_random(state.replace(rng=key), instruction, random_value)
        return random_instruction

    def draw():
        return np.asarray(int(random_source()) & 0xFF, dtype=np.uint8)

    def random_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        random_value = io_callback(draw, jax.ShapeDtypeStruct((), jnp.uint8))
        return _store_random(state, instruction, random_value)
    return random_instruction
