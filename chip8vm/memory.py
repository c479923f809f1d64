"""Access to CHIP-8 memory.

The array helpers never fail, since compiled instructions cannot raise: reads
past the end repeat the last byte and writes past the end are dropped. Callers
test ``out_of_bounds`` and flag a fault instead.
"""

from typing import Optional

import jax.numpy as jnp

from chip8vm.constants import MEMORY_SIZE
from chip8vm.errors import MemoryOutOfBounds


def out_of_bounds(address, length):
    """True when [address, address + length) runs past the end of memory."""
    return jnp.astype(address, jnp.int32) + length > MEMORY_SIZE


def check_range(address: int, length: int, pc: Optional[int] = None) -> None:
    """Raise MemoryOutOfBounds unless [address, address + length) lies inside memory."""
    if address < 0 or address + length > MEMORY_SIZE:
        raise MemoryOutOfBounds(address, length, pc)


def read_bytes(memory: jnp.ndarray, address, size: int) -> jnp.ndarray:
    """Read ``size`` bytes starting at ``address``."""
    indices = jnp.astype(address, jnp.int32) + jnp.arange(size)
    return memory[jnp.minimum(indices, MEMORY_SIZE - 1)]


def write_bytes(memory: jnp.ndarray, address, values: jnp.ndarray, count) -> jnp.ndarray:
    """Return a copy of memory with the first ``count`` of ``values`` written at ``address``."""
    offsets = jnp.arange(values.shape[0])
    indices = jnp.where(offsets < count, jnp.astype(address, jnp.int32) + offsets, MEMORY_SIZE)
    return memory.at[indices].set(jnp.astype(values, jnp.uint8), mode="drop")
