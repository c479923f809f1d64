"""CHIP-8 stack operations."""

import jax.numpy as jnp
from chip8vm.constants import STACK_SIZE
from chip8vm.state import StackState


def depth(stack: StackState) -> int:
    """Number of return addresses currently saved."""
    return int(stack.pointer)


def push(stack: StackState, address: jnp.ndarray) -> tuple[StackState, jnp.ndarray]:
    """Push address onto stack.

    Returns the new stack and an overflow flag; a full stack is returned unchanged.
    """
    overflow = stack.pointer >= STACK_SIZE
    slot = jnp.minimum(stack.pointer, STACK_SIZE - 1)
    value = jnp.where(overflow, stack.data[slot], jnp.astype(address, jnp.uint16))
    new_data = stack.data.at[slot].set(value)
    new_pointer = jnp.where(overflow, stack.pointer, stack.pointer + 1)
    return stack.replace(data=new_data, pointer=new_pointer), overflow


def pop(stack: StackState) -> tuple[StackState, jnp.ndarray, jnp.ndarray]:
    """Pop address from stack.

    Returns the new stack, the popped address and an underflow flag.
    """
    underflow = stack.pointer <= 0
    slot = jnp.maximum(stack.pointer - 1, 0)
    popped_address = stack.data[slot]
    new_data = stack.data.at[slot].set(jnp.where(underflow, popped_address, jnp.uint16(0)))
    new_pointer = jnp.where(underflow, stack.pointer, stack.pointer - 1)
    return stack.replace(data=new_data, pointer=new_pointer), popped_address, underflow
