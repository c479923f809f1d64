"""Fault records for compiled execution.

Instructions running inside ``jax.jit`` cannot raise, so they flag a fault in
the state instead. The host side turns the record back into a ``Chip8Error``.
"""

import enum
from typing import Optional

import jax.numpy as jnp
from flax.struct import dataclass, field

from chip8vm.errors import (
    Chip8Error, MemoryOutOfBounds, StackOverflow, StackUnderflow, UnknownOpcode,
)


class FaultCode(enum.IntEnum):
    NONE = 0
    MEMORY_OUT_OF_BOUNDS = 1
    STACK_OVERFLOW = 2
    STACK_UNDERFLOW = 3
    UNKNOWN_OPCODE = 4


@dataclass(frozen=True)
class FaultState:
    """First fault raised by a batch. ``code`` is 0 while execution is healthy."""
    code: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    pc: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    opcode: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    address: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.int32))
    length: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.int32))


def flag_fault(state, condition, code: FaultCode, address=0, length=0):
    """Record ``code`` in ``state.fault`` where ``condition`` holds."""
    fault = state.fault
    return state.replace(fault=fault.replace(
        code=jnp.where(condition, jnp.uint8(int(code)), fault.code),
        address=jnp.where(condition, jnp.astype(address, jnp.int32), fault.address),
        length=jnp.where(condition, jnp.astype(length, jnp.int32), fault.length),
    ))


def fault_error(state) -> Optional[Chip8Error]:
    """Exception matching the fault recorded in ``state``, or None."""
    code = FaultCode(int(state.fault.code))
    pc = int(state.fault.pc)
    if code is FaultCode.NONE:
        return None
    if code is FaultCode.MEMORY_OUT_OF_BOUNDS:
        return MemoryOutOfBounds(int(state.fault.address), int(state.fault.length), pc)
    if code is FaultCode.STACK_OVERFLOW:
        return StackOverflow(pc, int(state.stack.pointer))
    if code is FaultCode.STACK_UNDERFLOW:
        return StackUnderflow(pc, int(state.stack.pointer))
    return UnknownOpcode(int(state.fault.opcode), pc)


def raise_for_fault(state) -> None:
    error = fault_error(state)
    if error is not None:
        raise error
