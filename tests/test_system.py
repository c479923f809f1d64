"""Tests for system instructions (0xxx)."""

import jax.numpy as jnp
import pytest
from chip8vm import execute, UnknownOpcode


def test_execute_clear_screen(fresh_state):
    """Test 00E0 - Clear display."""
    state = fresh_state.replace(display=fresh_state.display.at[0, 0].set(1).at[63, 31].set(1))

    state = execute(state, 0x00E0)

    assert jnp.sum(state.display) == 0
    assert state.display.dtype == jnp.bool_


def test_execute_call_and_return(fresh_state):
    """Test 2NNN (call) and 00EE (return) together."""
    state = fresh_state
    initial_pc = state.pc

    state = execute(state, 0x2300)  # Call 0x300
    assert state.pc == 0x300
    assert state.stack.data[state.stack.pointer - 1] == initial_pc

    state = execute(state, 0x00EE)  # Return
    assert state.pc == initial_pc
    assert state.stack.pointer == 0


@pytest.mark.parametrize("instruction", [0x0000, 0x0123, 0x00E1, 0x00FF])
def test_machine_code_routines_are_unknown(fresh_state, instruction):
    """0NNN calls into host machine code are not supported."""
    with pytest.raises(UnknownOpcode) as excinfo:
        execute(fresh_state, instruction)
    assert excinfo.value.opcode == instruction
    assert excinfo.value.pc == 0x200
