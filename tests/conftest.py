"""Test configuration and fixtures for CHIP-8 emulator tests."""

import pytest
import jax.numpy as jnp
from chip8vm import Machine, Quirks, create_state


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


@pytest.fixture
def vip_state():
    """Provide a fresh state with COSMAC VIP quirks."""
    return create_state(quirks=Quirks.cosmac_vip())


@pytest.fixture
def machine():
    """Provide a machine with an empty ROM loaded."""
    m = Machine()
    m.load(b"")
    return m


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def program(*words):
    """Assemble 16-bit instruction words into ROM bytes."""
    rom = bytearray()
    for word in words:
        rom += bytes([(word >> 8) & 0xFF, word & 0xFF])
    return bytes(rom)


def machine_with_program(*words, **kwargs):
    """Helper to build a machine running the given instruction words."""
    m = Machine(**kwargs)
    m.load(program(*words))
    return m
