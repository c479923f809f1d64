"""Tests for display operations (DXYN)."""

import jax.numpy as jnp
import pytest
from chip8vm import execute, MemoryOutOfBounds
from conftest import setup_sprite_in_memory


class TestBasicSprites:
    """Test basic sprite drawing."""

    def test_basic_sprite_draw(self, fresh_state):
        """Test basic sprite drawing without collision."""
        state = fresh_state

        # Simple 2x2 box sprite
        sprite = [0xC0, 0xC0]  # 11000000, 11000000
        state = setup_sprite_in_memory(state, 0x300, sprite)

        state = execute(state, 0x600A)  # V0 = 10
        state = execute(state, 0x6105)  # V1 = 5
        state = execute(state, 0xA300)  # I = 0x300

        state = execute(state, 0xD012)

        assert state.display[10, 5] == 1  # Top-left
        assert state.display[11, 5] == 1  # Top-right
        assert state.display[10, 6] == 1  # Bottom-left
        assert state.display[11, 6] == 1  # Bottom-right
        assert state.display[12, 5] == 0  # Outside sprite
        assert jnp.sum(state.display) == 4

        assert state.V[15] == 0

    def test_collision_detection(self, fresh_state):
        """Test collision flag when sprite overlaps existing pixels."""
        state = fresh_state

        sprite = [0x80]  # 10000000
        state = setup_sprite_in_memory(state, 0x400, sprite)

        state = execute(state, 0x6014)  # V0 = 20
        state = execute(state, 0x610A)  # V1 = 10
        state = execute(state, 0xA400)  # I = 0x400

        state = execute(state, 0xD011)
        assert state.display[20, 10] == 1
        assert state.V[15] == 0

        state = execute(state, 0xD011)
        assert state.display[20, 10] == 0  # Pixel erased by XOR
        assert state.V[15] == 1

    def test_draw_twice_restores_screen(self, fresh_state):
        """Drawing the same sprite twice clears everything it set."""
        state = setup_sprite_in_memory(fresh_state, 0x500, [0xF0, 0x99, 0xFF, 0x81])
        state = state.replace(display=state.display.at[0, 0].set(True))
        before = state.display

        state = execute(state, 0x6008)
        state = execute(state, 0x610F)
        state = execute(state, 0xA500)
        state = execute(state, 0xD014)
        assert state.V[15] == 0
        state = execute(state, 0xD014)

        assert jnp.array_equal(state.display, before)
        assert state.V[15] == 1

    def test_font_glyph_draw(self, fresh_state):
        """Drawing digit 0 from the built-in font."""
        state = execute(fresh_state, 0x6000)  # V0 = 0
        state = execute(state, 0xF029)  # I = glyph 0
        state = execute(state, 0xD005)

        # 0xF0 top row: four pixels lit
        assert [bool(state.display[x, 0]) for x in range(5)] == [True, True, True, True, False]
        # 0x90 second row
        assert [bool(state.display[x, 1]) for x in range(4)] == [True, False, False, True]


class TestScreenWrapping:
    """Test wraparound at the screen edges."""

    def test_horizontal_wrap(self, fresh_state):
        """Pixels past the right edge reappear on the left."""
        state = setup_sprite_in_memory(fresh_state, 0x600, [0xFF])

        state = execute(state, 0x603C)  # V0 = 60
        state = execute(state, 0x6100)  # V1 = 0
        state = execute(state, 0xA600)
        state = execute(state, 0xD011)

        for x in (60, 61, 62, 63, 0, 1, 2, 3):
            assert state.display[x, 0] == 1
        assert state.display[4, 0] == 0
        assert state.display[59, 0] == 0

    def test_vertical_wrap(self, fresh_state):
        """Rows past the bottom edge reappear at the top."""
        state = setup_sprite_in_memory(fresh_state, 0x700, [0x80, 0x80, 0x80])

        state = execute(state, 0x6000)  # V0 = 0
        state = execute(state, 0x611E)  # V1 = 30
        state = execute(state, 0xA700)
        state = execute(state, 0xD013)

        assert state.display[0, 30] == 1
        assert state.display[0, 31] == 1
        assert state.display[0, 0] == 1
        assert state.display[0, 1] == 0

    def test_corner_wrap(self, fresh_state):
        state = setup_sprite_in_memory(fresh_state, 0x700, [0xC0, 0xC0])

        state = execute(state, 0x603F)  # V0 = 63
        state = execute(state, 0x611F)  # V1 = 31
        state = execute(state, 0xA700)
        state = execute(state, 0xD012)

        assert state.display[63, 31] == 1
        assert state.display[0, 31] == 1
        assert state.display[63, 0] == 1
        assert state.display[0, 0] == 1
        assert jnp.sum(state.display) == 4

    def test_coordinate_wrapping(self, fresh_state):
        """Test coordinate wrapping with modulo."""
        state = setup_sprite_in_memory(fresh_state, 0x800, [0x80])

        state = execute(state, 0x6046)  # V0 = 70 (70 % 64 = 6)
        state = execute(state, 0x6125)  # V1 = 37 (37 % 32 = 5)
        state = execute(state, 0xA800)
        state = execute(state, 0xD011)

        assert state.display[6, 5] == 1

    def test_collision_across_wrap(self, fresh_state):
        state = setup_sprite_in_memory(fresh_state, 0x800, [0xFF])
        state = state.replace(display=state.display.at[2, 0].set(True))

        state = execute(state, 0x603C)  # V0 = 60
        state = execute(state, 0xA800)
        state = execute(state, 0xD011)

        assert state.display[2, 0] == 0
        assert state.V[15] == 1


class TestSpriteVariations:
    """Test different sprite configurations."""

    def test_different_sprite_heights(self, fresh_state):
        """Test sprites with different N values."""
        sprite = [0x80, 0x40, 0x20, 0x10, 0x08]  # Diagonal line
        state = setup_sprite_in_memory(fresh_state, 0x900, sprite)

        state = execute(state, 0x600A)  # V0 = 10
        state = execute(state, 0x6108)  # V1 = 8
        state = execute(state, 0xA900)  # I = 0x900

        state = execute(state, 0xD013)

        assert state.display[10, 8] == 1  # Row 0: 0x80 → bit 7
        assert state.display[11, 9] == 1  # Row 1: 0x40 → bit 6
        assert state.display[12, 10] == 1  # Row 2: 0x20 → bit 5
        assert state.display[13, 11] == 0  # Row 3: not drawn (N=3)

    def test_vf_register_preservation(self, fresh_state):
        """Test that VF is properly set/cleared."""
        state = setup_sprite_in_memory(fresh_state, 0xB00, [0x80])

        state = execute(state, 0x6F01)  # VF = 1
        state = execute(state, 0x6005)  # V0 = 5
        state = execute(state, 0x6105)  # V1 = 5
        state = execute(state, 0xAB00)  # I = 0xB00
        state = execute(state, 0xD011)

        assert state.V[15] == 0

    def test_zero_height_draws_nothing(self, fresh_state):
        state = execute(fresh_state, 0x6F01)
        state = execute(state, 0xA050)
        state = execute(state, 0xD000)

        assert jnp.sum(state.display) == 0
        assert state.V[15] == 0

    def test_sprite_past_end_of_memory(self, fresh_state):
        state = execute(fresh_state, 0xAFFE)  # I = 0xFFE, 3 rows needs 0x1000
        with pytest.raises(MemoryOutOfBounds) as excinfo:
            execute(state, 0xD013)
        assert excinfo.value.address == 0xFFE
        assert excinfo.value.length == 3

    def test_sprite_ending_at_last_byte(self, fresh_state):
        state = setup_sprite_in_memory(fresh_state, 0xFFE, [0x80, 0x80])
        state = execute(state, 0xAFFE)
        state = execute(state, 0xD012)
        assert state.display[0, 0] == 1
        assert state.display[0, 1] == 1
