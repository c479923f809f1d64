"""Tests for debug snapshots, writers and disassembly."""

import pytest
from chip8vm import DebugWriteError, debug
from conftest import machine_with_program


class TestSnapshot:

    def test_snapshot_contents(self):
        m = machine_with_program(0x6A07, 0xA321, 0x2208, 0x0000, 0x00EE)
        m.frame(3)
        snap = m.snapshot()

        assert snap.registers[0xA] == 7
        assert snap.index == 0x321
        assert snap.pc == 0x208
        assert snap.sp == 1
        assert snap.stack[0] == 0x206

    def test_snapshot_is_read_only(self, machine):
        snap = machine.snapshot()
        with pytest.raises(ValueError):
            snap.memory[0x200] = 1
        with pytest.raises(ValueError):
            snap.registers[0] = 1


class TestWriters:

    def test_poke_memory_and_register(self, machine):
        machine.poke_memory(0x300, 0xAB)
        machine.poke_register(0xF, 0x01)
        snap = machine.snapshot()
        assert snap.memory[0x300] == 0xAB
        assert snap.registers[0xF] == 1

    def test_poke_pc_and_index(self, machine):
        machine.poke_pc(0x240)
        machine.poke_index(0xFFF)
        assert machine.pc == 0x240
        assert machine.index == 0xFFF

    @pytest.mark.parametrize("call", [
        lambda m: m.poke_memory(0x1000, 0),
        lambda m: m.poke_memory(0x200, 256),
        lambda m: m.poke_register(16, 0),
        lambda m: m.poke_register(0, -1),
        lambda m: m.poke_index(0x1000),
        lambda m: m.poke_pc(0xF000),
        lambda m: m.poke_timers(delay=300),
    ])
    def test_rejected_writes(self, machine, call):
        with pytest.raises(DebugWriteError):
            call(machine)

    def test_pixel_and_stack_writers(self, fresh_state):
        state = debug.set_pixel(fresh_state, 63, 31, True)
        assert state.display[63, 31]

        state = debug.set_stack(state, 0, 0x222)
        state = debug.set_stack_pointer(state, 1)
        assert state.stack.data[0] == 0x222
        assert state.stack.pointer == 1

        with pytest.raises(DebugWriteError):
            debug.set_pixel(state, 64, 0, True)
        with pytest.raises(DebugWriteError):
            debug.set_stack_pointer(state, 17)


class TestDisassemble:

    @pytest.mark.parametrize("raw, text", [
        (0x00E0, "CLS"),
        (0x1234, "JP 0x234"),
        (0x6A42, "LD VA, 0x42"),
        (0x8AB4, "ADD VA, VB"),
        (0xD125, "DRW V1, V2, 5"),
        (0xF355, "LD [I], V3"),
        (0xFFFF, "DW 0xFFFF"),
    ])
    def test_mnemonics(self, raw, text):
        assert debug.disassemble(raw) == text
