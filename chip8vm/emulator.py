"""Main CHIP-8 emulator execution engine."""

from functools import partial
from typing import Callable, Optional, Union

import jax
import jax.lax
import jax.numpy as jnp
from chip8vm.state import EmulatorState, tick_timers
from chip8vm.decode import DecodedInstruction, Op, OPS, OP_INDEX, decode, decode_fields
from chip8vm.constants import PROGRAM_START, MAX_ROM_SIZE
from chip8vm.errors import RomTooLarge
from chip8vm.faults import FaultCode, FaultState, flag_fault, raise_for_fault
from chip8vm.memory import check_range, out_of_bounds, read_bytes
from chip8vm.instructions.system import execute_clear_screen, execute_return
from chip8vm.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_skip_if_key, execute_skip_if_not_key
)
from chip8vm.instructions.alu import ALU_INSTRUCTIONS
from chip8vm.instructions.memory import execute_set, execute_add, execute_set_index, make_random_instruction
from chip8vm.instructions.display import execute_display
from chip8vm.instructions.misc import (
    execute_get_delay_timer, execute_wait_for_key, execute_set_delay_timer,
    execute_set_sound_timer, execute_add_to_index, execute_font_character,
    execute_bcd_conversion, execute_store_registers, execute_load_registers
)

RandomSource = Callable[[], int]


def build_instruction_table(random_source: Optional[RandomSource] = None) -> dict:
    """Handler for every Op. Only CXNN depends on ``random_source``."""
    return {
        Op.CLS: execute_clear_screen,
        Op.RET: execute_return,
        Op.JP: execute_jump,
        Op.CALL: execute_call,
        Op.SE_BYTE: execute_skip_if_equal_immediate,
        Op.SNE_BYTE: execute_skip_if_not_equal_immediate,
        Op.SE_REG: execute_skip_if_equal_register,
        Op.LD_BYTE: execute_set,
        Op.ADD_BYTE: execute_add,
        **ALU_INSTRUCTIONS,
        Op.SNE_REG: execute_skip_if_not_equal_register,
        Op.LD_I: execute_set_index,
        Op.JP_V0: execute_jump_with_offset,
        Op.RND: make_random_instruction(random_source),
        Op.DRW: execute_display,
        Op.SKP: execute_skip_if_key,
        Op.SKNP: execute_skip_if_not_key,
        Op.LD_VX_DT: execute_get_delay_timer,
        Op.LD_K: execute_wait_for_key,
        Op.LD_DT_VX: execute_set_delay_timer,
        Op.LD_ST_VX: execute_set_sound_timer,
        Op.ADD_I: execute_add_to_index,
        Op.LD_F: execute_font_character,
        Op.LD_B: execute_bcd_conversion,
        Op.LD_I_VX: execute_store_registers,
        Op.LD_VX_I: execute_load_registers,
    }


INSTRUCTION_TABLE = build_instruction_table()

_missing = set(Op) - set(INSTRUCTION_TABLE)
if _missing:
    raise ImportError(f"No handler for {sorted(op.name for op in _missing)}")

_DRAW_INDEX = OPS.index(Op.DRW)


def _commit(before: EmulatorState, after: EmulatorState, pc, raw) -> EmulatorState:
    """Keep ``after`` unless it flagged a fault; then keep ``before`` with the fault recorded."""
    faulted = after.fault.code != 0
    fault = after.fault.replace(pc=jnp.astype(pc, jnp.uint16), opcode=jnp.astype(raw, jnp.uint16))
    kept = before.replace(fault=fault)
    return jax.tree_util.tree_map(lambda old, new: jnp.where(faulted, old, new), kept, after)


@partial(jax.jit, static_argnames=("random_source",))
def _execute_decoded(state: EmulatorState, instruction: DecodedInstruction, random_source=None) -> EmulatorState:
    handler = build_instruction_table(random_source)[instruction.op]
    pc = state.pc if instruction.address is None else instruction.address
    return _commit(state, handler(state, instruction), pc, instruction.raw)


def execute(
    state: EmulatorState,
    instruction: Union[int, DecodedInstruction],
    random_source: Optional[RandomSource] = None,
) -> EmulatorState:
    """Execute single CHIP-8 instruction.

    Raw instruction words are decoded first; the PC is not advanced here
    (see ``fetch``). Faults are raised as ``Chip8Error``.
    """
    if not isinstance(instruction, DecodedInstruction):
        instruction = decode(instruction, int(state.pc))

    state = _execute_decoded(state.replace(fault=FaultState()), instruction, random_source)
    raise_for_fault(state)
    return state


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (jnp.astype(high, jnp.uint16) << 8) | jnp.astype(low, jnp.uint16)


def fetch(state: EmulatorState) -> tuple[EmulatorState, int]:
    """Fetch next instruction from memory and advance PC past it."""
    pc = int(state.pc)
    check_range(pc, 2, pc)
    high, low = state.memory[pc], state.memory[pc + 1]
    return state.replace(pc=jnp.astype(pc + 2, jnp.uint16)), int(_pack_u16(high, low))


def step(state: EmulatorState, random_source: Optional[RandomSource] = None) -> tuple[EmulatorState, DecodedInstruction]:
    """Run one fetch-decode-execute cycle.

    Returns the new state and the instruction that ran. A fault leaves the
    input state as it was, since states are never mutated in place.
    """
    address = int(state.pc)
    state, raw = fetch(state)
    instruction = decode(raw, address)
    return execute(state, instruction, random_source), instruction


def _cycle(state: EmulatorState, branches) -> tuple[EmulatorState, jnp.ndarray]:
    """One traced fetch-decode-execute cycle. Returns the new state and the Op index."""
    pc = state.pc
    high, low = read_bytes(state.memory, pc, 2)
    raw = _pack_u16(high, low)
    index = jnp.astype(OP_INDEX[raw], jnp.int32)

    fetched = state.replace(pc=jnp.astype(pc + 2, jnp.uint16))
    # lax.switch clamps index -1 onto the first branch; the fault discards its result.
    executed = jax.lax.switch(index, branches, fetched, decode_fields(raw))
    executed = flag_fault(executed, index < 0, FaultCode.UNKNOWN_OPCODE)
    executed = flag_fault(executed, out_of_bounds(pc, 2), FaultCode.MEMORY_OUT_OF_BOUNDS, address=pc, length=2)
    return _commit(state, executed, pc, raw), index


def _run(state: EmulatorState, n, random_source: Optional[RandomSource]) -> tuple[EmulatorState, jnp.ndarray]:
    table = build_instruction_table(random_source)
    branches = [table[op] for op in OPS]
    wait_for_draw = state.quirks.display_wait

    def cond_fn(carry):
        state, executed, drew = carry
        return (executed < n) & (state.fault.code == 0) & ~drew

    def body_fn(carry):
        state, executed, _ = carry
        state, index = _cycle(state, branches)
        ok = state.fault.code == 0
        drew = ok & (index == _DRAW_INDEX) & wait_for_draw
        return state, executed + jnp.astype(ok, jnp.int32), drew

    init = (state.replace(fault=FaultState()), jnp.zeros((), dtype=jnp.int32), jnp.zeros((), dtype=jnp.bool_))
    state, executed, _ = jax.lax.while_loop(cond_fn, body_fn, init)
    return state, executed


@partial(jax.jit, static_argnames=("random_source",))
def run_batch(state: EmulatorState, n, random_source: Optional[RandomSource] = None) -> tuple[EmulatorState, jnp.ndarray]:
    """Run up to ``n`` cycles in one compiled loop.

    The loop stops early at the first fault, which is recorded in
    ``state.fault`` on top of the state before the faulting instruction, or
    after a draw when ``quirks.display_wait`` is set. Returns the new state and
    the number of instructions that completed.
    """
    return _run(state, n, random_source)


@partial(jax.jit, static_argnames=("random_source",))
def run_frame(state: EmulatorState, n, random_source: Optional[RandomSource] = None) -> tuple[EmulatorState, jnp.ndarray]:
    """``run_batch`` followed by one timer tick, whether or not the batch faulted."""
    state, executed = _run(state, n, random_source)
    return tick_timers(state), executed


def load_rom(state: EmulatorState, rom_data: bytes) -> EmulatorState:
    """Load ROM data into CHIP-8 memory starting at 0x200."""
    rom_data = bytes(rom_data)
    if len(rom_data) > MAX_ROM_SIZE:
        raise RomTooLarge(len(rom_data), MAX_ROM_SIZE)
    if not rom_data:
        return state
    rom_array = jnp.array(list(rom_data), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(rom_data)].set(rom_array)
    return state.replace(memory=new_memory)
