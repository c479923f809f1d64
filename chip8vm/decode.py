"""CHIP-8 instruction decoding."""

import enum
from typing import Optional

import jax.numpy as jnp
import numpy as np
from flax.struct import dataclass, field

from chip8vm.errors import UnknownOpcode


class Op(enum.Enum):
    """Every instruction of the original CHIP-8 set."""
    CLS = "00E0"
    RET = "00EE"
    JP = "1NNN"
    CALL = "2NNN"
    SE_BYTE = "3XNN"
    SNE_BYTE = "4XNN"
    SE_REG = "5XY0"
    LD_BYTE = "6XNN"
    ADD_BYTE = "7XNN"
    LD_REG = "8XY0"
    OR = "8XY1"
    AND = "8XY2"
    XOR = "8XY3"
    ADD_REG = "8XY4"
    SUB = "8XY5"
    SHR = "8XY6"
    SUBN = "8XY7"
    SHL = "8XYE"
    SNE_REG = "9XY0"
    LD_I = "ANNN"
    JP_V0 = "BNNN"
    RND = "CXNN"
    DRW = "DXYN"
    SKP = "EX9E"
    SKNP = "EXA1"
    LD_VX_DT = "FX07"
    LD_K = "FX0A"
    LD_DT_VX = "FX15"
    LD_ST_VX = "FX18"
    ADD_I = "FX1E"
    LD_F = "FX29"
    LD_B = "FX33"
    LD_I_VX = "FX55"
    LD_VX_I = "FX65"


# Branch order for lax.switch.
OPS = tuple(Op)


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded CHIP-8 instruction with extracted operands.

    ``op`` is static metadata. Words decoded inside compiled code leave it
    unset, since there the operation is chosen by ``lax.switch``.
    """
    raw: int
    opcode: int  # First nibble
    x: int       # Second nibble (VX register)
    y: int       # Third nibble (VY register)
    n: int       # Fourth nibble (4-bit immediate)
    nn: int      # Last byte (8-bit immediate)
    nnn: int     # Last 12 bits (12-bit address)
    address: Optional[int] = None  # Where the word was fetched from
    op: Optional[Op] = field(pytree_node=False, default=None)


# Leading nibbles whose operation is fully determined by the nibble itself.
_BY_NIBBLE = {
    0x1: Op.JP,
    0x2: Op.CALL,
    0x3: Op.SE_BYTE,
    0x4: Op.SNE_BYTE,
    0x6: Op.LD_BYTE,
    0x7: Op.ADD_BYTE,
    0xA: Op.LD_I,
    0xB: Op.JP_V0,
    0xC: Op.RND,
    0xD: Op.DRW,
}

_SYSTEM = {0x00E0: Op.CLS, 0x00EE: Op.RET}

_ALU = {
    0x0: Op.LD_REG,
    0x1: Op.OR,
    0x2: Op.AND,
    0x3: Op.XOR,
    0x4: Op.ADD_REG,
    0x5: Op.SUB,
    0x6: Op.SHR,
    0x7: Op.SUBN,
    0xE: Op.SHL,
}

_KEYS = {0x9E: Op.SKP, 0xA1: Op.SKNP}

_MISC = {
    0x07: Op.LD_VX_DT,
    0x0A: Op.LD_K,
    0x15: Op.LD_DT_VX,
    0x18: Op.LD_ST_VX,
    0x1E: Op.ADD_I,
    0x29: Op.LD_F,
    0x33: Op.LD_B,
    0x55: Op.LD_I_VX,
    0x65: Op.LD_VX_I,
}


def _build_op_table() -> np.ndarray:
    """Index into OPS for every 16-bit word, -1 where the word is no instruction."""
    words = np.arange(0x10000)
    nibble = words >> 12
    low_nibble = words & 0xF
    low_byte = words & 0xFF

    table = np.full(0x10000, -1, dtype=np.int8)
    for leading, op in _BY_NIBBLE.items():
        table[nibble == leading] = OPS.index(op)
    for word, op in _SYSTEM.items():
        table[word] = OPS.index(op)
    # 5XYN / 9XYN only exist with N = 0.
    table[(nibble == 0x5) & (low_nibble == 0)] = OPS.index(Op.SE_REG)
    table[(nibble == 0x9) & (low_nibble == 0)] = OPS.index(Op.SNE_REG)
    for group, suffixes, suffix in ((0x8, _ALU, low_nibble), (0xE, _KEYS, low_byte), (0xF, _MISC, low_byte)):
        for value, op in suffixes.items():
            table[(nibble == group) & (suffix == value)] = OPS.index(op)
    return table


_OP_TABLE = _build_op_table()
OP_INDEX = jnp.asarray(_OP_TABLE)


def decode_fields(instruction) -> DecodedInstruction:
    """Split a word into operand fields. Works on ints and on traced arrays alike."""
    return DecodedInstruction(
        raw=instruction,
        opcode=(instruction & 0xF000) >> 12,
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF,
    )


def decode(instruction: int, address: Optional[int] = None) -> DecodedInstruction:
    """Decode 16-bit instruction into components.

    Args:
        instruction: Raw instruction word.
        address: Address the word was fetched from, reported if decoding fails.

    Raises:
        UnknownOpcode: The word matches no CHIP-8 instruction.
    """
    instruction = int(instruction) & 0xFFFF
    index = int(_OP_TABLE[instruction])
    if index < 0:
        raise UnknownOpcode(instruction, address)
    return decode_fields(instruction).replace(op=OPS[index], address=address)
