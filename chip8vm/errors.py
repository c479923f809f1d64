"""CHIP-8 fault types."""

from typing import Optional


def _hex(value: Optional[int], width: int = 4) -> str:
    return "?" if value is None else f"0x{value:0{width}X}"


class Chip8Error(Exception):
    """Base class for every fault raised by the interpreter."""


class RomTooLarge(Chip8Error, ValueError):
    """ROM image does not fit between 0x200 and the end of memory."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"ROM too large: {size}/{limit} bytes")


class InvalidKeyIndex(Chip8Error, IndexError):
    """Keypad index outside 0x0-0xF."""

    def __init__(self, index):
        self.index = index
        super().__init__(f"No such key: {index!r} (expected 0-15)")


class MemoryOutOfBounds(Chip8Error):
    """Access of ``length`` bytes at ``address`` runs past the end of memory."""

    def __init__(self, address: int, length: int = 1, pc: Optional[int] = None):
        self.address = address
        self.length = length
        self.pc = pc
        super().__init__(
            f"Memory access out of bounds: {length} byte(s) at {_hex(address)} (pc={_hex(pc)})"
        )


class StackFault(Chip8Error):
    """Call stack depth violated."""

    reason = "Stack fault"

    def __init__(self, pc: Optional[int] = None, depth: Optional[int] = None):
        self.pc = pc
        self.depth = depth
        super().__init__(f"{self.reason} (pc={_hex(pc)}, depth={depth})")


class StackOverflow(StackFault):
    """Call with a full stack."""

    reason = "Stack overflow"


class StackUnderflow(StackFault):
    """Return with an empty stack."""

    reason = "Stack underflow"


class UnknownOpcode(Chip8Error):
    """Instruction word that matches no CHIP-8 opcode."""

    def __init__(self, opcode: int, pc: Optional[int] = None):
        self.opcode = opcode
        self.pc = pc
        super().__init__(f"Unknown opcode {_hex(opcode)} at pc={_hex(pc)}")


class DebugWriteError(Chip8Error, ValueError):
    """Rejected write through the debug interface."""

    def __init__(self, field: str, value):
        self.field = field
        self.value = value
        super().__init__(f"Invalid value for {field}: {value!r}")


__all__ = [
    "Chip8Error",
    "RomTooLarge",
    "InvalidKeyIndex",
    "MemoryOutOfBounds",
    "StackFault",
    "StackOverflow",
    "StackUnderflow",
    "UnknownOpcode",
    "DebugWriteError",
]
