"""Host-facing CHIP-8 machine."""

from typing import Optional

import jax
import numpy as np

from chip8vm import debug
from chip8vm.constants import NUM_KEYS
from chip8vm.decode import Op
from chip8vm.emulator import RandomSource, load_rom, run_frame, step
from chip8vm.errors import Chip8Error, InvalidKeyIndex
from chip8vm.faults import fault_error
from chip8vm.logging import ConsoleLogger, quiet_logger
from chip8vm.quirks import Quirks
from chip8vm.state import EmulatorState, create_state


class Machine:
    """A CHIP-8 interpreter driven one frame at a time by a host.

    The host loads a ROM, writes keypad state with ``set_key`` and calls
    ``frame(n)`` at its own rate (nominally 60 Hz), reading ``display`` and
    ``sound_timer`` in between. The machine never schedules itself and keeps
    no shared state, so any number of instances can run side by side.

    A frame runs as a single compiled loop. The first call for a given quirks
    setting pays the compilation cost; later calls reuse it.

    Args:
        quirks: Behaviour of the ambiguous instructions. Fixed for the machine's lifetime.
        seed: Seed of the PRNG key used by CXNN. The key is re-derived on every load.
        random_source: Callable returning a byte; replaces the PRNG for CXNN when given.
        logger: Logger for loads and faults. Defaults to a warnings-only console logger.
    """

    def __init__(
        self,
        quirks: Quirks = Quirks(),
        seed: int = 0,
        random_source: Optional[RandomSource] = None,
        logger: Optional[ConsoleLogger] = None,
    ):
        self._quirks = quirks
        self.seed = seed
        self.random_source = random_source
        self.logger = logger or quiet_logger()
        self._state = self._initial_state()
        self._loaded = False

    @property
    def quirks(self) -> Quirks:
        """Quirks the state was built with."""
        return self._quirks

    def _initial_state(self) -> EmulatorState:
        return create_state(jax.random.PRNGKey(self.seed), quirks=self._quirks)

    def _require_loaded(self):
        if not self._loaded:
            raise RuntimeError("No ROM loaded; call load() before running the machine")

    def load(self, rom_bytes: bytes):
        """Reset the machine and copy ``rom_bytes`` to 0x200.

        Raises:
            RomTooLarge: The image is larger than 3584 bytes. The machine keeps
                its previous state.
        """
        self.logger.debug("Resetting machine state")
        try:
            state = load_rom(self._initial_state(), rom_bytes)
        except Chip8Error as error:
            self.logger.fault(error)
            raise
        self._state = state
        self._loaded = True
        self.logger.info(f"Loaded ROM ({len(rom_bytes)} bytes)")

    def load_file(self, path: str):
        """Read a ROM image from ``path`` and load it."""
        with open(path, "rb") as f:
            rom_bytes = f.read()
        self.load(rom_bytes)

    def set_key(self, index: int, pressed: bool):
        """Set keypad key ``index`` (0x0-0xF) as pressed or released."""
        if isinstance(index, bool) or not isinstance(index, (int, np.integer)) or not 0 <= index < NUM_KEYS:
            raise InvalidKeyIndex(index)
        self._state = self._state.replace(keypad=self._state.keypad.at[int(index)].set(bool(pressed)))

    def step(self) -> Op:
        """Execute exactly one instruction without ticking the timers."""
        self._require_loaded()
        try:
            self._state, instruction = step(self._state, self.random_source)
        except Chip8Error as error:
            self.logger.fault(error)
            raise
        return instruction.op

    def frame(self, n: int) -> int:
        """Execute up to ``n`` instructions, then tick both timers once.

        The batch ends early on a fault, which is re-raised after the timer
        tick, or after a draw when ``quirks.display_wait`` is set. Instructions
        that ran before a fault keep their effects.

        Returns:
            Number of instructions executed.
        """
        if n < 0:
            raise ValueError(f"Instruction count must be non-negative, got {n}")
        self._require_loaded()

        self._state, executed = run_frame(self._state, n, self.random_source)
        error = fault_error(self._state)
        if error is not None:
            self.logger.fault(error)
            raise error
        return int(executed)

    @property
    def state(self) -> EmulatorState:
        """Current immutable state."""
        return self._state

    @property
    def display(self) -> np.ndarray:
        """Copy of the framebuffer, boolean array of shape (64, 32) indexed [x, y]."""
        return np.array(self._state.display, dtype=np.bool_)

    @property
    def sound_timer(self) -> int:
        return int(self._state.sound_timer)

    @property
    def delay_timer(self) -> int:
        return int(self._state.delay_timer)

    @property
    def buzzer(self) -> bool:
        """True while the sound timer is running."""
        return self.sound_timer > 0

    @property
    def pc(self) -> int:
        return int(self._state.pc)

    @property
    def index(self) -> int:
        return int(self._state.I)

    @property
    def registers(self) -> np.ndarray:
        return np.array(self._state.V, dtype=np.uint8)

    @property
    def stack_depth(self) -> int:
        return int(self._state.stack.pointer)

    def snapshot(self) -> debug.MachineSnapshot:
        """Read-only copy of the whole architectural state."""
        return debug.snapshot(self._state)

    def poke_memory(self, address: int, value: int):
        self._state = debug.set_memory(self._state, address, value)

    def poke_register(self, register: int, value: int):
        self._state = debug.set_register(self._state, register, value)

    def poke_index(self, value: int):
        self._state = debug.set_index(self._state, value)

    def poke_pc(self, value: int):
        self._state = debug.set_pc(self._state, value)

    def poke_timers(self, delay: Optional[int] = None, sound: Optional[int] = None):
        self._state = debug.set_timers(self._state, delay, sound)
