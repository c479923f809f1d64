"""Switches for instructions whose semantics differ between historical interpreters."""

from chex import dataclass


@dataclass(frozen=True)
class Quirks:
    """Behaviour flags for ambiguous CHIP-8 instructions.

    The defaults describe the interpreter most ROMs in circulation expect:
    shifts operate on VX in place, FX55/FX65 leave I unchanged, BNNN adds V0,
    logical ops leave VF alone and drawing does not end the frame.

    Attributes:
        shift_uses_vy: 8XY6/8XYE shift VY and store the result in VX.
        load_store_increments_index: FX55/FX65 leave I pointing past the last register.
        jump_uses_vx: BXNN jumps to XNN + VX instead of NNN + V0.
        logic_resets_vf: 8XY1/8XY2/8XY3 clear VF.
        display_wait: a draw instruction ends the current frame's batch.
    """
    shift_uses_vy: bool = False
    load_store_increments_index: bool = False
    jump_uses_vx: bool = False
    logic_resets_vf: bool = False
    display_wait: bool = False

    @classmethod
    def cosmac_vip(cls) -> "Quirks":
        """Behaviour of the original COSMAC VIP interpreter."""
        return cls(
            shift_uses_vy=True,
            load_store_increments_index=True,
            jump_uses_vx=False,
            logic_resets_vf=True,
            display_wait=True,
        )


PRESETS = {
    "default": Quirks,
    "cosmac-vip": Quirks.cosmac_vip,
}


def quirks_from_name(name: str) -> Quirks:
    """Build a preset by name."""
    if name not in PRESETS:
        raise ValueError(f"Unknown quirks preset '{name}'. Available: {list(PRESETS.keys())}")
    return PRESETS[name]()
