"""Tests for the console logger and quirk presets."""

import pytest
from chip8vm import Quirks, UnknownOpcode, RomTooLarge
from chip8vm.logging import ConsoleLogger, describe_fault
from chip8vm.quirks import quirks_from_name


def test_level_filtering(capsys):
    logger = ConsoleLogger(name="test", log_level="WARNING", show_timestamps=False)
    logger.info("hidden")
    logger.warning("shown")
    out = capsys.readouterr().out
    assert "hidden" not in out
    assert "[test] shown" in out


def test_set_level(capsys):
    logger = ConsoleLogger(log_level="ERROR")
    logger.set_level("debug")
    logger.debug("now visible")
    assert "now visible" in capsys.readouterr().out


def test_unknown_level():
    with pytest.raises(ValueError):
        ConsoleLogger(log_level="LOUD")


def test_describe_fault():
    text = describe_fault(UnknownOpcode(0x8AB9, 0x246))
    assert text.startswith("UnknownOpcode opcode=0x8AB9 pc=0x0246")

    assert describe_fault(RomTooLarge(4000, 3584)).startswith("RomTooLarge: ")


def test_quirk_presets():
    assert quirks_from_name("default") == Quirks()
    vip = quirks_from_name("cosmac-vip")
    assert vip.shift_uses_vy and vip.load_store_increments_index and vip.display_wait
    assert not vip.jump_uses_vx
    with pytest.raises(ValueError):
        quirks_from_name("schip")
