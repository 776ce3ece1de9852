"""Tests for BCL script builders."""

import pytest

from bcr2000_mcp.models.controls import Control, ControlCatalog, Role
from bcr2000_mcp.protocol.script import (
    catalog_script,
    init_script,
    script_for,
)


def _control(role: Role, physical_id: int = 1, parameter_id: int = 71) -> Control:
    return Control(
        physical_id=physical_id,
        channel=1,
        parameter_id=parameter_id,
        label="test",
        role=role,
    )


def test_pot_script():
    """Pot binds a 14-bit absolute NRPN with a single-dot ring."""
    lines = script_for(_control(Role.POT, physical_id=33, parameter_id=71))
    assert lines == [
        "$rev R1",
        "$encoder 33",
        "  .easypar NRPN 1 71 0 16383 absolute/14",
        "  .mode 1dot",
        "  .showvalue on",
        "  .resolution 100 1000 10000 16383",
        "$end",
    ]


def test_toggle_button_script():
    lines = script_for(_control(Role.TOGGLE_BUTTON, physical_id=41, parameter_id=21))
    assert lines == [
        "$rev R1",
        "$button 41",
        "  .easypar CC 1 21 0 127 toggleon",
        "  .showvalue on",
        "$end",
    ]


def test_momentary_button_script():
    lines = script_for(_control(Role.MOMENTARY_BUTTON, physical_id=63, parameter_id=61))
    assert lines == [
        "$rev R1",
        "$button 63",
        "  .easypar CC 1 61 0 127 down",
        "  .showvalue off",
        "$end",
    ]


def test_channel_is_used():
    control = Control(physical_id=5, channel=7, parameter_id=12, label="x", role=Role.TOGGLE_BUTTON)
    assert "  .easypar CC 7 12 0 127 toggleon" in script_for(control)


def test_init_script():
    assert init_script() == [
        "$rev R1",
        "$preset",
        "  .init",
        "  .egroups 1",
        "  .fkeys off",
        "  .lock on",
        "$end",
    ]


@pytest.mark.parametrize("role", list(Role))
def test_every_script_is_bracketed(role):
    lines = script_for(_control(role))
    assert lines[0] == "$rev R1"
    assert lines[-1] == "$end"
    assert lines.count("$end") == 1


def test_unknown_role():
    control = _control(Role.POT)
    object.__setattr__(control, "role", "fader")
    with pytest.raises(ValueError):
        script_for(control)


def test_catalog_script_order():
    catalog = ControlCatalog(
        "test",
        [
            _control(Role.POT, physical_id=1, parameter_id=71),
            _control(Role.TOGGLE_BUTTON, physical_id=1, parameter_id=1),
        ],
    )
    blocks = catalog_script(catalog)
    assert len(blocks) == 3
    assert blocks[0] == init_script()
    assert blocks[1][1] == "$encoder 1"
    assert blocks[2][1] == "$button 1"
