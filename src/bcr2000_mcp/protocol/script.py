"""BCL script builders.

Each builder returns one self-contained block: it opens with ``$rev R1``
and closes with ``$end``, so a block can be sent on its own.
"""

from __future__ import annotations

from typing import Callable

from ..models.controls import Control, ControlCatalog, Role

REVISION = "$rev R1"
END = "$end"

BUTTON_RANGE = (0, 127)
POT_RANGE = (0, 16383)
POT_RESOLUTION = (100, 1000, 10000, 16383)


def _bracket(scope: str, directives: list[str]) -> list[str]:
    return [REVISION, scope] + [f"  {d}" for d in directives] + [END]


def init_script() -> list[str]:
    """Device-wide setup: enter preset edit, one encoder group, no
    function-key shadowing, edit lock on."""
    return _bracket("$preset", [".init", ".egroups 1", ".fkeys off", ".lock on"])


def toggle_button_script(control: Control) -> list[str]:
    low, high = BUTTON_RANGE
    return _bracket(
        f"$button {control.physical_id}",
        [
            f".easypar CC {control.channel} {control.parameter_id} {low} {high} toggleon",
            ".showvalue on",
        ],
    )


def momentary_button_script(control: Control) -> list[str]:
    low, high = BUTTON_RANGE
    return _bracket(
        f"$button {control.physical_id}",
        [
            f".easypar CC {control.channel} {control.parameter_id} {low} {high} down",
            ".showvalue off",
        ],
    )


def pot_script(control: Control) -> list[str]:
    """Absolute 14-bit NRPN with a single-dot ring and four acceleration tiers."""
    low, high = POT_RANGE
    return _bracket(
        f"$encoder {control.physical_id}",
        [
            f".easypar NRPN {control.channel} {control.parameter_id} {low} {high} absolute/14",
            ".mode 1dot",
            ".showvalue on",
            ".resolution " + " ".join(str(r) for r in POT_RESOLUTION),
        ],
    )


SCRIPT_BUILDERS: dict[Role, Callable[[Control], list[str]]] = {
    Role.TOGGLE_BUTTON: toggle_button_script,
    Role.MOMENTARY_BUTTON: momentary_button_script,
    Role.POT: pot_script,
}


def script_for(control: Control) -> list[str]:
    """Build the BCL block that programs a single control.

    Raises:
        ValueError: If the control's role has no builder.
    """
    builder = SCRIPT_BUILDERS.get(control.role)
    if builder is None:
        raise ValueError(f"No BCL builder for role {control.role!r}")
    return builder(control)


def catalog_script(catalog: ControlCatalog) -> list[list[str]]:
    """All blocks a session sends for a catalog, init block first."""
    return [init_script()] + [script_for(control) for control in catalog]
