"""Control layout of the Behringer BCR2000.

Physical ids follow the BCL numbering: the push function of the top
encoders is button 1-8, the rows of buttons below start at 33, and the
encoders share the same numbers in their own table.

Parameter ids by group::

    Top encoder push     1-8      toggle
    Upper button row     11-18    toggle
    Lower button row     21-28    toggle
    User keys            31-34    toggle
    Function keys        41-44    toggle
    Encoder group keys   51-54    toggle
    Preset keys          61-62    momentary
    Top encoders         71-78    pot
    Encoder row 1        81-88    pot
    Encoder row 2        91-98    pot
    Encoder row 3        101-108  pot
"""

from __future__ import annotations

from .controls import Control, ControlCatalog, Role

MODEL_NAME = "BCR2000"
DEFAULT_CHANNEL = 1

# (label prefix, first physical id, first parameter id, count, role)
_GROUPS = [
    ("KPU", 1, 1, 8, Role.TOGGLE_BUTTON),
    ("KU", 33, 11, 8, Role.TOGGLE_BUTTON),
    ("KL", 41, 21, 8, Role.TOGGLE_BUTTON),
    ("KLR", 49, 31, 4, Role.TOGGLE_BUTTON),
    ("KFU", 53, 41, 4, Role.TOGGLE_BUTTON),
    ("KEG", 57, 51, 4, Role.TOGGLE_BUTTON),
    ("KPR", 63, 61, 2, Role.MOMENTARY_BUTTON),
    ("PU", 1, 71, 8, Role.POT),
    ("P1", 33, 81, 8, Role.POT),
    ("P2", 41, 91, 8, Role.POT),
    ("P3", 49, 101, 8, Role.POT),
]


def bcr2000_catalog(channel: int = DEFAULT_CHANNEL) -> ControlCatalog:
    """Build the catalog of every programmable control on a BCR2000."""
    controls = [
        Control(
            physical_id=first_physical + i,
            channel=channel,
            parameter_id=first_param + i,
            label=f"{prefix}_{i + 1}",
            role=role,
        )
        for prefix, first_physical, first_param, count, role in _GROUPS
        for i in range(count)
    ]
    return ControlCatalog(MODEL_NAME, controls)
