"""Physical control descriptions and the per-model control catalog."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator


class Role(Enum):
    """What a physical control does once programmed."""

    POT = "pot"
    TOGGLE_BUTTON = "toggle_button"
    MOMENTARY_BUTTON = "momentary_button"

    @property
    def is_button(self) -> bool:
        return self is not Role.POT


@dataclass(frozen=True)
class Control:
    """One physical control on the device.

    ``physical_id`` is the device-assigned slot number. Buttons and encoders
    are numbered independently, so a button and an encoder can share one.
    """

    physical_id: int
    channel: int
    parameter_id: int
    label: str
    role: Role

    def __post_init__(self) -> None:
        if self.physical_id < 1:
            raise ValueError(f"Physical id must be positive, got {self.physical_id}")
        if not 1 <= self.channel <= 16:
            raise ValueError(f"Channel must be 1-16, got {self.channel}")
        if self.parameter_id < 0:
            raise ValueError(
                f"Parameter id must not be negative, got {self.parameter_id}"
            )

    @property
    def slot(self) -> tuple[str, int]:
        """Address of the control in the device's button or encoder table."""
        return ("button" if self.role.is_button else "encoder", self.physical_id)

    def to_dict(self) -> dict:
        return {
            "physical_id": self.physical_id,
            "channel": self.channel,
            "parameter_id": self.parameter_id,
            "label": self.label,
            "role": self.role.value,
        }


class ControlCatalog:
    """Ordered, read-only list of the controls of one device model.

    Raises:
        ValueError: If two controls share a parameter id or a device slot.
    """

    def __init__(self, model: str, controls: Iterable[Control]) -> None:
        self._model = model
        self._controls = tuple(controls)

        slots: dict[tuple[str, int], Control] = {}
        params: dict[int, Control] = {}
        for control in self._controls:
            if control.slot in slots:
                raise ValueError(
                    f"{control.label!r} reuses {control.slot[0]} "
                    f"{control.physical_id} of {slots[control.slot].label!r}"
                )
            if control.parameter_id in params:
                raise ValueError(
                    f"{control.label!r} reuses parameter {control.parameter_id} "
                    f"of {params[control.parameter_id].label!r}"
                )
            slots[control.slot] = control
            params[control.parameter_id] = control

        self._by_label = {c.label: c for c in self._controls}

    @property
    def model(self) -> str:
        return self._model

    @property
    def controls(self) -> tuple[Control, ...]:
        return self._controls

    def __len__(self) -> int:
        return len(self._controls)

    def __iter__(self) -> Iterator[Control]:
        return iter(self._controls)

    def __getitem__(self, index: int) -> Control:
        return self._controls[index]

    def __repr__(self) -> str:
        return f"ControlCatalog(model={self._model!r}, controls={len(self._controls)})"

    def by_label(self, label: str) -> Control:
        """Look up a control by its display name.

        Raises:
            KeyError: If no control has that label.
        """
        return self._by_label[label]

    def to_dict(self) -> dict:
        return {
            "model": self._model,
            "controls": [c.to_dict() for c in self._controls],
        }
