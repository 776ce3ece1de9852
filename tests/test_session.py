"""End-to-end tests for configuring a device through a session."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from bcr2000_mcp.errors import DeviceUnavailableError, TransmissionError
from bcr2000_mcp.models.bcr2000 import bcr2000_catalog
from bcr2000_mcp.models.controls import Control, ControlCatalog, Role
from bcr2000_mcp.protocol.framing import PREAMBLE, SYSEX_END, parse_frame
from bcr2000_mcp.session import DeviceSession


class FakeDevice:
    """Records frames and regroups them into blocks by their position bytes."""

    def __init__(self, fail_on: int | None = None) -> None:
        self.connected = False
        self.opens = 0
        self.closes = 0
        self.frames: list[bytes] = []
        self._fail_on = fail_on

    def open(self):
        self.opens += 1
        self.connected = True

    def close(self):
        self.closes += 1
        self.connected = False

    def send(self, data: bytes):
        if self._fail_on is not None and len(self.frames) == self._fail_on:
            raise IOError("cable pulled")
        self.frames.append(data)

    @property
    def blocks(self) -> list[list[str]]:
        blocks: list[list[str]] = []
        for data in self.frames:
            frame = parse_frame(data)
            if frame.block_index == 0:
                blocks.append([])
            blocks[-1].append(frame.text)
        return blocks


def _catalog() -> ControlCatalog:
    return ControlCatalog(
        "test",
        [
            Control(33, 1, 11, "toggle", Role.TOGGLE_BUTTON),
            Control(63, 1, 61, "momentary", Role.MOMENTARY_BUTTON),
            Control(1, 1, 71, "pot", Role.POT),
        ],
    )


def test_configure_sends_init_then_controls():
    device = FakeDevice()
    with DeviceSession(device, sleep=MagicMock()) as session:
        result = session.configure(_catalog())

    blocks = device.blocks
    assert len(blocks) == 4
    assert blocks[0][1] == "$preset"
    assert blocks[1][1] == "$button 33"
    assert "  .easypar CC 1 11 0 127 toggleon" in blocks[1]
    assert blocks[2][1] == "$button 63"
    assert "  .easypar CC 1 61 0 127 down" in blocks[2]
    assert blocks[3][1] == "$encoder 1"
    assert "  .easypar NRPN 1 71 0 16383 absolute/14" in blocks[3]

    for data in device.frames:
        assert data.startswith(PREAMBLE)
        assert data[-1] == SYSEX_END

    assert result.model == "test"
    assert result.blocks_sent == 4
    assert result.frames_sent == len(device.frames) == 7 + 5 + 5 + 7
    assert result.controls_configured == 3
    assert device.closes == 1


def test_open_reopens_connected_device():
    device = FakeDevice()
    device.connected = True
    session = DeviceSession(device)
    session.open()
    assert device.closes == 1
    assert device.opens == 1
    assert device.connected


def test_open_failure_is_device_unavailable():
    device = FakeDevice()
    device.open = MagicMock(side_effect=OSError("busy"))
    with pytest.raises(DeviceUnavailableError):
        DeviceSession(device).open()


def test_open_without_output_is_device_unavailable():
    device = FakeDevice()
    device.open = MagicMock()
    with pytest.raises(DeviceUnavailableError):
        DeviceSession(device).open()


def test_configure_requires_open_session():
    with pytest.raises(DeviceUnavailableError):
        DeviceSession(FakeDevice()).configure(_catalog())


def test_failure_reports_control_position():
    """A failure in the pot block names it and the control before it."""
    device = FakeDevice(fail_on=7 + 5 + 5 + 2)
    session = DeviceSession(device, sleep=MagicMock())
    session.open()
    with pytest.raises(TransmissionError) as info:
        session.configure(_catalog())

    e = info.value
    assert e.control_index == 2
    assert e.control_label == "pot"
    assert e.last_sent_control == 1
    assert e.line_index == 2
    assert len(device.blocks) == 4
    assert len(device.blocks[3]) == 2


def test_failure_in_init_block():
    device = FakeDevice(fail_on=0)
    session = DeviceSession(device, sleep=MagicMock())
    session.open()
    with pytest.raises(TransmissionError) as info:
        session.configure(_catalog())
    assert info.value.control_index is None
    assert info.value.last_sent_control is None


def test_full_catalog_paces():
    """71 blocks with a pause after every 16 unpaused ones."""
    device = FakeDevice()
    sleep = MagicMock()
    with DeviceSession(device, sleep=sleep) as session:
        result = session.configure(bcr2000_catalog())
    assert result.blocks_sent == 71
    assert sleep.call_count == 4


def test_cancel_stops_run():
    device = FakeDevice()
    session = DeviceSession(device, sleep=MagicMock())
    session.open()
    session.cancel()
    with pytest.raises(TransmissionError):
        session.configure(_catalog())
    assert device.frames == []
