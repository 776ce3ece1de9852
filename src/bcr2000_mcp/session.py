"""Programming session for one connected controller."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Protocol

from .errors import DeviceUnavailableError, TransmissionError
from .models.controls import ControlCatalog
from .protocol.script import init_script, script_for
from .transport.block_transmitter import BlockTransmitter

logger = logging.getLogger(__name__)


class Connection(Protocol):
    """What a session needs from a device output."""

    @property
    def connected(self) -> bool: ...

    def open(self) -> object: ...

    def close(self) -> None: ...

    def send(self, data: bytes) -> object: ...


@dataclass
class ConfigureResult:
    """Outcome of a complete configuration run."""

    model: str
    blocks_sent: int
    frames_sent: int
    controls_configured: int

    def to_dict(self) -> dict:
        return {
            "model": self.model,
            "blocks_sent": self.blocks_sent,
            "frames_sent": self.frames_sent,
            "controls_configured": self.controls_configured,
        }


class DeviceSession:
    """Owns one device connection and its pacing state.

    Usage::

        with DeviceSession(MidiConnection("BCR2000 Port 1")) as session:
            session.configure(bcr2000_catalog())

    Args:
        connection: The device output. Must not be shared with another session.
        transmitter: Block transmitter to use; built over ``connection.send``
            when omitted.
        sleep: Pacing wait for the default transmitter.
    """

    def __init__(
        self,
        connection: Connection,
        transmitter: BlockTransmitter | None = None,
        sleep: Callable[[float], object] | None = None,
    ) -> None:
        self._connection = connection
        self._transmitter = transmitter or BlockTransmitter(connection.send, sleep=sleep)

    @property
    def connection(self) -> Connection:
        return self._connection

    @property
    def transmitter(self) -> BlockTransmitter:
        return self._transmitter

    def __enter__(self) -> DeviceSession:
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def open(self) -> None:
        """(Re)open the connection.

        An already-open connection is closed first so the device starts
        from a fresh port.

        Raises:
            DeviceUnavailableError: If the connection cannot be opened.
        """
        if self._connection.connected:
            logger.debug("Connection already open, reopening")
            self._connection.close()
        try:
            self._connection.open()
        except DeviceUnavailableError:
            raise
        except (OSError, ValueError) as e:
            raise DeviceUnavailableError(f"Could not open device: {e}") from e
        if not self._connection.connected:
            raise DeviceUnavailableError("Device has no usable output")

    def close(self) -> None:
        self._connection.close()

    def cancel(self) -> None:
        """Abort a running ``configure`` at the next block boundary.

        Safe to call from another thread.
        """
        self._transmitter.cancel()

    def configure(self, catalog: ControlCatalog) -> ConfigureResult:
        """Program every control of ``catalog``, init block first.

        Each control gets its own block, sent in catalog order.

        Raises:
            TransmissionError: A send failed. ``control_index`` is the control
                being sent (``None`` for the init block) and
                ``last_sent_control`` the last one fully configured. Blocks
                already sent stay applied on the device.
        """
        if not self._connection.connected:
            raise DeviceUnavailableError("Session is not open")

        tx = self._transmitter
        blocks_before, frames_before = tx.blocks_sent, tx.frames_sent
        logger.info("Configuring %s (%d controls)", catalog.model, len(catalog))

        tx.send_block(init_script())

        last_sent: int | None = None
        for index, control in enumerate(catalog):
            try:
                tx.send_block(script_for(control))
            except TransmissionError as e:
                e.control_index = index
                e.control_label = control.label
                e.last_sent_control = last_sent
                logger.error(
                    "Configuration of %s stopped at control %d (%s): %s",
                    catalog.model, index, control.label, e,
                )
                raise
            last_sent = index
            logger.debug("Configured %s", control.label)

        result = ConfigureResult(
            model=catalog.model,
            blocks_sent=tx.blocks_sent - blocks_before,
            frames_sent=tx.frames_sent - frames_before,
            controls_configured=len(catalog),
        )
        logger.info(
            "Configured %s: %d blocks, %d frames",
            catalog.model, result.blocks_sent, result.frames_sent,
        )
        return result
