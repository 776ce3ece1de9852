"""MIDI output connection to a BCR2000.

Supports both ``mido`` (preferred, through the OS MIDI stack) and
``pyusb`` backends. The pyusb backend talks to the USB-MIDI streaming
interface directly and packs each SysEx message into 4-byte USB-MIDI
event packets on the bulk OUT endpoint.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import DeviceUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_NAME_PREFIX = "BCR2000"
VENDOR_ID = 0x1397  # Behringer
AUDIO_CLASS = 0x01
MIDISTREAMING_SUBCLASS = 0x03
WRITE_TIMEOUT_MS = 1000

# Code index numbers for SysEx event packets
CIN_SYSEX_CONTINUE = 0x4
CIN_SYSEX_END = {1: 0x5, 2: 0x6, 3: 0x7}


@dataclass
class DeviceInfo:
    """Identification of one device output."""

    name: str = ""
    backend: str = ""
    vendor_id: int | None = None
    product_id: int | None = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "backend": self.backend,
            "vendor_id": self.vendor_id,
            "product_id": self.product_id,
        }


def pack_usb_midi_sysex(message: bytes, cable: int = 0) -> bytes:
    """Pack one complete SysEx message into USB-MIDI event packets.

    Every packet carries three message bytes; the last packet's code index
    says how many of its bytes are used.
    """
    if len(message) < 2 or message[0] != 0xF0 or message[-1] != 0xF7:
        raise ValueError("SysEx message must start with F0 and end with F7")

    packets = bytearray()
    for offset in range(0, len(message), 3):
        chunk = message[offset : offset + 3]
        remaining = len(message) - offset
        cin = CIN_SYSEX_CONTINUE if remaining > 3 else CIN_SYSEX_END[len(chunk)]
        packets.append(((cable & 0x0F) << 4) | cin)
        packets += chunk + b"\x00" * (3 - len(chunk))
    return bytes(packets)


def list_devices(
    name_prefix: str = DEFAULT_NAME_PREFIX,
    include_usb: bool = False,
) -> list[DeviceInfo]:
    """Enumerate device outputs whose name starts with ``name_prefix``.

    Only ports that accept messages are listed, so input-only ports of the
    same device never show up.
    """
    import mido

    devices = [
        DeviceInfo(name=name, backend="mido")
        for name in mido.get_output_names()
        if name.startswith(name_prefix)
    ]

    if include_usb:
        import usb.core
        import usb.util

        for dev in usb.core.find(find_all=True, idVendor=VENDOR_ID):
            product = usb.util.get_string(dev, dev.iProduct) or ""
            if product.startswith(name_prefix):
                devices.append(
                    DeviceInfo(
                        name=product,
                        backend="pyusb",
                        vendor_id=dev.idVendor,
                        product_id=dev.idProduct,
                    )
                )

    return devices


class MidiConnection:
    """Manages the output connection to one controller.

    Usage::

        conn = MidiConnection("BCR2000 Port 1")
        conn.open()
        conn.send(frame_bytes)
        conn.close()

    Args:
        port_name: Exact MIDI port name; when omitted the first port
            starting with ``name_prefix`` is used.
        name_prefix: Device name prefix used for discovery.
        vendor_id: USB vendor id for the pyusb fallback.
        product_id: USB product id for the pyusb fallback; any product
            whose name starts with ``name_prefix`` matches when omitted.
    """

    def __init__(
        self,
        port_name: str | None = None,
        name_prefix: str = DEFAULT_NAME_PREFIX,
        vendor_id: int = VENDOR_ID,
        product_id: int | None = None,
    ) -> None:
        self._port_name = port_name
        self._name_prefix = name_prefix
        self._vendor_id = vendor_id
        self._product_id = product_id
        self._port = None
        self._usb_interface: int | None = None
        self._usb_endpoint: int | None = None
        self._backend: str = ""
        self._connected = False
        self._device_info = DeviceInfo(name=port_name or "")

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def device_info(self) -> DeviceInfo:
        return self._device_info

    def open(self) -> DeviceInfo:
        """Open the output, trying mido first, then pyusb.

        Returns:
            DeviceInfo for the opened output.

        Raises:
            DeviceUnavailableError: If no backend can open the device.
        """
        try:
            return self._open_mido()
        except Exception as e:
            logger.debug("mido backend failed: %s, trying pyusb", e)

        try:
            return self._open_pyusb()
        except Exception as e:
            raise DeviceUnavailableError(
                f"Could not open {self._port_name or self._name_prefix} for output. "
                f"Ensure the device is connected and you have permissions. "
                f"Last error: {e}"
            ) from e

    def _open_mido(self) -> DeviceInfo:
        """Open a port through mido's default backend."""
        import mido

        name = self._port_name
        if name is None:
            matches = [
                n for n in mido.get_output_names() if n.startswith(self._name_prefix)
            ]
            if not matches:
                raise ConnectionError(f"No MIDI output named {self._name_prefix}*")
            name = matches[0]

        self._port = mido.open_output(name)
        self._backend = "mido"
        self._connected = True
        self._device_info = DeviceInfo(name=name, backend="mido")

        logger.info("Connected via mido: %s", name)
        return self._device_info

    def _open_pyusb(self) -> DeviceInfo:
        """Open the USB-MIDI streaming interface with pyusb + libusb."""
        import usb.core
        import usb.util

        dev = None
        for candidate in usb.core.find(find_all=True, idVendor=self._vendor_id):
            if self._product_id is not None:
                if candidate.idProduct == self._product_id:
                    dev = candidate
                    break
                continue
            product = usb.util.get_string(candidate, candidate.iProduct) or ""
            if product.startswith(self._port_name or self._name_prefix):
                dev = candidate
                break
        if dev is None:
            raise ConnectionError("Device not found via pyusb")

        cfg = dev.get_active_configuration()
        intf = usb.util.find_descriptor(
            cfg,
            bInterfaceClass=AUDIO_CLASS,
            bInterfaceSubClass=MIDISTREAMING_SUBCLASS,
        )
        if intf is None:
            raise ConnectionError("Device has no MIDI streaming interface")
        endpoint = usb.util.find_descriptor(
            intf,
            custom_match=lambda e: usb.util.endpoint_direction(e.bEndpointAddress)
            == usb.util.ENDPOINT_OUT,
        )
        if endpoint is None:
            raise ConnectionError("MIDI streaming interface has no OUT endpoint")

        number = intf.bInterfaceNumber
        # Detach kernel driver if needed
        if dev.is_kernel_driver_active(number):
            dev.detach_kernel_driver(number)
        usb.util.claim_interface(dev, number)

        self._port = dev
        self._usb_interface = number
        self._usb_endpoint = endpoint.bEndpointAddress
        self._backend = "pyusb"
        self._connected = True
        self._device_info = DeviceInfo(
            name=usb.util.get_string(dev, dev.iProduct) or "",
            backend="pyusb",
            vendor_id=dev.idVendor,
            product_id=dev.idProduct,
        )

        logger.info("Connected via pyusb: %s", self._device_info.name)
        return self._device_info

    def close(self) -> None:
        """Close the output."""
        if not self._connected:
            return

        try:
            if self._backend == "mido":
                self._port.close()
            elif self._backend == "pyusb":
                import usb.util
                usb.util.release_interface(self._port, self._usb_interface)
                usb.util.dispose_resources(self._port)
        except Exception as e:
            logger.warning("Error closing device: %s", e)
        finally:
            self._port = None
            self._usb_interface = None
            self._usb_endpoint = None
            self._connected = False
            logger.info("Disconnected")

    def send(self, data: bytes) -> None:
        """Send one complete SysEx message.

        Args:
            data: The message, ``F0`` through ``F7``.

        Raises:
            ConnectionError: If not connected.
            IOError: If the backend rejects or fails to send the message.
        """
        if not self._connected:
            raise ConnectionError("Not connected to device")

        if self._backend not in ("mido", "pyusb"):
            raise RuntimeError(f"Unknown backend: {self._backend}")

        try:
            if self._backend == "mido":
                import mido
                self._port.send(mido.Message("sysex", data=data[1:-1]))
            else:
                self._port.write(
                    self._usb_endpoint,
                    pack_usb_midi_sysex(data),
                    timeout=WRITE_TIMEOUT_MS,
                )
        except OSError:
            raise
        except Exception as e:
            # mido rejects data bytes above 0x7F; rtmidi raises its own types
            raise IOError(f"Send failed on {self._backend}: {e}") from e
