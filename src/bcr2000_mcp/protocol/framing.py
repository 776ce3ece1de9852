"""SysEx frame builder and parser for BCL text messages.

Frame layout::

    +------+----------------+--------+--------+---------+-----------+-----------+------------+------+
    | F0   | Manufacturer   | Device | Device | Command | Index MSB | Index LSB | BCL text   | F7   |
    |      | 00 20 32       | 7F     | 15     | 20      | 1 byte    | 1 byte    | UTF-8      |      |
    +------+----------------+--------+--------+---------+-----------+-----------+------------+------+

- Manufacturer: Behringer SysEx ID
- Device number: 0x7F addresses every connected unit
- Device type: 0x15 is the BCR2000
- Command: 0x20 is "BCL message"
- Index: position of the line inside its block, ``index // 256`` then ``index % 256``
"""

from __future__ import annotations

from dataclasses import dataclass

SYSEX_START = 0xF0
SYSEX_END = 0xF7
MANUFACTURER_ID = b"\x00\x20\x32"
DEVICE_NUMBER = 0x7F
DEVICE_TYPE = 0x15
BCL_COMMAND = 0x20

PREAMBLE = (
    bytes([SYSEX_START]) + MANUFACTURER_ID + bytes([DEVICE_NUMBER, DEVICE_TYPE, BCL_COMMAND])
)
MAX_BLOCK_INDEX = 0xFFFF
HEADER_SIZE = len(PREAMBLE) + 2


@dataclass
class Frame:
    """A single BCL line addressed by its position in a block."""

    block_index: int
    text: str

    def __repr__(self) -> str:
        return f"Frame(block_index={self.block_index}, text={self.text!r})"

    def to_bytes(self) -> bytes:
        return build_frame(self.text, self.block_index)


def build_frame(text: str, block_index: int) -> bytes:
    """Build the SysEx message carrying one line of BCL.

    Args:
        text: A single BCL line.
        block_index: Position of the line inside its block, 0-65535.

    Returns:
        The complete message, ``F0`` through ``F7``.

    Raises:
        ValueError: If the index is out of range or the text is not encodable.
    """
    if not 0 <= block_index <= MAX_BLOCK_INDEX:
        raise ValueError(f"Block index must be 0-{MAX_BLOCK_INDEX}, got {block_index}")
    if not isinstance(text, str):
        raise ValueError(f"BCL line must be str, got {type(text).__name__}")
    try:
        payload = text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise ValueError(f"BCL line is not valid UTF-8: {text!r}") from e

    high, low = divmod(block_index, 256)
    return PREAMBLE + bytes([high, low]) + payload + bytes([SYSEX_END])


def parse_frame(data: bytes) -> Frame | None:
    """Parse a BCL SysEx message back into a Frame.

    Returns:
        A ``Frame``, or ``None`` if the preamble or terminator is wrong or the
        text does not decode.
    """
    if len(data) < HEADER_SIZE + 1:
        return None
    if data[: len(PREAMBLE)] != PREAMBLE:
        return None
    if data[-1] != SYSEX_END:
        return None

    high, low = data[len(PREAMBLE)], data[len(PREAMBLE) + 1]
    try:
        text = bytes(data[HEADER_SIZE:-1]).decode("utf-8")
    except UnicodeDecodeError:
        return None
    return Frame(block_index=high * 256 + low, text=text)
