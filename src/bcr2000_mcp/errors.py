"""Exception hierarchy for device programming failures."""

from __future__ import annotations


class BCRError(Exception):
    """Base class for all errors raised while programming a controller."""


class BlockTooLargeError(BCRError, ValueError):
    """A block holds more lines than one transmission unit can address.

    Raised before any frame is sent; the caller must split the input.
    """

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            f"Block has {size} lines, cannot send more than {limit} in a single block"
        )
        self.size = size
        self.limit = limit


class DeviceUnavailableError(BCRError, ConnectionError):
    """The device cannot be opened or has no usable output channel."""


class TransmissionError(BCRError, IOError):
    """Sending a frame failed part way through a configuration run.

    The transmitter fills in ``line_index`` and ``block_number``; a session
    adds which control was being configured so the run can be resumed.
    """

    def __init__(
        self,
        message: str,
        line_index: int | None = None,
        block_number: int | None = None,
    ) -> None:
        super().__init__(message)
        self.line_index = line_index
        self.block_number = block_number
        self.control_index: int | None = None
        self.control_label: str | None = None
        self.last_sent_control: int | None = None

    def context(self) -> dict:
        return {
            "line_index": self.line_index,
            "block_number": self.block_number,
            "control_index": self.control_index,
            "control_label": self.control_label,
            "last_sent_control": self.last_sent_control,
        }


class TransmissionCancelledError(TransmissionError):
    """The caller cancelled the run between blocks or during a pacing pause."""
