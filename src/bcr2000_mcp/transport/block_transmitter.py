"""Send BCL blocks line by line, with pacing between blocks.

The BCR2000 drops messages when blocks arrive back to back, so after every
16 blocks sent without a break the transmitter waits half a second. The
numbers are empirical; the device documents no flow control.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Sequence

from ..errors import BlockTooLargeError, TransmissionCancelledError, TransmissionError
from ..protocol.framing import build_frame

logger = logging.getLogger(__name__)

MAX_BLOCK_LINES = 16384
PACING_BLOCKS = 16
PACING_PAUSE_S = 0.5

Sender = Callable[[bytes], object]


class BlockTransmitter:
    """Pushes blocks of BCL lines through a raw message sender.

    Usage::

        tx = BlockTransmitter(conn.send)
        tx.send_block(init_script())

    Args:
        send: Callable taking one complete SysEx message. It signals failure
            by raising ``OSError``/``ValueError`` or returning ``False``.
        pause: Length of the pacing pause in seconds.
        pace_every: Blocks allowed without a pause.
        max_lines: Largest block accepted.
        sleep: Replacement for the pacing wait, called with ``pause``.
            Defaults to a wait that ``cancel()`` interrupts.
    """

    def __init__(
        self,
        send: Sender,
        pause: float = PACING_PAUSE_S,
        pace_every: int = PACING_BLOCKS,
        max_lines: int = MAX_BLOCK_LINES,
        sleep: Callable[[float], object] | None = None,
    ) -> None:
        self._send = send
        self._pause = pause
        self._pace_every = pace_every
        self._max_lines = max_lines
        self._cancelled = threading.Event()
        self._sleep = sleep if sleep is not None else self._cancelled.wait
        self._blocks_since_pause = 0
        self._blocks_sent = 0
        self._frames_sent = 0

    @property
    def blocks_since_pause(self) -> int:
        return self._blocks_since_pause

    @property
    def blocks_sent(self) -> int:
        return self._blocks_sent

    @property
    def frames_sent(self) -> int:
        return self._frames_sent

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Stop at the next block boundary, waking any pacing pause."""
        self._cancelled.set()

    def send_block(self, lines: Sequence[str]) -> int:
        """Send one block, line ``i`` at position ``i``.

        Every line is encoded before the first is sent, so a rejected block
        causes no I/O.

        Returns:
            Number of frames sent.

        Raises:
            BlockTooLargeError: More than ``max_lines`` lines.
            ValueError: A line cannot be encoded.
            TransmissionError: The sender failed; later lines are not sent.
            TransmissionCancelledError: ``cancel()`` was called.
        """
        if len(lines) > self._max_lines:
            raise BlockTooLargeError(len(lines), self._max_lines)
        self._check_cancelled()

        frames = [build_frame(line, i) for i, line in enumerate(lines)]
        block = self._blocks_sent
        logger.debug("Sending block %d (%d lines)", block, len(frames))

        for i, frame in enumerate(frames):
            try:
                ok = self._send(frame)
            except (OSError, ValueError) as e:
                raise TransmissionError(
                    f"Failed to send line {i} of block {block}: {e}",
                    line_index=i,
                    block_number=block,
                ) from e
            if ok is False:
                raise TransmissionError(
                    f"Device rejected line {i} of block {block}",
                    line_index=i,
                    block_number=block,
                )
            self._frames_sent += 1

        self._blocks_sent += 1
        self._pace()
        return len(frames)

    def _pace(self) -> None:
        if self._blocks_since_pause >= self._pace_every:
            logger.debug(
                "Pacing: pausing %.3fs after %d blocks",
                self._pause, self._blocks_since_pause,
            )
            self._sleep(self._pause)
            self._blocks_since_pause = 0
        else:
            self._blocks_since_pause += 1

    def _check_cancelled(self) -> None:
        if self._cancelled.is_set():
            raise TransmissionCancelledError(
                "Transmission cancelled", block_number=self._blocks_sent
            )
