"""
Progress channel between a worker thread and the orchestrator.

The sender pushes ``(transferred, total)`` byte counts; the receiver is
drained on each tick and only keeps the newest sample. Closing the sender
appends a terminal marker that is always observed after every sample sent
before it.
"""

import logging
import queue
from dataclasses import dataclass
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

Sample = Tuple[int, int]

_CLOSED = object()


@dataclass(frozen=True)
class DrainResult:
    """
    Outcome of one non-blocking drain.

    Attributes:
        sample: Most recent (transferred, total) sample, or None if nothing
                was buffered
        closed: Whether the sender has been closed
        skipped: Number of older samples discarded in favour of ``sample``
    """
    sample: Optional[Sample] = None
    closed: bool = False
    skipped: int = 0


class ProgressSender:
    """Producer end, owned by exactly one worker."""

    def __init__(self, q: "queue.SimpleQueue"):
        self._queue = q
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, transferred: int, total: int) -> None:
        """
        Push one progress sample.

        Samples sent after close are dropped; the receiver has already been
        told the operation finished.
        """
        if self._closed:
            logger.debug("Dropping sample %d/%d sent after close", transferred, total)
            return
        self._queue.put((int(transferred), int(total)))

    # A sender is also usable directly as a progress_cb(transferred, total)
    __call__ = send

    def close(self) -> None:
        """Close the channel. Safe to call more than once."""
        if not self._closed:
            self._closed = True
            self._queue.put(_CLOSED)


class ProgressReceiver:
    """Consumer end, owned by the orchestrator for one OperationState."""

    def __init__(self, q: "queue.SimpleQueue"):
        self._queue = q
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def drain(self) -> DrainResult:
        """
        Read everything already buffered without waiting.

        Returns the latest sample only; earlier ones are discarded since the
        front-end only renders the newest known progress.
        """
        latest: Optional[Sample] = None
        seen = 0
        while not self._closed:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                break
            if item is _CLOSED:
                self._closed = True
                break
            latest = item
            seen += 1

        return DrainResult(
            sample=latest,
            closed=self._closed,
            skipped=max(seen - 1, 0),
        )


def open_channel() -> Tuple[ProgressSender, ProgressReceiver]:
    """Create a fresh channel for one operation start."""
    q: "queue.SimpleQueue" = queue.SimpleQueue()
    return ProgressSender(q), ProgressReceiver(q)
