"""Fixed-interval tick driver for progress drains."""

import logging
import time
from typing import Callable, Optional

from .settings import TICK_INTERVAL

logger = logging.getLogger(__name__)


class TickDriver:
    """
    Calls ``callback`` every ``interval`` seconds on the calling thread.

    Deadlines are computed from a monotonic clock so slow callbacks do not
    make the schedule drift. A callback that overruns a whole interval
    skips the missed ticks instead of firing them back to back.

    Example:
        driver = TickDriver(machine.tick)
        driver.run(until=lambda: not machine.any_running())
    """

    def __init__(
        self,
        callback: Callable[[], None],
        interval: float = TICK_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if interval <= 0:
            raise ValueError(f"Tick interval must be positive, got {interval}")
        self.callback = callback
        self.interval = interval
        self.clock = clock
        self.sleep = sleep
        self.ticks = 0

    def tick(self) -> None:
        """Fire one tick immediately."""
        self.ticks += 1
        self.callback()

    def run(
        self,
        until: Callable[[], bool],
        max_ticks: Optional[int] = None,
    ) -> int:
        """
        Tick until ``until()`` returns True (checked after every tick).

        Returns:
            Number of ticks fired by this call
        """
        fired = 0
        deadline = self.clock() + self.interval
        while True:
            delay = deadline - self.clock()
            if delay > 0:
                self.sleep(delay)
            self.tick()
            fired += 1
            if until() or (max_ticks is not None and fired >= max_ticks):
                break

            deadline += self.interval
            now = self.clock()
            if deadline <= now:
                missed = int((now - deadline) // self.interval) + 1
                logger.debug("Tick overran by %d interval(s)", missed)
                deadline += missed * self.interval
        return fired
