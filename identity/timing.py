"""Randomized delay inserted before answering a failed credential check."""
from __future__ import annotations

import random
import time
from typing import Callable, Optional


class FailureDelay:
    """
    Sleeps for a uniformly random duration between `min_ms` and `max_ms`.

    The bounds are plain attributes so callers (and tests) can inspect the
    configured window; `sleep` and `rng` are injectable so nothing has to
    depend on wall-clock timing.
    """

    def __init__(
        self,
        min_ms: int = 100,
        max_ms: int = 1000,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
    ):
        if min_ms < 0 or max_ms < min_ms:
            raise ValueError("delay bounds must satisfy 0 <= min_ms <= max_ms")
        self.min_ms = min_ms
        self.max_ms = max_ms
        self.sleep = sleep
        self.rng = rng or random.SystemRandom()

    def next_delay(self) -> float:
        """Return the next delay in seconds."""
        if self.max_ms == 0:
            return 0.0
        return self.rng.randint(self.min_ms, self.max_ms) / 1000.0

    def __call__(self) -> float:
        delay = self.next_delay()
        if delay:
            self.sleep(delay)
        return delay
