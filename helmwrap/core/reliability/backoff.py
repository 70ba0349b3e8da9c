"""
Exponential backoff — delay policy and retry loop for external commands.

The interval grows by ``multiplier`` after every failed attempt, capped at
``max_interval``, and each delay is randomized by ``randomization_factor``
so that parallel callers don't retry in lockstep.  The policy stops once
``max_elapsed_time`` has passed since the last ``reset()``.

    policy = ExponentialBackOff(max_elapsed_time=180)
    output = retry(lambda: command.run_without_retry(), policy)
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Defaults match the widely used "exponential backoff with jitter" policy
DEFAULT_INITIAL_INTERVAL = 0.5
DEFAULT_RANDOMIZATION_FACTOR = 0.5
DEFAULT_MULTIPLIER = 1.5
DEFAULT_MAX_INTERVAL = 60.0
DEFAULT_MAX_ELAPSED_TIME = 15 * 60.0


@dataclass
class ExponentialBackOff:
    """Exponential backoff policy with jitter.

    Args:
        initial_interval: First delay in seconds.
        randomization_factor: Jitter ratio; 0 disables randomization.
        multiplier: Growth factor applied after every attempt.
        max_interval: Upper bound for the (un-jittered) interval.
        max_elapsed_time: Seconds after which the policy stops. 0 = never.
    """

    initial_interval: float = DEFAULT_INITIAL_INTERVAL
    randomization_factor: float = DEFAULT_RANDOMIZATION_FACTOR
    multiplier: float = DEFAULT_MULTIPLIER
    max_interval: float = DEFAULT_MAX_INTERVAL
    max_elapsed_time: float = DEFAULT_MAX_ELAPSED_TIME
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    # ── Internal state ───────────────────────────────────────────
    current_interval: float = field(init=False, default=0.0)
    start_time: float = field(init=False, default=0.0)

    def __post_init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        """Restart the schedule and the elapsed-time clock."""
        self.current_interval = self.initial_interval
        self.start_time = self.clock()

    @property
    def elapsed(self) -> float:
        """Seconds since the last reset."""
        return self.clock() - self.start_time

    def next_backoff(self) -> float | None:
        """Return the next delay in seconds, or None once the policy stops."""
        if self.max_elapsed_time and self.elapsed >= self.max_elapsed_time:
            return None

        delay = self._randomized(self.current_interval)
        if self.current_interval >= self.max_interval / self.multiplier:
            self.current_interval = self.max_interval
        else:
            self.current_interval *= self.multiplier

        # Never sleep past the deadline
        if self.max_elapsed_time:
            remaining = self.max_elapsed_time - self.elapsed
            delay = min(delay, max(remaining, 0.0))
        return delay

    def _randomized(self, interval: float) -> float:
        if not self.randomization_factor:
            return interval
        delta = self.randomization_factor * interval
        return random.uniform(interval - delta, interval + delta)


def retry(
    operation: Callable[[], T],
    policy: ExponentialBackOff,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``operation`` until it returns, sleeping between failures.

    The policy is reset before the first attempt.  When the policy stops,
    the exception of the last attempt is re-raised unchanged.
    """
    policy.reset()
    attempt = 0
    while True:
        attempt += 1
        try:
            return operation()
        except Exception as e:
            delay = policy.next_backoff()
            if delay is None:
                logger.warning(
                    "Giving up after %d attempts (%.1fs elapsed): %s",
                    attempt,
                    policy.elapsed,
                    e,
                )
                raise
            logger.debug("Attempt %d failed, retrying in %.2fs: %s", attempt, delay, e)
            sleep(delay)
