import random
from dataclasses import dataclass


@dataclass
class ExponentialBackoff:
    """
    Exponential backoff with optional jitter, used to pace attempts to
    open a discovered endpoint that is not (yet) reachable, e.g. while the
    observer is not started.

        next_delay = min(current * factor, maximum) + jitter

    The jitter keeps several debugged applications from hammering an
    observer in lockstep when it comes back.
    """

    initial: float = 0.5
    """Initial delay (in seconds) before the first retry."""

    maximum: float = 30.0
    """Maximum allowed delay (in seconds)."""

    factor: float = 2.0
    """Multiplicative factor applied to the delay after each retry."""

    jitter: float = 1.2
    """Maximum random jitter added to each delay."""

    _current: float = None
    """Internal state tracking the current delay."""

    def __post_init__(self):
        self._current = self.initial

    def next_delay(self) -> float:
        delay = self._current
        self._current = min(self._current * self.factor, self.maximum)

        if self.jitter > 0:
            delay += random.uniform(0, self.jitter)

        return delay

    def reset(self):
        """Start again from the initial delay, after a successful attempt."""
        self._current = self.initial
