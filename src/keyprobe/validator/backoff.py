"""Retry delay computation for validation requests.

This module provides the exponential backoff used between attempts on a
single key. It is deliberately local to one retry loop: nothing here is
shared between keys or providers.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field


@dataclass
class BackoffPolicy:
    """Exponential backoff with jitter and a cap.

    The delay before retry ``n`` (0-indexed) is ``base * 2**n`` plus up to
    ``jitter`` of that value, never more than ``max_delay``. Successive
    delays never decrease.

    Attributes:
        base: Delay before the first retry, in seconds.
        max_delay: Upper bound for any single delay.
        jitter: Fraction of the delay added as random jitter.
    """

    base: float = 0.5
    max_delay: float = 8.0
    jitter: float = 0.25
    _rng: random.Random = field(default_factory=random.Random, repr=False)
    _last: float = field(default=0.0, init=False, repr=False)

    def delay(self, retry: int, minimum: float = 0.0) -> float:
        """Calculate the wait before a retry.

        Args:
            retry: Zero-based retry number.
            minimum: Lower bound requested by the server (Retry-After).

        Returns:
            Time in seconds to wait.
        """
        raw = self.base * (2**retry)
        if self.jitter > 0:
            raw += raw * self.jitter * self._rng.random()
        wait = min(max(raw, minimum, self._last), self.max_delay)
        self._last = wait
        return wait


def parse_retry_after(value: str | None) -> float:
    """Read a numeric Retry-After header.

    Args:
        value: Header value, possibly missing.

    Returns:
        Seconds to wait, 0 when absent or not a number of seconds.
    """
    if not value:
        return 0.0
    try:
        seconds = float(value.strip())
    except ValueError:
        return 0.0
    return max(seconds, 0.0)
