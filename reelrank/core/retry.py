"""Backoff policy for throttled upstream calls.

The fetch client owns the retry loop; this module only answers two questions:
how long to wait before the next attempt, and what the upstream asked for via
``Retry-After``. Keeping the arithmetic here makes the schedule testable
without any network or sleeping.
"""

import math
import random
from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime


@dataclass(frozen=True)
class BackoffPolicy:
    """Exponential backoff: ``initial_delay * multiplier ** n``, optionally capped.

    Delays are in seconds. ``jitter`` is a fraction (0.25 = +/-25%) applied
    after the cap; 0 keeps the schedule deterministic.
    """

    initial_delay: float = 1.0
    multiplier: float = 2.0
    max_delay: float | None = None
    jitter: float = 0.0

    def next_delay(self, delay: float) -> float:
        """Return the delay that follows ``delay`` in the schedule."""
        grown = delay * self.multiplier
        if self.max_delay is not None:
            grown = min(grown, self.max_delay)
        return grown

    def cap(self, delay: float) -> float:
        """Bound a server-requested wait by ``max_delay`` when one is set."""
        if self.max_delay is not None:
            return min(delay, self.max_delay)
        return delay

    def apply_jitter(self, delay: float, rng: random.Random | None = None) -> float:
        if self.jitter <= 0:
            return delay
        spread = delay * self.jitter
        return max(0.0, delay + (rng or random).uniform(-spread, spread))

    def schedule(self, retries: int) -> list[float]:
        """Un-jittered delays for ``retries`` consecutive throttled responses."""
        delays: list[float] = []
        delay = self.initial_delay
        for _ in range(max(retries, 0)):
            delays.append(delay)
            delay = self.next_delay(delay)
        return delays


def parse_retry_after(value: str | None, now: datetime | None = None) -> float | None:
    """Parse a ``Retry-After`` header into seconds.

    Accepts delta-seconds (``"3"``) and HTTP-dates. Returns None when the
    header is absent, unparseable or non-finite so the caller falls back to
    its own delay.
    """
    if value is None:
        return None
    raw = value.strip()
    if not raw:
        return None
    try:
        seconds = float(raw)
    except ValueError:
        seconds = None
    if seconds is not None:
        if not math.isfinite(seconds):
            return None
        return max(seconds, 0.0)

    try:
        when = parsedate_to_datetime(raw)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    reference = now or datetime.now(UTC)
    return max((when - reference).total_seconds(), 0.0)
