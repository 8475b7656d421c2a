"""Relevance/quality scoring for short-video posts.

Ranks candidate posts against each other on a 0-10 scale from six signals:
recency, views, plays, duration, the creator's post count and follower count.
Each signal is min-max normalised against a fixed ceiling and combined with
fixed weights. Followers use a log scale because follower counts are
heavy-tailed; on a linear scale nearly every large account would saturate.

Scoring never raises. A malformed signal degrades the post to 0 so that one
bad upstream record cannot abort a whole resolution batch.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

import structlog

from reelrank.core.errors import ScoringDegraded
from reelrank.core.metrics import relevance_score_degraded_total

logger = structlog.get_logger(__name__)

_SECONDS_PER_HOUR = 3600.0


@dataclass(frozen=True)
class ScoringPolicy:
    """Ceilings (normalisation denominators) and weights. Weights sum to 1.0."""

    max_views: float = 50_000_000
    max_duration: float = 180
    max_total_posts: float = 1000
    max_followers: float = 50_000_000
    max_age_hours: float = 168
    max_plays: float = 50_000_000

    weight_age: float = 0.25
    weight_views: float = 0.20
    weight_duration: float = 0.15
    weight_plays: float = 0.15
    weight_total_posts: float = 0.10
    weight_followers: float = 0.15


@dataclass(frozen=True)
class ScoreComponents:
    """Per-signal values after normalisation, each in [0, 1]."""

    age: float
    views: float
    duration: float
    plays: float
    total_posts: float
    followers: float


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return min(max(value, low), high)


def _signal(name: str, value: object) -> float:
    """Coerce one scoring input to a finite float or raise ScoringDegraded."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.replace(",", "").strip())
        except ValueError as exc:
            raise ScoringDegraded(f"{name} is not numeric: {value!r}") from exc
    else:
        raise ScoringDegraded(f"{name} is not numeric: {type(value).__name__}")
    if not math.isfinite(number):
        raise ScoringDegraded(f"{name} is not finite: {number}")
    return number


def _duration_signal(value: object) -> float:
    """Duration defaults to 0 when missing or malformed instead of degrading."""
    try:
        return _signal("duration", value)
    except ScoringDegraded:
        return 0.0


def _epoch_seconds(now: datetime | float | int | None) -> float:
    if now is None:
        return datetime.now(UTC).timestamp()
    if isinstance(now, datetime):
        if now.tzinfo is None:
            now = now.replace(tzinfo=UTC)
        return now.timestamp()
    return _signal("now", now)


def _round_half_up(value: float, places: int = 2) -> float:
    factor = 10**places
    return math.floor(value * factor + 0.5) / factor


class RelevanceScorer:
    """Deterministic scorer for a given ``now``."""

    def __init__(self, policy: ScoringPolicy | None = None) -> None:
        self.policy = policy or ScoringPolicy()

    def components(
        self,
        timestamp: object,
        duration: object,
        total_media: object,
        total_followers: object,
        views: object,
        plays: object,
        now: datetime | float | int | None = None,
    ) -> ScoreComponents:
        """Normalise every signal into [0, 1]. Raises ScoringDegraded on bad input."""
        p = self.policy
        age_hours = (_epoch_seconds(now) - _signal("timestamp", timestamp)) / _SECONDS_PER_HOUR
        followers = max(_signal("total_followers", total_followers), 0.0)

        return ScoreComponents(
            # Newer is better; anything older than the ceiling contributes 0.
            age=clamp(1 - age_hours / p.max_age_hours),
            views=clamp(_signal("views", views) / p.max_views),
            duration=clamp(_duration_signal(duration) / p.max_duration),
            plays=clamp(_signal("plays", plays) / p.max_plays),
            total_posts=clamp(_signal("total_media", total_media) / p.max_total_posts),
            followers=clamp(math.log10(followers + 1) / math.log10(p.max_followers + 1)),
        )

    def weighted_sum(self, parts: ScoreComponents) -> float:
        p = self.policy
        return (
            parts.age * p.weight_age
            + parts.views * p.weight_views
            + parts.duration * p.weight_duration
            + parts.plays * p.weight_plays
            + parts.total_posts * p.weight_total_posts
            + parts.followers * p.weight_followers
        )

    def score(
        self,
        timestamp: object,
        duration: object,
        total_media: object,
        total_followers: object,
        views: object,
        plays: object,
        now: datetime | float | int | None = None,
    ) -> float:
        """Return the 0.00-10.00 score, or 0.0 if any signal is unusable."""
        try:
            parts = self.components(
                timestamp, duration, total_media, total_followers, views, plays, now=now
            )
            raw = self.weighted_sum(parts) * 10
        except (ScoringDegraded, ArithmeticError, ValueError, TypeError) as exc:
            relevance_score_degraded_total.inc()
            logger.warning(
                "relevance.degraded",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return 0.0
        return clamp(_round_half_up(raw), 0.0, 10.0)

    def explain(self, *args, **kwargs) -> dict[str, float]:
        """Component breakdown for debugging ranking decisions."""
        return asdict(self.components(*args, **kwargs))


_DEFAULT_SCORER = RelevanceScorer()


def score_instagram_post(
    timestamp: object,
    duration: object,
    total_media: object,
    total_followers: object,
    views: object,
    plays: object,
    now: datetime | float | int | None = None,
) -> float:
    """Score with the default ceilings and weights."""
    return _DEFAULT_SCORER.score(
        timestamp, duration, total_media, total_followers, views, plays, now=now
    )
