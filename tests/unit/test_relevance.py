"""Unit tests for the relevance scorer."""

from datetime import UTC, datetime

import pytest

from reelrank.services.relevance import (
    RelevanceScorer,
    ScoringPolicy,
    clamp,
    score_instagram_post,
)

NOW = 1_700_000_000
HOUR = 3600


def test_reference_example_is_deterministic_and_in_range() -> None:
    """A fresh post with mid-range signals lands strictly inside (0, 10)."""
    first = score_instagram_post(NOW, 30, 500, 100_000, 1_000_000, 500_000, now=NOW)
    second = score_instagram_post(NOW, 30, 500, 100_000, 1_000_000, 500_000, now=NOW)

    assert 0 < first < 10
    assert first == second
    assert first == 4.28


def test_score_has_two_decimal_places() -> None:
    score = score_instagram_post(NOW - 5 * HOUR, 47, 123, 98_765, 4_321_000, 1_234_567, now=NOW)

    assert round(score, 2) == score


def test_now_accepts_datetime() -> None:
    now_dt = datetime.fromtimestamp(NOW, tz=UTC)

    assert score_instagram_post(NOW, 30, 500, 100_000, 1_000_000, 500_000, now=now_dt) == 4.28


@pytest.mark.parametrize(
    "signals",
    [
        (NOW, -500, 500, 0, 0, 0),
        (NOW, 30, 500, 0, 0, 0),
        (NOW, 10_000, 10**9, 10**12, 10**12, 10**12),
        (NOW + 100 * HOUR, 30, 500, 100, 100, 100),
        (0, 30, -5, -10, -1000, -1000),
        (NOW, 0, 0, -5, 0, 0),
    ],
)
def test_score_is_always_clamped(signals) -> None:
    score = score_instagram_post(*signals, now=NOW)

    assert 0.0 <= score <= 10.0


def test_maxed_out_signals_score_ten() -> None:
    assert score_instagram_post(NOW, 180, 1000, 50_000_000, 50_000_000, 50_000_000, now=NOW) == 10.0


def test_score_is_monotonic_in_views() -> None:
    scores = [
        score_instagram_post(NOW - HOUR, 30, 500, 100_000, views, 500_000, now=NOW)
        for views in (0, 1_000, 1_000_000, 10_000_000, 49_000_000)
    ]

    assert scores == sorted(scores)


def test_fresh_post_beats_week_old_post_on_age() -> None:
    scorer = RelevanceScorer()
    fresh = scorer.components(NOW, 30, 500, 100_000, 1_000, 1_000, now=NOW)
    stale = scorer.components(NOW - 200 * HOUR, 30, 500, 100_000, 1_000, 1_000, now=NOW)

    assert fresh.age == 1.0
    assert stale.age == 0.0
    assert scorer.score(NOW, 30, 500, 100_000, 1_000, 1_000, now=NOW) > scorer.score(
        NOW - 200 * HOUR, 30, 500, 100_000, 1_000, 1_000, now=NOW
    )


def test_followers_use_log_scale() -> None:
    """A 10k account is far from saturated even though 10k is tiny vs the ceiling linearly."""
    parts = RelevanceScorer().components(NOW, 0, 0, 10_000, 0, 0, now=NOW)

    assert 0.5 < parts.followers < 0.6


@pytest.mark.parametrize("bad", ["not-a-number", None, float("nan"), object()])
def test_malformed_signal_degrades_to_zero(bad) -> None:
    assert score_instagram_post(NOW, 30, 500, 100_000, bad, 500_000, now=NOW) == 0.0


def test_malformed_duration_defaults_to_zero_instead_of_degrading() -> None:
    with_garbage = score_instagram_post(NOW, "abc", 500, 100_000, 1_000_000, 500_000, now=NOW)
    with_zero = score_instagram_post(NOW, 0, 500, 100_000, 1_000_000, 500_000, now=NOW)

    assert with_garbage == with_zero > 0


def test_numeric_strings_are_accepted() -> None:
    assert score_instagram_post(str(NOW), "30", "500", "100,000", "1000000", "500000", now=NOW) == 4.28


def test_custom_policy_changes_weights() -> None:
    age_only = ScoringPolicy(
        weight_age=1.0,
        weight_views=0.0,
        weight_duration=0.0,
        weight_plays=0.0,
        weight_total_posts=0.0,
        weight_followers=0.0,
    )
    scorer = RelevanceScorer(age_only)

    assert scorer.score(NOW - 84 * HOUR, 0, 0, 0, 0, 0, now=NOW) == 5.0


def test_explain_returns_components() -> None:
    breakdown = RelevanceScorer().explain(NOW, 90, 1000, 0, 0, 0, now=NOW)

    assert breakdown["duration"] == 0.5
    assert breakdown["total_posts"] == 1.0
    assert breakdown["followers"] == 0.0


def test_clamp_bounds() -> None:
    assert clamp(-1) == 0
    assert clamp(2) == 1
    assert clamp(0.3) == 0.3
