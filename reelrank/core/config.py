from __future__ import annotations

import math

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from reelrank.core.retry import BackoffPolicy
from reelrank.services.relevance import ScoringPolicy

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENVIRONMENT: str = "local"
    LOG_LEVEL: str = "INFO"

    # Shared secret for the HTTP surface. Unset = open (local dev).
    INTERNAL_API_TOKEN: str | None = None

    # === Instagram upstream ===
    INSTAGRAM_BASE_URL: str = "https://www.instagram.com"
    INSTAGRAM_GRAPHQL_URL: str = "https://www.instagram.com/graphql/query"
    # Query-shape identifier; must change together with the mapper fields.
    INSTAGRAM_DOC_ID: str = "9510064595728286"
    INSTAGRAM_CSRF_COOKIE: str = "csrftoken"
    INSTAGRAM_SOURCE_URL_TEMPLATE: str = "https://instagram.com/reel/{shortcode}"

    # === Fetch retry / backoff ===
    INSTAGRAM_FETCH_RETRIES: int = Field(default=5, ge=0, le=10)
    INSTAGRAM_FETCH_INITIAL_DELAY_MS: int = Field(default=1000, ge=50, le=60_000)
    INSTAGRAM_BACKOFF_MULTIPLIER: float = Field(default=2.0, ge=1.0, le=10.0)
    INSTAGRAM_BACKOFF_MAX_DELAY_MS: int | None = Field(default=None, ge=50)
    INSTAGRAM_BACKOFF_JITTER: float = Field(default=0.0, ge=0.0, le=1.0)

    # === Outbound HTTP ===
    HTTP_TIMEOUT: float = Field(default=15.0, gt=0.0, le=120.0)
    HTTP_PROXY_URL: str | None = None
    HTTP_USER_AGENT: str = _DEFAULT_USER_AGENT

    FANOUT_MAX_CONCURRENCY: int = Field(default=16, ge=1, le=256)

    # === Scoring ceilings ===
    SCORE_MAX_VIEWS: float = 50_000_000
    SCORE_MAX_DURATION: float = 180
    SCORE_MAX_TOTAL_POSTS: float = 1000
    SCORE_MAX_FOLLOWERS: float = 50_000_000
    SCORE_MAX_AGE_HOURS: float = 168
    SCORE_MAX_PLAYS: float = 50_000_000

    # === Scoring weights (must sum to 1.0) ===
    SCORE_WEIGHT_AGE: float = 0.25
    SCORE_WEIGHT_VIEWS: float = 0.20
    SCORE_WEIGHT_DURATION: float = 0.15
    SCORE_WEIGHT_PLAYS: float = 0.15
    SCORE_WEIGHT_TOTAL_POSTS: float = 0.10
    SCORE_WEIGHT_FOLLOWERS: float = 0.15

    @field_validator(
        "SCORE_MAX_VIEWS",
        "SCORE_MAX_DURATION",
        "SCORE_MAX_TOTAL_POSTS",
        "SCORE_MAX_FOLLOWERS",
        "SCORE_MAX_AGE_HOURS",
        "SCORE_MAX_PLAYS",
    )
    @classmethod
    def validate_ceilings(cls, v: float) -> float:
        """Ceilings are denominators; they must be finite and positive."""
        if not math.isfinite(v) or v <= 0:
            raise ValueError("Scoring ceilings must be finite and > 0")
        return v

    @field_validator(
        "SCORE_WEIGHT_AGE",
        "SCORE_WEIGHT_VIEWS",
        "SCORE_WEIGHT_DURATION",
        "SCORE_WEIGHT_PLAYS",
        "SCORE_WEIGHT_TOTAL_POSTS",
        "SCORE_WEIGHT_FOLLOWERS",
    )
    @classmethod
    def validate_weight(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("Scoring weights must be between 0.0 and 1.0")
        return v

    @model_validator(mode="after")
    def validate_weight_sum(self) -> Settings:
        """Weights must sum to 1.0 so the final score stays on a 0-10 scale."""
        total = (
            self.SCORE_WEIGHT_AGE
            + self.SCORE_WEIGHT_VIEWS
            + self.SCORE_WEIGHT_DURATION
            + self.SCORE_WEIGHT_PLAYS
            + self.SCORE_WEIGHT_TOTAL_POSTS
            + self.SCORE_WEIGHT_FOLLOWERS
        )
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Scoring weights must sum to 1.0 (got {total:.6f})")
        return self

    def scoring_policy(self) -> ScoringPolicy:
        return ScoringPolicy(
            max_views=self.SCORE_MAX_VIEWS,
            max_duration=self.SCORE_MAX_DURATION,
            max_total_posts=self.SCORE_MAX_TOTAL_POSTS,
            max_followers=self.SCORE_MAX_FOLLOWERS,
            max_age_hours=self.SCORE_MAX_AGE_HOURS,
            max_plays=self.SCORE_MAX_PLAYS,
            weight_age=self.SCORE_WEIGHT_AGE,
            weight_views=self.SCORE_WEIGHT_VIEWS,
            weight_duration=self.SCORE_WEIGHT_DURATION,
            weight_plays=self.SCORE_WEIGHT_PLAYS,
            weight_total_posts=self.SCORE_WEIGHT_TOTAL_POSTS,
            weight_followers=self.SCORE_WEIGHT_FOLLOWERS,
        )

    def backoff_policy(self) -> BackoffPolicy:
        max_delay = (
            self.INSTAGRAM_BACKOFF_MAX_DELAY_MS / 1000.0
            if self.INSTAGRAM_BACKOFF_MAX_DELAY_MS is not None
            else None
        )
        return BackoffPolicy(
            initial_delay=self.INSTAGRAM_FETCH_INITIAL_DELAY_MS / 1000.0,
            multiplier=self.INSTAGRAM_BACKOFF_MULTIPLIER,
            max_delay=max_delay,
            jitter=self.INSTAGRAM_BACKOFF_JITTER,
        )


settings = Settings()
