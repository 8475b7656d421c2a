"""Pydantic records and request/response schemas.

Centralised here so that the resolver, the router and the operator script
share one definition of the canonical content record. Route files import
from here and do not define their own BaseModel subclasses.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Resolution inputs
# ---------------------------------------------------------------------------


class MediaReference(BaseModel):
    """One post/reel identified by its shortcode. Immutable once normalised."""

    model_config = ConfigDict(frozen=True)

    raw_url: str
    canonical_url: str
    shortcode: str
    platform_tag: str


class AntiBotToken(BaseModel):
    """CSRF-equivalent capability required by the structured-query endpoint."""

    model_config = ConfigDict(frozen=True)

    value: str
    acquired_at: datetime
    source: Literal["caller-supplied", "fetched"]


# ---------------------------------------------------------------------------
# Canonical content record
# ---------------------------------------------------------------------------


class ContentUser(BaseModel):
    id: str = ""
    username: str = ""
    fullname: str = ""
    is_verified: bool = False
    total_media: int = 0
    total_followers: int = 0


class ContentVideo(BaseModel):
    id: str = ""
    duration: float = Field(default=0.0, ge=0.0)
    thumbnail_url: str = ""
    video_url: str = ""
    views: int = 0
    plays: int = 0
    timestamp: int = 0
    caption: str = ""


class ScoredContent(BaseModel):
    """Canonical output record. ``score`` is set only on the scoring path."""

    model_config = ConfigDict(populate_by_name=True)

    source_url: str = Field(alias="sourceUrl")
    score: float | None = Field(default=None, ge=0.0, le=10.0)
    user: ContentUser
    video: ContentVideo

    def to_output(self) -> dict[str, Any]:
        """Serialise to the wire shape, omitting ``score`` when unscored."""
        payload = self.model_dump(by_alias=True)
        if payload.get("score") is None:
            payload.pop("score", None)
        return payload


# ---------------------------------------------------------------------------
# Per-item results
# ---------------------------------------------------------------------------


class ResolveOk(BaseModel):
    ok: Literal[True] = True
    url: str
    record: ScoredContent


class ResolveErr(BaseModel):
    ok: Literal[False] = False
    url: str
    kind: str
    message: str = ""


ResolveResult = ResolveOk | ResolveErr


# ---------------------------------------------------------------------------
# HTTP surface
# ---------------------------------------------------------------------------


class ResolveRequest(BaseModel):
    urls: list[str] = Field(..., min_length=1, max_length=50)
    csrf_token: str | None = None
    scored: bool = True

    @field_validator("urls")
    @classmethod
    def validate_urls(cls, v: list[str]) -> list[str]:
        cleaned = [u.strip() for u in v]
        if any(not u for u in cleaned):
            raise ValueError("urls must not contain empty entries")
        return cleaned

    @field_validator("csrf_token")
    @classmethod
    def validate_csrf_token(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None


class ItemError(BaseModel):
    url: str
    kind: str
    message: str = ""


class ResolveResponse(BaseModel):
    data: list[dict[str, Any]]
    errors: list[ItemError] = Field(default_factory=list)
    csrf_token: str
    success: bool = True


class ScoreRequest(BaseModel):
    timestamp: float
    duration: float = 0.0
    total_media: float = 0.0
    total_followers: float = 0.0
    views: float = 0.0
    plays: float = 0.0
    now: datetime | None = None


class ScoreResponse(BaseModel):
    score: float
