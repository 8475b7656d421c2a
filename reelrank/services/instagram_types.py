"""Typed view of the upstream ``xdt_shortcode_media`` node.

Every field is optional with an explicit default, and every validator is
lenient: numbers may arrive as strings, nested objects may be null or the
wrong type. Upstream schema drift therefore surfaces here as defaulted
values instead of exceptions deep in the mapper.
"""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_int(value: object) -> int:
    """Safely coerce any numeric-like object to an integer."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        if isinstance(value, str):
            value = value.replace(",", "").strip()
            if not value:
                return 0
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return int(number)


def _as_float(value: object) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value.strip() if isinstance(value, str) else value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _as_str(value: object) -> str:
    if value is None or isinstance(value, dict | list):
        return ""
    return str(value)


def _as_dict(value: object) -> dict:
    return value if isinstance(value, dict) else {}


class _UpstreamModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class CountEdge(_UpstreamModel):
    count: int = 0

    @field_validator("count", mode="before")
    @classmethod
    def coerce_count(cls, v: object) -> int:
        return _as_int(v)


class CaptionNode(_UpstreamModel):
    text: str = ""

    @field_validator("text", mode="before")
    @classmethod
    def coerce_text(cls, v: object) -> str:
        return _as_str(v)


class CaptionEdge(_UpstreamModel):
    node: CaptionNode = Field(default_factory=CaptionNode)

    @field_validator("node", mode="before")
    @classmethod
    def coerce_node(cls, v: object) -> dict:
        return _as_dict(v)


class CaptionEdges(_UpstreamModel):
    edges: list[CaptionEdge] = Field(default_factory=list)

    @field_validator("edges", mode="before")
    @classmethod
    def coerce_edges(cls, v: object) -> list:
        if not isinstance(v, list):
            return []
        return [edge for edge in v if isinstance(edge, dict)]

    @property
    def first_text(self) -> str:
        return self.edges[0].node.text if self.edges else ""


class MediaOwner(_UpstreamModel):
    id: str = ""
    username: str = ""
    full_name: str = ""
    is_verified: bool = False
    edge_owner_to_timeline_media: CountEdge = Field(default_factory=CountEdge)
    edge_followed_by: CountEdge = Field(default_factory=CountEdge)

    @field_validator("id", "username", "full_name", mode="before")
    @classmethod
    def coerce_strings(cls, v: object) -> str:
        return _as_str(v)

    @field_validator("is_verified", mode="before")
    @classmethod
    def coerce_verified(cls, v: object) -> bool:
        return v is True or (isinstance(v, str) and v.strip().lower() == "true")

    @field_validator("edge_owner_to_timeline_media", "edge_followed_by", mode="before")
    @classmethod
    def coerce_edges(cls, v: object) -> dict:
        return _as_dict(v)


class ShortcodeMedia(_UpstreamModel):
    shortcode: str = ""
    taken_at_timestamp: int = 0
    video_duration: float = 0.0
    display_url: str = ""
    video_url: str = ""
    video_view_count: int = 0
    video_play_count: int = 0
    owner: MediaOwner = Field(default_factory=MediaOwner)
    edge_media_to_caption: CaptionEdges = Field(default_factory=CaptionEdges)

    @field_validator("shortcode", "display_url", "video_url", mode="before")
    @classmethod
    def coerce_strings(cls, v: object) -> str:
        return _as_str(v)

    @field_validator("taken_at_timestamp", "video_view_count", "video_play_count", mode="before")
    @classmethod
    def coerce_ints(cls, v: object) -> int:
        return _as_int(v)

    @field_validator("video_duration", mode="before")
    @classmethod
    def coerce_duration(cls, v: object) -> float:
        return max(_as_float(v), 0.0)

    @field_validator("owner", "edge_media_to_caption", mode="before")
    @classmethod
    def coerce_nested(cls, v: object) -> dict:
        return _as_dict(v)
