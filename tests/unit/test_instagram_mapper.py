"""Unit tests for mapping the raw media node into the canonical record."""

import pytest

from reelrank.core.errors import UnsupportedContentType
from reelrank.services.instagram_mapper import map_media, parse_shortcode_media

from .fakes import NOW, media_node


def test_full_payload_maps_every_field() -> None:
    record = map_media(media_node("Full1"))

    assert record.source_url == "https://instagram.com/reel/Full1"
    assert record.score is None
    assert record.user.model_dump() == {
        "id": "42",
        "username": "creator",
        "fullname": "Some Creator",
        "is_verified": True,
        "total_media": 500,
        "total_followers": 100_000,
    }
    assert record.video.model_dump() == {
        "id": "Full1",
        "duration": 30.5,
        "thumbnail_url": "https://cdn.example/Full1.jpg",
        "video_url": "https://cdn.example/Full1.mp4",
        "views": 1_000_000,
        "plays": 500_000,
        "timestamp": NOW - 3600,
        "caption": "first caption",
    }


def test_empty_caption_edges_yield_empty_caption() -> None:
    record = map_media(media_node(edge_media_to_caption={"edges": []}))

    assert record.video.caption == ""


def test_only_first_caption_edge_is_used() -> None:
    edges = [{"node": {"text": "one"}}, {"node": {"text": "two"}}]
    record = map_media(media_node(edge_media_to_caption={"edges": edges}))

    assert record.video.caption == "one"


def test_sparse_payload_defaults_instead_of_raising() -> None:
    record = map_media({"shortcode": "Sparse"})

    assert record.user.username == ""
    assert record.user.is_verified is False
    assert record.user.total_followers == 0
    assert record.video.duration == 0
    assert record.video.views == 0
    assert record.video.caption == ""


def test_null_and_malformed_nested_values_are_tolerated() -> None:
    payload = media_node(
        "Messy",
        owner={"id": 123456789, "edge_followed_by": None, "edge_owner_to_timeline_media": "x"},
        edge_media_to_caption={"edges": None},
        video_view_count="1,234",
        video_play_count=None,
        video_duration=-4,
        taken_at_timestamp="1700000000",
    )

    record = map_media(payload)

    assert record.user.id == "123456789"
    assert record.user.total_followers == 0
    assert record.user.total_media == 0
    assert record.video.views == 1234
    assert record.video.plays == 0
    assert record.video.duration == 0
    assert record.video.timestamp == 1_700_000_000
    assert record.video.caption == ""


def test_missing_shortcode_is_unsupported() -> None:
    with pytest.raises(UnsupportedContentType):
        map_media({"owner": {"username": "x"}})


def test_non_object_payload_is_unsupported() -> None:
    with pytest.raises(UnsupportedContentType):
        parse_shortcode_media(["not", "a", "node"])


def test_custom_source_url_template() -> None:
    record = map_media(media_node("T1"), "https://www.instagram.com/p/{shortcode}/")

    assert record.source_url == "https://www.instagram.com/p/T1/"


def test_output_shape_omits_score_when_unscored() -> None:
    output = map_media(media_node("Out1")).to_output()

    assert "score" not in output
    assert output["sourceUrl"] == "https://instagram.com/reel/Out1"
    assert set(output["user"]) == {
        "id",
        "username",
        "fullname",
        "is_verified",
        "total_media",
        "total_followers",
    }


def test_output_shape_includes_score_when_scored() -> None:
    output = map_media(media_node("Out2"), score=4.28).to_output()

    assert output["score"] == 4.28
