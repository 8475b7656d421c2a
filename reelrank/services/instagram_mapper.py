"""Map the raw Instagram media node into the canonical ScoredContent record."""

from __future__ import annotations

from pydantic import ValidationError

from reelrank.core.errors import UnsupportedContentType
from reelrank.models.schemas import ContentUser, ContentVideo, ScoredContent
from reelrank.services.instagram_types import ShortcodeMedia

DEFAULT_SOURCE_URL_TEMPLATE = "https://instagram.com/reel/{shortcode}"


def parse_shortcode_media(payload: object) -> ShortcodeMedia:
    """Validate the upstream node into its typed, defaulted form."""
    if not isinstance(payload, dict):
        raise UnsupportedContentType("Media payload is not an object")
    try:
        return ShortcodeMedia.model_validate(payload)
    except ValidationError as exc:
        raise UnsupportedContentType(f"Unexpected media payload shape: {exc}") from exc


def map_media(
    payload: object,
    source_url_template: str = DEFAULT_SOURCE_URL_TEMPLATE,
    score: float | None = None,
) -> ScoredContent:
    """
    Build the canonical record. Only ``shortcode`` is required; counters
    default to 0, strings to "" and a missing caption to "".
    """
    media = parse_shortcode_media(payload)
    if not media.shortcode:
        raise UnsupportedContentType("Media payload has no shortcode")

    owner = media.owner
    return ScoredContent(
        source_url=source_url_template.format(shortcode=media.shortcode),
        score=score,
        user=ContentUser(
            id=owner.id,
            username=owner.username,
            fullname=owner.full_name,
            is_verified=owner.is_verified,
            total_media=owner.edge_owner_to_timeline_media.count,
            total_followers=owner.edge_followed_by.count,
        ),
        video=ContentVideo(
            id=media.shortcode,
            duration=media.video_duration,
            thumbnail_url=media.display_url,
            video_url=media.video_url,
            views=media.video_view_count,
            plays=media.video_play_count,
            timestamp=media.taken_at_timestamp,
            caption=media.edge_media_to_caption.first_text,
        ),
    )
