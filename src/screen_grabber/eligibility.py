"""Decide whether an item is worth pulling an image out of."""

import logging

from .models import BaseItem, Video, VideoType

logger = logging.getLogger(__name__)


def supports(item: BaseItem) -> bool:
    """Whether the item is a local, fully probed, real video."""
    if item.is_shortcut:
        return False

    # Seeking needs local file access
    if not item.is_file_protocol:
        return False

    if isinstance(item, Video) and not item.is_placeholder and item.is_complete_media:
        return True

    return False


def can_extract(video: Video) -> bool:
    """Per-request check run before any encoder call."""
    if video.is_placeholder:
        return False

    # DVD structure and timing are unreliable here
    if video.video_type is VideoType.DVD:
        return False

    if video.default_video_stream_index is None:
        logger.info(
            "Skipping image extraction due to missing default video stream index for %s.",
            video.path or "",
        )
        return False

    return True
