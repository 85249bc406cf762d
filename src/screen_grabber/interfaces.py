"""Interfaces (Protocols) for dependency injection and testing."""

from datetime import timedelta
from typing import Protocol

from .models import MediaSourceInfo, MediaStream, Video, Video3DFormat


class MediaEncoder(Protocol):
    """Protocol for the decoding engine that writes images out of videos.

    Both operations return the path of a local JPEG file. Failures raise
    EncodingError; cancellation surfaces as asyncio.CancelledError.
    """

    async def extract_embedded_image(
        self,
        input_path: str,
        container: str | None,
        media_source: MediaSourceInfo,
        stream: MediaStream,
        stream_index: int,
    ) -> str:
        """Write an embedded image stream (cover art) to a file."""
        ...

    async def extract_frame(
        self,
        input_path: str,
        container: str | None,
        media_source: MediaSourceInfo,
        video_stream: MediaStream | None,
        threed_format: Video3DFormat | None,
        offset: timedelta,
    ) -> str:
        """Decode a single video frame at offset and write it to a file."""
        ...


class MetadataSource(Protocol):
    """Protocol for building fully probed video items."""

    async def get_video(self, path: str) -> Video:
        """Probe a media file and return its video item."""
        ...
