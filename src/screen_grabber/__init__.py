"""Screen Grabber - thumbnail extraction for local video files."""

__version__ = "0.1.0"

from .exceptions import EncodingError, EncodingTimeout, ProbeError
from .interfaces import MediaEncoder, MetadataSource
from .models import ImageExtractionResult, MediaStream, Video
from .provider import VideoImageProvider

__all__ = [
    "EncodingError",
    "EncodingTimeout",
    "ProbeError",
    "MediaEncoder",
    "MetadataSource",
    "ImageExtractionResult",
    "MediaStream",
    "Video",
    "VideoImageProvider",
]
