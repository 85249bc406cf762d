"""Domain models for video items, their streams and extraction results."""

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from urllib.parse import urlparse

TICKS_PER_SECOND = 10_000_000


class VideoType(str, Enum):
    VIDEO_FILE = "VideoFile"
    ISO = "Iso"
    DVD = "Dvd"
    BLU_RAY = "BluRay"


class IsoType(str, Enum):
    DVD = "Dvd"
    BLU_RAY = "BluRay"


class Video3DFormat(str, Enum):
    HALF_SIDE_BY_SIDE = "HalfSideBySide"
    FULL_SIDE_BY_SIDE = "FullSideBySide"
    HALF_TOP_AND_BOTTOM = "HalfTopAndBottom"
    FULL_TOP_AND_BOTTOM = "FullTopAndBottom"
    MVC = "MVC"


class MediaProtocol(str, Enum):
    FILE = "File"
    HTTP = "Http"
    RTMP = "Rtmp"
    RTSP = "Rtsp"
    UDP = "Udp"
    RTP = "Rtp"
    FTP = "Ftp"


class MediaStreamType(str, Enum):
    AUDIO = "Audio"
    VIDEO = "Video"
    SUBTITLE = "Subtitle"
    EMBEDDED_IMAGE = "EmbeddedImage"
    DATA = "Data"
    LYRIC = "Lyric"


class ImageFormat(str, Enum):
    JPG = "Jpg"
    PNG = "Png"
    GIF = "Gif"
    BMP = "Bmp"
    WEBP = "Webp"


class ImageType(str, Enum):
    PRIMARY = "Primary"
    BACKDROP = "Backdrop"
    THUMB = "Thumb"
    LOGO = "Logo"


class ExtractionStrategy(str, Enum):
    EMBEDDED = "embedded"
    FRAME = "frame"


_SCHEME_PROTOCOLS = {
    "http": MediaProtocol.HTTP,
    "https": MediaProtocol.HTTP,
    "rtmp": MediaProtocol.RTMP,
    "rtsp": MediaProtocol.RTSP,
    "udp": MediaProtocol.UDP,
    "rtp": MediaProtocol.RTP,
    "ftp": MediaProtocol.FTP,
}


def infer_protocol(path: str | None) -> MediaProtocol | None:
    """Guess the access protocol of a path from its URL scheme."""
    if not path:
        return None
    scheme = urlparse(path).scheme.lower()
    # Single-letter schemes are Windows drive letters
    if len(scheme) > 1:
        if scheme == "file":
            return MediaProtocol.FILE
        return _SCHEME_PROTOCOLS.get(scheme, MediaProtocol.HTTP)
    return MediaProtocol.FILE


def ticks_to_timedelta(ticks: int) -> timedelta:
    """Convert 100ns ticks to a timedelta."""
    return timedelta(seconds=ticks / TICKS_PER_SECOND)


def seconds_to_ticks(seconds: float) -> int:
    """Convert seconds to whole 100ns ticks."""
    return round(seconds * TICKS_PER_SECOND)


@dataclass
class MediaStream:
    """One stream inside a media container."""

    type: MediaStreamType
    index: int
    comment: str | None = None
    codec: str | None = None
    width: int | None = None
    height: int | None = None
    is_default: bool = False


@dataclass
class BaseItem:
    """Any library item with a location."""

    path: str | None = None
    is_shortcut: bool = False
    protocol: MediaProtocol | None = None

    @property
    def path_protocol(self) -> MediaProtocol | None:
        return self.protocol if self.protocol is not None else infer_protocol(self.path)

    @property
    def is_file_protocol(self) -> bool:
        return self.path_protocol is MediaProtocol.FILE


@dataclass
class Video(BaseItem):
    """A video media file and the metadata known about it."""

    is_placeholder: bool = False
    video_type: VideoType = VideoType.VIDEO_FILE
    iso_type: IsoType | None = None
    container: str | None = None
    runtime_ticks: int | None = None
    video_3d_format: Video3DFormat | None = None
    default_video_stream_index: int | None = None
    is_complete_media: bool = True
    media_streams: list[MediaStream] = field(default_factory=list)

    def get_media_streams(self, stream_type: MediaStreamType | None = None) -> list[MediaStream]:
        """Streams in container order, optionally filtered by type."""
        if stream_type is None:
            return list(self.media_streams)
        return [s for s in self.media_streams if s.type == stream_type]


@dataclass(frozen=True)
class MediaSourceInfo:
    """Source description handed to the encoder for a single call."""

    video_type: VideoType
    iso_type: IsoType | None
    protocol: MediaProtocol


@dataclass(frozen=True)
class ImageExtractionResult:
    """Outcome of an image extraction request."""

    has_image: bool
    format: ImageFormat | None = None
    path: str | None = None
    protocol: MediaProtocol | None = None

    @classmethod
    def no_image(cls) -> "ImageExtractionResult":
        return cls(has_image=False)


@dataclass(frozen=True)
class ExtractionPlan:
    """How an image will be pulled out of a video."""

    strategy: ExtractionStrategy
    stream: MediaStream | None
    protocol: MediaProtocol
    offset: timedelta | None = None
