"""Encoding module for probing videos and extracting images with FFmpeg."""

from .ffmpeg import FFmpegEncoder
from .probe import FFprobeMetadataSource

__all__ = [
    "FFmpegEncoder",
    "FFprobeMetadataSource",
]
