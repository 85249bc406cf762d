"""Shared fixtures: a recording fake encoder and video item builders."""

import asyncio
from datetime import timedelta

import pytest

from screen_grabber.config import settings
from screen_grabber.models import (
    MediaSourceInfo,
    MediaStream,
    MediaStreamType,
    Video,
    Video3DFormat,
)


class FakeEncoder:
    """MediaEncoder that records calls instead of running ffmpeg."""

    def __init__(self, result: str = "/tmp/out.jpg", error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls: list[tuple] = []

    async def extract_embedded_image(
        self,
        input_path: str,
        container: str | None,
        media_source: MediaSourceInfo,
        stream: MediaStream,
        stream_index: int,
    ) -> str:
        self.calls.append(("embedded", input_path, container, media_source, stream, stream_index))
        if self.error:
            raise self.error
        return self.result

    async def extract_frame(
        self,
        input_path: str,
        container: str | None,
        media_source: MediaSourceInfo,
        video_stream: MediaStream | None,
        threed_format: Video3DFormat | None,
        offset: timedelta,
    ) -> str:
        self.calls.append(("frame", input_path, container, media_source, video_stream, threed_format, offset))
        if self.error:
            raise self.error
        return self.result


class BlockingEncoder(FakeEncoder):
    """Encoder whose calls never finish until cancelled."""

    def __init__(self):
        super().__init__()
        self.cancelled = False

    async def extract_frame(self, *args) -> str:
        self.calls.append(("frame", *args))
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return self.result


def image_stream(index: int, comment: str | None = None) -> MediaStream:
    return MediaStream(type=MediaStreamType.EMBEDDED_IMAGE, index=index, comment=comment)


def video_stream(index: int = 0) -> MediaStream:
    return MediaStream(type=MediaStreamType.VIDEO, index=index, codec="h264", is_default=True)


def audio_stream(index: int = 1) -> MediaStream:
    return MediaStream(type=MediaStreamType.AUDIO, index=index, codec="aac")


def make_video(**overrides) -> Video:
    """A complete, eligible local video unless overridden."""
    fields = dict(
        path="/media/movies/movie.mkv",
        container="mkv",
        runtime_ticks=100_000_000,
        default_video_stream_index=0,
        media_streams=[video_stream(0), audio_stream(1)],
    )
    fields.update(overrides)
    return Video(**fields)


@pytest.fixture
def fake_encoder():
    return FakeEncoder()


@pytest.fixture
def output_dir(tmp_path, monkeypatch):
    """Point extracted image output at a temporary directory."""
    out = tmp_path / "images"
    monkeypatch.setattr(settings, "output_dir", out)
    return out
