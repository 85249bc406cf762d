"""Image extraction using FFmpeg."""

import asyncio
import logging
import shlex
import subprocess
from datetime import timedelta
from pathlib import Path

from ..config import settings
from ..exceptions import EncodingError, EncodingTimeout
from ..models import (
    IsoType,
    MediaProtocol,
    MediaSourceInfo,
    MediaStream,
    Video3DFormat,
    VideoType,
)
from ..storage.media import new_image_path, remove_partial
from .process import kill_process

logger = logging.getLogger(__name__)

# Containers whose demuxer name differs from the container name, or that
# probe unreliably without a hint.
INPUT_FORMATS = {
    "mkv": "matroska",
    "webm": "webm",
    "ts": "mpegts",
    "m2ts": "mpegts",
    "mts": "mpegts",
    "mpegts": "mpegts",
    "wmv": "asf",
    "asf": "asf",
    "vob": "mpeg",
    "mpg": "mpeg",
    "mpeg": "mpeg",
    "avi": "avi",
    "flv": "flv",
    "ogv": "ogg",
}

THREED_FILTERS = {
    Video3DFormat.HALF_SIDE_BY_SIDE: "crop=iw/2:ih:0:0,scale=iw*2:ih,setsar=1",
    Video3DFormat.FULL_SIDE_BY_SIDE: "crop=iw/2:ih:0:0,setsar=1",
    Video3DFormat.HALF_TOP_AND_BOTTOM: "crop=iw:ih/2:0:0,scale=iw:ih*2,setsar=1",
    Video3DFormat.FULL_TOP_AND_BOTTOM: "crop=iw:ih/2:0:0,setsar=1",
}


def get_input_format(container: str | None) -> str | None:
    """Map a container name to an ffmpeg demuxer hint."""
    if not container:
        return None
    return INPUT_FORMATS.get(container.lower())


def get_input_argument(input_path: str, media_source: MediaSourceInfo) -> str:
    """Build the ffmpeg -i argument for a media source."""
    is_bluray = (
        media_source.video_type is VideoType.BLU_RAY
        or media_source.iso_type is IsoType.BLU_RAY
    )
    if is_bluray and media_source.protocol is MediaProtocol.FILE:
        return f"bluray:{input_path}"
    return input_path


class FFmpegEncoder:
    """MediaEncoder backed by the ffmpeg command line tool."""

    def __init__(
        self,
        ffmpeg_path: str | None = None,
        timeout: float | None = None,
        quality: int | None = None,
    ):
        self.ffmpeg_path = ffmpeg_path or settings.ffmpeg_path
        self.timeout = timeout if timeout is not None else settings.extraction_timeout
        self.quality = quality if quality is not None else settings.jpeg_quality

    async def extract_embedded_image(
        self,
        input_path: str,
        container: str | None,
        media_source: MediaSourceInfo,
        stream: MediaStream,
        stream_index: int,
    ) -> str:
        """Write an embedded image stream as a JPEG."""
        self._check_input(input_path, media_source)
        args = self.build_embedded_image_args(input_path, container, media_source, stream_index)
        return await self._run(args, input_path)

    async def extract_frame(
        self,
        input_path: str,
        container: str | None,
        media_source: MediaSourceInfo,
        video_stream: MediaStream | None,
        threed_format: Video3DFormat | None,
        offset: timedelta,
    ) -> str:
        """Decode one frame at offset and write it as a JPEG."""
        if video_stream is None:
            raise EncodingError("No video stream to extract a frame from", input_path=input_path)

        self._check_input(input_path, media_source)
        args = self.build_frame_args(
            input_path, container, media_source, video_stream, threed_format, offset
        )
        return await self._run(args, input_path)

    def build_embedded_image_args(
        self,
        input_path: str,
        container: str | None,
        media_source: MediaSourceInfo,
        stream_index: int,
    ) -> list[str]:
        return [
            *self._input_args(input_path, container, media_source),
            "-map", f"0:{stream_index}",
            "-an",
            "-frames:v", "1",
            "-q:v", str(self.quality),
        ]

    def build_frame_args(
        self,
        input_path: str,
        container: str | None,
        media_source: MediaSourceInfo,
        video_stream: MediaStream,
        threed_format: Video3DFormat | None,
        offset: timedelta,
    ) -> list[str]:
        # Seek before -i so ffmpeg jumps by keyframe instead of decoding up to offset
        args = ["-ss", f"{offset.total_seconds():.3f}"]
        args += self._input_args(input_path, container, media_source)
        args += ["-map", f"0:{video_stream.index}", "-an"]

        vf = THREED_FILTERS.get(threed_format) if threed_format else None
        if vf:
            args += ["-vf", vf]

        args += ["-frames:v", "1", "-q:v", str(self.quality)]
        return args

    def _input_args(
        self,
        input_path: str,
        container: str | None,
        media_source: MediaSourceInfo,
    ) -> list[str]:
        args = []
        input_format = get_input_format(container)
        if input_format:
            args += ["-f", input_format]
        args += ["-i", get_input_argument(input_path, media_source)]
        return args

    def _check_input(self, input_path: str, media_source: MediaSourceInfo) -> None:
        if not input_path:
            raise EncodingError("No input path given", input_path=input_path)
        if media_source.protocol is MediaProtocol.FILE and not Path(input_path).exists():
            raise EncodingError(f"Input file not found: {input_path}", input_path=input_path)

    async def _run(self, args: list[str], input_path: str) -> str:
        """Run ffmpeg into a fresh output file and return its path."""
        output_path = new_image_path()
        cmd = [self.ffmpeg_path, "-hide_banner", "-loglevel", "error", *args, "-y", str(output_path)]
        logger.debug("Running %s", shlex.join(cmd))

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise EncodingError(f"FFmpeg not found: {self.ffmpeg_path}", input_path=input_path) from e

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            await kill_process(process)
            remove_partial(output_path)
            raise EncodingTimeout(
                f"FFmpeg timed out after {self.timeout}s on {input_path}",
                input_path=input_path,
            )
        except asyncio.CancelledError:
            await kill_process(process)
            remove_partial(output_path)
            raise

        if process.returncode != 0:
            remove_partial(output_path)
            message = (stderr or b"").decode("utf-8", errors="replace").strip()
            raise EncodingError(
                f"FFmpeg failed on {input_path} (exit {process.returncode}): {message[-500:]}",
                input_path=input_path,
                returncode=process.returncode,
                stderr=message,
            )

        if not output_path.exists() or output_path.stat().st_size == 0:
            remove_partial(output_path)
            raise EncodingError(f"FFmpeg produced no image for {input_path}", input_path=input_path)

        return str(output_path)
