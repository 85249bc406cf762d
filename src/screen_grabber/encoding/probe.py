"""Video metadata using FFprobe."""

import asyncio
import json
import logging
import re
import subprocess
from pathlib import Path
from typing import Any

from ..config import settings
from ..exceptions import ProbeError
from ..models import (
    MediaStream,
    MediaStreamType,
    Video,
    Video3DFormat,
    VideoType,
    infer_protocol,
    seconds_to_ticks,
)
from .process import kill_process

logger = logging.getLogger(__name__)

CODEC_TYPES = {
    "audio": MediaStreamType.AUDIO,
    "video": MediaStreamType.VIDEO,
    "subtitle": MediaStreamType.SUBTITLE,
    "data": MediaStreamType.DATA,
}

THREED_TOKENS = {
    "hsbs": Video3DFormat.HALF_SIDE_BY_SIDE,
    "fsbs": Video3DFormat.FULL_SIDE_BY_SIDE,
    "sbs": Video3DFormat.HALF_SIDE_BY_SIDE,
    "htab": Video3DFormat.HALF_TOP_AND_BOTTOM,
    "ftab": Video3DFormat.FULL_TOP_AND_BOTTOM,
    "tab": Video3DFormat.HALF_TOP_AND_BOTTOM,
    "mvc": Video3DFormat.MVC,
}


def parse_stream(raw: dict[str, Any]) -> MediaStream | None:
    """Convert one ffprobe stream entry, or None for unsupported types."""
    disposition = raw.get("disposition") or {}
    tags = raw.get("tags") or {}
    codec_type = raw.get("codec_type", "")

    if codec_type == "video" and disposition.get("attached_pic"):
        stream_type = MediaStreamType.EMBEDDED_IMAGE
    elif codec_type in CODEC_TYPES:
        stream_type = CODEC_TYPES[codec_type]
    else:
        return None

    # Tag keys vary in case between muxers
    lower_tags = {str(k).lower(): v for k, v in tags.items()}

    return MediaStream(
        type=stream_type,
        index=int(raw.get("index", 0)),
        comment=lower_tags.get("comment"),
        codec=raw.get("codec_name"),
        width=raw.get("width"),
        height=raw.get("height"),
        is_default=bool(disposition.get("default")),
    )


def find_default_video_stream(streams: list[MediaStream]) -> int | None:
    """Index of the default video stream, falling back to the first one."""
    video_streams = [s for s in streams if s.type == MediaStreamType.VIDEO]
    if not video_streams:
        return None
    for stream in video_streams:
        if stream.is_default:
            return stream.index
    return video_streams[0].index


def normalize_container(format_name: str | None, path: str) -> str | None:
    """Turn an ffprobe format_name list into a single container name."""
    if not format_name:
        return None

    names = format_name.split(",")
    suffix = Path(path).suffix.lower().lstrip(".")

    if "matroska" in names:
        return "webm" if suffix == "webm" else "mkv"
    if suffix in names:
        return suffix
    if "mov" in names:
        return "mov"
    return names[0]


def detect_video_type(path: str) -> VideoType:
    """Detect disc structures and ISO images from the path."""
    p = Path(path)
    if p.is_dir():
        if (p / "BDMV").is_dir() or p.name.upper() == "BDMV":
            return VideoType.BLU_RAY
        if (p / "VIDEO_TS").is_dir() or p.name.upper() == "VIDEO_TS":
            return VideoType.DVD
    if p.suffix.lower() == ".iso":
        return VideoType.ISO
    return VideoType.VIDEO_FILE


def parse_3d_format(path: str) -> Video3DFormat | None:
    """Read a 3D format from file name tokens like movie.3d.hsbs.mkv."""
    tokens = re.split(r"[.\s_\-\[\]()]+", Path(path).stem.lower())
    for token in tokens:
        if token in THREED_TOKENS:
            return THREED_TOKENS[token]
    return None


def build_video(path: str, data: dict[str, Any]) -> Video:
    """Build a complete Video from ffprobe JSON output."""
    streams = [s for s in (parse_stream(raw) for raw in data.get("streams", [])) if s]
    fmt = data.get("format") or {}

    runtime_ticks = None
    duration = fmt.get("duration")
    if duration:
        try:
            runtime_ticks = seconds_to_ticks(float(duration))
        except ValueError:
            logger.debug("Ignoring unparseable duration %r for %s", duration, path)

    return Video(
        path=path,
        protocol=infer_protocol(path),
        video_type=detect_video_type(path),
        container=normalize_container(fmt.get("format_name"), path),
        runtime_ticks=runtime_ticks,
        video_3d_format=parse_3d_format(path),
        default_video_stream_index=find_default_video_stream(streams),
        is_complete_media=True,
        media_streams=streams,
    )


class FFprobeMetadataSource:
    """MetadataSource that probes files with ffprobe."""

    def __init__(self, ffprobe_path: str | None = None, timeout: float | None = None):
        self.ffprobe_path = ffprobe_path or settings.ffprobe_path
        self.timeout = timeout if timeout is not None else settings.probe_timeout

    async def get_video(self, path: str) -> Video:
        data = await self._run_ffprobe(path)
        return build_video(path, data)

    async def _run_ffprobe(self, path: str) -> dict[str, Any]:
        input_arg = f"bluray:{path}" if detect_video_type(path) is VideoType.BLU_RAY else path
        cmd = [
            self.ffprobe_path,
            "-v", "error",
            "-show_streams",
            "-show_format",
            "-of", "json",
            input_arg,
        ]
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise ProbeError(path, f"ffprobe not found: {self.ffprobe_path}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            await kill_process(process)
            raise ProbeError(path, f"timed out after {self.timeout}s")
        except asyncio.CancelledError:
            await kill_process(process)
            raise

        if process.returncode != 0:
            message = (stderr or b"").decode("utf-8", errors="replace").strip()
            raise ProbeError(path, message or f"ffprobe exited with {process.returncode}")

        try:
            return json.loads(stdout)
        except json.JSONDecodeError as e:
            raise ProbeError(path, f"invalid ffprobe output: {e}") from e
