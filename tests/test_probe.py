"""ffprobe metadata source: turning probe JSON into video items."""

import asyncio
import json
from unittest.mock import patch

import pytest

from screen_grabber.encoding.probe import (
    FFprobeMetadataSource,
    build_video,
    detect_video_type,
    find_default_video_stream,
    normalize_container,
    parse_3d_format,
    parse_stream,
)
from screen_grabber.exceptions import ProbeError
from screen_grabber.models import MediaProtocol, MediaStreamType, Video3DFormat, VideoType

PROBE_OUTPUT = {
    "streams": [
        {"index": 0, "codec_type": "video", "codec_name": "h264", "width": 1920, "height": 1080,
         "disposition": {"default": 1, "attached_pic": 0}},
        {"index": 1, "codec_type": "audio", "codec_name": "aac", "disposition": {"default": 1}},
        {"index": 2, "codec_type": "subtitle", "codec_name": "subrip", "disposition": {}},
        {"index": 3, "codec_type": "video", "codec_name": "mjpeg", "width": 600, "height": 900,
         "disposition": {"attached_pic": 1}, "tags": {"COMMENT": "Cover (front)"}},
        {"index": 4, "codec_type": "attachment", "codec_name": "ttf"},
    ],
    "format": {"format_name": "matroska,webm", "duration": "5400.250000"},
}


class TestParseStream:
    def test_attached_picture_is_embedded_image(self):
        stream = parse_stream(PROBE_OUTPUT["streams"][3])
        assert stream.type is MediaStreamType.EMBEDDED_IMAGE
        assert stream.comment == "Cover (front)"
        assert stream.index == 3

    def test_regular_video(self):
        stream = parse_stream(PROBE_OUTPUT["streams"][0])
        assert stream.type is MediaStreamType.VIDEO
        assert stream.is_default is True
        assert (stream.width, stream.height) == (1920, 1080)

    def test_attachment_is_skipped(self):
        assert parse_stream(PROBE_OUTPUT["streams"][4]) is None


class TestDefaultVideoStream:
    def test_prefers_default_disposition(self):
        streams = [
            parse_stream({"index": 0, "codec_type": "video", "disposition": {"default": 0}}),
            parse_stream({"index": 1, "codec_type": "video", "disposition": {"default": 1}}),
        ]
        assert find_default_video_stream(streams) == 1

    def test_falls_back_to_first(self):
        streams = [
            parse_stream({"index": 2, "codec_type": "video"}),
            parse_stream({"index": 5, "codec_type": "video"}),
        ]
        assert find_default_video_stream(streams) == 2

    def test_cover_art_alone_is_not_a_video_stream(self):
        streams = [parse_stream(PROBE_OUTPUT["streams"][3])]
        assert find_default_video_stream(streams) is None


class TestContainer:
    @pytest.mark.parametrize(
        "format_name,path,expected",
        [
            ("matroska,webm", "/a/movie.mkv", "mkv"),
            ("matroska,webm", "/a/clip.webm", "webm"),
            ("mov,mp4,m4a,3gp,3g2,mj2", "/a/movie.mp4", "mp4"),
            ("mov,mp4,m4a,3gp,3g2,mj2", "/a/movie.m4v", "mov"),
            ("mpegts", "/a/show.ts", "mpegts"),
            (None, "/a/movie.mkv", None),
        ],
    )
    def test_normalize(self, format_name, path, expected):
        assert normalize_container(format_name, path) == expected


class TestVideoType:
    def test_plain_file(self, tmp_path):
        assert detect_video_type(str(tmp_path / "movie.mkv")) is VideoType.VIDEO_FILE

    def test_iso(self, tmp_path):
        assert detect_video_type(str(tmp_path / "movie.ISO")) is VideoType.ISO

    def test_bluray_folder(self, tmp_path):
        (tmp_path / "BDMV").mkdir()
        assert detect_video_type(str(tmp_path)) is VideoType.BLU_RAY

    def test_dvd_folder(self, tmp_path):
        (tmp_path / "VIDEO_TS").mkdir()
        assert detect_video_type(str(tmp_path)) is VideoType.DVD


class TestThreeD:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Avatar.3D.HSBS.mkv", Video3DFormat.HALF_SIDE_BY_SIDE),
            ("Avatar (2009) [3D] [FTAB].mkv", Video3DFormat.FULL_TOP_AND_BOTTOM),
            ("avatar.3d.mvc.mkv", Video3DFormat.MVC),
            ("Avatar.2009.1080p.mkv", None),
        ],
    )
    def test_parse(self, name, expected):
        assert parse_3d_format(f"/media/{name}") is expected


class TestBuildVideo:
    def test_complete_item(self):
        video = build_video("/media/movie.mkv", PROBE_OUTPUT)

        assert video.container == "mkv"
        assert video.runtime_ticks == 54_002_500_000
        assert video.default_video_stream_index == 0
        assert video.is_complete_media is True
        assert video.protocol is MediaProtocol.FILE
        assert [s.index for s in video.media_streams] == [0, 1, 2, 3]

    def test_missing_duration(self):
        data = {"streams": PROBE_OUTPUT["streams"], "format": {"format_name": "avi"}}
        assert build_video("/media/movie.avi", data).runtime_ticks is None


class FakeProbeProcess:
    def __init__(self, stdout=b"", stderr=b"", returncode=0, hang=False):
        self._stdout = stdout
        self._stderr = stderr
        self._exit_code = returncode
        self._hang = hang
        self.returncode = None
        self.started = False
        self.killed = False

    async def communicate(self):
        self.started = True
        if self._hang:
            await asyncio.sleep(3600)
        self.returncode = self._exit_code
        return self._stdout, self._stderr

    def kill(self):
        self.killed = True
        self.returncode = -9

    async def wait(self):
        return self.returncode


class TestMetadataSource:
    def test_get_video(self):
        process = FakeProbeProcess(stdout=json.dumps(PROBE_OUTPUT).encode())
        source = FFprobeMetadataSource(ffprobe_path="ffprobe", timeout=5)

        with patch("asyncio.create_subprocess_exec", return_value=process) as mock_exec:
            video = asyncio.run(source.get_video("/media/movie.mkv"))

        cmd = mock_exec.call_args.args
        assert cmd[0] == "ffprobe"
        assert cmd[-1] == "/media/movie.mkv"
        assert video.default_video_stream_index == 0

    def test_failure_raises_probe_error(self):
        process = FakeProbeProcess(stderr=b"No such file or directory", returncode=1)
        source = FFprobeMetadataSource(ffprobe_path="ffprobe", timeout=5)

        with patch("asyncio.create_subprocess_exec", return_value=process):
            with pytest.raises(ProbeError, match="No such file"):
                asyncio.run(source.get_video("/media/gone.mkv"))

    def test_invalid_json(self):
        process = FakeProbeProcess(stdout=b"not json")
        source = FFprobeMetadataSource(ffprobe_path="ffprobe", timeout=5)

        with patch("asyncio.create_subprocess_exec", return_value=process):
            with pytest.raises(ProbeError, match="invalid ffprobe output"):
                asyncio.run(source.get_video("/media/movie.mkv"))

    def test_missing_binary(self):
        source = FFprobeMetadataSource(ffprobe_path="/nonexistent/ffprobe")

        with patch("asyncio.create_subprocess_exec", side_effect=FileNotFoundError()):
            with pytest.raises(ProbeError, match="ffprobe not found"):
                asyncio.run(source.get_video("/media/movie.mkv"))

    def test_timeout_kills_child_process(self):
        process = FakeProbeProcess(hang=True)
        source = FFprobeMetadataSource(ffprobe_path="ffprobe", timeout=0.01)

        with patch("asyncio.create_subprocess_exec", return_value=process):
            with pytest.raises(ProbeError, match="timed out"):
                asyncio.run(source.get_video("/media/movie.mkv"))

        assert process.killed is True

    def test_cancel_kills_child_process(self):
        process = FakeProbeProcess(hang=True)
        source = FFprobeMetadataSource(ffprobe_path="ffprobe", timeout=60)

        async def run():
            task = asyncio.create_task(source.get_video("/media/movie.mkv"))
            while not process.started:
                await asyncio.sleep(0)
            task.cancel()
            await task

        with patch("asyncio.create_subprocess_exec", return_value=process):
            with pytest.raises(asyncio.CancelledError):
                asyncio.run(run())

        assert process.killed is True
