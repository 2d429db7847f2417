"""Tests for ffprobe duration probing."""

import sys
from pathlib import Path

import pytest

from avsuite.error_handling import ConfigurationError
from avsuite.media import MediaKind
from avsuite.services.ffprobe import describe_media, parse_duration, probe_command, probe_duration

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="uses shell script stand-ins")


def fake_ffprobe(tmp_path: Path, body: str) -> Path:
    """Shell script standing in for ffprobe."""
    script = tmp_path / "ffprobe"
    script.write_text(f"#!/bin/sh\n{body}\n")
    script.chmod(0o755)
    return script


class TestParseDuration:
    @pytest.mark.parametrize("output,expected", [("12.5\n", 12.5), ("  3600.000000 ", 3600.0)])
    def test_parses(self, output, expected):
        assert parse_duration(output) == expected

    @pytest.mark.parametrize("output", ["", "N/A", "0", "-1", "nan", "inf"])
    def test_unusable_is_unknown(self, output):
        assert parse_duration(output) is None


def test_probe_command():
    assert probe_command(Path("/bin/ffprobe"), Path("/m/a.mp4")) == [
        "/bin/ffprobe",
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        "/m/a.mp4",
    ]


class TestProbeDuration:
    @pytest.mark.asyncio
    async def test_success(self, tmp_path):
        ffprobe = fake_ffprobe(tmp_path, 'echo "42.125"')

        assert await probe_duration(ffprobe, tmp_path / "a.mp4") == 42.125

    @pytest.mark.asyncio
    async def test_nonzero_exit_is_unknown(self, tmp_path):
        ffprobe = fake_ffprobe(tmp_path, 'echo "broken" >&2; exit 1')

        assert await probe_duration(ffprobe, tmp_path / "a.mp4") is None

    @pytest.mark.asyncio
    async def test_missing_binary_is_unknown(self, tmp_path):
        assert await probe_duration(tmp_path / "missing", tmp_path / "a.mp4") is None

    @pytest.mark.asyncio
    async def test_timeout_is_unknown(self, tmp_path):
        ffprobe = fake_ffprobe(tmp_path, "exec sleep 10")

        assert await probe_duration(ffprobe, tmp_path / "a.mp4", timeout=0.2) is None

    @pytest.mark.asyncio
    async def test_describe_media(self, tmp_path):
        ffprobe = fake_ffprobe(tmp_path, 'echo "7.5"')
        clip = tmp_path / "clip.mov"
        clip.write_bytes(b"1234")

        descriptor = await describe_media(clip, ffprobe)

        assert descriptor.kind is MediaKind.VIDEO
        assert descriptor.size_bytes == 4
        assert descriptor.duration == 7.5

    @pytest.mark.asyncio
    async def test_describe_media_unsupported(self, tmp_path):
        ffprobe = fake_ffprobe(tmp_path, 'echo "7.5"')

        with pytest.raises(ConfigurationError):
            await describe_media(tmp_path / "notes.txt", ffprobe)
