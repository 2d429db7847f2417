"""Tests for ffmpeg binary resolution."""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from avsuite.config import AvSuiteConfig
from avsuite.error_handling import DependencyError
from avsuite.services.ffmpeg import (
    FFmpegService,
    ffprobe_for,
    locate_ffprobe,
    resolve_ffmpeg,
)


def make_executable(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\n")
    path.chmod(0o755)
    return path


class TestResolveFFmpeg:
    def test_explicit_binary_wins(self, tmp_path):
        explicit = make_executable(tmp_path / "custom" / "ffmpeg")
        listed = make_executable(tmp_path / "listed" / "ffmpeg")
        config = AvSuiteConfig(ffmpeg_binary=explicit, ffmpeg_search_paths=[listed])

        assert resolve_ffmpeg(config) == explicit.resolve()

    def test_explicit_binary_missing(self, tmp_path):
        config = AvSuiteConfig(ffmpeg_binary=tmp_path / "nope")

        with pytest.raises(DependencyError) as exc_info:
            resolve_ffmpeg(config)
        assert "not executable" in exc_info.value.solution

    def test_search_paths_in_order(self, tmp_path):
        first = tmp_path / "a" / "ffmpeg"  # never created
        second = make_executable(tmp_path / "b" / "ffmpeg")
        third = make_executable(tmp_path / "c" / "ffmpeg")
        config = AvSuiteConfig(ffmpeg_search_paths=[first, second, third])

        assert resolve_ffmpeg(config) == second

    def test_non_executable_skipped(self, tmp_path):
        plain = tmp_path / "ffmpeg"
        plain.write_text("")
        config = AvSuiteConfig(ffmpeg_search_paths=[plain])

        with patch("avsuite.services.ffmpeg.shutil.which", return_value=None):
            with pytest.raises(DependencyError):
                resolve_ffmpeg(config)

    @patch("avsuite.services.ffmpeg.shutil.which", return_value="/somewhere/ffmpeg")
    def test_falls_back_to_path(self, mock_which):
        config = AvSuiteConfig(ffmpeg_search_paths=[])

        assert resolve_ffmpeg(config) == Path("/somewhere/ffmpeg")
        mock_which.assert_called_once_with("ffmpeg")

    @patch("avsuite.services.ffmpeg.shutil.which", return_value=None)
    def test_nothing_found(self, mock_which):
        with pytest.raises(DependencyError) as exc_info:
            resolve_ffmpeg(AvSuiteConfig(ffmpeg_search_paths=[]))

        assert exc_info.value.dependency == "ffmpeg"
        assert "brew install ffmpeg" in exc_info.value.solution


class TestFFprobeLocation:
    def test_sibling(self):
        assert ffprobe_for(Path("/opt/homebrew/bin/ffmpeg")) == Path("/opt/homebrew/bin/ffprobe")

    def test_prefers_existing_sibling(self, tmp_path):
        make_executable(tmp_path / "ffprobe")

        assert locate_ffprobe(tmp_path / "ffmpeg") == tmp_path / "ffprobe"

    @patch("avsuite.services.ffmpeg.shutil.which", return_value="/usr/bin/ffprobe")
    def test_falls_back_to_path(self, mock_which, tmp_path):
        assert locate_ffprobe(tmp_path / "ffmpeg") == Path("/usr/bin/ffprobe")


class TestFFmpegService:
    @pytest.fixture
    def service(self, tmp_path):
        binary = make_executable(tmp_path / "ffmpeg")
        return FFmpegService(AvSuiteConfig(ffmpeg_binary=binary, version_timeout=7))

    @patch("avsuite.services.ffmpeg.subprocess.run")
    def test_get_version(self, mock_run, service):
        mock_run.return_value.returncode = 0
        mock_run.return_value.stdout = "ffmpeg version 7.1 Copyright (c) 2000-2024\nbuilt with clang\n"

        assert service.get_version() == "ffmpeg version 7.1 Copyright (c) 2000-2024"
        mock_run.assert_called_once_with(
            [str(service.binary), "-version"],
            check=False,
            capture_output=True,
            text=True,
            timeout=7,
        )

    @patch("avsuite.services.ffmpeg.subprocess.run")
    def test_get_version_failure(self, mock_run, service):
        mock_run.side_effect = subprocess.TimeoutExpired("ffmpeg", 7)

        assert service.get_version() is None
        assert service.check_availability() is False

    @patch("avsuite.services.ffmpeg.subprocess.run")
    def test_check_availability(self, mock_run, service):
        mock_run.return_value.returncode = 0
        mock_run.return_value.stdout = "ffmpeg version 7.1\n"

        assert service.check_availability() is True

    @patch("avsuite.services.ffmpeg.shutil.which", return_value=None)
    def test_version_without_ffmpeg(self, mock_which):
        service = FFmpegService(AvSuiteConfig(ffmpeg_search_paths=[]))

        assert service.get_version() is None
