"""Shared test configuration and fixtures."""

import logging

import pytest

from avsuite.cli import cleanup_logging
from avsuite.config import AvSuiteConfig
from avsuite.media import MediaDescriptor, MediaKind


@pytest.fixture(scope="function", autouse=True)
def cleanup_logging_handlers():
    """Automatically cleanup logging handlers after each test to prevent ResourceWarnings."""
    yield
    cleanup_logging()


@pytest.fixture(scope="function", autouse=True)
def reset_logging():
    """Reset logging configuration after each test."""
    yield
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.WARNING)


@pytest.fixture
def config(tmp_path):
    """Config that keeps every directory inside the test's tmp_path."""
    return AvSuiteConfig(
        log_dir=tmp_path / "logs",
        models_dir=tmp_path / "models",
        temp_dir=tmp_path / "scratch",
        ffmpeg_search_paths=[],
    )


@pytest.fixture
def media_dir(tmp_path):
    directory = tmp_path / "media"
    directory.mkdir()
    return directory


@pytest.fixture
def make_video(media_dir):
    """Factory for video descriptors backed by a real (tiny) file."""

    def _make(
        name: str = "clip.mp4",
        duration: float | None = 60.0,
        size_bytes: int = 100 * 1024 * 1024,
    ) -> MediaDescriptor:
        path = media_dir / name
        path.write_bytes(b"\0")
        return MediaDescriptor(path, MediaKind.VIDEO, size_bytes, duration)

    return _make


@pytest.fixture
def make_audio(media_dir):
    """Factory for audio descriptors backed by a real (tiny) file."""

    def _make(name: str = "voice.wav", duration: float | None = 30.0) -> MediaDescriptor:
        path = media_dir / name
        path.write_bytes(b"\0")
        return MediaDescriptor(path, MediaKind.AUDIO, 1024, duration)

    return _make
