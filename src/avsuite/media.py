"""Media descriptors - what avsuite knows about an input file."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from avsuite.error_handling import ConfigurationError

VIDEO_EXTENSIONS: frozenset[str] = frozenset({"mp4", "mov", "mkv", "avi", "webm", "m4v"})
AUDIO_EXTENSIONS: frozenset[str] = frozenset({"mp3", "wav", "aac", "m4a", "flac", "ogg"})


class MediaKind(Enum):
    """Whether a file is treated as video or audio."""

    VIDEO = "video"
    AUDIO = "audio"


@dataclass(frozen=True)
class MediaDescriptor:
    """Immutable record of an ingested media file.

    ``duration`` is ``None`` until a probe supplies it. Unknown is not zero:
    anything that needs the duration must check for ``None`` explicitly.
    """

    path: Path
    kind: MediaKind
    size_bytes: int = 0
    duration: float | None = None

    @property
    def is_video(self) -> bool:
        return self.kind is MediaKind.VIDEO

    @property
    def stem(self) -> str:
        return self.path.stem

    @property
    def extension(self) -> str:
        return self.path.suffix.lstrip(".").lower()

    @property
    def size_mb(self) -> float:
        return self.size_bytes / (1024 * 1024)

    def with_duration(self, duration: float | None) -> MediaDescriptor:
        """Return a copy carrying a probed duration."""
        return dataclasses.replace(self, duration=duration)

    @classmethod
    def from_path(cls, path: Path, duration: float | None = None) -> MediaDescriptor:
        """Create a descriptor from a file on disk.

        Raises:
            ConfigurationError: the extension is not a supported video or
                audio format.
        """
        kind = media_kind_for(path)
        if kind is None:
            msg = f"Unsupported file format: {path.name}"
            raise ConfigurationError(
                msg,
                solution=(
                    "Use one of: "
                    + ", ".join(sorted(VIDEO_EXTENSIONS | AUDIO_EXTENSIONS))
                ),
            )

        try:
            size = path.stat().st_size
        except OSError:
            size = 0

        return cls(path=path, kind=kind, size_bytes=size, duration=duration)

    def __str__(self) -> str:
        return self.path.name


def media_kind_for(path: Path) -> MediaKind | None:
    """Classify a path by extension, or None if unsupported."""
    ext = path.suffix.lstrip(".").lower()
    if ext in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO
    if ext in AUDIO_EXTENSIONS:
        return MediaKind.AUDIO
    return None
