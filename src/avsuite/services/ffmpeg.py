"""ffmpeg binary resolution and version checks."""

import logging
import os
import shutil
import subprocess
from pathlib import Path

from avsuite.config import AvSuiteConfig
from avsuite.error_handling import DependencyError

logger = logging.getLogger(__name__)

INSTALL_COMMAND = "brew install ffmpeg  (or: sudo apt install ffmpeg)"


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def resolve_ffmpeg(config: AvSuiteConfig) -> Path:
    """Locate the ffmpeg binary.

    An explicit ``ffmpeg_binary`` wins; otherwise the configured install
    locations are tried in order, then ``PATH``.

    Raises:
        DependencyError: no usable ffmpeg was found.
    """
    if config.ffmpeg_binary is not None:
        if _is_executable(config.ffmpeg_binary):
            return config.ffmpeg_binary
        raise DependencyError(
            "ffmpeg",
            solution=f"ffmpeg_binary points to {config.ffmpeg_binary}, which is not executable",
        )

    for candidate in config.ffmpeg_search_paths:
        if _is_executable(candidate):
            logger.debug(f"Using ffmpeg at {candidate}")
            return candidate

    found = shutil.which("ffmpeg")
    if found:
        logger.debug(f"Using ffmpeg from PATH: {found}")
        return Path(found)

    raise DependencyError("ffmpeg", install_command=INSTALL_COMMAND)


def ffprobe_for(ffmpeg: Path) -> Path:
    """ffprobe installed alongside *ffmpeg*."""
    return ffmpeg.with_name("ffprobe")


def locate_ffprobe(ffmpeg: Path) -> Path:
    """The sibling ffprobe if present, else whichever one is on PATH."""
    sibling = ffprobe_for(ffmpeg)
    if sibling.exists():
        return sibling
    found = shutil.which("ffprobe")
    return Path(found) if found else sibling


class FFmpegService:
    """Clean wrapper for locating and inspecting ffmpeg."""

    def __init__(self, config: AvSuiteConfig):
        self.config = config
        self._binary: Path | None = None

    @property
    def binary(self) -> Path:
        if self._binary is None:
            self._binary = resolve_ffmpeg(self.config)
        return self._binary

    @property
    def ffprobe_binary(self) -> Path:
        return locate_ffprobe(self.binary)

    def get_version(self) -> str | None:
        """First line of ``ffmpeg -version``, or None if it can't be run."""
        try:
            result = subprocess.run(
                [str(self.binary), "-version"],
                check=False,
                capture_output=True,
                text=True,
                timeout=self.config.version_timeout,
            )
            if result.returncode == 0 and result.stdout:
                return result.stdout.splitlines()[0].strip()
        except (DependencyError, OSError, subprocess.SubprocessError) as e:
            logger.warning(f"Could not get ffmpeg version: {e}")

        return None

    def check_availability(self) -> bool:
        """Check if ffmpeg is available and working."""
        return self.get_version() is not None
