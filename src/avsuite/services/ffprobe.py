"""Duration probing with ffprobe."""

import asyncio
import logging
import math
from pathlib import Path

from avsuite.media import MediaDescriptor

logger = logging.getLogger(__name__)


def probe_command(ffprobe: Path, path: Path) -> list[str]:
    return [
        str(ffprobe),
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(path),
    ]


def parse_duration(output: str) -> float | None:
    """Read the duration ffprobe printed, or None if it is not a usable number."""
    try:
        duration = float(output.strip())
    except ValueError:
        return None
    if not math.isfinite(duration) or duration <= 0:
        return None
    return duration


async def probe_duration(ffprobe: Path, path: Path, timeout: float = 30) -> float | None:
    """Ask ffprobe for the duration of *path*.

    Any failure (missing binary, nonzero exit, timeout, unparsable output)
    yields None: an unknown duration, never zero.
    """
    try:
        process = await asyncio.create_subprocess_exec(
            *probe_command(ffprobe, path),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        logger.warning(f"Could not run ffprobe for {path.name}: {e}")
        return None

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except TimeoutError:
        process.kill()
        await process.wait()
        logger.warning(f"ffprobe timed out after {timeout}s on {path.name}")
        return None

    if process.returncode != 0:
        logger.warning(
            f"ffprobe failed on {path.name}: {stderr.decode(errors='replace').strip()}",
        )
        return None

    duration = parse_duration(stdout.decode(errors="replace"))
    if duration is None:
        logger.debug(f"No duration reported for {path.name}")
    return duration


async def describe_media(path: Path, ffprobe: Path, timeout: float = 30) -> MediaDescriptor:
    """Descriptor for *path* with its probed duration filled in."""
    descriptor = MediaDescriptor.from_path(path)
    return descriptor.with_duration(await probe_duration(ffprobe, path, timeout))
