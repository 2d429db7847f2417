"""
Filter-graph templates.

Every operation that needs a non-trivial ffmpeg filter gets exactly one
template function here. The builder never assembles filter strings itself.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from pathlib import Path

from avsuite.operations.parameters import EnhanceAudioPreset

# atempo only accepts ratios inside this range
ATEMPO_MIN = 0.5
ATEMPO_MAX = 2.0

# Resize presets -> "W:H"
RESOLUTIONS: dict[str, tuple[int, int]] = {
    "2160p": (3840, 2160),
    "4K": (3840, 2160),
    "1080p": (1920, 1080),
    "720p": (1280, 720),
    "480p": (854, 480),
    "360p": (640, 360),
}

PROXY_WIDTHS: dict[str, int] = {
    "720p": 1280,
    "540p": 960,
    "480p": 854,
}

TRANSPOSE: dict[int, str] = {
    90: "transpose=1",  # clockwise
    180: "transpose=1,transpose=1",
    270: "transpose=2",  # counter-clockwise
}

FLIP: dict[str, str] = {
    "horizontal": "hflip",
    "vertical": "vflip",
}

CROP_X: dict[str, str] = {
    "left": "0",
    "center": "(in_w-out_w)/2",
    "right": "in_w-out_w",
}

PIP_SCALE: dict[str, str] = {
    "small": "iw/4",
    "medium": "iw/3",
    "large": "iw/2",
}

PIP_POSITION: dict[str, str] = {
    "top-left": "10:10",
    "top-right": "main_w-overlay_w-10:10",
    "bottom-left": "10:main_h-overlay_h-10",
    "bottom-right": "main_w-overlay_w-10:main_h-overlay_h-10",
}

# Trim silence from the start, reverse, trim again, reverse back
SILENCE_REMOVE = (
    "silenceremove=start_periods=1:start_silence=0.5:start_threshold=-50dB:detection=peak,"
    "areverse,"
    "silenceremove=start_periods=1:start_silence=0.5:start_threshold=-50dB:detection=peak,"
    "areverse"
)

LOUDNORM = "loudnorm=I=-16:TP=-1.5:LRA=11"

CONTACT_THUMB_WIDTH = 320


def number(value: float) -> str:
    """Shortest round-tripping text for a number (``2.0``, ``0.2``, ``1.25``)."""
    return repr(float(value))


def format_time(seconds: float) -> str:
    """Format seconds as ``HH:MM:SS.mmm``."""
    total_ms = round(seconds * 1000)
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    return f"{hours:02d}:{minutes:02d}:{rem / 1000:06.3f}"


def decompose_tempo(factor: float) -> list[float]:
    """Split a speed factor into the fewest atempo steps whose product is *factor*.

    All steps but the last are exactly 2.0 (or 0.5); the last one carries the
    remainder, which always lands inside [0.5, 2.0]. Dividing by a power of
    two is exact in floating point, so the product is exact too.
    """
    if not math.isfinite(factor) or factor <= 0:
        msg = f"speed factor must be a positive number, got {factor}"
        raise ValueError(msg)

    steps: list[float] = []
    remaining = float(factor)
    if remaining > ATEMPO_MAX:
        while remaining > ATEMPO_MAX:
            steps.append(ATEMPO_MAX)
            remaining /= ATEMPO_MAX
    else:
        while remaining < ATEMPO_MIN:
            steps.append(ATEMPO_MIN)
            remaining /= ATEMPO_MIN
    steps.append(remaining)
    return steps


def atempo_chain(factor: float) -> str:
    return ",".join(f"atempo={number(step)}" for step in decompose_tempo(factor))


def speed_filter_graph(factor: float) -> str:
    """Video and audio retimed together; outputs are labelled [v] and [a]."""
    return f"[0:v]setpts=PTS/{number(factor)}[v];[0:a]{atempo_chain(factor)}[a]"


def scale_pad_filter(width: int, height: int) -> str:
    """Fit inside WxH keeping aspect ratio, letterbox the rest."""
    size = f"{width}:{height}"
    return (
        f"scale={size}:force_original_aspect_ratio=decrease,"
        f"pad={size}:(ow-iw)/2:(oh-ih)/2"
    )


def scale_width_filter(width: int) -> str:
    # -2 keeps the height even, which most encoders require
    return f"scale={width}:-2"


def vertical_crop_filter(position: str) -> str:
    """Cut a 9:16 slice out of a landscape frame."""
    return f"crop=ih*9/16:ih:{CROP_X[position]}:0"


def fps_filter(rate: float) -> str:
    return f"fps={number(rate)}"


def every_nth_frame_filter(interval: int) -> str:
    return f"select='not(mod(n\\,{interval}))',setpts='N/(FRAME_RATE*TB)'"


def gif_palette_filter(fps: int, width: int) -> str:
    """Two-pass GIF: generate a palette from the clip, then map the clip onto it."""
    return (
        f"fps={fps},scale={width}:-1:flags=lanczos,split[s0][s1];"
        "[s0]palettegen[p];[s1][p]paletteuse"
    )


def contact_sheet_filter(rate: float, columns: int, rows: int) -> str:
    return f"{fps_filter(rate)},scale={CONTACT_THUMB_WIDTH}:-1,tile={columns}x{rows}"


def overlay_filter(size: str, position: str) -> str:
    """Scale the second input and composite it over the first."""
    return f"[1:v]scale={PIP_SCALE[size]}:-1[pip];[0:v][pip]overlay={PIP_POSITION[position]}"


def subtitles_filter(subtitle_file: Path) -> str:
    escaped = str(subtitle_file).replace(":", "\\:").replace("'", "\\'")
    return f"subtitles='{escaped}'"


def enhance_audio_filter(preset: EnhanceAudioPreset, model_path: Path) -> str:
    return ",".join(
        [
            f"arnndn=m={model_path}:mix={number(preset.denoise_mix)}",
            f"equalizer=f=2000:t=q:w=1.5:g={preset.nasal_cut_gain}",
            f"equalizer=f=4500:t=q:w=2:g={preset.presence_boost_gain}",
            f"acompressor=threshold={preset.compressor_threshold}dB"
            f":ratio={preset.compressor_ratio}:attack=3:release=40",
            "loudnorm",
        ],
    )


def concat_list(paths: Iterable[Path]) -> str:
    """Contents of a concat-demuxer list file, one ``file '...'`` line per clip."""
    lines = []
    for path in paths:
        # Inside single quotes the demuxer only needs ' itself escaped
        quoted = str(path).replace("'", "'\\''")
        lines.append(f"file '{quoted}'")
    return "\n".join(lines) + "\n"
