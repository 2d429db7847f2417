"""Static catalog of the operations avsuite can perform."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from avsuite.media import MediaKind

_BOTH = frozenset({MediaKind.VIDEO, MediaKind.AUDIO})
_VIDEO = frozenset({MediaKind.VIDEO})
_AUDIO = frozenset({MediaKind.AUDIO})


class OperationCategory(Enum):
    """How operations are grouped for display."""

    AUDIO = "Audio"
    FORMAT = "Format"
    EDIT = "Edit"
    SPLIT = "Split"
    EXPORT = "Export"
    OVERLAY = "Overlay"

    def operations(self, media_kind: MediaKind) -> list[OperationKind]:
        """Operations of this category that apply to *media_kind*, in display order."""
        return [
            kind
            for kind in OperationKind
            if kind.category is self and media_kind in kind.media_kinds
        ]


class OperationKind(Enum):
    """Every operation avsuite knows. The set is closed."""

    # Audio
    REMOVE_AUDIO = "remove_audio"
    EXTRACT_AUDIO = "extract_audio"
    REPLACE_AUDIO = "replace_audio"
    ADD_AUDIO_LAYER = "add_audio_layer"
    NORMALIZE_AUDIO = "normalize_audio"
    CONVERT_AUDIO_FORMAT = "convert_audio_format"
    ADJUST_VOLUME = "adjust_volume"
    REMOVE_SILENCE = "remove_silence"
    ENHANCE_AUDIO = "enhance_audio"

    # Format
    CHANGE_CONTAINER = "change_container"
    COMPRESS = "compress"
    CONVERT_TO_PRORES = "convert_to_prores"
    RESIZE_VIDEO = "resize_video"
    CREATE_PROXY = "create_proxy"

    # Edit
    TRIM = "trim"
    SPEED_CHANGE = "speed_change"
    REVERSE = "reverse"
    ROTATE = "rotate"
    FLIP = "flip"
    CROP_TO_VERTICAL = "crop_to_vertical"
    GRAYSCALE = "grayscale"

    # Split
    SPLIT_BY_PARTS = "split_by_parts"
    SPLIT_BY_SECONDS = "split_by_seconds"
    SPLIT_BY_SIZE = "split_by_size"

    # Export
    EXTRACT_FRAMES = "extract_frames"
    CREATE_GIF = "create_gif"
    VIDEO_SUMMARY = "video_summary"
    CONTACT_SHEET = "contact_sheet"

    # Overlay
    MERGE_VIDEOS = "merge_videos"
    BURN_SUBTITLES = "burn_subtitles"
    PICTURE_IN_PICTURE = "picture_in_picture"

    @property
    def info(self) -> OperationInfo:
        return CATALOG[self]

    @property
    def title(self) -> str:
        return CATALOG[self].title

    @property
    def description(self) -> str:
        return CATALOG[self].description

    @property
    def category(self) -> OperationCategory:
        return CATALOG[self].category

    @property
    def output_suffix(self) -> str:
        """Default output suffix.

        Speed, resize, rotate and flip outputs name the chosen value instead
        (``-2x``, ``-720p``, ``-rotated90``, ``-horizontal``).
        """
        return CATALOG[self].output_suffix

    @property
    def requires_secondary_input(self) -> bool:
        return CATALOG[self].requires_secondary_input

    @property
    def requires_parameters(self) -> bool:
        return CATALOG[self].requires_parameters

    @property
    def media_kinds(self) -> frozenset[MediaKind]:
        return CATALOG[self].media_kinds

    def applies_to(self, media_kind: MediaKind) -> bool:
        return media_kind in CATALOG[self].media_kinds


@dataclass(frozen=True)
class OperationInfo:
    """Static metadata for one operation kind."""

    title: str
    description: str
    category: OperationCategory
    output_suffix: str
    media_kinds: frozenset[MediaKind]
    requires_secondary_input: bool = False
    requires_parameters: bool = False


K = OperationKind
C = OperationCategory

CATALOG: dict[OperationKind, OperationInfo] = {
    K.REMOVE_AUDIO: OperationInfo(
        "Remove Audio", "Strip audio track, keep video only", C.AUDIO, "-noaudio", _VIDEO,
    ),
    K.EXTRACT_AUDIO: OperationInfo(
        "Extract Audio", "Save audio as separate file", C.AUDIO, "-audio", _VIDEO,
    ),
    K.REPLACE_AUDIO: OperationInfo(
        "Replace Audio", "Swap audio with a different file", C.AUDIO, "-newaudio", _VIDEO,
        requires_secondary_input=True,
    ),
    K.ADD_AUDIO_LAYER: OperationInfo(
        "Add Audio Layer", "Mix additional audio with existing", C.AUDIO, "-mixed", _VIDEO,
        requires_secondary_input=True,
    ),
    K.NORMALIZE_AUDIO: OperationInfo(
        "Normalize Volume", "Make volume consistent", C.AUDIO, "-normalized", _AUDIO,
    ),
    K.CONVERT_AUDIO_FORMAT: OperationInfo(
        "Convert Format", "Change to MP3, WAV, AAC, etc.", C.FORMAT, "", _AUDIO,
        requires_parameters=True,
    ),
    K.ADJUST_VOLUME: OperationInfo(
        "Adjust Volume", "Boost or reduce audio level", C.AUDIO, "-volume", _BOTH,
        requires_parameters=True,
    ),
    K.REMOVE_SILENCE: OperationInfo(
        "Remove Silence", "Cut silent sections from audio", C.AUDIO, "-nosilence", _BOTH,
    ),
    K.ENHANCE_AUDIO: OperationInfo(
        "Enhance Audio", "Denoise, EQ, and normalize for cleaner voice", C.AUDIO, "-enhanced", _BOTH,
        requires_parameters=True,
    ),
    K.CHANGE_CONTAINER: OperationInfo(
        "Change Container", "Convert to MP4, MOV, MKV (fast, no re-encoding)", C.FORMAT, "", _VIDEO,
        requires_parameters=True,
    ),
    K.COMPRESS: OperationInfo(
        "Compress", "Reduce file size with quality presets", C.FORMAT, "-compressed", _VIDEO,
        requires_parameters=True,
    ),
    K.CONVERT_TO_PRORES: OperationInfo(
        "Convert to ProRes", "High-quality format for editing", C.FORMAT, "-prores", _VIDEO,
        requires_parameters=True,
    ),
    K.RESIZE_VIDEO: OperationInfo(
        "Resize Video", "Scale to 1080p, 720p, 480p, or custom", C.FORMAT, "-resized", _VIDEO,
        requires_parameters=True,
    ),
    K.CREATE_PROXY: OperationInfo(
        "Create Proxy", "Low-res copy for smoother editing", C.FORMAT, "-proxy", _VIDEO,
        requires_parameters=True,
    ),
    K.TRIM: OperationInfo(
        "Trim Video", "Cut from start time to end time", C.EDIT, "-trimmed", _VIDEO,
        requires_parameters=True,
    ),
    K.SPEED_CHANGE: OperationInfo(
        "Change Speed", "Speed up (2x, 4x) or slow down (0.5x)", C.EDIT, "-speed", _VIDEO,
        requires_parameters=True,
    ),
    K.REVERSE: OperationInfo(
        "Reverse", "Play video backwards", C.EDIT, "-reversed", _VIDEO,
    ),
    K.ROTATE: OperationInfo(
        "Rotate", "Rotate 90°, 180°, or 270°", C.EDIT, "-rotated", _VIDEO,
        requires_parameters=True,
    ),
    K.FLIP: OperationInfo(
        "Flip / Mirror", "Mirror horizontally or vertically", C.EDIT, "-flipped", _VIDEO,
        requires_parameters=True,
    ),
    K.CROP_TO_VERTICAL: OperationInfo(
        "Crop to Vertical", "Convert 16:9 to 9:16 for social media", C.EDIT, "-vertical", _VIDEO,
        requires_parameters=True,
    ),
    K.GRAYSCALE: OperationInfo(
        "Black & White", "Convert to black and white", C.EDIT, "-bw", _VIDEO,
    ),
    K.SPLIT_BY_PARTS: OperationInfo(
        "Split into Parts", "Divide into equal segments", C.SPLIT, "-part", _VIDEO,
        requires_parameters=True,
    ),
    K.SPLIT_BY_SECONDS: OperationInfo(
        "Split by Duration", "Create clips of specific length", C.SPLIT, "-part", _VIDEO,
        requires_parameters=True,
    ),
    K.SPLIT_BY_SIZE: OperationInfo(
        "Split by File Size", "Create files of target size", C.SPLIT, "-part", _VIDEO,
        requires_parameters=True,
    ),
    K.EXTRACT_FRAMES: OperationInfo(
        "Extract Frames", "Save evenly-spaced screenshots as PNGs", C.EXPORT, "-frame", _VIDEO,
        requires_parameters=True,
    ),
    K.CREATE_GIF: OperationInfo(
        "Create GIF", "Convert to animated GIF", C.EXPORT, "", _VIDEO,
        requires_parameters=True,
    ),
    K.VIDEO_SUMMARY: OperationInfo(
        "Video Summary", "Condense into a short preview", C.EXPORT, "-summary", _VIDEO,
        requires_parameters=True,
    ),
    K.CONTACT_SHEET: OperationInfo(
        "Contact Sheet", "Grid of thumbnails from video", C.EXPORT, "-contact", _VIDEO,
        requires_parameters=True,
    ),
    K.MERGE_VIDEOS: OperationInfo(
        "Merge Videos", "Combine multiple videos into one", C.OVERLAY, "-merged", _VIDEO,
        requires_secondary_input=True,
        requires_parameters=True,
    ),
    K.BURN_SUBTITLES: OperationInfo(
        "Burn Subtitles", "Hardcode .srt subtitles into video", C.OVERLAY, "-subtitled", _VIDEO,
        requires_secondary_input=True,
        requires_parameters=True,
    ),
    K.PICTURE_IN_PICTURE: OperationInfo(
        "Picture in Picture", "Overlay a small video on larger video", C.OVERLAY, "-pip", _VIDEO,
        requires_secondary_input=True,
        requires_parameters=True,
    ),
}

del K, C

_missing = set(OperationKind) - CATALOG.keys()
if _missing:
    raise RuntimeError(f"Operations missing from catalog: {sorted(k.value for k in _missing)}")


def find_operation(name: str) -> OperationKind:
    """Look up an operation by its identifier (``compress``, ``split-by-parts``...)."""
    key = name.strip().lower().replace("-", "_")
    try:
        return OperationKind(key)
    except ValueError:
        msg = f"Unknown operation: {name}"
        raise KeyError(msg) from None
