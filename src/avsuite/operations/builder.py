"""Translate an operation request into a concrete ffmpeg invocation.

The builder is pure: given the same operation, descriptor, parameters and
filesystem state it always produces the same argument list. Its only side
effect is looking at the output directory to avoid overwriting existing
files.
"""

import glob
import hashlib
import logging
import re
import shlex
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from avsuite.config import AvSuiteConfig
from avsuite.error_handling import (
    InvalidParameter,
    MissingAsset,
    MissingMetadata,
    MissingSecondaryInput,
)
from avsuite.media import MediaDescriptor, MediaKind
from avsuite.operations import filters
from avsuite.operations.catalog import OperationKind
from avsuite.operations.parameters import FrameExtractionMode, OperationParameters

logger = logging.getLogger(__name__)

# Sequence placeholder ffmpeg expands for multi-output operations
TEMPLATE_PATTERN = re.compile(r"%0\d+d")

CONTAINERS = ("mp4", "mov", "mkv")

AUDIO_CODECS: dict[str, list[str]] = {
    "mp3": ["-c:a", "libmp3lame", "-q:a", "2"],
    "aac": ["-c:a", "aac", "-b:a", "192k"],
    "m4a": ["-c:a", "aac", "-b:a", "192k"],
    "wav": ["-c:a", "pcm_s16le"],
    "flac": ["-c:a", "flac"],
}

SEGMENT_ARGS = ["-c", "copy", "-map", "0"]

# Parameter holding the second file for kinds the catalog marks as needing one
SECONDARY_INPUT_FIELDS: dict[OperationKind, str] = {
    OperationKind.REPLACE_AUDIO: "secondary_input",
    OperationKind.ADD_AUDIO_LAYER: "secondary_input",
    OperationKind.BURN_SUBTITLES: "subtitle_file",
    OperationKind.PICTURE_IN_PICTURE: "pip_video",
    OperationKind.MERGE_VIDEOS: "merge_inputs",
}

DENOISE_MODELS_REPO = "https://github.com/richardpl/arnndn-models.git"


@dataclass(frozen=True)
class SupportFile:
    """A scratch file the runner writes before launch and removes afterwards."""

    path: Path
    content: str


@dataclass(frozen=True)
class Invocation:
    """Everything needed to launch one ffmpeg process.

    ``arguments`` excludes the binary itself. ``progress_duration`` is the
    length of the output timeline in seconds, used to turn ffmpeg's
    ``time=`` markers into a fraction; ``None`` means progress is
    indeterminate.
    """

    kind: OperationKind
    arguments: tuple[str, ...]
    output_path: Path
    progress_duration: float | None = None
    support_files: tuple[SupportFile, ...] = ()

    @property
    def is_template(self) -> bool:
        """True when ffmpeg expands the output name into several files."""
        return is_template(self.output_path)

    def output_files(self) -> list[Path]:
        """Output files currently on disk (several for a template)."""
        if self.is_template:
            return sorted(self.output_path.parent.glob(template_glob(self.output_path.name)))
        return [self.output_path] if self.output_path.exists() else []

    def command(self, binary: str | Path) -> list[str]:
        return [str(binary), *self.arguments]

    def command_as_string(self, binary: str | Path) -> str:
        return shlex.join(self.command(binary))


def is_template(path: Path) -> bool:
    return TEMPLATE_PATTERN.search(path.name) is not None


def template_glob(name: str) -> str:
    """Glob pattern matching every file a sequence template can expand to."""
    return "*".join(glob.escape(part) for part in TEMPLATE_PATTERN.split(name))


Recipe = Callable[["ArgumentBuilder", MediaDescriptor, OperationParameters], Invocation]


class ArgumentBuilder:
    """Maps (operation, descriptor, parameters) to an :class:`Invocation`.

    Every failure is raised as a :class:`~avsuite.error_handling.BuildError`
    subclass before anything is launched.
    """

    def __init__(self, config: AvSuiteConfig):
        self.config = config

    def build(
        self,
        kind: OperationKind,
        descriptor: MediaDescriptor,
        params: OperationParameters | None = None,
    ) -> Invocation:
        """Build the invocation for one queue item.

        Raises:
            InvalidParameter: the operation does not apply to this kind of
                media, or a parameter is out of range.
            MissingSecondaryInput: a required second file is absent.
            MissingMetadata: duration or size is needed but unknown.
            MissingAsset: an auxiliary model file is not installed.
        """
        params = params or OperationParameters()

        if not kind.applies_to(descriptor.kind):
            raise InvalidParameter(
                "operation",
                f"{kind.title} cannot be applied to {descriptor.kind.value} files",
            )

        self._check_secondary_input(kind, params)

        invocation = _RECIPES[kind](self, descriptor, params)
        logger.debug(f"Built {kind.value} for {descriptor.path.name}: {invocation.arguments}")
        return invocation

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _check_secondary_input(kind: OperationKind, params: OperationParameters) -> None:
        if not kind.requires_secondary_input:
            return
        field = SECONDARY_INPUT_FIELDS[kind]
        if not getattr(params, field):
            raise MissingSecondaryInput(field)

    def output_path(self, descriptor: MediaDescriptor, suffix: str, extension: str) -> Path:
        """Pick ``<stem><suffix>.<ext>``, adding ``-2``, ``-3``... if it is taken."""
        directory = self.config.output_dir or descriptor.path.parent
        candidate = directory / f"{descriptor.stem}{suffix}.{extension}"
        counter = 2
        while self._is_taken(candidate):
            candidate = directory / f"{descriptor.stem}{suffix}-{counter}.{extension}"
            counter += 1
        return candidate

    @staticmethod
    def _is_taken(path: Path) -> bool:
        if is_template(path):
            return any(path.parent.glob(template_glob(path.name)))
        return path.exists()

    @staticmethod
    def _finish(
        kind: OperationKind,
        arguments: list[str],
        output: Path,
        *,
        progress_duration: float | None,
        support_files: tuple[SupportFile, ...] = (),
    ) -> Invocation:
        return Invocation(
            kind=kind,
            arguments=(*arguments, "-y", str(output)),
            output_path=output,
            progress_duration=progress_duration,
            support_files=support_files,
        )

    @staticmethod
    def _require_duration(descriptor: MediaDescriptor) -> float:
        if descriptor.duration is None:
            raise MissingMetadata("duration")
        return descriptor.duration

    @staticmethod
    def _require_positive(field: str, value: float) -> None:
        if value <= 0:
            raise InvalidParameter(field, f"must be greater than zero, got {value}")

    @staticmethod
    def _require_choice(field: str, value, choices) -> None:
        if value not in choices:
            options = ", ".join(str(c) for c in choices)
            raise InvalidParameter(field, f"'{value}' is not one of: {options}")

    def _simple(
        self,
        kind: OperationKind,
        descriptor: MediaDescriptor,
        arguments: list[str],
        *,
        suffix: str | None = None,
        extension: str | None = None,
    ) -> Invocation:
        """Single input, single output, full-length timeline."""
        output = self.output_path(
            descriptor,
            kind.output_suffix if suffix is None else suffix,
            extension or descriptor.extension,
        )
        return self._finish(
            kind,
            ["-i", str(descriptor.path), *arguments],
            output,
            progress_duration=descriptor.duration,
        )

    # ------------------------------------------------------------------
    # Audio
    # ------------------------------------------------------------------

    def _remove_audio(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        return self._simple(OperationKind.REMOVE_AUDIO, descriptor, ["-an", "-c:v", "copy"])

    def _extract_audio(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        extension = "mp3" if descriptor.extension == "avi" else "aac"
        return self._simple(
            OperationKind.EXTRACT_AUDIO,
            descriptor,
            ["-vn", "-acodec", "copy"],
            extension=extension,
        )

    def _replace_audio(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        return self._simple(
            OperationKind.REPLACE_AUDIO,
            descriptor,
            [
                "-i", str(params.secondary_input),
                "-c:v", "copy",
                "-map", "0:v:0",
                "-map", "1:a:0",
                "-shortest",
            ],
        )

    def _add_audio_layer(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        return self._simple(
            OperationKind.ADD_AUDIO_LAYER,
            descriptor,
            [
                "-i", str(params.secondary_input),
                "-c:v", "copy",
                "-filter_complex", "amix=inputs=2:duration=first",
            ],
        )

    def _normalize_audio(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        return self._simple(OperationKind.NORMALIZE_AUDIO, descriptor, ["-af", filters.LOUDNORM])

    def _convert_audio_format(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        target = params.target_audio_format.lower()
        self._require_choice("target_audio_format", target, tuple(AUDIO_CODECS))
        return self._simple(
            OperationKind.CONVERT_AUDIO_FORMAT,
            descriptor,
            AUDIO_CODECS[target],
            extension=target,
        )

    def _adjust_volume(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        if params.volume < 0:
            raise InvalidParameter("volume", f"must not be negative, got {params.volume}")
        return self._simple(
            OperationKind.ADJUST_VOLUME,
            descriptor,
            ["-af", f"volume={filters.number(params.volume)}", "-c:v", "copy"],
        )

    def _remove_silence(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        return self._simple(
            OperationKind.REMOVE_SILENCE,
            descriptor,
            ["-af", filters.SILENCE_REMOVE, "-c:v", "copy"],
        )

    def _enhance_audio(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        model = self.config.denoise_model_path
        if not model.exists():
            raise MissingAsset(
                model,
                install_hint=f"git clone {DENOISE_MODELS_REPO} {self.config.models_dir}",
            )
        arguments = ["-af", filters.enhance_audio_filter(params.enhance_preset, model)]
        if descriptor.kind is MediaKind.VIDEO:
            arguments += ["-c:v", "copy"]
        return self._simple(OperationKind.ENHANCE_AUDIO, descriptor, arguments)

    # ------------------------------------------------------------------
    # Format
    # ------------------------------------------------------------------

    def _change_container(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        target = params.target_container.lower()
        self._require_choice("target_container", target, CONTAINERS)
        return self._simple(
            OperationKind.CHANGE_CONTAINER,
            descriptor,
            ["-c", "copy"],
            extension=target,
        )

    def _compress(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        return self._simple(
            OperationKind.COMPRESS,
            descriptor,
            [
                "-c:v", "libx264",
                "-crf", str(params.compression_preset.crf),
                "-preset", "medium",
                "-c:a", "aac",
                "-b:a", "128k",
            ],
        )

    def _convert_to_prores(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        return self._simple(
            OperationKind.CONVERT_TO_PRORES,
            descriptor,
            [
                "-c:v", "prores_ks",
                "-profile:v", str(params.prores_profile.profile),
                "-c:a", "pcm_s16le",
            ],
            extension="mov",
        )

    def _resize_video(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        resolution = params.target_resolution
        if resolution.startswith("custom:"):
            raw_width = resolution.partition(":")[2]
            try:
                width = int(raw_width)
            except ValueError:
                raise InvalidParameter(
                    "target_resolution", f"custom width '{raw_width}' is not a number",
                ) from None
            self._require_positive("target_resolution", width)
            vf = filters.scale_width_filter(width)
            suffix = f"-{width}w"
        else:
            self._require_choice("target_resolution", resolution, tuple(filters.RESOLUTIONS))
            vf = filters.scale_pad_filter(*filters.RESOLUTIONS[resolution])
            suffix = f"-{resolution}"

        return self._simple(
            OperationKind.RESIZE_VIDEO,
            descriptor,
            ["-vf", vf, "-c:a", "copy"],
            suffix=suffix,
        )

    def _create_proxy(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        resolution = params.proxy_resolution
        self._require_choice("proxy_resolution", resolution, tuple(filters.PROXY_WIDTHS))
        return self._simple(
            OperationKind.CREATE_PROXY,
            descriptor,
            [
                "-vf", filters.scale_width_filter(filters.PROXY_WIDTHS[resolution]),
                "-c:v", "libx264",
                "-preset", "ultrafast",
                "-crf", "23",
                "-c:a", "aac",
                "-b:a", "128k",
            ],
        )

    # ------------------------------------------------------------------
    # Edit
    # ------------------------------------------------------------------

    def _trim(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        start, end = params.trim_start, params.trim_end
        if start < 0:
            raise InvalidParameter("trim_start", f"must not be negative, got {start}")
        if end < 0 or (end > 0 and end <= start):
            raise InvalidParameter("trim_end", f"must be after the start time, got {end}")

        arguments: list[str] = []
        if start > 0:
            # Seeking before -i is fast; the duration is then relative to the seek point
            arguments += ["-ss", filters.format_time(start), "-i", str(descriptor.path)]
            if end > 0:
                arguments += ["-t", filters.format_time(end - start)]
        else:
            arguments += ["-i", str(descriptor.path)]
            if end > 0:
                arguments += ["-to", filters.format_time(end)]
        arguments += ["-c", "copy"]

        if end > 0:
            progress_duration = end - start
        elif descriptor.duration is not None:
            progress_duration = max(descriptor.duration - start, 0.0) or None
        else:
            progress_duration = None

        output = self.output_path(descriptor, OperationKind.TRIM.output_suffix, descriptor.extension)
        return self._finish(
            OperationKind.TRIM, arguments, output, progress_duration=progress_duration,
        )

    def _speed_graph(self, factor: float) -> list[str]:
        try:
            graph = filters.speed_filter_graph(factor)
        except ValueError as e:
            raise InvalidParameter("speed", str(e)) from None
        return ["-filter_complex", graph, "-map", "[v]", "-map", "[a]"]

    def _speed_change(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        arguments = self._speed_graph(params.speed)
        output = self.output_path(descriptor, f"-{params.speed:g}x", descriptor.extension)
        duration = descriptor.duration
        return self._finish(
            OperationKind.SPEED_CHANGE,
            ["-i", str(descriptor.path), *arguments],
            output,
            progress_duration=duration / params.speed if duration is not None else None,
        )

    def _reverse(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        return self._simple(
            OperationKind.REVERSE, descriptor, ["-vf", "reverse", "-af", "areverse"],
        )

    def _rotate(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        self._require_choice("rotation", params.rotation, tuple(filters.TRANSPOSE))
        return self._simple(
            OperationKind.ROTATE,
            descriptor,
            ["-vf", filters.TRANSPOSE[params.rotation], "-c:a", "copy"],
            suffix=f"-rotated{params.rotation}",
        )

    def _flip(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        direction = params.flip_direction
        self._require_choice("flip_direction", direction, tuple(filters.FLIP))
        return self._simple(
            OperationKind.FLIP,
            descriptor,
            ["-vf", filters.FLIP[direction], "-c:a", "copy"],
            suffix=f"-{direction}",
        )

    def _crop_to_vertical(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        position = params.crop_position
        self._require_choice("crop_position", position, tuple(filters.CROP_X))
        return self._simple(
            OperationKind.CROP_TO_VERTICAL,
            descriptor,
            ["-vf", filters.vertical_crop_filter(position), "-c:a", "copy"],
        )

    def _grayscale(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        return self._simple(
            OperationKind.GRAYSCALE, descriptor, ["-vf", "format=gray", "-c:a", "copy"],
        )

    # ------------------------------------------------------------------
    # Split
    # ------------------------------------------------------------------

    def _segments(
        self, kind: OperationKind, descriptor: MediaDescriptor, segment_time: str,
    ) -> Invocation:
        output = self.output_path(
            descriptor, f"{kind.output_suffix}%03d", descriptor.extension,
        )
        return self._finish(
            kind,
            [
                "-i", str(descriptor.path),
                *SEGMENT_ARGS,
                "-segment_time", segment_time,
                "-f", "segment",
                "-reset_timestamps", "1",
            ],
            output,
            progress_duration=descriptor.duration,
        )

    def _split_by_parts(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        self._require_positive("split_parts", params.split_parts)
        duration = self._require_duration(descriptor)
        segment = duration / params.split_parts
        return self._segments(OperationKind.SPLIT_BY_PARTS, descriptor, f"{segment:.2f}")

    def _split_by_seconds(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        self._require_positive("split_seconds", params.split_seconds)
        return self._segments(
            OperationKind.SPLIT_BY_SECONDS, descriptor, str(params.split_seconds),
        )

    def _split_by_size(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        self._require_positive("split_size_mb", params.split_size_mb)
        duration = self._require_duration(descriptor)
        if descriptor.size_bytes <= 0:
            raise MissingMetadata("size_bytes")
        segment = duration * params.split_size_mb / descriptor.size_mb
        return self._segments(OperationKind.SPLIT_BY_SIZE, descriptor, f"{segment:.2f}")

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def _extract_frames(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        mode = params.frame_mode
        if mode is FrameExtractionMode.TOTAL_FRAMES:
            self._require_positive("frame_count", params.frame_count)
            duration = self._require_duration(descriptor)
            vf = filters.fps_filter(params.frame_count / duration)
        elif mode is FrameExtractionMode.EVERY_N_SECONDS:
            self._require_positive("frame_interval_seconds", params.frame_interval_seconds)
            vf = filters.fps_filter(1 / params.frame_interval_seconds)
        else:
            self._require_positive("frame_interval_frames", params.frame_interval_frames)
            vf = filters.every_nth_frame_filter(params.frame_interval_frames)

        output = self.output_path(
            descriptor, f"{OperationKind.EXTRACT_FRAMES.output_suffix}%04d", "png",
        )
        return self._finish(
            OperationKind.EXTRACT_FRAMES,
            ["-i", str(descriptor.path), "-vf", vf, "-vsync", "vfr"],
            output,
            progress_duration=descriptor.duration,
        )

    def _create_gif(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        if params.gif_start < 0:
            raise InvalidParameter("gif_start", f"must not be negative, got {params.gif_start}")
        self._require_positive("gif_duration", params.gif_duration)
        self._require_positive("gif_fps", params.gif_fps)
        self._require_positive("gif_width", params.gif_width)

        output = self.output_path(descriptor, OperationKind.CREATE_GIF.output_suffix, "gif")
        return self._finish(
            OperationKind.CREATE_GIF,
            [
                "-ss", filters.format_time(params.gif_start),
                "-t", str(params.gif_duration),
                "-i", str(descriptor.path),
                "-filter_complex", filters.gif_palette_filter(params.gif_fps, params.gif_width),
            ],
            output,
            progress_duration=float(params.gif_duration),
        )

    def _video_summary(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        self._require_positive("summary_duration", params.summary_duration)
        duration = self._require_duration(descriptor)
        factor = duration / params.summary_duration

        if factor <= 1:
            # Already short enough
            arguments = ["-c", "copy"]
            progress_duration = duration
        else:
            arguments = self._speed_graph(factor)
            progress_duration = float(params.summary_duration)

        output = self.output_path(
            descriptor, OperationKind.VIDEO_SUMMARY.output_suffix, descriptor.extension,
        )
        return self._finish(
            OperationKind.VIDEO_SUMMARY,
            ["-i", str(descriptor.path), *arguments],
            output,
            progress_duration=progress_duration,
        )

    def _contact_sheet(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        self._require_positive("contact_columns", params.contact_columns)
        self._require_positive("contact_rows", params.contact_rows)
        duration = self._require_duration(descriptor)
        rate = params.contact_columns * params.contact_rows / duration
        return self._simple(
            OperationKind.CONTACT_SHEET,
            descriptor,
            [
                "-vf",
                filters.contact_sheet_filter(rate, params.contact_columns, params.contact_rows),
                "-frames:v", "1",
            ],
            extension="jpg",
        )

    # ------------------------------------------------------------------
    # Overlay
    # ------------------------------------------------------------------

    def _concat_list_path(self, output: Path) -> Path:
        digest = hashlib.sha1(str(output).encode()).hexdigest()[:12]
        directory = self.config.temp_dir or Path(tempfile.gettempdir())
        return directory / f"avsuite-concat-{digest}.txt"

    def _merge_videos(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        output = self.output_path(
            descriptor, OperationKind.MERGE_VIDEOS.output_suffix, descriptor.extension,
        )
        # The demuxer resolves relative entries against the list's directory
        clips = [descriptor.path.absolute(), *(p.absolute() for p in params.merge_inputs)]
        concat = SupportFile(self._concat_list_path(output), filters.concat_list(clips))
        return self._finish(
            OperationKind.MERGE_VIDEOS,
            ["-f", "concat", "-safe", "0", "-i", str(concat.path), "-c", "copy"],
            output,
            progress_duration=None,
            support_files=(concat,),
        )

    def _burn_subtitles(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        return self._simple(
            OperationKind.BURN_SUBTITLES,
            descriptor,
            ["-vf", filters.subtitles_filter(params.subtitle_file), "-c:a", "copy"],
        )

    def _picture_in_picture(
        self, descriptor: MediaDescriptor, params: OperationParameters,
    ) -> Invocation:
        self._require_choice("pip_size", params.pip_size, tuple(filters.PIP_SCALE))
        self._require_choice("pip_position", params.pip_position, tuple(filters.PIP_POSITION))
        return self._simple(
            OperationKind.PICTURE_IN_PICTURE,
            descriptor,
            [
                "-i", str(params.pip_video),
                "-filter_complex", filters.overlay_filter(params.pip_size, params.pip_position),
                "-c:a", "copy",
            ],
        )


_RECIPES: dict[OperationKind, Recipe] = {
    OperationKind.REMOVE_AUDIO: ArgumentBuilder._remove_audio,
    OperationKind.EXTRACT_AUDIO: ArgumentBuilder._extract_audio,
    OperationKind.REPLACE_AUDIO: ArgumentBuilder._replace_audio,
    OperationKind.ADD_AUDIO_LAYER: ArgumentBuilder._add_audio_layer,
    OperationKind.NORMALIZE_AUDIO: ArgumentBuilder._normalize_audio,
    OperationKind.CONVERT_AUDIO_FORMAT: ArgumentBuilder._convert_audio_format,
    OperationKind.ADJUST_VOLUME: ArgumentBuilder._adjust_volume,
    OperationKind.REMOVE_SILENCE: ArgumentBuilder._remove_silence,
    OperationKind.ENHANCE_AUDIO: ArgumentBuilder._enhance_audio,
    OperationKind.CHANGE_CONTAINER: ArgumentBuilder._change_container,
    OperationKind.COMPRESS: ArgumentBuilder._compress,
    OperationKind.CONVERT_TO_PRORES: ArgumentBuilder._convert_to_prores,
    OperationKind.RESIZE_VIDEO: ArgumentBuilder._resize_video,
    OperationKind.CREATE_PROXY: ArgumentBuilder._create_proxy,
    OperationKind.TRIM: ArgumentBuilder._trim,
    OperationKind.SPEED_CHANGE: ArgumentBuilder._speed_change,
    OperationKind.REVERSE: ArgumentBuilder._reverse,
    OperationKind.ROTATE: ArgumentBuilder._rotate,
    OperationKind.FLIP: ArgumentBuilder._flip,
    OperationKind.CROP_TO_VERTICAL: ArgumentBuilder._crop_to_vertical,
    OperationKind.GRAYSCALE: ArgumentBuilder._grayscale,
    OperationKind.SPLIT_BY_PARTS: ArgumentBuilder._split_by_parts,
    OperationKind.SPLIT_BY_SECONDS: ArgumentBuilder._split_by_seconds,
    OperationKind.SPLIT_BY_SIZE: ArgumentBuilder._split_by_size,
    OperationKind.EXTRACT_FRAMES: ArgumentBuilder._extract_frames,
    OperationKind.CREATE_GIF: ArgumentBuilder._create_gif,
    OperationKind.VIDEO_SUMMARY: ArgumentBuilder._video_summary,
    OperationKind.CONTACT_SHEET: ArgumentBuilder._contact_sheet,
    OperationKind.MERGE_VIDEOS: ArgumentBuilder._merge_videos,
    OperationKind.BURN_SUBTITLES: ArgumentBuilder._burn_subtitles,
    OperationKind.PICTURE_IN_PICTURE: ArgumentBuilder._picture_in_picture,
}

_missing = set(OperationKind) - _RECIPES.keys()
if _missing:
    raise RuntimeError(f"Operations without a recipe: {sorted(k.value for k in _missing)}")

_unmapped = {k for k in OperationKind if k.requires_secondary_input} ^ SECONDARY_INPUT_FIELDS.keys()
if _unmapped:
    raise RuntimeError(
        f"Secondary input fields out of step with the catalog: {sorted(k.value for k in _unmapped)}",
    )
