"""Operation parameters.

One flat bag covers every operation. Only the fields the active operation
reads are meaningful; the argument builder is the only place that validates
them, everything else ignores the rest.
"""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class CompressionPreset(Enum):
    """H.264 quality presets."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    LOSSLESS = "lossless"

    @property
    def crf(self) -> int:
        return {
            CompressionPreset.LOW: 28,  # Smaller file, lower quality
            CompressionPreset.MEDIUM: 23,
            CompressionPreset.HIGH: 18,
            CompressionPreset.LOSSLESS: 0,
        }[self]


class ProResProfile(Enum):
    """prores_ks profiles."""

    PROXY = "proxy"
    LT = "lt"
    STANDARD = "standard"
    HQ = "hq"

    @property
    def profile(self) -> int:
        return {
            ProResProfile.PROXY: 0,
            ProResProfile.LT: 1,
            ProResProfile.STANDARD: 2,
            ProResProfile.HQ: 3,
        }[self]


class FrameExtractionMode(Enum):
    TOTAL_FRAMES = "total_frames"
    EVERY_N_SECONDS = "every_n_seconds"
    EVERY_N_FRAMES = "every_n_frames"


class EnhanceAudioPreset(Enum):
    """Voice cleanup strength.

    Each preset tunes the same chain: RNNoise denoise, a nasal cut at 2 kHz,
    a presence boost at 4.5 kHz, a compressor and loudness normalization.
    """

    LIGHT = "light"
    STANDARD = "standard"
    PODCAST = "podcast"

    @property
    def denoise_mix(self) -> float:
        return {"light": 0.6, "standard": 1.0, "podcast": 1.0}[self.value]

    @property
    def nasal_cut_gain(self) -> int:
        return {"light": -3, "standard": -6, "podcast": -6}[self.value]

    @property
    def presence_boost_gain(self) -> int:
        return {"light": 2, "standard": 4, "podcast": 5}[self.value]

    @property
    def compressor_threshold(self) -> int:
        return {"light": -12, "standard": -15, "podcast": -18}[self.value]

    @property
    def compressor_ratio(self) -> int:
        return {"light": 3, "standard": 6, "podcast": 8}[self.value]


class OperationParameters(BaseModel):
    """Configuration for a single operation."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    # Replace audio / add audio layer
    secondary_input: Path | None = None

    # Format conversion
    target_container: str = Field(default="mp4")
    target_audio_format: str = Field(default="mp3")

    compression_preset: CompressionPreset = CompressionPreset.MEDIUM
    prores_profile: ProResProfile = ProResProfile.STANDARD

    # Splitting
    split_parts: int = Field(default=2)
    split_seconds: int = Field(default=30)
    split_size_mb: int = Field(default=100)

    # Trim; trim_end of 0 means "to the end"
    trim_start: float = Field(default=0.0)
    trim_end: float = Field(default=0.0)

    speed: float = Field(default=2.0)

    # Frame extraction
    frame_mode: FrameExtractionMode = FrameExtractionMode.EVERY_N_SECONDS
    frame_count: int = Field(default=10)
    frame_interval_seconds: float = Field(default=1.0)
    frame_interval_frames: int = Field(default=30)

    # GIF
    gif_start: float = Field(default=0.0)
    gif_duration: int = Field(default=5)
    gif_fps: int = Field(default=10)
    gif_width: int = Field(default=480)

    summary_duration: int = Field(default=30)  # seconds

    volume: float = Field(default=1.5)  # 1.0 = no change

    # "2160p", "1080p", "720p", "480p", "360p" or "custom:<width>"
    target_resolution: str = Field(default="1080p")

    rotation: int = Field(default=90)
    flip_direction: str = Field(default="horizontal")
    crop_position: str = Field(default="center")

    contact_columns: int = Field(default=4)
    contact_rows: int = Field(default=4)

    merge_inputs: tuple[Path, ...] = ()

    subtitle_file: Path | None = None

    # Picture in picture
    pip_video: Path | None = None
    pip_position: str = Field(default="bottom-right")
    pip_size: str = Field(default="small")

    enhance_preset: EnhanceAudioPreset = EnhanceAudioPreset.STANDARD

    proxy_resolution: str = Field(default="720p")
