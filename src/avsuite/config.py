"""Configuration management for avsuite."""

from pathlib import Path

import tomli
from pydantic import BaseModel, Field, field_validator

DEFAULT_FFMPEG_SEARCH_PATHS = [
    Path("/opt/homebrew/bin/ffmpeg"),  # Apple Silicon Homebrew
    Path("/usr/local/bin/ffmpeg"),  # Intel Homebrew
    Path("/usr/bin/ffmpeg"),  # System
]


class AvSuiteConfig(BaseModel):
    """Main configuration for avsuite."""

    # ffmpeg resolution
    ffmpeg_binary: Path | None = None
    ffmpeg_search_paths: list[Path] = Field(
        default_factory=lambda: list(DEFAULT_FFMPEG_SEARCH_PATHS),
    )

    # Output location; None writes next to each input file
    output_dir: Path | None = None

    # Audio enhancement model (https://github.com/richardpl/arnndn-models)
    models_dir: Path = Field(default=Path("~/arnndn-models"), validate_default=True)
    denoise_model: str = Field(default="bd.rnnn")

    # Scratch files such as concat lists; None uses the system temp dir
    temp_dir: Path | None = None

    log_dir: Path = Field(default=Path("~/.local/share/avsuite/logs"), validate_default=True)

    # Timeout Settings (seconds); encoding itself is never timed out
    ffprobe_timeout: int = Field(default=30)
    version_timeout: int = Field(default=10)

    @field_validator(
        "ffmpeg_binary",
        "output_dir",
        "models_dir",
        "temp_dir",
        "log_dir",
        mode="before",
    )
    @classmethod
    def expand_paths(cls, v: Path | str | None) -> Path | None:
        """Expand user home directory in paths."""
        if v is None:
            return None
        if isinstance(v, str):
            v = Path(v)
        return v.expanduser().resolve()

    @property
    def denoise_model_path(self) -> Path:
        """Expected location of the RNNoise model used by enhance_audio."""
        return self.models_dir / self.denoise_model

    def ensure_directories(self) -> None:
        """Create required directories if they don't exist."""
        for dir_path in [self.log_dir, self.output_dir, self.temp_dir]:
            if dir_path is not None:
                dir_path.mkdir(parents=True, exist_ok=True)


def load_config(config_path: Path | None = None) -> AvSuiteConfig:
    """Load configuration from file or defaults."""
    if config_path is None:
        possible_paths = [
            Path.home() / ".config" / "avsuite" / "config.toml",  # User config
            Path.cwd() / "avsuite.toml",  # Current directory
        ]

        for path in possible_paths:
            if path.exists():
                config_path = path
                break

    if config_path and config_path.exists():
        with open(config_path, "rb") as f:
            config_data = tomli.load(f)
        return AvSuiteConfig(**config_data)
    return AvSuiteConfig()


def create_sample_config(path: Path) -> None:
    """Create a sample configuration file."""
    sample_config = """# avsuite Configuration
# =====================
# Every setting is optional; remove a line to use the default.

# ============================================================================
# ffmpeg
# ============================================================================

# ffmpeg_binary = "/opt/homebrew/bin/ffmpeg"     # Skip the search below and use this binary
ffmpeg_search_paths = [                          # Probed in order, then PATH
    "/opt/homebrew/bin/ffmpeg",
    "/usr/local/bin/ffmpeg",
    "/usr/bin/ffmpeg",
]

# ============================================================================
# Output
# ============================================================================

# output_dir = "~/Movies/avsuite"                # Default: next to each input file
# temp_dir = "/tmp/avsuite"                      # Scratch files (merge lists)

# ============================================================================
# Audio enhancement
# ============================================================================

# git clone https://github.com/richardpl/arnndn-models.git ~/arnndn-models
models_dir = "~/arnndn-models"
denoise_model = "bd.rnnn"

# ============================================================================
# ADVANCED SETTINGS
# ============================================================================

log_dir = "~/.local/share/avsuite/logs"          # Log files
ffprobe_timeout = 30                              # Seconds to wait for a duration probe
version_timeout = 10                              # Seconds to wait for ffmpeg -version
"""

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        f.write(sample_config)
