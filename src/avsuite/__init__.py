"""avsuite - batch media operations driven through ffmpeg."""

__version__ = "0.1.0"
