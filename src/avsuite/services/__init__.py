"""External tool integrations.

This module contains thin wrappers around the ffmpeg and ffprobe binaries:
locating them, checking their versions and probing media durations.
"""
