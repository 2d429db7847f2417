"""Process supervision and batch sequencing.

This module contains the runner that supervises a single ffmpeg process and
the sequencer that drives a queue of operations through it one at a time.
"""
