"""Core types and constants for Chord Follower."""

from .clock import Clock, ManualClock, monotonic_clock
from .constants import (
    PITCH_NAMES,
    NO_CHORD,
    DEFAULT_SR,
    DEFAULT_FRAME_SIZE,
    DEFAULT_DOWNSAMPLE_FACTOR,
    MAJOR_TRIAD,
)

__all__ = [
    "Clock",
    "ManualClock",
    "monotonic_clock",
    "PITCH_NAMES",
    "NO_CHORD",
    "DEFAULT_SR",
    "DEFAULT_FRAME_SIZE",
    "DEFAULT_DOWNSAMPLE_FACTOR",
    "MAJOR_TRIAD",
]
