"""Input layer - Audio files, chord sheets and live capture."""

from .loader import AudioLoader, iter_frames
from .sheet import ChordSheet, load_chord_sheet, parse_chord_sheet

__all__ = [
    "AudioLoader",
    "iter_frames",
    "ChordSheet",
    "load_chord_sheet",
    "parse_chord_sheet",
]
