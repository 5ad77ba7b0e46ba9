"""Tracking layer - Where is the performer in the chord sheet?

Pipeline: Chord label -> SequenceTracker -> (section, entry) position
"""

from .sequence import ChordEntry, ExpectedChordSequence, Position
from .tracker import (
    SequenceTracker,
    TrackerConfig,
    TrackerMode,
    TrackerSnapshot,
    TrackerState,
)

__all__ = [
    "ChordEntry",
    "ExpectedChordSequence",
    "Position",
    "SequenceTracker",
    "TrackerConfig",
    "TrackerMode",
    "TrackerSnapshot",
    "TrackerState",
]
