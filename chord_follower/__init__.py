"""Chord Follower - Real-time chord detection and chord-sheet tracking.

Architecture Layers:
    1. core/       - Constants and the clock abstraction
    2. analysis/   - Signal analysis (anti-alias filter, FFT, chromagram)
    3. inference/  - Chord labels and major-chord classification
    4. tracking/   - Expected chord sequence and position tracking
    5. input/      - Audio files, chord sheets, microphone capture
    6. follower    - ChordFollower engine tying the layers together
"""

__version__ = "0.1.0"

# Core types
from .core import NO_CHORD, PITCH_NAMES, ManualClock

# Analysis layer
from .analysis import PreFilter, SpectralAnalyzer, ChromaExtractor, ChromaConfig

# Inference layer
from .inference import (
    ChordClassifier,
    ClassifierConfig,
    ChordTemplate,
    MAJOR_TEMPLATES,
    chord_matches,
    transpose,
)

# Tracking layer
from .tracking import (
    ChordEntry,
    ExpectedChordSequence,
    SequenceTracker,
    TrackerConfig,
    TrackerMode,
    TrackerSnapshot,
)

# Engine
from .config import FollowerConfig, load_config
from .follower import ChordFollower

__all__ = [
    # Core
    "NO_CHORD",
    "PITCH_NAMES",
    "ManualClock",
    # Analysis
    "PreFilter",
    "SpectralAnalyzer",
    "ChromaExtractor",
    "ChromaConfig",
    # Inference
    "ChordClassifier",
    "ClassifierConfig",
    "ChordTemplate",
    "MAJOR_TEMPLATES",
    "chord_matches",
    "transpose",
    # Tracking
    "ChordEntry",
    "ExpectedChordSequence",
    "SequenceTracker",
    "TrackerConfig",
    "TrackerMode",
    "TrackerSnapshot",
    # Engine
    "FollowerConfig",
    "load_config",
    "ChordFollower",
]
