"""Inference layer - Musical understanding of chromagrams.

- Chord label vocabulary (parsing, capo transposition, matching)
- Major-chord templates and classification with temporal voting

Pipeline: Chromagram -> [smoothing, templates, voting] -> Chord label
"""

from .labels import (
    chord_matches,
    describe_detection,
    normalize,
    parse_root,
    root_name,
    split_label,
    transpose,
)
from .chords import (
    ChordClassifier,
    ClassifierConfig,
    ClassifierState,
    ChordTemplate,
    MAJOR_TEMPLATES,
    detect_arpeggio,
    preprocess_chroma,
    score_templates,
    smooth_chroma,
)

__all__ = [
    # Labels
    "chord_matches",
    "describe_detection",
    "normalize",
    "parse_root",
    "root_name",
    "split_label",
    "transpose",
    # Classification
    "ChordClassifier",
    "ClassifierConfig",
    "ClassifierState",
    "ChordTemplate",
    "MAJOR_TEMPLATES",
    "detect_arpeggio",
    "preprocess_chroma",
    "score_templates",
    "smooth_chroma",
]
