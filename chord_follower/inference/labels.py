"""Chord label vocabulary - parsing, transposition and matching.

Labels come from two places: the classifier (bare roots such as ``"F#"``)
and the chord sheet (free text such as ``"Bbmaj7"``, ``"D/F#"``,
``"Amin"``). Matching compares roots by pitch class and tolerates extra
quality suffixes on either side, so a detected ``"A"`` matches a
notated ``"Am"`` or ``"A7"``. Text without a recognizable root is kept
as a literal token and only ever equals itself.
"""

import re
from typing import Optional, Tuple

from ..core.constants import NO_CHORD, PITCH_NAMES

_LETTER_TO_PC = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}
_ACCIDENTALS = {"": 0, "#": 1, "♯": 1, "b": -1, "♭": -1}

_ROOT_RE = re.compile(r"^\s*([A-Ga-g])(#|b|♯|♭)?")


def root_name(pitch_class: int) -> str:
    """Sharp-spelled name of a pitch class."""
    return PITCH_NAMES[pitch_class % 12]


def split_label(label: str) -> Tuple[Optional[int], str]:
    """
    Split a chord label into root pitch class and the remaining suffix.

    Args:
        label: Chord text, e.g. "Bbm7/F"

    Returns:
        (root pitch class or None if unparseable, suffix after the root)
    """
    if not label:
        return None, ""
    match = _ROOT_RE.match(label)
    if not match:
        return None, label.strip()
    letter, accidental = match.group(1), match.group(2) or ""
    pitch_class = (_LETTER_TO_PC[letter.upper()] + _ACCIDENTALS[accidental]) % 12
    return pitch_class, label[match.end():].strip()


def parse_root(label: str) -> Optional[int]:
    """Root pitch class of a label, or None."""
    return split_label(label)[0]


def _normalize_quality(suffix: str) -> str:
    # Slash bass does not affect which chord is being played
    quality = suffix.split("/", 1)[0]
    quality = quality.replace("maj", "").replace("min", "m")
    return quality.strip().lower()


def normalize(label: str) -> str:
    """
    Canonical spelling of a chord label.

    Sharp-spelled root, "min" collapsed to "m", "maj" dropped, slash bass
    removed. Unparseable labels are returned stripped but unchanged.
    """
    root, suffix = split_label(label)
    if root is None:
        return (label or "").strip()
    return root_name(root) + _normalize_quality(suffix)


def transpose(label: str, semitones: int) -> str:
    """
    Shift the root of a label, keeping its suffix.

    Args:
        label: Chord label
        semitones: Signed shift; wraps modulo 12

    Returns:
        Label with a sharp-spelled, shifted root. Unparseable labels are
        returned unchanged.
    """
    root, suffix = split_label(label)
    if root is None:
        return label
    return root_name(root + semitones) + suffix


def chord_matches(detected: str, expected: str, capo: Optional[int] = None) -> bool:
    """
    Decide whether a detected chord satisfies an expected sheet entry.

    The detected chord is shaped on a capo'd instrument, so it is moved
    down ``capo`` semitones into the key the sheet is written in.

    Args:
        detected: Label reported by the classifier
        expected: Label from the chord sheet
        capo: Capo fret (signed semitones), or None

    Returns:
        True if roots agree and one quality suffix contains the other
    """
    if not detected or not expected or detected == NO_CHORD:
        return False

    if capo:
        detected = transpose(detected, -capo)

    d_root, d_suffix = split_label(detected)
    e_root, e_suffix = split_label(expected)
    if d_root is None or e_root is None:
        return detected.strip().lower() == expected.strip().lower()
    if d_root != e_root:
        return False

    d_quality = _normalize_quality(d_suffix)
    e_quality = _normalize_quality(e_suffix)
    return d_quality in e_quality or e_quality in d_quality


def describe_detection(label: str, capo: Optional[int] = None) -> str:
    """Human-readable detection, e.g. "E (D with capo 2)"."""
    if not label or label == NO_CHORD:
        return "--"
    if capo and parse_root(label) is not None:
        return f"{label} ({transpose(label, -capo)} with capo {capo})"
    return label
