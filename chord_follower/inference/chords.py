"""Chord classification - Turn a stream of chromagrams into chord roots.

Implements robust major-chord detection with:
- Exponential smoothing over recent chromagrams, faster when arpeggiating
- Silence gating
- An isolated-note shortcut for single plucked strings
- Template matching with overtone suppression
- Majority-vote stabilization of the reported root
"""

import logging
from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional, Sequence

import numpy as np

from ..core.constants import MAJOR_TRIAD, NO_CHORD, PITCH_NAMES
from .labels import parse_root

logger = logging.getLogger(__name__)

E, G, B = 4, 7, 11


@dataclass(frozen=True, eq=False)
class ChordTemplate:
    """Binary pitch-class profile of a major triad."""

    root: int
    vector: np.ndarray

    @property
    def name(self) -> str:
        return PITCH_NAMES[self.root]

    @classmethod
    def major(cls, root: int) -> "ChordTemplate":
        vector = np.zeros(12, dtype=np.float64)
        vector[[(root + interval) % 12 for interval in MAJOR_TRIAD]] = 1.0
        vector.flags.writeable = False
        return cls(root=root, vector=vector)


MAJOR_TEMPLATES = tuple(ChordTemplate.major(root) for root in range(12))
_TEMPLATE_MATRIX = np.stack([t.vector for t in MAJOR_TEMPLATES])
_TEMPLATE_MATRIX.flags.writeable = False


def smooth_chroma(history: Sequence[np.ndarray], alpha: float) -> np.ndarray:
    """
    Exponential moving average over a chromagram history, oldest first.

    Args:
        history: Chromagrams in arrival order
        alpha: Weight of each newer frame (higher = more responsive)

    Returns:
        Smoothed 12-element vector (zeros for an empty history)
    """
    if len(history) == 0:
        return np.zeros(12, dtype=np.float64)
    smoothed = np.array(history[0], dtype=np.float64)
    for chroma in history[1:]:
        smoothed = alpha * np.asarray(chroma, dtype=np.float64) + (1.0 - alpha) * smoothed
    return smoothed


def detect_arpeggio(
    history: Sequence[np.ndarray],
    window: int = 6,
    ratio: float = 0.4,
    min_spread: float = 5.0,
) -> bool:
    """
    Detect sequentially plucked chord tones from frame energy fluctuation.

    Args:
        history: Chromagrams in arrival order
        window: Number of most recent frames to inspect
        ratio: Minimum (max - min) / max energy variation
        min_spread: Minimum absolute max - min energy difference

    Returns:
        True when recent energy swings enough to indicate arpeggiation
    """
    recent = list(history)[-window:]
    if len(recent) < 2:
        return False
    energies = [float(np.sum(chroma)) for chroma in recent]
    low, high = min(energies), max(energies)
    if low <= 0:
        return False
    spread = high - low
    return spread / high > ratio and spread > min_spread


def preprocess_chroma(
    chroma: np.ndarray,
    fifth_suppression: float = 0.1,
    b_suppression: float = 0.4,
) -> np.ndarray:
    """
    Remove energy that overtones donate to unrelated pitch classes.

    Every pitch class loses ``fifth_suppression`` of the energy of the note
    a fifth below it (the 3rd harmonic of that note). B additionally loses
    ``b_suppression`` of E + G so that E minor does not read as B.
    """
    chroma = np.asarray(chroma, dtype=np.float64)
    cleaned = np.maximum(chroma - fifth_suppression * np.roll(chroma, 7), 0.0)
    cleaned[B] = max(cleaned[B] - b_suppression * (chroma[E] + chroma[G]), 0.0)
    return cleaned


def score_templates(
    chroma: np.ndarray,
    root_weight: float = 2.0,
    bias: float = 1.16,
) -> np.ndarray:
    """
    Residual energy of a chromagram outside each major template.

    ``residual_j = sqrt(sum_i w_ij (1 - T_ji) c_i^2) / ((12 - 3) * bias)``
    with ``w_ij = root_weight`` where ``i`` is template ``j``'s root.
    Lower is a better fit.
    """
    weights = np.ones((12, 12)) + (root_weight - 1.0) * np.eye(12)
    squared = np.asarray(chroma, dtype=np.float64) ** 2
    residual = (weights * (1.0 - _TEMPLATE_MATRIX)) @ squared
    return np.sqrt(residual) / ((12 - len(MAJOR_TRIAD)) * bias)


@dataclass
class ClassifierConfig:
    """Configuration for chord classification.

    Attributes:
        detection_interval: Minimum seconds between classifications (default: 0.35)
        chroma_buffer_size: Chromagrams kept for smoothing (default: 32)
        arpeggio_window: Recent frames inspected for arpeggio detection (default: 6)
        arpeggio_ratio: Relative energy variation that signals arpeggio (default: 0.4)
        arpeggio_min_spread: Absolute energy variation floor (default: 5.0)
        alpha: Smoothing weight of new frames (default: 0.5)
        arpeggio_alpha: Smoothing weight while arpeggiating (default: 0.75)
        min_chord_energy: Smoothed energy below which input is silence (default: 75)
        isolated_note_threshold: Absolute floor for the isolated-note shortcut (default: 0.1)
        isolated_note_factor: Top bin must exceed the second by this factor (default: 3)
        fifth_suppression: Fraction of a note's energy removed from its fifth (default: 0.1)
        b_suppression: Fraction of E + G energy removed from B (default: 0.4)
        root_weight: Residual weight at the template root (default: 2.0). The
            residual only sums bins outside the template, and the root is always
            inside it, so this has no effect with binary major templates
        bias: Residual normalization bias (default: 1.16)
        vote_size: Stability vote buffer length (default: 5)
        arpeggio_vote_extension: Extra votes kept while arpeggiating (default: 2)
        b_guard_factor: Report B only if raw B x factor >= raw E + G (default: 1.2)
        hint_tolerance: Relative residual margin in which a hinted root wins (default: 0.02)
    """

    detection_interval: float = 0.35
    chroma_buffer_size: int = 32
    arpeggio_window: int = 6
    arpeggio_ratio: float = 0.4
    arpeggio_min_spread: float = 5.0
    alpha: float = 0.5
    arpeggio_alpha: float = 0.75
    min_chord_energy: float = 75.0
    isolated_note_threshold: float = 0.1
    isolated_note_factor: float = 3.0
    fifth_suppression: float = 0.1
    b_suppression: float = 0.4
    root_weight: float = 2.0
    bias: float = 1.16
    vote_size: int = 5
    arpeggio_vote_extension: int = 2
    b_guard_factor: float = 1.2
    hint_tolerance: float = 0.02

    def __post_init__(self):
        if self.bias <= 0:
            raise ValueError(f"bias must be positive, got {self.bias}")
        if self.chroma_buffer_size < 1 or self.vote_size < 1:
            raise ValueError("chroma_buffer_size and vote_size must be at least 1")


@dataclass
class ClassifierState:
    """Everything the classifier remembers between cycles."""

    history: Deque[np.ndarray]
    votes: Deque[Optional[int]] = field(default_factory=deque)
    last_classification: Optional[float] = None
    arpeggio: bool = False
    confirmed_root: Optional[int] = None


class ChordClassifier:
    """Classify chromagrams into major-chord roots over time.

    Pipeline per classification cycle:
    1. Buffer the chromagram (every call)
    2. Throttle to ``detection_interval``
    3. Arpeggio detection and exponential smoothing
    4. Silence gate
    5. Isolated-note shortcut or template scoring
    6. Majority vote
    7. B / E minor guard on the reported label
    """

    def __init__(self, config: Optional[ClassifierConfig] = None):
        self.config = config or ClassifierConfig()
        self.state = self._fresh_state()
        self._label = NO_CHORD

    def _fresh_state(self) -> ClassifierState:
        return ClassifierState(history=deque(maxlen=self.config.chroma_buffer_size))

    @property
    def current_label(self) -> str:
        """Last reported chord label, or NO_CHORD."""
        return self._label

    def classify(
        self,
        chroma: np.ndarray,
        now: float,
        hint: Optional[str] = None,
    ) -> str:
        """
        Feed one chromagram and return the current chord label.

        Args:
            chroma: 12-element pitch-class vector
            now: Current clock time in seconds
            hint: Expected next chord label, used to break near-ties

        Returns:
            Root name such as "G" or NO_CHORD
        """
        cfg = self.config
        state = self.state

        vector = np.array(chroma, dtype=np.float64).reshape(12)
        state.history.append(vector)

        if (
            state.last_classification is not None
            and now - state.last_classification < cfg.detection_interval
        ):
            return self._label
        state.last_classification = now

        history: List[np.ndarray] = list(state.history)
        state.arpeggio = detect_arpeggio(
            history, cfg.arpeggio_window, cfg.arpeggio_ratio, cfg.arpeggio_min_spread
        )
        alpha = cfg.arpeggio_alpha if state.arpeggio else cfg.alpha
        smoothed = smooth_chroma(history, alpha)

        energy = float(smoothed.sum())
        if not np.isfinite(energy) or energy < cfg.min_chord_energy:
            state.votes.clear()
            state.confirmed_root = None
            self._set_label(NO_CHORD)
            return self._label

        candidate = self._candidate_root(smoothed, hint)
        self._vote(candidate)
        self._set_label(self._output_label(vector))
        return self._label

    def _candidate_root(self, smoothed: np.ndarray, hint: Optional[str]) -> Optional[int]:
        cfg = self.config

        order = np.argsort(smoothed)[::-1]
        top, second = smoothed[order[0]], smoothed[order[1]]
        if top > cfg.isolated_note_threshold and top > cfg.isolated_note_factor * second:
            return int(order[0])

        cleaned = preprocess_chroma(smoothed, cfg.fifth_suppression, cfg.b_suppression)
        scores = score_templates(cleaned, cfg.root_weight, cfg.bias)
        if not np.all(np.isfinite(scores)):
            return None

        best = int(np.argmin(scores))
        hinted = parse_root(hint) if hint else None
        if hinted is not None and hinted != best:
            if scores[hinted] <= scores[best] * (1.0 + cfg.hint_tolerance):
                logger.debug("Near-tie %s vs %s resolved by hint", PITCH_NAMES[best], hint)
                best = hinted
        return best

    def _vote(self, candidate: Optional[int]) -> None:
        cfg = self.config
        state = self.state

        limit = cfg.vote_size + (cfg.arpeggio_vote_extension if state.arpeggio else 0)
        state.votes.append(candidate)
        while len(state.votes) > limit:
            state.votes.popleft()

        winner, count = Counter(state.votes).most_common(1)[0]
        if count * 2 > len(state.votes):
            state.confirmed_root = winner

    def _output_label(self, raw: np.ndarray) -> str:
        root = self.state.confirmed_root
        if root is None:
            return NO_CHORD
        if root == B and raw[E] + raw[G] > self.config.b_guard_factor * raw[B]:
            return NO_CHORD
        return PITCH_NAMES[root]

    def _set_label(self, label: str) -> None:
        if label != self._label:
            logger.debug(
                "Chord %s -> %s (arpeggio=%s)", self._label, label, self.state.arpeggio
            )
        self._label = label

    def reset(self) -> None:
        """Forget all history, votes and the confirmed root."""
        self.state = self._fresh_state()
        self._label = NO_CHORD
