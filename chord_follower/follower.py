"""ChordFollower - the synchronous feed/query engine.

One call to ``feed_frame`` runs the whole pipeline to completion::

    frame -> PreFilter -> ChromaExtractor -> ChordClassifier -> SequenceTracker

There is no threading: whoever owns the audio callback calls
``feed_frame`` once per frame. All timing comes from the injected clock,
so replaying a file with a ``ManualClock`` is fully deterministic.
"""

import logging
from typing import Callable, Iterable, List, Optional, Union

import numpy as np

from .analysis.chroma import ChromaExtractor
from .config import FollowerConfig
from .core.clock import Clock, monotonic_clock
from .core.constants import NO_CHORD
from .inference.chords import ChordClassifier
from .inference.labels import transpose
from .tracking.sequence import ExpectedChordSequence, Position
from .tracking.tracker import SequenceTracker, TrackerMode, TrackerSnapshot

logger = logging.getLogger(__name__)

PositionListener = Callable[[TrackerSnapshot], None]


class ChordFollower:
    """Detect chords in live audio and follow them through a chord sheet.

    Example::

        follower = ChordFollower()
        follower.start(ExpectedChordSequence([["G", "C", "D"]]), capo=2)
        for frame in frames:
            follower.feed_frame(frame)
        follower.stop()
    """

    def __init__(
        self,
        config: Optional[FollowerConfig] = None,
        clock: Optional[Clock] = None,
        on_position_change: Optional[PositionListener] = None,
    ):
        """
        Initialize ChordFollower.

        Args:
            config: Pipeline configuration (defaults for every component if None)
            clock: Callable returning monotonic seconds
            on_position_change: Called with a TrackerSnapshot on every tracker change
        """
        self.config = config or FollowerConfig()
        self.clock = clock or monotonic_clock
        self.on_position_change = on_position_change

        self.chroma = ChromaExtractor(self.config.chroma)
        self.classifier = ChordClassifier(self.config.classifier)
        self.tracker = SequenceTracker(config=self.config.tracker)

        self._active = False
        self._source = None

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def frame_size(self) -> int:
        return self.config.chroma.frame_size

    @property
    def sample_rate(self) -> int:
        return self.config.chroma.sample_rate

    def start(
        self,
        sequence: Optional[Union[ExpectedChordSequence, Iterable[Iterable[str]]]] = None,
        capo: Optional[int] = None,
        source=None,
    ) -> None:
        """
        Begin a tracking session.

        Args:
            sequence: Expected chords (keeps the current one if None)
            capo: Capo fret (keeps the current one if None)
            source: Capture resource with a ``close()`` method, released by ``stop``.
                A different source from an earlier session is closed first.
        """
        previous, self._source = self._source, None
        if previous is not None and previous is not source:
            previous.close()
        if sequence is not None:
            self.tracker.sequence = _as_sequence(sequence)
        if capo is not None:
            self.tracker.set_capo(capo)
        self._source = source
        self._clear_pipeline()
        self.tracker.start(self.clock())
        self._active = True
        logger.info(
            "Tracking started: %d chords, capo %s", len(self.tracker.sequence), self.tracker.state.capo
        )
        self._notify()

    def stop(self) -> None:
        """End the session, release the capture source and clear all state."""
        self._active = False
        source, self._source = self._source, None
        try:
            if source is not None:
                source.close()
        finally:
            self._clear_pipeline()
            self.tracker.reset()
            logger.info("Tracking stopped")

    def reset(self) -> None:
        """Clear detection state and restart the sequence from the top."""
        self._clear_pipeline()
        if self._active:
            self.tracker.start(self.clock())
        else:
            self.tracker.reset()
        self._notify()

    def _clear_pipeline(self) -> None:
        self.chroma.reset()
        self.classifier.reset()

    def feed_frame(self, frame: np.ndarray) -> str:
        """
        Process one audio frame.

        Frames arriving while the follower is not active are ignored.

        Args:
            frame: ``frame_size`` samples at ``sample_rate``

        Returns:
            Current chord label or NO_CHORD
        """
        if not self._active:
            return NO_CHORD

        now = self.clock()
        label = None
        if self.chroma.process_frame(frame):
            label = self.classifier.classify(self.chroma.chromagram, now, hint=self._hint())

        if self.tracker.update(label, now):
            self._notify()
        return self.classifier.current_label

    def _hint(self) -> Optional[str]:
        """Expected chord as it will sound, i.e. shifted up by the capo."""
        expected = self.tracker.expected_label
        capo = self.tracker.state.capo
        if expected and capo:
            return transpose(expected, capo)
        return expected

    def set_expected_sequence(
        self, sequence: Union[ExpectedChordSequence, Iterable[Iterable[str]]]
    ) -> None:
        self.tracker.set_sequence(_as_sequence(sequence), self.clock())
        self._notify()

    def set_capo(self, capo: Optional[int]) -> None:
        self.tracker.set_capo(capo)

    def override_position(self, section: int, entry: int) -> None:
        """User picked a chord; continue following from there."""
        self.tracker.override_position(section, entry, self.clock())
        self._notify()

    def current_chord(self) -> str:
        return self.classifier.current_label

    def current_position(self) -> Position:
        return self.tracker.position

    def current_mode(self) -> TrackerMode:
        return self.tracker.mode

    def played_flags(self) -> List[List[bool]]:
        return self.tracker.sequence.played_flags()

    def snapshot(self) -> TrackerSnapshot:
        return self.tracker.snapshot()

    def _notify(self) -> None:
        if self.on_position_change is not None:
            self.on_position_change(self.tracker.snapshot())


def _as_sequence(sequence) -> ExpectedChordSequence:
    if isinstance(sequence, ExpectedChordSequence):
        return sequence
    return ExpectedChordSequence(sequence)
