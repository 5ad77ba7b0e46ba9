"""Sequence tracking - Follow a performer through a chord sheet.

The tracker consumes one detected chord label per cycle and decides
where in the expected sequence the performer is. Decisions are
irrevocable and made from noisy input, so every move is gated by time:

- the current chord advances only after a debounce since the last move
- skipping ahead ``k`` chords requires ``k`` tolerance steps of waiting
- with no progress for ``stall_timeout`` the tracker moves on by one
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from ..core.constants import NO_CHORD
from ..inference.labels import chord_matches
from .sequence import ExpectedChordSequence, Position

logger = logging.getLogger(__name__)


class TrackerMode(Enum):
    """Tracker state machine modes."""

    AWAITING_FIRST_CHORD = "awaiting_first_chord"
    FOLLOWING = "following"
    AWAITING_NEXT_SECTION = "awaiting_next_section"
    FINISHED = "finished"


@dataclass
class TrackerConfig:
    """Configuration for sequence tracking. Times are in seconds.

    Attributes:
        lookahead: Chords beyond the current one considered for skips (default: 2)
        first_skip_tolerance: Wait per skipped chord before the first chord is found (default: 1.0)
        skip_tolerance: Wait per skipped chord while following (default: 1.5)
        debounce: Minimum time between two regular advances (default: 0.5)
        stall_timeout: Force an advance after this long without progress (default: 7.0)
    """

    lookahead: int = 2
    first_skip_tolerance: float = 1.0
    skip_tolerance: float = 1.5
    debounce: float = 0.5
    stall_timeout: float = 7.0


@dataclass
class TrackerState:
    """Mutable tracker state."""

    section: int = 0
    entry: int = 0
    mode: TrackerMode = TrackerMode.AWAITING_FIRST_CHORD
    last_advance: Optional[float] = None
    mode_entered: Optional[float] = None
    capo: Optional[int] = None

    @property
    def position(self) -> Position:
        return (self.section, self.entry)

    @position.setter
    def position(self, value: Position) -> None:
        self.section, self.entry = value


@dataclass(frozen=True)
class TrackerSnapshot:
    """Immutable view of the tracker for presentation code."""

    position: Position
    mode: TrackerMode
    expected: Optional[str]
    played: Tuple[Tuple[bool, ...], ...]


class SequenceTracker:
    """Track the performer's position in an expected chord sequence."""

    def __init__(
        self,
        sequence: Optional[ExpectedChordSequence] = None,
        config: Optional[TrackerConfig] = None,
        capo: Optional[int] = None,
    ):
        self.config = config or TrackerConfig()
        self.sequence = sequence if sequence is not None else ExpectedChordSequence()
        self.state = TrackerState(capo=capo)

    def start(self, now: float) -> None:
        """Begin a tracking session at the first chord."""
        self.sequence.clear_played()
        capo = self.state.capo
        self.state = TrackerState(
            mode=TrackerMode.AWAITING_FIRST_CHORD,
            last_advance=now,
            mode_entered=now,
            capo=capo,
        )
        first = self.sequence.first_position()
        if first is not None:
            self.state.position = first

    def set_sequence(self, sequence: ExpectedChordSequence, now: float) -> None:
        """Replace the expected sequence and restart."""
        self.sequence = sequence
        logger.info(
            "Expected sequence set: %d chords in %d sections",
            len(sequence),
            len(sequence.sections),
        )
        self.start(now)

    def set_capo(self, capo: Optional[int]) -> None:
        self.state.capo = capo

    def reset(self) -> None:
        """Forget the session: unplayed sequence, initial state, no timestamps."""
        self.sequence.clear_played()
        self.state = TrackerState(capo=self.state.capo)
        first = self.sequence.first_position()
        if first is not None:
            self.state.position = first

    @property
    def position(self) -> Position:
        return self.state.position

    @property
    def mode(self) -> TrackerMode:
        return self.state.mode

    @property
    def expected_label(self) -> Optional[str]:
        """Chord the performer is expected to play next, if any."""
        if self.state.mode == TrackerMode.FINISHED:
            return None
        return self.sequence.label(self.state.position)

    def snapshot(self) -> TrackerSnapshot:
        return TrackerSnapshot(
            position=self.state.position,
            mode=self.state.mode,
            expected=self.expected_label,
            played=tuple(tuple(flags) for flags in self.sequence.played_flags()),
        )

    def _matches(self, label: str, position: Position) -> bool:
        expected = self.sequence.label(position)
        return expected is not None and chord_matches(label, expected, self.state.capo)

    def update(self, label: Optional[str], now: float) -> bool:
        """
        Consume one detection cycle.

        Args:
            label: Detected chord label, NO_CHORD or None
            now: Current clock time in seconds

        Returns:
            True if position, mode or played flags changed
        """
        if self.sequence.is_empty or self.state.mode == TrackerMode.FINISHED:
            return False

        changed = False
        if label and label != NO_CHORD:
            mode = self.state.mode
            if mode == TrackerMode.AWAITING_FIRST_CHORD:
                changed = self._on_awaiting_first(label, now)
            elif mode == TrackerMode.FOLLOWING:
                changed = self._on_following(label, now)
            elif mode == TrackerMode.AWAITING_NEXT_SECTION:
                changed = self._on_awaiting_next_section(label, now)

        if not changed and self._stalled(now):
            logger.info(
                "No progress for %.1fs at %s, forcing advance",
                now - self.state.last_advance,
                self.state.position,
            )
            self._advance(now)
            changed = True

        return changed

    def _stalled(self, now: float) -> bool:
        state = self.state
        return (
            state.mode == TrackerMode.FOLLOWING
            and state.last_advance is not None
            and now - state.last_advance >= self.config.stall_timeout
        )

    def _on_awaiting_first(self, label: str, now: float) -> bool:
        state = self.state
        if self._matches(label, state.position):
            logger.info("First chord %s found at %s", label, state.position)
            self._set_mode(TrackerMode.FOLLOWING, now)
            state.last_advance = now
            return True

        candidates = self.sequence.lookahead(state.position, self.config.lookahead)
        target = self._find_skip(
            label, candidates, now, self.config.first_skip_tolerance, state.last_advance
        )
        if target is None:
            return False
        self._jump(target, now, allow_section_wait=False)
        return True

    def _on_following(self, label: str, now: float) -> bool:
        state = self.state
        if self._matches(label, state.position):
            if state.last_advance is None or now - state.last_advance > self.config.debounce:
                self._advance(now)
                return True
            return False

        candidates = self.sequence.lookahead(state.position, self.config.lookahead)
        target = self._find_skip(
            label, candidates, now, self.config.skip_tolerance, state.last_advance
        )
        if target is None:
            return False
        self._jump(target, now, allow_section_wait=True)
        return True

    def _on_awaiting_next_section(self, label: str, now: float) -> bool:
        state = self.state
        start = self.sequence.next_section_start(state.position)
        if start is None:
            return False

        candidates = [start] + self.sequence.lookahead(start, self.config.lookahead - 1)
        target = self._find_skip(
            label, candidates, now, self.config.skip_tolerance, state.mode_entered
        )
        if target is None:
            return False
        self._jump(target, now, allow_section_wait=False)
        return True

    def _find_skip(
        self,
        label: str,
        candidates: List[Position],
        now: float,
        tolerance: float,
        since: Optional[float],
    ) -> Optional[Position]:
        """First candidate matching ``label`` whose skip-scaled wait has elapsed."""
        for skip, candidate in enumerate(candidates, start=1):
            if not self._matches(label, candidate):
                continue
            if since is None or now - since > skip * tolerance:
                return candidate
            logger.debug(
                "Skip to %s (%s) held back: %.2fs < %.2fs",
                candidate,
                label,
                now - since,
                skip * tolerance,
            )
        return None

    def _set_mode(self, mode: TrackerMode, now: float) -> None:
        if mode != self.state.mode:
            logger.debug("Mode %s -> %s", self.state.mode.value, mode.value)
        self.state.mode = mode
        self.state.mode_entered = now

    def _advance(self, now: float) -> None:
        """Mark the current chord played and step forward by one."""
        state = self.state
        current = state.position
        self.sequence.entry(current).played = True
        state.last_advance = now

        nxt = self.sequence.next_position(current)
        if nxt is None:
            logger.info("Reached the end of the sequence")
            self._set_mode(TrackerMode.FINISHED, now)
        elif nxt[0] != current[0]:
            self._set_mode(TrackerMode.AWAITING_NEXT_SECTION, now)
        else:
            state.position = nxt
            self._set_mode(TrackerMode.FOLLOWING, now)

    def _jump(self, target: Position, now: float, allow_section_wait: bool) -> None:
        """Move to ``target``, marking everything from here up to it played."""
        state = self.state
        origin = state.position
        self.sequence.mark_played(origin, target)
        state.position = target
        state.last_advance = now
        logger.info("Skipped ahead %s -> %s", origin, target)

        if (
            allow_section_wait
            and self.sequence.is_last_in_section(target)
            and self.sequence.next_section_start(target) is not None
        ):
            self.sequence.entry(target).played = True
            self._set_mode(TrackerMode.AWAITING_NEXT_SECTION, now)
        else:
            self._set_mode(TrackerMode.FOLLOWING, now)

    def override_position(self, section: int, entry: int, now: float) -> None:
        """
        Jump to a position chosen by the user.

        Earlier entries become played, the chosen one and later ones
        unplayed, and the tracker resumes following from there.

        Raises:
            IndexError: If the position does not exist
        """
        position = (section, entry)
        if not self.sequence.is_valid(position):
            raise IndexError(f"No chord at position {position}")

        self.sequence.set_played_before(position)
        self.state.position = position
        self.state.last_advance = now
        self._set_mode(TrackerMode.FOLLOWING, now)
        logger.info("Position overridden to %s", position)
