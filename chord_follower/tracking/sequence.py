"""Expected chord sequence - the song's chord sheet as ordered sections."""

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple, Union

Position = Tuple[int, int]  # (section index, entry index)


@dataclass
class ChordEntry:
    """One chord of the sheet."""

    label: str
    played: bool = False


class ExpectedChordSequence:
    """Ordered sections of ordered chord entries.

    Positions are ``(section, entry)`` tuples and compare in reading
    order, so ``a < b`` means ``a`` comes before ``b`` in the song.
    Empty sections are allowed and are skipped when walking forward.
    """

    def __init__(self, sections: Iterable[Iterable[Union[str, ChordEntry]]] = ()):
        self.sections: List[List[ChordEntry]] = [
            [e if isinstance(e, ChordEntry) else ChordEntry(str(e)) for e in section]
            for section in sections
        ]

    def __len__(self) -> int:
        return sum(len(section) for section in self.sections)

    def __repr__(self) -> str:
        return f"ExpectedChordSequence({self.labels()!r})"

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    def positions(self) -> Iterator[Position]:
        """All positions in reading order."""
        for s, section in enumerate(self.sections):
            for e in range(len(section)):
                yield (s, e)

    def is_valid(self, position: Position) -> bool:
        s, e = position
        return 0 <= s < len(self.sections) and 0 <= e < len(self.sections[s])

    def entry(self, position: Position) -> ChordEntry:
        if not self.is_valid(position):
            raise IndexError(f"No chord at position {position}")
        s, e = position
        return self.sections[s][e]

    def label(self, position: Position) -> Optional[str]:
        """Label at a position, or None if the position is invalid."""
        if not self.is_valid(position):
            return None
        return self.entry(position).label

    def first_position(self) -> Optional[Position]:
        return self._section_start(0)

    def _section_start(self, section: int) -> Optional[Position]:
        for s in range(section, len(self.sections)):
            if self.sections[s]:
                return (s, 0)
        return None

    def next_position(self, position: Position) -> Optional[Position]:
        """Position after ``position``, crossing into later sections."""
        s, e = position
        if e + 1 < len(self.sections[s]):
            return (s, e + 1)
        return self._section_start(s + 1)

    def next_section_start(self, position: Position) -> Optional[Position]:
        """First entry of the first non-empty section after ``position``'s."""
        return self._section_start(position[0] + 1)

    def lookahead(self, position: Position, count: int) -> List[Position]:
        """Up to ``count`` positions following ``position``."""
        result = []
        current = position
        while len(result) < count:
            current = self.next_position(current)
            if current is None:
                break
            result.append(current)
        return result

    def is_last_in_section(self, position: Position) -> bool:
        s, e = position
        return self.is_valid(position) and e == len(self.sections[s]) - 1

    def mark_played(self, start: Position, stop: Position) -> None:
        """Mark every entry with ``start <= position < stop`` as played."""
        for position in self.positions():
            if start <= position < stop:
                self.entry(position).played = True

    def set_played_before(self, position: Position) -> None:
        """Entries before ``position`` played, the rest unplayed."""
        for p in self.positions():
            self.entry(p).played = p < position

    def clear_played(self) -> None:
        for section in self.sections:
            for entry in section:
                entry.played = False

    def labels(self) -> List[List[str]]:
        return [[entry.label for entry in section] for section in self.sections]

    def played_flags(self) -> List[List[bool]]:
        return [[entry.played for entry in section] for section in self.sections]
