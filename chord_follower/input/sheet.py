"""Plain-text chord sheets.

Each line that consists only of chord symbols is one section, in the
order the chords appear. Lyric lines and blank lines are ignored. A line
such as ``Capo: 2`` or ``capo 3rd fret`` sets the capo::

    Capo: 2
    G        D         Em   C
    I found a love for me
    G   D   C
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from ..tracking.sequence import ExpectedChordSequence

_CHORD_TOKEN = re.compile(
    r"^[A-G](#|b)?(m|min|maj|dim|aug|sus|add)?[0-9]*(sus[24]?|add[0-9]+|[#b][0-9]+)*(/[A-G](#|b)?)?$"
)
_CAPO_LINE = re.compile(r"\bcapo\b\D*(\d+)", re.IGNORECASE)


@dataclass
class ChordSheet:
    """A parsed chord sheet."""

    sections: List[List[str]]
    capo: Optional[int] = None

    def to_sequence(self) -> ExpectedChordSequence:
        return ExpectedChordSequence(self.sections)


def is_chord_token(token: str) -> bool:
    return bool(_CHORD_TOKEN.match(token))


def parse_chord_sheet(text: str) -> ChordSheet:
    """
    Parse chord-sheet text.

    Args:
        text: Sheet contents

    Returns:
        ChordSheet with one section per chord line
    """
    sections = []
    capo = None
    for line in text.splitlines():
        capo_match = _CAPO_LINE.search(line)
        if capo_match:
            capo = int(capo_match.group(1))
            continue
        tokens = line.split()
        if tokens and all(is_chord_token(t) for t in tokens):
            sections.append(tokens)
    return ChordSheet(sections=sections, capo=capo)


def load_chord_sheet(path: Union[str, Path]) -> ChordSheet:
    """
    Load and parse a chord-sheet text file.

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Chord sheet not found: {path}")
    return parse_chord_sheet(path.read_text(encoding="utf-8"))
