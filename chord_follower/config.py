"""Aggregate configuration for the whole follower pipeline.

Each component owns its own dataclass config; ``FollowerConfig`` bundles
them so a single JSON document can tune everything::

    {
        "chroma": {"sample_rate": 48000, "num_harmonics": 3},
        "classifier": {"min_chord_energy": 60},
        "tracker": {"stall_timeout": 10}
    }
"""

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Union

from .analysis.chroma import ChromaConfig
from .inference.chords import ClassifierConfig
from .tracking.tracker import TrackerConfig


def _build(cls, values: Dict[str, Any], section: str):
    known = {f.name for f in fields(cls)}
    unknown = set(values) - known
    if unknown:
        raise ValueError(f"Unknown {section} option(s): {', '.join(sorted(unknown))}")
    return cls(**values)


@dataclass
class FollowerConfig:
    """Configuration for the complete detection and tracking pipeline."""

    chroma: ChromaConfig = field(default_factory=ChromaConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    tracker: TrackerConfig = field(default_factory=TrackerConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FollowerConfig":
        """
        Build a config from nested dictionaries.

        Raises:
            ValueError: On unknown sections or options
        """
        unknown = set(data) - {"chroma", "classifier", "tracker"}
        if unknown:
            raise ValueError(f"Unknown config section(s): {', '.join(sorted(unknown))}")
        return cls(
            chroma=_build(ChromaConfig, data.get("chroma", {}), "chroma"),
            classifier=_build(ClassifierConfig, data.get("classifier", {}), "classifier"),
            tracker=_build(TrackerConfig, data.get("tracker", {}), "tracker"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(path: Union[str, Path]) -> FollowerConfig:
    """
    Load a FollowerConfig from a JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the JSON contains unknown options
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path) as f:
        return FollowerConfig.from_dict(json.load(f))
