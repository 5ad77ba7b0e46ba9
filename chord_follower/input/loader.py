"""Audio files as frame streams for offline replay."""

from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

import librosa
import numpy as np

from ..core.constants import DEFAULT_FRAME_SIZE, DEFAULT_SR


class AudioLoader:
    """Reads a recording at the follower's sample rate and frames it."""

    SUPPORTED_FORMATS = {".wav", ".mp3", ".flac", ".ogg", ".m4a"}

    def __init__(
        self,
        target_sr: int = DEFAULT_SR,
        peak: Optional[float] = None,
    ):
        """
        Initialize AudioLoader.

        Args:
            target_sr: Rate the follower expects; files are resampled to it
            peak: Scale the recording to this absolute peak (left as is if None)
        """
        self.target_sr = target_sr
        self.peak = peak

    def load(
        self,
        path: Union[str, Path],
        offset: float = 0.0,
        duration: Optional[float] = None,
    ) -> Tuple[np.ndarray, int]:
        """
        Load a mono clip of an audio file.

        Levels are kept unless ``peak`` is set; the classifier's silence
        gate compares absolute energy.

        Args:
            path: Path to audio file
            offset: Start reading this many seconds in
            duration: Seconds to read (to the end if None)

        Returns:
            Tuple of (float32 samples, sample rate)

        Raises:
            ValueError: If file format not supported
            FileNotFoundError: If file doesn't exist
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Audio file not found: {path}")

        if path.suffix.lower() not in self.SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported format: {path.suffix}. "
                f"Supported: {', '.join(sorted(self.SUPPORTED_FORMATS))}"
            )

        audio, sr = librosa.load(
            str(path), sr=self.target_sr, mono=True, offset=offset, duration=duration
        )

        if self.peak is not None:
            loudest = np.abs(audio).max(initial=0.0)
            if loudest > 0:
                audio = audio * (self.peak / loudest)

        return audio.astype(np.float32, copy=False), sr

    def frames(
        self, path: Union[str, Path], frame_size: int = DEFAULT_FRAME_SIZE
    ) -> Iterator[np.ndarray]:
        """Load a file and yield it frame by frame."""
        audio, _ = self.load(path)
        yield from iter_frames(audio, frame_size)


def iter_frames(audio: np.ndarray, frame_size: int = DEFAULT_FRAME_SIZE) -> Iterator[np.ndarray]:
    """
    Cut audio into consecutive frames of exactly ``frame_size`` samples.

    The last partial frame is zero-padded.
    """
    audio = np.asarray(audio, dtype=np.float32)
    for start in range(0, len(audio), frame_size):
        frame = audio[start:start + frame_size]
        if len(frame) < frame_size:
            frame = np.pad(frame, (0, frame_size - len(frame)))
        yield frame
