"""Streaming chromagram extraction.

Incoming frames are low-passed and decimated, appended to a sliding
buffer, and every ``hop_size`` decimated samples the buffer is windowed,
transformed and folded into 12 pitch-class energies. For each pitch
class the strongest magnitude near every octave/harmonic target
frequency is summed, divided by the harmonic number.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy.signal import get_window

from ..core.constants import (
    DEFAULT_BUFFER_SIZE,
    DEFAULT_DOWNSAMPLE_FACTOR,
    DEFAULT_FRAME_SIZE,
    DEFAULT_HOP_SIZE,
    DEFAULT_SR,
    REFERENCE_FREQUENCY,
)
from .fft import SpectralAnalyzer
from .prefilter import PreFilter


@dataclass
class ChromaConfig:
    """Configuration for chromagram extraction.

    Attributes:
        sample_rate: Input sample rate in Hz (default: 44100)
        frame_size: Samples per incoming frame (default: 2048)
        downsample_factor: Decimation ratio applied before buffering (default: 4)
        buffer_size: Analysis buffer length in decimated samples, power of two (default: 8192)
        hop_size: Decimated samples between recomputations (default: 4096)
        reference_frequency: Frequency of pitch class 0 in the lowest octave (default: C3)
        num_octaves: Octaves summed per pitch class (default: 2)
        num_harmonics: Harmonics summed per octave (default: 2)
        search_radius: Bin search half-width for the fundamental; scales with harmonic (default: 2)
        harmonic_decay: Extra damping per harmonic order, 1.0 = none (default: 1.0)
    """

    sample_rate: int = DEFAULT_SR
    frame_size: int = DEFAULT_FRAME_SIZE
    downsample_factor: int = DEFAULT_DOWNSAMPLE_FACTOR
    buffer_size: int = DEFAULT_BUFFER_SIZE
    hop_size: int = DEFAULT_HOP_SIZE
    reference_frequency: float = REFERENCE_FREQUENCY
    num_octaves: int = 2
    num_harmonics: int = 2
    search_radius: int = 2
    harmonic_decay: float = 1.0

    @property
    def decimated_rate(self) -> float:
        """Sample rate after decimation."""
        return self.sample_rate / self.downsample_factor

    @property
    def bin_resolution(self) -> float:
        """Hz per FFT bin of the analysis buffer."""
        return self.decimated_rate / self.buffer_size


class ChromaExtractor:
    """Maintain a sliding sample buffer and compute a chromagram per hop."""

    def __init__(self, config: Optional[ChromaConfig] = None):
        self.config = config or ChromaConfig()
        cfg = self.config

        # Rejects non power-of-two buffer sizes before any state exists
        self.fft = SpectralAnalyzer(cfg.buffer_size)
        self.prefilter = PreFilter(cfg.frame_size, cfg.downsample_factor)
        if self.prefilter.output_size > cfg.buffer_size:
            raise ValueError(
                f"Decimated frame ({self.prefilter.output_size}) exceeds buffer size ({cfg.buffer_size})"
            )

        # Hamming, periodic form (0.54 - 0.46 cos(2 pi n / N))
        self.window = get_window("hamming", cfg.buffer_size, fftbins=True)
        self._targets = self._build_targets()

        self.buffer = np.zeros(cfg.buffer_size, dtype=np.float64)
        self.magnitude_spectrum = np.zeros(self.fft.num_bins, dtype=np.float64)
        self._chromagram = np.zeros(12, dtype=np.float64)
        self._samples_since_update = 0
        self._ready = False

    def _build_targets(self):
        """Precompute (pitch_class, lo_bin, hi_bin, weight) per search window."""
        cfg = self.config
        resolution = cfg.bin_resolution
        last_bin = self.fft.num_bins - 1
        targets = []
        for pitch_class in range(12):
            note_freq = cfg.reference_frequency * 2 ** (pitch_class / 12)
            for octave in range(1, cfg.num_octaves + 1):
                for harmonic in range(1, cfg.num_harmonics + 1):
                    center = int(np.floor(note_freq * octave * harmonic / resolution + 0.5))
                    radius = cfg.search_radius * harmonic
                    lo = max(center - radius, 0)
                    hi = min(center + radius, last_bin)
                    if lo > hi:
                        continue
                    weight = cfg.harmonic_decay ** (harmonic - 1) / harmonic
                    targets.append((pitch_class, lo, hi, weight))
        return targets

    @property
    def is_ready(self) -> bool:
        """True only right after a frame that triggered a recomputation."""
        return self._ready

    @property
    def chromagram(self) -> np.ndarray:
        """Latest pitch-class vector (copy)."""
        return self._chromagram.copy()

    def process_frame(self, frame: np.ndarray) -> bool:
        """
        Push one audio frame through the extractor.

        Args:
            frame: Audio frame of ``config.frame_size`` samples

        Returns:
            True if a new chromagram was computed for this frame
        """
        self._ready = False
        decimated = self.prefilter.process(frame)
        shift = len(decimated)

        self.buffer[:-shift] = self.buffer[shift:]
        self.buffer[-shift:] = decimated

        self._samples_since_update += shift
        if self._samples_since_update >= self.config.hop_size:
            self._compute_chromagram()
            self._samples_since_update = 0
            self._ready = True

        return self._ready

    def _compute_chromagram(self) -> None:
        self.magnitude_spectrum[:] = self.fft.magnitude(self.buffer * self.window)
        spectrum = self.magnitude_spectrum

        chroma = self._chromagram
        chroma.fill(0.0)
        for pitch_class, lo, hi, weight in self._targets:
            chroma[pitch_class] += spectrum[lo:hi + 1].max() * weight

    def reset(self) -> None:
        """Clear buffers, filter state and the last chromagram."""
        self.prefilter.reset()
        self.buffer.fill(0.0)
        self.magnitude_spectrum.fill(0.0)
        self._chromagram.fill(0.0)
        self._samples_since_update = 0
        self._ready = False
