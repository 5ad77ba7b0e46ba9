"""Fixed-size radix-2 FFT for real-valued analysis buffers."""

from typing import List, Tuple

import numpy as np


def is_power_of_two(n: int) -> bool:
    """True if n is a positive power of two (1 excluded)."""
    return n >= 2 and (n & (n - 1)) == 0


class SpectralAnalyzer:
    """Iterative Cooley-Tukey FFT of a fixed power-of-two size.

    The bit-reversal permutation and the twiddle factors for every stage
    are computed once at construction. Within a stage the twiddles are
    produced by repeatedly rotating with the stage's fixed step
    ``exp(-i*pi/half)``, so no per-element sine or cosine is evaluated.
    """

    def __init__(self, size: int):
        """
        Initialize SpectralAnalyzer.

        Args:
            size: Transform length, must be a power of two

        Raises:
            ValueError: If size is not a power of two
        """
        if not is_power_of_two(size):
            raise ValueError(f"FFT size must be a power of two, got {size}")

        self.size = size
        self.num_bins = size // 2 + 1
        self._reverse = self._build_reverse_table(size)
        self._stages = self._build_stages(size)
        self._work = np.zeros(size, dtype=np.complex128)

    @staticmethod
    def _build_reverse_table(size: int) -> np.ndarray:
        table = np.zeros(size, dtype=np.intp)
        limit = 1
        bit = size >> 1
        while limit < size:
            table[limit:2 * limit] = table[:limit] + bit
            limit <<= 1
            bit >>= 1
        return table

    @staticmethod
    def _build_stages(size: int) -> List[Tuple[int, np.ndarray]]:
        stages = []
        half = 1
        while half < size:
            step = complex(np.cos(-np.pi / half), np.sin(-np.pi / half))
            twiddles = np.ones(half, dtype=np.complex128)
            if half > 1:
                twiddles[1:] = np.cumprod(np.full(half - 1, step))
            stages.append((half, twiddles))
            half <<= 1
        return stages

    def forward(self, buffer: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Transform a real buffer.

        Args:
            buffer: Real samples, length equal to ``size``

        Returns:
            Tuple of (real, imag) for bins 0..size/2 inclusive
        """
        samples = np.asarray(buffer, dtype=np.float64)
        if samples.shape != (self.size,):
            raise ValueError(
                f"Expected buffer of length {self.size}, got shape {samples.shape}"
            )

        work = self._work
        work[:] = samples[self._reverse]

        for half, twiddles in self._stages:
            # [block, lower/upper half, offset within half]
            blocks = work.reshape(-1, 2, half)
            rotated = blocks[:, 1, :] * twiddles
            blocks[:, 1, :] = blocks[:, 0, :] - rotated
            blocks[:, 0, :] += rotated

        spectrum = work[: self.num_bins]
        return spectrum.real.copy(), spectrum.imag.copy()

    def magnitude(self, buffer: np.ndarray) -> np.ndarray:
        """Magnitude spectrum (bins 0..size/2) of a real buffer."""
        real, imag = self.forward(buffer)
        return np.hypot(real, imag)
