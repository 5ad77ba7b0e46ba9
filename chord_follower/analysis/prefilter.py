"""Anti-alias low-pass filtering and fixed-ratio downsampling."""

from typing import Tuple

import numpy as np
from scipy.signal import lfilter

# Second-order Butterworth low-pass, cutoff at 0.1 x input sample rate.
# With a downsample factor of 4 that is 80% of the decimated Nyquist.
DEFAULT_BIQUAD = (
    (0.0674552738890719, 0.1349105477781438, 0.0674552738890719),  # b0, b1, b2
    (1.0, -1.1429805025399011, 0.4128015980961886),  # a0, a1, a2
)


class PreFilter:
    """Biquad low-pass plus decimation, with state carried across frames."""

    def __init__(
        self,
        frame_size: int,
        downsample_factor: int = 4,
        coefficients: Tuple[Tuple[float, ...], Tuple[float, ...]] = DEFAULT_BIQUAD,
    ):
        """
        Initialize PreFilter.

        Args:
            frame_size: Number of samples in every incoming frame
            downsample_factor: Keep every Nth filtered sample
            coefficients: ((b0, b1, b2), (a0, a1, a2)) biquad coefficients
        """
        if downsample_factor < 1:
            raise ValueError(f"Downsample factor must be >= 1, got {downsample_factor}")
        if frame_size < downsample_factor:
            raise ValueError(
                f"Frame size {frame_size} is smaller than downsample factor {downsample_factor}"
            )

        self.frame_size = frame_size
        self.downsample_factor = downsample_factor
        self.b = np.asarray(coefficients[0], dtype=np.float64)
        self.a = np.asarray(coefficients[1], dtype=np.float64)
        if self.b.shape != (3,) or self.a.shape != (3,):
            raise ValueError("Biquad coefficients must be two triples (b, a)")

        self.output_size = frame_size // downsample_factor
        self._state = np.zeros(2, dtype=np.float64)
        self._output = np.zeros(self.output_size, dtype=np.float64)

    def process(self, frame: np.ndarray) -> np.ndarray:
        """
        Filter a full frame, then decimate.

        Args:
            frame: Audio frame of length ``frame_size``

        Returns:
            Decimated frame of length ``frame_size // downsample_factor``.
            The array is reused by the next call.
        """
        samples = np.asarray(frame, dtype=np.float64)
        if samples.shape != (self.frame_size,):
            raise ValueError(
                f"Expected frame of length {self.frame_size}, got shape {samples.shape}"
            )

        filtered, self._state = lfilter(self.b, self.a, samples, zi=self._state)
        step = self.downsample_factor
        np.copyto(self._output, filtered[: self.output_size * step : step])
        return self._output

    def reset(self) -> None:
        """Forget filter history."""
        self._state = np.zeros(2, dtype=np.float64)
        self._output.fill(0.0)
