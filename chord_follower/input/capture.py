"""Live microphone capture with blocking reads.

Frames are pulled synchronously by the caller, so the follower keeps
running on a single thread.
"""

import logging
from typing import Iterator, Optional

import numpy as np

logger = logging.getLogger(__name__)


class MicrophoneStream:
    """Blocking mono input stream that yields fixed-size frames."""

    def __init__(
        self,
        sample_rate: int,
        frame_size: int,
        device: Optional[int] = None,
    ):
        """
        Open the input device.

        Args:
            sample_rate: Capture rate in Hz
            frame_size: Samples per frame
            device: sounddevice device index (default input if None)

        Raises:
            ImportError: If sounddevice is not installed
        """
        import sounddevice as sd

        self.sample_rate = sample_rate
        self.frame_size = frame_size
        self._stream = sd.InputStream(
            samplerate=sample_rate,
            blocksize=frame_size,
            channels=1,
            dtype="float32",
            device=device,
        )
        self._stream.start()
        logger.info("Microphone opened: %d Hz, %d-sample frames", sample_rate, frame_size)

    @property
    def closed(self) -> bool:
        return self._stream is None

    def read(self) -> np.ndarray:
        """Block until one frame is available and return it."""
        if self._stream is None:
            raise RuntimeError("Microphone stream is closed")
        data, overflowed = self._stream.read(self.frame_size)
        if overflowed:
            logger.debug("Input overflow, frames were dropped")
        return data[:, 0]

    def frames(self) -> Iterator[np.ndarray]:
        while self._stream is not None:
            yield self.read()

    def close(self) -> None:
        """Stop and release the device. Safe to call twice."""
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.stop()
            stream.close()
            logger.info("Microphone closed")

    def __enter__(self) -> "MicrophoneStream":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
