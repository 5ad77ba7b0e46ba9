"""Analysis layer - Low-level signal analysis.

This layer turns raw audio frames into pitch-class energies:
- Anti-alias filtering and decimation
- Radix-2 FFT
- Streaming chromagram
"""

from .prefilter import PreFilter, DEFAULT_BIQUAD
from .fft import SpectralAnalyzer, is_power_of_two
from .chroma import ChromaExtractor, ChromaConfig

__all__ = [
    "PreFilter",
    "DEFAULT_BIQUAD",
    "SpectralAnalyzer",
    "is_power_of_two",
    "ChromaExtractor",
    "ChromaConfig",
]
