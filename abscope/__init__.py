"""
abscope - A/B audio comparison

BS.1770-4 loudness (momentary, integrated, loudness range), adaptive
spectrograms with Mel-warped rasters, and spectrum differences for two
recordings.
"""
from abscope.version import __version__
from abscope.errors import InvalidInputError, InvalidSizeError
from abscope.types import (
    SampleBuffer,
    BiquadCoefficients,
    LoudnessResult,
    RangeStats,
    MelScaleInfo,
    MelRaster,
    SpectrogramResult,
    DiffResult,
    FrequencyScale,
)
from abscope.config import (
    AnalysisConfig,
    LoudnessConfig,
    SpectrogramConfig,
    SpectrumDisplayConfig,
)
from abscope.metrics.loudness import compute_loudness
from abscope.metrics.range_stats import stats_for_range
from abscope.analysis.spectrogram import compute_spectrogram, diff_spectrograms
from abscope.analysis.spectrum import average_spectrum, spectrum_difference

__all__ = [
    "__version__",
    "InvalidInputError",
    "InvalidSizeError",
    "SampleBuffer",
    "BiquadCoefficients",
    "LoudnessResult",
    "RangeStats",
    "MelScaleInfo",
    "MelRaster",
    "SpectrogramResult",
    "DiffResult",
    "FrequencyScale",
    "AnalysisConfig",
    "LoudnessConfig",
    "SpectrogramConfig",
    "SpectrumDisplayConfig",
    "compute_loudness",
    "stats_for_range",
    "compute_spectrogram",
    "diff_spectrograms",
    "average_spectrum",
    "spectrum_difference",
]
