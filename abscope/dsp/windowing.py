"""Windowing functions for spectrogram frames."""
import numpy as np

# Amplitude compensation applied to Hann-windowed magnitudes.
HANN_CORRECTION = 2.0


def hann(n: int) -> np.ndarray:
    """Symmetric Hann window, 0.5 * (1 - cos(2*pi*i / (n - 1)))."""
    return np.hanning(n).astype(np.float64)
