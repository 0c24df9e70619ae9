"""Mel scale conversions (O'Shaughnessy form, 2595 * log10(1 + f/700))."""
from __future__ import annotations
import numpy as np


def hz_to_mel(hz):
    """Convert frequency in Hz to Mel. Accepts scalars or arrays."""
    return 2595.0 * np.log10(1.0 + np.asarray(hz, dtype=np.float64) / 700.0)


def mel_to_hz(mel):
    """Convert Mel to frequency in Hz. Accepts scalars or arrays."""
    return 700.0 * (10.0 ** (np.asarray(mel, dtype=np.float64) / 2595.0) - 1.0)
