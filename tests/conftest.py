from __future__ import annotations

import sys
from pathlib import Path

import numpy as np

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from abscope.types import SampleBuffer  # noqa: E402


def sine(freq_hz: float, duration_s: float, fs: float, amp: float = 1.0) -> np.ndarray:
    t = np.arange(int(round(duration_s * fs))) / fs
    return amp * np.sin(2.0 * np.pi * freq_hz * t)


def make_buffer(*channels: np.ndarray, fs: float = 48000.0) -> SampleBuffer:
    return SampleBuffer.from_arrays(*channels, sample_rate=fs)


def stepped_levels(levels_db: list[float], seconds_each: float, fs: float, freq_hz: float = 1000.0) -> np.ndarray:
    """Concatenate 1 kHz tone segments at the given dBFS peak levels."""
    parts = [sine(freq_hz, seconds_each, fs, amp=10.0 ** (db / 20.0)) for db in levels_db]
    return np.concatenate(parts)
