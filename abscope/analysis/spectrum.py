"""Time-averaged spectra, spectrum differences and frequency-axis labels."""
from __future__ import annotations

import logging
import math

import numpy as np

from abscope.types import FrequencyScale, SpectrogramResult

logger = logging.getLogger(__name__)

KEY_FREQS_HZ = (20, 50, 100, 200, 500, 1000, 2000, 5000, 10000, 20000)


def time_range_to_frames(
    spec: SpectrogramResult,
    start_time: float,
    end_time: float,
) -> tuple[int, int]:
    """Map a time range onto inclusive frame indices, clamped to the data."""
    steps = spec.num_time_steps
    duration = spec.duration
    start_idx = int(math.floor(start_time / duration * steps))
    end_idx = int(math.floor(end_time / duration * steps))
    first = max(0, min(start_idx, steps - 1))
    last = max(first, min(end_idx, steps - 1))
    return first, last


def average_spectrum(
    spec: SpectrogramResult,
    start_time: float,
    end_time: float,
) -> np.ndarray:
    """
    Mean magnitude spectrum (dB) of the frames inside [start_time, end_time].

    Frames are averaged as linear magnitudes and the mean is converted back
    to dB. A range that collapses to one frame returns that frame unchanged.

    Args:
        spec: Spectrogram to average
        start_time: Range start in seconds
        end_time: Range end in seconds

    Returns:
        dB value per kept bin (zeros when the spectrogram has no duration)
    """
    if spec.num_time_steps == 0 or spec.duration <= 0:
        logger.warning("Spectrogram has no duration; returning a zero spectrum.")
        return np.zeros(spec.num_bins, dtype=np.float64)

    first, last = time_range_to_frames(spec, start_time, end_time)
    if last <= first:
        logger.debug("Time range covers a single frame (%d); returning it.", first)
        return spec.data[first].astype(np.float64, copy=True)

    linear = 10.0 ** (spec.data[first:last + 1] / 20.0)
    mean = np.mean(linear, axis=0)
    return 20.0 * np.log10(mean + 1e-10)


def spectrum_difference(spectrum1: np.ndarray, spectrum2: np.ndarray) -> np.ndarray:
    """
    spectrum2 - spectrum1 per bin over the shorter length.

    Non-finite values count as silent (-inf): both silent gives 0, only
    spectrum1 silent gives +inf and only spectrum2 silent gives -inf.
    """
    s1 = np.asarray(spectrum1, dtype=np.float64)
    s2 = np.asarray(spectrum2, dtype=np.float64)
    n = min(s1.size, s2.size)
    s1 = s1[:n]
    s2 = s2[:n]
    ok1 = np.isfinite(s1)
    ok2 = np.isfinite(s2)

    diff = np.zeros(n, dtype=np.float64)
    both = ok1 & ok2
    diff[both] = s2[both] - s1[both]
    diff[~ok1 & ok2] = np.inf
    diff[ok1 & ~ok2] = -np.inf
    return diff


def clamp_to_axis(values: np.ndarray, min_db: float, max_db: float) -> np.ndarray:
    """
    Pin dB values onto a chart axis [min_db, max_db].

    -inf lands on min_db and +inf on max_db; NaN stays NaN (a gap).
    """
    v = np.asarray(values, dtype=np.float64)
    return np.clip(v, min_db, max_db)


def _key_label(freq: int) -> str:
    if freq >= 1000:
        return f"{freq // 1000}K"
    return str(freq)


def frequency_scale(
    sample_rate: float,
    fft_size: int,
    num_bins: int,
    max_freq: float = 22000.0,
) -> FrequencyScale:
    """
    Bin center frequencies plus sparse axis labels at key frequencies.

    A bin is labeled when it is the bin within half a bin width of a key
    frequency (20 Hz ... 20 kHz, up to max_freq); each label is used once.
    """
    if not sample_rate or not fft_size:
        return FrequencyScale(freqs_hz=np.zeros(0, dtype=np.float64), labels=[])

    step = sample_rate / fft_size
    freqs = np.arange(num_bins, dtype=np.float64) * step
    keys = [k for k in KEY_FREQS_HZ if k <= max_freq]
    labels: list[str] = []
    taken: set[str] = set()
    for f in freqs:
        label = ""
        if keys:
            closest = min(keys, key=lambda k: abs(f - k))
            if abs(f - closest) <= step / 2:
                key_label = _key_label(closest)
                if key_label not in taken:
                    label = key_label
                    taken.add(key_label)
        labels.append(label)
    return FrequencyScale(freqs_hz=freqs, labels=labels)
