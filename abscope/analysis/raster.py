"""
Mel-warped rasters built from linear-frequency spectrogram data.

Each output row picks the nearest FFT bin to the row's Mel position, so
the raster is perceptually spaced without re-running the transform.
"""
from __future__ import annotations

import numpy as np

from abscope.analysis.melscale import hz_to_mel, mel_to_hz
from abscope.types import DiffResult, MelRaster, MelScaleInfo, SpectrogramResult


def mel_row_bins(
    sample_rate: float,
    fft_size: int,
    num_bins: int,
    render_height: int,
) -> tuple[np.ndarray, MelScaleInfo]:
    """
    Source bin index for every raster row (row 0 = highest frequency).

    The Mel axis spans bin 1 to bin num_bins.
    """
    min_mel = float(hz_to_mel(1.0 * sample_rate / fft_size))
    max_mel = float(hz_to_mel(num_bins * sample_rate / fft_size))
    mel_range = max_mel - min_mel
    info = MelScaleInfo(min_mel=min_mel, mel_range=mel_range, render_height=render_height)

    y = np.arange(render_height, dtype=np.float64)
    mel_norm = (render_height - 1 - y) / (render_height - 1)
    target_hz = mel_to_hz(min_mel + mel_norm * mel_range)
    bins = np.floor(target_hz * fft_size / sample_rate + 0.5).astype(np.int64)
    bins = np.clip(bins, 0, max(0, num_bins - 1))
    return bins, info


def build_spectrogram_raster(spec: SpectrogramResult) -> MelRaster:
    """Normalize dB to [0, 1] over [min_db, max_db] and Mel-warp the rows."""
    bins, info = mel_row_bins(spec.sample_rate, spec.fft_size, spec.num_bins, spec.render_height)
    db_range = spec.max_db - spec.min_db
    norm = (spec.data - spec.min_db) / (db_range or 1.0)
    norm = np.clip(norm, 0.0, 1.0)
    values = norm[:, bins].T if spec.num_bins else np.zeros((spec.render_height, spec.num_time_steps))
    return MelRaster(values=np.ascontiguousarray(values), scale=info, signed=False)


def build_diff_raster(diff: DiffResult) -> MelRaster:
    """
    Normalize differences by max_diff, apply sign-preserving power scaling
    (exponent = sensitivity, < 1 boosts small differences), clamp to [-1, 1].
    """
    bins, info = mel_row_bins(diff.sample_rate, diff.fft_size, diff.num_bins, diff.render_height)
    norm = diff.data / (diff.max_diff or 1.0)
    scaled = np.sign(norm) * np.abs(norm) ** diff.sensitivity
    scaled = np.clip(scaled, -1.0, 1.0)
    values = scaled[:, bins].T if diff.num_bins else np.zeros((diff.render_height, diff.num_time_steps))
    return MelRaster(values=np.ascontiguousarray(values), scale=info, signed=True)
