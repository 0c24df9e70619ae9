"""Adaptive-resolution magnitude spectrograms and spectrogram differences."""
from __future__ import annotations

import logging
import math

import numpy as np

from abscope.config import SpectrogramConfig, SpectrumDisplayConfig
from abscope.dsp.buffers import validate_buffer
from abscope.dsp.fft import transform
from abscope.dsp.windowing import HANN_CORRECTION, hann
from abscope.errors import InvalidInputError
from abscope.types import DiffResult, SampleBuffer, SpectrogramResult

logger = logging.getLogger(__name__)

DB_EPSILON = 1e-10
# Frames per FFT batch; bounds the temporary (frames, fft_size) arrays.
FRAME_CHUNK = 256


def choose_fft_size(sample_rate: float, config: SpectrogramConfig) -> int:
    """Scale the base FFT size with the sample rate, snapped to a power of two."""
    ratio = float(sample_rate) / config.base_sample_rate
    exponent = math.floor(math.log2(config.base_fft_size * ratio) + 0.5)
    fft_size = 2 ** int(exponent)
    return int(min(max(fft_size, config.min_fft_size), config.max_fft_size))


def choose_bin_count(sample_rate: float, fft_size: int, max_freq: float) -> int:
    """Smallest bin count reaching max_freq, capped at Nyquist (fft_size / 2)."""
    needed = math.ceil(max_freq * fft_size / float(sample_rate))
    return int(max(1, min(needed, fft_size // 2)))


def choose_hop_size(num_samples: int, fft_size: int, target_time_steps: int) -> int:
    """Hop targeting target_time_steps frames, at least fft_size / 8."""
    hop = num_samples // target_time_steps
    hop = max(hop, fft_size // 8)
    span = num_samples - fft_size
    hop = min(hop, span if span > 0 else int(math.floor(fft_size * 0.75)))
    return max(1, hop)


def count_time_steps(num_samples: int, fft_size: int, hop_size: int) -> int:
    return max(1, (num_samples - fft_size) // hop_size + 1)


def compute_spectrogram(
    buffer: SampleBuffer,
    config: SpectrogramConfig | None = None,
) -> SpectrogramResult:
    """
    Compute a dB magnitude spectrogram of one channel.

    Frames are Hann-windowed (zero-padded past the end of the buffer),
    transformed, normalized by 2/fft_size and the window correction, and
    converted with 20*log10(mag + 1e-10). Only the bins up to the analysis
    ceiling frequency are kept.

    Args:
        buffer: Decoded audio
        config: FFT sizing, time resolution, ceiling frequency and dB floor

    Returns:
        SpectrogramResult with data shaped (num_time_steps, num_bins)

    Raises:
        InvalidInputError: no channels, bad sample rate or channel index
    """
    validate_buffer(buffer, caller="compute_spectrogram")
    cfg = config or SpectrogramConfig()
    if cfg.channel >= buffer.num_channels:
        raise InvalidInputError(
            f"compute_spectrogram: channel {cfg.channel} not in buffer "
            f"with {buffer.num_channels} channel(s)."
        )
    x = np.asarray(buffer.channel(cfg.channel), dtype=np.float64)
    x = np.where(np.isfinite(x), x, 0.0)
    fs = float(buffer.sample_rate)
    n = x.size

    fft_size = choose_fft_size(fs, cfg)
    num_bins = choose_bin_count(fs, fft_size, cfg.analysis_max_freq)
    hop = choose_hop_size(n, fft_size, cfg.target_max_time_steps)
    steps = count_time_steps(n, fft_size, hop)
    logger.debug(
        "Spectrogram params: SR=%gHz FFT=%d hop=%d steps=%d bins=%d",
        fs, fft_size, hop, steps, num_bins,
    )

    window = hann(fft_size)
    scale = (2.0 / fft_size) * HANN_CORRECTION
    padded = np.concatenate([x, np.zeros(fft_size, dtype=np.float64)])
    offsets = np.arange(fft_size, dtype=np.int64)
    data = np.empty((steps, num_bins), dtype=np.float64)

    for first in range(0, steps, FRAME_CHUNK):
        last = min(steps, first + FRAME_CHUNK)
        starts = np.arange(first, last, dtype=np.int64) * hop
        frame_re = padded[starts[:, None] + offsets[None, :]] * window
        frame_im = np.zeros_like(frame_re)
        transform(frame_re, frame_im)
        mag = np.hypot(frame_re[:, :num_bins], frame_im[:, :num_bins]) * scale
        data[first:last] = 20.0 * np.log10(mag + DB_EPSILON)

    finite = data[np.isfinite(data)]
    min_db = float(np.min(finite)) if finite.size else math.inf
    max_db = float(np.max(finite)) if finite.size else -math.inf
    if min_db < cfg.min_db_floor:
        min_db = cfg.min_db_floor
    if max_db == -math.inf:
        max_db = 0.0
    if max_db < min_db:
        # Silence sits entirely below the floor.
        max_db = min_db

    return SpectrogramResult(
        data=data,
        min_db=min_db,
        max_db=max_db,
        sample_rate=fs,
        fft_size=fft_size,
        hop_size=hop,
        num_samples=n,
        render_height=cfg.render_height,
    )


def diff_spectrograms(
    spec1: SpectrogramResult,
    spec2: SpectrogramResult,
    *,
    sensitivity: float | None = None,
    strict: bool = False,
) -> DiffResult:
    """
    Elementwise dB difference spec1 - spec2 over the overlapping grid.

    Both operands are truncated to min(time steps) x min(bins). Scale
    metadata comes from spec1. Operands with different sample rate or FFT
    size are subtracted bin-by-bin anyway unless strict is set. sensitivity
    is the diff raster exponent (SpectrumDisplayConfig.diff_sensitivity when
    None).

    Raises:
        InvalidInputError: strict and the operands' frequency grids differ,
            or sensitivity is not positive
    """
    if spec1.sample_rate != spec2.sample_rate or spec1.fft_size != spec2.fft_size:
        msg = (
            f"Spectrogram grids differ (fs {spec1.sample_rate:g}/{spec2.sample_rate:g}, "
            f"fft {spec1.fft_size}/{spec2.fft_size})"
        )
        if strict:
            raise InvalidInputError(msg + ".")
        logger.warning("%s; diffing bins by index.", msg)

    if sensitivity is None:
        sensitivity = SpectrumDisplayConfig().diff_sensitivity
    elif not sensitivity > 0:
        raise InvalidInputError(f"Diff sensitivity must be > 0, got {sensitivity}.")

    steps = min(spec1.num_time_steps, spec2.num_time_steps)
    bins = min(spec1.num_bins, spec2.num_bins)
    data = spec1.data[:steps, :bins] - spec2.data[:steps, :bins]
    max_diff = float(np.max(np.abs(data))) if data.size else 0.0

    return DiffResult(
        data=data,
        max_diff=max_diff,
        sample_rate=spec1.sample_rate,
        fft_size=spec1.fft_size,
        duration=spec1.duration,
        render_height=spec1.render_height,
        sensitivity=float(sensitivity),
    )
