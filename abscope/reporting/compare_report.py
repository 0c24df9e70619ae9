"""JSON-ready comparison reports for a pair of analyzed buffers."""
from __future__ import annotations

import numpy as np

from abscope.analysis.spectrogram import diff_spectrograms
from abscope.analysis.spectrum import average_spectrum, clamp_to_axis, spectrum_difference
from abscope.config import SpectrumDisplayConfig
from abscope.metrics.loudness import loudness_difference_series
from abscope.metrics.range_stats import stats_for_range
from abscope.types import DiffResult, LoudnessResult, SpectrogramResult
from abscope.utils.canonical_json import to_jsonable
from abscope.utils.hashing import sha256_hex_canonical_json
from abscope.utils.quantize import q, q_list

LU_STEP = 0.01


def _qf(x: float | None) -> float | None:
    if x is None or not np.isfinite(x):
        return None
    return q(float(x), LU_STEP)


def loudness_summary(result: LoudnessResult) -> dict:
    """Scalar loudness figures of one buffer."""
    return {
        "integrated_lufs": _qf(result.integrated),
        "gating_threshold_lufs": _qf(result.threshold),
        "momentary_min_lufs": _qf(result.min_lkfs),
        "momentary_max_lufs": _qf(result.max_lkfs),
        "loudness_range_lu": _qf(result.loudness_range),
        "lra_threshold_lufs": _qf(result.lra_threshold),
        "lra_low_lufs": _qf(result.lra_low),
        "lra_high_lufs": _qf(result.lra_high),
        "num_blocks": result.num_blocks,
        "block_samples": result.block_samples,
        "hop_samples": result.hop_samples,
    }


def spectrogram_summary(spec: SpectrogramResult) -> dict:
    return {
        "sample_rate_hz": spec.sample_rate,
        "fft_size": spec.fft_size,
        "hop_size": spec.hop_size,
        "num_bins": spec.num_bins,
        "num_time_steps": spec.num_time_steps,
        "min_db": _qf(spec.min_db),
        "max_db": _qf(spec.max_db),
    }


def _finite_stats(values: np.ndarray) -> dict:
    finite = values[np.isfinite(values)]
    if finite.size == 0:
        return {"count": 0, "mean": None, "mean_abs": None, "max_abs": None}
    return {
        "count": int(finite.size),
        "mean": _qf(float(np.mean(finite))),
        "mean_abs": _qf(float(np.mean(np.abs(finite)))),
        "max_abs": _qf(float(np.max(np.abs(finite)))),
    }


def spectrogram_diff_summary(diff: DiffResult) -> dict:
    """Size of the A - B spectrogram difference and how strongly its raster shows."""
    values = diff.mel_raster().values
    return {
        "num_time_steps": diff.num_time_steps,
        "num_bins": diff.num_bins,
        "max_abs_db": _qf(diff.max_diff),
        "sensitivity": diff.sensitivity,
        "raster_mean_intensity": q(float(np.mean(np.abs(values))), 0.0001) if values.size else None,
    }


def build_compare_report(
    *,
    engine: dict,
    inputs: list[dict],
    loudness: tuple[LoudnessResult, LoudnessResult],
    spectrograms: tuple[SpectrogramResult, SpectrogramResult],
    time_range: tuple[float, float] | None = None,
    include_spectra: bool = False,
    display: SpectrumDisplayConfig | None = None,
) -> dict:
    """
    Build the comparison report for inputs A and B.

    Args:
        engine: Engine metadata (name, version)
        inputs: Per-input metadata dicts (path, sample rate, channels, ...)
        loudness: Loudness results for A and B
        spectrograms: Spectrograms for A and B
        time_range: (start, end) seconds for range stats and spectrum
            averaging; the whole of A when None
        include_spectra: Add per-bin averaged spectra and their difference,
            pinned onto the chart axes
        display: Chart axes, lowest charted frequency and diff raster
            sensitivity

    Returns:
        Report dict with non-finite values as None and an integrity hash
    """
    disp = display or SpectrumDisplayConfig()
    la, lb = loudness
    sa, sb = spectrograms
    if time_range is None:
        start, end = 0.0, sa.duration
    else:
        start, end = float(time_range[0]), float(time_range[1])

    ra = stats_for_range(la, start, end)
    rb = stats_for_range(lb, start, end)
    avg_a = average_spectrum(sa, start, end)
    avg_b = average_spectrum(sb, start, end)
    spec_diff = spectrum_difference(avg_a, avg_b)
    _, lufs_diff = loudness_difference_series(la, lb)
    diff = diff_spectrograms(sa, sb, sensitivity=disp.diff_sensitivity)

    def _delta(x, y):
        if x is None or y is None:
            return None
        return _qf(y - x)

    report = {
        "schema_version": "1.0",
        "engine": engine,
        "inputs": inputs,
        "time_range_s": {"start": q(start, 0.001), "end": q(end, 0.001)},
        "loudness": {
            "a": loudness_summary(la),
            "b": loudness_summary(lb),
            "integrated_delta_lu": _delta(la.integrated, lb.integrated),
            "momentary_delta_lu": _finite_stats(lufs_diff),
        },
        "range": {
            "a": {"integrated_lufs": _qf(ra.integrated), "peak_lufs": _qf(ra.peak)},
            "b": {"integrated_lufs": _qf(rb.integrated), "peak_lufs": _qf(rb.peak)},
            "integrated_delta_lu": _delta(ra.integrated, rb.integrated),
        },
        "spectrogram": {
            "a": spectrogram_summary(sa),
            "b": spectrogram_summary(sb),
            "diff": spectrogram_diff_summary(diff),
        },
        "spectrum_delta_db": _finite_stats(spec_diff),
        "integrity": {"report_hash_sha256": ""},
    }
    if include_spectra:
        n = spec_diff.size
        freqs = sa.bin_frequencies()[:n]
        keep = freqs >= disp.min_freq

        def level(spectrum):
            return clamp_to_axis(spectrum[:n][keep], disp.min_db, disp.max_db)

        report["spectra"] = {
            "level_axis_db": [disp.min_db, disp.max_db],
            "delta_axis_db": [disp.diff_min_db, disp.diff_max_db],
            "freqs_hz": q_list(freqs[keep], 0.01),
            "a_db": q_list(level(avg_a), LU_STEP),
            "b_db": q_list(level(avg_b), LU_STEP),
            "delta_db": q_list(
                clamp_to_axis(spec_diff[keep], disp.diff_min_db, disp.diff_max_db), LU_STEP
            ),
        }

    report = to_jsonable(report)
    tmp = dict(report)
    tmp.pop("integrity", None)
    report["integrity"]["report_hash_sha256"] = sha256_hex_canonical_json(tmp)
    return report
