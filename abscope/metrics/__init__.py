"""Loudness metrics and range statistics."""

from abscope.metrics.loudness import (
    compute_loudness,
    energy_to_lkfs,
    gated_integrated_lkfs,
    loudness_difference_series,
    loudness_series,
)
from abscope.metrics.range_stats import momentary_lufs_at_time, stats_for_range

__all__ = [
    "compute_loudness",
    "energy_to_lkfs",
    "gated_integrated_lkfs",
    "loudness_difference_series",
    "loudness_series",
    "momentary_lufs_at_time",
    "stats_for_range",
]
