"""Loudness statistics over a sub-range of an existing LoudnessResult."""
from __future__ import annotations

import math

import numpy as np

from abscope.config import LoudnessConfig
from abscope.metrics.loudness import gated_integrated_lkfs
from abscope.types import LoudnessResult, RangeStats

_EMPTY = RangeStats(integrated=None, peak=None)


def stats_for_range(
    result: LoudnessResult,
    start_time: float,
    end_time: float,
    config: LoudnessConfig | None = None,
) -> RangeStats:
    """
    Integrated and peak momentary loudness for blocks starting in [start, end].

    The selected blocks are gated on their own (absolute then relative gate),
    so the result is not a lookup into the whole-file integrated value.

    Args:
        result: Precomputed loudness for a buffer
        start_time: Range start in seconds
        end_time: Range end in seconds

    Returns:
        RangeStats; both fields None for empty, inverted or out-of-range windows
    """
    if result is None or result.num_blocks == 0:
        return _EMPTY
    if not (math.isfinite(start_time) and math.isfinite(end_time)) or end_time < start_time:
        return _EMPTY
    if result.hop_samples <= 0 or result.sample_rate <= 0:
        return _EMPTY

    per_hop = result.seconds_per_hop
    last_block = result.num_blocks - 1
    first = max(0, math.ceil(start_time / per_hop))
    last = math.floor(end_time / per_hop)
    if first > last_block or last < first:
        return _EMPTY
    last = min(last, last_block)

    lkfs = result.lkfs_per_block[first:last + 1]
    finite = lkfs[np.isfinite(lkfs)]
    peak = float(np.max(finite)) if finite.size else None
    integrated = gated_integrated_lkfs(result.energies[first:last + 1], config)
    return RangeStats(integrated=integrated, peak=peak)


def momentary_lufs_at_time(result: LoudnessResult, time: float) -> float | None:
    """Momentary LKFS of the block covering `time`, clamped to the last block."""
    if result is None or result.num_blocks == 0 or time < 0:
        return None
    index = int(math.floor(time / result.seconds_per_hop))
    index = max(0, min(index, result.num_blocks - 1))
    value = float(result.lkfs_per_block[index])
    return value if math.isfinite(value) else None
