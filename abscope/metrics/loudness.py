"""
Loudness measurement per ITU-R BS.1770-4 / EBU R128.

Momentary loudness uses 400 ms blocks with 100 ms hops, integrated loudness
uses the two-stage gate (-70 LUFS absolute, -10 LU relative) and loudness
range uses 3 s short-term windows with a -20 LU relative gate.

Only L/R are summed (G = 1.0 each). A 5.1 mix would sum
L + R + C + 1.41 * (Ls + Rs) with the LFE excluded; that is not supported.
"""
from __future__ import annotations

import logging
import math

import numpy as np

from abscope.config import LoudnessConfig
from abscope.dsp.biquad import k_weight
from abscope.dsp.buffers import validate_buffer
from abscope.types import LoudnessResult, SampleBuffer

logger = logging.getLogger(__name__)

LKFS_OFFSET = -0.691
# Short-term values are taken this often, rounded to a whole number of hops.
SHORT_TERM_CADENCE_MS = 100.0


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def energy_to_lkfs(ms: float) -> float:
    """Convert a mean-square energy to LKFS; non-positive energy is -inf."""
    if ms <= 0:
        return float("-inf")
    return LKFS_OFFSET + 10.0 * math.log10(ms)


def energies_to_lkfs(energies: np.ndarray) -> np.ndarray:
    """Vectorized energy_to_lkfs."""
    e = np.asarray(energies, dtype=np.float64)
    out = np.full(e.shape, -np.inf, dtype=np.float64)
    pos = e > 0
    out[pos] = LKFS_OFFSET + 10.0 * np.log10(e[pos])
    return out


def _two_stage_gate(
    energies: np.ndarray,
    *,
    absolute_gate_lufs: float = -70.0,
    relative_gate_lu: float = 10.0,
) -> tuple[float | None, float | None]:
    """
    Return (integrated, relative_threshold) after absolute and relative gating.

    Both are None when nothing passes the absolute gate; integrated alone is
    None when nothing passes the relative gate.
    """
    e = np.asarray(energies, dtype=np.float64)
    if e.size == 0:
        return None, None
    kept1 = e[energies_to_lkfs(e) > absolute_gate_lufs]
    if kept1.size == 0:
        return None, None
    absolute_threshold = energy_to_lkfs(float(np.mean(kept1)))
    relative_threshold = absolute_threshold - relative_gate_lu
    kept2 = kept1[energies_to_lkfs(kept1) > relative_threshold]
    if kept2.size == 0:
        return None, relative_threshold
    integrated = LKFS_OFFSET + 10.0 * math.log10(float(np.mean(kept2)) + 1e-20)
    return (integrated if math.isfinite(integrated) else None), relative_threshold


def gated_integrated_lkfs(
    energies: np.ndarray,
    config: LoudnessConfig | None = None,
) -> float | None:
    """
    Integrated loudness of a set of block energies using two-stage gating.

    Works on the whole programme or on any subset of blocks.

    Returns:
        Integrated LKFS, or None for silence / no blocks surviving the gates
    """
    cfg = config or LoudnessConfig()
    integrated, _ = _two_stage_gate(
        energies,
        absolute_gate_lufs=cfg.absolute_gate_lufs,
        relative_gate_lu=cfg.relative_gate_lu,
    )
    return integrated


def _block_energies(filtered: list[np.ndarray], block: int, hop: int, num_blocks: int) -> np.ndarray:
    """Summed per-channel mean-square energy of each block."""
    energies = np.zeros(num_blocks, dtype=np.float64)
    for y in filtered:
        frames = np.lib.stride_tricks.sliding_window_view(y, block)[::hop][:num_blocks]
        energies += np.einsum("ij,ij->i", frames, frames) / block
    return energies


def _short_term_energies(
    filtered: list[np.ndarray],
    *,
    block: int,
    hop: int,
    num_blocks: int,
    short_term: int,
    stride: int,
) -> list[float]:
    """Trailing short-term window energies ending at every stride-th block."""
    out: list[float] = []
    for b in range(0, num_blocks, stride):
        start = b * hop
        st_end = start + block
        st_start = max(0, st_end - short_term)
        count = st_end - st_start
        if count < short_term / 2:
            continue
        total = 0.0
        for y in filtered:
            seg = y[st_start:st_end]
            total += float(np.dot(seg, seg)) / count
        out.append(total)
    return out


def _loudness_range(
    short_term_energies: list[float],
    cfg: LoudnessConfig,
) -> tuple[float | None, float | None, float | None, float | None]:
    """Return (lra, threshold, low, high); all None if any gate empties the set."""
    if not short_term_energies:
        return None, None, None, None
    lufs = energies_to_lkfs(np.asarray(short_term_energies, dtype=np.float64))
    above_abs = lufs[lufs > cfg.absolute_gate_lufs]
    if above_abs.size == 0:
        return None, None, None, None
    threshold = float(np.mean(above_abs)) - cfg.lra_relative_gate_lu
    kept = np.sort(above_abs[above_abs > threshold])
    n = kept.size
    if n == 0:
        return None, None, None, None
    low = float(kept[min(n - 1, int(math.floor(n * cfg.lra_low_percentile)))])
    high = float(kept[min(n - 1, int(math.floor(n * cfg.lra_high_percentile)))])
    return high - low, threshold, low, high


def compute_loudness(
    buffer: SampleBuffer,
    config: LoudnessConfig | None = None,
) -> LoudnessResult:
    """
    Compute momentary, integrated and range loudness for a buffer.

    Args:
        buffer: Decoded audio; channels 0 and 1 are used, others ignored
        config: Block/hop/gating parameters (defaults per BS.1770-4)

    Returns:
        LoudnessResult. Buffers shorter than one block give zero blocks and
        integrated=None; silence gives integrated=None.

    Raises:
        InvalidInputError: no channels or non-positive sample rate
    """
    validate_buffer(buffer, caller="compute_loudness")
    cfg = config or LoudnessConfig()
    fs = float(buffer.sample_rate)
    block = max(1, _round_half_up(cfg.block_ms / 1000.0 * fs))
    hop = max(1, _round_half_up(cfg.hop_ms / 1000.0 * fs))
    n = buffer.num_samples

    if buffer.num_channels > 2:
        logger.warning(
            "Loudness uses channels 0-1 only; ignoring %d extra channel(s).",
            buffer.num_channels - 2,
        )

    if n < block:
        logger.warning(
            "Audio length (%d samples) is shorter than one block (%d samples); "
            "loudness is undefined.", n, block,
        )
        return LoudnessResult(
            lkfs_per_block=np.zeros(0, dtype=np.float64),
            energies=np.zeros(0, dtype=np.float64),
            hop_samples=hop,
            block_samples=block,
            sample_rate=fs,
            integrated=None,
            threshold=None,
            min_lkfs=float("-inf"),
            max_lkfs=float("-inf"),
        )

    filtered = [k_weight(buffer.channel(c), fs) for c in range(min(2, buffer.num_channels))]
    num_blocks = max(0, (n - block) // hop + 1)
    logger.debug("Loudness: fs=%g block=%d hop=%d blocks=%d", fs, block, hop, num_blocks)

    energies = _block_energies(filtered, block, hop, num_blocks)
    lkfs = energies_to_lkfs(energies)
    finite = lkfs[np.isfinite(lkfs)]
    min_lkfs = float(np.min(finite)) if finite.size else float("-inf")
    max_lkfs = float(np.max(finite)) if finite.size else float("-inf")

    integrated, threshold = _two_stage_gate(
        energies,
        absolute_gate_lufs=cfg.absolute_gate_lufs,
        relative_gate_lu=cfg.relative_gate_lu,
    )
    if threshold is None:
        logger.debug("No blocks above absolute gate (%.1f LUFS).", cfg.absolute_gate_lufs)
        return LoudnessResult(
            lkfs_per_block=lkfs,
            energies=energies,
            hop_samples=hop,
            block_samples=block,
            sample_rate=fs,
            integrated=None,
            threshold=None,
            min_lkfs=min_lkfs,
            max_lkfs=max_lkfs,
        )

    stride = max(1, _round_half_up(SHORT_TERM_CADENCE_MS / cfg.hop_ms))
    short_term = _short_term_energies(
        filtered,
        block=block,
        hop=hop,
        num_blocks=num_blocks,
        short_term=_round_half_up(cfg.short_term_ms / 1000.0 * fs),
        stride=stride,
    )
    lra, lra_threshold, lra_low, lra_high = _loudness_range(short_term, cfg)

    return LoudnessResult(
        lkfs_per_block=lkfs,
        energies=energies,
        hop_samples=hop,
        block_samples=block,
        sample_rate=fs,
        integrated=integrated,
        threshold=threshold,
        min_lkfs=min_lkfs,
        max_lkfs=max_lkfs,
        loudness_range=lra,
        lra_threshold=lra_threshold,
        lra_low=lra_low,
        lra_high=lra_high,
    )


def loudness_series(result: LoudnessResult) -> tuple[np.ndarray, np.ndarray]:
    """Block start times and momentary LKFS, with non-finite values as NaN."""
    times = np.arange(result.num_blocks, dtype=np.float64) * result.seconds_per_hop
    lkfs = np.where(np.isfinite(result.lkfs_per_block), result.lkfs_per_block, np.nan)
    return times, lkfs


def loudness_difference_series(
    a: LoudnessResult,
    b: LoudnessResult,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Per-block momentary difference b - a on the time base of a.

    Covers min(num_blocks) blocks; NaN where either side is non-finite.
    """
    n = min(a.num_blocks, b.num_blocks)
    times = np.arange(n, dtype=np.float64) * a.seconds_per_hop
    la = a.lkfs_per_block[:n]
    lb = b.lkfs_per_block[:n]
    ok = np.isfinite(la) & np.isfinite(lb)
    diff = np.full(n, np.nan, dtype=np.float64)
    diff[ok] = lb[ok] - la[ok]
    return times, diff
