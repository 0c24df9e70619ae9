from __future__ import annotations

import pytest

from abscope.metrics.loudness import compute_loudness
from abscope.metrics.range_stats import momentary_lufs_at_time, stats_for_range
from conftest import make_buffer, sine, stepped_levels

FS = 48000.0


@pytest.fixture(scope="module")
def stepped():
    x = stepped_levels([-20.0, -6.0], 5.0, FS)
    return compute_loudness(make_buffer(x, fs=FS))


def test_range_past_the_end_is_empty(stepped):
    stats = stats_for_range(stepped, 100.0, 120.0)
    assert stats.integrated is None
    assert stats.peak is None


def test_range_before_the_start_is_empty(stepped):
    stats = stats_for_range(stepped, -5.0, -1.0)
    assert stats.integrated is None
    assert stats.peak is None
    # A window straddling zero still covers block 0.
    assert stats_for_range(stepped, -1.0, 0.05).peak is not None


def test_inverted_range_is_empty(stepped):
    stats = stats_for_range(stepped, 3.0, 1.0)
    assert stats.integrated is None
    assert stats.peak is None


def test_range_is_gated_on_its_own(stepped):
    quiet = stats_for_range(stepped, 0.5, 4.0)
    assert quiet.integrated == pytest.approx(-23.01, abs=0.2)
    assert quiet.peak == pytest.approx(-23.01, abs=0.2)
    # The whole-file gate would drop these blocks entirely.
    assert stepped.integrated - quiet.integrated > 10.0


def test_range_peak_is_loudest_block(stepped):
    stats = stats_for_range(stepped, 0.0, stepped.num_blocks * 0.1)
    assert stats.peak == pytest.approx(stepped.max_lkfs)


def test_end_past_last_block_is_clamped(stepped):
    stats = stats_for_range(stepped, 6.0, 60.0)
    assert stats.integrated == pytest.approx(-9.01, abs=0.2)


def test_range_on_silence_has_no_values():
    result = compute_loudness(make_buffer(sine(1000.0, 2.0, FS, amp=0.0), fs=FS))
    stats = stats_for_range(result, 0.0, 2.0)
    assert stats.integrated is None
    assert stats.peak is None


def test_momentary_lookup(stepped):
    assert momentary_lufs_at_time(stepped, 7.0) == pytest.approx(-9.01, abs=0.2)
    assert momentary_lufs_at_time(stepped, 2.0) == pytest.approx(-23.01, abs=0.2)
    assert momentary_lufs_at_time(stepped, 1e6) == pytest.approx(
        float(stepped.lkfs_per_block[-1])
    )
    assert momentary_lufs_at_time(stepped, -1.0) is None
