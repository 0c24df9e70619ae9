from __future__ import annotations

import numpy as np
import pytest

from abscope.analysis.spectrogram import compute_spectrogram
from abscope.analysis.spectrum import (
    average_spectrum,
    clamp_to_axis,
    frequency_scale,
    spectrum_difference,
    time_range_to_frames,
)
from conftest import make_buffer, sine

FS = 44100.0


@pytest.fixture(scope="module")
def tone_then_silence():
    x = np.concatenate([sine(2000.0, 1.0, FS, amp=0.5), np.zeros(int(FS))])
    return compute_spectrogram(make_buffer(x, fs=FS))


def test_frames_for_time_range(tone_then_silence):
    spec = tone_then_silence
    first, last = time_range_to_frames(spec, 0.0, spec.duration)
    assert first == 0
    assert last == spec.num_time_steps - 1
    first, last = time_range_to_frames(spec, -5.0, 1e9)
    assert (first, last) == (0, spec.num_time_steps - 1)


def test_average_depends_on_range(tone_then_silence):
    spec = tone_then_silence
    full = average_spectrum(spec, 0.0, spec.duration)
    tone = average_spectrum(spec, 0.0, 0.8)
    quiet = average_spectrum(spec, 1.3, spec.duration)
    peak = int(np.argmax(tone))
    assert full.shape == (spec.num_bins,)
    assert tone[peak] > full[peak] > quiet[peak]
    # Linear averaging: half-on, half-off is about 6 dB below the tone.
    assert tone[peak] - full[peak] == pytest.approx(6.0, abs=1.0)


def test_single_frame_range_returns_frame(tone_then_silence):
    spec = tone_then_silence
    out = average_spectrum(spec, 0.5, 0.5)
    first, _ = time_range_to_frames(spec, 0.5, 0.5)
    assert np.array_equal(out, spec.data[first])
    assert not np.shares_memory(out, spec.data)


def test_difference_rules():
    s1 = np.array([-np.inf, 0.0, -10.0, -np.inf, np.nan])
    s2 = np.array([-np.inf, -np.inf, -4.0, 3.0, -20.0, 99.0])
    diff = spectrum_difference(s1, s2)
    assert diff.size == 5
    assert diff[0] == 0.0
    assert diff[1] == -np.inf
    assert diff[2] == pytest.approx(6.0)
    assert diff[3] == np.inf
    assert diff[4] == np.inf


def test_frequency_scale_labels():
    scale = frequency_scale(48000.0, 2048, 939)
    assert scale.freqs_hz.shape == (939,)
    assert scale.freqs_hz[1] == pytest.approx(48000.0 / 2048)
    assert len(scale.labels) == 939
    assert scale.labels[0] == ""
    assert scale.labels[1] == "20"
    for label in ("50", "100", "1K", "10K", "20K"):
        assert scale.labels.count(label) == 1
    assert scale.freqs_hz[scale.labels.index("1K")] == pytest.approx(1000.0, abs=12.0)


def test_frequency_scale_respects_max_freq():
    scale = frequency_scale(48000.0, 2048, 939, max_freq=5000.0)
    assert "10K" not in scale.labels
    assert "5K" in scale.labels


def test_frequency_scale_without_rate():
    scale = frequency_scale(0, 2048, 10)
    assert scale.freqs_hz.size == 0
    assert scale.labels == []


def test_clamp_to_axis_pins_infinities():
    out = clamp_to_axis(np.array([-np.inf, -120.0, -40.0, 5.0, np.inf, np.nan]), -90.0, -10.0)
    assert list(out[:5]) == [-90.0, -90.0, -40.0, -10.0, -10.0]
    assert np.isnan(out[5])
