from __future__ import annotations

import numpy as np
import pytest

from abscope.dsp.fft import bit_reversed_indices, transform
from abscope.errors import InvalidInputError, InvalidSizeError


def test_impulse_gives_flat_spectrum():
    re = [1.0, 0.0, 0.0, 0.0]
    im = [0.0, 0.0, 0.0, 0.0]
    transform(re, im)
    assert np.allclose(re, [1.0, 1.0, 1.0, 1.0])
    assert np.allclose(im, [0.0, 0.0, 0.0, 0.0])


@pytest.mark.parametrize("n", [1, 2, 8, 64, 1024])
def test_matches_numpy_fft(n):
    rng = np.random.default_rng(n)
    x = rng.standard_normal(n) + 1j * rng.standard_normal(n)
    re = x.real.copy()
    im = x.imag.copy()
    transform(re, im)
    expected = np.fft.fft(x)
    assert np.allclose(re, expected.real, atol=1e-9)
    assert np.allclose(im, expected.imag, atol=1e-9)


@pytest.mark.parametrize("n", [3, 6, 12, 1000])
def test_rejects_non_power_of_two(n):
    with pytest.raises(InvalidSizeError):
        transform(np.zeros(n), np.zeros(n))


def test_invalid_size_is_invalid_input():
    with pytest.raises(InvalidInputError):
        transform(np.zeros(4), np.zeros(8))


def test_empty_is_noop():
    re = np.zeros(0)
    im = np.zeros(0)
    transform(re, im)
    assert re.size == 0


def test_batched_frames_transform_along_last_axis():
    rng = np.random.default_rng(1)
    frames = rng.standard_normal((5, 32))
    re = frames.copy()
    im = np.zeros_like(re)
    transform(re, im)
    expected = np.fft.fft(frames, axis=-1)
    assert np.allclose(re, expected.real)
    assert np.allclose(im, expected.imag)


def test_bit_reversal_is_involution():
    idx = bit_reversed_indices(16)
    assert list(idx[:4]) == [0, 8, 4, 12]
    assert np.array_equal(idx[idx], np.arange(16))


def test_rejects_integer_arrays():
    re = np.array([1, 0, 0, 0])
    im = np.zeros(4)
    with pytest.raises(InvalidInputError):
        transform(re, im)
    assert list(re) == [1, 0, 0, 0]
    # Plain lists are converted and written back as floats.
    re_list = [1, 0, 0, 0]
    transform(re_list, [0, 0, 0, 0])
    assert re_list == [1.0, 1.0, 1.0, 1.0]
