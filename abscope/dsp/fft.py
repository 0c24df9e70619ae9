"""
In-place radix-2 FFT (Cooley-Tukey, decimation in time).

The transform is unnormalized: transform([1, 0, 0, 0], [0, 0, 0, 0])
leaves real == [1, 1, 1, 1]. Arrays of shape (..., n) are transformed
along the last axis, so a stack of frames can go through in one call.
"""
from __future__ import annotations
from functools import lru_cache

import numpy as np

from abscope.errors import InvalidInputError, InvalidSizeError


@lru_cache(maxsize=32)
def _twiddles(n: int) -> tuple[np.ndarray, np.ndarray]:
    """Cosine/sine tables of length n/2 for angle 2*pi*k/n."""
    k = np.arange(n // 2, dtype=np.float64)
    angle = 2.0 * np.pi * k / n
    cos_table = np.cos(angle)
    sin_table = np.sin(angle)
    cos_table.flags.writeable = False
    sin_table.flags.writeable = False
    return cos_table, sin_table


@lru_cache(maxsize=32)
def bit_reversed_indices(n: int) -> np.ndarray:
    """Index j for each i such that j is i with its log2(n) bits reversed."""
    levels = int(n).bit_length() - 1
    i = np.arange(n, dtype=np.int64)
    j = np.zeros(n, dtype=np.int64)
    for k in range(levels):
        j = (j << 1) | ((i >> k) & 1)
    j.flags.writeable = False
    return j


def _radix2(re: np.ndarray, im: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    n = re.shape[-1]
    cos_table, sin_table = _twiddles(n)
    # Permuting by the bit-reversal map is its own inverse, so a gather
    # equals swapping each pair (i, j) once with j > i.
    perm = bit_reversed_indices(n)
    re = np.ascontiguousarray(re[..., perm], dtype=np.float64)
    im = np.ascontiguousarray(im[..., perm], dtype=np.float64)
    lead = re.shape[:-1]

    size = 2
    while size <= n:
        half = size // 2
        step = n // size
        c = cos_table[: half * step : step]
        s = sin_table[: half * step : step]
        r = re.reshape(*lead, n // size, size)
        i = im.reshape(*lead, n // size, size)
        r_hi = r[..., half:]
        i_hi = i[..., half:]
        tpre = r_hi * c + i_hi * s
        tpim = -r_hi * s + i_hi * c
        r[..., half:] = r[..., :half] - tpre
        i[..., half:] = i[..., :half] - tpim
        r[..., :half] += tpre
        i[..., :half] += tpim
        size *= 2
    return re, im


def transform(real, imag) -> None:
    """
    Compute the DFT of the complex vector (real, imag) in place.

    Args:
        real: Real parts, length n (list or float ndarray, last axis for ndarrays)
        imag: Imaginary parts, same shape as real

    Raises:
        InvalidSizeError: lengths differ or n is not a power of two
        InvalidInputError: an ndarray argument is not floating point
    """
    for arr in (real, imag):
        if isinstance(arr, np.ndarray) and not np.issubdtype(arr.dtype, np.floating):
            raise InvalidInputError(
                f"transform writes results in place; expected a float array, got {arr.dtype}."
            )
    re = np.asarray(real, dtype=np.float64)
    im = np.asarray(imag, dtype=np.float64)
    if re.shape != im.shape:
        raise InvalidSizeError("Mismatched lengths.")
    if re.ndim == 0:
        raise InvalidSizeError("transform expects array input.")
    n = re.shape[-1]
    if n == 0:
        return
    if n & (n - 1):
        raise InvalidSizeError(f"Input size must be a power of 2, got {n}.")
    out_re, out_im = _radix2(re, im)
    _write_back(real, out_re)
    _write_back(imag, out_im)


def _write_back(target, values: np.ndarray) -> None:
    if isinstance(target, np.ndarray):
        target[...] = values
    else:
        target[:] = values.tolist()
