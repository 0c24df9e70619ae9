"""
K-weighting biquads per ITU-R BS.1770-4.

Coefficients are the bilinear-transform designs used by libebur128, computed
for any sample rate rather than tabulated for 48 kHz.
"""
from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from scipy.signal import lfilter

from abscope.errors import InvalidInputError
from abscope.types import BiquadCoefficients

SHELF_F0_HZ = 1681.974450955533
SHELF_GAIN_DB = 3.999843853973347
SHELF_Q = 0.7071752369554196
SHELF_VB_EXPONENT = 0.4996667741545416

HIGHPASS_F0_HZ = 38.13547087602444
HIGHPASS_Q = 0.5003270373238773


def _check_fs(fs: float) -> float:
    fs = float(fs)
    if not fs > 0:
        raise InvalidInputError(f"Sample rate must be positive, got {fs}.")
    return fs


def design_k_shelf(fs: float) -> BiquadCoefficients:
    """First K-weighting stage: high shelf, about +4 dB above 1.7 kHz."""
    fs = _check_fs(fs)
    K = math.tan(math.pi * SHELF_F0_HZ / fs)
    Vh = 10.0 ** (SHELF_GAIN_DB / 20.0)
    Vb = Vh ** SHELF_VB_EXPONENT
    Q = SHELF_Q

    a0 = 1.0 + K / Q + K * K
    b0 = (Vh + Vb * K / Q + K * K) / a0
    b1 = 2.0 * (K * K - Vh) / a0
    b2 = (Vh - Vb * K / Q + K * K) / a0
    a1 = 2.0 * (K * K - 1.0) / a0
    a2 = (1.0 - K / Q + K * K) / a0
    return BiquadCoefficients(b=(b0, b1, b2), a=(1.0, a1, a2))


def design_k_highpass(fs: float) -> BiquadCoefficients:
    """Second K-weighting stage: 2nd-order high pass near 38 Hz."""
    fs = _check_fs(fs)
    K = math.tan(math.pi * HIGHPASS_F0_HZ / fs)
    Q = HIGHPASS_Q

    a0 = 1.0 + K / Q + K * K
    a1 = 2.0 * (K * K - 1.0) / a0
    a2 = (1.0 - K / Q + K * K) / a0
    return BiquadCoefficients(b=(1.0 / a0, -2.0 / a0, 1.0 / a0), a=(1.0, a1, a2))


@dataclass
class FilterRunState:
    """Two previous inputs and outputs of a running biquad."""
    x1: float = 0.0
    x2: float = 0.0
    y1: float = 0.0
    y2: float = 0.0


def _finite(v: float) -> float:
    return v if math.isfinite(v) else 0.0


def _apply_biquad_guarded(x: np.ndarray, coeffs: BiquadCoefficients) -> np.ndarray:
    """Sample-by-sample recurrence; non-finite values are replaced by zero."""
    b0, b1, b2 = coeffs.b
    _, a1, a2 = coeffs.a
    y = np.zeros(x.size, dtype=np.float64)
    st = FilterRunState()
    for n, xn in enumerate(x.tolist()):
        xn = _finite(xn)
        yn = b0 * xn + b1 * _finite(st.x1) + b2 * _finite(st.x2) \
            - a1 * _finite(st.y1) - a2 * _finite(st.y2)
        yn = _finite(yn)
        y[n] = yn
        st.x2, st.x1 = st.x1, xn
        st.y2, st.y1 = st.y1, yn
    return y


def apply_biquad(samples: np.ndarray, coeffs: BiquadCoefficients) -> np.ndarray:
    """
    Run y[n] = b0 x[n] + b1 x[n-1] + b2 x[n-2] - a1 y[n-1] - a2 y[n-2].

    Non-finite inputs are treated as zero and any non-finite output sample is
    stored as zero, so NaN/Inf never propagate through the recurrence.

    Args:
        samples: 1D input signal
        coeffs: Filter taps with a[0] == 1

    Returns:
        Filtered signal (float64, same length)
    """
    x = np.asarray(samples, dtype=np.float64)
    if x.ndim != 1:
        raise ValueError("apply_biquad expects a 1D signal.")
    if x.size == 0:
        return np.zeros(0, dtype=np.float64)
    clean = np.where(np.isfinite(x), x, 0.0)
    y = lfilter(np.asarray(coeffs.b), np.asarray(coeffs.a), clean)
    if np.all(np.isfinite(y)):
        return y
    # Overflowing recurrences need the per-sample guard to match exactly.
    return _apply_biquad_guarded(clean, coeffs)


def k_weight(samples: np.ndarray, fs: float) -> np.ndarray:
    """Apply the high-shelf then high-pass K-weighting stages."""
    shelf = design_k_shelf(fs)
    highpass = design_k_highpass(fs)
    return apply_biquad(apply_biquad(samples, shelf), highpass)
