"""DSP building blocks: FFT, windows and K-weighting biquads."""

from abscope.dsp.biquad import (
    apply_biquad,
    design_k_highpass,
    design_k_shelf,
    k_weight,
)
from abscope.dsp.fft import transform
from abscope.dsp.windowing import hann

__all__ = [
    "apply_biquad",
    "design_k_highpass",
    "design_k_shelf",
    "hann",
    "k_weight",
    "transform",
]
