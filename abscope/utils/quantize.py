from __future__ import annotations
import math


def q(x: float | None, step: float) -> float | None:
    """Quantize a float to the nearest step (half away from zero) for stable reports."""
    if x is None or math.isnan(x) or math.isinf(x):
        return x
    y = x / step
    if y >= 0:
        yq = math.floor(y + 0.5)
    else:
        yq = -math.floor(-y + 0.5)
    return round(yq * step, 10)


def q_list(xs, step: float) -> list[float | None]:
    """Quantize an iterable of floats, passing None through."""
    return [None if v is None else q(float(v), step) for v in xs]
