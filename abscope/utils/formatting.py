"""Human-readable formatting of times, frequencies and loudness values."""
from __future__ import annotations

import math


def format_time(seconds: float) -> str:
    """Format seconds as M:SS; negative or NaN input is shown as 0:00."""
    if seconds is None or math.isnan(seconds) or seconds < 0:
        seconds = 0.0
    total = int(math.floor(seconds))
    minutes, rem = divmod(total, 60)
    return f"{minutes}:{rem:02d}"


def format_frequency(freq_hz: float) -> str:
    if freq_hz >= 1000:
        return f"{freq_hz / 1000:.1f} kHz"
    return f"{int(math.floor(freq_hz + 0.5))} Hz"


def format_frequency_tooltip(freq_hz: float) -> str:
    """Compact frequency label with precision that shrinks as frequency grows."""
    if freq_hz is None or not math.isfinite(freq_hz):
        return "N/A"
    if freq_hz < 1:
        return f"{freq_hz:.2f}"
    if freq_hz < 10:
        return f"{freq_hz:.1f}"
    if freq_hz < 1000:
        return str(int(math.floor(freq_hz + 0.5)))
    return f"{freq_hz / 1000:.1f}k"


def format_lufs(value: float | None, unit: str = "LUFS") -> str:
    if value is None or not math.isfinite(value):
        return "N/A"
    return f"{value:.1f} {unit}"
