"""Validation shared by the analysis engines."""
from __future__ import annotations

import numpy as np

from abscope.errors import InvalidInputError
from abscope.types import SampleBuffer


def validate_buffer(buffer: SampleBuffer, *, caller: str) -> None:
    """Reject buffers no engine can analyze (no channels, bad rate, ragged shape)."""
    if buffer is None:
        raise InvalidInputError(f"{caller}: no sample buffer given.")
    if not buffer.sample_rate or not float(buffer.sample_rate) > 0:
        raise InvalidInputError(f"{caller}: invalid sample rate {buffer.sample_rate!r}.")
    channels = np.asarray(buffer.channels)
    if channels.ndim != 2:
        raise InvalidInputError(f"{caller}: channels must be a 2D (channels, samples) array.")
    if channels.shape[0] == 0:
        raise InvalidInputError(f"{caller}: sample buffer has no channels.")
