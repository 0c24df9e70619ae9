"""Audio decoding into SampleBuffers."""
from __future__ import annotations
import warnings as py_warnings

import numpy as np

from abscope.types import SampleBuffer


def _decode_soundfile(path: str) -> tuple[np.ndarray, float, list[str]]:
    """Decode using soundfile (libsndfile); returns (frames, channels) float32."""
    try:
        import soundfile as sf
    except Exception as exc:
        raise RuntimeError("soundfile backend not available.") from exc

    with py_warnings.catch_warnings(record=True) as w:
        py_warnings.simplefilter("always")
        data, fs = sf.read(path, always_2d=True, dtype="float32")
    warn_list = [str(wi.message) for wi in w]
    return data, float(fs), warn_list


def load_audio(path: str) -> SampleBuffer:
    """
    Load an audio file as a channel-major float32 SampleBuffer.

    Supports whatever libsndfile reads (WAV, FLAC, AIFF, OGG, MP3 on recent
    builds). Decoder warnings are kept on the buffer.

    Raises:
        ValueError: the file decodes to zero channels
    """
    data, fs, warnings_list = _decode_soundfile(path)
    x = np.asarray(data, dtype=np.float32)
    if x.ndim != 2 or x.shape[1] == 0:
        raise ValueError(f"Decoded audio has no channels: {path}")
    if x.shape[1] > 2:
        warnings_list.append(
            f"soundfile: {x.shape[1]} channels decoded; loudness uses the first two."
        )
    return SampleBuffer(
        channels=np.ascontiguousarray(x.T),
        sample_rate=fs,
        warnings=warnings_list,
    )
