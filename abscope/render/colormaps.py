"""
Color tables for rasters.

Tables are plain (N, 3) uint8 arrays built once by the caller and passed to
the apply functions; nothing is cached at module level.
"""
from __future__ import annotations

import numpy as np

INFERNO_ANCHORS = (
    (0, 0, 4), (30, 11, 70), (82, 11, 106), (130, 29, 102),
    (178, 50, 86), (221, 75, 67), (249, 111, 59), (253, 164, 49),
    (237, 221, 93), (252, 255, 164),
)
DIVERGING_NEGATIVE_RGB = (255, 20, 10)
DIVERGING_POSITIVE_RGB = (65, 105, 255)


def inferno_table(size: int = 256) -> np.ndarray:
    """Piecewise-linear approximation of matplotlib's inferno."""
    if size < 2:
        raise ValueError("Color table needs at least 2 entries.")
    anchors = np.asarray(INFERNO_ANCHORS, dtype=np.float64)
    segments = anchors.shape[0] - 1
    value = np.arange(size, dtype=np.float64) / (size - 1) * segments
    seg = np.minimum(np.floor(value).astype(np.int64), segments - 1)
    frac = (value - seg)[:, None]
    rgb = anchors[seg] + (anchors[seg + 1] - anchors[seg]) * frac
    return np.floor(rgb + 0.5).astype(np.uint8)


def diverging_table() -> np.ndarray:
    """256 entries: red (index 0) to black (128) to blue (255)."""
    table = np.zeros((256, 3), dtype=np.float64)
    i = np.arange(128, dtype=np.float64)
    table[:128] = np.asarray(DIVERGING_NEGATIVE_RGB) * ((127 - i) / 127)[:, None]
    j = np.arange(129, 256, dtype=np.float64)
    table[129:] = np.asarray(DIVERGING_POSITIVE_RGB) * ((j - 128) / 127)[:, None]
    return np.clip(np.floor(table + 0.5), 0, 255).astype(np.uint8)


def apply_colormap(values: np.ndarray, table: np.ndarray) -> np.ndarray:
    """Map values in [0, 1] to RGB via floor(v * (N - 1))."""
    size = table.shape[0]
    v = np.clip(np.asarray(values, dtype=np.float64), 0.0, 1.0)
    idx = np.clip(np.floor(v * (size - 1)).astype(np.int64), 0, size - 1)
    return table[idx]


def apply_diverging_colormap(values: np.ndarray, table: np.ndarray) -> np.ndarray:
    """Map values in [-1, 1] to RGB so that 0 lands on the table center."""
    size = table.shape[0]
    v = np.clip(np.asarray(values, dtype=np.float64), -1.0, 1.0)
    idx = np.floor((v + 1.0) * (size - 1) / 2.0 + 0.5).astype(np.int64)
    return table[np.clip(idx, 0, size - 1)]
