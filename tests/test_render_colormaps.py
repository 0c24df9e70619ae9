from __future__ import annotations

import numpy as np
import pytest

from abscope.render.colormaps import (
    apply_colormap,
    apply_diverging_colormap,
    diverging_table,
    inferno_table,
)
from abscope.types import MelRaster, MelScaleInfo


def test_inferno_endpoints():
    table = inferno_table()
    assert table.shape == (256, 3)
    assert table.dtype == np.uint8
    assert tuple(table[0]) == (0, 0, 4)
    assert tuple(table[-1]) == (252, 255, 164)
    with pytest.raises(ValueError):
        inferno_table(1)


def test_diverging_passes_through_black():
    table = diverging_table()
    assert tuple(table[0]) == (255, 20, 10)
    assert tuple(table[128]) == (0, 0, 0)
    assert tuple(table[255]) == (65, 105, 255)


def test_apply_colormap_clamps():
    table = inferno_table()
    rgb = apply_colormap(np.array([-1.0, 0.0, 1.0, 2.0]), table)
    assert np.array_equal(rgb[0], table[0])
    assert np.array_equal(rgb[1], table[0])
    assert np.array_equal(rgb[2], table[-1])
    assert np.array_equal(rgb[3], table[-1])


def test_apply_diverging_centers_zero():
    table = diverging_table()
    rgb = apply_diverging_colormap(np.array([-1.0, 0.0, 1.0]), table)
    assert tuple(rgb[0]) == (255, 20, 10)
    assert tuple(rgb[1]) == (0, 0, 0)
    assert tuple(rgb[2]) == (65, 105, 255)


def test_raster_to_rgb_picks_map_by_sign():
    info = MelScaleInfo(min_mel=0.0, mel_range=1.0, render_height=2)
    plain = MelRaster(values=np.zeros((2, 3)), scale=info)
    signed = MelRaster(values=np.zeros((2, 3)), scale=info, signed=True)
    assert plain.to_rgb(inferno_table()).shape == (2, 3, 3)
    assert np.all(plain.to_rgb(inferno_table())[..., 2] == 4)
    assert np.all(signed.to_rgb(diverging_table()) == 0)
