from __future__ import annotations

import math
import threading

import numpy as np

from abscope.utils.canonical_json import canonical_dumps, to_jsonable
from abscope.utils.formatting import (
    format_frequency,
    format_frequency_tooltip,
    format_lufs,
    format_time,
)
from abscope.utils.hashing import sha256_hex_canonical_json
from abscope.utils.once import OnceCell
from abscope.utils.quantize import q, q_list


def test_quantize_rounds_half_away_from_zero():
    assert q(0.125, 0.25) == 0.25
    assert q(-0.125, 0.25) == -0.25
    assert q(None, 0.01) is None
    assert math.isinf(q(float("inf"), 0.01))
    assert q_list([0.014, None, 1.016], 0.01) == [0.01, None, 1.02]


def test_canonical_json_is_key_order_independent():
    a = {"b": np.float64(1.5), "a": [np.int64(1), float("-inf")]}
    b = {"a": [1, None], "b": 1.5}
    assert canonical_dumps(a) == '{"a":[1,null],"b":1.5}'
    assert sha256_hex_canonical_json(a) == sha256_hex_canonical_json(b)
    assert to_jsonable(np.array([np.nan, 2.0])) == [None, 2.0]


def test_format_time():
    assert format_time(0) == "0:00"
    assert format_time(75.9) == "1:15"
    assert format_time(-3) == "0:00"
    assert format_time(float("nan")) == "0:00"


def test_format_frequency():
    assert format_frequency(440) == "440 Hz"
    assert format_frequency(1500) == "1.5 kHz"
    assert format_frequency_tooltip(0.5) == "0.50"
    assert format_frequency_tooltip(5.25) == "5.2"
    assert format_frequency_tooltip(440.4) == "440"
    assert format_frequency_tooltip(12345.0) == "12.3k"


def test_format_lufs():
    assert format_lufs(-23.04) == "-23.0 LUFS"
    assert format_lufs(7.25, "LU") == "7.2 LU"
    assert format_lufs(None) == "N/A"
    assert format_lufs(float("-inf")) == "N/A"


def test_once_cell_runs_factory_once():
    cell = OnceCell()
    calls = []

    def factory():
        calls.append(1)
        return object()

    results = []
    threads = [threading.Thread(target=lambda: results.append(cell.get_or_init(factory)))
               for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(calls) == 1
    assert all(r is results[0] for r in results)
    assert cell.is_set()
    assert cell.get() is results[0]
    assert repr(cell) == "OnceCell(set)"
