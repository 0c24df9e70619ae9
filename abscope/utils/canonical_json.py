from __future__ import annotations
import json
import math

import numpy as np


def to_jsonable(obj):
    """
    Convert numpy scalars/arrays and non-finite floats into JSON-safe values.

    NaN and +/-inf become None so loudness sentinels serialize as null.
    """
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    if isinstance(obj, np.ndarray):
        return [to_jsonable(v) for v in obj.tolist()]
    if isinstance(obj, np.generic):
        obj = obj.item()
    if isinstance(obj, float) and not math.isfinite(obj):
        return None
    return obj


def canonical_dumps(obj) -> str:
    """Serialize to canonical JSON (sorted keys, minimal whitespace, no NaN)."""
    return json.dumps(
        to_jsonable(obj),
        ensure_ascii=False,
        sort_keys=True,
        separators=(",", ":"),
        allow_nan=False,
    )
