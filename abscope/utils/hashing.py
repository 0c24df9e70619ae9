from __future__ import annotations
import hashlib
from abscope.utils.canonical_json import canonical_dumps


def sha256_hex_canonical_json(obj) -> str:
    """SHA256 of the canonical JSON form; key order and numpy types do not matter."""
    return hashlib.sha256(canonical_dumps(obj).encode("utf-8")).hexdigest()
