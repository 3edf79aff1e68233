from __future__ import annotations

import hashlib
from typing import NamedTuple

import numpy as np


def _sha256_bytes(data: bytes) -> str:
    h = hashlib.sha256()
    h.update(data)
    return h.hexdigest()


def hash_owner_array(arr: np.ndarray) -> str:
    """
    Hash shape + owner ids, so equal hashes mean identical tessellations.
    """
    arr = np.ascontiguousarray(arr, dtype=np.int64)
    return _sha256_bytes(repr(arr.shape).encode("utf-8") + arr.tobytes())


class TaggedSite(NamedTuple):
    """
    Site stored as a tuple whose leading field is not a coordinate.
    """
    label: int
    x: int
    y: int
    w: float = 1.0

    def coordinates(self):
        return (self.x, self.y)

    def weight(self):
        return self.w
