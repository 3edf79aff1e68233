from __future__ import annotations

from typing import List, Tuple

import numpy as np

from .grid import BoundingBox
from .site import WeightedSite


def sample_sites_in_box(
    bounds: BoundingBox,
    n: int,
    rng: np.random.Generator,
    *,
    weight_range: Tuple[float, float] = (1.0, 1.0),
) -> List[WeightedSite]:
    """
    Uniform integer positions inside `bounds`, weights uniform in weight_range.
    Positions may repeat; the builder collapses duplicates.
    """
    if n < 0:
        raise ValueError("n must be >= 0")
    lo, hi = map(float, weight_range)
    if hi < lo:
        raise ValueError("weight_range must be (low, high) with low <= high")

    xs = rng.integers(bounds.x_offset, bounds.x_offset + bounds.width, size=n)
    ys = rng.integers(bounds.y_offset, bounds.y_offset + bounds.height, size=n)
    if hi > lo:
        ws = rng.uniform(lo, hi, size=n)
    else:
        ws = np.full(n, lo, dtype=np.float64)

    return [WeightedSite(int(x), int(y), float(w)) for x, y, w in zip(xs, ys, ws)]


def sample_sites_by_target_area(
    bounds: BoundingBox,
    target_cell_area: float,
    rng: np.random.Generator,
    *,
    min_sites: int = 1,
    max_sites: int = 20000,
    weight_range: Tuple[float, float] = (1.0, 1.0),
) -> List[WeightedSite]:
    """
    Instead of 'n sites', specify target region area. We derive n ~ box_area / target_area.
    """
    if target_cell_area <= 0:
        raise ValueError("target_cell_area must be > 0")

    n = int(round(bounds.size / float(target_cell_area)))
    n = max(int(min_sites), min(int(max_sites), n))
    return sample_sites_in_box(bounds, n, rng, weight_range=weight_range)
