from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Any, Protocol, Tuple, runtime_checkable

import numpy as np

from .errors import InvalidSiteError


@runtime_checkable
class Point(Protocol):
    def coordinates(self) -> Tuple[int, int]: ...


@runtime_checkable
class Site(Point, Protocol):
    def weight(self) -> float: ...


@dataclass(frozen=True, order=True)
class WeightedSite:
    """
    Plain site value: integer position plus scalar weight.
    """
    x: int
    y: int
    w: float = 1.0

    def coordinates(self) -> Tuple[int, int]:
        return (self.x, self.y)

    def weight(self) -> float:
        return self.w


def coordinates_of(point: Any) -> Tuple[int, int]:
    """
    Coordinates of a Point, or of a plain (x, y[, w]) sequence / array row.
    """
    if hasattr(point, "coordinates"):
        x, y = point.coordinates()
    else:
        x, y = point[0], point[1]
    return (_as_int(x, point), _as_int(y, point))


def _as_int(value: Any, point: Any) -> int:
    try:
        return operator.index(value)
    except TypeError:
        pass
    # integral floats, e.g. rows of a float array
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return int(value)
    raise InvalidSiteError(f"Point {point!r} has non-integral coordinate {value!r}")


def weight_of(site: Any) -> float:
    """
    Weight of a Site, or the third component of a plain (x, y, w) sequence.
    """
    if isinstance(site, Site):
        return float(site.weight())
    try:
        return float(site[2])
    except (IndexError, TypeError):
        raise InvalidSiteError(f"Site {site!r} has no weight") from None
