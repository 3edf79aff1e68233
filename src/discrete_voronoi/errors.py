"""Error hierarchy for discrete Voronoi tessellation.

Out-of-bounds and duplicate-coordinate sites are not errors: the builder
drops them silently. Everything below signals a broken precondition.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .grid import BoundingBox


class DiscreteVoronoiError(Exception):
    """Base error for tessellation operations."""


class EmptySitesError(DiscreteVoronoiError, ValueError):
    """Bounds must be fitted to the sites but no sites were given."""


class InvalidBoundsError(DiscreteVoronoiError, ValueError):
    """Bounding box has a non-positive width or height."""


class InvalidSiteError(DiscreteVoronoiError, ValueError):
    """Site cannot be used with the selected metric."""


class UnknownMetricError(DiscreteVoronoiError, ValueError):
    """Metric name is not registered."""


class OutOfBoundsError(DiscreteVoronoiError, IndexError):
    """Grid was addressed with a coordinate outside its bounding box.

    Attributes:
        idx: The offending coordinate pair
        bounds: The grid's BoundingBox
    """

    def __init__(self, idx: tuple[int, int], bounds: "BoundingBox") -> None:
        self.idx = idx
        self.bounds = bounds
        super().__init__(
            f"Coordinate ({idx[0]}, {idx[1]}) outside bounds "
            f"[x: {bounds.x_offset} to {bounds.x_offset + bounds.width - 1}, "
            f"y: {bounds.y_offset} to {bounds.y_offset + bounds.height - 1}]"
        )


class InvariantViolation(DiscreteVoronoiError, AssertionError):
    """Internal contract broken, e.g. two sites seeded on the same cell."""
