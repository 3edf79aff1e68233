"""
Distance strategies used to arbitrate contested cells.

Every metric reports float32 distances but does its arithmetic in float64,
so weight terms are combined before any rounding happens. Distances are only
comparable with other distances from the same metric.
"""
from __future__ import annotations

from typing import Any, Dict, Type, Union

import numpy as np

from .errors import InvalidSiteError, UnknownMetricError
from .site import coordinates_of, weight_of

OUTPUT_DTYPE = np.float32
INTERNAL_DTYPE = np.float64


def squared_magnitude(a: Any, b: Any) -> np.float64:
    ax, ay = coordinates_of(a)
    bx, by = coordinates_of(b)
    dx = INTERNAL_DTYPE(ax) - INTERNAL_DTYPE(bx)
    dy = INTERNAL_DTYPE(ay) - INTERNAL_DTYPE(by)
    return dx * dx + dy * dy


class Metric:
    """
    Strategy interface: distance(site, point) -> float32.
    """
    name: str = ""
    aliases: tuple[str, ...] = ()
    requires_positive_weight: bool = False

    def distance(self, site: Any, point: Any) -> np.float32:
        raise NotImplementedError

    def validate_site(self, site: Any) -> None:
        w = weight_of(site)
        if not np.isfinite(w):
            raise InvalidSiteError(f"Site {coordinates_of(site)} has non-finite weight {w}")
        if self.requires_positive_weight and w <= 0:
            raise InvalidSiteError(
                f"{type(self).__name__} requires positive weights, "
                f"site {coordinates_of(site)} has weight {w}"
            )

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other)

    def __hash__(self) -> int:
        return hash(type(self))

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class Euclidean(Metric):
    name = "euclidean"

    def distance(self, site, point):
        return OUTPUT_DTYPE(np.sqrt(squared_magnitude(site, point)))


class Manhattan(Metric):
    name = "manhattan"
    aliases = ("taxicab", "l1")

    def distance(self, site, point):
        sx, sy = coordinates_of(site)
        px, py = coordinates_of(point)
        mag = abs(INTERNAL_DTYPE(sx) - INTERNAL_DTYPE(px)) + abs(INTERNAL_DTYPE(sy) - INTERNAL_DTYPE(py))
        return OUTPUT_DTYPE(mag)


class MultiplicativelyWeightedEuclidean(Metric):
    """
    Euclidean distance scaled by 1/weight: heavier sites capture larger regions.
    """
    name = "multiplicatively_weighted_euclidean"
    aliases = ("mult_weighted_euclidean", "multiplicative")
    requires_positive_weight = True

    def distance(self, site, point):
        w = INTERNAL_DTYPE(weight_of(site))
        return OUTPUT_DTYPE(np.sqrt(squared_magnitude(site, point)) / w)


class AdditivelyWeightedEuclidean(Metric):
    name = "additively_weighted_euclidean"
    aliases = ("additive_weighted_euclidean", "additive")

    def distance(self, site, point):
        w = INTERNAL_DTYPE(weight_of(site))
        return OUTPUT_DTYPE(np.sqrt(squared_magnitude(site, point)) - w)


class PowerEuclidean(Metric):
    """
    Power distance: squared Euclidean distance minus squared weight.
    """
    name = "power_euclidean"
    aliases = ("power",)

    def distance(self, site, point):
        w = INTERNAL_DTYPE(weight_of(site))
        return OUTPUT_DTYPE(squared_magnitude(site, point) - w * w)


METRICS: Dict[str, Type[Metric]] = {}
for _cls in (
    Euclidean,
    Manhattan,
    MultiplicativelyWeightedEuclidean,
    AdditivelyWeightedEuclidean,
    PowerEuclidean,
):
    METRICS[_cls.name] = _cls
    for _alias in _cls.aliases:
        METRICS[_alias] = _cls


MetricLike = Union[str, Metric, Type[Metric]]


def get_metric(metric: MetricLike) -> Metric:
    """
    Resolve a registered name, a Metric subclass or an instance to an instance.
    """
    if isinstance(metric, Metric):
        return metric
    if isinstance(metric, type) and issubclass(metric, Metric):
        return metric()
    if isinstance(metric, str):
        key = metric.strip().lower().replace("-", "_")
        try:
            return METRICS[key]()
        except KeyError:
            raise UnknownMetricError(
                f"Unknown metric {metric!r}, expected one of {sorted(METRICS)}"
            ) from None
    raise UnknownMetricError(f"Cannot interpret {metric!r} as a metric")
