from .errors import (
    DiscreteVoronoiError,
    EmptySitesError,
    InvalidBoundsError,
    InvalidSiteError,
    InvariantViolation,
    OutOfBoundsError,
    UnknownMetricError,
)
from .site import Point, Site, WeightedSite, coordinates_of, weight_of
from .metric import (
    METRICS,
    AdditivelyWeightedEuclidean,
    Euclidean,
    Manhattan,
    Metric,
    MultiplicativelyWeightedEuclidean,
    PowerEuclidean,
    get_metric,
)
from .grid import BoundingBox, Cell, CoordinateRange, Grid, GridIdx
from .tesselation import SiteOwner, SiteWrapper, VoronoiBuilder, VoronoiTesselation
from .sampling import sample_sites_by_target_area, sample_sites_in_box
from .config import Settings, get_settings
from .log import configure_logging

__all__ = [
    "DiscreteVoronoiError",
    "EmptySitesError",
    "InvalidBoundsError",
    "InvalidSiteError",
    "InvariantViolation",
    "OutOfBoundsError",
    "UnknownMetricError",
    "Point",
    "Site",
    "WeightedSite",
    "coordinates_of",
    "weight_of",
    "METRICS",
    "Metric",
    "Euclidean",
    "Manhattan",
    "MultiplicativelyWeightedEuclidean",
    "AdditivelyWeightedEuclidean",
    "PowerEuclidean",
    "get_metric",
    "BoundingBox",
    "Cell",
    "CoordinateRange",
    "Grid",
    "GridIdx",
    "SiteOwner",
    "SiteWrapper",
    "VoronoiBuilder",
    "VoronoiTesselation",
    "sample_sites_in_box",
    "sample_sites_by_target_area",
    "Settings",
    "get_settings",
    "configure_logging",
]
