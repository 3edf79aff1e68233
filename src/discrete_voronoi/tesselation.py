"""
Round-based wavefront tessellation of an integer grid.

Every site starts from its own cell. Each round, in ascending site id order,
a site tries to claim the in-bounds neighbours of the cells it gained in the
previous round. Unowned cells are taken outright; cells held by another site
are arbitrated by the metric: the strictly closer site wins, and on an exact
tie the previous owner keeps the cell. The computation is finished once a
full round claims nothing.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, NewType, Optional, Sequence, Tuple, TypeVar

import numpy as np
import structlog

from .config import get_settings
from .errors import InvariantViolation
from .grid import BoundingBox, Cell, Grid, GridIdx
from .metric import Metric, MetricLike, get_metric
from .site import coordinates_of

logger = structlog.get_logger(__name__)

SiteOwner = NewType("SiteOwner", int)

T = TypeVar("T")


@dataclass(eq=False)
class SiteWrapper:
    """
    Per-site round state. Grid cells refer to a site only through `id`.
    """
    id: SiteOwner
    site: Any
    newly_claimed: List[GridIdx] = field(default_factory=list)
    boundary_chain: List[GridIdx] = field(default_factory=list)

    def expand_boundary(self, bounds: BoundingBox) -> List[GridIdx]:
        """
        Neighbours of last round's claims, first-seen order, no duplicates.
        Reads only this wrapper's own state, so it is safe to run concurrently.
        """
        chain: Dict[GridIdx, None] = {}
        for idx in self.newly_claimed:
            for n in bounds.neighbors(idx):
                chain.setdefault(n, None)
        return list(chain)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, SiteWrapper) and self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


class VoronoiBuilder:
    """
    Normalizes a raw site collection and seeds a VoronoiTesselation.

        tess = (VoronoiBuilder(sites)
                .metric("manhattan")
                .bounds(BoundingBox(0, 0, 64, 64))
                .build())

    Sites sharing a coordinate are collapsed to the first one in input order;
    sites outside the bounds are dropped. Neither is treated as an error.
    """

    def __init__(self, sites: Iterable):
        ordered = sorted(sites, key=coordinates_of)
        unique: List[Any] = []
        last = None
        for site in ordered:
            coords = coordinates_of(site)
            if coords == last:
                continue
            unique.append(site)
            last = coords

        self._sites = unique
        self._duplicates = len(ordered) - len(unique)

        # unset options fall back to Settings at build time
        self._metric: Optional[Metric] = None
        self._bounds: Optional[BoundingBox] = None
        self._parallel: Optional[bool] = None
        self._max_workers: Optional[int] = None

    def metric(self, metric: MetricLike) -> "VoronoiBuilder":
        self._metric = get_metric(metric)
        return self

    def bounds(self, bounds: BoundingBox) -> "VoronoiBuilder":
        self._bounds = bounds
        return self

    def parallel(self, enabled: bool = True, max_workers: Optional[int] = None) -> "VoronoiBuilder":
        self._parallel = enabled
        if max_workers is not None:
            self._max_workers = max_workers
        return self

    def build(self) -> "VoronoiTesselation":
        metric = self._metric
        parallel = self._parallel
        max_workers = self._max_workers
        if metric is None or parallel is None:
            settings = get_settings()
            if metric is None:
                metric = get_metric(settings.default_metric)
            if parallel is None:
                parallel = settings.parallel_boundaries
                if max_workers is None:
                    max_workers = settings.max_workers

        bounds = self._bounds if self._bounds is not None else BoundingBox.fit_to_sites(self._sites)

        kept = [site for site in self._sites if bounds.inside(site)]
        clipped = len(self._sites) - len(kept)
        if self._duplicates or clipped:
            logger.warning(
                "Sites dropped",
                duplicates=self._duplicates,
                out_of_bounds=clipped,
            )

        for site in kept:
            metric.validate_site(site)

        tess = VoronoiTesselation(
            kept,
            metric,
            bounds,
            parallel=parallel,
            max_workers=max_workers,
        )
        logger.info(
            "Voronoi tesselation built",
            sites=len(kept),
            metric=metric.name,
            width=bounds.width,
            height=bounds.height,
        )
        return tess


class VoronoiTesselation:
    """
    Owns the grid and every site's round state.

    `sites` must already be coordinate-unique and inside `bounds`; use
    VoronoiBuilder to get there. Site ids follow the order of `sites`.
    """

    def __init__(
        self,
        sites: Sequence,
        metric: Metric,
        bounds: BoundingBox,
        *,
        parallel: bool = False,
        max_workers: Optional[int] = None,
    ):
        self._metric = metric
        self._grid = Grid(bounds)
        self._sites = [SiteWrapper(SiteOwner(i), site) for i, site in enumerate(sites)]
        self._parallel = parallel
        self._max_workers = max_workers
        self._rounds = 0
        self._pool: Optional[ThreadPoolExecutor] = None

        self.init_sites()

    @property
    def bounds(self) -> BoundingBox:
        return self._grid.bounds

    @property
    def metric(self) -> Metric:
        return self._metric

    @property
    def grid(self) -> Grid:
        return self._grid

    @property
    def rounds(self) -> int:
        return self._rounds

    def sites(self) -> List[Any]:
        return [w.site for w in self._sites]

    def site(self, owner: SiteOwner) -> Any:
        return self._sites[owner].site

    def init_sites(self) -> None:
        """
        Claim each site's own cell. The grid must be empty.
        """
        for wrapper in self._sites:
            seed = GridIdx(*coordinates_of(wrapper.site))
            claimed, contested = self._grid.claim_cells([seed], wrapper.id)
            if len(claimed) != 1 or contested:
                raise InvariantViolation(
                    f"Seed cell {tuple(seed)} of site {wrapper.id} could not be claimed "
                    f"(claimed={len(claimed)}, contested={len(contested)})"
                )
            wrapper.newly_claimed = claimed
            wrapper.boundary_chain = []

    def reset(self) -> None:
        """
        Drop all ownership and re-seed the sites for a fresh run.
        """
        self._grid.clear()
        self._rounds = 0
        self.init_sites()

    def pending_claims(self) -> int:
        return sum(len(w.newly_claimed) for w in self._sites)

    def is_complete(self) -> bool:
        return self.pending_claims() == 0

    def compute(self, max_rounds: Optional[int] = None) -> int:
        """
        Run rounds until one claims nothing, or until `max_rounds` have run.
        Returns the number of rounds executed by this call.
        """
        executed = 0
        with self._frontier_pool():
            while self.pending_claims() > 0:
                if max_rounds is not None and executed >= max_rounds:
                    break
                self.step()
                executed += 1

        logger.info(
            "Tesselation computed",
            rounds=executed,
            total_rounds=self._rounds,
            owned=self._grid.owned_count(),
            cells=len(self._grid),
            complete=self.is_complete(),
        )
        return executed

    def step(self) -> int:
        """
        Execute exactly one round. Returns the number of cells claimed in it.
        """
        chains = self._expand_boundaries()

        claimed_total = 0
        for wrapper, chain in zip(self._sites, chains):
            wrapper.boundary_chain = chain

            claimed, contested = self._grid.claim_cells(chain, wrapper.id)
            won = self._handle_conflicts(wrapper, contested)

            wrapper.newly_claimed = claimed + won
            claimed_total += len(wrapper.newly_claimed)

        self._rounds += 1
        logger.debug("Round finished", round=self._rounds, claimed=claimed_total)
        return claimed_total

    @contextmanager
    def _frontier_pool(self) -> Iterator[None]:
        """
        Keep one thread pool open for the enclosed rounds when running in parallel.
        """
        if not self._parallel or self._pool is not None:
            yield
            return
        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            self._pool = pool
            try:
                yield
            finally:
                self._pool = None

    def _expand_boundaries(self) -> List[List[GridIdx]]:
        # fan-out is pure; the barrier is the list() before any claim runs
        bounds = self._grid.bounds
        if self._parallel and len(self._sites) > 1:
            if self._pool is None:
                with self._frontier_pool():
                    return self._expand_boundaries()
            return list(self._pool.map(lambda w: w.expand_boundary(bounds), self._sites))
        return [w.expand_boundary(bounds) for w in self._sites]

    def _handle_conflicts(
        self,
        wrapper: SiteWrapper,
        contested: List[Tuple[GridIdx, int]],
    ) -> List[GridIdx]:
        won: List[GridIdx] = []
        for idx, previous in contested:
            ours = self._metric.distance(wrapper.site, idx)
            theirs = self._metric.distance(self._sites[previous].site, idx)

            if ours < theirs:
                self._grid.resolve(idx, wrapper.id)
                won.append(idx)
            else:
                # ties stay with the previous owner
                self._grid.resolve(idx, previous)
        return won

    def cell(self, idx) -> Cell:
        return self._grid[idx]

    def cell_buffer(self, transform: Callable[[Cell, Optional[Any]], T]) -> List[T]:
        """
        transform(cell, owning site or None) for every cell, row-major order.
        """
        out: List[T] = []
        for cell in self._grid.cells():
            site = None if cell.owner is None else self._sites[cell.owner].site
            out.append(transform(cell, site))
        return out

    def regions(self) -> Dict[Any, List[Cell]]:
        """
        Owned cells grouped by owning site. Sites must be hashable.
        """
        regions: Dict[Any, List[Cell]] = {}
        for cell in self._grid.cells():
            if cell.owner is None:
                continue
            regions.setdefault(self._sites[cell.owner].site, []).append(cell)
        return regions

    def owner_regions(self) -> Dict[SiteOwner, List[GridIdx]]:
        regions: Dict[SiteOwner, List[GridIdx]] = {}
        for cell in self._grid.cells():
            if cell.owner is not None:
                regions.setdefault(SiteOwner(cell.owner), []).append(cell.coordinates)
        return regions

    def owner_array(self) -> np.ndarray:
        return self._grid.owner_array()

    def region_sizes(self) -> np.ndarray:
        """
        Cell count per site id.
        """
        owners = self._grid.owner_array().ravel()
        return np.bincount(owners[owners >= 0], minlength=len(self._sites))
