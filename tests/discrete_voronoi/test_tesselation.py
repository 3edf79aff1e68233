import numpy as np
import pytest

from discrete_voronoi.grid import BoundingBox, GridIdx
from discrete_voronoi.metric import METRICS, Euclidean
from discrete_voronoi.sampling import sample_sites_in_box
from discrete_voronoi import tesselation
from discrete_voronoi.tesselation import VoronoiBuilder

from tests.discrete_voronoi.helpers import hash_owner_array


def _random_sites(seed, bounds, n=25, weight_range=(1.0, 1.0)):
    rng = np.random.default_rng(seed)
    sites = sample_sites_in_box(bounds, n, rng, weight_range=weight_range)
    # one site per coordinate, so input order cannot pick the representative
    return list({s.coordinates(): s for s in sites}.values())


def test_symmetric_split_tie_goes_to_first_claimant():
    tess = VoronoiBuilder([(0, 0, 1.0), (4, 0, 1.0)]).bounds(BoundingBox(0, 0, 5, 1)).build()
    tess.compute()

    np.testing.assert_array_equal(tess.owner_array(), [[0, 0, 0, 1, 1]])
    # (2, 0) is equidistant; site 0 reached it first and keeps it
    assert tess.cell(GridIdx(2, 0)).owner == 0
    regions = tess.regions()
    assert [c.coordinates for c in regions[(0, 0, 1.0)]] == [(0, 0), (1, 0), (2, 0)]
    assert [c.coordinates for c in regions[(4, 0, 1.0)]] == [(3, 0), (4, 0)]


def test_small_square_golden():
    tess = VoronoiBuilder([(0, 0, 1.0), (2, 2, 1.0)]).build()
    rounds = tess.compute()

    # rows are y = 0, 1, 2; the diagonal ties stay with site 0
    np.testing.assert_array_equal(
        tess.owner_array(),
        [
            [0, 0, 0],
            [0, 0, 1],
            [0, 1, 1],
        ],
    )
    assert rounds == 3
    assert not any(c.contested for c in tess.grid.cells())


def test_closer_site_takes_cells_from_earlier_claimant():
    sites = [(0, 0, 0.0), (4, 0, 3.0)]
    tess = (
        VoronoiBuilder(sites)
        .metric("additively_weighted_euclidean")
        .bounds(BoundingBox(0, 0, 5, 1))
        .build()
    )
    tess.compute()

    np.testing.assert_array_equal(tess.owner_array(), [[0, 1, 1, 1, 1]])


def test_single_site_floods_by_manhattan_rings():
    tess = VoronoiBuilder([(0, 0, 1.0)]).metric("manhattan").bounds(BoundingBox(0, 0, 5, 5)).build()

    assert tess.step() == 2
    assert tess.step() == 3
    # eight claiming rounds reach the far corner, the ninth claims nothing
    assert tess.compute() == 7
    assert tess.rounds == 9
    assert (tess.owner_array() == 0).all()


def test_compute_respects_max_rounds():
    tess = VoronoiBuilder([(0, 0, 1.0)]).bounds(BoundingBox(0, 0, 10, 1)).build()

    assert tess.compute(max_rounds=2) == 2
    assert tess.grid.owned_count() == 3
    assert not tess.is_complete()

    tess.compute()
    assert tess.is_complete()
    assert tess.grid.owned_count() == 10


@pytest.mark.parametrize("metric", sorted(set(cls.name for cls in METRICS.values())))
def test_every_cell_owned_after_compute(metric):
    bounds = BoundingBox(-5, 3, 40, 30)
    sites = _random_sites(7, bounds, weight_range=(0.5, 3.0))
    tess = VoronoiBuilder(sites).metric(metric).bounds(bounds).build()
    tess.compute()

    arr = tess.owner_array()
    assert (arr >= 0).all()
    assert tess.region_sizes().sum() == bounds.size
    assert not any(c.contested for c in tess.grid.cells())


def test_compute_is_idempotent():
    bounds = BoundingBox(0, 0, 30, 20)
    tess = VoronoiBuilder(_random_sites(3, bounds)).bounds(bounds).build()
    tess.compute()
    before = tess.owner_array()
    rounds = tess.rounds

    assert tess.compute() == 0
    assert tess.step() == 0
    assert tess.rounds == rounds + 1
    np.testing.assert_array_equal(tess.owner_array(), before)


def test_identical_inputs_identical_result():
    bounds = BoundingBox(0, 0, 32, 32)
    sites = _random_sites(11, bounds, n=30, weight_range=(1.0, 4.0))
    shuffled = list(sites)
    np.random.default_rng(0).shuffle(shuffled)

    hashes = set()
    for order in (sites, shuffled, sites):
        tess = VoronoiBuilder(order).metric("power").bounds(bounds).build()
        tess.compute()
        hashes.add(hash_owner_array(tess.owner_array()))

    assert len(hashes) == 1


def test_parallel_frontiers_match_sequential():
    bounds = BoundingBox(0, 0, 36, 24)
    sites = _random_sites(5, bounds, n=20, weight_range=(1.0, 8.0))

    seq = VoronoiBuilder(sites).metric("multiplicative").bounds(bounds).parallel(False).build()
    par = VoronoiBuilder(sites).metric("multiplicative").bounds(bounds).parallel(True, max_workers=4).build()
    seq.compute()
    par.compute()

    np.testing.assert_array_equal(seq.owner_array(), par.owner_array())
    assert seq.rounds == par.rounds


def test_reset_reproduces_result():
    bounds = BoundingBox(0, 0, 25, 25)
    tess = VoronoiBuilder(_random_sites(21, bounds)).metric("manhattan").bounds(bounds).build()
    tess.compute()
    first = tess.owner_array()

    tess.reset()
    assert tess.rounds == 0
    assert tess.grid.owned_count() == len(tess.sites())

    tess.compute()
    np.testing.assert_array_equal(tess.owner_array(), first)


def test_unweighted_sites_own_their_cell():
    bounds = BoundingBox(0, 0, 30, 30)
    for metric in ("euclidean", "manhattan"):
        tess = VoronoiBuilder(_random_sites(2, bounds, n=40)).metric(metric).bounds(bounds).build()
        tess.compute()
        for owner, site in enumerate(tess.sites()):
            assert tess.cell(GridIdx(*site.coordinates())).owner == owner


def test_heavier_sites_capture_larger_regions():
    sites = [(2, 4, 8.0), (9, 11, 1.0), (4, 9, 8.0), (9, 4, 1.0)]
    tess = (
        VoronoiBuilder(sites)
        .metric("multiplicatively_weighted_euclidean")
        .bounds(BoundingBox(0, 0, 14, 14))
        .build()
    )
    tess.compute()

    sizes = {site: len(cells) for site, cells in tess.regions().items()}
    heavy = [sizes[s] for s in sites if s[2] == 8.0]
    light = [sizes[s] for s in sites if s[2] == 1.0]

    assert min(heavy) > max(light)
    assert sum(sizes.values()) == 14 * 14


def test_cell_buffer_matches_coordinate_order():
    bounds = BoundingBox(3, -2, 6, 4)
    tess = VoronoiBuilder([(3, -2, 1.0), (8, 1, 1.0)]).bounds(bounds).build()
    tess.compute()

    coords = tess.cell_buffer(lambda cell, site: cell.coordinates)
    assert coords == list(bounds.coordinates_iter())

    owners = tess.cell_buffer(lambda cell, site: None if site is None else site[:2])
    assert owners[0] == (3, -2)
    assert owners[-1] == (8, 1)
    assert len(owners) == bounds.size


def test_cell_buffer_reports_unreached_cells_as_none():
    tess = VoronoiBuilder([(0, 0, 1.0)]).bounds(BoundingBox(0, 0, 3, 1)).build()

    assert tess.cell_buffer(lambda cell, site: site) == [(0, 0, 1.0), None, None]


def test_owner_regions_without_hashable_sites():
    sites = [[0, 0, 1.0], [3, 0, 1.0]]
    tess = VoronoiBuilder(sites).build()
    tess.compute()

    regions = tess.owner_regions()
    assert sorted(regions) == [0, 1]
    assert sum(len(cells) for cells in regions.values()) == 4
    with pytest.raises(TypeError):
        tess.regions()


def test_parallel_compute_uses_one_thread_pool(monkeypatch):
    created = []

    class CountingPool(tesselation.ThreadPoolExecutor):
        def __init__(self, *args, **kwargs):
            created.append(self)
            super().__init__(*args, **kwargs)

    monkeypatch.setattr(tesselation, "ThreadPoolExecutor", CountingPool)

    bounds = BoundingBox(0, 0, 20, 20)
    tess = VoronoiBuilder(_random_sites(4, bounds, n=10)).bounds(bounds).parallel(True).build()
    rounds = tess.compute()

    assert rounds > 1
    assert len(created) == 1
    assert (tess.owner_array() >= 0).all()

    # a lone step still gets a pool of its own
    tess.reset()
    tess.step()
    assert len(created) == 2
