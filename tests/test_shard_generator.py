"""Tests for Voronoi decomposition of islands."""

import numpy as np
import pytest
from shapely.geometry import Point
from shapely.geometry import Polygon as ShapelyPolygon

from py_cavegen.core.convex_enforcer import is_convex
from py_cavegen.core.geometry import is_simple, polygon_area
from py_cavegen.core.island_tracer import extract_islands, trace_island
from py_cavegen.core.shard_generator import (
    ShardOptions,
    clip_cell_with_contour,
    compute_voronoi_cells,
    create_shards,
    edge_crosses_empty,
    find_contour_path,
    is_in_island,
    is_on_solid,
    relax_sites,
    sample_sites,
    site_count,
)
from py_cavegen.utils.random import get_rng


@pytest.fixture
def rectangle_island():
    """A 20x15 island of 300 cells."""
    return extract_islands(np.ones((20, 15), dtype=bool))[0]


@pytest.fixture
def u_island():
    """A U-shaped island whose convex hull spans empty space."""
    cells = [(x, y) for x in range(12) for y in range(3)]
    cells += [(x, y) for x in range(3) for y in range(3, 12)]
    cells += [(x, y) for x in range(9, 12) for y in range(3, 12)]
    return trace_island(cells)


class TestSiteSampling:
    """Test Voronoi site selection."""

    def test_site_count_clamped(self):
        """Test that the site count is cells / 100 clamped to [3, 20]."""
        options = ShardOptions()
        assert site_count(300, options) == 3
        assert site_count(50, options) == 3
        assert site_count(950, options) == 9
        assert site_count(10000, options) == 20

    def test_sites_inside_island(self, u_island):
        """Test that every sampled site lies in an island cell."""
        sites = sample_sites(u_island, 5, get_rng(1), 500)
        assert len(sites) == 5
        assert all(is_in_island(s, u_island.cells) for s in sites)

    def test_sampling_deterministic(self, rectangle_island):
        """Test that the same seed samples the same sites."""
        a = sample_sites(rectangle_island, 3, get_rng(9), 300)
        b = sample_sites(rectangle_island, 3, get_rng(9), 300)
        assert a == b

    def test_relaxed_sites_stay_inside(self, u_island):
        """Test that Lloyd relaxation keeps sites in the island."""
        sites = sample_sites(u_island, 4, get_rng(3), 400)
        relaxed = relax_sites(sites, u_island.cells, 2)
        assert len(relaxed) == len(sites)
        assert all(is_in_island(s, u_island.cells) for s in relaxed)


class TestVoronoiCells:
    """Test half-plane Voronoi construction."""

    def test_cells_partition_bounding_quad(self):
        """Test that cells are convex and contain their own site."""
        sites = [(1.0, 1.0), (5.0, 1.0), (3.0, 4.0)]
        cells = compute_voronoi_cells(sites)

        assert len(cells) == 3
        for site, cell in zip(sites, cells):
            assert is_convex(cell)
            assert ShapelyPolygon(cell).contains(Point(site))

    def test_cells_do_not_overlap(self):
        """Test that distinct cells only share borders."""
        sites = [(0.0, 0.0), (4.0, 0.0), (2.0, 3.0), (2.0, 1.0)]
        cells = [ShapelyPolygon(c) for c in compute_voronoi_cells(sites)]
        for i in range(len(cells)):
            for j in range(i + 1, len(cells)):
                assert cells[i].intersection(cells[j]).area == pytest.approx(0.0, abs=1e-6)


class TestCreateShards:
    """Test full island decomposition."""

    def test_three_hundred_cell_island(self, rectangle_island):
        """Test that a 300-cell island gives 1-3 convex shards within its area."""
        shards = create_shards(rectangle_island, seed=42)

        assert 1 <= len(shards) <= 3
        for shard in shards:
            assert len(shard) >= 3
            assert polygon_area(shard) > 0
            assert is_convex(shard)
        assert sum(polygon_area(s) for s in shards) <= 300 + 1e-6

    def test_deterministic(self, u_island):
        """Test that the same seed reproduces the same shards."""
        assert create_shards(u_island, seed=7) == create_shards(u_island, seed=7)

    def test_shard_vertices_on_island(self, u_island):
        """Test that every shard vertex lies on solid ground of a non-convex island."""
        shards = create_shards(u_island, seed=11)
        assert shards
        for shard in shards:
            assert len(shard) >= 3
            assert polygon_area(shard) > 1e-6
            assert all(is_on_solid(v, u_island.cells) for v in shard)

    def test_fallback_to_contour(self, rectangle_island):
        """Test that too few sites fall back to the island contour."""
        options = ShardOptions(min_sites=1, max_sites=1)
        assert create_shards(rectangle_island, seed=1, options=options) == [list(rectangle_island.contour)]

    def test_single_cell_island(self):
        """Test that a one-cell island still produces a valid shard."""
        island = trace_island([(4, 4)])
        shards = create_shards(island, seed=3)
        assert shards
        for shard in shards:
            assert len(shard) >= 3
            assert polygon_area(shard) > 1e-6


class TestBridges:
    """Test bridge detection and contour clipping."""

    def test_edge_along_outline_is_not_bridge(self, rectangle_island):
        """Test that edges on the island outline are on solid ground."""
        assert not edge_crosses_empty((0.0, 0.0), (20.0, 0.0), rectangle_island.cells)
        assert not edge_crosses_empty((20.0, 15.0), (20.0, 0.0), rectangle_island.cells)

    def test_edge_across_gap_is_bridge(self, u_island):
        """Test that an edge spanning the U's gap crosses empty space."""
        assert edge_crosses_empty((1.5, 10.0), (10.5, 10.0), u_island.cells)

    def test_closed_square_membership(self, rectangle_island):
        """Test that points on the outer grid line count as solid."""
        assert is_on_solid((20.0, 7.5), rectangle_island.cells)
        assert not is_on_solid((20.5, 7.5), rectangle_island.cells)

    def test_cell_outside_contour_dropped(self, rectangle_island):
        """Test that a Voronoi cell fully outside the island yields no shard."""
        cell = [(40.0, 40.0), (42.0, 40.0), (42.0, 42.0), (40.0, 42.0)]
        shard = clip_cell_with_contour(
            cell, rectangle_island.contour, (41.0, 41.0), rectangle_island.cells, ShardOptions()
        )
        assert shard == []

    def test_contour_path_is_shorter_walk(self):
        """Test that the contour walk takes the shorter direction."""
        contour = [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0), (2.0, 1.0), (0.0, 1.0)]
        path = find_contour_path((0.1, 0.0), (2.0, 0.1), contour)
        assert path == [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)]


class TestShardCoverage:
    """Test that shards of a non-convex island are simple and do not overlap."""

    @pytest.mark.parametrize("seed", [2, 5, 11, 23])
    def test_u_island_shards_disjoint(self, u_island, seed):
        """Test simplicity, pairwise overlap and total area against the raster."""
        shards = create_shards(u_island, seed=seed)
        shapes = [ShapelyPolygon(shard) for shard in shards]

        for shard, shape in zip(shards, shapes):
            assert is_simple(shard)
            assert shape.is_valid
        for i in range(len(shapes)):
            for j in range(i + 1, len(shapes)):
                assert shapes[i].intersection(shapes[j]).area == pytest.approx(0.0, abs=1e-6)
        assert sum(polygon_area(s) for s in shards) <= u_island.cell_count + 1e-6

    def test_repaired_shard_stays_in_cell(self, u_island):
        """Test that a cell spanning the U's gap never yields a shard leaving the cell."""
        cell = [(1.0, 5.0), (11.0, 5.0), (11.0, 8.0), (1.0, 8.0)]
        shard = clip_cell_with_contour(cell, u_island.contour, (2.0, 6.5), u_island.cells, ShardOptions())

        if shard:
            shape = ShapelyPolygon(shard)
            assert is_simple(shard)
            assert ShapelyPolygon(cell).buffer(1e-6).contains(shape)
            # Both arms cover 2x3 cells of the cell
            assert shape.area <= 12.0 + 1e-6
