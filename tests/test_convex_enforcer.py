"""Tests for convexity enforcement."""

import pytest
from shapely.geometry import Polygon as ShapelyPolygon
from shapely.ops import unary_union

from py_cavegen.core.convex_enforcer import (
    ensure_convex,
    is_convex,
    is_valid_diagonal,
    reflex_vertices,
    split_at_reflex_vertex,
)
from py_cavegen.core.geometry import polygon_area

L_HEXAGON = [(0.0, 0.0), (2.0, 0.0), (2.0, 1.0), (1.0, 1.0), (1.0, 2.0), (0.0, 2.0)]

# Comb with three teeth; needs several splits
COMB = [
    (0.0, 0.0), (7.0, 0.0), (7.0, 3.0), (6.0, 3.0), (6.0, 1.0), (4.0, 1.0),
    (4.0, 3.0), (3.0, 3.0), (3.0, 1.0), (1.0, 1.0), (1.0, 3.0), (0.0, 3.0),
]


class TestIsConvex:
    """Test the convexity predicate."""

    def test_square(self):
        """Test that a square is convex in either winding."""
        square = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]
        assert is_convex(square)
        assert is_convex(square[::-1])

    def test_l_shape(self):
        """Test that an L-shape is not convex."""
        assert not is_convex(L_HEXAGON)

    def test_collinear_vertices_ignored(self):
        """Test that a vertex in the middle of an edge does not break convexity."""
        assert is_convex([(0.0, 0.0), (1.0, 0.0), (2.0, 0.0), (2.0, 2.0), (0.0, 2.0)])

    def test_self_intersecting(self):
        """Test that a pentagram is not convex even though it always turns one way."""
        star = [(0.0, 3.0), (1.8, -2.4), (-2.9, 0.9), (2.9, 0.9), (-1.8, -2.4)]
        assert not is_convex(star)

    def test_degenerate(self):
        """Test that fewer than 3 vertices or zero area is not convex."""
        assert not is_convex([(0.0, 0.0), (1.0, 1.0)])
        assert not is_convex([(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)])


class TestEnsureConvex:
    """Test splitting polygons into convex pieces."""

    def test_l_hexagon(self):
        """Test that an L-hexagon splits into convex pieces of equal total area."""
        pieces = ensure_convex(L_HEXAGON)

        assert len(pieces) >= 2
        assert all(is_convex(p) for p in pieces)
        assert sum(polygon_area(p) for p in pieces) == pytest.approx(3.0, abs=1e-6)

    def test_convex_passthrough(self):
        """Test that a convex polygon is returned as the only piece."""
        triangle = [(0.0, 0.0), (4.0, 0.0), (0.0, 3.0)]
        assert ensure_convex(triangle) == [triangle]

    def test_comb(self):
        """Test that the pieces of a comb tile it exactly."""
        pieces = ensure_convex(COMB)

        assert all(is_convex(p) for p in pieces)
        assert all(polygon_area(p) > 1e-6 for p in pieces)
        union = unary_union([ShapelyPolygon(p) for p in pieces])
        assert union.area == pytest.approx(ShapelyPolygon(COMB).area, abs=1e-6)
        assert sum(polygon_area(p) for p in pieces) == pytest.approx(union.area, abs=1e-6)

    def test_iteration_cap_triangulates(self):
        """Test that hitting the cap still yields convex pieces covering the polygon."""
        pieces = ensure_convex(COMB, max_iterations=1)

        assert all(is_convex(p) for p in pieces)
        assert sum(polygon_area(p) for p in pieces) == pytest.approx(ShapelyPolygon(COMB).area, abs=1e-6)

    def test_degenerate_input(self):
        """Test that zero-area input gives no pieces."""
        assert ensure_convex([(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)]) == []


class TestSplitting:
    """Test reflex vertex diagonals."""

    def test_reflex_vertex_found(self):
        """Test that the inner corner of the L is the only reflex vertex."""
        assert reflex_vertices(L_HEXAGON) == [3]
        assert reflex_vertices(L_HEXAGON[::-1]) == [2]

    def test_diagonal_outside_rejected(self):
        """Test that a diagonal through empty space is invalid."""
        assert not is_valid_diagonal(L_HEXAGON, 2, 4)

    def test_diagonal_inside_accepted(self):
        """Test that a diagonal from the inner corner to the far corner is valid."""
        assert is_valid_diagonal(L_HEXAGON, 3, 0)

    def test_split_halves(self):
        """Test that a split preserves the total area."""
        first, second = split_at_reflex_vertex(L_HEXAGON)
        assert polygon_area(first) + polygon_area(second) == pytest.approx(3.0)
