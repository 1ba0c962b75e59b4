"""Tests for shard post-filtering."""

from py_cavegen.core.shard_filter import filter_shards, is_rectangle, remove_enclosed
from py_cavegen.core.geometry import polygon_area

BIG_TRIANGLE = [(0.0, 0.0), (10.0, 0.0), (0.0, 10.0)]
SMALL_INSIDE = [(1.0, 1.0), (3.0, 1.0), (1.0, 3.0)]
FAR_TRIANGLE = [(20.0, 0.0), (26.0, 0.0), (20.0, 5.0)]
TINY_TRIANGLE = [(40.0, 0.0), (40.5, 0.0), (40.0, 0.5)]
SQUARE = [(50.0, 0.0), (54.0, 0.0), (54.0, 4.0), (50.0, 4.0)]
SKEWED_QUAD = [(60.0, 0.0), (66.0, 0.0), (67.0, 4.0), (61.0, 4.0)]


class TestFilterShards:
    """Test the three filter passes together."""

    def test_enclosed_shard_removed(self):
        """Test that a shard inside a larger one is dropped."""
        result = filter_shards([SMALL_INSIDE, BIG_TRIANGLE], 0.9, 1.0)
        assert result == [BIG_TRIANGLE]

    def test_rectangle_removed(self):
        """Test that an axis-aligned square is dropped."""
        result = filter_shards([SQUARE, FAR_TRIANGLE], 0.9, 1.0)
        assert result == [FAR_TRIANGLE]

    def test_rotated_rectangle_removed(self):
        """Test that rectangles are detected regardless of orientation."""
        diamond = [(0.0, 2.0), (2.0, 0.0), (4.0, 2.0), (2.0, 4.0)]
        assert filter_shards([diamond], 0.9, 1.0) == []

    def test_skewed_quad_kept(self):
        """Test that a quad with non-right angles survives."""
        assert filter_shards([SKEWED_QUAD], 0.9, 1.0) == [SKEWED_QUAD]

    def test_small_shard_removed(self):
        """Test that shards below the minimum area are dropped."""
        assert polygon_area(TINY_TRIANGLE) < 1.0
        result = filter_shards([TINY_TRIANGLE, FAR_TRIANGLE], 0.9, 1.0)
        assert result == [FAR_TRIANGLE]

    def test_input_order_preserved(self):
        """Test that survivors keep their input order."""
        shards = [FAR_TRIANGLE, SKEWED_QUAD, BIG_TRIANGLE, TINY_TRIANGLE]
        result = filter_shards(shards, 0.9, 1.0)
        assert result == [FAR_TRIANGLE, SKEWED_QUAD, BIG_TRIANGLE]

    def test_empty(self):
        """Test that no input gives no output."""
        assert filter_shards([], 0.9, 1.0) == []

    def test_disjoint_shards_kept(self):
        """Test that non-overlapping shards are untouched by the enclosure pass."""
        shards = [BIG_TRIANGLE, FAR_TRIANGLE]
        assert filter_shards(shards, 0.9, 0.0) == shards


class TestEnclosure:
    """Test the enclosure pass ordering."""

    def test_nested_shards(self):
        """Test that each nested shard is dropped in favour of the outermost."""
        outer = [(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0)]
        middle = [(1.0, 1.0), (9.0, 1.0), (9.0, 9.0), (1.0, 9.0)]
        inner = [(2.0, 2.0), (4.0, 2.0), (2.0, 4.0)]
        keep = remove_enclosed([inner, middle, outer], [2.0, 64.0, 100.0], 0.9)
        assert keep == [False, False, True]

    def test_equal_shards(self):
        """Test that of two identical shards only one survives."""
        keep = remove_enclosed([FAR_TRIANGLE, list(FAR_TRIANGLE)], [15.0, 15.0], 0.9)
        assert sorted(keep) == [False, True]

    def test_partial_overlap_below_threshold(self):
        """Test that a shard only partly covered survives."""
        a = [(0.0, 0.0), (4.0, 0.0), (4.0, 4.0), (0.0, 4.0)]
        b = [(2.0, 0.0), (8.0, 0.0), (8.0, 4.0), (2.0, 4.0)]
        assert remove_enclosed([a, b], [16.0, 24.0], 0.9) == [True, True]


class TestRectangleDetection:
    """Test rectangle classification."""

    def test_near_right_angles(self):
        """Test that small deviations still count as a rectangle."""
        quad = [(0.0, 0.0), (10.0, 0.0), (10.0, 5.0), (0.3, 5.0)]
        assert is_rectangle(quad, 6.0)

    def test_triangle_is_not_rectangle(self):
        """Test that only quads are considered."""
        assert not is_rectangle(BIG_TRIANGLE, 6.0)
