"""
Convexity enforcement for shards.

Physics fixtures must be convex. Non-convex shards are split along diagonals
from reflex vertices, breadth first with an explicit work queue; polygons that
cannot be split are triangulated by ear clipping.
"""

import math
from collections import deque
from typing import List, Optional, Tuple

import structlog

from .geometry import (
    AREA_EPSILON,
    SIDE_EPSILON,
    Polygon,
    cross,
    ear_clip,
    is_simple,
    point_in_polygon,
    point_on_boundary,
    polygon_area,
    remove_collinear_points,
    segments_cross,
    segments_intersect,
    signed_area,
)

logger = structlog.get_logger()

DEFAULT_MAX_ITERATIONS = 200


def is_convex(polygon: Polygon) -> bool:
    """
    True when the polygon is simple and its turns never change direction.

    Turns with |cross| below SIDE_EPSILON (collinear edges) are ignored.
    """
    n = len(polygon)
    if n < 3:
        return False

    direction = 0
    for i in range(n):
        turn = cross(polygon[i], polygon[(i + 1) % n], polygon[(i + 2) % n])
        if abs(turn) < SIDE_EPSILON:
            continue
        sign = 1 if turn > 0 else -1
        if direction == 0:
            direction = sign
        elif sign != direction:
            return False

    return direction != 0 and is_simple(polygon)


def ensure_convex(polygon: Polygon, max_iterations: int = DEFAULT_MAX_ITERATIONS) -> List[Polygon]:
    """
    Split a shard into convex pieces.

    Args:
        polygon: Shard polygon
        max_iterations: Cap on split steps; polygons still queued when the cap
            is hit are triangulated

    Returns:
        Convex polygons with area above AREA_EPSILON (possibly none)
    """
    cleaned = remove_collinear_points(polygon)
    if len(cleaned) < 3 or polygon_area(cleaned) <= AREA_EPSILON:
        return []
    if is_convex(cleaned):
        return [cleaned]

    results: List[Polygon] = []
    queue = deque([cleaned])
    iterations = 0

    while queue and iterations < max_iterations:
        iterations += 1
        current = remove_collinear_points(queue.popleft())
        if len(current) < 3 or polygon_area(current) <= AREA_EPSILON:
            continue
        if is_convex(current):
            results.append(current)
            continue

        halves = split_at_reflex_vertex(current)
        if halves is None:
            logger.debug("No valid split diagonal, triangulating", vertices=len(current))
            results.extend(_valid_pieces(ear_clip(current)))
            continue
        queue.extend(halves)

    if queue:
        logger.warning("Convex split cap reached", iterations=iterations, pending=len(queue))
        for pending in queue:
            results.extend(_valid_pieces(ear_clip(remove_collinear_points(pending))))

    return results


def _valid_pieces(pieces: List[Polygon]) -> List[Polygon]:
    return [p for p in pieces if len(p) >= 3 and polygon_area(p) > AREA_EPSILON and is_convex(p)]


def reflex_vertices(polygon: Polygon) -> List[int]:
    """Indices of vertices whose turn opposes the polygon's winding."""
    orientation = 1 if signed_area(polygon) > 0 else -1
    n = len(polygon)
    reflex = []
    for i in range(n):
        turn = cross(polygon[(i - 1) % n], polygon[i], polygon[(i + 1) % n])
        if turn * orientation < -SIDE_EPSILON:
            reflex.append(i)
    return reflex


def split_at_reflex_vertex(polygon: Polygon) -> Optional[Tuple[Polygon, Polygon]]:
    """
    Split a polygon along a diagonal from its first reflex vertex.

    Partners are tried nearest first. A diagonal is valid when it properly
    crosses no polygon edge and its midpoint lies strictly inside.

    Returns:
        The two halves, or None when no reflex vertex has a valid diagonal
    """
    n = len(polygon)
    for i in reflex_vertices(polygon):
        origin = polygon[i]
        partners = [j for j in range(n) if j not in (i, (i - 1) % n, (i + 1) % n)]
        partners.sort(key=lambda j: math.hypot(polygon[j][0] - origin[0], polygon[j][1] - origin[1]))

        for j in partners:
            if not is_valid_diagonal(polygon, i, j):
                continue
            a, b = min(i, j), max(i, j)
            first = polygon[a:b + 1]
            second = polygon[b:] + polygon[:a + 1]
            return first, second
    return None


def is_valid_diagonal(polygon: Polygon, i: int, j: int) -> bool:
    start = polygon[i]
    end = polygon[j]
    if math.hypot(end[0] - start[0], end[1] - start[1]) < SIDE_EPSILON:
        return False

    n = len(polygon)
    for k in range(n):
        k_next = (k + 1) % n
        if k in (i, j) or k_next in (i, j):
            # Edges sharing an endpoint may only touch at that endpoint
            if _overlaps_collinear(start, end, polygon[k], polygon[k_next]):
                return False
            continue
        if segments_cross(start, end, polygon[k], polygon[k_next]):
            return False
        if segments_intersect(start, end, polygon[k], polygon[k_next]):
            return False

    midpoint = ((start[0] + end[0]) * 0.5, (start[1] + end[1]) * 0.5)
    return point_in_polygon(midpoint, polygon) and not point_on_boundary(midpoint, polygon)


def _overlaps_collinear(a, b, c, d) -> bool:
    if abs(cross(a, b, c)) >= SIDE_EPSILON or abs(cross(a, b, d)) >= SIDE_EPSILON:
        return False
    dx, dy = b[0] - a[0], b[1] - a[1]
    length_sq = dx * dx + dy * dy
    t_c = ((c[0] - a[0]) * dx + (c[1] - a[1]) * dy) / length_sq
    t_d = ((d[0] - a[0]) * dx + (d[1] - a[1]) * dy) / length_sq
    lo, hi = min(t_c, t_d), max(t_c, t_d)
    return min(hi, 1.0) - max(lo, 0.0) > SIDE_EPSILON
