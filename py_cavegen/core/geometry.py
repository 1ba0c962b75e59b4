"""
Polygon primitives shared by the decomposition stages.

Polygons are lists of (x, y) tuples with an implicit closing edge. Any sequence
of pairs (including an (n, 2) NumPy array) is accepted as input.

Tolerances are stratified by operation and must not be merged:
- SIMPLIFY_EPSILON (1e-3): collinearity when simplifying traced contours
- SIDE_EPSILON (1e-6): side-of-line, convexity and degeneracy tests
- DENOMINATOR_EPSILON (1e-10): line intersection denominators
"""

import math
from typing import List, Optional, Sequence, Tuple

Point = Tuple[float, float]
Polygon = List[Point]

SIMPLIFY_EPSILON = 1e-3
SIDE_EPSILON = 1e-6
DENOMINATOR_EPSILON = 1e-10
AREA_EPSILON = 1e-6
DUPLICATE_EPSILON = 1e-9


def cross(o: Sequence[float], a: Sequence[float], b: Sequence[float]) -> float:
    """Z component of (a - o) x (b - o)."""
    return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])


def _sign(value: float) -> int:
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


def signed_area(polygon: Sequence[Sequence[float]]) -> float:
    """Shoelace area, positive for counter-clockwise winding in y-up axes."""
    n = len(polygon)
    if n < 3:
        return 0.0
    area = 0.0
    for i in range(n):
        x1, y1 = polygon[i][0], polygon[i][1]
        x2, y2 = polygon[(i + 1) % n][0], polygon[(i + 1) % n][1]
        area += x1 * y2 - x2 * y1
    return area * 0.5


def polygon_area(polygon: Sequence[Sequence[float]]) -> float:
    return abs(signed_area(polygon))


def vertex_mean(polygon: Sequence[Sequence[float]]) -> Point:
    n = len(polygon)
    return (
        sum(p[0] for p in polygon) / n,
        sum(p[1] for p in polygon) / n,
    )


def polygon_centroid(polygon: Sequence[Sequence[float]]) -> Point:
    """Compute the area centroid of a polygon.

    Args:
        polygon: Sequence of [x, y] vertices

    Returns:
        (x, y) centroid; the vertex mean for degenerate polygons
    """
    n = len(polygon)
    if n < 3:
        return vertex_mean(polygon)

    area = 0.0
    cx = 0.0
    cy = 0.0
    for i in range(n):
        j = (i + 1) % n
        a = polygon[i][0] * polygon[j][1] - polygon[j][0] * polygon[i][1]
        area += a
        cx += (polygon[i][0] + polygon[j][0]) * a
        cy += (polygon[i][1] + polygon[j][1]) * a

    if abs(area) < DENOMINATOR_EPSILON:
        return vertex_mean(polygon)

    area *= 0.5
    return (cx / (6.0 * area), cy / (6.0 * area))


def line_intersect(a1: Point, a2: Point, b1: Point, b2: Point) -> Optional[Point]:
    """Intersection of the line through a1-a2 with the line through b1-b2.

    Returns None when the lines are (nearly) parallel.
    """
    d1x, d1y = a2[0] - a1[0], a2[1] - a1[1]
    d2x, d2y = b2[0] - b1[0], b2[1] - b1[1]
    denom = d1x * d2y - d1y * d2x
    if abs(denom) < DENOMINATOR_EPSILON:
        return None
    ex, ey = b1[0] - a1[0], b1[1] - a1[1]
    t = (ex * d2y - ey * d2x) / denom
    return (a1[0] + d1x * t, a1[1] + d1y * t)


def _plane_intersect(a: Point, b: Point, plane_point: Point, normal: Point) -> Point:
    dx, dy = b[0] - a[0], b[1] - a[1]
    denom = dx * normal[0] + dy * normal[1]
    if abs(denom) < DENOMINATOR_EPSILON:
        return a
    t = ((plane_point[0] - a[0]) * normal[0] + (plane_point[1] - a[1]) * normal[1]) / denom
    return (a[0] + dx * t, a[1] + dy * t)


def clip_by_bisector(polygon: Polygon, site: Point, other: Point) -> Polygon:
    """Keep the part of a convex polygon that is closer to `site` than to `other`."""
    if len(polygon) < 3:
        return polygon

    mid = ((site[0] + other[0]) * 0.5, (site[1] + other[1]) * 0.5)
    normal = (site[0] - other[0], site[1] - other[1])
    result = []
    n = len(polygon)

    for i in range(n):
        curr = polygon[i]
        nxt = polygon[(i + 1) % n]
        curr_dist = (curr[0] - mid[0]) * normal[0] + (curr[1] - mid[1]) * normal[1]
        next_dist = (nxt[0] - mid[0]) * normal[0] + (nxt[1] - mid[1]) * normal[1]

        if curr_dist >= 0:
            result.append(curr)
            if next_dist < 0:
                result.append(_plane_intersect(curr, nxt, mid, normal))
        elif next_dist >= 0:
            result.append(_plane_intersect(curr, nxt, mid, normal))

    return result


def clip_polygon_by_edge(
    polygon: Polygon, edge_a: Point, edge_b: Point, reference: Point
) -> Polygon:
    """One Sutherland-Hodgman step: keep the side of edge_a-edge_b holding `reference`.

    Points within SIDE_EPSILON of the line count as kept. When the reference
    lies on the line itself the polygon is returned unchanged.
    """
    if len(polygon) < 3:
        return polygon

    reference_sign = _sign(cross(edge_a, edge_b, reference))
    if reference_sign == 0:
        return polygon

    result = []
    n = len(polygon)
    for i in range(n):
        curr = polygon[i]
        nxt = polygon[(i + 1) % n]
        curr_cross = cross(edge_a, edge_b, curr)
        next_cross = cross(edge_a, edge_b, nxt)
        curr_inside = _sign(curr_cross) == reference_sign or abs(curr_cross) < SIDE_EPSILON
        next_inside = _sign(next_cross) == reference_sign or abs(next_cross) < SIDE_EPSILON

        if curr_inside:
            result.append(curr)
            if not next_inside:
                point = line_intersect(curr, nxt, edge_a, edge_b)
                if point is not None:
                    result.append(point)
        elif next_inside:
            point = line_intersect(curr, nxt, edge_a, edge_b)
            if point is not None:
                result.append(point)

    return result


def clip_polygon(subject: Polygon, clip: Polygon, reference: Point) -> Polygon:
    """Sutherland-Hodgman clip of `subject` against the convex polygon `clip`.

    Args:
        subject: Polygon to clip, convex or not
        clip: Convex clip region
        reference: Point inside `clip` deciding the kept side of each edge

    Returns:
        Clipped polygon; fewer than 3 points when nothing survives
    """
    if len(subject) < 3 or len(clip) < 3:
        return []

    clipped = list(subject)
    n = len(clip)
    for i in range(n):
        if len(clipped) < 3:
            break
        clipped = clip_polygon_by_edge(clipped, clip[i], clip[(i + 1) % n], reference)
    return clipped


def _on_segment(p: Point, a: Point, b: Point, eps: float = SIDE_EPSILON) -> bool:
    return (
        min(a[0], b[0]) - eps <= p[0] <= max(a[0], b[0]) + eps
        and min(a[1], b[1]) - eps <= p[1] <= max(a[1], b[1]) + eps
    )


def segments_cross(p1: Point, p2: Point, q1: Point, q2: Point) -> bool:
    """True when the segments cross at a single interior point of both."""
    d1 = cross(q1, q2, p1)
    d2 = cross(q1, q2, p2)
    d3 = cross(p1, p2, q1)
    d4 = cross(p1, p2, q2)
    return (
        ((d1 > SIDE_EPSILON and d2 < -SIDE_EPSILON) or (d1 < -SIDE_EPSILON and d2 > SIDE_EPSILON))
        and ((d3 > SIDE_EPSILON and d4 < -SIDE_EPSILON) or (d3 < -SIDE_EPSILON and d4 > SIDE_EPSILON))
    )


def segments_intersect(p1: Point, p2: Point, q1: Point, q2: Point) -> bool:
    """True when the closed segments share at least one point."""
    if segments_cross(p1, p2, q1, q2):
        return True
    d1 = cross(q1, q2, p1)
    d2 = cross(q1, q2, p2)
    d3 = cross(p1, p2, q1)
    d4 = cross(p1, p2, q2)
    if abs(d1) < SIDE_EPSILON and _on_segment(p1, q1, q2):
        return True
    if abs(d2) < SIDE_EPSILON and _on_segment(p2, q1, q2):
        return True
    if abs(d3) < SIDE_EPSILON and _on_segment(q1, p1, p2):
        return True
    if abs(d4) < SIDE_EPSILON and _on_segment(q2, p1, p2):
        return True
    return False


def point_on_boundary(point: Point, polygon: Sequence[Point], eps: float = SIDE_EPSILON) -> bool:
    n = len(polygon)
    for i in range(n):
        a = polygon[i]
        b = polygon[(i + 1) % n]
        if abs(cross(a, b, point)) < eps and _on_segment(point, a, b, eps):
            return True
    return False


def point_in_polygon(point: Point, polygon: Sequence[Point]) -> bool:
    """Even-odd ray casting test. Boundary points give an arbitrary answer."""
    x, y = point
    inside = False
    n = len(polygon)
    j = n - 1
    for i in range(n):
        xi, yi = polygon[i][0], polygon[i][1]
        xj, yj = polygon[j][0], polygon[j][1]
        if (yi > y) != (yj > y):
            x_cross = xi + (y - yi) * (xj - xi) / (yj - yi)
            if x < x_cross:
                inside = not inside
        j = i
    return inside


def point_in_triangle(p: Point, a: Point, b: Point, c: Point) -> bool:
    """Inclusive point-in-triangle test, independent of winding."""
    d1 = cross(a, b, p)
    d2 = cross(b, c, p)
    d3 = cross(c, a, p)
    has_neg = d1 < -SIDE_EPSILON or d2 < -SIDE_EPSILON or d3 < -SIDE_EPSILON
    has_pos = d1 > SIDE_EPSILON or d2 > SIDE_EPSILON or d3 > SIDE_EPSILON
    return not (has_neg and has_pos)


def is_simple(polygon: Sequence[Point]) -> bool:
    """True when no two non-adjacent edges touch and no adjacent edges fold back."""
    n = len(polygon)
    if n < 3:
        return False

    for i in range(n):
        a1 = polygon[i]
        a2 = polygon[(i + 1) % n]
        if math.hypot(a2[0] - a1[0], a2[1] - a1[1]) < DUPLICATE_EPSILON:
            return False
        # Adjacent edge folding back onto this one
        a3 = polygon[(i + 2) % n]
        if abs(cross(a1, a2, a3)) < SIDE_EPSILON:
            dot = (a2[0] - a1[0]) * (a3[0] - a2[0]) + (a2[1] - a1[1]) * (a3[1] - a2[1])
            if dot < 0:
                return False
        for j in range(i + 2, n):
            if i == 0 and j == n - 1:
                continue
            if segments_intersect(a1, a2, polygon[j], polygon[(j + 1) % n]):
                return False
    return True


def remove_duplicate_points(polygon: Sequence[Point], eps: float = DUPLICATE_EPSILON) -> Polygon:
    """Drop consecutive (and closing) duplicate vertices."""
    result: Polygon = []
    for p in polygon:
        point = (float(p[0]), float(p[1]))
        if result and abs(result[-1][0] - point[0]) < eps and abs(result[-1][1] - point[1]) < eps:
            continue
        result.append(point)
    while len(result) > 1 and abs(result[0][0] - result[-1][0]) < eps and abs(result[0][1] - result[-1][1]) < eps:
        result.pop()
    return result


def remove_collinear_points(polygon: Sequence[Point], eps: float = SIDE_EPSILON) -> Polygon:
    """Repeatedly drop vertices collinear with their neighbours until none are left."""
    result = remove_duplicate_points(polygon)
    changed = True
    while changed and len(result) >= 3:
        changed = False
        n = len(result)
        for i in range(n):
            prev = result[(i - 1) % n]
            nxt = result[(i + 1) % n]
            if abs(cross(prev, result[i], nxt)) < eps:
                del result[i]
                result = remove_duplicate_points(result)
                changed = True
                break
    return result


def interior_angles(polygon: Sequence[Point]) -> List[float]:
    """Angle in degrees between the two edges meeting at each vertex."""
    angles = []
    n = len(polygon)
    for i in range(n):
        prev = polygon[(i - 1) % n]
        curr = polygon[i]
        nxt = polygon[(i + 1) % n]
        ux, uy = prev[0] - curr[0], prev[1] - curr[1]
        vx, vy = nxt[0] - curr[0], nxt[1] - curr[1]
        norm = math.hypot(ux, uy) * math.hypot(vx, vy)
        if norm < DENOMINATOR_EPSILON:
            angles.append(0.0)
            continue
        cos_angle = max(-1.0, min(1.0, (ux * vx + uy * vy) / norm))
        angles.append(math.degrees(math.acos(cos_angle)))
    return angles


def convex_intersection_area(a: Sequence[Point], b: Sequence[Point]) -> float:
    """Area of the intersection of two convex polygons."""
    if len(a) < 3 or len(b) < 3:
        return 0.0
    clipped = clip_polygon(list(a), list(b), polygon_centroid(b))
    if len(clipped) < 3:
        return 0.0
    return polygon_area(clipped)


def ear_clip(polygon: Sequence[Point]) -> List[Polygon]:
    """Triangulate a simple polygon by ear clipping.

    Degenerate triangles are dropped. When no ear can be found the triangles
    produced so far are returned.
    """
    remaining = remove_duplicate_points(polygon)
    triangles: List[Polygon] = []
    if len(remaining) < 3:
        return triangles

    area = signed_area(remaining)
    if abs(area) < AREA_EPSILON:
        return triangles

    orientation = 1 if area > 0 else -1
    max_iterations = len(remaining) * len(remaining) + 10

    iteration = 0
    while len(remaining) > 3 and iteration < max_iterations:
        iteration += 1
        ear_found = False
        n = len(remaining)

        for i in range(n):
            prev = remaining[(i - 1) % n]
            curr = remaining[i]
            nxt = remaining[(i + 1) % n]

            if cross(prev, curr, nxt) * orientation <= SIDE_EPSILON:
                continue
            if any(
                point_in_triangle(other, prev, curr, nxt)
                for k, other in enumerate(remaining)
                if k not in ((i - 1) % n, i, (i + 1) % n)
            ):
                continue

            triangles.append([prev, curr, nxt])
            del remaining[i]
            ear_found = True
            break

        if not ear_found:
            break

    if len(remaining) == 3:
        triangles.append(list(remaining))

    return [t for t in triangles if polygon_area(t) > AREA_EPSILON]
