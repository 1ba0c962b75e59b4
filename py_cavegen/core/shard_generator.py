"""
Voronoi decomposition of islands into shards.

An island is split by a relaxed Voronoi diagram whose sites are sampled inside
the island. Each cell is intersected with the island contour; edges of the
result that cut across empty space ("bridges") are rerouted along the contour.
"""

import math
from dataclasses import dataclass
from typing import FrozenSet, List, Tuple

import numpy as np
import structlog

from .geometry import (
    AREA_EPSILON,
    SIDE_EPSILON,
    Point,
    Polygon,
    clip_by_bisector,
    clip_polygon,
    is_simple,
    polygon_area,
    polygon_centroid,
    remove_collinear_points,
    remove_duplicate_points,
)
from .island_tracer import Cell, Island
from ..utils.random import get_rng

logger = structlog.get_logger()

# Margin added around the sites when building the initial Voronoi quad
VORONOI_MARGIN = 100.0

# Edge samples per cell length when checking for empty space
SAMPLES_PER_CELL = 4

# Bisection steps used to locate the island boundary along an edge
BOUNDARY_SEARCH_STEPS = 16

# Edges shorter than this (in cells) are never treated as long bridges
LONG_BRIDGE_MIN_LENGTH = 2.0

# Sites closer than this are treated as duplicates
SITE_MERGE_DISTANCE = 1e-6


@dataclass
class ShardOptions:
    """Tuning for the Voronoi decomposition."""

    cells_per_site: int = 100
    min_sites: int = 3
    max_sites: int = 20
    site_attempts_per_site: int = 100
    lloyd_iterations: int = 2
    bridge_repair_passes: int = 3  # empirically tuned
    long_bridge_samples: int = 6  # empirically tuned

    @classmethod
    def from_config(cls, config) -> "ShardOptions":
        return cls(
            cells_per_site=config.cells_per_site,
            min_sites=config.min_sites,
            max_sites=config.max_sites,
            site_attempts_per_site=config.site_attempts_per_site,
            lloyd_iterations=config.lloyd_iterations,
            bridge_repair_passes=config.bridge_repair_passes,
            long_bridge_samples=config.long_bridge_samples,
        )


def create_shards(island: Island, seed: int, options: ShardOptions = None) -> List[Polygon]:
    """
    Decompose an island into shards.

    Args:
        island: Island with contour and cells in absolute grid coordinates
        seed: Seed for site sampling
        options: Decomposition tuning

    Returns:
        Shard polygons in grid coordinates, each with at least 3 vertices and
        positive area. Falls back to the island contour as a single shard.
    """
    if options is None:
        options = ShardOptions()

    contour = list(island.contour)
    cell_set = island.cells
    rng = get_rng(seed)

    num_sites = site_count(island.cell_count, options)
    sites = sample_sites(island, num_sites, rng, num_sites * options.site_attempts_per_site)

    if len(sites) < 2:
        logger.debug("Too few Voronoi sites, using island contour", sites=len(sites))
        return [contour]

    sites = relax_sites(sites, cell_set, options.lloyd_iterations)

    shards = []
    for site, cell in zip(sites, compute_voronoi_cells(sites)):
        shard = clip_cell_with_contour(cell, contour, site, cell_set, options)
        if len(shard) >= 3 and polygon_area(shard) > AREA_EPSILON:
            shards.append(shard)

    if not shards:
        logger.debug("No shard survived clipping, using island contour", sites=len(sites))
        return [contour]

    logger.debug("Island decomposed", cells=island.cell_count, sites=len(sites), shards=len(shards))
    return shards


def site_count(cell_count: int, options: ShardOptions) -> int:
    """Number of Voronoi sites for an island of the given size."""
    return int(np.clip(cell_count // options.cells_per_site, options.min_sites, options.max_sites))


def sample_sites(island: Island, count: int, rng: np.random.Generator, max_attempts: int) -> List[Point]:
    """
    Rejection-sample sites inside the island's cells.

    Candidates are drawn uniformly over the cell bounding box and kept when
    they fall in an island cell and are not a duplicate of an earlier site.
    """
    min_x, min_y, max_x, max_y = island.bounds()
    span_x = max_x - min_x + 1
    span_y = max_y - min_y + 1

    sites: List[Point] = []
    attempts = 0
    while len(sites) < count and attempts < max_attempts:
        attempts += 1
        gx = min_x + rng.random() * span_x
        gy = min_y + rng.random() * span_y
        if not is_in_island((gx, gy), island.cells):
            continue
        if any(math.hypot(gx - sx, gy - sy) < SITE_MERGE_DISTANCE for sx, sy in sites):
            continue
        sites.append((gx, gy))
    return sites


def compute_voronoi_cells(sites: List[Point]) -> List[Polygon]:
    """Voronoi cell of every site, built by half-plane intersection."""
    xs = [s[0] for s in sites]
    ys = [s[1] for s in sites]
    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)
    margin = max(max_x - min_x, max_y - min_y) + VORONOI_MARGIN

    cells = []
    for i, site in enumerate(sites):
        cell = [
            (min_x - margin, min_y - margin),
            (max_x + margin, min_y - margin),
            (max_x + margin, max_y + margin),
            (min_x - margin, max_y + margin),
        ]
        for j, other in enumerate(sites):
            if i == j:
                continue
            cell = clip_by_bisector(cell, site, other)
            if len(cell) < 3:
                break
        cells.append(cell)
    return cells


def relax_sites(sites: List[Point], cell_set: FrozenSet[Cell], iterations: int) -> List[Point]:
    """
    Lloyd relaxation against the island raster.

    Each site moves to the centroid of its cell clipped to the island, unless
    that centroid falls outside the island.
    """
    sites = list(sites)
    for _ in range(iterations):
        cells = compute_voronoi_cells(sites)
        for i, cell in enumerate(cells):
            clipped = clip_to_raster(cell, cell_set)
            if len(clipped) < 3:
                continue
            centroid = polygon_centroid(clipped)
            if is_in_island(centroid, cell_set):
                sites[i] = centroid
    return sites


def clip_to_raster(cell: Polygon, cell_set: FrozenSet[Cell]) -> Polygon:
    """Cheap clip of a polygon to the island raster, used only for relaxation."""
    if len(cell) < 3:
        return cell
    if all(is_in_island(v, cell_set) for v in cell):
        return cell

    clipped = []
    n = len(cell)
    for i in range(n):
        curr = cell[i]
        nxt = cell[(i + 1) % n]
        curr_in = is_in_island(curr, cell_set)
        next_in = is_in_island(nxt, cell_set)

        if curr_in:
            clipped.append(curr)
            if not next_in:
                clipped.append(find_boundary(curr, nxt, cell_set))
        elif next_in:
            clipped.append(find_boundary(nxt, curr, cell_set))
    return clipped


def find_boundary(inside: Point, outside: Point, cell_set: FrozenSet[Cell]) -> Point:
    """Bisect the segment inside-outside down to the island boundary."""
    for _ in range(BOUNDARY_SEARCH_STEPS):
        mid = ((inside[0] + outside[0]) * 0.5, (inside[1] + outside[1]) * 0.5)
        if is_in_island(mid, cell_set):
            inside = mid
        else:
            outside = mid
    return inside


def clip_cell_with_contour(
    cell: Polygon,
    contour: Polygon,
    site: Point,
    cell_set: FrozenSet[Cell],
    options: ShardOptions,
) -> Polygon:
    """
    Intersect a Voronoi cell with the island contour.

    The contour is the subject and the convex cell the clip region, with the
    cell's site deciding the kept side of each edge. Bridges left by clipping a
    non-convex contour are repaired by splicing in contour paths, and the
    result is clipped back to the cell. The shard is dropped unless it is then
    simple, on solid ground, free of long bridges and no larger than the
    cell's overlap with the island. A cell lying fully inside the island is
    used as is.

    Returns:
        Shard polygon, or an empty list when the shard is dropped
    """
    if len(cell) < 3 or len(contour) < 3:
        return []

    clipped = remove_duplicate_points(clip_polygon(contour, cell, site))
    if len(clipped) >= 3:
        repaired = repair_bridges(clipped, cell_set, contour, options.bridge_repair_passes)
        # Spliced contour paths may leave the cell and overlap a neighbour
        shard = remove_collinear_points(clip_polygon(repaired, cell, site))
        if is_valid_shard(shard, cell_set, polygon_area(clipped), options):
            return shard
        logger.debug("Shard dropped: invalid after bridge repair", vertices=len(shard), site=site)

    if all(is_in_island(v, cell_set) for v in cell) and not has_any_bridge(cell, cell_set):
        return remove_collinear_points(cell)

    return []


def is_valid_shard(
    shard: Polygon, cell_set: FrozenSet[Cell], max_area: float, options: ShardOptions
) -> bool:
    """Acceptance test for a clipped and repaired shard."""
    if len(shard) < 3 or not is_simple(shard):
        return False
    area = polygon_area(shard)
    if area <= AREA_EPSILON or area > max_area + AREA_EPSILON:
        return False
    if not all(is_on_solid(v, cell_set) for v in shard):
        return False
    return not has_long_bridge(shard, cell_set, options.long_bridge_samples)


def repair_bridges(
    polygon: Polygon, cell_set: FrozenSet[Cell], contour: Polygon, passes: int
) -> Polygon:
    """Splice contour paths in place of edges that cross empty cells."""
    current = list(polygon)
    for _ in range(passes):
        result = []
        found = False
        n = len(current)
        for i in range(n):
            curr = current[i]
            nxt = current[(i + 1) % n]
            result.append(curr)
            if edge_crosses_empty(curr, nxt, cell_set):
                found = True
                result.extend(find_contour_path(curr, nxt, contour))
        if not found:
            return current
        current = result
    return current


def has_any_bridge(polygon: Polygon, cell_set: FrozenSet[Cell]) -> bool:
    n = len(polygon)
    return any(edge_crosses_empty(polygon[i], polygon[(i + 1) % n], cell_set) for i in range(n))


def has_long_bridge(polygon: Polygon, cell_set: FrozenSet[Cell], max_empty_run: int) -> bool:
    n = len(polygon)
    return any(
        edge_has_long_bridge(polygon[i], polygon[(i + 1) % n], cell_set, max_empty_run)
        for i in range(n)
    )


def _edge_samples(a: Point, b: Point):
    dist = math.hypot(b[0] - a[0], b[1] - a[1])
    steps = max(int(dist * SAMPLES_PER_CELL), SAMPLES_PER_CELL)
    for s in range(1, steps):
        t = s / steps
        yield (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)


def edge_crosses_empty(a: Point, b: Point, cell_set: FrozenSet[Cell]) -> bool:
    """True when a sample along the edge lies in no solid cell."""
    return any(not is_on_solid(p, cell_set) for p in _edge_samples(a, b))


def edge_has_long_bridge(a: Point, b: Point, cell_set: FrozenSet[Cell], max_empty_run: int) -> bool:
    """True when the edge has `max_empty_run` consecutive samples away from every solid cell."""
    if math.hypot(b[0] - a[0], b[1] - a[1]) < LONG_BRIDGE_MIN_LENGTH:
        return False
    empty_run = 0
    for p in _edge_samples(a, b):
        if is_near_island(p, cell_set):
            empty_run = 0
            continue
        empty_run += 1
        if empty_run >= max_empty_run:
            return True
    return False


def find_contour_path(start: Point, end: Point, contour: Polygon) -> Polygon:
    """
    Shorter walk along the contour between the vertices nearest to two points.

    Both end vertices are included. Length is measured in vertices.
    """
    from_idx = nearest_contour_index(start, contour)
    to_idx = nearest_contour_index(end, contour)
    if from_idx == to_idx:
        return [contour[from_idx]]

    n = len(contour)
    forward = [contour[from_idx]]
    k = (from_idx + 1) % n
    while k != to_idx and len(forward) <= n:
        forward.append(contour[k])
        k = (k + 1) % n
    forward.append(contour[to_idx])

    backward = [contour[from_idx]]
    k = (from_idx - 1) % n
    while k != to_idx and len(backward) <= n:
        backward.append(contour[k])
        k = (k - 1) % n
    backward.append(contour[to_idx])

    return forward if len(forward) <= len(backward) else backward


def nearest_contour_index(point: Point, contour: Polygon) -> int:
    best = 0
    best_dist = math.inf
    for i, vertex in enumerate(contour):
        d = (point[0] - vertex[0]) ** 2 + (point[1] - vertex[1]) ** 2
        if d < best_dist:
            best_dist = d
            best = i
    return best


def is_in_island(p: Point, cell_set: FrozenSet[Cell]) -> bool:
    """True when the cell containing p (half-open square) is solid."""
    return (math.floor(p[0]), math.floor(p[1])) in cell_set


def is_on_solid(p: Point, cell_set: FrozenSet[Cell]) -> bool:
    """True when p lies in the closed square of any solid cell.

    Points on a grid line belong to the cells on both sides, so edges running
    along the island outline are not mistaken for bridges.
    """
    xs = _covering_indices(p[0])
    ys = _covering_indices(p[1])
    return any((x, y) in cell_set for x in xs for y in ys)


def _covering_indices(value: float) -> Tuple[int, ...]:
    index = math.floor(value)
    if value - index < SIDE_EPSILON:
        return (index, index - 1)
    if index + 1 - value < SIDE_EPSILON:
        return (index, index + 1)
    return (index,)


def is_near_island(p: Point, cell_set: FrozenSet[Cell]) -> bool:
    """Lenient membership: any of the four cells around p's lower corner is solid."""
    ix = math.floor(p[0])
    iy = math.floor(p[1])
    return (
        (ix, iy) in cell_set
        or (ix - 1, iy) in cell_set
        or (ix, iy - 1) in cell_set
        or (ix - 1, iy - 1) in cell_set
    )
