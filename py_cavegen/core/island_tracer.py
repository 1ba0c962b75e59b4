"""
Island extraction and boundary tracing.

Solid cells are grouped into 4-connected islands. Each island's boundary is
built from unit cell edges, stitched into a closed loop and simplified.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Tuple

import numpy as np
import structlog
from scipy import ndimage

from .cellular_automaton import FOUR_CONNECTED
from .geometry import SIMPLIFY_EPSILON, Point, cross

logger = structlog.get_logger()

Cell = Tuple[int, int]
Edge = Tuple[Cell, Cell]


@dataclass(frozen=True)
class Island:
    """A 4-connected solid region and its traced boundary.

    Coordinates are absolute grid coordinates. `untraced_edges` counts boundary
    edges that are not on the traced loop, which happens for islands enclosing
    holes: only the first loop is traced.
    """

    contour: Tuple[Point, ...]
    cells: FrozenSet[Cell]
    untraced_edges: int = 0

    @property
    def cell_count(self) -> int:
        return len(self.cells)

    def bounds(self) -> Tuple[int, int, int, int]:
        """(min_x, min_y, max_x, max_y) over the island's cells."""
        xs = [c[0] for c in self.cells]
        ys = [c[1] for c in self.cells]
        return min(xs), min(ys), max(xs), max(ys)


def extract_islands(grid: np.ndarray, offset_x: int = 0, offset_y: int = 0) -> List[Island]:
    """
    Extract islands from an occupancy grid.

    Args:
        grid: Boolean occupancy grid indexed [x, y]
        offset_x, offset_y: Absolute coordinates of grid cell (0, 0)

    Returns:
        Islands in raster discovery order
    """
    labels, count = ndimage.label(np.asarray(grid, dtype=bool), structure=FOUR_CONNECTED)
    islands = []

    for label, region in enumerate(ndimage.find_objects(labels), start=1):
        if region is None:
            continue
        xs, ys = np.nonzero(labels[region] == label)
        xs = xs + region[0].start + offset_x
        ys = ys + region[1].start + offset_y
        cells = [(int(x), int(y)) for x, y in zip(xs, ys)]
        islands.append(trace_island(cells))

    logger.debug("Islands extracted", count=int(count))
    return islands


def trace_island(cells: List[Cell]) -> Island:
    """Build an Island (contour plus cell set) from its cells."""
    cell_set = frozenset(cells)
    edges = boundary_edges(cells, cell_set)

    if not edges:
        return Island(contour=tuple(bounding_rectangle(cells)), cells=cell_set)

    loop, untraced = trace_edge_loop(edges)
    contour = simplify_contour(loop)
    if len(contour) < 3:
        contour = bounding_rectangle(cells)

    if untraced:
        logger.warning(
            "Island boundary has untraced loops",
            cells=len(cell_set),
            untraced_edges=untraced,
        )
    return Island(contour=tuple(contour), cells=cell_set, untraced_edges=untraced)


def extract_contour(cells: Iterable[Cell]) -> List[Point]:
    """Traced and simplified contour of a set of cells."""
    return list(trace_island(list(cells)).contour)


def boundary_edges(cells: List[Cell], cell_set: FrozenSet[Cell]) -> List[Edge]:
    """
    One directed unit edge per cell side not shared with another cell.

    Edges are oriented so the solid region is always on the same side.
    """
    edges = []
    for x, y in cells:
        if (x - 1, y) not in cell_set:
            edges.append(((x, y), (x, y + 1)))
        if (x + 1, y) not in cell_set:
            edges.append(((x + 1, y + 1), (x + 1, y)))
        if (x, y - 1) not in cell_set:
            edges.append(((x + 1, y), (x, y)))
        if (x, y + 1) not in cell_set:
            edges.append(((x, y + 1), (x + 1, y + 1)))
    return edges


def trace_edge_loop(edges: List[Edge]) -> Tuple[List[Point], int]:
    """
    Stitch directed edges into one closed loop starting at the first edge.

    Where a vertex has several unused outgoing edges (two cells touching only
    at a corner), the edge turning away from the current cell is taken.

    Returns:
        (loop vertices without the repeated start point, number of unused edges)
    """
    outgoing: Dict[Cell, List[int]] = {}
    for index, (start, _) in enumerate(edges):
        outgoing.setdefault(start, []).append(index)

    used = [False] * len(edges)
    used[0] = True
    start, current = edges[0]
    previous = start
    loop: List[Point] = [(float(start[0]), float(start[1]))]
    used_count = 1

    # Each step consumes an edge, so the walk ends within len(edges) steps
    for _ in range(len(edges)):
        candidates = [i for i in outgoing.get(current, ()) if not used[i]]
        if not candidates:
            break
        loop.append((float(current[0]), float(current[1])))

        next_index = candidates[0]
        if len(candidates) > 1:
            next_index = max(candidates, key=lambda i: cross(previous, current, edges[i][1]))

        used[next_index] = True
        used_count += 1
        previous, current = current, edges[next_index][1]

    return loop, len(edges) - used_count


def simplify_contour(vertices: List[Point], epsilon: float = SIMPLIFY_EPSILON) -> List[Point]:
    """Remove vertices collinear with both neighbours."""
    if len(vertices) < 3:
        return vertices

    n = len(vertices)
    simplified = [
        vertices[i]
        for i in range(n)
        if abs(cross(vertices[(i - 1) % n], vertices[i], vertices[(i + 1) % n])) >= epsilon
    ]
    return simplified if len(simplified) >= 3 else vertices


def bounding_rectangle(cells: Iterable[Cell]) -> List[Point]:
    """Bounding rectangle of a set of cells, in the contour's winding."""
    cells = list(cells)
    min_x = min(c[0] for c in cells)
    max_x = max(c[0] for c in cells)
    min_y = min(c[1] for c in cells)
    max_y = max(c[1] for c in cells)
    return [
        (float(min_x), float(min_y)),
        (float(min_x), float(max_y + 1)),
        (float(max_x + 1), float(max_y + 1)),
        (float(max_x + 1), float(min_y)),
    ]
