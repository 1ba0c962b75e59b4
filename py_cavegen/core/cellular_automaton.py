"""
Cellular automaton smoothing for occupancy grids.

This module handles:
- Majority-vote smoothing over the 8-neighbourhood (out-of-bounds counts as solid)
- Sealing empty pockets that never reach the grid border
"""

import numpy as np
import structlog
from scipy import ndimage
from scipy.signal import convolve2d

logger = structlog.get_logger()

# Counts the 8 neighbours of a cell
NEIGHBOR_KERNEL = np.array([[1, 1, 1], [1, 0, 1], [1, 1, 1]], dtype=np.int32)

# 4-connectivity for region labelling
FOUR_CONNECTED = np.array([[0, 1, 0], [1, 1, 1], [0, 1, 0]], dtype=bool)


def count_solid_neighbors(grid: np.ndarray) -> np.ndarray:
    """Number of solid 8-neighbours per cell, treating out-of-bounds cells as solid."""
    return convolve2d(
        grid.astype(np.int32), NEIGHBOR_KERNEL, mode="same", boundary="fill", fillvalue=1
    )


def smooth(
    grid: np.ndarray,
    iterations: int,
    solid_neighbor_threshold: int,
    fill_isolated_voids: bool = False,
) -> np.ndarray:
    """
    Smooth an occupancy grid.

    Every pass recomputes all cells from the previous pass: a cell is solid iff
    at least `solid_neighbor_threshold` of its 8 neighbours are solid.

    Args:
        grid: Boolean occupancy grid (not modified)
        iterations: Number of smoothing passes
        solid_neighbor_threshold: Solid neighbours needed for a solid cell
        fill_isolated_voids: Seal empty regions that do not touch the border

    Returns:
        New boolean grid
    """
    result = np.array(grid, dtype=bool, copy=True)

    for _ in range(iterations):
        result = count_solid_neighbors(result) >= solid_neighbor_threshold

    if fill_isolated_voids:
        result = fill_enclosed_voids(result)

    return result


def fill_enclosed_voids(grid: np.ndarray) -> np.ndarray:
    """
    Convert empty regions that never touch the grid edge into solid cells.

    Edge-touching regions are preserved since they may continue into a
    neighbouring chunk.

    Args:
        grid: Boolean occupancy grid (not modified)

    Returns:
        New boolean grid
    """
    result = np.array(grid, dtype=bool, copy=True)
    labels, void_count = ndimage.label(~result, structure=FOUR_CONNECTED)
    if void_count == 0:
        return result

    border_labels = np.unique(
        np.concatenate([labels[0, :], labels[-1, :], labels[:, 0], labels[:, -1]])
    )
    border_labels = border_labels[border_labels > 0]

    enclosed = (labels > 0) & ~np.isin(labels, border_labels)
    filled_count = void_count - len(border_labels)
    result[enclosed] = True

    logger.debug(
        "Voids processed",
        total=int(void_count),
        filled=int(filled_count),
        kept=int(len(border_labels)),
        filled_cells=int(np.count_nonzero(enclosed)),
    )
    return result
