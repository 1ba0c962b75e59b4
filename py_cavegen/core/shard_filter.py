"""
Post-processing filters for convex shards.

Three passes run in order:
1. Enclosure: drop a shard mostly covered by a larger (or equal) shard
2. Rectangles: drop quads whose every angle is within tolerance of 90 degrees
3. Small area: drop shards below the minimum area

Survivors keep their input order.
"""

from typing import List, Sequence

import structlog

from .geometry import Polygon, convex_intersection_area, interior_angles, polygon_area

logger = structlog.get_logger()


def filter_shards(
    shards: Sequence[Polygon],
    enclosure_threshold: float,
    min_area: float,
    angle_tolerance: float = 6.0,
) -> List[Polygon]:
    """
    Filter convex shards.

    Args:
        shards: Convex shard polygons
        enclosure_threshold: Fraction of a shard's area that, when covered by a
            single larger shard, drops it
        min_area: Minimum shard area
        angle_tolerance: Degrees from 90 still counted as a right angle

    Returns:
        Surviving shards in input order
    """
    shards = list(shards)
    if not shards:
        return []

    areas = [polygon_area(s) for s in shards]
    keep = remove_enclosed(shards, areas, enclosure_threshold)
    enclosed = len(shards) - sum(keep)

    rectangles = 0
    small = 0
    for i, shard in enumerate(shards):
        if not keep[i]:
            continue
        if is_rectangle(shard, angle_tolerance):
            keep[i] = False
            rectangles += 1
        elif areas[i] < min_area:
            keep[i] = False
            small += 1

    survivors = [s for s, k in zip(shards, keep) if k]
    logger.debug(
        "Shards filtered",
        total=len(shards),
        enclosed=enclosed,
        rectangles=rectangles,
        small=small,
        kept=len(survivors),
    )
    return survivors


def remove_enclosed(
    shards: List[Polygon], areas: List[float], enclosure_threshold: float
) -> List[bool]:
    """
    Keep-mask after the enclosure pass.

    Shards are visited smallest first and compared against every shard of
    larger or equal area that has not been dropped yet.
    """
    keep = [True] * len(shards)
    order = sorted(range(len(shards)), key=lambda i: areas[i])

    for rank, i in enumerate(order):
        if areas[i] <= 0:
            continue
        for j in order[rank + 1:]:
            if not keep[j]:
                continue
            overlap = convex_intersection_area(shards[i], shards[j])
            if overlap / areas[i] >= enclosure_threshold:
                keep[i] = False
                break
    return keep


def is_rectangle(polygon: Polygon, angle_tolerance: float) -> bool:
    """Four vertices with every interior angle strictly within tolerance of 90 degrees."""
    if len(polygon) != 4:
        return False
    return all(abs(angle - 90.0) < angle_tolerance for angle in interior_angles(polygon))
