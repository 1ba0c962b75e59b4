"""
Region generation: a block of chunks handed to the physics and debug layers.
"""

from typing import Dict, Iterable, Iterator, Tuple

import numpy as np
import structlog

from .chunk_generator import Chunk, ChunkGenerator, DebugRasters

logger = structlog.get_logger()

ChunkCoord = Tuple[int, int]


def chunk_block(radius: int) -> Iterator[ChunkCoord]:
    """Chunk coordinates of the square block -radius..radius, x-major."""
    for cx in range(-radius, radius + 1):
        for cy in range(-radius, radius + 1):
            yield cx, cy


def generate_region(
    generator: ChunkGenerator,
    chunk_coords: Iterable[ChunkCoord],
    body_builder=None,
    visualizer=None,
) -> Dict[ChunkCoord, Chunk]:
    """
    Generate chunks in order and feed each to the optional collaborators.

    Args:
        generator: Chunk generator
        chunk_coords: Chunk coordinates to generate
        body_builder: Optional PhysicsBodyBuilder receiving every chunk
        visualizer: Optional ChunkVisualizer receiving every chunk's rasters

    Returns:
        Generated chunks keyed by (chunk_x, chunk_y)
    """
    chunks: Dict[ChunkCoord, Chunk] = {}
    total_bodies = 0

    for cx, cy in chunk_coords:
        chunk, debug = generator.generate_chunk(cx, cy)
        chunks[(cx, cy)] = chunk
        log_chunk_summary(chunk, debug)

        if body_builder is not None:
            total_bodies += len(body_builder.build_chunk(chunk))
        if visualizer is not None:
            visualizer.add_chunk(cx, cy, debug)

    logger.info(
        "Region generated",
        chunks=len(chunks),
        shards=sum(c.shard_count for c in chunks.values()),
        bodies=total_bodies,
    )
    return chunks


def log_chunk_summary(chunk: Chunk, debug: DebugRasters) -> None:
    solid = int(np.count_nonzero(debug.smoothed_grid))
    total = debug.smoothed_grid.size
    logger.info(
        "Chunk summary",
        chunk_x=chunk.chunk_x,
        chunk_y=chunk.chunk_y,
        islands=len(chunk.islands),
        contour_vertices=sum(len(entry.island.contour) for entry in chunk.islands),
        shards=chunk.shard_count,
        solid_cells=solid,
        solid_percent=round(100.0 * solid / total, 1) if total else 0.0,
    )
