"""
Per-chunk generation pipeline.

Noise raster -> occupancy grid -> smoothing -> islands -> Voronoi shards ->
convex pieces -> filtered shards positioned in world space.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np
import structlog

from .cellular_automaton import smooth
from .convex_enforcer import ensure_convex
from .geometry import Polygon, polygon_centroid
from .island_tracer import Island, extract_islands
from .noise_field import NoiseField, threshold_noise
from .shard_filter import filter_shards
from .shard_generator import ShardOptions, create_shards
from ..config.generation_config import GenerationConfig
from ..utils.random import chunk_seed

logger = structlog.get_logger()


@dataclass(frozen=True)
class Shard:
    """A convex shard ready for the physics layer.

    `position` is the world-space area centroid; `polygon` is an (n, 2) array
    of vertices relative to it.
    """

    position: Tuple[float, float]
    polygon: np.ndarray

    @property
    def world_vertices(self) -> np.ndarray:
        return self.polygon + np.asarray(self.position)


@dataclass
class IslandShards:
    island: Island
    shards: List[Shard] = field(default_factory=list)


@dataclass
class Chunk:
    chunk_x: int
    chunk_y: int
    islands: List[IslandShards] = field(default_factory=list)

    @property
    def shard_count(self) -> int:
        return sum(len(entry.shards) for entry in self.islands)


@dataclass
class DebugRasters:
    """Intermediate rasters and world-space shard and island outlines of one chunk."""

    raw_noise: np.ndarray
    bool_grid: np.ndarray
    smoothed_grid: np.ndarray
    world_shards: List[np.ndarray] = field(default_factory=list)
    world_contours: List[np.ndarray] = field(default_factory=list)


class ChunkGenerator:
    """Generates the shards of one chunk at a time."""

    def __init__(self, config: GenerationConfig, noise_field: Optional[NoiseField] = None):
        self.config = config
        self.noise_field = noise_field or NoiseField.from_config(config)
        self.shard_options = ShardOptions.from_config(config)

    def generate_chunk(self, chunk_x: int, chunk_y: int) -> Tuple[Chunk, DebugRasters]:
        """
        Generate a chunk.

        Args:
            chunk_x, chunk_y: Chunk coordinates

        Returns:
            (chunk, debug rasters)
        """
        config = self.config
        size = config.chunk_size
        start_x = chunk_x * size
        start_y = chunk_y * size

        raw = self.noise_field.sample_region(start_x, start_y, size, size)
        grid = threshold_noise(raw, config.threshold)
        smoothed = smooth(
            grid,
            config.smooth_iterations,
            config.solid_neighbor_threshold,
            fill_isolated_voids=config.fill_isolated_voids,
        )

        chunk = Chunk(chunk_x=chunk_x, chunk_y=chunk_y)
        debug = DebugRasters(raw_noise=raw, bool_grid=grid, smoothed_grid=smoothed)

        seed = chunk_seed(config.seed, chunk_x, chunk_y)
        for island in extract_islands(smoothed, start_x, start_y):
            if len(island.contour) < 3:
                continue
            debug.world_contours.append(np.asarray(island.contour, dtype=np.float64) * config.cell_size)
            island_seed = seed
            seed += 1

            try:
                polygons = self.decompose_island(island, island_seed)
            except Exception:
                logger.error(
                    "Island decomposition failed",
                    chunk_x=chunk_x,
                    chunk_y=chunk_y,
                    cells=island.cell_count,
                    exc_info=True,
                )
                continue

            shards = [self.to_shard(polygon) for polygon in polygons]
            chunk.islands.append(IslandShards(island=island, shards=shards))
            debug.world_shards.extend(shard.world_vertices for shard in shards)

        logger.debug(
            "Chunk generated",
            chunk_x=chunk_x,
            chunk_y=chunk_y,
            islands=len(chunk.islands),
            shards=chunk.shard_count,
        )
        return chunk, debug

    def decompose_island(self, island: Island, seed: int) -> List[Polygon]:
        """Voronoi shards, split convex and filtered, in grid coordinates."""
        config = self.config
        convex: List[Polygon] = []
        for shard in create_shards(island, seed, self.shard_options):
            convex.extend(ensure_convex(shard, config.convex_split_iterations))

        return filter_shards(
            convex,
            config.enclosure_threshold,
            config.min_shard_area,
            config.rectangle_angle_tolerance,
        )

    def to_shard(self, polygon: Sequence[Tuple[float, float]]) -> Shard:
        """Scale a grid-space polygon to world units and anchor it at its centroid."""
        cell_size = self.config.cell_size
        world = np.asarray(polygon, dtype=np.float64) * cell_size
        cx, cy = polygon_centroid(world)
        return Shard(position=(cx, cy), polygon=world - np.array([cx, cy]))
