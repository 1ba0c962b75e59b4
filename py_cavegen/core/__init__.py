"""
Core cave generation functionality.
"""

from .noise_field import NoiseField, build_grid, threshold_noise
from .cellular_automaton import smooth, fill_enclosed_voids
from .island_tracer import Island, extract_islands, extract_contour
from .shard_generator import ShardOptions, create_shards
from .convex_enforcer import ensure_convex, is_convex
from .shard_filter import filter_shards
from .chunk_generator import Chunk, ChunkGenerator, DebugRasters, IslandShards, Shard
from .world_generator import chunk_block, generate_region

__all__ = ['NoiseField', 'build_grid', 'threshold_noise',
           'smooth', 'fill_enclosed_voids',
           'Island', 'extract_islands', 'extract_contour',
           'ShardOptions', 'create_shards',
           'ensure_convex', 'is_convex', 'filter_shards',
           'Chunk', 'ChunkGenerator', 'DebugRasters', 'IslandShards', 'Shard',
           'chunk_block', 'generate_region']
