"""
Generation parameters for cave terrain.

A single immutable `GenerationConfig` drives every stage of the pipeline. It is
validated on construction and shared read-only by all chunk generators.
"""

from pydantic import BaseModel, Field


class PhysicsMaterial(BaseModel):
    """Material applied to every terrain fixture."""

    density: float = Field(default=1.0, gt=0.0, description="Fixture density")
    friction: float = Field(default=0.7, ge=0.0, description="Surface friction")
    restitution: float = Field(default=0.1, ge=0.0, le=1.0, description="Bounciness (elasticity)")

    class Config:
        frozen = True
        extra = "forbid"


class GenerationConfig(BaseModel):
    """Settings for cave generation and shard decomposition."""

    # Noise
    seed: int = Field(default=12345, description="Base seed for noise and shard sampling")
    frequency: float = Field(default=0.02, gt=0.0, description="Base noise frequency")
    octaves: int = Field(default=4, ge=1, le=16, description="Number of fBm octaves")
    persistence: float = Field(default=0.5, gt=0.0, le=1.0, description="Amplitude falloff per octave")
    lacunarity: float = Field(default=2.0, ge=1.0, description="Frequency growth per octave")
    threshold: float = Field(
        default=0.45, ge=0.0, le=1.0,
        description="Solid where normalized noise is below this value"
    )

    # Cellular automata
    smooth_iterations: int = Field(default=2, ge=0, description="Smoothing passes")
    solid_neighbor_threshold: int = Field(
        default=5, ge=0, le=8,
        description="Solid neighbours (of 8) needed to stay or become solid"
    )
    fill_isolated_voids: bool = Field(
        default=True, description="Seal empty pockets that do not touch the chunk border"
    )

    # Chunk layout
    chunk_size: int = Field(default=64, ge=2, description="Cells per chunk side")
    cell_size: float = Field(default=2.0, gt=0.0, description="World units per cell")

    # Shard decomposition
    cells_per_site: int = Field(default=100, ge=1, description="Island cells per Voronoi site")
    min_sites: int = Field(default=3, ge=1, description="Minimum Voronoi sites per island")
    max_sites: int = Field(default=20, ge=1, description="Maximum Voronoi sites per island")
    site_attempts_per_site: int = Field(default=100, ge=1, description="Rejection sampling budget per site")
    lloyd_iterations: int = Field(default=2, ge=0, description="Lloyd relaxation passes")
    bridge_repair_passes: int = Field(default=3, ge=0, description="Bridge repair retries per shard")
    long_bridge_samples: int = Field(
        default=6, ge=1,
        description="Consecutive empty samples that make an edge an unrepairable bridge"
    )
    convex_split_iterations: int = Field(default=200, ge=1, description="Cap on convex split steps")

    # Shard filtering
    min_shard_area: float = Field(default=1.0, ge=0.0, description="Minimum shard area in cells")
    enclosure_threshold: float = Field(
        default=0.9, gt=0.0, le=1.0,
        description="Overlap ratio at which a smaller shard is dropped"
    )
    rectangle_angle_tolerance: float = Field(
        default=6.0, ge=0.0, lt=45.0,
        description="Degrees from 90 within which a quad counts as a rectangle"
    )

    # Physics
    material: PhysicsMaterial = Field(default_factory=PhysicsMaterial, description="Fixture material")

    class Config:
        frozen = True
        extra = "forbid"
