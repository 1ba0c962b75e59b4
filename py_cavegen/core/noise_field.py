"""
Noise sampling and occupancy grid construction.

The noise field is a pure function of (seed, frequency, octaves, x, y): fractal
simplex noise with standard fBm weighting, normalized to [-1, 1]. The seed
selects a deterministic offset into the noise domain, so identical parameters
reproduce bit-identical samples across calls and runs.
"""

from typing import Tuple

import numpy as np
from noise import snoise2

from ..utils.random import get_rng

# Half-width of the coordinate window the seed offset is drawn from. Kept small
# enough that single-precision noise evaluation stays accurate.
NOISE_OFFSET_RANGE = 1024.0


class NoiseField:
    """Deterministic 2D fractal noise sampler."""

    def __init__(
        self,
        seed: int,
        frequency: float,
        octaves: int,
        persistence: float = 0.5,
        lacunarity: float = 2.0,
    ):
        self.seed = seed
        self.frequency = frequency
        self.octaves = octaves
        self.persistence = persistence
        self.lacunarity = lacunarity

        rng = get_rng(seed)
        offset = rng.uniform(-NOISE_OFFSET_RANGE, NOISE_OFFSET_RANGE, size=2)
        self._offset: Tuple[float, float] = (float(offset[0]), float(offset[1]))

    @classmethod
    def from_config(cls, config) -> "NoiseField":
        return cls(
            seed=config.seed,
            frequency=config.frequency,
            octaves=config.octaves,
            persistence=config.persistence,
            lacunarity=config.lacunarity,
        )

    def sample(self, x: float, y: float) -> float:
        """Sample the field at (x, y); the result lies in [-1, 1]."""
        total = 0.0
        amplitude = 1.0
        frequency = self.frequency
        max_amplitude = 0.0

        for _ in range(self.octaves):
            total += amplitude * snoise2(
                x * frequency + self._offset[0],
                y * frequency + self._offset[1],
            )
            max_amplitude += amplitude
            amplitude *= self.persistence
            frequency *= self.lacunarity

        return float(np.clip(total / max_amplitude, -1.0, 1.0))

    def sample_region(self, start_x: int, start_y: int, width: int, height: int) -> np.ndarray:
        """
        Sample a rectangular block of the field.

        Args:
            start_x, start_y: Absolute coordinates of the block origin
            width, height: Block size in cells

        Returns:
            Float array of shape (width, height) indexed [x, y]
        """
        values = np.empty((width, height), dtype=np.float64)
        for x in range(width):
            for y in range(height):
                values[x, y] = self.sample(start_x + x, start_y + y)
        return values


def threshold_noise(raw: np.ndarray, threshold: float) -> np.ndarray:
    """Solid where the noise, remapped to [0, 1], is below the threshold.

    Caves are high-noise regions; rock is low-noise.
    """
    return (raw + 1.0) / 2.0 < threshold


def build_grid(
    noise_field: NoiseField,
    start_x: int,
    start_y: int,
    width: int,
    height: int,
    threshold: float,
) -> np.ndarray:
    """
    Build the occupancy grid for a region.

    Args:
        noise_field: Noise source
        start_x, start_y: Absolute coordinates of the region origin
        width, height: Region size in cells
        threshold: Solidity threshold in [0, 1]

    Returns:
        Boolean array of shape (width, height); True marks solid cells
    """
    raw = noise_field.sample_region(start_x, start_y, width, height)
    return threshold_noise(raw, threshold)
