"""
Random number generation utilities.

Every stochastic step of cave generation draws from its own NumPy generator
seeded from the configuration, so chunks never share generator state and a
chunk can be regenerated in isolation.
"""

import numpy as np

# Multiplier applied to the chunk X coordinate when deriving chunk seeds
CHUNK_SEED_STRIDE = 1000


def get_rng(seed: int) -> np.random.Generator:
    """
    Create a fresh generator for the given seed.

    Args:
        seed: Integer seed, negative values allowed

    Returns:
        NumPy Generator (PCG64)
    """
    return np.random.default_rng(to_generator_seed(seed))


def chunk_seed(base_seed: int, chunk_x: int, chunk_y: int) -> int:
    """
    Derive the first island seed of a chunk.

    Islands inside the chunk use consecutive seeds starting here.

    Args:
        base_seed: Seed from the generation config
        chunk_x, chunk_y: Chunk coordinates

    Returns:
        Seed for the chunk's first island
    """
    return base_seed + chunk_x * CHUNK_SEED_STRIDE + chunk_y


def to_generator_seed(seed: int) -> int:
    """Map any integer seed (including negatives) into NumPy's accepted range."""
    return seed & 0xFFFFFFFFFFFFFFFF
