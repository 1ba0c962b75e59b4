"""
Shared helpers: seeding and logging setup.
"""

from .random import get_rng, chunk_seed, to_generator_seed
from .logging import configure_logging

__all__ = ['get_rng', 'chunk_seed', 'to_generator_seed', 'configure_logging']
