"""
Configuration models for cave generation.
"""

from .generation_config import GenerationConfig, PhysicsMaterial
from .settings import Settings

__all__ = ['GenerationConfig', 'PhysicsMaterial', 'Settings']
