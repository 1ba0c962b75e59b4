"""
Physics engine adapters.
"""

from .body_builder import PhysicsBodyBuilder

__all__ = ['PhysicsBodyBuilder']
