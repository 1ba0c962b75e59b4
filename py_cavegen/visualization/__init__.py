"""
Debug visualization of generated chunks.
"""

from .chunk_visualizer import ChunkVisualizer

__all__ = ['ChunkVisualizer']
