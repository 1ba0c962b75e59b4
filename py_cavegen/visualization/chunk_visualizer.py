"""
Full-map debug image of generated chunks.

Four side-by-side panels over the bounding box of all added chunks:
raw noise, thresholded grid, smoothed grid and world-space shard polygons
with the traced island outlines on top.
"""

from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import matplotlib.pyplot as plt
import numpy as np
import structlog

from ..config.generation_config import GenerationConfig
from ..core.chunk_generator import DebugRasters

logger = structlog.get_logger()


class ChunkVisualizer:
    """Collects per-chunk debug rasters and renders them as one map."""

    def __init__(self, config: GenerationConfig):
        self.config = config
        self.chunks: Dict[Tuple[int, int], DebugRasters] = {}

    def add_chunk(self, chunk_x: int, chunk_y: int, debug: DebugRasters) -> None:
        self.chunks[(chunk_x, chunk_y)] = debug

    def _bounds(self) -> Tuple[int, int, int, int]:
        xs = [c[0] for c in self.chunks]
        ys = [c[1] for c in self.chunks]
        return min(xs), min(ys), max(xs), max(ys)

    def _assemble(self, attribute: str, fill: float) -> np.ndarray:
        """Stitch one raster of every chunk into a map indexed [x, y]."""
        size = self.config.chunk_size
        min_cx, min_cy, max_cx, max_cy = self._bounds()
        width = (max_cx - min_cx + 1) * size
        height = (max_cy - min_cy + 1) * size

        full = np.full((width, height), fill, dtype=np.float64)
        for (cx, cy), debug in self.chunks.items():
            x0 = (cx - min_cx) * size
            y0 = (cy - min_cy) * size
            full[x0:x0 + size, y0:y0 + size] = getattr(debug, attribute)
        return full

    def render(self):
        """
        Render the four panels.

        Returns:
            matplotlib Figure, or None when no chunks were added
        """
        if not self.chunks:
            return None

        size = self.config.chunk_size
        cell_size = self.config.cell_size
        min_cx, min_cy, max_cx, max_cy = self._bounds()
        x0 = min_cx * size
        y0 = min_cy * size
        x1 = (max_cx + 1) * size
        y1 = (max_cy + 1) * size
        extent = (x0, x1, y0, y1)

        fig, axes = plt.subplots(1, 4, figsize=(24, 6))
        panels = [
            ("Raw noise", self._assemble("raw_noise", 0.0), "gray", (-1.0, 1.0)),
            ("Threshold grid", self._assemble("bool_grid", 0.0), "binary", (0.0, 1.0)),
            ("Smoothed grid", self._assemble("smoothed_grid", 0.0), "binary", (0.0, 1.0)),
        ]
        for ax, (title, raster, cmap, (vmin, vmax)) in zip(axes, panels):
            ax.imshow(raster.T, origin="lower", extent=extent, cmap=cmap, vmin=vmin, vmax=vmax)
            ax.set_title(title)

        shard_ax = axes[3]
        shard_count = 0
        for debug in self.chunks.values():
            for polygon in debug.world_shards:
                cells = np.asarray(polygon) / cell_size
                shard_ax.fill(cells[:, 0], cells[:, 1], alpha=0.5, edgecolor="black", linewidth=0.5)
                shard_count += 1
            for contour in debug.world_contours:
                outline = np.vstack([contour, contour[:1]]) / cell_size
                shard_ax.plot(outline[:, 0], outline[:, 1], color="red", linewidth=1.0)
        shard_ax.set_xlim(x0, x1)
        shard_ax.set_ylim(y0, y1)
        shard_ax.set_title(f"Shards ({shard_count})")

        for ax in axes:
            ax.set_aspect("equal")
            ax.set_xticks([])
            ax.set_yticks([])

        fig.suptitle(f"Cave map - Seed: {self.config.seed}", fontsize=16)
        plt.tight_layout()
        return fig

    def save_full_map(self, path: Union[str, Path]) -> Optional[Path]:
        """
        Write the rendered map to `path`.

        Returns:
            The written path, or None when there was nothing to render
        """
        fig = self.render()
        if fig is None:
            logger.warning("No chunks to visualize")
            return None

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(path, dpi=150, bbox_inches="tight")
        plt.close(fig)
        logger.info("Saved cave map", path=str(path), chunks=len(self.chunks))
        return path
