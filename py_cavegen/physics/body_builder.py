"""
Conversion of convex shards into static pymunk bodies.
"""

from typing import List, Sequence, Tuple

import pymunk
import structlog

from ..config.generation_config import GenerationConfig, PhysicsMaterial
from ..core.chunk_generator import Chunk
from ..core.convex_enforcer import is_convex
from ..core.geometry import AREA_EPSILON, polygon_area
from ..errors import ShardRejectedError

logger = structlog.get_logger()


class PhysicsBodyBuilder:
    """Creates one static body with a single polygon fixture per shard."""

    def __init__(self, space: pymunk.Space, material: PhysicsMaterial):
        self.space = space
        self.material = material

    @classmethod
    def from_config(cls, space: pymunk.Space, config: GenerationConfig) -> "PhysicsBodyBuilder":
        return cls(space, config.material)

    def create_body(
        self, world_position: Tuple[float, float], vertices: Sequence[Sequence[float]]
    ) -> pymunk.Body:
        """
        Create a static body at `world_position` and add it to the space.

        Args:
            world_position: World-space body anchor
            vertices: Convex polygon relative to the anchor

        Returns:
            The added body

        Raises:
            ShardRejectedError: If the polygon is not a usable convex fixture or
                the engine refuses it; nothing is left in the space in that case
        """
        points = [(float(v[0]), float(v[1])) for v in vertices]
        if len(points) < 3:
            raise ShardRejectedError("too few vertices", len(points))
        if polygon_area(points) <= AREA_EPSILON:
            raise ShardRejectedError("degenerate area", len(points))
        if not is_convex(points):
            raise ShardRejectedError("polygon is not convex", len(points))

        body = pymunk.Body(body_type=pymunk.Body.STATIC)
        body.position = (float(world_position[0]), float(world_position[1]))

        shape = None
        try:
            shape = pymunk.Poly(body, points)
            shape.density = self.material.density
            shape.friction = self.material.friction
            shape.elasticity = self.material.restitution
            self.space.add(body, shape)
        except Exception as e:
            self._discard(body, shape)
            raise ShardRejectedError("physics engine error", len(points)) from e
        return body

    def _discard(self, body: pymunk.Body, shape) -> None:
        """Remove whatever part of a failed body made it into the space."""
        if shape is not None and shape in self.space.shapes:
            self.space.remove(shape)
        if body in self.space.bodies:
            self.space.remove(body)

    def build_chunk(self, chunk: Chunk) -> List[pymunk.Body]:
        """Create bodies for every shard of a chunk; rejected shards are skipped."""
        bodies = []
        rejected = 0
        for entry in chunk.islands:
            for shard in entry.shards:
                try:
                    bodies.append(self.create_body(shard.position, shard.polygon))
                except ShardRejectedError as e:
                    rejected += 1
                    logger.warning(
                        "Shard rejected",
                        chunk_x=chunk.chunk_x,
                        chunk_y=chunk.chunk_y,
                        reason=e.reason,
                        vertices=e.vertex_count,
                    )

        logger.debug(
            "Chunk bodies created",
            chunk_x=chunk.chunk_x,
            chunk_y=chunk.chunk_y,
            bodies=len(bodies),
            rejected=rejected,
        )
        return bodies
