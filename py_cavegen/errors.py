"""Exceptions raised by the cave generation pipeline."""


class CaveGenerationError(Exception):
    """Base class for cave generation failures."""


class ShardRejectedError(CaveGenerationError):
    """A shard polygon could not be turned into a physics fixture."""

    def __init__(self, reason: str, vertex_count: int = 0):
        super().__init__(reason)
        self.reason = reason
        self.vertex_count = vertex_count
