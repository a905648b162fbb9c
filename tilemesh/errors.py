class TileMeshError(Exception):
    """Base class for export failures caused by the map data or configuration."""


class MissingTileError(TileMeshError, KeyError):
    """A tile id (or an animation frame's tile id) is not in the map's tile registry."""

    def __init__(self, tile_id, context=''):
        self.tile_id = tile_id
        message = f"Tile id {tile_id} cannot be resolved"
        if context:
            message += f" ({context})"
        super().__init__(message)

    def __str__(self):
        # KeyError quotes its argument
        return self.args[0]


class MissingImageError(TileMeshError):
    """A tile has no source image so texture coordinates cannot be computed."""

    def __init__(self, tile_id):
        self.tile_id = tile_id
        super().__init__(f"Tile id {tile_id} has no source image")


class ConfigurationError(TileMeshError, ValueError):
    pass
