"""
pytest configuration and shared fixtures

Usage:
    def test_something(terrain_image, make_map):
        tmx_map = make_map([[1, 1]])
"""

from typing import Dict, List, Sequence

import pytest

from tilemesh import (
    Animation,
    CollectingDiagnostics,
    Frame,
    Layer,
    Map,
    RectangleShape,
    Tile,
    TileImage,
)


# ============================================================================
# Tiles
# ============================================================================

@pytest.fixture
def terrain_image() -> TileImage:
    """A 64x64 atlas holding four 32x32 tiles."""
    return TileImage("tilesets/terrain.png", 64, 64)


@pytest.fixture
def static_tile(terrain_image) -> Tile:
    return Tile(1, 32, 32, terrain_image, 0, 0)


@pytest.fixture
def solid_tile(terrain_image) -> Tile:
    """A tile whose collision covers the whole tile."""
    return Tile(2, 32, 32, terrain_image, 32, 0,
                shapes=[RectangleShape(name="solid", width=32, height=32)])


@pytest.fixture
def animated_tiles(terrain_image) -> Dict[int, Tile]:
    """Tile 10 animates through tiles 11, 12, 13 with frame ids 7, 8, 9."""
    frames = [
        Frame(11, 100, unique_frame_id=7),
        Frame(12, 100, unique_frame_id=8),
        Frame(13, 100, unique_frame_id=9),
    ]
    return {
        10: Tile(10, 32, 32, terrain_image, 0, 0, animation=Animation(frames)),
        11: Tile(11, 32, 32, terrain_image, 32, 0),
        12: Tile(12, 32, 32, terrain_image, 0, 32),
        13: Tile(13, 32, 32, terrain_image, 32, 32),
    }


@pytest.fixture
def diagnostics() -> CollectingDiagnostics:
    return CollectingDiagnostics()


# ============================================================================
# Maps
# ============================================================================

@pytest.fixture
def make_map(static_tile, solid_tile):
    """Builds a 32x32-cell map from rows of raw tile ids; tiles 1 and 2 are always registered."""

    def _make(rows: Sequence[Sequence[int]], tiles: Dict[int, Tile] | None = None,
              layers: List[Layer] | None = None, **kwargs) -> Map:
        registry = {1: static_tile, 2: solid_tile}
        registry.update(tiles or {})
        if layers is None:
            layers = [Layer.from_rows("Ground", rows)]
        height = len(rows)
        width = len(rows[0]) if rows else 0
        return Map(width, height, 32, 32, layers=layers, tiles=registry, name="test", **kwargs)

    return _make
