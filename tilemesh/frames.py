from dataclasses import dataclass
from typing import Iterator

from .model import Map, Tile


@dataclass(frozen=True)
class TileFrame:
    """A tile to draw plus the depth that decides which animation frame is visible."""
    tile: Tile
    depth: float


def enumerate_tile_frames(tile: Tile, tmx_map: Map) -> Iterator[TileFrame]:
    """
    Treats every tile as an animation.

    A static tile yields a single frame at depth 0. An animated tile yields one frame per
    animation frame, with the frame's unique id baked into the depth: the first frame is
    positive (visible), every later frame negative (hidden) until the engine cycles them.
    """
    if tile.animation is None:
        yield TileFrame(tile, 0.0)
        return

    sign = 1.0
    for frame in tile.animation.frames:
        frame_tile = tmx_map.get_tile(frame.global_tile_id, f"animation frame of tile {tile.id}")
        yield TileFrame(frame_tile, float(frame.unique_frame_id) * sign)
        sign = -1.0
