"""
In-memory tile map model consumed by the mesh and collision exporters.

The map is built by a parser (not part of this package) and treated as read-only
for the duration of an export.
"""

import itertools
import math
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Dict, List, Sequence, Tuple, Union

from .diagnostics import Diagnostics, get_diagnostics
from .errors import MissingTileError

Point = Tuple[float, float]

# Flip bits packed into the high end of a raw cell value
FLIPPED_HORIZONTALLY_FLAG = 0x80000000
FLIPPED_VERTICALLY_FLAG = 0x40000000
FLIPPED_DIAGONALLY_FLAG = 0x20000000
TILE_ID_MASK = 0x1FFFFFFF


def decode_raw_tile_id(raw: int) -> Tuple[int, bool, bool, bool]:
    """Splits a raw cell value into (tile_id, diagonal, horizontal, vertical)."""
    return (
        raw & TILE_ID_MASK,
        bool(raw & FLIPPED_DIAGONALLY_FLAG),
        bool(raw & FLIPPED_HORIZONTALLY_FLAG),
        bool(raw & FLIPPED_VERTICALLY_FLAG),
    )


def encode_raw_tile_id(tile_id: int, diagonal=False, horizontal=False, vertical=False) -> int:
    raw = tile_id & TILE_ID_MASK
    if diagonal:
        raw |= FLIPPED_DIAGONALLY_FLAG
    if horizontal:
        raw |= FLIPPED_HORIZONTALLY_FLAG
    if vertical:
        raw |= FLIPPED_VERTICALLY_FLAG
    return raw


class Properties:
    """Custom string properties attached to a map element."""

    TRUE_VALUES = ('true', '1')
    FALSE_VALUES = ('false', '0')

    def __init__(self, values: Dict[str, str] | None = None):
        self.values = dict(values or {})

    def __contains__(self, name):
        return name in self.values

    def __repr__(self):
        return f"Properties({self.values!r})"

    def get_string(self, name: str, default: str | None = None) -> str | None:
        return self.values.get(name, default)

    def get_int(self, name: str, default: int = 0) -> int:
        if name not in self.values:
            return default
        return int(self.values[name])

    def get_bool(self, name: str, default: bool = False, diagnostics: Diagnostics | None = None) -> bool:
        """Reads a boolean property; unparseable values log a warning and yield the default."""
        if name not in self.values:
            return default
        text = str(self.values[name]).strip().lower()
        if text in self.TRUE_VALUES:
            return True
        if text in self.FALSE_VALUES:
            return False
        get_diagnostics(diagnostics).warn(
            f"Property '{name}' value '{self.values[name]}' cannot be converted to a boolean.")
        return default


_frame_ids = itertools.count(1)


def next_frame_id() -> int:
    return next(_frame_ids)


@dataclass
class Frame:
    global_tile_id: int
    duration: int = 100  # milliseconds
    unique_frame_id: int = field(default_factory=next_frame_id)


@dataclass
class Animation:
    frames: List[Frame] = field(default_factory=list)

    @classmethod
    def from_tile_ids(cls, tile_ids: Sequence[int], duration: int = 100) -> 'Animation':
        return cls([Frame(tile_id, duration) for tile_id in tile_ids])


@dataclass
class TileImage:
    path: str
    width: int
    height: int
    transparent_color: str | None = None

    @property
    def name(self) -> str:
        return PurePath(self.path).stem

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height


# --- Shapes ---------------------------------------------------------------
# Collision shapes authored on tiles, and objects in object groups. Points are
# relative to the shape position; rotation is in degrees, clockwise on screen,
# about the position.

@dataclass
class ShapeBase:
    name: str = ''
    x: float = 0.0
    y: float = 0.0
    rotation: float = 0.0
    visible: bool = True
    id: int = 0

    @property
    def position(self) -> Point:
        return self.x, self.y

    @property
    def display_name(self) -> str:
        return self.name or f"{type(self).__name__} {self.id}"


@dataclass
class PolygonShape(ShapeBase):
    points: List[Point] = field(default_factory=list)

    def local_points(self) -> List[Point]:
        return list(self.points)


@dataclass
class PolylineShape(ShapeBase):
    points: List[Point] = field(default_factory=list)

    def local_points(self) -> List[Point]:
        return list(self.points)


@dataclass
class RectangleShape(ShapeBase):
    width: float = 0.0
    height: float = 0.0

    def local_points(self) -> List[Point]:
        w, h = self.width, self.height
        return [(0.0, 0.0), (w, 0.0), (w, h), (0.0, h)]


@dataclass
class EllipseShape(ShapeBase):
    width: float = 0.0
    height: float = 0.0

    def is_circle(self) -> bool:
        return self.width == self.height

    def local_points(self) -> List[Point]:
        """The bounding box corners; circles are polygonised by the collision merger."""
        w, h = self.width, self.height
        return [(0.0, 0.0), (w, 0.0), (w, h), (0.0, h)]


@dataclass
class TileShape(ShapeBase):
    """An object drawn with a tile image; anchored at its bottom-left corner."""
    width: float = 0.0
    height: float = 0.0
    tile_id: int = 0

    def local_points(self) -> List[Point]:
        w, h = self.width, self.height
        return [(0.0, -h), (w, -h), (w, 0.0), (0.0, 0.0)]


@dataclass
class UnsupportedShape(ShapeBase):
    kind: str = ''
    width: float = 0.0
    height: float = 0.0

    def local_points(self) -> List[Point]:
        w, h = self.width, self.height
        return [(0.0, 0.0), (w, 0.0), (w, h), (0.0, h)]


Shape = Union[PolygonShape, PolylineShape, RectangleShape, EllipseShape, TileShape, UnsupportedShape]


def shape_world_bounds(shape: Shape) -> Tuple[float, float, float, float]:
    """Axis-aligned (minx, miny, maxx, maxy) of a shape after its rotation and position."""
    radians = math.radians(shape.rotation)
    cos_r, sin_r = math.cos(radians), math.sin(radians)
    xs, ys = [], []
    for px, py in shape.local_points():
        xs.append(px * cos_r - py * sin_r + shape.x)
        ys.append(px * sin_r + py * cos_r + shape.y)
    if not xs:
        return shape.x, shape.y, shape.x, shape.y
    return min(xs), min(ys), max(xs), max(ys)


# --- Map elements -----------------------------------------------------------

@dataclass
class Tile:
    id: int
    width: int
    height: int
    image: TileImage | None = None
    source_x: int = 0
    source_y: int = 0
    animation: Animation | None = None
    shapes: List[Shape] = field(default_factory=list)
    properties: Properties = field(default_factory=Properties)

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def location_on_source(self) -> Tuple[int, int]:
        return self.source_x, self.source_y


@dataclass
class Layer:
    name: str
    width: int
    height: int
    data: List[int]  # raw cell values, row-major
    visible: bool = True
    properties: Properties = field(default_factory=Properties)
    unique_name: str = ''

    def __post_init__(self):
        if len(self.data) != self.width * self.height:
            raise ValueError(
                f"Layer '{self.name}' has {len(self.data)} cells, expected {self.width}x{self.height}")
        if not self.unique_name:
            self.unique_name = self.name

    @classmethod
    def from_rows(cls, name: str, rows: Sequence[Sequence[int]], **kwargs) -> 'Layer':
        height = len(rows)
        width = len(rows[0]) if rows else 0
        data = [raw for row in rows for raw in row]
        return cls(name, width, height, data, **kwargs)

    def get_raw_tile_id_at(self, x: int, y: int) -> int:
        return self.data[y * self.width + x]

    def get_tile_id_at(self, x: int, y: int) -> int:
        return self.get_raw_tile_id_at(x, y) & TILE_ID_MASK

    def is_collision_only(self, property_name: str, diagnostics: Diagnostics | None = None) -> bool:
        return self.properties.get_bool(property_name, False, diagnostics)


@dataclass
class ObjectGroup:
    name: str
    objects: List[Shape] = field(default_factory=list)
    visible: bool = True
    color: Tuple[int, int, int] = (128, 128, 128)
    properties: Properties = field(default_factory=Properties)
    unique_name: str = ''

    def __post_init__(self):
        if not self.unique_name:
            self.unique_name = self.name


def _assign_unique_names(elements):
    used = set()
    for element in elements:
        candidate = element.name
        n = 1
        while candidate in used:
            n += 1
            candidate = f"{element.name}_{n}"
        element.unique_name = candidate
        used.add(candidate)


@dataclass
class Map:
    width: int
    height: int
    tile_width: int
    tile_height: int
    layers: List[Layer] = field(default_factory=list)
    object_groups: List[ObjectGroup] = field(default_factory=list)
    tiles: Dict[int, Tile] = field(default_factory=dict)
    draw_order_horizontal: int = 1
    draw_order_vertical: int = 1
    name: str = ''

    def __post_init__(self):
        self.assign_unique_names()

    def assign_unique_names(self):
        """
        Gives every layer, and separately every object group, a distinct unique_name:
        'name', 'name_2', 'name_3', ...

        Exports call this again so that layers or groups appended after construction are
        named too. Repeated calls give the same names.
        """
        _assign_unique_names(self.layers)
        _assign_unique_names(self.object_groups)

    def get_tile(self, tile_id: int, context: str = '') -> Tile:
        try:
            return self.tiles[tile_id]
        except KeyError:
            raise MissingTileError(tile_id, context) from None

    def get_map_position_at(self, x: int, y: int) -> Tuple[int, int]:
        return x * self.tile_width, y * self.tile_height

    @property
    def pixel_size(self) -> Tuple[int, int]:
        return self.width * self.tile_width, self.height * self.tile_height
