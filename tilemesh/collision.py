"""
Merges the collision shapes of a tile layer (or an object group) into closed polygons and
open polylines.

Every shape is moved into world pixel space, converted to integer coordinates with a
caller-supplied transform, and the closed ones are unioned so that adjoining tiles become a
single outline. Polylines are passed through as-is.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Tuple

from shapely.geometry import Point as ShapelyPoint

from .config import ExportConfig
from .diagnostics import Diagnostics, get_diagnostics
from .model import (
    Layer, Map, ObjectGroup, Shape,
    PolygonShape, PolylineShape, RectangleShape, EllipseShape, TileShape,
    decode_raw_tile_id,
)
from .transforms import rotate_points, transform_points, translate_points
from .union import Path, PolygonUnion, ShapelyUnion, paths_to_polygons
from .utils import timed

logger = logging.getLogger(__name__)

TransformPointFunc = Callable[[float, float], Tuple[int, int]]
ProgressFunc = Callable[[float], None]

CLOSED = 'closed'
OPEN = 'open'


def default_transform_point(x: float, y: float) -> Tuple[int, int]:
    return int(round(x)), int(round(y))


def scaled_transform_point(scale: float) -> TransformPointFunc:
    """Trades range for precision: coordinates are multiplied by scale before rounding."""
    def transform(x, y):
        return int(round(x * scale)), int(round(y * scale))
    return transform


@dataclass
class MergedLayerGeometry:
    name: str
    closed_paths: List[Path] = field(default_factory=list)
    open_paths: List[Path] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)  # names of shapes left out of the union

    def polygons(self):
        return paths_to_polygons(self.closed_paths)

    @property
    def is_empty(self) -> bool:
        return not self.closed_paths and not self.open_paths


def circle_points(radius: float, segments: int):
    """Polygon approximation of a circle inscribed in the box (0, 0)-(2r, 2r)."""
    circle = ShapelyPoint(radius, radius).buffer(radius, segments)
    return list(circle.exterior.coords)[:-1]


def classify_shape(shape: Shape, config: ExportConfig, diagnostics: Diagnostics):
    """
    Returns (kind, local_points) for a collider, or (None, None) when the shape cannot be
    merged. Rejected shapes are reported through diagnostics.
    """
    if isinstance(shape, (PolygonShape, PolylineShape)):
        kind, minimum = (CLOSED, 3) if isinstance(shape, PolygonShape) else (OPEN, 2)
        points = shape.local_points()
        if len(points) < minimum:
            diagnostics.warn(f"Not enough points ({len(points)}): {shape.display_name}")
            return None, None
        return kind, points
    elif isinstance(shape, (RectangleShape, TileShape)):
        return CLOSED, shape.local_points()
    elif isinstance(shape, EllipseShape):
        if not shape.is_circle():
            diagnostics.warn(f"Not a circle: {shape.display_name}")
            return None, None
        return CLOSED, circle_points(shape.width * 0.5, config.circle_segments)
    else:
        diagnostics.warn(f"Unhandled object: {shape.display_name}")
        return None, None


def shape_to_object_space(shape: Shape, points):
    return translate_points(rotate_points(points, shape.rotation), shape.position)


class _PathCollector:
    def __init__(self, transform_point, config, diagnostics):
        self.transform_point = transform_point
        self.config = config
        self.diagnostics = diagnostics
        self.closed: List[Path] = []
        self.open: List[Path] = []
        self.skipped: List[str] = []

    def add(self, shape: Shape, world_transform=None):
        if not shape.visible:
            return
        kind, points = classify_shape(shape, self.config, self.diagnostics)
        if kind is None:
            self.skipped.append(shape.display_name)
            return
        pts = shape_to_object_space(shape, points)
        if world_transform is not None:
            pts = world_transform(pts)
        path = [self.transform_point(x, y) for x, y in pts.tolist()]
        logger.debug(f"Collider '{shape.display_name}' ({kind}) with {len(path)} points")
        (self.closed if kind == CLOSED else self.open).append(path)

    def merge(self, name, union: PolygonUnion) -> MergedLayerGeometry:
        closed, opened = union.union(self.closed, self.open)
        return MergedLayerGeometry(name, closed, opened, self.skipped)


@timed
def merge_layer_collision(tmx_map: Map, layer: Layer,
                          transform_point: TransformPointFunc = default_transform_point,
                          progress_cb: ProgressFunc | None = None,
                          config: ExportConfig | None = None,
                          diagnostics: Diagnostics | None = None,
                          union: PolygonUnion | None = None) -> MergedLayerGeometry:
    """
    Merges the collision shapes authored on the tiles of one layer.

    Each shape is rotated and offset within its tile, flipped about the tile centre by the
    cell's flip bits, then placed at the cell (tall tiles anchored at the cell bottom).
    progress_cb receives fractions in [0, 1] once per row and around the union.
    """
    config = config or ExportConfig()
    diagnostics = get_diagnostics(diagnostics)
    union = union or ShapelyUnion(config.fill_rule)
    collector = _PathCollector(transform_point, config, diagnostics)

    logger.info(f"Gathering colliders of layer '{layer.name}'")
    if progress_cb:
        progress_cb(0.0)

    for y in range(layer.height):
        for x in range(layer.width):
            tile_id, fd, fh, fv = decode_raw_tile_id(layer.get_raw_tile_id_at(x, y))
            if tile_id == 0:
                continue
            tile = tmx_map.get_tile(tile_id, f"layer '{layer.name}' at ({x}, {y})")
            if not tile.shapes:
                continue

            map_x, map_y = tmx_map.get_map_position_at(x, y)
            location = (map_x, map_y + tmx_map.tile_height - tile.height)
            center = (tile.width * 0.5, tile.height * 0.5)

            def to_world(pts, center=center, location=location, flips=(fd, fh, fv)):
                return translate_points(transform_points(pts, center, *flips), location)

            for shape in tile.shapes:
                collector.add(shape, to_world)

        if progress_cb:
            progress_cb(0.5 * (y + 1) / layer.height)

    logger.info(f"Merging {len(collector.closed)} polygons of layer '{layer.name}'")
    merged = collector.merge(layer.unique_name, union)
    if progress_cb:
        progress_cb(1.0)
    return merged


@timed
def merge_object_group(group: ObjectGroup,
                       transform_point: TransformPointFunc = default_transform_point,
                       progress_cb: ProgressFunc | None = None,
                       config: ExportConfig | None = None,
                       diagnostics: Diagnostics | None = None,
                       union: PolygonUnion | None = None) -> MergedLayerGeometry:
    """Merges the visible objects of an object group; positions are already in world space."""
    config = config or ExportConfig()
    diagnostics = get_diagnostics(diagnostics)
    union = union or ShapelyUnion(config.fill_rule)
    collector = _PathCollector(transform_point, config, diagnostics)

    if progress_cb:
        progress_cb(0.0)
    for obj in group.objects:
        collector.add(obj)
    if progress_cb:
        progress_cb(0.5)
    merged = collector.merge(group.unique_name, union)
    if progress_cb:
        progress_cb(1.0)
    return merged
