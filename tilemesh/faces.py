import math
from dataclasses import dataclass
from typing import Tuple

from .errors import MissingImageError
from .frames import TileFrame
from .model import Tile
from .transforms import transform_points, transform_points_diag_first

Vertex = Tuple[float, float, float]
TexCoord = Tuple[float, float]


@dataclass(frozen=True)
class Face:
    """One tile quad. Vertices and texture coordinates are stored in matching ccw order."""
    layer_name: str
    vertices: Tuple[Vertex, Vertex, Vertex, Vertex]
    texture_coordinates: Tuple[TexCoord, TexCoord, TexCoord, TexCoord]
    image_name: str
    image_path: str


def point_to_obj_vertex(point, depth: float) -> Vertex:
    # Mesh space points Y up; 0.0 - y keeps row 0 from producing -0.0
    return float(point[0]), 0.0 - float(point[1]), float(depth)


def point_to_texture_coordinate(point, image_size) -> TexCoord:
    width, height = image_size
    return float(point[0]) / width, 1.0 - float(point[1]) / height


def calculate_face_vertices(map_location, tile_size, map_tile_height, depth,
                            diagonal=False, horizontal=False, vertical=False):
    """
    Builds the 4 world-space corners of a tile quad.

    Tiles taller than the map's tile height are anchored at the bottom of their cell. The flip
    transform only changes the quad's footprint (a diagonal flip swaps the width and height of
    a non-square tile); orientation is carried by the texture coordinates.
    """
    x, y = map_location
    width, height = tile_size
    y += map_tile_height - height

    quad = [(0, 0), (width, 0), (width, height), (0, height)]
    transformed = transform_points(quad, (width * 0.5, height * 0.5), diagonal, horizontal, vertical)
    minx, miny = (float(v) for v in transformed.min(axis=0))
    maxx, maxy = (float(v) for v in transformed.max(axis=0))

    pt0 = (x + minx, y + miny)
    pt1 = (x + maxx, y + miny)
    pt2 = (x + maxx, y + maxy)
    pt3 = (x + minx, y + maxy)

    # ccw winding once Y is flipped: bottom-left, bottom-right, top-right, top-left
    return (
        point_to_obj_vertex(pt3, depth),
        point_to_obj_vertex(pt2, depth),
        point_to_obj_vertex(pt1, depth),
        point_to_obj_vertex(pt0, depth),
    )


def apply_texel_bias(coordinates, bias):
    """Moves every coordinate `bias` towards the centre of the quad on both axes."""
    if not bias:
        return tuple(coordinates)
    cu = sum(u for u, _ in coordinates) / len(coordinates)
    cv = sum(v for _, v in coordinates) / len(coordinates)

    def nudge(value, target):
        if value == target:
            return value
        return value + math.copysign(bias, target - value)

    return tuple((nudge(u, cu), nudge(v, cv)) for u, v in coordinates)


def calculate_face_texture_coordinates(tile: Tile, diagonal=False, horizontal=False, vertical=False,
                                       bias=0.0, transform=transform_points_diag_first):
    if tile.image is None:
        raise MissingImageError(tile.id)

    sx, sy = tile.location_on_source
    width, height = tile.size
    points = [(sx, sy), (sx + width, sy), (sx + width, sy + height), (sx, sy + height)]
    center = (sx + width * 0.5, sy + height * 0.5)
    points = transform(points, center, diagonal, horizontal, vertical)

    image_size = tile.image.size
    # Same corner order as the vertices
    coordinates = (
        point_to_texture_coordinate(points[3], image_size),
        point_to_texture_coordinate(points[2], image_size),
        point_to_texture_coordinate(points[1], image_size),
        point_to_texture_coordinate(points[0], image_size),
    )
    return apply_texel_bias(coordinates, bias)


def generate_face(layer_name: str, map_location, frame: TileFrame, map_tile_height: int,
                  diagonal=False, horizontal=False, vertical=False, bias=0.0,
                  texture_transform=transform_points_diag_first) -> Face:
    tile = frame.tile
    if tile.image is None:
        raise MissingImageError(tile.id)
    return Face(
        layer_name=layer_name,
        vertices=calculate_face_vertices(map_location, tile.size, map_tile_height, frame.depth,
                                         diagonal, horizontal, vertical),
        texture_coordinates=calculate_face_texture_coordinates(tile, diagonal, horizontal, vertical,
                                                               bias, texture_transform),
        image_name=tile.image.name,
        image_path=tile.image.path,
    )
