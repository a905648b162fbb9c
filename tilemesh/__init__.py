"""
tilemesh

Turns a tile map into a textured mesh (Wavefront OBJ text) for real-time engines, and the
collision shapes of its tiles into merged polygons and polylines per layer.

Key features:
- Animated tiles: every animation frame becomes a quad whose depth encodes which frame is shown
- Flipped and rotated tiles through texture coordinates, tall tiles anchored at the cell bottom
- Deduplicated vertex and texture coordinate pools, byte-identical output for the same map
- Collision union through shapely, holes preserved, polylines passed through
- Preview rendering of the merged colliders with matplotlib
"""

from .config import ExportConfig, PreviewConfig
from .diagnostics import Diagnostics, LoggingDiagnostics, CollectingDiagnostics
from .errors import TileMeshError, MissingTileError, MissingImageError, ConfigurationError
from .model import (
    Map, Layer, Tile, TileImage, Animation, Frame, ObjectGroup, Properties,
    PolygonShape, PolylineShape, RectangleShape, EllipseShape, TileShape, UnsupportedShape,
    decode_raw_tile_id, encode_raw_tile_id,
)
from .transforms import transform_points, transform_points_diag_first, translate_points, rotate_points
from .frames import TileFrame, enumerate_tile_frames
from .faces import Face, generate_face
from .mesh_assembler import MeshDocument, MeshGroup, build_mesh
from .union import PolygonUnion, ShapelyUnion
from .collision import (
    MergedLayerGeometry,
    merge_layer_collision,
    merge_object_group,
    default_transform_point,
    scaled_transform_point,
)
from .exporter import ExportResult, export_map

__version__ = "1.0.0"
__all__ = [
    # Configuration and diagnostics
    "ExportConfig",
    "PreviewConfig",
    "Diagnostics",
    "LoggingDiagnostics",
    "CollectingDiagnostics",
    "TileMeshError",
    "MissingTileError",
    "MissingImageError",
    "ConfigurationError",

    # Map model
    "Map",
    "Layer",
    "Tile",
    "TileImage",
    "Animation",
    "Frame",
    "ObjectGroup",
    "Properties",
    "PolygonShape",
    "PolylineShape",
    "RectangleShape",
    "EllipseShape",
    "TileShape",
    "UnsupportedShape",
    "decode_raw_tile_id",
    "encode_raw_tile_id",

    # Geometry
    "transform_points",
    "transform_points_diag_first",
    "translate_points",
    "rotate_points",

    # Mesh
    "TileFrame",
    "enumerate_tile_frames",
    "Face",
    "generate_face",
    "MeshDocument",
    "MeshGroup",
    "build_mesh",

    # Collision
    "PolygonUnion",
    "ShapelyUnion",
    "MergedLayerGeometry",
    "merge_layer_collision",
    "merge_object_group",
    "default_transform_point",
    "scaled_transform_point",

    # Export
    "ExportResult",
    "export_map",
]
