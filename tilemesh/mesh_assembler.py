import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Tuple

from .config import ExportConfig
from .diagnostics import Diagnostics
from .faces import Face, TexCoord, Vertex, generate_face
from .frames import enumerate_tile_frames
from .model import Layer, Map, decode_raw_tile_id
from .utils import timed, format_number

logger = logging.getLogger(__name__)

NORMAL = (0, 0, -1)
_INVALID_NAME_CHARS = re.compile(r'[^A-Za-z0-9_-]')


@dataclass
class MeshGroup:
    """Faces sharing one layer and one source image; one material downstream."""
    name: str
    layer_name: str
    image_path: str
    faces: List[Face] = field(default_factory=list)


@dataclass
class MeshDocument:
    vertices: List[Vertex]
    texture_coordinates: List[TexCoord]
    groups: List[MeshGroup]
    text: str

    @property
    def face_count(self) -> int:
        return sum(len(g.faces) for g in self.groups)


def iter_cells_in_draw_order(tmx_map: Map, layer: Layer) -> Iterator[Tuple[int, int, int]]:
    """Yields (x, y, raw_tile_id) for every non-empty cell, honouring the map's draw order."""
    rows = range(layer.height) if tmx_map.draw_order_vertical == 1 else reversed(range(layer.height))
    for y in rows:
        columns = range(layer.width) if tmx_map.draw_order_horizontal == 1 else reversed(range(layer.width))
        for x in columns:
            raw = layer.get_raw_tile_id_at(x, y)
            if decode_raw_tile_id(raw)[0] != 0:
                yield x, y, raw


def mesh_layers(tmx_map: Map, config: ExportConfig, diagnostics: Diagnostics | None = None) -> List[Layer]:
    """Visible layers that are not marked collision-only."""
    return [
        layer for layer in tmx_map.layers
        if layer.visible and not layer.is_collision_only(config.collision_only_property, diagnostics)
    ]


def enumerate_faces(tmx_map: Map, config: ExportConfig, diagnostics: Diagnostics | None = None) -> Iterator[Face]:
    bias = config.bias
    for layer in mesh_layers(tmx_map, config, diagnostics):
        for x, y, raw in iter_cells_in_draw_order(tmx_map, layer):
            tile_id, fd, fh, fv = decode_raw_tile_id(raw)
            tile = tmx_map.get_tile(tile_id, f"layer '{layer.name}' at ({x}, {y})")
            location = tmx_map.get_map_position_at(x, y)
            for frame in enumerate_tile_frames(tile, tmx_map):
                yield generate_face(layer.unique_name, location, frame, tmx_map.tile_height, fd, fh, fv, bias)


def sanitize_mesh_name(name: str) -> str:
    return _INVALID_NAME_CHARS.sub('_', name)


def group_faces(faces: Iterable[Face]) -> List[MeshGroup]:
    """Groups faces by (layer, image) in order of first appearance with unique, sanitized names."""
    groups: Dict[Tuple[str, str], MeshGroup] = {}
    used_names = set()
    for face in faces:
        key = (face.layer_name, face.image_path)
        group = groups.get(key)
        if group is None:
            base = sanitize_mesh_name(f"{face.layer_name}-{face.image_name}")
            name, n = base, 1
            while name in used_names:
                n += 1
                name = f"{base}_{n}"
            used_names.add(name)
            group = groups[key] = MeshGroup(name, face.layer_name, face.image_path)
        group.faces.append(face)
    return list(groups.values())


def render_obj(vertices, texture_coordinates, groups, header) -> str:
    """Renders indexed pools and grouped faces to Wavefront OBJ text (1-based indices)."""
    vertex_index = {v: i + 1 for i, v in enumerate(vertices)}
    texcoord_index = {t: i + 1 for i, t in enumerate(texture_coordinates)}

    lines = [f"# {header}", ""]

    lines.append(f"# Vertices (Count = {len(vertices)})")
    lines.extend(f"v {format_number(x)} {format_number(y)} {format_number(z)}" for x, y, z in vertices)
    lines.append("")

    lines.append(f"# Texture Coordinates (Count = {len(texture_coordinates)})")
    lines.extend(f"vt {format_number(u)} {format_number(v)}" for u, v in texture_coordinates)
    lines.append("")

    lines.append("# Normal")
    lines.append("vn " + " ".join(str(n) for n in NORMAL))
    lines.append("")

    lines.append(f"# Groups (Count = {len(groups)})")
    for group in groups:
        logger.debug(f"Writing '{group.name}' mesh group")
        lines.append(f"g {group.name}")
        for face in group.faces:
            refs = [
                f"{vertex_index[v]}/{texcoord_index[t]}/1"
                for v, t in zip(face.vertices, face.texture_coordinates)
            ]
            lines.append("f " + " ".join(refs))

    return "\n".join(lines) + "\n"


@timed
def build_mesh(tmx_map: Map, config: ExportConfig | None = None,
               diagnostics: Diagnostics | None = None) -> MeshDocument:
    """
    Builds the textured mesh for every visible, non collision-only layer of a map.

    Vertices and texture coordinates are deduplicated by exact value across the whole map,
    keeping first-insertion order so the same map always renders to the same text.
    Raises MissingTileError / MissingImageError before anything is returned.
    """
    config = config or ExportConfig()
    tmx_map.assign_unique_names()

    logger.info(f"Building face vertices for '{tmx_map.name}'")
    faces = []
    vertex_set: Dict[Vertex, None] = {}
    texcoord_set: Dict[TexCoord, None] = {}
    for face in enumerate_faces(tmx_map, config, diagnostics):
        faces.append(face)
        for v in face.vertices:
            vertex_set[v] = None
        for tc in face.texture_coordinates:
            texcoord_set[tc] = None

    vertices = list(vertex_set)
    texture_coordinates = list(texcoord_set)
    groups = group_faces(faces)

    text = render_obj(vertices, texture_coordinates, groups, config.header)
    logger.info(f"Done building mesh for '{tmx_map.name}': {len(vertices)} vertices, "
                f"{len(texture_coordinates)} texture coordinates, {len(groups)} groups")
    return MeshDocument(vertices, texture_coordinates, groups, text)
