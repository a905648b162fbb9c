import logging
from dataclasses import dataclass, field
from typing import Dict

from .collision import (
    MergedLayerGeometry, ProgressFunc, TransformPointFunc,
    default_transform_point, merge_layer_collision, merge_object_group,
)
from .config import ExportConfig
from .diagnostics import Diagnostics, get_diagnostics
from .mesh_assembler import MeshDocument, build_mesh
from .model import Map
from .union import PolygonUnion, ShapelyUnion
from .utils import timed

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    mesh: MeshDocument
    layer_collisions: Dict[str, MergedLayerGeometry] = field(default_factory=dict)
    object_collisions: Dict[str, MergedLayerGeometry] = field(default_factory=dict)


@timed
def export_map(tmx_map: Map,
               config: ExportConfig | None = None,
               diagnostics: Diagnostics | None = None,
               transform_point: TransformPointFunc = default_transform_point,
               progress_cb: ProgressFunc | None = None,
               union: PolygonUnion | None = None) -> ExportResult:
    """
    Exports the mesh of a map and the merged collision of each visible layer and object group.

    Collision-only layers are left out of the mesh but still produce collision. Nothing is
    returned if any stage fails.
    """
    config = config or ExportConfig()
    diagnostics = get_diagnostics(diagnostics)
    union = union or ShapelyUnion(config.fill_rule)
    tmx_map.assign_unique_names()

    diagnostics.info(f"Exporting map '{tmx_map.name}'")
    mesh = build_mesh(tmx_map, config, diagnostics)

    layers = [layer for layer in tmx_map.layers if layer.visible]
    groups = [group for group in tmx_map.object_groups if group.visible]
    total = len(layers) + len(groups)
    done = 0

    def step_progress(fraction):
        if progress_cb and total:
            progress_cb((done + fraction) / total)

    layer_collisions = {}
    for layer in layers:
        merged = merge_layer_collision(tmx_map, layer, transform_point, step_progress, config, diagnostics, union)
        if not merged.is_empty:
            layer_collisions[layer.unique_name] = merged
        done += 1

    object_collisions = {}
    for group in groups:
        merged = merge_object_group(group, transform_point, step_progress, config, diagnostics, union)
        if not merged.is_empty:
            object_collisions[group.unique_name] = merged
        done += 1

    if progress_cb:
        progress_cb(1.0)
    diagnostics.info(f"Exported {mesh.face_count} faces, {len(layer_collisions)} collision layers "
                     f"and {len(object_collisions)} collision object groups")
    return ExportResult(mesh, layer_collisions, object_collisions)
