import logging

import trimesh
from shapely.geometry.polygon import orient
from shapely import affinity

from .collision import MergedLayerGeometry
from .utils import timed

logger = logging.getLogger(__name__)


@timed
def extrude_layer_geometry(merged: MergedLayerGeometry, depth: float, unit_scale: float = 1.0) -> trimesh.Trimesh:
    """
    Extrudes the closed paths of a merged layer into a solid collider, in mesh space
    (Y up, like the tile mesh). unit_scale converts the integer collision coordinates back
    into pixels when the paths were produced with a scaled transform.
    """
    meshes = []
    for polygon in merged.polygons():
        # Mirroring flips the winding; orient restores ccw shells
        polygon = orient(affinity.scale(polygon, xfact=unit_scale, yfact=-unit_scale, origin=(0, 0)), sign=1.0)
        if not polygon.is_valid or polygon.is_empty:
            logger.debug(f"Skipping invalid collider outline in '{merged.name}'")
            continue
        meshes.append(trimesh.creation.extrude_polygon(polygon, depth))
    return trimesh.util.concatenate(meshes) if meshes else trimesh.Trimesh()
