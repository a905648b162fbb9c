from functools import reduce
from typing import List, Protocol, Sequence, Tuple

from shapely.geometry import GeometryCollection, MultiPolygon, Polygon
from shapely.geometry.polygon import orient
from shapely.ops import unary_union
from shapely.validation import make_valid

from .config import FILL_RULES
from .errors import ConfigurationError

IntPoint = Tuple[int, int]
Path = List[IntPoint]


class PolygonUnion(Protocol):
    """Boolean union of closed subject paths; open paths are passed through unmerged."""

    def union(self, closed_paths: Sequence[Path], open_paths: Sequence[Path] = ()) -> Tuple[List[Path], List[Path]]: ...


def _polygonal_parts(geom):
    if geom is None or geom.is_empty:
        return []
    if isinstance(geom, Polygon):
        return [geom]
    if isinstance(geom, (MultiPolygon, GeometryCollection)):
        parts = []
        for g in geom.geoms:
            parts.extend(_polygonal_parts(g))
        return parts
    return []


def _collinear(a, b, c) -> bool:
    return (b[0] - a[0]) * (c[1] - b[1]) - (b[1] - a[1]) * (c[0] - b[0]) == 0


def drop_collinear_points(path: Path) -> Path:
    """Removes vertices lying on the line through their neighbours, such as seams between tiles."""
    while len(path) > 3:
        kept = [pt for i, pt in enumerate(path) if not _collinear(path[i - 1], pt, path[(i + 1) % len(path)])]
        if len(kept) == len(path):
            break
        path = kept
    return path


def _ring_to_path(ring) -> Path:
    path = []
    # Rings repeat their first point at the end
    for x, y in list(ring.coords)[:-1]:
        pt = (int(round(x)), int(round(y)))
        if not path or path[-1] != pt:
            path.append(pt)
    if len(path) > 1 and path[0] == path[-1]:
        path.pop()
    return drop_collinear_points(path)


def polygons_to_paths(geom) -> List[Path]:
    """Flattens polygons into paths: each exterior followed by its holes, holes wound the other way."""
    polys = sorted(_polygonal_parts(geom), key=lambda p: (p.bounds[1], p.bounds[0]))
    paths = []
    for poly in polys:
        poly = orient(poly, sign=1.0)
        for ring in [poly.exterior, *poly.interiors]:
            path = _ring_to_path(ring)
            if len(path) >= 3:
                paths.append(path)
    return paths


def paths_to_polygons(paths: Sequence[Path]) -> List[Polygon]:
    """Rebuilds polygons from paths produced by polygons_to_paths (or any shell-then-holes listing)."""
    polygons = []
    shell, holes = None, []
    for path in paths:
        ring = Polygon(path).exterior
        if ring.is_ccw or shell is None:
            if shell is not None:
                polygons.append(Polygon(shell, holes))
            shell, holes = path, []
        else:
            holes.append(path)
    if shell is not None:
        polygons.append(Polygon(shell, holes))
    return polygons


class ShapelyUnion:
    """Union strategy backed by shapely (GEOS)."""

    def __init__(self, fill_rule: str = 'nonzero'):
        if fill_rule not in FILL_RULES:
            raise ConfigurationError(f"Unknown fill rule '{fill_rule}'")
        self.fill_rule = fill_rule

    def _subjects(self, closed_paths):
        subjects = []
        for path in closed_paths:
            if len(path) < 3:
                continue
            poly = Polygon(path)
            if not poly.is_valid:
                # Self-intersecting input, e.g. a bow tie
                subjects.extend(_polygonal_parts(make_valid(poly)))
            elif not poly.is_empty:
                subjects.append(poly)
        return subjects

    def union(self, closed_paths, open_paths=()):
        subjects = self._subjects(closed_paths)
        if not subjects:
            merged = None
        elif self.fill_rule == 'evenodd':
            merged = reduce(lambda a, b: a.symmetric_difference(b), subjects)
        else:
            merged = unary_union(subjects)
        return polygons_to_paths(merged), [list(p) for p in open_paths]
