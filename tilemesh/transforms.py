"""
Point-set transforms shared by the face generator, the collision merger and the preview.

All functions accept any sequence of (x, y) pairs (or an (N, 2) array) and return a new
float64 array of shape (N, 2); the input is never modified.

Two flip orderings exist on purpose. Tiled applies a cell's flips to the tile image as
"swap, then mirror X, then mirror Y" (``transform_points_diag_first``), which is what the
texture coordinates need. Destination geometry (quads, collision shapes) needs the inverse
of that, "mirror X, mirror Y, then swap" (``transform_points``). The two differ whenever the
diagonal flag is combined with exactly one of the mirrors.
"""

import math

import numpy as np


def as_points(points) -> np.ndarray:
    return np.array(points, dtype=np.float64).reshape(-1, 2)


def to_tuples(points):
    """Converts a point array back to a list of plain (x, y) float tuples."""
    return [tuple(p) for p in as_points(points).tolist()]


def transform_points(points, center, diagonal=False, horizontal=False, vertical=False) -> np.ndarray:
    """Mirrors X if horizontal, mirrors Y if vertical, then swaps X/Y if diagonal, all about center."""
    center = np.asarray(center, dtype=np.float64)
    local = as_points(points) - center
    if horizontal:
        local[:, 0] = -local[:, 0]
    if vertical:
        local[:, 1] = -local[:, 1]
    if diagonal:
        local = local[:, ::-1]
    return local + center


def transform_points_diag_first(points, center, diagonal=False, horizontal=False, vertical=False) -> np.ndarray:
    """Swaps X/Y if diagonal, then mirrors X if horizontal, then mirrors Y if vertical, all about center."""
    center = np.asarray(center, dtype=np.float64)
    local = as_points(points) - center
    if diagonal:
        local = local[:, ::-1].copy()
    if horizontal:
        local[:, 0] = -local[:, 0]
    if vertical:
        local[:, 1] = -local[:, 1]
    return local + center


def translate_points(points, offset) -> np.ndarray:
    return as_points(points) + np.asarray(offset, dtype=np.float64)


def rotate_points(points, degrees, origin=(0.0, 0.0)) -> np.ndarray:
    """Rotates points about origin; positive degrees turn clockwise on a y-down screen."""
    pts = as_points(points)
    if degrees == 0:
        return pts
    origin = np.asarray(origin, dtype=np.float64)
    radians = math.radians(degrees)
    cos_r, sin_r = math.cos(radians), math.sin(radians)
    rotation = np.array([[cos_r, -sin_r], [sin_r, cos_r]])
    return (pts - origin) @ rotation.T + origin
