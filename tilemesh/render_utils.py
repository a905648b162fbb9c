import io
import math
from PIL import Image
import matplotlib
matplotlib.use('Agg')
from matplotlib import pyplot as plt
from matplotlib import patheffects
from matplotlib.path import Path
from matplotlib.patches import PathPatch, Rectangle, Ellipse, Polygon as PolygonPatch

from .collision import merge_layer_collision, circle_points, shape_to_object_space
from .config import ExportConfig, PreviewConfig
from .diagnostics import Diagnostics, get_diagnostics
from .model import (
    Map, Shape, PolygonShape, PolylineShape, RectangleShape, EllipseShape, TileShape,
    decode_raw_tile_id, shape_world_bounds,
)
from .utils import timed

DPI = 100
DEFAULT_LAYER_COLORS = [tuple(int(c * 255) for c in rgb) for rgb in plt.get_cmap('tab10').colors]


def _rgb(color, alpha=1.0):
    return color[0] / 255.0, color[1] / 255.0, color[2] / 255.0, alpha


def calculate_boundary(tmx_map: Map, preview: PreviewConfig):
    """Map rectangle united with every collider, inflated by one tile plus the grid marker size."""
    minx, miny = 0.0, 0.0
    maxx, maxy = tmx_map.pixel_size

    bounds = []
    for group in tmx_map.object_groups:
        if group.visible and preview.is_layer_enabled(group.name):
            bounds.extend(shape_world_bounds(obj) for obj in group.objects if obj.visible)

    for layer in tmx_map.layers:
        if not (layer.visible and preview.is_layer_enabled(layer.name)):
            continue
        for y in range(layer.height):
            for x in range(layer.width):
                tile_id = decode_raw_tile_id(layer.get_raw_tile_id_at(x, y))[0]
                if tile_id == 0:
                    continue
                tile = tmx_map.get_tile(tile_id)
                xpos, ypos = tmx_map.get_map_position_at(x, y)
                ypos += tmx_map.tile_height - tile.height
                for shape in tile.shapes:
                    bx0, by0, bx1, by1 = shape_world_bounds(shape)
                    bounds.append((bx0 + xpos, by0 + ypos, bx1 + xpos, by1 + ypos))

    for bx0, by0, bx1, by1 in bounds:
        minx, miny = min(minx, bx0), min(miny, by0)
        maxx, maxy = max(maxx, bx1), max(maxy, by1)

    pad_x = tmx_map.tile_width + preview.grid_size
    pad_y = tmx_map.tile_height + preview.grid_size
    return minx - pad_x, miny - pad_y, maxx + pad_x, maxy + pad_y


def preview_canvas_size(bounds, preview: PreviewConfig, diagnostics: Diagnostics | None = None):
    """Pixel size of the preview; falls back to a fixed square when the scale makes it too big."""
    minx, miny, maxx, maxy = bounds
    width = int(math.ceil((maxx - minx) * preview.scale)) + 1
    height = int(math.ceil((maxy - miny) * preview.scale)) + 1
    if width > preview.max_side or height > preview.max_side:
        get_diagnostics(diagnostics).warn("Cannot preview at this scale. Try a lower scale.")
        return preview.fallback_size, preview.fallback_size
    return width, height


def preview_view_bounds(bounds, canvas_size, scale):
    """World-space area shown on a canvas at a fixed scale, anchored at the top-left of bounds."""
    minx, miny, _, _ = bounds
    width, height = canvas_size
    return minx, miny, minx + width / scale, miny + height / scale


def _closed_path(paths):
    verts, codes = [], []
    for points in paths:
        verts += list(points) + [points[0]]
        codes += [Path.MOVETO] + [Path.LINETO] * (len(points) - 1) + [Path.CLOSEPOLY]
    return Path(verts, codes)


def _open_path(paths):
    verts, codes = [], []
    for points in paths:
        verts += list(points)
        codes += [Path.MOVETO] + [Path.LINETO] * (len(points) - 1)
    return Path(verts, codes)


def _draw_label(ax, text, x, y):
    ax.text(x, y, text, fontsize=7, color='white', va='top',
            path_effects=[patheffects.withStroke(linewidth=2, foreground='black')])


def draw_grid(ax, tmx_map: Map, bounds, grid_size):
    width, height = tmx_map.pixel_size
    # A full white background so colliders stand out
    ax.add_patch(Rectangle((0, 0), width, height, facecolor='white', edgecolor='none'))

    tw, th = tmx_map.tile_width, tmx_map.tile_height
    minx, miny, maxx, maxy = bounds
    x = round(minx / tw) * tw
    while x <= maxx:
        y = round(miny / th) * th
        while y <= maxy:
            ax.add_patch(Rectangle((x - grid_size * 0.5, y - grid_size * 0.5), grid_size, grid_size,
                                   facecolor='white', edgecolor='black', linewidth=0.5))
            y += th
        x += tw


def draw_layer_colliders(ax, tmx_map: Map, layer, color, config, diagnostics):
    merged = merge_layer_collision(tmx_map, layer, config=config, diagnostics=diagnostics)
    if merged.closed_paths:
        ax.add_patch(PathPatch(_closed_path(merged.closed_paths), facecolor=_rgb(color, 0.5),
                               edgecolor=_rgb(color), hatch='//', linewidth=1))
    if merged.open_paths:
        ax.add_patch(PathPatch(_open_path(merged.open_paths), fill=False, edgecolor=_rgb(color), linewidth=1))
    return merged


def draw_object_collider(ax, obj: Shape, color, config: ExportConfig, diagnostics: Diagnostics):
    face, edge = _rgb(color, 0.5), _rgb(color)
    if isinstance(obj, (PolygonShape, RectangleShape, TileShape)):
        points = shape_to_object_space(obj, obj.local_points())
        ax.add_patch(PolygonPatch(points, closed=True, facecolor=face, edgecolor=edge, hatch='\\\\'))
    elif isinstance(obj, PolylineShape):
        points = shape_to_object_space(obj, obj.local_points())
        ax.plot(points[:, 0], points[:, 1], color=edge, linewidth=1)
    elif isinstance(obj, EllipseShape):
        if obj.is_circle():
            points = shape_to_object_space(obj, circle_points(obj.width * 0.5, config.circle_segments))
            ax.add_patch(PolygonPatch(points, closed=True, facecolor=face, edgecolor=edge, hatch='\\\\'))
        else:
            # Ellipses are not supported as colliders
            center = shape_to_object_space(obj, [(obj.width * 0.5, obj.height * 0.5)])[0]
            ax.add_patch(Ellipse(center, obj.width, obj.height, angle=obj.rotation,
                                 facecolor='red', edgecolor='white'))
            _draw_label(ax, f" Not a circle: {obj.display_name}", center[0], center[1])
    else:
        minx, miny, maxx, maxy = shape_world_bounds(obj)
        ax.add_patch(Rectangle((minx, miny), maxx - minx, maxy - miny, facecolor='red', edgecolor='white'))
        message = f"Unhandled object: {obj.display_name}"
        _draw_label(ax, message, minx, miny)
        diagnostics.warn(message)


@timed
def render_preview(tmx_map: Map, preview: PreviewConfig | None = None,
                   config: ExportConfig | None = None,
                   diagnostics: Diagnostics | None = None,
                   progress_cb=None) -> Image.Image:
    """
    Renders the merged colliders of a map to a PIL image for on-screen preview.

    Tile layers show their merged collision (hatched fill, open paths as strokes); object
    groups show their objects individually in the group colour.
    """
    preview = preview or PreviewConfig()
    config = config or ExportConfig()
    diagnostics = get_diagnostics(diagnostics)
    tmx_map.assign_unique_names()

    bounds = calculate_boundary(tmx_map, preview)
    render_w, render_h = preview_canvas_size(bounds, preview, diagnostics)
    # A fallback canvas crops the view instead of stretching it
    view = preview_view_bounds(bounds, (render_w, render_h), preview.scale)
    minx, miny, maxx, maxy = view

    fig = plt.figure(figsize=(render_w / DPI, render_h / DPI), dpi=DPI)
    ax = fig.add_axes([0, 0, 1, 1])
    ax.set_axis_off()
    fig.patch.set_facecolor('whitesmoke')
    ax.set_xlim(minx, maxx)
    ax.set_ylim(maxy, miny)  # pixel space points down

    draw_grid(ax, tmx_map, view, preview.grid_size)

    layers = [l for l in tmx_map.layers if l.visible and preview.is_layer_enabled(l.name)]
    groups = [g for g in tmx_map.object_groups if g.visible and preview.is_layer_enabled(g.name)]
    total = len(layers) + len(groups)
    for current, layer in enumerate(layers):
        color = preview.layer_colors.get(layer.name, DEFAULT_LAYER_COLORS[current % len(DEFAULT_LAYER_COLORS)])
        draw_layer_colliders(ax, tmx_map, layer, color, config, diagnostics)
        if progress_cb:
            progress_cb((current + 1) / total)

    for current, group in enumerate(groups, start=len(layers)):
        color = preview.layer_colors.get(group.name, group.color)
        for obj in group.objects:
            if obj.visible:
                draw_object_collider(ax, obj, color, config, diagnostics)
        if progress_cb:
            progress_cb((current + 1) / total)

    buf = io.BytesIO()
    fig.savefig(buf, format='png', dpi=DPI, facecolor=fig.get_facecolor(), edgecolor='none')
    plt.close(fig)
    buf.seek(0)

    img = Image.open(buf)
    if img.mode != 'RGBA':
        img = img.convert('RGBA')
    if img.size != (render_w, render_h):
        img = img.resize((render_w, render_h), Image.Resampling.NEAREST)
    return img
