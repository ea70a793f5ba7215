"""Rasterization utilities — ROI geometry to a binary mask aligned with one tile.

Image coordinates map to tile pixels via ``coord / downsample - tile_x``.
A pixel is on when its center lies inside the filled shape, matching the
usual raster fill convention.
"""

from __future__ import annotations

import math
import threading
from collections.abc import Iterable, Sequence

import numpy as np
from numpy.typing import NDArray
from shapely.geometry import LineString
from skimage.draw import polygon as draw_polygon

from roimeasure.servers.types import TileRequest
from roimeasure.utils.geometry import Vertices, winding_direction

# skimage samples integer coordinates; pixel (c, r) has its center at (c + 0.5, r + 0.5).
# skimage also keeps samples lying on the boundary, so sampling a hair right of and
# below the center gives the top-left rule: a center on a left or top edge is
# inside, one on a right or bottom edge is outside.
_SAMPLE_EPSILON = 1e-6
_PIXEL_CENTER_OFFSET = 0.5 + _SAMPLE_EPSILON

# Stroke half-width in tile pixels: the full stroke spans one downsampled pixel
_LINE_HALF_WIDTH = 0.5


class ScratchMask(threading.local):
    """Per-thread reusable mask buffer.

    Each thread sees its own buffer, so the fill loop needs no locking. The
    buffer only grows; it is reallocated when too small or of the wrong dtype.
    """

    def __init__(self) -> None:
        self.buffer: NDArray[np.uint8] | None = None

    def acquire(self, height: int, width: int) -> NDArray[np.uint8]:
        """Return a cleared ``height`` x ``width`` view of this thread's buffer."""
        buf = self.buffer
        if buf is None or buf.dtype != np.uint8 or buf.shape[0] < height or buf.shape[1] < width:
            buf = np.zeros((height, width), dtype=np.uint8)
            self.buffer = buf
        else:
            # Stale pixels from an earlier, larger tile would corrupt counts
            buf.fill(0)
        return buf[:height, :width]


def to_tile_pixels(points: Vertices, tile: TileRequest) -> NDArray[np.float64]:
    """Map image coordinates into the tile's pixel space."""
    # The tile pixel grid starts at tile_x * downsample, which region.x rounds
    origin = np.array([tile.tile_x, tile.tile_y], dtype=np.float64) * tile.downsample
    return (points - origin) / tile.downsample


def _fill_rings(mask: NDArray[np.uint8], rings: Iterable[tuple[NDArray[np.float64], int]]) -> None:
    """Fill signed rings with the nonzero winding rule.

    Each ring adds its sign to the pixels it covers; holes wound against
    their outer ring cancel back to zero.
    """
    winding = np.zeros(mask.shape, dtype=np.int32)
    for ring, sign in rings:
        if sign == 0 or len(ring) < 3:
            continue
        rr, cc = draw_polygon(
            ring[:, 1] - _PIXEL_CENTER_OFFSET,
            ring[:, 0] - _PIXEL_CENTER_OFFSET,
            shape=mask.shape,
        )
        winding[rr, cc] += sign
    mask[winding != 0] = 1


def rasterize_area(mask: NDArray[np.uint8], subpaths: Sequence[Vertices], tile: TileRequest) -> None:
    rings = []
    for ring in subpaths:
        local = to_tile_pixels(ring, tile)
        rings.append((local, winding_direction(local)))
    _fill_rings(mask, rings)


def rasterize_line(mask: NDArray[np.uint8], vertices: Vertices, tile: TileRequest) -> None:
    """Stroke a polyline one downsampled pixel wide (square caps, mitre joins)."""
    local = to_tile_pixels(vertices, tile)
    if len(local) < 2:
        rasterize_points(mask, vertices, tile)
        return
    stroke = LineString(local).buffer(_LINE_HALF_WIDTH, cap_style="square", join_style="mitre")
    if stroke.is_empty:
        return

    rings = []
    for poly in getattr(stroke, "geoms", [stroke]):
        rings.append((np.asarray(poly.exterior.coords), 1))
        for interior in poly.interiors:
            rings.append((np.asarray(interior.coords), -1))
    _fill_rings(mask, rings)


def rasterize_points(mask: NDArray[np.uint8], points: Vertices, tile: TileRequest) -> None:
    """Set the pixel under each point; points outside the tile are skipped."""
    h, w = mask.shape
    for x, y in to_tile_pixels(points, tile):
        col = math.floor(x)
        row = math.floor(y)
        if 0 <= col < w and 0 <= row < h:
            mask[row, col] = 1


def rasterize_roi(
    mask: NDArray[np.uint8],
    roi,
    tile: TileRequest,
    geometry: Sequence[Vertices] | None = None,
) -> NDArray[np.uint8]:
    """Draw ``roi`` into a cleared tile-sized mask.

    Args:
        mask: Cleared uint8 buffer with the tile's pixel shape.
        roi: Point, line or area ROI.
        tile: Tile that defines the origin and downsample.
        geometry: Pre-resolved ``roi.geometry()``, to avoid re-resolving per tile.

    Returns:
        The same mask, with covered pixels set to 1.
    """
    shape = geometry if geometry is not None else roi.geometry()
    if roi.is_area:
        rasterize_area(mask, shape, tile)
    elif roi.is_line:
        rasterize_line(mask, shape[0], tile)
    elif roi.is_point:
        rasterize_points(mask, shape[0], tile)
    return mask
