"""Closed-shape statistics — area, perimeter, centroid, bounds and vertex count.

Works on a flattened shape: a sequence of implicitly closed sub-paths, each an
Nx2 vertex array. Sub-paths are combined with their sign, so a hole wound
opposite to its outer ring subtracts from the area and pulls the centroid
away from itself. Self-intersecting rings are not detected; the formulas are
applied as-is.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from roimeasure.engine.config import DEFAULT_CONFIG
from roimeasure.utils.geometry import Vertices, ring_perimeter, shoelace_terms


@dataclass(frozen=True)
class ClosedShapeStatistics:
    area: float = 0.0
    perimeter: float = 0.0
    n_vertices: int = 0
    # None when the combined signed area is degenerate
    centroid: tuple[float, float] | None = None
    # (xmin, ymin, xmax, ymax); NaN when there are no vertices
    bounds: tuple[float, float, float, float] = (math.nan, math.nan, math.nan, math.nan)

    @property
    def bounds_x(self) -> float:
        return self.bounds[0]

    @property
    def bounds_y(self) -> float:
        return self.bounds[1]

    @property
    def bounds_width(self) -> float:
        return self.bounds[2] - self.bounds[0]

    @property
    def bounds_height(self) -> float:
        return self.bounds[3] - self.bounds[1]

    @property
    def has_centroid(self) -> bool:
        return self.centroid is not None


def compute_shape_statistics(
    subpaths: Sequence[Vertices],
    pixel_width: float = 1.0,
    pixel_height: float = 1.0,
) -> ClosedShapeStatistics:
    """Compute statistics for a set of closed sub-paths.

    Coordinates are scaled by ``pixel_width`` along x and ``pixel_height``
    along y before any computation, which gives exact results for
    anisotropic calibration.

    Args:
        subpaths: Implicitly closed rings, each Nx2.
        pixel_width: Scale applied to x coordinates.
        pixel_height: Scale applied to y coordinates.

    Returns:
        ClosedShapeStatistics. An empty input yields zero area and
        perimeter with an undefined centroid.
    """
    scale = np.array([pixel_width, pixel_height], dtype=np.float64)

    area_sum = 0.0
    cx_sum = 0.0
    cy_sum = 0.0
    perimeter = 0.0
    n_vertices = 0
    xmin = ymin = math.inf
    xmax = ymax = -math.inf

    for ring in subpaths:
        if len(ring) == 0:
            continue
        pts = ring * scale if (pixel_width != 1.0 or pixel_height != 1.0) else ring
        n_vertices += len(pts)
        xmin = min(xmin, float(pts[:, 0].min()))
        ymin = min(ymin, float(pts[:, 1].min()))
        xmax = max(xmax, float(pts[:, 0].max()))
        ymax = max(ymax, float(pts[:, 1].max()))

        perimeter += ring_perimeter(pts)

        # Signed contributions; holes cancel against their outer rings
        terms = shoelace_terms(pts)
        x = pts[:, 0]
        y = pts[:, 1]
        area_sum += float(np.sum(terms))
        cx_sum += float(np.sum((x + np.roll(x, -1)) * terms))
        cy_sum += float(np.sum((y + np.roll(y, -1)) * terms))

    if n_vertices == 0:
        return ClosedShapeStatistics()

    signed = area_sum * 0.5
    centroid = None
    if abs(signed) > DEFAULT_CONFIG.centroid_area_epsilon:
        cx = cx_sum / (6.0 * signed)
        cy = cy_sum / (6.0 * signed)
        if math.isfinite(cx) and math.isfinite(cy):
            centroid = (cx, cy)

    return ClosedShapeStatistics(
        area=abs(signed),
        perimeter=perimeter,
        n_vertices=n_vertices,
        centroid=centroid,
        bounds=(xmin, ymin, xmax, ymax),
    )
