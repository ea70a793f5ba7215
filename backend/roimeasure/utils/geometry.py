"""Leaf-node vertex helpers. No engine imports.

Rings are Nx2 float arrays that are implicitly closed: the last vertex
connects back to the first and is not repeated.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

Vertices = NDArray[np.float64]


def as_vertices(points) -> Vertices:
    """Coerce a point sequence into a read-only Nx2 float array."""
    arr = np.array(points, dtype=np.float64)
    if arr.size == 0:
        arr = np.empty((0, 2), dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"Expected Nx2 vertices, got shape {arr.shape}")
    arr.setflags(write=False)
    return arr


def shoelace_terms(points: Vertices) -> NDArray[np.float64]:
    """Per-edge cross products x_i * y_{i+1} - x_{i+1} * y_i of a closed ring."""
    x = points[:, 0]
    y = points[:, 1]
    x_next = np.roll(x, -1)
    y_next = np.roll(y, -1)
    return x * y_next - x_next * y


def signed_area(points: Vertices) -> float:
    """Shoelace formula for signed area. Positive = CCW, Negative = CW."""
    if len(points) < 3:
        return 0.0
    return float(0.5 * np.sum(shoelace_terms(points)))


def winding_direction(points: Vertices) -> int:
    """Return 1 for CCW, -1 for CW, 0 if degenerate."""
    sa = signed_area(points)
    if sa > 0:
        return 1
    elif sa < 0:
        return -1
    return 0


def ring_perimeter(points: Vertices) -> float:
    """Sum of edge lengths, including the closing edge."""
    if len(points) < 2:
        return 0.0
    diffs = np.roll(points, -1, axis=0) - points
    return float(np.sum(np.hypot(diffs[:, 0], diffs[:, 1])))


def path_length(points: Vertices) -> float:
    """Length of an open polyline."""
    if len(points) < 2:
        return 0.0
    diffs = np.diff(points, axis=0)
    return float(np.sum(np.hypot(diffs[:, 0], diffs[:, 1])))


def bbox(points: Vertices) -> tuple[float, float, float, float]:
    """Compute (xmin, ymin, xmax, ymax) bounding box."""
    if len(points) == 0:
        return (0.0, 0.0, 0.0, 0.0)
    return (
        float(np.min(points[:, 0])),
        float(np.min(points[:, 1])),
        float(np.max(points[:, 0])),
        float(np.max(points[:, 1])),
    )


def centroid(points: Vertices) -> tuple[float, float]:
    """Compute the mean of a point set."""
    if len(points) == 0:
        return (float("nan"), float("nan"))
    return (float(np.mean(points[:, 0])), float(np.mean(points[:, 1])))


def winding_number(point: tuple[float, float], ring: Vertices) -> int:
    """Compute winding number of point w.r.t. a closed ring.

    Non-zero → point is inside the ring.
    """
    if len(ring) < 3:
        return 0
    px, py = point
    closed = np.vstack([ring, ring[:1]])
    x = closed[:, 0]
    y = closed[:, 1]

    wn = 0
    for i in range(len(ring)):
        cross = (x[i + 1] - x[i]) * (py - y[i]) - (px - x[i]) * (y[i + 1] - y[i])
        if y[i] <= py:
            # Upward crossing
            if y[i + 1] > py and cross > 0:
                wn += 1
        elif y[i + 1] <= py and cross < 0:
            # Downward crossing
            wn -= 1
    return wn
