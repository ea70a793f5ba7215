"""Curve flattening — svgpathtools paths to closed vertex rings.

Each continuous sub-path becomes one implicitly closed ring. Bezier segments
are subdivided until their control polygon lies within the flattening
tolerance of the chord; arcs are sampled at a step that keeps the sagitta
below the tolerance.
"""

from __future__ import annotations

import logging
import math

import numpy as np
from svgpathtools import Arc, CubicBezier, Line, Path, QuadraticBezier, parse_path

from roimeasure.engine.config import DEFAULT_CONFIG
from roimeasure.utils.geometry import Vertices, as_vertices

logger = logging.getLogger(__name__)

# Hard stop for recursive Bezier subdivision (2^16 pieces per segment)
_MAX_SUBDIVISION_DEPTH = 16


class InvalidGeometryError(RuntimeError):
    """A path contains a segment that cannot be flattened."""


def _distance_to_chord(p: complex, start: complex, end: complex) -> float:
    chord = end - start
    length = abs(chord)
    if length < 1e-12:
        return abs(p - start)
    # |cross(chord, p - start)| / |chord|
    return abs((chord.conjugate() * (p - start)).imag) / length


def _flatten_bezier(seg, tolerance: float, out: list[complex], depth: int = 0) -> None:
    points = seg.bpoints()
    start, end = points[0], points[-1]
    flat = all(_distance_to_chord(p, start, end) <= tolerance for p in points[1:-1])
    if flat or depth >= _MAX_SUBDIVISION_DEPTH:
        out.append(end)
        return
    first, second = seg.split(0.5)
    _flatten_bezier(first, tolerance, out, depth + 1)
    _flatten_bezier(second, tolerance, out, depth + 1)


def _flatten_arc(seg: Arc, tolerance: float, out: list[complex]) -> None:
    radius = max(abs(seg.radius.real), abs(seg.radius.imag))
    sweep = math.radians(abs(seg.delta))
    if radius <= tolerance or sweep == 0:
        out.append(seg.end)
        return
    max_step = 2.0 * math.acos(1.0 - tolerance / radius)
    n = max(1, math.ceil(sweep / max_step))
    for t in np.linspace(0.0, 1.0, n + 1)[1:]:
        out.append(seg.point(float(t)))


def flatten_segments(path: Path) -> list[complex]:
    """Flatten one continuous path into its vertex sequence (start point included)."""
    tol = DEFAULT_CONFIG.flattening_tolerance
    if len(path) == 0:
        return []
    out: list[complex] = [path[0].start]
    for seg in path:
        if isinstance(seg, Line):
            out.append(seg.end)
        elif isinstance(seg, (QuadraticBezier, CubicBezier)):
            _flatten_bezier(seg, tol, out)
        elif isinstance(seg, Arc):
            _flatten_arc(seg, tol, out)
        else:
            raise InvalidGeometryError(
                f"Invalid segment {type(seg).__name__} in path - only lines, Beziers and arcs are allowed"
            )
    return out


def path_to_rings(path: Path) -> list[Vertices]:
    """Split a path into continuous sub-paths and flatten each into a closed ring.

    The closing vertex (equal to the first) is dropped since rings are
    implicitly closed. Sub-paths with no vertices are skipped.
    """
    rings: list[Vertices] = []
    for sub in path.continuous_subpaths():
        pts = flatten_segments(sub)
        if len(pts) > 1 and abs(pts[-1] - pts[0]) < 1e-9:
            pts = pts[:-1]
        if not pts:
            continue
        rings.append(as_vertices([(p.real, p.imag) for p in pts]))
    logger.debug("Flattened path into %d rings", len(rings))
    return rings


def svg_path_to_rings(d: str) -> list[Vertices]:
    """Parse SVG path data and flatten it into closed rings."""
    return path_to_rings(parse_path(d))

