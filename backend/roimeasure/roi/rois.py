"""Regions of interest — immutable point, line and area geometry.

ROIs compare and hash by identity: two instances with the same vertices are
different cache keys. Derived statistics are computed on first access and
kept for the lifetime of the instance, which is safe because the vertex
arrays are read-only and no operation mutates a ROI in place.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from functools import cached_property

from svgpathtools import Arc, Path

from roimeasure.engine.config import DEFAULT_CONFIG
from roimeasure.roi.flatten import path_to_rings, svg_path_to_rings
from roimeasure.roi.statistics import ClosedShapeStatistics, compute_shape_statistics
from roimeasure.utils.geometry import (
    Vertices,
    as_vertices,
    bbox,
    centroid,
    path_length,
    winding_number,
)
from roimeasure.utils.math_helpers import almost_the_same


@dataclass(frozen=True)
class ImagePlane:
    """z-slice and timepoint a ROI belongs to."""

    z: int = 0
    t: int = 0


DEFAULT_PLANE = ImagePlane()


@dataclass(frozen=True, eq=False, repr=False)
class ROI(ABC):
    plane: ImagePlane = field(default=DEFAULT_PLANE, kw_only=True)

    roi_name = "ROI"

    @property
    def is_point(self) -> bool:
        return False

    @property
    def is_line(self) -> bool:
        return False

    @property
    def is_area(self) -> bool:
        return False

    @property
    @abstractmethod
    def is_empty(self) -> bool: ...

    @property
    @abstractmethod
    def n_vertices(self) -> int: ...

    @property
    @abstractmethod
    def bounds(self) -> tuple[float, float, float, float]:
        """(x, y, width, height) in image pixels."""

    @property
    @abstractmethod
    def centroid_x(self) -> float: ...

    @property
    @abstractmethod
    def centroid_y(self) -> float: ...

    @abstractmethod
    def geometry(self) -> tuple[Vertices, ...]:
        """Vertex arrays: rings for areas, one polyline for lines, one point set for points."""

    @abstractmethod
    def translate(self, dx: float, dy: float) -> ROI: ...

    @abstractmethod
    def duplicate(self) -> ROI: ...

    @property
    def bounds_x(self) -> float:
        return self.bounds[0]

    @property
    def bounds_y(self) -> float:
        return self.bounds[1]

    @property
    def bounds_width(self) -> float:
        return self.bounds[2]

    @property
    def bounds_height(self) -> float:
        return self.bounds[3]

    @property
    def z(self) -> int:
        return self.plane.z

    @property
    def t(self) -> int:
        return self.plane.t

    def polygon_points(self) -> list[tuple[float, float]]:
        """All vertices as (x, y) tuples, sub-paths concatenated in order."""
        return [(float(x), float(y)) for arr in self.geometry() for x, y in arr]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(n_vertices={self.n_vertices}, bounds={self.bounds}, plane={self.plane})"


def _bounds_xywh(points: Vertices) -> tuple[float, float, float, float]:
    if len(points) == 0:
        return (math.nan, math.nan, math.nan, math.nan)
    xmin, ymin, xmax, ymax = bbox(points)
    return (xmin, ymin, xmax - xmin, ymax - ymin)


@dataclass(frozen=True, eq=False, repr=False)
class PointsROI(ROI):
    points: Vertices = field(default_factory=lambda: as_vertices([]))

    roi_name = "Points"

    def __post_init__(self) -> None:
        object.__setattr__(self, "points", as_vertices(self.points))

    @property
    def is_point(self) -> bool:
        return True

    @property
    def is_empty(self) -> bool:
        return len(self.points) == 0

    @property
    def n_vertices(self) -> int:
        return len(self.points)

    @cached_property
    def bounds(self) -> tuple[float, float, float, float]:
        return _bounds_xywh(self.points)

    @property
    def centroid_x(self) -> float:
        return centroid(self.points)[0]

    @property
    def centroid_y(self) -> float:
        return centroid(self.points)[1]

    def geometry(self) -> tuple[Vertices, ...]:
        return (self.points,)

    def translate(self, dx: float, dy: float) -> PointsROI:
        if dx == 0 and dy == 0:
            return self
        return PointsROI(self.points + (dx, dy), plane=self.plane)

    def duplicate(self) -> PointsROI:
        return PointsROI(self.points.copy(), plane=self.plane)


@dataclass(frozen=True, eq=False, repr=False)
class LineROI(ROI):
    """Open polyline."""

    vertices: Vertices = field(default_factory=lambda: as_vertices([]))

    roi_name = "Polyline"

    def __post_init__(self) -> None:
        object.__setattr__(self, "vertices", as_vertices(self.vertices))

    @property
    def is_line(self) -> bool:
        return True

    @property
    def is_empty(self) -> bool:
        return len(self.vertices) == 0

    @property
    def n_vertices(self) -> int:
        return len(self.vertices)

    @cached_property
    def length(self) -> float:
        return path_length(self.vertices)

    def scaled_length(self, pixel_width: float, pixel_height: float) -> float:
        return path_length(self.vertices * (pixel_width, pixel_height))

    @cached_property
    def bounds(self) -> tuple[float, float, float, float]:
        return _bounds_xywh(self.vertices)

    @property
    def centroid_x(self) -> float:
        return centroid(self.vertices)[0]

    @property
    def centroid_y(self) -> float:
        return centroid(self.vertices)[1]

    def geometry(self) -> tuple[Vertices, ...]:
        return (self.vertices,)

    def translate(self, dx: float, dy: float) -> LineROI:
        if dx == 0 and dy == 0:
            return self
        return LineROI(self.vertices + (dx, dy), plane=self.plane)

    def duplicate(self) -> LineROI:
        return LineROI(self.vertices.copy(), plane=self.plane)


@dataclass(frozen=True, eq=False, repr=False)
class AreaROI(ROI):
    """Area made of one or more implicitly closed sub-paths.

    Rings wound opposite to their enclosing ring are holes.
    """

    subpaths: tuple[Vertices, ...] = ()

    roi_name = "Area"

    def __post_init__(self) -> None:
        rings = tuple(as_vertices(r) for r in self.subpaths)
        object.__setattr__(self, "subpaths", tuple(r for r in rings if len(r) > 0))

    @property
    def is_area(self) -> bool:
        return True

    @property
    def is_empty(self) -> bool:
        return not self.subpaths or self.statistics.area == 0

    @cached_property
    def statistics(self) -> ClosedShapeStatistics:
        return compute_shape_statistics(self.subpaths)

    @property
    def area(self) -> float:
        return self.statistics.area

    @property
    def perimeter(self) -> float:
        return self.statistics.perimeter

    @property
    def n_vertices(self) -> int:
        return self.statistics.n_vertices

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        stats = self.statistics
        return (stats.bounds_x, stats.bounds_y, stats.bounds_width, stats.bounds_height)

    @property
    def centroid_x(self) -> float:
        c = self.statistics.centroid
        if c is None:
            return self.bounds_x + 0.5 * self.bounds_width
        return c[0]

    @property
    def centroid_y(self) -> float:
        c = self.statistics.centroid
        if c is None:
            return self.bounds_y + 0.5 * self.bounds_height
        return c[1]

    def scaled_area(self, pixel_width: float, pixel_height: float) -> float:
        """Area under anisotropic calibration.

        Near-equal scales use ``area * pw * ph``, an approximation when the
        scales are close but not identical.
        """
        if almost_the_same(pixel_width, pixel_height, DEFAULT_CONFIG.uniform_scale_tolerance):
            return self.area * pixel_width * pixel_height
        return compute_shape_statistics(self.subpaths, pixel_width, pixel_height).area

    def scaled_perimeter(self, pixel_width: float, pixel_height: float) -> float:
        if almost_the_same(pixel_width, pixel_height, DEFAULT_CONFIG.uniform_scale_tolerance):
            return self.perimeter * (pixel_width + pixel_height) * 0.5
        return compute_shape_statistics(self.subpaths, pixel_width, pixel_height).perimeter

    def contains(self, x: float, y: float) -> bool:
        """Nonzero winding test across all sub-paths."""
        xmin, ymin, w, h = self.bounds
        if self.is_empty or not (xmin <= x <= xmin + w and ymin <= y <= ymin + h):
            return False
        return sum(winding_number((x, y), ring) for ring in self.subpaths) != 0

    def geometry(self) -> tuple[Vertices, ...]:
        return self.subpaths

    def translate(self, dx: float, dy: float) -> AreaROI:
        if dx == 0 and dy == 0:
            return self
        return AreaROI(tuple(r + (dx, dy) for r in self.subpaths), plane=self.plane)

    def duplicate(self) -> AreaROI:
        return AreaROI(tuple(r.copy() for r in self.subpaths), plane=self.plane)


# ── Factories ──


def create_points(points: Iterable[tuple[float, float]], plane: ImagePlane = DEFAULT_PLANE) -> PointsROI:
    return PointsROI(list(points), plane=plane)


def create_line(
    x1: float, y1: float, x2: float, y2: float, plane: ImagePlane = DEFAULT_PLANE
) -> LineROI:
    return LineROI([(x1, y1), (x2, y2)], plane=plane)


def create_polyline(points: Iterable[tuple[float, float]], plane: ImagePlane = DEFAULT_PLANE) -> LineROI:
    return LineROI(list(points), plane=plane)


def create_polygon(points: Iterable[tuple[float, float]], plane: ImagePlane = DEFAULT_PLANE) -> AreaROI:
    return AreaROI((list(points),), plane=plane)


def create_area(
    rings: Sequence[Iterable[tuple[float, float]]], plane: ImagePlane = DEFAULT_PLANE
) -> AreaROI:
    """Area from explicit rings. Holes must be wound opposite to their outer ring."""
    return AreaROI(tuple(list(r) for r in rings), plane=plane)


def create_rectangle(
    x: float, y: float, width: float, height: float, plane: ImagePlane = DEFAULT_PLANE
) -> AreaROI:
    corners = [(x, y), (x + width, y), (x + width, y + height), (x, y + height)]
    return AreaROI((corners,), plane=plane)


def create_ellipse(
    x: float, y: float, width: float, height: float, plane: ImagePlane = DEFAULT_PLANE
) -> AreaROI:
    """Ellipse inscribed in the given bounds, flattened from two SVG arcs."""
    rx, ry = width / 2.0, height / 2.0
    if rx <= 0 or ry <= 0:
        return AreaROI((), plane=plane)
    cx, cy = x + rx, y + ry
    radius = complex(rx, ry)
    left, right = complex(cx - rx, cy), complex(cx + rx, cy)
    path = Path(
        Arc(left, radius, 0.0, False, True, right),
        Arc(right, radius, 0.0, False, True, left),
    )
    return AreaROI(tuple(path_to_rings(path)), plane=plane)


def create_area_from_svg_path(d: str, plane: ImagePlane = DEFAULT_PLANE) -> AreaROI:
    """Area from SVG path data; curves and arcs are flattened."""
    return AreaROI(tuple(svg_path_to_rings(d)), plane=plane)

