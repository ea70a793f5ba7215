"""Region-of-interest geometry and closed-shape statistics."""

from roimeasure.roi.flatten import InvalidGeometryError
from roimeasure.roi.rois import (
    DEFAULT_PLANE,
    ROI,
    AreaROI,
    ImagePlane,
    LineROI,
    PointsROI,
    create_area,
    create_area_from_svg_path,
    create_ellipse,
    create_line,
    create_points,
    create_polygon,
    create_polyline,
    create_rectangle,
)
from roimeasure.roi.statistics import ClosedShapeStatistics, compute_shape_statistics

__all__ = [
    "DEFAULT_PLANE",
    "ROI",
    "AreaROI",
    "ClosedShapeStatistics",
    "ImagePlane",
    "InvalidGeometryError",
    "LineROI",
    "PointsROI",
    "compute_shape_statistics",
    "create_area",
    "create_area_from_svg_path",
    "create_ellipse",
    "create_line",
    "create_points",
    "create_polygon",
    "create_polyline",
    "create_rectangle",
]
