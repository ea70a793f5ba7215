"""ROI pixel classification measurements and closed-shape statistics."""

from roimeasure.engine.cache import clear_measurement_cache
from roimeasure.engine.measurement_manager import PixelClassificationMeasurementManager
from roimeasure.models import MeasurementList, PathObject
from roimeasure.roi import (
    AreaROI,
    ImagePlane,
    LineROI,
    PointsROI,
    create_area,
    create_ellipse,
    create_line,
    create_points,
    create_polygon,
    create_rectangle,
)
from roimeasure.servers import ChannelType, ImageChannel, InMemoryTileSource, PixelCalibration

__all__ = [
    "AreaROI",
    "ChannelType",
    "ImageChannel",
    "ImagePlane",
    "InMemoryTileSource",
    "LineROI",
    "MeasurementList",
    "PathObject",
    "PixelCalibration",
    "PixelClassificationMeasurementManager",
    "PointsROI",
    "clear_measurement_cache",
    "create_area",
    "create_ellipse",
    "create_line",
    "create_points",
    "create_polygon",
    "create_rectangle",
]
