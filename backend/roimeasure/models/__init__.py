"""Data models returned to callers."""

from roimeasure.models.measurements import MeasurementList
from roimeasure.models.objects import PathObject

__all__ = ["MeasurementList", "PathObject"]
