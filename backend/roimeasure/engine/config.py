"""Measurement configuration — fixed numeric policy shared by the engines."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MeasurementConfig:
    """Numeric policy constants. Not runtime-tunable."""

    # Max distance (image pixels) between a curve and its flattened chords
    flattening_tolerance: float = 0.5

    # Relative tolerance for treating pixel width/height as equal
    uniform_scale_tolerance: float = 0.0001

    # Below this |signed area| the centroid is undefined
    centroid_area_epsilon: float = 1e-10

    # Prefix for every measurement name
    measurement_prefix: str = "Classifier: "


DEFAULT_CONFIG = MeasurementConfig()
