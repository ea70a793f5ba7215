"""Shared test fixtures."""

from __future__ import annotations

import numpy as np
import pytest

from roimeasure.servers import ChannelType, ImageChannel, InMemoryTileSource, PixelCalibration


TWO_CLASSES = [ImageChannel("Tumor"), ImageChannel("Stroma")]

WITH_BACKGROUND = [
    ImageChannel("Background", is_transparent=True),
    ImageChannel("Tumor"),
    ImageChannel("Stroma"),
]

# 2000 µm x 1000 µm pixels at downsample 1 → exactly 2.0 mm^2 per pixel
TWO_MM2_CALIBRATION = PixelCalibration(pixel_width_microns=2000.0, pixel_height_microns=1000.0)


def split_labels(first: int, total: int = 100, width: int = 10) -> np.ndarray:
    """Class 0 for the first ``first`` pixels in raster order, class 1 after."""
    labels = np.ones(total, dtype=np.uint8)
    labels[:first] = 0
    return labels.reshape(-1, width)


def labels_with_background() -> np.ndarray:
    """10x10: 50 background, 25 tumor, 25 stroma."""
    flat = np.concatenate([np.zeros(50), np.ones(25), np.full(25, 2)]).astype(np.uint8)
    return flat.reshape(10, 10)


@pytest.fixture
def two_class_source() -> InMemoryTileSource:
    """Single 10x10 tile, 75% class 0 and 25% class 1, 2.0 mm^2 per pixel."""
    return InMemoryTileSource(
        split_labels(75),
        TWO_CLASSES,
        ChannelType.CLASSIFICATION,
        tile_size=16,
        pixel_calibration=TWO_MM2_CALIBRATION,
    )


@pytest.fixture
def background_source() -> InMemoryTileSource:
    return InMemoryTileSource(labels_with_background(), WITH_BACKGROUND, tile_size=16)


@pytest.fixture
def tiled_source() -> InMemoryTileSource:
    """20x20 all class 1, served as 8x8 tiles (3x3 grid, edge tiles 4 wide)."""
    return InMemoryTileSource(np.ones((20, 20), dtype=np.uint8), TWO_CLASSES, tile_size=8)
