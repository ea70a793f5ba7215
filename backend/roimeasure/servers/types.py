"""Type definitions for the tile source layer.

A tile source serves the output of a pixel classifier as fixed-size raster
tiles. Region and tile coordinates are full-resolution image pixels; tile
pixel buffers are at the tile's downsample.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from roimeasure.roi.rois import ROI


class ChannelType(enum.Enum):
    CLASSIFICATION = "classification"
    PROBABILITY = "probability"
    FEATURE = "feature"


class TileReadError(OSError):
    """A tile could not be read or decoded."""


@dataclass(frozen=True)
class ImageChannel:
    """Output channel of a classifier.

    Transparent channels (e.g. background or ignore classes) keep a
    histogram slot but are left out of percentages and areas.
    """

    name: str
    is_transparent: bool = False


@dataclass(frozen=True)
class PixelCalibration:
    """Physical pixel size in microns. NaN when unknown."""

    pixel_width_microns: float = math.nan
    pixel_height_microns: float = math.nan

    @property
    def has_pixel_size_microns(self) -> bool:
        w, h = self.pixel_width_microns, self.pixel_height_microns
        return math.isfinite(w) and math.isfinite(h) and w > 0 and h > 0


@dataclass(frozen=True)
class RegionRequest:
    """Rectangle in full-resolution image pixels on one plane, read at ``downsample``."""

    x: int
    y: int
    width: int
    height: int
    z: int = 0
    t: int = 0
    downsample: float = 1.0

    @classmethod
    def for_roi(cls, roi: ROI, downsample: float) -> RegionRequest:
        """Smallest integer region covering the ROI bounds.

        Always at least one pixel wide and high so points and axis-aligned
        lines still hit a tile. Line ROIs are padded by one downsampled pixel
        on every side since their stroke extends beyond the vertices. Point
        ROIs end one pixel past the floor of their max bound, so a point on
        an integer max coordinate keeps the pixel it maps to.
        """
        bx, by, bw, bh = roi.bounds
        pad = math.ceil(downsample) if roi.is_line else 0
        x = math.floor(bx) - pad
        y = math.floor(by) - pad
        if roi.is_point:
            x2 = math.floor(bx + bw) + 1
            y2 = math.floor(by + bh) + 1
        else:
            x2 = max(math.ceil(bx + bw) + pad, x + 1)
            y2 = max(math.ceil(by + bh) + pad, y + 1)
        return cls(x, y, x2 - x, y2 - y, roi.z, roi.t, downsample)

    def intersects(self, other: RegionRequest) -> bool:
        if self.z != other.z or self.t != other.t:
            return False
        return (
            self.x < other.x + other.width
            and other.x < self.x + self.width
            and self.y < other.y + other.height
            and other.y < self.y + self.height
        )


@dataclass(frozen=True)
class TileRequest:
    """One tile of a tile source: its image-space region and pixel geometry."""

    region: RegionRequest
    # Position and size of the tile in downsampled pixels
    tile_x: int
    tile_y: int
    tile_width: int
    tile_height: int

    @property
    def downsample(self) -> float:
        return self.region.downsample

    @property
    def image_x(self) -> int:
        return self.region.x

    @property
    def image_y(self) -> int:
        return self.region.y

    @property
    def z(self) -> int:
        return self.region.z

    @property
    def t(self) -> int:
        return self.region.t


TileBuffer = NDArray[np.generic]


@runtime_checkable
class TileSource(Protocol):
    """Protocol for classifier output served as tiles.

    Implementations must hash by identity; measurement caches are keyed
    weakly on the source object.
    """

    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    @property
    def z_slice_count(self) -> int: ...

    @property
    def timepoint_count(self) -> int: ...

    @property
    def channels(self) -> list[ImageChannel]: ...

    @property
    def channel_type(self) -> ChannelType: ...

    @property
    def pixel_calibration(self) -> PixelCalibration: ...

    def downsample_for_resolution_level(self, level: int) -> float: ...

    def enumerate_all_tiles(self) -> list[TileRequest]: ...

    def enumerate_tiles_overlapping(self, region: RegionRequest) -> list[TileRequest]: ...

    def fetch_tile_if_cached(self, tile: TileRequest) -> TileBuffer | None:
        """Return the tile pixels only if already cached; never blocks."""
        ...

    def fetch_tile_blocking(self, region: RegionRequest) -> TileBuffer:
        """Read pixels for a tile region, blocking if necessary.

        Raises:
            TileReadError: If the tile cannot be read or decoded.
        """
        ...
