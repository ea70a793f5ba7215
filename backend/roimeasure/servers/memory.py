"""In-memory tile source over a classifier output array.

Useful for scripting and tests: the whole classification or probability map
is held as one numpy array at the classifier's resolution and served as
tiles, with a tile cache that mirrors how a real source behaves.
"""

from __future__ import annotations

import logging
import math
import threading

import numpy as np
from numpy.typing import NDArray

from roimeasure.servers.types import (
    ChannelType,
    ImageChannel,
    PixelCalibration,
    RegionRequest,
    TileBuffer,
    TileReadError,
    TileRequest,
)

logger = logging.getLogger(__name__)


class InMemoryTileSource:
    """Tile source backed by a (H, W) class-index or (H, W, C) probability array.

    Args:
        data: Classifier output at ``downsample``. Every z-slice and
            timepoint serves the same data.
        channels: Output channels, in class-index order.
        channel_type: Semantic type of the output.
        downsample: Full-resolution pixels per array pixel.
        tile_size: Tile edge length in array pixels.
        pixel_calibration: Physical size of a full-resolution pixel.
        z_slices: Number of z-slices reported.
        timepoints: Number of timepoints reported.
    """

    def __init__(
        self,
        data: NDArray,
        channels: list[ImageChannel],
        channel_type: ChannelType = ChannelType.CLASSIFICATION,
        *,
        downsample: float = 1.0,
        tile_size: int = 256,
        pixel_calibration: PixelCalibration | None = None,
        z_slices: int = 1,
        timepoints: int = 1,
    ) -> None:
        if data.ndim not in (2, 3):
            raise ValueError(f"Expected a 2D or 3D array, got shape {data.shape}")
        if tile_size <= 0:
            raise ValueError(f"Tile size must be positive, got {tile_size}")
        if downsample <= 0:
            raise ValueError(f"Downsample must be positive, got {downsample}")

        self._data = data
        self._channels = list(channels)
        self._channel_type = channel_type
        self._downsample = float(downsample)
        self._tile_size = int(tile_size)
        self._calibration = pixel_calibration or PixelCalibration()
        self._z_slices = z_slices
        self._timepoints = timepoints

        self._cache: dict[RegionRequest, TileBuffer] = {}
        self._lock = threading.Lock()
        self.read_count = 0

        self._tiles = self._build_tiles()
        logger.debug(
            "InMemoryTileSource: %dx%d, %d channels, %d tiles",
            self.width,
            self.height,
            len(self._channels),
            len(self._tiles),
        )

    # ── Metadata ──

    @property
    def width(self) -> int:
        return int(round(self._data.shape[1] * self._downsample))

    @property
    def height(self) -> int:
        return int(round(self._data.shape[0] * self._downsample))

    @property
    def z_slice_count(self) -> int:
        return self._z_slices

    @property
    def timepoint_count(self) -> int:
        return self._timepoints

    @property
    def channels(self) -> list[ImageChannel]:
        return list(self._channels)

    @property
    def channel_type(self) -> ChannelType:
        return self._channel_type

    @property
    def pixel_calibration(self) -> PixelCalibration:
        return self._calibration

    def downsample_for_resolution_level(self, level: int) -> float:
        if level != 0:
            raise ValueError(f"Only resolution level 0 is available, got {level}")
        return self._downsample

    # ── Tiles ──

    def _build_tiles(self) -> list[TileRequest]:
        rows, cols = self._data.shape[:2]
        ds = self._downsample
        tiles = []
        for z in range(self._z_slices):
            for t in range(self._timepoints):
                for ty in range(0, rows, self._tile_size):
                    for tx in range(0, cols, self._tile_size):
                        tw = min(self._tile_size, cols - tx)
                        th = min(self._tile_size, rows - ty)
                        x = int(round(tx * ds))
                        y = int(round(ty * ds))
                        region = RegionRequest(
                            x,
                            y,
                            min(int(round((tx + tw) * ds)), self.width) - x,
                            min(int(round((ty + th) * ds)), self.height) - y,
                            z,
                            t,
                            ds,
                        )
                        tiles.append(TileRequest(region, tx, ty, tw, th))
        return tiles

    def enumerate_all_tiles(self) -> list[TileRequest]:
        return list(self._tiles)

    def enumerate_tiles_overlapping(self, region: RegionRequest) -> list[TileRequest]:
        return [tile for tile in self._tiles if tile.region.intersects(region)]

    def fetch_tile_if_cached(self, tile: TileRequest) -> TileBuffer | None:
        with self._lock:
            return self._cache.get(tile.region)

    def fetch_tile_blocking(self, region: RegionRequest) -> TileBuffer:
        with self._lock:
            cached = self._cache.get(region)
        if cached is not None:
            return cached
        pixels = self._read_region(region)
        with self._lock:
            self.read_count += 1
            self._cache[region] = pixels
        return pixels

    def _read_region(self, region: RegionRequest) -> TileBuffer:
        ds = region.downsample
        x = int(round(region.x / ds))
        y = int(round(region.y / ds))
        w = max(1, math.ceil(region.width / ds))
        h = max(1, math.ceil(region.height / ds))
        rows, cols = self._data.shape[:2]
        if x < 0 or y < 0 or x >= cols or y >= rows:
            raise TileReadError(f"Region {region} lies outside the image")
        pixels = np.array(self._data[y : y + h, x : x + w], copy=True)
        pixels.setflags(write=False)
        return pixels

    def prefetch(self, tiles: list[TileRequest] | None = None) -> int:
        """Read tiles into the cache. Returns the number of tiles now cached."""
        for tile in tiles if tiles is not None else self._tiles:
            self.fetch_tile_blocking(tile.region)
        with self._lock:
            return len(self._cache)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()
