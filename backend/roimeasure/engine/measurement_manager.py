"""Pixel classification measurements for ROIs over a tiled classifier output.

For each ROI the manager fetches every tile the ROI touches, rasterizes the
ROI into a tile-aligned mask, counts the classified pixels under the mask,
and turns the per-channel counts into percentage and area measurements.

Consistency rule: a measurement list is only produced when every required
tile is available. One missing or unreadable tile yields ``None`` and
nothing is cached.
"""

from __future__ import annotations

import logging
import math
import threading
import time

from roimeasure.engine.cache import MeasurementCache, get_measurement_cache
from roimeasure.engine.config import DEFAULT_CONFIG
from roimeasure.engine.histogram import ClassHistogram, count_classification, count_probability
from roimeasure.models.measurements import MeasurementList
from roimeasure.roi.rois import DEFAULT_PLANE, ROI, create_rectangle
from roimeasure.servers.types import (
    ChannelType,
    PixelCalibration,
    RegionRequest,
    TileBuffer,
    TileRequest,
    TileSource,
)
from roimeasure.utils.rasterizer import ScratchMask, rasterize_roi

logger = logging.getLogger(__name__)


def pixel_area_for(calibration: PixelCalibration, downsample: float) -> tuple[float, str]:
    """Area of one classifier pixel and its unit label.

    Calibrated sources report mm^2 (pixel sizes are in microns); otherwise
    the area is in full-resolution px^2.
    """
    if calibration.has_pixel_size_microns:
        scale = downsample / 1000.0
        area = (calibration.pixel_width_microns * scale) * (calibration.pixel_height_microns * scale)
        return area, "mm^2"
    return downsample * downsample, "px^2"


class PixelClassificationMeasurementManager:
    """Computes and caches classifier measurements for ROIs on one tile source.

    Computations are serialized per manager: concurrent callers wait for the
    running computation, then re-check the cache before doing any work.
    """

    def __init__(self, source: TileSource, cache: MeasurementCache | None = None) -> None:
        self._source = source
        self._cache = cache if cache is not None else get_measurement_cache()
        self._cache.roi_map(source)

        self._lock = threading.RLock()
        self._scratch = ScratchMask()
        self._measurement_names: tuple[str, ...] | None = None

        self._requested_downsample = source.downsample_for_resolution_level(0)
        self._pixel_area, self._pixel_area_units = pixel_area_for(
            source.pixel_calibration, self._requested_downsample
        )

        # The root object is only measurable on single-plane images
        self._root_roi: ROI | None = None
        if source.z_slice_count == 1 and source.timepoint_count == 1:
            self._root_roi = create_rectangle(0, 0, source.width, source.height, DEFAULT_PLANE)

        # Fixes the measurement names and their order
        self._build_measurements(ClassHistogram.empty(source.channels))

    @property
    def source(self) -> TileSource:
        return self._source

    @property
    def pixel_area(self) -> float:
        return self._pixel_area

    @property
    def pixel_area_units(self) -> str:
        return self._pixel_area_units

    @property
    def root_roi(self) -> ROI | None:
        return self._root_roi

    def get_measurement_names(self) -> list[str]:
        return list(self._measurement_names or ())

    def get_measurement_value(self, obj, name: str, cached_only: bool = False) -> float | None:
        """Value of one measurement for a ROI or an object carrying one.

        Objects without a ROI, and the root object, are measured over the
        whole image. Returns None if the name is unknown or the measurement
        cannot be computed (see ``calculate_measurements``).
        """
        if obj is None:
            return None
        if isinstance(obj, ROI):
            roi = obj
        else:
            roi = getattr(obj, "roi", None)
            if roi is None or getattr(obj, "is_root", False):
                roi = self._root_roi

        ml = self.calculate_measurements(roi, cached_only)
        if ml is None:
            return None
        return ml.get(name)

    def calculate_measurements(self, roi: ROI | None, cached_only: bool = False) -> MeasurementList | None:
        """Measurement list for ``roi``, from the cache or freshly computed.

        Args:
            roi: Region to measure.
            cached_only: Only use tiles the source has already cached. A
                missing tile then gives None instead of a blocking read.

        Returns:
            The measurement list, or None for feature-type sources, empty
            ROIs, and missing or unreadable tiles.
        """
        if roi is None:
            return None
        ml = self._cache.get(self._source, roi)
        if ml is not None:
            return ml

        with self._lock:
            # Another thread may have finished this ROI while we waited
            ml = self._cache.get(self._source, roi)
            if ml is not None:
                return ml
            ml = self._compute(roi, cached_only)
            if ml is not None:
                self._cache.roi_map(self._source)[roi] = ml
            return ml

    def clear_cache(self) -> None:
        """Drop every cached measurement list for this manager's source."""
        self._cache.purge(self._source)

    # ── Computation ──

    def _compute(self, roi: ROI, cached_only: bool) -> MeasurementList | None:
        start = time.perf_counter()
        channel_type = self._source.channel_type
        if channel_type == ChannelType.FEATURE:
            logger.debug("Feature channels cannot be measured as classifications")
            return None

        geometry = None if roi.is_point else roi.geometry()

        tiles = self._tile_requests(roi)
        if not tiles:
            logger.debug("Request empty for %s", roi)
            return None

        pixels = self._fetch_tiles(tiles, cached_only)
        if pixels is None:
            return None

        channels = self._source.channels
        count = count_classification if channel_type == ChannelType.CLASSIFICATION else count_probability
        histogram = ClassHistogram.empty(channels)
        for tile, buf in pixels.items():
            h, w = buf.shape[:2]
            mask = self._scratch.acquire(h, w)
            rasterize_roi(mask, roi, tile, geometry)
            histogram.add(count(buf, mask, channels))

        ml = self._build_measurements(histogram)
        logger.debug(
            "Measured %s over %d tiles in %.1fms",
            roi,
            len(pixels),
            (time.perf_counter() - start) * 1000,
        )
        return ml

    def _tile_requests(self, roi: ROI) -> list[TileRequest]:
        if roi is self._root_roi:
            return list(self._source.enumerate_all_tiles())
        if roi.is_empty:
            return []
        region = RegionRequest.for_roi(roi, self._requested_downsample)
        return list(self._source.enumerate_tiles_overlapping(region))

    def _fetch_tiles(self, tiles: list[TileRequest], cached_only: bool) -> dict[TileRequest, TileBuffer] | None:
        """All tile pixels, or None as soon as one tile is unavailable."""
        local: dict[TileRequest, TileBuffer] = {}
        for tile in tiles:
            buf = None
            try:
                if cached_only:
                    buf = self._source.fetch_tile_if_cached(tile)
                else:
                    buf = self._source.fetch_tile_blocking(tile.region)
            except OSError as e:
                logger.error("Error requesting tile %s: %s", tile, e, exc_info=True)
            if buf is None:
                logger.debug("Tile %s unavailable (cached_only=%s)", tile.region, cached_only)
                return None
            local[tile] = buf
        return local

    def _build_measurements(self, histogram: ClassHistogram) -> MeasurementList:
        channels = histogram.channels
        units = self._pixel_area_units
        pixel_area = self._pixel_area
        prefix = DEFAULT_CONFIG.measurement_prefix
        total_without_ignored = histogram.total_without_ignored

        names: list[str] = []
        values: dict[str, float] = {}
        for c, channel in enumerate(channels):
            if channel.is_transparent:
                continue
            name_percentage = f"{prefix}{channel.name} %"
            name_area = f"{prefix}{channel.name} area {units}"
            names += [name_percentage, name_area]

            count = int(histogram.counts[c])
            # 0 / 0 is NaN: nothing was counted
            values[name_percentage] = (
                count / total_without_ignored * 100.0 if total_without_ignored else math.nan
            )
            if not math.isnan(pixel_area):
                values[name_area] = count * pixel_area

        # Totals, useful as a check
        if not math.isnan(pixel_area):
            name_annotated = f"{prefix}Total annotated area {units}"
            name_quantified = f"{prefix}Total quantified area {units}"
            names += [name_annotated, name_quantified]
            values[name_annotated] = total_without_ignored * pixel_area
            values[name_quantified] = histogram.total * pixel_area

        with self._lock:
            if self._measurement_names is None:
                self._measurement_names = tuple(names)
            frozen = self._measurement_names

        return MeasurementList(measurements={n: values[n] for n in frozen if n in values})
