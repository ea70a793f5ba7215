"""Measurement cache — tile source → ROI → measurement list.

The outer map holds tile sources weakly, so entries disappear once a source
is no longer referenced elsewhere. Entries for a discarded source can also
be purged explicitly with ``purge``. The inner per-source map holds ROIs
strongly; ROIs are keyed by identity.
"""

from __future__ import annotations

import logging
import threading
import weakref

from roimeasure.models.measurements import MeasurementList
from roimeasure.roi.rois import ROI

logger = logging.getLogger(__name__)


class MeasurementCache:
    def __init__(self) -> None:
        self._sources: weakref.WeakKeyDictionary[object, dict[ROI, MeasurementList]] = (
            weakref.WeakKeyDictionary()
        )
        self._lock = threading.Lock()

    def roi_map(self, source: object) -> dict[ROI, MeasurementList]:
        """Per-source map, created on first use.

        Callers mutate the returned map only while holding their own
        per-source serialization lock.
        """
        with self._lock:
            roi_map = self._sources.get(source)
            if roi_map is None:
                roi_map = {}
                self._sources[source] = roi_map
            return roi_map

    def get(self, source: object, roi: ROI) -> MeasurementList | None:
        with self._lock:
            roi_map = self._sources.get(source)
        if roi_map is None:
            return None
        return roi_map.get(roi)

    def purge(self, source: object | None = None) -> None:
        """Drop cached measurements for one source, or for every source."""
        with self._lock:
            if source is None:
                n = len(self._sources)
                self._sources.clear()
            else:
                n = 1 if self._sources.pop(source, None) is not None else 0
        logger.debug("Purged measurement cache for %d tile sources", n)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sources)


# Module-level singleton shared by all managers
_cache = MeasurementCache()


def get_measurement_cache() -> MeasurementCache:
    return _cache


def clear_measurement_cache(source: object | None = None) -> None:
    _cache.purge(source)
