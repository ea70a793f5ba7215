"""Per-channel pixel histograms built from classified tiles and ROI masks."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from roimeasure.servers.types import ImageChannel, TileBuffer

logger = logging.getLogger(__name__)


@dataclass
class ClassHistogram:
    """Masked pixel counts, one slot per channel."""

    counts: NDArray[np.int64]
    total: int = 0
    channels: list[ImageChannel] = field(default_factory=list)

    @classmethod
    def empty(cls, channels: list[ImageChannel]) -> ClassHistogram:
        return cls(np.zeros(len(channels), dtype=np.int64), 0, list(channels))

    @property
    def total_without_ignored(self) -> int:
        """Total over non-transparent channels only."""
        keep = [i for i, c in enumerate(self.channels) if not c.is_transparent]
        return int(self.counts[keep].sum()) if keep else 0

    def add(self, other: ClassHistogram) -> None:
        self.counts += other.counts
        self.total += other.total


def count_classification(
    tile: TileBuffer, mask: NDArray[np.uint8], channels: list[ImageChannel]
) -> ClassHistogram:
    """Count the class index of every masked pixel of a single-band tile."""
    n = len(channels)
    labels = tile[..., 0] if tile.ndim == 3 else tile
    values = labels[mask != 0].astype(np.int64, copy=False)

    in_range = (values >= 0) & (values < n)
    if not np.all(in_range):
        n_bad = int(np.count_nonzero(~in_range))
        logger.error(
            "%d masked pixels have class indices outside [0, %d) - skipping them", n_bad, n
        )
        if tile.ndim == 3 and tile.shape[2] > 1:
            logger.error(
                "There are %d bands - are you sure this is really a classification image?",
                tile.shape[2],
            )
        values = values[in_range]

    counts = np.bincount(values, minlength=n).astype(np.int64)
    return ClassHistogram(counts, int(values.size), list(channels))


def count_probability(
    tile: TileBuffer, mask: NDArray[np.uint8], channels: list[ImageChannel]
) -> ClassHistogram:
    """Assign every masked pixel to the band with the highest value.

    Only the first ``min(len(channels), n_bands)`` bands compete. Ties go to
    the lowest index, and NaN never wins over an earlier band.
    """
    n = len(channels)
    stack = tile[..., np.newaxis] if tile.ndim == 2 else tile
    n_bands = min(n, stack.shape[2])
    values = stack[mask != 0][:, :n_bands].astype(np.float64, copy=False)

    if values.shape[0] == 0:
        return ClassHistogram.empty(channels)

    # argmax keeps the first maximum, giving lowest-index tie-breaking
    winners = np.argmax(np.nan_to_num(values, nan=-np.inf, posinf=np.inf, neginf=-np.inf), axis=1)
    winners[np.isnan(values[:, 0])] = 0

    counts = np.bincount(winners, minlength=n).astype(np.int64)
    return ClassHistogram(counts, int(values.shape[0]), list(channels))
