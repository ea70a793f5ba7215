"""Tests for per-tile pixel counting."""

from __future__ import annotations

import logging

import numpy as np

from roimeasure.engine.histogram import ClassHistogram, count_classification, count_probability
from tests.conftest import TWO_CLASSES, WITH_BACKGROUND


class TestClassification:
    def test_counts_only_masked_pixels(self):
        tile = np.array([[0, 1], [1, 1]], dtype=np.uint8)
        mask = np.array([[1, 1], [0, 1]], dtype=np.uint8)
        hist = count_classification(tile, mask, TWO_CLASSES)
        assert hist.counts.tolist() == [1, 2]
        assert hist.total == 3

    def test_single_band_3d_tile(self):
        tile = np.zeros((2, 2, 1), dtype=np.uint8)
        hist = count_classification(tile, np.ones((2, 2), dtype=np.uint8), TWO_CLASSES)
        assert hist.counts.tolist() == [4, 0]

    def test_out_of_range_index_skipped(self, caplog):
        tile = np.array([[0, 7]], dtype=np.uint8)
        with caplog.at_level(logging.ERROR):
            hist = count_classification(tile, np.ones((1, 2), dtype=np.uint8), TWO_CLASSES)
        assert hist.counts.tolist() == [1, 0]
        assert hist.total == 1
        assert "outside" in caplog.text


class TestProbability:
    def test_tie_goes_to_lowest_index(self):
        tile = np.array([[[0.3, 0.3]]])
        hist = count_probability(tile, np.ones((1, 1), dtype=np.uint8), TWO_CLASSES)
        assert hist.counts.tolist() == [1, 0]
        assert hist.total == 1

    def test_highest_value_wins(self):
        tile = np.array([[[0.2, 0.7], [0.9, 0.1]]])
        hist = count_probability(tile, np.ones((1, 2), dtype=np.uint8), TWO_CLASSES)
        assert hist.counts.tolist() == [1, 1]

    def test_extra_bands_ignored(self):
        tile = np.array([[[0.2, 0.3, 0.9]]])
        hist = count_probability(tile, np.ones((1, 1), dtype=np.uint8), TWO_CLASSES)
        assert hist.counts.tolist() == [0, 1]

    def test_nan_in_first_band_keeps_index_zero(self):
        tile = np.array([[[np.nan, 0.5], [0.1, np.nan]]])
        hist = count_probability(tile, np.ones((1, 2), dtype=np.uint8), TWO_CLASSES)
        assert hist.counts.tolist() == [2, 0]

    def test_empty_mask(self):
        tile = np.array([[[0.1, 0.9]]])
        hist = count_probability(tile, np.zeros((1, 1), dtype=np.uint8), TWO_CLASSES)
        assert hist.total == 0
        assert hist.counts.tolist() == [0, 0]


class TestClassHistogram:
    def test_total_without_ignored(self):
        hist = ClassHistogram(np.array([5, 3, 2], dtype=np.int64), 10, WITH_BACKGROUND)
        assert hist.total_without_ignored == 5

    def test_add(self):
        hist = ClassHistogram.empty(TWO_CLASSES)
        hist.add(ClassHistogram(np.array([1, 2], dtype=np.int64), 3, TWO_CLASSES))
        hist.add(ClassHistogram(np.array([4, 0], dtype=np.int64), 4, TWO_CLASSES))
        assert hist.counts.tolist() == [5, 2]
        assert hist.total == 7
