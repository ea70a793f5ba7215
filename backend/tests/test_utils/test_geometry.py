"""Tests for vertex helpers."""

from __future__ import annotations

import numpy as np
import pytest

from roimeasure.utils.geometry import (
    as_vertices,
    bbox,
    path_length,
    ring_perimeter,
    signed_area,
    winding_direction,
    winding_number,
)
from roimeasure.utils.math_helpers import almost_the_same

CCW_SQUARE = np.array([[0, 0], [4, 0], [4, 4], [0, 4]], dtype=float)


def test_signed_area_orientation():
    assert signed_area(CCW_SQUARE) == pytest.approx(16.0)
    assert signed_area(CCW_SQUARE[::-1]) == pytest.approx(-16.0)
    assert winding_direction(CCW_SQUARE) == 1
    assert winding_direction(CCW_SQUARE[::-1]) == -1
    assert winding_direction(CCW_SQUARE[:2]) == 0


def test_perimeter_and_length():
    assert ring_perimeter(CCW_SQUARE) == pytest.approx(16.0)
    assert path_length(CCW_SQUARE) == pytest.approx(12.0)


def test_bbox():
    assert bbox(CCW_SQUARE + 1) == (1.0, 1.0, 5.0, 5.0)
    assert bbox(np.empty((0, 2))) == (0.0, 0.0, 0.0, 0.0)


def test_winding_number():
    assert winding_number((2, 2), CCW_SQUARE) == 1
    assert winding_number((2, 2), CCW_SQUARE[::-1]) == -1
    assert winding_number((5, 2), CCW_SQUARE) == 0


def test_as_vertices_validates_shape():
    assert as_vertices([]).shape == (0, 2)
    with pytest.raises(ValueError):
        as_vertices([1, 2, 3])


def test_almost_the_same():
    assert almost_the_same(0.25, 0.25, 0.0001)
    assert almost_the_same(1.0, 1.00001, 0.0001)
    assert not almost_the_same(1.0, 1.001, 0.0001)
