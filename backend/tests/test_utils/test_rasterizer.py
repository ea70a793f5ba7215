"""Tests for tile mask rasterization."""

from __future__ import annotations

import threading

import numpy as np

from roimeasure.roi import create_area, create_line, create_points, create_rectangle
from roimeasure.servers.types import RegionRequest, TileRequest
from roimeasure.utils.rasterizer import ScratchMask, rasterize_roi, to_tile_pixels


def _tile(x: int = 0, y: int = 0, size: int = 10, downsample: float = 1.0) -> TileRequest:
    span = int(size * downsample)
    region = RegionRequest(x, y, span, span, downsample=downsample)
    return TileRequest(region, int(x / downsample), int(y / downsample), size, size)


def _draw(roi, tile: TileRequest) -> np.ndarray:
    mask = np.zeros((tile.tile_height, tile.tile_width), dtype=np.uint8)
    return rasterize_roi(mask, roi, tile)


class TestScratchMask:
    def test_reuse_clears_stale_pixels(self):
        scratch = ScratchMask()
        big = scratch.acquire(10, 10)
        big[:] = 1
        buffer = scratch.buffer

        small = scratch.acquire(5, 5)
        assert scratch.buffer is buffer
        assert small.shape == (5, 5)
        assert not small.any()
        assert not buffer.any()

    def test_grows_when_too_small(self):
        scratch = ScratchMask()
        scratch.acquire(5, 5)
        view = scratch.acquire(20, 4)
        assert view.shape == (20, 4)
        assert scratch.buffer.shape[0] >= 20

    def test_reallocates_wrong_dtype(self):
        scratch = ScratchMask()
        scratch.buffer = np.zeros((10, 10), dtype=np.int32)
        view = scratch.acquire(10, 10)
        assert view.dtype == np.uint8

    def test_thread_local(self):
        scratch = ScratchMask()
        scratch.acquire(4, 4)
        seen = []
        worker = threading.Thread(target=lambda: seen.append(scratch.buffer))
        worker.start()
        worker.join()
        assert seen == [None]


class TestArea:
    def test_full_tile(self):
        mask = _draw(create_rectangle(0, 0, 10, 10), _tile())
        assert mask.sum() == 100

    def test_hole_unfilled(self):
        roi = create_area([
            [(0, 0), (10, 0), (10, 10), (0, 10)],
            [(3, 3), (3, 7), (7, 7), (7, 3)],
        ])
        mask = _draw(roi, _tile())
        assert mask.sum() == 84
        assert mask[5, 5] == 0
        assert mask[1, 1] == 1

    def test_tile_offset(self):
        mask = _draw(create_rectangle(10, 0, 5, 5), _tile(x=10))
        assert mask[:5, :5].all()
        assert mask.sum() == 25

    def test_downsampled_tile(self):
        # 20x20 image pixels at downsample 2 → 10x10 tile pixels
        mask = _draw(create_rectangle(0, 0, 10, 20), _tile(size=10, downsample=2.0))
        assert mask.sum() == 50
        assert mask[:, :5].all()

    def test_clipped_to_tile(self):
        mask = _draw(create_rectangle(-5, -5, 10, 10), _tile())
        assert mask.sum() == 25

    def test_edges_on_pixel_centers_use_top_left_rule(self):
        mask = _draw(create_rectangle(0.5, 0.5, 2, 2), _tile())
        assert mask.sum() == 4
        assert mask[:2, :2].all()

    def test_adjacent_rois_share_no_pixels(self):
        left = _draw(create_rectangle(0.5, 0.5, 2, 5), _tile()).copy()
        right = _draw(create_rectangle(2.5, 0.5, 2, 5), _tile())
        assert left.sum() == 10
        assert right.sum() == 10
        assert not (left & right).any()

    def test_odd_coordinates_on_downsampled_tile(self):
        # Edges at tile pixel 0.5 and 2.5 pass through pixel centers
        mask = _draw(create_rectangle(1, 1, 4, 4), _tile(downsample=2.0))
        assert mask.sum() == 4
        assert mask[:2, :2].all()


class TestLine:
    def test_horizontal_line_one_pixel_wide(self):
        mask = _draw(create_line(0.5, 2.5, 9.5, 2.5), _tile())
        assert mask.sum() == 10
        assert mask[2].all()

    def test_line_on_downsampled_tile(self):
        mask = _draw(create_line(1, 5, 19, 5), _tile(size=10, downsample=2.0))
        assert mask[2].sum() == 10
        assert mask.sum() == 10


class TestPoints:
    def test_points_outside_skipped(self):
        roi = create_points([(1.5, 1.5), (5.2, 3.7), (-5, -5), (12, 3)])
        mask = _draw(roi, _tile())
        assert mask.sum() == 2
        assert mask[1, 1] == 1
        assert mask[3, 5] == 1

    def test_downsampled_points(self):
        mask = _draw(create_points([(7.9, 3.1)]), _tile(downsample=2.0))
        assert mask[1, 3] == 1


def test_to_tile_pixels():
    tile = _tile(x=100, y=50, downsample=4.0)
    pts = np.array([[104.0, 58.0]])
    assert to_tile_pixels(pts, tile).tolist() == [[1.0, 2.0]]


def test_to_tile_pixels_uses_unrounded_tile_origin():
    # At downsample 1.5, tile column 3 starts at image x 4.5; its region rounds to 4
    region = RegionRequest(4, 0, 6, 6, downsample=1.5)
    tile = TileRequest(region, 3, 0, 4, 4)
    pts = np.array([[4.5, 3.0]])
    assert to_tile_pixels(pts, tile).tolist() == [[0.0, 2.0]]
