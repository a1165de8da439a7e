"""
Unit tests for connected-component search
"""
import numpy as np
import pytest

from scangrader.core.exceptions import MalformedInputError
from scangrader.engine.components import (
    SELECT_NEAREST,
    ComponentSearchConfig,
    adaptive_threshold,
    find_blobs,
    locate_blob,
    select_blob,
)
from scangrader.engine.types import Point, Region


def gray_canvas(width=100, height=100, value=255):
    return np.full((height, width), value, dtype=np.uint8)


class TestAdaptiveThreshold:
    """Test cases for brightness-relative thresholds"""

    def test_capped_on_white_paper(self):
        gray = gray_canvas(value=255)
        assert adaptive_threshold(gray, Region(0, 0, 100, 100)) == 120

    def test_scales_with_dark_paper(self):
        gray = gray_canvas(value=100)
        assert adaptive_threshold(gray, Region(0, 0, 100, 100)) == pytest.approx(60)

    def test_empty_bounds(self):
        with pytest.raises(MalformedInputError):
            adaptive_threshold(gray_canvas(), Region(200, 200, 10, 10))

    def test_bounds_past_image_edge(self):
        """A window hanging off the top-left samples only the overlap"""
        gray = gray_canvas(value=100)
        assert adaptive_threshold(gray, Region(-10, -10, 50, 50)) == pytest.approx(60)


class TestFindBlobs:
    """Test cases for flood-fill blob search"""

    def test_size_filter(self):
        """A blob one pixel under the minimum is rejected; min + 10 is found"""
        gray = gray_canvas()
        gray[10:12, 10:17] = 0      # 14 pixels
        gray[50:55, 60:65] = 0      # 25 pixels
        blobs = find_blobs(gray, Region(0, 0, 100, 100), 128, min_blob_size=15)
        assert len(blobs) == 1
        assert blobs[0].size == 25
        assert blobs[0].centroid.x == pytest.approx(62)
        assert blobs[0].centroid.y == pytest.approx(52)

    def test_four_connectivity(self):
        """Diagonal neighbours belong to different blobs"""
        gray = gray_canvas(10, 10)
        gray[2, 2] = 0
        gray[3, 3] = 0
        blobs = find_blobs(gray, Region(0, 0, 10, 10), 128, min_blob_size=1)
        assert len(blobs) == 2

    def test_oversized_blob_rejected(self):
        gray = gray_canvas()
        gray[0:40, 0:40] = 0
        gray[80:83, 80:83] = 0
        blobs = find_blobs(gray, Region(0, 0, 100, 100), 128, min_blob_size=1, max_blob_size=100)
        assert [b.size for b in blobs] == [9]

    def test_bounds_offset(self):
        """Centroids are reported in image coordinates"""
        gray = gray_canvas()
        gray[70:73, 80:83] = 0
        blobs = find_blobs(gray, Region(50, 50, 50, 50), 128, min_blob_size=1)
        assert blobs[0].centroid == Point(81, 71)
        assert blobs[0].bbox == Region(80, 70, 3, 3)

    def test_aspect_filter(self):
        """Elongated lines are dropped when an aspect limit is set"""
        gray = gray_canvas()
        gray[10, 10:60] = 0
        gray[40:45, 40:45] = 0
        blobs = find_blobs(gray, Region(0, 0, 100, 100), 128, min_blob_size=1, max_aspect_ratio=3)
        assert len(blobs) == 1
        assert blobs[0].size == 25

    def test_mask_excludes_pixels(self):
        gray = gray_canvas(10, 10, value=0)
        mask = np.zeros((10, 10), dtype=bool)
        assert find_blobs(gray, Region(0, 0, 10, 10), 128, min_blob_size=1, mask=mask) == []


class TestLocateBlob:
    """Test cases for blob selection"""

    def test_largest(self):
        gray = gray_canvas()
        gray[10:13, 10:13] = 0
        gray[60:70, 60:70] = 0
        blob = locate_blob(gray, Region(0, 0, 100, 100), ComponentSearchConfig(min_blob_size=1))
        assert blob.size == 100

    def test_nearest_to_target(self):
        gray = gray_canvas()
        gray[10:13, 10:13] = 0
        gray[60:70, 60:70] = 0
        config = ComponentSearchConfig(min_blob_size=1, selection=SELECT_NEAREST)
        blob = locate_blob(gray, Region(0, 0, 100, 100), config, target=Point(0, 0))
        assert blob.size == 9

    def test_nothing_found(self):
        assert locate_blob(gray_canvas(), Region(0, 0, 100, 100)) is None

    def test_rgba_input(self):
        img = np.full((50, 50, 4), 255, dtype=np.uint8)
        img[20:25, 20:25, :3] = 0
        blob = locate_blob(img, Region(0, 0, 50, 50))
        assert blob.centroid == Point(22, 22)

    def test_nearest_needs_target(self):
        gray = gray_canvas()
        gray[10:13, 10:13] = 0
        blobs = find_blobs(gray, Region(0, 0, 100, 100), 128, min_blob_size=1)
        with pytest.raises(MalformedInputError):
            select_blob(blobs, SELECT_NEAREST)

    def test_window_past_image_edge(self):
        """A search window with a negative origin still finds the blob"""
        gray = gray_canvas()
        gray[5:10, 5:10] = 0
        config = ComponentSearchConfig(min_blob_size=1)
        blob = locate_blob(gray, Region(-10, -10, 50, 50), config)
        assert blob.size == 25
        assert blob.centroid == Point(7, 7)
