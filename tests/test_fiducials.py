"""
Unit tests for corner alignment mark detection
"""
import pytest

from conftest import blank_page, draw_fiducials, draw_square
from scangrader.engine.fiducials import (
    FiducialDetectionConfig,
    corner_search_regions,
    find_alignment_marks,
)
from scangrader.engine.types import Region


class TestCornerSearchRegions:
    """Test cases for quadrant layout"""

    def test_regions(self):
        regions = corner_search_regions(1000, 1400, 0.30)
        assert regions["tl"] == Region(0, 0, 300, 420)
        assert regions["tr"] == Region(700, 0, 300, 420)
        assert regions["br"] == Region(700, 980, 300, 420)
        assert regions["bl"] == Region(0, 980, 300, 420)


class TestFindAlignmentMarks:
    """Test cases for fiducial detection"""

    def test_marks_found(self, template_page):
        page, expected = template_page
        corners = find_alignment_marks(page)
        assert corners is not None
        for found, ideal in zip(corners.as_list(), expected.as_list()):
            assert found.distance_to(ideal) < 0.01

    def test_shifted_page(self, shifted_page):
        """Marks follow the page content"""
        page, expected = shifted_page
        corners = find_alignment_marks(page)
        for found, ideal in zip(corners.as_list(), expected.as_list()):
            assert found.x == pytest.approx(ideal.x, abs=0.5)
            assert found.y == pytest.approx(ideal.y, abs=0.5)

    def test_missing_mark(self):
        """A page with only three marks yields no corners"""
        page = blank_page()
        draw_fiducials(page)
        page[1340:1360, 40:60] = 255
        assert find_alignment_marks(page) is None

    def test_blank_page(self):
        assert find_alignment_marks(blank_page(200, 200)) is None

    def test_nearest_to_corner_wins(self):
        """Text closer to the page center does not displace the mark"""
        page = blank_page()
        expected = draw_fiducials(page)
        draw_square(page, 200, 300, 30)
        corners = find_alignment_marks(page)
        assert corners.tl.distance_to(expected.tl) < 0.01

    def test_speck_below_minimum_ignored(self):
        page = blank_page()
        expected = draw_fiducials(page)
        draw_square(page, 5, 5, 2)
        corners = find_alignment_marks(page)
        assert corners.tl.distance_to(expected.tl) < 0.01

    def test_narrow_margin_misses_marks(self):
        """Marks outside the searched margin are not found"""
        page = blank_page()
        draw_fiducials(page, inset=200)
        config = FiducialDetectionConfig(search_margin_ratio=0.1)
        assert find_alignment_marks(page, config) is None
