"""
Unit tests for projection profiles and peak finding
"""
import numpy as np
import pytest

from conftest import blank_page, draw_square
from scangrader.core.exceptions import MalformedInputError
from scangrader.engine.projection import (
    cell_boundaries,
    find_peaks,
    min_viable_peaks,
    projection_profile,
    uniform_centers,
)
from scangrader.engine.types import Region


class TestProjectionProfile:
    """Test cases for ink counting"""

    def test_column_profile(self):
        """Dark columns are counted per column"""
        img = blank_page(50, 20)
        draw_square(img, 10, 0, 5)
        profile = projection_profile(img, "x")
        assert profile.shape == (50,)
        assert profile[10:15].tolist() == [5] * 5
        assert profile[:10].sum() == 0

    def test_row_profile(self):
        """axis='y' gives one value per row"""
        img = blank_page(50, 20)
        draw_square(img, 0, 4, 3)
        profile = projection_profile(img, "y")
        assert profile.shape == (20,)
        assert profile[4:7].tolist() == [3, 3, 3]

    def test_transparent_pixels_ignored(self):
        """Alpha 0 pixels never count as ink"""
        img = np.zeros((10, 10, 4), dtype=np.uint8)
        assert projection_profile(img, "x").sum() == 0

    def test_region_is_clipped(self):
        """A region hanging off the image scans only the overlap"""
        img = blank_page(30, 30)
        draw_square(img, 25, 0, 5)
        profile = projection_profile(img, "x", region=Region(20, 0, 40, 30))
        assert profile.shape == (10,)
        assert profile[5:].tolist() == [5] * 5

    def test_invalid_axis(self):
        with pytest.raises(MalformedInputError):
            projection_profile(blank_page(5, 5), "z")


class TestFindPeaks:
    """Test cases for peak extraction"""

    def test_symmetric_peak_centroid(self):
        """A symmetric run reports its middle index"""
        assert find_peaks([0, 0, 1, 3, 5, 3, 1, 0]) == [4.0]

    def test_weighted_centroid(self):
        """Asymmetric runs lean towards the heavier side"""
        peaks = find_peaks([0, 20, 20, 30, 0])
        assert peaks[0] == pytest.approx((1 * 20 + 2 * 20 + 3 * 30) / 70)

    def test_multiple_peaks_ascending(self):
        profile = [0, 5, 5, 0, 0, 0, 8, 0, 0, 4, 4, 4, 0]
        assert find_peaks(profile) == pytest.approx([1.5, 6.0, 10.0])

    def test_run_open_at_end(self):
        """A run reaching the last element is still emitted"""
        assert find_peaks([0, 0, 5, 5]) == [2.5]

    def test_empty_and_zero_profiles(self):
        assert find_peaks([]) == []
        assert find_peaks([0, 0, 0]) == []

    def test_min_threshold(self):
        """An absolute floor suppresses faint runs"""
        assert find_peaks([0, 1, 0], min_threshold=1) == []

    def test_bar_image_symmetry(self):
        """Peak of a drawn bar lies within one pixel of the bar center"""
        img = blank_page(100, 20)
        draw_square(img, 40, 0, 11)
        peaks = find_peaks(projection_profile(img, "x"))
        assert len(peaks) == 1
        assert abs(peaks[0] - 45) <= 1


class TestSpacing:
    """Test cases for uniform spacing and cell boundaries"""

    def test_uniform_centers(self):
        assert uniform_centers(200, 4) == [25.0, 75.0, 125.0, 175.0]

    def test_uniform_centers_invalid(self):
        with pytest.raises(MalformedInputError):
            uniform_centers(100, 0)

    def test_min_viable_peaks(self):
        assert min_viable_peaks(4) == 2
        assert min_viable_peaks(5) == 3
        assert min_viable_peaks(1) == 1

    def test_cell_boundaries(self):
        bounds = cell_boundaries([25, 75, 125, 175], 200)
        assert bounds == [0.0, 50.0, 100.0, 150.0, 200.0]

    def test_cell_boundaries_clamped(self):
        bounds = cell_boundaries([5, 15], 18)
        assert bounds[0] == 0.0
        assert bounds[-1] == 18.0

    def test_single_center(self):
        assert cell_boundaries([50], 100) == [0.0, 100.0]
