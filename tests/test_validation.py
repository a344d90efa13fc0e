"""
Tests for the layout validator.

Run with:
    python -m pytest tests/test_validation.py -v
"""

import numpy as np
import pytest

from binpack2d.core import Rect
from binpack2d.validation import (
    CoverageError,
    OutOfBoundsError,
    OverlapError,
    PlacementError,
    check_area_conservation,
    check_bounds,
    check_overlaps,
    coverage_grid,
    find_overlaps,
    utilization,
    validate_layout,
)


class TestBounds:
    def test_inside(self):
        assert check_bounds([Rect(0, 0, 10, 10), Rect(90, 90, 10, 10)], 100, 100)

    @pytest.mark.parametrize("rect", [Rect(95, 0, 10, 10), Rect(0, 95, 10, 10), Rect(-1, 0, 10, 10)])
    def test_outside(self, rect):
        with pytest.raises(OutOfBoundsError):
            check_bounds([rect], 100, 100)


class TestOverlaps:
    def test_find_overlaps(self):
        rects = [Rect(0, 0, 10, 10), Rect(5, 5, 10, 10), Rect(20, 0, 5, 5)]
        assert find_overlaps(rects) == [(0, 1)]

    def test_touching_is_allowed(self):
        rects = [Rect(0, 0, 10, 10), Rect(10, 0, 10, 10), Rect(0, 10, 20, 5)]
        assert find_overlaps(rects) == []
        assert check_overlaps(rects)

    def test_reports_every_pair(self):
        rects = [Rect(0, 0, 50, 50), Rect(10, 10, 5, 5), Rect(20, 20, 5, 5)]
        assert find_overlaps(rects) == [(0, 1), (0, 2)]
        with pytest.raises(OverlapError, match="2 overlapping pair"):
            check_overlaps(rects)


class TestCoverage:
    def test_grid_counts(self):
        grid = coverage_grid([Rect(0, 0, 2, 2), Rect(1, 1, 2, 1)], 3, 3)
        assert grid.shape == (3, 3)
        assert grid.dtype == np.int32
        assert grid[1, 1] == 2
        assert grid[2, 2] == 0

    def test_exact_tiling(self):
        used = [Rect(0, 0, 60, 60)]
        free = [Rect(60, 0, 40, 100), Rect(0, 60, 60, 40)]
        assert check_area_conservation(used, free, 100, 100)

    def test_area_mismatch(self):
        with pytest.raises(CoverageError, match="bin area"):
            check_area_conservation([Rect(0, 0, 60, 60)], [Rect(60, 0, 40, 100)], 100, 100)

    def test_same_area_but_overlapping(self):
        used = [Rect(0, 0, 50, 100)]
        free = [Rect(25, 0, 50, 100)]
        with pytest.raises(CoverageError, match="covered more than once"):
            check_area_conservation(used, free, 100, 100)

    def test_large_bin_skips_grid(self):
        used = [Rect(0, 0, 50, 100)]
        free = [Rect(25, 0, 50, 100)]
        assert check_area_conservation(used, free, 100, 100, max_cells=100)


class TestValidateLayout:
    def test_sentinels_ignored(self):
        assert validate_layout([Rect(0, 0, 10, 10), Rect.failed(), Rect.failed()], 10, 10)

    def test_errors_share_base(self):
        with pytest.raises(PlacementError):
            validate_layout([Rect(0, 0, 10, 10), Rect(5, 5, 10, 10)], 100, 100)

    def test_utilization(self):
        assert utilization([Rect(0, 0, 50, 50)], 100, 100) == pytest.approx(0.25)
