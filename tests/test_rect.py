"""
Tests for the Rect primitive and the dimension guards.

Run with:
    python -m pytest tests/test_rect.py -v
"""

import pytest

from binpack2d.core import (
    InvalidDimensionError,
    PackingError,
    Rect,
    check_dimensions,
    check_quantity,
)


class TestRect:
    def test_failed_sentinel(self):
        failed = Rect.failed()
        assert not failed.is_placed
        assert failed.height == 0
        assert repr(failed) == "Rect(FAILED)"

    def test_edges_and_area(self):
        r = Rect(10, 20, 30, 40)
        assert r.right == 40
        assert r.bottom == 60
        assert r.area == 1200
        assert r.is_placed

    def test_touching_rects_do_not_intersect(self):
        a = Rect(0, 0, 10, 10)
        assert not a.intersects(Rect(10, 0, 10, 10))
        assert not a.intersects(Rect(0, 10, 10, 10))
        assert a.intersects(Rect(9, 9, 10, 10))

    def test_contains_allows_shared_edges(self):
        outer = Rect(0, 0, 100, 100)
        assert outer.contains(Rect(0, 0, 100, 100))
        assert outer.contains(Rect(50, 50, 50, 50))
        assert not outer.contains(Rect(50, 50, 51, 10))

    def test_rotated_keeps_corner(self):
        assert Rect(5, 6, 30, 10).rotated() == Rect(5, 6, 10, 30)

    def test_dict_round_trip(self):
        r = Rect(1, 2, 3, 4)
        assert r.to_dict() == {"x": 1, "y": 2, "width": 3, "height": 4}
        assert Rect.from_dict(r.to_dict()) == r

    def test_frozen(self):
        with pytest.raises(AttributeError):
            Rect(0, 0, 1, 1).x = 5


class TestDimensionGuards:
    @pytest.mark.parametrize("width,height", [(0, 10), (10, 0), (-5, 10), (10, -1)])
    def test_non_positive_rejected(self, width, height):
        with pytest.raises(InvalidDimensionError):
            check_dimensions(width, height)

    @pytest.mark.parametrize("value", [1.5, "10", True, None])
    def test_non_integer_rejected(self, value):
        with pytest.raises(InvalidDimensionError):
            check_dimensions(value, 10)

    def test_label_in_message(self):
        with pytest.raises(InvalidDimensionError, match="bin height"):
            check_dimensions(10, 0, what="bin")

    def test_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            check_dimensions(0, 0)
        assert issubclass(InvalidDimensionError, PackingError)

    def test_quantity(self):
        check_quantity(0)
        check_quantity(12)
        with pytest.raises(InvalidDimensionError):
            check_quantity(-1)
        with pytest.raises(InvalidDimensionError):
            check_quantity(2.0)
