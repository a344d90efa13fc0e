"""
Tests for the uniform-item packer (SingleBinPack).

Run with:
    python -m pytest tests/test_single.py -v

Tests cover:
- The 1000×1000 / 310×210 ×50 layout: mixed beats both pure layouts
- Quantity bounds, item orientation, bounds and overlaps
- The four standard sheet scenarios
- Each rebalancing move of the mixed layout on pinned inputs
- Input validation and the stalled-frontier error
"""

import pytest

from binpack2d.algorithms.single import (
    Frontier,
    Shape,
    SingleBinPack,
    Solution,
    _MixedState,
    ensure_settled,
    fill_grid,
)
from binpack2d.core import InvalidDimensionError, LayoutConsistencyError, Rect
from binpack2d.runner.harness import DEMO_SCENARIOS
from binpack2d.validation import validate_layout


@pytest.fixture
def packer():
    return SingleBinPack(1000, 1000)


# ---------------------------------------------------------------------------
# 1. Layout choice
# ---------------------------------------------------------------------------

class TestLayoutChoice:
    def test_mixed_beats_pure_layouts(self, packer):
        rects = packer.insert(310, 210, 50)

        horizontal = packer.candidates["horizontal"]
        vertical = packer.candidates["vertical"]
        mixed = packer.candidates["mixed"]
        assert horizontal.count == 12
        assert vertical.count == 12
        assert mixed.count == 13
        assert mixed.count >= max(horizontal.count, vertical.count)
        assert len(rects) == 13
        assert validate_layout(rects, 1000, 1000)

    def test_vertical_preferred_on_equal_count(self, packer):
        packer.insert(310, 210, 50)
        # Both pure layouts place 12; standing columns end further left.
        assert packer.candidates["vertical"].is_better_than(packer.candidates["horizontal"])
        assert packer.candidates["vertical"].max_x == 840

    def test_small_quantity_uses_narrowest_layout(self, packer):
        rects = packer.insert(310, 210, 3)
        assert len(rects) == 3
        assert max(r.right for r in rects) == 210
        assert all((r.width, r.height) == (210, 310) for r in rects)

    def test_used_rectangles_match_last_insert(self, packer):
        rects = packer.insert(310, 210, 7)
        assert packer.used_rectangles == tuple(rects)
        packer.insert(310, 210, 0)
        assert packer.used_rectangles == ()


# ---------------------------------------------------------------------------
# 2. Invariants
# ---------------------------------------------------------------------------

class TestInvariants:
    @pytest.mark.parametrize("quantity", [1, 4, 5, 13, 14, 50, 500])
    def test_count_never_exceeds_quantity(self, packer, quantity):
        assert len(packer.insert(310, 210, quantity)) <= quantity

    @pytest.mark.parametrize("width,height", [(310, 210), (210, 310), (100, 100), (333, 47)])
    def test_rects_use_item_dimensions(self, packer, width, height):
        rects = packer.insert(width, height, 40)
        assert rects
        for r in rects:
            assert {r.width, r.height} == {width, height}
        assert validate_layout(rects, 1000, 1000)

    @pytest.mark.parametrize("name,sheet_w,sheet_h,item_w,item_h,quantity", DEMO_SCENARIOS)
    def test_standard_sheets(self, name, sheet_w, sheet_h, item_w, item_h, quantity):
        rects = SingleBinPack(sheet_w, sheet_h).insert(item_w, item_h, quantity)
        assert 0 < len(rects) <= quantity, name
        assert validate_layout(rects, sheet_w, sheet_h)

    def test_deterministic(self):
        first = SingleBinPack(8000, 2200).insert(330, 250, 102)
        second = SingleBinPack(8000, 2200).insert(330, 250, 102)
        assert first == second

    def test_item_larger_than_sheet(self, packer):
        assert packer.insert(2000, 1500, 5) == []


# ---------------------------------------------------------------------------
# 3. Mixed-layout rebalancing
# ---------------------------------------------------------------------------

def _mixed_rects(packer):
    return packer._to_rects(packer.candidates["mixed"])


class TestRebalancing:
    def test_fill_below_uses_region_right_of_lying_band(self, packer):
        rects = packer.insert(310, 210, 50)

        standing = {Rect(x, 0, 210, 310) for x in (0, 210, 420, 630)}
        lying = {Rect(x, y, 310, 210) for x in (0, 310, 620) for y in (310, 520, 730)}
        assert set(rects) == standing | lying
        assert len(rects) == 13
        assert packer.candidates["mixed"].max_x == 930

    def test_last_standing_column_laid_into_lying_column(self, packer):
        packer.insert(333, 47, 40)

        mixed = packer.candidates["mixed"]
        # Without the move the standing band ends at 705.
        assert (mixed.count, mixed.max_x) == (40, 666)
        assert len(mixed.groups[90.0]) == 28
        assert len(mixed.groups[0.0]) == 12
        assert {(333.0, 807.0), (333.0, 854.0)} <= set(mixed.groups[0.0])
        assert validate_layout(_mixed_rects(packer), 1000, 1000)

    def test_several_standing_columns_laid_down(self, packer):
        verts = [(float(c * 10), float(r * 100)) for c in range(5) for r in range(2)]
        state = _MixedState(
            vertical=Frontier(y=0, length=200, item_width=10, item_height=100, x=50),
            horizontal=Frontier(y=200, length=100, item_width=30, item_height=10, x=30, filled=2),
            group_v=2,
            group_h=10,
            verts=verts,
            horzs=[(0.0, 200.0), (0.0, 210.0)],
        )

        assert packer._move_last_column(state, threshold=0)
        assert len(state.verts) == 6
        assert state.vertical.x == 30
        assert state.horizontal.filled == 6
        assert state.horzs[2:] == [(0.0, 220.0), (0.0, 230.0), (0.0, 240.0), (0.0, 250.0)]

    def test_standing_items_moved_into_lying_band(self):
        packer = SingleBinPack(1000, 400)
        packer.insert(100, 200, 10)

        mixed = packer.candidates["mixed"]
        assert (mixed.count, mixed.max_x) == (10, 500)
        assert (400.0, 200.0) in mixed.groups[0.0]
        assert len(mixed.groups[0.0]) == 6
        assert len(mixed.groups[90.0]) == 4
        assert validate_layout(_mixed_rects(packer), 1000, 400)

    def test_last_lying_column_stood_up(self):
        packer = SingleBinPack(756, 1310)
        rects = packer.insert(54, 152, 41)

        assert len(rects) == 41
        assert max(r.right for r in rects) == 270
        assert packer.candidates["horizontal"].max_x == 304
        standing = set(packer.candidates["mixed"].groups[0.0])
        for x in (152.0, 206.0):
            assert {(x, y) for y in (608.0, 760.0, 912.0, 1064.0)} <= standing
        assert len(packer.candidates["mixed"].groups[90.0]) == 13
        assert validate_layout(rects, 756, 1310)

    def test_stood_up_column_takes_last_standing_column(self):
        packer = SingleBinPack(2879, 1160)
        rects = packer.insert(183, 88, 124)

        assert len(rects) == 124
        assert max(r.right for r in rects) == 1760
        assert packer.candidates["horizontal"].max_x == 1823
        standing = set(packer.candidates["mixed"].groups[90.0])
        assert {(1647.0, 366.0), (1647.0, 549.0), (1647.0, 732.0)} <= standing
        assert len(standing) == 43
        assert validate_layout(rects, 2879, 1160)

    def test_gap_above_lying_column_filled_without_threshold(self):
        packer = SingleBinPack(1980, 1248)
        rects = packer.insert(139, 97, 50)

        assert len(rects) == 50
        assert max(r.right for r in rects) == 556
        mixed = packer.candidates["mixed"]
        assert {(417.0, 1054.0), (417.0, 1151.0)} <= set(mixed.groups[0.0])
        assert len(mixed.groups[90.0]) == 10
        assert validate_layout(rects, 1980, 1248)

    def test_two_standing_swapped_for_one_of_each(self):
        packer = SingleBinPack(516, 78)
        packer.insert(24, 47, 31)

        mixed = packer.candidates["mixed"]
        assert (mixed.count, mixed.max_x) == (31, 503)
        assert (456.0, 0.0) in mixed.groups[90.0]
        assert (470.0, 24.0) in mixed.groups[0.0]
        assert len(mixed.groups[0.0]) == 20
        assert len(mixed.groups[90.0]) == 11
        assert validate_layout(_mixed_rects(packer), 516, 78)


# ---------------------------------------------------------------------------
# 4. Input validation
# ---------------------------------------------------------------------------

class TestInputValidation:
    def test_zero_quantity(self, packer):
        assert packer.insert(310, 210, 0) == []

    @pytest.mark.parametrize("width,height,quantity", [(0, 210, 5), (310, -1, 5), (310, 210, -2)])
    def test_invalid_input(self, packer, width, height, quantity):
        with pytest.raises(InvalidDimensionError):
            packer.insert(width, height, quantity)

    def test_invalid_sheet(self):
        with pytest.raises(InvalidDimensionError):
            SingleBinPack(0, 1000)

    def test_negative_ratio(self):
        with pytest.raises(InvalidDimensionError):
            SingleBinPack(1000, 1000, ratio=-0.1)


# ---------------------------------------------------------------------------
# 5. Building blocks
# ---------------------------------------------------------------------------

class TestFrontier:
    def test_place_and_release(self):
        f = Frontier(y=0, length=100, item_width=10, item_height=50)
        assert f.capacity == 2
        f.open_column()
        assert f.place() == (0, 0)
        assert f.shape is Shape.STEPPED
        assert f.open_slots == 1
        assert f.place() == (0, 50)
        assert f.shape is Shape.FLUSH
        f.release()
        assert f.filled == 1 and f.x == 10
        f.release()
        assert f.filled == 0 and f.x == 0

    def test_can_open(self):
        f = Frontier(y=0, length=100, item_width=30, item_height=10, x=60)
        assert f.can_open(limit=90)
        assert not f.can_open(limit=89)

    def test_stalled_frontier_raises(self):
        stepped = Frontier(y=0, length=100, item_width=10, item_height=50, x=10, filled=1)
        flush = Frontier(y=100, length=40, item_width=50, item_height=10)
        with pytest.raises(LayoutConsistencyError, match="3 items left"):
            ensure_settled(stepped, flush, remaining=3)

    def test_settled_frontiers_pass(self):
        stepped = Frontier(y=0, length=100, item_width=10, item_height=50, x=10, filled=1)
        flush = Frontier(y=100, length=40, item_width=50, item_height=10)
        ensure_settled(stepped, flush, remaining=0)
        ensure_settled(flush, flush, remaining=5)


class TestHelpers:
    def test_fill_grid_is_column_major(self):
        assert fill_grid(0, 0, 20, 20, 10, 10, 3) == [(0.0, 0.0), (0.0, 10.0), (10.0, 0.0)]

    def test_fill_grid_item_too_big(self):
        assert fill_grid(0, 0, 20, 20, 30, 10, 3) == []

    def test_solution_ranking(self):
        a = Solution(groups={}, max_x=500, count=10)
        b = Solution(groups={}, max_x=400, count=10)
        c = Solution(groups={}, max_x=900, count=11)
        assert a.is_better_than(None)
        assert b.is_better_than(a)
        assert c.is_better_than(b)
        assert not a.is_better_than(a)

    def test_rect_conversion_rotates_standing_items(self):
        packer = SingleBinPack(1000, 1000)
        rects = packer.insert(210, 310, 1)
        # A taller-than-wide item is already standing.
        assert rects == [Rect(0, 0, 210, 310)]
