"""
SingleBinPack — dense layouts for N identical items on one sheet.

Items may be placed standing ("vertical": short side along X) or lying
("horizontal": long side along X). Three candidate layouts are built and
ranked by (placed count desc, max X extent asc):

  horizontal — full-height columns of lying items; the trailing partial
               column is completed either with standing items or with one
               more lying column plus standing infill, whichever is better
  vertical   — full-height columns of standing items plus a lying infill
               band across the height left above the full rows
  mixed      — the sheet height is split into a band of standing rows on
               top and a band of lying rows below; both bands are filled
               column by column through two frontiers, then a rebalancing
               pass trades items between the bands to pull in max X

Placements are kept internally as (x, y) offsets grouped by rotation angle
and only converted to ``Rect`` on the way out.
"""

import copy
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from binpack2d.core.errors import InvalidDimensionError, LayoutConsistencyError
from binpack2d.core.rect import Rect, check_dimensions, check_quantity

logger = logging.getLogger(__name__)

ANGLE_TOLERANCE = 1e-3
DEFAULT_RATIO = 0.5

Offset = Tuple[float, float]


# ─────────────────────────────────────────────────────────────────────────────
# Frontier
# ─────────────────────────────────────────────────────────────────────────────

class Shape(Enum):
    FLUSH = "flush"      # every opened column is full
    STEPPED = "stepped"  # the last column is partly filled


@dataclass
class Frontier:
    """
    Next open slot of one orientation band.

    Columns are opened left to right; ``x`` is the right edge of the last
    opened column and ``filled`` the number of items in it when it is not
    yet full.
    """
    y: float
    length: float
    item_width: float
    item_height: float
    x: float = 0.0
    filled: int = 0

    @property
    def capacity(self) -> int:
        return int(self.length // self.item_height)

    @property
    def shape(self) -> Shape:
        return Shape.STEPPED if self.filled > 0 else Shape.FLUSH

    @property
    def open_slots(self) -> int:
        return self.capacity - self.filled if self.shape is Shape.STEPPED else 0

    def can_open(self, limit: float) -> bool:
        return self.x + self.item_width <= limit

    def open_column(self) -> None:
        self.x += self.item_width

    def place(self) -> Offset:
        offset = (self.x - self.item_width, self.y + self.filled * self.item_height)
        self.filled += 1
        if self.filled == self.capacity:
            self.filled = 0
        return offset

    def release(self) -> None:
        """Undo the most recent ``place``."""
        if self.filled == 0:
            self.filled = self.capacity
        self.filled -= 1
        if self.filled == 0:
            self.x -= self.item_width


def ensure_settled(vertical: Frontier, horizontal: Frontier, remaining: int) -> None:
    """
    Raise if items are left over while a column is still half filled.

    A stepped frontier always has a free slot, so the fill loop can only
    stop with items remaining once both frontiers are flush.
    """
    if remaining > 0 and Shape.STEPPED in (vertical.shape, horizontal.shape):
        logger.warning(
            "single: stalled with %d items left (vertical=%s, horizontal=%s)",
            remaining, vertical, horizontal,
        )
        raise LayoutConsistencyError(
            f"neither frontier can progress with {remaining} items left: "
            f"vertical={vertical}, horizontal={horizontal}"
        )


# ─────────────────────────────────────────────────────────────────────────────
# Solutions
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class Solution:
    """One candidate layout: offsets grouped by rotation angle."""
    groups: Dict[float, List[Offset]]
    max_x: int
    count: int

    def is_better_than(self, other: Optional["Solution"]) -> bool:
        if other is None:
            return True
        return self.count > other.count or (
            self.count == other.count and self.max_x < other.max_x
        )


@dataclass
class _MixedState:
    vertical: Frontier
    horizontal: Frontier
    group_v: int
    group_h: int
    verts: List[Offset] = field(default_factory=list)
    horzs: List[Offset] = field(default_factory=list)
    # Items placed by the rebalancing pass outside the frontier columns.
    extra_verts: List[Offset] = field(default_factory=list)
    extra_horzs: List[Offset] = field(default_factory=list)
    # Standing columns opened inside the lying band by the rebalancing pass.
    infill: Optional[Frontier] = None

    @property
    def band_split(self) -> float:
        return self.vertical.length

    @property
    def last_column(self) -> int:
        """Items in the right-most standing column."""
        vf = self.vertical
        return vf.filled if vf.shape is Shape.STEPPED else vf.capacity


def fill_grid(
    x0: int, y0: int, region_w: int, region_h: int, item_w: int, item_h: int, count: int
) -> List[Offset]:
    """Column-major offsets of up to ``count`` item_w×item_h cells in a region."""
    if count <= 0 or item_w > region_w or item_h > region_h:
        return []
    rows = region_h // item_h
    cols = region_w // item_w
    offsets = []
    for c in range(cols):
        for r in range(rows):
            if len(offsets) == count:
                return offsets
            offsets.append((float(x0 + c * item_w), float(y0 + r * item_h)))
    return offsets


class SingleBinPack:
    """
    Uniform-item packer for one width×height sheet.

    Args:
        width, height: Sheet size.
        ratio:         Rebalancing threshold as a fraction of the item's
                       short side; a move must pull max X in by more than
                       ``int(short_side * ratio)``.
    """

    name = "single"

    def __init__(self, width: int, height: int, ratio: float = DEFAULT_RATIO) -> None:
        check_dimensions(width, height, what="sheet")
        if ratio < 0:
            raise InvalidDimensionError(f"ratio must not be negative, got {ratio}")
        self.bin_width = width
        self.bin_height = height
        self.ratio = ratio
        self.candidates: Dict[str, Solution] = {}
        self._used: List[Rect] = []

    @property
    def used_rectangles(self) -> Tuple[Rect, ...]:
        """Result of the last ``insert``."""
        return tuple(self._used)

    # ─────────────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────────────

    def insert(self, width: int, height: int, quantity: int) -> List[Rect]:
        """
        Lay out up to ``quantity`` width×height items.

        Returns:
            One Rect per placed item (never more than ``quantity``), each
            width×height or height×width.

        Raises:
            InvalidDimensionError: for non-positive sizes or a negative quantity.
            LayoutConsistencyError: if the mixed fill loop stalls mid-column.
        """
        check_dimensions(width, height)
        check_quantity(quantity)
        self.candidates = {}
        self._used = []
        if quantity == 0:
            return []

        self._set_item(width, height)

        best = self._layout_horizontal(quantity)
        self.candidates["horizontal"] = best
        if self.max_row_h > 0:
            vertical = self._layout_vertical(quantity)
            self.candidates["vertical"] = vertical
            if vertical.is_better_than(best):
                best = vertical

        if self.short_side + self.long_side <= self.bin_height:
            mixed = self._layout_mixed(quantity)
            if mixed is not None:
                self.candidates["mixed"] = mixed
                if mixed.is_better_than(best):
                    best = mixed

        chosen = next(name for name, sol in self.candidates.items() if sol is best)
        logger.debug(
            "single: %d×%d ×%d on %d×%d -> %s (%d placed, max_x=%d)",
            width, height, quantity, self.bin_width, self.bin_height,
            chosen, best.count, best.max_x,
        )
        self._used = self._to_rects(best)
        return list(self._used)

    # ─────────────────────────────────────────────────────────────────────
    # Item geometry
    # ─────────────────────────────────────────────────────────────────────

    def _set_item(self, width: int, height: int) -> None:
        self.item_width = width
        self.item_height = height
        original_vertical = height > width
        self.short_side = min(width, height)
        self.long_side = max(width, height)
        self.angle_vert = 0.0 if original_vertical else 90.0
        self.angle_horz = 90.0 if original_vertical else 0.0
        # Lying items per column, standing items per column.
        self.max_row_v = self.bin_height // self.short_side
        self.max_row_h = self.bin_height // self.long_side

    def _solution(self, verts: List[Offset], horzs: List[Offset]) -> Solution:
        rights = [x + self.short_side for x, _ in verts]
        rights += [x + self.long_side for x, _ in horzs]
        return Solution(
            groups={self.angle_vert: list(verts), self.angle_horz: list(horzs)},
            max_x=int(max(rights, default=0)),
            count=len(verts) + len(horzs),
        )

    def _to_rects(self, solution: Solution) -> List[Rect]:
        rects = []
        for angle, offsets in solution.groups.items():
            upright = math.isclose(angle, 0.0, abs_tol=ANGLE_TOLERANCE)
            w, h = (self.item_width, self.item_height) if upright else (self.item_height, self.item_width)
            rects.extend(Rect(int(x), int(y), w, h) for x, y in offsets)
        return rects

    # ─────────────────────────────────────────────────────────────────────
    # Pure layouts
    # ─────────────────────────────────────────────────────────────────────

    def _layout_horizontal(self, n: int) -> Solution:
        s, l = self.short_side, self.long_side
        sheet_w, sheet_h = self.bin_width, self.bin_height
        per_col = self.max_row_v
        if per_col == 0 or l > sheet_w:
            return self._solution([], [])
        if n <= per_col:
            return self._solution([], fill_grid(0, 0, l, sheet_h, l, s, n))

        full_cols = min(-(-n // per_col) - 1, sheet_w // l - 1)
        horzs = fill_grid(0, 0, full_cols * l, sheet_h, l, s, full_cols * per_col)
        remain = n - len(horzs)
        x0 = full_cols * l

        # Finish with standing items only.
        finish_v = self._solution(
            fill_grid(x0, 0, sheet_w - x0, sheet_h, s, l, remain), horzs
        )
        # Finish with one more lying column, standing items to its right.
        tail = fill_grid(x0, 0, l, sheet_h, l, s, min(remain, per_col))
        infill = fill_grid(x0 + l, 0, sheet_w - x0 - l, sheet_h, s, l, remain - len(tail))
        finish_h = self._solution(infill, horzs + tail)

        return finish_v if finish_v.is_better_than(finish_h) else finish_h

    def _layout_vertical(self, n: int) -> Solution:
        s, l = self.short_side, self.long_side
        sheet_w, sheet_h = self.bin_width, self.bin_height
        if self.max_row_h == 0 or s > sheet_w:
            return self._solution([], [])
        band = self.max_row_h * l
        verts = fill_grid(0, 0, sheet_w, band, s, l, n)
        horzs = fill_grid(0, band, sheet_w, sheet_h - band, l, s, n - len(verts))
        return self._solution(verts, horzs)

    # ─────────────────────────────────────────────────────────────────────
    # Mixed layout
    # ─────────────────────────────────────────────────────────────────────

    def _choose_split(self) -> Optional[Tuple[int, int]]:
        """(standing rows, lying rows) with the least unused height; None if no split has both."""
        s, l = self.short_side, self.long_side
        best = None
        for group_v in range(1, self.max_row_h + 1):
            rest = self.bin_height - group_v * l
            group_h = rest // s
            if group_h == 0:
                continue
            leftover = rest - group_h * s
            if best is None or leftover < best[2]:
                best = (group_v, group_h, leftover)
        return None if best is None else (best[0], best[1])

    def _layout_mixed(self, n: int) -> Optional[Solution]:
        s, l = self.short_side, self.long_side
        if l > self.bin_width:
            return None
        split = self._choose_split()
        if split is None:
            return None
        group_v, group_h = split
        split_y = group_v * l
        state = _MixedState(
            vertical=Frontier(y=0, length=split_y, item_width=s, item_height=l),
            horizontal=Frontier(y=split_y, length=group_h * s, item_width=l, item_height=s),
            group_v=group_v,
            group_h=group_h,
        )
        vf, hf = state.vertical, state.horizontal

        while len(state.verts) + len(state.horzs) < n:
            if vf.shape is Shape.STEPPED:
                state.verts.append(vf.place())
            elif hf.shape is Shape.STEPPED:
                state.horzs.append(hf.place())
            elif hf.can_open(limit=vf.x):
                hf.open_column()
                state.horzs.append(hf.place())
            elif vf.can_open(limit=self.bin_width):
                vf.open_column()
                state.verts.append(vf.place())
            else:
                break

        remaining = n - len(state.verts) - len(state.horzs)
        ensure_settled(vf, hf, remaining)

        if remaining > 0:
            if hf.x < vf.x:
                return self._fill_below(state, remaining)
            return self._mixed_solution(state)

        return self._rebalance(state)

    def _mixed_solution(self, state: _MixedState) -> Solution:
        return self._solution(
            state.verts + state.extra_verts, state.horzs + state.extra_horzs
        )

    def _fill_below(self, state: _MixedState, remaining: int) -> Solution:
        """Use the region right of the lying band and below the standing band."""
        s, l = self.short_side, self.long_side
        x0 = int(state.horizontal.x)
        y0 = int(state.band_split)
        region_w = self.bin_width - x0
        region_h = self.bin_height - y0

        options = []
        options.append(
            (fill_grid(x0, y0, region_w, region_h, s, l, remaining), [])
        )
        options.append(
            ([], fill_grid(x0, y0, region_w, region_h, l, s, remaining))
        )
        if region_w >= l:
            tail = fill_grid(x0, y0, l, region_h, l, s, remaining)
            options.append(
                (fill_grid(x0 + l, y0, region_w - l, region_h, s, l, remaining - len(tail)), tail)
            )

        best = None
        for verts, horzs in options:
            candidate = self._solution(state.verts + verts, state.horzs + horzs)
            if candidate.is_better_than(best):
                best = candidate
        return best

    # ─────────────────────────────────────────────────────────────────────
    # Rebalancing
    # ─────────────────────────────────────────────────────────────────────

    def _rebalance(self, state: _MixedState) -> Solution:
        """
        Trade trailing standing items into the lying band.

        Each move works on a copy and is kept only when it pulls max X in;
        moves are tried in order, each starting from what the previous
        ones left behind.
        """
        s, l = self.short_side, self.long_side
        threshold = int(s * self.ratio)
        hf = state.horizontal
        open_height = self.bin_height - state.band_split

        if open_height < l:
            state = self._try(state, self._move_last_column, threshold)
            state = self._try(state, self._swap_two_for_one, threshold)
            return self._mixed_solution(state)

        if state.group_v > 1 and hf.shape is Shape.STEPPED and open_height - hf.filled * s >= l:
            # A standing item fits above the partial lying column.
            state = self._try(state, self._stand_last_lying_column, threshold)
            state = self._try(state, self._move_last_column, 0)
        else:
            state = self._try(state, self._move_last_column, threshold)
        state = self._try(state, self._move_into_lying_band, threshold)
        return self._mixed_solution(state)

    def _try(self, state: _MixedState, move, threshold: int) -> _MixedState:
        """Apply ``move`` to a copy; keep it only if max X shrinks."""
        trial = copy.deepcopy(state)
        if not move(trial, threshold):
            return state
        before = self._mixed_solution(state).max_x
        after = self._mixed_solution(trial).max_x
        if after < before:
            logger.debug("single: %s pulled max_x %d -> %d", move.__name__, before, after)
            return trial
        return state

    def _move_last_column(self, state: _MixedState, threshold: int) -> bool:
        """Lay trailing standing columns into the open slots of the lying column."""
        vf, hf = state.vertical, state.horizontal
        moved = False
        while hf.shape is Shape.STEPPED and state.verts:
            last_column = state.last_column
            if last_column > hf.open_slots or not hf.x < vf.x - threshold:
                break
            for _ in range(last_column):
                state.verts.pop()
                vf.release()
                state.horzs.append(hf.place())
            moved = True
        return moved

    def _lying_band_infill(self, state: _MixedState, x: float) -> Frontier:
        """Standing columns over the full height above the standing band, from ``x``."""
        split_y = state.band_split
        return Frontier(
            y=split_y,
            length=self.bin_height - split_y,
            item_width=self.short_side,
            item_height=self.long_side,
            x=x,
        )

    def _move_into_lying_band(self, state: _MixedState, threshold: int) -> bool:
        """
        Stand trailing items up in the lying band, right of its last column.

        Columns are filled bottom-up and a new one is opened only while its
        right edge stays more than ``threshold`` left of the standing band.
        """
        vf = state.vertical
        if state.infill is None:
            state.infill = self._lying_band_infill(state, state.horizontal.x)
        infill = state.infill
        moved = False
        while state.verts:
            if infill.shape is Shape.FLUSH:
                if not infill.x + infill.item_width < vf.x - threshold:
                    break
                infill.open_column()
            elif not infill.x < vf.x - threshold:
                break
            state.verts.pop()
            vf.release()
            state.extra_verts.append(infill.place())
            moved = True
        return moved

    def _stand_last_lying_column(self, state: _MixedState, threshold: int) -> bool:
        """
        Stand the items of the partial lying column upright in its place.

        The freed height above them takes the last standing column when it
        fits; further standing columns follow as in ``_move_into_lying_band``.
        """
        l = self.long_side
        vf, hf = state.vertical, state.horizontal
        lying = hf.filled
        if hf.shape is not Shape.STEPPED or lying * l > self.bin_height - state.band_split:
            return False

        column_x = hf.x - hf.item_width
        for _ in range(lying):
            state.horzs.pop()
            hf.release()
        infill = self._lying_band_infill(state, column_x)
        infill.open_column()
        for _ in range(lying):
            state.extra_verts.append(infill.place())
        state.infill = infill

        last_column = state.last_column
        if infill.shape is Shape.STEPPED and state.verts and last_column <= infill.open_slots:
            for _ in range(last_column):
                state.verts.pop()
                vf.release()
                state.extra_verts.append(infill.place())

        self._move_into_lying_band(state, threshold)
        return True

    def _swap_two_for_one(self, state: _MixedState, threshold: int) -> bool:
        """
        Replace the last two single-item standing columns by one lying item
        on top and one standing item straddling the two bands.

        Only for one standing row over one lying row, where the two freed
        columns are wider than what the replacements need.
        """
        s, l = self.short_side, self.long_side
        vf, hf = state.vertical, state.horizontal
        if not (state.group_v == 1 and state.group_h == 1):
            return False
        if len(state.verts) <= 2 or len(state.horzs) <= 1:
            return False
        vx, hx = vf.x, hf.x
        if not (vx > hx and vx - 2 * s < hx):
            return False
        if not max(vx - 2 * s + l, hx + s) < vx:
            return False
        for _ in range(2):
            state.verts.pop()
            vf.release()
        state.extra_horzs.append((vx - 2 * s, 0.0))
        state.extra_verts.append((hx, float(s)))
        return True
