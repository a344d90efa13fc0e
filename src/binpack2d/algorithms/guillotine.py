"""
Guillotine packer — disjoint free-rectangle partition with straight cuts.

Each placement consumes one free rectangle and splits what is left of it
into at most two new free rectangles with a single edge-to-edge cut, so the
free list always stays a partition of the unused area.

Free-rect choice heuristics (lower score wins):
  BEST_AREA_FIT        — leftover area
  BEST_SHORT_SIDE_FIT  — smaller of the two leftover sides
  BEST_LONG_SIDE_FIT   — larger of the two leftover sides
  WORST_*              — negation of the matching BEST_* score

Only the upright orientation is tried; rotation is the caller's business.
"""

import logging
from enum import Enum
from typing import List, Optional, Tuple

from binpack2d.algorithms.base import BasePacker, parse_choice, register_packer
from binpack2d.core.rect import Rect, check_dimensions

logger = logging.getLogger(__name__)


class FreeRectChoice(Enum):
    BEST_AREA_FIT = "baf"
    BEST_SHORT_SIDE_FIT = "bssf"
    BEST_LONG_SIDE_FIT = "blsf"
    WORST_AREA_FIT = "waf"
    WORST_SHORT_SIDE_FIT = "wssf"
    WORST_LONG_SIDE_FIT = "wlsf"


class SplitRule(Enum):
    SHORTER_LEFTOVER_AXIS = "slas"
    LONGER_LEFTOVER_AXIS = "llas"
    MINIMIZE_AREA = "minas"
    MAXIMIZE_AREA = "maxas"
    SHORTER_AXIS = "sas"
    LONGER_AXIS = "las"


_WORST = {
    FreeRectChoice.WORST_AREA_FIT,
    FreeRectChoice.WORST_SHORT_SIDE_FIT,
    FreeRectChoice.WORST_LONG_SIDE_FIT,
}


def score_free_rect(choice: FreeRectChoice, width: int, height: int, free: Rect) -> int:
    """Score placing a width×height item into ``free``. Lower is better."""
    leftover_w = free.width - width
    leftover_h = free.height - height
    if choice in (FreeRectChoice.BEST_AREA_FIT, FreeRectChoice.WORST_AREA_FIT):
        score = free.area - width * height
    elif choice in (FreeRectChoice.BEST_SHORT_SIDE_FIT, FreeRectChoice.WORST_SHORT_SIDE_FIT):
        score = min(leftover_w, leftover_h)
    else:
        score = max(leftover_w, leftover_h)
    return -score if choice in _WORST else score


def split_horizontally(rule: SplitRule, free: Rect, placed: Rect) -> bool:
    """
    Decide the cut direction for the space ``placed`` leaves inside ``free``.

    A horizontal cut gives the bottom piece the full free width; a vertical
    cut gives the right piece the full free height.
    """
    leftover_w = free.width - placed.width
    leftover_h = free.height - placed.height
    if rule is SplitRule.SHORTER_LEFTOVER_AXIS:
        return leftover_w <= leftover_h
    if rule is SplitRule.LONGER_LEFTOVER_AXIS:
        return leftover_w > leftover_h
    if rule is SplitRule.MINIMIZE_AREA:
        return leftover_w * placed.height > leftover_h * placed.width
    if rule is SplitRule.MAXIMIZE_AREA:
        return leftover_w * placed.height <= leftover_h * placed.width
    if rule is SplitRule.SHORTER_AXIS:
        return free.width <= free.height
    return free.width > free.height


def split_free_rect(free: Rect, placed: Rect, horizontal: bool) -> List[Rect]:
    """The 0-2 non-empty pieces left over after cutting ``placed`` out of ``free``."""
    leftover_w = free.width - placed.width
    leftover_h = free.height - placed.height
    pieces = []
    if horizontal:
        if leftover_h > 0:
            pieces.append(Rect(free.x, free.y + placed.height, free.width, leftover_h))
        if leftover_w > 0:
            pieces.append(Rect(free.x + placed.width, free.y, leftover_w, placed.height))
    else:
        if leftover_w > 0:
            pieces.append(Rect(free.x + placed.width, free.y, leftover_w, free.height))
        if leftover_h > 0:
            pieces.append(Rect(free.x, free.y + placed.height, placed.width, leftover_h))
    return pieces


@register_packer
class GuillotineBinPack(BasePacker):
    """
    Guillotine bin packer.

    Args:
        width, height: Bin size.
        merge:         Default for ``insert(merge=...)``.
        choice:        Default free-rect choice heuristic.
        split:         Default split rule.
    """

    name = "guillotine"

    def __init__(
        self,
        width: int,
        height: int,
        merge: bool = True,
        choice=FreeRectChoice.BEST_AREA_FIT,
        split=SplitRule.SHORTER_LEFTOVER_AXIS,
    ) -> None:
        self.merge = merge
        self.choice = parse_choice(FreeRectChoice, choice)
        self.split = parse_choice(SplitRule, split)
        self.init(width, height)

    @classmethod
    def from_config(cls, bin_config, packer_config) -> "GuillotineBinPack":
        return cls(
            bin_config.width,
            bin_config.height,
            merge=packer_config.merge,
            choice=packer_config.heuristic or FreeRectChoice.BEST_AREA_FIT,
            split=packer_config.split or SplitRule.SHORTER_LEFTOVER_AXIS,
        )

    def init(self, width: int, height: int) -> None:
        check_dimensions(width, height, what="bin")
        self.bin_width = width
        self.bin_height = height
        self._used: List[Rect] = []
        self._free: List[Rect] = [Rect(0, 0, width, height)]

    @property
    def free_rectangles(self) -> Tuple[Rect, ...]:
        return tuple(self._free)

    def insert(
        self,
        width: int,
        height: int,
        merge: Optional[bool] = None,
        choice=None,
        split=None,
    ) -> Rect:
        """
        Place a width×height item without rotating it.

        Returns:
            The placed Rect, or the failed-placement sentinel. On failure
            the free list is left untouched.
        """
        check_dimensions(width, height)
        merge = self.merge if merge is None else merge
        choice = self.choice if choice is None else parse_choice(FreeRectChoice, choice)
        split = self.split if split is None else parse_choice(SplitRule, split)

        index = self._find_free_rect(width, height, choice)
        if index is None:
            logger.debug("guillotine: no free rect for %d×%d", width, height)
            return Rect.failed()

        free = self._free[index]
        placed = Rect(free.x, free.y, width, height)
        pieces = split_free_rect(free, placed, split_horizontally(split, free, placed))
        del self._free[index]
        self._free.extend(pieces)

        if merge:
            self.merge_free_rectangles()

        self._used.append(placed)
        logger.debug("guillotine: placed %r in %r (%d pieces)", placed, free, len(pieces))
        return placed

    def _find_free_rect(self, width: int, height: int, choice: FreeRectChoice) -> Optional[int]:
        best_index = None
        best_score = None
        for i, free in enumerate(self._free):
            if width <= free.width and height <= free.height:
                score = score_free_rect(choice, width, height, free)
                if best_score is None or score < best_score:
                    best_index, best_score = i, score
        return best_index

    def merge_free_rectangles(self) -> None:
        """
        Join free rectangles that share a full edge.

        One nested pass over the list: a rectangle grown by a merge keeps
        absorbing later neighbours during the pass, but the pass is not
        repeated until nothing changes.
        """
        free = self._free
        i = 0
        while i < len(free):
            j = i + 1
            while j < len(free):
                merged = _merge_pair(free[i], free[j])
                if merged is None:
                    j += 1
                    continue
                free[i] = merged
                del free[j]
            i += 1


def _merge_pair(a: Rect, b: Rect) -> Optional[Rect]:
    if a.width == b.width and a.x == b.x:
        if a.y == b.bottom:
            return Rect(a.x, b.y, a.width, a.height + b.height)
        if a.bottom == b.y:
            return Rect(a.x, a.y, a.width, a.height + b.height)
    elif a.height == b.height and a.y == b.y:
        if a.x == b.right:
            return Rect(b.x, a.y, a.width + b.width, a.height)
        if a.right == b.x:
            return Rect(a.x, a.y, a.width + b.width, a.height)
    return None


class WasteMap(GuillotineBinPack):
    """
    Free-space tracker for leftovers of another packer.

    Starts with an empty free list; the owning packer feeds it regions it
    has given up on via ``recover`` and later asks it for placements first.
    """

    def __init__(self, width: int, height: int) -> None:
        super().__init__(
            width,
            height,
            merge=True,
            choice=FreeRectChoice.BEST_SHORT_SIDE_FIT,
            split=SplitRule.MAXIMIZE_AREA,
        )

    def init(self, width: int, height: int) -> None:
        super().init(width, height)
        self._free.clear()

    def recover(self, rect: Rect) -> None:
        """Add a non-empty region to the free list."""
        if rect.width > 0 and rect.height > 0:
            self._free.append(rect)

