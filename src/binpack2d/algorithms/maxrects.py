"""
MaxRects packer — maximal, possibly overlapping free rectangles.

The free list holds every maximal empty rectangle of the bin. Placing an
item punches a hole in each free rectangle it intersects; the residual
bands around the hole replace the original, and any free rectangle that
ends up inside another one is pruned.

Heuristics (every free rectangle, upright and rotated, one global winner):
  BEST_SHORT_SIDE_FIT  — (short leftover, long leftover)
  BEST_LONG_SIDE_FIT   — (long leftover, short leftover)
  BEST_AREA_FIT        — (leftover area, short leftover)
  BOTTOM_LEFT          — (top edge y, x)
  CONTACT_POINT        — maximize edge length touching the bin or placed items
"""

import logging
from enum import Enum
from typing import Iterator, List, Sequence, Tuple

from binpack2d.algorithms.base import BasePacker, parse_choice, pick_best, register_packer
from binpack2d.core.rect import Rect, check_dimensions

logger = logging.getLogger(__name__)


class MaxRectsHeuristic(Enum):
    BEST_SHORT_SIDE_FIT = "bssf"
    BEST_LONG_SIDE_FIT = "blsf"
    BEST_AREA_FIT = "baf"
    BOTTOM_LEFT = "bl"
    CONTACT_POINT = "cp"


def common_interval_length(start1: int, end1: int, start2: int, end2: int) -> int:
    """Length of the overlap of two closed intervals (0 if they are apart)."""
    if end1 < start2 or end2 < start1:
        return 0
    return min(end1, end2) - max(start1, start2)


def contact_point_score(
    candidate: Rect, used: Sequence[Rect], bin_width: int, bin_height: int
) -> int:
    """Total edge length of ``candidate`` touching the bin border or used rectangles."""
    score = 0
    if candidate.x == 0 or candidate.right == bin_width:
        score += candidate.height
    if candidate.y == 0 or candidate.bottom == bin_height:
        score += candidate.width
    for r in used:
        if r.x == candidate.right or r.right == candidate.x:
            score += common_interval_length(r.y, r.bottom, candidate.y, candidate.bottom)
        if r.y == candidate.bottom or r.bottom == candidate.y:
            score += common_interval_length(r.x, r.right, candidate.x, candidate.right)
    return score


def split_free_node(free: Rect, used: Rect) -> List[Rect]:
    """
    Residual bands of ``free`` around ``used``.

    Assumes the two intersect. Each band spans the full free rectangle along
    one axis, so neighbouring bands overlap at the corners.
    """
    bands = []
    if used.x < free.right and used.right > free.x:
        if free.y < used.y < free.bottom:
            bands.append(Rect(free.x, free.y, free.width, used.y - free.y))
        if used.bottom < free.bottom:
            bands.append(Rect(free.x, used.bottom, free.width, free.bottom - used.bottom))
    if used.y < free.bottom and used.bottom > free.y:
        if free.x < used.x < free.right:
            bands.append(Rect(free.x, free.y, used.x - free.x, free.height))
        if used.right < free.right:
            bands.append(Rect(used.right, free.y, free.right - used.right, free.height))
    return bands


def prune_free_list(free: Sequence[Rect]) -> List[Rect]:
    """Drop every rectangle contained in another; the first of identical twins survives."""
    kept = []
    for i, rect in enumerate(free):
        redundant = False
        for j, other in enumerate(free):
            if i == j or not other.contains(rect):
                continue
            if other != rect or j < i:
                redundant = True
                break
        if not redundant:
            kept.append(rect)
    return kept


@register_packer
class MaxRectsBinPack(BasePacker):
    """
    MaxRects bin packer.

    Args:
        width, height:   Bin size.
        allow_rotations: Also try every item rotated by 90°.
        method:          Default heuristic for ``insert``.
    """

    name = "maxrects"

    def __init__(
        self,
        width: int,
        height: int,
        allow_rotations: bool = True,
        method=MaxRectsHeuristic.BEST_SHORT_SIDE_FIT,
    ) -> None:
        self.method = parse_choice(MaxRectsHeuristic, method)
        self.init(width, height, allow_rotations)

    @classmethod
    def from_config(cls, bin_config, packer_config) -> "MaxRectsBinPack":
        return cls(
            bin_config.width,
            bin_config.height,
            allow_rotations=packer_config.allow_rotations,
            method=packer_config.heuristic or MaxRectsHeuristic.BEST_SHORT_SIDE_FIT,
        )

    def init(self, width: int, height: int, allow_rotations: bool = True) -> None:
        check_dimensions(width, height, what="bin")
        self.bin_width = width
        self.bin_height = height
        self.allow_rotations = allow_rotations
        self._used: List[Rect] = []
        self._free: List[Rect] = [Rect(0, 0, width, height)]

    @property
    def free_rectangles(self) -> Tuple[Rect, ...]:
        return tuple(self._free)

    def insert(self, width: int, height: int, method=None) -> Rect:
        check_dimensions(width, height)
        method = self.method if method is None else parse_choice(MaxRectsHeuristic, method)

        placed = pick_best(self._candidates(width, height, method))
        if placed is None:
            logger.debug("maxrects: no position for %d×%d", width, height)
            return Rect.failed()

        self.place_rect(placed)
        return placed

    def place_rect(self, placed: Rect) -> None:
        """Commit ``placed`` and rebuild the free list around it."""
        rebuilt = []
        for free in self._free:
            if free.intersects(placed):
                rebuilt.extend(split_free_node(free, placed))
            else:
                rebuilt.append(free)
        self._free = prune_free_list(rebuilt)
        self._used.append(placed)
        logger.debug("maxrects: placed %r, %d free rects", placed, len(self._free))

    def _candidates(
        self, width: int, height: int, method: MaxRectsHeuristic
    ) -> Iterator[Tuple[tuple, Rect]]:
        orientations = [(width, height)]
        if self.allow_rotations:
            orientations.append((height, width))
        for free in self._free:
            for w, h in orientations:
                if free.width >= w and free.height >= h:
                    yield self._score(method, free, w, h), Rect(free.x, free.y, w, h)

    def _score(self, method: MaxRectsHeuristic, free: Rect, w: int, h: int) -> tuple:
        """Score tuple for placing w×h at the top-left of ``free``. Lower is better."""
        leftover_w = abs(free.width - w)
        leftover_h = abs(free.height - h)
        short_side = min(leftover_w, leftover_h)
        long_side = max(leftover_w, leftover_h)
        if method is MaxRectsHeuristic.BEST_SHORT_SIDE_FIT:
            return short_side, long_side
        if method is MaxRectsHeuristic.BEST_LONG_SIDE_FIT:
            return long_side, short_side
        if method is MaxRectsHeuristic.BEST_AREA_FIT:
            return free.area - w * h, short_side
        if method is MaxRectsHeuristic.BOTTOM_LEFT:
            return free.y + h, free.x
        candidate = Rect(free.x, free.y, w, h)
        return (-contact_point_score(candidate, self._used, self.bin_width, self.bin_height),)
