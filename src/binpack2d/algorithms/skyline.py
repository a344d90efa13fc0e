"""
Skyline packer — items rest on a flat-segment outline of the packed material.

The skyline is a list of segments ordered by x whose x-ranges partition the
bin width; each segment's y is the packed height over that span. Items are
dropped onto the skyline and the outline is raised to their top edge.

Gaps trapped between a new item and the lower segments beneath it can be
recovered through an owned waste map (a Guillotine free list). The waste
map is tried before the skyline on every insert.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from binpack2d.algorithms.base import BasePacker, parse_choice, pick_best, register_packer
from binpack2d.algorithms.guillotine import WasteMap
from binpack2d.core.rect import Rect, check_dimensions

logger = logging.getLogger(__name__)


class LevelChoice(Enum):
    BOTTOM_LEFT = "bl"
    MIN_WASTE_FIT = "mwf"


@dataclass(frozen=True)
class Segment:
    """One flat span of the skyline: [x, x + width) at height y."""
    x: int
    y: int
    width: int

    @property
    def right(self) -> int:
        return self.x + self.width


@register_packer
class SkylineBinPack(BasePacker):
    """
    Skyline bin packer.

    Args:
        width, height:   Bin size.
        use_waste_map:   Recover gaps below the skyline into a Guillotine map.
        method:          Default level-choice heuristic.
        allow_rotations: Also try every item rotated by 90°.
    """

    name = "skyline"

    def __init__(
        self,
        width: int,
        height: int,
        use_waste_map: bool = True,
        method=LevelChoice.BOTTOM_LEFT,
        allow_rotations: bool = True,
    ) -> None:
        self.method = parse_choice(LevelChoice, method)
        self.allow_rotations = allow_rotations
        self.init(width, height, use_waste_map)

    @classmethod
    def from_config(cls, bin_config, packer_config) -> "SkylineBinPack":
        return cls(
            bin_config.width,
            bin_config.height,
            use_waste_map=packer_config.use_waste_map,
            method=packer_config.heuristic or LevelChoice.BOTTOM_LEFT,
            allow_rotations=packer_config.allow_rotations,
        )

    def init(self, width: int, height: int, use_waste_map: bool = True) -> None:
        check_dimensions(width, height, what="bin")
        self.bin_width = width
        self.bin_height = height
        self.use_waste_map = use_waste_map
        self._used: List[Rect] = []
        self._skyline: List[Segment] = [Segment(0, 0, width)]
        self._waste_map: Optional[WasteMap] = WasteMap(width, height) if use_waste_map else None
        # Gaps given up on when no waste map is kept.
        self._lost: List[Rect] = []

    @property
    def skyline(self) -> Tuple[Segment, ...]:
        return tuple(self._skyline)

    @property
    def free_rectangles(self) -> Tuple[Rect, ...]:
        """
        Disjoint unused regions: recoverable gaps below the skyline (or the
        abandoned ones when the waste map is off) plus the open space above
        each segment.
        """
        below = self._waste_map.free_rectangles if self._waste_map else tuple(self._lost)
        above = tuple(
            Rect(s.x, s.y, s.width, self.bin_height - s.y)
            for s in self._skyline
            if s.y < self.bin_height
        )
        return below + above

    def insert(self, width: int, height: int, method=None) -> Rect:
        check_dimensions(width, height)
        method = self.method if method is None else parse_choice(LevelChoice, method)

        if self._waste_map is not None:
            placed = self._waste_map.insert(width, height)
            if placed.is_placed:
                self._used.append(placed)
                logger.debug("skyline: %r recovered from waste map", placed)
                return placed

        best = pick_best(self._candidates(width, height, method))
        if best is None:
            logger.debug("skyline: no level for %d×%d", width, height)
            return Rect.failed()

        index, placed = best
        self._add_level(index, placed)
        self._used.append(placed)
        return placed

    def _candidates(
        self, width: int, height: int, method: LevelChoice
    ) -> Iterator[Tuple[tuple, Tuple[int, Rect]]]:
        orientations = [(width, height)]
        if self.allow_rotations:
            orientations.append((height, width))
        for i, segment in enumerate(self._skyline):
            for w, h in orientations:
                y = self._rectangle_fits(i, w, h)
                if y is None:
                    continue
                if method is LevelChoice.BOTTOM_LEFT:
                    score = (y + h, segment.width)
                else:
                    score = (self._wasted_area(i, w, y), y + h)
                yield score, (i, Rect(segment.x, y, w, h))

    def _rectangle_fits(self, index: int, width: int, height: int) -> Optional[int]:
        """Resting y for a width×height item anchored at segment ``index``, or None."""
        skyline = self._skyline
        if skyline[index].x + width > self.bin_width:
            return None
        width_left = width
        y = skyline[index].y
        i = index
        while width_left > 0:
            y = max(y, skyline[i].y)
            if y + height > self.bin_height:
                return None
            width_left -= skyline[i].width
            i += 1
            if i >= len(skyline) and width_left > 0:
                return None
        return y

    def _gaps_below(self, index: int, width: int, y: int) -> Iterator[Rect]:
        """Regions between the segments starting at ``index`` and an item bottom at ``y``."""
        left = self._skyline[index].x
        right = left + width
        for segment in self._skyline[index:]:
            if segment.x >= right:
                break
            span_right = min(right, segment.right)
            yield Rect(segment.x, segment.y, span_right - segment.x, y - segment.y)

    def _wasted_area(self, index: int, width: int, y: int) -> int:
        return sum(gap.area for gap in self._gaps_below(index, width, y))

    def _add_level(self, index: int, placed: Rect) -> None:
        gaps = [g for g in self._gaps_below(index, placed.width, placed.y) if g.area > 0]
        if self._waste_map is not None:
            for gap in gaps:
                self._waste_map.recover(gap)
        else:
            self._lost.extend(gaps)

        skyline = self._skyline
        skyline.insert(index, Segment(placed.x, placed.bottom, placed.width))

        # Shrink or drop the segments now covered by the new one.
        i = index + 1
        while i < len(skyline):
            previous, current = skyline[i - 1], skyline[i]
            if current.x >= previous.right:
                break
            shrink = previous.right - current.x
            if current.width - shrink <= 0:
                del skyline[i]
                continue
            skyline[i] = Segment(current.x + shrink, current.y, current.width - shrink)
            break

        self._merge_skyline()
        logger.debug("skyline: placed %r, %d segments", placed, len(skyline))

    def _merge_skyline(self) -> None:
        merged = [self._skyline[0]]
        for segment in self._skyline[1:]:
            last = merged[-1]
            if segment.y == last.y:
                merged[-1] = Segment(last.x, last.y, last.width + segment.width)
            else:
                merged.append(segment)
        self._skyline = merged
