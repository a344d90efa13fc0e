"""
Shelf packer — items are laid left to right in horizontal bands.

Shelves stack from y = 0 downward in bin coordinates. Only the topmost
(last opened) shelf may still grow in height; earlier shelves keep the
height they had when the next shelf was opened. When the waste map is on,
closing a shelf hands its leftovers (the gap above each item and the strip
right of the last item) to an owned Guillotine map, which is tried first
on every insert.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from binpack2d.algorithms.base import BasePacker, parse_choice, pick_best, register_packer
from binpack2d.algorithms.guillotine import WasteMap
from binpack2d.core.rect import Rect, check_dimensions

logger = logging.getLogger(__name__)


class ShelfChoice(Enum):
    NEXT_FIT = "nf"
    FIRST_FIT = "ff"
    BEST_AREA_FIT = "baf"
    WORST_AREA_FIT = "waf"
    BEST_HEIGHT_FIT = "bhf"
    BEST_WIDTH_FIT = "bwf"
    WORST_WIDTH_FIT = "wwf"


@dataclass
class Shelf:
    """A band [start_y, start_y + height) filled up to ``current_x``."""
    start_y: int
    height: int
    current_x: int = 0
    closed: bool = False
    items: List[Rect] = field(default_factory=list)

    @property
    def top(self) -> int:
        return self.start_y + self.height


@register_packer
class ShelfBinPack(BasePacker):
    """
    Shelf bin packer.

    Args:
        width, height:   Bin size.
        use_waste_map:   Recover closed-shelf leftovers into a Guillotine map.
        method:          Default shelf-choice heuristic.
        allow_rotations: Allow items to be turned by 90°.
    """

    name = "shelf"

    def __init__(
        self,
        width: int,
        height: int,
        use_waste_map: bool = True,
        method=ShelfChoice.NEXT_FIT,
        allow_rotations: bool = True,
    ) -> None:
        self.method = parse_choice(ShelfChoice, method)
        self.allow_rotations = allow_rotations
        self.init(width, height, use_waste_map)

    @classmethod
    def from_config(cls, bin_config, packer_config) -> "ShelfBinPack":
        return cls(
            bin_config.width,
            bin_config.height,
            use_waste_map=packer_config.use_waste_map,
            method=packer_config.heuristic or ShelfChoice.NEXT_FIT,
            allow_rotations=packer_config.allow_rotations,
        )

    def init(self, width: int, height: int, use_waste_map: bool = True) -> None:
        check_dimensions(width, height, what="bin")
        self.bin_width = width
        self.bin_height = height
        self.use_waste_map = use_waste_map
        self._used: List[Rect] = []
        # The first shelf starts empty and takes the height of what lands on it.
        self._shelves: List[Shelf] = [Shelf(start_y=0, height=0)]
        self._waste_map: Optional[WasteMap] = WasteMap(width, height) if use_waste_map else None

    @property
    def shelves(self) -> Tuple[Shelf, ...]:
        return tuple(self._shelves)

    @property
    def free_rectangles(self) -> Tuple[Rect, ...]:
        """
        Disjoint unused regions: the waste map's free list, the leftovers of
        every shelf not yet handed to it, and the space above the top shelf.
        """
        regions: List[Rect] = list(self._waste_map.free_rectangles) if self._waste_map else []
        for shelf in self._shelves:
            if not shelf.closed:
                regions.extend(self._shelf_leftovers(shelf))
        top = self._shelves[-1].top
        if top < self.bin_height:
            regions.append(Rect(0, top, self.bin_width, self.bin_height - top))
        return tuple(regions)

    def insert(self, width: int, height: int, method=None) -> Rect:
        check_dimensions(width, height)
        method = self.method if method is None else parse_choice(ShelfChoice, method)

        if self._waste_map is not None:
            placed = self._waste_map.insert(width, height)
            if placed.is_placed:
                self._used.append(placed)
                logger.debug("shelf: %r recovered from waste map", placed)
                return placed

        choice = self._choose_shelf(width, height, method)
        if choice is not None:
            shelf, (w, h) = choice
            return self._add_to_shelf(shelf, w, h)

        # Open a new shelf with the item lying on its long side.
        if self.allow_rotations and width < height and height <= self.bin_width:
            width, height = height, width
        last = self._shelves[-1]
        if width > self.bin_width or last.top + height > self.bin_height:
            logger.debug("shelf: no room for %d×%d", width, height)
            return Rect.failed()

        if self._waste_map is not None:
            self._close_shelf(last)
        shelf = Shelf(start_y=last.top, height=height)
        self._shelves.append(shelf)
        logger.debug("shelf: opened shelf %d at y=%d", len(self._shelves) - 1, shelf.start_y)
        return self._add_to_shelf(shelf, width, height)

    # ─────────────────────────────────────────────────────────────────────
    # Shelf selection
    # ─────────────────────────────────────────────────────────────────────

    def _choose_shelf(
        self, width: int, height: int, method: ShelfChoice
    ) -> Optional[Tuple[Shelf, Tuple[int, int]]]:
        last = self._shelves[-1]
        if method is ShelfChoice.NEXT_FIT:
            dims = self._orient(last, width, height)
            return (last, dims) if dims else None

        candidates = []
        for shelf in self._shelves:
            dims = self._orient(shelf, width, height)
            if dims is None:
                continue
            if method is ShelfChoice.FIRST_FIT:
                return shelf, dims
            candidates.append((self._score(method, shelf, *dims), (shelf, dims)))
        return pick_best(candidates)

    def _score(self, method: ShelfChoice, shelf: Shelf, w: int, h: int) -> tuple:
        """Score tuple for putting a w×h item on ``shelf``. Lower is better."""
        remaining_area = (self.bin_width - shelf.current_x) * shelf.height
        remaining_width = self.bin_width - shelf.current_x - w
        if method is ShelfChoice.BEST_AREA_FIT:
            return (remaining_area,)
        if method is ShelfChoice.WORST_AREA_FIT:
            return (-remaining_area,)
        if method is ShelfChoice.BEST_HEIGHT_FIT:
            return (max(shelf.height - h, 0),)
        if method is ShelfChoice.BEST_WIDTH_FIT:
            return (remaining_width,)
        return (-remaining_width,)

    def _fits(self, shelf: Shelf, w: int, h: int) -> bool:
        # Only the top shelf can grow, up to the bin height.
        if shelf is self._shelves[-1]:
            room = self.bin_height - shelf.start_y
        else:
            room = shelf.height
        return shelf.current_x + w <= self.bin_width and h <= room

    def _orient(self, shelf: Shelf, width: int, height: int) -> Optional[Tuple[int, int]]:
        """
        Orientation to use on ``shelf``, or None if the item fits neither way.

        A wide item is stood up when it is too wide for what is left of the
        shelf or when it is lower than the shelf already is.
        """
        if not self.allow_rotations:
            return (width, height) if self._fits(shelf, width, height) else None
        if width > height and (width > self.bin_width - shelf.current_x or width < shelf.height):
            width, height = height, width
        for w, h in ((width, height), (height, width)):
            if self._fits(shelf, w, h):
                return w, h
        return None

    # ─────────────────────────────────────────────────────────────────────
    # Shelf bookkeeping
    # ─────────────────────────────────────────────────────────────────────

    def _add_to_shelf(self, shelf: Shelf, width: int, height: int) -> Rect:
        placed = Rect(shelf.current_x, shelf.start_y, width, height)
        shelf.items.append(placed)
        shelf.current_x += width
        shelf.height = max(shelf.height, height)
        self._used.append(placed)
        logger.debug("shelf: placed %r", placed)
        return placed

    def _shelf_leftovers(self, shelf: Shelf) -> List[Rect]:
        leftovers = [
            Rect(r.x, r.bottom, r.width, shelf.height - r.height)
            for r in shelf.items
            if shelf.height > r.height
        ]
        if shelf.current_x < self.bin_width and shelf.height > 0:
            leftovers.append(
                Rect(shelf.current_x, shelf.start_y, self.bin_width - shelf.current_x, shelf.height)
            )
        return leftovers

    def _close_shelf(self, shelf: Shelf) -> None:
        for region in self._shelf_leftovers(shelf):
            self._waste_map.recover(region)
        shelf.current_x = self.bin_width
        shelf.closed = True
        self._waste_map.merge_free_rectangles()
