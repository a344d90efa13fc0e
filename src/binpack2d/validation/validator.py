"""
Layout validator — stateless checks on finished or in-progress layouts.

All checks take plain sequences of ``Rect`` and the bin size, returning
True or raising a ``PlacementError`` subclass.

Checks:
  1. Bounds    — every rectangle lies inside [0, width) × [0, height)
  2. Overlap   — no two rectangles intersect (edge contact is allowed)
  3. Coverage  — placed + free regions tile the bin exactly once
                 (area sum, plus a numpy occupancy grid for small bins)
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from binpack2d.core.rect import Rect


# ─────────────────────────────────────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────────────────────────────────────

class PlacementError(Exception):
    """Base class for layout validation errors."""


class OutOfBoundsError(PlacementError):
    """A rectangle extends outside the bin."""


class OverlapError(PlacementError):
    """Two placed rectangles share interior area."""


class CoverageError(PlacementError):
    """Placed and free regions do not tile the bin."""


# ─────────────────────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────────────────────

# Bins with more cells than this only get the area-sum coverage check.
MAX_GRID_CELLS = 4_000_000


# ─────────────────────────────────────────────────────────────────────────────
# Checks
# ─────────────────────────────────────────────────────────────────────────────

def check_bounds(rects: Sequence[Rect], width: int, height: int) -> bool:
    for i, r in enumerate(rects):
        if r.x < 0 or r.y < 0 or r.right > width or r.bottom > height:
            raise OutOfBoundsError(
                f"Rect #{i} {r!r} leaves the {width}×{height} bin "
                f"(right={r.right}, bottom={r.bottom})"
            )
    return True


def find_overlaps(rects: Sequence[Rect]) -> List[Tuple[int, int]]:
    """Index pairs (i, j), i < j, of intersecting rectangles."""
    # Sweep along X so only rectangles with overlapping X ranges are compared.
    order = sorted(range(len(rects)), key=lambda k: rects[k].x)
    active: List[int] = []
    pairs = []
    for k in order:
        r = rects[k]
        active = [a for a in active if rects[a].right > r.x]
        for a in active:
            if rects[a].intersects(r):
                pairs.append((min(a, k), max(a, k)))
        active.append(k)
    return sorted(pairs)


def check_overlaps(rects: Sequence[Rect]) -> bool:
    pairs = find_overlaps(rects)
    if pairs:
        i, j = pairs[0]
        raise OverlapError(
            f"{len(pairs)} overlapping pair(s); first: #{i} {rects[i]!r} vs #{j} {rects[j]!r}"
        )
    return True


def coverage_grid(rects: Sequence[Rect], width: int, height: int) -> np.ndarray:
    """Per-cell count of rectangles covering it, shape (height, width)."""
    grid = np.zeros((height, width), dtype=np.int32)
    for r in rects:
        grid[max(r.y, 0):min(r.bottom, height), max(r.x, 0):min(r.right, width)] += 1
    return grid


def check_area_conservation(
    used: Sequence[Rect],
    free: Sequence[Rect],
    width: int,
    height: int,
    max_cells: Optional[int] = MAX_GRID_CELLS,
) -> bool:
    """
    Placed and free regions must cover every cell of the bin exactly once.

    Raises:
        CoverageError: if the areas do not add up, or (grid check) some cell
                       is covered twice or not at all.
    """
    total = sum(r.area for r in used) + sum(r.area for r in free)
    if total != width * height:
        raise CoverageError(
            f"used + free area = {total}, bin area = {width * height}"
        )
    if max_cells is not None and width * height > max_cells:
        return True

    grid = coverage_grid(list(used) + list(free), width, height)
    if not np.all(grid == 1):
        holes = int(np.count_nonzero(grid == 0))
        doubles = int(np.count_nonzero(grid > 1))
        raise CoverageError(
            f"{holes} uncovered cell(s), {doubles} cell(s) covered more than once"
        )
    return True


def utilization(rects: Sequence[Rect], width: int, height: int) -> float:
    """Placed area as a fraction of the bin area."""
    return sum(r.area for r in rects) / float(width * height)


def validate_layout(rects: Sequence[Rect], width: int, height: int) -> bool:
    """
    Run the bounds and overlap checks on placed rectangles.

    Failed-placement sentinels are ignored.

    Raises:
        OutOfBoundsError: a rectangle leaves the bin.
        OverlapError:     two rectangles intersect.
    """
    placed = [r for r in rects if r.is_placed]
    check_bounds(placed, width, height)
    check_overlaps(placed)
    return True
