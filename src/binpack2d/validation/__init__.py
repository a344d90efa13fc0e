"""Layout checks shared by the harness and the tests."""

from .validator import (
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

__all__ = [
    "PlacementError",
    "OutOfBoundsError",
    "OverlapError",
    "CoverageError",
    "check_bounds",
    "check_overlaps",
    "find_overlaps",
    "coverage_grid",
    "check_area_conservation",
    "utilization",
    "validate_layout",
]
