"""Geometry primitive and error types shared by all packers."""

from .errors import (
    InvalidDimensionError,
    LayoutConsistencyError,
    PackingError,
    UnknownPackerError,
)
from .rect import Rect, check_dimensions, check_quantity

__all__ = [
    "Rect",
    "check_dimensions",
    "check_quantity",
    "PackingError",
    "InvalidDimensionError",
    "LayoutConsistencyError",
    "UnknownPackerError",
]
