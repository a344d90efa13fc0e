"""
Rect — integer axis-aligned rectangle shared by every packer.

Coordinates are top-left based with Y growing downward. A rectangle with
height 0 is the "failed placement" sentinel returned by ``insert`` when an
item does not fit.
"""

from dataclasses import dataclass
from numbers import Integral

from binpack2d.core.errors import InvalidDimensionError


@dataclass(frozen=True)
class Rect:
    """
    An immutable rectangle.

    Attributes:
        x, y:   Top-left corner.
        width:  Extent along X.
        height: Extent along Y (0 marks a failed placement).
    """
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    @classmethod
    def failed(cls) -> "Rect":
        """The sentinel returned when an item cannot be placed."""
        return cls(0, 0, 0, 0)

    @property
    def is_placed(self) -> bool:
        return self.height != 0

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    def contains(self, other: "Rect") -> bool:
        """True if ``other`` lies entirely inside this rectangle (edges may coincide)."""
        return (other.x >= self.x and other.y >= self.y
                and other.right <= self.right and other.bottom <= self.bottom)

    def intersects(self, other: "Rect") -> bool:
        """Strict overlap test: rectangles that only share an edge do not intersect."""
        return (self.x < other.right and self.right > other.x
                and self.y < other.bottom and self.bottom > other.y)

    def rotated(self) -> "Rect":
        """Same top-left corner with width and height swapped."""
        return Rect(self.x, self.y, self.height, self.width)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, d: dict) -> "Rect":
        return cls(x=d["x"], y=d["y"], width=d["width"], height=d["height"])

    def __repr__(self) -> str:
        if not self.is_placed:
            return "Rect(FAILED)"
        return f"Rect({self.x}, {self.y}, {self.width}×{self.height})"


def check_dimensions(width, height, what: str = "item") -> None:
    """
    Reject sizes that can never describe a real rectangle.

    Every packer routes bin and item sizes through here so that row and
    column arithmetic never sees a zero or negative divisor.

    Raises:
        InvalidDimensionError: if either value is not a positive integer.
    """
    for label, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or not isinstance(value, Integral):
            raise InvalidDimensionError(
                f"{what} {label} must be an integer, got {value!r}"
            )
        if value <= 0:
            raise InvalidDimensionError(
                f"{what} {label} must be positive, got {value}"
            )


def check_quantity(quantity) -> None:
    """Raises InvalidDimensionError for a negative or non-integer quantity."""
    if isinstance(quantity, bool) or not isinstance(quantity, Integral):
        raise InvalidDimensionError(f"quantity must be an integer, got {quantity!r}")
    if quantity < 0:
        raise InvalidDimensionError(f"quantity must not be negative, got {quantity}")
