"""
Packer interface — abstract base class and registry for the online packers.

Every online packer places one item per ``insert`` call and answers with a
``Rect``; the failed-placement sentinel (height 0) means "does not fit".

Creating a packer
~~~~~~~~~~~~~~~~~
1. Subclass ``BasePacker``, set ``name``, implement ``init()``, ``insert()``,
   ``free_rectangles`` and ``from_config()``
2. Decorate with ``@register_packer``
3. Import the module in ``algorithms/__init__.py``
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple, Type, TypeVar

from binpack2d.core.errors import UnknownPackerError
from binpack2d.core.rect import Rect


E = TypeVar("E", bound=Enum)
T = TypeVar("T")


def parse_choice(enum_cls: Type[E], value) -> E:
    """
    Resolve a heuristic given as an enum member, its short code or its name.

    >>> from binpack2d.algorithms.guillotine import FreeRectChoice
    >>> parse_choice(FreeRectChoice, "bssf")
    <FreeRectChoice.BEST_SHORT_SIDE_FIT: 'bssf'>
    >>> parse_choice(FreeRectChoice, "best_area_fit")
    <FreeRectChoice.BEST_AREA_FIT: 'baf'>
    """
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        key = value.strip()
        for member in enum_cls:
            if key.lower() == member.value or key.upper() == member.name:
                return member
    options = ", ".join(m.value for m in enum_cls)
    raise ValueError(f"Unknown {enum_cls.__name__} '{value}'.  Available: [{options}]")


class BasePacker(ABC):
    """
    Abstract base for single-item, online packers.

    Subclasses own all of their free-space bookkeeping. The read-only views
    ``used_rectangles`` and ``free_rectangles`` are tuples so callers cannot
    mutate packer state through them.
    """

    name: str = "base"

    bin_width: int = 0
    bin_height: int = 0
    _used: List[Rect]

    @abstractmethod
    def init(self, width: int, height: int) -> None:
        """Reset the packer to an empty bin of the given size."""
        ...

    @abstractmethod
    def insert(self, width: int, height: int) -> Rect:
        """Place one item; returns the sentinel if it does not fit."""
        ...

    @property
    def used_rectangles(self) -> Tuple[Rect, ...]:
        """Placed items, in insertion order."""
        return tuple(self._used)

    @property
    @abstractmethod
    def free_rectangles(self) -> Tuple[Rect, ...]:
        ...

    @classmethod
    @abstractmethod
    def from_config(cls, bin_config, packer_config) -> "BasePacker":
        """Build a packer from ``BinConfig`` / ``PackerConfig``."""
        ...

    def occupancy(self) -> float:
        """Fraction of the bin area covered by placed items."""
        total = self.bin_width * self.bin_height
        if total == 0:
            return 0.0
        return sum(r.area for r in self.used_rectangles) / total

    def pack(self, sizes: Iterable[Tuple[int, int]]) -> List[Rect]:
        """Insert every (width, height) in order; failed items yield the sentinel."""
        return [self.insert(w, h) for w, h in sizes]

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.bin_width}×{self.bin_height}, "
            f"used={len(self.used_rectangles)}, free={len(self.free_rectangles)})"
        )


# ─────────────────────────────────────────────────────────────────────────────
# Packer registry
# ─────────────────────────────────────────────────────────────────────────────

PACKER_REGISTRY: Dict[str, Type[BasePacker]] = {}


def register_packer(cls: Type[BasePacker]) -> Type[BasePacker]:
    """Class decorator — registers a packer in the global registry."""
    PACKER_REGISTRY[cls.name] = cls
    return cls


def get_packer_class(name: str) -> Type[BasePacker]:
    if name not in PACKER_REGISTRY:
        available = ", ".join(sorted(PACKER_REGISTRY.keys()))
        raise UnknownPackerError(f"Unknown packer '{name}'.  Available: [{available}]")
    return PACKER_REGISTRY[name]


def get_packer(name: str, width: int, height: int, **options) -> BasePacker:
    """Look up a packer by name and return a new instance for a width×height bin."""
    return get_packer_class(name)(width, height, **options)


def pick_best(candidates: Iterable[Tuple[tuple, T]]) -> Optional[T]:
    """Lowest score tuple wins; the first candidate wins ties."""
    best_score = None
    best = None
    for score, item in candidates:
        if best_score is None or score < best_score:
            best_score = score
            best = item
    return best
