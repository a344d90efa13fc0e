"""
Packing algorithms.

Importing this package registers every online packer in ``PACKER_REGISTRY``.
"""

from binpack2d.algorithms.base import (
    PACKER_REGISTRY,
    BasePacker,
    get_packer,
    get_packer_class,
    parse_choice,
    register_packer,
)
from binpack2d.algorithms.guillotine import FreeRectChoice, GuillotineBinPack, SplitRule, WasteMap
from binpack2d.algorithms.maxrects import MaxRectsBinPack, MaxRectsHeuristic
from binpack2d.algorithms.shelf import Shelf, ShelfBinPack, ShelfChoice
from binpack2d.algorithms.single import SingleBinPack
from binpack2d.algorithms.skyline import LevelChoice, Segment, SkylineBinPack

__all__ = [
    # Registry
    "PACKER_REGISTRY",
    "BasePacker",
    "get_packer",
    "get_packer_class",
    "parse_choice",
    "register_packer",
    # Packers
    "GuillotineBinPack",
    "MaxRectsBinPack",
    "SkylineBinPack",
    "ShelfBinPack",
    "SingleBinPack",
    "WasteMap",
    # Heuristics
    "FreeRectChoice",
    "SplitRule",
    "MaxRectsHeuristic",
    "LevelChoice",
    "ShelfChoice",
    "Segment",
    "Shelf",
]
