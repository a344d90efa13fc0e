"""2D rectangle bin packing: online packers, a uniform-item packer and a validation harness."""

from binpack2d.algorithms import (
    FreeRectChoice,
    GuillotineBinPack,
    LevelChoice,
    MaxRectsBinPack,
    MaxRectsHeuristic,
    ShelfBinPack,
    ShelfChoice,
    SingleBinPack,
    SkylineBinPack,
    SplitRule,
    get_packer,
)
from binpack2d.core import Rect

__version__ = "0.1.0"

__all__ = [
    "Rect",
    "GuillotineBinPack",
    "MaxRectsBinPack",
    "SkylineBinPack",
    "ShelfBinPack",
    "SingleBinPack",
    "FreeRectChoice",
    "SplitRule",
    "MaxRectsHeuristic",
    "LevelChoice",
    "ShelfChoice",
    "get_packer",
]
