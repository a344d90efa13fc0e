"""
Configuration dataclasses for packing runs.

Classes:
    BinConfig    — sheet dimensions
    PackerConfig — which packer to run and its heuristic options
    ItemSpec     — one item size and how many of it to place
    RunConfig    — everything the harness needs for a single run

All are frozen and round-trip through ``to_dict`` / ``from_dict``;
``RunConfig.from_yaml`` reads the same shape from a YAML file.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

import yaml


# ─────────────────────────────────────────────────────────────────────────────
# Bin & items
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class BinConfig:
    """
    Sheet dimensions in integer units (e.g. mm).

    Attributes:
        width:  X-axis extent.
        height: Y-axis extent (Y grows downward).
    """
    width: int = 1000
    height: int = 1000

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Bin dimensions must be positive, got {self.width}×{self.height}")

    @property
    def area(self) -> int:
        return self.width * self.height

    def to_dict(self) -> dict:
        return {"width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, d: dict) -> "BinConfig":
        return cls(width=int(d["width"]), height=int(d["height"]))


@dataclass(frozen=True)
class ItemSpec:
    """An item size and the number of copies to place."""
    width: int
    height: int
    quantity: int = 1

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Item dimensions must be positive, got {self.width}×{self.height}")
        if self.quantity < 0:
            raise ValueError(f"Item quantity must not be negative, got {self.quantity}")

    def expand(self) -> List[Tuple[int, int]]:
        """One (width, height) tuple per copy."""
        return [(self.width, self.height)] * self.quantity

    def to_dict(self) -> dict:
        return {"width": self.width, "height": self.height, "quantity": self.quantity}

    @classmethod
    def from_dict(cls, d: dict) -> "ItemSpec":
        return cls(width=int(d["width"]), height=int(d["height"]),
                   quantity=int(d.get("quantity", 1)))


# ─────────────────────────────────────────────────────────────────────────────
# Packer options
# ─────────────────────────────────────────────────────────────────────────────

# Name of the uniform-item packer; every other name is looked up in the registry.
SINGLE_ALGORITHM = "single"


@dataclass(frozen=True)
class PackerConfig:
    """
    Packer selection and options.

    Attributes:
        algorithm:       "maxrects", "guillotine", "skyline", "shelf" or "single".
        heuristic:       Heuristic code or name for the algorithm (None = its default).
        split:           Guillotine split rule (None = default).
        merge:           Guillotine free-rectangle merging.
        allow_rotations: Let packers turn items by 90°.
        use_waste_map:   Skyline/Shelf waste recovery.
        ratio:           SingleBinPack rebalancing threshold ratio.
    """
    algorithm: str = "maxrects"
    heuristic: Optional[str] = None
    split: Optional[str] = None
    merge: bool = True
    allow_rotations: bool = True
    use_waste_map: bool = True
    ratio: float = 0.5

    def to_dict(self) -> dict:
        return {
            "algorithm": self.algorithm,
            "heuristic": self.heuristic,
            "split": self.split,
            "merge": self.merge,
            "allow_rotations": self.allow_rotations,
            "use_waste_map": self.use_waste_map,
            "ratio": self.ratio,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "PackerConfig":
        return cls(
            algorithm=d.get("algorithm", "maxrects"),
            heuristic=d.get("heuristic"),
            split=d.get("split"),
            merge=d.get("merge", True),
            allow_rotations=d.get("allow_rotations", True),
            use_waste_map=d.get("use_waste_map", True),
            ratio=float(d.get("ratio", 0.5)),
        )


# ─────────────────────────────────────────────────────────────────────────────
# Run configuration
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RunConfig:
    """
    All tuneable parameters for a single harness run.

    Attributes:
        name:       Label used in reports and output file names.
        bin:        Sheet dimensions.
        packer:     Packer selection and options.
        items:      Items to place, in insertion order.
        render:     Write an HTML/SVG preview.
        output_dir: Where results and previews go (None = nothing written).
        verbose:    Print every placement step.
    """
    name: str = "run"
    bin: BinConfig = field(default_factory=BinConfig)
    packer: PackerConfig = field(default_factory=PackerConfig)
    items: Tuple[ItemSpec, ...] = ()
    render: bool = False
    output_dir: Optional[str] = None
    verbose: bool = False

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "bin": self.bin.to_dict(),
            "packer": self.packer.to_dict(),
            "items": [item.to_dict() for item in self.items],
            "render": self.render,
            "output_dir": self.output_dir,
            "verbose": self.verbose,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "RunConfig":
        return cls(
            name=d.get("name", "run"),
            bin=BinConfig.from_dict(d.get("bin", {"width": 1000, "height": 1000})),
            packer=PackerConfig.from_dict(d.get("packer", {})),
            items=tuple(ItemSpec.from_dict(i) for i in d.get("items", [])),
            render=d.get("render", False),
            output_dir=d.get("output_dir"),
            verbose=d.get("verbose", False),
        )

    @classmethod
    def from_yaml(cls, path) -> "RunConfig":
        """Load a run from a YAML file with the same layout as ``to_dict``."""
        with Path(path).open() as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    def to_yaml(self, path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)
