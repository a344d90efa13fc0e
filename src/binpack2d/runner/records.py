"""
Run records — per-step log entries and the result of one harness run.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from binpack2d.core.rect import Rect


@dataclass(frozen=True)
class StepRecord:
    """
    Log of a single insert (success or rejection).

    Frozen so it can be examined without risk of mutation.
    """
    step: int
    width: int
    height: int
    success: bool
    placement: Optional[Rect] = None
    occupancy_after: float = 0.0
    elapsed_ms: float = 0.0

    @property
    def rotated(self) -> bool:
        return (self.placement is not None and self.width != self.height
                and self.placement.width == self.height)

    def to_dict(self) -> dict:
        d = {
            "step": self.step,
            "item_dims": [self.width, self.height],
            "success": self.success,
            "occupancy_after": round(self.occupancy_after, 6),
            "elapsed_ms": round(self.elapsed_ms, 3),
        }
        if self.success and self.placement is not None:
            d["placement"] = self.placement.to_dict()
            d["rotated"] = self.rotated
        return d


@dataclass
class RunResult:
    """
    Everything one harness run produced.

    Attributes:
        name:        Run label.
        algorithm:   Packer name.
        bin_width:   Sheet width.
        bin_height:  Sheet height.
        rects:       Placed rectangles (sentinels removed).
        requested:   Number of items asked for.
        elapsed_ms:  Time spent inside the packer.
        steps:       Per-insert records (empty for the uniform-item packer).
        errors:      Validation or packing errors, as messages.
    """
    name: str
    algorithm: str
    bin_width: int
    bin_height: int
    rects: List[Rect] = field(default_factory=list)
    requested: int = 0
    elapsed_ms: float = 0.0
    steps: List[StepRecord] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def placed(self) -> int:
        return len(self.rects)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "algorithm": self.algorithm,
            "bin": [self.bin_width, self.bin_height],
            "requested": self.requested,
            "placed": self.placed,
            "elapsed_ms": round(self.elapsed_ms, 3),
            "errors": list(self.errors),
            "placements": [r.to_dict() for r in self.rects],
            "steps": [s.to_dict() for s in self.steps],
        }
