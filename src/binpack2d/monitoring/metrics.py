"""Metrics tracking and export for packing runs.

Provides dataclasses for per-layout and per-session metrics and utilities
for exporting results to JSON and CSV formats.
"""

from __future__ import annotations

import csv
import json
import statistics
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from binpack2d.core.rect import Rect


def _now() -> datetime:
    return datetime.now(timezone.utc)


CSV_FIELDS = [
    "run_name", "algorithm", "heuristic", "placed", "requested",
    "utilization_pct", "max_x", "max_y", "elapsed_ms", "bin_width",
    "bin_height", "finished_at",
]


@dataclass
class LayoutMetrics:
    """Metrics for a single finished layout.

    Attributes:
        run_name: Label of the run that produced the layout.
        algorithm: Packer name.
        heuristic: Heuristic code used, or "" for the packer default.
        placed: Number of items placed.
        requested: Number of items asked for.
        utilization_pct: Placed area as a percentage of the bin area (0-100).
        max_x: Right-most extent of the layout.
        max_y: Bottom-most extent of the layout.
        elapsed_ms: Wall time spent inside the packer.
        bin_width: Sheet width.
        bin_height: Sheet height.
        finished_at: Timestamp of the measurement.
    """

    run_name: str
    algorithm: str
    heuristic: str
    placed: int
    requested: int
    utilization_pct: float
    max_x: int
    max_y: int
    elapsed_ms: float
    bin_width: int
    bin_height: int
    finished_at: datetime = field(default_factory=_now)

    @classmethod
    def from_rects(
        cls,
        rects: Sequence[Rect],
        bin_width: int,
        bin_height: int,
        *,
        run_name: str,
        algorithm: str,
        heuristic: str = "",
        requested: int | None = None,
        elapsed_ms: float = 0.0,
    ) -> LayoutMetrics:
        """Measure a list of placed rectangles (sentinels are skipped).

        Example:
            >>> from binpack2d.core.rect import Rect
            >>> m = LayoutMetrics.from_rects([Rect(0, 0, 50, 100)], 100, 100,
            ...                              run_name="demo", algorithm="maxrects")
            >>> m.utilization_pct
            50.0
            >>> m.max_x
            50
        """
        placed = [r for r in rects if r.is_placed]
        used_area = sum(r.area for r in placed)
        return cls(
            run_name=run_name,
            algorithm=algorithm,
            heuristic=heuristic,
            placed=len(placed),
            requested=len(rects) if requested is None else requested,
            utilization_pct=100.0 * used_area / (bin_width * bin_height),
            max_x=max((r.right for r in placed), default=0),
            max_y=max((r.bottom for r in placed), default=0),
            elapsed_ms=elapsed_ms,
            bin_width=bin_width,
            bin_height=bin_height,
        )

    @property
    def rejected(self) -> int:
        return self.requested - self.placed

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary with ISO timestamp.

        Returns:
            Dictionary representation with finished_at as ISO string.
        """
        d = asdict(self)
        d["finished_at"] = self.finished_at.isoformat()
        return d


@dataclass
class RunSummary:
    """Aggregate metrics over a session of layouts.

    Attributes:
        session_id: Unique identifier for the session.
        total_runs: Number of layouts recorded.
        total_placed: Items placed across all layouts.
        total_requested: Items requested across all layouts.
        avg_utilization_pct: Mean utilization across layouts.
        median_utilization_pct: Median utilization across layouts.
        min_utilization_pct: Minimum utilization across layouts.
        max_utilization_pct: Maximum utilization across layouts.
        total_elapsed_ms: Packer time summed over layouts.
        wall_time_s: Wall time of the whole session, set by the runner.
        errors_count: Number of runs that raised or failed validation.
        started_at: Session start timestamp.
        completed_at: Session completion timestamp (None if running).
        layouts: Per-layout metrics.
    """

    session_id: str
    total_runs: int = 0
    total_placed: int = 0
    total_requested: int = 0
    avg_utilization_pct: float = 0.0
    median_utilization_pct: float = 0.0
    min_utilization_pct: float = 0.0
    max_utilization_pct: float = 0.0
    total_elapsed_ms: float = 0.0
    wall_time_s: float = 0.0
    errors_count: int = 0
    started_at: datetime = field(default_factory=_now)
    completed_at: datetime | None = None
    layouts: list[LayoutMetrics] = field(default_factory=list)

    def add_layout(self, layout: LayoutMetrics) -> None:
        """Add one layout's metrics to the session.

        Example:
            >>> s = RunSummary("session_001")
            >>> s.add_layout(LayoutMetrics("a", "maxrects", "", 4, 4, 80.0, 90, 100,
            ...                            1.5, 100, 100))
            >>> s.total_runs, s.total_placed
            (1, 4)
        """
        self.layouts.append(layout)
        self.total_runs += 1
        self.total_placed += layout.placed
        self.total_requested += layout.requested
        self.total_elapsed_ms += layout.elapsed_ms
        self._recalculate_stats()

    def record_error(self) -> None:
        self.errors_count += 1

    def mark_complete(self) -> None:
        self.completed_at = _now()

    def _recalculate_stats(self) -> None:
        if not self.layouts:
            return
        utilizations = [m.utilization_pct for m in self.layouts]
        self.avg_utilization_pct = statistics.fmean(utilizations)
        self.median_utilization_pct = statistics.median(utilizations)
        self.min_utilization_pct = min(utilizations)
        self.max_utilization_pct = max(utilizations)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["started_at"] = self.started_at.isoformat()
        d["completed_at"] = self.completed_at.isoformat() if self.completed_at else None
        d["layouts"] = [m.to_dict() for m in self.layouts]
        return d

    def to_summary_dict(self) -> dict[str, Any]:
        """Same as ``to_dict`` without the per-layout list."""
        d = self.to_dict()
        del d["layouts"]
        return d


def export_to_json(summary: RunSummary, output_path: Path | str, include_layouts: bool = True) -> None:
    """Export session metrics to a JSON file.

    Args:
        summary: RunSummary instance to export.
        output_path: Path to output JSON file.
        include_layouts: If False, write aggregate figures only.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    data = summary.to_dict() if include_layouts else summary.to_summary_dict()

    with output_path.open("w") as f:
        json.dump(data, f, indent=2)


def export_to_csv(summary: RunSummary, output_path: Path | str) -> None:
    """Export per-layout metrics to a CSV file (header only when empty)."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with output_path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for layout in summary.layouts:
            writer.writerow(layout.to_dict())


def print_summary(summary: RunSummary) -> str:
    """Generate a human-readable summary of a session.

    Args:
        summary: RunSummary instance to summarize.

    Returns:
        Formatted multi-line summary string.
    """
    lines = [
        "=" * 60,
        f"Session: {summary.session_id}",
        "=" * 60,
        f"Runs:            {summary.total_runs}",
        f"Items placed:    {summary.total_placed} / {summary.total_requested}",
        "",
        "Utilization Statistics:",
        f"  Average: {summary.avg_utilization_pct:.2f}%",
        f"  Median:  {summary.median_utilization_pct:.2f}%",
        f"  Min:     {summary.min_utilization_pct:.2f}%",
        f"  Max:     {summary.max_utilization_pct:.2f}%",
        "",
        f"Packer time: {summary.total_elapsed_ms:.2f} ms",
        f"Wall time:   {summary.wall_time_s:.2f} s",
        f"Errors:      {summary.errors_count}",
        "=" * 60,
    ]
    return "\n".join(lines)
