"""
Step logger — console output and structured recording of each insert.

Usage:
    logger = StepLogger(verbose=True)
    logger.log_step(step_record)
    logger.print_summary(summary_dict)
"""

from typing import List

from binpack2d.runner.records import StepRecord


class StepLogger:
    """Logs placement steps to console and stores them for JSON output."""

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose
        self._records: List[dict] = []

    def log_step(self, record: StepRecord) -> None:
        """Log a single step (success or rejection)."""
        self._records.append(record.to_dict())

        if not self.verbose:
            return

        dims_str = f"{record.width}x{record.height}"
        if record.success and record.placement is not None:
            p = record.placement
            print(
                f"  Step {record.step:3d}: "
                f"Item ({dims_str}) "
                f"-> ({p.x}, {p.y}) "
                f"{'rotated' if record.rotated else 'upright'}  "
                f"fill={record.occupancy_after:.1%}  "
                f"[{record.elapsed_ms:.3f}ms]  OK"
            )
        else:
            print(
                f"  Step {record.step:3d}: "
                f"Item ({dims_str}) "
                f"-> REJECTED: does not fit  "
                f"[{record.elapsed_ms:.3f}ms]"
            )

    def print_summary(self, summary: dict) -> None:
        """Print a formatted run summary block."""
        print("\n" + "=" * 65)
        print(f"  RUN SUMMARY: {summary['name']}")
        print("=" * 65)
        print(f"  Algorithm:        {summary['algorithm']}")
        print(f"  Items placed:     {summary['placed']} / {summary['requested']}")
        print(f"  Utilization:      {summary['utilization']:.2%}")
        print(f"  Max X extent:     {summary['max_x']}")
        print(f"  Computation time: {summary['elapsed_ms']:.2f} ms")
        print(f"  Validation:       {'PASS' if summary['valid'] else 'FAIL'}")
        print("=" * 65 + "\n")

    def get_records(self) -> List[dict]:
        """All logged step records as dicts (for JSON output)."""
        return list(self._records)
