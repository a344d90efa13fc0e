"""Monitoring module for binpack2d.

Provides metrics tracking and export for packing runs.
"""

from .metrics import (
    LayoutMetrics,
    RunSummary,
    export_to_csv,
    export_to_json,
    print_summary,
)

__all__ = [
    "LayoutMetrics",
    "RunSummary",
    "export_to_csv",
    "export_to_json",
    "print_summary",
]
