"""
HTML/SVG preview of a sheet layout.

Lying items (wider than tall) are drawn green, standing ones blue. Items
are numbered in insertion order when there are fewer than ``LABEL_LIMIT``
of them. Sheets wider than ``MAX_DISPLAY_WIDTH`` are scaled down for display;
the viewBox stays in sheet units.
"""

from html import escape
from pathlib import Path
from typing import Sequence

from binpack2d.core.rect import Rect

LYING_COLOR = "#4CAF50"
STANDING_COLOR = "#2196F3"
LABEL_LIMIT = 200
MAX_DISPLAY_WIDTH = 1000


def _fmt(value: float) -> str:
    return f"{value:g}"


def render_svg(rects: Sequence[Rect], width: int, height: int) -> str:
    """SVG markup for ``rects`` on a width×height sheet."""
    scale = MAX_DISPLAY_WIDTH / width if width > MAX_DISPLAY_WIDTH else 1.0
    lines = [
        f"<svg width='{_fmt(width * scale)}' height='{_fmt(height * scale)}' "
        f"viewBox='0 0 {width} {height}' "
        f"style='border:1px solid black; background:#f0f0f0;'>"
    ]
    label = len(rects) < LABEL_LIMIT
    for idx, r in enumerate(rects):
        color = LYING_COLOR if r.width > r.height else STANDING_COLOR
        lines.append(
            f"<rect x='{r.x}' y='{r.y}' width='{r.width}' height='{r.height}' "
            f"style='fill:{color};stroke:#000;stroke-width:1;opacity:0.8' />"
        )
        if label:
            lines.append(
                f"<text x='{_fmt(r.x + r.width / 2)}' y='{_fmt(r.y + r.height / 2)}' "
                f"font-size='{_fmt(min(r.width, r.height) / 2)}' "
                f"text-anchor='middle' fill='white'>{idx}</text>"
            )
    lines.append("</svg>")
    return "\n".join(lines)


def render_html(title: str, rects: Sequence[Rect], width: int, height: int) -> str:
    """A standalone HTML page with a heading (title and utilization) and the SVG."""
    used = sum(r.area for r in rects)
    util = 100.0 * used / (width * height)
    return "\n".join([
        "<!DOCTYPE html><html><body>",
        f"<h3>{escape(title)} - Util: {util:.2f}%</h3>",
        render_svg(rects, width, height),
        "</body></html>",
    ])


def write_html(path, title: str, rects: Sequence[Rect], width: int, height: int) -> Path:
    """Write the HTML preview to ``path`` and return it."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_html(title, rects, width, height), encoding="utf-8")
    return path
