"""Console and HTML/SVG output for packing runs."""

from .step_logger import StepLogger
from .svg_render import render_html, render_svg, write_html

__all__ = ["StepLogger", "render_svg", "render_html", "write_html"]
