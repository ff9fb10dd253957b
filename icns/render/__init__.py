"""SVG customization and rasterization.

This subpackage provides:
- Safe SVG parsing and size/colour/stroke overrides (defusedxml)
- PNG rendering through rsvg-convert or Inkscape, finished with Pillow
"""

from icns.render.rasterizer import Rasterizer, parse_background
from icns.render.svg import customize_svg

__all__ = ["Rasterizer", "customize_svg", "parse_background"]
