"""SVG adjustments applied before rasterization."""

from __future__ import annotations

import re
import xml.etree.ElementTree as StdET
from xml.etree.ElementTree import register_namespace as _register_namespace

import defusedxml
import defusedxml.ElementTree as ET

from icns.exceptions import RenderError

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"

_CURRENT_COLOR = re.compile(r"currentColor", re.IGNORECASE)
_STYLE_STROKE_WIDTH = re.compile(r"(stroke-width\s*:\s*)[^;]+")


def _register_namespaces() -> None:
    for prefix, uri in {"": SVG_NS, "xlink": XLINK_NS}.items():
        _register_namespace(prefix, uri)


def _format_number(value: float) -> str:
    return f"{value:g}"


def customize_svg(
    svg_text: str,
    size: int,
    fg: str | None = None,
    stroke_width: float | None = None,
) -> str:
    """Return ``svg_text`` sized to ``size`` with optional colour/stroke overrides.

    Args:
        svg_text: Source SVG markup.
        size: Width and height in pixels.
        fg: Replaces every ``currentColor`` reference and sets the root
            ``color`` property.
        stroke_width: Overrides ``stroke-width`` on the root and on every
            element that declares one.

    Raises:
        RenderError: If the SVG cannot be parsed.
    """
    try:
        root = ET.fromstring(svg_text)
    except ET.ParseError as e:
        raise RenderError(f"Invalid SVG: {e}") from e
    except defusedxml.DefusedXmlException as e:
        raise RenderError(f"Unsafe SVG rejected: {e}") from e

    root.set("width", str(size))
    root.set("height", str(size))

    if fg:
        root.set("color", fg)
        for element in root.iter():
            for name, value in list(element.attrib.items()):
                if _CURRENT_COLOR.search(value):
                    element.set(name, _CURRENT_COLOR.sub(fg, value))

    if stroke_width is not None:
        width = _format_number(stroke_width)
        root.set("stroke-width", width)
        for element in root.iter():
            if "stroke-width" in element.attrib:
                element.set("stroke-width", width)
            style = element.get("style")
            if style and "stroke-width" in style:
                element.set("style", _STYLE_STROKE_WIDTH.sub(rf"\g<1>{width}", style))

    _register_namespaces()
    return StdET.tostring(root, encoding="unicode")
