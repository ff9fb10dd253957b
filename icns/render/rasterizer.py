"""SVG to PNG rasterization through an external renderer.

The SVG is rendered by the first available tool (``rsvg-convert``, then
``inkscape``), then loaded with Pillow to normalise the canvas to
``size x size`` RGBA and composite the background colour.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from pathlib import Path

from PIL import Image, ImageColor

from icns.config import Config
from icns.exceptions import FilesystemError, RenderError, UsageError

logger = logging.getLogger(__name__)

TOOLS = ("rsvg-convert", "inkscape")
RENDER_TIMEOUT = 60


def parse_background(bg: str) -> tuple[int, int, int, int] | None:
    """RGBA tuple for ``bg``; ``None`` means transparent.

    Raises:
        UsageError: If ``bg`` is not a colour Pillow understands.
    """
    if bg.strip().lower() in ("", "transparent", "none"):
        return None
    try:
        return ImageColor.getcolor(bg.strip(), "RGBA")
    except ValueError as e:
        raise UsageError(f"Invalid background color: {bg}") from e


def _tool_command(tool: str, svg_path: Path, png_path: Path, size: int) -> list[str]:
    if tool == "rsvg-convert":
        return [tool, "-w", str(size), "-h", str(size), "-f", "png", "-o", str(png_path), str(svg_path)]
    return [
        tool,
        "--export-type=png",
        f"--export-filename={png_path}",
        f"--export-width={size}",
        f"--export-height={size}",
        str(svg_path),
    ]


class Rasterizer:
    """Renders SVG markup to PNG files."""

    def __init__(self, config: Config) -> None:
        self.preference = config.renderer

    def find_tool(self) -> str:
        """Name of the renderer to use.

        Raises:
            RenderError: If no supported renderer is installed.
        """
        candidates = TOOLS if self.preference == "auto" else (self.preference,)
        for tool in candidates:
            if shutil.which(tool):
                return tool
        raise RenderError(
            f"No SVG renderer found (looked for {', '.join(candidates)}). "
            "Install librsvg (rsvg-convert) or Inkscape.",
            details={"renderers": list(candidates)},
        )

    def render(self, svg_text: str, output: Path, size: int, bg: str = "transparent") -> int:
        """Rasterize ``svg_text`` into ``output``. Returns the PNG size in bytes.

        Raises:
            UsageError: Invalid background colour.
            RenderError: Renderer missing, failing or timing out.
            FilesystemError: Output cannot be written.
        """
        background = parse_background(bg)
        tool = self.find_tool()

        with tempfile.TemporaryDirectory(prefix="icns-") as tmp:
            svg_path = Path(tmp) / "icon.svg"
            png_path = Path(tmp) / "icon.png"
            svg_path.write_text(svg_text, encoding="utf-8")

            cmd = _tool_command(tool, svg_path, png_path, size)
            logger.debug("Running %s", " ".join(cmd))
            try:
                result = subprocess.run(cmd, capture_output=True, text=True, timeout=RENDER_TIMEOUT)
            except subprocess.TimeoutExpired as e:
                raise RenderError(f"{tool} timed out after {RENDER_TIMEOUT} seconds") from e
            except OSError as e:
                raise RenderError(f"Failed to run {tool}: {e}") from e

            if result.returncode != 0 or not png_path.exists():
                raise RenderError(
                    f"{tool} failed to render SVG",
                    details={"returncode": result.returncode, "stderr": result.stderr.strip()},
                )

            try:
                with Image.open(png_path) as rendered:
                    image = rendered.convert("RGBA")
            except OSError as e:
                raise RenderError(f"{tool} produced an unreadable PNG: {e}") from e

        if image.size != (size, size):
            image = image.resize((size, size), Image.Resampling.LANCZOS)
        if background is not None:
            canvas = Image.new("RGBA", (size, size), background)
            canvas.alpha_composite(image)
            image = canvas

        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            image.save(output, format="PNG")
            return output.stat().st_size
        except OSError as e:
            raise FilesystemError(
                f"Failed to write PNG file: {output}", details={"path": str(output), "error": str(e)}
            ) from e
