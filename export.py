"""
export.py — Export a single bubble as SVG markup or as a raster image.

SVG export:    body path + thought dots, translated so the whole overall
               bbox (tail tip and dots included) is on the canvas.
Raster export: the same SVG rasterised with QSvgRenderer, then the bubble
               text auto-fitted and painted on top with draw_rich_text().
"""

import html
import logging
import math
import os

from PyQt6.QtCore import QByteArray, QRectF
from PyQt6.QtGui import QImage, QPainter
from PyQt6.QtSvg import QSvgRenderer

from bubble import Bubble
from bubble_paths import fmt, generate_bubble_paths, overall_bbox
from rich_text import draw_rich_text
from text_autofit import auto_fit_bubble_text, text_bounds
from text_metrics import QtTextMetrics, TextMetrics, TextStyle

logger = logging.getLogger(__name__)

BUBBLE_BORDER_WIDTH = 2
BUBBLE_FILL         = "white"
JPEG_QUALITY        = 95


# ---------------------------------------------------------------------------
# SVG
# ---------------------------------------------------------------------------

def _attr(value) -> str:
    return html.escape(str(value), quote=True)


def bubble_svg(bubble: Bubble, fill: str = BUBBLE_FILL,
               stroke_width: float = BUBBLE_BORDER_WIDTH) -> str:
    """Standalone SVG document for the bubble outline and its dots."""
    paths = generate_bubble_paths(bubble)
    box   = overall_bbox(bubble)
    w, h  = fmt(box.width), fmt(box.height)

    circles = "".join(
        f'<circle cx="{fmt(c.cx)}" cy="{fmt(c.cy)}" r="{fmt(c.r)}"/>'
        for c in paths.parts_circles
    )
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{w}" height="{h}" '
        f'viewBox="0 0 {w} {h}">'
        f'<g transform="translate({fmt(-box.x)},{fmt(-box.y)})" '
        f'fill="{_attr(fill)}" stroke="{_attr(bubble.border_color)}" '
        f'stroke-width="{fmt(stroke_width)}" '
        f'stroke-linejoin="round" stroke-linecap="round">'
        f'<path d="{paths.body_path}"/>{circles}</g></svg>'
    )


def save_bubble_svg(bubble: Bubble, path: str, **kwargs) -> bool:
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(bubble_svg(bubble, **kwargs))
    except OSError as e:
        logger.error("Failed to save %s: %s", path, e)
        return False
    logger.info("Saved to: %s", path)
    return True


# ---------------------------------------------------------------------------
# Raster
# ---------------------------------------------------------------------------

def render_bubble_image(bubble: Bubble, font_map: dict[str, str] | None = None,
                        scale: float = 1.0, metrics: TextMetrics | None = None,
                        fit_text: bool = True) -> QImage:
    """
    Render the bubble (outline, dots and text) into a transparent image
    covering its overall bbox.  Needs a QGuiApplication.
    """
    box     = overall_bbox(bubble)
    metrics = metrics or QtTextMetrics(font_map)
    W = max(1, math.ceil(box.width * scale))
    H = max(1, math.ceil(box.height * scale))

    image = QImage(W, H, QImage.Format.Format_ARGB32_Premultiplied)
    image.fill(0)
    painter = QPainter(image)
    painter.setRenderHint(QPainter.RenderHint.Antialiasing)
    painter.setRenderHint(QPainter.RenderHint.TextAntialiasing)
    try:
        svg = QSvgRenderer(QByteArray(bubble_svg(bubble).encode("utf-8")))
        svg.render(painter, QRectF(0, 0, box.width * scale, box.height * scale))

        if fit_text:
            bubble = auto_fit_bubble_text(bubble, metrics=metrics)
        # Bubble-local coordinates from here on
        painter.scale(scale, scale)
        painter.translate(-box.x, -box.y)
        tb    = text_bounds(bubble)
        style = TextStyle(font_family=bubble.font_family,
                          font_size=bubble.font_size,
                          text_color=bubble.text_color)
        draw_rich_text(painter, bubble.text, QRectF(tb.x, tb.y, tb.width, tb.height),
                       style, font_map, metrics=metrics)
    finally:
        painter.end()
    return image


def save_bubble_image(bubble: Bubble, path: str, **kwargs) -> bool:
    """Render and save; the format follows the file extension."""
    image   = render_bubble_image(bubble, **kwargs)
    ext     = os.path.splitext(path)[1].lower()
    quality = JPEG_QUALITY if ext in (".jpg", ".jpeg") else -1
    ok = image.save(path, quality=quality)
    if ok:
        logger.info("Saved to: %s", path)
    else:
        logger.error("Failed to save: %s", path)
    return ok
