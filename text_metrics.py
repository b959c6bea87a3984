"""
text_metrics.py — Text style, font resolution and the measurement oracles.

Layout code never creates a font engine on its own: it is handed an object
with  measure(text, style) -> width  and calls nothing else.  Three are
provided:

  QtTextMetrics        — QFontMetricsF; needs a QGuiApplication
  PillowTextMetrics    — FreeType via Pillow, from font files on disk
  FallbackTextMetrics  — fixed average character width, needs nothing

Missing fonts never raise: they resolve to the generic family (Qt),
Pillow's bundled default font, or the fixed-width estimate.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Protocol

from PyQt6.QtGui import QFont, QFontMetricsF, QGuiApplication

from bubble import DEFAULT_FONT_FAMILY, DEFAULT_FONT_SIZE, DEFAULT_TEXT_COLOR

logger = logging.getLogger(__name__)

GENERIC_FAMILY   = "Arial"
CHAR_WIDTH_RATIO = 0.6

# Logical family id → CSS-like family list the host can resolve
DEFAULT_FONT_MAP: dict[str, str] = {
    "Klee One":    "'Klee One', sans-serif",
    "Anton":       "'Anton', Impact",
    "Bangers":     "'Bangers', cursive",
    "Comic Neue":  "'Comic Neue', 'Comic Sans MS'",
    "Montserrat":  "'Montserrat', Arial",
}


# ---------------------------------------------------------------------------
# TextStyle
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TextStyle:
    font_family:   str   = DEFAULT_FONT_FAMILY
    font_size:     float = DEFAULT_FONT_SIZE
    text_color:    str   = DEFAULT_TEXT_COLOR
    bold:          bool  = False
    italic:        bool  = False
    underline:     bool  = False
    strikethrough: bool  = False


class TextMetrics(Protocol):
    def measure(self, text: str, style: TextStyle) -> float: ...


MeasureFunc = Callable[[str, TextStyle], float]


def as_measure(metrics: "TextMetrics | MeasureFunc") -> MeasureFunc:
    """Accept either an oracle object or a bare measure callable."""
    return metrics.measure if hasattr(metrics, "measure") else metrics


# ---------------------------------------------------------------------------
# Font resolution
# ---------------------------------------------------------------------------

def resolve_font_family(family: str, font_map: dict[str, str] | None = None) -> str:
    """Mapped family list for *family*, always ending in a fallback family."""
    name = (font_map or {}).get(family) or family or GENERIC_FAMILY
    if "," not in name and name != GENERIC_FAMILY:
        name += f", {GENERIC_FAMILY}"
    return name


def font_families(family: str, font_map: dict[str, str] | None = None) -> list[str]:
    names = []
    for part in resolve_font_family(family, font_map).split(","):
        part = part.strip().strip("'\"")
        if part and part not in names:
            names.append(part)
    return names


def font_string(style: TextStyle, font_map: dict[str, str] | None = None) -> str:
    """CSS shorthand, e.g. "italic bold 20px 'Klee One', sans-serif"."""
    prefix = ""
    if style.italic:
        prefix += "italic "
    if style.bold:
        prefix += "bold "
    size = f"{style.font_size:g}"
    return f"{prefix}{size}px {resolve_font_family(style.font_family, font_map)}"


def qfont_for_style(style: TextStyle, font_map: dict[str, str] | None = None) -> QFont:
    font = QFont()
    font.setFamilies(font_families(style.font_family, font_map))
    font.setPixelSize(max(1, round(style.font_size)))
    font.setBold(style.bold)
    font.setItalic(style.italic)
    return font


# ---------------------------------------------------------------------------
# Oracles
# ---------------------------------------------------------------------------

class FallbackTextMetrics:
    """Every character is  font_size × char_width_ratio  wide."""

    def __init__(self, char_width_ratio: float = CHAR_WIDTH_RATIO):
        self.char_width_ratio = char_width_ratio

    def measure(self, text: str, style: TextStyle) -> float:
        return len(text) * style.font_size * self.char_width_ratio


class QtTextMetrics:
    """
    QFontMetricsF-backed oracle.  One instance is meant to live for a
    layout pass; QFonts are cached per style.
    """

    def __init__(self, font_map: dict[str, str] | None = None):
        self._font_map = font_map
        self._metrics: dict[TextStyle, QFontMetricsF] = {}
        self._fallback = FallbackTextMetrics()
        self._warned   = False

    def font(self, style: TextStyle) -> QFont:
        return qfont_for_style(style, self._font_map)

    def measure(self, text: str, style: TextStyle) -> float:
        if QGuiApplication.instance() is None:
            if not self._warned:
                logger.warning("No QGuiApplication; using fixed-width text metrics")
                self._warned = True
            return self._fallback.measure(text, style)
        fm = self._metrics.get(style)
        if fm is None:
            fm = QFontMetricsF(self.font(style))
            self._metrics[style] = fm
        return fm.horizontalAdvance(text)


class PillowTextMetrics:
    """
    FreeType metrics from font files.

    *font_files* maps a family to a .ttf/.otf path; style variants are
    looked up first as "Family Bold Italic", "Family Bold", "Family Italic".
    Families without a file use Pillow's bundled default font.
    """

    def __init__(self, font_files: dict[str, str] | None = None):
        self._font_files = dict(font_files or {})
        self._fonts: dict[tuple, object] = {}

    def _font_path(self, style: TextStyle) -> str | None:
        family = style.font_family
        keys = []
        if style.bold and style.italic:
            keys.append(f"{family} Bold Italic")
        if style.bold:
            keys.append(f"{family} Bold")
        if style.italic:
            keys.append(f"{family} Italic")
        keys.append(family)
        for key in keys:
            if key in self._font_files:
                return self._font_files[key]
        return None

    def _load(self, style: TextStyle):
        from PIL import ImageFont

        path = self._font_path(style)
        size = max(1, round(style.font_size))
        key  = (path, size)
        if key in self._fonts:
            return self._fonts[key]
        font = None
        if path:
            try:
                font = ImageFont.truetype(path, size)
            except OSError as e:
                logger.warning("Could not load font %s: %s", path, e)
        if font is None:
            font = ImageFont.load_default(size=size)
        self._fonts[key] = font
        return font

    def measure(self, text: str, style: TextStyle) -> float:
        return float(self._load(style).getlength(text))
