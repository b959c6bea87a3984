"""
rich_text.py — Markup → style runs → wrapped lines → painted glyphs.

    parse_rich_text()  splits the editor's HTML on <br> and strips the rest
    wrap_segments()    greedy word wrap against a width that may vary with y
    draw_rich_text()   centres the block in a rect and paints it with QPainter

Measurement always goes through an injected oracle (text_metrics.py), so
the same wrap runs against Qt, Pillow or the fixed-width estimate.
"""

import html
import logging
import re
from dataclasses import dataclass, field
from typing import Callable

from PyQt6.QtCore import QLineF, QPointF, QRectF
from PyQt6.QtGui import QColor, QPainter, QPen

from text_metrics import (
    FallbackTextMetrics, MeasureFunc, QtTextMetrics, TextMetrics, TextStyle, as_measure,
    font_string, qfont_for_style,
)

logger = logging.getLogger(__name__)

LINE_BREAK       = "\n"
BASELINE_RATIO   = 0.8     # baseline sits this far down the line box
UNDERLINE_OFFSET = 2
DECORATION_RATIO = 15      # underline / strike pen width = font size / this

_BR_RE  = re.compile(r"<br\s*/?>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>")


@dataclass
class TextSegment:
    text:      str
    style:     TextStyle
    width:     float = 0.0
    height:    float = 0.0
    ink_width: float = 0.0     # measured without the trailing space, decorated runs only

    @classmethod
    def line_break(cls, style: TextStyle) -> "TextSegment":
        return cls(LINE_BREAK, style)

    @property
    def is_break(self) -> bool:
        return self.text == LINE_BREAK


@dataclass
class TextLine:
    segments: list[TextSegment] = field(default_factory=list)
    width:    float = 0.0
    height:   float = 0.0

    def append(self, seg: TextSegment) -> None:
        self.segments.append(seg)
        self.width += seg.width
        self.height = max(self.height, seg.height)

    @property
    def words(self) -> list[str]:
        return [s.text for s in self.segments]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def parse_rich_text(markup: str, default_style: TextStyle) -> list[TextSegment]:
    """
    One segment per <br>-separated fragment, tags stripped, in the default
    style, with a line-break marker between fragments.  Whitespace-only
    fragments contribute no text segment but keep their break.
    """
    segments: list[TextSegment] = []
    fragments = _BR_RE.split(markup or "")
    for i, fragment in enumerate(fragments):
        plain = html.unescape(_TAG_RE.sub("", fragment))
        if plain.strip():
            segments.append(TextSegment(plain, default_style))
        if i < len(fragments) - 1:
            segments.append(TextSegment.line_break(default_style))
    return segments


def plain_text(markup: str) -> str:
    """Markup flattened to text, <br> as newline."""
    parts = [html.unescape(_TAG_RE.sub("", f)) for f in _BR_RE.split(markup or "")]
    return LINE_BREAK.join(parts)


# ---------------------------------------------------------------------------
# Wrapping
# ---------------------------------------------------------------------------

def _width_func(max_width_at: "float | Callable[[float], float]") -> Callable[[float], float]:
    if callable(max_width_at):
        return max_width_at
    width = float(max_width_at)
    return lambda _y: width


def wrap_segments(segments: list[TextSegment],
                  measure: "TextMetrics | MeasureFunc",
                  max_width_at: "float | Callable[[float], float]",
                  *, legacy_break_advance: bool = False) -> list[TextLine]:
    """
    Greedy word wrap.

    Each word becomes its own run, measured with a trailing space.  A word
    that does not fit starts a new line unless the line is empty, so an
    over-long word sits alone on its line unbroken.  *max_width_at* is
    asked with the top y of the line being filled.

    At a forced break the y cursor advances by the closed line's height
    (an empty line counts as the break's font size).  *legacy_break_advance*
    reproduces the older layout: the cursor advances by the break marker's
    font size and an empty line keeps height 0.
    """
    measure  = as_measure(measure)
    width_at = _width_func(max_width_at)

    lines: list[TextLine] = []
    line = TextLine()
    y    = 0.0

    for seg in segments:
        if seg.is_break:
            if not line.segments and not legacy_break_advance:
                line.height = seg.style.font_size
            lines.append(line)
            y += seg.style.font_size if legacy_break_advance else line.height
            line = TextLine()
            continue

        for word in seg.text.split():
            word_width = measure(word + " ", seg.style)
            if line.segments and line.width + word_width > width_at(y):
                lines.append(line)
                y += line.height
                line = TextLine()
            line.append(TextSegment(word, seg.style, word_width, seg.style.font_size))

    if line.segments:
        lines.append(line)
    return lines


def total_height(lines: list[TextLine]) -> float:
    return sum(line.height for line in lines)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def draw_rich_text(painter: QPainter, markup: str, rect: QRectF,
                   default_style: TextStyle,
                   font_map: dict[str, str] | None = None,
                   max_width_at: Callable[[float], float] | None = None,
                   metrics: TextMetrics | None = None) -> None:
    """
    Paint *markup* centred in *rect*.

    Lines are centred horizontally (never starting left of the rect) and
    the block is centred vertically.  Underline and strikethrough are
    stroked separately across each run's ink width.  If the oracle fails,
    the whole layout is redone with the fixed-width estimate.
    """
    if not isinstance(rect, QRectF):
        rect = QRectF(*rect)
    metrics  = metrics or QtTextMetrics(font_map)
    segments = parse_rich_text(markup, default_style)
    width_at = max_width_at if max_width_at else rect.width()
    try:
        lines = _layout(segments, as_measure(metrics), width_at)
    except Exception as e:
        logger.warning("Text metrics failed (%s); using fixed-width estimate", e)
        lines = _layout(segments, FallbackTextMetrics().measure, width_at)
    block_h = total_height(lines)
    logger.debug("draw_rich_text: %d line(s), block height %.1f in %.1fx%.1f",
                 len(lines), block_h, rect.width(), rect.height())

    painter.save()
    try:
        y = rect.top() + (rect.height() - block_h) / 2
        for line in lines:
            x = max(rect.left(), rect.left() + (rect.width() - line.width) / 2)
            baseline = y + line.height * BASELINE_RATIO
            for seg in line.segments:
                _draw_run(painter, seg, x, baseline, font_map)
                x += seg.width
            y += line.height
    finally:
        painter.restore()


def _layout(segments: list[TextSegment], measure: MeasureFunc,
            max_width_at: "float | Callable[[float], float]") -> list[TextLine]:
    """Wrap, then measure the ink width of every decorated run."""
    lines = wrap_segments(segments, measure, max_width_at)
    for line in lines:
        for seg in line.segments:
            if seg.style.underline or seg.style.strikethrough:
                seg.ink_width = measure(seg.text, seg.style)
    return lines


def _draw_run(painter: QPainter, seg: TextSegment, x: float, baseline: float,
              font_map: dict[str, str] | None) -> None:
    style = seg.style
    color = QColor(style.text_color)
    logger.debug("run %r at (%.1f, %.1f) in %s", seg.text, x, baseline,
                 font_string(style, font_map))
    painter.setFont(qfont_for_style(style, font_map))
    painter.setPen(color)
    painter.drawText(QPointF(x, baseline), seg.text)

    if not (style.underline or style.strikethrough):
        return
    painter.setPen(QPen(color, style.font_size / DECORATION_RATIO))
    if style.underline:
        y = baseline + UNDERLINE_OFFSET
        painter.drawLine(QLineF(x, y, x + seg.ink_width, y))
    if style.strikethrough:
        y = baseline - style.font_size / 3
        painter.drawLine(QLineF(x, y, x + seg.ink_width, y))
