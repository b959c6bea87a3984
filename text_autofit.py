"""
text_autofit.py — Shrink a bubble's font until its text fits the safe zone.

The safe zone is the part of the bubble rect that is clear of the
outline's curvature: a starburst or a cloud loses a lot of its rect to
spikes and lobes, a caption box loses almost nothing.

Search: start at the bubble's font size (capped at max), step down 1 px at
a time, and stop at the first size whose wrapped block fits, or at the
minimum size / iteration cap, reporting fits=False if even that overflows.
"""

import logging
from dataclasses import dataclass, replace

from bubble import PLACEHOLDER_TEXT, Bubble, BubbleType
from rich_text import parse_rich_text, plain_text, wrap_segments
from text_metrics import FallbackTextMetrics, TextMetrics, TextStyle, as_measure

logger = logging.getLogger(__name__)

MIN_FONT_SIZE      = 8
MAX_FONT_SIZE      = 40
MAX_FIT_ITERATIONS = 20
LINE_HEIGHT_RATIO  = 1.4
TEXT_PADDING       = 10

# (width factor, height factor) of the bubble rect usable for text
SAFE_TEXT_ZONES: dict[BubbleType, tuple[float, float]] = {
    BubbleType.SHOUT:               (0.50, 0.55),
    BubbleType.THOUGHT:             (0.50, 0.65),
    BubbleType.SPEECH_DOWN:         (0.83, 0.83),
    BubbleType.SPEECH_UP:           (0.83, 0.83),
    BubbleType.SPEECH_DOWN_MINIMAL: (0.83, 0.83),
    BubbleType.SPEECH_UP_MINIMAL:   (0.83, 0.83),
    BubbleType.WHISPER:             (0.80, 0.80),
    BubbleType.DESCRIPTIVE:         (0.90, 0.85),
    BubbleType.TEXT_ONLY:           (0.95, 0.90),
}

# Box-shaped archetypes: fixed padding instead of a proportional zone
_PADDED_TYPES = (BubbleType.DESCRIPTIVE, BubbleType.TEXT_ONLY)


@dataclass(frozen=True)
class TextBounds:
    x:      float
    y:      float
    width:  float
    height: float


@dataclass(frozen=True)
class TextMeasurement:
    width:  float
    height: float
    lines:  int


@dataclass(frozen=True)
class TextFitResult:
    font_size:    float
    text_width:   float
    text_height:  float
    fits:         bool
    scale_factor: float


def text_bounds(bubble: Bubble) -> TextBounds:
    """Safe text zone in bubble-local coordinates, centred in the body."""
    w = max(0.0, bubble.width)
    h = max(0.0, bubble.height)
    if bubble.type in _PADDED_TYPES:
        pad = TEXT_PADDING
        return TextBounds(x=pad, y=pad,
                          width=max(0.0, w - pad * 2),
                          height=max(0.0, h - pad * 2))
    wf, hf = SAFE_TEXT_ZONES.get(bubble.type, (1.0, 1.0))
    tw, th = w * wf, h * hf
    return TextBounds(x=(w - tw) / 2, y=(h - th) / 2, width=tw, height=th)


def _wrap_and_measure(text: str, style: TextStyle, max_width: float,
                      metrics) -> TextMeasurement:
    measure = as_measure(metrics)
    lines   = wrap_segments(parse_rich_text(text, style), measure, max_width)
    if not lines:
        return TextMeasurement(0.0, 0.0, 0)
    # Ink width: the trailing space of the last word does not count
    widest = max((measure(" ".join(line.words), style) for line in lines
                  if line.segments), default=0.0)
    height = len(lines) * style.font_size * LINE_HEIGHT_RATIO
    return TextMeasurement(widest, height, len(lines))


def measure_text(text: str, font_family: str, font_size: float, max_width: float,
                 metrics: TextMetrics | None = None) -> TextMeasurement:
    """Size of *text* wrapped at *max_width* in one uniform style."""
    style = TextStyle(font_family=font_family, font_size=font_size)
    if metrics is None:
        return _wrap_and_measure(text, style, max_width, FallbackTextMetrics())
    try:
        return _wrap_and_measure(text, style, max_width, metrics)
    except Exception as e:
        logger.warning("Text metrics failed (%s); using fixed-width estimate", e)
        return _wrap_and_measure(text, style, max_width, FallbackTextMetrics())


def _fits(dims: TextMeasurement, bounds: TextBounds) -> bool:
    return dims.width <= bounds.width and dims.height <= bounds.height


def _scale(size: float, target: float) -> float:
    return size / target if target > 0 else 1.0


def calculate_optimal_font_size(text: str, bubble: Bubble, font_family: str,
                                min_font_size: float = MIN_FONT_SIZE,
                                max_font_size: float = MAX_FONT_SIZE,
                                metrics: TextMetrics | None = None) -> TextFitResult:
    """
    Largest size from min(bubble size, max) down to *min_font_size* whose
    wrapped text fits.  At most MAX_FIT_ITERATIONS sizes are measured; the
    last of them is always the minimum.
    """
    bounds = text_bounds(bubble)
    target = bubble.font_size
    size   = min(target, max_font_size)
    rounds = 0

    while size > min_font_size and rounds < MAX_FIT_ITERATIONS - 1:
        dims = measure_text(text, font_family, size, bounds.width, metrics)
        rounds += 1
        if _fits(dims, bounds):
            logger.debug("bubble %s: text fits at %s px after %d round(s)",
                         bubble.id, size, rounds)
            return TextFitResult(size, dims.width, dims.height, True,
                                 _scale(size, target))
        size = max(min_font_size, size - 1)

    dims = measure_text(text, font_family, min_font_size, bounds.width, metrics)
    fits = _fits(dims, bounds)
    if not fits:
        logger.debug("bubble %s: text overflows even at %s px", bubble.id, min_font_size)
    return TextFitResult(min_font_size, dims.width, dims.height, fits,
                         _scale(min_font_size, target))


def detect_text_overflow(text: str, bubble: Bubble, font_family: str,
                         metrics: TextMetrics | None = None) -> bool:
    bounds = text_bounds(bubble)
    dims   = measure_text(text, font_family, bubble.font_size, bounds.width, metrics)
    return not _fits(dims, bounds)


def auto_fit_bubble_text(bubble: Bubble, font_family: str | None = None,
                         metrics: TextMetrics | None = None) -> Bubble:
    """
    Bubble with its font size set to the best fit.  Returns *bubble* itself
    when nothing changes (text-only, empty or placeholder text, same size);
    otherwise a copy.  The input is never modified.
    """
    text = plain_text(bubble.text).strip()
    if bubble.type == BubbleType.TEXT_ONLY or not text or text == PLACEHOLDER_TEXT:
        return bubble

    result = calculate_optimal_font_size(bubble.text, bubble,
                                         font_family or bubble.font_family,
                                         metrics=metrics)
    if result.font_size == bubble.font_size:
        return bubble
    return replace(bubble, font_size=result.font_size, parts=list(bubble.parts))
