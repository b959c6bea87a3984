"""
bubble_paths.py — Outline path + decoration circles + bounding box for a Bubble.

Key design: the tail is spliced INTO the body outline as two quadratic
curves, so the whole bubble is ONE closed path.  The border traces the
outer edge seamlessly: no seam, no line cutting the tail off the body.

All coordinates are local to the bubble (origin = its top-left corner);
the renderer translates the path into place.  Output is byte-stable for
equal inputs so paths can be snapshot-tested.
"""

import logging
import math
from dataclasses import dataclass, field

from bubble import Bubble, BubbleType, PartKind, SPEECH_TYPES, SpeechTailPart

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

BBOX_PADDING        = 10
DEFAULT_RADIUS      = 20
DESCRIPTIVE_RADIUS  = 5
THOUGHT_LOBES       = 9
THOUGHT_RADIUS      = 0.3      # lobe anchor ellipse, fraction of w / h
THOUGHT_BULGE       = 1.4      # control point pushed out by this factor
SHOUT_POINTS        = 14
SHOUT_INNER_DIVISOR = 3.5
TAIL_CURVE_PULL     = 0.25     # control x moves this far from base toward tip
COORD_DECIMALS      = 3


@dataclass(frozen=True)
class PartCircle:
    id: str
    cx: float
    cy: float
    r:  float


@dataclass
class BubblePaths:
    body_path:     str
    parts_circles: list[PartCircle] = field(default_factory=list)


@dataclass(frozen=True)
class BBox:
    x:      float
    y:      float
    width:  float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def contains_point(self, px: float, py: float) -> bool:
        return self.x <= px <= self.right and self.y <= py <= self.bottom


# ---------------------------------------------------------------------------
# Path assembly
# ---------------------------------------------------------------------------

def fmt(value: float) -> str:
    """Plain decimal, at most COORD_DECIMALS places, never '1e-05' or '-0'."""
    text = f"{value:.{COORD_DECIMALS}f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def _pt(x: float, y: float) -> str:
    return f"{fmt(x)},{fmt(y)}"


class PathBuilder:
    """
    Accumulates absolute SVG path commands.

    Tracks the pen position so a line to the point we are already at is
    dropped: corner arcs, tail cuts and degenerate sizes often land exactly
    on the next vertex and must not double it.
    """

    def __init__(self, x: float, y: float):
        self._cmds = [f"M {_pt(x, y)}"]
        self._pos  = (fmt(x), fmt(y))

    def _moved(self, x: float, y: float) -> bool:
        key = (fmt(x), fmt(y))
        if key == self._pos:
            return False
        self._pos = key
        return True

    def line_to(self, x: float, y: float) -> "PathBuilder":
        if self._moved(x, y):
            self._cmds.append(f"L {_pt(x, y)}")
        return self

    def quad_to(self, cx: float, cy: float, x: float, y: float) -> "PathBuilder":
        self._pos = (fmt(x), fmt(y))
        self._cmds.append(f"Q {_pt(cx, cy)} {_pt(x, y)}")
        return self

    def arc_to(self, r: float, x: float, y: float) -> "PathBuilder":
        """Clockwise quarter-circle corner; a zero radius collapses to a line."""
        if r <= 0:
            return self.line_to(x, y)
        if self._moved(x, y):
            self._cmds.append(f"A {fmt(r)},{fmt(r)} 0 0 1 {_pt(x, y)}")
        return self

    def close(self) -> str:
        return " ".join(self._cmds + ["Z"])


# ---------------------------------------------------------------------------
# Shape builders
# ---------------------------------------------------------------------------

def corner_radius(bubble: Bubble) -> float:
    w, h = bubble.width, bubble.height
    half_short = max(0.0, min(w, h) / 2)
    if bubble.type in SPEECH_TYPES:
        return half_short
    if bubble.type == BubbleType.DESCRIPTIVE:
        return min(DESCRIPTIVE_RADIUS, half_short)
    return min(DEFAULT_RADIUS, half_short)


def _tail_footprint(tail: SpeechTailPart, w: float, h: float, r: float):
    """
    Clamp the tail base into the body and pick the edge it sits on.
    Returns (edge, left_x, right_x, base_y) with edge "top" or "bottom".
    """
    cx = max(0.0, min(w, tail.base_cx))
    cy = max(0.0, min(h, tail.base_cy))
    if cy == h:
        edge = "bottom"
    elif cy == 0:
        edge = "top"
    else:
        # Base dragged inside the body: attach to the nearer horizontal edge
        edge = "bottom" if cy >= h / 2 else "top"
        logger.debug("tail %s base y=%s snapped to %s edge", tail.id, cy, edge)

    half = max(0.0, min(tail.base_width / 2, (w - 2 * r) / 2))
    cx   = max(r + half, min(w - r - half, cx))
    base_y = h if edge == "bottom" else 0.0
    return edge, cx - half, cx + half, base_y


def _splice_tail(path: PathBuilder, tail: SpeechTailPart,
                 start_x: float, end_x: float, base_y: float) -> None:
    """Base point → tip → other base point, as two mirrored quadratic curves."""
    tip_x, tip_y = tail.tip_x, tail.tip_y
    mid_y = base_y + (tip_y - base_y) * 0.5
    path.line_to(start_x, base_y)
    path.quad_to(start_x + (tip_x - start_x) * TAIL_CURVE_PULL, mid_y,
                 tip_x, tip_y)
    path.quad_to(end_x + (tip_x - end_x) * TAIL_CURVE_PULL, mid_y,
                 end_x, base_y)


def rounded_rect_path(w: float, h: float, r: float,
                      tail: SpeechTailPart | None = None) -> str:
    """
    Rounded rectangle traced clockwise from the top-left corner's end.
    With a tail, the top edge (left → right) or bottom edge (right → left)
    is interrupted at the tail base.
    """
    edge = left_x = right_x = None
    if tail is not None:
        edge, left_x, right_x, _ = _tail_footprint(tail, w, h, r)

    path = PathBuilder(r, 0)
    if edge == "top":
        _splice_tail(path, tail, left_x, right_x, 0.0)
    path.line_to(w - r, 0)
    path.arc_to(r, w, r)
    path.line_to(w, h - r)
    path.arc_to(r, w - r, h)
    if edge == "bottom":
        _splice_tail(path, tail, right_x, left_x, h)
    path.line_to(r, h)
    path.arc_to(r, 0, h - r)
    path.line_to(0, r)
    path.arc_to(r, r, 0)
    return path.close()


def thought_path(w: float, h: float) -> str:
    """
    Thought cloud: lobe anchors evenly spaced on an ellipse, each pair
    joined by a quadratic curve bulging outward at the angular midpoint.
    """
    cx, cy = w / 2, h / 2
    rx, ry = w * THOUGHT_RADIUS, h * THOUGHT_RADIUS

    def at(angle: float, scale: float = 1.0):
        return (cx + rx * scale * math.cos(angle),
                cy + ry * scale * math.sin(angle))

    step  = 2 * math.pi / THOUGHT_LOBES
    start = -math.pi / 2
    path  = PathBuilder(*at(start))
    for i in range(THOUGHT_LOBES):
        angle = start + i * step
        cpx, cpy = at(angle + step / 2, THOUGHT_BULGE)
        x2, y2   = at(angle + step)
        path.quad_to(cpx, cpy, x2, y2)
    return path.close()


def shout_path(w: float, h: float) -> str:
    """Starburst: outer and inner ellipse points alternate, straight edges."""
    cx, cy = w / 2, h / 2
    count  = SHOUT_POINTS * 2
    cmds   = []
    for i in range(count):
        angle = 2 * math.pi * i / count - math.pi / 2
        if i % 2 == 0:
            rx, ry = w / 2, h / 2
        else:
            rx, ry = w / SHOUT_INNER_DIVISOR, h / SHOUT_INNER_DIVISOR
        px = cx + rx * math.cos(angle)
        py = cy + ry * math.sin(angle)
        cmds.append(f"{'M' if i == 0 else 'L'} {_pt(px, py)}")
    return " ".join(cmds + ["Z"])


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def generate_bubble_paths(bubble: Bubble) -> BubblePaths:
    w = max(0.0, bubble.width)
    h = max(0.0, bubble.height)
    r = corner_radius(bubble)

    if bubble.type in SPEECH_TYPES:
        return BubblePaths(rounded_rect_path(w, h, r, bubble.tail()))

    if bubble.type == BubbleType.THOUGHT:
        circles = [PartCircle(id=d.id, cx=d.offset_x, cy=d.offset_y, r=abs(d.size) / 2)
                   for d in bubble.thought_dots()]
        return BubblePaths(thought_path(w, h), circles)

    if bubble.type == BubbleType.SHOUT:
        return BubblePaths(shout_path(w, h))

    return BubblePaths(rounded_rect_path(w, h, r))


def overall_bbox(bubble: Bubble) -> BBox:
    """Body rect united with every tail tip and dot circle, plus padding."""
    min_x, min_y = 0.0, 0.0
    max_x, max_y = max(0.0, bubble.width), max(0.0, bubble.height)

    for part in bubble.parts:
        if part.kind is PartKind.SPEECH_TAIL:
            min_x, max_x = min(min_x, part.tip_x), max(max_x, part.tip_x)
            min_y, max_y = min(min_y, part.tip_y), max(max_y, part.tip_y)
        elif part.kind is PartKind.THOUGHT_DOT:
            rad = abs(part.size) / 2
            min_x = min(min_x, part.offset_x - rad)
            max_x = max(max_x, part.offset_x + rad)
            min_y = min(min_y, part.offset_y - rad)
            max_y = max(max_y, part.offset_y + rad)

    pad = BBOX_PADDING
    return BBox(x=min_x - pad, y=min_y - pad,
                width=max_x - min_x + 2 * pad,
                height=max_y - min_y + 2 * pad)
