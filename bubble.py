"""
bubble.py — Bubble record and its parts: the value types every engine stage reads.

A Bubble is plain data.  Geometry (bubble_paths.py) and text layout
(rich_text.py / text_autofit.py) are pure functions of it; nothing here
paints or measures.

Archetypes:  speech-down | speech-up | speech-down-minimal | speech-up-minimal
             | whisper | thought | shout | descriptive | text-only
"""

from dataclasses import dataclass, field, replace
from enum import Enum

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MIN_BUBBLE_WIDTH     = 50
MIN_BUBBLE_HEIGHT    = 30
DEFAULT_W            = 220
DEFAULT_H            = 130
DEFAULT_FONT_FAMILY  = "Klee One"
DEFAULT_FONT_SIZE    = 20
DEFAULT_TEXT_COLOR   = "#0f0f0f"
DEFAULT_BORDER_COLOR = "#141414"
PLACEHOLDER_TEXT     = "Type here..."
DEFAULT_TAIL_WIDTH   = 40


class BubbleType(str, Enum):
    SPEECH_DOWN         = "speech-down"
    SPEECH_UP           = "speech-up"
    SPEECH_DOWN_MINIMAL = "speech-down-minimal"
    SPEECH_UP_MINIMAL   = "speech-up-minimal"
    WHISPER             = "whisper"
    THOUGHT             = "thought"
    SHOUT               = "shout"
    DESCRIPTIVE         = "descriptive"
    TEXT_ONLY           = "text-only"


# Rounded body with an optional tail, corner radius = half the short side
SPEECH_TYPES = frozenset({
    BubbleType.SPEECH_DOWN, BubbleType.SPEECH_UP,
    BubbleType.SPEECH_DOWN_MINIMAL, BubbleType.SPEECH_UP_MINIMAL,
    BubbleType.WHISPER,
})


class PartKind(str, Enum):
    SPEECH_TAIL = "speech-tail"
    THOUGHT_DOT = "thought-dot"


# ---------------------------------------------------------------------------
# Parts
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SpeechTailPart:
    """
    Tail wedge.  The base (centre + width) attaches to the top or bottom
    edge of the body; the tip may be anywhere, including outside the body.
    """
    id:         str
    base_cx:    float
    base_cy:    float
    base_width: float
    tip_x:      float
    tip_y:      float
    kind: PartKind = field(default=PartKind.SPEECH_TAIL, init=False)


@dataclass(frozen=True)
class ThoughtDotPart:
    """Free-floating circle; offset is its centre relative to the bubble origin."""
    id:       str
    offset_x: float
    offset_y: float
    size:     float
    kind: PartKind = field(default=PartKind.THOUGHT_DOT, init=False)


Part = SpeechTailPart | ThoughtDotPart


# ---------------------------------------------------------------------------
# Bubble
# ---------------------------------------------------------------------------

@dataclass
class Bubble:
    id:           str
    type:         BubbleType = BubbleType.SPEECH_DOWN
    x:            float = 0.0
    y:            float = 0.0
    width:        float = DEFAULT_W
    height:       float = DEFAULT_H
    z_index:      int   = 0
    font_family:  str   = DEFAULT_FONT_FAMILY
    font_size:    float = DEFAULT_FONT_SIZE
    text_color:   str   = DEFAULT_TEXT_COLOR
    border_color: str   = DEFAULT_BORDER_COLOR
    text:         str   = PLACEHOLDER_TEXT
    parts:        list[Part] = field(default_factory=list)

    def tail(self) -> SpeechTailPart | None:
        for part in self.parts:
            if part.kind is PartKind.SPEECH_TAIL:
                return part
        return None

    def thought_dots(self) -> list[ThoughtDotPart]:
        return [p for p in self.parts if p.kind is PartKind.THOUGHT_DOT]


def new_bubble(bubble_id: str, bubble_type: BubbleType = BubbleType.SPEECH_DOWN,
               x: float = 0.0, y: float = 0.0,
               width: float = DEFAULT_W, height: float = DEFAULT_H,
               **kwargs) -> Bubble:
    """
    Bubble with the parts a freshly placed bubble of this archetype gets:
    speech family → one tail (below the body for "down", above for "up"),
    thought → two dots trailing from the lower-left, others → none.
    """
    parts: list[Part] = []
    if bubble_type in SPEECH_TYPES:
        up = bubble_type in (BubbleType.SPEECH_UP, BubbleType.SPEECH_UP_MINIMAL)
        base_y = 0.0 if up else height
        tip_y  = -height * 0.5 if up else height * 1.5
        parts.append(SpeechTailPart(
            id=f"{bubble_id}-tail",
            base_cx=width / 2, base_cy=base_y, base_width=DEFAULT_TAIL_WIDTH,
            tip_x=width * 0.4, tip_y=tip_y,
        ))
    elif bubble_type == BubbleType.THOUGHT:
        parts.append(ThoughtDotPart(id=f"{bubble_id}-dot-1",
                                    offset_x=width * 0.2, offset_y=height + 12,
                                    size=16))
        parts.append(ThoughtDotPart(id=f"{bubble_id}-dot-2",
                                    offset_x=width * 0.1, offset_y=height + 32,
                                    size=9))
    return Bubble(id=bubble_id, type=bubble_type, x=x, y=y,
                  width=width, height=height, parts=parts, **kwargs)


def clamp_size(bubble: Bubble) -> Bubble:
    """*bubble* with width/height raised to the minimum size (a copy if either changed)."""
    w = max(MIN_BUBBLE_WIDTH,  bubble.width)
    h = max(MIN_BUBBLE_HEIGHT, bubble.height)
    if w == bubble.width and h == bubble.height:
        return bubble
    return replace(bubble, width=w, height=h, parts=list(bubble.parts))
