"""Pytest configuration and shared fixtures for the bubble engine tests."""

import os
import re

# Qt must not try to open a display; set before any QGuiApplication exists
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from bubble import Bubble, BubbleType, SpeechTailPart, ThoughtDotPart
from text_metrics import FallbackTextMetrics, TextStyle

ARG_COUNTS = {"M": 2, "L": 2, "Q": 4, "A": 7, "Z": 0}
_NUMBER = re.compile(r"^-?\d+(\.\d+)?$")


def parse_path(d: str) -> list[tuple[str, list[float]]]:
    """Split a path string into (command, numbers) pairs, validating numbers."""
    commands: list[tuple[str, list[float]]] = []
    for token in d.split():
        if token in ARG_COUNTS:
            commands.append((token, []))
            continue
        for num in token.split(","):
            assert _NUMBER.match(num), f"bad number {num!r} in {d!r}"
            commands[-1][1].append(float(num))
    return commands


def path_points(d: str) -> list[tuple[float, float]]:
    """Every end point and control point in the path (arc radii excluded)."""
    points = []
    for cmd, nums in parse_path(d):
        if cmd == "A":
            nums = nums[5:]
        points.extend(zip(nums[0::2], nums[1::2]))
    return points


class RecordingPainter:
    """Stands in for QPainter; records what draw_rich_text asks it to do."""

    def __init__(self):
        self.depth = 0
        self.font  = None
        self.pen   = None
        self.texts: list[tuple[float, float, str]] = []
        self.fonts = []
        self.lines: list[tuple[float, float, float, float]] = []
        self.pens  = []

    def save(self):
        self.depth += 1

    def restore(self):
        self.depth -= 1

    def setFont(self, font):
        self.font = font

    def setPen(self, pen):
        self.pen = pen

    def drawText(self, point, text):
        self.texts.append((point.x(), point.y(), text))
        self.fonts.append(self.font)

    def drawLine(self, line):
        self.lines.append((line.x1(), line.y1(), line.x2(), line.y2()))
        self.pens.append(self.pen)


@pytest.fixture
def fixed_metrics() -> FallbackTextMetrics:
    """Deterministic oracle: every character is 0.6 × font size wide."""
    return FallbackTextMetrics()


@pytest.fixture
def style() -> TextStyle:
    return TextStyle(font_family="Klee One", font_size=20, text_color="#000000")


@pytest.fixture
def recording_painter() -> RecordingPainter:
    return RecordingPainter()


@pytest.fixture
def speech_bubble() -> Bubble:
    """The 200×100 speech bubble with a tail hanging below the body."""
    return Bubble(
        id="b1", type=BubbleType.SPEECH_DOWN, width=200, height=100,
        parts=[SpeechTailPart(id="t1", base_cx=100, base_cy=100, base_width=40,
                              tip_x=80, tip_y=160)],
    )


@pytest.fixture
def thought_bubble() -> Bubble:
    return Bubble(
        id="b2", type=BubbleType.THOUGHT, width=240, height=160,
        parts=[ThoughtDotPart(id="d1", offset_x=40, offset_y=175, size=16),
               ThoughtDotPart(id="d2", offset_x=-20, offset_y=200, size=10)],
    )
