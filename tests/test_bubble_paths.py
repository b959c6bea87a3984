"""Tests for outline generation and the overall bounding box."""

from dataclasses import replace

import pytest

from bubble import Bubble, BubbleType, SpeechTailPart, ThoughtDotPart
from bubble_paths import (
    BBOX_PADDING, BBox, PathBuilder, corner_radius, fmt, generate_bubble_paths,
    overall_bbox,
)
from conftest import ARG_COUNTS, parse_path, path_points


def _tail(**kw) -> SpeechTailPart:
    values = dict(id="t", base_cx=100, base_cy=100, base_width=40, tip_x=80, tip_y=160)
    values.update(kw)
    return SpeechTailPart(**values)


# ---------------------------------------------------------------------------
# Number formatting / builder
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("value, expected", [
    (100, "100"),
    (97.5, "97.5"),
    (1 / 3, "0.333"),
    (-0.0001, "0"),
    (1e-7, "0"),
    (12345678.9, "12345678.9"),
    (-25, "-25"),
])
def test_fmt_is_plain_decimal(value, expected):
    assert fmt(value) == expected


def test_path_builder_drops_zero_length_lines():
    d = PathBuilder(0, 0).line_to(0, 0).line_to(10, 0).line_to(10, 0).close()
    assert d == "M 0,0 L 10,0 Z"


def test_path_builder_zero_radius_arc_becomes_line():
    d = PathBuilder(0, 0).arc_to(0, 5, 5).close()
    assert d == "M 0,0 L 5,5 Z"


# ---------------------------------------------------------------------------
# Well-formedness for every archetype
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("bubble_type", list(BubbleType))
@pytest.mark.parametrize("size", [(200, 100), (80, 240), (0, 0), (1, 1000)])
def test_every_archetype_yields_balanced_closed_path(bubble_type, size):
    w, h = size
    bubble = Bubble(id="b", type=bubble_type, width=w, height=h,
                    parts=[_tail(base_cx=w / 2, base_cy=h, tip_x=w / 3, tip_y=h + 50),
                           ThoughtDotPart(id="d", offset_x=5, offset_y=h + 10, size=8)])
    d = generate_bubble_paths(bubble).body_path

    assert d.startswith("M ")
    assert d.endswith(" Z")
    assert "e" not in d
    commands = parse_path(d)
    assert commands[0][0] == "M"
    assert [c for c, _ in commands].count("Z") == 1
    for cmd, nums in commands:
        assert len(nums) == ARG_COUNTS[cmd], (cmd, nums, d)


@pytest.mark.parametrize("bubble_type", list(BubbleType))
def test_archetype_without_parts_still_has_outline(bubble_type):
    d = generate_bubble_paths(Bubble(id="b", type=bubble_type, width=150, height=90)).body_path
    assert len(parse_path(d)) > 2


# ---------------------------------------------------------------------------
# Speech family
# ---------------------------------------------------------------------------

def test_speech_down_tail_snapshot(speech_bubble):
    d = generate_bubble_paths(speech_bubble).body_path
    assert d == (
        "M 50,0 L 150,0 A 50,50 0 0 1 200,50 A 50,50 0 0 1 150,100 "
        "L 120,100 Q 110,130 80,160 Q 80,130 80,100 "
        "L 50,100 A 50,50 0 0 1 0,50 A 50,50 0 0 1 50,0 Z"
    )


def test_speech_down_tail_cut_sits_on_bottom_edge(speech_bubble):
    commands = parse_path(generate_bubble_paths(speech_bubble).body_path)
    bottom_xs = sorted(x for x, y in path_points(generate_bubble_paths(speech_bubble).body_path)
                       if y == 100)
    assert 80 in bottom_xs and 120 in bottom_xs
    quads = [nums for cmd, nums in commands if cmd == "Q"]
    assert len(quads) == 2
    assert quads[0][2:] == [80, 160]          # out to the tip
    assert quads[1][2:] == [80, 100]          # back to the left base point


def test_speech_up_tail_is_spliced_into_top_edge():
    bubble = Bubble(id="b", type=BubbleType.SPEECH_UP, width=200, height=100,
                    parts=[_tail(base_cx=100, base_cy=0, tip_x=150, tip_y=-50)])
    d = generate_bubble_paths(bubble).body_path
    assert d.startswith("M 50,0 L 80,0 Q 97.5,-25 150,-50 Q 127.5,-25 120,0 L 150,0 ")


def test_tail_footprint_is_clamped_inside_the_corners():
    bubble = Bubble(id="b", type=BubbleType.SPEECH_DOWN, width=200, height=100,
                    parts=[_tail(base_cx=195, base_width=40, tip_x=260, tip_y=150)])
    points = path_points(generate_bubble_paths(bubble).body_path)
    bottom_xs = [x for x, y in points if y == 100]
    r = corner_radius(bubble)
    assert all(r <= x <= 200 - r for x in bottom_xs)
    assert 110 in bottom_xs and 150 in bottom_xs


def test_tail_base_wider_than_flat_edge_collapses_to_a_point():
    bubble = Bubble(id="b", type=BubbleType.WHISPER, width=100, height=100,
                    parts=[_tail(base_cx=50, base_cy=100, base_width=80, tip_x=30, tip_y=150)])
    commands = parse_path(generate_bubble_paths(bubble).body_path)
    quads = [nums for cmd, nums in commands if cmd == "Q"]
    assert quads[1][2:] == [50, 100]


@pytest.mark.parametrize("base_cy, expected_edge_y", [(80, 100), (10, 0), (500, 100), (-40, 0)])
def test_off_edge_tail_base_snaps_to_nearest_horizontal_edge(base_cy, expected_edge_y):
    bubble = Bubble(id="b", type=BubbleType.SPEECH_DOWN, width=200, height=100,
                    parts=[_tail(base_cy=base_cy, tip_x=90, tip_y=50)])
    commands = parse_path(generate_bubble_paths(bubble).body_path)
    quads = [nums for cmd, nums in commands if cmd == "Q"]
    assert len(quads) == 2
    assert quads[1][3] == expected_edge_y


def test_speech_without_tail_is_plain_rounded_rect():
    bubble = Bubble(id="b", type=BubbleType.SPEECH_DOWN_MINIMAL, width=200, height=100)
    d = generate_bubble_paths(bubble).body_path
    assert "Q" not in d
    assert d == ("M 50,0 L 150,0 A 50,50 0 0 1 200,50 A 50,50 0 0 1 150,100 "
                 "L 50,100 A 50,50 0 0 1 0,50 A 50,50 0 0 1 50,0 Z")


def test_tail_tip_at_centre_still_valid():
    bubble = Bubble(id="b", type=BubbleType.SPEECH_UP_MINIMAL, width=200, height=100,
                    parts=[_tail(tip_x=100, tip_y=50)])
    commands = parse_path(generate_bubble_paths(bubble).body_path)
    assert [c for c, _ in commands].count("Q") == 2


# ---------------------------------------------------------------------------
# Corner radius per archetype
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("bubble_type, expected", [
    (BubbleType.SPEECH_DOWN, 50),
    (BubbleType.WHISPER, 50),
    (BubbleType.DESCRIPTIVE, 5),
    (BubbleType.TEXT_ONLY, 20),
    (BubbleType.SHOUT, 20),
])
def test_corner_radius(bubble_type, expected):
    assert corner_radius(Bubble(id="b", type=bubble_type, width=200, height=100)) == expected


def test_descriptive_is_rounded_rect_with_small_corners():
    d = generate_bubble_paths(Bubble(id="b", type=BubbleType.DESCRIPTIVE,
                                     width=100, height=60)).body_path
    assert d == ("M 5,0 L 95,0 A 5,5 0 0 1 100,5 L 100,55 A 5,5 0 0 1 95,60 "
                 "L 5,60 A 5,5 0 0 1 0,55 L 0,5 A 5,5 0 0 1 5,0 Z")


# ---------------------------------------------------------------------------
# Thought / Shout
# ---------------------------------------------------------------------------

def test_thought_has_nine_lobes_and_dot_circles(thought_bubble):
    paths = generate_bubble_paths(thought_bubble)
    commands = parse_path(paths.body_path)
    assert [c for c, _ in commands] == ["M"] + ["Q"] * 9 + ["Z"]
    # First anchor straight above the centre, on the 0.3 ellipse
    assert commands[0][1] == [120, 32]
    assert [(c.id, c.cx, c.cy, c.r) for c in paths.parts_circles] == [
        ("d1", 40, 175, 8), ("d2", -20, 200, 5)]


def test_thought_dots_are_not_part_of_outline(thought_bubble):
    without_dots = replace(thought_bubble, parts=[])
    assert (generate_bubble_paths(thought_bubble).body_path
            == generate_bubble_paths(without_dots).body_path)


def test_shout_alternates_outer_and_inner_points():
    d = generate_bubble_paths(Bubble(id="b", type=BubbleType.SHOUT,
                                     width=200, height=100)).body_path
    commands = parse_path(d)
    assert [c for c, _ in commands] == ["M"] + ["L"] * 27 + ["Z"]
    assert commands[0][1] == [100, 0]                   # outer, straight up
    assert commands[14][1] == [100, 100]                # outer, straight down
    cx, cy = 100, 50
    for i, (_, (x, y)) in enumerate(commands[:-1]):
        rx, ry = (100, 50) if i % 2 == 0 else (200 / 3.5, 100 / 3.5)
        assert ((x - cx) / rx) ** 2 + ((y - cy) / ry) ** 2 == pytest.approx(1, abs=1e-3)


def test_only_thought_bubbles_emit_dot_circles():
    bubble = Bubble(id="b", type=BubbleType.SHOUT, width=100, height=100,
                    parts=[ThoughtDotPart(id="d", offset_x=0, offset_y=0, size=4)])
    assert generate_bubble_paths(bubble).parts_circles == []


# ---------------------------------------------------------------------------
# Determinism
# ---------------------------------------------------------------------------

def _make(bubble_type):
    return Bubble(id="b", type=bubble_type, width=173.3, height=91.7,
                  parts=[_tail(base_cx=60.1, base_cy=91.7, tip_x=12.34, tip_y=140.2),
                         ThoughtDotPart(id="d", offset_x=3.3, offset_y=110, size=7)])


@pytest.mark.parametrize("bubble_type", list(BubbleType))
def test_generation_is_deterministic(bubble_type):
    a, b = _make(bubble_type), _make(bubble_type)
    assert a == b and a is not b
    assert generate_bubble_paths(a) == generate_bubble_paths(b)
    assert overall_bbox(a) == overall_bbox(b)


# ---------------------------------------------------------------------------
# Bounding box
# ---------------------------------------------------------------------------

def test_bbox_of_plain_body_is_padded_rect():
    assert overall_bbox(Bubble(id="b", width=200, height=100)) == BBox(-10, -10, 220, 120)


def test_bbox_covers_tail_tip_below(speech_bubble):
    box = overall_bbox(speech_bubble)
    assert box == BBox(-10, -10, 220, 180)
    assert box.y + box.height >= 160 + BBOX_PADDING


@pytest.mark.parametrize("tip", [(-50, 40), (300, -80), (250, 250), (-5, -5)])
def test_bbox_contains_outside_tip_with_padding(tip):
    bubble = Bubble(id="b", type=BubbleType.SPEECH_UP, width=120, height=80,
                    parts=[_tail(base_cx=60, base_cy=0, tip_x=tip[0], tip_y=tip[1])])
    box = overall_bbox(bubble)
    tx, ty = tip
    assert box.x <= tx - BBOX_PADDING
    assert box.y <= ty - BBOX_PADDING
    assert box.right >= tx + BBOX_PADDING
    assert box.bottom >= ty + BBOX_PADDING


def test_bbox_covers_whole_dot_circles(thought_bubble):
    box = overall_bbox(thought_bubble)
    assert box.x == -20 - 5 - BBOX_PADDING
    assert box.bottom == 200 + 5 + BBOX_PADDING
    assert box.right == 240 + BBOX_PADDING


@pytest.mark.parametrize("bubble_type", list(BubbleType))
def test_bbox_contains_every_path_point_and_circle(bubble_type):
    bubble = _make(bubble_type)
    paths = generate_bubble_paths(bubble)
    box = overall_bbox(bubble)
    for x, y in path_points(paths.body_path):
        assert box.contains_point(x, y), (x, y, box)
    for c in paths.parts_circles:
        assert box.x <= c.cx - c.r and c.cx + c.r <= box.right
        assert box.y <= c.cy - c.r and c.cy + c.r <= box.bottom
