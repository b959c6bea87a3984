"""
main.py — Command-line entry point: render one bubble to SVG or an image.

    bubble-render out.png --type speech-down --text "Hello<br>there!"
    bubble-render out.svg --type thought --dot 40,150,16 --dot 25,170,9
"""

import argparse
import logging
import os
import sys

from version import __app_name__, __version__

logger = logging.getLogger(__name__)


def _resource_path(relative: str) -> str:
    """Return absolute path to a bundled resource (PyInstaller-aware)."""
    if hasattr(sys, "_MEIPASS"):
        return os.path.join(sys._MEIPASS, relative)
    return os.path.join(os.path.dirname(os.path.abspath(__file__)), relative)


def _load_bundled_fonts() -> int:
    """Register every .ttf/.otf in fonts/ with Qt; returns how many loaded."""
    from PyQt6.QtGui import QFontDatabase

    fonts_dir = _resource_path("fonts")
    if not os.path.isdir(fonts_dir):
        return 0
    loaded = 0
    for fname in sorted(os.listdir(fonts_dir)):
        if fname.lower().endswith((".ttf", ".otf")):
            if QFontDatabase.addApplicationFont(os.path.join(fonts_dir, fname)) >= 0:
                loaded += 1
            else:
                logger.warning("Could not load bundled font %s", fname)
    return loaded


def _floats(text: str, count: int, name: str) -> list[float]:
    try:
        values = [float(v) for v in text.split(",")]
    except ValueError:
        values = []
    if len(values) != count:
        raise argparse.ArgumentTypeError(
            f"{name} expects {count} comma-separated numbers, got {text!r}")
    return values


def build_parser() -> argparse.ArgumentParser:
    from bubble import DEFAULT_FONT_FAMILY, DEFAULT_FONT_SIZE, DEFAULT_H, DEFAULT_W, BubbleType

    p = argparse.ArgumentParser(prog="bubble-render", description=__app_name__)
    p.add_argument("output", help="output file (.svg, or any Qt image format)")
    p.add_argument("--type", default=BubbleType.SPEECH_DOWN.value,
                   choices=[t.value for t in BubbleType])
    p.add_argument("--width", type=float, default=DEFAULT_W)
    p.add_argument("--height", type=float, default=DEFAULT_H)
    p.add_argument("--text", default="")
    p.add_argument("--font", default=DEFAULT_FONT_FAMILY)
    p.add_argument("--font-size", type=float, default=DEFAULT_FONT_SIZE)
    p.add_argument("--tail", type=lambda s: _floats(s, 5, "--tail"),
                   metavar="BASE_X,BASE_Y,BASE_W,TIP_X,TIP_Y",
                   help="replace the default tail")
    p.add_argument("--dot", type=lambda s: _floats(s, 3, "--dot"), action="append",
                   metavar="X,Y,SIZE", help="thought dot (repeatable)")
    p.add_argument("--scale", type=float, default=1.0)
    p.add_argument("--no-fit", action="store_true", help="keep the given font size")
    p.add_argument("--verbose", "-v", action="store_true")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def make_bubble(args):
    from bubble import BubbleType, SpeechTailPart, ThoughtDotPart, new_bubble

    bubble = new_bubble("cli", BubbleType(args.type),
                        width=args.width, height=args.height,
                        font_family=args.font, font_size=args.font_size,
                        text=args.text)
    if args.tail:
        bx, by, bw, tx, ty = args.tail
        tail = SpeechTailPart(id="cli-tail", base_cx=bx, base_cy=by,
                              base_width=bw, tip_x=tx, tip_y=ty)
        bubble.parts = [p for p in bubble.parts if p.kind != tail.kind] + [tail]
    if args.dot:
        dots = [ThoughtDotPart(id=f"cli-dot-{i}", offset_x=x, offset_y=y, size=s)
                for i, (x, y, s) in enumerate(args.dot, start=1)]
        bubble.parts = [p for p in bubble.parts if p.kind != dots[0].kind] + dots
    return bubble


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")

    bubble = make_bubble(args)

    if args.output.lower().endswith(".svg"):
        from export import save_bubble_svg
        return 0 if save_bubble_svg(bubble, args.output) else 1

    # Raster export needs Qt's font engine but no window
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    from PyQt6.QtGui import QGuiApplication
    from export import save_bubble_image
    from text_metrics import DEFAULT_FONT_MAP

    app = QGuiApplication.instance() or QGuiApplication(sys.argv[:1])
    app.setApplicationName(__app_name__)
    logger.debug("Loaded %d bundled font(s)", _load_bundled_fonts())

    ok = save_bubble_image(bubble, args.output, font_map=DEFAULT_FONT_MAP,
                           scale=args.scale, fit_text=not args.no_fit)
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
