"""
version.py — Single source of truth for the engine version and branding.

History:
  v1.0.0 — Outline paths for speech / whisper / thought / shout /
            descriptive bubbles with spliced tails, overall bbox,
            <br>-aware rich text wrap and render, font auto-fit.
  v1.1.0 — Injected text metrics (Qt, Pillow, fixed-width fallback),
            SVG and raster export, bubble-render command.
"""

__version__  = "1.1.0"
__app_name__ = "Bubble Engine"
__org_name__ = "Long Weekend Labs"
