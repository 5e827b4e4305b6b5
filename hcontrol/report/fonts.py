"""Locating a TrueType font with Cyrillic glyphs.

The built-in PDF/PIL fonts have no Cyrillic coverage, so both renderers look
for DejaVu Sans (or a compatible face) and degrade to the built-ins when none
is installed.
"""

from __future__ import annotations

import os
from pathlib import Path

_HERE = Path(__file__).resolve().parent

REGULAR_CANDIDATES = (
    str(_HERE / "fonts" / "DejaVuSans.ttf"),
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/Library/Fonts/DejaVuSans.ttf",
    r"C:\Windows\Fonts\DejaVuSans.ttf",
    r"C:\Windows\Fonts\arial.ttf",
)
BOLD_CANDIDATES = (
    str(_HERE / "fonts" / "DejaVuSans-Bold.ttf"),
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/TTF/DejaVuSans-Bold.ttf",
    "/Library/Fonts/DejaVuSans-Bold.ttf",
    r"C:\Windows\Fonts\DejaVuSans-Bold.ttf",
    r"C:\Windows\Fonts\arialbd.ttf",
)


def _first_existing(paths) -> str | None:
    for p in paths:
        if p and os.path.exists(p):
            return p
    return None


def find_font(explicit: str | None = None, *, bold: bool = False) -> str | None:
    """Path of a usable TTF, preferring ``explicit`` (``PDF_FONT_PATH``)."""
    if bold:
        if explicit:
            sibling = explicit.replace(".ttf", "-Bold.ttf")
            found = _first_existing([sibling])
            if found:
                return found
        return _first_existing(BOLD_CANDIDATES) or find_font(explicit)
    return _first_existing([explicit, *REGULAR_CANDIDATES])
