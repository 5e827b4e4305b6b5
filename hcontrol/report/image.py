"""Raster rendition of a :class:`Document` with Pillow.

The canvas is A4 width at 150 DPI; it grows downward when the content does
not fit on one page.
"""

from __future__ import annotations

import io
import os

from PIL import Image, ImageDraw, ImageFont

from .document import Document
from .fonts import find_font

DPI = 150
PAGE_W, PAGE_H = 1240, 1754
MARGIN = 90
JPEG_QUALITY = 95

HEADER_FILL = (71, 85, 105)
GRID = (203, 213, 225)
STRIPE = (248, 250, 252)
MUTED = (100, 116, 139)
INK = (15, 23, 42)

FORMATS = {"png": "PNG", "jpeg": "JPEG", "jpg": "JPEG"}


def _font(path: str | None, size: int):
    if path:
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            return ImageFont.load_default(size=size)
    return ImageFont.load_default(size=size)


def _wrap(draw: ImageDraw.ImageDraw, text: str, font, width: int) -> list[str]:
    lines: list[str] = []
    for paragraph in text.split("\n"):
        current = ""
        for word in paragraph.split(" "):
            candidate = f"{current} {word}".strip()
            if not current or draw.textlength(candidate, font=font) <= width:
                current = candidate
            else:
                lines.append(current)
                current = word
        lines.append(current)
    return lines


class _Canvas:
    """Runs the layout twice: once to measure, once to paint."""

    def __init__(self, doc: Document, fonts: dict, logo: Image.Image | None):
        self.doc = doc
        self.fonts = fonts
        self.logo = logo
        self.measure = ImageDraw.Draw(Image.new("RGB", (1, 1)))

    def _line_h(self, font) -> int:
        box = self.measure.textbbox((0, 0), "Ag", font=font)
        return int((box[3] - box[1]) * 1.45) + 2

    def layout(self, img: Image.Image | None) -> int:
        doc, f = self.doc, self.fonts
        draw = ImageDraw.Draw(img) if img is not None else None
        y = MARGIN
        avail = PAGE_W - 2 * MARGIN
        if self.logo is not None:
            if img is not None:
                img.paste(self.logo, ((PAGE_W - self.logo.width) // 2, y))
            y += self.logo.height + 16
        for font, text, fill in ((f["title"], doc.title, INK), (f["subtitle"], doc.subtitle, MUTED)):
            if not text:
                continue
            if draw is not None:
                w = draw.textlength(text, font=font)
                draw.text(((PAGE_W - w) / 2, y), text, font=font, fill=fill)
            y += self._line_h(font)
        y += 10
        for label, value in doc.meta:
            if draw is not None:
                draw.text((MARGIN, y), label, font=f["bold"], fill=INK)
                offset = draw.textlength(label + " ", font=f["bold"])
                draw.text((MARGIN + offset, y), value, font=f["body"], fill=INK)
            y += self._line_h(f["body"])
        y += 14
        if not doc.sections:
            if draw is not None:
                draw.text((MARGIN, y), doc.empty_text, font=f["body"], fill=MUTED)
            y += self._line_h(f["body"])
        for section in doc.sections:
            y += 10
            if draw is not None:
                draw.text((MARGIN, y), section.heading, font=f["h2"], fill=INK)
            y += self._line_h(f["h2"])
            if section.caption:
                if draw is not None:
                    draw.text((MARGIN, y), section.caption, font=f["body"], fill=INK)
                y += self._line_h(f["body"])
            weights = section.widths or [1.0] * len(section.header)
            total = sum(weights)
            cols = [int(avail * w / total) for w in weights]
            for idx, row in enumerate([section.header, *section.rows]):
                font = f["bold"] if idx == 0 else f["cell"]
                wrapped = [_wrap(self.measure, str(c), font, cw - 16) for c, cw in zip(row, cols)]
                row_h = max(len(w) for w in wrapped) * self._line_h(font) + 12
                if draw is not None:
                    fill = HEADER_FILL if idx == 0 else (STRIPE if idx % 2 == 0 else (255, 255, 255))
                    color = (255, 255, 255) if idx == 0 else INK
                    x = MARGIN
                    for lines, cw in zip(wrapped, cols):
                        draw.rectangle([x, y, x + cw, y + row_h], fill=fill, outline=GRID)
                        ty = y + 6
                        for line in lines:
                            draw.text((x + 8, ty), line, font=font, fill=color)
                            ty += self._line_h(font)
                        x += cw
                y += row_h
        y += 30
        if draw is not None:
            w = draw.textlength(doc.footer, font=f["small"])
            draw.text(((PAGE_W - w) / 2, y), doc.footer, font=f["small"], fill=MUTED)
        y += self._line_h(f["small"]) + MARGIN
        return y


def _logo(path: str | None) -> Image.Image | None:
    if not path or not os.path.exists(path):
        return None
    with Image.open(path) as src:
        logo = src.convert("RGBA")
    ratio = 110 / logo.height
    logo = logo.resize((max(1, int(logo.width * ratio)), 110))
    flat = Image.new("RGB", logo.size, (255, 255, 255))
    flat.paste(logo, mask=logo.split()[3])
    return flat


def render_image(
    doc: Document, fmt: str = "png", *, logo_path: str | None = None, font_path: str | None = None
) -> bytes:
    """Render ``doc`` as PNG or JPEG bytes."""
    pil_format = FORMATS.get(fmt.lower())
    if pil_format is None:
        raise ValueError(f"unsupported image format: {fmt}")
    regular = find_font(font_path)
    bold = find_font(font_path, bold=True)
    fonts = {
        "title": _font(bold, 36),
        "subtitle": _font(regular, 22),
        "h2": _font(bold, 26),
        "body": _font(regular, 22),
        "bold": _font(bold, 21),
        "cell": _font(regular, 20),
        "small": _font(regular, 17),
    }
    canvas = _Canvas(doc, fonts, _logo(logo_path))
    height = max(PAGE_H, canvas.layout(None))
    img = Image.new("RGB", (PAGE_W, height), (255, 255, 255))
    canvas.layout(img)
    out = io.BytesIO()
    if pil_format == "JPEG":
        img.save(out, format="JPEG", quality=JPEG_QUALITY, dpi=(DPI, DPI))
    else:
        img.save(out, format="PNG", dpi=(DPI, DPI))
    return out.getvalue()
