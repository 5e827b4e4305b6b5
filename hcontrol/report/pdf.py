from __future__ import annotations

import io
import logging
import os

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .document import Document
from .fonts import find_font

log = logging.getLogger(__name__)

HEADER_FILL = colors.HexColor("#475569")
GRID = colors.HexColor("#CBD5E1")
MUTED = colors.HexColor("#64748B")
MARGIN = 15 * mm


def _register_fonts(font_path: str | None) -> tuple[str, str]:
    regular = find_font(font_path)
    bold = find_font(font_path, bold=True)
    try:
        if regular:
            if "HControlSans" not in pdfmetrics.getRegisteredFontNames():
                pdfmetrics.registerFont(TTFont("HControlSans", regular))
            if bold and "HControlSans-Bold" not in pdfmetrics.getRegisteredFontNames():
                pdfmetrics.registerFont(TTFont("HControlSans-Bold", bold))
            return "HControlSans", "HControlSans-Bold" if bold else "HControlSans"
    except TTFError:
        log.warning("could not load font %s, falling back to Helvetica", regular)
    return "Helvetica", "Helvetica-Bold"


def _styles(font: str, font_bold: str) -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle("hcTitle", parent=base["Heading1"], fontName=font_bold, fontSize=17, leading=21, alignment=1, spaceAfter=4),
        "subtitle": ParagraphStyle("hcSubtitle", parent=base["Normal"], fontName=font, fontSize=10, leading=13, alignment=1, textColor=MUTED, spaceAfter=8),
        "meta": ParagraphStyle("hcMeta", parent=base["Normal"], fontName=font, fontSize=10, leading=14),
        "h2": ParagraphStyle("hcH2", parent=base["Heading2"], fontName=font_bold, fontSize=12, leading=15, spaceBefore=10, spaceAfter=3),
        "caption": ParagraphStyle("hcCaption", parent=base["Normal"], fontName=font, fontSize=9.5, leading=12, spaceAfter=4),
        "cell": ParagraphStyle("hcCell", parent=base["Normal"], fontName=font, fontSize=9, leading=11),
        "head": ParagraphStyle("hcHead", parent=base["Normal"], fontName=font_bold, fontSize=9, leading=11, textColor=colors.white),
        "footer": ParagraphStyle("hcFooter", parent=base["Normal"], fontName=font, fontSize=8, leading=10, alignment=1, textColor=MUTED),
    }


def _esc(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def render_pdf(doc: Document, *, logo_path: str | None = None, font_path: str | None = None) -> bytes:
    """Render ``doc`` as an A4 PDF."""
    font, font_bold = _register_fonts(font_path)
    st = _styles(font, font_bold)
    buffer = io.BytesIO()
    pdf = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=MARGIN,
        title=doc.title,
        author="H CONTROL",
    )
    avail = A4[0] - 2 * MARGIN

    elems = []
    if logo_path and os.path.exists(logo_path):
        logo = Image(logo_path)
        ratio = 18 * mm / logo.imageHeight
        logo.drawHeight = 18 * mm
        logo.drawWidth = logo.imageWidth * ratio
        elems.append(logo)
        elems.append(Spacer(1, 4))
    elems.append(Paragraph(_esc(doc.title), st["title"]))
    if doc.subtitle:
        elems.append(Paragraph(_esc(doc.subtitle), st["subtitle"]))
    for label, value in doc.meta:
        elems.append(Paragraph(f'<font name="{font_bold}">{_esc(label)}</font> {_esc(value)}', st["meta"]))
    elems.append(Spacer(1, 8))

    if not doc.sections:
        elems.append(Paragraph(_esc(doc.empty_text), st["caption"]))
    for section in doc.sections:
        elems.append(Paragraph(_esc(section.heading), st["h2"]))
        if section.caption:
            elems.append(Paragraph(_esc(section.caption), st["caption"]))
        weights = section.widths or [1.0] * len(section.header)
        total = sum(weights)
        col_widths = [avail * w / total for w in weights]
        data = [[Paragraph(_esc(h), st["head"]) for h in section.header]]
        data += [[Paragraph(_esc(c), st["cell"]) for c in row] for row in section.rows]
        table = Table(data, colWidths=col_widths, repeatRows=1, hAlign="LEFT")
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), HEADER_FILL),
                    ("GRID", (0, 0), (-1, -1), 0.25, GRID),
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                    ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F8FAFC")]),
                    ("TOPPADDING", (0, 0), (-1, -1), 4),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
                ]
            )
        )
        elems.append(table)

    elems.append(Spacer(1, 14))
    elems.append(Paragraph(_esc(doc.footer), st["footer"]))
    pdf.build(elems)
    return buffer.getvalue()
