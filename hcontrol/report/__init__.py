"""Report rendering: CSV/XLSX tables and A4 documents as PDF or raster images."""

from .document import Document, Section
from .image import render_image
from .pdf import render_pdf
from .tabular import build_csv, build_xlsx

__all__ = ["Document", "Section", "render_image", "render_pdf", "build_csv", "build_xlsx"]
