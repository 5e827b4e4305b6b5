from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill

BOM = "\ufeff"


def build_csv(header: Sequence[str], rows: Iterable[Sequence[Any]], *, bom: bool = True) -> bytes:
    """CSV bytes; the BOM keeps Cyrillic readable when the file is opened in Excel."""
    buf = io.StringIO(newline="")
    w = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    w.writerow(header)
    for row in rows:
        w.writerow(["" if v is None else v for v in row])
    data = buf.getvalue()
    return (BOM + data if bom else data).encode("utf-8")


def build_xlsx(sheets: Sequence[tuple[str, Sequence[str], Iterable[Sequence[Any]]]]) -> bytes:
    """One worksheet per ``(title, header, rows)``; the header row is bold on a slate fill."""
    wb = Workbook()
    first = True
    for title, header, rows in sheets:
        if first:
            ws = wb.active
            ws.title = title[:31]
            first = False
        else:
            ws = wb.create_sheet(title[:31])
        ws.append(list(header))
        for cell in ws[1]:
            cell.font = Font(bold=True, color="FFFFFF")
            cell.fill = PatternFill("solid", fgColor="475569")
        for row in rows:
            ws.append(["" if v is None else v for v in row])
        for idx, _ in enumerate(header, start=1):
            letter = ws.cell(row=1, column=idx).column_letter
            width = max(len(str(c.value or "")) for c in ws[letter])
            ws.column_dimensions[letter].width = min(max(width + 2, 8), 60)
    out = io.BytesIO()
    wb.save(out)
    return out.getvalue()
