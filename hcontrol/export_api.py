"""Printable exports of the HACCP diaries.

Documents are rendered server-side as A4 PDF (reportlab) or PNG/JPEG
(Pillow); the food diary is also available as an XLSX workbook.
"""

from __future__ import annotations

import logging
from datetime import datetime

from flask import Blueprint, Response, current_app, request
from flask.typing import ResponseReturnValue

from .app_authz import require_auth
from .app_sessions import current_user_id
from .constants import DEVICE_TYPE_ORDER
from .db import get_session
from .errors import NotFoundError, ValidationError
from .models import CleaningLog, DiaryDevice, Establishment, FoodDiaryEntry, FoodItem, TemperatureReading
from .readings_service import device_sort_key
from .report import Document, build_xlsx, render_image, render_pdf
from .report.document import cleaning_document, food_diary_document, temperature_document
from .validation import is_valid_date, optional_arg_date, parse_optional_id

log = logging.getLogger(__name__)

bp = Blueprint("export_api", __name__, url_prefix="/api/export")

MIMETYPES = {
    "pdf": "application/pdf",
    "png": "image/png",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
}
XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _format() -> str:
    fmt = (request.args.get("format") or "pdf").lower()
    if fmt not in MIMETYPES:
        raise ValidationError("INVALID_FORMAT", "format must be one of: pdf, png, jpeg")
    return fmt


def _period_args() -> tuple[str | None, str | None]:
    start = optional_arg_date("startDate", "INVALID_DATE", "startDate must be in YYYY-MM-DD format")
    end = optional_arg_date("endDate", "INVALID_DATE", "endDate must be in YYYY-MM-DD format")
    return start, end


def _establishment_name(db, user_id: int, est_id: int | None) -> str:
    q = db.query(Establishment).filter(Establishment.user_id == user_id)
    if est_id is not None:
        q = q.filter(Establishment.id == est_id)
    est = q.order_by(Establishment.created_at.asc(), Establishment.id.asc()).first()
    if est_id is not None and est is None:
        raise NotFoundError("Establishment not found", code="ESTABLISHMENT_NOT_FOUND")
    return est.company_name if est else "-"


def _attachment(payload: bytes, mimetype: str, filename: str) -> Response:
    return Response(
        payload,
        mimetype=mimetype,
        headers={"Cache-Control": "no-store", "Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _render(doc: Document, fmt: str, stem: str) -> Response:
    cfg = current_app.config
    opts = {"logo_path": cfg.get("LOGO_PATH"), "font_path": cfg.get("PDF_FONT_PATH")}
    if fmt == "pdf":
        payload = render_pdf(doc, **opts)
    else:
        payload = render_image(doc, fmt, **opts)
    ext = "jpg" if fmt == "jpeg" else fmt
    log.info("export rendered %s format=%s bytes=%s", stem, fmt, len(payload))
    return _attachment(payload, MIMETYPES[fmt], f"{stem}.{ext}")


@bp.get("/temperature/<day>")
@require_auth
def temperature(day: str) -> ResponseReturnValue:
    if not is_valid_date(day):
        raise ValidationError("INVALID_DATE", "Invalid date format. Use YYYY-MM-DD")
    fmt = _format()
    est_id = parse_optional_id(
        request.args.get("establishmentId"), "INVALID_ESTABLISHMENT_ID", "Invalid establishment ID"
    )
    user_id = current_user_id()
    db = get_session()
    try:
        q = db.query(DiaryDevice).filter(DiaryDevice.user_id == user_id)
        if est_id is not None:
            q = q.filter(DiaryDevice.establishment_id == est_id)
        grouped: dict[str, list] = {t: [] for t in DEVICE_TYPE_ORDER}
        found = False
        for device in sorted(q.all(), key=device_sort_key):
            readings = (
                db.query(TemperatureReading)
                .filter(TemperatureReading.device_id == device.id, TemperatureReading.reading_date == day)
                .order_by(TemperatureReading.hour.asc())
                .all()
            )
            found = found or bool(readings)
            grouped.setdefault(device.device_type, []).append((device, readings))
        if not found:
            raise NotFoundError("No temperature readings for this date", code="NO_DATA")
        groups = [(t, devices) for t, devices in grouped.items() if devices]
        doc = temperature_document(_establishment_name(db, user_id, est_id), day, groups)
        return _render(doc, fmt, f"temperature-report-{day}")
    finally:
        db.close()


def _food_diary_rows(db, user_id: int, start, end, est_id):
    q = (
        db.query(FoodDiaryEntry, FoodItem.name)
        .outerjoin(FoodItem, FoodItem.id == FoodDiaryEntry.food_item_id)
        .filter(FoodDiaryEntry.user_id == user_id)
    )
    if start:
        q = q.filter(FoodDiaryEntry.date >= start)
    if end:
        q = q.filter(FoodDiaryEntry.date <= end)
    if est_id is not None:
        q = q.filter(FoodDiaryEntry.establishment_id == est_id)
    return q.order_by(FoodDiaryEntry.date.asc(), FoodDiaryEntry.time.asc(), FoodDiaryEntry.id.asc()).all()


@bp.get("/food-diary")
@require_auth
def food_diary() -> ResponseReturnValue:
    fmt = _format()
    start, end = _period_args()
    est_id = parse_optional_id(
        request.args.get("establishmentId"), "INVALID_ESTABLISHMENT_ID", "Invalid establishment ID"
    )
    user_id = current_user_id()
    db = get_session()
    try:
        rows = _food_diary_rows(db, user_id, start, end, est_id)
        if not rows:
            raise NotFoundError("No food diary entries for this period", code="NO_DATA")
        doc = food_diary_document(_establishment_name(db, user_id, est_id), start, end, rows)
        return _render(doc, fmt, f"food-diary-{start or 'all'}-to-{end or 'all'}")
    finally:
        db.close()


@bp.get("/food-diary.xlsx")
@require_auth
def food_diary_xlsx() -> ResponseReturnValue:
    start, end = _period_args()
    est_id = parse_optional_id(
        request.args.get("establishmentId"), "INVALID_ESTABLISHMENT_ID", "Invalid establishment ID"
    )
    db = get_session()
    try:
        rows = _food_diary_rows(db, current_user_id(), start, end, est_id)
        if not rows:
            raise NotFoundError("No food diary entries for this period", code="NO_DATA")
        header = ["Дата", "Час", "Храна", "Количество", "Темп. (°C)", "Срок (ч.)", "Бележки"]
        data = [
            [e.date, e.time, name, e.quantity, e.temperature, e.shelf_life_hours, e.notes]
            for e, name in rows
        ]
        payload = build_xlsx([("Дневник Храни", header, data)])
        return _attachment(payload, XLSX_MIMETYPE, f"food-diary-{start or 'all'}-to-{end or 'all'}.xlsx")
    finally:
        db.close()


@bp.get("/cleaning-logs")
@require_auth
def cleaning_logs() -> ResponseReturnValue:
    fmt = _format()
    start, end = _period_args()
    est_id = parse_optional_id(
        request.args.get("establishmentId"), "INVALID_ESTABLISHMENT_ID", "Invalid establishment ID"
    )
    user_id = current_user_id()
    db = get_session()
    try:
        q = db.query(CleaningLog).filter(CleaningLog.user_id == user_id)
        if start:
            q = q.filter(CleaningLog.log_date >= start)
        if end:
            q = q.filter(CleaningLog.log_date <= end)
        if est_id is not None:
            q = q.filter(CleaningLog.establishment_id == est_id)
        logs = q.order_by(CleaningLog.log_date.asc(), CleaningLog.start_time.asc(), CleaningLog.id.asc()).all()
        if not logs:
            raise NotFoundError("No cleaning logs for this period", code="NO_DATA")
        doc = cleaning_document(_establishment_name(db, user_id, est_id), start, end, logs)
        stamp = datetime.now().strftime("%Y%m%d")
        return _render(doc, fmt, f"cleaning-logs-{start or stamp}-to-{end or stamp}")
    finally:
        db.close()
