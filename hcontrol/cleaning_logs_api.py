"""Cleaning log CRUD and the daily generation from cleaning templates."""

from __future__ import annotations

from datetime import date
from typing import Any

from flask import Blueprint, jsonify, request
from flask.typing import ResponseReturnValue

from .app_authz import AuthzError, require_auth
from .app_sessions import current_user_id
from .cleaning_service import generate_cleaning_logs
from .db import get_session
from .errors import ForbiddenError, NotFoundError, ValidationError
from .models import CleaningLog, Establishment, Personnel, utcnow_iso
from .pagination import parse_page_params
from .serializers import cleaning_log_json
from .validation import (
    DATE_RE,
    HHMM_RE,
    is_string_list,
    is_valid_date,
    json_body,
    optional_arg_date,
    optional_text,
    parse_id,
    parse_optional_id,
    to_minutes,
)

bp = Blueprint("cleaning_logs_api", __name__, url_prefix="/api/cleaning-logs")

REQUIRED = (
    ("startTime", "MISSING_START_TIME"),
    ("endTime", "MISSING_END_TIME"),
    ("cleaningAreas", "MISSING_CLEANING_AREAS"),
    ("products", "MISSING_PRODUCTS"),
    ("logDate", "MISSING_LOG_DATE"),
)


def _is_hhmm(value: Any) -> bool:
    return isinstance(value, str) and bool(HHMM_RE.match(value))


def _load_owned(db, log_id: int, user_id: int, action: str) -> CleaningLog:
    entry = db.get(CleaningLog, log_id)
    if not entry:
        raise NotFoundError("Cleaning log not found", code="LOG_NOT_FOUND")
    if entry.user_id != user_id:
        raise AuthzError(f"You do not have permission to {action} this cleaning log")
    return entry


def _owned_establishment_ids(db, user_id: int) -> set[int]:
    return {i for (i,) in db.query(Establishment.id).filter(Establishment.user_id == user_id)}


@bp.get("")
@require_auth
def list_logs() -> ResponseReturnValue:
    start = optional_arg_date("startDate", "INVALID_START_DATE", "Invalid startDate format. Expected YYYY-MM-DD")
    end = optional_arg_date("endDate", "INVALID_END_DATE", "Invalid endDate format. Expected YYYY-MM-DD")
    log_date = optional_arg_date("logDate", "INVALID_LOG_DATE", "Invalid logDate format. Expected YYYY-MM-DD")
    page = parse_page_params(request.args, default_limit=50, max_limit=200, clamp=True)
    est_id = parse_optional_id(
        request.args.get("establishmentId"), "INVALID_ESTABLISHMENT_ID", "Invalid establishmentId parameter"
    )
    db = get_session()
    try:
        q = db.query(CleaningLog).filter(CleaningLog.user_id == current_user_id())
        if est_id is not None:
            q = q.filter(CleaningLog.establishment_id == est_id)
        if log_date:
            q = q.filter(CleaningLog.log_date == log_date)
        if start:
            q = q.filter(CleaningLog.log_date >= start)
        if end:
            q = q.filter(CleaningLog.log_date <= end)
        total = q.count()
        rows = (
            q.order_by(CleaningLog.log_date.desc(), CleaningLog.created_at.desc(), CleaningLog.id.desc())
            .limit(page["limit"])
            .offset(page["offset"])
            .all()
        )
        return jsonify({"logs": [cleaning_log_json(r) for r in rows], "total": total})
    finally:
        db.close()


@bp.post("")
@require_auth
def create_log() -> ResponseReturnValue:
    user_id = current_user_id()
    data = json_body()
    for key, code in REQUIRED:
        if data.get(key) in (None, ""):
            raise ValidationError(code, f"{key} is required")
    start, end = data["startTime"], data["endTime"]
    if not _is_hhmm(start):
        raise ValidationError("INVALID_START_TIME_FORMAT", "Invalid startTime format. Expected HH:MM")
    if not _is_hhmm(end):
        raise ValidationError("INVALID_END_TIME_FORMAT", "Invalid endTime format. Expected HH:MM")
    if to_minutes(end) <= to_minutes(start):
        raise ValidationError("INVALID_TIME_RANGE", "endTime must be after startTime")
    if not isinstance(data["logDate"], str) or not DATE_RE.match(data["logDate"]):
        raise ValidationError("INVALID_LOG_DATE_FORMAT", "Invalid logDate format. Expected YYYY-MM-DD")
    if not is_string_list(data["cleaningAreas"]):
        raise ValidationError("INVALID_CLEANING_AREAS", "cleaningAreas must be a non-empty array of strings")
    if not is_string_list(data["products"]):
        raise ValidationError("INVALID_PRODUCTS", "products must be a non-empty array of strings")
    est_id = parse_optional_id(data.get("establishmentId"), "INVALID_ESTABLISHMENT_ID", "Invalid establishmentId")
    employee_id = parse_optional_id(data.get("employeeId"), "INVALID_EMPLOYEE_ID", "Invalid employeeId")
    db = get_session()
    try:
        if est_id is not None:
            est = db.get(Establishment, est_id)
            if not est or est.user_id != user_id:
                raise ForbiddenError("Establishment not found or access forbidden", code="ESTABLISHMENT_NOT_FOUND")
        employee_name = None
        if employee_id is not None:
            employee = db.get(Personnel, employee_id)
            if not employee:
                raise NotFoundError("Employee not found", code="EMPLOYEE_NOT_FOUND")
            if employee.establishment_id not in _owned_establishment_ids(db, user_id):
                raise ForbiddenError(
                    "Employee does not belong to your establishment", code="EMPLOYEE_ACCESS_FORBIDDEN"
                )
            employee_name = employee.full_name
        entry = CleaningLog(
            user_id=user_id,
            establishment_id=est_id,
            start_time=start,
            end_time=end,
            cleaning_areas=list(data["cleaningAreas"]),
            products=list(data["products"]),
            employee_id=employee_id,
            employee_name=employee_name,
            notes=optional_text(data.get("notes")),
            log_date=data["logDate"],
        )
        db.add(entry)
        db.commit()
        resp = jsonify(cleaning_log_json(entry))
        resp.status_code = 201
        return resp
    finally:
        db.close()


@bp.post("/generate")
@require_auth
def generate() -> ResponseReturnValue:
    """Create the day's cleaning logs from the weekly templates, at most once per day."""
    user_id = current_user_id()
    data = json_body()
    log_date = data.get("date") or date.today().isoformat()
    if not is_valid_date(log_date):
        raise ValidationError("INVALID_DATE_FORMAT", "date must be in YYYY-MM-DD format")
    est_id = parse_optional_id(data.get("establishmentId"), "INVALID_ESTABLISHMENT_ID", "Invalid establishmentId")
    db = get_session()
    try:
        if est_id is not None:
            est = db.get(Establishment, est_id)
            if not est or est.user_id != user_id:
                raise ForbiddenError("Establishment not found or access forbidden", code="ESTABLISHMENT_NOT_FOUND")
        result = generate_cleaning_logs(db, user_id, log_date, est_id)
        db.commit()
        return jsonify(
            {
                "date": result.date,
                "created": len(result.logs),
                "skipped": result.skipped,
                "logs": [cleaning_log_json(e) for e in result.logs],
            }
        )
    finally:
        db.close()


@bp.get("/<log_id>")
@require_auth
def get_log(log_id: str) -> ResponseReturnValue:
    lid = parse_id(log_id)
    db = get_session()
    try:
        return jsonify(cleaning_log_json(_load_owned(db, lid, current_user_id(), "access")))
    finally:
        db.close()


@bp.put("/<log_id>")
@require_auth
def update_log(log_id: str) -> ResponseReturnValue:
    lid = parse_id(log_id)
    user_id = current_user_id()
    db = get_session()
    try:
        entry = _load_owned(db, lid, user_id, "update")
        data = json_body()
        if "startTime" in data and not _is_hhmm(data["startTime"]):
            raise ValidationError("INVALID_START_TIME", "Start time must be in HH:MM format")
        if "endTime" in data and not _is_hhmm(data["endTime"]):
            raise ValidationError("INVALID_END_TIME", "End time must be in HH:MM format")
        start = data.get("startTime", entry.start_time)
        end = data.get("endTime", entry.end_time)
        if to_minutes(end) <= to_minutes(start):
            raise ValidationError("INVALID_TIME_RANGE", "End time must be after start time")
        if "cleaningAreas" in data and not is_string_list(data["cleaningAreas"]):
            raise ValidationError("INVALID_CLEANING_AREAS", "Cleaning areas must be a non-empty array of strings")
        if "products" in data and not is_string_list(data["products"]):
            raise ValidationError("INVALID_PRODUCTS", "Products must be a non-empty array of strings")
        if "logDate" in data and not (isinstance(data["logDate"], str) and DATE_RE.match(data["logDate"])):
            raise ValidationError("INVALID_LOG_DATE", "Log date must be in YYYY-MM-DD format")
        if data.get("establishmentId") is not None:
            est_id = parse_id(
                data["establishmentId"],
                code="INVALID_ESTABLISHMENT",
                message="Establishment not found or does not belong to user",
            )
            est = db.get(Establishment, est_id)
            if not est or est.user_id != user_id:
                raise ValidationError("INVALID_ESTABLISHMENT", "Establishment not found or does not belong to user")
            entry.establishment_id = est_id
        if data.get("employeeId") is not None:
            employee_id = parse_id(data["employeeId"], code="INVALID_EMPLOYEE", message="Employee not found")
            employee = db.get(Personnel, employee_id)
            if not employee:
                raise ValidationError("INVALID_EMPLOYEE", "Employee not found")
            if employee.establishment_id not in _owned_establishment_ids(db, user_id):
                raise ValidationError(
                    "INVALID_EMPLOYEE_ESTABLISHMENT", "Employee does not belong to your establishment"
                )
            entry.employee_id = employee.id
            entry.employee_name = employee.full_name
        elif "employeeId" in data:
            entry.employee_id = None
            entry.employee_name = None
        entry.start_time = start
        entry.end_time = end
        if "cleaningAreas" in data:
            entry.cleaning_areas = list(data["cleaningAreas"])
        if "products" in data:
            entry.products = list(data["products"])
        if "logDate" in data:
            entry.log_date = data["logDate"]
        if "notes" in data:
            entry.notes = optional_text(data["notes"])
        entry.updated_at = utcnow_iso()
        db.commit()
        return jsonify(cleaning_log_json(entry))
    finally:
        db.close()


@bp.delete("/<log_id>")
@require_auth
def delete_log(log_id: str) -> ResponseReturnValue:
    lid = parse_id(log_id)
    db = get_session()
    try:
        entry = _load_owned(db, lid, current_user_id(), "delete")
        db.delete(entry)
        db.commit()
        return jsonify({"message": "Cleaning log deleted successfully", "id": lid})
    finally:
        db.close()
