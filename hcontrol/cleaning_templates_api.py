from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify, request
from flask.typing import ResponseReturnValue

from .app_authz import AuthzError, require_auth
from .app_sessions import current_user_id
from .cleaning_service import LAST_SLOT
from .db import get_session
from .errors import ForbiddenError, NotFoundError, ValidationError
from .models import CleaningTemplate, Establishment, Personnel, utcnow_iso
from .pagination import parse_page_params
from .serializers import cleaning_template_json
from .validation import (
    is_int,
    is_nonempty_str,
    is_string_list,
    json_body,
    parse_day_list,
    parse_id,
    parse_optional_id,
    parse_time_list,
)

bp = Blueprint("cleaning_templates_api", __name__, url_prefix="/api/cleaning-templates")


def _duration(value: Any) -> int:
    if not is_int(value) or not 1 <= value <= 24:
        raise ValidationError("INVALID_DURATION", "Duration must be an integer between 1 and 24 hours")
    return int(value)


def _string_list(value: Any, code: str, message: str) -> list[str]:
    if not is_string_list(value):
        raise ValidationError(code, message)
    return [v.strip() for v in value]


def _cleaning_hours(value: Any, message: str) -> list[str]:
    hours = parse_time_list(value, "INVALID_CLEANING_HOURS", message)
    if LAST_SLOT in hours:
        raise ValidationError("INVALID_CLEANING_HOURS", f"Cleaning hours must start before {LAST_SLOT}")
    return hours


def _load_owned(db, template_id: int, user_id: int, action: str) -> CleaningTemplate:
    template = db.get(CleaningTemplate, template_id)
    if not template:
        raise NotFoundError("Template not found")
    if template.user_id != user_id:
        raise AuthzError(f"You do not have permission to {action} this template")
    return template


@bp.get("")
@require_auth
def list_templates() -> ResponseReturnValue:
    user_id = current_user_id()
    page = parse_page_params(request.args, default_limit=50, max_limit=200, clamp=True)
    est_id = parse_optional_id(
        request.args.get("establishmentId"), "INVALID_ESTABLISHMENT_ID", "Invalid establishmentId parameter"
    )
    db = get_session()
    try:
        q = db.query(CleaningTemplate).filter(CleaningTemplate.user_id == user_id)
        if est_id is not None:
            est = db.get(Establishment, est_id)
            if not est or est.user_id != user_id:
                raise NotFoundError("Establishment not found or access denied", code="ESTABLISHMENT_NOT_FOUND")
            q = q.filter(CleaningTemplate.establishment_id == est_id)
        total = q.count()
        rows = (
            q.order_by(CleaningTemplate.created_at.desc(), CleaningTemplate.id.desc())
            .limit(page["limit"])
            .offset(page["offset"])
            .all()
        )
        return jsonify({"templates": [cleaning_template_json(t) for t in rows], "total": total})
    finally:
        db.close()


@bp.post("")
@require_auth
def create_template() -> ResponseReturnValue:
    user_id = current_user_id()
    data = json_body()
    if not is_nonempty_str(data.get("name")):
        raise ValidationError("INVALID_NAME", "Name is required and must be a non-empty string")
    days = parse_day_list(data.get("daysOfWeek"), "INVALID_DAYS_OF_WEEK", "daysOfWeek must be a non-empty array")
    hours = _cleaning_hours(data.get("cleaningHours"), "cleaningHours must be a non-empty array")
    duration = _duration(data.get("duration"))
    products = _string_list(data.get("products"), "INVALID_PRODUCTS", "Products must be a non-empty array")
    areas = _string_list(
        data.get("cleaningAreas"), "INVALID_CLEANING_AREAS", "cleaningAreas must be a non-empty array"
    )
    est_id = parse_optional_id(
        data.get("establishmentId"), "INVALID_ESTABLISHMENT_ID", "establishmentId must be a valid integer"
    )
    employee_id = parse_optional_id(data.get("employeeId"), "INVALID_EMPLOYEE_ID", "employeeId must be a valid integer")
    db = get_session()
    try:
        if est_id is not None:
            est = db.get(Establishment, est_id)
            if not est or est.user_id != user_id:
                raise NotFoundError(
                    "Establishment not found or you do not have access to it", code="ESTABLISHMENT_NOT_FOUND"
                )
        if employee_id is not None:
            employee = db.get(Personnel, employee_id)
            owner_est = db.get(Establishment, employee.establishment_id) if employee else None
            if not employee or not owner_est or owner_est.user_id != user_id:
                raise NotFoundError(
                    "Employee not found or does not belong to your establishment", code="EMPLOYEE_NOT_FOUND"
                )
            if est_id is not None and employee.establishment_id != est_id:
                raise ForbiddenError(
                    "Employee does not belong to the specified establishment", code="EMPLOYEE_ESTABLISHMENT_MISMATCH"
                )
        template = CleaningTemplate(
            user_id=user_id,
            establishment_id=est_id,
            name=data["name"].strip(),
            days_of_week=days,
            cleaning_hours=hours,
            duration=duration,
            products=products,
            cleaning_areas=areas,
            employee_id=employee_id,
        )
        db.add(template)
        db.commit()
        resp = jsonify(cleaning_template_json(template))
        resp.status_code = 201
        return resp
    finally:
        db.close()


@bp.get("/<template_id>")
@require_auth
def get_template(template_id: str) -> ResponseReturnValue:
    tid = parse_id(template_id)
    db = get_session()
    try:
        return jsonify(cleaning_template_json(_load_owned(db, tid, current_user_id(), "access")))
    finally:
        db.close()


@bp.put("/<template_id>")
@require_auth
def update_template(template_id: str) -> ResponseReturnValue:
    tid = parse_id(template_id)
    user_id = current_user_id()
    db = get_session()
    try:
        template = _load_owned(db, tid, user_id, "update")
        data = json_body()
        if "name" in data:
            if not is_nonempty_str(data["name"]):
                raise ValidationError("INVALID_NAME", "Name must be a non-empty string")
            template.name = data["name"].strip()
        if "daysOfWeek" in data:
            template.days_of_week = parse_day_list(
                data["daysOfWeek"], "INVALID_DAYS_OF_WEEK", "Days of week must be a non-empty array"
            )
        if "cleaningHours" in data:
            template.cleaning_hours = _cleaning_hours(
                data["cleaningHours"], "Cleaning hours must be a non-empty array"
            )
        if "duration" in data:
            template.duration = _duration(data["duration"])
        if "products" in data:
            template.products = _string_list(
                data["products"], "INVALID_PRODUCTS", "Products must be a non-empty array"
            )
        if "cleaningAreas" in data:
            template.cleaning_areas = _string_list(
                data["cleaningAreas"], "INVALID_CLEANING_AREAS", "Cleaning areas must be a non-empty array"
            )
        if data.get("establishmentId") is not None:
            est_id = parse_id(
                data["establishmentId"],
                code="INVALID_ESTABLISHMENT",
                message="Establishment not found or does not belong to you",
            )
            est = db.get(Establishment, est_id)
            if not est or est.user_id != user_id:
                raise ValidationError("INVALID_ESTABLISHMENT", "Establishment not found or does not belong to you")
            template.establishment_id = est_id
        elif "establishmentId" in data:
            template.establishment_id = None
        if data.get("employeeId") is not None:
            employee_id = parse_id(data["employeeId"], code="INVALID_EMPLOYEE", message="Employee not found")
            employee = db.get(Personnel, employee_id)
            if not employee:
                raise ValidationError("INVALID_EMPLOYEE", "Employee not found")
            owner_est = db.get(Establishment, employee.establishment_id)
            if not owner_est or owner_est.user_id != user_id:
                raise ForbiddenError("Employee does not belong to your establishment", code="EMPLOYEE_NOT_OWNED")
            template.employee_id = employee_id
        elif "employeeId" in data:
            template.employee_id = None
        template.updated_at = utcnow_iso()
        db.commit()
        return jsonify(cleaning_template_json(template))
    finally:
        db.close()


@bp.delete("/<template_id>")
@require_auth
def delete_template(template_id: str) -> ResponseReturnValue:
    tid = parse_id(template_id)
    db = get_session()
    try:
        template = _load_owned(db, tid, current_user_id(), "delete")
        db.delete(template)
        db.commit()
        return jsonify({"message": "Template deleted successfully", "id": tid})
    finally:
        db.close()
