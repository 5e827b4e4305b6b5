from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify, request
from flask.typing import ResponseReturnValue

from .app_authz import AuthzError, require_auth
from .app_sessions import current_user_id
from .db import get_session
from .errors import NotFoundError, ValidationError
from .models import Establishment, FoodItem, FoodTemplate, Personnel, utcnow_iso
from .pagination import parse_page_params
from .serializers import food_template_json
from .validation import (
    is_int,
    is_nonempty_str,
    json_body,
    parse_day_list,
    parse_id,
    parse_optional_id,
    parse_time_list,
)

bp = Blueprint("food_templates_api", __name__, url_prefix="/api/food-templates")


def _food_item_ids(db, value: Any, user_id: int) -> list[int]:
    if not isinstance(value, list) or not value:
        raise ValidationError("INVALID_FOOD_ITEM_IDS", "Food item IDs must be a non-empty array")
    for raw in value:
        if not is_int(raw) or raw <= 0:
            raise ValidationError("INVALID_FOOD_ITEM_IDS", f"Invalid food item ID: {raw}")
    ids = list(dict.fromkeys(value))
    items = db.query(FoodItem).filter(FoodItem.id.in_(ids)).all()
    if len(items) != len(ids):
        raise NotFoundError("One or more food items not found", code="FOOD_ITEM_NOT_FOUND")
    if any(i.user_id != user_id for i in items):
        raise AuthzError("Access denied to one or more food items", code="FOOD_ITEM_ACCESS_DENIED")
    return ids


def _establishment(db, raw: Any, user_id: int) -> int:
    est_id = parse_id(raw, code="INVALID_ESTABLISHMENT_ID", message="Invalid establishment ID")
    est = db.get(Establishment, est_id)
    if not est:
        raise NotFoundError("Establishment not found", code="ESTABLISHMENT_NOT_FOUND")
    if est.user_id != user_id:
        raise AuthzError("Access denied to this establishment")
    return est_id


def _employee(db, raw: Any, user_id: int, est_id: int | None) -> int:
    employee_id = parse_id(raw, code="INVALID_EMPLOYEE_ID", message="Invalid employee ID")
    employee = db.get(Personnel, employee_id)
    if not employee:
        raise NotFoundError("Employee not found", code="EMPLOYEE_NOT_FOUND")
    owner_est = db.get(Establishment, employee.establishment_id)
    if not owner_est or owner_est.user_id != user_id:
        raise AuthzError("Access denied to employee", code="EMPLOYEE_ACCESS_DENIED")
    if est_id is not None and employee.establishment_id != est_id:
        raise ValidationError(
            "EMPLOYEE_ESTABLISHMENT_MISMATCH", "Employee does not belong to the specified establishment"
        )
    return employee_id


def _load_owned(db, template_id: int, user_id: int) -> FoodTemplate:
    template = db.get(FoodTemplate, template_id)
    if not template:
        raise NotFoundError("Template not found")
    if template.user_id != user_id:
        raise AuthzError("Access denied to this template")
    return template


@bp.get("")
@require_auth
def list_templates() -> ResponseReturnValue:
    user_id = current_user_id()
    page = parse_page_params(request.args, default_limit=50, max_limit=200)
    est_id = parse_optional_id(
        request.args.get("establishmentId"), "INVALID_ESTABLISHMENT_ID", "Invalid establishment ID"
    )
    db = get_session()
    try:
        q = db.query(FoodTemplate).filter(FoodTemplate.user_id == user_id)
        if est_id is not None:
            est = db.get(Establishment, est_id)
            if not est or est.user_id != user_id:
                raise NotFoundError("Establishment not found", code="ESTABLISHMENT_NOT_FOUND")
            q = q.filter(FoodTemplate.establishment_id == est_id)
        total = q.count()
        rows = (
            q.order_by(FoodTemplate.created_at.desc(), FoodTemplate.id.desc())
            .limit(page["limit"])
            .offset(page["offset"])
            .all()
        )
        return jsonify({"templates": [food_template_json(t) for t in rows], "total": total})
    finally:
        db.close()


@bp.post("")
@require_auth
def create_template() -> ResponseReturnValue:
    user_id = current_user_id()
    data = json_body()
    if data.get("name") is None:
        raise ValidationError("MISSING_NAME", "Name is required")
    if not is_nonempty_str(data["name"]):
        raise ValidationError("INVALID_NAME", "Name cannot be empty")
    if data.get("daysOfWeek") is None:
        raise ValidationError("MISSING_DAYS_OF_WEEK", "Days of week is required")
    days = parse_day_list(data["daysOfWeek"], "INVALID_DAYS_OF_WEEK", "Days of week must be a non-empty array")
    if data.get("preparationTimes") is None:
        raise ValidationError("MISSING_PREPARATION_TIMES", "Preparation times is required")
    times = parse_time_list(
        data["preparationTimes"], "INVALID_PREPARATION_TIMES", "Preparation times must be a non-empty array"
    )
    if data.get("foodItemIds") is None:
        raise ValidationError("MISSING_FOOD_ITEM_IDS", "Food item IDs is required")
    db = get_session()
    try:
        item_ids = _food_item_ids(db, data["foodItemIds"], user_id)
        est_id = None
        if data.get("establishmentId") is not None:
            est_id = _establishment(db, data["establishmentId"], user_id)
        employee_id = None
        if data.get("employeeId") is not None:
            employee_id = _employee(db, data["employeeId"], user_id, est_id)
        template = FoodTemplate(
            user_id=user_id,
            establishment_id=est_id,
            employee_id=employee_id,
            name=data["name"].strip(),
            days_of_week=days,
            preparation_times=times,
            food_item_ids=item_ids,
        )
        db.add(template)
        db.commit()
        resp = jsonify(food_template_json(template))
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
        return jsonify(food_template_json(_load_owned(db, tid, current_user_id())))
    finally:
        db.close()


@bp.put("/<template_id>")
@require_auth
def update_template(template_id: str) -> ResponseReturnValue:
    tid = parse_id(template_id)
    user_id = current_user_id()
    db = get_session()
    try:
        template = _load_owned(db, tid, user_id)
        data = json_body()
        changed = False
        if "name" in data:
            if not is_nonempty_str(data["name"]):
                raise ValidationError("INVALID_NAME", "Name cannot be empty")
            template.name = data["name"].strip()
            changed = True
        if "daysOfWeek" in data:
            template.days_of_week = parse_day_list(
                data["daysOfWeek"], "INVALID_DAYS_OF_WEEK", "Days of week must be a non-empty array"
            )
            changed = True
        if "preparationTimes" in data:
            template.preparation_times = parse_time_list(
                data["preparationTimes"], "INVALID_PREPARATION_TIMES", "Preparation times must be a non-empty array"
            )
            changed = True
        if "foodItemIds" in data:
            template.food_item_ids = _food_item_ids(db, data["foodItemIds"], user_id)
            changed = True
        if "establishmentId" in data:
            raw = data["establishmentId"]
            template.establishment_id = _establishment(db, raw, user_id) if raw is not None else None
            changed = True
        if "employeeId" in data:
            raw = data["employeeId"]
            if raw is None:
                template.employee_id = None
            else:
                template.employee_id = _employee(db, raw, user_id, template.establishment_id)
            changed = True
        if not changed:
            return jsonify(food_template_json(template))
        template.updated_at = utcnow_iso()
        db.commit()
        return jsonify(food_template_json(template))
    finally:
        db.close()


@bp.delete("/<template_id>")
@require_auth
def delete_template(template_id: str) -> ResponseReturnValue:
    tid = parse_id(template_id)
    db = get_session()
    try:
        template = _load_owned(db, tid, current_user_id())
        body = food_template_json(template)
        db.delete(template)
        db.commit()
        return jsonify({"message": "Template deleted successfully", "deletedTemplate": body})
    finally:
        db.close()

