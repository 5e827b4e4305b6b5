"""Food diary entries and their generation.

Entries are produced by the generators; users may only adjust quantity,
notes and time afterwards. The item-derived fields stay as generated.
"""

from __future__ import annotations

from datetime import date

from flask import Blueprint, jsonify, request
from flask.typing import ResponseReturnValue

from .app_authz import AuthzError, require_auth
from .app_sessions import current_user_id
from .db import get_session
from .errors import NotFoundError, ValidationError
from .food_diary_service import backfill_food_diary, generate_from_templates
from .models import FoodDiaryEntry, FoodItem, utcnow_iso
from .pagination import parse_page_params
from .serializers import food_diary_json
from .validation import (
    LOOSE_TIME_RE,
    is_int,
    is_valid_date,
    json_body,
    optional_arg_date,
    optional_text,
    parse_id,
    parse_optional_id,
)

bp = Blueprint("food_diary_api", __name__, url_prefix="/api/food-diary")

SYSTEM_FIELDS = ("date", "foodItemId", "temperature", "shelfLifeHours")
DEFAULT_DAYS_TO_GENERATE = 20
MAX_DAYS_TO_GENERATE = 365


def _load_owned(db, entry_id: int, user_id: int) -> tuple[FoodDiaryEntry, str | None]:
    row = (
        db.query(FoodDiaryEntry, FoodItem.name)
        .outerjoin(FoodItem, FoodItem.id == FoodDiaryEntry.food_item_id)
        .filter(FoodDiaryEntry.id == entry_id)
        .first()
    )
    if not row:
        raise NotFoundError("Diary entry not found")
    entry, name = row
    if entry.user_id != user_id:
        raise AuthzError("Access denied: This diary entry does not belong to you", code="ACCESS_DENIED")
    return entry, name


@bp.get("")
@require_auth
def list_entries() -> ResponseReturnValue:
    page = parse_page_params(request.args, default_limit=50, max_limit=200, clamp=True)
    start = optional_arg_date("startDate", "INVALID_START_DATE", "Invalid startDate format. Use YYYY-MM-DD.")
    end = optional_arg_date("endDate", "INVALID_END_DATE", "Invalid endDate format. Use YYYY-MM-DD.")
    est_id = parse_optional_id(
        request.args.get("establishmentId"),
        "INVALID_ESTABLISHMENT_ID",
        "Invalid establishmentId parameter. Must be an integer.",
    )
    item_id = parse_optional_id(
        request.args.get("foodItemId"), "INVALID_FOOD_ITEM_ID", "Invalid foodItemId parameter. Must be an integer."
    )
    db = get_session()
    try:
        q = (
            db.query(FoodDiaryEntry, FoodItem.name)
            .outerjoin(FoodItem, FoodItem.id == FoodDiaryEntry.food_item_id)
            .filter(FoodDiaryEntry.user_id == current_user_id())
        )
        if start:
            q = q.filter(FoodDiaryEntry.date >= start)
        if end:
            q = q.filter(FoodDiaryEntry.date <= end)
        if est_id is not None:
            q = q.filter(FoodDiaryEntry.establishment_id == est_id)
        if item_id is not None:
            q = q.filter(FoodDiaryEntry.food_item_id == item_id)
        total = q.count()
        rows = (
            q.order_by(FoodDiaryEntry.date.desc(), FoodDiaryEntry.time.asc(), FoodDiaryEntry.id.asc())
            .limit(page["limit"])
            .offset(page["offset"])
            .all()
        )
        return jsonify({"entries": [food_diary_json(e, name) for e, name in rows], "total": total, **page})
    finally:
        db.close()


@bp.post("/generate")
@require_auth
def generate() -> ResponseReturnValue:
    user_id = current_user_id()
    data = json_body()
    days = data.get("daysToGenerate", DEFAULT_DAYS_TO_GENERATE)
    if isinstance(days, float) and days.is_integer():
        days = int(days)
    if not is_int(days) or not 0 <= days <= MAX_DAYS_TO_GENERATE:
        raise ValidationError(
            "INVALID_DAYS_TO_GENERATE", f"daysToGenerate must be a number between 0 and {MAX_DAYS_TO_GENERATE}"
        )
    db = get_session()
    try:
        result = backfill_food_diary(db, user_id, days)
        if result is None:
            return jsonify(
                {
                    "message": "No food items found for user. Please add food items first.",
                    "entriesGenerated": 0,
                    "daysCovered": 0,
                    "foodItemsProcessed": 0,
                    "startDate": "",
                    "endDate": "",
                }
            )
        db.commit()
        return jsonify(
            {
                "message": f"Successfully generated {result.entries_generated} food diary entries",
                "entriesGenerated": result.entries_generated,
                "daysCovered": result.days_covered,
                "foodItemsProcessed": result.food_items_processed,
                "startDate": result.start_date,
                "endDate": result.end_date,
            }
        )
    finally:
        db.close()


@bp.post("/generate-from-templates")
@require_auth
def generate_templates() -> ResponseReturnValue:
    user_id = current_user_id()
    data = json_body()
    day = data.get("date") or date.today().isoformat()
    if not is_valid_date(day):
        raise ValidationError("INVALID_DATE_FORMAT", "date must be in YYYY-MM-DD format")
    db = get_session()
    try:
        created, processed = generate_from_templates(db, user_id, day)
        db.commit()
        return jsonify({"date": day, "entriesGenerated": created, "templatesProcessed": processed})
    finally:
        db.close()


@bp.get("/<entry_id>")
@require_auth
def get_entry(entry_id: str) -> ResponseReturnValue:
    eid = parse_id(entry_id)
    db = get_session()
    try:
        entry, name = _load_owned(db, eid, current_user_id())
        return jsonify(food_diary_json(entry, name))
    finally:
        db.close()


@bp.put("/<entry_id>")
@require_auth
def update_entry(entry_id: str) -> ResponseReturnValue:
    eid = parse_id(entry_id)
    data = json_body()
    if any(k in data for k in SYSTEM_FIELDS):
        raise ValidationError(
            "SYSTEM_FIELDS_NOT_ALLOWED", "Cannot update system fields: date, foodItemId, temperature, shelfLifeHours"
        )
    db = get_session()
    try:
        entry, name = _load_owned(db, eid, current_user_id())
        if "time" in data:
            value = data["time"]
            if not isinstance(value, str) or not LOOSE_TIME_RE.match(value):
                raise ValidationError("INVALID_TIME_FORMAT", "Invalid time format. Expected HH:MM format")
            entry.time = value
        if "quantity" in data:
            quantity = data["quantity"]
            entry.quantity = optional_text(quantity) if not isinstance(quantity, (int, float)) else str(quantity)
        if "notes" in data:
            entry.notes = optional_text(data["notes"])
        entry.updated_at = utcnow_iso()
        db.commit()
        return jsonify(food_diary_json(entry, name))
    finally:
        db.close()


@bp.delete("/<entry_id>")
@require_auth
def delete_entry(entry_id: str) -> ResponseReturnValue:
    eid = parse_id(entry_id)
    db = get_session()
    try:
        entry, name = _load_owned(db, eid, current_user_id())
        body = food_diary_json(entry, name)
        db.delete(entry)
        db.commit()
        return jsonify({"message": "Diary entry deleted successfully", "deletedId": eid, "deletedEntry": body})
    finally:
        db.close()
