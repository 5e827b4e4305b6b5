from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify
from flask.typing import ResponseReturnValue

from .app_authz import AuthzError, require_auth
from .app_sessions import require_identity
from .db import get_session
from .errors import NotFoundError, ValidationError
from .models import Business
from .serializers import business_json
from .validation import is_int, is_nonempty_str, is_valid_email, json_body, parse_id

bp = Blueprint("businesses_api", __name__, url_prefix="/api/businesses")

TEXT_FIELDS = (
    ("name", "INVALID_NAME", "Name cannot be empty"),
    ("type", "INVALID_TYPE", "Type cannot be empty"),
    ("city", "INVALID_CITY", "City cannot be empty"),
    ("address", "INVALID_ADDRESS", "Address cannot be empty"),
    ("phone", "INVALID_PHONE", "Phone cannot be empty"),
)
COUNT_FIELDS = (
    ("refrigeratorCount", "refrigerator_count", "INVALID_REFRIGERATOR_COUNT", "Refrigerator"),
    ("freezerCount", "freezer_count", "INVALID_FREEZER_COUNT", "Freezer"),
    ("hotDisplayCount", "hot_display_count", "INVALID_HOT_DISPLAY_COUNT", "Hot display"),
    ("coldDisplayCount", "cold_display_count", "INVALID_COLD_DISPLAY_COUNT", "Cold display"),
)
UPDATABLE = {f for f, *_ in TEXT_FIELDS} | {f for f, *_ in COUNT_FIELDS} | {"email", "otherEquipment"}


def load_business(db, business_id: int) -> Business:
    """Fetch a business visible to the caller: its owner or an admin."""
    business = db.get(Business, business_id)
    if not business:
        raise NotFoundError("Business not found", code="BUSINESS_NOT_FOUND")
    ident = require_identity()
    if ident["role"] != "admin" and business.user_id != ident["user_id"]:
        raise AuthzError("Access denied")
    return business


@bp.get("/<business_id>")
@require_auth
def get_business(business_id: str) -> ResponseReturnValue:
    bid = parse_id(business_id)
    db = get_session()
    try:
        return jsonify(business_json(load_business(db, bid)))
    finally:
        db.close()


@bp.put("/<business_id>")
@require_auth
def update_business(business_id: str) -> ResponseReturnValue:
    bid = parse_id(business_id)
    data = json_body()
    if not any(k in data for k in UPDATABLE):
        raise ValidationError("NO_FIELDS_PROVIDED", "At least one field must be provided for update")
    updates: dict[str, Any] = {}
    for key, code, message in TEXT_FIELDS:
        if key in data:
            if not is_nonempty_str(data[key]):
                raise ValidationError(code, message)
            updates[key] = data[key].strip()
    if "email" in data:
        if not is_valid_email(data["email"]):
            raise ValidationError("INVALID_EMAIL", "Valid email is required")
        updates["email"] = data["email"].strip().lower()
    for key, column, code, label in COUNT_FIELDS:
        if key in data:
            value = data[key]
            if not is_int(value) or value < 0:
                raise ValidationError(code, f"{label} count must be a non-negative number")
            updates[column] = value
    if "otherEquipment" in data:
        other = data["otherEquipment"]
        updates["other_equipment"] = other.strip() if isinstance(other, str) and other.strip() else None
    db = get_session()
    try:
        business = load_business(db, bid)
        for key, value in updates.items():
            setattr(business, key, value)
        db.commit()
        return jsonify(business_json(business))
    finally:
        db.close()
