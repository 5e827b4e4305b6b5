from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify, request
from flask.typing import ResponseReturnValue

from .app_authz import AuthzError, require_auth
from .app_sessions import current_user_id
from .db import get_session
from .errors import NotFoundError, ValidationError
from .models import Establishment, FoodItem, utcnow_iso
from .pagination import parse_page_params
from .serializers import food_item_json
from .validation import is_int, is_nonempty_str, json_body, parse_id, parse_optional_id

bp = Blueprint("food_items_api", __name__, url_prefix="/api/food-items")


def _shelf_life(value: Any, message: str) -> int:
    if not is_int(value) or value <= 0:
        raise ValidationError("INVALID_SHELF_LIFE", message)
    return int(value)


def _cooking_temperature(value: Any) -> int | None:
    if value is None:
        return None
    if not is_int(value):
        raise ValidationError("INVALID_COOKING_TEMPERATURE", "Cooking temperature must be an integer")
    return int(value)


def _owned_establishment(db, est_id: int, user_id: int) -> Establishment:
    est = db.get(Establishment, est_id)
    if not est or est.user_id != user_id:
        raise NotFoundError("Establishment not found or access denied", code="ESTABLISHMENT_NOT_FOUND")
    return est


def _load_owned(db, item_id: int, user_id: int) -> FoodItem:
    item = db.get(FoodItem, item_id)
    if not item:
        raise NotFoundError("Food item not found", code="FOOD_ITEM_NOT_FOUND")
    if item.user_id != user_id:
        raise AuthzError("Access denied", code="ACCESS_DENIED")
    return item


@bp.get("")
@require_auth
def list_items() -> ResponseReturnValue:
    page = parse_page_params(request.args, default_limit=50, max_limit=200, clamp=True)
    est_id = parse_optional_id(
        request.args.get("establishmentId"), "INVALID_ESTABLISHMENT_ID", "Invalid establishment ID"
    )
    search = (request.args.get("search") or "").strip()
    db = get_session()
    try:
        q = db.query(FoodItem).filter(FoodItem.user_id == current_user_id())
        if est_id is not None:
            q = q.filter(FoodItem.establishment_id == est_id)
        if search:
            q = q.filter(FoodItem.name.ilike(f"%{search}%"))
        total = q.count()
        rows = (
            q.order_by(FoodItem.created_at.desc(), FoodItem.id.desc())
            .limit(page["limit"])
            .offset(page["offset"])
            .all()
        )
        return jsonify({"items": [food_item_json(i) for i in rows], "total": total, **page})
    finally:
        db.close()


@bp.post("")
@require_auth
def create_item() -> ResponseReturnValue:
    user_id = current_user_id()
    data = json_body()
    if not is_nonempty_str(data.get("name")):
        raise ValidationError("INVALID_NAME", "Name is required and must be a non-empty string")
    shelf_life = _shelf_life(
        data.get("shelfLifeHours"), "Shelf life hours is required and must be a positive integer"
    )
    cooking = _cooking_temperature(data.get("cookingTemperature"))
    est_id = parse_optional_id(
        data.get("establishmentId"), "INVALID_ESTABLISHMENT_ID", "Establishment ID must be an integer"
    )
    db = get_session()
    try:
        if est_id is not None:
            _owned_establishment(db, est_id, user_id)
        item = FoodItem(
            user_id=user_id,
            establishment_id=est_id,
            name=data["name"].strip(),
            cooking_temperature=cooking,
            shelf_life_hours=shelf_life,
        )
        db.add(item)
        db.commit()
        resp = jsonify(food_item_json(item))
        resp.status_code = 201
        return resp
    finally:
        db.close()


@bp.get("/<item_id>")
@require_auth
def get_item(item_id: str) -> ResponseReturnValue:
    iid = parse_id(item_id)
    db = get_session()
    try:
        return jsonify(food_item_json(_load_owned(db, iid, current_user_id())))
    finally:
        db.close()


@bp.put("/<item_id>")
@require_auth
def update_item(item_id: str) -> ResponseReturnValue:
    iid = parse_id(item_id)
    user_id = current_user_id()
    db = get_session()
    try:
        item = _load_owned(db, iid, user_id)
        data = json_body()
        if "name" in data:
            if not is_nonempty_str(data["name"]):
                raise ValidationError("INVALID_NAME", "Name cannot be empty")
            item.name = data["name"].strip()
        if "shelfLifeHours" in data:
            item.shelf_life_hours = _shelf_life(data["shelfLifeHours"], "Shelf life hours must be a positive integer")
        if "cookingTemperature" in data:
            item.cooking_temperature = _cooking_temperature(data["cookingTemperature"])
        if "establishmentId" in data:
            est_id = parse_optional_id(
                data["establishmentId"], "INVALID_ESTABLISHMENT_ID", "Establishment ID must be an integer"
            )
            if est_id is not None:
                _owned_establishment(db, est_id, user_id)
            item.establishment_id = est_id
        item.updated_at = utcnow_iso()
        db.commit()
        return jsonify(food_item_json(item))
    finally:
        db.close()


@bp.delete("/<item_id>")
@require_auth
def delete_item(item_id: str) -> ResponseReturnValue:
    iid = parse_id(item_id)
    db = get_session()
    try:
        item = _load_owned(db, iid, current_user_id())
        body = food_item_json(item)
        db.delete(item)
        db.commit()
        return jsonify({"message": "Food item deleted successfully", "deletedId": iid, "deletedRecord": body})
    finally:
        db.close()
