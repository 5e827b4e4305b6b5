from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify
from flask.typing import ResponseReturnValue

from .app_authz import AuthzError, require_auth
from .app_sessions import current_user_id
from .db import get_session
from .errors import NotFoundError, ValidationError
from .models import Establishment, Personnel, utcnow_iso
from .serializers import personnel_json
from .validation import is_valid_date, json_body, optional_text, parse_id

bp = Blueprint("personnel_api", __name__, url_prefix="/api/personnel")

# body key, column, missing / empty / invalid codes, label
TEXT_FIELDS = (
    ("fullName", "full_name", "MISSING_FULL_NAME", "EMPTY_FULL_NAME", "INVALID_FULL_NAME", "Full name"),
    ("egn", "egn", "MISSING_EGN", "EMPTY_EGN", "INVALID_EGN", "EGN"),
    ("position", "position", "MISSING_POSITION", "EMPTY_POSITION", "INVALID_POSITION", "Position"),
    (
        "healthBookNumber",
        "health_book_number",
        "MISSING_HEALTH_BOOK_NUMBER",
        "EMPTY_HEALTH_BOOK_NUMBER",
        "INVALID_HEALTH_BOOK_NUMBER",
        "Health book number",
    ),
)
OPTIONAL_URL_FIELDS = (("healthBookImageUrl", "health_book_image_url"), ("photoUrl", "photo_url"))

DATE_FORMAT_MESSAGE = "Health book validity must be in YYYY-MM-DD format"


def _load_owned(db, person_id: int, user_id: int) -> Personnel:
    person = db.get(Personnel, person_id)
    if not person:
        raise NotFoundError("Personnel not found")
    est = db.get(Establishment, person.establishment_id)
    if not est or est.user_id != user_id:
        raise AuthzError("Access denied")
    return person


@bp.get("")
@require_auth
def list_personnel() -> ResponseReturnValue:
    db = get_session()
    try:
        rows = (
            db.query(Personnel)
            .join(Establishment, Establishment.id == Personnel.establishment_id)
            .filter(Establishment.user_id == current_user_id())
            .order_by(Personnel.id.asc())
            .all()
        )
        return jsonify({"personnel": [personnel_json(p) for p in rows]})
    finally:
        db.close()


@bp.get("/by-establishment/<est_id>")
@require_auth
def list_by_establishment(est_id: str) -> ResponseReturnValue:
    eid = parse_id(est_id, message="Valid establishment ID is required")
    db = get_session()
    try:
        est = db.get(Establishment, eid)
        if not est:
            raise NotFoundError("Establishment not found", code="ESTABLISHMENT_NOT_FOUND")
        if est.user_id != current_user_id():
            raise AuthzError("Access denied")
        rows = (
            db.query(Personnel)
            .filter(Personnel.establishment_id == eid)
            .order_by(Personnel.full_name.asc())
            .all()
        )
        return jsonify({"personnel": [personnel_json(p) for p in rows], "total": len(rows)})
    finally:
        db.close()


@bp.get("/single/<person_id>")
@bp.get("/<person_id>")
@require_auth
def get_personnel(person_id: str) -> ResponseReturnValue:
    pid = parse_id(person_id, message="Valid personnel ID is required")
    db = get_session()
    try:
        return jsonify(personnel_json(_load_owned(db, pid, current_user_id())))
    finally:
        db.close()


@bp.post("")
@require_auth
def create_personnel() -> ResponseReturnValue:
    data = json_body()
    if data.get("establishmentId") in (None, ""):
        raise ValidationError("MISSING_ESTABLISHMENT_ID", "Establishment ID is required")
    for key, _col, missing, _empty, _invalid, label in TEXT_FIELDS:
        if data.get(key) in (None, ""):
            raise ValidationError(missing, f"{label} is required")
    validity = data.get("healthBookValidity")
    if validity in (None, ""):
        raise ValidationError("MISSING_HEALTH_BOOK_VALIDITY", "Health book validity is required")
    if not isinstance(validity, str) or not is_valid_date(validity.strip()):
        raise ValidationError("INVALID_DATE_FORMAT", DATE_FORMAT_MESSAGE)
    est_id = parse_id(
        data["establishmentId"], code="INVALID_ESTABLISHMENT_ID", message="Valid establishment ID is required"
    )
    values: dict[str, Any] = {}
    for key, column, _missing, empty, _invalid, label in TEXT_FIELDS:
        value = data[key]
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(empty, f"{label} cannot be empty")
        values[column] = value.strip()
    for key, column in OPTIONAL_URL_FIELDS:
        values[column] = optional_text(data.get(key))
    db = get_session()
    try:
        est = db.get(Establishment, est_id)
        if not est:
            raise NotFoundError("Establishment not found", code="ESTABLISHMENT_NOT_FOUND")
        if est.user_id != current_user_id():
            raise AuthzError("Access denied")
        person = Personnel(establishment_id=est_id, health_book_validity=validity.strip(), **values)
        db.add(person)
        db.commit()
        resp = jsonify(personnel_json(person))
        resp.status_code = 201
        return resp
    finally:
        db.close()


@bp.put("/update/<person_id>")
@bp.put("/<person_id>")
@require_auth
def update_personnel(person_id: str) -> ResponseReturnValue:
    pid = parse_id(person_id, message="Valid personnel ID is required")
    db = get_session()
    try:
        person = _load_owned(db, pid, current_user_id())
        data = json_body()
        for key, column, _missing, _empty, invalid, label in TEXT_FIELDS:
            if key not in data:
                continue
            value = data[key]
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(invalid, f"{label} cannot be empty")
            setattr(person, column, value.strip())
        for key, column in OPTIONAL_URL_FIELDS:
            if key in data:
                setattr(person, column, optional_text(data[key]))
        if "healthBookValidity" in data:
            validity = data["healthBookValidity"]
            if not isinstance(validity, str) or not is_valid_date(validity.strip()):
                raise ValidationError("INVALID_DATE_FORMAT", DATE_FORMAT_MESSAGE)
            person.health_book_validity = validity.strip()
        person.updated_at = utcnow_iso()
        db.commit()
        return jsonify(personnel_json(person))
    finally:
        db.close()


@bp.delete("/<person_id>")
@require_auth
def delete_personnel(person_id: str) -> ResponseReturnValue:
    pid = parse_id(person_id, message="Valid personnel ID is required")
    db = get_session()
    try:
        person = _load_owned(db, pid, current_user_id())
        db.delete(person)
        db.commit()
        return jsonify({"message": "Personnel deleted successfully", "deletedId": pid})
    finally:
        db.close()
