"""Establishments API

Registered food-service locations of the current user, plus the public ЕИК
checksum probe.
"""

from __future__ import annotations

import logging
from typing import Any

from flask import Blueprint, current_app, jsonify, request
from flask.typing import ResponseReturnValue

from .app_authz import AuthzError, require_auth
from .app_sessions import current_user_id
from .constants import VALID_ESTABLISHMENT_TYPES
from .db import get_session
from .eik import is_ascii_digits, is_valid_eik
from .errors import NotFoundError, ValidationError
from .models import Establishment, utcnow_iso
from .serializers import establishment_json
from .validation import INT_RE, is_int, is_nonempty_str, is_valid_email, json_body, parse_id

log = logging.getLogger(__name__)

bp = Blueprint("establishments_api", __name__, url_prefix="/api/establishments")

REQUIRED_FIELDS = (
    ("establishmentType", "ESTABLISHMENT_TYPE_REQUIRED", "Establishment type is required"),
    ("employeeCount", "EMPLOYEE_COUNT_REQUIRED", "Employee count is required"),
    ("managerName", "MANAGER_NAME_REQUIRED", "Manager name is required"),
    ("managerPhone", "MANAGER_PHONE_REQUIRED", "Manager phone is required"),
    ("managerEmail", "MANAGER_EMAIL_REQUIRED", "Manager email is required"),
    ("companyName", "COMPANY_NAME_REQUIRED", "Company name is required"),
    ("eik", "EIK_REQUIRED", "EIK is required"),
    ("registrationAddress", "REGISTRATION_ADDRESS_REQUIRED", "Registration address is required"),
    ("contactEmail", "CONTACT_EMAIL_REQUIRED", "Contact email is required"),
)

# body key -> column
UPDATABLE_FIELDS: dict[str, str] = {
    "establishmentType": "establishment_type",
    "employeeCount": "employee_count",
    "managerName": "manager_name",
    "managerPhone": "manager_phone",
    "managerEmail": "manager_email",
    "companyName": "company_name",
    "eik": "eik",
    "eikVerified": "eik_verified",
    "eikVerificationDate": "eik_verification_date",
    "registrationAddress": "registration_address",
    "contactEmail": "contact_email",
    "vatRegistered": "vat_registered",
    "vatNumber": "vat_number",
}


def _invalid_type() -> ValidationError:
    return ValidationError(
        "INVALID_ESTABLISHMENT_TYPE",
        f"Invalid establishment type. Must be one of: {', '.join(VALID_ESTABLISHMENT_TYPES)}",
    )


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True


def _coerce_count(value: Any, *, minimum: int) -> int | None:
    if is_int(value):
        count = int(value)
    elif isinstance(value, str) and INT_RE.match(value.strip()):
        count = int(value.strip())
    else:
        return None
    return count if count >= minimum else None


def _load_owned(db, est_id: int, user_id: int, action: str) -> Establishment:
    est = db.get(Establishment, est_id)
    if not est:
        raise NotFoundError("Establishment not found")
    if est.user_id != user_id:
        raise AuthzError(f"You do not have permission to {action} this establishment")
    return est


@bp.post("")
@require_auth
def create_establishment() -> ResponseReturnValue:
    user_id = current_user_id()
    data = json_body()
    for field, code, message in REQUIRED_FIELDS:
        if not _present(data.get(field)):
            raise ValidationError(code, message)
    est_type = str(data["establishmentType"]).strip()
    if est_type not in VALID_ESTABLISHMENT_TYPES:
        raise _invalid_type()
    employee_count = _coerce_count(data["employeeCount"], minimum=1)
    if employee_count is None:
        raise ValidationError("INVALID_EMPLOYEE_COUNT", "Employee count must be a positive integer")
    if not is_valid_email(data["managerEmail"]):
        raise ValidationError("INVALID_MANAGER_EMAIL", "Invalid manager email format")
    if not is_valid_email(data["contactEmail"]):
        raise ValidationError("INVALID_CONTACT_EMAIL", "Invalid contact email format")
    max_allowed = int(current_app.config.get("MAX_ESTABLISHMENTS", 10))
    db = get_session()
    try:
        owned = db.query(Establishment).filter(Establishment.user_id == user_id).count()
        if owned >= max_allowed:
            raise ValidationError(
                "MAX_ESTABLISHMENTS_REACHED", f"Достигнат е максималният лимит от {max_allowed} заведения"
            )
        vat_number = data.get("vatNumber")
        est = Establishment(
            user_id=user_id,
            establishment_type=est_type,
            employee_count=employee_count,
            manager_name=str(data["managerName"]).strip(),
            manager_phone=str(data["managerPhone"]).strip(),
            manager_email=str(data["managerEmail"]).strip().lower(),
            company_name=str(data["companyName"]).strip(),
            eik=str(data["eik"]).strip(),
            eik_verified=1 if data.get("eikVerified") else 0,
            eik_verification_date=data.get("eikVerificationDate") or None,
            registration_address=str(data["registrationAddress"]).strip(),
            contact_email=str(data["contactEmail"]).strip().lower(),
            vat_registered=1 if data.get("vatRegistered") else 0,
            vat_number=vat_number.strip() if isinstance(vat_number, str) and vat_number.strip() else None,
        )
        db.add(est)
        db.commit()
        log.info("establishment created id=%s user=%s", est.id, user_id)
        resp = jsonify(establishment_json(est))
        resp.status_code = 201
        return resp
    finally:
        db.close()


@bp.get("/user")
@require_auth
def first_establishment() -> ResponseReturnValue:
    user_id = current_user_id()
    db = get_session()
    try:
        est = (
            db.query(Establishment)
            .filter(Establishment.user_id == user_id)
            .order_by(Establishment.id.asc())
            .first()
        )
        return jsonify({"establishments": [establishment_json(est)] if est else []})
    finally:
        db.close()


@bp.get("/user-all")
@require_auth
def all_establishments() -> ResponseReturnValue:
    user_id = current_user_id()
    db = get_session()
    try:
        rows = (
            db.query(Establishment)
            .filter(Establishment.user_id == user_id)
            .order_by(Establishment.created_at.desc(), Establishment.id.desc())
            .all()
        )
        return jsonify({"establishments": [establishment_json(e) for e in rows], "total": len(rows)})
    finally:
        db.close()


@bp.get("/<est_id>")
@require_auth
def get_establishment(est_id: str) -> ResponseReturnValue:
    eid = parse_id(est_id)
    db = get_session()
    try:
        est = _load_owned(db, eid, current_user_id(), "view")
        return jsonify(establishment_json(est))
    finally:
        db.close()


@bp.put("/<est_id>")
@require_auth
def update_establishment(est_id: str) -> ResponseReturnValue:
    eid = parse_id(est_id)
    db = get_session()
    try:
        est = _load_owned(db, eid, current_user_id(), "update")
        data = json_body()
        updates: dict[str, Any] = {}
        for key, column in UPDATABLE_FIELDS.items():
            if key not in data:
                continue
            value = data[key]
            if key == "establishmentType":
                if not isinstance(value, str) or value.strip() not in VALID_ESTABLISHMENT_TYPES:
                    raise _invalid_type()
                value = value.strip()
            elif key == "employeeCount":
                value = _coerce_count(value, minimum=0)
                if value is None:
                    raise ValidationError("INVALID_EMPLOYEE_COUNT", "Employee count must be a positive integer")
            elif key == "managerEmail":
                if not is_valid_email(value):
                    raise ValidationError("INVALID_MANAGER_EMAIL", "Invalid manager email format")
                value = value.strip().lower()
            elif key == "contactEmail":
                if not is_valid_email(value):
                    raise ValidationError("INVALID_CONTACT_EMAIL", "Invalid contact email format")
                value = value.strip().lower()
            elif key in ("vatRegistered", "eikVerified"):
                value = 1 if value else 0
            elif isinstance(value, str):
                value = value.strip()
            updates[column] = value
        for column, value in updates.items():
            setattr(est, column, value)
        est.updated_at = utcnow_iso()
        db.commit()
        return jsonify(establishment_json(est))
    finally:
        db.close()


@bp.delete("/<est_id>")
@require_auth
def delete_establishment(est_id: str) -> ResponseReturnValue:
    eid = parse_id(est_id)
    db = get_session()
    try:
        est = _load_owned(db, eid, current_user_id(), "delete")
        body = establishment_json(est)
        db.delete(est)
        db.commit()
        log.info("establishment deleted id=%s", eid)
        return jsonify({"message": "Establishment deleted successfully", "id": eid, "deleted": body})
    finally:
        db.close()


@bp.post("/validate-eik")
def validate_eik() -> ResponseReturnValue:
    data = request.get_json(silent=True) or {}
    eik = data.get("eik") if isinstance(data, dict) else None
    if not is_nonempty_str(eik):
        raise ValidationError("MISSING_EIK", "EIK is required", valid=False, message="EIK is required")
    eik = eik.strip()
    if not is_ascii_digits(eik):
        raise ValidationError(
            "INVALID_FORMAT", "EIK must contain only digits", valid=False, message="EIK must contain only digits"
        )
    if len(eik) not in (9, 13):
        raise ValidationError(
            "INVALID_LENGTH", "EIK must be 9 or 13 digits", valid=False, message="EIK must be 9 or 13 digits"
        )
    if not is_valid_eik(eik):
        return jsonify({"valid": False, "message": "Invalid EIK checksum"})
    return jsonify({"valid": True, "message": "EIK is valid", "companyName": None})
