"""Admin panel endpoints.

Every route requires the ``admin`` role. Listings share the page/sort helpers
from :mod:`hcontrol.pagination`; sort keys are camelCase names mapped onto
model columns below.
"""

from __future__ import annotations

import logging
import math
from datetime import UTC, datetime, timedelta

from flask import Blueprint, current_app, jsonify, request
from flask.typing import ResponseReturnValue
from sqlalchemy import or_
from werkzeug.security import generate_password_hash

from .app_authz import require_admin
from .app_sessions import VALID_ROLES, current_user_id
from .constants import DEVICE_TYPE_ORDER
from .db import get_session
from .errors import NotFoundError, ValidationError
from .logging_setup import LOG_BUFFER
from .models import (
    Business,
    DiaryDevice,
    Establishment,
    IncomingControl,
    Personnel,
    TemperatureLog,
    TemperatureReading,
    User,
)
from .pagination import parse_page_params, parse_sort_params
from .serializers import (
    business_json,
    device_json,
    establishment_json,
    incoming_control_json,
    personnel_json,
    reading_json,
    user_json,
)
from .validation import (
    DATE_RE,
    INT_RE,
    is_valid_date,
    is_valid_email,
    json_body,
    optional_arg_date,
    parse_id,
    parse_optional_id,
)

log = logging.getLogger(__name__)

bp = Blueprint("admin_api", __name__, url_prefix="/api/admin")

MIN_PASSWORD_LENGTH = 6

BUSINESS_SORT = {
    "id": Business.id,
    "name": Business.name,
    "type": Business.type,
    "city": Business.city,
    "address": Business.address,
    "phone": Business.phone,
    "email": Business.email,
    "refrigeratorCount": Business.refrigerator_count,
    "freezerCount": Business.freezer_count,
    "hotDisplayCount": Business.hot_display_count,
    "coldDisplayCount": Business.cold_display_count,
    "createdAt": Business.created_at,
}
ESTABLISHMENT_SORT = {
    "id": Establishment.id,
    "companyName": Establishment.company_name,
    "eik": Establishment.eik,
    "establishmentType": Establishment.establishment_type,
    "employeeCount": Establishment.employee_count,
    "createdAt": Establishment.created_at,
}
DEVICE_SORT = {
    "id": DiaryDevice.id,
    "userId": DiaryDevice.user_id,
    "deviceType": DiaryDevice.device_type,
    "deviceName": DiaryDevice.device_name,
    "createdAt": DiaryDevice.created_at,
}
READING_SORT = {
    "id": TemperatureReading.id,
    "deviceId": TemperatureReading.device_id,
    "readingDate": TemperatureReading.reading_date,
    "hour": TemperatureReading.hour,
    "temperature": TemperatureReading.temperature,
    "createdAt": TemperatureReading.created_at,
}


def _ordered(q, columns, sort_req):
    col = columns[sort_req["sort"]]
    return q.order_by(col.asc() if sort_req["order"] == "asc" else col.desc())


def _role(value) -> str:
    if value not in VALID_ROLES:
        raise ValidationError("INVALID_ROLE", f"Role must be one of: {', '.join(VALID_ROLES)}")
    return value


# --- Users ---
@bp.get("/users")
@require_admin
def list_users() -> ResponseReturnValue:
    page = parse_page_params(request.args)
    role = request.args.get("role")
    if role:
        _role(role)
    search = (request.args.get("search") or "").strip()
    is_active = request.args.get("isActive")
    db = get_session()
    try:
        q = db.query(User)
        if role:
            q = q.filter(User.role == role)
        if search:
            q = q.filter(User.email.ilike(f"%{search}%"))
        if is_active in ("0", "1"):
            q = q.filter(User.is_active == int(is_active))
        total = q.count()
        rows = q.order_by(User.created_at.desc(), User.id.desc()).limit(page["limit"]).offset(page["offset"]).all()
        return jsonify({"users": [user_json(u) for u in rows], "total": total})
    finally:
        db.close()


@bp.post("/users")
@require_admin
def create_user() -> ResponseReturnValue:
    data = json_body()
    email = data.get("email")
    password = data.get("password")
    role = data.get("role")
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("MISSING_EMAIL", "Email is required")
    if not isinstance(password, str) or not password:
        raise ValidationError("MISSING_PASSWORD", "Password is required")
    if not role:
        raise ValidationError("MISSING_ROLE", "Role is required")
    if not is_valid_email(email):
        raise ValidationError("INVALID_EMAIL_FORMAT", "Invalid email format")
    _role(role)
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError("PASSWORD_TOO_SHORT", "Password must be at least 6 characters")
    email = email.strip().lower()
    db = get_session()
    try:
        if db.query(User).filter(User.email == email).first():
            raise ValidationError("EMAIL_EXISTS", "Email already exists")
        user = User(email=email, password_hash=generate_password_hash(password), role=role, is_active=1)
        db.add(user)
        db.commit()
        log.info("admin created user id=%s role=%s", user.id, role)
        resp = jsonify({"id": user.id, "email": user.email, "role": user.role, "createdAt": user.created_at})
        resp.status_code = 201
        return resp
    finally:
        db.close()


@bp.put("/users/<user_id>")
@require_admin
def update_user(user_id: str) -> ResponseReturnValue:
    uid = parse_id(user_id)
    data = json_body()
    db = get_session()
    try:
        user = db.get(User, uid)
        if not user:
            raise NotFoundError("User not found", code="USER_NOT_FOUND")
        if not any(k in data for k in ("email", "password", "role")):
            raise ValidationError("NO_UPDATE_FIELDS", "At least one field (email, password, role) is required")
        if "email" in data:
            if not is_valid_email(data["email"]):
                raise ValidationError("INVALID_EMAIL", "Invalid email format")
            email = data["email"].strip().lower()
            clash = db.query(User).filter(User.email == email, User.id != uid).first()
            if clash:
                raise ValidationError("EMAIL_EXISTS", "Email already exists")
            user.email = email
        if "password" in data:
            password = data["password"]
            if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
                raise ValidationError("WEAK_PASSWORD", "Password must be at least 6 characters")
            user.password_hash = generate_password_hash(password)
        if "role" in data:
            user.role = _role(data["role"])
        db.commit()
        return jsonify(user_json(user))
    finally:
        db.close()


@bp.delete("/users/<user_id>")
@require_admin
def delete_user(user_id: str) -> ResponseReturnValue:
    uid = parse_id(user_id)
    if uid == current_user_id():
        raise ValidationError("CANNOT_DELETE_SELF", "Cannot delete your own account")
    db = get_session()
    try:
        user = db.get(User, uid)
        if not user:
            raise NotFoundError("User not found", code="USER_NOT_FOUND")
        db.delete(user)
        db.commit()
        log.info("admin deleted user id=%s", uid)
        return jsonify({"message": "User deleted successfully", "id": uid})
    finally:
        db.close()


@bp.put("/users/<user_id>/activate")
@require_admin
def activate_user(user_id: str) -> ResponseReturnValue:
    uid = parse_id(user_id)
    status = json_body().get("isActive")
    if status not in (0, 1) or isinstance(status, bool):
        raise ValidationError("INVALID_STATUS", "isActive must be 0 or 1")
    db = get_session()
    try:
        user = db.get(User, uid)
        if not user:
            raise NotFoundError("User not found", code="USER_NOT_FOUND")
        user.is_active = status
        db.commit()
        log.info("admin set user id=%s is_active=%s", uid, status)
        return jsonify(user_json(user))
    finally:
        db.close()


# --- Businesses ---
@bp.get("/businesses")
@require_admin
def list_businesses() -> ResponseReturnValue:
    page = parse_page_params(request.args, clamp=True)
    sort_req = parse_sort_params(request.args, BUSINESS_SORT)
    search = (request.args.get("search") or "").strip()
    db = get_session()
    try:
        q = db.query(Business)
        if search:
            pattern = f"%{search}%"
            q = q.filter(or_(Business.name.ilike(pattern), Business.city.ilike(pattern), Business.type.ilike(pattern)))
        total = q.count()
        rows = _ordered(q, BUSINESS_SORT, sort_req).limit(page["limit"]).offset(page["offset"]).all()
        return jsonify({"businesses": [business_json(b) for b in rows], "total": total})
    finally:
        db.close()


@bp.get("/businesses/<business_id>")
@require_admin
def get_business(business_id: str) -> ResponseReturnValue:
    bid = parse_id(business_id)
    db = get_session()
    try:
        business = db.get(Business, bid)
        if not business:
            raise NotFoundError("Business not found", code="BUSINESS_NOT_FOUND")
        return jsonify(business_json(business))
    finally:
        db.close()


@bp.delete("/businesses/<business_id>")
@require_admin
def delete_business(business_id: str) -> ResponseReturnValue:
    bid = parse_id(business_id)
    db = get_session()
    try:
        business = db.get(Business, bid)
        if not business:
            raise NotFoundError("Business not found", code="BUSINESS_NOT_FOUND")
        logs = db.query(TemperatureLog).filter(TemperatureLog.business_id == bid).count()
        db.delete(business)
        db.commit()
        log.info("admin deleted business id=%s logs=%s", bid, logs)
        return jsonify({"message": "Business deleted successfully", "id": bid, "deletedLogs": logs})
    finally:
        db.close()


# --- Establishments ---
@bp.get("/establishments")
@require_admin
def list_establishments() -> ResponseReturnValue:
    page = parse_page_params(request.args)
    sort_req = parse_sort_params(request.args, ESTABLISHMENT_SORT)
    company = (request.args.get("companyName") or "").strip()
    eik = (request.args.get("eik") or "").strip()
    est_type = (request.args.get("establishmentType") or "").strip()
    db = get_session()
    try:
        q = db.query(Establishment)
        if company:
            q = q.filter(Establishment.company_name.ilike(f"%{company}%"))
        if eik:
            q = q.filter(Establishment.eik == eik)
        if est_type:
            q = q.filter(Establishment.establishment_type == est_type)
        total = q.count()
        rows = _ordered(q, ESTABLISHMENT_SORT, sort_req).limit(page["limit"]).offset(page["offset"]).all()
        return jsonify({"establishments": [establishment_json(e) for e in rows], "total": total})
    finally:
        db.close()


@bp.get("/establishments/<est_id>")
@require_admin
def get_establishment(est_id: str) -> ResponseReturnValue:
    eid = parse_id(est_id)
    db = get_session()
    try:
        est = db.get(Establishment, eid)
        if not est:
            raise NotFoundError("Establishment not found", code="ESTABLISHMENT_NOT_FOUND")
        staff = (
            db.query(Personnel)
            .filter(Personnel.establishment_id == eid)
            .order_by(Personnel.created_at.desc(), Personnel.id.desc())
            .all()
        )
        return jsonify({"establishment": establishment_json(est), "personnel": [personnel_json(p) for p in staff]})
    finally:
        db.close()


# --- Diary devices ---
@bp.get("/diary-devices")
@require_admin
def list_devices() -> ResponseReturnValue:
    page = parse_page_params(request.args)
    sort_req = parse_sort_params(request.args, DEVICE_SORT)
    owner = parse_optional_id(request.args.get("userId"), "INVALID_USER_ID", "userId must be a positive integer")
    device_type = request.args.get("deviceType")
    if device_type and device_type not in DEVICE_TYPE_ORDER:
        raise ValidationError(
            "INVALID_DEVICE_TYPE", f"deviceType must be one of: {', '.join(DEVICE_TYPE_ORDER)}"
        )
    db = get_session()
    try:
        q = db.query(DiaryDevice, User.email).outerjoin(User, User.id == DiaryDevice.user_id)
        if owner is not None:
            q = q.filter(DiaryDevice.user_id == owner)
        if device_type:
            q = q.filter(DiaryDevice.device_type == device_type)
        total = q.count()
        rows = _ordered(q, DEVICE_SORT, sort_req).limit(page["limit"]).offset(page["offset"]).all()
        return jsonify({"devices": [{**device_json(d), "userEmail": email} for d, email in rows], "total": total})
    finally:
        db.close()


@bp.get("/diary-devices/<device_id>")
@require_admin
def get_device(device_id: str) -> ResponseReturnValue:
    did = parse_id(device_id)
    db = get_session()
    try:
        row = (
            db.query(DiaryDevice, User.email)
            .outerjoin(User, User.id == DiaryDevice.user_id)
            .filter(DiaryDevice.id == did)
            .first()
        )
        if not row:
            raise NotFoundError("Device not found", code="DEVICE_NOT_FOUND")
        device, email = row
        readings = (
            db.query(TemperatureReading)
            .filter(TemperatureReading.device_id == did)
            .order_by(TemperatureReading.reading_date.desc(), TemperatureReading.hour.asc())
            .all()
        )
        return jsonify({"device": {**device_json(device), "userEmail": email}, "readings": [reading_json(r) for r in readings]})
    finally:
        db.close()


# --- Incoming controls ---
@bp.get("/incoming-controls")
@require_admin
def list_incoming_controls() -> ResponseReturnValue:
    page = parse_page_params(request.args)
    day = request.args.get("date")
    if day:
        if not DATE_RE.match(day):
            raise ValidationError("INVALID_DATE_FORMAT", "date must be in YYYY-MM-DD format")
        if not is_valid_date(day):
            raise ValidationError("INVALID_DATE_VALUE", "date is not a valid calendar date")
    owner = parse_optional_id(request.args.get("userId"), "INVALID_USER_ID", "userId must be a positive integer")
    db = get_session()
    try:
        q = (
            db.query(IncomingControl, User.email, Establishment.company_name, Establishment.establishment_type)
            .outerjoin(User, User.id == IncomingControl.user_id)
            .outerjoin(Establishment, Establishment.id == IncomingControl.establishment_id)
        )
        if day:
            q = q.filter(IncomingControl.control_date == day)
        if owner is not None:
            q = q.filter(IncomingControl.user_id == owner)
        total = q.count()
        rows = (
            q.order_by(IncomingControl.control_date.desc(), IncomingControl.created_at.desc())
            .limit(page["limit"])
            .offset(page["offset"])
            .all()
        )
        controls = [
            {**incoming_control_json(c), "userEmail": email, "companyName": company, "establishmentType": est_type}
            for c, email, company, est_type in rows
        ]
        return jsonify({"controls": controls, "total": total})
    finally:
        db.close()


# --- Temperature readings ---
@bp.get("/temperature-readings")
@require_admin
def list_readings() -> ResponseReturnValue:
    page = parse_page_params(request.args, default_limit=100)
    sort_req = parse_sort_params(request.args, READING_SORT, default="readingDate")
    device_id = parse_optional_id(
        request.args.get("deviceId"), "INVALID_DEVICE_ID", "deviceId must be a positive integer"
    )
    start = optional_arg_date("startDate", "INVALID_START_DATE", "startDate must be in YYYY-MM-DD format")
    end = optional_arg_date("endDate", "INVALID_END_DATE", "endDate must be in YYYY-MM-DD format")
    db = get_session()
    try:
        q = db.query(TemperatureReading)
        if device_id is not None:
            q = q.filter(TemperatureReading.device_id == device_id)
        if start:
            q = q.filter(TemperatureReading.reading_date >= start)
        if end:
            q = q.filter(TemperatureReading.reading_date <= end)
        total = q.count()
        rows = _ordered(q, READING_SORT, sort_req).limit(page["limit"]).offset(page["offset"]).all()
        return jsonify({"readings": [reading_json(r) for r in rows], "total": total})
    finally:
        db.close()


# --- Health books ---
def _days_until(validity: str, now: datetime) -> float | None:
    try:
        expires = datetime.strptime(validity, "%Y-%m-%d").replace(tzinfo=UTC)
    except (TypeError, ValueError):
        return None
    return (expires - now).total_seconds() / 86400


@bp.get("/health-books-expiring")
@require_admin
def health_books_expiring() -> ResponseReturnValue:
    window = int(current_app.config.get("HEALTH_BOOK_WARNING_DAYS", 10))
    now = datetime.now(UTC)
    horizon = (now + timedelta(days=window)).date().isoformat()
    db = get_session()
    try:
        rows = (
            db.query(Personnel, Establishment.company_name, Establishment.contact_email)
            .outerjoin(Establishment, Establishment.id == Personnel.establishment_id)
            .filter(Personnel.health_book_validity <= horizon)
            .all()
        )
        out = []
        for person, company, contact in rows:
            days = _days_until(person.health_book_validity, now)
            if days is None or days < 0 or days > window:
                continue
            out.append(
                {
                    "id": person.id,
                    "fullName": person.full_name,
                    "position": person.position,
                    "healthBookNumber": person.health_book_number,
                    "healthBookValidity": person.health_book_validity,
                    "daysUntilExpiry": math.ceil(days),
                    "establishmentId": person.establishment_id,
                    "establishmentName": company or "N/A",
                    "contactEmail": contact,
                }
            )
        out.sort(key=lambda p: (p["healthBookValidity"], p["id"]))
        return jsonify({"personnel": out, "total": len(out)})
    finally:
        db.close()


# --- Support ---
@bp.get("/support/logs")
@require_admin
def support_logs() -> ResponseReturnValue:
    raw = request.args.get("limit")
    entries = list(LOG_BUFFER)
    if raw not in (None, ""):
        if not INT_RE.match(raw) or int(raw) < 0:
            raise ValidationError("INVALID_LIMIT", "limit must be a non-negative integer")
        entries = entries[max(len(entries) - int(raw), 0) :]
    return jsonify({"logs": entries, "total": len(entries)})
