from __future__ import annotations

import logging
import os
import time
from datetime import UTC, datetime

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import inspect as sa_inspect
from werkzeug.security import check_password_hash, generate_password_hash

from .app_authz import require_admin, require_auth, signing_secrets
from .app_sessions import require_identity
from .db import get_session
from .errors import ForbiddenError, NotFoundError, RateLimitError, ValidationError
from .http_errors import unauthorized
from .jwt_utils import DEFAULT_TTL, issue_token, select_signing_secret
from .models import Business, User
from .serializers import business_json, user_json
from .validation import json_body

log = logging.getLogger(__name__)

bp = Blueprint("auth", __name__, url_prefix="/api/auth")
probe_bp = Blueprint("auth_probe", __name__, url_prefix="/api/test-auth")

NOT_ACTIVATED_MESSAGE = "Акаунтът ви все още не е одобрен от администратор. Моля изчакайте."

REGISTER_REQUIRED = (
    ("email", "MISSING_EMAIL", "Email is required"),
    ("password", "MISSING_PASSWORD", "Password is required"),
    ("managerName", "MISSING_MANAGER_NAME", "Manager name is required"),
    ("businessName", "MISSING_BUSINESS_NAME", "Business name is required"),
    ("businessType", "MISSING_BUSINESS_TYPE", "Business type is required"),
    ("city", "MISSING_CITY", "City is required"),
    ("address", "MISSING_ADDRESS", "Address is required"),
    ("phone", "MISSING_PHONE", "Phone is required"),
    ("businessEmail", "MISSING_BUSINESS_EMAIL", "Business email is required"),
)

# In-memory rate limit store: key -> {failures:int, first:ts, lock_until:ts?}
_RATE_LIMIT_STORE: dict[str, dict[str, float | int]] = {}


def reset_rate_limits() -> None:
    _RATE_LIMIT_STORE.clear()


def _rate_limit_record(email: str) -> tuple[str, dict[str, float | int]]:
    rl_cfg = current_app.config.get("AUTH_RATE_LIMIT") or {}
    window_sec = rl_cfg.get("window_sec", 300)
    now = time.time()
    key = f"{email}:{request.remote_addr or 'na'}"
    rec = _RATE_LIMIT_STORE.get(key)
    if rec:
        lock_until = rec.get("lock_until")
        if lock_until and lock_until > now:
            raise RateLimitError(retry_after=int(lock_until - now))
        # slide window
        if now - rec["first"] > window_sec:
            rec["first"] = now
            rec["failures"] = 0
            rec.pop("lock_until", None)
    else:
        rec = {"failures": 0, "first": now}
        _RATE_LIMIT_STORE[key] = rec
    return key, rec


def _register_failure(rec: dict[str, float | int]) -> None:
    rl_cfg = current_app.config.get("AUTH_RATE_LIMIT") or {}
    rec["failures"] += 1
    if rec["failures"] >= rl_cfg.get("max_failures", 5):
        lock_sec = rl_cfg.get("lock_sec", 600)
        rec["lock_until"] = time.time() + lock_sec
        raise RateLimitError(retry_after=lock_sec)


def issue_user_token(user: User) -> str:
    primary, secrets_list = signing_secrets()
    return issue_token(
        user_id=user.id,
        email=user.email,
        role=user.role,
        secret=select_signing_secret(primary, secrets_list),
        ttl=current_app.config.get("JWT_EXPIRES_SECONDS", DEFAULT_TTL),
    )


# --- Routes ---
@bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("MISSING_EMAIL", "Email is required")
    if not isinstance(password, str) or not password:
        raise ValidationError("MISSING_PASSWORD", "Password is required")
    email = email.strip().lower()
    key, rec = _rate_limit_record(email)
    db = get_session()
    try:
        user = db.query(User).filter(User.email == email).first()
        if not user or not check_password_hash(user.password_hash, password):
            _register_failure(rec)
            log.info("login failed email=%s", email)
            return unauthorized("Invalid credentials", code="INVALID_CREDENTIALS")
        _RATE_LIMIT_STORE.pop(key, None)
        if user.is_active != 1:
            raise ForbiddenError(NOT_ACTIVATED_MESSAGE, code="ACCOUNT_NOT_ACTIVATED")
        token = issue_user_token(user)
        return jsonify({"token": token, "user": user_json(user)})
    finally:
        db.close()


@bp.post("/register")
def register():
    data = json_body()
    for field, code, message in REGISTER_REQUIRED:
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(code, message)
    email = data["email"].strip().lower()
    eik = data.get("eik")
    db = get_session()
    try:
        if db.query(User).filter(User.email == email).first():
            raise ValidationError("EMAIL_EXISTS", "Email already exists")
        user = User(
            email=email,
            password_hash=generate_password_hash(data["password"]),
            role="user",
            manager_name=data["managerName"].strip(),
            is_active=0,
        )
        db.add(user)
        db.flush()
        business = Business(
            user_id=user.id,
            name=data["businessName"].strip(),
            type=data["businessType"].strip(),
            city=data["city"].strip(),
            address=data["address"].strip(),
            phone=data["phone"].strip(),
            email=data["businessEmail"].strip().lower(),
            refrigerator_count=0,
            freezer_count=0,
            hot_display_count=0,
            cold_display_count=0,
            other_equipment=f"ЕИК: {eik.strip()}" if isinstance(eik, str) and eik.strip() else None,
        )
        db.add(business)
        db.commit()
        log.info("registered user id=%s business id=%s (pending activation)", user.id, business.id)
        resp = jsonify({"user": user_json(user), "business": business_json(business)})
        resp.status_code = 201
        return resp
    finally:
        db.close()


@bp.get("/me")
@require_auth
def me():
    ident = require_identity()
    db = get_session()
    try:
        user = db.get(User, ident["user_id"])
        if not user:
            raise NotFoundError("User not found", code="USER_NOT_FOUND")
        return jsonify({"user": user_json(user)})
    finally:
        db.close()


def _probe_response(message: str):
    ident = require_identity()
    return jsonify(
        {
            "message": message,
            "user": {"userId": ident["user_id"], "email": ident["email"], "role": ident["role"]},
            "timestamp": datetime.now(UTC).isoformat(),
        }
    )


@require_admin
def _probe_admin():
    return _probe_response("Admin authentication successful")


@require_auth
def _probe_user():
    return _probe_response("Authentication successful")


@probe_bp.get("")
def test_auth():
    if request.args.get("admin") == "true":
        return _probe_admin()
    return _probe_user()


# --- Bootstrap Admin Utility ---
def ensure_bootstrap_admin() -> None:
    """Create a first active admin when BOOTSTRAP_ADMIN_EMAIL/PASSWORD are provided.

    Skips when the account already exists or the users table is not there yet.
    """
    email = os.getenv("BOOTSTRAP_ADMIN_EMAIL")
    password = os.getenv("BOOTSTRAP_ADMIN_PASSWORD")
    if not email or not password:
        return
    db = get_session()
    try:
        if not sa_inspect(db.bind).has_table("users"):
            return
        if db.query(User).filter(User.email == email.strip().lower()).first():
            return
        db.add(
            User(
                email=email.strip().lower(),
                password_hash=generate_password_hash(password),
                role="admin",
                manager_name="Administrator",
                is_active=1,
            )
        )
        db.commit()
        current_app.logger.info("Bootstrap admin created: %s", email)
    finally:
        db.close()
