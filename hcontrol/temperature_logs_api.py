"""Per-business equipment temperature logs and their daily generation.

The cron endpoint is meant for an external scheduler; it authenticates with
``CRON_SECRET`` instead of a user token.
"""

from __future__ import annotations

import hmac
import logging
from datetime import date

from flask import Blueprint, current_app, jsonify, request
from flask.typing import ResponseReturnValue

from .app_authz import require_auth
from .app_sessions import require_identity
from .businesses_api import load_business
from .constants import EQUIPMENT_TEMPERATURE_RANGES
from .db import get_session
from .errors import DomainError, ValidationError
from .models import Business, DiaryDevice, TemperatureLog
from .pagination import parse_page_params
from .readings_service import generate_business_logs, generate_daily_readings
from .serializers import temperature_log_json
from .validation import is_valid_date, json_body, optional_arg_date, parse_id

log = logging.getLogger(__name__)

bp = Blueprint("temperature_logs_api", __name__, url_prefix="/api/temperature-logs")
cron_bp = Blueprint("cron_api", __name__, url_prefix="/api/cron")


@bp.get("/<business_id>")
@require_auth
def list_logs(business_id: str) -> ResponseReturnValue:
    bid = parse_id(business_id, code="INVALID_BUSINESS_ID", message="Valid business ID is required")
    page = parse_page_params(request.args, default_limit=100, max_limit=500, clamp=True)
    equipment = request.args.get("equipmentType")
    if equipment and equipment not in EQUIPMENT_TEMPERATURE_RANGES:
        raise ValidationError(
            "INVALID_EQUIPMENT_TYPE",
            f"Invalid equipment type. Must be one of: {', '.join(EQUIPMENT_TEMPERATURE_RANGES)}",
        )
    start = optional_arg_date("startDate", "INVALID_START_DATE", "Start date must be in YYYY-MM-DD format")
    end = optional_arg_date("endDate", "INVALID_END_DATE", "End date must be in YYYY-MM-DD format")
    db = get_session()
    try:
        load_business(db, bid)
        q = db.query(TemperatureLog).filter(TemperatureLog.business_id == bid)
        if equipment:
            q = q.filter(TemperatureLog.equipment_type == equipment)
        if start:
            q = q.filter(TemperatureLog.log_date >= start)
        if end:
            q = q.filter(TemperatureLog.log_date <= end)
        rows = (
            q.order_by(
                TemperatureLog.log_date.desc(),
                TemperatureLog.equipment_type.asc(),
                TemperatureLog.equipment_number.asc(),
            )
            .limit(page["limit"])
            .offset(page["offset"])
            .all()
        )
        return jsonify([temperature_log_json(t) for t in rows])
    finally:
        db.close()


@bp.post("/generate")
@require_auth
def generate() -> ResponseReturnValue:
    data = json_body()
    log_date = data.get("date") or date.today().isoformat()
    if not is_valid_date(log_date):
        raise ValidationError("INVALID_DATE_FORMAT", "Invalid date format. Please use YYYY-MM-DD format")
    ident = require_identity()
    db = get_session()
    try:
        q = db.query(Business)
        if ident["role"] != "admin":
            q = q.filter(Business.user_id == ident["user_id"])
        created, skipped = generate_business_logs(db, q.all(), log_date)
        db.commit()
        resp = jsonify(
            {
                "message": "Temperature logs generated successfully",
                "date": log_date,
                "created": created,
                "skipped": skipped,
            }
        )
        resp.status_code = 201
        return resp
    finally:
        db.close()


@cron_bp.get("/generate-daily-logs")
def cron_generate_daily() -> ResponseReturnValue:
    expected = current_app.config.get("CRON_SECRET") or ""
    supplied = request.args.get("secret") or ""
    if not expected or not hmac.compare_digest(supplied.encode(), expected.encode()):
        raise DomainError(401, "INVALID_CRON_SECRET", "Unauthorized - Invalid cron secret")
    today = date.today().isoformat()
    db = get_session()
    try:
        businesses = db.query(Business).all()
        created, skipped = generate_business_logs(db, businesses, today)
        devices = db.query(DiaryDevice).all()
        readings = generate_daily_readings(db, devices, today)
        db.commit()
        log.info("cron run date=%s logs=%s readings=%s", today, created, readings)
        return jsonify(
            {
                "message": "Daily temperature logs generated successfully",
                "date": today,
                "businessesProcessed": len(businesses),
                "logsGenerated": created,
                "logsSkipped": skipped,
                "devicesProcessed": len(devices),
                "readingsGenerated": readings,
            }
        )
    finally:
        db.close()
