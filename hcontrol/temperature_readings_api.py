"""Temperature readings of diary devices: generation, notes and exports."""

from __future__ import annotations

from datetime import date

from flask import Blueprint, Response, jsonify, request
from flask.typing import ResponseReturnValue

from .app_authz import AuthzError, require_auth
from .app_sessions import current_user_id
from .db import get_session
from .errors import NotFoundError, ValidationError
from .models import DiaryDevice, TemperatureReading
from .readings_service import (
    device_sort_key,
    generate_daily_readings,
    generate_device_readings,
    readings_exist,
)
from .report.tabular import build_csv
from .serializers import device_json, reading_json
from .validation import DATE_RE, is_valid_date, json_body, optional_arg_date, parse_id

bp = Blueprint("temperature_readings_api", __name__, url_prefix="/api/temperature-readings")


def _owned_device(db, device_id: int, user_id: int) -> DiaryDevice:
    device = db.get(DiaryDevice, device_id)
    if not device:
        raise NotFoundError("Device not found", code="DEVICE_NOT_FOUND")
    if device.user_id != user_id:
        raise AuthzError("Access denied: Device does not belong to user")
    return device


def _csv_response(filename: str, payload: bytes) -> Response:
    return Response(
        payload,
        mimetype="text/csv; charset=utf-8",
        headers={"Cache-Control": "no-store", "Content-Disposition": f'attachment; filename="{filename}"'},
    )


@bp.post("/generate")
@require_auth
def generate() -> ResponseReturnValue:
    data = json_body()
    device_id = data.get("deviceId")
    if device_id is None or device_id == "":
        raise ValidationError("MISSING_DEVICE_ID", "deviceId is required")
    device_id = parse_id(device_id, code="INVALID_DEVICE_ID", message="deviceId must be a valid integer")
    reading_date = data.get("date")
    if not reading_date:
        raise ValidationError("MISSING_DATE", "date is required")
    if not is_valid_date(reading_date):
        raise ValidationError("INVALID_DATE_FORMAT", "date must be in YYYY-MM-DD format")
    db = get_session()
    try:
        device = _owned_device(db, device_id, current_user_id())
        if readings_exist(db, device.id, reading_date):
            raise ValidationError("READINGS_ALREADY_EXIST", "Readings already exist for this device and date")
        created = generate_device_readings(db, device, reading_date)
        db.commit()
        resp = jsonify(
            {
                "message": "Temperature readings generated successfully",
                "deviceId": device.id,
                "date": reading_date,
                "readingsGenerated": len(created),
                "readings": [reading_json(r) for r in created],
            }
        )
        resp.status_code = 201
        return resp
    finally:
        db.close()


@bp.post("/generate-daily")
@require_auth
def generate_daily() -> ResponseReturnValue:
    data = json_body()
    reading_date = data.get("date") or date.today().isoformat()
    if not is_valid_date(reading_date):
        raise ValidationError("INVALID_DATE_FORMAT", "date must be in YYYY-MM-DD format")
    db = get_session()
    try:
        devices = db.query(DiaryDevice).filter(DiaryDevice.user_id == current_user_id()).all()
        created = generate_daily_readings(db, devices, reading_date)
        db.commit()
        return jsonify({"date": reading_date, "devicesProcessed": len(devices), "readingsGenerated": created})
    finally:
        db.close()


@bp.get("/by-device/<device_id>")
@require_auth
def by_device(device_id: str) -> ResponseReturnValue:
    did = parse_id(device_id, code="INVALID_DEVICE_ID", message="Valid device ID is required")
    day = request.args.get("date")
    if day and not DATE_RE.match(day):
        raise ValidationError("INVALID_DATE_FORMAT", "Invalid date format. Expected YYYY-MM-DD")
    db = get_session()
    try:
        _owned_device(db, did, current_user_id())
        q = db.query(TemperatureReading).filter(TemperatureReading.device_id == did)
        if day:
            q = q.filter(TemperatureReading.reading_date == day)
        rows = q.order_by(TemperatureReading.reading_date.desc(), TemperatureReading.hour.asc()).all()
        return jsonify([reading_json(r) for r in rows])
    finally:
        db.close()


@bp.put("/<reading_id>/notes")
@require_auth
def update_notes(reading_id: str) -> ResponseReturnValue:
    rid = parse_id(reading_id)
    db = get_session()
    try:
        reading = db.get(TemperatureReading, rid)
        if not reading:
            raise NotFoundError("Temperature reading not found", code="READING_NOT_FOUND")
        device = db.get(DiaryDevice, reading.device_id)
        if not device:
            raise NotFoundError("Device not found", code="DEVICE_NOT_FOUND")
        if device.user_id != current_user_id():
            raise AuthzError("You do not have permission to update this reading")
        data = json_body()
        notes = data.get("notes")
        if notes is not None and not isinstance(notes, str):
            raise ValidationError("INVALID_NOTES_TYPE", "Notes must be a string or null")
        if isinstance(notes, str):
            notes = notes.strip() or None
        reading.notes = notes
        db.commit()
        return jsonify(reading_json(reading))
    finally:
        db.close()


@bp.get("/export/<device_id>")
@require_auth
def export_device(device_id: str) -> ResponseReturnValue:
    did = parse_id(device_id, code="INVALID_DEVICE_ID", message="Valid device ID is required")
    start = optional_arg_date("startDate", "INVALID_START_DATE", "Invalid startDate format. Use YYYY-MM-DD")
    end = optional_arg_date("endDate", "INVALID_END_DATE", "Invalid endDate format. Use YYYY-MM-DD")
    db = get_session()
    try:
        _owned_device(db, did, current_user_id())
        q = db.query(TemperatureReading).filter(TemperatureReading.device_id == did)
        if start:
            q = q.filter(TemperatureReading.reading_date >= start)
        if end:
            q = q.filter(TemperatureReading.reading_date <= end)
        rows = q.order_by(TemperatureReading.reading_date.asc(), TemperatureReading.hour.asc()).all()
        payload = build_csv(
            ["Date", "Hour", "Temperature", "Notes"],
            ((r.reading_date, f"{r.hour:02d}:00", r.temperature, r.notes or "") for r in rows),
        )
        return _csv_response(f"device-{did}-readings-{start or 'all'}-to-{end or 'all'}.csv", payload)
    finally:
        db.close()


@bp.get("/export-all-daily")
@require_auth
def export_all_daily() -> ResponseReturnValue:
    day = request.args.get("date")
    if not day:
        raise ValidationError("MISSING_DATE", "Date parameter is required")
    if not is_valid_date(day):
        raise ValidationError("INVALID_DATE", "Invalid date format. Use YYYY-MM-DD")
    db = get_session()
    try:
        devices = db.query(DiaryDevice).filter(DiaryDevice.user_id == current_user_id()).all()
        if not devices:
            raise NotFoundError("No devices found", code="NO_DEVICES")
        out = []
        for device in sorted(devices, key=device_sort_key):
            readings = (
                db.query(TemperatureReading)
                .filter(TemperatureReading.device_id == device.id, TemperatureReading.reading_date == day)
                .order_by(TemperatureReading.hour.asc())
                .all()
            )
            if readings:
                out.append({"device": device_json(device), "readings": [reading_json(r) for r in readings]})
        if not out:
            raise NotFoundError("No readings found for this date", code="NO_READINGS")
        return jsonify({"date": day, "devices": out})
    finally:
        db.close()

