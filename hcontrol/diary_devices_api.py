from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request
from flask.typing import ResponseReturnValue
from sqlalchemy.exc import SQLAlchemyError

from .app_authz import AuthzError, require_auth
from .app_sessions import current_user_id
from .constants import DEVICE_TEMPERATURE_RANGES, DEVICE_TYPE_ORDER
from .db import get_session
from .errors import NotFoundError, ValidationError
from .models import DiaryDevice, Establishment, utcnow_iso
from .readings_service import backfill_device
from .serializers import device_json
from .validation import is_int, json_body, parse_id, parse_optional_id

log = logging.getLogger(__name__)

bp = Blueprint("diary_devices_api", __name__, url_prefix="/api/diary-devices")


def _load_owned(db, device_id: int, user_id: int) -> DiaryDevice:
    device = db.get(DiaryDevice, device_id)
    if not device:
        raise NotFoundError("Device not found", code="DEVICE_NOT_FOUND")
    if device.user_id != user_id:
        raise AuthzError("Access denied")
    return device


@bp.post("")
@require_auth
def create_device() -> ResponseReturnValue:
    user_id = current_user_id()
    data = json_body()
    est_id = data.get("establishmentId")
    if not is_int(est_id) or est_id <= 0:
        raise ValidationError("MISSING_ESTABLISHMENT_ID", "Establishment ID is required")
    device_type = data.get("deviceType")
    if not device_type:
        raise ValidationError("MISSING_DEVICE_TYPE", "Device type is required")
    if device_type not in DEVICE_TEMPERATURE_RANGES:
        raise ValidationError(
            "INVALID_DEVICE_TYPE", f"Device type must be one of: {', '.join(DEVICE_TYPE_ORDER)}"
        )
    name = data.get("deviceName")
    if not name or not isinstance(name, str):
        raise ValidationError("MISSING_DEVICE_NAME", "Device name is required")
    if not name.strip():
        raise ValidationError("EMPTY_DEVICE_NAME", "Device name cannot be empty")
    min_temp, max_temp = DEVICE_TEMPERATURE_RANGES[device_type]
    db = get_session()
    try:
        est = db.get(Establishment, est_id)
        if not est:
            raise NotFoundError("Establishment not found", code="ESTABLISHMENT_NOT_FOUND")
        if est.user_id != user_id:
            raise AuthzError("Access denied")
        device = DiaryDevice(
            user_id=user_id,
            establishment_id=est_id,
            device_type=device_type,
            device_name=name.strip(),
            min_temp=min_temp,
            max_temp=max_temp,
        )
        db.add(device)
        db.commit()
        # the device stays even when its backfill cannot be stored
        try:
            backfill_device(db, device)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            log.exception("reading backfill failed for device=%s", device.id)
        resp = jsonify(device_json(device))
        resp.status_code = 201
        return resp
    finally:
        db.close()


@bp.get("/user")
@require_auth
def list_user_devices() -> ResponseReturnValue:
    est_id = parse_optional_id(
        request.args.get("establishmentId"), "INVALID_ESTABLISHMENT_ID", "Valid establishment ID is required"
    )
    db = get_session()
    try:
        q = db.query(DiaryDevice).filter(DiaryDevice.user_id == current_user_id())
        if est_id is not None:
            q = q.filter(DiaryDevice.establishment_id == est_id)
        rows = q.order_by(DiaryDevice.created_at.desc(), DiaryDevice.id.desc()).all()
        return jsonify([device_json(d) for d in rows])
    finally:
        db.close()


@bp.get("/<device_id>")
@require_auth
def get_device(device_id: str) -> ResponseReturnValue:
    did = parse_id(device_id)
    db = get_session()
    try:
        return jsonify(device_json(_load_owned(db, did, current_user_id())))
    finally:
        db.close()


@bp.put("/<device_id>")
@require_auth
def update_device(device_id: str) -> ResponseReturnValue:
    did = parse_id(device_id)
    db = get_session()
    try:
        device = _load_owned(db, did, current_user_id())
        data = json_body()
        name = data.get("deviceName")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("INVALID_DEVICE_NAME", "Device name is required and cannot be empty")
        device.device_name = name.strip()
        device.updated_at = utcnow_iso()
        db.commit()
        return jsonify(device_json(device))
    finally:
        db.close()


@bp.delete("/<device_id>")
@require_auth
def delete_device(device_id: str) -> ResponseReturnValue:
    did = parse_id(device_id)
    db = get_session()
    try:
        device = _load_owned(db, did, current_user_id())
        db.delete(device)
        db.commit()
        log.info("diary device deleted id=%s", did)
        return jsonify({"message": "Device deleted successfully", "id": did})
    finally:
        db.close()
