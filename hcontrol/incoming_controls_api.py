"""Incoming control photo log (delivery inspections)."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask.typing import ResponseReturnValue

from .app_authz import AuthzError, require_auth
from .app_sessions import current_user_id
from .db import get_session
from .errors import NotFoundError, ValidationError
from .models import Establishment, IncomingControl, utcnow_iso
from .serializers import incoming_control_json
from .validation import DATE_RE, is_nonempty_str, json_body, optional_text, parse_id, parse_optional_id

bp = Blueprint("incoming_controls_api", __name__, url_prefix="/api/incoming-controls")


def _load_owned(db, control_id: int, user_id: int) -> IncomingControl:
    control = db.get(IncomingControl, control_id)
    if not control:
        raise NotFoundError("Incoming control not found")
    if control.user_id != user_id:
        raise AuthzError("Access denied")
    return control


@bp.post("")
@require_auth
def create_control() -> ResponseReturnValue:
    user_id = current_user_id()
    data = json_body()
    control_date = data.get("controlDate")
    if not control_date:
        raise ValidationError("MISSING_CONTROL_DATE", "Control date is required")
    if not isinstance(control_date, str) or not DATE_RE.match(control_date):
        raise ValidationError("INVALID_DATE_FORMAT", "Control date must be in YYYY-MM-DD format")
    if not is_nonempty_str(data.get("imageUrl")):
        raise ValidationError("MISSING_IMAGE_URL", "Image URL is required")
    est_id = parse_optional_id(
        data.get("establishmentId"), "INVALID_ESTABLISHMENT_ID", "Establishment ID must be a valid integer"
    )
    db = get_session()
    try:
        if est_id is not None:
            est = db.get(Establishment, est_id)
            if not est:
                raise NotFoundError("Establishment not found", code="ESTABLISHMENT_NOT_FOUND")
            if est.user_id != user_id:
                raise AuthzError(
                    "You do not have permission to access this establishment", code="ESTABLISHMENT_ACCESS_DENIED"
                )
        control = IncomingControl(
            user_id=user_id,
            establishment_id=est_id,
            control_date=control_date,
            image_url=data["imageUrl"].strip(),
            notes=optional_text(data.get("notes")),
        )
        db.add(control)
        db.commit()
        resp = jsonify(incoming_control_json(control))
        resp.status_code = 201
        return resp
    finally:
        db.close()


@bp.get("/user")
@require_auth
def list_user_controls() -> ResponseReturnValue:
    day = request.args.get("date")
    if day and not DATE_RE.match(day):
        raise ValidationError("INVALID_DATE_FORMAT", "Invalid date format. Expected YYYY-MM-DD")
    db = get_session()
    try:
        q = (
            db.query(IncomingControl, Establishment)
            .outerjoin(Establishment, Establishment.id == IncomingControl.establishment_id)
            .filter(IncomingControl.user_id == current_user_id())
        )
        if day:
            q = q.filter(IncomingControl.control_date == day)
        rows = q.order_by(IncomingControl.control_date.desc(), IncomingControl.created_at.desc()).all()
        out = []
        for control, est in rows:
            body = incoming_control_json(control)
            body["establishment"] = (
                {"id": est.id, "companyName": est.company_name, "establishmentType": est.establishment_type}
                if est
                else None
            )
            out.append(body)
        return jsonify(out)
    finally:
        db.close()


@bp.get("/<control_id>")
@require_auth
def get_control(control_id: str) -> ResponseReturnValue:
    cid = parse_id(control_id)
    db = get_session()
    try:
        control = _load_owned(db, cid, current_user_id())
        est = db.get(Establishment, control.establishment_id) if control.establishment_id else None
        body = incoming_control_json(control)
        body["companyName"] = est.company_name if est else None
        body["establishmentType"] = est.establishment_type if est else None
        return jsonify(body)
    finally:
        db.close()


@bp.put("/<control_id>")
@require_auth
def update_control(control_id: str) -> ResponseReturnValue:
    cid = parse_id(control_id)
    user_id = current_user_id()
    db = get_session()
    try:
        control = _load_owned(db, cid, user_id)
        data = json_body()
        if "controlDate" in data:
            value = data["controlDate"]
            if not isinstance(value, str) or not DATE_RE.match(value):
                raise ValidationError("INVALID_DATE_FORMAT", "Control date must be in YYYY-MM-DD format")
            control.control_date = value
        if "imageUrl" in data:
            if not is_nonempty_str(data["imageUrl"]):
                raise ValidationError("INVALID_IMAGE_URL", "Image URL cannot be empty")
            control.image_url = data["imageUrl"].strip()
        if data.get("establishmentId") is not None:
            est_id = parse_id(
                data["establishmentId"],
                code="INVALID_ESTABLISHMENT",
                message="Establishment not found or does not belong to user",
            )
            est = db.get(Establishment, est_id)
            if not est or est.user_id != user_id:
                raise ValidationError("INVALID_ESTABLISHMENT", "Establishment not found or does not belong to user")
            control.establishment_id = est_id
        elif "establishmentId" in data:
            control.establishment_id = None
        if "notes" in data:
            control.notes = optional_text(data["notes"])
        control.updated_at = utcnow_iso()
        db.commit()
        return jsonify(incoming_control_json(control))
    finally:
        db.close()


@bp.delete("/<control_id>")
@require_auth
def delete_control(control_id: str) -> ResponseReturnValue:
    cid = parse_id(control_id)
    db = get_session()
    try:
        control = _load_owned(db, cid, current_user_id())
        body = incoming_control_json(control)
        db.delete(control)
        db.commit()
        return jsonify({"message": "Incoming control deleted successfully", "deleted": body})
    finally:
        db.close()
