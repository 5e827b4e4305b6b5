"""Demo data for trying the app out.

Only reachable when ``ENABLE_DEMO_SEED`` is on or the app runs under tests.
"""

from __future__ import annotations

import logging
from datetime import date

from flask import Blueprint, current_app, jsonify
from flask.typing import ResponseReturnValue
from sqlalchemy.orm import Session
from werkzeug.security import generate_password_hash

from .db import get_session
from .errors import NotFoundError
from .models import Establishment, Personnel, User

log = logging.getLogger(__name__)

bp = Blueprint("seed_api", __name__, url_prefix="/api/seed")

DEMO_EMAIL = "demo@user.bg"
DEMO_PASSWORD = "user123"
DEMO_COMPANY = "Ресторант Под Липите ЕООД"
DEMO_PERSONNEL = (
    ("Мария Георгиева", "9012154321", "Сервитьор", "TB001234"),
    ("Георги Димитров", "8506127890", "Готвач", "TB002345"),
    ("Елена Стоянова", "9203145678", "Барман", "TB003456"),
    ("Стефан Николов", "8801123456", "Сервитьор", "TB004567"),
)
DEMO_VALIDITY = "2026-12-31"


def seed_demo_establishment(db: Session) -> tuple[bool, User, Establishment]:
    """Create the demo user, establishment and staff if missing.

    Returns ``(created, user, establishment)``; ``created`` is False when the
    establishment was already there.
    """
    user = db.query(User).filter(User.email == DEMO_EMAIL).first()
    if not user:
        user = User(
            email=DEMO_EMAIL,
            password_hash=generate_password_hash(DEMO_PASSWORD),
            role="user",
            manager_name="Демо Потребител",
            is_active=1,
        )
        db.add(user)
        db.flush()
    existing = db.query(Establishment).filter(Establishment.company_name == DEMO_COMPANY).first()
    if existing:
        return False, user, existing
    est = Establishment(
        user_id=user.id,
        establishment_type="Ресторант",
        employee_count=len(DEMO_PERSONNEL),
        manager_name="Иван Петров",
        manager_phone="+359 888 123 456",
        manager_email="ivan.petrov@restaurant-demo.bg",
        company_name=DEMO_COMPANY,
        eik="123456789",
        eik_verified=1,
        eik_verification_date=date.today().isoformat(),
        registration_address="гр. София, ул. Витоша 15",
        contact_email="info@restaurant-demo.bg",
    )
    db.add(est)
    db.flush()
    for full_name, egn, position, book in DEMO_PERSONNEL:
        db.add(
            Personnel(
                establishment_id=est.id,
                full_name=full_name,
                egn=egn,
                position=position,
                health_book_number=book,
                health_book_validity=DEMO_VALIDITY,
            )
        )
    return True, user, est


@bp.post("/demo-establishment")
def demo_establishment() -> ResponseReturnValue:
    if not (current_app.config.get("ENABLE_DEMO_SEED") or current_app.config.get("TESTING")):
        raise NotFoundError("Not found")
    db = get_session()
    try:
        created, user, est = seed_demo_establishment(db)
        db.commit()
        if not created:
            return jsonify(
                {
                    "message": "Demo establishment already exists",
                    "data": {"establishment": {"id": est.id, "companyName": est.company_name}},
                }
            )
        log.info("seeded demo establishment id=%s for user id=%s", est.id, user.id)
        resp = jsonify(
            {
                "message": "Demo establishment and personnel seeded successfully",
                "data": {
                    "user": {"id": user.id, "email": user.email},
                    "establishment": {"id": est.id, "companyName": est.company_name},
                    "personnelCount": len(DEMO_PERSONNEL),
                },
            }
        )
        resp.status_code = 201
        return resp
    finally:
        db.close()
