"""Cleaning log generation from weekly cleaning templates."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import or_
from sqlalchemy.orm import Session

from .constants import WEEKDAYS, canonical_day
from .models import CleaningLog, CleaningTemplate, Personnel
from .validation import parse_date

log = logging.getLogger(__name__)

LAST_MINUTE = 23 * 60 + 59
LAST_SLOT = "23:59"


@dataclass
class CleaningGenerationResult:
    date: str
    skipped: bool = False
    logs: list[CleaningLog] = field(default_factory=list)


def end_time_for(start: str, duration_hours: int) -> str:
    """``start`` plus ``duration_hours`` with the same minutes, kept within the day."""
    hours, minutes = (int(p) for p in start.split(":"))
    total = min((hours + duration_hours) * 60 + minutes, LAST_MINUTE)
    return f"{total // 60:02d}:{total % 60:02d}"


def template_runs_on(template: CleaningTemplate, weekday: str) -> bool:
    return any(canonical_day(d) == weekday for d in (template.days_of_week or []))


def generate_cleaning_logs(
    db: Session, user_id: int, log_date: str, establishment_id: int | None = None
) -> CleaningGenerationResult:
    """Create the date's cleaning logs from the user's templates, once.

    When any log already exists for the date (within the establishment, if one
    is given, or unassigned) nothing is created. Logs from templates without an
    establishment take the requested one. The caller owns the transaction.
    """
    result = CleaningGenerationResult(date=log_date)
    existing = db.query(CleaningLog.id).filter(CleaningLog.user_id == user_id, CleaningLog.log_date == log_date)
    if establishment_id is not None:
        existing = existing.filter(
            or_(CleaningLog.establishment_id == establishment_id, CleaningLog.establishment_id.is_(None))
        )
    if existing.first() is not None:
        result.skipped = True
        log.info("cleaning logs exist user=%s date=%s; skipping", user_id, log_date)
        return result

    weekday = WEEKDAYS[parse_date(log_date).weekday()]
    templates = (
        db.query(CleaningTemplate)
        .filter(CleaningTemplate.user_id == user_id)
        .order_by(CleaningTemplate.id.asc())
        .all()
    )
    for template in templates:
        if not template_runs_on(template, weekday):
            continue
        if (
            establishment_id is not None
            and template.establishment_id is not None
            and template.establishment_id != establishment_id
        ):
            continue
        employee_name = None
        if template.employee_id is not None:
            employee = db.get(Personnel, template.employee_id)
            employee_name = employee.full_name if employee else None
        for start in template.cleaning_hours or []:
            entry = CleaningLog(
                user_id=user_id,
                establishment_id=template.establishment_id or establishment_id,
                start_time=start,
                end_time=end_time_for(start, int(template.duration)),
                cleaning_areas=list(template.cleaning_areas or []),
                products=list(template.products or []),
                employee_id=template.employee_id,
                employee_name=employee_name,
                log_date=log_date,
            )
            db.add(entry)
            result.logs.append(entry)
    log.info("cleaning logs generated user=%s date=%s created=%s", user_id, log_date, len(result.logs))
    return result
