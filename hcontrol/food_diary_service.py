"""Food diary generation.

Two flavours: a rolling back-fill over every food item of the user at the
fixed daily slots, and a template-driven pass for a single date. Both skip
(user, item, date, time) combinations that already exist.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy.orm import Session

from .constants import FOOD_DIARY_SLOTS, WEEKDAYS, canonical_day
from .models import FoodDiaryEntry, FoodItem, FoodTemplate
from .validation import parse_date

log = logging.getLogger(__name__)


@dataclass
class BackfillResult:
    entries_generated: int
    days_covered: int
    food_items_processed: int
    start_date: str
    end_date: str


def _existing_keys(db: Session, user_id: int, dates: list[str]) -> set[tuple[int, str, str]]:
    rows = db.query(FoodDiaryEntry.food_item_id, FoodDiaryEntry.date, FoodDiaryEntry.time).filter(
        FoodDiaryEntry.user_id == user_id, FoodDiaryEntry.date.in_(dates)
    )
    return {(item_id, d, t) for item_id, d, t in rows}


def _entry_for(user_id: int, item: FoodItem, day: str, slot: str) -> FoodDiaryEntry:
    return FoodDiaryEntry(
        user_id=user_id,
        food_item_id=item.id,
        establishment_id=item.establishment_id,
        date=day,
        time=slot,
        quantity=None,
        temperature=item.cooking_temperature,
        shelf_life_hours=item.shelf_life_hours,
        notes=None,
    )


def backfill_food_diary(db: Session, user_id: int, days: int, today: date | None = None) -> BackfillResult | None:
    """Entries for today-``days``..today at every daily slot; ``None`` when the user has no items."""
    items = db.query(FoodItem).filter(FoodItem.user_id == user_id).order_by(FoodItem.id.asc()).all()
    if not items:
        return None
    end = today or date.today()
    start = end - timedelta(days=days)
    dates = [(start + timedelta(days=i)).isoformat() for i in range(days + 1)]
    existing = _existing_keys(db, user_id, dates)
    created = 0
    for day in dates:
        for item in items:
            for slot in FOOD_DIARY_SLOTS:
                if (item.id, day, slot) in existing:
                    continue
                db.add(_entry_for(user_id, item, day, slot))
                created += 1
    log.info("food diary backfill user=%s days=%s created=%s", user_id, len(dates), created)
    return BackfillResult(
        entries_generated=created,
        days_covered=len(dates),
        food_items_processed=len(items),
        start_date=start.isoformat(),
        end_date=end.isoformat(),
    )


def generate_from_templates(db: Session, user_id: int, day: str) -> tuple[int, int]:
    """Entries for ``day`` from every template scheduled on its weekday.

    Returns ``(entries_generated, templates_processed)``.
    """
    weekday = WEEKDAYS[parse_date(day).weekday()]
    templates = db.query(FoodTemplate).filter(FoodTemplate.user_id == user_id).order_by(FoodTemplate.id.asc()).all()
    active = [t for t in templates if any(canonical_day(d) == weekday for d in (t.days_of_week or []))]
    existing = _existing_keys(db, user_id, [day])
    created = 0
    for template in active:
        item_ids = [i for i in (template.food_item_ids or []) if isinstance(i, int)]
        if not item_ids:
            continue
        items = db.query(FoodItem).filter(FoodItem.user_id == user_id, FoodItem.id.in_(item_ids)).all()
        for slot in template.preparation_times or []:
            for item in items:
                key = (item.id, day, slot)
                if key in existing:
                    continue
                entry = _entry_for(user_id, item, day, slot)
                if template.establishment_id is not None:
                    entry.establishment_id = template.establishment_id
                db.add(entry)
                existing.add(key)
                created += 1
    log.info("food diary from templates user=%s date=%s templates=%s created=%s", user_id, day, len(active), created)
    return created, len(active)
