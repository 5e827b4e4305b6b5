"""Temperature generation jobs.

Every job follows the same shape: compute the expected rows for a date, look up
what already exists, insert only the missing ones. Running a job twice for the
same date never creates duplicates.
"""

from __future__ import annotations

import logging
import random
from datetime import date, timedelta

from sqlalchemy.orm import Session

from .constants import BACKFILL_DAYS, DEVICE_TYPE_ORDER, EQUIPMENT_TEMPERATURE_RANGES, READING_HOURS
from .models import Business, DiaryDevice, TemperatureLog, TemperatureReading

log = logging.getLogger(__name__)

_rng = random.Random()


def random_temperature(min_temp: float, max_temp: float) -> float:
    return round(_rng.uniform(min_temp, max_temp), 1)


def device_sort_key(device: DiaryDevice) -> tuple[int, str]:
    """Report order: freezers, fridges, hot displays, fryers, then by name."""
    try:
        rank = DEVICE_TYPE_ORDER.index(device.device_type)
    except ValueError:
        rank = len(DEVICE_TYPE_ORDER)
    return rank, device.device_name


def readings_exist(db: Session, device_id: int, reading_date: str) -> bool:
    return (
        db.query(TemperatureReading.id)
        .filter(TemperatureReading.device_id == device_id, TemperatureReading.reading_date == reading_date)
        .first()
        is not None
    )


def generate_device_readings(db: Session, device: DiaryDevice, reading_date: str) -> list[TemperatureReading]:
    """Add the scheduled readings of ``device`` for ``reading_date`` that are not there yet.

    The caller owns the transaction.
    """
    existing_hours = {
        h
        for (h,) in db.query(TemperatureReading.hour).filter(
            TemperatureReading.device_id == device.id, TemperatureReading.reading_date == reading_date
        )
    }
    created: list[TemperatureReading] = []
    for hour in READING_HOURS:
        if hour in existing_hours:
            continue
        reading = TemperatureReading(
            device_id=device.id,
            reading_date=reading_date,
            hour=hour,
            temperature=random_temperature(device.min_temp, device.max_temp),
        )
        db.add(reading)
        created.append(reading)
    return created


def backfill_device(db: Session, device: DiaryDevice, today: date | None = None) -> int:
    """Fill the last BACKFILL_DAYS days (today included) for a freshly created device."""
    today = today or date.today()
    total = 0
    for days_ago in range(BACKFILL_DAYS):
        day = (today - timedelta(days=days_ago)).isoformat()
        total += len(generate_device_readings(db, device, day))
    log.info("backfilled device=%s readings=%s", device.id, total)
    return total


def generate_daily_readings(db: Session, devices: list[DiaryDevice], reading_date: str) -> int:
    created = 0
    for device in devices:
        created += len(generate_device_readings(db, device, reading_date))
    log.info("daily readings date=%s devices=%s created=%s", reading_date, len(devices), created)
    return created


# --- Legacy business equipment logs ---
_COUNT_COLUMNS = {
    "refrigerator": "refrigerator_count",
    "freezer": "freezer_count",
    "hot_display": "hot_display_count",
    "cold_display": "cold_display_count",
}


def generate_business_logs(db: Session, businesses: list[Business], log_date: str) -> tuple[int, int]:
    """One log per counted equipment piece per business for ``log_date``.

    Returns ``(created, skipped)``.
    """
    created = skipped = 0
    for business in businesses:
        existing = {
            (t, n)
            for t, n in db.query(TemperatureLog.equipment_type, TemperatureLog.equipment_number).filter(
                TemperatureLog.business_id == business.id, TemperatureLog.log_date == log_date
            )
        }
        for equipment_type, column in _COUNT_COLUMNS.items():
            low, high = EQUIPMENT_TEMPERATURE_RANGES[equipment_type]
            for number in range(1, int(getattr(business, column) or 0) + 1):
                if (equipment_type, number) in existing:
                    skipped += 1
                    continue
                db.add(
                    TemperatureLog(
                        business_id=business.id,
                        equipment_type=equipment_type,
                        equipment_number=number,
                        temperature=random_temperature(low, high),
                        log_date=log_date,
                    )
                )
                created += 1
    log.info("business logs date=%s created=%s skipped=%s", log_date, created, skipped)
    return created, skipped
