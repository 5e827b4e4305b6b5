"""Format-neutral document model shared by the PDF and image renderers.

The builders at the bottom turn query results into the three HACCP diaries.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

FOOTER = "Генерирано от H CONTROL"
EMPTY = "-"


@dataclass
class Section:
    heading: str
    header: list[str]
    rows: list[list[str]]
    caption: str | None = None
    # relative column widths; equal when omitted
    widths: list[float] | None = None


@dataclass
class Document:
    title: str
    subtitle: str | None = None
    meta: list[tuple[str, str]] = field(default_factory=list)
    sections: list[Section] = field(default_factory=list)
    footer: str = FOOTER
    empty_text: str = "Няма данни за избрания период"


def _generated_at(now: datetime | None = None) -> str:
    return (now or datetime.now()).strftime("%d.%m.%Y %H:%M")


def _bg_date(iso: str) -> str:
    try:
        return datetime.strptime(iso, "%Y-%m-%d").strftime("%d.%m.%Y")
    except ValueError:
        return iso


def _period(start: str | None, end: str | None) -> str:
    if start and end:
        return f"{_bg_date(start)} - {_bg_date(end)}"
    if start:
        return f"от {_bg_date(start)}"
    if end:
        return f"до {_bg_date(end)}"
    return "Всички записи"


def _text(value: Any) -> str:
    if value is None or value == "":
        return EMPTY
    return str(value)


def _fmt_temp(value: Any) -> str:
    if value is None:
        return EMPTY
    return f"{float(value):.1f}°C"


def temperature_document(
    establishment: str,
    day: str,
    groups: Sequence[tuple[str, Sequence[tuple[Any, Iterable[Any]]]]],
    now: datetime | None = None,
) -> Document:
    """Daily report over every device.

    ``groups`` is ``[(device_type, [(device, readings), ...]), ...]`` already in
    display order.
    """
    doc = Document(
        title="Дневен отчет - Всички дневници",
        subtitle="Фризери, Хладилници, Топли витрини, Фритюрници",
        meta=[("Обект:", establishment), ("Дата:", _bg_date(day)), ("Генериран:", _generated_at(now))],
    )
    for device_type, devices in groups:
        for device, readings in devices:
            rows = [
                [f"{r.hour:02d}:00", _fmt_temp(r.temperature), _text(r.notes)]
                for r in sorted(readings, key=lambda r: r.hour)
            ]
            doc.sections.append(
                Section(
                    heading=f"ДНЕВНИК {device_type.upper()}",
                    caption=f"{device.device_name} ({device.min_temp:g}°C до {device.max_temp:g}°C)",
                    header=["Час", "Температура", "Бележки"],
                    rows=rows,
                    widths=[1, 1.2, 2.5],
                )
            )
    return doc


def food_diary_document(
    establishment: str,
    start: str | None,
    end: str | None,
    entries: Iterable[tuple[Any, str | None]],
    now: datetime | None = None,
) -> Document:
    """``entries`` are ``(FoodDiaryEntry, food item name)`` pairs ordered by date and time."""
    doc = Document(
        title="Дневник Храни",
        meta=[("Обект:", establishment), ("Период:", _period(start, end)), ("Генериран:", _generated_at(now))],
    )
    by_day: dict[str, list[list[str]]] = {}
    for entry, name in entries:
        by_day.setdefault(entry.date, []).append(
            [
                _text(entry.time),
                _text(name),
                _text(entry.quantity),
                _fmt_temp(entry.temperature),
                f"{entry.shelf_life_hours} ч." if entry.shelf_life_hours else EMPTY,
                _text(entry.notes),
            ]
        )
    for day, rows in by_day.items():
        doc.sections.append(
            Section(
                heading=_bg_date(day),
                header=["Час", "Храна", "Количество", "Темп.", "Срок", "Бележки"],
                rows=rows,
                widths=[0.8, 2.2, 1.2, 1, 0.8, 2],
            )
        )
    return doc


def cleaning_document(
    establishment: str,
    start: str | None,
    end: str | None,
    logs: Iterable[Any],
    now: datetime | None = None,
) -> Document:
    """``logs`` are CleaningLog rows ordered by date and start time."""
    doc = Document(
        title="Дневник Почистване",
        meta=[("Обект:", establishment), ("Период:", _period(start, end)), ("Генериран:", _generated_at(now))],
    )
    by_day: dict[str, list[list[str]]] = {}
    for entry in logs:
        by_day.setdefault(entry.log_date, []).append(
            [
                f"{entry.start_time} - {entry.end_time}",
                ", ".join(entry.cleaning_areas or []) or EMPTY,
                ", ".join(entry.products or []) or EMPTY,
                _text(entry.employee_name),
                _text(entry.notes),
            ]
        )
    for day, rows in by_day.items():
        doc.sections.append(
            Section(
                heading=_bg_date(day),
                header=["Период", "Почиствани места", "Препарати", "Служител", "Бележки"],
                rows=rows,
                widths=[1.1, 2.4, 2, 1.4, 1.6],
            )
        )
    return doc
