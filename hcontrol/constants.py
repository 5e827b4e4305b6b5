"""Domain vocabularies: establishment types, monitored equipment and weekdays."""

from __future__ import annotations

VALID_ESTABLISHMENT_TYPES: tuple[str, ...] = (
    "Ресторант",
    "Бирария",
    "Механа",
    "Кафе-аператив",
    "Закусвалня",
    "Фаст-Фууд",
    "Павилион ТХ",
    "Павилион",
    "Пекарна",
    "Баничарница",
    "Стол",
    "Бюфет",
    "Бар",
    "Бийч-бар",
    "Пуул-бар",
    "Кафене",
    "Пицария",
    "Магазин",
    "Магазин за месо",
    "Магазин за риба",
    "Магазин за пак. стоки",
    "Кулинарен магазин",
    "Супермаркет",
    "Дискотека",
    "Нощен-бар",
    "Цех за производство",
    "Снек-бар",
    "Кухня-майка",
    "Гостилница",
    "Коктейл-бар",
    "Склад за хр. продукти",
    "Каравана",
    "Винарна",
    "Пивница",
    "Кафетерия",
    "Кафе-сладкарница",
    "Сладкарница",
    "Сладоледен салон",
    "Чайна",
    "Пиано-бар",
    "Магазин за зеленчуци",
    "Казино",
    "Разливочна",
    "Детска млечна кухня",
    "Друг вид обект",
)

# Diary device type -> (min, max) °C
DEVICE_TEMPERATURE_RANGES: dict[str, tuple[float, float]] = {
    "Фризери": (-36.0, -18.0),
    "Хладилници": (0.0, 4.0),
    "Топли витрини": (63.0, 80.0),
    "Фритюрници": (160.0, 180.0),
}
DEVICE_TYPE_ORDER: tuple[str, ...] = tuple(DEVICE_TEMPERATURE_RANGES)

READING_HOURS: tuple[int, ...] = (10, 17)
BACKFILL_DAYS = 15

# Legacy business equipment: count column -> (min, max) °C
EQUIPMENT_TEMPERATURE_RANGES: dict[str, tuple[float, float]] = {
    "refrigerator": (0.0, 4.0),
    "freezer": (-36.0, -18.0),
    "hot_display": (63.0, 80.0),
    "cold_display": (0.0, 4.0),
}

WEEKDAYS: tuple[str, ...] = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

FOOD_DIARY_SLOTS: tuple[str, ...] = ("08:00", "17:00")


def canonical_day(value: object) -> str | None:
    """Map a day name in any letter case to its canonical capitalized form."""
    if not isinstance(value, str):
        return None
    wanted = value.strip().lower()
    for day in WEEKDAYS:
        if day.lower() == wanted:
            return day
    return None
