"""SQLAlchemy models for the HACCP record books.

Dates are stored as ``YYYY-MM-DD`` strings, times as ``HH:MM`` and timestamps
as ISO-8601 UTC strings. List-valued columns use JSON.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import JSON, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


def utcnow_iso() -> str:
    return datetime.now(UTC).isoformat()


# --- Accounts ---
class User(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(200), unique=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(20), default="user")  # admin, moderator, user
    manager_name: Mapped[str] = mapped_column(String(200), nullable=True)
    profile_image_url: Mapped[str] = mapped_column(Text, nullable=True)
    is_active: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[str] = mapped_column(String(40), default=utcnow_iso)


class Business(Base):
    __tablename__ = "businesses"
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(200))
    type: Mapped[str] = mapped_column(String(100))
    city: Mapped[str] = mapped_column(String(120))
    address: Mapped[str] = mapped_column(String(255))
    phone: Mapped[str] = mapped_column(String(50))
    email: Mapped[str] = mapped_column(String(200))
    refrigerator_count: Mapped[int] = mapped_column(Integer, default=0)
    freezer_count: Mapped[int] = mapped_column(Integer, default=0)
    hot_display_count: Mapped[int] = mapped_column(Integer, default=0)
    cold_display_count: Mapped[int] = mapped_column(Integer, default=0)
    other_equipment: Mapped[str] = mapped_column(Text, nullable=True)
    created_at: Mapped[str] = mapped_column(String(40), default=utcnow_iso)


class TemperatureLog(Base):
    __tablename__ = "temperature_logs"
    id: Mapped[int] = mapped_column(primary_key=True)
    business_id: Mapped[int] = mapped_column(ForeignKey("businesses.id", ondelete="CASCADE"))
    equipment_type: Mapped[str] = mapped_column(String(20))  # refrigerator, freezer, hot_display, cold_display
    equipment_number: Mapped[int] = mapped_column(Integer)
    temperature: Mapped[float] = mapped_column(Float)
    log_date: Mapped[str] = mapped_column(String(10))
    created_at: Mapped[str] = mapped_column(String(40), default=utcnow_iso)

    __table_args__ = (Index("ix_temperature_logs_business_date", "business_id", "log_date"),)


# --- Establishments & staff ---
class Establishment(Base):
    __tablename__ = "establishments"
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    establishment_type: Mapped[str] = mapped_column(String(100))
    employee_count: Mapped[int] = mapped_column(Integer)
    manager_name: Mapped[str] = mapped_column(String(200))
    manager_phone: Mapped[str] = mapped_column(String(50))
    manager_email: Mapped[str] = mapped_column(String(200))
    company_name: Mapped[str] = mapped_column(String(255))
    eik: Mapped[str] = mapped_column(String(13))
    eik_verified: Mapped[int] = mapped_column(Integer, default=0)
    eik_verification_date: Mapped[str] = mapped_column(String(10), nullable=True)
    registration_address: Mapped[str] = mapped_column(Text)
    contact_email: Mapped[str] = mapped_column(String(200))
    vat_registered: Mapped[int] = mapped_column(Integer, default=0)
    vat_number: Mapped[str] = mapped_column(String(20), nullable=True)
    created_at: Mapped[str] = mapped_column(String(40), default=utcnow_iso)
    updated_at: Mapped[str] = mapped_column(String(40), default=utcnow_iso)


class Personnel(Base):
    __tablename__ = "personnel"
    id: Mapped[int] = mapped_column(primary_key=True)
    establishment_id: Mapped[int] = mapped_column(
        ForeignKey("establishments.id", ondelete="CASCADE"), index=True
    )
    full_name: Mapped[str] = mapped_column(String(200))
    egn: Mapped[str] = mapped_column(String(20))
    position: Mapped[str] = mapped_column(String(120))
    health_book_image_url: Mapped[str] = mapped_column(Text, nullable=True)
    photo_url: Mapped[str] = mapped_column(Text, nullable=True)
    health_book_number: Mapped[str] = mapped_column(String(60))
    health_book_validity: Mapped[str] = mapped_column(String(10))
    created_at: Mapped[str] = mapped_column(String(40), default=utcnow_iso)
    updated_at: Mapped[str] = mapped_column(String(40), default=utcnow_iso)


# --- Temperature diaries ---
class DiaryDevice(Base):
    __tablename__ = "diary_devices"
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    establishment_id: Mapped[int] = mapped_column(
        ForeignKey("establishments.id", ondelete="CASCADE"), nullable=True
    )
    device_type: Mapped[str] = mapped_column(String(40))
    device_name: Mapped[str] = mapped_column(String(200))
    min_temp: Mapped[float] = mapped_column(Float)
    max_temp: Mapped[float] = mapped_column(Float)
    created_at: Mapped[str] = mapped_column(String(40), default=utcnow_iso)
    updated_at: Mapped[str] = mapped_column(String(40), default=utcnow_iso)


class TemperatureReading(Base):
    __tablename__ = "temperature_readings"
    id: Mapped[int] = mapped_column(primary_key=True)
    device_id: Mapped[int] = mapped_column(ForeignKey("diary_devices.id", ondelete="CASCADE"))
    reading_date: Mapped[str] = mapped_column(String(10))
    hour: Mapped[int] = mapped_column(Integer)
    temperature: Mapped[float] = mapped_column(Float)
    notes: Mapped[str] = mapped_column(Text, nullable=True)
    created_at: Mapped[str] = mapped_column(String(40), default=utcnow_iso)

    __table_args__ = (Index("ix_temperature_readings_device_date", "device_id", "reading_date"),)


# --- Incoming controls ---
class IncomingControl(Base):
    __tablename__ = "incoming_controls"
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    establishment_id: Mapped[int] = mapped_column(
        ForeignKey("establishments.id", ondelete="SET NULL"), nullable=True
    )
    control_date: Mapped[str] = mapped_column(String(10))
    image_url: Mapped[str] = mapped_column(Text)
    notes: Mapped[str] = mapped_column(Text, nullable=True)
    created_at: Mapped[str] = mapped_column(String(40), default=utcnow_iso)
    updated_at: Mapped[str] = mapped_column(String(40), default=utcnow_iso)


# --- Cleaning ---
class CleaningTemplate(Base):
    __tablename__ = "cleaning_templates"
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    establishment_id: Mapped[int] = mapped_column(
        ForeignKey("establishments.id", ondelete="CASCADE"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(200))
    days_of_week: Mapped[list] = mapped_column(JSON)
    cleaning_hours: Mapped[list] = mapped_column(JSON)
    duration: Mapped[int] = mapped_column(Integer)
    products: Mapped[list] = mapped_column(JSON)
    cleaning_areas: Mapped[list] = mapped_column(JSON)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("personnel.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[str] = mapped_column(String(40), default=utcnow_iso)
    updated_at: Mapped[str] = mapped_column(String(40), default=utcnow_iso)


class CleaningLog(Base):
    __tablename__ = "cleaning_logs"
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    establishment_id: Mapped[int] = mapped_column(
        ForeignKey("establishments.id", ondelete="CASCADE"), nullable=True
    )
    start_time: Mapped[str] = mapped_column(String(5))
    end_time: Mapped[str] = mapped_column(String(5))
    cleaning_areas: Mapped[list] = mapped_column(JSON)
    products: Mapped[list] = mapped_column(JSON)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("personnel.id", ondelete="SET NULL"), nullable=True
    )
    employee_name: Mapped[str] = mapped_column(String(200), nullable=True)
    notes: Mapped[str] = mapped_column(Text, nullable=True)
    log_date: Mapped[str] = mapped_column(String(10))
    created_at: Mapped[str] = mapped_column(String(40), default=utcnow_iso)
    updated_at: Mapped[str] = mapped_column(String(40), default=utcnow_iso)

    __table_args__ = (Index("ix_cleaning_logs_user_date", "user_id", "log_date"),)


# --- Food ---
class FoodItem(Base):
    __tablename__ = "food_items"
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    establishment_id: Mapped[int] = mapped_column(
        ForeignKey("establishments.id", ondelete="CASCADE"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(200))
    cooking_temperature: Mapped[int] = mapped_column(Integer, nullable=True)
    shelf_life_hours: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[str] = mapped_column(String(40), default=utcnow_iso)
    updated_at: Mapped[str] = mapped_column(String(40), default=utcnow_iso)


class FoodDiaryEntry(Base):
    __tablename__ = "food_diary"
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    food_item_id: Mapped[int] = mapped_column(ForeignKey("food_items.id", ondelete="CASCADE"))
    establishment_id: Mapped[int] = mapped_column(
        ForeignKey("establishments.id", ondelete="CASCADE"), nullable=True
    )
    date: Mapped[str] = mapped_column(String(10))
    time: Mapped[str] = mapped_column(String(5))
    quantity: Mapped[str] = mapped_column(String(100), nullable=True)
    temperature: Mapped[int] = mapped_column(Integer, nullable=True)
    shelf_life_hours: Mapped[int] = mapped_column(Integer, nullable=True)
    notes: Mapped[str] = mapped_column(Text, nullable=True)
    created_at: Mapped[str] = mapped_column(String(40), default=utcnow_iso)
    updated_at: Mapped[str] = mapped_column(String(40), default=utcnow_iso)

    __table_args__ = (Index("ix_food_diary_user_item_date", "user_id", "food_item_id", "date"),)


class FoodTemplate(Base):
    __tablename__ = "food_templates"
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    establishment_id: Mapped[int] = mapped_column(
        ForeignKey("establishments.id", ondelete="CASCADE"), nullable=True
    )
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("personnel.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(200))
    days_of_week: Mapped[list] = mapped_column(JSON)
    preparation_times: Mapped[list] = mapped_column(JSON)
    food_item_ids: Mapped[list] = mapped_column(JSON)
    created_at: Mapped[str] = mapped_column(String(40), default=utcnow_iso)
    updated_at: Mapped[str] = mapped_column(String(40), default=utcnow_iso)
