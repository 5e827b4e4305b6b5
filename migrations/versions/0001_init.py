"""Initial schema

Revision ID: 0001_init
Revises: 
Create Date: 2025-10-06
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.String(length=40), nullable=False),
        sa.Column("updated_at", sa.String(length=40), nullable=False),
    ]


def _owner() -> sa.Column:
    return sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)


def _establishment(ondelete: str = "CASCADE") -> sa.Column:
    return sa.Column(
        "establishment_id", sa.Integer(), sa.ForeignKey("establishments.id", ondelete=ondelete), nullable=True
    )


def _employee() -> sa.Column:
    return sa.Column("employee_id", sa.Integer(), sa.ForeignKey("personnel.id", ondelete="SET NULL"), nullable=True)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=200), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="user"),
        sa.Column("manager_name", sa.String(length=200)),
        sa.Column("profile_image_url", sa.Text()),
        sa.Column("is_active", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.String(length=40), nullable=False),
    )
    op.create_table(
        "businesses",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("type", sa.String(length=100), nullable=False),
        sa.Column("city", sa.String(length=120), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=False),
        sa.Column("refrigerator_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("freezer_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("hot_display_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("cold_display_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("other_equipment", sa.Text()),
        sa.Column("created_at", sa.String(length=40), nullable=False),
    )
    op.create_index("ix_businesses_user_id", "businesses", ["user_id"])
    op.create_table(
        "temperature_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "business_id", sa.Integer(), sa.ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("equipment_type", sa.String(length=20), nullable=False),
        sa.Column("equipment_number", sa.Integer(), nullable=False),
        sa.Column("temperature", sa.Float(), nullable=False),
        sa.Column("log_date", sa.String(length=10), nullable=False),
        sa.Column("created_at", sa.String(length=40), nullable=False),
    )
    op.create_index("ix_temperature_logs_business_date", "temperature_logs", ["business_id", "log_date"])
    op.create_table(
        "establishments",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        sa.Column("establishment_type", sa.String(length=100), nullable=False),
        sa.Column("employee_count", sa.Integer(), nullable=False),
        sa.Column("manager_name", sa.String(length=200), nullable=False),
        sa.Column("manager_phone", sa.String(length=50), nullable=False),
        sa.Column("manager_email", sa.String(length=200), nullable=False),
        sa.Column("company_name", sa.String(length=255), nullable=False),
        sa.Column("eik", sa.String(length=13), nullable=False),
        sa.Column("eik_verified", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("eik_verification_date", sa.String(length=10)),
        sa.Column("registration_address", sa.Text(), nullable=False),
        sa.Column("contact_email", sa.String(length=200), nullable=False),
        sa.Column("vat_registered", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("vat_number", sa.String(length=20)),
        *_timestamps(),
    )
    op.create_index("ix_establishments_user_id", "establishments", ["user_id"])
    op.create_table(
        "personnel",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "establishment_id",
            sa.Integer(),
            sa.ForeignKey("establishments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("egn", sa.String(length=20), nullable=False),
        sa.Column("position", sa.String(length=120), nullable=False),
        sa.Column("health_book_image_url", sa.Text()),
        sa.Column("photo_url", sa.Text()),
        sa.Column("health_book_number", sa.String(length=60), nullable=False),
        sa.Column("health_book_validity", sa.String(length=10), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_personnel_establishment_id", "personnel", ["establishment_id"])
    op.create_table(
        "diary_devices",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        _establishment(),
        sa.Column("device_type", sa.String(length=40), nullable=False),
        sa.Column("device_name", sa.String(length=200), nullable=False),
        sa.Column("min_temp", sa.Float(), nullable=False),
        sa.Column("max_temp", sa.Float(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_diary_devices_user_id", "diary_devices", ["user_id"])
    op.create_table(
        "temperature_readings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "device_id", sa.Integer(), sa.ForeignKey("diary_devices.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("reading_date", sa.String(length=10), nullable=False),
        sa.Column("hour", sa.Integer(), nullable=False),
        sa.Column("temperature", sa.Float(), nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("created_at", sa.String(length=40), nullable=False),
    )
    op.create_index(
        "ix_temperature_readings_device_date", "temperature_readings", ["device_id", "reading_date"]
    )
    op.create_table(
        "incoming_controls",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        _establishment("SET NULL"),
        sa.Column("control_date", sa.String(length=10), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=False),
        sa.Column("notes", sa.Text()),
        *_timestamps(),
    )
    op.create_index("ix_incoming_controls_user_id", "incoming_controls", ["user_id"])
    op.create_table(
        "cleaning_templates",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        _establishment(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("days_of_week", sa.JSON(), nullable=False),
        sa.Column("cleaning_hours", sa.JSON(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("products", sa.JSON(), nullable=False),
        sa.Column("cleaning_areas", sa.JSON(), nullable=False),
        _employee(),
        *_timestamps(),
    )
    op.create_index("ix_cleaning_templates_user_id", "cleaning_templates", ["user_id"])
    op.create_table(
        "cleaning_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        _establishment(),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("cleaning_areas", sa.JSON(), nullable=False),
        sa.Column("products", sa.JSON(), nullable=False),
        _employee(),
        sa.Column("employee_name", sa.String(length=200)),
        sa.Column("notes", sa.Text()),
        sa.Column("log_date", sa.String(length=10), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_cleaning_logs_user_id", "cleaning_logs", ["user_id"])
    op.create_index("ix_cleaning_logs_user_date", "cleaning_logs", ["user_id", "log_date"])
    op.create_table(
        "food_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        _establishment(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("cooking_temperature", sa.Integer()),
        sa.Column("shelf_life_hours", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_food_items_user_id", "food_items", ["user_id"])
    op.create_table(
        "food_diary",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        sa.Column(
            "food_item_id", sa.Integer(), sa.ForeignKey("food_items.id", ondelete="CASCADE"), nullable=False
        ),
        _establishment(),
        sa.Column("date", sa.String(length=10), nullable=False),
        sa.Column("time", sa.String(length=5), nullable=False),
        sa.Column("quantity", sa.String(length=100)),
        sa.Column("temperature", sa.Integer()),
        sa.Column("shelf_life_hours", sa.Integer()),
        sa.Column("notes", sa.Text()),
        *_timestamps(),
    )
    op.create_index("ix_food_diary_user_id", "food_diary", ["user_id"])
    op.create_index("ix_food_diary_user_item_date", "food_diary", ["user_id", "food_item_id", "date"])
    op.create_table(
        "food_templates",
        sa.Column("id", sa.Integer(), primary_key=True),
        _owner(),
        _establishment(),
        _employee(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("days_of_week", sa.JSON(), nullable=False),
        sa.Column("preparation_times", sa.JSON(), nullable=False),
        sa.Column("food_item_ids", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_food_templates_user_id", "food_templates", ["user_id"])


def downgrade() -> None:
    for table in (
        "food_templates",
        "food_diary",
        "food_items",
        "cleaning_logs",
        "cleaning_templates",
        "incoming_controls",
        "temperature_readings",
        "diary_devices",
        "personnel",
        "establishments",
        "temperature_logs",
        "businesses",
        "users",
    ):
        op.drop_table(table)
