"""camelCase JSON renderings of the models, shared by user and admin endpoints."""

from __future__ import annotations

from typing import Any

from .models import (
    Business,
    CleaningLog,
    CleaningTemplate,
    DiaryDevice,
    Establishment,
    FoodDiaryEntry,
    FoodItem,
    FoodTemplate,
    IncomingControl,
    Personnel,
    TemperatureLog,
    TemperatureReading,
    User,
)


def user_json(u: User) -> dict[str, Any]:
    return {
        "id": u.id,
        "email": u.email,
        "role": u.role,
        "managerName": u.manager_name,
        "profileImageUrl": u.profile_image_url,
        "isActive": u.is_active,
        "createdAt": u.created_at,
    }


def business_json(b: Business) -> dict[str, Any]:
    return {
        "id": b.id,
        "userId": b.user_id,
        "name": b.name,
        "type": b.type,
        "city": b.city,
        "address": b.address,
        "phone": b.phone,
        "email": b.email,
        "refrigeratorCount": b.refrigerator_count,
        "freezerCount": b.freezer_count,
        "hotDisplayCount": b.hot_display_count,
        "coldDisplayCount": b.cold_display_count,
        "otherEquipment": b.other_equipment,
        "createdAt": b.created_at,
    }


def temperature_log_json(t: TemperatureLog) -> dict[str, Any]:
    return {
        "id": t.id,
        "businessId": t.business_id,
        "equipmentType": t.equipment_type,
        "equipmentNumber": t.equipment_number,
        "temperature": t.temperature,
        "logDate": t.log_date,
        "createdAt": t.created_at,
    }


def establishment_json(e: Establishment) -> dict[str, Any]:
    return {
        "id": e.id,
        "userId": e.user_id,
        "establishmentType": e.establishment_type,
        "employeeCount": e.employee_count,
        "managerName": e.manager_name,
        "managerPhone": e.manager_phone,
        "managerEmail": e.manager_email,
        "companyName": e.company_name,
        "eik": e.eik,
        "eikVerified": e.eik_verified,
        "eikVerificationDate": e.eik_verification_date,
        "registrationAddress": e.registration_address,
        "contactEmail": e.contact_email,
        "vatRegistered": e.vat_registered,
        "vatNumber": e.vat_number,
        "createdAt": e.created_at,
        "updatedAt": e.updated_at,
    }


def personnel_json(p: Personnel) -> dict[str, Any]:
    return {
        "id": p.id,
        "establishmentId": p.establishment_id,
        "fullName": p.full_name,
        "egn": p.egn,
        "position": p.position,
        "healthBookImageUrl": p.health_book_image_url,
        "photoUrl": p.photo_url,
        "healthBookNumber": p.health_book_number,
        "healthBookValidity": p.health_book_validity,
        "createdAt": p.created_at,
        "updatedAt": p.updated_at,
    }


def device_json(d: DiaryDevice) -> dict[str, Any]:
    return {
        "id": d.id,
        "userId": d.user_id,
        "establishmentId": d.establishment_id,
        "deviceType": d.device_type,
        "deviceName": d.device_name,
        "minTemp": d.min_temp,
        "maxTemp": d.max_temp,
        "createdAt": d.created_at,
        "updatedAt": d.updated_at,
    }


def reading_json(r: TemperatureReading) -> dict[str, Any]:
    return {
        "id": r.id,
        "deviceId": r.device_id,
        "readingDate": r.reading_date,
        "hour": r.hour,
        "temperature": r.temperature,
        "notes": r.notes,
        "createdAt": r.created_at,
    }


def incoming_control_json(c: IncomingControl) -> dict[str, Any]:
    return {
        "id": c.id,
        "userId": c.user_id,
        "establishmentId": c.establishment_id,
        "controlDate": c.control_date,
        "imageUrl": c.image_url,
        "notes": c.notes,
        "createdAt": c.created_at,
        "updatedAt": c.updated_at,
    }


def cleaning_template_json(t: CleaningTemplate) -> dict[str, Any]:
    return {
        "id": t.id,
        "userId": t.user_id,
        "establishmentId": t.establishment_id,
        "name": t.name,
        "daysOfWeek": list(t.days_of_week or []),
        "cleaningHours": list(t.cleaning_hours or []),
        "duration": t.duration,
        "products": list(t.products or []),
        "cleaningAreas": list(t.cleaning_areas or []),
        "employeeId": t.employee_id,
        "createdAt": t.created_at,
        "updatedAt": t.updated_at,
    }


def cleaning_log_json(c: CleaningLog) -> dict[str, Any]:
    return {
        "id": c.id,
        "userId": c.user_id,
        "establishmentId": c.establishment_id,
        "startTime": c.start_time,
        "endTime": c.end_time,
        "cleaningAreas": list(c.cleaning_areas or []),
        "products": list(c.products or []),
        "employeeId": c.employee_id,
        "employeeName": c.employee_name,
        "notes": c.notes,
        "logDate": c.log_date,
        "createdAt": c.created_at,
        "updatedAt": c.updated_at,
    }


def food_item_json(f: FoodItem) -> dict[str, Any]:
    return {
        "id": f.id,
        "userId": f.user_id,
        "establishmentId": f.establishment_id,
        "name": f.name,
        "cookingTemperature": f.cooking_temperature,
        "shelfLifeHours": f.shelf_life_hours,
        "createdAt": f.created_at,
        "updatedAt": f.updated_at,
    }


def food_diary_json(e: FoodDiaryEntry, food_item_name: str | None = None) -> dict[str, Any]:
    return {
        "id": e.id,
        "userId": e.user_id,
        "foodItemId": e.food_item_id,
        "foodItemName": food_item_name,
        "establishmentId": e.establishment_id,
        "date": e.date,
        "time": e.time,
        "quantity": e.quantity,
        "temperature": e.temperature,
        "shelfLifeHours": e.shelf_life_hours,
        "notes": e.notes,
        "createdAt": e.created_at,
        "updatedAt": e.updated_at,
    }


def food_template_json(t: FoodTemplate) -> dict[str, Any]:
    return {
        "id": t.id,
        "userId": t.user_id,
        "establishmentId": t.establishment_id,
        "employeeId": t.employee_id,
        "name": t.name,
        "daysOfWeek": list(t.days_of_week or []),
        "preparationTimes": list(t.preparation_times or []),
        "foodItemIds": list(t.food_item_ids or []),
        "createdAt": t.created_at,
        "updatedAt": t.updated_at,
    }
