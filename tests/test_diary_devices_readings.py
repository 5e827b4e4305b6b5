from datetime import date, timedelta

import pytest

from helpers import auth_headers


@pytest.fixture
def owner_with_device(client, make_user, make_establishment):
    owner = make_user()
    est = make_establishment(owner)
    r = client.post(
        "/api/diary-devices",
        json={"establishmentId": est["id"], "deviceType": "Хладилници", "deviceName": " Хладилник 1 "},
        headers=auth_headers(owner),
    )
    assert r.status_code == 201
    return owner, est, r.get_json()


# GIVEN: a new fridge device
# WHEN: it is created
# THEN: range comes from the type and 15 days x 2 readings are backfilled
def test_create_device_backfills_readings(client, owner_with_device):
    owner, _est, device = owner_with_device
    assert device["deviceName"] == "Хладилник 1"
    assert (device["minTemp"], device["maxTemp"]) == (0.0, 4.0)
    r = client.get(f"/api/temperature-readings/by-device/{device['id']}", headers=auth_headers(owner))
    readings = r.get_json()
    assert len(readings) == 30
    assert {x["hour"] for x in readings} == {10, 17}
    assert all(0.0 <= x["temperature"] <= 4.0 for x in readings)
    assert readings[0]["readingDate"] == date.today().isoformat()


def test_create_device_validation(client, user, make_establishment):
    est = make_establishment(user)
    h = auth_headers(user)
    r = client.post("/api/diary-devices", json={"deviceType": "Фризери", "deviceName": "F"}, headers=h)
    assert r.get_json()["code"] == "MISSING_ESTABLISHMENT_ID"
    r = client.post("/api/diary-devices", json={"establishmentId": est["id"], "deviceName": "F"}, headers=h)
    assert r.get_json()["code"] == "MISSING_DEVICE_TYPE"
    r = client.post(
        "/api/diary-devices", json={"establishmentId": est["id"], "deviceType": "Фурна", "deviceName": "F"}, headers=h
    )
    assert r.get_json()["code"] == "INVALID_DEVICE_TYPE"
    r = client.post(
        "/api/diary-devices", json={"establishmentId": est["id"], "deviceType": "Фризери", "deviceName": "  "}, headers=h
    )
    assert r.get_json()["code"] == "EMPTY_DEVICE_NAME"


def test_device_crud_and_ownership(client, make_user, owner_with_device):
    owner, est, device = owner_with_device
    other = make_user()
    url = f"/api/diary-devices/{device['id']}"
    assert client.get(url, headers=auth_headers(other)).status_code == 403
    r = client.put(url, json={"deviceName": ""}, headers=auth_headers(owner))
    assert r.get_json()["code"] == "INVALID_DEVICE_NAME"
    r = client.put(url, json={"deviceName": "Витрина"}, headers=auth_headers(owner))
    assert r.get_json()["deviceName"] == "Витрина"
    r = client.get(f"/api/diary-devices/user?establishmentId={est['id']}", headers=auth_headers(owner))
    assert [d["id"] for d in r.get_json()] == [device["id"]]
    r = client.delete(url, headers=auth_headers(owner))
    assert r.get_json() == {"message": "Device deleted successfully", "id": device["id"]}
    r = client.get(url, headers=auth_headers(owner))
    assert r.status_code == 404
    assert r.get_json()["code"] == "DEVICE_NOT_FOUND"


# GIVEN: a device with readings for today
# WHEN: generating readings for today again
# THEN: READINGS_ALREADY_EXIST; a future date generates two readings
def test_generate_readings(client, owner_with_device):
    owner, _est, device = owner_with_device
    h = auth_headers(owner)
    today = date.today().isoformat()
    r = client.post("/api/temperature-readings/generate", json={"deviceId": device["id"], "date": today}, headers=h)
    assert r.status_code == 400
    assert r.get_json()["code"] == "READINGS_ALREADY_EXIST"
    future = (date.today() + timedelta(days=3)).isoformat()
    r = client.post("/api/temperature-readings/generate", json={"deviceId": device["id"], "date": future}, headers=h)
    assert r.status_code == 201
    assert r.get_json()["readingsGenerated"] == 2
    r = client.post("/api/temperature-readings/generate", json={"date": future}, headers=h)
    assert r.get_json()["code"] == "MISSING_DEVICE_ID"
    r = client.post("/api/temperature-readings/generate", json={"deviceId": device["id"], "date": "2025-13-01"}, headers=h)
    assert r.get_json()["code"] == "INVALID_DATE_FORMAT"


def test_generate_daily_is_idempotent(client, owner_with_device):
    owner, _est, _device = owner_with_device
    h = auth_headers(owner)
    day = (date.today() + timedelta(days=10)).isoformat()
    first = client.post("/api/temperature-readings/generate-daily", json={"date": day}, headers=h).get_json()
    assert first["readingsGenerated"] == 2
    second = client.post("/api/temperature-readings/generate-daily", json={"date": day}, headers=h).get_json()
    assert second["readingsGenerated"] == 0
    assert second["devicesProcessed"] == 1


def test_reading_notes(client, make_user, owner_with_device):
    owner, _est, device = owner_with_device
    h = auth_headers(owner)
    reading = client.get(f"/api/temperature-readings/by-device/{device['id']}", headers=h).get_json()[0]
    url = f"/api/temperature-readings/{reading['id']}/notes"
    r = client.put(url, json={"notes": "  Размразяване "}, headers=h)
    assert r.get_json()["notes"] == "Размразяване"
    r = client.put(url, json={"notes": 5}, headers=h)
    assert r.get_json()["code"] == "INVALID_NOTES_TYPE"
    assert client.put(url, json={"notes": "x"}, headers=auth_headers(make_user())).status_code == 403
    r = client.put("/api/temperature-readings/999999/notes", json={"notes": "x"}, headers=h)
    assert r.get_json()["code"] == "READING_NOT_FOUND"


# GIVEN: backfilled readings
# WHEN: exporting one device as CSV
# THEN: BOM-prefixed CSV with HH:00 hours and an attachment filename
def test_export_device_csv(client, owner_with_device):
    owner, _est, device = owner_with_device
    today = date.today().isoformat()
    r = client.get(
        f"/api/temperature-readings/export/{device['id']}?startDate={today}&endDate={today}",
        headers=auth_headers(owner),
    )
    assert r.status_code == 200
    assert r.mimetype == "text/csv"
    assert f"device-{device['id']}-readings-{today}-to-{today}.csv" in r.headers["Content-Disposition"]
    text = r.data.decode("utf-8")
    assert text.startswith("﻿Date,Hour,Temperature,Notes\n")
    lines = text.strip().split("\n")
    assert len(lines) == 3
    assert lines[1].startswith(f"{today},10:00,")


def test_export_all_daily(client, make_user, owner_with_device):
    owner, _est, _device = owner_with_device
    h = auth_headers(owner)
    today = date.today().isoformat()
    r = client.get(f"/api/temperature-readings/export-all-daily?date={today}", headers=h)
    data = r.get_json()
    assert data["date"] == today
    assert len(data["devices"]) == 1
    assert len(data["devices"][0]["readings"]) == 2
    r = client.get("/api/temperature-readings/export-all-daily?date=1999-01-01", headers=h)
    assert r.get_json()["code"] == "NO_READINGS"
    r = client.get(f"/api/temperature-readings/export-all-daily?date={today}", headers=auth_headers(make_user()))
    assert r.get_json()["code"] == "NO_DEVICES"
    r = client.get("/api/temperature-readings/export-all-daily", headers=h)
    assert r.get_json()["code"] == "MISSING_DATE"
