import io
from datetime import date, datetime
from types import SimpleNamespace

import pytest
from openpyxl import load_workbook

from helpers import auth_headers
from hcontrol.report import Document, Section, render_image, render_pdf
from hcontrol.report.document import cleaning_document, temperature_document

TODAY = date.today().isoformat()
NOW = datetime(2025, 6, 2, 14, 30)


@pytest.fixture
def owner_with_readings(client, make_user, make_establishment):
    owner = make_user()
    est = make_establishment(owner, companyName="Бистро Експорт")
    client.post(
        "/api/diary-devices",
        json={"establishmentId": est["id"], "deviceType": "Хладилници", "deviceName": "Хладилник 1"},
        headers=auth_headers(owner),
    )
    return owner, est


def test_temperature_document_layout():
    device = SimpleNamespace(device_name="Фризер 1", min_temp=-36.0, max_temp=-18.0)
    readings = [SimpleNamespace(hour=17, temperature=-20, notes=None), SimpleNamespace(hour=10, temperature=-19.55, notes="ok")]
    doc = temperature_document("Обект", "2025-06-02", [("Фризери", [(device, readings)])], now=NOW)
    assert ("Дата:", "02.06.2025") in doc.meta
    assert ("Генериран:", "02.06.2025 14:30") in doc.meta
    section = doc.sections[0]
    assert section.heading == "ДНЕВНИК ФРИЗЕРИ"
    assert section.caption == "Фризер 1 (-36°C до -18°C)"
    assert section.rows[0][0] == "10:00"
    assert section.rows[1] == ["17:00", "-20.0°C", "-"]


def test_cleaning_document_groups_by_day():
    logs = [
        SimpleNamespace(
            log_date="2025-06-02", start_time="09:00", end_time="10:00", cleaning_areas=["Кухня", "Бар"],
            products=["Препарат"], employee_name=None, notes=None,
        ),
        SimpleNamespace(
            log_date="2025-06-03", start_time="09:00", end_time="10:00", cleaning_areas=[],
            products=["Препарат"], employee_name="Иван", notes="",
        ),
    ]
    doc = cleaning_document("Обект", "2025-06-02", None, logs, now=NOW)
    assert ("Период:", "от 02.06.2025") in doc.meta
    assert [s.heading for s in doc.sections] == ["02.06.2025", "03.06.2025"]
    assert doc.sections[0].rows[0][1] == "Кухня, Бар"
    assert doc.sections[1].rows[0][1] == "-"


def test_renderers_produce_their_formats():
    doc = Document(
        title="Дневник Храни",
        meta=[("Обект:", "Тест")],
        sections=[Section(heading="02.06.2025", header=["Час", "Храна"], rows=[["08:00", "Супа"]] * 80)],
    )
    assert render_pdf(doc).startswith(b"%PDF")
    assert render_image(doc, "png").startswith(b"\x89PNG")
    assert render_image(doc, "jpeg").startswith(b"\xff\xd8")
    assert render_image(Document(title="Празен"), "png").startswith(b"\x89PNG")
    with pytest.raises(ValueError):
        render_image(doc, "gif")


# GIVEN: a fridge with readings for today
# WHEN: the daily temperature report is exported in each format
# THEN: the attachment carries the right type, extension and no-store caching
@pytest.mark.parametrize(
    "fmt, mimetype, ext, magic",
    [
        ("pdf", "application/pdf", "pdf", b"%PDF"),
        ("png", "image/png", "png", b"\x89PNG"),
        ("jpeg", "image/jpeg", "jpg", b"\xff\xd8"),
    ],
)
def test_export_temperature(client, owner_with_readings, fmt, mimetype, ext, magic):
    owner, est = owner_with_readings
    r = client.get(
        f"/api/export/temperature/{TODAY}?format={fmt}&establishmentId={est['id']}", headers=auth_headers(owner)
    )
    assert r.status_code == 200
    assert r.mimetype == mimetype
    assert r.headers["Cache-Control"] == "no-store"
    assert f'filename="temperature-report-{TODAY}.{ext}"' in r.headers["Content-Disposition"]
    assert r.data.startswith(magic)


def test_export_temperature_errors(client, owner_with_readings, make_user):
    owner, _est = owner_with_readings
    h = auth_headers(owner)
    assert client.get(f"/api/export/temperature/{TODAY}?format=gif", headers=h).get_json()["code"] == "INVALID_FORMAT"
    assert client.get("/api/export/temperature/02-06-2025", headers=h).get_json()["code"] == "INVALID_DATE"
    r = client.get("/api/export/temperature/1999-01-01", headers=h)
    assert r.status_code == 404
    assert r.get_json()["code"] == "NO_DATA"
    r = client.get(f"/api/export/temperature/{TODAY}", headers=auth_headers(make_user()))
    assert r.get_json()["code"] == "NO_DATA"
    assert client.get(f"/api/export/temperature/{TODAY}").status_code == 401


def test_export_food_diary(client, user):
    h = auth_headers(user)
    assert client.get("/api/export/food-diary", headers=h).get_json()["code"] == "NO_DATA"
    client.post("/api/food-items", json={"name": "Боб чорба", "shelfLifeHours": 12, "cookingTemperature": 90}, headers=h)
    client.post("/api/food-diary/generate", json={"daysToGenerate": 0}, headers=h)
    r = client.get(f"/api/export/food-diary?startDate={TODAY}&endDate={TODAY}", headers=h)
    assert r.status_code == 200
    assert r.data.startswith(b"%PDF")
    assert f"food-diary-{TODAY}-to-{TODAY}.pdf" in r.headers["Content-Disposition"]
    r = client.get("/api/export/food-diary.xlsx", headers=h)
    assert r.data.startswith(b"PK")
    ws = load_workbook(io.BytesIO(r.data)).active
    assert ws.title == "Дневник Храни"
    assert ws["A1"].value == "Дата"
    assert ws.max_row == 3
    assert ws["C2"].value == "Боб чорба"
    assert client.get("/api/export/food-diary?startDate=bad", headers=h).get_json()["code"] == "INVALID_DATE"


def test_export_cleaning_logs(client, user):
    h = auth_headers(user)
    client.post(
        "/api/cleaning-logs",
        json={
            "startTime": "08:00",
            "endTime": "09:00",
            "cleaningAreas": ["Кухня"],
            "products": ["Препарат"],
            "logDate": "2025-05-01",
        },
        headers=h,
    )
    r = client.get("/api/export/cleaning-logs?format=png&startDate=2025-05-01&endDate=2025-05-31", headers=h)
    assert r.status_code == 200
    assert r.data.startswith(b"\x89PNG")
    assert "cleaning-logs-2025-05-01-to-2025-05-31.png" in r.headers["Content-Disposition"]
    r = client.get("/api/export/cleaning-logs?startDate=2025-06-01", headers=h)
    assert r.get_json()["code"] == "NO_DATA"
    r = client.get("/api/export/cleaning-logs?establishmentId=999999", headers=h)
    assert r.get_json()["code"] == "NO_DATA"
