from helpers import auth_headers

# 2025-06-02 is a Monday, 2025-06-03 a Tuesday
MONDAY = "2025-06-02"
TUESDAY = "2025-06-03"


def _template(client, owner, **overrides):
    body = {
        "name": " Основно почистване ",
        "daysOfWeek": ["monday", "Friday"],
        "cleaningHours": ["09:30", "22:45"],
        "duration": 2,
        "products": ["Дезинфектант"],
        "cleaningAreas": ["Кухня", "Склад"],
    }
    body.update(overrides)
    return client.post("/api/cleaning-templates", json=body, headers=auth_headers(owner))


def _log(client, owner, **overrides):
    body = {
        "startTime": "08:00",
        "endTime": "09:00",
        "cleaningAreas": ["Кухня"],
        "products": ["Препарат"],
        "logDate": "2025-05-01",
    }
    body.update(overrides)
    return client.post("/api/cleaning-logs", json=body, headers=auth_headers(owner))


def test_template_create_normalizes_days(client, user):
    r = _template(client, user)
    assert r.status_code == 201
    t = r.get_json()
    assert t["name"] == "Основно почистване"
    assert t["daysOfWeek"] == ["Monday", "Friday"]
    listed = client.get("/api/cleaning-templates", headers=auth_headers(user)).get_json()
    assert listed["total"] == 1
    assert listed["templates"][0]["id"] == t["id"]


def test_template_validation(client, user, make_user, make_establishment, make_employee):
    assert _template(client, user, name=" ").get_json()["code"] == "INVALID_NAME"
    assert _template(client, user, daysOfWeek=[]).get_json()["code"] == "INVALID_DAYS_OF_WEEK"
    assert _template(client, user, daysOfWeek=["Понеделник"]).get_json()["code"] == "INVALID_DAY_NAME"
    assert _template(client, user, cleaningHours=["9:30"]).get_json()["code"] == "INVALID_TIME_FORMAT"
    assert _template(client, user, duration=0).get_json()["code"] == "INVALID_DURATION"
    assert _template(client, user, duration=25).get_json()["code"] == "INVALID_DURATION"
    assert _template(client, user, products=[]).get_json()["code"] == "INVALID_PRODUCTS"
    assert _template(client, user, cleaningAreas="Кухня").get_json()["code"] == "INVALID_CLEANING_AREAS"
    assert _template(client, user, cleaningAreas=[1, 2]).get_json()["code"] == "INVALID_CLEANING_AREAS"
    assert _template(client, user, products=["Препарат", None]).get_json()["code"] == "INVALID_PRODUCTS"
    r = _template(client, user, cleaningHours=["09:30", "23:59"])
    assert r.status_code == 400
    assert r.get_json()["code"] == "INVALID_CLEANING_HOURS"
    est_a = make_establishment(user)
    est_b = make_establishment(user)
    employee = make_employee(user, est_a["id"])
    r = _template(client, user, establishmentId=est_b["id"], employeeId=employee["id"])
    assert r.status_code == 403
    assert r.get_json()["code"] == "EMPLOYEE_ESTABLISHMENT_MISMATCH"
    foreign = make_establishment(make_user())
    r = _template(client, user, establishmentId=foreign["id"])
    assert r.get_json()["code"] == "ESTABLISHMENT_NOT_FOUND"


def test_template_update_and_delete(client, user, make_user):
    t = _template(client, user).get_json()
    url = f"/api/cleaning-templates/{t['id']}"
    h = auth_headers(user)
    r = client.put(url, json={"daysOfWeek": ["SUNDAY"], "duration": 3}, headers=h)
    body = r.get_json()
    assert body["daysOfWeek"] == ["Sunday"]
    assert body["duration"] == 3
    assert client.get(url, headers=auth_headers(make_user())).status_code == 403
    assert client.delete(url, headers=h).get_json() == {"message": "Template deleted successfully", "id": t["id"]}
    assert client.get(url, headers=h).status_code == 404


# GIVEN: a template running on Mondays at 09:30 and 22:45 for two hours
# WHEN: generating cleaning logs for a Monday twice
# THEN: two logs are created once, the late one capped at 23:59
def test_generate_from_templates(client, user, make_establishment, make_employee):
    est = make_establishment(user)
    employee = make_employee(user, est["id"], fullName="Иван Иванов")
    _template(client, user, establishmentId=est["id"], employeeId=employee["id"])
    h = auth_headers(user)
    r = client.post("/api/cleaning-logs/generate", json={"date": MONDAY}, headers=h)
    data = r.get_json()
    assert data["created"] == 2
    assert data["skipped"] is False
    times = sorted((log["startTime"], log["endTime"]) for log in data["logs"])
    assert times == [("09:30", "11:30"), ("22:45", "23:59")]
    assert {log["employeeName"] for log in data["logs"]} == {"Иван Иванов"}
    again = client.post("/api/cleaning-logs/generate", json={"date": MONDAY}, headers=h).get_json()
    assert again["created"] == 0
    assert again["skipped"] is True
    tuesday = client.post("/api/cleaning-logs/generate", json={"date": TUESDAY}, headers=h).get_json()
    assert tuesday["created"] == 0
    r = client.get(f"/api/cleaning-logs?logDate={MONDAY}", headers=h)
    assert r.get_json()["total"] == 2


# GIVEN: a template without an establishment
# WHEN: generating for a Monday scoped to an establishment, twice
# THEN: the logs land in that establishment once and the rerun skips
def test_generate_scoped_to_establishment_is_idempotent(client, user, make_establishment):
    est = make_establishment(user)
    _template(client, user, cleaningHours=["09:30"])
    h = auth_headers(user)
    body = {"date": MONDAY, "establishmentId": est["id"]}
    first = client.post("/api/cleaning-logs/generate", json=body, headers=h).get_json()
    assert first["created"] == 1
    assert first["logs"][0]["establishmentId"] == est["id"]
    again = client.post("/api/cleaning-logs/generate", json=body, headers=h).get_json()
    assert again["created"] == 0
    assert again["skipped"] is True
    assert client.get(f"/api/cleaning-logs?logDate={MONDAY}", headers=h).get_json()["total"] == 1


# GIVEN: logs generated for a Monday without an establishment
# WHEN: generating the same Monday for an establishment
# THEN: nothing new is created
def test_generate_scoped_after_unscoped_skips(client, user, make_establishment):
    est = make_establishment(user)
    _template(client, user, cleaningHours=["09:30"])
    h = auth_headers(user)
    assert client.post("/api/cleaning-logs/generate", json={"date": MONDAY}, headers=h).get_json()["created"] == 1
    body = {"date": MONDAY, "establishmentId": est["id"]}
    assert client.post("/api/cleaning-logs/generate", json=body, headers=h).get_json()["skipped"] is True
    assert client.get(f"/api/cleaning-logs?logDate={MONDAY}", headers=h).get_json()["total"] == 1


def test_log_create_validation(client, user, make_user, make_establishment, make_employee):
    r = client.post("/api/cleaning-logs", json={}, headers=auth_headers(user))
    assert r.get_json()["code"] == "MISSING_START_TIME"
    assert _log(client, user, startTime="8am").get_json()["code"] == "INVALID_START_TIME_FORMAT"
    assert _log(client, user, endTime="07:00").get_json()["code"] == "INVALID_TIME_RANGE"
    assert _log(client, user, logDate="01.05.2025").get_json()["code"] == "INVALID_LOG_DATE_FORMAT"
    assert _log(client, user, cleaningAreas="Кухня").get_json()["code"] == "INVALID_CLEANING_AREAS"
    assert _log(client, user, cleaningAreas=[1, 2]).get_json()["code"] == "INVALID_CLEANING_AREAS"
    assert _log(client, user, products=[" "]).get_json()["code"] == "INVALID_PRODUCTS"
    other = make_user()
    foreign_est = make_establishment(other)
    foreign_employee = make_employee(other, foreign_est["id"])
    r = _log(client, user, employeeId=foreign_employee["id"])
    assert r.status_code == 403
    assert r.get_json()["code"] == "EMPLOYEE_ACCESS_FORBIDDEN"
    r = _log(client, user, establishmentId=foreign_est["id"])
    assert r.status_code == 403
    assert r.get_json()["code"] == "ESTABLISHMENT_NOT_FOUND"


def test_log_update_delete_and_filters(client, user, make_user):
    h = auth_headers(user)
    first = _log(client, user, logDate="2025-04-01").get_json()
    _log(client, user, logDate="2025-04-20")
    r = client.get("/api/cleaning-logs?startDate=2025-04-10&endDate=2025-04-30", headers=h)
    assert [log["logDate"] for log in r.get_json()["logs"]] == ["2025-04-20"]
    assert client.get("/api/cleaning-logs?startDate=x", headers=h).get_json()["code"] == "INVALID_START_DATE"
    url = f"/api/cleaning-logs/{first['id']}"
    assert client.put(url, json={"endTime": "07:59"}, headers=h).get_json()["code"] == "INVALID_TIME_RANGE"
    assert client.put(url, json={"products": [3]}, headers=h).get_json()["code"] == "INVALID_PRODUCTS"
    r = client.put(url, json={"endTime": "10:15", "notes": "Готово"}, headers=h)
    assert r.get_json()["endTime"] == "10:15"
    assert r.get_json()["notes"] == "Готово"
    assert client.put(url, json={"notes": "x"}, headers=auth_headers(make_user())).status_code == 403
    assert client.delete(url, headers=h).get_json()["id"] == first["id"]
    r = client.get(url, headers=h)
    assert r.get_json()["code"] == "LOG_NOT_FOUND"
