from helpers import CRON_SECRET, auth_headers

LOG_DATE = "2025-02-14"


def test_owner_reads_and_updates_business(client, user, make_user, admin, make_business):
    bid = make_business(user)
    url = f"/api/businesses/{bid}"
    assert client.get(url, headers=auth_headers(user)).get_json()["name"] == "Кафе Център"
    assert client.get(url, headers=auth_headers(admin)).status_code == 200
    assert client.get(url, headers=auth_headers(make_user())).status_code == 403
    h = auth_headers(user)
    assert client.put(url, json={}, headers=h).get_json()["code"] == "NO_FIELDS_PROVIDED"
    assert client.put(url, json={"city": " "}, headers=h).get_json()["code"] == "INVALID_CITY"
    assert client.put(url, json={"freezerCount": -1}, headers=h).get_json()["code"] == "INVALID_FREEZER_COUNT"
    assert client.put(url, json={"email": "nope"}, headers=h).get_json()["code"] == "INVALID_EMAIL"
    r = client.put(url, json={"city": " София ", "freezerCount": 2, "otherEquipment": "  "}, headers=h)
    body = r.get_json()
    assert (body["city"], body["freezerCount"], body["otherEquipment"]) == ("София", 2, None)
    r = client.get("/api/businesses/999999", headers=h)
    assert r.get_json()["code"] == "BUSINESS_NOT_FOUND"


# GIVEN: a business with two fridges and one freezer
# WHEN: logs are generated twice for the same date
# THEN: three logs are created once and skipped afterwards
def test_generate_business_logs(client, user, make_business):
    bid = make_business(user, refrigerator=2, freezer=1)
    h = auth_headers(user)
    r = client.post("/api/temperature-logs/generate", json={"date": LOG_DATE}, headers=h)
    assert r.status_code == 201
    assert (r.get_json()["created"], r.get_json()["skipped"]) == (3, 0)
    r = client.post("/api/temperature-logs/generate", json={"date": LOG_DATE}, headers=h)
    assert (r.get_json()["created"], r.get_json()["skipped"]) == (0, 3)
    logs = client.get(f"/api/temperature-logs/{bid}?equipmentType=freezer", headers=h).get_json()
    assert len(logs) == 1
    assert -36.0 <= logs[0]["temperature"] <= -18.0
    fridges = client.get(f"/api/temperature-logs/{bid}?equipmentType=refrigerator", headers=h).get_json()
    assert [x["equipmentNumber"] for x in fridges] == [1, 2]
    r = client.get(f"/api/temperature-logs/{bid}?equipmentType=oven", headers=h)
    assert r.get_json()["code"] == "INVALID_EQUIPMENT_TYPE"
    r = client.post("/api/temperature-logs/generate", json={"date": "14-02-2025"}, headers=h)
    assert r.get_json()["code"] == "INVALID_DATE_FORMAT"


def test_cron_requires_secret(client):
    r = client.get("/api/cron/generate-daily-logs")
    assert r.status_code == 401
    assert r.get_json()["code"] == "INVALID_CRON_SECRET"
    r = client.get("/api/cron/generate-daily-logs?secret=wrong")
    assert r.status_code == 401


def test_cron_generates_for_everyone(client, user, make_business):
    make_business(user, hot_display=1)
    r = client.get(f"/api/cron/generate-daily-logs?secret={CRON_SECRET}")
    assert r.status_code == 200
    data = r.get_json()
    assert data["businessesProcessed"] >= 1
    assert data["logsGenerated"] >= 1
    again = client.get(f"/api/cron/generate-daily-logs?secret={CRON_SECRET}").get_json()
    assert again["logsGenerated"] == 0
    assert again["readingsGenerated"] == 0
