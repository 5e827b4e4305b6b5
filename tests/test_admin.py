import uuid
from datetime import UTC, datetime, timedelta

from helpers import auth_headers


def _email(prefix="new"):
    return f"{prefix}-{uuid.uuid4().hex[:8]}@example.bg"


def test_admin_routes_require_admin(client, user):
    r = client.get("/api/admin/users", headers=auth_headers(user))
    assert r.status_code == 403
    assert r.get_json()["code"] == "FORBIDDEN"
    assert client.get("/api/admin/users").status_code == 401


# GIVEN: an admin
# WHEN: managing users through the admin API
# THEN: create, update, activate and delete behave and validate
def test_user_management(client, admin):
    h = auth_headers(admin)
    email = _email()
    r = client.post("/api/admin/users", json={"email": f" {email.upper()} ", "password": "secret1", "role": "user"}, headers=h)
    assert r.status_code == 201
    created = r.get_json()
    assert created["email"] == email
    r = client.get(f"/api/admin/users?search={email}", headers=h)
    assert r.get_json()["total"] == 1
    assert r.get_json()["users"][0]["isActive"] == 1
    url = f"/api/admin/users/{created['id']}"
    assert client.put(url, json={}, headers=h).get_json()["code"] == "NO_UPDATE_FIELDS"
    assert client.put(url, json={"password": "123"}, headers=h).get_json()["code"] == "WEAK_PASSWORD"
    assert client.put(url, json={"role": "owner"}, headers=h).get_json()["code"] == "INVALID_ROLE"
    assert client.put(url, json={"email": admin["email"]}, headers=h).get_json()["code"] == "EMAIL_EXISTS"
    assert client.put(url, json={"role": "admin"}, headers=h).get_json()["role"] == "admin"
    r = client.put(f"{url}/activate", json={"isActive": True}, headers=h)
    assert r.get_json()["code"] == "INVALID_STATUS"
    assert client.put(f"{url}/activate", json={"isActive": 0}, headers=h).get_json()["isActive"] == 0
    r = client.post("/api/auth/login", json={"email": email, "password": "secret1"})
    assert r.status_code == 403
    assert client.delete(url, headers=h).get_json() == {"message": "User deleted successfully", "id": created["id"]}
    assert client.delete(url, headers=h).get_json()["code"] == "USER_NOT_FOUND"


def test_create_user_validation(client, admin):
    h = auth_headers(admin)

    def post(**body):
        return client.post("/api/admin/users", json=body, headers=h).get_json()["code"]

    assert post(password="secret1", role="user") == "MISSING_EMAIL"
    assert post(email=_email(), role="user") == "MISSING_PASSWORD"
    assert post(email=_email(), password="secret1") == "MISSING_ROLE"
    assert post(email="broken", password="secret1", role="user") == "INVALID_EMAIL_FORMAT"
    assert post(email=_email(), password="secret1", role="root") == "INVALID_ROLE"
    assert post(email=_email(), password="12345", role="user") == "PASSWORD_TOO_SHORT"
    assert post(email=admin["email"], password="secret1", role="user") == "EMAIL_EXISTS"


def test_admin_cannot_delete_self(client, admin):
    r = client.delete(f"/api/admin/users/{admin['id']}", headers=auth_headers(admin))
    assert r.status_code == 400
    assert r.get_json()["code"] == "CANNOT_DELETE_SELF"


def test_listing_sort_validation(client, admin):
    h = auth_headers(admin)
    r = client.get("/api/admin/establishments?sort=password", headers=h)
    assert r.get_json()["code"] == "INVALID_SORT_FIELD"
    r = client.get("/api/admin/businesses?order=sideways", headers=h)
    assert r.get_json()["code"] == "INVALID_ORDER"
    r = client.get("/api/admin/diary-devices?deviceType=Фурни", headers=h)
    assert r.get_json()["code"] == "INVALID_DEVICE_TYPE"
    r = client.get("/api/admin/users?limit=0", headers=h)
    assert r.get_json()["code"] == "INVALID_LIMIT"


def test_establishment_and_device_views(client, admin, user, make_establishment, make_employee):
    h = auth_headers(admin)
    est = make_establishment(user, companyName="Админ Тест ООД")
    make_employee(user, est["id"])
    r = client.get("/api/admin/establishments?companyName=Админ Тест&sort=companyName&order=asc", headers=h)
    assert est["id"] in [e["id"] for e in r.get_json()["establishments"]]
    detail = client.get(f"/api/admin/establishments/{est['id']}", headers=h).get_json()
    assert detail["establishment"]["id"] == est["id"]
    assert len(detail["personnel"]) == 1
    device = client.post(
        "/api/diary-devices",
        json={"establishmentId": est["id"], "deviceType": "Фризери", "deviceName": "Фризер 1"},
        headers=auth_headers(user),
    ).get_json()
    r = client.get(f"/api/admin/diary-devices?userId={user['id']}", headers=h)
    devices = r.get_json()["devices"]
    assert [d["id"] for d in devices] == [device["id"]]
    assert devices[0]["userEmail"] == user["email"]
    r = client.get(f"/api/admin/diary-devices/{device['id']}", headers=h)
    assert len(r.get_json()["readings"]) == 30
    r = client.get(f"/api/admin/temperature-readings?deviceId={device['id']}&limit=5&sort=hour&order=asc", headers=h)
    data = r.get_json()
    assert data["total"] == 30
    assert len(data["readings"]) == 5
    assert {x["hour"] for x in data["readings"]} == {10}


def test_incoming_controls_date_filter(client, admin, user):
    h = auth_headers(admin)
    client.post(
        "/api/incoming-controls",
        json={"controlDate": "2024-11-05", "imageUrl": "https://img.example/a.jpg"},
        headers=auth_headers(user),
    )
    r = client.get(f"/api/admin/incoming-controls?date=2024-11-05&userId={user['id']}", headers=h)
    data = r.get_json()
    assert data["total"] == 1
    assert data["controls"][0]["userEmail"] == user["email"]
    assert data["controls"][0]["companyName"] is None
    assert client.get("/api/admin/incoming-controls?date=05.11.2024", headers=h).get_json()["code"] == "INVALID_DATE_FORMAT"
    assert client.get("/api/admin/incoming-controls?date=2024-02-30", headers=h).get_json()["code"] == "INVALID_DATE_VALUE"


# GIVEN: staff whose health books expire in 5 days, in 40 days and yesterday
# WHEN: the admin asks for expiring health books
# THEN: only the one inside the warning window is listed
def test_health_books_expiring(client, admin, user, make_establishment, make_employee):
    est = make_establishment(user)
    today = datetime.now(UTC).date()
    soon = make_employee(user, est["id"], healthBookValidity=(today + timedelta(days=5)).isoformat())
    later = make_employee(user, est["id"], healthBookValidity=(today + timedelta(days=40)).isoformat())
    expired = make_employee(user, est["id"], healthBookValidity=(today - timedelta(days=1)).isoformat())
    r = client.get("/api/admin/health-books-expiring", headers=auth_headers(admin))
    listed = {p["id"]: p for p in r.get_json()["personnel"]}
    assert soon["id"] in listed
    assert later["id"] not in listed
    assert expired["id"] not in listed
    entry = listed[soon["id"]]
    assert 4 <= entry["daysUntilExpiry"] <= 5
    assert entry["establishmentName"] == est["companyName"]


def test_support_logs(client, admin):
    h = auth_headers(admin)
    client.get("/api/admin/users", headers=h)
    r = client.get("/api/admin/support/logs?limit=3", headers=h)
    data = r.get_json()
    assert data["total"] <= 3
    assert data["total"] == len(data["logs"])


# GIVEN: an admin
# WHEN: support logs are requested with limit=0 or a bad limit
# THEN: zero returns nothing, a bad value is rejected
def test_support_logs_limit_edges(client, admin):
    h = auth_headers(admin)
    data = client.get("/api/admin/support/logs?limit=0", headers=h).get_json()
    assert data == {"logs": [], "total": 0}
    for bad in ("-1", "abc"):
        r = client.get(f"/api/admin/support/logs?limit={bad}", headers=h)
        assert r.status_code == 400
        assert r.get_json()["code"] == "INVALID_LIMIT"
