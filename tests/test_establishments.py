from helpers import VALID_EIK, auth_headers, establishment_payload


# GIVEN: an authenticated user
# WHEN: creating an establishment with every required field
# THEN: 201 and the row is owned by the caller
def test_create_and_read_establishment(client, user):
    r = client.post("/api/establishments", json=establishment_payload(), headers=auth_headers(user))
    assert r.status_code == 201
    est = r.get_json()
    assert est["userId"] == user["id"]
    assert est["companyName"] == "Тест ЕООД"
    assert est["eikVerified"] == 0
    r = client.get(f"/api/establishments/{est['id']}", headers=auth_headers(user))
    assert r.status_code == 200
    assert r.get_json()["eik"] == VALID_EIK


def test_create_requires_fields_in_order(client, user):
    body = establishment_payload()
    del body["managerPhone"]
    r = client.post("/api/establishments", json=body, headers=auth_headers(user))
    assert r.status_code == 400
    assert r.get_json()["code"] == "MANAGER_PHONE_REQUIRED"


def test_create_rejects_unknown_type_and_bad_count(client, user):
    r = client.post(
        "/api/establishments", json=establishment_payload(establishmentType="Космодрум"), headers=auth_headers(user)
    )
    assert r.get_json()["code"] == "INVALID_ESTABLISHMENT_TYPE"
    r = client.post("/api/establishments", json=establishment_payload(employeeCount=0), headers=auth_headers(user))
    assert r.get_json()["code"] == "INVALID_EMPLOYEE_COUNT"
    r = client.post(
        "/api/establishments", json=establishment_payload(contactEmail="nope"), headers=auth_headers(user)
    )
    assert r.get_json()["code"] == "INVALID_CONTACT_EMAIL"


# GIVEN: a user already at the establishment limit
# WHEN: creating one more
# THEN: MAX_ESTABLISHMENTS_REACHED
def test_max_establishments(client, user, app):
    limit = app.config["MAX_ESTABLISHMENTS"]
    for i in range(limit):
        r = client.post(
            "/api/establishments", json=establishment_payload(companyName=f"Обект {i}"), headers=auth_headers(user)
        )
        assert r.status_code == 201
    r = client.post("/api/establishments", json=establishment_payload(), headers=auth_headers(user))
    assert r.status_code == 400
    assert r.get_json()["code"] == "MAX_ESTABLISHMENTS_REACHED"


def test_user_and_user_all(client, make_user, make_establishment):
    owner = make_user()
    r = client.get("/api/establishments/user", headers=auth_headers(owner))
    assert r.get_json() == {"establishments": []}
    first = make_establishment(owner, companyName="Първи")
    make_establishment(owner, companyName="Втори")
    r = client.get("/api/establishments/user", headers=auth_headers(owner))
    assert [e["id"] for e in r.get_json()["establishments"]] == [first["id"]]
    r = client.get("/api/establishments/user-all", headers=auth_headers(owner))
    data = r.get_json()
    assert data["total"] == 2
    assert data["establishments"][0]["companyName"] == "Втори"


# GIVEN: an establishment owned by someone else
# WHEN: another user reads, updates or deletes it
# THEN: 403 every time
def test_foreign_establishment_forbidden(client, make_user, make_establishment):
    owner, other = make_user(), make_user()
    est = make_establishment(owner)
    url = f"/api/establishments/{est['id']}"
    assert client.get(url, headers=auth_headers(other)).status_code == 403
    assert client.put(url, json={"managerName": "X"}, headers=auth_headers(other)).status_code == 403
    assert client.delete(url, headers=auth_headers(other)).status_code == 403


def test_update_and_delete(client, user, make_establishment):
    est = make_establishment(user)
    url = f"/api/establishments/{est['id']}"
    r = client.put(url, json={"managerName": "  Нов Управител ", "vatRegistered": True}, headers=auth_headers(user))
    assert r.status_code == 200
    data = r.get_json()
    assert data["managerName"] == "Нов Управител"
    assert data["vatRegistered"] == 1
    r = client.delete(url, headers=auth_headers(user))
    assert r.status_code == 200
    body = r.get_json()
    assert body["id"] == est["id"]
    assert body["deleted"]["companyName"] == est["companyName"]
    assert client.get(url, headers=auth_headers(user)).status_code == 404


def test_missing_and_invalid_id(client, user):
    assert client.get("/api/establishments/999999", headers=auth_headers(user)).status_code == 404
    r = client.get("/api/establishments/abc", headers=auth_headers(user))
    assert r.status_code == 400
    assert r.get_json()["code"] == "INVALID_ID"
    for raw in ("²", "1.5", "--1"):
        r = client.get(f"/api/establishments/{raw}", headers=auth_headers(user))
        assert r.status_code == 400
        assert r.get_json()["code"] == "INVALID_ID"


def test_validate_eik_endpoint(client):
    r = client.post("/api/establishments/validate-eik", json={"eik": VALID_EIK})
    assert r.get_json() == {"valid": True, "message": "EIK is valid", "companyName": None}
    r = client.post("/api/establishments/validate-eik", json={"eik": "123456789"})
    assert r.status_code == 200
    assert r.get_json()["valid"] is False
    r = client.post("/api/establishments/validate-eik", json={"eik": "12345"})
    assert r.status_code == 400
    assert r.get_json()["code"] == "INVALID_LENGTH"
    r = client.post("/api/establishments/validate-eik", json={"eik": "12345678a"})
    assert r.get_json()["code"] == "INVALID_FORMAT"
    r = client.post("/api/establishments/validate-eik", json={})
    assert r.get_json()["code"] == "MISSING_EIK"


# GIVEN: the demo seed endpoint under tests
# WHEN: called twice
# THEN: 201 first with four staff, then 200 "already exists"
def test_demo_seed_idempotent(client):
    r = client.post("/api/seed/demo-establishment")
    assert r.status_code in (200, 201)
    if r.status_code == 201:
        assert r.get_json()["data"]["personnelCount"] == 4
    r = client.post("/api/seed/demo-establishment")
    assert r.status_code == 200
    assert r.get_json()["message"] == "Demo establishment already exists"
    login = client.post("/api/auth/login", json={"email": "demo@user.bg", "password": "user123"})
    assert login.status_code == 200
