from helpers import auth_headers


def test_404_json_error_schema(client):
    r = client.get("/__no_such_route__")
    assert r.status_code == 404
    assert r.get_json() == {"error": "Not found", "code": "NOT_FOUND"}


def test_405_json_error_schema(client):
    r = client.delete("/api/auth/login")
    assert r.status_code == 405
    assert r.get_json()["code"] == "METHOD_NOT_ALLOWED"


def test_401_carries_bearer_challenge(client):
    r = client.get("/api/establishments/user")
    assert r.status_code == 401
    assert r.headers["WWW-Authenticate"] == "Bearer"
    assert set(r.get_json()) >= {"error", "code"}


def test_request_id_is_echoed(client):
    r = client.get("/healthz", headers={"X-Request-Id": "req-123"})
    assert r.status_code == 200
    assert r.headers["X-Request-Id"] == "req-123"
    assert client.get("/healthz").headers.get("X-Request-Id")


def test_owner_fields_in_body_are_rejected(client, user):
    r = client.post("/api/food-items", json={"name": "Супа", "shelfLifeHours": 4, "userId": 1}, headers=auth_headers(user))
    assert r.status_code == 400
    assert r.get_json()["code"] == "USER_ID_NOT_ALLOWED"


def test_non_object_body_is_rejected(client, user):
    r = client.post("/api/food-items", json=["Супа"], headers=auth_headers(user))
    assert r.get_json()["code"] == "INVALID_JSON"
