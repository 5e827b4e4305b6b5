import os
import sys
import uuid

import pytest

# Path setup before any project imports to satisfy E402
ROOT = os.path.dirname(__file__)
PARENT = os.path.abspath(os.path.join(ROOT, ".."))
for _p in (PARENT, ROOT):
    if _p not in sys.path:  # pragma: no cover - environment dependent
        sys.path.insert(0, _p)

from helpers import CRON_SECRET, auth_headers, establishment_payload  # noqa: E402


def _lazy_imports():  # isolate heavy imports & satisfy lint ordering
    from hcontrol.app_factory import create_app  # noqa: E402
    from hcontrol.db import create_all  # noqa: E402

    return create_app, create_all


@pytest.fixture(scope="session")
def app_session(tmp_path_factory):
    create_app, create_all = _lazy_imports()
    db_file = tmp_path_factory.mktemp("db") / "test_app.db"
    url = f"sqlite:///{db_file}"
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test",
            "database_url": url,
            "cron_secret": CRON_SECRET,
        }
    )
    with app.app_context():
        create_all()
    return app


@pytest.fixture
def app(app_session):
    return app_session


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    from hcontrol.auth import reset_rate_limits

    reset_rate_limits()
    yield
    reset_rate_limits()


@pytest.fixture(scope="function")
def client(app_session):
    c = app_session.test_client()
    c.environ_base = {}
    return c


@pytest.fixture
def make_user(app_session):
    """Insert a user and return ``{"id", "email", "role", "password", "token"}``.

    Emails are unique per call because the database is shared by the session.
    """
    from werkzeug.security import generate_password_hash

    from hcontrol.auth import issue_user_token
    from hcontrol.db import get_session
    from hcontrol.models import User

    def _make(role: str = "user", *, active: int = 1, password: str = "secret123", email: str | None = None):
        email = email or f"{role}-{uuid.uuid4().hex[:10]}@example.bg"
        with app_session.app_context():
            db = get_session()
            try:
                user = User(
                    email=email,
                    password_hash=generate_password_hash(password),
                    role=role,
                    manager_name="Тест Потребител",
                    is_active=active,
                )
                db.add(user)
                db.commit()
                token = issue_user_token(user)
                return {"id": user.id, "email": email, "role": role, "password": password, "token": token}
            finally:
                db.close()

    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user("admin")


@pytest.fixture
def make_establishment(client):
    def _make(owner: dict, **overrides) -> dict:
        r = client.post("/api/establishments", json=establishment_payload(**overrides), headers=auth_headers(owner))
        assert r.status_code == 201, r.get_json()
        return r.get_json()

    return _make


@pytest.fixture
def make_employee(client):
    def _make(owner: dict, establishment_id: int, **overrides) -> dict:
        body = {
            "establishmentId": establishment_id,
            "fullName": "Мария Георгиева",
            "egn": "9012154321",
            "position": "Готвач",
            "healthBookNumber": "TB001234",
            "healthBookValidity": "2030-12-31",
        }
        body.update(overrides)
        r = client.post("/api/personnel", json=body, headers=auth_headers(owner))
        assert r.status_code == 201, r.get_json()
        return r.get_json()

    return _make


@pytest.fixture
def make_business(app_session):
    """Insert a legacy business row; there is no public create endpoint."""
    from hcontrol.db import get_session
    from hcontrol.models import Business

    def _make(owner: dict, **counts) -> int:
        with app_session.app_context():
            db = get_session()
            try:
                business = Business(
                    user_id=owner["id"],
                    name="Кафе Център",
                    type="Кафе",
                    city="Пловдив",
                    address="ул. Главна 1",
                    phone="+359 32 000 000",
                    email="cafe@example.bg",
                    refrigerator_count=counts.get("refrigerator", 0),
                    freezer_count=counts.get("freezer", 0),
                    hot_display_count=counts.get("hot_display", 0),
                    cold_display_count=counts.get("cold_display", 0),
                )
                db.add(business)
                db.commit()
                return business.id
            finally:
                db.close()

    return _make
