"""Request helpers shared by the API tests."""

VALID_EIK = "123456786"
CRON_SECRET = "cron-test-secret"


def auth_headers(user: dict) -> dict:
    return {"Authorization": f"Bearer {user['token']}"}


def establishment_payload(**overrides):
    body = {
        "establishmentType": "Ресторант",
        "employeeCount": 4,
        "managerName": "Иван Петров",
        "managerPhone": "+359 888 123 456",
        "managerEmail": "manager@example.bg",
        "companyName": "Тест ЕООД",
        "eik": VALID_EIK,
        "registrationAddress": "гр. София, ул. Витоша 1",
        "contactEmail": "info@example.bg",
    }
    body.update(overrides)
    return body
