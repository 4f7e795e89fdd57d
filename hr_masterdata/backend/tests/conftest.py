import os

# Configure before the app (and its engine) is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_KEY"] = ""
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = ""
os.environ["SUPABASE_JWT_SECRET"] = ""


import pytest
from fastapi.testclient import TestClient

import app.models  # noqa: F401
from app.database import Base, SessionLocal, engine
from app.main import app as fastapi_app
from app.services.column_service import ColumnService
from app.services.user_service import UserService
from app.utils.auth_internal import create_access_token

PASSWORD = "password123"


@pytest.fixture(autouse=True)
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    ColumnService.seed_masterdata_columns(session)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(fastapi_app)


@pytest.fixture
def make_user(db):
    def _make(role, email=None, password=PASSWORD, is_active=True):
        user, _ = UserService.create_user(
            db, email or f"{role}@example.com", role, password=password, is_active=is_active
        )
        return user
    return _make


def headers_for(user, preview=None):
    issued = create_access_token(str(user.id), user.email, user.role)
    headers = {"Authorization": f"Bearer {issued.token}"}
    if preview:
        headers["X-Preview-Role"] = preview
    return headers


@pytest.fixture
def admin(make_user):
    return make_user("hr_admin")


@pytest.fixture
def admin_headers(admin):
    return headers_for(admin)


@pytest.fixture
def sodexo_headers(make_user):
    return headers_for(make_user("sodexo"))


@pytest.fixture
def omc_headers(make_user):
    return headers_for(make_user("omc"))


@pytest.fixture
def payroll_headers(make_user):
    return headers_for(make_user("payroll"))


def employee_payload(**overrides):
    payload = {
        "first_name": "Anna",
        "surname": "Svensson",
        "ssn": "8503151234",
        "email": "anna@example.com",
        "mobile": "0701234567",
        "rank": "Deckhand",
        "gender": "Female",
        "town_district": "Majorna",
        "hire_date": "2024-03-01",
        "stena_date": "Week 12",
        "omc_date": "Week 14",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def create_employee(client, admin_headers):
    def _create(**overrides):
        resp = client.post("/api/employees", json=employee_payload(**overrides), headers=admin_headers)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]
    return _create
