"""
Grad Application Tracker - Test Configuration and Fixtures
"""
import os

import pytest
from faker import Faker
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set testing environment before the app reads its settings
os.environ["APP_ENV"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from gradtracker.auth.deps import get_db
from gradtracker.config import Settings
from gradtracker.db.session import Base, enable_sqlite_foreign_keys
from gradtracker.main import create_app

fake = Faker()

TEST_PASSWORD = "password123"

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(test_engine)
TestSessionLocal = sessionmaker(bind=test_engine, autocommit=False, autoflush=False)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh schema and session for each test"""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def app_settings(upload_dir):
    return Settings(
        APP_ENV="test",
        SECRET_KEY="test-secret-key-for-testing-only",
        DATABASE_URL="sqlite://",
        UPLOAD_DIR=str(upload_dir),
    )


@pytest.fixture
def app(app_settings, db_session):
    """Application wired to the per-test database"""
    application = create_app(app_settings, create_tables=False)

    def override_get_db():
        session = TestSessionLocal()
        try:
            yield session
        finally:
            session.close()

    application.dependency_overrides[get_db] = override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def store(app):
    return app.state.document_store


def register_and_login(client: TestClient, email: str | None = None, password: str = TEST_PASSWORD) -> dict:
    """Register a fresh user and return ``{"id", "email", "token", "headers"}``."""
    email = email or fake.unique.email()
    resp = client.post(
        "/api/users/register",
        json={"name": fake.name(), "email": email, "password": password},
    )
    assert resp.status_code == 201, resp.text
    user_id = resp.json()["id"]

    resp = client.post("/api/users/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    token = resp.json()["access_token"]
    return {
        "id": user_id,
        "email": email,
        "token": token,
        "headers": {"Authorization": f"Bearer {token}"},
    }


@pytest.fixture
def alice(client) -> dict:
    return register_and_login(client)


@pytest.fixture
def bob(client) -> dict:
    return register_and_login(client)


def upload(client: TestClient, user: dict, name: str = "cv.pdf", content: bytes = b"%PDF-1.4 cv", doc_type: str = "CV"):
    return client.post(
        f"/api/users/{user['id']}/documents",
        headers=user["headers"],
        files={"file": (name, content, "application/octet-stream")},
        data={"doc_type": doc_type},
    )


def create_program(client: TestClient, user: dict, **fields):
    body = {"university_name": fields.pop("university_name", fake.company())}
    body.update(fields)
    return client.post("/api/programs", headers=user["headers"], json=body)
