"""Shared fixtures: an isolated SQLite database, services, and an app per test."""

from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from accounts_api.application.services.security import PasswordHasher, TokenService
from accounts_api.config import Settings
from accounts_api.domain.models.user import Role, User
from accounts_api.domain.schemas.auth import Identity
from accounts_api.infrastructure.database import Database
from accounts_api.infrastructure.repositories.user_repository import SQLAlchemyUserRepository
from accounts_api.main import create_app

TEST_SECRET = "test-secret-key-for-pytest-only"
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin123!"

# Fast work factor; production rounds make each hash take a noticeable fraction of a second.
TEST_HASH_ROUNDS = 1000


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'accounts.sqlite3'}",
        SECRET_KEY=TEST_SECRET,
        PASSWORD_HASH_ROUNDS=TEST_HASH_ROUNDS,
        BOOTSTRAP_ADMIN_EMAIL=ADMIN_EMAIL,
        BOOTSTRAP_ADMIN_PASSWORD=ADMIN_PASSWORD,
        ENVIRONMENT="test",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture()
def database(settings: Settings) -> Iterator[Database]:
    db = Database(settings.DATABASE_URL)
    db.initialize()
    yield db
    db.close()


@pytest.fixture()
def repo(database: Database) -> Iterator[SQLAlchemyUserRepository]:
    session = database.session()
    yield SQLAlchemyUserRepository(session, User)
    session.close()


@pytest.fixture()
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=TEST_HASH_ROUNDS)


@pytest.fixture()
def tokens() -> TokenService:
    return TokenService(TEST_SECRET, expires_minutes=15)


@pytest.fixture()
def admin_identity() -> Identity:
    return Identity(id="admin-id", email=ADMIN_EMAIL, role=Role.ADMIN)


@pytest.fixture()
def client(settings: Settings, database: Database) -> Iterator[TestClient]:
    app = create_app(settings=settings, database=database)
    with TestClient(app) as test_client:
        yield test_client


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def login(client: TestClient, email: str, password: str) -> str:
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["token"]


@pytest.fixture()
def admin_token(client: TestClient) -> str:
    return login(client, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture()
def create_account(client: TestClient, admin_token: str):
    """Create an account through the API as the bootstrap admin."""

    def _create(**overrides) -> dict:
        payload = {
            "name": "John Doe",
            "email": "john@example.com",
            "age": 25,
            "password": "password123",
        }
        payload.update(overrides)
        response = client.post("/users", json=payload, headers=bearer(admin_token))
        assert response.status_code == 201, response.text
        return response.json()

    return _create
