"""
Pytest configuration and shared fixtures for OpenChat tests

Provides:
- In-memory fake of the MongoDB database
- Development auth configuration with a generated signing key
- Bearer tokens for test users
- FastAPI test client with overridden dependencies
"""

import pytest
from fastapi.testclient import TestClient

from app.core.auth_config import build_auth_config
from app.core.config import Settings
from app.core.security import create_dev_token
from tests.fakes import FakeDatabase

AUTH_ENV_VARS = [
    "ENVIRONMENT",
    "AUTH_ISSUER",
    "CONVEX_SITE_URL",
    "PUBLIC_BACKEND_URL",
    "JWKS",
    "AUTH_STRICT",
    "AUTH_ALTERNATE_PORT",
    "ENABLE_DEV_AUTH",
    "CORS_ORIGINS",
    "CORS_METHODS",
    "CORS_CREDENTIALS",
    "CORS_MAX_AGE",
    "REDIS_URL",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove auth/CORS variables from the process environment"""
    for name in AUTH_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_settings(clean_env):
    """Build Settings without reading .env or stray environment variables"""
    def factory(**values) -> Settings:
        return Settings(_env_file=None, **values)
    return factory


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture(scope="session")
def dev_auth_config():
    """Auth config with an in-process RSA key that can sign test tokens"""
    settings = Settings(_env_file=None, ENVIRONMENT="development", AUTH_ISSUER="http://localhost:3211", JWKS=None)
    return build_auth_config(settings)


@pytest.fixture
def make_token(dev_auth_config):
    def factory(subject: str, email: str = None, name: str = None) -> str:
        return create_dev_token(dev_auth_config, subject=subject, email=email, name=name)
    return factory


@pytest.fixture
def auth_headers(make_token):
    def factory(subject: str, email: str = None) -> dict:
        return {"Authorization": f"Bearer {make_token(subject, email=email)}"}
    return factory


@pytest.fixture
def client(fake_db, dev_auth_config):
    """Create test client with the database and auth config overridden"""
    from app.main import app
    from app.api.deps import get_database, get_stream_storage
    from app.core.auth_config import get_auth_config
    from app.services.stream_storage import StreamStorage

    storage = StreamStorage(redis_url="")

    app.dependency_overrides[get_database] = lambda: fake_db
    app.dependency_overrides[get_auth_config] = lambda: dev_auth_config
    app.dependency_overrides[get_stream_storage] = lambda: storage

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests for individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests for API endpoints"
    )
