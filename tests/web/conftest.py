"""Shared fixtures for web API tests."""

import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from cli.config_models import OrbitConfig


@pytest.fixture
def jwt_secret():
    return "test-orbit-secret"


def _make_auth_token(jwt_secret, user_id, email="u@test.com", name="U"):
    return jwt.encode(
        {"sub": user_id, "email": email, "name": name},
        jwt_secret,
        algorithm="HS256",
    )


@pytest.fixture
def auth_token(jwt_secret):
    return _make_auth_token(jwt_secret, "user-123", "test@example.com", "Test")


@pytest.fixture
def auth_headers(auth_token):
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def auth_headers_b(jwt_secret):
    """Second user for isolation tests."""
    return {"Authorization": f"Bearer {_make_auth_token(jwt_secret, 'user-456', 'b@test.com', 'UserB')}"}


@pytest.fixture
def web_config(db_path):
    return OrbitConfig.from_dict({"paths": {"db": str(db_path)}, "chat": {"max_message_length": 100}})


@pytest.fixture
def orchestrator():
    """Scripted orchestrator; tests set `process.return_value` or `side_effect`."""
    mock = MagicMock()
    mock.process = AsyncMock()
    return mock


@pytest.fixture
def client(jwt_secret, db_path, web_config, orchestrator):
    """Test client over a tmp sqlite db with the chat pipeline replaced."""
    from web.app import app
    from web.deps import get_config, get_orchestrator

    patches = [
        patch.dict(os.environ, {"ORBIT_JWT_SECRET": jwt_secret}),
        patch("web.deps.get_db_path", return_value=db_path),
    ]
    for p in patches:
        p.start()
    app.dependency_overrides[get_config] = lambda: web_config
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    for p in reversed(patches):
        p.stop()
