import hashlib
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.bude.auth.auth_api import router
from src.bude.auth.auth_service import AuthService, Operator


def _operator(username: str, password: str, is_admin: bool = False) -> Operator:
    return Operator(username, hashlib.sha256(password.encode()).hexdigest(), is_admin=is_admin)


@pytest.fixture
def service() -> AuthService:
    return AuthService(
        {
            "serg": _operator("serg", "secret", is_admin=True),
            "viewer": _operator("viewer", "viewer-pass"),
        },
        signing_key="test-key",
        token_ttl=timedelta(minutes=5),
    )


@pytest.fixture
def client(service: AuthService) -> TestClient:
    app = FastAPI()
    app.include_router(router)
    app.state.auth_service = service
    return TestClient(app)


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def test_admin_token_is_accepted(client: TestClient, service: AuthService) -> None:
    response = client.get("/api/operator", headers=_bearer(service.sign_in("serg", "secret")))

    assert response.status_code == 200
    assert response.json() == {"username": "serg", "is_admin": True}


def test_missing_token_is_401(client: TestClient) -> None:
    response = client.get("/api/operator")

    assert response.status_code == 401
    assert response.json()["detail"]["failure_reason"] == "missing_token"


def test_garbage_token_is_401(client: TestClient) -> None:
    response = client.get("/api/operator", headers=_bearer("not-a-jwt"))

    assert response.status_code == 401
    assert response.json()["detail"]["failure_reason"] == "invalid_token"


def test_expired_token_is_401(client: TestClient) -> None:
    issued = datetime.now(tz=timezone.utc) - timedelta(hours=1)
    token = jwt.encode(
        {"sub": "serg", "is_admin": True, "exp": issued + timedelta(minutes=5)},
        "test-key",
        algorithm="HS256",
    )

    response = client.get("/api/operator", headers=_bearer(token))

    assert response.status_code == 401
    assert response.json()["detail"]["failure_reason"] == "token_expired"


def test_non_admin_token_is_403(client: TestClient, service: AuthService) -> None:
    token = service.sign_in("viewer", "viewer-pass")

    response = client.get("/api/operator", headers=_bearer(token))

    assert response.status_code == 403
    assert response.json()["detail"]["failure_reason"] == "not_admin"
