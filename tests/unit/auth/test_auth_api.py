from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.bude.auth.auth_api import router
from src.bude.auth.auth_service import InvalidCredentialsError


class StubAuthService:
    token_ttl_seconds = 100

    def __init__(self) -> None:
        self.sign_ins: list[tuple[str, str]] = []

    def sign_in(self, username: str, password: str) -> str:
        self.sign_ins.append((username, password))
        if password != "secret":
            raise InvalidCredentialsError("invalid")
        return "token-123"


def build_client(service: StubAuthService) -> TestClient:
    app = FastAPI()
    app.include_router(router)
    app.state.auth_service = service
    return TestClient(app)


def test_login_returns_token_on_success() -> None:
    service = StubAuthService()
    client = build_client(service)

    response = client.post("/api/login", json={"username": "serg", "password": "secret"})

    assert response.status_code == 200
    assert response.json() == {"access_token": "token-123", "token_type": "bearer", "expires_in": 100}
    assert service.sign_ins == [("serg", "secret")]


def test_login_returns_401_on_invalid_credentials() -> None:
    client = build_client(StubAuthService())

    response = client.post("/api/login", json={"username": "serg", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["detail"]["failure_reason"] == "invalid_credentials"


def test_login_requires_username() -> None:
    client = build_client(StubAuthService())

    response = client.post("/api/login", json={"username": "", "password": "secret"})

    assert response.status_code == 422
