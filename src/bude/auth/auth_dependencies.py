"""FastAPI guard that lets only admin operators through."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .auth_service import AuthService, InvalidTokenError, NotAdminError, OperatorClaims

bearer_token = HTTPBearer(auto_error=False)


def get_auth_service(request: Request) -> AuthService:
    try:
        return request.app.state.auth_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("AuthService is not configured") from exc


def _denied(status_code: int, reason: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"status": "error", "failure_reason": reason},
    )


def require_admin_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_token),
    service: AuthService = Depends(get_auth_service),
) -> OperatorClaims:
    if credentials is None:
        raise _denied(status.HTTP_401_UNAUTHORIZED, "missing_token")
    try:
        return service.require_admin(credentials.credentials)
    except InvalidTokenError as exc:
        raise _denied(status.HTTP_401_UNAUTHORIZED, exc.reason) from exc
    except NotAdminError as exc:
        raise _denied(status.HTTP_403_FORBIDDEN, "not_admin") from exc


__all__ = ["bearer_token", "get_auth_service", "require_admin_user"]
