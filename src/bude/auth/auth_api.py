"""Operator sign-in route."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from .auth_dependencies import get_auth_service, require_admin_user
from .auth_service import AuthService, InvalidCredentialsError, OperatorClaims

router = APIRouter(prefix="/api", tags=["auth"])


class SignInRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str


class SignInResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class OperatorResponse(BaseModel):
    username: str
    is_admin: bool


@router.post("/login")
def sign_in(
    payload: SignInRequest,
    service: AuthService = Depends(get_auth_service),
) -> SignInResponse:
    try:
        token = service.sign_in(payload.username, payload.password)
    except InvalidCredentialsError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"status": "error", "failure_reason": "invalid_credentials"},
        ) from exc
    return SignInResponse(access_token=token, expires_in=service.token_ttl_seconds)


@router.get("/operator")
def current_admin(claims: OperatorClaims = Depends(require_admin_user)) -> OperatorResponse:
    """Echo the admin behind the token, used by the panel to confirm access."""
    return OperatorResponse(username=claims.username, is_admin=claims.is_admin)
