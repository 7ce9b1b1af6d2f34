"""Operator sign-in and the admin role check guarding slot administration.

Operators are listed in a JSON file (``{"operators": [{"username",
"password_hash", "is_admin", "disabled"}]}``, hashes are hex sha256). Signing
in yields an HS256 token; slot routes only accept tokens whose ``is_admin``
claim is true.
"""

from __future__ import annotations

import hashlib
import hmac
import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Mapping

import jwt
import structlog


logger = structlog.get_logger(__name__)

TOKEN_ALGORITHM = "HS256"


class AuthError(Exception):
    """Base class for sign-in and role failures."""


class InvalidCredentialsError(AuthError):
    """Unknown operator or wrong password."""


class InvalidTokenError(AuthError):
    """Token missing, malformed, forged or expired.

    ``reason`` is the machine-readable cause reported to callers.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason.replace("_", " "))


class NotAdminError(AuthError):
    """Token is valid but its operator does not hold the admin role."""


@dataclass(frozen=True, slots=True)
class Operator:
    username: str
    password_sha256: str
    is_admin: bool = False

    def password_matches(self, password: str) -> bool:
        digest = hashlib.sha256(password.encode("utf-8")).hexdigest()
        return hmac.compare_digest(digest, self.password_sha256)


@dataclass(frozen=True, slots=True)
class OperatorClaims:
    """Identity and role carried by a verified token."""

    username: str
    is_admin: bool
    expires_at: datetime


def read_operators(path: Path) -> dict[str, Operator]:
    """Load enabled operators from ``path``; disabled entries are left out."""
    entries = json.loads(path.read_text(encoding="utf-8")).get("operators")
    if not isinstance(entries, list) or not entries:
        raise ValueError(f"{path} does not list any operators")

    operators: dict[str, Operator] = {}
    for entry in entries:
        try:
            operator = Operator(
                username=entry["username"],
                password_sha256=entry["password_hash"],
                is_admin=entry.get("is_admin") is True,
            )
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Malformed operator entry in {path}: {entry!r}") from exc
        if entry.get("disabled"):
            continue
        operators[operator.username] = operator
    return operators


class AuthService:
    """Issue operator tokens and verify the admin role on incoming ones."""

    def __init__(
        self,
        operators: Mapping[str, Operator],
        signing_key: str,
        token_ttl: timedelta,
    ) -> None:
        if not signing_key:
            raise RuntimeError("A token signing key is required")
        self._operators = dict(operators)
        self._signing_key = signing_key
        self.token_ttl = token_ttl

    @classmethod
    def from_file(cls, path: Path, signing_key: str, token_ttl_hours: int) -> "AuthService":
        return cls(read_operators(path), signing_key, timedelta(hours=token_ttl_hours))

    @property
    def token_ttl_seconds(self) -> int:
        return int(self.token_ttl.total_seconds())

    def sign_in(self, username: str, password: str) -> str:
        """Return a signed token for ``username`` or raise InvalidCredentialsError."""
        operator = self._operators.get(username)
        if operator is None or not operator.password_matches(password):
            logger.warning("auth.login.failure", username=username)
            raise InvalidCredentialsError("Invalid username or password")

        issued_at = datetime.now(tz=timezone.utc)
        token = jwt.encode(
            {
                "sub": operator.username,
                "is_admin": operator.is_admin,
                "iat": issued_at,
                "exp": issued_at + self.token_ttl,
            },
            self._signing_key,
            algorithm=TOKEN_ALGORITHM,
        )
        logger.info("auth.login.success", username=username, is_admin=operator.is_admin)
        return token

    def read_claims(self, token: str) -> OperatorClaims:
        try:
            payload = jwt.decode(
                token,
                self._signing_key,
                algorithms=[TOKEN_ALGORITHM],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise InvalidTokenError("token_expired") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError("invalid_token") from exc
        return OperatorClaims(
            username=payload["sub"],
            is_admin=payload.get("is_admin") is True,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    def require_admin(self, token: str) -> OperatorClaims:
        """The role precondition of every slot administration call."""
        claims = self.read_claims(token)
        if not claims.is_admin:
            logger.warning("auth.admin.denied", username=claims.username)
            raise NotAdminError(f"{claims.username} is not an admin")
        return claims


__all__ = [
    "AuthError",
    "AuthService",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "NotAdminError",
    "Operator",
    "OperatorClaims",
    "read_operators",
]
