"""
Bearer-token authentication helpers.

Access tokens are HS256 JWTs issued by the auth service:
    sub  — user id (string)
    role — CUSTOMER | ADMIN | COURIER (informational; the User row is authoritative)

Login/registration live elsewhere; this module only verifies tokens and
resolves the calling principal.
"""
import logging
from datetime import datetime, timezone, timedelta
from fastapi import Header
from typing import Optional

import jwt

from config import settings
from domain.errors import UnauthenticatedError

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    token = parts[1].strip()
    return token or None


def _require_secret() -> str:
    if not settings.jwt_secret:
        logger.error("JWT_SECRET is not configured; rejecting token")
        raise UnauthenticatedError("Server auth misconfigured (JWT secret missing).")
    return settings.jwt_secret


def decode_access_token(token: str) -> dict:
    secret = _require_secret()
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            issuer=settings.jwt_issuer,
            options={"require": ["exp", "iat", "iss", "sub"]},
        )
        return payload
    except jwt.ExpiredSignatureError:
        raise UnauthenticatedError("Access token expired.")
    except jwt.InvalidTokenError:
        raise UnauthenticatedError("Invalid access token.")


def issue_access_token(*, user_id: int, role: str) -> str:
    secret = _require_secret()
    now = _now_utc()
    exp = now.replace(microsecond=0) + timedelta(minutes=settings.jwt_access_ttl_minutes)
    payload = {
        "iss": settings.jwt_issuer,
        "sub": str(user_id),
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def user_id_from_token(token: Optional[str]) -> int:
    if not token:
        raise UnauthenticatedError(
            "Authentication required. Provide Authorization: Bearer <token>."
        )
    payload = decode_access_token(token)
    try:
        return int(payload["sub"])
    except (TypeError, ValueError):
        raise UnauthenticatedError("Invalid access token subject.")


async def require_token_user_id(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> int:
    """FastAPI dependency: user id from the bearer token (no DB lookup)."""
    return user_id_from_token(_parse_bearer_token(authorization))
