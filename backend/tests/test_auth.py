"""
Tests for bearer-token authentication and role dependencies.
"""
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from config import settings
from domain.errors import UnauthenticatedError, UnauthorizedError


class TestTokens:

    @pytest.mark.unit
    def test_issue_and_decode_roundtrip(self):
        from middleware.auth import issue_access_token, user_id_from_token

        token = issue_access_token(user_id=42, role="CUSTOMER")
        assert user_id_from_token(token) == 42

    @pytest.mark.unit
    def test_missing_token(self):
        from middleware.auth import user_id_from_token

        with pytest.raises(UnauthenticatedError) as exc_info:
            user_id_from_token(None)
        assert exc_info.value.status_code == 401

    @pytest.mark.unit
    def test_wrong_secret_rejected(self):
        from middleware.auth import user_id_from_token

        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "iss": settings.jwt_issuer,
                "sub": "1",
                "iat": int(now.timestamp()),
                "exp": int((now + timedelta(minutes=5)).timestamp()),
            },
            "some-other-secret-that-is-long-enough",
            algorithm="HS256",
        )
        with pytest.raises(UnauthenticatedError):
            user_id_from_token(token)

    @pytest.mark.unit
    def test_expired_token_rejected(self):
        from middleware.auth import user_id_from_token

        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {
                "iss": settings.jwt_issuer,
                "sub": "1",
                "iat": int(past.timestamp()),
                "exp": int((past + timedelta(minutes=5)).timestamp()),
            },
            settings.jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(UnauthenticatedError) as exc_info:
            user_id_from_token(token)
        assert "expired" in exc_info.value.message.lower()

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize("header", ["Token abc", "Bearer", "Bearer   ", ""])
    async def test_malformed_header(self, header):
        from middleware.auth import require_token_user_id

        with pytest.raises(UnauthenticatedError):
            await require_token_user_id(authorization=header)

    @pytest.mark.unit
    def test_unconfigured_secret_rejects(self, monkeypatch):
        from middleware.auth import decode_access_token

        monkeypatch.setattr(settings, "jwt_secret", "")
        with pytest.raises(UnauthenticatedError):
            decode_access_token("anything")


class TestRoleDependencies:

    @pytest.mark.asyncio
    async def test_require_user_unknown_id(self, db_session):
        from deps import require_user

        with pytest.raises(UnauthenticatedError):
            await require_user(user_id=999, db=db_session)

    @pytest.mark.asyncio
    async def test_customer_guard(self, customer, admin):
        from deps import require_customer

        assert await require_customer(user=customer) is customer
        with pytest.raises(UnauthorizedError):
            await require_customer(user=admin)

    @pytest.mark.asyncio
    async def test_admin_guard(self, admin, courier):
        from deps import require_admin

        assert await require_admin(user=admin) is admin
        with pytest.raises(UnauthorizedError) as exc_info:
            await require_admin(user=courier)
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_staff_guard(self, admin, courier, customer):
        from deps import require_staff

        assert await require_staff(user=admin) is admin
        assert await require_staff(user=courier) is courier
        with pytest.raises(UnauthorizedError):
            await require_staff(user=customer)
