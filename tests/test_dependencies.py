"""
Tests for API Dependencies.

Tests JWT verification, revocation checks and session hydration.
"""

import time
from unittest.mock import AsyncMock, patch

import jwt
import pytest
from conftest import TEST_EMAIL, TEST_USER_ID, create_mock_profile
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from app.api.dependencies import (
    _unauthorized,
    decode_access_token,
    get_current_user,
    get_session_context,
)
from app.config import settings
from app.exceptions import AuthenticationError
from app.models.api import PlanType


def _token(**overrides) -> str:
    claims = {
        "sub": TEST_USER_ID,
        "email": TEST_EMAIL,
        "aud": "authenticated",
        "exp": int(time.time()) + 3600,
    }
    claims.update(overrides)
    claims = {k: v for k, v in claims.items() if v is not None}
    return jwt.encode(claims, settings.auth_jwt_secret, algorithm="HS256")


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestUnauthorized:
    def test_401_with_bearer_challenge(self):
        exc = _unauthorized("nope")
        assert exc.status_code == 401
        assert exc.detail == "nope"
        assert exc.headers == {"WWW-Authenticate": "Bearer"}


class TestDecodeAccessToken:
    """Tests for decode_access_token."""

    def test_valid_token(self):
        token = _token()
        user = decode_access_token(token)

        assert user.user_id == TEST_USER_ID
        assert user.email == TEST_EMAIL
        assert user.token == token
        assert user.token_expires_at is not None

    def test_missing_email_allowed(self):
        assert decode_access_token(_token(email=None)).email == ""

    def test_expired(self):
        with pytest.raises(AuthenticationError, match="Token has expired"):
            decode_access_token(_token(exp=int(time.time()) - 60))

    def test_wrong_audience(self):
        with pytest.raises(AuthenticationError, match="Invalid token"):
            decode_access_token(_token(aud="anon"))

    def test_wrong_signature(self):
        forged = jwt.encode(
            {"sub": TEST_USER_ID, "aud": "authenticated", "exp": int(time.time()) + 60},
            "another-secret-entirely-32-characters",
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError, match="Invalid token"):
            decode_access_token(forged)

    def test_missing_subject(self):
        with pytest.raises(AuthenticationError, match="Invalid token"):
            decode_access_token(_token(sub=None))

    def test_garbage(self):
        with pytest.raises(AuthenticationError):
            decode_access_token("not.a.jwt")


class TestGetCurrentUser:
    """Tests for the get_current_user dependency."""

    async def test_missing_header(self, db_session: AsyncMock):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(credentials=None, db=db_session)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Authorization header required"

    async def test_invalid_token(self, db_session: AsyncMock):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(credentials=_credentials("bad"), db=db_session)

        assert exc_info.value.status_code == 401

    async def test_valid_token(self, db_session: AsyncMock):
        user = await get_current_user(credentials=_credentials(_token()), db=db_session)
        assert user.user_id == TEST_USER_ID

    async def test_revoked_token(self, db_session: AsyncMock):
        with patch("app.api.dependencies.token_revocation_service") as mock_service:
            mock_service.is_revoked = AsyncMock(return_value=True)

            with pytest.raises(HTTPException) as exc_info:
                await get_current_user(credentials=_credentials(_token()), db=db_session)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Token has been revoked"


class TestGetSessionContext:
    async def test_existing_profile(self, db_session: AsyncMock, user_identity):
        db_session.get = AsyncMock(
            return_value=create_mock_profile(plan_type=PlanType.PREMIUM, api_usage_count=42)
        )

        context = await get_session_context(user=user_identity, db=db_session)

        assert context.user_id == TEST_USER_ID
        assert context.profile.plan_type == PlanType.PREMIUM
        assert context.profile.api_usage_count == 42
        db_session.add.assert_not_called()

    async def test_first_access_creates_free_profile(self, db_session: AsyncMock, user_identity):
        db_session.get = AsyncMock(side_effect=[None, create_mock_profile()])

        context = await get_session_context(user=user_identity, db=db_session)

        created = db_session.add.call_args.args[0]
        assert created.id == TEST_USER_ID
        assert created.plan_type == "free"
        assert created.monthly_usage_limit == 10000
        assert context.profile.plan_type == PlanType.FREE
        db_session.commit.assert_awaited_once()
