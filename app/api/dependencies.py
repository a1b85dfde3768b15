"""
FastAPI Dependencies - Authentication, session context and providers.

NO DICTIONARIES - All dependencies return typed objects.
"""

from datetime import UTC, datetime

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db.session import get_write_db
from app.exceptions import AuthenticationError
from app.models.domain import SessionContext, UserIdentity
from app.observability.logging import get_logger, log_context
from app.services.generation import GenerationService
from app.services.profiles import ProfileService
from app.services.text_provider import OpenAITextProvider
from app.services.token_revocation import token_revocation_service
from app.services.voice_provider import AudioStorage, ElevenLabsVoiceProvider

logger = get_logger(__name__)

# Bearer token scheme for JWT auth
bearer_scheme = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> UserIdentity:
    """
    Verify an auth-provider JWT and extract the caller.

    Raises:
        AuthenticationError: Bad signature, wrong audience, expired, or missing claims
    """
    try:
        claims = jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience,
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationError("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthenticationError(f"Invalid token: {exc}") from exc

    subject = claims.get("sub")
    if not subject:
        raise AuthenticationError("Token has no subject")

    return UserIdentity(
        user_id=str(subject),
        email=str(claims.get("email") or ""),
        token=token,
        token_expires_at=datetime.fromtimestamp(claims["exp"], UTC),
    )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_write_db),
) -> UserIdentity:
    """
    FastAPI dependency to validate the bearer JWT.

    Accepts: Authorization: Bearer {access_token}
    Rejects: missing, invalid, expired, or signed-out tokens (401)
    """
    if credentials is None:
        raise _unauthorized("Authorization header required")

    token = credentials.credentials
    try:
        user = decode_access_token(token)
    except AuthenticationError as exc:
        logger.info("token_rejected", reason=exc.message)
        raise _unauthorized(exc.message) from exc

    # Signed-out tokens stay invalid until they expire
    if await token_revocation_service.is_revoked(token, db):
        raise _unauthorized("Token has been revoked")

    return user


async def get_session_context(
    user: UserIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_write_db),
) -> SessionContext:
    """
    Hydrate the caller's profile once per request.

    First access provisions a free profile.
    """
    with log_context(user_id=user.user_id):
        profile = await ProfileService(db).get_or_create(user.user_id, user.email)
    return SessionContext(user=user, profile=profile)


# ============================================================================
# Outbound providers (process-wide, one HTTP client each)
# ============================================================================

_text_provider: OpenAITextProvider | None = None
_voice_provider: ElevenLabsVoiceProvider | None = None
_audio_storage: AudioStorage | None = None


def get_text_provider() -> OpenAITextProvider:
    global _text_provider
    if _text_provider is None:
        _text_provider = OpenAITextProvider.from_settings()
    return _text_provider


def get_voice_provider() -> ElevenLabsVoiceProvider:
    global _voice_provider
    if _voice_provider is None:
        _voice_provider = ElevenLabsVoiceProvider.from_settings()
    return _voice_provider


def get_audio_storage() -> AudioStorage:
    global _audio_storage
    if _audio_storage is None:
        _audio_storage = AudioStorage.from_settings()
    return _audio_storage


async def close_providers() -> None:
    """Close provider HTTP clients (for graceful shutdown)."""
    global _text_provider, _voice_provider, _audio_storage

    if _text_provider:
        await _text_provider.close()
        _text_provider = None
    if _voice_provider:
        await _voice_provider.close()
        _voice_provider = None
    if _audio_storage:
        await _audio_storage.close()
        _audio_storage = None


def get_generation_service(
    db: AsyncSession = Depends(get_write_db),
    text_provider: OpenAITextProvider = Depends(get_text_provider),
    voice_provider: ElevenLabsVoiceProvider = Depends(get_voice_provider),
    storage: AudioStorage = Depends(get_audio_storage),
) -> GenerationService:
    return GenerationService(db, text_provider, voice_provider, storage)
