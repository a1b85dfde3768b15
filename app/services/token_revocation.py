"""
Token Revocation Service.

Sign-out support: revoked bearer tokens are rejected until they expire.
Uses SHA-256 hash of tokens (never stores raw tokens).

- In-memory cache for fast lookups, loaded from the database on first use
- Database persistence for durability across restarts
- TTL-based cleanup of expired entries
"""

import hashlib
import time
from datetime import UTC, datetime, timedelta
from typing import ClassVar

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import RevokedToken
from app.models.domain import UserIdentity
from app.observability.logging import get_logger

logger = get_logger(__name__)

# Used when a token carries no exp claim
_FALLBACK_TOKEN_LIFETIME = timedelta(hours=24)


class TokenRevocationService:
    """
    Revoked-token registry.

    Usage:
        # On every authenticated request
        if await token_revocation_service.is_revoked(token, db):
            raise HTTPException(401, "Token has been revoked")

        # On sign-out
        await token_revocation_service.revoke(user, reason="sign_out", db=db)
    """

    # Class-level cache shared across instances
    # Key: token_hash, Value: expires_at timestamp
    _cache: ClassVar[dict[str, float]] = {}
    _cache_loaded: ClassVar[bool] = False
    _last_cleanup: ClassVar[float] = 0
    _CLEANUP_INTERVAL: ClassVar[int] = 300  # 5 minutes

    @staticmethod
    def hash_token(token: str) -> str:
        """Hash a token using SHA-256."""
        return hashlib.sha256(token.encode()).hexdigest()

    @classmethod
    def reset_cache(cls) -> None:
        """Forget cached state; the next check reloads from the database."""
        cls._cache = {}
        cls._cache_loaded = False
        cls._last_cleanup = 0

    async def load_cache(self, db: AsyncSession) -> None:
        """Load unexpired revocations from the database into memory."""
        if TokenRevocationService._cache_loaded:
            return

        now = datetime.now(UTC)
        stmt = select(RevokedToken).where(RevokedToken.token_expires_at > now)
        result = await db.execute(stmt)
        tokens = result.scalars().all()

        for token in tokens:
            TokenRevocationService._cache[token.token_hash] = token.token_expires_at.timestamp()

        TokenRevocationService._cache_loaded = True
        logger.info("token_revocation_cache_loaded", count=len(tokens))

    async def is_revoked(self, token: str, db: AsyncSession) -> bool:
        """Return True if the token was revoked and has not yet expired."""
        if not TokenRevocationService._cache_loaded:
            await self.load_cache(db)

        await self._cleanup_if_needed(db)

        token_hash = self.hash_token(token)
        expires_at = TokenRevocationService._cache.get(token_hash)
        if expires_at is None:
            return False

        if time.time() < expires_at:
            logger.warning("revoked_token_rejected", token_hash=token_hash[:16])
            return True

        del TokenRevocationService._cache[token_hash]
        return False

    async def revoke(self, user: UserIdentity, reason: str, db: AsyncSession) -> None:
        """
        Revoke the caller's bearer token, preventing its future use.

        Idempotent: revoking the same token twice keeps one row.
        """
        token_hash = self.hash_token(user.token)
        now = datetime.now(UTC)
        expires_at = user.token_expires_at or now + _FALLBACK_TOKEN_LIFETIME

        await db.merge(
            RevokedToken(
                token_hash=token_hash,
                user_id=user.user_id,
                reason=reason,
                revoked_at=now,
                token_expires_at=expires_at,
                revoked_by=user.user_id,
            )
        )
        await db.commit()

        TokenRevocationService._cache[token_hash] = expires_at.timestamp()

        logger.info(
            "token_revoked",
            token_hash=token_hash[:16],
            user_id=user.user_id,
            reason=reason,
            expires_at=expires_at.isoformat(),
        )

    async def _cleanup_if_needed(self, db: AsyncSession) -> None:
        """Periodically drop expired entries from cache and database."""
        now = time.time()
        if now - TokenRevocationService._last_cleanup < TokenRevocationService._CLEANUP_INTERVAL:
            return

        TokenRevocationService._last_cleanup = now

        expired_hashes = [h for h, exp in TokenRevocationService._cache.items() if now > exp]
        for h in expired_hashes:
            del TokenRevocationService._cache[h]

        stmt = delete(RevokedToken).where(RevokedToken.token_expires_at < datetime.now(UTC))
        result = await db.execute(stmt)
        await db.commit()
        rows_deleted = result.rowcount if result.rowcount else 0  # type: ignore[attr-defined]

        if expired_hashes or rows_deleted > 0:
            logger.info(
                "revoked_tokens_cleanup",
                cache_removed=len(expired_hashes),
                db_removed=rows_deleted,
            )


# Global singleton
token_revocation_service = TokenRevocationService()
