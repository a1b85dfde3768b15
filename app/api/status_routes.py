"""
Status API routes - Dependency health for the WriteAI status page.

Public endpoint (no auth). Each provider is graded operational, degraded
or outage; the worst grade becomes the overall status. Results are cached
briefly so the page can poll without hammering the providers.
"""

import asyncio
import time
from datetime import UTC, datetime
from enum import Enum

import httpx
from fastapi import APIRouter
from pydantic import BaseModel, Field

from app.config import settings
from app.db.session import get_write_db, ping_database
from app.observability.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["status"])

CHECK_TIMEOUT = 5.0  # seconds
DEGRADED_LATENCY_THRESHOLD = 1000  # ms
CACHE_TTL_SECONDS = 10.0


class StatusLevel(str, Enum):
    OPERATIONAL = "operational"
    DEGRADED = "degraded"
    OUTAGE = "outage"


# Worst first; the overall status is the first level any provider reports
_SEVERITY = (StatusLevel.OUTAGE, StatusLevel.DEGRADED, StatusLevel.OPERATIONAL)


class ProviderStatus(BaseModel):
    """Status of a single dependency."""

    status: StatusLevel
    latency_ms: int | None = None
    last_check: str = Field(..., description="ISO 8601 timestamp")
    message: str | None = None


class ServiceStatusResponse(BaseModel):
    """GET /v1/status response."""

    service: str = "writeai"
    status: StatusLevel
    timestamp: str = Field(..., description="ISO 8601 timestamp")
    version: str
    providers: dict[str, ProviderStatus]


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _graded(latency_ms: int) -> ProviderStatus:
    if latency_ms > DEGRADED_LATENCY_THRESHOLD:
        return ProviderStatus(
            status=StatusLevel.DEGRADED,
            latency_ms=latency_ms,
            last_check=_now_iso(),
            message="High latency",
        )
    return ProviderStatus(
        status=StatusLevel.OPERATIONAL, latency_ms=latency_ms, last_check=_now_iso()
    )


def _outage(message: str, latency_ms: int | None = None) -> ProviderStatus:
    return ProviderStatus(
        status=StatusLevel.OUTAGE, latency_ms=latency_ms, last_check=_now_iso(), message=message
    )


def _not_configured() -> ProviderStatus:
    # Generation answers success=false without credentials; the API itself stays up
    return ProviderStatus(
        status=StatusLevel.DEGRADED, last_check=_now_iso(), message="Not configured"
    )


async def check_postgresql() -> ProviderStatus:
    """Round-trip SELECT 1 on the primary."""
    start = time.perf_counter()
    try:
        async for db in get_write_db():
            await ping_database(db)
    except Exception as e:
        logger.warning("postgresql_health_check_failed", error=str(e))
        return _outage("Connection failed")
    return _graded(_elapsed_ms(start))


async def _check_http_endpoint(
    name: str, url: str, headers: dict[str, str], http_client: httpx.AsyncClient | None = None
) -> ProviderStatus:
    """GET an authenticated listing endpoint; 200 is graded by latency, anything else degrades."""
    start = time.perf_counter()
    client = http_client or httpx.AsyncClient(timeout=CHECK_TIMEOUT)
    try:
        response = await client.get(url, headers=headers)
    except httpx.TimeoutException:
        return _outage("Timeout", latency_ms=int(CHECK_TIMEOUT * 1000))
    except httpx.HTTPError as e:
        logger.warning("provider_health_check_failed", provider=name, error=str(e))
        return _outage("Connection failed")
    finally:
        if http_client is None:
            await client.aclose()

    latency_ms = _elapsed_ms(start)
    if response.status_code != 200:
        # 401 here usually means a rotated or revoked key
        return ProviderStatus(
            status=StatusLevel.DEGRADED,
            latency_ms=latency_ms,
            last_check=_now_iso(),
            message=f"Unexpected status: {response.status_code}",
        )
    return _graded(latency_ms)


async def check_text_provider(http_client: httpx.AsyncClient | None = None) -> ProviderStatus:
    """List models with the configured key."""
    if not settings.openai_api_key:
        return _not_configured()
    return await _check_http_endpoint(
        "text_provider",
        f"{settings.openai_base_url.rstrip('/')}/models",
        {"Authorization": f"Bearer {settings.openai_api_key}"},
        http_client,
    )


async def check_voice_provider(http_client: httpx.AsyncClient | None = None) -> ProviderStatus:
    """List voices with the configured key."""
    if not settings.elevenlabs_api_key:
        return _not_configured()
    return await _check_http_endpoint(
        "voice_provider",
        f"{settings.elevenlabs_base_url.rstrip('/')}/voices",
        {"xi-api-key": settings.elevenlabs_api_key},
        http_client,
    )


async def check_storage() -> ProviderStatus:
    """Configuration only; upload failures surface on the generation itself."""
    if not settings.storage_configured:
        return _not_configured()
    return ProviderStatus(status=StatusLevel.OPERATIONAL, latency_ms=0, last_check=_now_iso())


def calculate_overall_status(providers: dict[str, ProviderStatus]) -> StatusLevel:
    reported = {p.status for p in providers.values()}
    return next((level for level in _SEVERITY if level in reported), StatusLevel.OPERATIONAL)


class _StatusCache:
    """Single-entry TTL cache for the last status response."""

    def __init__(self, ttl_seconds: float) -> None:
        self.ttl_seconds = ttl_seconds
        self._stored_at = 0.0
        self._response: ServiceStatusResponse | None = None

    def get(self) -> ServiceStatusResponse | None:
        if self._response is None:
            return None
        if time.monotonic() - self._stored_at >= self.ttl_seconds:
            return None
        return self._response

    def put(self, response: ServiceStatusResponse) -> None:
        self._response = response
        self._stored_at = time.monotonic()

    def clear(self) -> None:
        self._response = None


_status_cache = _StatusCache(CACHE_TTL_SECONDS)


def reset_status_cache() -> None:
    _status_cache.clear()


@router.get("/v1/status", response_model=ServiceStatusResponse)
async def get_status() -> ServiceStatusResponse:
    """
    Aggregate dependency status.

    Checks run concurrently; a cached result younger than the TTL is
    returned as-is.
    """
    cached = _status_cache.get()
    if cached is not None:
        logger.debug("status_cache_hit")
        return cached

    postgresql, text_generation, voice_synthesis, audio_storage = await asyncio.gather(
        check_postgresql(),
        check_text_provider(),
        check_voice_provider(),
        check_storage(),
    )
    providers = {
        "postgresql": postgresql,
        "text_generation": text_generation,
        "voice_synthesis": voice_synthesis,
        "audio_storage": audio_storage,
    }

    response = ServiceStatusResponse(
        service="writeai",
        status=calculate_overall_status(providers),
        timestamp=_now_iso(),
        version=settings.api_version,
        providers=providers,
    )
    _status_cache.put(response)

    overall = response.status
    if overall != StatusLevel.OPERATIONAL:
        logger.info(
            "service_status_not_operational",
            status=overall.value,
            providers={name: p.status.value for name, p in providers.items()},
        )
    return response
