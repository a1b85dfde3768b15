"""
Voice Provider & Audio Storage - Speech synthesis and public upload.

Synthesis goes to the ElevenLabs text-to-speech API; the resulting MP3
is uploaded to the storage bucket and served from its public URL.
"""

import re
import time

import httpx

from app.config import settings
from app.exceptions import StorageUploadError, VoiceProviderError
from app.models.api import VoiceSettings
from app.models.domain import SynthesizedAudio
from app.observability.logging import get_logger

logger = get_logger(__name__)

VOICE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def audio_file_name(voice_id: str, epoch_ms: int | None = None) -> str:
    """audio_{epoch_ms}_{voice_id}.mp3"""
    if epoch_ms is None:
        epoch_ms = int(time.time() * 1000)
    return f"audio_{epoch_ms}_{voice_id}.mp3"


class ElevenLabsVoiceProvider:
    """Synthesizes speech through POST {base_url}/text-to-speech/{voice_id}."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.elevenlabs.io/v1",
        model_id: str = "eleven_multilingual_v2",
        timeout_seconds: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model_id = model_id
        self.timeout_seconds = timeout_seconds
        self._http_client = http_client

    @classmethod
    def from_settings(
        cls, http_client: httpx.AsyncClient | None = None
    ) -> "ElevenLabsVoiceProvider":
        return cls(
            api_key=settings.elevenlabs_api_key,
            base_url=settings.elevenlabs_base_url,
            model_id=settings.elevenlabs_model_id,
            timeout_seconds=settings.provider_timeout_seconds,
            http_client=http_client,
        )

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Get HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout_seconds)
        return self._http_client

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def synthesize(
        self, text: str, voice_id: str, voice_settings: VoiceSettings
    ) -> SynthesizedAudio:
        """
        Convert text to MP3 audio.

        Raises:
            VoiceProviderError: Missing key, transport failure, or non-2xx
        """
        if not self.api_key:
            raise VoiceProviderError("ElevenLabs API key not configured")
        if not VOICE_ID_PATTERN.fullmatch(voice_id):
            raise VoiceProviderError("Invalid voice id")

        body = {
            "text": text,
            "model_id": self.model_id,
            "voice_settings": {
                "stability": voice_settings.stability,
                "similarity_boost": voice_settings.similarity_boost,
                "style": voice_settings.style,
                "use_speaker_boost": voice_settings.use_speaker_boost,
            },
        }

        try:
            response = await self.http_client.post(
                f"{self.base_url}/text-to-speech/{voice_id}",
                json=body,
                headers={"Accept": "audio/mpeg", "xi-api-key": self.api_key},
            )
        except httpx.HTTPError as exc:
            logger.error("voice_provider_request_failed", voice_id=voice_id, error=str(exc))
            raise VoiceProviderError(f"ElevenLabs request failed: {exc}") from exc

        if response.status_code >= 400:
            logger.error(
                "voice_provider_error_response",
                status_code=response.status_code,
                voice_id=voice_id,
            )
            raise VoiceProviderError(
                f"ElevenLabs API error: {response.status_code} - {response.text}"
            )

        return SynthesizedAudio(
            audio=response.content,
            content_type=response.headers.get("content-type", "audio/mpeg"),
        )

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()


class AudioStorage:
    """Uploads audio to {storage_url}/storage/v1/object/{bucket}/{file}."""

    def __init__(
        self,
        storage_url: str,
        service_key: str,
        bucket: str = "audio",
        timeout_seconds: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.storage_url = storage_url.rstrip("/")
        self.service_key = service_key
        self.bucket = bucket
        self.timeout_seconds = timeout_seconds
        self._http_client = http_client

    @classmethod
    def from_settings(cls, http_client: httpx.AsyncClient | None = None) -> "AudioStorage":
        return cls(
            storage_url=settings.storage_url,
            service_key=settings.storage_service_key,
            bucket=settings.storage_bucket,
            timeout_seconds=settings.provider_timeout_seconds,
            http_client=http_client,
        )

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Get HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout_seconds)
        return self._http_client

    def public_url(self, file_name: str) -> str:
        return f"{self.storage_url}/storage/v1/object/public/{self.bucket}/{file_name}"

    async def upload(self, file_name: str, audio: SynthesizedAudio) -> str:
        """
        Upload audio and return its public URL.

        Raises:
            StorageUploadError: Storage not configured, transport failure, or non-2xx
        """
        if not self.storage_url or not self.service_key:
            raise StorageUploadError("Storage configuration missing")

        try:
            response = await self.http_client.post(
                f"{self.storage_url}/storage/v1/object/{self.bucket}/{file_name}",
                content=audio.audio,
                headers={
                    "Authorization": f"Bearer {self.service_key}",
                    "Content-Type": "audio/mpeg",
                },
            )
        except httpx.HTTPError as exc:
            logger.error("audio_upload_request_failed", file_name=file_name, error=str(exc))
            raise StorageUploadError(f"Storage upload failed: {exc}") from exc

        if response.status_code >= 400:
            logger.error(
                "audio_upload_error_response",
                status_code=response.status_code,
                file_name=file_name,
            )
            raise StorageUploadError(
                f"Storage upload error: {response.status_code} - {response.text}"
            )

        return self.public_url(file_name)

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
