"""
Tests for the voice provider and audio storage.

Outbound HTTP is served by httpx.MockTransport.
"""

import json

import httpx
import pytest

from app.exceptions import StorageUploadError, VoiceProviderError
from app.models.api import VoiceSettings
from app.models.domain import SynthesizedAudio
from app.services.voice_provider import AudioStorage, ElevenLabsVoiceProvider, audio_file_name

MP3_BYTES = b"ID3" + b"\x00" * 61


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestAudioFileName:
    def test_format(self):
        assert audio_file_name("voice-1", epoch_ms=1700000000000) == (
            "audio_1700000000000_voice-1.mp3"
        )

    def test_defaults_to_current_time(self):
        name = audio_file_name("v")
        assert name.startswith("audio_")
        assert name.endswith("_v.mp3")


class TestSynthesize:
    """Tests for ElevenLabsVoiceProvider.synthesize."""

    async def test_request_shape(self):
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, content=MP3_BYTES, headers={"content-type": "audio/mpeg"})

        provider = ElevenLabsVoiceProvider(
            api_key="xi-test", base_url="https://tts.example.com/v1", http_client=_client(handler)
        )
        audio = await provider.synthesize("Hello", "voice-1", VoiceSettings(stability=0.0))

        assert audio.size_bytes == 64
        request = captured[0]
        assert str(request.url) == "https://tts.example.com/v1/text-to-speech/voice-1"
        assert request.headers["xi-api-key"] == "xi-test"
        assert request.headers["Accept"] == "audio/mpeg"
        body = json.loads(request.content)
        assert body["text"] == "Hello"
        assert body["model_id"] == "eleven_multilingual_v2"
        assert body["voice_settings"] == {
            "stability": 0.0,
            "similarity_boost": 0.75,
            "style": 0.3,
            "use_speaker_boost": True,
        }

    async def test_missing_key(self):
        provider = ElevenLabsVoiceProvider(api_key="")
        with pytest.raises(VoiceProviderError, match="not configured"):
            await provider.synthesize("Hello", "voice-1", VoiceSettings())

    async def test_path_like_voice_id_never_sent(self):
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, content=MP3_BYTES)

        provider = ElevenLabsVoiceProvider(api_key="xi", http_client=_client(handler))
        with pytest.raises(VoiceProviderError, match="Invalid voice id"):
            await provider.synthesize("Hello", "x/../../avatars/evil", VoiceSettings())

        assert captured == []

    async def test_error_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, text="invalid key")

        provider = ElevenLabsVoiceProvider(api_key="xi", http_client=_client(handler))
        with pytest.raises(VoiceProviderError) as exc_info:
            await provider.synthesize("Hello", "voice-1", VoiceSettings())

        assert exc_info.value.message == "ElevenLabs API error: 401 - invalid key"

    async def test_transport_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out")

        provider = ElevenLabsVoiceProvider(api_key="xi", http_client=_client(handler))
        with pytest.raises(VoiceProviderError, match="ElevenLabs request failed"):
            await provider.synthesize("Hello", "voice-1", VoiceSettings())


class TestAudioStorage:
    """Tests for AudioStorage.upload."""

    async def test_upload_returns_public_url(self):
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"Key": "audio/a.mp3"})

        storage = AudioStorage(
            storage_url="https://store.example.com/",
            service_key="service-key",
            bucket="audio",
            http_client=_client(handler),
        )
        url = await storage.upload("a.mp3", SynthesizedAudio(audio=MP3_BYTES))

        assert url == "https://store.example.com/storage/v1/object/public/audio/a.mp3"
        request = captured[0]
        assert str(request.url) == "https://store.example.com/storage/v1/object/audio/a.mp3"
        assert request.headers["Authorization"] == "Bearer service-key"
        assert request.headers["Content-Type"] == "audio/mpeg"
        assert request.content == MP3_BYTES

    async def test_missing_configuration(self):
        storage = AudioStorage(storage_url="", service_key="")
        with pytest.raises(StorageUploadError, match="Storage configuration missing"):
            await storage.upload("a.mp3", SynthesizedAudio(audio=MP3_BYTES))

    async def test_error_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, text="forbidden")

        storage = AudioStorage(
            storage_url="https://store.example.com",
            service_key="k",
            http_client=_client(handler),
        )
        with pytest.raises(StorageUploadError, match="Storage upload error: 403 - forbidden"):
            await storage.upload("a.mp3", SynthesizedAudio(audio=MP3_BYTES))
