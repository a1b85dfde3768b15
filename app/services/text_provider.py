"""
Text Provider - OpenAI-compatible chat completions client.

One outbound request per generation; no retries.
"""

import httpx

from app.config import settings
from app.exceptions import TextProviderError
from app.models.api import ToolType
from app.observability.logging import get_logger
from app.services.catalog import persona_for

logger = get_logger(__name__)


class OpenAITextProvider:
    """Generates text through POST {base_url}/chat/completions."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        timeout_seconds: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.temperature = temperature
        self.timeout_seconds = timeout_seconds
        self._http_client = http_client

    @classmethod
    def from_settings(cls, http_client: httpx.AsyncClient | None = None) -> "OpenAITextProvider":
        return cls(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            model=settings.openai_model,
            temperature=settings.openai_temperature,
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

    async def generate(
        self, prompt: str, tool_type: ToolType, language: str, max_tokens: int
    ) -> str:
        """
        Generate text for a prompt using the tool's persona.

        Raises:
            TextProviderError: Missing key, transport failure, non-2xx, or empty answer
        """
        if not self.api_key:
            raise TextProviderError("OpenAI API key not configured")

        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": persona_for(tool_type, language)},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": max_tokens,
            "temperature": self.temperature,
            "top_p": 1,
            "frequency_penalty": 0,
            "presence_penalty": 0,
        }

        try:
            response = await self.http_client.post(
                f"{self.base_url}/chat/completions",
                json=body,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.HTTPError as exc:
            logger.error("text_provider_request_failed", error=str(exc))
            raise TextProviderError(f"OpenAI request failed: {exc}") from exc

        if response.status_code >= 400:
            logger.error(
                "text_provider_error_response",
                status_code=response.status_code,
                tool_type=tool_type.value,
            )
            raise TextProviderError(
                f"OpenAI API error: {response.status_code} - {response.text}"
            )

        try:
            choices = response.json().get("choices") or []
            content = choices[0]["message"]["content"] if choices else None
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise TextProviderError("No content generated") from exc

        if not isinstance(content, str) or not content.strip():
            raise TextProviderError("No content generated")

        return content.strip()

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
