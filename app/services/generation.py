"""
Generation Facade - Quota-gated text and audio generation.

Provider and storage failures come back as success=False outcomes;
quota denials and missing projects raise.
"""

import math
import time
from collections.abc import Callable
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import GenerationProviderError, ProjectNotFoundError, QuotaExceededError
from app.models.api import ActionType, ProjectStatus, ToolType, VoiceSettings
from app.models.domain import (
    AudioGenerationOutcome,
    ProjectUpdate,
    SessionContext,
    TextGenerationOutcome,
)
from app.observability.logging import get_logger
from app.observability.metrics import metrics
from app.observability.tracing import span_attributes, trace_operation
from app.services.audio import AudioGenerationService
from app.services.profiles import ProfileService
from app.services.projects import ProjectService, count_text
from app.services.quota import QuotaService, check_quota
from app.services.text_provider import OpenAITextProvider
from app.services.usage_ledger import UsageLedger
from app.services.voice_provider import AudioStorage, ElevenLabsVoiceProvider, audio_file_name

logger = get_logger(__name__)


def _utc_now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(UTC)


def estimate_duration_seconds(text: str, chars_per_second: int) -> int:
    """Spoken length estimate from character count, rounded up."""
    return math.ceil(len(text) / chars_per_second)


class GenerationService:
    """
    Uniform contract over the text and voice providers.

    Text flow: quota gate, provider call, usage counter, optional project
    write, ledger event. Audio flow: ledger-derived quota, synthesis,
    upload, audio row, ledger event.
    """

    def __init__(
        self,
        session: AsyncSession,
        text_provider: OpenAITextProvider,
        voice_provider: ElevenLabsVoiceProvider,
        storage: AudioStorage,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.session = session
        self.text_provider = text_provider
        self.voice_provider = voice_provider
        self.storage = storage
        self.clock = clock
        self.profiles = ProfileService(session)
        self.projects = ProjectService(session)
        self.ledger = UsageLedger(session)
        self.quota = QuotaService(session)
        self.audio = AudioGenerationService(session)

    async def generate_text(
        self,
        context: SessionContext,
        prompt: str,
        tool_type: ToolType,
        language: str | None = None,
        max_tokens: int | None = None,
        project_id: UUID | None = None,
    ) -> TextGenerationOutcome:
        """
        Generate text for the caller.

        Raises:
            QuotaExceededError: Free plan at or over its monthly word limit
            ProjectNotFoundError: project_id given but not owned by the caller
        """
        profile = context.profile
        owner = context.user_id

        decision = check_quota(
            profile.plan_type, profile.api_usage_count, profile.monthly_usage_limit
        )
        if not decision.allowed:
            metrics.record_quota_denial("words")
            logger.info(
                "quota_denied",
                user_id=owner,
                resource="words",
                used=decision.used,
                limit=decision.limit,
            )
            raise QuotaExceededError(
                profile.plan_type.value, decision.used, decision.limit, resource="words"
            )

        if project_id is not None:
            await self.projects.get(owner, project_id)

        language = language or settings.default_language
        max_tokens = max_tokens or settings.text_default_max_tokens

        start = time.perf_counter()
        try:
            with trace_operation(
                "text_generation", tool_type=tool_type.value, language=language
            ) as span:
                content = await self.text_provider.generate(
                    prompt, tool_type, language, max_tokens
                )
                span.set_attributes(span_attributes(content_chars=len(content)))
        except GenerationProviderError as exc:
            metrics.record_generation("text", tool_type.value, False, time.perf_counter() - start)
            logger.warning(
                "text_generation_failed",
                user_id=owner,
                tool_type=tool_type.value,
                error=exc.message,
            )
            return TextGenerationOutcome(success=False, error=exc.message)

        words, characters = count_text(content)
        metrics.record_generation("text", tool_type.value, True, time.perf_counter() - start)
        metrics.record_words_generated(tool_type.value, words)

        await self.profiles.record_text_usage(owner, words)

        if project_id is not None:
            # Usage is already charged; a project deleted mid-generation keeps the result
            try:
                await self.projects.update(
                    owner,
                    project_id,
                    ProjectUpdate(
                        content=content,
                        prompt=prompt,
                        language=language,
                        status=ProjectStatus.COMPLETED,
                    ),
                )
            except ProjectNotFoundError:
                logger.warning(
                    "generated_project_missing",
                    user_id=owner,
                    project_id=str(project_id),
                )

        await self.ledger.append(
            owner,
            ActionType.CONTENT_GENERATED,
            tool_used=tool_type.value,
            words=words,
            characters=characters,
        )

        logger.info(
            "text_generation_completed",
            user_id=owner,
            tool_type=tool_type.value,
            word_count=words,
            project_id=str(project_id) if project_id else None,
        )
        return TextGenerationOutcome(
            success=True, content=content, word_count=words, character_count=characters
        )

    async def generate_audio(
        self,
        context: SessionContext,
        text: str,
        voice_id: str,
        voice_name: str,
        voice_settings: VoiceSettings | None = None,
        project_id: UUID | None = None,
    ) -> AudioGenerationOutcome:
        """
        Synthesize speech, upload it, and record the generation.

        Raises:
            QuotaExceededError: Free plan at or over its monthly audio limit
            ProjectNotFoundError: project_id given but not owned by the caller
        """
        owner = context.user_id
        voice_settings = voice_settings or VoiceSettings()

        decision = await self.quota.check_audio_quota(context.profile, self.clock())
        if not decision.allowed:
            metrics.record_quota_denial("audio")
            logger.info(
                "quota_denied",
                user_id=owner,
                resource="audio",
                used=decision.used,
                limit=decision.limit,
            )
            raise QuotaExceededError(
                context.profile.plan_type.value,
                decision.used,
                decision.limit,
                resource="audio generations",
            )

        if project_id is not None:
            await self.projects.get(owner, project_id)

        start = time.perf_counter()
        try:
            with trace_operation(
                "audio_generation", voice_id=voice_id, text_chars=len(text)
            ) as span:
                audio = await self.voice_provider.synthesize(text, voice_id, voice_settings)
                audio_url = await self.storage.upload(audio_file_name(voice_id), audio)
                span.set_attributes(span_attributes(file_size_bytes=audio.size_bytes))
        except GenerationProviderError as exc:
            metrics.record_generation("audio", ToolType.TTS.value, False, time.perf_counter() - start)
            logger.warning(
                "audio_generation_failed",
                user_id=owner,
                voice_id=voice_id,
                error=exc.message,
            )
            return AudioGenerationOutcome(success=False, error=exc.message)

        metrics.record_generation("audio", ToolType.TTS.value, True, time.perf_counter() - start)

        duration = estimate_duration_seconds(text, settings.audio_chars_per_second)
        generation = await self.audio.record_completed(
            owner=owner,
            text=text,
            voice_id=voice_id,
            voice_name=voice_name,
            settings=voice_settings,
            audio_url=audio_url,
            duration_seconds=duration,
            file_size_bytes=audio.size_bytes,
            project_id=project_id,
        )
        metrics.record_audio_seconds(duration)

        await self.ledger.append(
            owner,
            ActionType.AUDIO_GENERATED,
            tool_used=ToolType.TTS.value,
            characters=len(text),
            audio_seconds=duration,
        )

        logger.info(
            "audio_generation_completed",
            user_id=owner,
            voice_id=voice_id,
            duration_seconds=duration,
            file_size_bytes=audio.size_bytes,
        )
        return AudioGenerationOutcome(
            success=True,
            audio_url=audio_url,
            duration_seconds=duration,
            file_size_bytes=audio.size_bytes,
            generation_id=generation.generation_id,
        )
