"""
Audio Generation Store - Persisted voice synthesis results.

Rows are written once, after synthesis and upload succeed, and never updated.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import AudioGeneration
from app.exceptions import WriteVerificationError
from app.models.api import AudioStatus, VoiceSettings
from app.models.domain import AudioGenerationData
from app.observability.logging import get_logger

logger = get_logger(__name__)


class AudioGenerationService:
    """Owner-scoped access to audio_generations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def record_completed(
        self,
        owner: str,
        text: str,
        voice_id: str,
        voice_name: str,
        settings: VoiceSettings,
        audio_url: str,
        duration_seconds: int,
        file_size_bytes: int,
        project_id: UUID | None = None,
    ) -> AudioGenerationData:
        """Persist a completed generation with write verification."""
        generation = AudioGeneration(
            user_id=owner,
            project_id=project_id,
            text_content=text,
            voice_id=voice_id,
            voice_name=voice_name,
            voice_stability=settings.stability,
            voice_similarity_boost=settings.similarity_boost,
            voice_style=settings.style,
            voice_use_speaker_boost=settings.use_speaker_boost,
            audio_url=audio_url,
            duration_seconds=duration_seconds,
            file_size_bytes=file_size_bytes,
            status=AudioStatus.COMPLETED.value,
        )
        self.session.add(generation)
        await self.session.flush()

        verified = await self.session.get(AudioGeneration, generation.id)
        if verified is None:
            raise WriteVerificationError(f"Audio generation {generation.id} not found after insert")

        await self.session.commit()

        logger.info(
            "audio_generation_recorded",
            user_id=owner,
            generation_id=str(verified.id),
            voice_id=voice_id,
            duration_seconds=duration_seconds,
        )
        return _generation_to_domain(verified)

    async def list_by_owner(self, owner: str, limit: int | None = None) -> list[AudioGenerationData]:
        """Owner's generations, newest first."""
        stmt = (
            select(AudioGeneration)
            .where(AudioGeneration.user_id == owner)
            .order_by(AudioGeneration.created_at.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return [_generation_to_domain(g) for g in result.scalars().all()]


def _generation_to_domain(generation: AudioGeneration) -> AudioGenerationData:
    """Convert ORM generation to domain model."""
    return AudioGenerationData(
        generation_id=generation.id,
        user_id=generation.user_id,
        project_id=generation.project_id,
        text_content=generation.text_content,
        voice_id=generation.voice_id,
        voice_name=generation.voice_name,
        voice_settings=VoiceSettings(
            stability=generation.voice_stability,
            similarity_boost=generation.voice_similarity_boost,
            style=generation.voice_style,
            use_speaker_boost=generation.voice_use_speaker_boost,
        ),
        audio_url=generation.audio_url,
        duration_seconds=generation.duration_seconds,
        file_size_bytes=generation.file_size_bytes,
        status=AudioStatus(generation.status),
        error_message=generation.error_message,
        created_at=generation.created_at,
    )
