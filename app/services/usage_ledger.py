"""
Usage Ledger - Append-only log of trackable user actions.

Appends are fire-and-forget: a failed write is logged and counted,
never retried and never raised to the caller.
"""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import UsageEvent
from app.models.api import ActionType
from app.models.domain import UsageEventData, UsageEventIntent, UsageTotals
from app.observability.logging import get_logger
from app.observability.metrics import metrics

logger = get_logger(__name__)


class UsageLedger:
    """Writes and aggregates usage_analytics rows for one session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def append(
        self,
        user_id: str,
        action_type: ActionType,
        tool_used: str | None = None,
        words: int = 0,
        characters: int = 0,
        audio_seconds: int = 0,
    ) -> None:
        """
        Record one usage event in its own commit.

        Call after the action's primary writes are committed so a ledger
        failure can only roll back the ledger row.
        """
        intent = UsageEventIntent(
            user_id=user_id,
            action_type=action_type,
            tool_used=tool_used,
            words_generated=words,
            characters_generated=characters,
            audio_seconds_generated=audio_seconds,
        )
        self.session.add(
            UsageEvent(
                user_id=intent.user_id,
                action_type=intent.action_type.value,
                tool_used=intent.tool_used,
                words_generated=intent.words_generated,
                characters_generated=intent.characters_generated,
                audio_seconds_generated=intent.audio_seconds_generated,
            )
        )
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.warning(
                "usage_event_append_failed",
                user_id=user_id,
                action_type=action_type.value,
                error=str(exc),
            )
            metrics.record_ledger_failure(action_type.value)
            return

        logger.debug(
            "usage_event_appended",
            user_id=user_id,
            action_type=action_type.value,
            tool_used=tool_used,
            words=words,
        )

    async def sum_in_window(
        self, user_id: str, since: datetime, action_type: ActionType | None = None
    ) -> UsageTotals:
        """Aggregate count and deltas for events at or after `since`."""
        stmt = select(
            func.count(UsageEvent.id),
            func.coalesce(func.sum(UsageEvent.words_generated), 0),
            func.coalesce(func.sum(UsageEvent.characters_generated), 0),
            func.coalesce(func.sum(UsageEvent.audio_seconds_generated), 0),
        ).where(UsageEvent.user_id == user_id, UsageEvent.created_at >= since)
        if action_type is not None:
            stmt = stmt.where(UsageEvent.action_type == action_type.value)

        result = await self.session.execute(stmt)
        count, words, characters, audio_seconds = result.one()
        return UsageTotals(
            count=int(count),
            words=int(words),
            characters=int(characters),
            audio_seconds=int(audio_seconds),
        )

    async def count_in_window(
        self, user_id: str, action_type: ActionType, since: datetime
    ) -> int:
        """Number of events of one type at or after `since`."""
        stmt = select(func.count(UsageEvent.id)).where(
            UsageEvent.user_id == user_id,
            UsageEvent.action_type == action_type.value,
            UsageEvent.created_at >= since,
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def list_since(self, user_id: str, since: datetime) -> list[UsageEventData]:
        """Events at or after `since`, newest first."""
        stmt = (
            select(UsageEvent)
            .where(UsageEvent.user_id == user_id, UsageEvent.created_at >= since)
            .order_by(UsageEvent.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return [_event_to_domain(event) for event in result.scalars().all()]


def _event_to_domain(event: UsageEvent) -> UsageEventData:
    return UsageEventData(
        event_id=event.id,
        user_id=event.user_id,
        action_type=ActionType(event.action_type),
        tool_used=event.tool_used,
        words_generated=event.words_generated,
        characters_generated=event.characters_generated,
        audio_seconds_generated=event.audio_seconds_generated,
        created_at=event.created_at,
    )
