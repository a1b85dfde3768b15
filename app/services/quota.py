"""
Quota Gate - Monthly allowance checks for free plans.

Word usage comes from the profile's running counter; audio usage is
counted from the usage ledger for the current UTC calendar month.
"""

from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.api import ActionType, PlanType
from app.models.domain import ProfileData, QuotaDecision, QuotaStatus
from app.services.stats import round_half_up
from app.services.usage_ledger import UsageLedger

DENIAL_REASON = "Monthly usage limit reached. Please upgrade to continue."


def month_start(now: datetime) -> datetime:
    """First instant of `now`'s calendar month in UTC."""
    current = now.astimezone(UTC)
    return datetime(current.year, current.month, 1, tzinfo=UTC)


def check_quota(plan_type: PlanType, current_usage: int, limit: int) -> QuotaDecision:
    """
    Decide whether a generation may proceed.

    Only free plans are limited; usage at or above the limit is denied.
    """
    if plan_type != PlanType.FREE:
        return QuotaDecision(allowed=True, used=current_usage, limit=limit)
    if current_usage >= limit:
        return QuotaDecision(
            allowed=False, used=current_usage, limit=limit, reason=DENIAL_REASON
        )
    return QuotaDecision(allowed=True, used=current_usage, limit=limit)


class QuotaService:
    """Quota checks that need the ledger."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.ledger = UsageLedger(session)

    async def audio_used_this_month(self, user_id: str, now: datetime) -> int:
        return await self.ledger.count_in_window(
            user_id, ActionType.AUDIO_GENERATED, month_start(now)
        )

    async def check_audio_quota(self, profile: ProfileData, now: datetime) -> QuotaDecision:
        """Compare this month's audio generations against the free audio limit."""
        limit = settings.free_monthly_audio_limit
        if profile.plan_type != PlanType.FREE:
            return QuotaDecision(allowed=True, used=0, limit=limit)
        used = await self.audio_used_this_month(profile.user_id, now)
        return check_quota(profile.plan_type, used, limit)

    async def status(self, profile: ProfileData, now: datetime) -> QuotaStatus:
        """Current word and audio allowance for a profile."""
        words_used = profile.api_usage_count
        words_limit = profile.monthly_usage_limit
        audio_used = await self.audio_used_this_month(profile.user_id, now)
        audio_limit = settings.free_monthly_audio_limit

        return QuotaStatus(
            plan_type=profile.plan_type,
            enforced=profile.plan_type == PlanType.FREE,
            words_used=words_used,
            words_limit=words_limit,
            words_remaining=max(words_limit - words_used, 0),
            usage_percentage=round_half_up(100 * words_used / words_limit),
            audio_used=audio_used,
            audio_limit=audio_limit,
            audio_remaining=max(audio_limit - audio_used, 0),
        )
