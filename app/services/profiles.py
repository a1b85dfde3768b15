"""
Profile Service - Per-user plan, usage counter and personal details.

NO DICTIONARIES - All operations use strongly typed domain models.
"""

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db.models import Profile
from app.exceptions import ProfileNotFoundError, WriteVerificationError
from app.models.api import PlanType, SubscriptionStatus
from app.models.domain import ProfileData, ProfileUpdate
from app.observability.logging import get_logger

logger = get_logger(__name__)


class ProfileService:
    """
    Profile store.

    Plan and usage fields are never written from user input; only
    record_text_usage moves the usage counter.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize profile service with database session."""
        self.session = session

    async def get_or_create(self, user_id: str, email: str) -> ProfileData:
        """
        Get existing profile or create a free one (upsert).

        First authenticated access provisions the profile.
        """
        profile = await self.session.get(Profile, user_id)
        if profile is not None:
            return _profile_to_domain(profile)

        new_profile = Profile(
            id=user_id,
            email=email,
            plan_type=PlanType.FREE.value,
            subscription_status=SubscriptionStatus.ACTIVE.value,
            api_usage_count=0,
            monthly_usage_limit=settings.free_monthly_word_limit,
        )
        self.session.add(new_profile)

        try:
            await self.session.flush()
        except IntegrityError:
            # Race condition - profile created by a concurrent request
            await self.session.rollback()
            profile = await self.session.get(Profile, user_id)
            if profile is None:
                raise WriteVerificationError("Profile creation failed due to race condition")
            return _profile_to_domain(profile)

        verified = await self.session.get(Profile, user_id)
        if verified is None:
            raise WriteVerificationError(f"Profile {user_id} not found after insert")

        await self.session.commit()

        logger.info("profile_created", user_id=user_id, plan_type=PlanType.FREE.value)
        return _profile_to_domain(verified)

    async def get(self, user_id: str) -> ProfileData:
        """
        Get a profile.

        Raises:
            ProfileNotFoundError: Profile doesn't exist
        """
        profile = await self.session.get(Profile, user_id)
        if profile is None:
            raise ProfileNotFoundError(user_id)
        return _profile_to_domain(profile)

    async def update(self, user_id: str, changes: ProfileUpdate) -> ProfileData:
        """
        Update personal details; None fields are left unchanged.

        Raises:
            ProfileNotFoundError: Profile doesn't exist
        """
        profile = await self.session.get(Profile, user_id)
        if profile is None:
            raise ProfileNotFoundError(user_id)

        if changes.full_name is not None:
            profile.full_name = changes.full_name
        if changes.company is not None:
            profile.company = changes.company
        if changes.job_title is not None:
            profile.job_title = changes.job_title
        if changes.bio is not None:
            profile.bio = changes.bio
        if changes.avatar_url is not None:
            profile.avatar_url = changes.avatar_url

        await self.session.flush()
        await self.session.commit()

        logger.info("profile_updated", user_id=user_id)
        return _profile_to_domain(profile)

    async def record_text_usage(self, user_id: str, words: int) -> None:
        """
        Add generated words to the running usage counter.

        Single UPDATE so concurrent generations cannot lose increments.
        """
        if words <= 0:
            return

        stmt = (
            update(Profile)
            .where(Profile.id == user_id)
            .values(api_usage_count=Profile.api_usage_count + words)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:  # type: ignore[attr-defined]
            raise ProfileNotFoundError(user_id)

        await self.session.commit()
        logger.info("usage_recorded", user_id=user_id, words=words)


def _profile_to_domain(profile: Profile) -> ProfileData:
    """Convert ORM profile to domain model."""
    return ProfileData(
        user_id=profile.id,
        email=profile.email,
        full_name=profile.full_name,
        company=profile.company,
        job_title=profile.job_title,
        bio=profile.bio,
        avatar_url=profile.avatar_url,
        plan_type=PlanType(profile.plan_type),
        subscription_status=SubscriptionStatus(profile.subscription_status),
        subscription_end_date=profile.subscription_end_date,
        api_usage_count=profile.api_usage_count,
        monthly_usage_limit=profile.monthly_usage_limit,
        created_at=profile.created_at,
        updated_at=profile.updated_at,
    )
