"""
Tests for the quota gate.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest
from conftest import make_profile_data, make_result

from app.models.api import PlanType
from app.services.quota import DENIAL_REASON, QuotaService, check_quota, month_start


class TestCheckQuota:
    """Tests for the pure word quota decision."""

    def test_free_at_limit_denied(self):
        decision = check_quota(PlanType.FREE, 10000, 10000)
        assert decision.allowed is False
        assert decision.reason == DENIAL_REASON

    def test_free_below_limit_allowed(self):
        decision = check_quota(PlanType.FREE, 9999, 10000)
        assert decision.allowed is True
        assert decision.reason is None

    def test_free_over_limit_denied(self):
        assert check_quota(PlanType.FREE, 12000, 10000).allowed is False

    @pytest.mark.parametrize("plan", [PlanType.PREMIUM, PlanType.ENTERPRISE])
    def test_paid_plans_unlimited(self, plan):
        decision = check_quota(plan, 50000, 10000)
        assert decision.allowed is True
        assert decision.used == 50000


class TestMonthStart:
    def test_first_instant_of_month(self):
        assert month_start(datetime(2024, 3, 17, 22, 5, tzinfo=UTC)) == datetime(
            2024, 3, 1, tzinfo=UTC
        )


class TestQuotaService:
    """Tests for ledger-backed quota checks."""

    async def test_audio_quota_denied_at_limit(self, db_session: AsyncMock):
        db_session.execute = AsyncMock(return_value=make_result(scalar=5))
        service = QuotaService(db_session)

        decision = await service.check_audio_quota(
            make_profile_data(), datetime(2024, 1, 15, tzinfo=UTC)
        )

        assert decision.allowed is False
        assert decision.used == 5
        assert decision.limit == 5

    async def test_audio_quota_allowed_below_limit(self, db_session: AsyncMock):
        db_session.execute = AsyncMock(return_value=make_result(scalar=4))
        service = QuotaService(db_session)

        decision = await service.check_audio_quota(
            make_profile_data(), datetime(2024, 1, 15, tzinfo=UTC)
        )

        assert decision.allowed is True

    async def test_audio_quota_paid_skips_ledger(self, db_session: AsyncMock):
        service = QuotaService(db_session)

        decision = await service.check_audio_quota(
            make_profile_data(plan_type=PlanType.PREMIUM), datetime(2024, 1, 15, tzinfo=UTC)
        )

        assert decision.allowed is True
        db_session.execute.assert_not_called()

    async def test_status(self, db_session: AsyncMock):
        db_session.execute = AsyncMock(return_value=make_result(scalar=2))
        service = QuotaService(db_session)

        status = await service.status(
            make_profile_data(api_usage_count=2500), datetime(2024, 1, 15, tzinfo=UTC)
        )

        assert status.enforced is True
        assert status.words_used == 2500
        assert status.words_remaining == 7500
        assert status.usage_percentage == 25
        assert status.audio_used == 2
        assert status.audio_remaining == 3

    async def test_status_over_limit_clamps_remaining(self, db_session: AsyncMock):
        db_session.execute = AsyncMock(return_value=make_result(scalar=7))
        service = QuotaService(db_session)

        status = await service.status(
            make_profile_data(api_usage_count=10400), datetime(2024, 1, 15, tzinfo=UTC)
        )

        assert status.words_remaining == 0
        assert status.usage_percentage == 104
        assert status.audio_remaining == 0
