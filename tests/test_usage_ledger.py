"""
Tests for the usage ledger.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from conftest import TEST_USER_ID, create_mock_event, make_result
from sqlalchemy.exc import OperationalError

from app.db.models import UsageEvent
from app.models.api import ActionType
from app.services.usage_ledger import UsageLedger


class TestAppend:
    """Tests for UsageLedger.append."""

    async def test_append_adds_row_and_commits(self, db_session: AsyncMock):
        ledger = UsageLedger(db_session)

        await ledger.append(
            TEST_USER_ID,
            ActionType.CONTENT_GENERATED,
            tool_used="article",
            words=120,
            characters=700,
        )

        added = db_session.add.call_args.args[0]
        assert isinstance(added, UsageEvent)
        assert added.user_id == TEST_USER_ID
        assert added.action_type == "content_generated"
        assert added.tool_used == "article"
        assert added.words_generated == 120
        assert added.characters_generated == 700
        assert added.audio_seconds_generated == 0
        db_session.commit.assert_awaited_once()

    async def test_append_failure_is_swallowed(self, db_session: AsyncMock):
        db_session.commit = AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("down")))
        ledger = UsageLedger(db_session)

        with patch("app.services.usage_ledger.metrics") as mock_metrics:
            await ledger.append(TEST_USER_ID, ActionType.TEMPLATE_USED)

        db_session.rollback.assert_awaited_once()
        mock_metrics.record_ledger_failure.assert_called_once_with("template_used")

    async def test_negative_delta_rejected_before_write(self, db_session: AsyncMock):
        ledger = UsageLedger(db_session)

        with pytest.raises(ValueError):
            await ledger.append(TEST_USER_ID, ActionType.CONTENT_GENERATED, words=-5)

        db_session.add.assert_not_called()


class TestQueries:
    """Tests for ledger aggregation queries."""

    async def test_sum_in_window(self, db_session: AsyncMock):
        result = MagicMock()
        result.one = MagicMock(return_value=(3, 350, 2000, 12))
        db_session.execute = AsyncMock(return_value=result)

        totals = await UsageLedger(db_session).sum_in_window(
            TEST_USER_ID, datetime(2024, 1, 1, tzinfo=UTC)
        )

        assert totals.count == 3
        assert totals.words == 350
        assert totals.characters == 2000
        assert totals.audio_seconds == 12

    async def test_sum_in_window_empty(self, db_session: AsyncMock):
        totals = await UsageLedger(db_session).sum_in_window(
            TEST_USER_ID, datetime(2024, 1, 1, tzinfo=UTC), ActionType.AUDIO_GENERATED
        )
        assert totals.count == 0
        assert totals.words == 0

    async def test_count_in_window(self, db_session: AsyncMock):
        db_session.execute = AsyncMock(return_value=make_result(scalar=4))

        count = await UsageLedger(db_session).count_in_window(
            TEST_USER_ID, ActionType.AUDIO_GENERATED, datetime(2024, 1, 1, tzinfo=UTC)
        )

        assert count == 4

    async def test_list_since_converts_rows(self, db_session: AsyncMock):
        rows = [create_mock_event(words=10), create_mock_event(words=20)]
        db_session.execute = AsyncMock(return_value=make_result(rows=rows))

        events = await UsageLedger(db_session).list_since(
            TEST_USER_ID, datetime(2024, 1, 1, tzinfo=UTC)
        )

        assert [e.words_generated for e in events] == [10, 20]
        assert events[0].action_type == ActionType.CONTENT_GENERATED
