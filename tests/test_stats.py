"""
Tests for the dashboard stats aggregator.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock
from zoneinfo import ZoneInfo

import pytest
from conftest import (
    TEST_USER_ID,
    create_mock_audio,
    create_mock_project,
    make_audio_data,
    make_event_data,
    make_project_data,
    make_result,
)

from app.models.api import ActionType, ProjectStatus
from app.models.domain import StatsSnapshot
from app.services.stats import (
    DashboardService,
    compute_dashboard_stats,
    day_label,
    format_relative_time,
    productivity_score,
    recent_activity,
    round_half_up,
    top_tools,
    weekly_activity,
)

NOW = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)  # Monday


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        ("value", "expected"), [(2.5, 3), (116.666, 117), (0.49, 0), (33.5, 34), (0, 0)]
    )
    def test_rounding(self, value, expected):
        assert round_half_up(value) == expected


class TestFormatRelativeTime:
    """Tests for human relative timestamps."""

    def test_ten_minutes_is_just_now(self):
        assert format_relative_time(NOW - timedelta(minutes=10), NOW) == "Just now"

    def test_ninety_minutes(self):
        assert format_relative_time(NOW - timedelta(minutes=90), NOW) == "1h ago"

    def test_hours_floor(self):
        assert format_relative_time(NOW - timedelta(hours=23, minutes=59), NOW) == "23h ago"

    def test_days(self):
        assert format_relative_time(NOW - timedelta(days=3, hours=2), NOW) == "3d ago"

    def test_older_than_a_week_is_date(self):
        assert format_relative_time(NOW - timedelta(days=10), NOW) == "1/5/2024"

    def test_date_uses_timezone(self):
        ts = datetime(2024, 1, 5, 2, 0, tzinfo=UTC)
        assert format_relative_time(ts, NOW, ZoneInfo("America/Sao_Paulo")) == "1/4/2024"


class TestDayLabel:
    def test_monday(self):
        assert day_label(NOW.date()) == "Mon"

    def test_sunday(self):
        assert day_label((NOW - timedelta(days=1)).date()) == "Sun"


class TestProductivityScore:
    def test_no_projects(self):
        assert productivity_score(0, 0, 0, 0) == 0

    def test_composite(self):
        # 0.4 * 33.3 + 30 * 0.1167 + 30 * 0.6 = 34.83
        assert productivity_score(3, 1, 350, 3) == 35

    def test_capped_at_100(self):
        assert productivity_score(10, 10, 100000, 50) == 100

    def test_velocity_saturates_at_target(self):
        # 100 words/day over 30 days
        assert productivity_score(4, 1, 3000, 2) == productivity_score(4, 1, 9000, 2)
        assert productivity_score(4, 1, 2400, 2) < productivity_score(4, 1, 3000, 2)

    def test_cadence_saturates_at_target(self):
        assert productivity_score(4, 1, 600, 5) == productivity_score(4, 1, 600, 50)
        assert productivity_score(4, 1, 600, 4) < productivity_score(4, 1, 600, 5)


class TestTopTools:
    def test_counts_and_percentages(self):
        projects = [
            make_project_data(tool_type="email"),
            make_project_data(tool_type="email"),
            make_project_data(tool_type="article"),
        ]

        tools = top_tools(projects, limit=5)

        assert [(t.tool_type, t.count, t.percentage) for t in tools] == [
            ("email", 2, 67),
            ("article", 1, 33),
        ]
        assert tools[0].name == "Emails"

    def test_percentages_rounded_per_entry(self):
        projects = [make_project_data(tool_type="email") for _ in range(5)]
        projects += [make_project_data(tool_type="article") for _ in range(3)]

        tools = top_tools(projects, limit=5)

        # 62.5 and 37.5 both round up
        assert [t.percentage for t in tools] == [63, 38]
        assert sum(t.percentage for t in tools) == 101

    def test_ties_keep_first_seen_order(self):
        projects = [
            make_project_data(tool_type="social"),
            make_project_data(tool_type="email"),
        ]
        assert [t.tool_type for t in top_tools(projects, limit=5)] == ["social", "email"]

    def test_limit(self):
        projects = [make_project_data(tool_type=t) for t in ("email", "article", "social")]
        assert len(top_tools(projects, limit=2)) == 2

    def test_empty(self):
        assert top_tools([], limit=5) == []


class TestWeeklyActivity:
    def test_seven_buckets_ending_today(self):
        buckets = weekly_activity([], NOW)
        assert len(buckets) == 7
        assert buckets[-1].date == "2024-01-15"
        assert buckets[-1].day == "Mon"
        assert buckets[0].date == "2024-01-09"
        assert buckets[0].day == "Tue"

    def test_projects_bucketed_by_creation_day(self):
        projects = [
            make_project_data(word_count=100, created_at=NOW - timedelta(hours=1)),
            make_project_data(word_count=50, created_at=NOW - timedelta(hours=2)),
            make_project_data(word_count=25, created_at=NOW - timedelta(days=2)),
            make_project_data(word_count=999, created_at=NOW - timedelta(days=8)),
        ]

        buckets = {b.date: b for b in weekly_activity(projects, NOW)}

        assert buckets["2024-01-15"].projects == 2
        assert buckets["2024-01-15"].words == 150
        assert buckets["2024-01-13"].projects == 1
        assert sum(b.projects for b in buckets.values()) == 3


class TestRecentActivity:
    def test_latest_first_with_limit(self):
        projects = [
            make_project_data(title="old", updated_at=NOW - timedelta(days=3)),
            make_project_data(title="new", updated_at=NOW - timedelta(minutes=5)),
            make_project_data(title="mid", updated_at=NOW - timedelta(hours=5)),
        ]

        activity = recent_activity(projects, NOW, limit=2)

        assert [a.title for a in activity] == ["new", "mid"]
        assert [a.time for a in activity] == ["Just now", "5h ago"]


class TestComputeDashboardStats:
    """Tests for compute_dashboard_stats."""

    def test_empty_snapshot(self):
        stats = compute_dashboard_stats(StatsSnapshot(projects=()), NOW)

        assert stats.total_projects == 0
        assert stats.average_words_per_project == 0
        assert stats.productivity_score == 0
        assert stats.top_tools == ()
        assert len(stats.weekly_activity) == 7

    def test_three_recent_projects(self):
        projects = (
            make_project_data(
                word_count=100,
                status=ProjectStatus.COMPLETED,
                created_at=NOW - timedelta(days=1),
            ),
            make_project_data(word_count=250, created_at=NOW - timedelta(days=2)),
            make_project_data(word_count=0, created_at=NOW - timedelta(days=3)),
        )

        stats = compute_dashboard_stats(StatsSnapshot(projects=projects), NOW)

        assert stats.total_projects == 3
        assert stats.total_words == 350
        assert stats.average_words_per_project == 117
        assert stats.completed_projects == 1
        assert stats.draft_projects == 2
        assert stats.weekly_projects == 3
        assert stats.monthly_words == 350

    def test_windows_exclude_old_projects(self):
        projects = (
            make_project_data(word_count=10, created_at=NOW - timedelta(days=6)),
            make_project_data(word_count=20, created_at=NOW - timedelta(days=8)),
            make_project_data(word_count=40, created_at=NOW - timedelta(days=31)),
        )

        stats = compute_dashboard_stats(StatsSnapshot(projects=projects), NOW)

        assert stats.weekly_projects == 1
        assert stats.monthly_words == 30
        assert stats.total_words == 70

    def test_usage_and_audio(self):
        snapshot = StatsSnapshot(
            projects=(),
            usage_events=(
                make_event_data(words=100, characters=500, created_at=NOW - timedelta(days=1)),
                make_event_data(
                    action_type=ActionType.AUDIO_GENERATED,
                    characters=40,
                    audio_seconds=4,
                    created_at=NOW - timedelta(days=2),
                ),
            ),
            audio_generations=(make_audio_data(), make_audio_data()),
        )

        stats = compute_dashboard_stats(snapshot, NOW)

        assert stats.audio_generations == 2
        assert stats.usage_last_30_days.count == 2
        assert stats.usage_last_30_days.words == 100
        assert stats.usage_last_30_days.characters == 540
        assert stats.usage_last_30_days.audio_seconds == 4

    def test_pure(self):
        snapshot = StatsSnapshot(projects=(make_project_data(word_count=5),))
        assert compute_dashboard_stats(snapshot, NOW) == compute_dashboard_stats(snapshot, NOW)


class TestDashboardService:
    async def test_load_reads_fresh_snapshot(self, db_session: AsyncMock):
        project_rows = [
            create_mock_project(word_count=100, created_at=NOW - timedelta(days=1)),
        ]
        audio_rows = [create_mock_audio()]
        db_session.execute = AsyncMock(
            side_effect=[
                make_result(rows=project_rows),
                make_result(rows=[]),
                make_result(rows=audio_rows),
            ]
        )

        stats = await DashboardService(db_session).load(TEST_USER_ID, NOW)

        assert stats.total_projects == 1
        assert stats.total_words == 100
        assert stats.audio_generations == 1
        assert stats.generated_at == NOW
        assert db_session.execute.await_count == 3
