"""
Stats Aggregator - Dashboard metrics derived from projects and the usage ledger.

compute_dashboard_stats is pure: it reads only the snapshot and the `now`
it is given. DashboardService fetches a fresh snapshot per call.
"""

import math
from collections.abc import Iterable
from datetime import UTC, date, datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.api import ProjectStatus
from app.models.domain import (
    ActivityBucket,
    DashboardStats,
    ProjectData,
    RecentActivity,
    StatsSnapshot,
    ToolUsage,
    UsageEventData,
    UsageTotals,
)
from app.services.audio import AudioGenerationService
from app.services.catalog import tool_display_name
from app.services.projects import ProjectService
from app.services.usage_ledger import UsageLedger

# Productivity score weights
COMPLETION_WEIGHT = 0.4
VELOCITY_WEIGHT = 30
VELOCITY_TARGET_WORDS_PER_DAY = 100
CADENCE_WEIGHT = 30
CADENCE_TARGET_WEEKLY_PROJECTS = 5

WEEK = timedelta(days=7)
MONTH = timedelta(days=30)

DAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


def round_half_up(value: float) -> int:
    """Round .5 up (2.5 -> 3, 116.67 -> 117) for non-negative values."""
    return math.floor(value + 0.5)


def day_label(day: date) -> str:
    """Sun..Sat label for a calendar date."""
    # date.weekday() is Monday=0
    return DAY_LABELS[(day.weekday() + 1) % 7]


def format_relative_time(ts: datetime, now: datetime, tz: tzinfo = UTC) -> str:
    """
    Human relative timestamp.

    Under an hour is "Just now", under a day "{h}h ago", under a week
    "{d}d ago", otherwise the US short date M/D/YYYY.
    """
    hours = math.floor((now - ts).total_seconds() / 3600)
    if hours < 1:
        return "Just now"
    if hours < 24:
        return f"{hours}h ago"
    days = hours // 24
    if days < 7:
        return f"{days}d ago"
    local = ts.astimezone(tz)
    return f"{local.month}/{local.day}/{local.year}"


def productivity_score(
    total_projects: int, completed_projects: int, monthly_words: int, weekly_projects: int
) -> int:
    """0-100 composite of completion rate, writing velocity and cadence."""
    completion_rate = 100 * completed_projects / total_projects if total_projects else 0
    words_per_day = monthly_words / 30
    score = (
        COMPLETION_WEIGHT * completion_rate
        + VELOCITY_WEIGHT * min(words_per_day / VELOCITY_TARGET_WORDS_PER_DAY, 1)
        + CADENCE_WEIGHT * min(weekly_projects / CADENCE_TARGET_WEEKLY_PROJECTS, 1)
    )
    return min(100, round_half_up(score))


def top_tools(projects: Iterable[ProjectData], limit: int) -> list[ToolUsage]:
    """
    Per-tool project counts, most used first; ties keep first-encounter order.

    Each percentage is rounded half-up on its own, so the listed percentages
    can sum to slightly more than 100 (at most half a point per entry).
    """
    counts: dict[str, int] = {}
    total = 0
    for project in projects:
        counts[project.tool_type] = counts.get(project.tool_type, 0) + 1
        total += 1

    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [
        ToolUsage(
            tool_type=tool_type,
            name=tool_display_name(tool_type),
            count=count,
            percentage=round_half_up(100 * count / total),
        )
        for tool_type, count in ranked[:limit]
    ]


def weekly_activity(
    projects: Iterable[ProjectData], now: datetime, tz: tzinfo = UTC
) -> list[ActivityBucket]:
    """Seven calendar-day buckets, six days ago through today, in `tz`."""
    today = now.astimezone(tz).date()
    days = [today - timedelta(days=offset) for offset in range(6, -1, -1)]
    projects_per_day = {day: 0 for day in days}
    words_per_day = {day: 0 for day in days}

    for project in projects:
        created = project.created_at.astimezone(tz).date()
        if created in projects_per_day:
            projects_per_day[created] += 1
            words_per_day[created] += project.word_count

    return [
        ActivityBucket(
            day=day_label(day),
            date=day.isoformat(),
            projects=projects_per_day[day],
            words=words_per_day[day],
        )
        for day in days
    ]


def recent_activity(
    projects: Iterable[ProjectData], now: datetime, limit: int, tz: tzinfo = UTC
) -> list[RecentActivity]:
    """Most recently updated projects with relative timestamps."""
    latest = sorted(projects, key=lambda p: p.updated_at, reverse=True)[:limit]
    return [
        RecentActivity(
            project_id=p.project_id,
            tool_type=p.tool_type,
            title=p.title,
            time=format_relative_time(p.updated_at, now, tz),
            status=p.status,
        )
        for p in latest
    ]


def totals_from_events(events: Iterable[UsageEventData]) -> UsageTotals:
    """Sum ledger deltas over already-fetched events."""
    count = words = characters = audio_seconds = 0
    for event in events:
        count += 1
        words += event.words_generated
        characters += event.characters_generated
        audio_seconds += event.audio_seconds_generated
    return UsageTotals(
        count=count, words=words, characters=characters, audio_seconds=audio_seconds
    )


def compute_dashboard_stats(
    snapshot: StatsSnapshot,
    now: datetime,
    top_tools_limit: int = 5,
    recent_limit: int = 10,
    tz: tzinfo = UTC,
) -> DashboardStats:
    """
    Derive every dashboard metric from one owner's snapshot.

    weekly_projects is a rolling 7x24h window on created_at; weekly_activity
    buckets by calendar date.
    """
    projects = snapshot.projects
    total_projects = len(projects)
    total_words = sum(p.word_count for p in projects)
    completed = sum(1 for p in projects if p.status == ProjectStatus.COMPLETED)
    drafts = sum(1 for p in projects if p.status == ProjectStatus.DRAFT)

    week_ago = now - WEEK
    month_ago = now - MONTH
    weekly_projects = sum(1 for p in projects if p.created_at >= week_ago)
    monthly_words = sum(p.word_count for p in projects if p.created_at >= month_ago)

    average = round_half_up(total_words / total_projects) if total_projects else 0

    return DashboardStats(
        total_projects=total_projects,
        total_words=total_words,
        completed_projects=completed,
        draft_projects=drafts,
        audio_generations=len(snapshot.audio_generations),
        weekly_projects=weekly_projects,
        monthly_words=monthly_words,
        average_words_per_project=average,
        productivity_score=productivity_score(
            total_projects, completed, monthly_words, weekly_projects
        ),
        top_tools=tuple(top_tools(projects, top_tools_limit)),
        recent_activity=tuple(recent_activity(projects, now, recent_limit, tz)),
        weekly_activity=tuple(weekly_activity(projects, now, tz)),
        usage_last_30_days=totals_from_events(
            e for e in snapshot.usage_events if e.created_at >= month_ago
        ),
        generated_at=now,
    )


class DashboardService:
    """Loads a fresh snapshot and aggregates it."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.projects = ProjectService(session)
        self.ledger = UsageLedger(session)
        self.audio = AudioGenerationService(session)

    async def load_snapshot(self, owner: str, now: datetime) -> StatsSnapshot:
        projects = await self.projects.list_by_owner(owner)
        events = await self.ledger.list_since(owner, now - MONTH)
        audio = await self.audio.list_by_owner(owner)
        return StatsSnapshot(
            projects=tuple(projects),
            usage_events=tuple(events),
            audio_generations=tuple(audio),
        )

    async def load(
        self,
        owner: str,
        now: datetime,
        top_tools_limit: int | None = None,
        recent_limit: int | None = None,
    ) -> DashboardStats:
        """Dashboard metrics for one owner as of `now`."""
        snapshot = await self.load_snapshot(owner, now)
        return compute_dashboard_stats(
            snapshot,
            now,
            top_tools_limit=top_tools_limit or settings.stats_top_tools_limit,
            recent_limit=recent_limit or settings.stats_recent_activity_limit,
            tz=ZoneInfo(settings.stats_timezone),
        )
