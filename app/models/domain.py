"""
Domain Models - Internal business logic models using dataclasses.

NO DICTIONARIES - All data structures are strongly typed immutable dataclasses.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from app.models.api import (
    ActionType,
    AudioStatus,
    PlanType,
    ProjectStatus,
    SubscriptionStatus,
    VoiceSettings,
)


@dataclass(frozen=True)
class UserIdentity:
    """Authenticated caller extracted from a verified bearer token."""

    user_id: str
    email: str
    token: str
    token_expires_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate identity fields."""
        if not self.user_id:
            raise ValueError("user_id cannot be empty")


@dataclass(frozen=True)
class ProfileData:
    """Immutable profile snapshot."""

    user_id: str
    email: str
    full_name: str | None
    company: str | None
    job_title: str | None
    bio: str | None
    avatar_url: str | None
    plan_type: PlanType
    subscription_status: SubscriptionStatus
    subscription_end_date: datetime | None
    api_usage_count: int
    monthly_usage_limit: int
    created_at: datetime
    updated_at: datetime

    def __post_init__(self) -> None:
        """Validate usage counters."""
        if self.api_usage_count < 0:
            raise ValueError(f"api_usage_count cannot be negative: {self.api_usage_count}")
        if self.monthly_usage_limit <= 0:
            raise ValueError(f"monthly_usage_limit must be positive: {self.monthly_usage_limit}")


@dataclass(frozen=True)
class ProfileUpdate:
    """Personal details a user may change - None means unchanged."""

    full_name: str | None = None
    company: str | None = None
    job_title: str | None = None
    bio: str | None = None
    avatar_url: str | None = None


@dataclass(frozen=True)
class SessionContext:
    """Per-request caller state: verified identity plus hydrated profile."""

    user: UserIdentity
    profile: ProfileData

    @property
    def user_id(self) -> str:
        return self.user.user_id


@dataclass(frozen=True)
class ProjectData:
    """Immutable writing project snapshot."""

    project_id: UUID
    user_id: str
    title: str
    content: str
    tool_type: str
    prompt: str | None
    status: ProjectStatus
    language: str
    word_count: int
    character_count: int
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class ProjectUpdate:
    """Partial project update - None means the field is left unchanged."""

    title: str | None = None
    content: str | None = None
    tool_type: str | None = None
    prompt: str | None = None
    status: ProjectStatus | None = None
    language: str | None = None

    def __post_init__(self) -> None:
        """Validate provided fields."""
        if self.title is not None and not self.title.strip():
            raise ValueError("title cannot be blank")


@dataclass(frozen=True)
class UsageEventIntent:
    """Ledger entry before persistence."""

    user_id: str
    action_type: ActionType
    tool_used: str | None = None
    words_generated: int = 0
    characters_generated: int = 0
    audio_seconds_generated: int = 0

    def __post_init__(self) -> None:
        """Ledger deltas are non-negative."""
        if self.words_generated < 0:
            raise ValueError(f"words_generated cannot be negative: {self.words_generated}")
        if self.characters_generated < 0:
            raise ValueError(
                f"characters_generated cannot be negative: {self.characters_generated}"
            )
        if self.audio_seconds_generated < 0:
            raise ValueError(
                f"audio_seconds_generated cannot be negative: {self.audio_seconds_generated}"
            )


@dataclass(frozen=True)
class UsageEventData:
    """Immutable ledger entry after persistence."""

    event_id: UUID
    user_id: str
    action_type: ActionType
    tool_used: str | None
    words_generated: int
    characters_generated: int
    audio_seconds_generated: int
    created_at: datetime


@dataclass(frozen=True)
class UsageTotals:
    """Aggregated ledger counters over a window."""

    count: int = 0
    words: int = 0
    characters: int = 0
    audio_seconds: int = 0


@dataclass(frozen=True)
class AudioGenerationData:
    """Immutable persisted voice synthesis result."""

    generation_id: UUID
    user_id: str
    project_id: UUID | None
    text_content: str
    voice_id: str
    voice_name: str
    voice_settings: VoiceSettings
    audio_url: str | None
    duration_seconds: int | None
    file_size_bytes: int | None
    status: AudioStatus
    error_message: str | None
    created_at: datetime


@dataclass(frozen=True)
class QuotaDecision:
    """Result of a quota check - allowed, or denied with a reason."""

    allowed: bool
    used: int
    limit: int
    reason: str | None = None


@dataclass(frozen=True)
class QuotaStatus:
    """Current quota position for a profile."""

    plan_type: PlanType
    enforced: bool
    words_used: int
    words_limit: int
    words_remaining: int
    usage_percentage: int
    audio_used: int
    audio_limit: int
    audio_remaining: int


# ============================================================================
# Dashboard Statistics
# ============================================================================


@dataclass(frozen=True)
class StatsSnapshot:
    """Everything the stats aggregator reads for one owner."""

    projects: tuple[ProjectData, ...]
    usage_events: tuple[UsageEventData, ...] = ()
    audio_generations: tuple[AudioGenerationData, ...] = ()


@dataclass(frozen=True)
class ToolUsage:
    """Project count for one tool type."""

    tool_type: str
    name: str
    count: int
    percentage: int


@dataclass(frozen=True)
class ActivityBucket:
    """One calendar day of activity."""

    day: str  # Sun..Sat
    date: str  # YYYY-MM-DD in the stats timezone
    projects: int
    words: int


@dataclass(frozen=True)
class RecentActivity:
    """Recently updated project."""

    project_id: UUID
    tool_type: str
    title: str
    time: str
    status: ProjectStatus


@dataclass(frozen=True)
class DashboardStats:
    """Derived dashboard metrics."""

    total_projects: int
    total_words: int
    completed_projects: int
    draft_projects: int
    audio_generations: int
    weekly_projects: int
    monthly_words: int
    average_words_per_project: int
    productivity_score: int
    top_tools: tuple[ToolUsage, ...]
    recent_activity: tuple[RecentActivity, ...]
    weekly_activity: tuple[ActivityBucket, ...]
    usage_last_30_days: UsageTotals
    generated_at: datetime


# ============================================================================
# Generation
# ============================================================================


@dataclass(frozen=True)
class TextGenerationOutcome:
    """Normalized text generation result."""

    success: bool
    content: str = ""
    word_count: int = 0
    character_count: int = 0
    error: str | None = None


@dataclass(frozen=True)
class AudioGenerationOutcome:
    """Normalized audio generation result."""

    success: bool
    audio_url: str | None = None
    duration_seconds: int | None = None
    file_size_bytes: int | None = None
    generation_id: UUID | None = None
    error: str | None = None


@dataclass(frozen=True)
class SynthesizedAudio:
    """Raw audio returned by the voice provider."""

    audio: bytes
    content_type: str = "audio/mpeg"

    @property
    def size_bytes(self) -> int:
        return len(self.audio)


# ============================================================================
# Templates
# ============================================================================


@dataclass(frozen=True)
class TemplateData:
    """Built-in or stored content template."""

    template_id: str
    name: str
    description: str | None
    category: str
    content: str
    variables: tuple[str, ...]
    is_public: bool
    usage_count: int
    built_in: bool
    user_id: str | None = None
