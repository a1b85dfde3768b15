"""
API Models - Pydantic models for request/response validation.

NO DICTIONARIES - All data structures are strongly typed.
"""

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class PlanType(str, Enum):
    """Subscription tier controlling quota enforcement."""

    FREE = "free"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


class SubscriptionStatus(str, Enum):
    """Subscription status enumeration."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    CANCELLED = "cancelled"
    PAST_DUE = "past_due"


class ProjectStatus(str, Enum):
    """Writing project status enumeration."""

    DRAFT = "draft"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class ProjectStatusFilter(str, Enum):
    """Status filter accepted by the project listing."""

    ALL = "all"
    DRAFT = "draft"
    COMPLETED = "completed"


class ProjectSort(str, Enum):
    """Sort keys accepted by the project listing."""

    DATE = "date"  # updated_at, newest first
    TITLE = "title"
    WORDS = "words"  # word_count, largest first


class ActionType(str, Enum):
    """Usage ledger action types."""

    PROJECT_CREATED = "project_created"
    CONTENT_GENERATED = "content_generated"
    AUDIO_GENERATED = "audio_generated"
    TEMPLATE_USED = "template_used"


class AudioStatus(str, Enum):
    """Audio generation status enumeration."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ToolType(str, Enum):
    """
    Generation profile that produced or edits a project.

    Unknown tags resolve to GENERAL instead of failing validation.
    """

    REWRITE = "rewrite"
    ARTICLE = "article"
    EMAIL = "email"
    SOCIAL = "social"
    PRODUCT = "product"
    CORRECTION = "correction"
    TTS = "tts"
    AUDIOBOOK = "audiobook"
    CHAT = "chat"
    GENERAL = "general"

    @classmethod
    def _missing_(cls, value: object) -> "ToolType":
        if isinstance(value, str):
            normalized = value.strip().lower()
            for member in cls:
                if member.value == normalized:
                    return member
        return cls.GENERAL


# ============================================================================
# Profile Models
# ============================================================================


class ProfileResponse(BaseModel):
    """GET /v1/profile response."""

    id: str
    email: str
    full_name: str | None = None
    company: str | None = None
    job_title: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    plan_type: PlanType
    subscription_status: SubscriptionStatus
    subscription_end_date: str | None = None
    api_usage_count: int
    monthly_usage_limit: int
    created_at: str
    updated_at: str


class UpdateProfileRequest(BaseModel):
    """PATCH /v1/profile request body - personal details only."""

    full_name: str | None = Field(None, max_length=255)
    company: str | None = Field(None, max_length=255)
    job_title: str | None = Field(None, max_length=255)
    bio: str | None = Field(None, max_length=2000)
    avatar_url: str | None = Field(None, max_length=1024)


class QuotaStatusResponse(BaseModel):
    """GET /v1/quota response."""

    plan_type: PlanType
    enforced: bool
    words_used: int
    words_limit: int
    words_remaining: int
    usage_percentage: int
    audio_used: int
    audio_limit: int
    audio_remaining: int


class SignOutResponse(BaseModel):
    """POST /v1/auth/sign-out response."""

    signed_out: bool = True


# ============================================================================
# Project Models
# ============================================================================


class CreateProjectRequest(BaseModel):
    """POST /v1/projects request body."""

    title: str = Field(..., min_length=1, max_length=255)
    tool_type: ToolType

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        """Reject whitespace-only titles."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("title cannot be blank")
        return stripped


class UpdateProjectRequest(BaseModel):
    """PATCH /v1/projects/{id} request body - omitted fields are left unchanged."""

    title: str | None = Field(None, min_length=1, max_length=255)
    content: str | None = None
    tool_type: ToolType | None = None
    prompt: str | None = None
    status: ProjectStatus | None = None
    language: str | None = Field(None, min_length=2, max_length=20)


class ProjectResponse(BaseModel):
    """Single writing project."""

    id: UUID
    title: str
    content: str
    tool_type: str
    prompt: str | None = None
    status: ProjectStatus
    language: str
    word_count: int
    character_count: int
    created_at: str  # ISO 8601 timestamp
    updated_at: str  # ISO 8601 timestamp


class ProjectListResponse(BaseModel):
    """GET /v1/projects response."""

    projects: list[ProjectResponse]
    total: int


# ============================================================================
# Generation Models
# ============================================================================


class VoiceSettings(BaseModel):
    """Voice synthesis settings - explicit fields, no dict."""

    stability: float = Field(0.5, ge=0.0, le=1.0)
    similarity_boost: float = Field(0.75, ge=0.0, le=1.0)
    style: float = Field(0.3, ge=0.0, le=1.0)
    use_speaker_boost: bool = True


class GenerateTextRequest(BaseModel):
    """POST /v1/generate/text request body."""

    prompt: str = Field(..., min_length=1)
    tool_type: ToolType
    language: str | None = Field(None, min_length=2, max_length=20)
    max_tokens: int | None = Field(None, gt=0, le=16000)
    project_id: UUID | None = None

    @field_validator("prompt")
    @classmethod
    def validate_prompt(cls, v: str) -> str:
        """Reject whitespace-only prompts."""
        if not v.strip():
            raise ValueError("prompt cannot be blank")
        return v


class TextGenerationResponse(BaseModel):
    """POST /v1/generate/text response - same shape for success and failure."""

    success: bool
    content: str = ""
    word_count: int = 0
    character_count: int = 0
    error: str | None = None


class GenerateAudioRequest(BaseModel):
    """POST /v1/generate/audio request body."""

    text: str = Field(..., min_length=1)
    voice_id: str = Field(..., min_length=1, max_length=255, pattern=r"^[A-Za-z0-9_-]+$")
    voice_name: str = Field(..., min_length=1, max_length=255)
    settings: VoiceSettings = Field(default_factory=VoiceSettings)
    project_id: UUID | None = None

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        """Reject whitespace-only text."""
        if not v.strip():
            raise ValueError("text cannot be blank")
        return v


class AudioGenerationResponse(BaseModel):
    """POST /v1/generate/audio response - same shape for success and failure."""

    success: bool
    audio_url: str | None = None
    duration_seconds: int | None = None
    file_size_bytes: int | None = None
    generation_id: UUID | None = None
    error: str | None = None


class AudioGenerationItem(BaseModel):
    """Single persisted audio generation."""

    id: UUID
    project_id: UUID | None = None
    text_content: str
    voice_id: str
    voice_name: str
    voice_settings: VoiceSettings
    audio_url: str | None = None
    duration_seconds: int | None = None
    file_size_bytes: int | None = None
    status: AudioStatus
    created_at: str


class AudioGenerationListResponse(BaseModel):
    """GET /v1/audio response."""

    generations: list[AudioGenerationItem]
    total: int


# ============================================================================
# Dashboard / Usage Models
# ============================================================================


class UsageTotalsResponse(BaseModel):
    """Aggregated ledger totals."""

    count: int
    words: int
    characters: int
    audio_seconds: int


class ToolUsageItem(BaseModel):
    """Per-tool project distribution entry."""

    tool_type: str
    name: str
    count: int
    percentage: int


class ActivityBucketItem(BaseModel):
    """One calendar day of the weekly activity series."""

    day: str
    date: str
    projects: int
    words: int


class RecentActivityItem(BaseModel):
    """Recently updated project entry."""

    id: UUID
    type: str
    title: str
    time: str
    status: ProjectStatus


class DashboardStatsResponse(BaseModel):
    """GET /v1/dashboard/stats response."""

    total_projects: int
    total_words: int
    completed_projects: int
    draft_projects: int
    audio_generations: int
    weekly_projects: int
    monthly_words: int
    average_words_per_project: int
    productivity_score: int
    top_tools: list[ToolUsageItem]
    recent_activity: list[RecentActivityItem]
    weekly_activity: list[ActivityBucketItem]
    usage_last_30_days: UsageTotalsResponse
    generated_at: str


class UsageSummaryResponse(BaseModel):
    """GET /v1/usage/summary response."""

    since: str
    action_type: ActionType | None = None
    totals: UsageTotalsResponse


# ============================================================================
# Catalog / Template Models
# ============================================================================


class ToolItem(BaseModel):
    """Writing tool catalog entry."""

    id: ToolType
    name: str
    category: str
    description: str


class VoiceItem(BaseModel):
    """Voice catalog entry."""

    id: str
    name: str
    language: str
    gender: str
    category: str


class VoiceGroup(BaseModel):
    """Voices sharing a language."""

    language: str
    voices: list[VoiceItem]


class TemplateItem(BaseModel):
    """Built-in or user template."""

    id: str
    name: str
    description: str | None = None
    category: str
    content: str
    variables: list[str]
    is_public: bool
    usage_count: int
    built_in: bool


class TemplateListResponse(BaseModel):
    """GET /v1/templates response."""

    templates: list[TemplateItem]
    categories: list[str]


class CreateTemplateRequest(BaseModel):
    """POST /v1/templates request body."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=1000)
    category: str = Field(..., min_length=1, max_length=100)
    content: str = Field(..., min_length=1)
    is_public: bool = False


class RenderTemplateRequest(BaseModel):
    """POST /v1/templates/render request body."""

    template_id: str = Field(..., min_length=1)
    values: dict[str, str] = Field(default_factory=dict)


class RenderTemplateResponse(BaseModel):
    """POST /v1/templates/render response."""

    template_id: str
    content: str


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str
    database: str
    timestamp: str
