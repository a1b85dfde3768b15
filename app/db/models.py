"""
Database Models - SQLAlchemy ORM models with strict typing.

NO DICTIONARIES - All columns use Mapped[] type annotations.
"""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    ARRAY,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def utc_now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(UTC)


class Profile(Base):
    """
    ORM model for profiles table.

    One row per authenticated user. Holds the plan, the running usage
    counter checked by the quota gate, and personal details.
    """

    __tablename__ = "profiles"

    # Primary Key - user id issued by the auth provider (JWT sub)
    id: Mapped[str] = mapped_column(String(255), primary_key=True)

    # Contact information
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    job_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    # Plan
    plan_type: Mapped[str] = mapped_column(String(20), nullable=False, default="free")
    subscription_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="active"
    )
    subscription_end_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Usage tracking (words generated; only enforced for free plans)
    api_usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    monthly_usage_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=10000)

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("api_usage_count >= 0", name="ck_profiles_usage_non_negative"),
        CheckConstraint("monthly_usage_limit > 0", name="ck_profiles_limit_positive"),
        CheckConstraint(
            "plan_type IN ('free', 'premium', 'enterprise')", name="ck_profiles_plan_type"
        ),
        Index("idx_profiles_email", "email"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<Profile(id={self.id}, plan_type={self.plan_type}, "
            f"usage={self.api_usage_count}/{self.monthly_usage_limit})>"
        )


class WritingProject(Base):
    """
    ORM model for writing_projects table.

    User-owned writing artifacts. Counts are denormalized from content.
    """

    __tablename__ = "writing_projects"

    # Primary Key
    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)

    # Owner
    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Content
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    tool_type: Mapped[str] = mapped_column(String(50), nullable=False)
    prompt: Mapped[str | None] = mapped_column(Text, nullable=True)
    language: Mapped[str] = mapped_column(String(20), nullable=False, default="pt-BR")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")

    # Denormalized counts - recomputed on every content write
    word_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    character_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("word_count >= 0", name="ck_projects_word_count_non_negative"),
        CheckConstraint(
            "character_count >= 0", name="ck_projects_character_count_non_negative"
        ),
        CheckConstraint(
            "status IN ('draft', 'completed', 'archived')", name="ck_projects_status"
        ),
        Index("idx_writing_projects_user_updated", "user_id", "updated_at"),
        Index("idx_writing_projects_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<WritingProject(id={self.id}, user_id={self.user_id}, "
            f"tool_type={self.tool_type}, words={self.word_count})>"
        )


class UsageEvent(Base):
    """
    ORM model for usage_analytics table.

    Append-only ledger of trackable user actions.
    """

    __tablename__ = "usage_analytics"

    # Primary Key
    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)

    # Owner
    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Action
    action_type: Mapped[str] = mapped_column(String(50), nullable=False)
    tool_used: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Deltas
    words_generated: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    characters_generated: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    audio_seconds_generated: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Timestamp
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    __table_args__ = (
        CheckConstraint("words_generated >= 0", name="ck_usage_words_non_negative"),
        CheckConstraint("characters_generated >= 0", name="ck_usage_characters_non_negative"),
        CheckConstraint(
            "audio_seconds_generated >= 0", name="ck_usage_audio_seconds_non_negative"
        ),
        Index("idx_usage_analytics_user_created", "user_id", "created_at"),
        Index("idx_usage_analytics_action_type", "action_type"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<UsageEvent(id={self.id}, user_id={self.user_id}, "
            f"action={self.action_type}, words={self.words_generated})>"
        )


class AudioGeneration(Base):
    """
    ORM model for audio_generations table.

    Immutable record of a completed voice synthesis.
    """

    __tablename__ = "audio_generations"

    # Primary Key
    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)

    # Owner and optional project
    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    project_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("writing_projects.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Input
    text_content: Mapped[str] = mapped_column(Text, nullable=False)
    voice_id: Mapped[str] = mapped_column(String(255), nullable=False)
    voice_name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Voice settings (no JSON - explicit columns)
    voice_stability: Mapped[float] = mapped_column(nullable=False, default=0.5)
    voice_similarity_boost: Mapped[float] = mapped_column(nullable=False, default=0.75)
    voice_style: Mapped[float] = mapped_column(nullable=False, default=0.3)
    voice_use_speaker_boost: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Output
    audio_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    duration_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    file_size_bytes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint(
            "voice_stability >= 0 AND voice_stability <= 1", name="ck_audio_stability_range"
        ),
        CheckConstraint(
            "voice_similarity_boost >= 0 AND voice_similarity_boost <= 1",
            name="ck_audio_similarity_range",
        ),
        CheckConstraint("voice_style >= 0 AND voice_style <= 1", name="ck_audio_style_range"),
        Index("idx_audio_generations_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<AudioGeneration(id={self.id}, user_id={self.user_id}, "
            f"voice_id={self.voice_id}, status={self.status})>"
        )


class UserTemplate(Base):
    """
    ORM model for user_templates table.

    User-authored content templates with {placeholder} variables.
    """

    __tablename__ = "user_templates"

    # Primary Key
    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)

    # Owner
    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    variables: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=list)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("usage_count >= 0", name="ck_templates_usage_non_negative"),
        Index("idx_user_templates_public", "is_public", postgresql_where=(is_public.is_(True))),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<UserTemplate(id={self.id}, name={self.name}, usage={self.usage_count})>"


class RevokedToken(Base):
    """
    ORM model for revoked_tokens table.

    Tracks signed-out bearer tokens to prevent their use.
    Tokens are identified by a hash of the token (not the token itself).
    """

    __tablename__ = "revoked_tokens"

    # Primary Key - hash of the token (SHA256)
    token_hash: Mapped[str] = mapped_column(String(64), primary_key=True)

    # Token metadata
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    reason: Mapped[str] = mapped_column(String(255), nullable=False)

    # When the token was revoked
    revoked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    # When the original token expires (for cleanup)
    # After this time, the entry can be safely deleted
    token_expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Who revoked it (user id for sign-out, or "system")
    revoked_by: Mapped[str] = mapped_column(String(255), nullable=False)

    __table_args__ = (
        Index("idx_revoked_tokens_user_id", "user_id"),
        Index("idx_revoked_tokens_expires_at", "token_expires_at"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<RevokedToken(hash={self.token_hash[:16]}..., "
            f"user_id={self.user_id}, reason={self.reason})>"
        )
