"""Initial schema: profiles, projects, usage ledger, audio, templates, revoked tokens.

Revision ID: 2026_10_01_0001
Revises:
Create Date: 2026-10-01

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "2026_10_01_0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("company", sa.String(255), nullable=True),
        sa.Column("job_title", sa.String(255), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("avatar_url", sa.String(1024), nullable=True),
        sa.Column("plan_type", sa.String(20), nullable=False, server_default="free"),
        sa.Column("subscription_status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("subscription_end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("api_usage_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("monthly_usage_limit", sa.Integer(), nullable=False, server_default="10000"),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.CheckConstraint("api_usage_count >= 0", name="ck_profiles_usage_non_negative"),
        sa.CheckConstraint("monthly_usage_limit > 0", name="ck_profiles_limit_positive"),
        sa.CheckConstraint(
            "plan_type IN ('free', 'premium', 'enterprise')", name="ck_profiles_plan_type"
        ),
    )
    op.create_index("idx_profiles_email", "profiles", ["email"])

    op.create_table(
        "writing_projects",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(255),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("tool_type", sa.String(50), nullable=False),
        sa.Column("prompt", sa.Text(), nullable=True),
        sa.Column("language", sa.String(20), nullable=False, server_default="pt-BR"),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("word_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("character_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.CheckConstraint("word_count >= 0", name="ck_projects_word_count_non_negative"),
        sa.CheckConstraint(
            "character_count >= 0", name="ck_projects_character_count_non_negative"
        ),
        sa.CheckConstraint(
            "status IN ('draft', 'completed', 'archived')", name="ck_projects_status"
        ),
    )
    op.create_index("ix_writing_projects_user_id", "writing_projects", ["user_id"])
    op.create_index(
        "idx_writing_projects_user_updated", "writing_projects", ["user_id", "updated_at"]
    )
    op.create_index(
        "idx_writing_projects_user_created", "writing_projects", ["user_id", "created_at"]
    )

    op.create_table(
        "usage_analytics",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(255),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("action_type", sa.String(50), nullable=False),
        sa.Column("tool_used", sa.String(50), nullable=True),
        sa.Column("words_generated", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("characters_generated", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("audio_seconds_generated", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.CheckConstraint("words_generated >= 0", name="ck_usage_words_non_negative"),
        sa.CheckConstraint("characters_generated >= 0", name="ck_usage_characters_non_negative"),
        sa.CheckConstraint(
            "audio_seconds_generated >= 0", name="ck_usage_audio_seconds_non_negative"
        ),
    )
    op.create_index("ix_usage_analytics_user_id", "usage_analytics", ["user_id"])
    op.create_index(
        "idx_usage_analytics_user_created", "usage_analytics", ["user_id", "created_at"]
    )
    op.create_index("idx_usage_analytics_action_type", "usage_analytics", ["action_type"])

    op.create_table(
        "audio_generations",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(255),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "project_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("writing_projects.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("text_content", sa.Text(), nullable=False),
        sa.Column("voice_id", sa.String(255), nullable=False),
        sa.Column("voice_name", sa.String(255), nullable=False),
        sa.Column("voice_stability", sa.Float(), nullable=False, server_default="0.5"),
        sa.Column("voice_similarity_boost", sa.Float(), nullable=False, server_default="0.75"),
        sa.Column("voice_style", sa.Float(), nullable=False, server_default="0.3"),
        sa.Column(
            "voice_use_speaker_boost", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column("audio_url", sa.String(2048), nullable=True),
        sa.Column("duration_seconds", sa.Integer(), nullable=True),
        sa.Column("file_size_bytes", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.CheckConstraint(
            "voice_stability >= 0 AND voice_stability <= 1", name="ck_audio_stability_range"
        ),
        sa.CheckConstraint(
            "voice_similarity_boost >= 0 AND voice_similarity_boost <= 1",
            name="ck_audio_similarity_range",
        ),
        sa.CheckConstraint(
            "voice_style >= 0 AND voice_style <= 1", name="ck_audio_style_range"
        ),
    )
    op.create_index("ix_audio_generations_user_id", "audio_generations", ["user_id"])
    op.create_index(
        "idx_audio_generations_user_created", "audio_generations", ["user_id", "created_at"]
    )

    op.create_table(
        "user_templates",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(255),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column(
            "variables", postgresql.ARRAY(sa.String()), nullable=False, server_default="{}"
        ),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.CheckConstraint("usage_count >= 0", name="ck_templates_usage_non_negative"),
    )
    op.create_index("ix_user_templates_user_id", "user_templates", ["user_id"])
    op.create_index(
        "idx_user_templates_public",
        "user_templates",
        ["is_public"],
        postgresql_where=sa.text("is_public IS TRUE"),
    )

    op.create_table(
        "revoked_tokens",
        sa.Column("token_hash", sa.String(64), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("reason", sa.String(255), nullable=False),
        sa.Column(
            "revoked_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("token_expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_by", sa.String(255), nullable=False),
    )
    op.create_index("idx_revoked_tokens_user_id", "revoked_tokens", ["user_id"])
    op.create_index("idx_revoked_tokens_expires_at", "revoked_tokens", ["token_expires_at"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index("idx_revoked_tokens_expires_at", table_name="revoked_tokens")
    op.drop_index("idx_revoked_tokens_user_id", table_name="revoked_tokens")
    op.drop_table("revoked_tokens")

    op.drop_index("idx_user_templates_public", table_name="user_templates")
    op.drop_index("ix_user_templates_user_id", table_name="user_templates")
    op.drop_table("user_templates")

    op.drop_index("idx_audio_generations_user_created", table_name="audio_generations")
    op.drop_index("ix_audio_generations_user_id", table_name="audio_generations")
    op.drop_table("audio_generations")

    op.drop_index("idx_usage_analytics_action_type", table_name="usage_analytics")
    op.drop_index("idx_usage_analytics_user_created", table_name="usage_analytics")
    op.drop_index("ix_usage_analytics_user_id", table_name="usage_analytics")
    op.drop_table("usage_analytics")

    op.drop_index("idx_writing_projects_user_created", table_name="writing_projects")
    op.drop_index("idx_writing_projects_user_updated", table_name="writing_projects")
    op.drop_index("ix_writing_projects_user_id", table_name="writing_projects")
    op.drop_table("writing_projects")

    op.drop_index("idx_profiles_email", table_name="profiles")
    op.drop_table("profiles")
