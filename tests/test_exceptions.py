"""
Tests for exception classes.

Covers all exception types and their string representations.
"""

from uuid import uuid4

import pytest

from app.exceptions import (
    AuthenticationError,
    DatabaseError,
    GenerationProviderError,
    ProfileNotFoundError,
    ProjectNotFoundError,
    QuotaExceededError,
    StorageUploadError,
    TemplateNotFoundError,
    TemplateRenderError,
    TextProviderError,
    VoiceProviderError,
    WriteAIError,
    WriteVerificationError,
)


class TestWriteAIError:
    """Tests for base WriteAIError."""

    def test_is_exception(self):
        assert issubclass(WriteAIError, Exception)

    def test_can_be_raised(self):
        with pytest.raises(WriteAIError):
            raise WriteAIError("test error")


class TestQuotaExceededError:
    """Tests for QuotaExceededError."""

    def test_attributes(self):
        exc = QuotaExceededError(plan_type="free", used=10000, limit=10000)
        assert exc.plan_type == "free"
        assert exc.used == 10000
        assert exc.limit == 10000
        assert exc.resource == "words"

    def test_message(self):
        exc = QuotaExceededError(plan_type="free", used=10000, limit=10000)
        assert str(exc) == "Monthly words limit reached (10000/10000). Please upgrade to continue."

    def test_audio_resource(self):
        exc = QuotaExceededError("free", 5, 5, resource="audio generations")
        assert "audio generations" in str(exc)
        assert "(5/5)" in str(exc)


class TestNotFoundErrors:
    """Tests for not-found exceptions."""

    def test_profile_not_found(self):
        exc = ProfileNotFoundError("user-1")
        assert exc.user_id == "user-1"
        assert str(exc) == "Profile not found: user-1"

    def test_project_not_found(self):
        project_id = uuid4()
        exc = ProjectNotFoundError(project_id)
        assert exc.project_id == project_id
        assert str(project_id) in str(exc)

    def test_template_not_found(self):
        exc = TemplateNotFoundError("blog-outro")
        assert exc.template_id == "blog-outro"
        assert "blog-outro" in str(exc)


class TestTemplateRenderError:
    """Tests for TemplateRenderError."""

    def test_lists_missing_values(self):
        exc = TemplateRenderError(["name", "topic"])
        assert exc.missing == ["name", "topic"]
        assert str(exc) == "Missing template values: name, topic"


class TestGenerationProviderErrors:
    """Tests for provider error hierarchy."""

    @pytest.mark.parametrize("cls", [TextProviderError, VoiceProviderError, StorageUploadError])
    def test_subclasses_share_base(self, cls):
        exc = cls("boom")
        assert isinstance(exc, GenerationProviderError)
        assert isinstance(exc, WriteAIError)
        assert exc.message == "boom"
        assert str(exc) == "boom"


class TestInfrastructureErrors:
    """Tests for database and auth errors."""

    def test_write_verification(self):
        exc = WriteVerificationError("row missing")
        assert exc.message == "row missing"
        assert str(exc) == "Write verification failed: row missing"

    def test_database_error(self):
        exc = DatabaseError("connection reset")
        assert str(exc) == "Database error: connection reset"

    def test_authentication_error(self):
        exc = AuthenticationError("Token has expired")
        assert exc.message == "Token has expired"
        assert str(exc) == "Authentication failed: Token has expired"
