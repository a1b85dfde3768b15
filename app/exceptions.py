"""
Exception Classes - Strongly typed exception hierarchy.

NO DICTIONARIES - All exceptions have typed attributes.
"""

from uuid import UUID


class WriteAIError(Exception):
    """Base exception for all service errors."""

    pass


class QuotaExceededError(WriteAIError):
    """Raised when a free plan has used up its monthly allowance."""

    def __init__(self, plan_type: str, used: int, limit: int, resource: str = "words") -> None:
        self.plan_type = plan_type
        self.used = used
        self.limit = limit
        self.resource = resource
        super().__init__(
            f"Monthly {resource} limit reached ({used}/{limit}). Please upgrade to continue."
        )


class ProfileNotFoundError(WriteAIError):
    """Raised when a profile doesn't exist."""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"Profile not found: {user_id}")


class ProjectNotFoundError(WriteAIError):
    """Raised when a project doesn't exist or is not owned by the caller."""

    def __init__(self, project_id: UUID) -> None:
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


class TemplateNotFoundError(WriteAIError):
    """Raised when a template doesn't exist or is not visible to the caller."""

    def __init__(self, template_id: str) -> None:
        self.template_id = template_id
        super().__init__(f"Template not found: {template_id}")


class TemplateRenderError(WriteAIError):
    """Raised when template placeholders have no value."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Missing template values: {', '.join(missing)}")


class GenerationProviderError(WriteAIError):
    """Raised when an outbound generation call fails."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class TextProviderError(GenerationProviderError):
    """Raised when the text generation provider fails."""

    pass


class VoiceProviderError(GenerationProviderError):
    """Raised when the voice synthesis provider fails."""

    pass


class StorageUploadError(GenerationProviderError):
    """Raised when generated audio cannot be uploaded."""

    pass


class WriteVerificationError(WriteAIError):
    """Raised when database write verification fails."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Write verification failed: {message}")


class DatabaseError(WriteAIError):
    """Raised when database operation fails unexpectedly."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Database error: {message}")


class AuthenticationError(WriteAIError):
    """Raised when authentication fails (missing, invalid, expired or revoked token)."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Authentication failed: {message}")
