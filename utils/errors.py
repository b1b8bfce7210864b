"""Error taxonomy for the changelog service.

Each error carries the HTTP status code the API layer should answer with,
so routes can translate failures without inspecting exception types one
by one. Messages are human-readable summaries safe to show to clients.
"""

from typing import Optional


class ChangelogError(Exception):
    """Base class for errors raised by the changelog pipeline."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class FeedbackValidationError(ChangelogError):
    """A feedback submission failed validation (bad score, missing field)."""

    status_code = 400

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class MalformedRepositoryURL(ChangelogError):
    """The repository URL could not be parsed into owner/name."""

    status_code = 400


class UpstreamError(ChangelogError):
    """GitHub or the model provider failed for a reason other than not-found."""

    status_code = 500


class PromptNotFoundError(ChangelogError):
    """No prompt template exists for the configured project and slug."""

    status_code = 500


class PromptTemplateError(ChangelogError):
    """A stored prompt template is missing required fields or is malformed."""

    status_code = 500


class LoggingUnavailable(ChangelogError):
    """The event logger is not initialized or could not be reached."""

    status_code = 500
