"""
Errors raised by the video lifecycle.

Each error carries a caller-safe message. The API layer maps the classes
to HTTP status codes; nothing here knows about HTTP.
"""


class VideoLifecycleError(Exception):
    """Base class for lifecycle failures reported to callers."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(VideoLifecycleError):
    """Required input was missing or empty."""
    pass


class NotConfiguredError(VideoLifecycleError):
    """A required external service has no credentials configured."""
    pass


class VideoNotFoundError(VideoLifecycleError):
    """Metadata or blob absent where the operation requires it."""
    pass


class DependencyError(VideoLifecycleError):
    """A store or the credential issuer failed while serving the request."""
    pass
