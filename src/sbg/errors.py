"""Error taxonomy for the storyboard pipeline."""

from enum import Enum
from typing import Iterable, Optional


class StoryboardError(Exception):
    """Base class for all storyboard generator errors."""


class ValidationError(StoryboardError):
    """Raised when a project document is missing or has malformed fields.

    Carries every problem found in a single pass, not just the first.
    """

    def __init__(self, problems: Iterable[str]) -> None:
        self.problems = list(problems)
        summary = "; ".join(self.problems) or "invalid project"
        super().__init__(f"Invalid project ({len(self.problems)} problem(s)): {summary}")


class RemoteErrorKind(str, Enum):
    """Structured classification of a remote-call failure."""

    TRANSIENT = "transient"
    QUOTA = "quota"
    BLOCKED = "blocked"
    MALFORMED = "malformed"

    @property
    def retryable(self) -> bool:
        """Whether a failure of this kind is worth retrying with backoff."""
        return self in (RemoteErrorKind.TRANSIENT, RemoteErrorKind.QUOTA)


class RemoteError(StoryboardError):
    """A remote call failed or returned an unusable payload."""

    def __init__(
        self,
        message: str,
        kind: RemoteErrorKind = RemoteErrorKind.MALFORMED,
        status_code: Optional[int] = None,
    ) -> None:
        self.kind = kind
        self.status_code = status_code
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        return self.kind.retryable


class QuotaError(RemoteError):
    """Rate-limit or quota signal from a provider. Always eligible for retry."""

    def __init__(self, message: str, status_code: Optional[int] = 429) -> None:
        super().__init__(message, kind=RemoteErrorKind.QUOTA, status_code=status_code)


class PipelineError(StoryboardError):
    """Terminal, run-level failure (invalid input or failed scene expansion)."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        self.cause = cause
        super().__init__(message)


def remote_error_for_status(status_code: int, message: str) -> RemoteError:
    """Map an HTTP status code to a classified RemoteError.

    Args:
        status_code: HTTP status returned by the provider.
        message: Human-readable error detail.

    Returns:
        QuotaError for 429, a transient RemoteError for 408 and 5xx,
        and a malformed RemoteError for everything else.
    """
    if status_code == 429:
        return QuotaError(message, status_code=status_code)
    if status_code == 408 or status_code >= 500:
        return RemoteError(message, kind=RemoteErrorKind.TRANSIENT, status_code=status_code)
    return RemoteError(message, kind=RemoteErrorKind.MALFORMED, status_code=status_code)
