"""Exception hierarchy for the chunk-and-patch pipeline."""

from __future__ import annotations

import enum


class A11yFixError(Exception):
    """Base class for all a11yfix errors."""


class UnsplittableInputError(A11yFixError):
    """A run of text exceeds the token budget and holds no tag boundary."""


class FailureReason(enum.Enum):
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    FATAL = "fatal"


class ServiceError(A11yFixError):
    """A failed call to the fix service.

    ``reason`` is decided where the HTTP response is read, so retry logic
    only has to look at the enum. ``retry_after`` is the server-imposed
    cool-down in seconds for rate-limit failures.
    """

    def __init__(
        self,
        message: str,
        reason: FailureReason = FailureReason.FATAL,
        retry_after: int | None = None,
        status_code: int | None = None,
        detail: str = "",
    ):
        super().__init__(message)
        self.reason = reason
        self.retry_after = retry_after
        self.status_code = status_code
        self.detail = detail

    @property
    def is_recoverable(self) -> bool:
        return self.reason in (FailureReason.RATE_LIMIT, FailureReason.TIMEOUT)


class PatchError(A11yFixError):
    """A diff-formatted response could not be turned into text."""


class PatchParseError(PatchError):
    """The response holds no parseable patch."""


class PatchApplyError(PatchError):
    """A parsed patch does not apply to the chunk it was produced for."""


class ScanError(A11yFixError):
    """The external issue scanner failed or produced unreadable output."""


class FixError(A11yFixError):
    """Fixing a whole document was aborted."""

    def __init__(self, identifier: str, cause: BaseException):
        super().__init__(f"Could not suggest or apply fix for '{identifier}': {cause}")
        self.identifier = identifier
        self.cause = cause
