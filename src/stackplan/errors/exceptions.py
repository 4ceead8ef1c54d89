"""Exception hierarchy and HTTP error mapping for stackplan."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence


class StackPlanError(Exception):
    """
    Base exception for stackplan.

    Attributes:
        details: Optional structured information (e.g., identifier, HTTP status).
        cause: Optional original exception that triggered this error.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}
        self.cause = cause


# ----------------------------
# Build-time errors (raised before any remote mutation)
# ----------------------------
class BuildError(StackPlanError):
    """Base class for errors detected while building or synthesizing a graph."""


class InvalidDeclarationError(BuildError):
    """Raised when a resource declaration is malformed (missing id/type, etc.)."""


class DuplicateIdentifierError(BuildError):
    """Raised when two declarations share the same identifier."""


class UnresolvedReferenceError(BuildError):
    """Raised when a declared reference names an identifier that does not exist."""


class CyclicDependencyError(BuildError):
    """
    Raised when the reference graph contains a cycle.

    Attributes:
        cycle: Identifiers forming the cycle, in edge order. Each member appears
            once; the last element references the first.
    """

    def __init__(
        self,
        message: str,
        *,
        cycle: Sequence[str],
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        merged = {"cycle": list(cycle)}
        if details:
            merged.update(details)
        super().__init__(message, details=merged, cause=cause)
        self.cycle = list(cycle)


class UnresolvablePropertyError(BuildError):
    """Raised when a property references a node that is not present in the graph."""


# ----------------------------
# Apply-time errors
# ----------------------------
class RemoteOperationFailure(StackPlanError):
    """Raised/recorded when a remote create/update/delete does not succeed."""


# ----------------------------
# Configuration errors
# ----------------------------
class ConfigError(StackPlanError):
    """Raised when a config or declarations file is missing or malformed."""


# ----------------------------
# State store / transport errors
# ----------------------------
class InvalidStateError(StackPlanError):
    """Raised when a stored plan or state record is unreadable or malformed."""


class AuthError(StackPlanError):
    """Raised when Drive credentials cannot be loaded, refreshed or obtained."""


class PermissionError(StackPlanError):
    """Raised when the state backend denies access (HTTP 403)."""


class InvalidArgumentError(StackPlanError):
    """Raised for invalid arguments (bad concurrency, bad scopes, HTTP 400)."""


class NotFoundError(StackPlanError):
    """Raised when the state document or its folder is missing (HTTP 404)."""


class ConflictError(StackPlanError):
    """Raised when another writer saved the state first (stale version, HTTP 409/412)."""


class RateLimitError(StackPlanError):
    """Raised when the state backend rate-limits requests (HTTP 429)."""


class QuotaExceededError(StackPlanError):
    """Raised when a backend quota is exhausted (HTTP 403 with a quota reason)."""


class NetworkError(StackPlanError):
    """Raised when the state backend cannot be reached."""


class ApiError(StackPlanError):
    """Raised for any other backend failure (5xx, unexpected statuses)."""


@dataclass(frozen=True)
class HttpErrorInfo:
    """Status, reason and message extracted from a backend HTTP error."""

    status_code: int
    reason: str | None = None
    message: str | None = None
    details: dict[str, Any] | None = None


_QUOTA_MARKERS: tuple[str, ...] = (
    "quota",
    "ratelimitexceeded",
    "userratelimitexceeded",
    "dailylimitexceeded",
    "usagelimits",
)

_STATUS_ERRORS: dict[int, type[StackPlanError]] = {
    400: InvalidArgumentError,
    401: AuthError,
    403: PermissionError,
    404: NotFoundError,
    409: ConflictError,
    412: ConflictError,
    429: RateLimitError,
}


def map_http_error(
    info: HttpErrorInfo,
    *,
    cause: Optional[BaseException] = None,
) -> StackPlanError:
    """
    Translate a state-backend HTTP failure into a stackplan exception.

    403 becomes QuotaExceededError when the reason names a quota or rate
    limit, PermissionError otherwise. Unlisted statuses (5xx included) map to
    ApiError.
    """
    details: dict[str, Any] = {"status_code": info.status_code, "reason": info.reason}
    details.update(info.details or {})
    message = info.message or f"HTTP error {info.status_code}"

    cls = _STATUS_ERRORS.get(info.status_code, ApiError)
    reason = (info.reason or "").lower()
    if info.status_code == 403 and any(marker in reason for marker in _QUOTA_MARKERS):
        cls = QuotaExceededError
    return cls(message, details=details, cause=cause)
