"""Public error exports for stackplan."""

from __future__ import annotations

from .exceptions import (
    ApiError,
    AuthError,
    BuildError,
    ConfigError,
    ConflictError,
    CyclicDependencyError,
    DuplicateIdentifierError,
    HttpErrorInfo,
    InvalidArgumentError,
    InvalidDeclarationError,
    InvalidStateError,
    NetworkError,
    NotFoundError,
    PermissionError,
    QuotaExceededError,
    RateLimitError,
    RemoteOperationFailure,
    StackPlanError,
    UnresolvablePropertyError,
    UnresolvedReferenceError,
    map_http_error,
)

__all__ = [
    "StackPlanError",
    "BuildError",
    "InvalidDeclarationError",
    "DuplicateIdentifierError",
    "UnresolvedReferenceError",
    "CyclicDependencyError",
    "UnresolvablePropertyError",
    "RemoteOperationFailure",
    "ConfigError",
    "InvalidStateError",
    "AuthError",
    "PermissionError",
    "InvalidArgumentError",
    "NotFoundError",
    "ConflictError",
    "RateLimitError",
    "QuotaExceededError",
    "NetworkError",
    "ApiError",
    "HttpErrorInfo",
    "map_http_error",
]
