"""Application errors rendered as JSON by the exception handler in ``main``."""

from __future__ import annotations

from typing import Any


class BookDbException(Exception):
    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
        status_code: int = 400,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        self.headers = headers

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class NotFoundError(BookDbException):
    def __init__(self, message: str = "not_found", *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, error_code="NOT_FOUND", details=details, status_code=404)


class ConflictError(BookDbException):
    def __init__(self, message: str = "conflict", *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, error_code="CONFLICT", details=details, status_code=409)


class BadRequestError(BookDbException):
    def __init__(self, message: str = "bad_request", *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, error_code="BAD_REQUEST", details=details, status_code=400)


class AuthenticationException(BookDbException):
    """Missing, unreadable or rejected credentials (401) or a refused account (403)."""


class InvalidTokenError(AuthenticationException):
    """Signature, issuer, audience or algorithm check failed."""

    def __init__(self, message: str = "invalid_token") -> None:
        super().__init__(message, error_code="INVALID_TOKEN", status_code=401)


class ExpiredTokenError(AuthenticationException):
    def __init__(self, message: str = "access_token_expired") -> None:
        super().__init__(message, error_code="EXPIRED_TOKEN", status_code=401)


class InsufficientPermissionsError(AuthenticationException):
    """The caller's role claims do not satisfy the route's policy."""

    def __init__(self, message: str = "forbidden") -> None:
        super().__init__(message, error_code="INSUFFICIENT_PERMISSIONS", status_code=403)
