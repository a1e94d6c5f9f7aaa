"""
b2cloud exception hierarchy.

Every failure raised by the library inherits from :class:`B2Error` and
falls into exactly one of four kinds:

* :class:`TransportError` - the request never completed.
* :class:`ApiError` - the service answered with an error payload.
* :class:`ConfigurationError` - a local precondition failed before any
  network call was made.
* :class:`DecodeError` - the service answered successfully but the body
  or headers did not have the expected shape.
"""

from __future__ import annotations

from typing import Any


# ── Base ──────────────────────────────────────────────────────────────
class B2Error(Exception):
    """Root exception for all b2cloud errors."""


# ── Transport ─────────────────────────────────────────────────────────
class TransportError(B2Error):
    """The round trip failed (connection, timeout, malformed response)."""

    def __init__(self, message: str, original: BaseException | None = None) -> None:
        super().__init__(message)
        self.original = original


# ── API ───────────────────────────────────────────────────────────────
class ApiError(B2Error):
    """Structured error returned by the service.

    Attributes:
        code: Service error code (e.g. ``"bad_auth_token"``).
        message: Human-readable message from the service.
        status: HTTP status of the response.
    """

    def __init__(self, code: str, message: str, status: int) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status

    def __str__(self) -> str:
        return f"code: '{self.code}' status: '{self.status}' message: '{self.message}'"

    @classmethod
    def from_payload(cls, payload: dict[str, Any], status: int) -> ApiError:
        """Build the most specific ApiError subclass for an error payload.

        Args:
            payload: Decoded JSON error body.
            status: HTTP status of the response; used when the body omits it.

        Returns:
            An instance of the mapped subclass, or a plain :class:`ApiError`.
        """
        code = str(payload.get("code") or "")
        message = str(payload.get("message") or "")
        try:
            status = int(payload.get("status") or status)
        except (TypeError, ValueError):
            pass
        exc_class = _ERROR_MAP.get(code, ApiError)
        return exc_class(code, message, status)


class BadRequestError(ApiError):
    """The request was malformed or referenced an invalid id."""


class UnauthorizedError(ApiError):
    """The credentials do not allow this operation."""


class AuthTokenError(UnauthorizedError):
    """The session token is invalid or expired; authenticate again."""


class NotFoundError(ApiError):
    """The requested bucket or file does not exist."""


class BucketAlreadyExistsError(ApiError):
    """A bucket with that name already exists."""


_ERROR_MAP: dict[str, type[ApiError]] = {
    "bad_request": BadRequestError,
    "bad_bucket_id": BadRequestError,
    "invalid_bucket_id": BadRequestError,
    "unauthorized": UnauthorizedError,
    "bad_auth_token": AuthTokenError,
    "expired_auth_token": AuthTokenError,
    "not_found": NotFoundError,
    "duplicate_bucket_name": BucketAlreadyExistsError,
}


# ── Local ─────────────────────────────────────────────────────────────
class ConfigurationError(B2Error):
    """A local precondition was violated before any request was sent."""


class DecodeError(B2Error):
    """A successful response could not be parsed into the expected shape."""


__all__ = [
    "B2Error",
    "TransportError",
    "ApiError",
    "BadRequestError",
    "UnauthorizedError",
    "AuthTokenError",
    "NotFoundError",
    "BucketAlreadyExistsError",
    "ConfigurationError",
    "DecodeError",
]
