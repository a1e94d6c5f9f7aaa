"""Shared building blocks: wire constants, errors, logging and config."""

from .exceptions import (
    B2Error,
    TransportError,
    ApiError,
    BadRequestError,
    UnauthorizedError,
    AuthTokenError,
    NotFoundError,
    BucketAlreadyExistsError,
    ConfigurationError,
    DecodeError,
)
from .protocol import BucketType, FileAction


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
    "BucketType",
    "FileAction",
]
