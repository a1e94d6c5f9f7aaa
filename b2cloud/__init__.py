"""b2cloud: client library for the Backblaze B2 storage API.

Entry point for the library. Import :func:`connect` (config driven) or
:func:`authenticate` (explicit credentials) to obtain a session::

    from b2cloud import connect

    session = connect({"account_id": "...", "application_key": "..."})
    bucket = session.create_bucket("photos", "allPrivate")
"""

from .base import (
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
from .base.config import B2Config
from .models import Bucket, FileInfo, FileName, UploadLease
from .listing import FileNamePage, FileVersionPage
from .session import Session, authenticate
from .transport import Transport
from .factory import connect

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
    "B2Config",
    "Bucket",
    "FileInfo",
    "FileName",
    "UploadLease",
    "FileNamePage",
    "FileVersionPage",
    "Session",
    "Transport",
    "authenticate",
    "connect",
]
