"""Encoding of upload headers and decoding of download headers."""

from __future__ import annotations

from datetime import datetime
from urllib.parse import quote, unquote_plus

import httpx

from b2cloud.base.exceptions import DecodeError
from b2cloud.base.protocol import (
    AUTO_CONTENT_TYPE,
    CONTENT_SHA1_HEADER,
    FILE_ID_HEADER,
    FILE_NAME_HEADER,
    INFO_HEADER_PREFIX,
    LAST_MODIFIED_INFO_KEY,
)
from b2cloud.models import FileInfo, UploadLease


def encode_file_name(file_name: str) -> str:
    """Percent-encode a file name as UTF-8, leaving ``/`` separators intact."""
    return quote(file_name, safe="/")


def decode_file_name(value: str) -> str:
    return unquote_plus(value)


def to_millis(mtime: datetime) -> int:
    """Convert a datetime to Unix-epoch milliseconds."""
    return int(mtime.timestamp() * 1000)


def build_upload_headers(
    lease: UploadLease,
    file_name: str,
    file_size: int,
    content_type: str,
    sha1: str,
    mtime: datetime | None = None,
    info: dict[str, str] | None = None,
) -> dict[str, str]:
    """Build the header set for one upload request.

    Custom info keys are sent as given; a key that is not a valid header
    name is rejected by the HTTP layer, not sanitized here.

    Args:
        lease: Upload lease whose token authorizes the request.
        file_name: Decoded file name; encoded here before sending.
        file_size: Exact number of bytes in the body.
        content_type: MIME type; empty selects server-side detection.
        sha1: Hex SHA-1 of the body as declared by the caller.
        mtime: Source modification time, sent in epoch milliseconds.
        info: Custom file info, one ``X-Bz-Info-<key>`` header per entry.

    Returns:
        Header mapping ready for the transport.
    """
    headers = {
        "Authorization": lease.authorization_token,
        FILE_NAME_HEADER: encode_file_name(file_name),
        "Content-Type": content_type or AUTO_CONTENT_TYPE,
        "Content-Length": str(file_size),
        CONTENT_SHA1_HEADER: sha1,
    }
    if mtime is not None:
        headers[INFO_HEADER_PREFIX + LAST_MODIFIED_INFO_KEY] = str(to_millis(mtime))
    for key, value in (info or {}).items():
        headers[INFO_HEADER_PREFIX + key] = value
    return headers


def file_info_from_headers(headers: httpx.Headers, account_id: str) -> FileInfo:
    """Rebuild file metadata from the headers of a download response.

    Raises:
        DecodeError: If ``Content-Length`` is missing or not an integer.
    """
    raw_length = headers.get("Content-Length", "")
    try:
        content_length = int(raw_length)
    except ValueError as e:
        raise DecodeError(f"Invalid Content-Length header: {raw_length!r}") from e

    # The service sends one value per info header, so the first one wins.
    prefix = INFO_HEADER_PREFIX.lower()
    file_info: dict[str, str] = {}
    for raw_name, raw_value in headers.raw:
        name = raw_name.decode("latin-1")
        if name.lower().startswith(prefix):
            file_info.setdefault(name[len(prefix):], raw_value.decode("latin-1"))

    return FileInfo(
        account_id=account_id,
        file_id=headers.get(FILE_ID_HEADER, ""),
        file_name=decode_file_name(headers.get(FILE_NAME_HEADER, "")),
        content_length=content_length,
        content_sha1=headers.get(CONTENT_SHA1_HEADER, ""),
        content_type=headers.get("Content-Type", ""),
        file_info=file_info,
    )
