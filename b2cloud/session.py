"""B2 session: the authenticated identity and every API operation.

A :class:`Session` is created once per credential pair by
:func:`authenticate`. Its token and base URLs never change; when the
service reports the token as expired (:class:`AuthTokenError`) the session
must be discarded and a new one authenticated.

Each operation performs exactly one round trip and raises on failure;
nothing is retried.
"""

from __future__ import annotations

import functools
from datetime import datetime
from typing import Any, BinaryIO, Iterator

from b2cloud import listing
from b2cloud.base.exceptions import ConfigurationError
from b2cloud.base.logger import b2_logger
from b2cloud.base.protocol import API_SUFFIX, DEFAULT_API_URL
from b2cloud.headers import build_upload_headers, encode_file_name, file_info_from_headers
from b2cloud.listing import (
    FileNamePage,
    FileNamesResponse,
    FileVersionPage,
    FileVersionsResponse,
    list_request,
)
from b2cloud.models import AccountAuthorization, Bucket, FileInfo, FileName, UploadLease
from b2cloud.transport import Transport, decode

# Upload bodies are streamed in chunks of this size.
UPLOAD_CHUNK_SIZE = 64 * 1024


class Session:
    """Authenticated connection to the B2 API.

    Attributes:
        upload_lease: Optional lease used by :meth:`upload` when none is
            passed explicitly. Set it yourself or via
            ``lease_upload(bucket_id, cache=True)``. Concurrent writers race
            on this field; pass leases explicitly for concurrent uploads.
        transport: Transport every request goes through.
    """

    def __init__(
        self,
        authorization: AccountAuthorization,
        *,
        application_key: str = "",
        transport: Transport | None = None,
    ) -> None:
        self._authorization = authorization
        self._application_key = application_key
        self._owns_transport = transport is None
        self.transport = transport or Transport()
        self.upload_lease: UploadLease | None = None

    # --- Identity ---

    @classmethod
    def authenticate(
        cls,
        account_id: str,
        application_key: str,
        *,
        api_url: str = DEFAULT_API_URL,
        transport: Transport | None = None,
        timeout: float = 30.0,
    ) -> Session:
        """Exchange a credential pair for a new session.

        Args:
            account_id: B2 account ID.
            application_key: Application key for the account.
            api_url: Authorization base URL.
            transport: Transport to use; one is created if omitted.
            timeout: Request timeout in seconds for a transport created here.

        Returns:
            A new, independent session.

        Raises:
            ApiError: If the service rejects the credentials.
            TransportError: If the request did not complete.
        """
        owned = transport is None
        transport = transport or Transport(timeout=timeout)
        try:
            payload = transport.call(
                "GET",
                f"{api_url.rstrip('/')}{API_SUFFIX}/b2_authorize_account",
                auth=(account_id, application_key),
                operation="b2_authorize_account",
            )
            authorization = decode(AccountAuthorization, payload)
        except Exception:
            if owned:
                transport.close()
            raise
        b2_logger.info(
            "Authenticated B2 session",
            account_id=authorization.account_id,
            operation="b2_authorize_account",
        )
        session = cls(authorization, application_key=application_key, transport=transport)
        session._owns_transport = owned
        return session

    @property
    def account_id(self) -> str:
        return self._authorization.account_id

    @property
    def api_url(self) -> str:
        return self._authorization.api_url

    @property
    def download_url(self) -> str:
        return self._authorization.download_url

    @property
    def auth_token(self) -> str:
        return self._authorization.authorization_token

    def __repr__(self) -> str:
        return f"Session(account_id={self.account_id!r}, api_url={self.api_url!r})"

    # --- Private helpers ---

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": self.auth_token}

    def _post(self, operation: str, body: dict[str, Any]) -> dict[str, Any]:
        return self.transport.call(
            "POST",
            f"{self.api_url}{API_SUFFIX}/{operation}",
            headers=self._auth_headers(),
            json=body,
            operation=operation,
        )

    def _bound(self, model: type, payload: Any):
        return decode(model, payload).bind(self)

    # --- Bucket operations ---

    def create_bucket(self, bucket_name: str, bucket_type: str) -> Bucket:
        """Create a bucket.

        The parameters travel in the query string rather than a JSON body.
        """
        payload = self.transport.call(
            "GET",
            f"{self.api_url}{API_SUFFIX}/b2_create_bucket",
            headers=self._auth_headers(),
            params={
                "accountId": self.account_id,
                "bucketName": bucket_name,
                "bucketType": bucket_type,
            },
            operation="b2_create_bucket",
        )
        return self._bound(Bucket, payload)

    def delete_bucket(self, bucket_id: str) -> Bucket:
        """Delete a bucket and return its last known state."""
        payload = self._post(
            "b2_delete_bucket", {"accountId": self.account_id, "bucketId": bucket_id}
        )
        return self._bound(Bucket, payload)

    def update_bucket(self, bucket_id: str, bucket_type: str) -> Bucket:
        """Change a bucket's type and return the full updated bucket."""
        payload = self._post(
            "b2_update_bucket",
            {"accountId": self.account_id, "bucketId": bucket_id, "bucketType": bucket_type},
        )
        return self._bound(Bucket, payload)

    def list_buckets(self) -> list[Bucket]:
        """List the account's buckets in the order the service returns them."""
        payload = self._post("b2_list_buckets", {"accountId": self.account_id})
        return [self._bound(Bucket, item) for item in payload.get("buckets") or []]

    # --- Upload ---

    def lease_upload(self, bucket_id: str, *, cache: bool = False) -> UploadLease:
        """Request an upload URL and token for one bucket.

        Args:
            bucket_id: Bucket the lease is scoped to.
            cache: Also store the lease in :attr:`upload_lease`.
        """
        payload = self._post("b2_get_upload_url", {"bucketId": bucket_id})
        lease = decode(UploadLease, payload)
        if cache:
            self.upload_lease = lease
        return lease

    def upload(
        self,
        reader: BinaryIO | bytes,
        file_name: str,
        file_size: int,
        sha1: str,
        content_type: str = "",
        *,
        lease: UploadLease | None = None,
        mtime: datetime | None = None,
        info: dict[str, str] | None = None,
    ) -> FileInfo:
        """Upload one file using an upload lease.

        The lease is left untouched and can be reused for later uploads to
        the same bucket until the service rejects it.

        Args:
            reader: File content, as bytes or a binary file object.
            file_name: Name to store the file under.
            file_size: Exact number of bytes *reader* provides.
            sha1: Hex SHA-1 of the content; checked by the service.
            content_type: MIME type; empty lets the service detect it.
            lease: Lease to use; defaults to :attr:`upload_lease`.
            mtime: Source modification time, stored in file info.
            info: Custom file info entries.

        Returns:
            Metadata of the new file version.

        Raises:
            ConfigurationError: If no lease was passed and none is cached.
            ApiError: If the service rejects the upload.
        """
        lease = lease or self.upload_lease
        if lease is None:
            raise ConfigurationError(
                "No upload lease: call lease_upload() and pass or cache the result"
            )
        headers = build_upload_headers(
            lease, file_name, file_size, content_type, sha1, mtime=mtime, info=info
        )
        if isinstance(reader, (bytes, bytearray)):
            content: Any = bytes(reader)
        else:
            content = iter(functools.partial(reader.read, UPLOAD_CHUNK_SIZE), b"")
        payload = self.transport.call(
            "POST",
            lease.upload_url,
            headers=headers,
            content=content,
            operation="b2_upload_file",
        )
        return self._bound(FileInfo, payload)

    # --- Download ---

    def download_file_by_id(self, file_id: str, sink: BinaryIO) -> FileInfo:
        """Stream one file version into *sink* and return its metadata."""
        response_headers = self.transport.download(
            f"{self.download_url}{API_SUFFIX}/b2_download_file_by_id",
            sink,
            headers=self._auth_headers(),
            params={"fileId": file_id},
            operation="b2_download_file_by_id",
        )
        return file_info_from_headers(response_headers, self.account_id).bind(self)

    def download_file_by_name(self, bucket_name: str, file_name: str, sink: BinaryIO) -> FileInfo:
        """Stream the current version of a named file into *sink*."""
        response_headers = self.transport.download(
            f"{self.download_url}/file/{bucket_name}/{encode_file_name(file_name)}",
            sink,
            headers=self._auth_headers(),
            operation="download_file_by_name",
        )
        return file_info_from_headers(response_headers, self.account_id).bind(self)

    # --- Listing ---

    def list_file_names(
        self,
        bucket_id: str,
        start_file_name: str | None = None,
        max_file_count: int | None = None,
    ) -> FileNamePage:
        """List the current version of each file name, alphabetically.

        Returns:
            The page of entries and the cursor for the next call (empty when
            the listing is exhausted).
        """
        payload = self._post(
            "b2_list_file_names",
            list_request(
                bucket_id, startFileName=start_file_name, maxFileCount=max_file_count
            ),
        )
        response = decode(FileNamesResponse, payload)
        return FileNamePage(
            [entry.bind(self) for entry in response.files], response.next_file_name
        )

    def list_file_versions(
        self,
        bucket_id: str,
        start_file_name: str | None = None,
        start_file_id: str | None = None,
        max_file_count: int | None = None,
    ) -> FileVersionPage:
        """List every file version, by name then newest upload first.

        Resume with both returned cursors together. A start name on its own
        is forwarded unchanged; a start file id without a name is rejected.

        Raises:
            ConfigurationError: If ``start_file_id`` is given without ``start_file_name``.
        """
        if start_file_id and not start_file_name:
            raise ConfigurationError("start_file_id requires start_file_name")
        payload = self._post(
            "b2_list_file_versions",
            list_request(
                bucket_id,
                startFileName=start_file_name,
                startFileId=start_file_id,
                maxFileCount=max_file_count,
            ),
        )
        response = decode(FileVersionsResponse, payload)
        return FileVersionPage(
            [entry.bind(self) for entry in response.files],
            response.next_file_name,
            response.next_file_id,
        )

    def iter_file_names(
        self,
        bucket_id: str,
        start_file_name: str | None = None,
        page_size: int | None = None,
    ) -> Iterator[FileName]:
        """Iterate over every current file name, one page request at a time."""
        return listing.iter_file_names(
            lambda cursor: self.list_file_names(bucket_id, cursor, page_size),
            start_file_name,
        )

    def iter_file_versions(
        self,
        bucket_id: str,
        start_file_name: str | None = None,
        start_file_id: str | None = None,
        page_size: int | None = None,
    ) -> Iterator[FileName]:
        """Iterate over every file version, one page request at a time."""
        return listing.iter_file_versions(
            lambda name, file_id: self.list_file_versions(bucket_id, name, file_id, page_size),
            start_file_name,
            start_file_id,
        )

    # --- File metadata and lifecycle ---

    def get_file_info(self, file_id: str) -> FileInfo:
        return self._bound(FileInfo, self._post("b2_get_file_info", {"fileId": file_id}))

    def delete_file_version(self, file_name: str, file_id: str) -> FileInfo:
        payload = self._post(
            "b2_delete_file_version", {"fileName": file_name, "fileId": file_id}
        )
        return self._bound(FileInfo, payload)

    def hide_file(self, bucket_id: str, file_name: str) -> FileName:
        """Hide a file name; earlier versions stay stored."""
        payload = self._post("b2_hide_file", {"bucketId": bucket_id, "fileName": file_name})
        return self._bound(FileName, payload)

    # --- Lifecycle ---

    def close(self) -> None:
        """Close the transport if this session created it."""
        if self._owns_transport:
            self.transport.close()

    def __enter__(self) -> Session:
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()


def authenticate(
    account_id: str,
    application_key: str,
    *,
    api_url: str = DEFAULT_API_URL,
    transport: Transport | None = None,
    timeout: float = 30.0,
) -> Session:
    """Create a new :class:`Session`; see :meth:`Session.authenticate`."""
    return Session.authenticate(
        account_id, application_key, api_url=api_url, transport=transport, timeout=timeout
    )


__all__ = ["Session", "authenticate"]
