"""Resource handles returned by :class:`~b2cloud.session.Session`.

Handles are plain pydantic models decoded from the service's JSON. Each
one may be bound to the session that produced it; the binding is a
non-owning reference used only by the convenience methods, which forward
to the matching Session operation.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, BinaryIO, Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from b2cloud.base.exceptions import ConfigurationError

if TYPE_CHECKING:
    from b2cloud.listing import FileNamePage, FileVersionPage
    from b2cloud.session import Session


class _WireModel(BaseModel):
    """Base for models decoded from camelCase JSON."""

    model_config = ConfigDict(populate_by_name=True)


class AccountAuthorization(_WireModel):
    """Identity returned by ``b2_authorize_account``."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    account_id: str = Field(alias="accountId")
    api_url: str = Field(alias="apiUrl")
    download_url: str = Field(alias="downloadUrl")
    authorization_token: str = Field(alias="authorizationToken", repr=False)


class UploadLease(_WireModel):
    """A (URL, token) pair authorizing uploads into one bucket."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    bucket_id: str = Field(alias="bucketId")
    upload_url: str = Field(alias="uploadUrl")
    authorization_token: str = Field(alias="authorizationToken", repr=False)


class _Handle(_WireModel):
    _session: Optional[Session] = PrivateAttr(default=None)

    def bind(self, session: Session):
        """Attach the session used by convenience methods and return self."""
        self._session = session
        return self

    @property
    def session(self) -> Session:
        if self._session is None:
            raise ConfigurationError(
                f"{type(self).__name__} is not bound to a session"
            )
        return self._session


class FileName(_Handle):
    """One version of a file name, as returned by listings and hide."""

    file_id: str = Field(alias="fileId")
    file_name: str = Field(alias="fileName")
    action: str
    size: int = 0
    upload_timestamp: int = Field(default=0, alias="uploadTimestamp")

    def get_file_info(self) -> FileInfo:
        return self.session.get_file_info(self.file_id)


class FileInfo(_Handle):
    """Full metadata of one stored file version."""

    account_id: str = Field(default="", alias="accountId")
    file_id: str = Field(alias="fileId")
    file_name: str = Field(alias="fileName")
    bucket_id: str = Field(default="", alias="bucketId")
    content_length: int = Field(default=0, alias="contentLength")
    content_sha1: str = Field(default="", alias="contentSha1")
    content_type: str = Field(default="", alias="contentType")
    file_info: dict[str, str] = Field(default_factory=dict, alias="fileInfo")

    @field_validator("file_info", mode="before")
    @classmethod
    def _null_info_as_empty(cls, value):
        return value or {}

    def download(self, sink: BinaryIO) -> FileInfo:
        """Download this version's content into *sink*."""
        return self.session.download_file_by_id(self.file_id, sink)

    def delete(self) -> FileInfo:
        """Delete this version of the file."""
        return self.session.delete_file_version(self.file_name, self.file_id)

    def hide(self) -> FileName:
        """Hide this file name so downloads by name no longer find it."""
        return self.session.hide_file(self.bucket_id, self.file_name)


class Bucket(_Handle):
    """A named, typed container for files.

    ``upload_lease`` is the lease :meth:`upload_file` reuses. It is filled
    lazily on first upload and may be set or cleared by the caller; it is
    never serialized.
    """

    account_id: str = Field(alias="accountId")
    bucket_id: str = Field(alias="bucketId")
    bucket_name: str = Field(alias="bucketName")
    bucket_type: str = Field(alias="bucketType")
    upload_lease: Optional[UploadLease] = Field(default=None, exclude=True)

    def delete(self) -> Bucket:
        return self.session.delete_bucket(self.bucket_id)

    def update(self, bucket_type: str) -> Bucket:
        """Change the bucket type and refresh every field from the response.

        Fields are only replaced once the service has accepted the change.
        """
        updated = self.session.update_bucket(self.bucket_id, bucket_type)
        self.account_id, self.bucket_id, self.bucket_name, self.bucket_type = (
            updated.account_id,
            updated.bucket_id,
            updated.bucket_name,
            updated.bucket_type,
        )
        return self

    def list_file_names(
        self,
        start_file_name: str | None = None,
        max_file_count: int | None = None,
    ) -> FileNamePage:
        return self.session.list_file_names(self.bucket_id, start_file_name, max_file_count)

    def list_file_versions(
        self,
        start_file_name: str | None = None,
        start_file_id: str | None = None,
        max_file_count: int | None = None,
    ) -> FileVersionPage:
        return self.session.list_file_versions(
            self.bucket_id, start_file_name, start_file_id, max_file_count
        )

    def iter_file_names(self, page_size: int | None = None) -> Iterator[FileName]:
        return self.session.iter_file_names(self.bucket_id, page_size=page_size)

    def hide_file(self, file_name: str) -> FileName:
        return self.session.hide_file(self.bucket_id, file_name)

    def download_file_by_name(self, file_name: str, sink: BinaryIO) -> FileInfo:
        return self.session.download_file_by_name(self.bucket_name, file_name, sink)

    def upload_file(
        self,
        reader: BinaryIO | bytes,
        file_name: str,
        file_size: int,
        sha1: str,
        content_type: str = "",
        *,
        mtime: datetime | None = None,
        info: dict[str, str] | None = None,
    ) -> FileInfo:
        """Upload one file into this bucket, leasing an upload URL on first use.

        The lease is cached on the handle and reused until the caller clears
        it. First-use acquisition is not serialized: concurrent first uploads
        may each request a lease, and only the last one assigned is kept.

        Raises:
            ConfigurationError: If the cached lease belongs to another bucket.
        """
        if self.upload_lease is None:
            self.upload_lease = self.session.lease_upload(self.bucket_id)
        elif self.upload_lease.bucket_id != self.bucket_id:
            raise ConfigurationError(
                f"Upload lease for bucket '{self.upload_lease.bucket_id}' "
                f"cannot be used for bucket '{self.bucket_id}'"
            )
        return self.session.upload(
            reader,
            file_name,
            file_size,
            sha1,
            content_type,
            lease=self.upload_lease,
            mtime=mtime,
            info=info,
        )


__all__ = [
    "AccountAuthorization",
    "UploadLease",
    "FileName",
    "FileInfo",
    "Bucket",
]
