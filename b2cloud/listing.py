"""
Pagination cursor protocol shared by name and version listings.

A listing call returns one page of :class:`~b2cloud.models.FileName`
entries plus a resume cursor. The cursor is opaque: it is handed back to
the next call exactly as received, and an empty cursor means the listing
is exhausted.
"""

from __future__ import annotations

from typing import Any, Callable, Iterator, NamedTuple, Optional

from pydantic import Field, field_validator

from b2cloud.models import FileName, _WireModel


class FileNamePage(NamedTuple):
    """One page of ``list_file_names``."""

    files: list[FileName]
    next_file_name: str


class FileVersionPage(NamedTuple):
    """One page of ``list_file_versions``; both cursors resume together."""

    files: list[FileName]
    next_file_name: str
    next_file_id: str


class FileNamesResponse(_WireModel):
    files: list[FileName] = Field(default_factory=list)
    next_file_name: str = Field(default="", alias="nextFileName")

    @field_validator("next_file_name", mode="before")
    @classmethod
    def _null_cursor_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class FileVersionsResponse(FileNamesResponse):
    next_file_id: str = Field(default="", alias="nextFileId")

    @field_validator("next_file_id", mode="before")
    @classmethod
    def _null_id_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


def list_request(bucket_id: str, **optional: Optional[Any]) -> dict[str, Any]:
    """Build a listing body, omitting optional fields that are unset or zero.

    Keyword names are the wire field names (e.g. ``startFileName``).
    """
    body: dict[str, Any] = {"bucketId": bucket_id}
    body.update({key: value for key, value in optional.items() if value})
    return body


def iter_file_names(
    fetch: Callable[[Optional[str]], FileNamePage],
    start_file_name: str | None = None,
) -> Iterator[FileName]:
    """Yield every entry of a name listing, following the cursor until empty.

    Args:
        fetch: Callable returning the page that starts at the given name.
        start_file_name: Cursor to start from; ``None`` starts at the beginning.
    """
    cursor = start_file_name
    while True:
        page = fetch(cursor)
        yield from page.files
        if not page.next_file_name:
            return
        cursor = page.next_file_name


def iter_file_versions(
    fetch: Callable[[Optional[str], Optional[str]], FileVersionPage],
    start_file_name: str | None = None,
    start_file_id: str | None = None,
) -> Iterator[FileName]:
    """Yield every entry of a version listing, following both cursors."""
    name_cursor, id_cursor = start_file_name, start_file_id
    while True:
        page = fetch(name_cursor, id_cursor)
        yield from page.files
        if not page.next_file_name:
            return
        name_cursor, id_cursor = page.next_file_name, page.next_file_id or None


__all__ = [
    "FileNamePage",
    "FileVersionPage",
    "iter_file_names",
    "iter_file_versions",
]
