"""b2cloud CLI — quick B2 operations from the command line.

Usage examples::

    b2cloud list-buckets
    b2cloud --config '{"account_id":"...","application_key":"..."}' list-file-names <bucketId>
    b2cloud upload-file <bucketId> ./photo.jpg photos/photo.jpg
    b2cloud download-file-by-name my-bucket photos/photo.jpg ./photo.jpg
"""

from __future__ import annotations

import argparse
import hashlib
import inspect
import json
import os
import sys
from typing import Any

from pydantic import BaseModel, ValidationError

from b2cloud.base.exceptions import B2Error
from b2cloud.factory import connect


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ``b2cloud`` CLI.

    Returns:
        Configured :class:`~argparse.ArgumentParser`.
    """
    parser = argparse.ArgumentParser(
        prog="b2cloud",
        description="Backblaze B2 command line client",
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        default="{}",
        help='JSON config string (e.g. \'{"account_id":"...","application_key":"..."}\'); '
        "falls back to B2_ACCOUNT_ID / B2_APPLICATION_KEY",
    )
    parser.add_argument(
        "operation",
        help="Operation to perform (session method name, e.g. list-buckets)",
    )
    parser.add_argument(
        "args",
        nargs="*",
        help="Positional arguments for the operation",
    )
    parser.add_argument(
        "--kwargs", "-k",
        type=str,
        default="{}",
        help="JSON keyword arguments for the operation",
    )
    return parser


def _to_jsonable(result: Any) -> Any:
    """Convert models, pages and lists into plain JSON-compatible values."""
    if isinstance(result, BaseModel):
        return result.model_dump(by_alias=True)
    if isinstance(result, tuple) and hasattr(result, "_asdict"):
        return {key: _to_jsonable(value) for key, value in result._asdict().items()}
    if isinstance(result, (list, tuple)):
        return [_to_jsonable(item) for item in result]
    return result


def _upload_file(session: Any, bucket_id: str, local_path: str, file_name: str | None = None, **kwargs: Any):
    """Upload a local file, computing its size and SHA-1 first."""
    digest = hashlib.sha1()
    with open(local_path, "rb") as f:
        for chunk in iter(lambda: f.read(64 * 1024), b""):
            digest.update(chunk)
    size = os.path.getsize(local_path)
    lease = session.lease_upload(bucket_id)
    with open(local_path, "rb") as f:
        return session.upload(
            f,
            file_name or os.path.basename(local_path),
            size,
            digest.hexdigest(),
            lease=lease,
            **kwargs,
        )


def _download_to(method: Any, args: list[str], kwargs: dict[str, Any]):
    """Call a download method whose last positional argument is a destination path."""
    *source, destination = args
    with open(destination, "wb") as sink:
        return method(*source, sink, **kwargs)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Parses arguments, authenticates a session via :func:`b2cloud.connect`,
    and invokes the requested operation. Results are printed as JSON
    (models/lists) or plain text.

    Args:
        argv: Optional argument list (defaults to ``sys.argv``).
    """
    parser = _build_parser()
    ns = parser.parse_args(argv)

    try:
        config: dict[str, Any] = json.loads(ns.config)
    except json.JSONDecodeError as e:
        print(f"Invalid --config JSON: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        kwargs: dict[str, Any] = json.loads(ns.kwargs)
    except json.JSONDecodeError as e:
        print(f"Invalid --kwargs JSON: {e}", file=sys.stderr)
        sys.exit(1)

    # Convert operation-name to method_name
    method_name = ns.operation.replace("-", "_")

    try:
        session = connect(config)
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)
    except B2Error as e:
        print(f"Authentication failed: {e}", file=sys.stderr)
        sys.exit(1)

    with session:
        try:
            if method_name == "upload_file":
                result = _upload_file(session, *ns.args, **kwargs)
            elif method_name in ("download_file_by_id", "download_file_by_name"):
                result = _download_to(getattr(session, method_name), ns.args, kwargs)
            else:
                method = getattr(session, method_name, None)
                if method_name.startswith("_") or method is None or not callable(method):
                    print(f"Unknown operation '{ns.operation}'", file=sys.stderr)
                    sys.exit(1)
                result = method(*ns.args, **kwargs)
                if inspect.isgenerator(result):
                    result = list(result)
        except (B2Error, OSError, TypeError, ValueError) as e:
            print(f"Operation failed: {e}", file=sys.stderr)
            sys.exit(1)

    # Pretty-print result
    if result is None:
        print("OK")
    elif isinstance(result, (BaseModel, list, tuple, dict)):
        print(json.dumps(_to_jsonable(result), indent=2, default=str))
    else:
        print(result)


if __name__ == "__main__":
    main()
