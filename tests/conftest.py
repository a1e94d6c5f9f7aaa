"""Shared fixtures: an in-memory B2 service behind ``httpx.MockTransport``."""

import base64
import hashlib
import itertools
import json
from urllib.parse import quote, unquote, unquote_plus

import httpx
import pytest

from b2cloud.session import Session
from b2cloud.transport import Transport


class FakeB2:
    """Minimal stand-in for the B2 API, enough to exercise every call."""

    ACCOUNT_ID = "acct-123"
    APPLICATION_KEY = "app-key"
    AUTH_URL = "https://auth.b2.test"
    API_URL = "https://api.b2.test"
    DOWNLOAD_URL = "https://dl.b2.test"
    UPLOAD_HOST = "upload.b2.test"

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.tokens: set[str] = set()
        self.upload_tokens: dict[str, str] = {}
        self.buckets: dict[str, dict] = {}
        self.versions: list[dict] = []
        self._ids = itertools.count(1)
        self._clock = itertools.count(1_700_000_000_000)

    # --- helpers ---

    @staticmethod
    def error(status, code, message="error"):
        return httpx.Response(status, json={"code": code, "message": message, "status": status})

    def _next_id(self, prefix):
        return f"{prefix}{next(self._ids):04d}"

    def calls(self, operation):
        return [r for r in self.requests if r.url.path.endswith(operation)]

    def _file_info(self, version):
        return {
            "accountId": self.ACCOUNT_ID,
            "bucketId": version["bucketId"],
            "fileId": version["fileId"],
            "fileName": version["fileName"],
            "contentLength": version["size"],
            "contentSha1": version["contentSha1"],
            "contentType": version["contentType"],
            "fileInfo": version["fileInfo"],
        }

    @staticmethod
    def _file_name(version):
        return {
            "fileId": version["fileId"],
            "fileName": version["fileName"],
            "action": version["action"],
            "size": version["size"],
            "uploadTimestamp": version["uploadTimestamp"],
        }

    def _sorted_versions(self, bucket_id):
        versions = [v for v in self.versions if v["bucketId"] == bucket_id]
        return sorted(versions, key=lambda v: (v["fileName"], -v["uploadTimestamp"]))

    def _current_names(self, bucket_id):
        latest = {}
        for version in self._sorted_versions(bucket_id):
            latest.setdefault(version["fileName"], version)
        return [v for _, v in sorted(latest.items()) if v["action"] == "upload"]

    # --- dispatch ---

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host, path = request.url.host, request.url.path

        if host == "auth.b2.test" and path == "/b2api/v1/b2_authorize_account":
            return self.authorize(request)
        if host == self.UPLOAD_HOST:
            return self.upload(request)

        if request.headers.get("Authorization") not in self.tokens:
            return self.error(401, "bad_auth_token", "Invalid authorization token")

        if host == "dl.b2.test":
            if path == "/b2api/v1/b2_download_file_by_id":
                version = self._find(request.url.params.get("fileId"))
                return self._serve(version)
            if path.startswith("/file/"):
                raw_path = request.url.raw_path.decode("ascii").split("?", 1)[0]
                bucket_name, _, encoded_name = raw_path[len("/file/"):].partition("/")
                return self._serve_by_name(bucket_name, unquote(encoded_name))
            return self.error(404, "not_found", "unknown download path")

        if host != "api.b2.test":
            return self.error(404, "not_found", "unknown host")

        operation = path.rsplit("/", 1)[-1]
        if operation == "b2_create_bucket":
            return self.create_bucket(dict(request.url.params))
        body = json.loads(request.content or b"{}")
        method = getattr(self, operation[len("b2_"):], None)
        if method is None:
            return self.error(400, "bad_request", f"unknown operation {operation}")
        return method(body)

    # --- operations ---

    def authorize(self, request):
        header = request.headers.get("Authorization", "")
        expected = base64.b64encode(
            f"{self.ACCOUNT_ID}:{self.APPLICATION_KEY}".encode()
        ).decode()
        if header != f"Basic {expected}":
            return self.error(401, "unauthorized", "invalid credentials")
        token = self._next_id("auth-token-")
        self.tokens.add(token)
        return httpx.Response(200, json={
            "accountId": self.ACCOUNT_ID,
            "apiUrl": self.API_URL,
            "downloadUrl": self.DOWNLOAD_URL,
            "authorizationToken": token,
            "minimumPartSize": 100000000,
        })

    def create_bucket(self, params):
        if any(b["bucketName"] == params["bucketName"] for b in self.buckets.values()):
            return self.error(400, "duplicate_bucket_name", "Bucket name is already in use.")
        bucket = {
            "accountId": params["accountId"],
            "bucketId": self._next_id("bucket-"),
            "bucketName": params["bucketName"],
            "bucketType": params["bucketType"],
        }
        self.buckets[bucket["bucketId"]] = bucket
        return httpx.Response(200, json=bucket)

    def delete_bucket(self, body):
        bucket = self.buckets.pop(body["bucketId"], None)
        if bucket is None:
            return self.error(400, "bad_bucket_id", "Bucket does not exist")
        return httpx.Response(200, json=bucket)

    def update_bucket(self, body):
        bucket = self.buckets.get(body["bucketId"])
        if bucket is None:
            return self.error(400, "bad_bucket_id", "Bucket does not exist")
        bucket["bucketType"] = body["bucketType"]
        return httpx.Response(200, json=bucket)

    def list_buckets(self, body):
        buckets = [self.buckets[k] for k in sorted(self.buckets)]
        return httpx.Response(200, json={"buckets": buckets})

    def get_upload_url(self, body):
        if body["bucketId"] not in self.buckets:
            return self.error(400, "bad_bucket_id", "Bucket does not exist")
        token = self._next_id("upload-token-")
        self.upload_tokens[token] = body["bucketId"]
        return httpx.Response(200, json={
            "bucketId": body["bucketId"],
            "uploadUrl": f"https://{self.UPLOAD_HOST}/b2api/v1/b2_upload_file/{body['bucketId']}",
            "authorizationToken": token,
        })

    def upload(self, request):
        bucket_id = request.url.path.rsplit("/", 1)[-1]
        if self.upload_tokens.get(request.headers.get("Authorization")) != bucket_id:
            return self.error(401, "bad_auth_token", "Invalid upload token")
        data = request.content
        if hashlib.sha1(data).hexdigest() != request.headers["X-Bz-Content-Sha1"]:
            return self.error(400, "bad_request", "Sha1 did not match data received")
        prefix = "x-bz-info-"
        info = {
            k[len(prefix):]: v for k, v in request.headers.items() if k.startswith(prefix)
        }
        version = {
            "bucketId": bucket_id,
            "fileId": self._next_id("file-"),
            "fileName": unquote_plus(request.headers["X-Bz-File-Name"]),
            "action": "upload",
            "size": len(data),
            "uploadTimestamp": next(self._clock),
            "contentSha1": request.headers["X-Bz-Content-Sha1"],
            "contentType": request.headers["Content-Type"],
            "fileInfo": info,
            "data": data,
        }
        self.versions.append(version)
        return httpx.Response(200, json=self._file_info(version))

    def _find(self, file_id):
        return next((v for v in self.versions if v["fileId"] == file_id), None)

    def _serve(self, version):
        if version is None or version["action"] != "upload":
            return self.error(404, "not_found", "File not present")
        headers = [
            ("Content-Type", version["contentType"]),
            ("X-Bz-File-Id", version["fileId"]),
            ("X-Bz-File-Name", quote(version["fileName"], safe="/")),
            ("X-Bz-Content-Sha1", version["contentSha1"]),
        ]
        headers += [("X-Bz-Info-" + k, v) for k, v in version["fileInfo"].items()]
        return httpx.Response(200, headers=headers, content=version["data"])

    def _serve_by_name(self, bucket_name, file_name):
        bucket = next((b for b in self.buckets.values() if b["bucketName"] == bucket_name), None)
        if bucket is None:
            return self.error(404, "not_found", "Bucket not found")
        for version in self._sorted_versions(bucket["bucketId"]):
            if version["fileName"] == file_name:
                return self._serve(version)
        return self.error(404, "not_found", "File not present")

    def list_file_names(self, body):
        start = body.get("startFileName", "")
        limit = body.get("maxFileCount", 100)
        entries = [v for v in self._current_names(body["bucketId"]) if v["fileName"] >= start]
        page, rest = entries[:limit], entries[limit:]
        return httpx.Response(200, json={
            "files": [self._file_name(v) for v in page],
            "nextFileName": rest[0]["fileName"] if rest else None,
        })

    def list_file_versions(self, body):
        versions = self._sorted_versions(body["bucketId"])
        limit = body.get("maxFileCount", 100)
        index = 0
        if "startFileId" in body:
            index = next(i for i, v in enumerate(versions) if v["fileId"] == body["startFileId"])
        elif "startFileName" in body:
            index = next(
                (i for i, v in enumerate(versions) if v["fileName"] >= body["startFileName"]),
                len(versions),
            )
        page, rest = versions[index:index + limit], versions[index + limit:]
        return httpx.Response(200, json={
            "files": [self._file_name(v) for v in page],
            "nextFileName": rest[0]["fileName"] if rest else None,
            "nextFileId": rest[0]["fileId"] if rest else None,
        })

    def get_file_info(self, body):
        version = self._find(body["fileId"])
        if version is None:
            return self.error(404, "not_found", "File not present")
        return httpx.Response(200, json=self._file_info(version))

    def delete_file_version(self, body):
        version = self._find(body["fileId"])
        if version is None or version["fileName"] != body["fileName"]:
            return self.error(400, "bad_request", "File not present")
        self.versions.remove(version)
        return httpx.Response(200, json={"fileId": version["fileId"], "fileName": version["fileName"]})

    def hide_file(self, body):
        if not any(
            v["fileName"] == body["fileName"] for v in self._sorted_versions(body["bucketId"])
        ):
            return self.error(400, "bad_request", "File not present")
        version = {
            "bucketId": body["bucketId"],
            "fileId": self._next_id("file-"),
            "fileName": body["fileName"],
            "action": "hide",
            "size": 0,
            "uploadTimestamp": next(self._clock),
            "contentSha1": "none",
            "contentType": "",
            "fileInfo": {},
            "data": b"",
        }
        self.versions.append(version)
        return httpx.Response(200, json=self._file_name(version))


@pytest.fixture
def fake_b2():
    return FakeB2()


@pytest.fixture
def transport(fake_b2):
    with httpx.Client(transport=httpx.MockTransport(fake_b2.handler)) as client:
        yield Transport(client=client)


@pytest.fixture
def session(fake_b2, transport):
    return Session.authenticate(
        FakeB2.ACCOUNT_ID,
        FakeB2.APPLICATION_KEY,
        api_url=FakeB2.AUTH_URL,
        transport=transport,
    )


@pytest.fixture
def bucket(session):
    return session.create_bucket("test-bucket", "allPrivate")


def sha1_of(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()


@pytest.fixture
def upload(session, bucket):
    """Upload ``data`` under ``name`` into the default bucket."""

    def _upload(name, data=b"hello", **kwargs):
        lease = session.lease_upload(bucket.bucket_id)
        return session.upload(data, name, len(data), sha1_of(data), lease=lease, **kwargs)

    return _upload
