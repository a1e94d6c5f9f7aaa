"""Wire-format constants shared by every B2 call."""

from typing import Literal


DEFAULT_API_URL = "https://api.backblaze.com"
API_SUFFIX = "/b2api/v1"

# Anything other than this status carries an error payload.
SUCCESS_STATUS = 200

HEADER_PREFIX = "X-Bz-"
FILE_NAME_HEADER = HEADER_PREFIX + "File-Name"
FILE_ID_HEADER = HEADER_PREFIX + "File-Id"
CONTENT_SHA1_HEADER = HEADER_PREFIX + "Content-Sha1"
INFO_HEADER_PREFIX = HEADER_PREFIX + "Info-"

AUTO_CONTENT_TYPE = "b2/x-auto"
LAST_MODIFIED_INFO_KEY = "src_last_modified_millis"


BucketType = Literal["allPublic", "allPrivate"]


FileAction = Literal["upload", "hide", "start", "folder"]
