#  SPDX-License-Identifier: Apache-2.0
import datetime
import json
from dataclasses import dataclass
from hashlib import sha256
from typing import Final
from urllib.parse import urlencode

from .exceptions import BuildError
from .requests import RESERVED_PARAMS, Request

TC3_REQUEST: Final = "tc3_request"
UNSIGNED_PAYLOAD: Final = "UNSIGNED-PAYLOAD"
SIGNED_HEADERS: Final = "content-type;host"
CANONICAL_URI: Final = "/"

CONTENT_TYPE_FORM: Final = "application/x-www-form-urlencoded"
CONTENT_TYPE_JSON: Final = "application/json"
CONTENT_TYPE_OCTET_STREAM: Final = "application/octet-stream"


def sha256_hex(data: bytes | str) -> str:
    if isinstance(data, str):
        data = data.encode()
    return sha256(data).hexdigest()


@dataclass(kw_only=True, frozen=True)
class SigningContext:
    """Time and scope a signature is bound to."""

    timestamp: int
    """Unix time in seconds at which the request is signed."""

    service: str

    @property
    def date(self) -> str:
        """The UTC calendar date of :py:attr:`timestamp` as ``YYYY-MM-DD``."""
        return datetime.datetime.fromtimestamp(self.timestamp, datetime.UTC).strftime(
            "%Y-%m-%d"
        )

    @property
    def credential_scope(self) -> str:
        # Scope format: <YYYY-MM-DD>/<service>/tc3_request
        return f"{self.date}/{self.service}/{TC3_REQUEST}"


@dataclass(kw_only=True, frozen=True)
class CanonicalRequest:
    """The standardized form of a request that ``TC3-HMAC-SHA256`` signs.

    Its string form is::

        <HTTPMethod>\\n
        <CanonicalURI>\\n
        <CanonicalQueryString>\\n
        <CanonicalHeaders>\\n
        <SignedHeaders>\\n
        <HashedPayload>

    Comparing it against the service's rendition is the quickest way to find the
    cause of a signature mismatch.
    """

    method: str
    query: str
    """The canonical query string, also used verbatim as the URL query for GET."""

    content_type: str
    host: str
    payload: bytes
    """The exact body to transmit."""

    payload_hash: str
    uri: str = CANONICAL_URI

    @property
    def canonical_headers(self) -> str:
        return f"content-type:{self.content_type}\nhost:{self.host}\n"

    def __str__(self) -> str:
        return (
            f"{self.method}\n"
            f"{self.uri}\n"
            f"{self.query}\n"
            f"{self.canonical_headers}\n"
            f"{SIGNED_HEADERS}\n"
            f"{self.payload_hash}"
        )


def build_canonical_request(
    request: Request, *, host: str, content_type: str, unsigned_payload: bool = False
) -> CanonicalRequest:
    """Build the canonical request for a request whose defaults are resolved.

    :param request: The request to sign. ``http_method`` must be set.
    :param host: The value of the ``Host`` header.
    :param content_type: The value of the ``Content-Type`` header.
    :param unsigned_payload: Hash the ``UNSIGNED-PAYLOAD`` sentinel instead of the
        payload.
    :raises BuildError: If the request can't be serialized.
    """
    method = (request.http_method or "").upper()
    if method == "GET":
        query = canonical_query_string(request.params)
        payload = b""
    elif method == "POST":
        query = ""
        payload = canonical_payload(request)
    else:
        raise BuildError(f"Unsupported HTTP method {request.http_method!r}")

    payload_hash = sha256_hex(UNSIGNED_PAYLOAD if unsigned_payload else payload)
    return CanonicalRequest(
        method=method,
        query=query,
        content_type=content_type,
        host=host,
        payload=payload,
        payload_hash=payload_hash,
    )


def canonical_query_string(params: dict[str, str]) -> str:
    """Encode ``params`` without the reserved common parameters, sorted by key."""
    return urlencode(
        sorted((k, v) for k, v in params.items() if k not in RESERVED_PARAMS)
    )


def canonical_payload(request: Request) -> bytes:
    if request.is_octet_stream:
        return request.octet_stream_body()
    try:
        return json.dumps(
            request.serialize(), separators=(",", ":"), ensure_ascii=False
        ).encode()
    except (TypeError, ValueError) as e:
        raise BuildError(f"Failed to serialize {request.action} request: {e}") from e
