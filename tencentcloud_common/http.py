#  SPDX-License-Identifier: Apache-2.0
from collections.abc import Mapping
from dataclasses import dataclass, field
from urllib.parse import urlunparse


@dataclass(kw_only=True, frozen=True)
class URI:
    """Target location for an :py:class:`HTTPRequest`."""

    scheme: str = "https"
    """For example ``http`` or ``https``."""

    host: str
    """The hostname, for example ``cvm.tencentcloudapi.com``."""

    port: int | None = None
    """An explicit port number."""

    path: str = "/"
    """Path component of the URI."""

    query: str | None = None
    """Query component of the URI as an already encoded string."""

    @property
    def netloc(self) -> str:
        if self.port is not None:
            return f"{self.host}:{self.port}"
        return self.host

    def build(self) -> str:
        """Construct URI string representation.

        Returns a string of the form ``{scheme}://{host}:{port}{path}?{query}``
        """
        return urlunparse(
            (self.scheme, self.netloc, self.path or "/", "", self.query or "", "")
        )


@dataclass(kw_only=True, frozen=True)
class HTTPRequest:
    """A signed request ready for transmission.

    Envelopes are built fresh for every attempt since the timestamp and signature
    they carry are only accepted by the service for a short window.
    """

    method: str
    destination: URI
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    def dump(self) -> str:
        """Render the request the way it goes over the wire, for diagnostics."""
        lines = [f"{self.method} {self.destination.build()}"]
        lines.extend(f"{name}: {value}" for name, value in self.headers.items())
        lines.append("")
        lines.append(self.body.decode("utf-8", errors="replace"))
        return "\n".join(lines)


@dataclass(kw_only=True, frozen=True)
class HTTPResponse:
    status: int
    """The 3 digit response status code (1xx, 2xx, 3xx, 4xx, 5xx)."""

    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    reason: str | None = None
    """Optional string provided by the server explaining the status."""


def merge_headers(
    base: Mapping[str, str], *others: Mapping[str, str]
) -> dict[str, str]:
    """Merge header mappings left to right, treating names case-insensitively.

    A later mapping replaces an earlier value for the same name, keeping the later
    mapping's spelling of the name.
    """
    merged: dict[str, str] = {}
    lowered: dict[str, str] = {}
    for headers in (base, *others):
        for name, value in headers.items():
            if (existing := lowered.get(name.lower())) is not None:
                del merged[existing]
            merged[name] = value
            lowered[name.lower()] = name
    return merged
