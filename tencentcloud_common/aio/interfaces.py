#  SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass
from typing import Protocol

from ..http import HTTPRequest, HTTPResponse


@dataclass(kw_only=True)
class HTTPClientConfiguration:
    """Client-level HTTP configuration.

    :param max_connections: Upper limit on simultaneously open connections in the
        shared pool.
    """

    max_connections: int = 100


@dataclass(kw_only=True)
class HTTPRequestConfiguration:
    """Request-level HTTP configuration.

    :param timeout: How long, in seconds, a single attempt may take before it is
        abandoned.
    """

    timeout: float | None = None


class HTTPClient(Protocol):
    """An asynchronous HTTP client interface."""

    async def send(
        self,
        request: HTTPRequest,
        *,
        request_config: HTTPRequestConfiguration | None = None,
    ) -> HTTPResponse:
        """Send HTTP request over the wire and return the response.

        :param request: The signed envelope to transmit.
        :param request_config: Configuration specific to this request.
        :raises NetworkError: If no response was received.
        """
        ...

    async def close(self) -> None:
        """Release pooled connections."""
        ...
