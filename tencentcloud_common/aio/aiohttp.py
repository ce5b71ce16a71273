#  SPDX-License-Identifier: Apache-2.0
import aiohttp
import yarl

from ..exceptions import NetworkError
from ..http import HTTPRequest, HTTPResponse
from .interfaces import HTTPClient, HTTPClientConfiguration, HTTPRequestConfiguration


class AIOHTTPClient(HTTPClient):
    """Implementation of :py:class:`.interfaces.HTTPClient` using aiohttp.

    Connections are pooled in a single ``aiohttp.ClientSession`` shared by every call
    made through the client. A connection is checked out for one attempt and
    returned as soon as the response body has been read.
    """

    def __init__(
        self,
        *,
        client_config: HTTPClientConfiguration | None = None,
        _session: aiohttp.ClientSession | None = None,
    ) -> None:
        """
        :param client_config: Configuration that applies to all requests made with this
        client.
        """
        self._config = client_config or HTTPClientConfiguration()
        self._session = _session

    def _get_session(self) -> aiohttp.ClientSession:
        # The session binds to the running loop, so it is created on first use.
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(limit=self._config.max_connections)
            )
        return self._session

    async def send(
        self,
        request: HTTPRequest,
        *,
        request_config: HTTPRequestConfiguration | None = None,
    ) -> HTTPResponse:
        """Send HTTP request using aiohttp client.

        :param request: The signed envelope to transmit.
        :param request_config: Configuration specific to this request.
        :raises NetworkError: On connection failures and timeouts. The error is only
            marked safe to retry when the connection could not be established, since
            in every other case the service may already have acted on the request.
        """
        request_config = request_config or HTTPRequestConfiguration()
        timeout = aiohttp.ClientTimeout(total=request_config.timeout)

        try:
            async with self._get_session().request(
                method=request.method,
                # The query is already encoded exactly as it was signed.
                url=yarl.URL(request.destination.build(), encoded=True),
                headers=dict(request.headers),
                data=request.body if request.body else None,
                timeout=timeout,
            ) as resp:
                return await self._marshal_response(resp)
        except aiohttp.ClientConnectorError as e:
            raise NetworkError(
                f"Failed to connect to {request.destination.netloc}: {e}",
                is_retry_safe=True,
            ) from e
        except TimeoutError as e:
            raise NetworkError(
                f"Request to {request.destination.netloc} timed out after "
                f"{request_config.timeout} seconds",
                is_timeout_error=True,
            ) from e
        except aiohttp.ClientError as e:
            raise NetworkError(
                f"Request to {request.destination.netloc} failed: {e}"
            ) from e

    async def _marshal_response(self, resp: aiohttp.ClientResponse) -> HTTPResponse:
        """Convert a ``aiohttp.ClientResponse`` to an :py:class:`HTTPResponse`."""
        return HTTPResponse(
            status=resp.status,
            headers={name: value for name, value in resp.headers.items()},
            body=await resp.read(),
            reason=resp.reason,
        )

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
