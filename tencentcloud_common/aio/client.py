#  SPDX-License-Identifier: Apache-2.0
import asyncio
import logging
import random
import time
import uuid
from collections.abc import Mapping
from copy import copy
from types import TracebackType
from typing import Any, ClassVar, Self, TypeVar

from .. import __version__
from ..credentials import (
    Credential,
    CredentialProvider,
    ProviderChain,
    StaticCredentialProvider,
    default_provider_chain,
)
from ..exceptions import (
    BuildError,
    CallCancelledError,
    CallError,
    NetworkError,
    RetryError,
)
from ..http import HTTPRequest
from ..profile import ClientProfile
from ..requests import CommonRequest, IdempotentRequest, Request
from ..responses import CommonResponse, DecodableResponse, decode_response
from ..retries import BudgetedRetryStrategy
from ..signers import V1Signer, V1SigningProperties, V3Signer, V3SigningProperties
from .aiohttp import AIOHTTPClient
from .interfaces import HTTPClient, HTTPClientConfiguration, HTTPRequestConfiguration

_LOGGER = logging.getLogger(__name__)

Req = TypeVar("Req", bound=Request)
Resp = TypeVar("Resp", bound=DecodableResponse)

REQUEST_CLIENT = f"SDK_PYTHON_{__version__}"

# Nonce is documented as a random positive integer.
_MAX_NONCE = 2**31 - 1


class Client:
    """Sends signed requests to Tencent Cloud APIs.

    A client owns a pool of connections and may be shared by any number of
    concurrent calls. Service clients subclass it and set :py:attr:`SERVICE` and
    :py:attr:`API_VERSION`.

    .. code-block:: python

        async with Client(credential=credential, region="ap-guangzhou") as client:
            response = await client.call_json(
                "DescribeZones", service="cvm", version="2017-03-12"
            )
    """

    SERVICE: ClassVar[str | None] = None
    API_VERSION: ClassVar[str | None] = None

    def __init__(
        self,
        *,
        credential: Credential | CredentialProvider | None = None,
        region: str | None = None,
        profile: ClientProfile | None = None,
        http_client: HTTPClient | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """
        :param credential: A fixed credential or a provider that is consulted before
            every attempt. Defaults to the environment followed by the credentials
            file.
        :param region: The region to operate in. Some APIs are region-less.
        :param profile: Client wide configuration.
        :param http_client: The transport. When omitted the client creates and
            owns an aiohttp based one, closed by :py:meth:`close`.
        :param logger: Logger for per-call diagnostics.
        """
        match credential:
            case None:
                self._credential_provider: CredentialProvider = default_provider_chain()
            case Credential():
                self._credential_provider = StaticCredentialProvider(credential)
            case _:
                self._credential_provider = credential

        self.region = region
        self.profile = profile or ClientProfile()
        self._owns_http_client = http_client is None
        self._http_client = http_client or AIOHTTPClient(
            client_config=HTTPClientConfiguration(
                max_connections=self.profile.http_profile.max_connections
            )
        )
        self._logger = logger or _LOGGER
        profile = self.profile
        self.retry_strategy = BudgetedRetryStrategy(
            network_failure_max_retries=profile.network_failure_max_retries,
            rate_limit_exceeded_max_retries=profile.rate_limit_exceeded_max_retries,
            backoff_strategy=profile.backoff_strategy,
        )
        self._v3_signer = V3Signer()
        self._v1_signer = V1Signer()

    @classmethod
    def with_secret_id(
        cls,
        secret_id: str,
        secret_key: str,
        region: str | None = None,
        *,
        token: str | None = None,
        profile: ClientProfile | None = None,
    ) -> Self:
        """Create a client that signs with a fixed key pair."""
        credential = Credential(secret_id=secret_id, secret_key=secret_key, token=token)
        return cls(credential=credential, region=region, profile=profile)

    @classmethod
    def with_providers(
        cls,
        region: str | None,
        *providers: CredentialProvider,
        profile: ClientProfile | None = None,
    ) -> Self:
        """Create a client that asks each provider in turn for a credential.

        Without providers the environment and the credentials file are consulted.
        """
        chain = ProviderChain(providers) if providers else default_provider_chain()
        return cls(credential=chain, region=region, profile=profile)

    async def send(
        self,
        request: Req,
        response_type: type[Resp],
        *,
        deadline: float | None = None,
    ) -> Resp:
        """Send a request and decode its result.

        Unset transport fields of the request are filled from the profile on a copy,
        the request itself is left untouched. Each attempt resolves the credential
        and signs with a fresh timestamp.

        :param request: The request to send.
        :param response_type: The shape to decode a successful result into.
        :param deadline: Seconds the whole call, retries and backoff included, may
            take.
        :raises CallError: The error of the last attempt.
        :raises CallCancelledError: If the deadline expires first.
        """
        if deadline is None:
            return await self._send(request, response_type)

        timeout = asyncio.timeout(deadline)
        try:
            async with timeout:
                return await self._send(request, response_type)
        except TimeoutError as e:
            if not timeout.expired():
                raise
            raise CallCancelledError(
                f"{request.action} did not complete within its {deadline} second "
                "deadline"
            ) from e

    async def call_json(
        self,
        action: str,
        params: Mapping[str, Any] | None = None,
        *,
        service: str | None = None,
        version: str | None = None,
        headers: Mapping[str, str] | None = None,
        deadline: float | None = None,
    ) -> CommonResponse:
        """Call any action with parameters given as a plain document.

        :param action: The action name, such as ``DescribeZones``.
        :param params: The parameters of the action.
        :param service: Defaults to :py:attr:`SERVICE`.
        :param version: Defaults to :py:attr:`API_VERSION`.
        """
        service = service or self.SERVICE
        version = version or self.API_VERSION
        if not service or not version:
            raise BuildError(f"A service and version are required to call {action}")
        request = CommonRequest(
            service=service,
            version=version,
            action=action,
            payload=params or {},
            headers=headers or {},
        )
        return await self.send(request, CommonResponse, deadline=deadline)

    async def _send(
        self, request: Req, response_type: type[Resp]
    ) -> Resp:
        request = self._resolve_request(request)
        idempotent = self._is_idempotent(request)
        retry_strategy = self.retry_strategy
        retry_token = retry_strategy.acquire_initial_retry_token()

        while True:
            if retry_token.retry_delay:
                await asyncio.sleep(retry_token.retry_delay)

            self._logger.debug(
                "Attempting %s request #%s", request.action, retry_token.attempt_count
            )
            try:
                response = await self._handle_attempt(request, response_type)
            except CallError as e:
                error = e
            else:
                self._logger.debug(
                    "%s succeeded after %s attempt(s)",
                    request.action,
                    retry_token.attempt_count,
                )
                return response

            if isinstance(error, NetworkError) and error.is_retry_safe is None:
                # Only requests the service can't apply twice may be replayed
                # once they might have reached it.
                error.is_retry_safe = idempotent

            try:
                retry_token = retry_strategy.refresh_retry_token_for_retry(
                    token_to_renew=retry_token, error=error
                )
            except RetryError as retry_error:
                if not error.is_retry_safe:
                    self._logger.debug(
                        "%s failed with a fatal error: %s", request.action, error
                    )
                    raise error from None
                self._logger.debug("%s gave up: %s", request.action, retry_error)
                raise error from retry_error

            self._logger.debug(
                "Retry needed. Attempting request #%s in %.4f seconds.",
                retry_token.attempt_count,
                retry_token.retry_delay,
            )

    async def _handle_attempt(
        self, request: Request, response_type: type[Resp]
    ) -> Resp:
        credential = await self._credential_provider.resolve()
        envelope = self._sign(request, credential, int(time.time()))
        if self.profile.debug:
            self._logger.debug("Sending request:\n%s", envelope.dump())

        response = await self._http_client.send(
            envelope,
            request_config=HTTPRequestConfiguration(
                timeout=self.profile.http_profile.req_timeout
            ),
        )
        self._logger.debug(
            "Received HTTP %s for %s", response.status, request.action
        )
        return decode_response(response, response_type)

    def _sign(
        self, request: Request, credential: Credential, timestamp: int
    ) -> HTTPRequest:
        profile = self.profile
        if profile.uses_v1_signature:
            v1_properties: V1SigningProperties = {
                "timestamp": timestamp,
                "nonce": random.randint(1, _MAX_NONCE),
                "request_client": REQUEST_CLIENT,
                "sign_method": profile.sign_method,
                "region": self.region,
                "language": profile.language,
            }
            return self._v1_signer.sign(
                request=request, credential=credential, properties=v1_properties
            )

        v3_properties: V3SigningProperties = {
            "timestamp": timestamp,
            "request_client": REQUEST_CLIENT,
            "region": self.region,
            "language": profile.language,
            "unsigned_payload": profile.unsigned_payload,
        }
        return self._v3_signer.sign(
            request=request, credential=credential, properties=v3_properties
        )

    def _resolve_request(self, request: Req) -> Req:
        if not request.service or not request.version or not request.action:
            raise BuildError(
                "A request needs a service, version and action, got "
                f"{request.service!r}, {request.version!r}, {request.action!r}"
            )

        http_profile = self.profile.http_profile
        resolved = copy(request)
        resolved.scheme = (request.scheme or http_profile.scheme).lower()
        resolved.root_domain = request.root_domain or http_profile.root_domain
        resolved.http_method = (request.http_method or http_profile.req_method).upper()
        if not request.domain:
            resolved.domain = http_profile.service_domain(
                request.service, resolved.root_domain
            )

        if (
            self.retry_strategy.retries_enabled
            and isinstance(resolved, IdempotentRequest)
            and not resolved.client_token
        ):
            resolved.client_token = str(uuid.uuid4())
            self._logger.debug(
                "Assigned client token %s to %s", resolved.client_token, request.action
            )
        return resolved

    def _is_idempotent(self, request: Request) -> bool:
        if request.http_method == "GET":
            return True
        return isinstance(request, IdempotentRequest) and bool(request.client_token)

    async def close(self) -> None:
        """Release the connection pool if this client created it."""
        if self._owns_http_client:
            await self._http_client.close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.close()
