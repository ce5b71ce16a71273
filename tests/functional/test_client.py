#  SPDX-License-Identifier: Apache-2.0
import asyncio
import json
import logging
import uuid
from collections import deque
from dataclasses import dataclass, field
from urllib.parse import parse_qsl

import pytest
from freezegun import freeze_time

from tencentcloud_common import __version__
from tencentcloud_common.aio.client import Client
from tencentcloud_common.aio.interfaces import HTTPRequestConfiguration
from tencentcloud_common.credentials import (
    Credential,
    CredentialProvider,
    ProviderChain,
)
from tencentcloud_common.exceptions import (
    AuthenticationError,
    BuildError,
    BusinessError,
    CallCancelledError,
    CredentialError,
    NetworkError,
    RetryError,
    ThrottlingError,
)
from tencentcloud_common.http import HTTPRequest, HTTPResponse
from tencentcloud_common.profile import ClientProfile, HttpProfile
from tencentcloud_common.requests import BaseRequest, CommonRequest
from tencentcloud_common.responses import CommonResponse
from tencentcloud_common.retries import (
    ExponentialBackoffJitterType,
    ExponentialRetryBackoffStrategy,
)
from tencentcloud_common.testing import MockHTTPClient

SECRET_KEY = "Gu5t9xGARNpq86cd98joQYCN3EXAMPLE"
CREDENTIAL = Credential(secret_id="AKIDexample", secret_key=SECRET_KEY)
NO_BACKOFF = ExponentialRetryBackoffStrategy(
    backoff_scale_value=0, jitter_type=ExponentialBackoffJitterType.NONE
)


@dataclass(kw_only=True)
class CreateThingRequest(BaseRequest):
    service: str = "thing"
    version: str = "2020-01-01"
    action: str = "CreateThing"

    name: str | None = field(default=None, metadata={"name": "Name"})
    client_token: str | None = field(default=None, metadata={"name": "ClientToken"})


class RotatingProvider(CredentialProvider):
    def __init__(self) -> None:
        self.calls = 0

    async def resolve(self) -> Credential:
        self.calls += 1
        return Credential(secret_id=f"AKID{self.calls}", secret_key=SECRET_KEY)


class SlowHTTPClient(MockHTTPClient):
    def __init__(self, delay: float) -> None:
        super().__init__()
        self._delay = delay

    async def send(
        self,
        request: HTTPRequest,
        *,
        request_config: HTTPRequestConfiguration | None = None,
    ) -> HTTPResponse:
        await asyncio.sleep(self._delay)
        return await super().send(request, request_config=request_config)


class ScriptedHTTPClient(MockHTTPClient):
    """Answers each request from the queue named by its ``Name`` parameter."""

    def __init__(self, scripts: dict[str, list[HTTPResponse | Exception]]) -> None:
        super().__init__()
        self._scripts = {name: deque(script) for name, script in scripts.items()}
        self.sent: dict[str, list[HTTPRequest]] = {name: [] for name in scripts}

    async def send(
        self,
        request: HTTPRequest,
        *,
        request_config: HTTPRequestConfiguration | None = None,
    ) -> HTTPResponse:
        name = json.loads(request.body)["Name"]
        self.sent[name].append(request)
        response = self._scripts[name].popleft()
        if isinstance(response, Exception):
            raise response
        return response


def json_response(response: dict[str, object]) -> HTTPResponse:
    return HTTPResponse(
        status=200,
        headers={"Content-Type": "application/json"},
        body=json.dumps({"Response": response}).encode(),
    )


def create_client(
    http_client: MockHTTPClient, region: str | None = None, **profile_kwargs: object
) -> Client:
    profile_kwargs.setdefault("backoff_strategy", NO_BACKOFF)
    return Client(
        credential=CREDENTIAL,
        region=region,
        profile=ClientProfile(**profile_kwargs),  # type: ignore
        http_client=http_client,
    )


def describe_things(method: str = "GET") -> CommonRequest:
    return CommonRequest(
        service="thing",
        version="2020-01-01",
        action="DescribeThings",
        http_method=method,
        payload={"Limit": 10},
    )


def header(request: HTTPRequest, name: str) -> str | None:
    for key, value in request.headers.items():
        if key.lower() == name.lower():
            return value
    return None


async def test_send_success() -> None:
    http_client = MockHTTPClient()
    http_client.add_json_response({"Total": 3, "RequestId": "req-1"})
    client = create_client(http_client, region="ap-guangzhou")

    response = await client.send(describe_things(), CommonResponse)

    assert response.request_id == "req-1"
    assert response["Total"] == 3
    assert http_client.call_count == 1
    sent = http_client.captured_requests[0]
    assert sent.destination.build() == "https://thing.tencentcloudapi.com/?Limit=10"
    assert header(sent, "X-TC-Region") == "ap-guangzhou"
    assert header(sent, "X-TC-RequestClient") == f"SDK_PYTHON_{__version__}"
    assert header(sent, "Authorization").startswith(  # type: ignore
        "TC3-HMAC-SHA256 Credential=AKIDexample/"
    )
    assert http_client.captured_configs[0] == HTTPRequestConfiguration(timeout=60)


@freeze_time("2020-09-13 12:26:40")
async def test_signs_with_current_time() -> None:
    http_client = MockHTTPClient()
    http_client.add_json_response({"RequestId": "req-1"})
    client = create_client(http_client)

    await client.send(describe_things(), CommonResponse)

    sent = http_client.captured_requests[0]
    assert header(sent, "X-TC-Timestamp") == "1600000000"
    assert "/2020-09-13/thing/tc3_request," in header(  # type: ignore
        sent, "Authorization"
    )


async def test_network_failures_exhaust_budget() -> None:
    http_client = MockHTTPClient()
    for _ in range(3):
        http_client.add_exception(NetworkError("connection reset"))
    client = create_client(http_client, network_failure_max_retries=2)

    with pytest.raises(NetworkError) as exc_info:
        await client.send(describe_things("GET"), CommonResponse)

    assert http_client.call_count == 3
    assert isinstance(exc_info.value.__cause__, RetryError)


async def test_retry_then_success() -> None:
    http_client = MockHTTPClient()
    http_client.add_exception(NetworkError("connection reset"))
    http_client.add_response(status=502, body=b"bad gateway")
    http_client.add_json_response({"RequestId": "req-1"})
    client = create_client(http_client, network_failure_max_retries=2)

    response = await client.send(describe_things("GET"), CommonResponse)

    assert response.request_id == "req-1"
    assert http_client.call_count == 3


async def test_business_error_is_not_retried() -> None:
    http_client = MockHTTPClient()
    http_client.add_error_response("InvalidParameter", "bad name", "req-1")
    http_client.add_json_response({"RequestId": "req-2"})
    client = create_client(
        http_client, network_failure_max_retries=3, rate_limit_exceeded_max_retries=3
    )

    with pytest.raises(BusinessError) as exc_info:
        await client.send(describe_things(), CommonResponse)

    assert http_client.call_count == 1
    assert exc_info.value.code == "InvalidParameter"
    assert exc_info.value.request_id == "req-1"


async def test_authentication_error_is_not_retried() -> None:
    http_client = MockHTTPClient()
    http_client.add_error_response("AuthFailure.SignatureFailure")
    client = create_client(http_client, network_failure_max_retries=3)

    with pytest.raises(AuthenticationError):
        await client.send(describe_things(), CommonResponse)

    assert http_client.call_count == 1


async def test_throttling_uses_rate_limit_budget() -> None:
    http_client = MockHTTPClient()
    for _ in range(3):
        http_client.add_error_response("RequestLimitExceeded", "slow down")
    client = create_client(
        http_client, network_failure_max_retries=5, rate_limit_exceeded_max_retries=1
    )

    with pytest.raises(ThrottlingError):
        await client.send(describe_things(), CommonResponse)

    assert http_client.call_count == 2


async def test_throttling_not_retried_without_budget() -> None:
    http_client = MockHTTPClient()
    http_client.add_error_response("RequestLimitExceeded", "slow down")
    client = create_client(http_client, network_failure_max_retries=5)

    with pytest.raises(ThrottlingError):
        await client.send(describe_things(), CommonResponse)

    assert http_client.call_count == 1


async def test_ambiguous_failure_not_retried_for_post() -> None:
    http_client = MockHTTPClient()
    http_client.add_exception(NetworkError("read timed out", is_timeout_error=True))
    http_client.add_json_response({"RequestId": "req-1"})
    client = create_client(http_client, network_failure_max_retries=2)

    with pytest.raises(NetworkError):
        await client.send(describe_things("POST"), CommonResponse)

    assert http_client.call_count == 1


async def test_connection_failure_retried_for_post() -> None:
    http_client = MockHTTPClient()
    http_client.add_exception(NetworkError("refused", is_retry_safe=True))
    http_client.add_json_response({"RequestId": "req-1"})
    client = create_client(http_client, network_failure_max_retries=1)

    response = await client.send(describe_things("POST"), CommonResponse)

    assert response.request_id == "req-1"
    assert http_client.call_count == 2


async def test_client_token_injected_once_per_call() -> None:
    http_client = MockHTTPClient()
    http_client.add_exception(NetworkError("read timed out", is_timeout_error=True))
    http_client.add_json_response({"RequestId": "req-1"})
    client = create_client(http_client, network_failure_max_retries=1)
    request = CreateThingRequest(name="thing", http_method="POST")

    await client.send(request, CommonResponse)

    assert http_client.call_count == 2
    tokens = {
        json.loads(sent.body)["ClientToken"] for sent in http_client.captured_requests
    }
    assert len(tokens) == 1
    uuid.UUID(tokens.pop())
    assert request.client_token is None


async def test_client_token_kept_when_set() -> None:
    http_client = MockHTTPClient()
    http_client.add_json_response({"RequestId": "req-1"})
    client = create_client(http_client, network_failure_max_retries=1)

    await client.send(
        CreateThingRequest(name="thing", client_token="mine"), CommonResponse
    )

    assert json.loads(http_client.captured_requests[0].body)["ClientToken"] == "mine"


async def test_client_token_not_injected_without_retries() -> None:
    http_client = MockHTTPClient()
    http_client.add_json_response({"RequestId": "req-1"})
    client = create_client(http_client)

    await client.send(CreateThingRequest(name="thing"), CommonResponse)

    assert "ClientToken" not in json.loads(http_client.captured_requests[0].body)


async def test_concurrent_calls_retry_independently(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    throttled = json_response(
        {"Error": {"Code": "RequestLimitExceeded"}, "RequestId": "req-t"}
    )
    http_client = ScriptedHTTPClient(
        {
            "a": [
                NetworkError("refused", is_retry_safe=True),
                throttled,
                json_response({"RequestId": "req-a"}),
            ],
            "b": [
                throttled,
                throttled,
                NetworkError("refused", is_retry_safe=True),
                json_response({"RequestId": "req-b"}),
            ],
        }
    )
    client = create_client(
        http_client,
        network_failure_max_retries=2,
        rate_limit_exceeded_max_retries=2,
        backoff_strategy=ExponentialRetryBackoffStrategy(
            backoff_scale_value=1,
            max_backoff=100,
            jitter_type=ExponentialBackoffJitterType.DECORRELATED,
            random=lambda: 1.0,
        ),
    )

    real_sleep = asyncio.sleep
    delays: dict[str, list[float]] = {"a": [], "b": []}

    async def record_sleep(delay: float) -> None:
        task = asyncio.current_task()
        assert task is not None
        delays[task.get_name()].append(delay)
        await real_sleep(0)

    monkeypatch.setattr(asyncio, "sleep", record_sleep)

    first = asyncio.create_task(
        client.send(CreateThingRequest(name="a"), CommonResponse), name="a"
    )
    second = asyncio.create_task(
        client.send(CreateThingRequest(name="b"), CommonResponse), name="b"
    )
    response_a, response_b = await asyncio.gather(first, second)

    # Pooled budgets would run out on the third throttling error.
    assert response_a.request_id == "req-a"
    assert response_b.request_id == "req-b"
    assert len(http_client.sent["a"]) == 3
    assert len(http_client.sent["b"]) == 4

    # Each call's decorrelated delays start over from the scale value.
    assert delays == {"a": [4.0, 13.0], "b": [4.0, 13.0, 40.0]}

    tokens = {
        name: {json.loads(sent.body)["ClientToken"] for sent in requests}
        for name, requests in http_client.sent.items()
    }
    assert len(tokens["a"]) == 1
    assert len(tokens["b"]) == 1
    assert tokens["a"] != tokens["b"]


async def test_credential_resolved_every_attempt() -> None:
    http_client = MockHTTPClient()
    http_client.add_exception(NetworkError("refused", is_retry_safe=True))
    http_client.add_json_response({"RequestId": "req-1"})
    provider = RotatingProvider()
    client = Client(
        credential=provider,
        profile=ClientProfile(
            network_failure_max_retries=1, backoff_strategy=NO_BACKOFF
        ),
        http_client=http_client,
    )

    await client.send(describe_things(), CommonResponse)

    assert provider.calls == 2
    first, second = http_client.captured_requests
    assert "Credential=AKID1/" in header(first, "Authorization")  # type: ignore
    assert "Credential=AKID2/" in header(second, "Authorization")  # type: ignore


async def test_credential_failure_raised_at_call_time() -> None:
    http_client = MockHTTPClient()
    client = Client(credential=ProviderChain([]), http_client=http_client)

    with pytest.raises(CredentialError):
        await client.send(describe_things(), CommonResponse)

    assert http_client.call_count == 0


async def test_build_error_sends_nothing() -> None:
    http_client = MockHTTPClient()
    client = create_client(http_client, network_failure_max_retries=3)
    request = describe_things("POST")
    request.payload = {"Value": object()}

    with pytest.raises(BuildError):
        await client.send(request, CommonResponse)

    assert http_client.call_count == 0


async def test_defaults_resolved_on_a_copy() -> None:
    http_client = MockHTTPClient()
    http_client.add_json_response({"RequestId": "req-1"})
    profile = ClientProfile(
        http_profile=HttpProfile(
            scheme="http", root_domain="internal.example", req_method="GET"
        )
    )
    client = Client(credential=CREDENTIAL, profile=profile, http_client=http_client)
    request = CommonRequest(service="thing", version="2020-01-01", action="Ping")

    await client.send(request, CommonResponse)

    sent = http_client.captured_requests[0]
    assert sent.method == "GET"
    assert sent.destination.build() == "http://thing.internal.example/"
    assert request.http_method is None
    assert request.scheme is None
    assert request.domain is None


async def test_endpoint_override() -> None:
    http_client = MockHTTPClient()
    http_client.add_json_response({"RequestId": "req-1"})
    profile = ClientProfile(
        http_profile=HttpProfile(endpoint="thing.ap-guangzhou.tencentcloudapi.com")
    )
    client = Client(credential=CREDENTIAL, profile=profile, http_client=http_client)

    await client.send(describe_things("POST"), CommonResponse)

    sent = http_client.captured_requests[0]
    assert sent.destination.host == "thing.ap-guangzhou.tencentcloudapi.com"
    assert header(sent, "Host") == "thing.ap-guangzhou.tencentcloudapi.com"


async def test_v1_signing() -> None:
    http_client = MockHTTPClient()
    http_client.add_json_response({"RequestId": "req-1"})
    client = create_client(
        http_client, region="ap-guangzhou", sign_method="HmacSHA256", language="en-US"
    )

    await client.send(describe_things("GET"), CommonResponse)

    params = dict(parse_qsl(http_client.captured_requests[0].destination.query or ""))
    assert params["SignatureMethod"] == "HmacSHA256"
    assert params["Action"] == "DescribeThings"
    assert params["Region"] == "ap-guangzhou"
    assert params["Language"] == "en-US"
    assert params["RequestClient"] == f"SDK_PYTHON_{__version__}"
    assert int(params["Nonce"]) > 0
    assert "Signature" in params


async def test_deadline_expires_during_transmission() -> None:
    http_client = SlowHTTPClient(delay=5)
    client = create_client(http_client, network_failure_max_retries=3)

    with pytest.raises(CallCancelledError) as exc_info:
        await client.send(describe_things(), CommonResponse, deadline=0.05)

    assert exc_info.value.code == "ClientError.Cancelled"


async def test_deadline_expires_during_backoff() -> None:
    http_client = MockHTTPClient()
    http_client.add_exception(NetworkError("refused", is_retry_safe=True))
    http_client.add_json_response({"RequestId": "req-1"})
    client = create_client(
        http_client,
        network_failure_max_retries=1,
        backoff_strategy=ExponentialRetryBackoffStrategy(
            backoff_scale_value=10, jitter_type=ExponentialBackoffJitterType.NONE
        ),
    )

    with pytest.raises(CallCancelledError):
        await client.send(describe_things(), CommonResponse, deadline=0.05)

    assert http_client.call_count == 1


async def test_deadline_not_reached() -> None:
    http_client = MockHTTPClient()
    http_client.add_json_response({"RequestId": "req-1"})
    client = create_client(http_client)

    response = await client.send(describe_things(), CommonResponse, deadline=5)

    assert response.request_id == "req-1"


async def test_explicit_cancellation_propagates() -> None:
    http_client = SlowHTTPClient(delay=5)
    client = create_client(http_client, network_failure_max_retries=3)

    task = asyncio.create_task(client.send(describe_things(), CommonResponse))
    await asyncio.sleep(0.01)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task


async def test_debug_dump(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="tencentcloud_common.aio.client")
    http_client = MockHTTPClient()
    http_client.add_json_response({"RequestId": "req-1"})
    client = create_client(http_client, debug=True)

    await client.send(describe_things("POST"), CommonResponse)

    assert "Sending request:\nPOST https://thing.tencentcloudapi.com/" in caplog.text
    assert '{"Limit":10}' in caplog.text
    assert SECRET_KEY not in caplog.text


async def test_no_dump_without_debug(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="tencentcloud_common.aio.client")
    http_client = MockHTTPClient()
    http_client.add_json_response({"RequestId": "req-1"})
    client = create_client(http_client)

    await client.send(describe_things(), CommonResponse)

    assert "Sending request" not in caplog.text


async def test_caller_supplied_logger(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("tests.caller")
    caplog.set_level(logging.DEBUG, logger="tests.caller")
    http_client = MockHTTPClient()
    http_client.add_json_response({"RequestId": "req-1"})
    client = Client(
        credential=CREDENTIAL,
        profile=ClientProfile(debug=True),
        http_client=http_client,
        logger=logger,
    )

    await client.send(describe_things(), CommonResponse)

    assert any(
        record.name == "tests.caller" and "Sending request" in record.getMessage()
        for record in caplog.records
    )


async def test_call_json() -> None:
    http_client = MockHTTPClient()
    http_client.add_json_response({"Zones": ["ap-guangzhou-1"], "RequestId": "req-1"})
    client = create_client(http_client)

    response = await client.call_json(
        "DescribeZones", {"Product": "cvm"}, service="cvm", version="2017-03-12"
    )

    assert response["Zones"] == ["ap-guangzhou-1"]
    sent = http_client.captured_requests[0]
    assert header(sent, "X-TC-Action") == "DescribeZones"
    assert header(sent, "X-TC-Version") == "2017-03-12"
    assert json.loads(sent.body) == {"Product": "cvm"}


async def test_call_json_requires_service() -> None:
    client = create_client(MockHTTPClient())

    with pytest.raises(BuildError):
        await client.call_json("DescribeZones")


async def test_close_leaves_injected_transport_open() -> None:
    http_client = MockHTTPClient()
    async with create_client(http_client):
        pass

    assert not http_client.closed


async def test_constructors() -> None:
    client = Client.with_secret_id("AKIDexample", SECRET_KEY, "ap-guangzhou")
    assert client.region == "ap-guangzhou"
    await client.close()

    client = Client.with_providers(None, RotatingProvider())
    assert client.region is None
    await client.close()
