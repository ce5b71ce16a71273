#  SPDX-License-Identifier: Apache-2.0
import pytest

from tencentcloud_common.exceptions import ConfigurationError
from tencentcloud_common.profile import ClientProfile, HttpProfile
from tencentcloud_common.retries import ExponentialRetryBackoffStrategy


def test_http_profile_defaults() -> None:
    profile = HttpProfile()
    assert profile.scheme == "https"
    assert profile.root_domain == "tencentcloudapi.com"
    assert profile.endpoint is None
    assert profile.req_method == "POST"
    assert profile.req_timeout == 60
    assert profile.max_connections == 100


def test_http_profile_normalizes_case() -> None:
    profile = HttpProfile(scheme="HTTP", req_method="get")
    assert profile.scheme == "http"
    assert profile.req_method == "GET"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"scheme": "ftp"},
        {"req_method": "PUT"},
        {"root_domain": ""},
        {"req_timeout": 0},
        {"max_connections": 0},
    ],
)
def test_http_profile_validation(kwargs: dict[str, object]) -> None:
    with pytest.raises(ConfigurationError):
        HttpProfile(**kwargs)  # type: ignore


def test_service_domain() -> None:
    assert HttpProfile().service_domain("cvm") == "cvm.tencentcloudapi.com"
    assert (
        HttpProfile(root_domain="internal.example").service_domain("cvm")
        == "cvm.internal.example"
    )
    assert (
        HttpProfile(endpoint="cvm.ap-guangzhou.tencentcloudapi.com").service_domain(
            "cvm"
        )
        == "cvm.ap-guangzhou.tencentcloudapi.com"
    )


def test_service_domain_with_request_root_domain() -> None:
    assert (
        HttpProfile().service_domain("cvm", "internal.example")
        == "cvm.internal.example"
    )
    profile = HttpProfile(endpoint="cvm.ap-guangzhou.tencentcloudapi.com")
    assert (
        profile.service_domain("cvm", "internal.example")
        == "cvm.ap-guangzhou.tencentcloudapi.com"
    )


def test_client_profile_defaults() -> None:
    profile = ClientProfile()
    assert profile.sign_method == "TC3-HMAC-SHA256"
    assert not profile.unsigned_payload
    assert profile.language == "zh-CN"
    assert profile.network_failure_max_retries == 0
    assert profile.rate_limit_exceeded_max_retries == 0
    assert isinstance(profile.backoff_strategy, ExponentialRetryBackoffStrategy)
    assert not profile.debug
    assert not profile.uses_v1_signature


@pytest.mark.parametrize("sign_method", ["HmacSHA1", "HmacSHA256"])
def test_v1_sign_methods(sign_method: str) -> None:
    assert ClientProfile(sign_method=sign_method).uses_v1_signature


@pytest.mark.parametrize(
    "kwargs",
    [
        {"sign_method": "HmacMD5"},
        {"language": "fr-FR"},
        {"network_failure_max_retries": -1},
        {"rate_limit_exceeded_max_retries": -1},
    ],
)
def test_client_profile_validation(kwargs: dict[str, object]) -> None:
    with pytest.raises(ConfigurationError):
        ClientProfile(**kwargs)  # type: ignore
