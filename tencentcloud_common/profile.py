#  SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass, field
from typing import Final

from .exceptions import ConfigurationError
from .interfaces.retries import RetryBackoffStrategy
from .retries import ExponentialRetryBackoffStrategy

SIGN_METHOD_HMAC_SHA1: Final = "HmacSHA1"
SIGN_METHOD_HMAC_SHA256: Final = "HmacSHA256"
SIGN_METHOD_TC3: Final = "TC3-HMAC-SHA256"

V1_SIGN_METHODS: Final = frozenset({SIGN_METHOD_HMAC_SHA1, SIGN_METHOD_HMAC_SHA256})
SIGN_METHODS: Final = V1_SIGN_METHODS | {SIGN_METHOD_TC3}


@dataclass(kw_only=True)
class HttpProfile:
    """Transport level configuration.

    :param scheme: ``http`` or ``https``. Matched case-insensitively.
    :param root_domain: Domain appended to the service name to form the default
        endpoint, ``<service>.<root_domain>``.
    :param endpoint: Host to send every request to, overriding the per-service
        endpoint pattern.
    :param req_method: HTTP method used when a request does not set one.
    :param req_timeout: Timeout in seconds for a single attempt.
    :param max_connections: Size of the shared connection pool.
    """

    scheme: str = "https"
    root_domain: str = "tencentcloudapi.com"
    endpoint: str | None = None
    req_method: str = "POST"
    req_timeout: float = 60
    max_connections: int = 100

    def __post_init__(self) -> None:
        self.scheme = self.scheme.lower()
        if self.scheme not in ("http", "https"):
            raise ConfigurationError(
                f"Unsupported scheme {self.scheme!r}, expected http or https"
            )
        self.req_method = self.req_method.upper()
        if self.req_method not in ("GET", "POST"):
            raise ConfigurationError(
                f"Unsupported request method {self.req_method!r}, expected GET or POST"
            )
        if not self.root_domain:
            raise ConfigurationError("root_domain must not be empty")
        if self.req_timeout <= 0:
            raise ConfigurationError(
                f"req_timeout must be positive, got {self.req_timeout}"
            )
        if self.max_connections <= 0:
            raise ConfigurationError(
                f"max_connections must be positive, got {self.max_connections}"
            )

    def service_domain(self, service: str, root_domain: str | None = None) -> str:
        """The host requests for ``service`` are sent to.

        :param root_domain: Overrides :py:attr:`root_domain` for one request. The
            fixed :py:attr:`endpoint` still wins.
        """
        if self.endpoint:
            return self.endpoint
        return f"{service}.{root_domain or self.root_domain}"


@dataclass(kw_only=True)
class ClientProfile:
    """Client wide configuration.

    :param http_profile: Transport configuration.
    :param sign_method: One of ``HmacSHA1``, ``HmacSHA256`` (legacy query string
        signing) or ``TC3-HMAC-SHA256``.
    :param unsigned_payload: Hash the ``UNSIGNED-PAYLOAD`` sentinel instead of the
        request body when signing with ``TC3-HMAC-SHA256``.
    :param language: Language of error messages returned by the service.
    :param network_failure_max_retries: Retry budget for connection errors, timeouts
        and transport 5xx responses.
    :param rate_limit_exceeded_max_retries: Retry budget for throttling errors.
    :param backoff_strategy: Computes the delay before each retry.
    :param debug: Log every outgoing request at DEBUG level.
    """

    http_profile: HttpProfile = field(default_factory=HttpProfile)
    sign_method: str = SIGN_METHOD_TC3
    unsigned_payload: bool = False
    language: str = "zh-CN"
    network_failure_max_retries: int = 0
    rate_limit_exceeded_max_retries: int = 0
    backoff_strategy: RetryBackoffStrategy = field(
        default_factory=ExponentialRetryBackoffStrategy
    )
    debug: bool = False

    def __post_init__(self) -> None:
        if self.sign_method not in SIGN_METHODS:
            raise ConfigurationError(
                f"Unsupported sign method {self.sign_method!r}, expected one of "
                f"{', '.join(sorted(SIGN_METHODS))}"
            )
        if self.language not in ("zh-CN", "en-US"):
            raise ConfigurationError(
                f"Unsupported language {self.language!r}, expected zh-CN or en-US"
            )
        if self.network_failure_max_retries < 0:
            raise ConfigurationError("network_failure_max_retries must not be negative")
        if self.rate_limit_exceeded_max_retries < 0:
            raise ConfigurationError(
                "rate_limit_exceeded_max_retries must not be negative"
            )

    @property
    def uses_v1_signature(self) -> bool:
        return self.sign_method in V1_SIGN_METHODS
