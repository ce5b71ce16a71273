#  SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass, field
from typing import Literal, TypeAlias


class TencentCloudSDKError(Exception):
    """Base exception type for all exceptions raised by tencentcloud-common."""


Fault: TypeAlias = Literal["client", "server"] | None
"""Whether the client or server is at fault.

If None, then there was not enough information to determine fault.
"""


@dataclass(kw_only=True)
class CallError(TencentCloudSDKError):
    """Base exception for errors surfaced from a client call.

    Implements :py:class:`.interfaces.retries.ErrorRetryInfo`.
    """

    code: str = ""
    """Machine readable error code, either returned by the service or assigned by
    the client for locally detected failures."""

    message: str = field(default="", kw_only=False)
    """The message of the error."""

    request_id: str | None = None
    """The id the service assigned to the request, if a response was received."""

    fault: Fault = None
    """Whether the client or server is at fault.

    If None, then there was not enough information to determine fault.
    """

    is_retry_safe: bool | None = None
    """Whether the exception is safe to retry.

    A value of True does not mean a retry will occur, but rather that a retry is allowed
    to occur.

    A value of None indicates that there is not enough information available to
    determine if a retry is safe.
    """

    retry_after: float | None = None
    """The amount of time that should pass before a retry.

    Retry strategies MAY choose to wait longer.
    """

    is_throttling_error: bool = False
    """Whether the error is a throttling error."""

    is_timeout_error: bool = False
    """Whether the error was caused by a per-attempt timeout."""

    def __post_init__(self):
        super().__init__(self.message)

    def __str__(self) -> str:
        return (
            f"[TencentCloudSDKError] Code={self.code}, Message={self.message}, "
            f"RequestId={self.request_id}"
        )


@dataclass(kw_only=True)
class ConfigurationError(CallError):
    """Missing or invalid client configuration or credentials."""

    code: str = "ClientError.ConfigurationError"
    fault: Fault = "client"
    is_retry_safe: bool | None = False


@dataclass(kw_only=True)
class CredentialError(ConfigurationError):
    """No credential could be resolved from a provider."""

    code: str = "ClientError.CredentialError"


@dataclass(kw_only=True)
class BuildError(CallError):
    """The request could not be turned into a canonical, signable form."""

    code: str = "ClientError.BuildError"
    fault: Fault = "client"
    is_retry_safe: bool | None = False


@dataclass(kw_only=True)
class NetworkError(CallError):
    """Connection failure, per-attempt timeout, or transport-level 5xx.

    ``is_retry_safe`` is True only when the request provably never left the client.
    Otherwise it is left as None and the dispatcher decides based on whether the
    request is idempotent.
    """

    code: str = "ClientError.NetworkError"
    fault: Fault = "server"


@dataclass(kw_only=True)
class ThrottlingError(CallError):
    """The service signaled that the request rate limit was exceeded."""

    fault: Fault = "server"
    is_retry_safe: bool | None = True
    is_throttling_error: bool = True


@dataclass(kw_only=True)
class AuthenticationError(CallError):
    """The service rejected the signature or credential."""

    fault: Fault = "client"
    is_retry_safe: bool | None = False


@dataclass(kw_only=True)
class BusinessError(CallError):
    """A well-formed rejection specific to the requested operation."""

    fault: Fault = "client"
    is_retry_safe: bool | None = False


@dataclass(kw_only=True)
class CallCancelledError(CallError):
    """The caller's deadline expired before the call completed."""

    code: str = "ClientError.Cancelled"
    fault: Fault = "client"
    is_retry_safe: bool | None = False


class RetryError(TencentCloudSDKError):
    """Base exception type for all exceptions raised in retry strategies."""
