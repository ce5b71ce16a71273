#  SPDX-License-Identifier: Apache-2.0
from typing import Protocol, runtime_checkable


@runtime_checkable
class ErrorRetryInfo(Protocol):
    """An error that carries what a retry strategy needs to classify it."""

    is_retry_safe: bool | None = None
    """Whether the failed call may be sent again.

    True permits a retry without promising one. None means the error alone can't
    tell, as with a connection dropped after the request may have been written.
    """

    retry_after: float | None = None
    """Seconds the service asked the caller to wait, overriding the backoff."""

    is_throttling_error: bool = False
    """Whether the error draws from the rate limit budget rather than the network
    failure budget."""


class RetryBackoffStrategy(Protocol):
    """Computes retry delays.

    Implementations are stateless. A single instance is shared by every call made
    through a client, so anything a formula depends on is passed in.
    """

    def compute_next_backoff_delay(
        self, retry_attempt: int, previous_delay: float = 0
    ) -> float:
        """Calculate timespan in seconds to delay before next retry.

        :param retry_attempt: The index of the retry attempt that is about to be made
        after the delay. The initial attempt is index ``0``.
        :param previous_delay: The delay waited before the previous attempt of the
        same call, ``0`` if there was none.
        """
        ...


class RetryToken(Protocol):
    """Retry state of one call, issued by a :py:class:`RetryStrategy`."""

    retry_count: int
    """Retry count is the total number of attempts minus the initial attempt."""

    retry_delay: float
    """Delay in seconds to wait before the retry attempt."""

    network_failure_retries_left: int
    """Retries left for connection errors, timeouts and transport 5xx responses."""

    rate_limit_retries_left: int
    """Retries left for throttling errors."""


class RetryStrategy(Protocol):
    """Issuer of :py:class:`RetryToken`s.

    Every budget lives on the token, so one strategy serves concurrent calls
    without them affecting each other.
    """

    backoff_strategy: RetryBackoffStrategy
    """The strategy used by returned tokens to compute delay duration values."""

    def acquire_initial_retry_token(self) -> RetryToken:
        """Issue the token for the first attempt of a call, with full budgets."""
        ...

    def refresh_retry_token_for_retry(
        self, *, token_to_renew: RetryToken, error: Exception
    ) -> RetryToken:
        """Exchange the token of a failed attempt for the token of the next one.

        :param token_to_renew: The token used for the previous failed attempt.
        :param error: The error that triggered the need for a retry.
        :raises RetryError: If the error isn't retryable or its budget is spent.
        """
        ...
