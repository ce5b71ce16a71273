#  SPDX-License-Identifier: Apache-2.0
import random
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from .exceptions import RetryError
from .interfaces import retries as retries_interface


class ExponentialBackoffJitterType(Enum):
    """Jitter mode for exponential backoff.

    For use with :py:class:`ExponentialRetryBackoffStrategy`.
    """

    DEFAULT = 1
    """Truncated binary exponential backoff delay with equal jitter:

    .. code-block:: python

        capped = min(max_backoff, backoff_scale_value * 2 ** (retry_attempt - 1))
        (capped / 2) + random_between(0, capped / 2)
    """

    NONE = 2
    """Truncated binary exponential backoff delay without jitter:

    .. code-block:: python

        min(max_backoff, backoff_scale_value * 2 ** (retry_attempt - 1))
    """

    FULL = 3
    """Truncated binary exponential backoff delay with full jitter:

    .. code-block:: python

        random_between(0, min(max_backoff, backoff_scale_value * 2 ** (retry_attempt - 1)))
    """

    DECORRELATED = 4
    """Truncated binary exponential backoff delay with decorrelated jitter:

    .. code-block:: python

        min(max_backoff, random_between(backoff_scale_value, t_(i-1) * 3))
    """


class ExponentialRetryBackoffStrategy(retries_interface.RetryBackoffStrategy):
    def __init__(
        self,
        *,
        backoff_scale_value: float = 1,
        max_backoff: float = 20,
        jitter_type: ExponentialBackoffJitterType = ExponentialBackoffJitterType.DEFAULT,
        random: Callable[[], float] = random.random,
    ):
        """Exponential backoff with optional jitter.

        .. seealso:: https://aws.amazon.com/blogs/architecture/exponential-backoff-and-jitter/

        :param backoff_scale_value: Factor that linearly adjusts returned backoff delay
        values, in seconds.

        :param max_backoff: Upper limit for backoff delay values returned, in seconds.

        :param jitter_type: Determines the formula used to apply jitter to the backoff
        delay.

        :param random: A callable that returns random numbers between ``0`` and ``1``.
        """
        self._backoff_scale_value = backoff_scale_value
        self._max_backoff = max_backoff
        self._jitter_type = jitter_type
        self._random = random

    def compute_next_backoff_delay(
        self, retry_attempt: int, previous_delay: float = 0
    ) -> float:
        """Calculate timespan in seconds to delay before next retry.

        :param retry_attempt: The index of the retry attempt that is about to be made
        after the delay. The initial attempt is index ``0`` and always returns a delay
        of ``0``.

        :param previous_delay: The delay that preceded the previous attempt of the
        same call. Only decorrelated jitter uses it, starting from
        ``backoff_scale_value`` when it is ``0``.
        """
        if retry_attempt == 0:
            return 0

        match self._jitter_type:
            case ExponentialBackoffJitterType.NONE:
                seconds = self._capped_delay(retry_attempt)
            case ExponentialBackoffJitterType.DEFAULT:
                seconds = (self._random() * 0.5 + 0.5) * self._capped_delay(
                    retry_attempt
                )
            case ExponentialBackoffJitterType.FULL:
                seconds = self._random() * self._capped_delay(retry_attempt)
            case ExponentialBackoffJitterType.DECORRELATED:
                previous = previous_delay or self._backoff_scale_value
                seconds = min(
                    self._backoff_scale_value + self._random() * previous * 3,
                    self._max_backoff,
                )

        return seconds

    def _capped_delay(self, retry_attempt: int) -> float:
        uncapped = self._backoff_scale_value * (2.0 ** (retry_attempt - 1))
        return min(uncapped, self._max_backoff)


@dataclass(kw_only=True)
class RetryToken:
    """Retry state of a single logical call.

    Retry tokens should always be obtained from an implementation of
    :py:class:`retries_interface.RetryStrategy`.
    """

    retry_count: int
    """Retry count is the total number of attempts minus the initial attempt."""

    retry_delay: float
    """Delay in seconds to wait before the retry attempt."""

    network_failure_retries_left: int
    """Remaining retries for connection errors, timeouts and transport 5xx."""

    rate_limit_retries_left: int
    """Remaining retries for throttling errors."""

    @property
    def attempt_count(self) -> int:
        """The total number of attempts including the initial attempt and retries."""
        return self.retry_count + 1


class BudgetedRetryStrategy(retries_interface.RetryStrategy):
    def __init__(
        self,
        *,
        network_failure_max_retries: int = 0,
        rate_limit_exceeded_max_retries: int = 0,
        backoff_strategy: retries_interface.RetryBackoffStrategy | None = None,
    ):
        """Retry strategy with independent budgets for network failures and
        throttling.

        :param network_failure_max_retries: How many times a call may be retried after
        errors that are not throttling errors but are safe to retry.

        :param rate_limit_exceeded_max_retries: How many times a call may be retried
        after the service signals that the rate limit was exceeded.

        :param backoff_strategy: The backoff strategy used by returned tokens to compute
        the retry delay. Defaults to :py:class:`ExponentialRetryBackoffStrategy`.
        """
        if network_failure_max_retries < 0:
            raise ValueError(
                "network_failure_max_retries must be a non-negative integer, got "
                f"{network_failure_max_retries}"
            )
        if rate_limit_exceeded_max_retries < 0:
            raise ValueError(
                "rate_limit_exceeded_max_retries must be a non-negative integer, got "
                f"{rate_limit_exceeded_max_retries}"
            )
        self.backoff_strategy = backoff_strategy or ExponentialRetryBackoffStrategy()
        self.network_failure_max_retries = network_failure_max_retries
        self.rate_limit_exceeded_max_retries = rate_limit_exceeded_max_retries

    @property
    def retries_enabled(self) -> bool:
        return (
            self.network_failure_max_retries > 0
            or self.rate_limit_exceeded_max_retries > 0
        )

    def acquire_initial_retry_token(self) -> RetryToken:
        """Called before any retries (for the first attempt at the operation)."""
        return RetryToken(
            retry_count=0,
            retry_delay=self.backoff_strategy.compute_next_backoff_delay(0),
            network_failure_retries_left=self.network_failure_max_retries,
            rate_limit_retries_left=self.rate_limit_exceeded_max_retries,
        )

    def refresh_retry_token_for_retry(
        self,
        *,
        token_to_renew: retries_interface.RetryToken,
        error: Exception,
    ) -> RetryToken:
        """Replace an existing retry token from a failed attempt with a new token.

        Throttling errors draw from the rate limit budget, every other retry-safe
        error draws from the network failure budget.

        :param token_to_renew: The token used for the previous failed attempt.
        :param error: The error that triggered the need for a retry.
        :raises RetryError: If the error is not retryable or its budget is spent.
        """
        if not isinstance(token_to_renew, RetryToken):
            raise TypeError(
                f"Expected a RetryToken, but received {type(token_to_renew)}"
            )

        if (
            not isinstance(error, retries_interface.ErrorRetryInfo)
            or not error.is_retry_safe
        ):
            raise RetryError(f"Error is not retryable: {error}")

        network_left = token_to_renew.network_failure_retries_left
        rate_limit_left = token_to_renew.rate_limit_retries_left
        if error.is_throttling_error:
            if rate_limit_left <= 0:
                raise RetryError(
                    "Rate limit retry budget exhausted after "
                    f"{self.rate_limit_exceeded_max_retries} retries"
                )
            rate_limit_left -= 1
        else:
            if network_left <= 0:
                raise RetryError(
                    "Network failure retry budget exhausted after "
                    f"{self.network_failure_max_retries} retries"
                )
            network_left -= 1

        retry_count = token_to_renew.retry_count + 1
        retry_delay = self.backoff_strategy.compute_next_backoff_delay(
            retry_count, token_to_renew.retry_delay
        )
        if error.retry_after is not None:
            retry_delay = error.retry_after

        return RetryToken(
            retry_count=retry_count,
            retry_delay=retry_delay,
            network_failure_retries_left=network_left,
            rate_limit_retries_left=rate_limit_left,
        )

