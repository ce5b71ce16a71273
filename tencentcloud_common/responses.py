#  SPDX-License-Identifier: Apache-2.0
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Final, Protocol, Self, TypeVar

from .exceptions import (
    AuthenticationError,
    BusinessError,
    CallError,
    NetworkError,
    ThrottlingError,
)
from .http import HTTPResponse

logger: Final = logging.getLogger(__name__)

THROTTLING_ERROR_CODES: Final = frozenset(
    {
        "RequestLimitExceeded",
        "RequestLimitExceeded.UinLimitExceeded",
        "RequestLimitExceeded.GlobalRegionUinLimitExceeded",
        "RequestLimitExceeded.IPLimitExceeded",
    }
)
AUTHENTICATION_ERROR_CODE: Final = "AuthFailure"


class DecodableResponse(Protocol):
    """A response shape the client can build from a successful result document."""

    request_id: str | None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Build the response from the members of the ``Response`` object."""
        ...


@dataclass(kw_only=True)
class BaseResponse:
    request_id: str | None = None
    """The id the service assigned to the request."""

    raw: dict[str, Any] = field(default_factory=dict, repr=False)
    """Every member of the ``Response`` object, including those not modeled."""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls(request_id=data.get("RequestId"), raw=dict(data))


@dataclass(kw_only=True)
class CommonResponse(BaseResponse):
    """Response of any action, exposed as a plain document."""

    def __getitem__(self, key: str) -> Any:
        return self.raw[key]


def error_from_code(
    code: str, message: str, request_id: str | None = None
) -> CallError:
    """Classify an error returned by the service by its code."""
    if code in THROTTLING_ERROR_CODES:
        return ThrottlingError(message, code=code, request_id=request_id)
    if code == AUTHENTICATION_ERROR_CODE or code.startswith(
        f"{AUTHENTICATION_ERROR_CODE}."
    ):
        return AuthenticationError(message, code=code, request_id=request_id)
    return BusinessError(message, code=code, request_id=request_id)

R = TypeVar("R", bound=DecodableResponse)


def decode_response(
    response: HTTPResponse, response_type: type[R]
) -> R:
    """Turn a raw HTTP response into a result or raise the error it carries.

    :raises NetworkError: For 5xx responses whose body is not a service document.
    :raises CallError: For any error the service reported.
    """
    try:
        document = json.loads(response.body)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        document = None
        parse_error: Exception | None = e
    else:
        parse_error = None

    if not isinstance(document, dict) or not isinstance(
        document.get("Response"), dict
    ):
        status = f"HTTP {response.status} {response.reason or ''}".rstrip()
        if response.status >= 500:
            raise NetworkError(f"Received {status} without a service response")
        if not 200 <= response.status < 300:
            raise BusinessError(
                f"Received {status}", code="ClientError.HttpStatusCodeError"
            )
        raise BusinessError(
            "Failed to parse response body: "
            f"{parse_error or 'missing Response object'}",
            code="ClientError.ParseJsonError",
        )

    result: dict[str, Any] = document["Response"]
    request_id = result.get("RequestId")
    if isinstance(error := result.get("Error"), dict):
        raise error_from_code(
            str(error.get("Code", "")), str(error.get("Message", "")), request_id
        )

    logger.debug("Decoding response %s into %s", request_id, response_type.__name__)
    return response_type.from_dict(result)
