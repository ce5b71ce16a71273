#  SPDX-License-Identifier: Apache-2.0
"""Request descriptors.

A request carries two kinds of data: transport metadata (service, action, method,
domain, ...) that the client uses to route and sign it, and API fields, the
operation's actual parameters. API fields are dataclass fields declared with a
``name`` in their metadata, which is the member name used on the wire:

.. code-block:: python

    @dataclass(kw_only=True)
    class DescribeThingRequest(BaseRequest):
        service: str = "thing"
        version: str = "2020-01-01"
        action: str = "DescribeThing"

        thing_id: str | None = field(default=None, metadata={"name": "ThingId"})
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any, Protocol, runtime_checkable

from .exceptions import BuildError

RESERVED_PARAMS = frozenset(
    {"Action", "Version", "Nonce", "Region", "RequestClient", "Timestamp"}
)
"""Common parameters that travel as headers under ``TC3-HMAC-SHA256`` and are never
part of the canonical query string."""


@runtime_checkable
class Request(Protocol):
    """A request the client is able to route and sign."""

    service: str
    version: str
    action: str
    http_method: str | None
    scheme: str | None
    domain: str | None
    root_domain: str | None
    path: str
    headers: Mapping[str, str]

    @property
    def params(self) -> dict[str, str]:
        """The API fields flattened to string parameters."""
        ...

    @property
    def is_octet_stream(self) -> bool: ...

    def serialize(self) -> dict[str, Any]:
        """The API fields as a JSON compatible document."""
        ...

    def octet_stream_body(self) -> bytes: ...


@runtime_checkable
class IdempotentRequest(Protocol):
    """A request the service can deduplicate through a client supplied token."""

    client_token: str | None


@dataclass(kw_only=True)
class BaseRequest:
    service: str = ""
    version: str = ""
    action: str = ""
    http_method: str | None = None
    """``GET`` or ``POST``. Falls back to the client profile when unset."""

    scheme: str | None = None
    """``http`` or ``https``. Falls back to the client profile when unset."""

    domain: str | None = None
    """Target host.

    Falls back to the endpoint override or ``<service>.<root_domain>``.
    """

    root_domain: str | None = None
    path: str = "/"
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def params(self) -> dict[str, str]:
        return flatten_params(self.serialize())

    @property
    def is_octet_stream(self) -> bool:
        return False

    def serialize(self) -> dict[str, Any]:
        document: dict[str, Any] = {}
        for f in fields(self):
            if (name := f.metadata.get("name")) is None:
                continue
            value = getattr(self, f.name)
            if value is not None:
                document[name] = serialize_value(value)
        return document

    def octet_stream_body(self) -> bytes:
        return b""


@dataclass(kw_only=True)
class CommonRequest(BaseRequest):
    """A request to any action, with parameters given as a plain document.

    :param payload: The parameters of the action.
    :param body: Raw bytes to send as an ``application/octet-stream`` body instead
        of a JSON document.
    """

    payload: Mapping[str, Any] = field(default_factory=dict)
    body: bytes | None = None

    @property
    def is_octet_stream(self) -> bool:
        return self.body is not None

    def serialize(self) -> dict[str, Any]:
        return {k: serialize_value(v) for k, v in self.payload.items() if v is not None}

    def octet_stream_body(self) -> bytes:
        return self.body or b""


def serialize_value(value: Any) -> Any:
    if isinstance(value, BaseRequest):
        return value.serialize()
    if hasattr(value, "__dataclass_fields__"):
        return {
            f.metadata.get("name", f.name): serialize_value(v)
            for f in fields(value)
            if (v := getattr(value, f.name)) is not None
        }
    if isinstance(value, Mapping):
        return {k: serialize_value(v) for k, v in value.items() if v is not None}
    if isinstance(value, list | tuple):
        return [serialize_value(v) for v in value]
    return value


def flatten_params(document: Mapping[str, Any], prefix: str = "") -> dict[str, str]:
    """Flatten a document into query style parameters.

    Nested members are joined with ``.`` and list members are addressed by index,
    for example ``Filters.0.Values.1``.
    """
    params: dict[str, str] = {}
    for key, value in document.items():
        name = f"{prefix}{key}"
        if value is None:
            continue
        if isinstance(value, Mapping):
            params.update(flatten_params(value, f"{name}."))
        elif isinstance(value, list | tuple):
            for index, item in enumerate(value):
                if isinstance(item, Mapping):
                    params.update(flatten_params(item, f"{name}.{index}."))
                else:
                    params[f"{name}.{index}"] = _param_value(item)
        else:
            params[name] = _param_value(value)
    return params


def _param_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float | str):
        return str(value)
    raise BuildError(
        f"Cannot encode value of type {type(value).__name__} as a parameter"
    )
