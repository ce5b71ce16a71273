#  SPDX-License-Identifier: Apache-2.0
import hmac
from base64 import b64encode
from hashlib import sha1, sha256
from typing import Final, Required, TypedDict
from urllib.parse import quote, urlencode

from .canonical import (
    CONTENT_TYPE_FORM,
    CONTENT_TYPE_JSON,
    CONTENT_TYPE_OCTET_STREAM,
    SIGNED_HEADERS,
    TC3_REQUEST,
    UNSIGNED_PAYLOAD,
    CanonicalRequest,
    SigningContext,
    build_canonical_request,
    sha256_hex,
)
from .credentials import Credential
from .exceptions import BuildError, CredentialError
from .http import URI, HTTPRequest, merge_headers
from .profile import SIGN_METHOD_HMAC_SHA1, SIGN_METHOD_HMAC_SHA256, SIGN_METHOD_TC3
from .requests import Request

TC3_ALGORITHM: Final = SIGN_METHOD_TC3


class V3SigningProperties(TypedDict, total=False):
    timestamp: Required[int]
    request_client: Required[str]
    region: str | None
    language: str
    unsigned_payload: bool


class V1SigningProperties(TypedDict, total=False):
    timestamp: Required[int]
    nonce: Required[int]
    request_client: Required[str]
    sign_method: Required[str]
    region: str | None
    language: str


def _validate_credential(credential: Credential) -> None:
    if not isinstance(credential, Credential):  # pyright: ignore
        raise CredentialError(
            "Received unexpected value for credential parameter. Expected "
            f"Credential but received {type(credential)}."
        )
    if not credential.secret_id or not credential.secret_key:
        raise CredentialError("Credential must have a secret_id and secret_key.")


def _resolved_domain(request: Request) -> str:
    if not request.domain:
        raise BuildError(f"No domain resolved for {request.service} request")
    return request.domain


class V3Signer:
    """Request signer for applying the ``TC3-HMAC-SHA256`` algorithm."""

    def sign(
        self,
        *,
        request: Request,
        credential: Credential,
        properties: V3SigningProperties,
    ) -> HTTPRequest:
        """Build a signed envelope for the supplied request.

        :param request: A request with its method, scheme and domain resolved.
        :param credential: The credential to sign with.
        :param properties: Signing primitives such as the timestamp and region.
        :raises BuildError: If the request can't be put in canonical form. Nothing
            has been sent when this is raised.
        """
        _validate_credential(credential)
        domain = _resolved_domain(request)
        context = SigningContext(
            timestamp=properties["timestamp"], service=request.service
        )

        headers = merge_headers(
            {"Content-Type": self._default_content_type(request)},
            request.headers,
            self._required_headers(
                request=request,
                domain=domain,
                credential=credential,
                properties=properties,
            ),
        )
        if properties.get("unsigned_payload", False):
            headers = merge_headers(headers, {"X-TC-Content-SHA256": UNSIGNED_PAYLOAD})
        content_type = next(
            value for name, value in headers.items() if name.lower() == "content-type"
        )

        canonical_request = self.canonical_request(
            request=request,
            content_type=content_type,
            unsigned_payload=properties.get("unsigned_payload", False),
        )
        string_to_sign = self.string_to_sign(
            canonical_request=canonical_request, context=context
        )
        signature = self.signature(
            string_to_sign=string_to_sign,
            secret_key=credential.secret_key,
            context=context,
        )
        authorization = self.authorization(
            secret_id=credential.secret_id, context=context, signature=signature
        )
        headers = merge_headers(headers, {"Authorization": authorization})

        return HTTPRequest(
            method=canonical_request.method,
            destination=URI(
                scheme=request.scheme or "https",
                host=domain,
                path=request.path or "/",
                query=canonical_request.query or None,
            ),
            headers=headers,
            body=canonical_request.payload,
        )

    def _default_content_type(self, request: Request) -> str:
        if request.is_octet_stream:
            return CONTENT_TYPE_OCTET_STREAM
        if (request.http_method or "").upper() == "GET":
            return CONTENT_TYPE_FORM
        return CONTENT_TYPE_JSON

    def _required_headers(
        self,
        *,
        request: Request,
        domain: str,
        credential: Credential,
        properties: V3SigningProperties,
    ) -> dict[str, str]:
        headers = {
            "Host": domain,
            "X-TC-Action": request.action,
            "X-TC-Version": request.version,
            "X-TC-Timestamp": str(properties["timestamp"]),
            "X-TC-RequestClient": properties["request_client"],
            "X-TC-Language": properties.get("language", ""),
        }
        if region := properties.get("region"):
            headers["X-TC-Region"] = region
        if credential.token:
            headers["X-TC-Token"] = credential.token
        return headers

    def canonical_request(
        self,
        *,
        request: Request,
        content_type: str,
        unsigned_payload: bool = False,
    ) -> CanonicalRequest:
        """The canonical request the signature of ``request`` covers."""
        return build_canonical_request(
            request,
            host=_resolved_domain(request),
            content_type=content_type,
            unsigned_payload=unsigned_payload,
        )

    def string_to_sign(
        self, *, canonical_request: CanonicalRequest, context: SigningContext
    ) -> str:
        """The string to sign is defined as::

            Algorithm \\n
            RequestTimestamp \\n
            CredentialScope \\n
            HashedCanonicalRequest
        """
        return (
            f"{TC3_ALGORITHM}\n"
            f"{context.timestamp}\n"
            f"{context.credential_scope}\n"
            f"{sha256_hex(str(canonical_request))}"
        )

    def signature(
        self, *, string_to_sign: str, secret_key: str, context: SigningContext
    ) -> str:
        """Sign the string to sign with a key scoped to the date and service."""
        # SecretDate    = HMAC-SHA256("TC3" + <SecretKey>, "<YYYY-MM-DD>")
        # SecretService = HMAC-SHA256(<SecretDate>, "<service>")
        # SecretSigning = HMAC-SHA256(<SecretService>, "tc3_request")
        secret_date = self._hash(key=f"TC3{secret_key}".encode(), value=context.date)
        secret_service = self._hash(key=secret_date, value=context.service)
        secret_signing = self._hash(key=secret_service, value=TC3_REQUEST)
        return self._hash(key=secret_signing, value=string_to_sign).hex()

    def authorization(
        self, *, secret_id: str, context: SigningContext, signature: str
    ) -> str:
        return (
            f"{TC3_ALGORITHM} Credential={secret_id}/{context.credential_scope}, "
            f"SignedHeaders={SIGNED_HEADERS}, Signature={signature}"
        )

    def _hash(self, key: bytes, value: str) -> bytes:
        return hmac.new(key=key, msg=value.encode(), digestmod=sha256).digest()


class V1Signer:
    """Request signer for the legacy ``HmacSHA1`` and ``HmacSHA256`` algorithms.

    Every parameter, including the common ones, is signed as a single sorted query
    string and the signature travels as the ``Signature`` parameter.
    """

    _DIGESTS: Final = {SIGN_METHOD_HMAC_SHA1: sha1, SIGN_METHOD_HMAC_SHA256: sha256}

    def sign(
        self,
        *,
        request: Request,
        credential: Credential,
        properties: V1SigningProperties,
    ) -> HTTPRequest:
        """Build a signed envelope for the supplied request.

        :param request: A request with its method, scheme and domain resolved.
        :param credential: The credential to sign with.
        :param properties: Signing primitives such as the timestamp and nonce.
        :raises BuildError: If the request can't be encoded.
        """
        _validate_credential(credential)
        domain = _resolved_domain(request)
        method = (request.http_method or "").upper()
        if method not in ("GET", "POST"):
            raise BuildError(f"Unsupported HTTP method {request.http_method!r}")
        if request.is_octet_stream:
            raise BuildError(
                f"{properties['sign_method']} can't sign octet-stream bodies, use "
                f"{SIGN_METHOD_TC3}"
            )

        params = self.signing_params(
            request=request, credential=credential, properties=properties
        )
        string_to_sign = self.string_to_sign(
            method=method, domain=domain, path=request.path or "/", params=params
        )
        params["Signature"] = self.signature(
            string_to_sign=string_to_sign,
            secret_key=credential.secret_key,
            sign_method=properties["sign_method"],
        )
        encoded = urlencode(sorted(params.items()))

        headers = merge_headers(request.headers, {"Host": domain})
        scheme = request.scheme or "https"
        path = request.path or "/"
        if method == "GET":
            return HTTPRequest(
                method=method,
                destination=URI(scheme=scheme, host=domain, path=path, query=encoded),
                headers=headers,
            )
        return HTTPRequest(
            method=method,
            destination=URI(scheme=scheme, host=domain, path=path),
            headers=merge_headers(headers, {"Content-Type": CONTENT_TYPE_FORM}),
            body=encoded.encode(),
        )

    def signing_params(
        self,
        *,
        request: Request,
        credential: Credential,
        properties: V1SigningProperties,
    ) -> dict[str, str]:
        """Merge the request parameters with the common parameters."""
        params = dict(request.params)
        params.update(
            {
                "Action": request.action,
                "Version": request.version,
                "Timestamp": str(properties["timestamp"]),
                "Nonce": str(properties["nonce"]),
                "RequestClient": properties["request_client"],
                "SecretId": credential.secret_id,
                "SignatureMethod": properties["sign_method"],
            }
        )
        if region := properties.get("region"):
            params["Region"] = region
        if language := properties.get("language"):
            params["Language"] = language
        if credential.token:
            params["Token"] = credential.token
        return params

    def string_to_sign(
        self, *, method: str, domain: str, path: str, params: dict[str, str]
    ) -> str:
        """``METHOD&<encoded host and path>&<sorted encoded query>``"""
        query = urlencode(sorted(params.items()))
        return f"{method}&{quote(domain + path, safe='')}&{query}"

    def signature(
        self, *, string_to_sign: str, secret_key: str, sign_method: str
    ) -> str:
        if (digest := self._DIGESTS.get(sign_method)) is None:
            raise BuildError(f"Unsupported sign method {sign_method!r}")
        mac = hmac.new(secret_key.encode(), string_to_sign.encode(), digest)
        return b64encode(mac.digest()).decode()
