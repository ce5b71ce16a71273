#  SPDX-License-Identifier: Apache-2.0
import asyncio
import configparser
import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Protocol, runtime_checkable

from .exceptions import CredentialError

logger: Final = logging.getLogger(__name__)

ENV_SECRET_ID: Final = "TENCENTCLOUD_SECRET_ID"
ENV_SECRET_KEY: Final = "TENCENTCLOUD_SECRET_KEY"
ENV_SESSION_TOKEN: Final = "TENCENTCLOUD_SESSION_TOKEN"
ENV_CREDENTIALS_FILE: Final = "TENCENTCLOUD_CREDENTIALS_FILE"
DEFAULT_CREDENTIALS_FILE: Final = Path("~/.tencentcloud/credentials")


@dataclass(kw_only=True, frozen=True)
class Credential:
    secret_id: str
    """The public identifier of the key pair, sent with every signed request."""

    secret_key: str
    """The secret half of the key pair. Only ever used as HMAC key material."""

    token: str | None = None
    """A temporary session token issued alongside short-lived key pairs."""

    def __repr__(self) -> str:
        return (
            f"Credential(secret_id={self.secret_id!r}, secret_key='***', "
            f"token={'***' if self.token else None})"
        )


@runtime_checkable
class CredentialProvider(Protocol):
    """Used to load a :py:class:`Credential` from a given source."""

    async def resolve(self) -> Credential:
        """Load the current credential from this provider.

        :raises CredentialError: If the provider has no usable credential.
        """
        ...


class StaticCredentialProvider(CredentialProvider):
    """Resolve a fixed credential."""

    def __init__(self, credential: Credential) -> None:
        self._credential = credential

    async def resolve(self) -> Credential:
        return self._credential


class EnvironmentCredentialProvider(CredentialProvider):
    """Resolves credentials from system environment variables.

    The environment is read on every call so rotated values are picked up.
    """

    async def resolve(self) -> Credential:
        secret_id = os.getenv(ENV_SECRET_ID)
        secret_key = os.getenv(ENV_SECRET_KEY)

        if not secret_id or not secret_key:
            raise CredentialError(f"{ENV_SECRET_ID} and {ENV_SECRET_KEY} are required")

        return Credential(
            secret_id=secret_id,
            secret_key=secret_key,
            token=os.getenv(ENV_SESSION_TOKEN) or None,
        )


class ProfileCredentialProvider(CredentialProvider):
    """Resolves credentials from an INI style credentials file.

    .. code-block:: ini

        [default]
        secret_id = AKIDxxxxxxxx
        secret_key = xxxxxxxx
    """

    def __init__(self, *, path: str | Path | None = None, profile: str = "default"):
        """
        :param path: Location of the credentials file. Defaults to the value of
            ``TENCENTCLOUD_CREDENTIALS_FILE`` or ``~/.tencentcloud/credentials``.
        :param profile: Name of the section to read.
        """
        self._path = path
        self._profile = profile

    def _resolve_path(self) -> Path:
        if self._path is not None:
            return Path(self._path).expanduser()
        return Path(
            os.getenv(ENV_CREDENTIALS_FILE) or DEFAULT_CREDENTIALS_FILE
        ).expanduser()

    async def resolve(self) -> Credential:
        path = self._resolve_path()
        parser = await asyncio.to_thread(self._read, path)

        if not parser.has_section(self._profile):
            raise CredentialError(f"Profile {self._profile!r} not found in {path}")

        section = parser[self._profile]
        secret_id = section.get("secret_id", "").strip()
        secret_key = section.get("secret_key", "").strip()
        if not secret_id or not secret_key:
            raise CredentialError(
                f"Profile {self._profile!r} in {path} must set secret_id and secret_key"
            )

        return Credential(
            secret_id=secret_id,
            secret_key=secret_key,
            token=section.get("token", "").strip() or None,
        )

    def _read(self, path: Path) -> configparser.ConfigParser:
        parser = configparser.ConfigParser()
        try:
            with path.open(encoding="utf-8") as f:
                parser.read_file(f)
        except OSError as e:
            raise CredentialError(
                f"Unable to read credentials file {path}: {e}"
            ) from e
        except configparser.Error as e:
            raise CredentialError(f"Malformed credentials file {path}: {e}") from e
        return parser


class ProviderChain(CredentialProvider):
    """Attempts to resolve a credential by checking a sequence of providers.

    If a provider raises a :py:class:`CredentialError`, the next provider in the chain
    will be attempted. Nothing is cached; every call walks the chain again.
    """

    def __init__(self, providers: Sequence[CredentialProvider]) -> None:
        """
        :param providers: The ordered sequence of providers to resolve from.
        """
        self._providers = tuple(providers)

    async def resolve(self) -> Credential:
        logger.debug("Attempting to resolve credential from provider chain.")
        for provider in self._providers:
            try:
                return await provider.resolve()
            except CredentialError as e:
                logger.debug(
                    "Failed to resolve credential from %s: %s", type(provider), e
                )

        raise CredentialError(
            "None of the configured credential providers were able to resolve "
            "credentials."
        )


def default_provider_chain() -> ProviderChain:
    """Environment variables first, then the default profile file."""
    return ProviderChain([EnvironmentCredentialProvider(), ProfileCredentialProvider()])
