"""Registry endpoint definition.

An endpoint bundles a registry base URL with exactly one credential
mode and derives the request headers and package URLs used by the
registry HTTP protocol.
"""

import base64
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import quote

from ..common.config import RegistryConfig
from ..common.errors import ConfigurationError

# Characters left unescaped by JavaScript's encodeURIComponent, which is
# how registries expect a (possibly scoped) package name to be addressed.
_PACKAGE_NAME_SAFE = "-_.!~*'()"


@dataclass(frozen=True)
class RegistryEndpoint:
    """One registry (source or target) and its credentials.

    Exactly one credential mode must be set: a bearer token, or a
    username and password pair.
    """

    name: str
    url: str
    token: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.url:
            raise ConfigurationError(
                f"{self.name}: Must provide a URL", stage="configure"
            )
        if self.token and (self.username or self.password):
            raise ConfigurationError(
                f"{self.name}: Cannot provide both token and username/password",
                stage="configure",
            )
        if not self.token and not (self.username and self.password):
            raise ConfigurationError(
                f"{self.name}: Must provide either token or username/password",
                stage="configure",
            )
        object.__setattr__(self, "url", self.url.rstrip("/"))

    @classmethod
    def from_config(cls, name: str, config: RegistryConfig) -> "RegistryEndpoint":
        """Create an endpoint from a RegistryConfig.

        Args:
            name: Display name used in error messages
            config: Registry connection settings

        Returns:
            RegistryEndpoint instance

        Raises:
            ConfigurationError: If URL or credentials are invalid
        """
        return cls(
            name=name,
            url=config.url,
            token=config.token,
            username=config.username,
            password=config.password,
        )

    @property
    def uses_token(self) -> bool:
        return bool(self.token)

    def authorization_header(self) -> Dict[str, str]:
        """Return the Authorization header for this endpoint."""
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}

        credentials = f"{self.username}:{self.password}".encode("utf-8")
        encoded = base64.b64encode(credentials).decode("ascii")
        return {"Authorization": f"Basic {encoded}"}

    def package_url(self, package_name: str) -> str:
        """Return the metadata URL for a package.

        The whole name, scope included, is encoded as a single path
        segment, so ``@scope/name`` becomes ``%40scope%2Fname``.
        """
        return f"{self.url}/{quote(package_name, safe=_PACKAGE_NAME_SAFE)}"

    def __repr__(self) -> str:
        mode = "token" if self.uses_token else "basic"
        return f"RegistryEndpoint(name={self.name!r}, url={self.url!r}, auth={mode!r})"
