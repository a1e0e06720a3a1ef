"""Client configuration, optionally loaded from environment variables."""

import os
from dataclasses import dataclass

from . import __version__
from .exceptions import ConfigurationError

DEFAULT_BASE_URL = "https://cloud-api.yandex.net/v1/disk/"
DEFAULT_USER_AGENT = f"yad-sdk/{__version__}"


@dataclass(frozen=True)
class ClientConfig:
    """
    Immutable settings shared by every request a client issues.

    ``base_url`` always ends with a slash so relative endpoint paths can be
    appended to it directly.
    """

    token: str
    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = 30.0
    chunk_size: int = 1024 * 1024

    def __post_init__(self):
        if not self.token:
            raise ConfigurationError("OAuth token is required", config_key="token")
        if not self.base_url.endswith("/"):
            object.__setattr__(self, "base_url", self.base_url + "/")
        if self.chunk_size <= 0:
            raise ConfigurationError("chunk_size must be positive", config_key="chunk_size")

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Construct a ClientConfig from environment variables.

        Required environment variables:
            YAD_TOKEN: OAuth token of the application.

        Optional environment variables (with defaults):
            YAD_BASE_URL: REST API root.
            YAD_USER_AGENT: User-Agent header value.
            YAD_TIMEOUT: Per-request timeout in seconds (default: 30).
            YAD_CHUNK_SIZE: Streaming chunk size in bytes (default: 1 MiB).
        """
        token = os.environ.get("YAD_TOKEN", "")
        if not token:
            raise ConfigurationError(
                "OAuth token is required. Set the YAD_TOKEN environment variable.",
                config_key="YAD_TOKEN",
            )
        try:
            timeout = float(os.environ.get("YAD_TIMEOUT", "30"))
            chunk_size = int(os.environ.get("YAD_CHUNK_SIZE", str(1024 * 1024)))
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

        return cls(
            token=token,
            base_url=os.environ.get("YAD_BASE_URL", DEFAULT_BASE_URL),
            user_agent=os.environ.get("YAD_USER_AGENT", DEFAULT_USER_AGENT),
            timeout=timeout,
            chunk_size=chunk_size,
        )
