"""
Authentication helpers for the Yandex.Disk SDK.

The OAuth token itself is obtained by the application; this module only
attaches it, together with the other fixed headers, to outgoing requests.
"""

from typing import Dict

from requests import PreparedRequest
from requests.auth import AuthBase

from .config import ClientConfig


def build_headers(config: ClientConfig, with_auth: bool = True) -> Dict[str, str]:
    """
    Generate the headers every API request carries.

    Args:
        config: Client configuration holding the token and user agent
        with_auth: Include the Authorization header (False when the
            session authenticates through OAuthTokenAuth instead)

    Returns:
        Dictionary of request headers
    """
    headers = {
        "User-Agent": config.user_agent,
        "Accept": "application/json",
        "Content-Type": "application/json",
    }
    if with_auth:
        headers["Authorization"] = f"OAuth {config.token}"
    return headers


class OAuthTokenAuth(AuthBase):
    """Attach ``Authorization: OAuth <token>`` to a prepared request."""

    def __init__(self, token: str):
        self.token = token

    def __call__(self, request: PreparedRequest) -> PreparedRequest:
        request.headers["Authorization"] = f"OAuth {self.token}"
        return request

    def __eq__(self, other):
        return isinstance(other, OAuthTokenAuth) and other.token == self.token

    def __repr__(self):
        # Never leak the token into logs.
        return "OAuthTokenAuth(token=***)"
