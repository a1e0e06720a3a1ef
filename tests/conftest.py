"""Shared fixtures: a YadClient wired to a mocked requests session."""

import json
from typing import Any, List, Optional
from unittest.mock import MagicMock

import pytest

from yad_sdk.client import YadClient
from yad_sdk.config import ClientConfig

BASE_URL = "https://api.test/v1/disk/"
OPERATION_HREF = "https://api.test/v1/disk/operations/op-123"


def make_response(
    status_code: int = 200,
    body: Any = None,
    chunks: Optional[List[bytes]] = None,
) -> MagicMock:
    """Return a mock requests.Response with the given status and body."""
    response = MagicMock()
    response.status_code = status_code
    if body is None:
        response.content = b""
    elif isinstance(body, bytes):
        response.content = body
    else:
        response.content = json.dumps(body).encode()
    response.iter_content.return_value = chunks or []
    return response


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(token="test-token", base_url=BASE_URL, user_agent="yad-test/1.0")


@pytest.fixture
def session() -> MagicMock:
    return MagicMock()


@pytest.fixture
def client(config: ClientConfig, session: MagicMock) -> YadClient:
    return YadClient(config=config, session=session)
