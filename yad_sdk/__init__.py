"""
yad-sdk - Python client for the Yandex.Disk REST API.

This package provides typed access to a Disk account:
- Directory listing with transparent pagination
- Streaming upload/download through pre-signed links
- Copy, move, delete and trash management
- Status polling for asynchronous server-side operations
- Sync and async/await clients
- A command-line tool
"""

__version__ = "0.1.0"

from .client import YadClient
from .async_client import AsyncYadClient
from .config import ClientConfig
from .models import (
    Link,
    PendingOperation,
    Resource,
    ResourceList,
    ResourceLocation,
    ResourceType,
    Stats,
    Status,
)
from .operations import wait_for_operation, async_wait_for_operation
from .exceptions import (
    YadError,
    ApiError,
    ProtocolError,
    TemplatedLinkError,
    NotADirectoryError,
    NotAnOperationError,
    ValidationError,
    UploadError,
    OperationFailedError,
    OperationTimeoutError,
    ConfigurationError,
)

__all__ = [
    # Main clients
    "YadClient",
    "AsyncYadClient",
    "ClientConfig",

    # Data models
    "Link",
    "PendingOperation",
    "Resource",
    "ResourceList",
    "ResourceLocation",
    "ResourceType",
    "Stats",
    "Status",

    # Operation helpers
    "wait_for_operation",
    "async_wait_for_operation",

    # Exceptions
    "YadError",
    "ApiError",
    "ProtocolError",
    "TemplatedLinkError",
    "NotADirectoryError",
    "NotAnOperationError",
    "ValidationError",
    "UploadError",
    "OperationFailedError",
    "OperationTimeoutError",
    "ConfigurationError",
]
