"""
Utility functions for the Yandex.Disk SDK.

This module provides small helpers shared by the clients and the CLI:
stream chunking, checksums, timestamp parsing and size formatting.
"""

import hashlib
import math
from datetime import datetime
from typing import Any, Iterator, Optional, BinaryIO

from .exceptions import ProtocolError


def chunk_file(file_obj: BinaryIO, chunk_size: int = 1024 * 1024) -> Iterator[bytes]:
    """
    Read file in chunks.

    Args:
        file_obj: File object to read from
        chunk_size: Size of each chunk in bytes

    Yields:
        File chunks as bytes
    """
    while True:
        chunk = file_obj.read(chunk_size)
        if not chunk:
            break
        yield chunk


def calculate_md5(file_obj: BinaryIO, chunk_size: int = 1024 * 1024) -> str:
    """
    Calculate the MD5 hex digest of a stream, the checksum the server reports.

    The stream is read from its current position to the end.
    """
    hasher = hashlib.md5()
    for chunk in chunk_file(file_obj, chunk_size):
        hasher.update(chunk)
    return hasher.hexdigest()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO 8601 timestamp as sent by the server.

    Returns None for missing or empty values.

    Raises:
        ProtocolError: If value is not a valid timestamp string
    """
    if not value:
        return None
    if not isinstance(value, str):
        raise ProtocolError(f"Invalid timestamp {value!r}")
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise ProtocolError(f"Invalid timestamp {value!r}") from e


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB")
    """
    if size_bytes == 0:
        return "0 B"

    size_names = ["B", "KB", "MB", "GB", "TB", "PB"]
    i = int(math.floor(math.log(size_bytes, 1024)))

    if i >= len(size_names):
        i = len(size_names) - 1

    p = math.pow(1024, i)
    size = round(size_bytes / p, 2)

    return f"{size} {size_names[i]}"
