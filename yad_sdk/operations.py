"""
Helpers layered on top of operation status checks.

``YadClient.operation_status`` performs exactly one request. The functions
here poll it until the operation leaves the in-progress state, with the
caller choosing how long to wait and how often to ask.
"""

import asyncio
import logging
import time
from typing import Optional, TYPE_CHECKING

from .exceptions import OperationFailedError, OperationTimeoutError
from .models import Link, Status

if TYPE_CHECKING:
    from .async_client import AsyncYadClient
    from .client import YadClient

logger = logging.getLogger(__name__)


def _finish(link: Link, status: Status) -> Status:
    if status is Status.FAILURE:
        logger.warning("[wait_for_operation] operation failed; id:%s", link.operation_id)
        raise OperationFailedError(
            f"Operation {link.operation_id} failed",
            operation_id=link.operation_id,
        )
    return status


def _timeout_error(link: Link, timeout: float) -> OperationTimeoutError:
    return OperationTimeoutError(
        f"Operation {link.operation_id} still in progress after {timeout}s",
        operation_id=link.operation_id,
        timeout_seconds=timeout,
    )


def wait_for_operation(
    client: "YadClient",
    link: Optional[Link],
    timeout: float = 60.0,
    interval: float = 1.0,
) -> Status:
    """
    Block until an operation completes.

    Args:
        client: Client used to poll the status
        link: Link returned by a mutating call. None, or a link to a
            materialized resource, means the call already completed.
        timeout: Seconds to wait before giving up
        interval: Seconds to sleep between status checks

    Returns:
        Status.SUCCESS

    Raises:
        OperationFailedError: If the operation finished with failure
        OperationTimeoutError: If it is still running after timeout
    """
    if link is None or not link.is_operation:
        return Status.SUCCESS

    deadline = time.monotonic() + timeout
    while True:
        status = client.operation_status(link)
        if status is not Status.IN_PROGRESS:
            return _finish(link, status)
        if time.monotonic() + interval > deadline:
            raise _timeout_error(link, timeout)
        logger.debug("[wait_for_operation] in progress; id:%s", link.operation_id)
        time.sleep(interval)


async def async_wait_for_operation(
    client: "AsyncYadClient",
    link: Optional[Link],
    timeout: float = 60.0,
    interval: float = 1.0,
) -> Status:
    """Async counterpart of wait_for_operation."""
    if link is None or not link.is_operation:
        return Status.SUCCESS

    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        status = await client.operation_status(link)
        if status is not Status.IN_PROGRESS:
            return _finish(link, status)
        if loop.time() + interval > deadline:
            raise _timeout_error(link, timeout)
        logger.debug("[async_wait_for_operation] in progress; id:%s", link.operation_id)
        await asyncio.sleep(interval)
