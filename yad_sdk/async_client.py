"""
Asynchronous Yandex.Disk client implementation.

This module provides an async/await compatible client exposing the same
operations as YadClient. Each call still performs its round trips one
after another; concurrency is up to the caller.
"""

import logging
from typing import Optional, Dict, Any, BinaryIO, AsyncIterator, List, Tuple

import aiohttp

from .auth import build_headers
from .client import (
    LIST_PAGE_SIZE, Params, _decode_error, _decode_json, _decode_status,
    _flag, _is_success,
)
from .config import ClientConfig
from .exceptions import NotADirectoryError, NotAnOperationError, UploadError, ValidationError
from .models import Link, Resource, ResourceList, Stats, Status
from .utils import chunk_file

logger = logging.getLogger(__name__)


class AsyncYadClient:
    """
    Asynchronous client for the Yandex.Disk REST API.

    The aiohttp session is created on first use and closed by ``close``
    or when leaving ``async with``.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        config: Optional[ClientConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the async client.

        Args:
            token: OAuth token (ignored when config is given)
            config: Complete client configuration
            session: aiohttp session to issue requests through; the client
                does not close sessions it did not create
        """
        if config is None:
            config = ClientConfig(token=token) if token else ClientConfig.from_env()
        self.config = config
        self.timeout = aiohttp.ClientTimeout(total=config.timeout)

        self._session: Optional[aiohttp.ClientSession] = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True

        return self._session

    def _url(self, path: str) -> str:
        return f"{self.config.base_url}{path}"

    async def _send(
        self,
        method: str,
        url: str,
        params: Optional[Params] = None,
        **kwargs
    ) -> Tuple[int, bytes]:
        """Issue one request and return its status code and body."""
        session = await self._get_session()
        logger.debug("[_send] method:%s url:%s", method, url)
        async with session.request(
            method,
            url,
            params=params,
            headers=build_headers(self.config),
            **kwargs
        ) as response:
            return response.status, await response.read()

    async def _do(self, method: str, path: str, params: Optional[Params] = None) -> Dict[str, Any]:
        status, body = await self._send(method, self._url(path), params)
        if not _is_success(status):
            raise _decode_error(status, body)
        return _decode_json(body)

    async def _request_link(self, method: str, path: str, params: Params) -> Link:
        return Link.from_dict(await self._do(method, path, params))

    async def _request_optional_operation(
        self,
        method: str,
        path: str,
        params: Optional[Params] = None,
    ) -> Optional[Link]:
        status, body = await self._send(method, self._url(path), params)
        if status == 204:
            return None
        if status == 202:
            return Link.from_dict(_decode_json(body))
        raise _decode_error(status, body)

    async def stats(self) -> Stats:
        """Get Disk statistics."""
        return Stats.from_dict(await self._do("GET", ""))

    async def info(self, path: str) -> Resource:
        """Get metadata of a single file or directory."""
        return Resource.from_dict(await self._do("GET", "resources", {"path": path}))

    async def list(self, path: str, offset: int = 0, limit: int = 20) -> ResourceList:
        """Get one page of directory contents sorted by name."""
        params = {
            "path": path,
            "offset": offset,
            "limit": limit,
            "sort": "name",
        }
        resource = Resource.from_dict(await self._do("GET", "resources", params))
        if not resource.is_dir:
            raise NotADirectoryError(f"{path} is not a directory", path=path)

        if resource.embedded is None:
            return ResourceList(limit=limit, offset=offset, path=path)
        return resource.embedded

    async def iter_list(self, path: str, page_size: int = LIST_PAGE_SIZE) -> AsyncIterator[Resource]:
        """Iterate over the whole directory contents, page by page."""
        offset = 0
        while True:
            page = await self.list(path, offset, page_size)
            for item in page.items:
                yield item
            if len(page.items) == 0 or len(page.items) < page_size:
                return
            offset += page_size

    async def list_all(self, path: str) -> ResourceList:
        """Get the whole directory contents sorted by name."""
        items: List[Resource] = [item async for item in self.iter_list(path)]
        return ResourceList(items=items, limit=len(items), offset=0, path=path)

    async def download(self, path: str, stream: BinaryIO) -> int:
        """Download a file into stream and return the number of bytes written."""
        link = await self._request_link("GET", "resources/download", {"path": path})

        session = await self._get_session()
        written = 0
        async with session.request(
            link.method,
            link.href,
            headers=build_headers(self.config),
        ) as response:
            if not _is_success(response.status):
                raise _decode_error(response.status, await response.read())

            async for chunk in response.content.iter_chunked(self.config.chunk_size):
                stream.write(chunk)
                written += len(chunk)

        logger.debug("[download] path:%s bytes:%s", path, written)
        return written

    async def upload(self, path: str, stream: BinaryIO, overwrite: bool = True) -> None:
        """
        Upload content read from stream; the upload link must answer 201.

        The stream is read synchronously, chunk by chunk, inside the event
        loop. Pass a local file or an in-memory buffer, not a slow source.
        """
        params = {"path": path, "overwrite": _flag(overwrite)}
        link = await self._request_link("GET", "resources/upload", params)

        # aiohttp streams a generator body with chunked transfer encoding.
        async def body():
            for chunk in chunk_file(stream, self.config.chunk_size):
                yield chunk

        status, _ = await self._send(link.method, link.href, data=body())
        if status != 201:
            logger.warning("[upload] unexpected status; path:%s status:%s", path, status)
            raise UploadError(f"Server responded {status}", status_code=status)

    async def upload_url(self, path: str, url: str) -> Link:
        """Ask the server to download a file from the Internet into path."""
        return await self._request_link("POST", "resources/upload", {"path": path, "url": url})

    async def copy(self, path: str, from_path: str, overwrite: bool = True) -> Link:
        """Copy the resource at from_path to path."""
        params = {"path": path, "from": from_path, "overwrite": _flag(overwrite)}
        return await self._request_link("POST", "resources/copy", params)

    async def move(self, path: str, from_path: str, overwrite: bool = True) -> Link:
        """Move the resource at from_path to path."""
        params = {"path": path, "from": from_path, "overwrite": _flag(overwrite)}
        return await self._request_link("POST", "resources/move", params)

    async def delete(self, path: str, permanently: bool = False) -> Optional[Link]:
        """Delete the resource at path."""
        params = {"path": path, "permanently": _flag(permanently)}
        return await self._request_optional_operation("DELETE", "resources", params)

    async def mkdir(self, path: str) -> Link:
        """Create an empty directory."""
        return await self._request_link("PUT", "resources", {"path": path})

    async def trash_delete(self, path: str) -> Optional[Link]:
        """Remove one resource from the trash."""
        if not path:
            raise ValidationError("path is empty", field="path")
        return await self._request_optional_operation("DELETE", "trash/resources", {"path": path})

    async def trash_clear(self) -> Optional[Link]:
        """Remove every resource from the trash."""
        return await self._request_optional_operation("DELETE", "trash/resources")

    async def trash_restore(self, path: str, name: Optional[str] = None) -> Link:
        """Restore a resource from the trash."""
        params = {"overwrite": "false", "path": path}
        if name:
            params["name"] = name
        return await self._request_link("PUT", "trash/resources/restore", params)

    async def operation_status(self, link: Link) -> Status:
        """Check the status of an asynchronous operation."""
        if not link.is_operation:
            raise NotAnOperationError(href=link.href)

        data = await self._do("GET", "operations", {"id": link.operation_id})
        return _decode_status(data)

    async def close(self):
        """Close the client session."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
