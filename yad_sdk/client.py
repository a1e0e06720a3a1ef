"""
Synchronous Yandex.Disk client implementation.

This module provides the main synchronous client for the Yandex.Disk REST
API. Every request funnels through ``YadClient._request``; responses are
either returned as raw bytes (2xx) or decoded into ``ApiError``.
"""

import json
import logging
from typing import Optional, Dict, Any, BinaryIO, Iterator, Union

import requests
from requests.adapters import HTTPAdapter

from .auth import OAuthTokenAuth, build_headers
from .config import ClientConfig
from .exceptions import (
    ApiError, NotADirectoryError, NotAnOperationError, ProtocolError,
    UploadError, ValidationError,
)
from .models import Link, Resource, ResourceList, Stats, Status

logger = logging.getLogger(__name__)

# Page size used by list_all; a full page always triggers one more request.
LIST_PAGE_SIZE = 100

Params = Dict[str, Union[str, int]]


def _flag(value: bool) -> str:
    return "true" if value else "false"


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def _decode_error(status_code: int, body: bytes) -> ApiError:
    """Decode an error response body into ApiError."""
    try:
        data = json.loads(body)
    except ValueError:
        data = None
    if not isinstance(data, dict):
        text = body.decode("utf-8", errors="replace") if body else ""
        error = ApiError(status_code, description=text)
    else:
        error = ApiError.from_dict(status_code, data)
    logger.warning("[_decode_error] API error; status:%s error:%s", status_code, error.error)
    return error


def _decode_json(body: bytes) -> Dict[str, Any]:
    try:
        data = json.loads(body)
    except ValueError as e:
        logger.error("[_decode_json] response body is not JSON")
        raise ProtocolError(f"Invalid JSON response: {e}") from e
    if not isinstance(data, dict):
        raise ProtocolError("Expected a JSON object in response")
    return data


def _decode_status(data: Dict[str, Any]) -> Status:
    try:
        return Status.from_value(data.get("status"))
    except ProtocolError:
        logger.error("[_decode_status] unknown operation status; status:%s", data.get("status"))
        raise


class YadClient:
    """
    Synchronous client for the Yandex.Disk REST API.

    The client holds only its immutable configuration and an HTTP session;
    it is safe to share between threads to the extent the session is.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        config: Optional[ClientConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            token: OAuth token (ignored when config is given; falls back to
                the YAD_TOKEN env var when neither is given)
            config: Complete client configuration
            session: HTTP session to issue requests through. When omitted
                a new session without retries is created and owned by the
                client.
        """
        if config is None:
            config = ClientConfig(token=token) if token else ClientConfig.from_env()
        self.config = config

        self._owns_session = session is None
        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(max_retries=0)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self.session = session

        self._headers = build_headers(config, with_auth=False)
        self._auth = OAuthTokenAuth(config.token)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self.config.base_url}{path}"

    def _request(
        self,
        method: str,
        url: str,
        params: Optional[Params] = None,
        **kwargs
    ) -> requests.Response:
        """Issue one authenticated request; the status code is not checked."""
        logger.debug("[_request] method:%s url:%s", method, url)
        return self.session.request(
            method=method,
            url=url,
            params=params,
            headers=self._headers,
            auth=self._auth,
            timeout=self.config.timeout,
            **kwargs
        )

    def _read_body(self, response: requests.Response) -> bytes:
        """Return the body of a 2xx response, raise ApiError otherwise."""
        try:
            body = response.content
        finally:
            response.close()
        if not _is_success(response.status_code):
            raise _decode_error(response.status_code, body)
        return body

    def _do(self, method: str, path: str, params: Optional[Params] = None) -> Dict[str, Any]:
        response = self._request(method, self._url(path), params)
        return _decode_json(self._read_body(response))

    def _request_link(self, method: str, path: str, params: Params) -> Link:
        return Link.from_dict(self._do(method, path, params))

    def _request_optional_operation(
        self,
        method: str,
        path: str,
        params: Optional[Params] = None,
    ) -> Optional[Link]:
        """
        Issue a call that may complete synchronously or asynchronously.

        Returns None on 204 No Content, the operation Link on 202 Accepted.
        Any other status is decoded into ApiError.
        """
        response = self._request(method, self._url(path), params)
        try:
            body = response.content
        finally:
            response.close()

        if response.status_code == 204:
            return None
        if response.status_code == 202:
            return Link.from_dict(_decode_json(body))
        raise _decode_error(response.status_code, body)

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    def stats(self) -> Stats:
        """Get Disk statistics (total space, used space, etc.)."""
        return Stats.from_dict(self._do("GET", ""))

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def info(self, path: str) -> Resource:
        """Get metadata of a single file or directory."""
        return Resource.from_dict(self._do("GET", "resources", {"path": path}))

    def list(self, path: str, offset: int = 0, limit: int = 20) -> ResourceList:
        """
        Get one page of directory contents sorted by name.

        Raises:
            NotADirectoryError: If path does not resolve to a directory
        """
        params = {
            "path": path,
            "offset": offset,
            "limit": limit,
            "sort": "name",
        }
        resource = Resource.from_dict(self._do("GET", "resources", params))
        if not resource.is_dir:
            raise NotADirectoryError(f"{path} is not a directory", path=path)

        if resource.embedded is None:
            return ResourceList(limit=limit, offset=offset, path=path)
        return resource.embedded

    def iter_list(self, path: str, page_size: int = LIST_PAGE_SIZE) -> Iterator[Resource]:
        """
        Iterate over the whole directory contents, page by page.

        Stops after the first page holding fewer than page_size items.
        """
        offset = 0
        while True:
            page = self.list(path, offset, page_size)
            yield from page.items
            if len(page.items) == 0 or len(page.items) < page_size:
                return
            offset += page_size

    def list_all(self, path: str) -> ResourceList:
        """
        Get the whole directory contents sorted by name.

        The returned list reports the number of collected items in
        ``limit``. An error on any page aborts the call.
        """
        items = list(self.iter_list(path))
        return ResourceList(items=items, limit=len(items), offset=0, path=path)

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def download(self, path: str, stream: BinaryIO) -> int:
        """
        Download a file and write its content into stream.

        If path points to a directory the server sends a ZIP archive.

        Returns:
            Number of bytes written
        """
        link = self._request_link("GET", "resources/download", {"path": path})
        response = self._request(link.method, link.href, stream=True)
        with response:
            if not _is_success(response.status_code):
                raise _decode_error(response.status_code, response.content)

            written = 0
            for chunk in response.iter_content(chunk_size=self.config.chunk_size):
                if chunk:
                    stream.write(chunk)
                    written += len(chunk)

        logger.debug("[download] path:%s bytes:%s", path, written)
        return written

    def upload(self, path: str, stream: BinaryIO, overwrite: bool = True) -> None:
        """
        Upload content read from stream to the file at path.

        Raises:
            UploadError: If the upload link does not answer 201 Created
        """
        params = {"path": path, "overwrite": _flag(overwrite)}
        link = self._request_link("GET", "resources/upload", params)

        response = self._request(link.method, link.href, data=stream)
        response.close()
        if response.status_code != 201:
            logger.warning("[upload] unexpected status; path:%s status:%s", path, response.status_code)
            raise UploadError(
                f"Server responded {response.status_code}",
                status_code=response.status_code,
            )

    def upload_url(self, path: str, url: str) -> Link:
        """
        Ask the server to download a file from the Internet into path.

        Returns:
            Link to the operation that can be polled for its status
        """
        return self._request_link("POST", "resources/upload", {"path": path, "url": url})

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def copy(self, path: str, from_path: str, overwrite: bool = True) -> Link:
        """
        Copy the resource at from_path to path.

        Returns an operation Link for non-empty directories, or a Link to
        the new resource for files and empty directories.
        """
        params = {"path": path, "from": from_path, "overwrite": _flag(overwrite)}
        return self._request_link("POST", "resources/copy", params)

    def move(self, path: str, from_path: str, overwrite: bool = True) -> Link:
        """
        Move the resource at from_path to path.

        Returns an operation Link for non-empty directories, or a Link to
        the new resource for files and empty directories.
        """
        params = {"path": path, "from": from_path, "overwrite": _flag(overwrite)}
        return self._request_link("POST", "resources/move", params)

    def delete(self, path: str, permanently: bool = False) -> Optional[Link]:
        """
        Delete the resource at path.

        Returns an operation Link for non-empty directories, or None when
        the deletion completed immediately.
        """
        params = {"path": path, "permanently": _flag(permanently)}
        return self._request_optional_operation("DELETE", "resources", params)

    def mkdir(self, path: str) -> Link:
        """Create an empty directory and return a Link to it."""
        return self._request_link("PUT", "resources", {"path": path})

    # ------------------------------------------------------------------
    # Trash
    # ------------------------------------------------------------------

    def trash_delete(self, path: str) -> Optional[Link]:
        """Remove one resource from the trash."""
        # The server empties the whole trash when path is omitted.
        if not path:
            raise ValidationError("path is empty", field="path")
        return self._request_optional_operation("DELETE", "trash/resources", {"path": path})

    def trash_clear(self) -> Optional[Link]:
        """Remove every resource from the trash."""
        return self._request_optional_operation("DELETE", "trash/resources")

    def trash_restore(self, path: str, name: Optional[str] = None) -> Link:
        """
        Restore a resource from the trash.

        Args:
            path: Path of the resource inside the trash
            name: New name for the restored resource; the original path
                is used when omitted
        """
        params = {"overwrite": "false", "path": path}
        if name:
            params["name"] = name
        return self._request_link("PUT", "trash/resources/restore", params)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def operation_status(self, link: Link) -> Status:
        """
        Check the status of an asynchronous operation.

        Raises:
            NotAnOperationError: If link does not name an operation; no
                request is made in that case
            ProtocolError: If the server reports an unknown status
        """
        if not link.is_operation:
            raise NotAnOperationError(href=link.href)

        data = self._do("GET", "operations", {"id": link.operation_id})
        return _decode_status(data)

    def close(self):
        """Close the HTTP session if the client created it."""
        if self._owns_session:
            self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
