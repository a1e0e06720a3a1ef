"""
Data models for the Yandex.Disk SDK.

This module defines the values decoded from API responses: resources and
listing pages, links returned by mutating calls, operation statuses and
account statistics.
"""

import json
from datetime import datetime
from typing import Optional, List, Dict, Any, Union
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import urlparse

from .exceptions import ProtocolError, TemplatedLinkError
from .utils import parse_timestamp


class ResourceType(Enum):
    """Type of a remote resource."""
    UNKNOWN = "unknown"
    DIR = "dir"
    FILE = "file"

    @classmethod
    def from_value(cls, value: Any) -> "ResourceType":
        """
        Map a decoded ``type`` value onto a ResourceType.

        Unrecognised strings map to UNKNOWN; anything that is not a string
        is a protocol violation.
        """
        if not isinstance(value, str):
            raise ProtocolError(f"Invalid resource type value {value!r}")
        if value == "dir":
            return cls.DIR
        if value == "file":
            return cls.FILE
        return cls.UNKNOWN

    @classmethod
    def from_json(cls, raw: str) -> "ResourceType":
        """
        Decode a raw JSON fragment such as ``"dir"`` (quotes included).

        Resource.from_dict works on bodies that are already decoded and goes
        through from_value directly. This decodes a bare ``type`` fragment
        with the same mapping.
        """
        if len(raw) < 2 or raw[0] != '"' or raw[-1] != '"':
            raise ProtocolError(f"Invalid type JSON value {raw}")
        try:
            value = json.loads(raw)
        except ValueError as e:
            raise ProtocolError(f"Invalid type JSON value {raw}") from e
        return cls.from_value(value)


class Status(Enum):
    """Outcome of a polled asynchronous operation."""
    FAILURE = "failure"
    IN_PROGRESS = "in-progress"
    SUCCESS = "success"

    @classmethod
    def from_value(cls, value: Any) -> "Status":
        """Map the server's status string; unknown values are rejected."""
        for status in cls:
            if status.value == value:
                return status
        raise ProtocolError(f"Invalid operation status {value!r}")


@dataclass
class Resource:
    """A file or directory on the Disk."""

    type: ResourceType
    name: str
    path: str
    created: Optional[datetime] = None
    modified: Optional[datetime] = None
    md5: str = ""
    size: int = 0
    mime_type: Optional[str] = None
    public_url: Optional[str] = None
    embedded: Optional["ResourceList"] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Resource":
        """Create Resource from API response dictionary."""
        embedded = None
        if data.get("_embedded") is not None:
            embedded = ResourceList.from_dict(data["_embedded"])

        return cls(
            type=ResourceType.from_value(data.get("type", "")),
            name=data.get("name", ""),
            path=data.get("path", ""),
            created=parse_timestamp(data.get("created")),
            modified=parse_timestamp(data.get("modified")),
            md5=data.get("md5", ""),
            size=data.get("size", 0),
            mime_type=data.get("mime_type"),
            public_url=data.get("public_url"),
            embedded=embedded,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert Resource to dictionary."""
        result = {
            "type": self.type.value,
            "name": self.name,
            "path": self.path,
        }

        if self.created:
            result["created"] = self.created.isoformat()
        if self.modified:
            result["modified"] = self.modified.isoformat()
        if self.is_file:
            result["md5"] = self.md5
            result["size"] = self.size
        if self.mime_type:
            result["mime_type"] = self.mime_type
        if self.public_url:
            result["public_url"] = self.public_url

        return result

    @property
    def is_dir(self) -> bool:
        return self.type is ResourceType.DIR

    @property
    def is_file(self) -> bool:
        return self.type is ResourceType.FILE


@dataclass
class ResourceList:
    """
    One page of directory contents.

    For a single page ``limit`` and ``offset`` echo the request. A list
    assembled from several pages reports the number of collected items in
    ``limit`` instead.
    """

    items: List[Resource] = field(default_factory=list)
    limit: int = 0
    offset: int = 0
    path: Optional[str] = None
    total: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResourceList":
        """Create ResourceList from API response dictionary."""
        return cls(
            items=[Resource.from_dict(item) for item in data.get("items") or []],
            limit=data.get("limit", 0),
            offset=data.get("offset", 0),
            path=data.get("path"),
            total=data.get("total"),
        )

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)


@dataclass(frozen=True)
class ResourceLocation:
    """Link target pointing at a materialized resource."""

    url: str


@dataclass(frozen=True)
class PendingOperation:
    """Link target pointing at an asynchronous operation."""

    id: str


LinkTarget = Union[ResourceLocation, PendingOperation]


def _decode_target(href: str) -> LinkTarget:
    segments = [s for s in urlparse(href).path.split("/") if s]
    for i, segment in enumerate(segments[:-1]):
        if segment == "operations" and i > 0 and segments[i - 1] == "disk":
            return PendingOperation(id=segments[-1])
    return ResourceLocation(url=href)


@dataclass
class Link:
    """
    A link returned by the server.

    The target is decoded once, on construction: either a PendingOperation
    whose status can be polled, or a ResourceLocation such as the new path
    of a copied file or a pre-signed upload/download URL.
    """

    href: str
    method: str = "GET"
    templated: bool = False
    target: LinkTarget = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        self.target = _decode_target(self.href)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Link":
        """Create Link from API response dictionary, rejecting templated links."""
        if "href" not in data:
            raise ProtocolError("Link response has no href")
        link = cls(
            href=data["href"],
            method=data.get("method") or "GET",
            templated=bool(data.get("templated", False)),
        )
        if link.templated:
            raise TemplatedLinkError(href=link.href)
        return link

    @property
    def is_operation(self) -> bool:
        """True when the link names an asynchronous operation."""
        return isinstance(self.target, PendingOperation)

    @property
    def operation_id(self) -> str:
        """Operation ID, or an empty string for non-operation links."""
        if isinstance(self.target, PendingOperation):
            return self.target.id
        return ""


@dataclass
class Stats:
    """Disk usage statistics of the account."""

    total_space: int
    used_space: int
    trash_size: int
    system_folders: Dict[str, str] = field(default_factory=dict)
    max_file_size: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Stats":
        """Create Stats from API response dictionary."""
        return cls(
            total_space=data.get("total_space", 0),
            used_space=data.get("used_space", 0),
            trash_size=data.get("trash_size", 0),
            system_folders=data.get("system_folders") or {},
            max_file_size=data.get("max_file_size"),
        )

    @property
    def free_space(self) -> int:
        """Space left in bytes."""
        return max(self.total_space - self.used_space, 0)
