"""Data models for TinyCDN API responses."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from .utils import DEFAULT_FILE_TYPE


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return _int(value)


@dataclass
class FileRecord:
    """A file stored on the CDN.

    ``create_token`` authorizes changes to the record. It is kept out of
    ``repr`` and :meth:`to_display_dict`.
    """

    cdn_file_id: int
    filename: str
    size: int = 0
    md5: str = ""
    is_uploaded: bool = False
    type: str = DEFAULT_FILE_TYPE
    is_public: bool = True
    views: int = 0
    site_id: Optional[int] = None
    folder_id: Optional[int] = None
    access_token: Optional[str] = None
    rule_key: Optional[str] = None
    sha256: Optional[str] = None
    meta: Any = None
    created_at: Optional[str] = None
    create_token: str = field(default="", repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileRecord":
        """Create a FileRecord from an API response dictionary."""
        return cls(
            cdn_file_id=_int(data.get("cdn_file_id")),
            filename=data.get("filename") or "",
            size=_int(data.get("size")),
            md5=data.get("md5") or "",
            is_uploaded=bool(data.get("is_uploaded")),
            type=data.get("type") or DEFAULT_FILE_TYPE,
            is_public=bool(data.get("is_public", True)),
            views=_int(data.get("views")),
            site_id=_optional_int(data.get("site_id")),
            folder_id=_optional_int(data.get("folder_id")),
            access_token=data.get("access_token"),
            rule_key=data.get("rule_key"),
            sha256=data.get("sha256"),
            meta=data.get("meta"),
            created_at=data.get("created_at"),
            create_token=data.get("create_token") or "",
        )

    def to_display_dict(self) -> dict[str, Any]:
        """Return the record as a dictionary without ``create_token``."""
        data = asdict(self)
        data.pop("create_token", None)
        return data


@dataclass
class FolderRecord:
    """A folder on the CDN. ``idp`` is the parent folder ID (0 for root)."""

    id: int
    title: str
    idp: int = 0
    site_id: Optional[int] = None
    count_files: int = 0
    count_folders: int = 0
    access_token: Optional[str] = None
    meta: Any = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    create_token: str = field(default="", repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FolderRecord":
        """Create a FolderRecord from an API response dictionary."""
        return cls(
            id=_int(data.get("id")),
            title=data.get("title") or "",
            idp=_int(data.get("idp")),
            site_id=_optional_int(data.get("site_id")),
            count_files=_int(data.get("count_files")),
            count_folders=_int(data.get("count_folders")),
            access_token=data.get("access_token"),
            meta=data.get("meta"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
            create_token=data.get("create_token") or "",
        )

    def to_display_dict(self) -> dict[str, Any]:
        """Return the record as a dictionary without ``create_token``."""
        data = asdict(self)
        data.pop("create_token", None)
        return data


@dataclass
class AliasRecord:
    """An alternative URL pointing at a CDN file."""

    id: int
    file_id: int
    url: str
    views: int = 0
    created_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AliasRecord":
        """Create an AliasRecord from an API response dictionary."""
        return cls(
            id=_int(data.get("id")),
            file_id=_int(data.get("file_id")),
            url=data.get("url") or "",
            views=_int(data.get("views")),
            created_at=data.get("created_at"),
        )

    def to_display_dict(self) -> dict[str, Any]:
        return asdict(self)
