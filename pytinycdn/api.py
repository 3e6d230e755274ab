"""API client for TinyCDN."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from .config import config
from .encoding import encode_arguments
from .exceptions import CdnConfigError, CdnInvalidResponseError, CdnNotFoundError
from .intake import resolve_source
from .models import AliasRecord, FileRecord, FolderRecord
from .response import parse_response
from .transport import Transport, create_transport
from .upload import ChunkedUploader, ProgressCallback, UploadSession
from .utils import CHUNK_SIZE, DEFAULT_FILE_TYPE, DEFAULT_LIMIT, normalize_file_type

logger = logging.getLogger(__name__)

FILE_FRAGMENT = """
fragment fragmentCdnFileFull on CdnFile {
    cdn_file_id
    folder_id
    created_at
    size
    views
    site_id
    create_token
    is_public
    access_token
    filename
    is_uploaded
    type
    rule_key
    md5
    sha256
    meta
}
"""

FOLDER_FRAGMENT = """
fragment fragmentCdnFolderFull on CdnFolder {
    id
    idp
    site_id
    title
    created_at
    updated_at
    count_files
    count_folders
    create_token
    access_token
    meta
}
"""

ALIAS_FRAGMENT = """
fragment fragmentCdnFileAliasFull on CdnFileAlias {
    id
    file_id
    created_at
    views
    url
}
"""


def _paged(args: Optional[Mapping[str, Any]], offset: int, limit: int) -> dict:
    paged = dict(args or {})
    paged["from"] = offset
    paged["limit"] = limit
    return paged


class TinyCdnClient:
    """Client for interacting with the TinyCDN API.

    The client holds the endpoint, the API token and the transport. All three
    are read-only after construction, so one client can run any number of
    uploads one after another.
    """

    def __init__(
        self,
        api_token: str | None = None,
        api_url: str | None = None,
        transport: Transport | str | None = None,
        verify_ssl: bool | None = None,
        timeout: float | None = None,
        compress: bool = True,
        chunk_size: int = CHUNK_SIZE,
    ):
        """Initialize TinyCDN API client.

        Args:
            api_token: Optional API token (uses config if not provided)
            api_url: Optional API URL (uses config if not provided)
            transport: Transport instance, or ``"auto"``, ``"httpx"`` or
                ``"urllib"`` (uses config if not provided)
            verify_ssl: Whether to verify TLS certificates (uses config,
                which defaults to True)
            timeout: Request timeout in seconds (uses config if not provided)
            compress: Whether upload chunks are zlib-compressed (default: True)
            chunk_size: Upload chunk size in bytes (default: 512 KiB)
        """
        self.api_token = api_token or config.api_token
        self.api_url = api_url or config.api_url
        self.compress = compress
        self.chunk_size = chunk_size

        if not self.api_token:
            raise CdnConfigError(
                "API token not configured. "
                "Please set TINYCDN_API_TOKEN environment variable."
            )

        if isinstance(transport, Transport):
            self.transport = transport
        else:
            self.transport = create_transport(
                transport or config.transport,
                verify_ssl=config.verify_ssl if verify_ssl is None else verify_ssl,
                timeout=config.timeout if timeout is None else timeout,
            )

    def close(self) -> None:
        """Close the transport and release connections."""
        self.transport.close()

    def __enter__(self) -> "TinyCdnClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def execute(
        self, query: str, variables: Optional[Mapping[str, Any]] = None
    ) -> dict[str, Any]:
        """Send a query and return the normalized response root.

        Args:
            query: Query text
            variables: Optional query variables

        Returns:
            Response root containing ``data``

        Raises:
            CdnTransportError: If the request could not be delivered
            CdnInvalidResponseError: If the response is not valid JSON
            CdnServiceError: If the service reported an error
        """
        raw = self.transport.send_request(
            query, variables, self.api_url, self.api_token
        )
        return parse_response(raw)

    def _call(self, query: str, operation: str) -> Any:
        """Execute a query and return the result of ``operation``."""
        root = self.execute(query)
        data = root.get("data")
        if not isinstance(data, Mapping) or operation not in data:
            raise CdnInvalidResponseError(f"Missing '{operation}' in response data")
        return data[operation]

    def _call_record(self, query: str, operation: str) -> Mapping[str, Any]:
        """Execute a query whose ``operation`` result must be a single record."""
        result = self._call(query, operation)
        if not isinstance(result, Mapping):
            raise CdnInvalidResponseError(f"No record returned by '{operation}'")
        return result

    # =========================
    # File Operations
    # =========================

    def get_list(
        self,
        args: Optional[Mapping[str, Any]] = None,
        offset: int = 0,
        limit: int = DEFAULT_LIMIT,
    ) -> list[FileRecord]:
        """Get a page of files.

        Args:
            args: Optional filters (e.g. ``file_id``, ``folder_id``, ``md5``)
            offset: Offset into the result list (default: 0)
            limit: Maximum number of records (default: 100)

        Returns:
            List of FileRecord objects
        """
        encoded = encode_arguments(_paged(args, offset, limit))
        query = f"{{ cdnFile({encoded}) {{ ...fragmentCdnFileFull }} }}{FILE_FRAGMENT}"
        items = self._call(query, "cdnFile") or []
        return [FileRecord.from_dict(item) for item in items]

    def get_count(self, args: Optional[Mapping[str, Any]] = None) -> int:
        """Count files matching the given filters."""
        encoded = encode_arguments(args or {})
        return int(self._call(f"{{ cdnFileCount({encoded}) }}", "cdnFileCount") or 0)

    def get_file_info(self, file_id: int) -> Optional[FileRecord]:
        """Get a file by ID.

        Args:
            file_id: File ID on the CDN

        Returns:
            FileRecord, or None if no file matches
        """
        records = self.get_list({"file_id": file_id})
        return records[0] if records else None

    def add_file(
        self,
        filename: str,
        md5: str,
        size: int,
        is_public: bool = True,
        file_type: str = DEFAULT_FILE_TYPE,
        rule_key: Optional[str] = None,
        sha256: Optional[str] = None,
        folder_id: Optional[int] = None,
    ) -> FileRecord:
        """Register file metadata with the CDN.

        If the service already holds content with the same digests, the
        returned record has ``is_uploaded`` set and no transfer is needed.

        Args:
            filename: File name
            md5: MD5 hex digest of the content
            size: Content size in bytes
            is_public: Whether the file is publicly accessible (default: True)
            file_type: ``file`` or ``image``; unknown values become ``file``
            rule_key: Optional processing rule key
            sha256: Optional SHA-256 hex digest
            folder_id: Optional parent folder ID

        Returns:
            The registered FileRecord
        """
        args: dict[str, Any] = {
            "filename": filename,
            "md5": md5,
            "size": size,
            "is_public": bool(is_public),
            "file_type": normalize_file_type(file_type),
        }
        if sha256:
            args["sha256"] = sha256
        if rule_key:
            args["rule_key"] = str(rule_key)
        if folder_id:
            args["folder_id"] = int(round(folder_id))

        query = (
            f"mutation {{ cdnAddFile({encode_arguments(args)}) "
            f"{{ ...fragmentCdnFileFull }} }}{FILE_FRAGMENT}"
        )
        record = FileRecord.from_dict(self._call_record(query, "cdnAddFile"))
        logger.debug(
            "Registered %s as file %d (is_uploaded=%s)",
            filename,
            record.cdn_file_id,
            record.is_uploaded,
        )
        return record

    def upload(
        self,
        source: str | Path,
        filename: Optional[str] = None,
        file_type: str = DEFAULT_FILE_TYPE,
        is_public: bool = True,
        rule_key: Optional[str] = None,
        folder_id: Optional[int] = None,
        progress_callback: Optional[ProgressCallback] = None,
        session: Optional[UploadSession] = None,
    ) -> FileRecord:
        """Upload a file to the CDN.

        Args:
            source: Local path or http(s) URL of the file
            filename: Optional name to store the file under
            file_type: ``file`` or ``image`` (default: ``file``)
            is_public: Whether the file is publicly accessible (default: True)
            rule_key: Optional processing rule key
            folder_id: Optional parent folder ID
            progress_callback: Optional callback(bytes_sent, total_bytes)
            session: Optional UploadSession to observe the upload state

        Returns:
            The uploaded FileRecord

        Raises:
            CdnNotFoundError: If a local file does not exist
            CdnNotReadableError: If a local file cannot be read
            CdnEmptyFileError: If the file is empty
            CdnError: Any transport or service error during the upload
        """
        uploader = ChunkedUploader(
            self, chunk_size=self.chunk_size, compress=self.compress
        )
        with resolve_source(
            source,
            filename=filename,
            timeout=self.transport.timeout,
            verify_ssl=self.transport.verify_ssl,
        ) as local_file:
            return uploader.upload(
                local_file,
                is_public=is_public,
                file_type=file_type,
                rule_key=rule_key,
                folder_id=folder_id,
                progress_callback=progress_callback,
                session=session,
            )

    def delete(self, file_id: int) -> bool:
        """Delete a file from the CDN.

        Args:
            file_id: File ID on the CDN

        Returns:
            True if the service deleted the file

        Raises:
            CdnNotFoundError: If the file does not exist
        """
        record = self.get_file_info(file_id)
        if record is None:
            raise CdnNotFoundError(f"File {file_id} not found")

        args = encode_arguments(
            {"file_id": record.cdn_file_id, "create_token": record.create_token}
        )
        return bool(self._call(f"mutation {{ cdnDeleteFile({args}) }}", "cdnDeleteFile"))

    # =========================
    # Alias Operations
    # =========================

    def add_alias(self, file_id: int, url: str) -> AliasRecord:
        """Add an alias URL to a file.

        Raises:
            CdnNotFoundError: If the file does not exist
        """
        record = self.get_file_info(file_id)
        if record is None:
            raise CdnNotFoundError(f"File {file_id} not found")

        args = encode_arguments(
            {"file_id": file_id, "create_token": record.create_token, "url": url}
        )
        query = (
            f"mutation {{ cdnAddFileAlias({args}) "
            f"{{ ...fragmentCdnFileAliasFull }} }}{ALIAS_FRAGMENT}"
        )
        return AliasRecord.from_dict(self._call_record(query, "cdnAddFileAlias"))

    def get_aliases_list(
        self,
        args: Optional[Mapping[str, Any]] = None,
        offset: int = 0,
        limit: int = DEFAULT_LIMIT,
    ) -> list[AliasRecord]:
        """Get a page of aliases.

        Args:
            args: Optional filters (``file_id``, ``id``, ``url``)
            offset: Offset into the result list (default: 0)
            limit: Maximum number of records (default: 100)
        """
        encoded = encode_arguments(_paged(args, offset, limit))
        query = (
            f"{{ cdnFileAliases({encoded}) {{ ...fragmentCdnFileAliasFull }} }}"
            f"{ALIAS_FRAGMENT}"
        )
        items = self._call(query, "cdnFileAliases") or []
        return [AliasRecord.from_dict(item) for item in items]

    def get_alias(self, alias_id: int) -> Optional[AliasRecord]:
        aliases = self.get_aliases_list({"id": alias_id})
        return aliases[0] if aliases else None

    def delete_alias(self, alias_id: int) -> bool:
        """Delete an alias.

        The create token of the file owning the alias authorizes the call.

        Raises:
            CdnNotFoundError: If the alias or its file does not exist
        """
        alias = self.get_alias(alias_id)
        if alias is None:
            raise CdnNotFoundError(f"Alias {alias_id} not found")

        record = self.get_file_info(alias.file_id)
        if record is None:
            raise CdnNotFoundError(f"File {alias.file_id} not found")

        args = encode_arguments({"id": alias_id, "create_token": record.create_token})
        return bool(
            self._call(f"mutation {{ cdnDeleteFileAlias({args}) }}", "cdnDeleteFileAlias")
        )

    # =========================
    # Folder Operations
    # =========================

    def add_folder(self, title: str, idp: int = 0) -> FolderRecord:
        """Create a folder.

        Args:
            title: Folder name
            idp: Parent folder ID (0 for root)
        """
        args = encode_arguments({"title": title, "idp": idp})
        query = (
            f"mutation {{ cdnAddFolder({args}) {{ ...fragmentCdnFolderFull }} }}"
            f"{FOLDER_FRAGMENT}"
        )
        return FolderRecord.from_dict(self._call_record(query, "cdnAddFolder"))

    def get_folders_list(
        self,
        args: Optional[Mapping[str, Any]] = None,
        offset: int = 0,
        limit: int = DEFAULT_LIMIT,
    ) -> list[FolderRecord]:
        """Get a page of folders.

        Args:
            args: Optional filters (``id``, ``idp``, ``title``, ``count_files``,
                ``count_folders``)
            offset: Offset into the result list (default: 0)
            limit: Maximum number of records (default: 100)
        """
        encoded = encode_arguments(_paged(args, offset, limit))
        query = (
            f"{{ cdnFolder({encoded}) {{ ...fragmentCdnFolderFull }} }}{FOLDER_FRAGMENT}"
        )
        items = self._call(query, "cdnFolder") or []
        return [FolderRecord.from_dict(item) for item in items]

    def get_folders_count(self, args: Optional[Mapping[str, Any]] = None) -> int:
        encoded = encode_arguments(args or {})
        return int(
            self._call(f"{{ cdnFolderCount({encoded}) }}", "cdnFolderCount") or 0
        )

    def get_folder(self, folder_id: int) -> Optional[FolderRecord]:
        folders = self.get_folders_list({"id": folder_id})
        return folders[0] if folders else None

    def update_folder(
        self, folder_id: int, data: Mapping[str, Any]
    ) -> Optional[FolderRecord]:
        """Update a folder.

        Args:
            folder_id: Folder ID
            data: New values (``title`` and/or ``idp``)

        Returns:
            The updated FolderRecord, or None if the service returned nothing
        """
        args = dict(data)
        args["id"] = folder_id
        query = (
            f"mutation {{ cdnEditFolder({encode_arguments(args)}) "
            f"{{ ...fragmentCdnFolderFull }} }}{FOLDER_FRAGMENT}"
        )
        result = self._call(query, "cdnEditFolder")
        return FolderRecord.from_dict(result) if isinstance(result, Mapping) else None

    def delete_folder(self, folder_id: int, create_token: str = "") -> None:
        """Delete a folder.

        Args:
            folder_id: Folder ID
            create_token: Folder create token; looked up when not given
        """
        if not create_token:
            folder = self.get_folder(folder_id)
            create_token = folder.create_token if folder else ""

        args = encode_arguments({"id": folder_id, "create_token": create_token})
        self.execute(f"mutation {{ cdnDeleteFolder({args}) }}")
