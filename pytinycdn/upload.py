"""Chunked upload protocol for TinyCDN.

An upload runs through these states::

    REGISTERING -> TRANSFERRING -> COMPLETE
          \\              \\
           `-> ABORTED    `-> ABORTED

Registration sends the file metadata and digests. When the service already
holds identical content it answers with ``is_uploaded`` set and no bytes are
transferred. Otherwise the file is streamed in windows of :data:`CHUNK_SIZE`
bytes, strictly one after another, all under the ``create_token`` returned by
registration. The service tracks the offset by call order alone, so a failed
chunk aborts the whole session. A new upload starts over with registration.
"""

from __future__ import annotations

import base64
import logging
import zlib
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional

from .encoding import encode_arguments
from .exceptions import CdnInvalidResponseError, CdnNotFoundError
from .intake import LocalFile
from .models import FileRecord
from .utils import CHUNK_SIZE, COMPRESSION_LEVEL, DEFAULT_FILE_TYPE

if TYPE_CHECKING:
    from .api import TinyCdnClient

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

UPLOAD_CHUNK_QUERY = (
    "mutation {{ cdnUploadFile({args}) {{ cdn_file_id, create_token, access_token }} }}"
)


class UploadState(Enum):
    """States of an upload session."""

    REGISTERING = "registering"
    TRANSFERRING = "transferring"
    COMPLETE = "complete"
    ABORTED = "aborted"


@dataclass
class UploadSession:
    """Ephemeral state of one upload call. Never shared between uploads."""

    cdn_file_id: int = 0
    create_token: str = field(default="", repr=False)
    bytes_sent: int = 0
    chunks_sent: int = 0
    state: UploadState = UploadState.REGISTERING

    def reset(self) -> None:
        """Return the session to its initial state before a new upload."""
        self.cdn_file_id = 0
        self.create_token = ""
        self.bytes_sent = 0
        self.chunks_sent = 0
        self.state = UploadState.REGISTERING


def encode_chunk(buffer: bytes, compress: bool = True) -> tuple[str, bool]:
    """Prepare a chunk for transfer.

    Args:
        buffer: Raw chunk bytes
        compress: Whether to zlib-compress the chunk at maximum level

    Returns:
        Tuple of (base64 text, whether the content is compressed)
    """
    if compress:
        buffer = zlib.compress(buffer, COMPRESSION_LEVEL)
    return base64.b64encode(buffer).decode("ascii"), compress


class ChunkedUploader:
    """Drives the register-then-transfer upload protocol."""

    def __init__(
        self,
        client: TinyCdnClient,
        chunk_size: int = CHUNK_SIZE,
        compress: bool = True,
    ):
        """Initialize the uploader.

        Args:
            client: Client used for registration, chunk calls and the final
                lookup
            chunk_size: Bytes per chunk (default: 512 KiB)
            compress: Whether chunks are zlib-compressed before encoding
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.client = client
        self.chunk_size = chunk_size
        self.compress = compress

    def upload(
        self,
        local_file: LocalFile,
        is_public: bool = True,
        file_type: str = DEFAULT_FILE_TYPE,
        rule_key: Optional[str] = None,
        folder_id: Optional[int] = None,
        progress_callback: Optional[ProgressCallback] = None,
        session: Optional[UploadSession] = None,
    ) -> FileRecord:
        """Register a file and transfer its content if the service needs it.

        Args:
            local_file: Resolved source file
            is_public: Whether the file is publicly accessible
            file_type: ``file`` or ``image``; anything else becomes ``file``
            rule_key: Optional processing rule key
            folder_id: Optional parent folder ID
            progress_callback: Optional callback(bytes_sent, total_bytes)
            session: Optional session object to observe the upload state.
                It is reset before registration.

        Returns:
            The canonical FileRecord after the upload

        Raises:
            CdnError: Any transport or service error aborts the upload
        """
        if session is None:
            session = UploadSession()
        else:
            session.reset()
        try:
            record = self.client.add_file(
                filename=local_file.filename,
                md5=local_file.md5,
                size=local_file.size,
                is_public=is_public,
                file_type=file_type,
                rule_key=rule_key,
                sha256=local_file.sha256,
                folder_id=folder_id,
            )
            session.cdn_file_id = record.cdn_file_id
            session.create_token = record.create_token

            if record.is_uploaded:
                logger.debug(
                    "File %d already holds this content, skipping transfer",
                    record.cdn_file_id,
                )
                session.state = UploadState.COMPLETE
                if progress_callback:
                    progress_callback(local_file.size, local_file.size)
                return record

            session.state = UploadState.TRANSFERRING
            file_id = self.transfer(local_file, session, progress_callback)

            final = self.client.get_file_info(file_id)
            if final is None:
                raise CdnNotFoundError(f"Uploaded file {file_id} not found")
        except BaseException:
            session.state = UploadState.ABORTED
            raise

        session.state = UploadState.COMPLETE
        return final

    def transfer(
        self,
        local_file: LocalFile,
        session: UploadSession,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> int:
        """Send the file content chunk by chunk.

        Chunks are sent in file order, each call blocking until the service
        answers. A zero-byte read marks the end of the file.

        Args:
            local_file: File to send
            session: Session holding the file ID and create token
            progress_callback: Optional callback(bytes_sent, total_bytes)

        Returns:
            The file ID reported by the last chunk response
        """
        response: dict[str, Any] = {}

        with local_file.open() as f:
            while True:
                buffer = f.read(self.chunk_size)
                if not buffer:
                    break
                response = self.send_chunk(session, buffer)
                session.bytes_sent += len(buffer)
                session.chunks_sent += 1
                if progress_callback:
                    progress_callback(session.bytes_sent, local_file.size)

        if not response:
            raise CdnInvalidResponseError("No chunk was sent for a non-empty file")

        # Only the last chunk response is authoritative
        return int(response.get("cdn_file_id") or session.cdn_file_id)

    def send_chunk(self, session: UploadSession, buffer: bytes) -> dict[str, Any]:
        """Send one chunk and return the ``cdnUploadFile`` result."""
        content, compressed = encode_chunk(buffer, compress=self.compress)
        args = {
            "file_id": session.cdn_file_id,
            "create_token": session.create_token,
            "gzcompress": compressed,
            "content_base64": content,
        }
        logger.debug(
            "Sending chunk %d of file %d (%d bytes, %d encoded)",
            session.chunks_sent + 1,
            session.cdn_file_id,
            len(buffer),
            len(content),
        )
        root = self.client.execute(
            UPLOAD_CHUNK_QUERY.format(args=encode_arguments(args))
        )
        result = (root.get("data") or {}).get("cdnUploadFile")
        if not isinstance(result, dict):
            raise CdnInvalidResponseError("Missing cdnUploadFile in chunk response")
        return result
