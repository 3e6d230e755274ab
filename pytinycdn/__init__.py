"""PyTinyCDN - client for the TinyCDN content delivery service."""

from .api import TinyCdnClient
from .encoding import encode_arguments
from .exceptions import (
    CdnConfigError,
    CdnEmptyFileError,
    CdnError,
    CdnInvalidResponseError,
    CdnNotFoundError,
    CdnNotReadableError,
    CdnServiceError,
    CdnTransportError,
)
from .models import AliasRecord, FileRecord, FolderRecord
from .response import parse_response
from .transport import HttpxTransport, Transport, UrllibTransport, create_transport
from .upload import ChunkedUploader, UploadSession, UploadState

__all__ = [
    "TinyCdnClient",
    "ChunkedUploader",
    "UploadSession",
    "UploadState",
    "Transport",
    "HttpxTransport",
    "UrllibTransport",
    "create_transport",
    "encode_arguments",
    "parse_response",
    "FileRecord",
    "FolderRecord",
    "AliasRecord",
    "CdnError",
    "CdnConfigError",
    "CdnEmptyFileError",
    "CdnInvalidResponseError",
    "CdnNotFoundError",
    "CdnNotReadableError",
    "CdnServiceError",
    "CdnTransportError",
]
