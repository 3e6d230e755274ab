"""Exceptions raised by the TinyCDN client."""


class CdnError(Exception):
    """Base exception for all TinyCDN client errors."""


class CdnConfigError(CdnError):
    """Raised when the client is missing required configuration."""


class CdnNotFoundError(CdnError):
    """Raised when a local file or a remote record does not exist."""


class CdnNotReadableError(CdnError):
    """Raised when a local file exists but cannot be read."""


class CdnEmptyFileError(CdnError):
    """Raised when a file selected for upload has no content."""


class CdnTransportError(CdnError):
    """Raised when the HTTP transport could not produce a response."""


class CdnInvalidResponseError(CdnError):
    """Raised when the service answered with an empty or non-JSON body."""


class CdnServiceError(CdnError):
    """Raised when the service reports an error in the response envelope.

    Attributes:
        message: Error message reported by the service
        code: Numeric error code (0 when the service did not send one)
    """

    def __init__(self, message: str, code: int = 0):
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        if self.code:
            return f"{self.message} (code {self.code})"
        return self.message
