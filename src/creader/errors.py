"""Exception types raised by creader."""


class CReaderError(Exception):
    """Base class for creader errors."""


class InvalidArgumentError(CReaderError, ValueError):
    """Raised when a size, chunk size or option value is not acceptable."""


class ManifestMismatchError(CReaderError):
    """Raised when a source no longer matches a previously written manifest."""

    def __init__(self, message: str, mismatches: list[int] | None = None):
        super().__init__(message)
        self.mismatches = mismatches or []
