"""Custom exception hierarchy for the stowage storage layer."""


class StowageError(Exception):
    """Base exception for all stowage errors."""


class PathNotFoundError(StowageError):
    """Raised when a path does not exist as the expected resource kind."""


class InvalidPathError(StowageError):
    """Raised when a path cannot be represented by the backend."""


class DecodeError(StowageError):
    """Raised when stored bytes cannot be converted to the requested type."""


class CapabilityNotSupportedError(StowageError):
    """Raised when a backend doesn't support a requested capability."""


class StorageError(StowageError):
    """Raised on backend failures (disk I/O, network, malformed responses)."""


class SigningError(StorageError):
    """Raised when a presigned URL cannot be generated."""


class MetadataMissingError(StowageError):
    """Raised when a backend omits an expected metadata field."""
