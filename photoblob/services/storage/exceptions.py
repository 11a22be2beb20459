"""Storage service exceptions."""

from __future__ import annotations


class StorageError(Exception):
    """Base exception for storage operations."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class EncodeError(StorageError, ValueError):
    """Raised when a payload cannot be encoded as an image."""


class DecodeError(StorageError, ValueError):
    """Raised when an image cannot be decoded back into a payload."""


class StorageUploadError(StorageError):
    """Raised when file upload fails."""


class StorageDownloadError(StorageError):
    """Raised when file download fails."""


class StorageRenameError(StorageError):
    """Raised when renaming a remote file fails."""


class StorageListError(StorageError):
    """Raised when the album listing fails."""


class StorageNotFoundError(StorageError):
    """Raised when requested object doesn't exist."""
