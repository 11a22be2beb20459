"""Storage service module.

Provides blob storage disguised as PNG photos, with a Flickr implementation.
"""

from . import codec
from .base import BlobStorage, PhotoHostClient
from .cache import PhotoCache
from .exceptions import (
    DecodeError,
    EncodeError,
    StorageDownloadError,
    StorageError,
    StorageListError,
    StorageNotFoundError,
    StorageRenameError,
    StorageUploadError,
)
from .flickr import FlickrPhotoStorage, FlickrStorageSettings
from .schemas import AlbumInfo, Photo, PhotoSize, RemoteFileName

__all__ = [
    # Protocols
    "BlobStorage",
    "PhotoHostClient",
    # Implementation
    "FlickrPhotoStorage",
    "FlickrStorageSettings",
    "PhotoCache",
    "codec",
    # Schemas
    "AlbumInfo",
    "Photo",
    "PhotoSize",
    "RemoteFileName",
    # Exceptions
    "DecodeError",
    "EncodeError",
    "StorageDownloadError",
    "StorageError",
    "StorageListError",
    "StorageNotFoundError",
    "StorageRenameError",
    "StorageUploadError",
]
