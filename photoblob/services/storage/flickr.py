"""Flickr-backed blob storage.

Blobs are stored as PNG-encoded photos in a single photoset (album). The
photo title is the blob's logical file name. Flickr has no lookup by title,
so names are resolved through a :class:`PhotoCache` filled by album listings.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Any

from msgspec import structs

from photoblob.core.enums import PhotoSizeLabel, RemoteFileKind

from . import codec
from .base import PhotoHostClient
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
from .schemas import PNG_CONTENT_TYPE, PNG_EXTENSION, Photo, RemoteFileName

logger = logging.getLogger(__name__)

# Constants
DEFAULT_PAGE_SIZE = 1000  # Flickr's maximum per_page


class FlickrStorageSettings:
    """Flickr storage configuration."""

    def __init__(
        self,
        *,
        album_id: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        scratch_dir: Path | None = None,
    ) -> None:
        self.album_id = album_id
        self.page_size = page_size
        self.scratch_dir = scratch_dir


class FlickrPhotoStorage:
    """Blob storage on top of a Flickr photoset.

    Not thread-safe: the name cache is unsynchronized, so one instance
    belongs to one sync session. No call is retried.
    """

    def __init__(
        self,
        settings: FlickrStorageSettings,
        client: PhotoHostClient,
        cache: PhotoCache | None = None,
    ) -> None:
        """Initialize Flickr storage.

        Args:
            settings: Album and listing configuration.
            client: Authenticated photo host client.
            cache: Name cache; a fresh empty one by default.
        """
        self._settings = settings
        self._client = client
        self._cache = cache if cache is not None else PhotoCache()

    def __enter__(self) -> FlickrPhotoStorage:
        self.connect()
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @property
    def cache(self) -> PhotoCache:
        """The name cache of this instance."""
        return self._cache

    def connect(self) -> None:
        """Connect the underlying host client."""
        self._client.connect()

    def close(self) -> None:
        """Close the underlying host client."""
        self._client.close()

    def upload(self, data: bytes, name: str) -> str:
        """Encode a blob as a PNG and add it to the album.

        Every call creates a new photo, even if the name already exists.
        The cache entry for ``name`` is dropped so the next lookup relists.

        Returns:
            The new photo ID.

        Raises:
            StorageUploadError: If the name is not a valid remote file name,
                or encoding or the host call fails.
        """
        try:
            RemoteFileName.parse(name)
        except ValueError as e:
            raise StorageUploadError(f"Cannot upload file {name}: {e}", cause=e) from e

        filename = f"{name}.{PNG_EXTENSION}"

        try:
            image = codec.encode(codec.pad(data))
        except EncodeError as e:
            logger.error(f"Cannot encode {name} ({len(data)} bytes): {e}")
            raise StorageUploadError(f"Cannot encode file {name}: {e}", cause=e) from e

        try:
            photo_id = self._client.upload_image(
                image,
                filename=filename,
                title=name,
                content_type=PNG_CONTENT_TYPE,
            )
            self._client.add_photo_to_album(self._settings.album_id, photo_id)
        except Exception as e:
            logger.error(f"Flickr upload failed for {name}: {e}")
            raise StorageUploadError(f"Cannot upload file {name}: {e}", cause=e) from e

        self._cache.invalidate(name)

        logger.info(
            f"Uploaded {name} ({len(data)} bytes, {len(image)} byte image) as photo {photo_id}"
        )
        return photo_id

    def upload_file(self, local_path: Path, name: str) -> str:
        """Upload the contents of a local file."""
        try:
            data = Path(local_path).read_bytes()
        except OSError as e:
            raise StorageUploadError(f"Cannot read local file {local_path}: {e}", cause=e) from e
        return self.upload(data, name)

    def download(self, name: str) -> bytes:
        """Fetch the original rendition of a blob and decode it.

        The image is staged in a scratch file that is removed on every path.
        """
        try:
            photo = self.resolve(name)
        except StorageError as e:
            raise StorageDownloadError(f"Cannot download file {name}: {e}", cause=e) from e

        try:
            with tempfile.TemporaryFile(
                prefix="photoblob-", dir=self._settings.scratch_dir
            ) as scratch:
                for chunk in self._client.fetch_image(photo.id, PhotoSizeLabel.ORIGINAL):
                    scratch.write(chunk)
                scratch.seek(0)
                padded = codec.decode(scratch.read())
            data = codec.unpad(padded)
        except DecodeError as e:
            logger.error(f"Cannot decode image of photo {photo.id} for {name}: {e}")
            raise StorageDownloadError(
                f"Cannot decode file {name}, Flickr photo ID {photo.id}: {e}", cause=e
            ) from e
        except Exception as e:
            logger.error(f"Flickr download failed for {name}: {e}")
            raise StorageDownloadError(
                f"Cannot download file {name}, Flickr photo ID {photo.id}: {e}", cause=e
            ) from e

        logger.debug(f"Downloaded {name} ({len(data)} bytes) from photo {photo.id}")
        return data

    def download_file(self, name: str, local_path: Path) -> None:
        """Download a blob into a local file."""
        data = self.download(name)
        try:
            Path(local_path).write_bytes(data)
        except OSError as e:
            raise StorageDownloadError(f"Cannot write local file {local_path}: {e}", cause=e) from e

    def delete(self, name: str) -> bool:
        """Delete a blob, best effort.

        Returns:
            True if the photo was deleted, False on any failure. Never raises.
        """
        try:
            photo = self.resolve(name)
            self._client.delete_photo(photo.id)
        except Exception as e:
            logger.warning(f"Cannot delete remote file {name}, ignoring: {e}")
            return False

        self._cache.invalidate(name)
        logger.info(f"Deleted {name} (photo {photo.id})")
        return True

    def rename(self, old_name: str, new_name: str) -> None:
        """Retitle the photo holding ``old_name``.

        ``new_name`` must be a valid remote file name; no host call is made
        otherwise.
        """
        try:
            RemoteFileName.parse(new_name)
            photo = self.resolve(old_name)
            self._client.set_photo_title(photo.id, new_name)
        except Exception as e:
            logger.error(f"Cannot rename {old_name} to {new_name}: {e}")
            raise StorageRenameError(
                f"Cannot rename file {old_name} to {new_name}: {e}", cause=e
            ) from e

        self._cache.move(old_name, new_name, structs.replace(photo, title=new_name))
        logger.info(f"Renamed {old_name} to {new_name} (photo {photo.id})")

    def list(self, kind: RemoteFileKind) -> dict[str, Photo]:
        """List blobs of one kind, keyed by name.

        Pages through the whole album until a short page. Every photo with a
        valid name is cached, whatever its kind; photos with other titles are
        skipped. If two photos share a title, the one listed last wins.

        Raises:
            StorageListError: If a page cannot be fetched.
        """
        album_id = self._settings.album_id
        page_size = self._settings.page_size
        files: dict[str, Photo] = {}
        page = 1

        while True:
            try:
                photos = self._client.list_album_photos(album_id, per_page=page_size, page=page)
            except Exception as e:
                logger.error(f"Flickr listing failed for album {album_id}, page {page}: {e}")
                raise StorageListError(
                    f"Cannot list album {album_id} (page {page}): {e}", cause=e
                ) from e

            logger.debug(f"Listed album {album_id} page {page}: {len(photos)} photos")

            for photo in photos:
                try:
                    remote_name = RemoteFileName.parse(photo.title)
                except ValueError:
                    logger.warning(f"Ignoring photo {photo.id} with invalid title {photo.title!r}")
                    continue

                self._cache.put(remote_name.name, photo)
                if remote_name.kind == kind:
                    files[remote_name.name] = photo

            if len(photos) < page_size:
                break
            page += 1

        return files

    def resolve(self, name: str) -> Photo:
        """Find the photo holding a blob.

        A cache hit makes no request. On a miss the album is relisted once.

        Raises:
            StorageNotFoundError: If the name is invalid or still unknown.
            StorageListError: If relisting fails.
        """
        photo = self._cache.get(name)
        if photo is not None:
            logger.debug(f"Cache hit for {name}: photo {photo.id}")
            return photo

        try:
            kind = RemoteFileKind.from_name(name)
        except ValueError as e:
            raise StorageNotFoundError(f"Cannot find remote file {name}: {e}", cause=e) from e

        logger.debug(f"Cache miss for {name}, relisting {kind.value} files")
        self.list(kind)

        photo = self._cache.get(name)
        if photo is None:
            raise StorageNotFoundError(f"Cannot find remote file {name}")
        return photo

    def probe_exists(self) -> bool:
        """Check that the album can be fetched."""
        try:
            self._client.get_album_info(self._settings.album_id)
            return True
        except Exception as e:
            logger.error(f"Cannot get information about album {self._settings.album_id}: {e}")
            return False

    def probe_writable(self) -> bool:
        """Always True; write failures surface on the first upload."""
        return True

    def probe_creatable(self) -> bool:
        """Always True; photos need no parent beyond the album."""
        return True

    def probe_repo_marker(self) -> bool:
        """Check that the album holds exactly one repository marker."""
        try:
            return len(self.list(RemoteFileKind.SYNCANY)) == 1
        except StorageListError as e:
            logger.error(f"Cannot get information about repo file: {e}")
            return False
