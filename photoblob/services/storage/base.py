"""Storage protocol definitions."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from photoblob.core.enums import PhotoSizeLabel, RemoteFileKind

    from .schemas import AlbumInfo, Photo


@runtime_checkable
class PhotoHostClient(Protocol):
    """Primitives a photo hosting service must offer.

    Implementations are already authenticated. Every method blocks on
    network I/O and raises the client's own exceptions on failure.
    """

    def connect(self) -> None:
        """Open the underlying connection."""
        ...

    def close(self) -> None:
        """Close the underlying connection."""
        ...

    def upload_image(
        self,
        data: bytes,
        *,
        filename: str,
        title: str,
        content_type: str,
    ) -> str:
        """Upload an image.

        Args:
            data: Encoded image bytes.
            filename: Filename reported to the host.
            title: Photo title.
            content_type: MIME type of the image.

        Returns:
            The new photo ID.
        """
        ...

    def fetch_image(
        self,
        photo_id: str,
        size: PhotoSizeLabel,
    ) -> Iterator[bytes]:
        """Stream the bytes of one rendition of a photo.

        Args:
            photo_id: Photo to fetch.
            size: Preferred rendition; the largest available is used when
                the host does not offer it.

        Returns:
            Iterator over raw byte chunks.
        """
        ...

    def delete_photo(self, photo_id: str) -> None:
        """Delete a photo."""
        ...

    def set_photo_title(self, photo_id: str, title: str) -> None:
        """Replace a photo's title."""
        ...

    def list_album_photos(
        self,
        album_id: str,
        *,
        per_page: int,
        page: int,
    ) -> list[Photo]:
        """List one page of an album, 1-based.

        Ordering is stable across pages of the same listing.
        """
        ...

    def get_album_info(self, album_id: str) -> AlbumInfo:
        """Fetch album metadata."""
        ...

    def add_photo_to_album(self, album_id: str, photo_id: str) -> None:
        """Add an uploaded photo to an album."""
        ...


@runtime_checkable
class BlobStorage(Protocol):
    """Contract the sync system uses to store immutable named blobs.

    Names follow the remote file name grammar (see ``RemoteFileKind``).
    """

    def upload(self, data: bytes, name: str) -> str:
        """Store a blob under a name.

        Returns:
            Provider ID of the stored object.

        Raises:
            StorageUploadError: If the upload fails.
        """
        ...

    def upload_file(self, local_path: Path, name: str) -> str:
        """Store the contents of a local file under a name."""
        ...

    def download(self, name: str) -> bytes:
        """Fetch a blob.

        Raises:
            StorageDownloadError: If the name cannot be resolved or fetched.
        """
        ...

    def download_file(self, name: str, local_path: Path) -> None:
        """Fetch a blob into a local file."""
        ...

    def delete(self, name: str) -> bool:
        """Delete a blob.

        Returns:
            True if deleted, False on any failure. Never raises.
        """
        ...

    def rename(self, old_name: str, new_name: str) -> None:
        """Rename a blob.

        Raises:
            StorageRenameError: If the rename fails.
        """
        ...

    def list(self, kind: RemoteFileKind) -> dict[str, object]:
        """List blobs of one kind, keyed by name.

        Raises:
            StorageListError: If the listing fails.
        """
        ...

    def probe_exists(self) -> bool:
        """Check whether the storage target exists."""
        ...

    def probe_writable(self) -> bool:
        """Check whether the storage target accepts writes."""
        ...

    def probe_creatable(self) -> bool:
        """Check whether the storage target could be created."""
        ...

    def probe_repo_marker(self) -> bool:
        """Check whether exactly one repository marker exists."""
        ...
