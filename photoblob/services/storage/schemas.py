"""Storage service DTOs using msgspec."""

from __future__ import annotations

import msgspec

from photoblob.core.enums import PhotoSizeLabel, RemoteFileKind

PNG_CONTENT_TYPE = "image/png"
PNG_EXTENSION = "png"


class Photo(msgspec.Struct, kw_only=True, frozen=True):
    """A photo on the host, as returned by an album listing."""

    id: str
    title: str
    secret: str | None = None
    server: str | None = None
    original_format: str | None = msgspec.field(default=None, name="originalformat")


class PhotoSize(msgspec.Struct, kw_only=True, frozen=True):
    """One rendition of a photo."""

    label: str
    width: int
    height: int
    source: str  # Direct URL to the image bytes

    @property
    def pixels(self) -> int:
        """Total pixel count of the rendition."""
        return self.width * self.height

    @property
    def is_original(self) -> bool:
        """Whether this is the unmodified uploaded file."""
        return self.label == PhotoSizeLabel.ORIGINAL.value


class AlbumInfo(msgspec.Struct, kw_only=True, frozen=True):
    """Album (photoset) metadata."""

    id: str
    title: str
    photo_count: int = 0


class RemoteFileName(msgspec.Struct, kw_only=True, frozen=True):
    """A logical file name parsed into its kind."""

    kind: RemoteFileKind
    name: str

    @classmethod
    def parse(cls, name: str) -> RemoteFileName:
        """Parse a photo title into a logical file name.

        Raises:
            ValueError: If the title is not a valid remote file name.
        """
        return cls(kind=RemoteFileKind.from_name(name), name=name)
