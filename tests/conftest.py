"""Pytest configuration and shared fixtures."""

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from photoblob.core.config import Settings
from photoblob.core.enums import PhotoSizeLabel
from photoblob.services.flickr_client import FlickrAPIError, FlickrClient
from photoblob.services.storage import (
    AlbumInfo,
    FlickrPhotoStorage,
    FlickrStorageSettings,
    Photo,
)

ALBUM_ID = "72157600000000001"


class FakePhotoHost:
    """In-memory photo host holding a single album."""

    def __init__(self, album_id: str = ALBUM_ID) -> None:
        self.album_id = album_id
        self.images: dict[str, bytes] = {}
        self.titles: dict[str, str] = {}
        self.album: list[str] = []
        self.uploads: list[dict] = []
        self.list_calls: list[int] = []
        self._next_id = 1000

    def connect(self) -> None:
        pass

    def close(self) -> None:
        pass

    def upload_image(self, data: bytes, *, filename: str, title: str, content_type: str) -> str:
        photo_id = str(self._next_id)
        self._next_id += 1
        self.images[photo_id] = data
        self.titles[photo_id] = title
        self.uploads.append(
            {"data": data, "filename": filename, "title": title, "content_type": content_type}
        )
        return photo_id

    def fetch_image(self, photo_id: str, size: PhotoSizeLabel) -> Iterator[bytes]:
        if photo_id not in self.images:
            raise FlickrAPIError(f"Photo {photo_id} not found", code="1")
        data = self.images[photo_id]
        for offset in range(0, len(data), 512):
            yield data[offset : offset + 512]

    def delete_photo(self, photo_id: str) -> None:
        if photo_id not in self.images:
            raise FlickrAPIError(f"Photo {photo_id} not found", code="1")
        del self.images[photo_id]
        del self.titles[photo_id]
        self.album.remove(photo_id)

    def set_photo_title(self, photo_id: str, title: str) -> None:
        if photo_id not in self.titles:
            raise FlickrAPIError(f"Photo {photo_id} not found", code="1")
        self.titles[photo_id] = title

    def list_album_photos(self, album_id: str, *, per_page: int, page: int) -> list[Photo]:
        self.list_calls.append(page)
        ids = self.album[(page - 1) * per_page : page * per_page]
        return [Photo(id=photo_id, title=self.titles[photo_id]) for photo_id in ids]

    def get_album_info(self, album_id: str) -> AlbumInfo:
        if album_id != self.album_id:
            raise FlickrAPIError("Photoset not found", code="1")
        return AlbumInfo(id=album_id, title="sync", photo_count=len(self.album))

    def add_photo_to_album(self, album_id: str, photo_id: str) -> None:
        self.album.append(photo_id)


@pytest.fixture
def settings() -> Settings:
    """Provide test settings."""
    return Settings(
        flickr_api_key="test_key",
        flickr_api_secret="test_secret",
        flickr_album_id=ALBUM_ID,
        debug=True,
    )


@pytest.fixture
def storage_settings(tmp_path: Path) -> FlickrStorageSettings:
    """Create storage settings with a private scratch directory."""
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    return FlickrStorageSettings(album_id=ALBUM_ID, page_size=1000, scratch_dir=scratch)


@pytest.fixture
def fake_host() -> FakePhotoHost:
    """Create an empty in-memory photo host."""
    return FakePhotoHost()


@pytest.fixture
def storage(storage_settings: FlickrStorageSettings, fake_host: FakePhotoHost) -> FlickrPhotoStorage:
    """Create storage backed by the fake host."""
    return FlickrPhotoStorage(storage_settings, fake_host)


@pytest.fixture
def mock_client() -> MagicMock:
    """Create mock Flickr client."""
    return MagicMock(spec=FlickrClient)


@pytest.fixture
def mock_storage(
    storage_settings: FlickrStorageSettings,
    mock_client: MagicMock,
) -> FlickrPhotoStorage:
    """Create storage backed by a mock client."""
    return FlickrPhotoStorage(storage_settings, mock_client)
