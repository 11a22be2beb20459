"""Flickr HTTP client for the REST and upload APIs."""

import logging
import xml.etree.ElementTree as ET
from collections.abc import Iterator
from typing import Any

import httpx
import msgspec

from photoblob.core.config import Settings
from photoblob.core.enums import PhotoSizeLabel
from photoblob.services.storage.schemas import AlbumInfo, Photo, PhotoSize

logger = logging.getLogger(__name__)


class FlickrClientError(Exception):
    """Base exception for Flickr client errors."""

    pass


class FlickrConnectionError(FlickrClientError):
    """Raised when connection to Flickr fails."""

    pass


class FlickrAPIError(FlickrClientError):
    """Raised when the Flickr API returns an error."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class FlickrClient:
    """Synchronous HTTP client for the Flickr API.

    Requests are signed by the injected ``httpx.Auth``; obtaining the
    OAuth token behind it is up to the caller.

    Handles:
    - Photo uploads
    - Photoset (album) listing and membership
    - Photo title updates and deletion
    - Streaming rendition downloads
    """

    def __init__(
        self,
        settings: Settings,
        auth: httpx.Auth | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_key = settings.flickr_api_key
        self._rest_url = settings.flickr_rest_url
        self._upload_url = settings.flickr_upload_url
        self._timeout = httpx.Timeout(
            settings.flickr_timeout_seconds,
            connect=settings.flickr_connect_timeout_seconds,
        )
        self._auth = auth
        self._transport = transport
        self._client: httpx.Client | None = None

    def __enter__(self) -> "FlickrClient":
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()

    def connect(self) -> None:
        """Initialize HTTP client connection."""
        if self._client is None:
            self._client = httpx.Client(
                auth=self._auth,
                timeout=self._timeout,
                transport=self._transport,
                follow_redirects=True,
            )
            logger.info(f"Flickr client connected to {self._rest_url}")

    def close(self) -> None:
        """Close HTTP client connection."""
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("Flickr client disconnected")

    @property
    def client(self) -> httpx.Client:
        """Get HTTP client, raising if not connected."""
        if self._client is None:
            raise FlickrConnectionError("Client not connected. Call connect() first.")
        return self._client

    def _call(self, method: str, *, write: bool = False, **params: Any) -> dict[str, Any]:
        """Invoke a REST method and return the decoded JSON body.

        Args:
            method: Flickr API method name, e.g. ``flickr.photos.delete``.
            write: Send as POST form data instead of GET query.
            **params: Method arguments.

        Raises:
            FlickrAPIError: If the API reports a failure.
            FlickrConnectionError: If the request cannot be sent.
        """
        request_params = {
            "method": method,
            "api_key": self._api_key,
            "format": "json",
            "nojsoncallback": "1",
            **{key: str(value) for key, value in params.items()},
        }

        try:
            if write:
                response = self.client.post(self._rest_url, data=request_params)
            else:
                response = self.client.get(self._rest_url, params=request_params)
        except httpx.RequestError as e:
            logger.error(f"Flickr connection error calling {method}: {e}")
            raise FlickrConnectionError(f"Failed to call {method}: {e}") from e

        if response.status_code != 200:
            logger.error(f"Flickr {method} failed: {response.status_code} - {response.text}")
            raise FlickrAPIError(
                f"{method} failed: {response.text}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise FlickrAPIError(f"{method} returned invalid JSON") from e

        if payload.get("stat") != "ok":
            code = payload.get("code")
            raise FlickrAPIError(
                f"{method} failed: {payload.get('message', 'unknown error')}",
                status_code=response.status_code,
                code=str(code) if code is not None else None,
            )

        return payload

    def upload_image(
        self,
        data: bytes,
        *,
        filename: str,
        title: str,
        content_type: str,
    ) -> str:
        """Upload an image as a private, hidden photo.

        Returns:
            The new photo ID.

        Raises:
            FlickrAPIError: If the upload is rejected.
            FlickrConnectionError: If connection fails.
        """
        files = {"photo": (filename, data, content_type)}
        form = {"title": title, "is_public": "0", "hidden": "2"}

        try:
            response = self.client.post(self._upload_url, files=files, data=form)
        except httpx.RequestError as e:
            logger.error(f"Failed to upload image {filename}: {e}")
            raise FlickrConnectionError(f"Failed to upload image: {e}") from e

        if response.status_code != 200:
            raise FlickrAPIError(
                f"Image upload failed: {response.text}",
                status_code=response.status_code,
            )

        try:
            root = ET.fromstring(response.content)
        except ET.ParseError as e:
            raise FlickrAPIError(f"Upload returned invalid XML: {e}") from e

        if root.get("stat") != "ok":
            err = root.find("err")
            message = err.get("msg", "unknown error") if err is not None else "unknown error"
            raise FlickrAPIError(
                f"Image upload failed: {message}",
                status_code=response.status_code,
                code=err.get("code") if err is not None else None,
            )

        photo_id = (root.findtext("photoid") or "").strip()
        if not photo_id:
            raise FlickrAPIError("Upload response contains no photo ID")

        logger.debug(f"Image uploaded: {filename} ({len(data)} bytes) as photo {photo_id}")
        return photo_id

    def get_sizes(self, photo_id: str) -> list[PhotoSize]:
        """List the renditions available for a photo."""
        payload = self._call("flickr.photos.getSizes", photo_id=photo_id)
        try:
            return msgspec.convert(payload["sizes"]["size"], list[PhotoSize], strict=False)
        except (KeyError, TypeError, msgspec.ValidationError) as e:
            raise FlickrAPIError(f"Unexpected getSizes response for photo {photo_id}") from e

    def fetch_image(self, photo_id: str, size: PhotoSizeLabel) -> Iterator[bytes]:
        """Stream one rendition of a photo.

        Falls back to the largest rendition when ``size`` is not offered.

        Raises:
            FlickrAPIError: If no rendition exists or the download fails.
            FlickrConnectionError: If connection fails.
        """
        sizes = self.get_sizes(photo_id)
        if not sizes:
            raise FlickrAPIError(f"Photo {photo_id} has no renditions")

        chosen = next(
            (s for s in sizes if s.label == size.value),
            max(sizes, key=lambda s: s.pixels),
        )
        logger.debug(f"Fetching {chosen.label} rendition of photo {photo_id}")

        try:
            with self.client.stream("GET", chosen.source) as response:
                if response.status_code != 200:
                    raise FlickrAPIError(
                        f"Failed to get image {photo_id}",
                        status_code=response.status_code,
                    )
                yield from response.iter_bytes()
        except httpx.RequestError as e:
            logger.error(f"Failed to get image {photo_id}: {e}")
            raise FlickrConnectionError(f"Failed to get image: {e}") from e

    def delete_photo(self, photo_id: str) -> None:
        """Delete a photo."""
        self._call("flickr.photos.delete", write=True, photo_id=photo_id)

    def set_photo_title(self, photo_id: str, title: str) -> None:
        """Replace a photo's title."""
        self._call("flickr.photos.setMeta", write=True, photo_id=photo_id, title=title)

    def list_album_photos(self, album_id: str, *, per_page: int, page: int) -> list[Photo]:
        """List one page of a photoset."""
        payload = self._call(
            "flickr.photosets.getPhotos",
            photoset_id=album_id,
            per_page=per_page,
            page=page,
            extras="original_format",
        )
        try:
            return msgspec.convert(payload["photoset"]["photo"], list[Photo], strict=False)
        except (KeyError, TypeError, msgspec.ValidationError) as e:
            raise FlickrAPIError(f"Unexpected getPhotos response for album {album_id}") from e

    def get_album_info(self, album_id: str) -> AlbumInfo:
        """Fetch photoset metadata."""
        payload = self._call("flickr.photosets.getInfo", photoset_id=album_id)
        try:
            photoset = payload["photoset"]
            return AlbumInfo(
                id=str(photoset["id"]),
                title=photoset.get("title", {}).get("_content", ""),
                photo_count=int(photoset.get("photos", 0)),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise FlickrAPIError(f"Unexpected getInfo response for album {album_id}") from e

    def add_photo_to_album(self, album_id: str, photo_id: str) -> None:
        """Add a photo to a photoset."""
        self._call(
            "flickr.photosets.addPhoto",
            write=True,
            photoset_id=album_id,
            photo_id=photo_id,
        )
