"""Tests for the Flickr HTTP client."""

from collections.abc import Callable
from urllib.parse import parse_qs

import httpx
import pytest

from photoblob.core.config import Settings
from photoblob.core.enums import PhotoSizeLabel
from photoblob.services.flickr_client import (
    FlickrAPIError,
    FlickrClient,
    FlickrConnectionError,
)
from photoblob.services.storage import PhotoHostClient

Handler = Callable[[httpx.Request], httpx.Response]


def _ok(**body: object) -> httpx.Response:
    return httpx.Response(200, json={**body, "stat": "ok"})


def _params(request: httpx.Request) -> dict[str, str]:
    """Return REST parameters from the query string or form body."""
    if request.method == "GET":
        return dict(request.url.params)
    request.read()
    return {key: values[0] for key, values in parse_qs(request.content.decode()).items()}


def _size(label: str, width: int, height: int, name: str) -> dict[str, object]:
    return {
        "label": label,
        "width": str(width),
        "height": str(height),
        "source": f"https://live.staticflickr.com/{name}.png",
    }


@pytest.fixture
def make_client(settings: Settings) -> Callable[[Handler], FlickrClient]:
    """Build connected clients over a mock transport."""

    def _make(handler: Handler) -> FlickrClient:
        client = FlickrClient(settings, transport=httpx.MockTransport(handler))
        client.connect()
        return client

    return _make


class TestLifecycle:
    """Tests for client lifecycle."""

    def test_implements_protocol(self, settings: Settings) -> None:
        """Test the client satisfies the photo host protocol."""
        assert isinstance(FlickrClient(settings), PhotoHostClient)

    def test_not_connected(self, settings: Settings) -> None:
        """Test requests before connect fail."""
        client = FlickrClient(settings)

        with pytest.raises(FlickrConnectionError, match="not connected"):
            client.delete_photo("1")

    def test_context_manager(self, settings: Settings) -> None:
        """Test the context manager opens and closes the connection."""
        with FlickrClient(settings) as client:
            assert isinstance(client.client, httpx.Client)

        with pytest.raises(FlickrConnectionError):
            _ = client.client


class TestRestCalls:
    """Tests for REST method calls."""

    def test_list_album_photos(self, make_client: Callable[[Handler], FlickrClient]) -> None:
        """Test listing sends paging parameters and parses photos."""
        seen: list[dict[str, str]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(_params(request))
            return _ok(
                photoset={
                    "id": "72157600000000001",
                    "page": 2,
                    "photo": [
                        {
                            "id": "111",
                            "secret": "abc",
                            "server": "65535",
                            "farm": 66,
                            "title": "master",
                            "isprimary": "0",
                            "originalformat": "png",
                        },
                        {"id": "112", "title": "syncany", "secret": "def", "server": "65535"},
                    ],
                }
            )

        client = make_client(handler)
        photos = client.list_album_photos("72157600000000001", per_page=1000, page=2)

        assert [p.id for p in photos] == ["111", "112"]
        assert photos[0].title == "master"
        assert photos[0].original_format == "png"
        assert photos[1].original_format is None

        params = seen[0]
        assert params["method"] == "flickr.photosets.getPhotos"
        assert params["photoset_id"] == "72157600000000001"
        assert params["per_page"] == "1000"
        assert params["page"] == "2"
        assert params["api_key"] == "test_key"
        assert params["format"] == "json"
        assert params["nojsoncallback"] == "1"

    def test_get_album_info(self, make_client: Callable[[Handler], FlickrClient]) -> None:
        """Test album metadata parsing."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert _params(request)["method"] == "flickr.photosets.getInfo"
            return _ok(photoset={"id": "5", "photos": "12", "title": {"_content": "sync"}})

        info = make_client(handler).get_album_info("5")

        assert info.id == "5"
        assert info.title == "sync"
        assert info.photo_count == 12

    def test_album_info_plain_title(
        self, make_client: Callable[[Handler], FlickrClient]
    ) -> None:
        """Test an album title that is not an object raises an API error."""

        def handler(request: httpx.Request) -> httpx.Response:
            return _ok(photoset={"id": "5", "photos": "12", "title": "sync"})

        with pytest.raises(FlickrAPIError, match="Unexpected getInfo"):
            make_client(handler).get_album_info("5")

    def test_api_failure(self, make_client: Callable[[Handler], FlickrClient]) -> None:
        """Test stat=fail responses raise API errors with the code."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json={"stat": "fail", "code": 1, "message": "Photoset not found"}
            )

        with pytest.raises(FlickrAPIError, match="Photoset not found") as exc_info:
            make_client(handler).get_album_info("5")

        assert exc_info.value.code == "1"

    def test_http_error(self, make_client: Callable[[Handler], FlickrClient]) -> None:
        """Test non-200 responses raise API errors with the status."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="Service Unavailable")

        with pytest.raises(FlickrAPIError) as exc_info:
            make_client(handler).delete_photo("1")

        assert exc_info.value.status_code == 503

    def test_invalid_json(self, make_client: Callable[[Handler], FlickrClient]) -> None:
        """Test non-JSON bodies raise API errors."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>oops</html>")

        with pytest.raises(FlickrAPIError, match="invalid JSON"):
            make_client(handler).delete_photo("1")

    def test_connection_error(self, make_client: Callable[[Handler], FlickrClient]) -> None:
        """Test transport errors raise connection errors."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(FlickrConnectionError, match="connection refused"):
            make_client(handler).list_album_photos("5", per_page=10, page=1)

    def test_unexpected_listing_shape(
        self, make_client: Callable[[Handler], FlickrClient]
    ) -> None:
        """Test a listing without photos raises an API error."""

        def handler(request: httpx.Request) -> httpx.Response:
            return _ok(photoset={"id": "5"})

        with pytest.raises(FlickrAPIError, match="Unexpected"):
            make_client(handler).list_album_photos("5", per_page=10, page=1)

    @pytest.mark.parametrize(
        ("call", "method", "expected"),
        [
            (lambda c: c.delete_photo("9"), "flickr.photos.delete", {"photo_id": "9"}),
            (
                lambda c: c.set_photo_title("9", "master"),
                "flickr.photos.setMeta",
                {"photo_id": "9", "title": "master"},
            ),
            (
                lambda c: c.add_photo_to_album("5", "9"),
                "flickr.photosets.addPhoto",
                {"photoset_id": "5", "photo_id": "9"},
            ),
        ],
    )
    def test_write_methods_post_form(
        self,
        make_client: Callable[[Handler], FlickrClient],
        call: Callable[[FlickrClient], None],
        method: str,
        expected: dict[str, str],
    ) -> None:
        """Test write methods POST their arguments as form data."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _ok()

        call(make_client(handler))

        assert seen[0].method == "POST"
        params = _params(seen[0])
        assert params["method"] == method
        for key, value in expected.items():
            assert params[key] == value


class TestUpload:
    """Tests for image uploads."""

    def test_upload(self, make_client: Callable[[Handler], FlickrClient]) -> None:
        """Test multipart upload and photo ID parsing."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            request.read()
            seen.append(request)
            return httpx.Response(
                200,
                text='<?xml version="1.0" encoding="utf-8" ?>\n'
                '<rsp stat="ok">\n<photoid>51234567890</photoid>\n</rsp>',
            )

        photo_id = make_client(handler).upload_image(
            b"\x89PNG fake",
            filename="doc1.png",
            title="doc1",
            content_type="image/png",
        )

        assert photo_id == "51234567890"
        request = seen[0]
        assert request.url.host == "up.flickr.com"
        assert b'name="title"' in request.content
        assert b"doc1" in request.content
        assert b'filename="doc1.png"' in request.content
        assert b"Content-Type: image/png" in request.content
        assert b"\x89PNG fake" in request.content

    def test_upload_rejected(self, make_client: Callable[[Handler], FlickrClient]) -> None:
        """Test failed uploads raise API errors with the Flickr code."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                text='<rsp stat="fail"><err code="6" msg="Filesize was too large" /></rsp>',
            )

        with pytest.raises(FlickrAPIError, match="too large") as exc_info:
            make_client(handler).upload_image(
                b"x", filename="a.png", title="a", content_type="image/png"
            )

        assert exc_info.value.code == "6"

    def test_upload_invalid_xml(self, make_client: Callable[[Handler], FlickrClient]) -> None:
        """Test garbage upload responses raise API errors."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="not xml at all <")

        with pytest.raises(FlickrAPIError, match="invalid XML"):
            make_client(handler).upload_image(
                b"x", filename="a.png", title="a", content_type="image/png"
            )


class TestFetchImage:
    """Tests for rendition downloads."""

    @staticmethod
    def _handler(sizes: list[dict[str, object]], fetched: list[str]) -> Handler:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "live.staticflickr.com":
                fetched.append(str(request.url))
                return httpx.Response(200, content=b"image-bytes:" + request.url.path.encode())
            assert _params(request)["method"] == "flickr.photos.getSizes"
            return _ok(sizes={"canblog": 0, "size": sizes})

        return handler

    def test_fetch_original(self, make_client: Callable[[Handler], FlickrClient]) -> None:
        """Test the requested rendition is streamed."""
        fetched: list[str] = []
        sizes = [
            _size("Square", 75, 75, "sq"),
            _size("Original", 17, 17, "o"),
        ]

        data = b"".join(
            make_client(self._handler(sizes, fetched)).fetch_image("1", PhotoSizeLabel.ORIGINAL)
        )

        assert data == b"image-bytes:/o.png"
        assert fetched == ["https://live.staticflickr.com/o.png"]

    def test_fallback_to_largest(self, make_client: Callable[[Handler], FlickrClient]) -> None:
        """Test the largest rendition is used when the label is missing."""
        fetched: list[str] = []
        sizes = [
            _size("Square", 75, 75, "sq"),
            _size("Large", 1024, 768, "l"),
            _size("Medium", 500, 375, "m"),
        ]

        data = b"".join(
            make_client(self._handler(sizes, fetched)).fetch_image("1", PhotoSizeLabel.ORIGINAL)
        )

        assert data == b"image-bytes:/l.png"

    def test_no_renditions(self, make_client: Callable[[Handler], FlickrClient]) -> None:
        """Test a photo without renditions raises an API error."""
        client = make_client(self._handler([], []))

        with pytest.raises(FlickrAPIError, match="no renditions"):
            b"".join(client.fetch_image("1", PhotoSizeLabel.ORIGINAL))

    def test_fetch_http_error(self, make_client: Callable[[Handler], FlickrClient]) -> None:
        """Test a failing image request raises an API error."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "live.staticflickr.com":
                return httpx.Response(404)
            return _ok(
                sizes={
                    "size": [
                        {
                            "label": "Original",
                            "width": 17,
                            "height": 17,
                            "source": "https://live.staticflickr.com/o.png",
                        }
                    ]
                }
            )

        with pytest.raises(FlickrAPIError) as exc_info:
            b"".join(make_client(handler).fetch_image("1", PhotoSizeLabel.ORIGINAL))

        assert exc_info.value.status_code == 404

