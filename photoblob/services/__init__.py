"""Services module."""

from .flickr_client import (
    FlickrAPIError,
    FlickrClient,
    FlickrClientError,
    FlickrConnectionError,
)

__all__ = [
    "FlickrAPIError",
    "FlickrClient",
    "FlickrClientError",
    "FlickrConnectionError",
]
