"""Construction of configured storage instances."""

from __future__ import annotations

import logging

import httpx

from photoblob.core.config import Settings, get_settings
from photoblob.services.flickr_client import FlickrClient
from photoblob.services.storage import FlickrPhotoStorage, FlickrStorageSettings

logger = logging.getLogger(__name__)


def create_photo_storage(
    settings: Settings | None = None,
    auth: httpx.Auth | None = None,
) -> FlickrPhotoStorage:
    """Build Flickr storage from application settings.

    The returned storage is not connected; use it as a context manager or
    call ``connect()``.

    Args:
        settings: Application settings; loaded from the environment if omitted.
        auth: Request signer holding the user's OAuth token.

    Returns:
        Storage bound to the configured album.

    Raises:
        RuntimeError: If Flickr is not configured.
    """
    settings = settings or get_settings()
    if not settings.flickr_configured:
        raise RuntimeError("Flickr storage not configured")

    client = FlickrClient(settings, auth=auth)
    storage_settings = FlickrStorageSettings(
        album_id=settings.flickr_album_id,
        page_size=settings.flickr_page_size,
        scratch_dir=settings.scratch_dir,
    )

    logger.info(f"Flickr storage configured for album {settings.flickr_album_id}")
    return FlickrPhotoStorage(storage_settings, client)
