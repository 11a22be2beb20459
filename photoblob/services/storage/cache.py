"""In-memory directory cache of logical file names to photos."""

from __future__ import annotations

from .schemas import Photo


class PhotoCache:
    """Maps logical file names to the photos that hold them.

    Never authoritative: entries may be stale or missing. Owned by a single
    storage instance and not synchronized; callers serialize access.
    """

    def __init__(self) -> None:
        self._photos: dict[str, Photo] = {}

    def __len__(self) -> int:
        return len(self._photos)

    def __contains__(self, name: object) -> bool:
        return name in self._photos

    def get(self, name: str) -> Photo | None:
        """Look up a photo by logical name."""
        return self._photos.get(name)

    def put(self, name: str, photo: Photo) -> None:
        """Record a photo, replacing any previous entry for the name."""
        self._photos[name] = photo

    def invalidate(self, name: str) -> Photo | None:
        """Drop the entry for a name, returning it if present."""
        return self._photos.pop(name, None)

    def move(self, old_name: str, new_name: str, photo: Photo) -> None:
        """Re-key an entry after a rename."""
        self._photos.pop(old_name, None)
        self._photos[new_name] = photo

    def clear(self) -> None:
        """Drop all entries."""
        self._photos.clear()
