import re
from enum import Enum


class RemoteFileKind(str, Enum):
    """Kinds of remote files stored by the sync system.

    Each kind is recognised by the shape of its name. Kinds are tried in
    declaration order, so GENERIC only catches names no other kind claims.
    """

    SYNCANY = "syncany"  # Repository marker, exactly one per repository
    MASTER = "master"
    DATABASE = "database"
    MULTICHUNK = "multichunk"
    ACTION = "action"
    TRANSACTION = "transaction"
    TEMP = "temp"
    GENERIC = "generic"  # Any other plain name

    @property
    def pattern(self) -> re.Pattern[str]:
        """Full-match pattern for names of this kind."""
        return _NAME_PATTERNS[self]

    @classmethod
    def from_name(cls, name: str) -> "RemoteFileKind":
        """Determine the kind of a remote file name.

        Raises:
            ValueError: If the name matches no known kind.
        """
        for kind in cls:
            if kind.pattern.fullmatch(name):
                return kind
        raise ValueError(f"Invalid remote file name: {name!r}")


_NAME_PATTERNS: dict[RemoteFileKind, re.Pattern[str]] = {
    RemoteFileKind.SYNCANY: re.compile(r"syncany"),
    RemoteFileKind.MASTER: re.compile(r"master"),
    RemoteFileKind.DATABASE: re.compile(r"database-[A-Za-z0-9]+-\d{10}"),
    RemoteFileKind.MULTICHUNK: re.compile(r"multichunk-[a-f0-9]+"),
    RemoteFileKind.ACTION: re.compile(r"action-[a-z]+-[A-Za-z0-9]+-\d+"),
    RemoteFileKind.TRANSACTION: re.compile(r"transaction-[A-Za-z0-9]+"),
    RemoteFileKind.TEMP: re.compile(r"temp-[A-Za-z0-9]+"),
    RemoteFileKind.GENERIC: re.compile(r"[A-Za-z0-9][A-Za-z0-9_-]*"),
}


class PhotoSizeLabel(str, Enum):
    """Rendition labels offered by the photo host, smallest to largest."""

    SQUARE = "Square"
    THUMBNAIL = "Thumbnail"
    SMALL = "Small"
    MEDIUM = "Medium"
    LARGE = "Large"
    ORIGINAL = "Original"
