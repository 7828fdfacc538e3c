"""Domain models for photo sessions."""

from dataclasses import dataclass
from datetime import datetime

STATUS_PENDING = "pending"
STATUS_READY_FOR_OPERATOR = "ready-for-operator"
STATUS_COMPLETED = "completed"

LEGACY_STATUS_COMPLETED = "Completed"

TERMINAL_STATUSES = {STATUS_COMPLETED, LEGACY_STATUS_COMPLETED}

UNLIMITED = "unlimited"
_UNLIMITED_PHOTOS = 999


@dataclass(frozen=True)
class Bundle:
    """A purchased package bounding the photos of a session."""

    name: str
    count: int | str
    price: float

    @property
    def max_photos(self) -> int:
        """Return the photo ceiling; the unlimited bundle caps at 999."""
        if self.count == UNLIMITED:
            return _UNLIMITED_PHOTOS
        return int(self.count)


@dataclass(frozen=True)
class Photo:
    """A photo owned by exactly one session."""

    id: str
    url: str
    edited: bool
    timestamp: datetime
    last_edited: datetime | None = None


@dataclass(frozen=True)
class PhotoDraft:
    """Photo data supplied by an upload, before the store assigns an id."""

    url: str
    edited: bool = False
    timestamp: datetime | None = None


@dataclass(frozen=True)
class Session:
    """One customer's capture engagement at a location."""

    id: str
    name: str
    location: str
    date: datetime
    status: str
    session_key: str
    photos: tuple[Photo, ...] = ()
    bundle: Bundle | None = None
    deleted: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def find_photo(self, photo_id: str) -> Photo | None:
        for photo in self.photos:
            if photo.id == photo_id:
                return photo
        return None
