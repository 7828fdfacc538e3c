"""Snapshot of everything kept in durable storage."""

from dataclasses import dataclass

from photo_booth.domain.models import Location, StoredUser, User
from photo_booth.domain.sessions import Session


@dataclass(frozen=True)
class StoredState:
    """State hydrated from the key-value store at startup."""

    current_user: User | None
    users: list[StoredUser]
    sessions: list[Session]
    locations: list[Location]
