"""Durable key-value storage abstractions."""

from dataclasses import dataclass
from typing import Protocol

from photo_booth.domain.errors import QuotaExceededError

USER_KEY = "photoBoothUser"
USERS_KEY = "photoBoothUsers"
SESSIONS_KEY = "photoBoothSessions"
LOCATIONS_KEY = "photoBoothLocations"


class KeyValueStore(Protocol):
    """Textual key-value store with a hard capacity limit."""

    limit_bytes: int

    def get(self, key: str) -> str | None:
        """Return the stored value, if present."""

    def set(self, key: str, value: str) -> None:
        """Store a value or raise QuotaExceededError, leaving the old value."""

    def remove(self, key: str) -> None:
        """Remove a key; missing keys are ignored."""

    def items(self) -> list[tuple[str, str]]:
        """Return all stored key/value pairs."""


def entry_size(key: str, value: str) -> int:
    """Return the bytes an entry occupies in the store."""
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


def check_capacity(
    entries: dict[str, str], key: str, value: str, limit_bytes: int
) -> None:
    """Raise QuotaExceededError if replacing ``key`` would exceed the limit."""
    used = sum(entry_size(k, v) for k, v in entries.items() if k != key)
    required = used + entry_size(key, value)
    if required > limit_bytes:
        raise QuotaExceededError(key, required, limit_bytes)


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """Process-local key-value store with a capacity limit."""

    limit_bytes: int
    _entries: dict[str, str]

    def __init__(self, limit_bytes: int = 5 * 1024 * 1024) -> None:
        self.limit_bytes = limit_bytes
        self._entries = {}

    def get(self, key: str) -> str | None:
        """Return the stored value, if present."""
        return self._entries.get(key)

    def set(self, key: str, value: str) -> None:
        """Store a value if it fits within the remaining capacity."""
        check_capacity(self._entries, key, value, self.limit_bytes)
        self._entries[key] = value

    def remove(self, key: str) -> None:
        """Remove a key if present."""
        self._entries.pop(key, None)

    def items(self) -> list[tuple[str, str]]:
        """Return all stored entries."""
        return list(self._entries.items())
