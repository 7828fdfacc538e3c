"""JSON-file-backed key-value store."""

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from photo_booth.domain.errors import MalformedStoredDataError
from photo_booth.services.storage import KeyValueStore, check_capacity


@dataclass
class FileKeyValueStore(KeyValueStore):
    """Key-value store persisted as a single JSON document on disk."""

    path: Path
    limit_bytes: int
    _entries: dict[str, str]

    def __init__(self, path: Path | str, limit_bytes: int) -> None:
        self.path = Path(path)
        self.limit_bytes = limit_bytes
        self._entries = _read_entries(self.path)

    def get(self, key: str) -> str | None:
        """Return the stored value, if present."""
        return self._entries.get(key)

    def set(self, key: str, value: str) -> None:
        """Store a value, rewriting the file atomically."""
        check_capacity(self._entries, key, value, self.limit_bytes)
        updated = dict(self._entries)
        updated[key] = value
        self._write(updated)

    def remove(self, key: str) -> None:
        """Remove a key, rewriting the file if it was present."""
        if key not in self._entries:
            return
        updated = dict(self._entries)
        del updated[key]
        self._write(updated)

    def items(self) -> list[tuple[str, str]]:
        """Return all stored entries."""
        return list(self._entries.items())

    def _write(self, entries: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(entries, handle)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        self._entries = entries


def _read_entries(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise MalformedStoredDataError(str(path), str(exc)) from exc
    if not isinstance(payload, dict) or not all(
        isinstance(value, str) for value in payload.values()
    ):
        raise MalformedStoredDataError(str(path), "expected a map of strings")
    return payload
