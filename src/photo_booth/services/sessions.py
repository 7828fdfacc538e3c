"""Authoritative in-memory record of kiosk sessions and locations."""

import logging
import random
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import UTC, datetime, timedelta

from photo_booth.domain.errors import QuotaExceededError
from photo_booth.domain.models import Location
from photo_booth.domain.sessions import (
    STATUS_COMPLETED,
    STATUS_PENDING,
    STATUS_READY_FOR_OPERATOR,
    Bundle,
    Photo,
    PhotoDraft,
    Session,
)
from photo_booth.services import retention
from photo_booth.services.persistence import DegradationLadder, PersistenceState
from photo_booth.services.serialization import dumps_locations, ensure_utc
from photo_booth.services.storage import LOCATIONS_KEY, SESSIONS_KEY, KeyValueStore

_logger = logging.getLogger(__name__)

_PHOTO_FIELDS = {"url", "edited", "timestamp", "last_edited"}


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class SessionStore:
    """Owns the session collection and writes it through a degradation ladder.

    Every mutation is applied in memory first and is visible to readers
    whether or not the write to the key-value store succeeds. Operations on an
    unknown id return ``False`` or ``None`` rather than raising.

    Only the id of the current session is kept; ``current_session`` looks the
    record up in the collection on every read.
    """

    def __init__(  # noqa: PLR0913
        self,
        kv: KeyValueStore,
        sessions: Iterable[Session] = (),
        locations: Iterable[Location] = (),
        ladder: DegradationLadder | None = None,
        clock: Callable[[], datetime] = _utcnow,
        retention_period: timedelta = retention.DEFAULT_RETENTION,
        on_storage_full: Callable[[], None] | None = None,
    ) -> None:
        self.kv = kv
        self.ladder = ladder or DegradationLadder()
        self.clock = clock
        self.retention_period = retention_period
        self.on_storage_full = on_storage_full
        self._sessions: list[Session] = list(sessions)
        self._locations: list[Location] = list(locations)
        self._current_session_id: str | None = None
        self._persistence = PersistenceState()

    @property
    def sessions(self) -> list[Session]:
        """Return every session, including soft-deleted ones."""
        return list(self._sessions)

    @property
    def locations(self) -> list[Location]:
        return list(self._locations)

    @property
    def current_session(self) -> Session | None:
        if self._current_session_id is None:
            return None
        return self.get_session(self._current_session_id)

    @property
    def persistence_state(self) -> PersistenceState:
        return self._persistence

    @property
    def storage_full(self) -> bool:
        return self._persistence.suspended

    def get_session(self, session_id: str) -> Session | None:
        for session in self._sessions:
            if session.id == session_id:
                return session
        return None

    def active_sessions(self) -> list[Session]:
        """Return sessions not marked deleted."""
        return retention.exclude_deleted(self._sessions)

    def recently_deleted(self) -> list[Session]:
        """Return soft-deleted sessions that can still be recovered."""
        return retention.only_deleted(self._sessions)

    def operator_queue(self) -> list[Session]:
        """Return live sessions waiting for an operator to edit them."""
        return [
            session
            for session in retention.exclude_deleted(self._sessions)
            if session.status == STATUS_READY_FOR_OPERATOR
        ]

    def set_current_session(self, session_id: str | None) -> bool:
        """Point the current session at ``session_id``, or clear it with None."""
        if session_id is None:
            self._current_session_id = None
            return True
        if self.get_session(session_id) is None:
            return False
        self._current_session_id = session_id
        return True

    def create_session(
        self, name: str, location: str, session_key: str | None = None
    ) -> Session:
        """Create a pending session and make it current."""
        now = self.clock()
        session = Session(
            id=self._new_session_id(now),
            name=name,
            location=location,
            date=now,
            status=STATUS_PENDING,
            session_key=session_key or _new_session_key(),
        )
        self._sessions.append(session)
        self._current_session_id = session.id
        _logger.info("Created session %s at %s", session.id, location)
        self._persist_sessions()
        return session

    def delete_session(self, session_id: str) -> bool:
        """Soft-delete a session so it can be recovered later."""
        found = self._update_session(session_id, lambda s: replace(s, deleted=True))
        if found and self._current_session_id == session_id:
            self._current_session_id = None
        return found

    def recover_session(self, session_id: str) -> bool:
        """Clear the soft-delete marker on a session."""
        session = self.get_session(session_id)
        if session is None or not session.deleted:
            return False
        return self._update_session(session_id, lambda s: replace(s, deleted=False))

    def select_bundle(self, bundle: Bundle) -> bool:
        """Attach a bundle to the current session."""
        if self._current_session_id is None:
            return False
        return self._update_session(
            self._current_session_id, lambda s: replace(s, bundle=bundle)
        )

    def add_photo(self, session_id: str, draft: PhotoDraft) -> Photo | None:
        """Append a photo to a session and return it with its assigned id."""
        session = self.get_session(session_id)
        if session is None:
            return None
        now = self.clock()
        photo = Photo(
            id=_new_photo_id(now, {p.id for p in session.photos}),
            url=draft.url,
            edited=draft.edited,
            timestamp=draft.timestamp or now,
        )
        self._update_session(
            session_id, lambda s: replace(s, photos=(*s.photos, photo))
        )
        return photo

    def update_photo(self, session_id: str, photo_id: str, **updates: object) -> bool:
        """Shallow-merge ``updates`` into a photo."""
        unknown = set(updates) - _PHOTO_FIELDS
        if unknown:
            raise TypeError(f"Unknown photo fields: {', '.join(sorted(unknown))}")
        session = self.get_session(session_id)
        if session is None or session.find_photo(photo_id) is None:
            return False

        def apply(current: Session) -> Session:
            photos = tuple(
                replace(photo, **updates) if photo.id == photo_id else photo
                for photo in current.photos
            )
            return replace(current, photos=photos)

        return self._update_session(session_id, apply)

    def delete_photo(self, session_id: str, photo_id: str) -> bool:
        """Remove a photo from a session."""
        session = self.get_session(session_id)
        if session is None or session.find_photo(photo_id) is None:
            return False
        return self._update_session(
            session_id,
            lambda s: replace(
                s, photos=tuple(p for p in s.photos if p.id != photo_id)
            ),
        )

    def hand_off_to_operator(self, session_id: str) -> bool:
        return self.set_session_status(session_id, STATUS_READY_FOR_OPERATOR)

    def complete_session(self, session_id: str) -> bool:
        return self.set_session_status(session_id, STATUS_COMPLETED)

    def set_session_status(self, session_id: str, status: str) -> bool:
        """Set a session status; transitions are not validated."""
        return self._update_session(session_id, lambda s: replace(s, status=status))

    def purge_session(self, session_id: str) -> bool:
        """Permanently remove one session, deleted or not."""
        retained = retention.exclude_id(self._sessions, session_id)
        return self._replace_sessions(retained) > 0

    def delete_all_sessions(self) -> int:
        removed = len(self._sessions)
        self._replace_sessions([])
        return removed

    def delete_sessions_by_date_range(self, start: datetime, end: datetime) -> int:
        """Remove sessions created within ``[start, end]``; naive bounds are UTC."""
        return self._replace_sessions(
            retention.by_date_range(
                self._sessions, ensure_utc(start), ensure_utc(end)
            )
        )

    def delete_sessions_by_month(self, month: int, year: int) -> int:
        return self._replace_sessions(retention.by_month(self._sessions, month, year))

    def auto_delete_old_sessions(self) -> int:
        """Remove sessions older than the retention period."""
        return self._replace_sessions(
            retention.by_max_age(self._sessions, self.retention_period, self.clock())
        )

    def clear_old_sessions(self, hours_to_keep: int = 24) -> int:
        """Remove terminal sessions older than ``hours_to_keep``."""
        return self._replace_sessions(
            retention.keep_active_or_recent(
                self._sessions, timedelta(hours=hours_to_keep), self.clock()
            )
        )

    def clear_deleted_sessions(self) -> int:
        return self._replace_sessions(retention.exclude_deleted(self._sessions))

    def add_location(self, name: str) -> Location:
        existing = {location.id for location in self._locations}
        location = Location(id=_unique_id("loc", self.clock(), existing), name=name)
        self._locations.append(location)
        self._persist_locations()
        return location

    def toggle_location(self, location_id: str) -> bool:
        """Flip whether a location is offered for new sessions."""
        for index, location in enumerate(self._locations):
            if location.id == location_id:
                self._locations[index] = replace(
                    location, is_active=not location.is_active
                )
                self._persist_locations()
                return True
        return False

    def resume_persistence(self) -> None:
        """Clear the storage-full flag and write the collection again."""
        if self._persistence.suspended:
            _logger.info("Resuming session persistence")
            self._persistence = PersistenceState()
        self._persist_sessions()

    def flush(self) -> None:
        """Write sessions and locations; used on teardown."""
        self._persist_sessions()
        self._persist_locations()

    def _update_session(
        self, session_id: str, apply: Callable[[Session], Session]
    ) -> bool:
        for index, session in enumerate(self._sessions):
            if session.id == session_id:
                self._sessions[index] = apply(session)
                self._persist_sessions()
                return True
        return False

    def _replace_sessions(self, retained: list[Session]) -> int:
        removed = len(self._sessions) - len(retained)
        self._sessions = retained
        if self.current_session is None:
            self._current_session_id = None
        if removed:
            _logger.info("Removed %s sessions", removed)
            self.resume_persistence()
        return removed

    def _persist_sessions(self) -> None:
        if self._persistence.suspended:
            return
        result = self.ladder.write(
            self.kv, SESSIONS_KEY, self._sessions, self.clock()
        )
        self._persistence = result.state
        if result.reduced and result.persisted is not None:
            self._sessions = list(result.persisted)
            if self.current_session is None:
                self._current_session_id = None
        if result.state.suspended:
            _logger.warning(
                "Storage is full; session writes suspended until sessions are deleted"
            )
            if self.on_storage_full is not None:
                self.on_storage_full()

    def _persist_locations(self) -> None:
        try:
            self.kv.set(LOCATIONS_KEY, dumps_locations(self._locations))
        except QuotaExceededError:
            _logger.warning("Failed to persist locations", exc_info=True)

    def _new_session_id(self, now: datetime) -> str:
        return _unique_id("session", now, {s.id for s in self._sessions})


def _unique_id(prefix: str, now: datetime, existing: set[str]) -> str:
    """Build a time-based id, bumping the timestamp on collision."""
    millis = int(now.timestamp() * 1000)
    while f"{prefix}_{millis}" in existing:
        millis += 1
    return f"{prefix}_{millis}"


def _new_photo_id(now: datetime, existing: set[str]) -> str:
    while True:
        suffix = "".join(random.choices("abcdefghijklmnopqrstuvwxyz0123456789", k=9))
        photo_id = f"photo_{int(now.timestamp() * 1000)}_{suffix}"
        if photo_id not in existing:
            return photo_id


def _new_session_key() -> str:
    """Return a 5-digit token shown to the operator."""
    return str(random.randint(10000, 99999))
