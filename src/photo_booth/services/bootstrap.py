"""One-time hydration of kiosk state from the key-value store."""

import logging
from dataclasses import dataclass

from photo_booth.domain.models import DEFAULT_LOCATIONS
from photo_booth.domain.state import StoredState
from photo_booth.services.serialization import (
    dumps_locations,
    dumps_sessions,
    loads_locations,
    loads_sessions,
    loads_user,
    loads_users,
)
from photo_booth.services.storage import (
    LOCATIONS_KEY,
    SESSIONS_KEY,
    USER_KEY,
    USERS_KEY,
    KeyValueStore,
)

_logger = logging.getLogger(__name__)


@dataclass
class BootstrapLoader:
    """Reads stored state at startup and seeds defaults on first run."""

    kv: KeyValueStore

    def load(self) -> StoredState:
        """Return the stored state; raises MalformedStoredDataError on bad data."""
        raw_user = self.kv.get(USER_KEY)
        current_user = loads_user(USER_KEY, raw_user) if raw_user else None

        raw_users = self.kv.get(USERS_KEY)
        users = loads_users(USERS_KEY, raw_users) if raw_users else []

        raw_sessions = self.kv.get(SESSIONS_KEY)
        if raw_sessions is None:
            sessions = []
            self.kv.set(SESSIONS_KEY, dumps_sessions(sessions))
        else:
            sessions = loads_sessions(SESSIONS_KEY, raw_sessions)

        raw_locations = self.kv.get(LOCATIONS_KEY)
        locations = (
            loads_locations(LOCATIONS_KEY, raw_locations) if raw_locations else []
        )
        if not locations:
            locations = list(DEFAULT_LOCATIONS)
            self.kv.set(LOCATIONS_KEY, dumps_locations(locations))
            _logger.info("Seeded %s default locations", len(locations))

        _logger.info(
            "Loaded %s sessions, %s locations, %s users",
            len(sessions),
            len(locations),
            len(users),
        )
        return StoredState(
            current_user=current_user,
            users=users,
            sessions=sessions,
            locations=locations,
        )
