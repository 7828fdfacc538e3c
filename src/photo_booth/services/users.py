"""Advisory user sign-in for the kiosk.

Credentials are checked against a locally stored list with a plaintext
comparison. This labels who is operating the kiosk; it is not a security
boundary.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime

from photo_booth.domain.errors import QuotaExceededError
from photo_booth.domain.models import StoredUser, User
from photo_booth.services.serialization import dumps_user, dumps_users
from photo_booth.services.storage import USER_KEY, USERS_KEY, KeyValueStore

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class UserService:
    """Application service for registration, login and logout."""

    def __init__(
        self,
        kv: KeyValueStore,
        users: Iterable[StoredUser] = (),
        current_user: User | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.kv = kv
        self.clock = clock
        self._users: list[StoredUser] = list(users)
        self._current_user = current_user

    @property
    def current_user(self) -> User | None:
        return self._current_user

    @property
    def users(self) -> list[StoredUser]:
        return list(self._users)

    def login(
        self, email: str, password: str, role: str, force_login: bool = False
    ) -> bool:
        """Sign in, or with ``force_login`` adopt a synthesized identity."""
        if force_login:
            self._set_current_user(
                User(
                    id=self._new_user_id(),
                    name=email.split("@")[0] or "User",
                    email=email,
                    role=role,
                )
            )
            return True

        for user in self._users:
            if user.email == email and user.role == role:
                if user.password != password:
                    return False
                self._set_current_user(user.to_user())
                return True
        return False

    def register(self, name: str, email: str, password: str, role: str) -> bool:
        """Add a user and sign in as them; False if the email is taken."""
        if any(user.email == email for user in self._users):
            return False
        stored = StoredUser(
            id=self._new_user_id(),
            name=name,
            email=email,
            password=password,
            role=role,
        )
        self._users.append(stored)
        try:
            self.kv.set(USERS_KEY, dumps_users(self._users))
        except QuotaExceededError:
            _logger.warning("Failed to persist user list", exc_info=True)
        self._set_current_user(stored.to_user())
        return True

    def logout(self) -> None:
        self._current_user = None
        self.kv.remove(USER_KEY)

    def _set_current_user(self, user: User) -> None:
        self._current_user = user
        try:
            self.kv.set(USER_KEY, dumps_user(user))
        except QuotaExceededError:
            _logger.warning("Failed to persist signed-in user", exc_info=True)

    def _new_user_id(self) -> str:
        millis = int(self.clock().timestamp() * 1000)
        existing = {user.id for user in self._users}
        while f"user_{millis}" in existing:
            millis += 1
        return f"user_{millis}"
