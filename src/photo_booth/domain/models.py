"""Domain models for kiosk users and locations."""

from dataclasses import dataclass

ROLE_ADMIN = "Admin"
ROLE_PHOTOGRAPHER = "Photographer"
ROLE_CAMERAMAN = "Cameraman"

ROLES = frozenset({ROLE_ADMIN, ROLE_PHOTOGRAPHER, ROLE_CAMERAMAN})


@dataclass(frozen=True)
class User:
    """The identity currently signed in at the kiosk."""

    id: str
    name: str
    email: str
    role: str


@dataclass(frozen=True)
class StoredUser:
    """Entry in the local user list. Passwords are compared in plaintext."""

    id: str
    name: str
    email: str
    password: str
    role: str

    def to_user(self) -> User:
        return User(id=self.id, name=self.name, email=self.email, role=self.role)


@dataclass(frozen=True)
class Location:
    """A venue spot where sessions are captured."""

    id: str
    name: str
    is_active: bool = True


DEFAULT_LOCATIONS = (
    Location(id="entrance", name="Entrance"),
    Location(id="castle", name="Castle"),
    Location(id="waterfall", name="Waterfall"),
    Location(id="themeRide", name="Theme Ride"),
)
