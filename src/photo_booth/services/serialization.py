"""JSON encoding of domain records in the kiosk storage layout."""

import json
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TypeVar

from photo_booth.domain.errors import MalformedStoredDataError
from photo_booth.domain.models import Location, StoredUser, User
from photo_booth.domain.sessions import Bundle, Photo, Session

T = TypeVar("T")


def dumps_sessions(sessions: list[Session]) -> str:
    return json.dumps([session_to_dict(session) for session in sessions])


def dumps_locations(locations: list[Location]) -> str:
    return json.dumps([location_to_dict(location) for location in locations])


def dumps_users(users: list[StoredUser]) -> str:
    return json.dumps([stored_user_to_dict(user) for user in users])


def dumps_user(user: User) -> str:
    return json.dumps(
        {"id": user.id, "name": user.name, "email": user.email, "role": user.role}
    )


def loads_sessions(key: str, raw: str) -> list[Session]:
    return _loads_list(key, raw, session_from_dict)


def loads_locations(key: str, raw: str) -> list[Location]:
    return _loads_list(key, raw, location_from_dict)


def loads_users(key: str, raw: str) -> list[StoredUser]:
    return _loads_list(key, raw, stored_user_from_dict)


def loads_user(key: str, raw: str) -> User:
    payload = _loads(key, raw)
    try:
        return User(
            id=str(payload["id"]),
            name=str(payload["name"]),
            email=str(payload["email"]),
            role=str(payload["role"]),
        )
    except (KeyError, TypeError) as exc:
        raise MalformedStoredDataError(key, f"invalid user: {exc}") from exc


def session_to_dict(session: Session) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": session.id,
        "name": session.name,
        "location": session.location,
        "date": _format_datetime(session.date),
        "status": session.status,
        "sessionKey": session.session_key,
        "photos": [photo_to_dict(photo) for photo in session.photos],
        "deleted": session.deleted,
    }
    if session.bundle is not None:
        payload["bundle"] = {
            "name": session.bundle.name,
            "count": session.bundle.count,
            "price": session.bundle.price,
        }
    return payload


def session_from_dict(payload: dict[str, object]) -> Session:
    bundle = payload.get("bundle")
    return Session(
        id=str(payload["id"]),
        name=str(payload["name"]),
        location=str(payload["location"]),
        date=_parse_datetime(payload["date"]),
        status=str(payload["status"]),
        session_key=str(payload.get("sessionKey") or ""),
        photos=tuple(photo_from_dict(photo) for photo in payload.get("photos") or []),
        bundle=(
            Bundle(
                name=str(bundle["name"]),
                count=bundle["count"],
                price=float(bundle["price"]),
            )
            if isinstance(bundle, dict)
            else None
        ),
        deleted=bool(payload.get("deleted", False)),
    )


def photo_to_dict(photo: Photo) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": photo.id,
        "url": photo.url,
        "edited": photo.edited,
        "timestamp": _format_datetime(photo.timestamp),
    }
    if photo.last_edited is not None:
        payload["lastEdited"] = _format_datetime(photo.last_edited)
    return payload


def photo_from_dict(payload: dict[str, object]) -> Photo:
    last_edited = payload.get("lastEdited")
    return Photo(
        id=str(payload["id"]),
        url=str(payload["url"]),
        edited=bool(payload.get("edited", False)),
        timestamp=_parse_datetime(payload["timestamp"]),
        last_edited=_parse_datetime(last_edited) if last_edited else None,
    )


def location_to_dict(location: Location) -> dict[str, object]:
    return {"id": location.id, "name": location.name, "isActive": location.is_active}


def location_from_dict(payload: dict[str, object]) -> Location:
    return Location(
        id=str(payload["id"]),
        name=str(payload["name"]),
        is_active=bool(payload.get("isActive", True)),
    )


def stored_user_to_dict(user: StoredUser) -> dict[str, object]:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "password": user.password,
        "role": user.role,
    }


def stored_user_from_dict(payload: dict[str, object]) -> StoredUser:
    return StoredUser(
        id=str(payload["id"]),
        name=str(payload["name"]),
        email=str(payload["email"]),
        password=str(payload["password"]),
        role=str(payload["role"]),
    )


def _loads(key: str, raw: str) -> object:
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise MalformedStoredDataError(key, str(exc)) from exc


def _loads_list(
    key: str, raw: str, parse: Callable[[dict[str, object]], T]
) -> list[T]:
    payload = _loads(key, raw)
    if not isinstance(payload, list):
        raise MalformedStoredDataError(key, "expected a list")
    try:
        return [parse(item) for item in payload]
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise MalformedStoredDataError(key, f"invalid record: {exc!r}") from exc


def _format_datetime(value: datetime) -> str:
    return value.isoformat()


def ensure_utc(value: datetime) -> datetime:
    """Treat a timestamp without an offset as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _parse_datetime(value: object) -> datetime:
    if not isinstance(value, str):
        raise TypeError(f"expected an ISO timestamp, got {type(value).__name__}")
    return ensure_utc(datetime.fromisoformat(value))
