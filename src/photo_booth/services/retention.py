"""Retention filters over session collections.

Every filter is pure: it returns a new list holding the retained sessions in
their original order and never mutates its input. Filters depend only on
set membership, so they compose by intersection.
"""

from collections.abc import Iterable
from datetime import datetime, timedelta

from photo_booth.domain.sessions import Session

DEFAULT_RETENTION = timedelta(days=31)


def by_max_age(
    sessions: Iterable[Session], max_age: timedelta, now: datetime
) -> list[Session]:
    """Keep sessions created no more than ``max_age`` before ``now``."""
    return [session for session in sessions if now - session.date <= max_age]


def by_date_range(
    sessions: Iterable[Session], start: datetime, end: datetime
) -> list[Session]:
    """Keep sessions created outside the inclusive ``[start, end]`` range."""
    return [
        session for session in sessions if session.date < start or session.date > end
    ]


def by_month(sessions: Iterable[Session], month: int, year: int) -> list[Session]:
    """Keep sessions not created in the given calendar month (1-12)."""
    return [
        session
        for session in sessions
        if session.date.month != month or session.date.year != year
    ]


def exclude_deleted(sessions: Iterable[Session]) -> list[Session]:
    return [session for session in sessions if not session.deleted]


def only_deleted(sessions: Iterable[Session]) -> list[Session]:
    return [session for session in sessions if session.deleted]


def exclude_id(sessions: Iterable[Session], session_id: str) -> list[Session]:
    return [session for session in sessions if session.id != session_id]


def only_active(sessions: Iterable[Session]) -> list[Session]:
    """Keep sessions whose status is not terminal."""
    return [session for session in sessions if not session.is_terminal]


def keep_active_or_recent(
    sessions: Iterable[Session], window: timedelta, now: datetime
) -> list[Session]:
    """Keep every active session and terminal sessions inside ``window``."""
    sessions = list(sessions)
    recent = {session.id for session in by_max_age(sessions, window, now)}
    return [
        session
        for session in sessions
        if not session.is_terminal or session.id in recent
    ]
