"""Degrade-and-retry persistence for the session collection.

Writes walk a ladder of increasingly aggressive retention tiers. Tier 0 is
the full collection; later tiers shed terminal sessions. The outcome of each
attempt drives a small state machine:

    normal --fail--> degraded(1) --fail--> degraded(2) --fail--> suspended

A successful write at tier 0 returns to ``normal``; a successful write at a
later tier stays ``degraded(tier)`` until the next clean write.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from photo_booth.domain.errors import QuotaExceededError
from photo_booth.domain.sessions import Session
from photo_booth.services.retention import keep_active_or_recent, only_active
from photo_booth.services.serialization import dumps_sessions
from photo_booth.services.storage import KeyValueStore

MODE_NORMAL = "normal"
MODE_DEGRADED = "degraded"
MODE_SUSPENDED = "suspended"

_logger = logging.getLogger(__name__)

Tier = Callable[[list[Session], datetime], list[Session]]


@dataclass(frozen=True)
class PersistenceState:
    """Current position on the degradation ladder."""

    mode: str = MODE_NORMAL
    tier: int = 0

    @property
    def suspended(self) -> bool:
        return self.mode == MODE_SUSPENDED


def transition(
    state: PersistenceState, tier: int, succeeded: bool, final_tier: int
) -> PersistenceState:
    """Return the state after a write attempt at ``tier``."""
    if state.suspended:
        return state
    if succeeded:
        if tier == 0:
            return PersistenceState()
        return PersistenceState(mode=MODE_DEGRADED, tier=tier)
    if tier >= final_tier:
        return PersistenceState(mode=MODE_SUSPENDED, tier=tier)
    return PersistenceState(mode=MODE_DEGRADED, tier=tier + 1)


@dataclass(frozen=True)
class LadderResult:
    """Outcome of a ladder write."""

    state: PersistenceState
    persisted: list[Session] | None

    @property
    def reduced(self) -> bool:
        return self.persisted is not None and self.state.tier > 0


def default_tiers(eviction_window: timedelta) -> list[Tier]:
    """Full collection, then recent-or-active, then active only."""
    return [
        lambda sessions, now: list(sessions),
        lambda sessions, now: keep_active_or_recent(sessions, eviction_window, now),
        lambda sessions, now: only_active(sessions),
    ]


@dataclass
class DegradationLadder:
    """Writes a session collection, shedding data when the store is full."""

    tiers: list[Tier] = field(
        default_factory=lambda: default_tiers(timedelta(hours=24))
    )

    def write(
        self, kv: KeyValueStore, key: str, sessions: list[Session], now: datetime
    ) -> LadderResult:
        """Attempt each tier in order until one fits."""
        state = PersistenceState()
        final_tier = len(self.tiers) - 1
        for tier, reduce in enumerate(self.tiers):
            candidate = reduce(sessions, now)
            try:
                kv.set(key, dumps_sessions(candidate))
            except QuotaExceededError as exc:
                state = transition(state, tier, succeeded=False, final_tier=final_tier)
                _logger.info(
                    "Session write failed at tier %s (%s sessions): %s",
                    tier,
                    len(candidate),
                    exc,
                )
                continue
            state = transition(state, tier, succeeded=True, final_tier=final_tier)
            if tier > 0:
                _logger.info(
                    "Session write degraded to tier %s, kept %s of %s sessions",
                    tier,
                    len(candidate),
                    len(sessions),
                )
            return LadderResult(state=state, persisted=candidate)
        return LadderResult(state=state, persisted=None)
