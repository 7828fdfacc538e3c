"""Tests for the session store."""

import json
from datetime import UTC, datetime, timedelta

import pytest

from photo_booth.domain.models import Location
from photo_booth.domain.sessions import (
    STATUS_COMPLETED,
    STATUS_PENDING,
    STATUS_READY_FOR_OPERATOR,
    Bundle,
    PhotoDraft,
)
from photo_booth.domain.storage import PressureLevel
from photo_booth.services.persistence import MODE_DEGRADED
from photo_booth.services.quota import QuotaGuard
from photo_booth.services.sessions import SessionStore
from photo_booth.services.storage import (
    LOCATIONS_KEY,
    SESSIONS_KEY,
    InMemoryKeyValueStore,
)
from tests.conftest import FailingKeyValueStore, FixedClock


def _stored_sessions(kv) -> list[dict[str, object]]:
    return json.loads(kv.get(SESSIONS_KEY))


def test_create_session_sets_defaults_and_current(store, kv) -> None:
    session = store.create_session("Smith family", "castle")

    assert session.status == STATUS_PENDING
    assert session.photos == ()
    assert len(session.session_key) == 5
    assert session.session_key.isdigit()
    assert store.current_session == session
    assert _stored_sessions(kv)[0]["id"] == session.id


def test_create_session_uses_key_override(store) -> None:
    session = store.create_session("Walk-in", "entrance", session_key="00042")

    assert session.session_key == "00042"


def test_create_session_ids_unique_within_same_millisecond(store) -> None:
    first = store.create_session("A", "castle")
    second = store.create_session("B", "castle")

    assert first.id != second.id
    assert store.current_session == second


def test_delete_then_recover_restores_session(store) -> None:
    session = store.create_session("A", "castle")
    store.add_photo(session.id, PhotoDraft(url="data:1"))
    before = store.get_session(session.id)

    assert store.delete_session(session.id)
    assert store.get_session(session.id).deleted
    assert store.recently_deleted() == [store.get_session(session.id)]
    assert store.active_sessions() == []

    assert store.recover_session(session.id)
    assert store.get_session(session.id) == before


def test_delete_current_session_clears_projection(store) -> None:
    session = store.create_session("A", "castle")

    store.delete_session(session.id)

    assert store.current_session is None


def test_recover_is_noop_for_live_or_missing_session(store) -> None:
    session = store.create_session("A", "castle")

    assert store.recover_session(session.id) is False
    assert store.recover_session("session_missing") is False


def test_select_bundle_updates_current_and_collection(store) -> None:
    session = store.create_session("A", "castle")
    bundle = Bundle(name="Gold", count=10, price=49.0)

    assert store.select_bundle(bundle)

    assert store.current_session.bundle == bundle
    assert store.get_session(session.id).bundle == bundle


def test_select_bundle_without_current_session(store) -> None:
    assert store.select_bundle(Bundle(name="Gold", count=10, price=49.0)) is False


def test_set_current_session_rejects_unknown_id(store) -> None:
    session = store.create_session("A", "castle")

    assert store.set_current_session("session_missing") is False
    assert store.current_session == session
    assert store.set_current_session(None)
    assert store.current_session is None


def test_photo_add_update_delete(store, clock: FixedClock) -> None:
    session = store.create_session("A", "castle")
    first = store.add_photo(session.id, PhotoDraft(url="data:1"))
    second = store.add_photo(session.id, PhotoDraft(url="data:2"))

    edited_at = clock.now + timedelta(minutes=5)
    assert store.update_photo(
        session.id, first.id, url="data:1-edited", edited=True, last_edited=edited_at
    )
    assert store.delete_photo(session.id, second.id)

    photos = store.current_session.photos
    assert [photo.id for photo in photos] == [first.id]
    assert photos[0].url == "data:1-edited"
    assert photos[0].edited is True
    assert photos[0].last_edited == edited_at
    assert store.get_session(session.id).photos == photos


def test_photo_operations_on_missing_ids_are_noops(store) -> None:
    session = store.create_session("A", "castle")
    photo = store.add_photo(session.id, PhotoDraft(url="data:1"))

    assert store.add_photo("session_missing", PhotoDraft(url="x")) is None
    assert store.update_photo(session.id, "photo_missing", url="x") is False
    assert store.update_photo("session_missing", photo.id, url="x") is False
    assert store.delete_photo(session.id, "photo_missing") is False
    assert store.get_session(session.id).photos == (photo,)


def test_update_photo_rejects_unknown_fields(store) -> None:
    session = store.create_session("A", "castle")
    photo = store.add_photo(session.id, PhotoDraft(url="data:1"))

    with pytest.raises(TypeError):
        store.update_photo(session.id, photo.id, id="photo_other")


def test_photo_list_survives_persistence_failure(clock: FixedClock) -> None:
    kv = FailingKeyValueStore(fail_keys={SESSIONS_KEY})
    store = SessionStore(kv, clock=clock)
    session = store.create_session("A", "castle")
    kv.fail_always = True

    added = [store.add_photo(session.id, PhotoDraft(url=f"data:{i}")) for i in range(4)]
    store.delete_photo(session.id, added[1].id)
    store.delete_photo(session.id, added[3].id)

    assert store.storage_full
    assert [p.id for p in store.get_session(session.id).photos] == [
        added[0].id,
        added[2].id,
    ]
    assert store.current_session.photos == store.get_session(session.id).photos


def test_status_changes(store) -> None:
    session = store.create_session("A", "castle")

    assert store.set_session_status(session.id, STATUS_READY_FOR_OPERATOR)
    assert store.current_session.status == STATUS_READY_FOR_OPERATOR
    assert store.complete_session(session.id)
    assert store.get_session(session.id).status == STATUS_COMPLETED
    assert store.complete_session("session_missing") is False


def test_delete_all_sessions(store) -> None:
    store.create_session("A", "castle")
    store.create_session("B", "castle")

    assert store.delete_all_sessions() == 2
    assert store.sessions == []
    assert store.current_session is None


def test_delete_sessions_by_date_range(store, clock: FixedClock) -> None:
    old = store.create_session("Old", "castle")
    clock.advance(timedelta(days=10))
    middle = store.create_session("Middle", "castle")
    clock.advance(timedelta(days=10))
    recent = store.create_session("Recent", "castle")

    removed = store.delete_sessions_by_date_range(
        middle.date - timedelta(days=1), middle.date
    )

    assert removed == 1
    assert [s.id for s in store.sessions] == [old.id, recent.id]


def test_delete_sessions_by_month_clears_current(store, clock: FixedClock) -> None:
    june = store.create_session("June", "castle")
    clock.advance(timedelta(days=30))
    july = store.create_session("July", "castle")

    assert store.delete_sessions_by_month(7, 2024) == 1
    assert [s.id for s in store.sessions] == [june.id]
    assert july.date.month == 7
    assert store.current_session is None


def test_auto_delete_old_sessions(store, clock: FixedClock) -> None:
    store.create_session("Old", "castle")
    clock.advance(timedelta(days=40))
    fresh = store.create_session("Fresh", "castle")

    assert store.auto_delete_old_sessions() == 1
    assert [s.id for s in store.sessions] == [fresh.id]


def test_clear_old_sessions_keeps_active(store, clock: FixedClock) -> None:
    done = store.create_session("Done", "castle")
    store.complete_session(done.id)
    active = store.create_session("Active", "castle")
    clock.advance(timedelta(hours=30))

    assert store.clear_old_sessions(hours_to_keep=24) == 1
    assert [s.id for s in store.sessions] == [active.id]


def test_clear_deleted_sessions(store) -> None:
    gone = store.create_session("Gone", "castle")
    kept = store.create_session("Kept", "castle")
    store.delete_session(gone.id)

    assert store.clear_deleted_sessions() == 1
    assert [s.id for s in store.sessions] == [kept.id]


def test_current_session_always_in_collection(store, clock: FixedClock) -> None:
    session = store.create_session("A", "castle")
    operations = [
        lambda: store.add_photo(session.id, PhotoDraft(url="data:1")),
        lambda: store.select_bundle(Bundle(name="Basic", count=1, price=5.0)),
        lambda: store.complete_session(session.id),
        lambda: clock.advance(timedelta(days=40)),
        lambda: store.auto_delete_old_sessions(),
        lambda: store.create_session("B", "castle"),
        lambda: store.delete_all_sessions(),
    ]
    for operation in operations:
        operation()
        current = store.current_session
        assert current is None or current.id in {s.id for s in store.sessions}


def test_locations_add_and_toggle(kv, clock: FixedClock) -> None:
    store = SessionStore(
        kv, locations=[Location(id="castle", name="Castle")], clock=clock
    )

    added = store.add_location("Pier")
    assert store.toggle_location("castle")
    assert store.toggle_location("castle")
    assert store.toggle_location("missing") is False

    assert added.is_active
    assert [loc.is_active for loc in store.locations] == [True, True]
    stored = json.loads(kv.get(LOCATIONS_KEY))
    assert stored[1] == {"id": added.id, "name": "Pier", "isActive": True}


def test_toggle_location_flips_active(kv, clock: FixedClock) -> None:
    store = SessionStore(
        kv, locations=[Location(id="castle", name="Castle")], clock=clock
    )

    store.toggle_location("castle")

    assert store.locations[0].is_active is False


def test_high_pressure_add_photo_evicts_old_completed_sessions(
    clock: FixedClock,
) -> None:
    kv = InMemoryKeyValueStore(limit_bytes=1024 * 1024)
    store = SessionStore(kv, clock=clock)
    clock.now = datetime(2024, 5, 1, tzinfo=UTC)
    for name in ("Old 1", "Old 2"):
        old = store.create_session(name, "castle")
        store.add_photo(old.id, PhotoDraft(url="x" * 2000))
        store.complete_session(old.id)
    s1 = store.create_session("S1", "castle")
    clock.now = datetime(2024, 6, 15, tzinfo=UTC)
    for index in range(3):
        store.add_photo(s1.id, PhotoDraft(url=f"{index}" * 100))

    guard = QuotaGuard(kv)
    kv.limit_bytes = int(guard.usage().used_bytes / 0.85)
    assert guard.pressure_level() is PressureLevel.HIGH

    photo = store.add_photo(s1.id, PhotoDraft(url="y" * 1500))

    assert photo is not None
    assert [s.id for s in store.sessions] == [s1.id]
    assert len(store.get_session(s1.id).photos) == 4
    assert store.persistence_state.mode == MODE_DEGRADED
    assert store.persistence_state.tier == 1
    assert [s["id"] for s in _stored_sessions(kv)] == [s1.id]
    assert not store.storage_full


def test_second_failure_narrows_to_active_sessions(clock: FixedClock) -> None:
    kv = FailingKeyValueStore(fail_keys={SESSIONS_KEY})
    store = SessionStore(kv, clock=clock)
    done = store.create_session("Done", "castle")
    store.complete_session(done.id)
    active = store.create_session("Active", "castle")

    kv.fail_next = 2
    store.add_photo(active.id, PhotoDraft(url="data:1"))

    assert [s.id for s in store.sessions] == [active.id]
    assert store.persistence_state.tier == 2
    assert [s["id"] for s in _stored_sessions(kv)] == [active.id]


def test_exhausted_ladder_suspends_until_sessions_deleted(clock: FixedClock) -> None:
    kv = FailingKeyValueStore(fail_keys={SESSIONS_KEY})
    notices: list[str] = []
    store = SessionStore(
        kv, clock=clock, on_storage_full=lambda: notices.append("full")
    )
    session = store.create_session("A", "castle")
    persisted = kv.get(SESSIONS_KEY)

    kv.fail_always = True
    store.add_photo(session.id, PhotoDraft(url="data:1"))
    attempts_after_failure = len(kv.attempts)
    store.add_photo(session.id, PhotoDraft(url="data:2"))

    assert store.storage_full
    assert notices == ["full"]
    assert len(kv.attempts) == attempts_after_failure
    assert kv.get(SESSIONS_KEY) == persisted
    assert len(store.get_session(session.id).photos) == 2

    kv.fail_always = False
    store.delete_session(session.id)
    assert store.storage_full
    store.clear_deleted_sessions()

    assert not store.storage_full
    assert _stored_sessions(kv) == []


def test_resume_persistence_writes_collection(clock: FixedClock) -> None:
    kv = FailingKeyValueStore(fail_keys={SESSIONS_KEY}, fail_always=True)
    store = SessionStore(kv, clock=clock)
    session = store.create_session("A", "castle")
    assert store.storage_full

    kv.fail_always = False
    store.resume_persistence()

    assert not store.storage_full
    assert _stored_sessions(kv)[0]["id"] == session.id


def test_delete_sessions_by_date_range_treats_naive_bounds_as_utc(
    store, clock: FixedClock
) -> None:
    june = store.create_session("June", "castle")
    clock.advance(timedelta(days=200))
    later = store.create_session("Later", "castle")

    removed = store.delete_sessions_by_date_range(
        datetime(2024, 6, 1), datetime(2024, 6, 30)
    )

    assert removed == 1
    assert june.date.tzinfo is not None
    assert [s.id for s in store.sessions] == [later.id]


def test_purge_session_removes_one_session(store) -> None:
    first = store.create_session("A", "castle")
    second = store.create_session("B", "castle")

    assert store.purge_session(second.id)
    assert store.purge_session(second.id) is False
    assert [s.id for s in store.sessions] == [first.id]
    assert store.current_session is None
    assert [s["id"] for s in _stored_sessions(store.kv)] == [first.id]


def test_purge_that_removes_nothing_keeps_writes_suspended(
    clock: FixedClock,
) -> None:
    kv = FailingKeyValueStore(fail_keys={SESSIONS_KEY}, fail_always=True)
    notices: list[str] = []
    store = SessionStore(
        kv, clock=clock, on_storage_full=lambda: notices.append("full")
    )
    store.create_session("A", "castle")
    assert store.storage_full
    attempts = len(kv.attempts)

    assert store.auto_delete_old_sessions() == 0
    assert store.clear_deleted_sessions() == 0
    assert store.delete_sessions_by_month(1, 2020) == 0

    assert store.storage_full
    assert len(kv.attempts) == attempts
    assert notices == ["full"]


def test_hand_off_fills_operator_queue(store) -> None:
    ready = store.create_session("Ready", "castle")
    store.create_session("Pending", "castle")
    hidden = store.create_session("Hidden", "castle")

    assert store.hand_off_to_operator(ready.id)
    assert store.hand_off_to_operator(hidden.id)
    store.delete_session(hidden.id)

    assert store.get_session(ready.id).status == STATUS_READY_FOR_OPERATOR
    assert [s.id for s in store.operator_queue()] == [ready.id]
    assert store.hand_off_to_operator("session_missing") is False
