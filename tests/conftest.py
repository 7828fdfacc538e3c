"""Shared test fixtures."""

import base64
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from photo_booth.config import Settings
from photo_booth.containers import AppContainer
from photo_booth.domain.errors import QuotaExceededError
from photo_booth.services.bootstrap import BootstrapLoader
from photo_booth.services.quota import QuotaGuard
from photo_booth.services.sessions import SessionStore
from photo_booth.services.storage import InMemoryKeyValueStore, KeyValueStore
from photo_booth.services.uploads import ImageCompressor, UploadService
from photo_booth.services.users import UserService

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)


@dataclass
class FixedClock:
    """Clock that only moves when told to."""

    now: datetime = NOW

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@dataclass
class FailingKeyValueStore(KeyValueStore):
    """Key-value store that rejects writes on demand."""

    limit_bytes: int = 5 * 1024 * 1024
    fail_next: int = 0
    fail_always: bool = False
    fail_keys: set[str] | None = None
    inner: InMemoryKeyValueStore = field(init=False)
    attempts: list[tuple[str, str]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.inner = InMemoryKeyValueStore(self.limit_bytes)

    def get(self, key: str) -> str | None:
        return self.inner.get(key)

    def set(self, key: str, value: str) -> None:
        self.attempts.append((key, value))
        if self.fail_keys is None or key in self.fail_keys:
            if self.fail_always:
                raise QuotaExceededError(key, len(value), self.limit_bytes)
            if self.fail_next > 0:
                self.fail_next -= 1
                raise QuotaExceededError(key, len(value), self.limit_bytes)
        self.inner.set(key, value)

    def remove(self, key: str) -> None:
        self.inner.remove(key)

    def items(self) -> list[tuple[str, str]]:
        return self.inner.items()


@dataclass
class FakeImageCompressor(ImageCompressor):
    """Compressor that wraps the raw bytes in a data URL."""

    calls: list[tuple[float, int]] = field(default_factory=list)

    async def compress(self, image: bytes, quality: float, max_dimension: int) -> str:
        self.calls.append((quality, max_dimension))
        return f"data:image/jpeg;base64,{base64.b64encode(image).decode('ascii')}"


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(limit_bytes=1024 * 1024)


@pytest.fixture
def store(kv: InMemoryKeyValueStore, clock: FixedClock) -> SessionStore:
    return SessionStore(kv, clock=clock)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        storage_path=str(tmp_path / "storage.json"),
        storage_limit="1MB",
        upload_delay_seconds=0,
    )


@pytest.fixture
def compressor() -> FakeImageCompressor:
    return FakeImageCompressor()


@pytest.fixture
def container(
    settings: Settings,
    kv: InMemoryKeyValueStore,
    clock: FixedClock,
    compressor: FakeImageCompressor,
) -> AppContainer:
    state = BootstrapLoader(kv).load()
    quota_guard = QuotaGuard(kv)
    session_store = SessionStore(
        kv, sessions=state.sessions, locations=state.locations, clock=clock
    )
    user_service = UserService(
        kv, users=state.users, current_user=state.current_user, clock=clock
    )
    upload_service = UploadService(
        store=session_store,
        quota_guard=quota_guard,
        compressor=compressor,
        inter_item_delay_seconds=0,
        clock=clock,
    )

    async def close_resources() -> None:
        session_store.flush()

    return AppContainer(
        settings=settings,
        kv=kv,
        quota_guard=quota_guard,
        session_store=session_store,
        user_service=user_service,
        upload_service=upload_service,
        close_resources=close_resources,
    )
