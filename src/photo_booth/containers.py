"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta

from photo_booth.adapters.file_key_value_store import FileKeyValueStore
from photo_booth.adapters.pillow_image_compressor import PillowImageCompressor
from photo_booth.config import Settings
from photo_booth.services.bootstrap import BootstrapLoader
from photo_booth.services.persistence import DegradationLadder, default_tiers
from photo_booth.services.quota import QuotaGuard
from photo_booth.services.sessions import SessionStore
from photo_booth.services.storage import KeyValueStore
from photo_booth.services.uploads import UploadService
from photo_booth.services.users import UserService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    kv: KeyValueStore
    quota_guard: QuotaGuard
    session_store: SessionStore
    user_service: UserService
    upload_service: UploadService
    close_resources: Callable[[], Awaitable[None]]


def build_container(
    settings: Settings | None = None, kv: KeyValueStore | None = None
) -> AppContainer:
    """Create the default dependency container and hydrate stored state."""
    resolved_settings = settings or Settings()
    resolved_kv = kv or FileKeyValueStore(
        resolved_settings.storage_path, resolved_settings.storage_limit_bytes
    )
    state = BootstrapLoader(resolved_kv).load()
    quota_guard = QuotaGuard(
        resolved_kv,
        high_percentage=resolved_settings.quota_high_percentage,
        critical_percentage=resolved_settings.quota_critical_percentage,
    )
    session_store = SessionStore(
        resolved_kv,
        sessions=state.sessions,
        locations=state.locations,
        ladder=DegradationLadder(
            default_tiers(timedelta(hours=resolved_settings.eviction_window_hours))
        ),
        retention_period=timedelta(days=resolved_settings.retention_days),
    )
    user_service = UserService(
        resolved_kv, users=state.users, current_user=state.current_user
    )
    upload_service = UploadService(
        store=session_store,
        quota_guard=quota_guard,
        compressor=PillowImageCompressor(),
        quality=resolved_settings.compress_quality,
        max_dimension=resolved_settings.compress_max_dimension,
        inter_item_delay_seconds=resolved_settings.upload_delay_seconds,
    )

    async def close_resources() -> None:
        session_store.flush()

    return AppContainer(
        settings=resolved_settings,
        kv=resolved_kv,
        quota_guard=quota_guard,
        session_store=session_store,
        user_service=user_service,
        upload_service=upload_service,
        close_resources=close_resources,
    )
