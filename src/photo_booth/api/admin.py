"""Maintenance endpoints for bulk deletion and storage."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request, status

from photo_booth.api.models import ClearOldRequest, DateRangeRequest, MonthRequest

if TYPE_CHECKING:
    from photo_booth.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _container(request: Request) -> AppContainer:
    return request.app.state.container


@router.delete("/sessions")
async def delete_all_sessions(request: Request) -> dict[str, int]:
    """Remove every session."""
    return {"removed": _container(request).session_store.delete_all_sessions()}


@router.delete("/sessions/{session_id}")
async def purge_session(session_id: str, request: Request) -> dict[str, int]:
    """Permanently remove one session."""
    store = _container(request).session_store
    if not store.purge_session(session_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Session not found"
        )
    return {"removed": 1}


@router.post("/sessions/purge-range")
async def purge_range(payload: DateRangeRequest, request: Request) -> dict[str, int]:
    """Remove sessions created within a date range."""
    store = _container(request).session_store
    return {"removed": store.delete_sessions_by_date_range(payload.start, payload.end)}


@router.post("/sessions/purge-month")
async def purge_month(payload: MonthRequest, request: Request) -> dict[str, int]:
    """Remove sessions created in a calendar month."""
    store = _container(request).session_store
    return {"removed": store.delete_sessions_by_month(payload.month, payload.year)}


@router.post("/sessions/auto-delete")
async def auto_delete(request: Request) -> dict[str, int]:
    """Apply the retention period."""
    return {"removed": _container(request).session_store.auto_delete_old_sessions()}


@router.post("/sessions/clear-deleted")
async def clear_deleted(request: Request) -> dict[str, int]:
    """Permanently remove soft-deleted sessions."""
    return {"removed": _container(request).session_store.clear_deleted_sessions()}


@router.post("/sessions/clear-old")
async def clear_old(payload: ClearOldRequest, request: Request) -> dict[str, int]:
    """Remove completed sessions older than the given window."""
    store = _container(request).session_store
    return {"removed": store.clear_old_sessions(payload.hours_to_keep)}


@router.get("/storage")
async def storage(request: Request) -> dict[str, object]:
    """Return storage usage and pressure."""
    container = _container(request)
    usage = container.quota_guard.usage()
    return {
        "used_bytes": usage.used_bytes,
        "limit_bytes": usage.limit_bytes,
        "percentage": usage.percentage,
        "pressure": container.quota_guard.pressure_level(usage.percentage).value,
        "info": container.quota_guard.storage_info(),
        "storage_full": container.session_store.storage_full,
    }


@router.post("/storage/resume")
async def resume_storage(request: Request) -> dict[str, bool]:
    """Retry persistence after storage was relieved."""
    store = _container(request).session_store
    store.resume_persistence()
    return {"storage_full": store.storage_full}
