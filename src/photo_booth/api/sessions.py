"""Session, photo and location endpoints."""

from __future__ import annotations

import base64
import binascii
from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request, status

from photo_booth.api.models import (
    BundleRequest,
    CreateSessionRequest,
    CurrentSessionRequest,
    EditPhotoRequest,
    LocationRequest,
    StatusRequest,
    UploadRequest,
)
from photo_booth.domain.errors import StorageCriticalError
from photo_booth.domain.sessions import Bundle
from photo_booth.services.serialization import (
    location_to_dict,
    photo_to_dict,
    session_to_dict,
)
from photo_booth.services.uploads import UploadedImage

if TYPE_CHECKING:
    from photo_booth.containers import AppContainer

router = APIRouter(tags=["sessions"])


def _container(request: Request) -> AppContainer:
    return request.app.state.container


def _not_found(found: bool, detail: str = "Not found") -> None:
    if not found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


@router.get("/sessions")
async def list_sessions(request: Request, deleted: bool = False) -> dict[str, object]:
    """Return live sessions, or the recently deleted view."""
    store = _container(request).session_store
    sessions = store.recently_deleted() if deleted else store.active_sessions()
    return {"sessions": [session_to_dict(session) for session in sessions]}


@router.get("/sessions/operator-queue")
async def operator_queue(request: Request) -> dict[str, object]:
    """Return sessions ready for the operator."""
    sessions = _container(request).session_store.operator_queue()
    return {"sessions": [session_to_dict(session) for session in sessions]}


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def create_session(
    payload: CreateSessionRequest, request: Request
) -> dict[str, object]:
    """Create a session and make it current."""
    store = _container(request).session_store
    session = store.create_session(
        payload.name, payload.location, session_key=payload.session_key
    )
    return session_to_dict(session)


@router.get("/sessions/current")
async def get_current_session(request: Request) -> dict[str, object]:
    """Return the current session, if any."""
    session = _container(request).session_store.current_session
    return {"session": session_to_dict(session) if session else None}


@router.put("/sessions/current")
async def set_current_session(
    payload: CurrentSessionRequest, request: Request
) -> dict[str, object]:
    """Select the current session by id, or clear it."""
    store = _container(request).session_store
    _not_found(store.set_current_session(payload.session_id), "Session not found")
    session = store.current_session
    return {"session": session_to_dict(session) if session else None}


@router.post("/sessions/current/bundle")
async def select_bundle(payload: BundleRequest, request: Request) -> dict[str, object]:
    """Attach a bundle to the current session."""
    store = _container(request).session_store
    bundle = Bundle(name=payload.name, count=payload.count, price=payload.price)
    if not store.select_bundle(bundle):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="No current session"
        )
    return session_to_dict(store.current_session)


@router.get("/sessions/{session_id}")
async def get_session(session_id: str, request: Request) -> dict[str, object]:
    session = _container(request).session_store.get_session(session_id)
    _not_found(session is not None, "Session not found")
    return session_to_dict(session)


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str, request: Request) -> dict[str, str]:
    """Soft-delete a session."""
    store = _container(request).session_store
    _not_found(store.delete_session(session_id), "Session not found")
    return {"status": "ok"}


@router.post("/sessions/{session_id}/recover")
async def recover_session(session_id: str, request: Request) -> dict[str, object]:
    """Recover a soft-deleted session."""
    store = _container(request).session_store
    _not_found(store.recover_session(session_id), "No deleted session")
    return session_to_dict(store.get_session(session_id))


@router.post("/sessions/{session_id}/status")
async def set_status(
    session_id: str, payload: StatusRequest, request: Request
) -> dict[str, object]:
    store = _container(request).session_store
    _not_found(store.set_session_status(session_id, payload.status))
    return session_to_dict(store.get_session(session_id))


@router.post("/sessions/{session_id}/ready")
async def hand_off_to_operator(session_id: str, request: Request) -> dict[str, object]:
    store = _container(request).session_store
    _not_found(store.hand_off_to_operator(session_id), "Session not found")
    return session_to_dict(store.get_session(session_id))


@router.post("/sessions/{session_id}/complete")
async def complete_session(session_id: str, request: Request) -> dict[str, object]:
    store = _container(request).session_store
    _not_found(store.complete_session(session_id), "Session not found")
    return session_to_dict(store.get_session(session_id))


@router.post("/sessions/{session_id}/photos")
async def upload_photos(
    session_id: str, payload: UploadRequest, request: Request
) -> dict[str, object]:
    """Compress and add uploaded images to a session."""
    container = _container(request)
    images = [
        UploadedImage(
            filename=image.filename,
            content_type=image.content_type,
            data=_decode_image(image.data),
        )
        for image in payload.images
    ]
    try:
        result = await container.upload_service.upload_photos(session_id, images)
    except StorageCriticalError as exc:
        raise HTTPException(
            status_code=status.HTTP_507_INSUFFICIENT_STORAGE,
            detail="Storage is nearly full. Please clear some sessions.",
        ) from exc
    _not_found(result is not None, "Session not found")
    return {
        "added": [photo_to_dict(photo) for photo in result.added],
        "skipped_over_limit": result.skipped_over_limit,
        "rejected": result.rejected,
        "bundle_full": result.bundle_full,
    }


@router.patch("/sessions/{session_id}/photos/{photo_id}")
async def edit_photo(
    session_id: str, photo_id: str, payload: EditPhotoRequest, request: Request
) -> dict[str, str]:
    """Save an edited image from the editor."""
    container = _container(request)
    _not_found(
        container.upload_service.save_edit(session_id, photo_id, payload.url),
        "Photo not found",
    )
    return {"status": "ok"}


@router.delete("/sessions/{session_id}/photos/{photo_id}")
async def delete_photo(
    session_id: str, photo_id: str, request: Request
) -> dict[str, str]:
    store = _container(request).session_store
    _not_found(store.delete_photo(session_id, photo_id), "Photo not found")
    return {"status": "ok"}


@router.get("/locations")
async def list_locations(request: Request) -> dict[str, object]:
    store = _container(request).session_store
    return {"locations": [location_to_dict(loc) for loc in store.locations]}


@router.post("/locations", status_code=status.HTTP_201_CREATED)
async def add_location(payload: LocationRequest, request: Request) -> dict[str, object]:
    store = _container(request).session_store
    return location_to_dict(store.add_location(payload.name))


@router.post("/locations/{location_id}/toggle")
async def toggle_location(location_id: str, request: Request) -> dict[str, object]:
    """Flip whether a location is active."""
    store = _container(request).session_store
    _not_found(store.toggle_location(location_id), "Location not found")
    location = next(loc for loc in store.locations if loc.id == location_id)
    return location_to_dict(location)


def _decode_image(data: str) -> bytes:
    try:
        return base64.b64decode(data, validate=True)
    except binascii.Error as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Image data must be base64",
        ) from exc
