"""Batched photo upload and editor save flow."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from photo_booth.domain.errors import ImageCompressionError, StorageCriticalError
from photo_booth.domain.sessions import Photo, PhotoDraft
from photo_booth.domain.storage import PressureLevel
from photo_booth.services.quota import QuotaGuard
from photo_booth.services.sessions import SessionStore

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class ImageCompressor(Protocol):
    """Interface for shrinking uploaded images before storage."""

    async def compress(self, image: bytes, quality: float, max_dimension: int) -> str:
        """Return the compressed image as a data URL.

        Raises ImageCompressionError when the bytes are not a readable image.
        """


@dataclass(frozen=True)
class UploadedImage:
    """Raw file received from the kiosk."""

    filename: str
    content_type: str
    data: bytes

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")


@dataclass
class UploadResult:
    """Summary of a batch upload."""

    added: list[Photo] = field(default_factory=list)
    skipped_over_limit: int = 0
    rejected: list[str] = field(default_factory=list)
    bundle_full: bool = False


@dataclass
class UploadService:
    """Compresses uploads and adds them to a session one at a time."""

    store: SessionStore
    quota_guard: QuotaGuard
    compressor: ImageCompressor
    quality: float = 0.8
    max_dimension: int = 1920
    inter_item_delay_seconds: float = 0.1
    clock: Callable[[], datetime] = _utcnow

    async def upload_photos(
        self, session_id: str, images: list[UploadedImage]
    ) -> UploadResult | None:
        """Add images to a session; None if the session does not exist."""
        session = self.store.get_session(session_id)
        if session is None:
            return None

        usage = self.quota_guard.usage()
        if self.quota_guard.pressure_level(usage.percentage) is PressureLevel.CRITICAL:
            _logger.warning(
                "Refusing upload to %s: storage at %.1f%%",
                session_id,
                usage.percentage,
            )
            raise StorageCriticalError(usage.percentage)

        result = UploadResult()
        max_photos = session.bundle.max_photos if session.bundle else None
        if max_photos is not None:
            available = max_photos - len(session.photos)
            if available <= 0:
                result.bundle_full = True
                return result
            result.skipped_over_limit = max(len(images) - available, 0)
            images = images[:available]

        valid = []
        for image in images:
            if image.is_image:
                valid.append(image)
            else:
                result.rejected.append(image.filename)
        if not valid:
            return result

        compressed = await asyncio.gather(*(self._compress(image) for image in valid))
        payloads = []
        for image, payload in zip(valid, compressed, strict=True):
            if payload is None:
                result.rejected.append(image.filename)
            else:
                payloads.append(payload)
        for index, payload in enumerate(payloads):
            photo = self.store.add_photo(
                session_id, PhotoDraft(url=payload, timestamp=self.clock())
            )
            if photo is not None:
                result.added.append(photo)
            if index < len(payloads) - 1:
                await asyncio.sleep(self.inter_item_delay_seconds)
        _logger.info("Uploaded %s photos to %s", len(result.added), session_id)
        return result

    async def _compress(self, image: UploadedImage) -> str | None:
        try:
            return await self.compressor.compress(
                image.data, self.quality, self.max_dimension
            )
        except ImageCompressionError:
            _logger.warning("Failed to compress %s", image.filename, exc_info=True)
            return None

    def save_edit(self, session_id: str, photo_id: str, edited_payload: str) -> bool:
        """Store the editor's revised image for a photo."""
        return self.store.update_photo(
            session_id,
            photo_id,
            url=edited_payload,
            edited=True,
            last_edited=self.clock(),
        )
