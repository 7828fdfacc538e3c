"""Pydantic models for kiosk API requests."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from photo_booth.domain.models import ROLES


class LoginRequest(BaseModel):
    """Sign-in payload."""

    email: str
    password: str = ""
    role: str
    force_login: bool = False


class RegisterRequest(BaseModel):
    """Registration payload."""

    name: str
    email: str
    password: str
    role: str

    @field_validator("role")
    @classmethod
    def known_role(cls, value: str) -> str:
        if value not in ROLES:
            raise ValueError(f"role must be one of {sorted(ROLES)}")
        return value


class CreateSessionRequest(BaseModel):
    """New session payload."""

    name: str
    location: str
    session_key: str | None = Field(default=None, alias="sessionKey")


class CurrentSessionRequest(BaseModel):
    """Select or clear the current session."""

    session_id: str | None = Field(default=None, alias="sessionId")


class BundleRequest(BaseModel):
    """Bundle chosen for the current session."""

    name: str
    count: int | Literal["unlimited"]
    price: float


class StatusRequest(BaseModel):
    """Session status change."""

    status: str


class ImagePayload(BaseModel):
    """Base64-encoded file from the upload form."""

    filename: str
    content_type: str = Field(alias="contentType")
    data: str


class UploadRequest(BaseModel):
    """Batch of images for a session."""

    images: list[ImagePayload]


class EditPhotoRequest(BaseModel):
    """Image payload returned by the editor."""

    url: str


class DateRangeRequest(BaseModel):
    """Inclusive creation-date range to purge."""

    start: datetime
    end: datetime


class MonthRequest(BaseModel):
    """Calendar month to purge."""

    month: int = Field(ge=1, le=12)
    year: int


class ClearOldRequest(BaseModel):
    """Age window for completed sessions to keep."""

    hours_to_keep: int = Field(default=24, ge=0, alias="hoursToKeep")


class LocationRequest(BaseModel):
    """New location payload."""

    name: str
