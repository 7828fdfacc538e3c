"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

_SIZE_UNITS = {
    "B": 1,
    "KB": 1024,
    "MB": 1024 * 1024,
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    storage_path: str = "photo_booth_storage.json"
    storage_limit: str = "5MB"
    retention_days: int = 31
    eviction_window_hours: int = 24
    quota_high_percentage: float = 80.0
    quota_critical_percentage: float = 90.0
    compress_quality: float = 0.8
    compress_max_dimension: int = 1920
    upload_delay_seconds: float = 0.1
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def storage_limit_bytes(self) -> int:
        return parse_byte_size(self.storage_limit)


def parse_byte_size(raw: str) -> int:
    """Parse a size such as ``5MB``, ``512 KB`` or ``1048576`` into bytes."""
    cleaned = raw.strip().upper().replace(" ", "")
    if cleaned.isdigit():
        return int(cleaned)
    for unit in sorted(_SIZE_UNITS, key=len, reverse=True):
        if cleaned.endswith(unit):
            number = cleaned[: -len(unit)]
            try:
                value = float(number)
            except ValueError:
                break
            if value < 0:
                break
            return int(value * _SIZE_UNITS[unit])
    raise ValueError(f"Invalid storage size: {raw!r}")
