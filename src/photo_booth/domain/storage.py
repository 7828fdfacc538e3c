"""Domain models for storage capacity."""

from dataclasses import dataclass
from enum import StrEnum


class PressureLevel(StrEnum):
    """How close durable storage is to its capacity."""

    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class StorageUsage:
    """Aggregate usage of the key-value store."""

    used_bytes: int
    limit_bytes: int
    percentage: float
