"""Storage quota inspection."""

from dataclasses import dataclass

from photo_booth.domain.storage import PressureLevel, StorageUsage
from photo_booth.services.storage import KeyValueStore, entry_size

_BYTES_PER_MB = 1024 * 1024


@dataclass
class QuotaGuard:
    """Read-only view of key-value store usage against its limit."""

    kv: KeyValueStore
    high_percentage: float = 80.0
    critical_percentage: float = 90.0

    def usage(self) -> StorageUsage:
        """Sum the size of every stored entry."""
        used = sum(entry_size(key, value) for key, value in self.kv.items())
        limit = self.kv.limit_bytes
        percentage = (used / limit) * 100 if limit > 0 else 100.0
        return StorageUsage(used_bytes=used, limit_bytes=limit, percentage=percentage)

    def pressure_level(self, percentage: float | None = None) -> PressureLevel:
        """Classify a usage percentage, measuring current usage if omitted."""
        if percentage is None:
            percentage = self.usage().percentage
        if percentage > self.critical_percentage:
            return PressureLevel.CRITICAL
        if percentage >= self.high_percentage:
            return PressureLevel.HIGH
        return PressureLevel.NORMAL

    def storage_info(self) -> str:
        """Return used storage formatted in megabytes."""
        return f"{self.usage().used_bytes / _BYTES_PER_MB:.2f} MB"
