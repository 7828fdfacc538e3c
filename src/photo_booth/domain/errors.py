"""Error types raised by the photo booth core."""


class PhotoBoothError(Exception):
    """Base class for photo booth errors."""


class QuotaExceededError(PhotoBoothError):
    """Raised when a key-value write would exceed the storage capacity."""

    def __init__(self, key: str, required_bytes: int, limit_bytes: int) -> None:
        super().__init__(
            f"Storing {key!r} needs {required_bytes} bytes, limit is {limit_bytes}"
        )
        self.key = key
        self.required_bytes = required_bytes
        self.limit_bytes = limit_bytes


class MalformedStoredDataError(PhotoBoothError):
    """Raised when stored data cannot be deserialized at startup."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Malformed data under {key!r}: {reason}")
        self.key = key
        self.reason = reason


class StorageCriticalError(PhotoBoothError):
    """Raised when an upload is refused because storage is nearly full."""

    def __init__(self, percentage: float) -> None:
        super().__init__(f"Storage is {percentage:.1f}% full")
        self.percentage = percentage


class ImageCompressionError(PhotoBoothError):
    """Raised when an uploaded file cannot be decoded as an image."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Image could not be compressed: {reason}")
        self.reason = reason
