"""Pillow-backed image compression."""

import asyncio
import base64
import io
from dataclasses import dataclass

from PIL import Image

from photo_booth.domain.errors import ImageCompressionError
from photo_booth.services.uploads import ImageCompressor


@dataclass
class PillowImageCompressor(ImageCompressor):
    """Resizes and re-encodes images as JPEG data URLs."""

    async def compress(self, image: bytes, quality: float, max_dimension: int) -> str:
        """Compress an image off the event loop."""
        try:
            encoded = await asyncio.to_thread(
                compress_image, image, quality, max_dimension
            )
        except (OSError, Image.DecompressionBombError) as exc:
            raise ImageCompressionError(str(exc)) from exc
        return f"data:image/jpeg;base64,{base64.b64encode(encoded).decode('ascii')}"


def compress_image(image_data: bytes, quality: float, max_dimension: int) -> bytes:
    """Fit the image within ``max_dimension`` and encode it as JPEG."""
    img = Image.open(io.BytesIO(image_data))

    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")

    longest = max(img.width, img.height)
    if longest > max_dimension:
        ratio = max_dimension / longest
        size = (max(1, round(img.width * ratio)), max(1, round(img.height * ratio)))
        img = img.resize(size, Image.Resampling.LANCZOS)

    output = io.BytesIO()
    img.save(output, format="JPEG", quality=round(quality * 100), optimize=True)
    return output.getvalue()
