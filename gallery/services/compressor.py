import asyncio
import io
import logging
import os
from typing import Optional, Tuple

from PIL import Image, ImageOps

from gallery.config import Settings, get_settings
from gallery.models import ImageFile

logger = logging.getLogger(__name__)


def scaled_size(width: int, height: int, max_width: int) -> Tuple[int, int]:
    """Cap width at max_width, keeping the aspect ratio"""
    if width <= max_width:
        return width, height
    return max_width, max(1, round(height * max_width / width))


def to_rgb(img: Image.Image) -> Image.Image:
    # JPEG has no alpha; flatten transparent images onto white
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        base = Image.new("RGB", img.size, (255, 255, 255))
        base.paste(img, mask=img.convert("RGBA").split()[-1])
        return base
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


class ImageCompressor:
    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.threshold = settings.compress_threshold
        self.quality = settings.compress_quality
        self.max_width = settings.compress_max_width

    def needs_compression(self, file: ImageFile) -> bool:
        return file.size > self.threshold

    def compress_sync(self, file: ImageFile) -> ImageFile:
        """Re-encode an oversized image as JPEG.

        Returns the input object itself when it is below the threshold, when it
        cannot be decoded, or when the re-encoded result would not be smaller.
        """
        if not self.needs_compression(file):
            return file

        try:
            with Image.open(io.BytesIO(file.data)) as img:
                img = ImageOps.exif_transpose(img)
                img = to_rgb(img)
                size = scaled_size(img.width, img.height, self.max_width)
                if size != img.size:
                    img = img.resize(size, Image.Resampling.LANCZOS)
                buf = io.BytesIO()
                img.save(buf, format="JPEG", quality=int(round(self.quality * 100)), optimize=True)
        except Exception as e:
            logger.warning(f"Compression failed for {file.name}, uploading original: {str(e)}")
            return file

        data = buf.getvalue()
        if len(data) >= file.size:
            logger.debug(f"Compressed {file.name} is not smaller ({len(data)} >= {file.size}), keeping original")
            return file

        stem = os.path.splitext(file.name)[0] or "image"
        logger.info(f"Compressed {file.name}: {file.size} -> {len(data)} bytes")
        return ImageFile(name=f"{stem}.jpg", content_type="image/jpeg", data=data)

    async def compress(self, file: ImageFile) -> ImageFile:
        if not self.needs_compression(file):
            return file
        return await asyncio.to_thread(self.compress_sync, file)
