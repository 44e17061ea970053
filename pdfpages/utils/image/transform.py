from __future__ import annotations

import math
from pathlib import Path

from PIL import Image

from pdfpages.utils.log_utils import logger


THUMBNAIL_WIDTH = 310
WEBP_QUALITY = 80


def thumbnail_size(width: int, height: int, target_width: int = THUMBNAIL_WIDTH) -> tuple[int, int]:
    """Return ``(target_width, round(height * target_width / width))``.

    Rounds half up so every page of every run uses the same rule, and never
    returns a zero height for very wide pages.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image size must be positive, got {width}x{height}")
    if target_width <= 0:
        raise ValueError(f"Target width must be positive, got {target_width}")
    scaled = math.floor(height * target_width / width + 0.5)
    return target_width, max(1, int(scaled))


def _as_rgb(image: Image.Image) -> Image.Image:
    if image.mode in ("RGB", "RGBA"):
        return image
    return image.convert("RGB")


def save_webp(image: Image.Image, path: Path, quality: int = WEBP_QUALITY) -> Path:
    """Encode ``image`` as WebP at ``path``."""
    _as_rgb(image).save(path, format="WEBP", quality=quality)
    return path


def resize_to_width(image: Image.Image, target_width: int = THUMBNAIL_WIDTH) -> Image.Image:
    """Resize to exactly ``target_width`` keeping the aspect ratio."""
    new_size = thumbnail_size(image.width, image.height, target_width)
    if new_size == image.size:
        return image.copy()
    logger.debug(f"Resizing {image.width}x{image.height} -> {new_size[0]}x{new_size[1]}")
    return image.resize(new_size, resample=Image.Resampling.LANCZOS)


def save_thumbnail(
    image: Image.Image, path: Path, target_width: int = THUMBNAIL_WIDTH
) -> tuple[int, int]:
    """Write a WebP thumbnail of ``image`` and return its size."""
    thumb = resize_to_width(image, target_width)
    save_webp(thumb, path)
    return thumb.size


__all__ = [
    "THUMBNAIL_WIDTH",
    "thumbnail_size",
    "resize_to_width",
    "save_webp",
    "save_thumbnail",
]
