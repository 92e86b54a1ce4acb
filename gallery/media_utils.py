import os
from typing import Tuple
from PIL import Image, ImageOps, UnidentifiedImageError

from .exceptions import ThumbnailError


def create_thumbnail(
    source_path: str,
    dest_path: str,
    size: Tuple[int, int] = (200, 200),
    quality: int = 85,
) -> Tuple[int, int]:
    """Write a centered cover-crop JPEG thumbnail of source_path to dest_path.

    Returns the natural (width, height) of the source image.
    """
    try:
        with Image.open(source_path) as img:
            width, height = img.size
            if img.mode != 'RGB':
                img = img.convert('RGB')
            thumb = ImageOps.fit(img, tuple(size), Image.Resampling.LANCZOS, centering=(0.5, 0.5))
            os.makedirs(os.path.dirname(dest_path) or ".", exist_ok=True)
            thumb.save(dest_path, format='JPEG', quality=quality, optimize=True)
    except (OSError, UnidentifiedImageError, ValueError, Image.DecompressionBombError) as e:
        raise ThumbnailError(f"Could not create thumbnail for {os.path.basename(source_path)}: {e}", path=dest_path) from e
    return width, height
