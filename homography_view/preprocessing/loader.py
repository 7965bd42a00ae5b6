"""Image loading for the homography viewer.

Decodes the source image once at startup into a float32 RGB array. The rest of
the tool never touches the file again.
"""

import logging
from pathlib import Path
from typing import Tuple

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

STANDARD_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.bmp', '.tiff', '.tif', '.webp')
HEIF_EXTENSIONS = ('.heic', '.heif')


class ImageLoadError(Exception):
    """Raised when the source image cannot be read or decoded."""


class ImageMetadata:
    """Metadata extracted from loaded image."""

    def __init__(
        self,
        original_size: Tuple[int, int],
        format: str
    ) -> None:
        self.original_size = original_size  # (width, height)
        self.format = format


def _to_rgb_array(img: Image.Image) -> np.ndarray:
    """Convert a PIL image to float32 RGB [0, 1] with shape (H, W, 3)."""
    arr = np.array(img).astype(np.float32) / 255.0

    if arr.ndim == 2:
        arr = np.stack([arr, arr, arr], axis=-1)
    elif arr.shape[2] == 4:
        arr = arr[:, :, :3]
    elif arr.shape[2] == 2:
        # Luminance + alpha
        arr = np.stack([arr[:, :, 0]] * 3, axis=-1)

    return arr


def _decode(path: Path, format_name: str) -> Tuple[np.ndarray, ImageMetadata]:
    try:
        with Image.open(path) as img:
            original_size = img.size
            img = ImageOps.exif_transpose(img)
            if img.mode not in ('L', 'LA', 'RGB', 'RGBA'):
                img = img.convert('RGB')
            arr = _to_rgb_array(img)
    except (UnidentifiedImageError, OSError) as e:
        raise ImageLoadError(f"Could not decode image {path}: {e}") from e

    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise ImageLoadError(f"Image has no pixels: {path}")

    metadata = ImageMetadata(original_size=original_size, format=format_name)

    logger.info(f"Loaded {format_name}: {path} ({arr.shape[1]}x{arr.shape[0]})")

    return arr, metadata


def load_heic(path: str) -> Tuple[np.ndarray, ImageMetadata]:
    """Load HEIC/HEIF image using pillow-heif.

    Args:
        path: Path to HEIC file

    Returns:
        Tuple of (RGB array as float32 [0,1], metadata)
    """
    try:
        from pillow_heif import register_heif_opener
        register_heif_opener()
    except ImportError as e:
        raise ImportError(
            "pillow-heif is required for HEIC support. "
            "Install with: pip install pillow-heif"
        ) from e

    return _decode(Path(path), "HEIC")


def load_standard(path: str) -> Tuple[np.ndarray, ImageMetadata]:
    """Load JPEG, PNG, BMP, TIFF or WebP using PIL.

    Args:
        path: Path to image file

    Returns:
        Tuple of (RGB array as float32 [0,1], metadata)
    """
    path_obj = Path(path)
    format_name = path_obj.suffix.lower().lstrip('.').upper()
    return _decode(path_obj, format_name)


def load_image(path: str) -> Tuple[np.ndarray, ImageMetadata]:
    """Load the source image from any supported format.

    Args:
        path: Path to image file

    Returns:
        Tuple of (RGB array as float32 [0,1] with shape (H, W, 3), metadata)

    Raises:
        ImageLoadError: If the file is missing, unsupported or cannot be decoded
    """
    path_obj = Path(path)

    if not path_obj.is_file():
        raise ImageLoadError(f"Image file not found: {path}")

    ext = path_obj.suffix.lower()

    if ext in HEIF_EXTENSIONS:
        return load_heic(path)
    elif ext in STANDARD_EXTENSIONS:
        return load_standard(path)
    else:
        raise ImageLoadError(f"Unsupported image format: {ext}")
