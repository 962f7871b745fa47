"""
Image loading for PhotoScope
Decodes image files into ArrayRaster instances for the analysis engine
"""

import io
import logging
from pathlib import Path
from typing import List, Union

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from ..analysis.raster import ArrayRaster

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.tif', '.tiff', '.bmp', '.webp')
BACKENDS = ('pillow', 'opencv')


class ImageDecodeError(Exception):
    """Raised when an image file cannot be decoded"""


def raster_from_array(array: np.ndarray) -> ArrayRaster:
    """
    Wrap a decoded pixel array

    Args:
        array: (H, W, 3), (H, W, 4) or (H, W) uint8 array in RGB order

    Returns:
        ArrayRaster
    """
    try:
        return ArrayRaster(array)
    except (TypeError, ValueError) as e:
        raise ImageDecodeError(str(e)) from e


def _load_with_pillow(source) -> np.ndarray:
    try:
        with Image.open(source) as img:
            return np.asarray(img.convert('RGB'))
    except (UnidentifiedImageError, OSError) as e:
        raise ImageDecodeError(f"Unable to decode image: {e}") from e


def _load_with_opencv(path: Path) -> np.ndarray:
    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        raise ImageDecodeError(f"Unable to decode image: {path}")
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)


def load_raster(path: Union[str, Path], backend: str = 'pillow') -> ArrayRaster:
    """
    Decode an image file

    Args:
        path: Image file path
        backend: 'pillow' or 'opencv'

    Returns:
        ArrayRaster with the RGB pixels

    Raises:
        ImageDecodeError: If the file is missing or cannot be decoded
    """
    path = Path(path)
    if backend not in BACKENDS:
        raise ValueError(f"Unknown backend '{backend}', expected one of {BACKENDS}")
    if not path.is_file():
        raise ImageDecodeError(f"Image file not found: {path}")

    if backend == 'opencv':
        pixels = _load_with_opencv(path)
    else:
        pixels = _load_with_pillow(path)

    logger.debug(f"Decoded {path.name} with {backend}: {pixels.shape[1]}x{pixels.shape[0]}")
    return raster_from_array(pixels)


def load_raster_bytes(data: bytes) -> ArrayRaster:
    """Decode an in-memory encoded image with Pillow"""
    return raster_from_array(_load_with_pillow(io.BytesIO(data)))


def find_images(directory: Union[str, Path], recursive: bool = True) -> List[Path]:
    """
    Find image files in a directory

    Args:
        directory: Directory to search
        recursive: Whether to include subdirectories

    Returns:
        Sorted list of image paths
    """
    directory = Path(directory)
    pattern = '**/*' if recursive else '*'
    images = sorted(
        p for p in directory.glob(pattern)
        if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
    )
    logger.info(f"Found {len(images)} images in {directory}")
    return images
