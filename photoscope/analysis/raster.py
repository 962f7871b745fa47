"""
Raster input abstraction and row sampler.

The engine only needs width, height and a per-pixel accessor, so any
decoder can feed it by adapting into RasterImage.
"""

import logging
import threading
from typing import Iterator, Optional, Protocol, Tuple, runtime_checkable

import numpy as np

from .models import AnalysisError

logger = logging.getLogger(__name__)


@runtime_checkable
class RasterImage(Protocol):
    """Read-only view of an 8-bit RGB image"""
    width: int
    height: int

    def get_pixel(self, x: int, y: int) -> Tuple[int, int, int]:
        ...


class ArrayRaster:
    """
    RasterImage backed by a numpy array

    Accepts (H, W, 3) RGB, (H, W, 4) RGBA (alpha ignored) and (H, W)
    grayscale uint8 arrays. The array is copied and made read-only.
    """

    def __init__(self, pixels: np.ndarray):
        pixels = np.asarray(pixels)
        if pixels.dtype != np.uint8:
            raise TypeError(f"Expected uint8 pixels, got {pixels.dtype}")
        if pixels.ndim == 2:
            pixels = np.repeat(pixels[:, :, np.newaxis], 3, axis=2)
        elif pixels.ndim == 3 and pixels.shape[2] in (3, 4):
            pixels = pixels[:, :, :3]
        else:
            raise ValueError(f"Unsupported pixel array shape {pixels.shape}")

        self._pixels = np.ascontiguousarray(pixels).copy()
        self._pixels.setflags(write=False)

    @classmethod
    def filled(cls, width: int, height: int, color: Tuple[int, int, int]) -> 'ArrayRaster':
        """Create a uniform image of a single color"""
        pixels = np.empty((height, width, 3), dtype=np.uint8)
        pixels[:, :] = color
        return cls(pixels)

    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    def get_pixel(self, x: int, y: int) -> Tuple[int, int, int]:
        r, g, b = self._pixels[y, x]
        return int(r), int(g), int(b)

    def get_row(self, y: int) -> np.ndarray:
        return self._pixels[y]

    def __repr__(self):
        return f"ArrayRaster({self.width}x{self.height})"


class CancellationSignal:
    """Cooperative cancellation flag shared between a caller and an analysis"""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


def validate_dimensions(image) -> Optional[AnalysisError]:
    """
    Check that an object can be sampled as a RasterImage

    Returns:
        AnalysisError describing the problem, or None if usable
    """
    width = getattr(image, 'width', None)
    height = getattr(image, 'height', None)

    if not isinstance(width, (int, np.integer)) or isinstance(width, bool):
        return AnalysisError.invalid_image(f"Image width is not an integer: {width!r}")
    if not isinstance(height, (int, np.integer)) or isinstance(height, bool):
        return AnalysisError.invalid_image(f"Image height is not an integer: {height!r}")
    if width < 0 or height < 0:
        return AnalysisError.invalid_image(f"Negative image dimensions {width}x{height}")
    if not callable(getattr(image, 'get_row', None)) and not callable(getattr(image, 'get_pixel', None)):
        return AnalysisError.invalid_image("Image has no pixel accessor")
    return None


class PixelSampler:
    """
    Visits every pixel of a RasterImage exactly once in row-major order

    Rows are yielded as (width, 3) uint8 arrays. Cancellation is checked
    before each row; when it fires, or when the accessor misbehaves,
    iteration stops and ``error`` is set.
    """

    def __init__(self, image, cancel: Optional[CancellationSignal] = None):
        self.image = image
        self.cancel = cancel
        self.width = int(image.width)
        self.height = int(image.height)
        self.error: Optional[AnalysisError] = None
        self._fast_rows = callable(getattr(image, 'get_row', None))

    def rows(self, start: int = 0, stop: Optional[int] = None) -> Iterator[Tuple[int, np.ndarray]]:
        """
        Iterate rows in [start, stop)

        Yields:
            (y, row) tuples
        """
        if stop is None:
            stop = self.height

        for y in range(start, stop):
            if self.cancel is not None and self.cancel.is_cancelled:
                logger.debug(f"Cancellation observed at row {y}")
                self.error = AnalysisError.cancelled(f"Analysis cancelled at row {y} of {self.height}")
                return

            row = self._read_row(y)
            if row is None:
                return
            yield y, row

    def _read_row(self, y: int) -> Optional[np.ndarray]:
        try:
            if self._fast_rows:
                row = np.asarray(self.image.get_row(y))
            else:
                row = np.array([self.image.get_pixel(x, y) for x in range(self.width)])
        except Exception as e:
            self.error = AnalysisError.invalid_image(f"Pixel accessor failed on row {y}: {e}")
            return None

        if self.width == 0:
            return np.empty((0, 3), dtype=np.uint8)

        if row.shape != (self.width, 3):
            self.error = AnalysisError.invalid_image(
                f"Row {y} has shape {row.shape}, expected ({self.width}, 3)")
            return None

        if row.dtype != np.uint8:
            if not np.issubdtype(row.dtype, np.integer) or row.min() < 0 or row.max() > 255:
                self.error = AnalysisError.invalid_image(f"Row {y} contains values outside 0-255")
                return None
            row = row.astype(np.uint8)

        return row
