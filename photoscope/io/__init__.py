"""
Image decoding for PhotoScope

Adapts Pillow and OpenCV decoders into the RasterImage shape used by the
analysis engine.
"""

from .loader import (
    ImageDecodeError,
    load_raster,
    load_raster_bytes,
    raster_from_array,
    find_images,
)

__all__ = [
    'ImageDecodeError',
    'load_raster',
    'load_raster_bytes',
    'raster_from_array',
    'find_images',
]
