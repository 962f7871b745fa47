"""
PhotoScope: photometric image analysis

Computes channel and luminance histograms, white balance, contrast and
exposure diagnostics from decoded pixel data.
"""

__version__ = "0.1.0"

from .config import load_config, AnalysisSettings
from .analysis import ImageAnalyzer, analyze_image, ArrayRaster, CancellationSignal

__all__ = [
    "load_config",
    "AnalysisSettings",
    "ImageAnalyzer",
    "analyze_image",
    "ArrayRaster",
    "CancellationSignal",
]
