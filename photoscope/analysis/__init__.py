"""
Photometric analysis engine for PhotoScope

Histograms, white balance, contrast and exposure from a single pass over
the pixels of a RasterImage.
"""

from .engine import ImageAnalyzer, analyze_image
from .raster import RasterImage, ArrayRaster, CancellationSignal, PixelSampler
from .models import (
    ChannelHistogram,
    HistogramStatistics,
    ColorTemperatureEstimate,
    ContrastMetrics,
    ExposureAnalysis,
    ImageAnalysisResult,
    AnalysisError,
    AnalysisErrorKind,
    AnalysisFailed,
    AnalysisOutcome,
)

__all__ = [
    'ImageAnalyzer',
    'analyze_image',
    'RasterImage',
    'ArrayRaster',
    'CancellationSignal',
    'PixelSampler',
    'ChannelHistogram',
    'HistogramStatistics',
    'ColorTemperatureEstimate',
    'ContrastMetrics',
    'ExposureAnalysis',
    'ImageAnalysisResult',
    'AnalysisError',
    'AnalysisErrorKind',
    'AnalysisFailed',
    'AnalysisOutcome',
]
