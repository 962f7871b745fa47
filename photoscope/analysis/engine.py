"""
Image analysis orchestrator

Drives a single pass over the pixels, feeding the histogram, color and
luminance accumulators, then runs colorimetry, contrast and exposure
analysis on the collected data.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from ..config import AnalysisSettings
from ..utils.logging import StructuredLogger
from .colorimetry import ColorimetryEngine
from .contrast import ContrastAnalyzer
from .exposure import ExposureAnalyzer
from .histogram import HistogramAccumulator
from .luminance import row_luminance
from .models import AnalysisError, AnalysisOutcome, ImageAnalysisResult
from .raster import CancellationSignal, PixelSampler, validate_dimensions

logger = StructuredLogger(__name__)


class PassAccumulator:
    """
    Running totals for one band of rows

    Owned by a single band of a single analyze() call. Luminance values are
    written into the caller's plane at their own row offsets.
    """

    def __init__(self, width: int, plane: np.ndarray):
        self.width = width
        self.plane = plane
        self.histograms = HistogramAccumulator()
        self.channel_sums = np.zeros(3, dtype=np.int64)

    def add_row(self, y: int, row: np.ndarray):
        lum = row_luminance(row)
        self.plane[y * self.width:(y + 1) * self.width] = lum
        self.histograms.add_row(row, lum)
        self.channel_sums += row.sum(axis=0, dtype=np.int64)

    def merge(self, other: 'PassAccumulator'):
        self.histograms.merge(other.histograms)
        self.channel_sums += other.channel_sums


def _split_rows(height: int, bands: int) -> List[Tuple[int, int]]:
    """Split [0, height) into at most ``bands`` contiguous ranges"""
    bands = max(1, min(bands, height))
    edges = np.linspace(0, height, bands + 1).astype(int)
    return [(int(edges[i]), int(edges[i + 1])) for i in range(bands)]


class ImageAnalyzer:
    """
    Photometric analysis of a RasterImage

    Holds only configuration; every call to analyze() builds its own
    accumulators, so one analyzer can be shared between threads.
    """

    def __init__(self, settings: Optional[AnalysisSettings] = None):
        """
        Initialize analyzer

        Args:
            settings: Analysis thresholds (defaults if not provided)
        """
        self.settings = settings or AnalysisSettings()
        self.colorimetry = ColorimetryEngine()
        self.contrast = ContrastAnalyzer()
        self.exposure = ExposureAnalyzer(
            calibration_constant=self.settings.calibration_constant,
            middle_gray=self.settings.middle_gray,
            underexposed_mean=self.settings.underexposed_mean,
            overexposed_mean=self.settings.overexposed_mean,
            shadow_level=self.settings.shadow_detail_level,
            highlight_level=self.settings.highlight_detail_level,
            hdr_stops_threshold=self.settings.hdr_stops_threshold,
        )

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]]) -> 'ImageAnalyzer':
        return cls(AnalysisSettings.from_config(config))

    def analyze(self, image, cancel: Optional[CancellationSignal] = None) -> AnalysisOutcome:
        """
        Analyze an image in one pass

        Args:
            image: RasterImage to analyze
            cancel: Optional cancellation signal, checked once per row

        Returns:
            AnalysisOutcome holding either the ImageAnalysisResult or an
            AnalysisError (invalid image or cancelled)
        """
        error = validate_dimensions(image)
        if error is None and image.width * image.height == 0 and not self.settings.allow_empty_images:
            error = AnalysisError.invalid_image(f"Image has no pixels ({image.width}x{image.height})")
        if error is not None:
            logger.warning("Rejected image", reason=error.message)
            return AnalysisOutcome.failure(error)

        width, height = int(image.width), int(image.height)
        started = time.perf_counter()
        logger.debug("Starting analysis", width=width, height=height,
                     workers=self.settings.workers)

        plane = np.empty(width * height, dtype=np.float64)
        accumulator, error = self._run_pass(image, cancel, width, height, plane)
        if error is not None:
            logger.warning("Analysis stopped", kind=error.kind.value, reason=error.message)
            return AnalysisOutcome.failure(error)

        result = self._finalize(width, height, accumulator, plane)
        logger.info("Analysis complete", width=width, height=height,
                    seconds=round(time.perf_counter() - started, 4))
        return AnalysisOutcome.success(result)

    def _run_pass(self, image, cancel, width: int, height: int,
                  plane: np.ndarray) -> Tuple[Optional[PassAccumulator], Optional[AnalysisError]]:
        bands = _split_rows(height, self.settings.workers) if height else [(0, 0)]

        def run_band(band: Tuple[int, int]):
            sampler = PixelSampler(image, cancel)
            accumulator = PassAccumulator(width, plane)
            for y, row in sampler.rows(*band):
                accumulator.add_row(y, row)
            return accumulator, sampler.error

        if len(bands) == 1:
            outcomes = [run_band(bands[0])]
        else:
            with ThreadPoolExecutor(max_workers=len(bands)) as executor:
                outcomes = list(executor.map(run_band, bands))

        for _, error in outcomes:
            if error is not None:
                return None, error

        total = outcomes[0][0]
        for accumulator, _ in outcomes[1:]:
            total.merge(accumulator)
        return total, None

    def _finalize(self, width: int, height: int, accumulator: PassAccumulator,
                  plane: np.ndarray) -> ImageAnalysisResult:
        settings = self.settings
        red, green, blue, luminance = accumulator.histograms.build(
            clip_threshold=settings.clip_threshold,
            clip_bins=settings.clip_bins,
            range_threshold=settings.range_bin_threshold,
        )

        total_pixels = width * height
        if total_pixels:
            averages = accumulator.channel_sums / total_pixels
            white_balance = self.colorimetry.estimate(*(float(v) for v in averages))
        else:
            white_balance = self.colorimetry.estimate(0.0, 0.0, 0.0)

        contrast = self.contrast.analyze(plane)
        exposure = self.exposure.analyze(plane, luminance.statistics, contrast)

        return ImageAnalysisResult(
            width=width,
            height=height,
            red=red,
            green=green,
            blue=blue,
            luminance=luminance,
            white_balance=white_balance,
            contrast=contrast,
            exposure=exposure,
        )


def analyze_image(image, cancel: Optional[CancellationSignal] = None,
                  config: Optional[Dict[str, Any]] = None) -> AnalysisOutcome:
    """
    Analyze an image with settings from a config dictionary

    Args:
        image: RasterImage to analyze
        cancel: Optional cancellation signal
        config: Configuration dictionary (defaults if None)

    Returns:
        AnalysisOutcome
    """
    return ImageAnalyzer.from_config(config).analyze(image, cancel)
