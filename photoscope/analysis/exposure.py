"""
Exposure analysis for PhotoScope

Estimates the exposure value of the scene from mean luminance, flags
under/overexposure and builds a short corrective recommendation.
"""

import logging
import math
from typing import List, Optional

import numpy as np

from .luminance import srgb_to_linear
from .models import ContrastMetrics, ExposureAnalysis, HistogramStatistics

logger = logging.getLogger(__name__)

# Reflected-light meter calibration constant
CALIBRATION_CONSTANT = 12.5
MIDDLE_GRAY = 0.18

# Darkest non-zero luminance an 8-bit sRGB image can hold; stands in for a
# mean of zero so the EV stays finite
MIN_LUMINANCE = srgb_to_linear(1 / 255.0) * 0.0722


class ExposureAnalyzer:
    """
    Exposure diagnosis from luminance samples

    By default luminance below 0.1 counts as shadow and above 0.9 as
    highlight.
    """

    def __init__(self,
                 calibration_constant: float = CALIBRATION_CONSTANT,
                 middle_gray: float = MIDDLE_GRAY,
                 underexposed_mean: float = 0.1,
                 overexposed_mean: float = 0.8,
                 shadow_level: float = 0.1,
                 highlight_level: float = 0.9,
                 hdr_stops_threshold: float = 10.0):
        self.calibration_constant = calibration_constant
        self.middle_gray = middle_gray
        self.underexposed_mean = underexposed_mean
        self.overexposed_mean = overexposed_mean
        self.shadow_level = shadow_level
        self.highlight_level = highlight_level
        self.hdr_stops_threshold = hdr_stops_threshold

    @property
    def suggested_ev(self) -> float:
        """EV that places the mean at middle gray"""
        return math.log2(self.middle_gray * self.calibration_constant)

    def exposure_value(self, mean_luminance: float) -> float:
        return math.log2(max(mean_luminance, MIN_LUMINANCE) * self.calibration_constant)

    def analyze(self, samples: np.ndarray,
                stats: HistogramStatistics,
                contrast: Optional[ContrastMetrics] = None) -> ExposureAnalysis:
        """
        Analyze exposure

        Args:
            samples: Luminance values in [0, 1]
            stats: Statistics of the luminance histogram
            contrast: Contrast metrics, used for the high dynamic range note

        Returns:
            ExposureAnalysis
        """
        samples = np.asarray(samples, dtype=np.float64)
        if samples.size == 0:
            return ExposureAnalysis(suggested_ev=self.suggested_ev)

        mean = float(samples.mean())
        count = samples.size

        is_underexposed = mean < self.underexposed_mean or stats.shadow_clipping
        is_overexposed = mean > self.overexposed_mean or stats.highlight_clipping

        stops = contrast.dynamic_range_stops if contrast is not None else 0.0

        return ExposureAnalysis(
            average_ev=self.exposure_value(mean),
            suggested_ev=self.suggested_ev,
            is_underexposed=bool(is_underexposed),
            is_overexposed=bool(is_overexposed),
            shadow_detail=int(np.count_nonzero(samples < self.shadow_level)) / count,
            highlight_detail=int(np.count_nonzero(samples > self.highlight_level)) / count,
            histogram_balance=float(np.median(samples)),
            recommendation=self.recommend(mean, stats, stops),
        )

    def recommend(self, mean: float, stats: HistogramStatistics, dynamic_range_stops: float) -> str:
        """
        Build the recommendation text

        Returns:
            Notes joined with "; ", empty when nothing needs attention
        """
        notes: List[str] = []

        if mean < self.underexposed_mean:
            notes.append("Increase exposure (+1 to +2 stops)")
        elif mean > self.overexposed_mean:
            notes.append("Decrease exposure (-1 to -2 stops)")

        if stats.shadow_clipping:
            notes.append("Shadow clipping detected - lift shadows")

        if stats.highlight_clipping:
            notes.append("Highlight clipping detected - reduce highlights")

        if dynamic_range_stops > self.hdr_stops_threshold:
            notes.append("High dynamic range - consider HDR or graduated filters")

        return "; ".join(notes)
