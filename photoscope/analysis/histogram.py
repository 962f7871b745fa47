"""
Histogram accumulation, normalization and statistics

Four 256-bin counters (red, green, blue, luminance) are filled during the
pixel pass, then normalized to a probability histogram and finally scaled
so the tallest bin equals 1.0.
"""

import logging
import math
from typing import Tuple

import numpy as np

from .luminance import luminance_bin
from .models import HISTOGRAM_BINS, ChannelHistogram, HistogramStatistics

logger = logging.getLogger(__name__)

CHANNEL_NAMES = ('red', 'green', 'blue', 'luminance')


class HistogramAccumulator:
    """Raw integer bin counts for the four channels"""

    def __init__(self):
        # Rows: red, green, blue, luminance
        self.counts = np.zeros((4, HISTOGRAM_BINS), dtype=np.int64)
        self.total_pixels = 0

    def add_row(self, row: np.ndarray, row_luminance: np.ndarray):
        """
        Count one row of pixels

        Args:
            row: (width, 3) uint8 RGB bytes
            row_luminance: (width,) luminance values for the same pixels
        """
        for channel in range(3):
            self.counts[channel] += np.bincount(row[:, channel], minlength=HISTOGRAM_BINS)
        self.counts[3] += np.bincount(luminance_bin(row_luminance), minlength=HISTOGRAM_BINS)
        self.total_pixels += row.shape[0]

    def merge(self, other: 'HistogramAccumulator'):
        self.counts += other.counts
        self.total_pixels += other.total_pixels

    def build(self, clip_threshold: float = 0.02, clip_bins: int = 6,
              range_threshold: float = 0.001) -> Tuple[ChannelHistogram, ...]:
        """
        Normalize all four channels and derive their statistics

        Returns:
            (red, green, blue, luminance) ChannelHistograms
        """
        histograms = []
        for name, counts in zip(CHANNEL_NAMES, self.counts):
            probability = to_probability(counts, self.total_pixels)
            stats = compute_statistics(probability, clip_threshold, clip_bins, range_threshold)
            histograms.append(ChannelHistogram(
                name=name,
                bins=tuple(float(v) for v in scale_to_peak(probability)),
                statistics=stats,
            ))
        return tuple(histograms)


def to_probability(counts: np.ndarray, total_pixels: int) -> np.ndarray:
    """Divide every bin by the number of sampled pixels"""
    counts = np.asarray(counts, dtype=np.float64)
    if total_pixels == 0:
        return np.zeros_like(counts)
    return counts / total_pixels


def scale_to_peak(histogram: np.ndarray) -> np.ndarray:
    """Scale so the largest bin is exactly 1.0 (unchanged when all zero)"""
    peak = histogram.max() if histogram.size else 0.0
    if peak <= 0:
        return histogram.copy()
    return histogram / peak


def normalize(counts: np.ndarray, total_pixels: int) -> np.ndarray:
    """
    Full normalization of a raw histogram

    Args:
        counts: Raw bin counts
        total_pixels: Number of pixels sampled

    Returns:
        Histogram whose peak bin is 1.0, or all zeros for an empty image
    """
    return scale_to_peak(to_probability(counts, total_pixels))


def histogram_median(histogram: np.ndarray) -> int:
    """Smallest bin index whose cumulative mass reaches half the total"""
    half = histogram.sum() / 2
    cumulative = np.cumsum(histogram)
    index = int(np.searchsorted(cumulative, half, side='left'))
    return min(index, len(histogram) - 1)


def compute_statistics(histogram: np.ndarray,
                       clip_threshold: float = 0.02,
                       clip_bins: int = 6,
                       range_threshold: float = 0.001) -> HistogramStatistics:
    """
    Derive statistics from a probability histogram

    Clipping compares the pixel fraction in the lowest/highest ``clip_bins``
    bins against ``clip_threshold``, so the input must be normalized by
    pixel count and not yet rescaled to its peak. The dynamic range is
    measured on the peak-scaled bins, the same values the result reports.

    Args:
        histogram: 256 bins normalized by total pixel count
        clip_threshold: Fraction of pixels that counts as clipping
        clip_bins: Number of bins at each end checked for clipping
        range_threshold: Minimum peak-scaled bin value counted as occupied

    Returns:
        HistogramStatistics
    """
    histogram = np.asarray(histogram, dtype=np.float64)
    indices = np.arange(len(histogram), dtype=np.float64)
    total = histogram.sum()

    if total <= 0:
        return HistogramStatistics(
            shadow_clipping=False,
            highlight_clipping=False,
        )

    mean = float((indices * histogram).sum() / total)
    deviation = indices - mean
    variance = float((histogram * deviation ** 2).sum() / total)
    std = math.sqrt(variance)

    skewness = 0.0
    if std > 0:
        skewness = float((histogram * deviation ** 3).sum() / total) / std ** 3

    shadow_mass = histogram[:clip_bins].sum()
    highlight_mass = histogram[len(histogram) - clip_bins:].sum()

    occupied = np.flatnonzero(scale_to_peak(histogram) > range_threshold)
    dynamic_range = 0
    if occupied.size and occupied[-1] > occupied[0]:
        dynamic_range = int(occupied[-1] - occupied[0])

    return HistogramStatistics(
        mean=mean,
        median=float(histogram_median(histogram)),
        standard_deviation=std,
        shadow_clipping=bool(shadow_mass > clip_threshold),
        highlight_clipping=bool(highlight_mass > clip_threshold),
        dynamic_range=dynamic_range,
        mode=int(np.argmax(histogram)),
        skewness=skewness,
    )
