"""
Data models for the photometric analysis engine.

Every result type is a frozen dataclass created fresh for each analysis
call and returned by value.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, Optional, Tuple


HISTOGRAM_BINS = 256


@dataclass(frozen=True)
class HistogramStatistics:
    """Statistics derived from one 256-bin histogram (bin-index units)"""
    mean: float = 0.0
    median: float = 0.0
    standard_deviation: float = 0.0
    shadow_clipping: bool = False
    highlight_clipping: bool = False
    dynamic_range: int = 0
    mode: int = 0
    skewness: float = 0.0


@dataclass(frozen=True)
class ChannelHistogram:
    """
    Normalized histogram for a single channel.

    ``bins`` holds 256 floats scaled so the tallest bin is 1.0, or all
    zeros when no pixels were sampled.
    """
    name: str
    bins: Tuple[float, ...]
    statistics: HistogramStatistics = field(default_factory=HistogramStatistics)

    @property
    def peak(self) -> float:
        return max(self.bins) if self.bins else 0.0


@dataclass(frozen=True)
class ColorTemperatureEstimate:
    """White balance estimate from the average image color"""
    temperature: float = 5500.0  # Kelvin, clamped to [2000, 25000]
    tint: float = 0.0  # Green/magenta, clamped to [-1, 1]
    red_ratio: float = 1.0 / 3.0
    green_ratio: float = 1.0 / 3.0
    blue_ratio: float = 1.0 / 3.0


@dataclass(frozen=True)
class ContrastMetrics:
    """Global contrast measurements over the luminance plane"""
    rms_contrast: float = 0.0
    michelson_contrast: float = 0.0
    weber_contrast: float = 0.0
    dynamic_range_stops: float = 0.0
    global_contrast: float = 0.0


@dataclass(frozen=True)
class ExposureAnalysis:
    """Exposure diagnosis and corrective recommendation"""
    average_ev: float = 0.0
    suggested_ev: float = 0.0
    is_underexposed: bool = False
    is_overexposed: bool = False
    shadow_detail: float = 0.0  # Fraction of pixels below the shadow level
    highlight_detail: float = 0.0  # Fraction of pixels above the highlight level
    histogram_balance: float = 0.0  # Median luminance
    recommendation: str = ""


@dataclass(frozen=True)
class ImageAnalysisResult:
    """Complete, immutable snapshot of one image analysis"""
    width: int
    height: int
    red: ChannelHistogram
    green: ChannelHistogram
    blue: ChannelHistogram
    luminance: ChannelHistogram
    white_balance: ColorTemperatureEstimate
    contrast: ContrastMetrics
    exposure: ExposureAnalysis

    @property
    def total_pixels(self) -> int:
        return self.width * self.height

    @property
    def histograms(self) -> Dict[str, ChannelHistogram]:
        return {
            'red': self.red,
            'green': self.green,
            'blue': self.blue,
            'luminance': self.luminance,
        }

    def to_dict(self, include_bins: bool = True) -> Dict[str, Any]:
        """
        Convert to a JSON-serialisable dictionary

        Args:
            include_bins: Whether to include the 256-bin arrays

        Returns:
            Nested dictionary of the analysis values
        """
        histograms = {}
        for name, histogram in self.histograms.items():
            entry = {'statistics': asdict(histogram.statistics)}
            if include_bins:
                entry['bins'] = list(histogram.bins)
            histograms[name] = entry

        return {
            'width': self.width,
            'height': self.height,
            'total_pixels': self.total_pixels,
            'histograms': histograms,
            'white_balance': asdict(self.white_balance),
            'contrast': asdict(self.contrast),
            'exposure': asdict(self.exposure),
        }


class AnalysisErrorKind(Enum):
    """Reasons an analysis can end without a result"""
    INVALID_IMAGE = "invalid_image"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class AnalysisError:
    """Error value returned in place of a result"""
    kind: AnalysisErrorKind
    message: str = ""

    @classmethod
    def invalid_image(cls, message: str) -> 'AnalysisError':
        return cls(AnalysisErrorKind.INVALID_IMAGE, message)

    @classmethod
    def cancelled(cls, message: str = "Analysis cancelled") -> 'AnalysisError':
        return cls(AnalysisErrorKind.CANCELLED, message)

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class AnalysisFailed(Exception):
    """Raised by AnalysisOutcome.unwrap() when the outcome holds an error"""

    def __init__(self, error: AnalysisError):
        super().__init__(str(error))
        self.error = error


@dataclass(frozen=True)
class AnalysisOutcome:
    """
    Tagged result of ImageAnalyzer.analyze.

    Exactly one of ``result`` and ``error`` is set.
    """
    result: Optional[ImageAnalysisResult] = None
    error: Optional[AnalysisError] = None

    def __post_init__(self):
        if (self.result is None) == (self.error is None):
            raise ValueError("AnalysisOutcome needs exactly one of result or error")

    @classmethod
    def success(cls, result: ImageAnalysisResult) -> 'AnalysisOutcome':
        return cls(result=result)

    @classmethod
    def failure(cls, error: AnalysisError) -> 'AnalysisOutcome':
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def cancelled(self) -> bool:
        return self.error is not None and self.error.kind is AnalysisErrorKind.CANCELLED

    def unwrap(self) -> ImageAnalysisResult:
        """Return the result or raise AnalysisFailed"""
        if self.error is not None:
            raise AnalysisFailed(self.error)
        return self.result
