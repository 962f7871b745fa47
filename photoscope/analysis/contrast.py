"""
Contrast metrics over the luminance plane
"""

import math

import numpy as np

from .models import ContrastMetrics

# log10 -> stops conversion factor
STOPS_PER_DECADE = 3.32


class ContrastAnalyzer:
    """Computes RMS, Michelson and Weber contrast plus dynamic range in stops"""

    def analyze(self, samples: np.ndarray) -> ContrastMetrics:
        """
        Analyze luminance samples

        Args:
            samples: Luminance values in [0, 1]

        Returns:
            ContrastMetrics (all zero for an empty sample set)
        """
        samples = np.asarray(samples, dtype=np.float64)
        if samples.size == 0:
            return ContrastMetrics()

        mean = float(samples.mean())
        low = float(samples.min())
        high = float(samples.max())

        rms = math.sqrt(float(((samples - mean) ** 2).sum()) / samples.size)
        michelson = (high - low) / (high + low) if high > 0 else 0.0
        weber = max(0.0, (mean - low) / low) if low > 0 else 0.0
        stops = math.log10(high / low) * STOPS_PER_DECADE if high > low > 0 else 0.0

        return ContrastMetrics(
            rms_contrast=rms,
            michelson_contrast=michelson,
            weber_contrast=weber,
            dynamic_range_stops=stops,
            global_contrast=high - low,
        )
