"""
Color temperature and tint estimation

Estimates correlated color temperature (CCT) from the average image color
using an sRGB -> CIE XYZ (D65) transform and McCamy's approximation.
"""

import logging
from typing import Tuple

from .luminance import srgb_to_linear
from .models import ColorTemperatureEstimate

logger = logging.getLogger(__name__)

MIN_TEMPERATURE = 2000.0
MAX_TEMPERATURE = 25000.0
DEFAULT_TEMPERATURE = 5500.0

# sRGB (linear) to CIE XYZ, D65 white point
SRGB_TO_XYZ = (
    (0.4124564, 0.3575761, 0.1804375),
    (0.2126729, 0.7151522, 0.0721750),
    (0.0193339, 0.1191920, 0.9503041),
)

# McCamy's epicenter
MCCAMY_XE = 0.3320
MCCAMY_YE = 0.1858


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def rgb_to_xyz(red: float, green: float, blue: float) -> Tuple[float, float, float]:
    """
    Convert gamma-encoded RGB (0-255) to CIE XYZ

    Args:
        red, green, blue: Channel values, may be fractional averages

    Returns:
        (X, Y, Z) tristimulus values
    """
    linear = (
        srgb_to_linear(red / 255.0),
        srgb_to_linear(green / 255.0),
        srgb_to_linear(blue / 255.0),
    )
    return tuple(
        row[0] * linear[0] + row[1] * linear[1] + row[2] * linear[2]
        for row in SRGB_TO_XYZ
    )


def mccamy_cct(x: float, y: float) -> float:
    """Correlated color temperature from xy chromaticity, clamped to the valid range"""
    denominator = MCCAMY_YE - y
    if denominator == 0:
        return MAX_TEMPERATURE
    n = (x - MCCAMY_XE) / denominator
    cct = 449 * n ** 3 + 3525 * n ** 2 + 6823.3 * n + 5520.33
    return _clamp(cct, MIN_TEMPERATURE, MAX_TEMPERATURE)


def calculate_tint(avg_red: float, avg_green: float, avg_blue: float) -> float:
    """
    Green/magenta tint from the ratio of green to the red/blue mean

    Positive values lean green, negative values lean magenta.
    """
    magenta = (avg_red + avg_blue) / 2
    if magenta == 0:
        return 1.0 if avg_green > 0 else 0.0
    green_magenta_ratio = avg_green / magenta
    return _clamp((green_magenta_ratio - 1.0) * 2.0, -1.0, 1.0)


class ColorimetryEngine:
    """Estimates white balance from per-channel averages"""

    def estimate(self, avg_red: float, avg_green: float, avg_blue: float) -> ColorTemperatureEstimate:
        """
        Estimate color temperature, tint and channel ratios

        Args:
            avg_red, avg_green, avg_blue: Mean channel values (0-255)

        Returns:
            ColorTemperatureEstimate
        """
        channel_sum = avg_red + avg_green + avg_blue
        if channel_sum > 0:
            ratios = (avg_red / channel_sum, avg_green / channel_sum, avg_blue / channel_sum)
        else:
            ratios = (1.0 / 3.0, 1.0 / 3.0, 1.0 / 3.0)

        X, Y, Z = rgb_to_xyz(avg_red, avg_green, avg_blue)
        total = X + Y + Z
        if total == 0:
            logger.debug("Black input, using default color temperature")
            return ColorTemperatureEstimate(
                temperature=DEFAULT_TEMPERATURE,
                tint=0.0,
                red_ratio=ratios[0],
                green_ratio=ratios[1],
                blue_ratio=ratios[2],
            )

        temperature = mccamy_cct(X / total, Y / total)

        return ColorTemperatureEstimate(
            temperature=temperature,
            tint=calculate_tint(avg_red, avg_green, avg_blue),
            red_ratio=ratios[0],
            green_ratio=ratios[1],
            blue_ratio=ratios[2],
        )
