"""
Luminance calculation for PhotoScope

Converts 8-bit sRGB values to linear light and combines them with the
Rec. 709 luminance weights.
"""

import numpy as np

# Rec. 709 luminance coefficients
REC709_RED = 0.2126
REC709_GREEN = 0.7152
REC709_BLUE = 0.0722


def srgb_to_linear(value: float) -> float:
    """
    Apply the inverse sRGB transfer function

    Args:
        value: Gamma-encoded channel value (0-1)

    Returns:
        Linear-light channel value (0-1)
    """
    if value <= 0.04045:
        return value / 12.92
    return ((value + 0.055) / 1.055) ** 2.4


def luminance(red: int, green: int, blue: int) -> float:
    """
    Relative luminance of one 8-bit sRGB pixel

    Args:
        red, green, blue: Channel bytes (0-255)

    Returns:
        Luminance in [0, 1]
    """
    linear_r = srgb_to_linear(red / 255.0)
    linear_g = srgb_to_linear(green / 255.0)
    linear_b = srgb_to_linear(blue / 255.0)
    return REC709_RED * linear_r + REC709_GREEN * linear_g + REC709_BLUE * linear_b


def _build_linear_table() -> np.ndarray:
    table = np.array([srgb_to_linear(i / 255.0) for i in range(256)], dtype=np.float64)
    table.setflags(write=False)
    return table


# Linear value of every possible byte, shared read-only by all analyses
LINEAR_LUT = _build_linear_table()


def row_luminance(row: np.ndarray) -> np.ndarray:
    """
    Vectorised luminance for one row of pixels

    Gives the same values as luminance() for each pixel.

    Args:
        row: (width, 3) uint8 array of RGB bytes

    Returns:
        (width,) float64 array of luminance values
    """
    return (REC709_RED * LINEAR_LUT[row[:, 0]]
            + REC709_GREEN * LINEAR_LUT[row[:, 1]]
            + REC709_BLUE * LINEAR_LUT[row[:, 2]])


def luminance_bin(value) -> np.ndarray:
    """Histogram bin index for luminance value(s): round(clamp(Y, 0, 1) * 255)"""
    scaled = np.clip(value, 0.0, 1.0) * 255.0
    return np.clip(np.floor(scaled + 0.5), 0, 255).astype(np.intp)
