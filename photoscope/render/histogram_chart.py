"""
Histogram chart rendering

Draws a normalized 256-bin histogram as a line chart. Consumes only the
numeric bins, so the analysis engine never depends on drawing code.
"""

import logging
from pathlib import Path
from typing import Dict, Sequence, Tuple, Union

from PIL import Image, ImageDraw

logger = logging.getLogger(__name__)

Color = Union[str, Tuple[int, int, int]]

# Line colors per channel of an analysis result
CHANNEL_COLORS: Dict[str, Color] = {
    'red': (220, 30, 30),
    'green': (30, 160, 30),
    'blue': (30, 60, 220),
    'luminance': (90, 90, 90),
}


def render_histogram(bins: Sequence[float], color: Color,
                     width: int = 512, height: int = 256,
                     margin: int = 10, line_width: int = 2) -> Image.Image:
    """
    Render a histogram as a line chart

    Args:
        bins: Normalized bin values (peak 1.0)
        color: Line color
        width, height: Chart size in pixels
        margin: Space between the canvas edge and the axes
        line_width: Stroke width of the axes and the histogram line

    Returns:
        RGB PIL image
    """
    if not bins:
        raise ValueError("Histogram has no bins")
    if width <= 2 * margin or height <= 2 * margin:
        raise ValueError(f"Chart size {width}x{height} too small for margin {margin}")

    image = Image.new('RGB', (width, height), 'white')
    draw = ImageDraw.Draw(image)

    graph_width = width - 2 * margin
    graph_height = height - 2 * margin
    baseline = height - margin

    # Axes
    draw.line([(margin, baseline), (width - margin, baseline)], fill='black', width=line_width)
    draw.line([(margin, baseline), (margin, margin)], fill='black', width=line_width)

    step = graph_width / len(bins)
    points = [
        (margin + i * step, baseline - min(max(value, 0.0), 1.0) * graph_height)
        for i, value in enumerate(bins)
    ]
    draw.line(points, fill=color, width=line_width)

    return image


def save_histogram_chart(bins: Sequence[float], color: Color,
                         path: Union[str, Path], **kwargs) -> Path:
    """
    Render a histogram and save it as PNG

    Returns:
        Path of the written file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    render_histogram(bins, color, **kwargs).save(path, format='PNG')
    logger.debug(f"Saved histogram chart to {path}")
    return path


def save_result_charts(result, directory: Union[str, Path], stem: str = 'histogram',
                       **kwargs) -> Dict[str, Path]:
    """
    Save one chart per channel of an ImageAnalysisResult

    Args:
        result: ImageAnalysisResult
        directory: Output directory
        stem: File name prefix

    Returns:
        Mapping of channel name to written file
    """
    directory = Path(directory)
    written = {}
    for name, histogram in result.histograms.items():
        written[name] = save_histogram_chart(
            histogram.bins, CHANNEL_COLORS[name],
            directory / f"{stem}_{name}.png", **kwargs
        )
    logger.info(f"Saved {len(written)} histogram charts to {directory}")
    return written
