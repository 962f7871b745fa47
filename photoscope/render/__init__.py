"""
Chart rendering for PhotoScope analysis results
"""

from .histogram_chart import render_histogram, save_histogram_chart, save_result_charts, CHANNEL_COLORS

__all__ = [
    'render_histogram',
    'save_histogram_chart',
    'save_result_charts',
    'CHANNEL_COLORS',
]
