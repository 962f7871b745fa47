"""
Command groups for the PhotoScope CLI
"""

from .chart_commands import chart, render_options

__all__ = ['chart', 'render_options']
