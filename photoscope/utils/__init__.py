"""
PhotoScope utilities module.

Provides logging helpers shared by the engine and the command line.
"""

from .logging import StructuredLogger, BatchStats, setup_console_logging

__all__ = [
    'StructuredLogger',
    'BatchStats',
    'setup_console_logging',
]
