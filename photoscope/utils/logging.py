"""
Logging utilities for PhotoScope
Provides structured logging and batch progress tracking
"""

import logging
import sys
from typing import Optional, Dict, Any
from datetime import datetime
import json

import colorlog

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class StructuredLogger:
    """Provides structured logging with metadata"""

    def __init__(self, name: str, metadata: Optional[Dict[str, Any]] = None):
        """
        Initialize structured logger

        Args:
            name: Logger name
            metadata: Default metadata to include in all logs
        """
        self.logger = logging.getLogger(name)
        self.metadata = metadata or {}

    def _format_message(self, message: str, **kwargs) -> str:
        """Format message with metadata"""
        data = {**self.metadata, **kwargs}
        if data:
            return f"{message} | {json.dumps(data, default=str)}"
        return message

    def debug(self, message: str, **kwargs):
        """Log debug message with metadata"""
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(self._format_message(message, **kwargs))

    def info(self, message: str, **kwargs):
        """Log info message with metadata"""
        self.logger.info(self._format_message(message, **kwargs))

    def warning(self, message: str, **kwargs):
        """Log warning message with metadata"""
        self.logger.warning(self._format_message(message, **kwargs))

    def error(self, message: str, **kwargs):
        """Log error message with metadata"""
        self.logger.error(self._format_message(message, **kwargs))


class BatchStats:
    """Tracks statistics of a batch analysis run"""

    def __init__(self):
        self.start_time = datetime.now()
        self.total_files = 0
        self.analyzed_files = 0
        self.failed_files = 0
        self.underexposed_files = 0
        self.overexposed_files = 0
        self.errors = []
        self.processing_times = []

    def set_total(self, total: int):
        """Set total number of files to analyze"""
        self.total_files = total

    def add_result(self, underexposed: bool = False, overexposed: bool = False,
                   processing_time: Optional[float] = None):
        """
        Record a successful analysis

        Args:
            underexposed: Whether the image was flagged underexposed
            overexposed: Whether the image was flagged overexposed
            processing_time: Time taken to analyze the file
        """
        self.analyzed_files += 1
        if underexposed:
            self.underexposed_files += 1
        if overexposed:
            self.overexposed_files += 1
        if processing_time is not None:
            self.processing_times.append(processing_time)

    def add_error(self, file_path: str, error: str):
        """Record a file that could not be analyzed"""
        self.failed_files += 1
        self.errors.append({
            'file': file_path,
            'error': error,
            'time': datetime.now()
        })

    def get_elapsed_time(self) -> float:
        """Get elapsed time in seconds"""
        return (datetime.now() - self.start_time).total_seconds()

    def get_average_processing_time(self) -> float:
        """Get average analysis time per file"""
        if not self.processing_times:
            return 0.0
        return sum(self.processing_times) / len(self.processing_times)

    def get_summary(self) -> Dict[str, Any]:
        """Get batch summary"""
        elapsed = self.get_elapsed_time()

        return {
            'total_files': self.total_files,
            'analyzed_files': self.analyzed_files,
            'failed_files': self.failed_files,
            'underexposed_files': self.underexposed_files,
            'overexposed_files': self.overexposed_files,
            'errors': len(self.errors),
            'elapsed_time': elapsed,
            'average_time_per_file': self.get_average_processing_time(),
            'files_per_second': self.analyzed_files / elapsed if elapsed > 0 else 0
        }

    def format_summary(self) -> str:
        """Render the summary as console text"""
        summary = self.get_summary()

        lines = [
            "=" * 60,
            "ANALYSIS SUMMARY",
            "=" * 60,
            f"Total files:      {summary['total_files']}",
            f"Analyzed:         {summary['analyzed_files']}",
            f"Failed:           {summary['failed_files']}",
            f"Underexposed:     {summary['underexposed_files']}",
            f"Overexposed:      {summary['overexposed_files']}",
            f"Elapsed time:     {summary['elapsed_time']:.1f}s",
            f"Avg time/file:    {summary['average_time_per_file']:.2f}s",
            "=" * 60,
        ]

        if self.errors:
            lines.append("ERRORS:")
            for error in self.errors[:10]:  # First 10 only
                lines.append(f"  - {error['file']}: {error['error']}")
            if len(self.errors) > 10:
                lines.append(f"  ... and {len(self.errors) - 10} more errors")

        return "\n".join(lines)


def setup_console_logging(level: str = "INFO", color: bool = True,
                          fmt: str = DEFAULT_FORMAT):
    """
    Setup console logging with optional color support

    Args:
        level: Logging level name
        color: Whether to use colored output on a TTY
        fmt: Log record format
    """
    console_handler = logging.StreamHandler(sys.stderr)

    if color and sys.stderr.isatty():
        formatter = colorlog.ColoredFormatter(
            '%(log_color)s' + fmt + '%(reset)s',
            log_colors={
                'DEBUG': 'cyan',
                'INFO': 'green',
                'WARNING': 'yellow',
                'ERROR': 'red',
                'CRITICAL': 'red,bg_white',
            }
        )
    else:
        formatter = logging.Formatter(fmt)

    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(root_logger.handlers):
        if getattr(handler, '_photoscope_console', False):
            root_logger.removeHandler(handler)
    console_handler._photoscope_console = True
    root_logger.addHandler(console_handler)
