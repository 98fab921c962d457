"""
Utility functions for the node manager
"""

from .durations import parse_duration
from .logger import get_logger, get_category_logger, configure_logger, BoundLogger

__all__ = [
    'parse_duration',
    'get_logger',
    'get_category_logger',
    'configure_logger',
    'BoundLogger',
]
