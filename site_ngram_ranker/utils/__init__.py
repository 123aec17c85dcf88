"""
Shared utilities: error hierarchy and logging setup.
"""

from .errors import (
    NGramRankerError,
    FetchError,
    EngineError,
    ConfigurationError,
    ValidationError,
    handle_error
)
from .logging import setup_logging, get_logger

__all__ = [
    'NGramRankerError',
    'FetchError',
    'EngineError',
    'ConfigurationError',
    'ValidationError',
    'handle_error',
    'setup_logging',
    'get_logger'
]
