"""
Error Handling Utilities

Exception types raised by the ingestion layer and decorators that log
failures with context before propagating them.

The geometric core does not raise its own exceptions: degenerate input is a
no-op there, and contract violations surface as plain Python errors.
"""

import logging
import traceback
from functools import wraps
from typing import Callable, Tuple, Type

logger = logging.getLogger(__name__)


class TrackheatError(Exception):
    """Base class for trackheat errors."""
    pass


class ValidationError(TrackheatError):
    """Raised when configuration or input data validation fails."""
    pass


class TrackParseError(TrackheatError):
    """Raised when a track file cannot be parsed."""
    pass


class RegionLoadError(TrackheatError):
    """Raised when a region file cannot be loaded."""
    pass


def handle_specific_exceptions(
    exceptions: Tuple[Type[Exception], ...],
    error_context: str = "",
    log_level: int = logging.ERROR,
    reraise: bool = True
) -> Callable:
    """
    Decorator for handling specific exceptions with context.

    Args:
        exceptions: Tuple of exception types to catch
        error_context: Context string for error messages
        log_level: Logging level for errors
        reraise: Whether to reraise the exception

    Returns:
        Decorator function
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except exceptions as e:
                context = f"{error_context}: " if error_context else ""
                logger.log(log_level, f"{context}{type(e).__name__}: {e}")
                logger.debug(f"Error details for {func.__name__}: {traceback.format_exc()}")
                if reraise:
                    raise
                return None
        return wrapper
    return decorator


def log_function_entry(func: Callable) -> Callable:
    """
    Decorator to log function entry and exit.

    Args:
        func: Function to log

    Returns:
        Wrapped function with logging
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        logger.debug(f"Entering {func.__name__}")
        try:
            result = func(*args, **kwargs)
            logger.debug(f"Exiting {func.__name__} successfully")
            return result
        except Exception as e:
            logger.error(f"Error in {func.__name__}: {e}")
            raise
    return wrapper
