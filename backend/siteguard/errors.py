"""
Scan Error Handling

Defines the exception hierarchy used across the scanner and a timeout
decorator for probe coroutines.
"""

import asyncio
from functools import wraps
from typing import Callable, Any


class SiteGuardError(Exception):
    """Base class for all scanner errors"""
    pass


class TargetValidationError(SiteGuardError):
    """Raised when a target URL cannot be scanned (bad or unsupported scheme)"""

    def __init__(self, message: str, url: str = ""):
        super().__init__(message)
        self.message = message
        self.url = url


class ProbeError(SiteGuardError):
    """Raised inside a probe when its check cannot complete"""
    pass


class ProbeTimeoutError(ProbeError):
    """Raised when a probe (or one of its upstream calls) times out"""
    pass


class ScanTimeoutError(SiteGuardError):
    """Raised when a whole scan exceeds the caller-supplied timeout"""
    pass


def with_timeout(timeout_seconds: float = 120):
    """
    Decorator to add a timeout to a probe coroutine.

    Args:
        timeout_seconds: Maximum execution time in seconds
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            try:
                return await asyncio.wait_for(
                    func(*args, **kwargs),
                    timeout=timeout_seconds
                )
            except asyncio.TimeoutError:
                raise ProbeTimeoutError(
                    f"{func.__qualname__} timed out after {timeout_seconds} seconds"
                )
        return wrapper
    return decorator


def truncate_message(message: str, max_chars: int = 500) -> str:
    """
    Truncate an upstream error message before it is placed in evidence.

    Args:
        message: Message text
        max_chars: Maximum characters to keep

    Returns:
        Truncated message with indicator if truncated
    """
    if len(message) <= max_chars:
        return message

    return message[:max_chars] + f"... [{len(message) - max_chars} chars omitted]"
