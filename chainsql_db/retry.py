"""Retry decorators for transient database errors."""

import asyncio
import functools
import logging
import time

from sqlalchemy.exc import InterfaceError, OperationalError

logger = logging.getLogger(__name__)

transient_errors = (OperationalError, InterfaceError)


def retry(tries: int = 3, delay: float = 2.0):
    """Decorator to retry on database errors."""
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            for attempt in range(1, tries + 1):
                try:
                    return fn(*args, **kwargs)
                except transient_errors as e:
                    if attempt == tries:
                        raise
                    logger.warning(f'{fn.__name__} retry {attempt}/{tries} - {e}')
                    time.sleep(delay)
        return wrapper
    return decorator


def aretry(tries: int = 3, delay: float = 2.0):
    """Coroutine version of retry()."""
    def decorator(fn):
        @functools.wraps(fn)
        async def wrapper(*args, **kwargs):
            for attempt in range(1, tries + 1):
                try:
                    return await fn(*args, **kwargs)
                except transient_errors as e:
                    if attempt == tries:
                        raise
                    logger.warning(f'{fn.__name__} retry {attempt}/{tries} - {e}')
                    await asyncio.sleep(delay)
        return wrapper
    return decorator
