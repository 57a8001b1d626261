import inspect
import functools
import logging


def log_exceptions(func):
    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except Exception:
                logging.debug(f"Exception in {func.__qualname__}", exc_info=True)
                raise
    else:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception:
                logging.debug(f"Exception in {func.__qualname__}", exc_info=True)
                raise
    return wrapper
