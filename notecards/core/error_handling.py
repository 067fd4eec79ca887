import logging
from functools import wraps
from typing import Callable, Dict, Optional, ParamSpec, Type, TypeVar

from fastapi import HTTPException

from .exceptions.base import AppError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

ErrorMapping = Dict[Type[Exception], tuple[int, str]]

DEFAULT_ERROR_MAPPING: ErrorMapping = {
    AppError: (500, "Internal application error"),
    ValueError: (400, "Invalid input"),
    KeyError: (404, "Resource not found"),
    Exception: (500, "Internal server error"),
}


def _log_data(func: Callable, args: tuple, kwargs: dict, error: Exception) -> Dict:
    log_data = {
        "function_name": func.__name__,
        "function_module": func.__module__,
        "arguments": str(args),
        "keyword_arguments": str(kwargs),
        "exception_type": type(error).__name__,
    }
    if isinstance(error, AppError):
        log_data.update({"error_code": error.error_code, "details": error.details})
    return log_data


def handle_exceptions(
    error_mapping: Optional[ErrorMapping] = None,
    log_level: int = logging.ERROR,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Exception handler for API routes with error mapping and logging

    Args:
        error_mapping: Custom mapping of exceptions to (status_code, message)
        log_level: Logging level for errors

    Usage:
        @handle_exceptions({
            ValidationError: (400, "Invalid input"),
            ResourceNotFoundError: (404, "Resource not found"),
        })
        async def my_route():
            ...
    """
    # Custom entries are checked before the defaults so subclasses of AppError win
    combined_mapping: ErrorMapping = dict(error_mapping or {})
    for exc_type, response in DEFAULT_ERROR_MAPPING.items():
        combined_mapping.setdefault(exc_type, response)

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            try:
                return await func(*args, **kwargs)
            except HTTPException:
                raise
            except Exception as e:
                for exc_type, (status_code, message) in combined_mapping.items():
                    if isinstance(e, exc_type):
                        if isinstance(e, AppError):
                            error_response = {"message": message, "error_code": e.error_code, "details": e.details}
                        else:
                            error_response = {"message": message}

                        logger.log(log_level, str(e), extra=_log_data(func, args, kwargs, e))
                        raise HTTPException(status_code=status_code, detail=error_response) from e

                logger.exception("Unhandled exception in %s", func.__name__)
                raise HTTPException(status_code=500, detail={"message": "Internal server error"}) from e

        return wrapper

    return decorator


def handle_service_errors(
    default_return_value: Optional[T] = None,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Error handler for service layer operations that should not raise

    Args:
        default_return_value: Value to return on error
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                logger.error(str(e), extra=_log_data(func, args, kwargs, e))
                return default_return_value

        return wrapper

    return decorator
