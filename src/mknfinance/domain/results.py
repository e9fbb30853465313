"""Result envelope returned by every public finance service operation."""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from .errors import LedgerError

T = TypeVar("T")

STORE_ERROR = "store_error"


@dataclass(frozen=True, slots=True)
class Result(Generic[T]):
    """``{success, data?, error?}`` envelope; ``code`` names the failure class."""

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    code: Optional[str] = None

    @classmethod
    def ok(cls, data: T | None = None) -> "Result[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, code: str = "ledger_error") -> "Result[T]":
        return cls(success=False, error=error, code=code)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success}
        if self.success:
            payload["data"] = self.data
        else:
            payload["error"] = self.error
            payload["code"] = self.code
        return payload


def as_result(logger: logging.Logger) -> Callable[[Callable[..., T]], Callable[..., Result[T]]]:
    """Wrap a raising operation so it returns a ``Result`` instead.

    ``LedgerError`` becomes a failure carrying its message and code. Anything
    else is logged with traceback and reported as a generic store failure.
    """

    def decorator(func: Callable[..., T]) -> Callable[..., Result[T]]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Result[T]:
            try:
                return Result.ok(func(*args, **kwargs))
            except LedgerError as exc:
                logger.warning(
                    "%s rejected: %s",
                    func.__name__,
                    exc.message,
                    extra={"error_code": exc.code, "details": exc.details},
                )
                return Result.fail(exc.message, exc.code)
            except Exception:
                logger.exception("%s failed unexpectedly", func.__name__)
                return Result.fail("The finance store is unavailable, please retry.", STORE_ERROR)

        return wrapper

    return decorator


__all__ = ["Result", "STORE_ERROR", "as_result"]
