"""Timing decorator and scoped log context."""

import functools
import inspect
import logging
import time
from collections.abc import Callable
from typing import Any, ParamSpec, Self, TypeVar, overload

from chronos.commons.telemetry.logger import get_logger, log_context_var

P = ParamSpec("P")
R = TypeVar("R")


@overload
def timed(func: Callable[P, R]) -> Callable[P, R]: ...


@overload
def timed(
    *,
    logger: logging.Logger | None = None,
    level: int = logging.DEBUG,
    threshold_ms: float | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]: ...


def timed(
    func: Callable[P, R] | None = None,
    *,
    logger: logging.Logger | None = None,
    level: int = logging.DEBUG,
    threshold_ms: float | None = None,
) -> Callable[P, R] | Callable[[Callable[P, R]], Callable[P, R]]:
    """Log how long a sync or async function took.

    Usable bare (``@timed``) or configured (``@timed(level=logging.INFO)``).

    Args:
        func: The function, when used without parentheses.
        logger: Logger to use. Defaults to the function's module logger.
        level: Level of the timing line.
        threshold_ms: Only log calls at least this slow.
    """

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        log = logger or get_logger(fn.__module__)

        def report(started: float) -> None:
            elapsed_ms = (time.perf_counter() - started) * 1000
            if threshold_ms is None or elapsed_ms >= threshold_ms:
                log.log(
                    level,
                    f"{fn.__qualname__} completed",
                    extra={"duration_ms": round(elapsed_ms, 2)},
                )

        if inspect.iscoroutinefunction(fn):

            @functools.wraps(fn)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> Any:
                started = time.perf_counter()
                try:
                    return await fn(*args, **kwargs)  # type: ignore[misc]
                finally:
                    report(started)

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(fn)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            started = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                report(started)

        return sync_wrapper

    if func is not None:
        return decorator(func)
    return decorator


class LogContext:
    """Bind fields to log lines for the duration of a ``with`` block.

    Example:
        with LogContext(video_id=video.id):
            logger.info("Recovering video")
    """

    def __init__(self, **fields: Any) -> None:
        self.fields = fields
        self._token: Any = None

    def __enter__(self) -> Self:
        self._token = log_context_var.set({**log_context_var.get({}), **self.fields})
        return self

    def __exit__(self, *exc_info: Any) -> None:
        log_context_var.reset(self._token)
