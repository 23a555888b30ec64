"""Bounded concurrency and degraded-failure helpers."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

TaskFactory = Callable[[], Awaitable[Any]]


async def run_degraded(
    label: str,
    fn: Callable[[], Awaitable[T]],
    default: Optional[T] = None,
    timeout: Optional[float] = None,
    errors: Optional[dict[str, str]] = None,
    hard_errors: tuple[type[BaseException], ...] = (),
) -> Optional[T]:
    """Await ``fn()``; on timeout or error log it, record it and return ``default``.

    Exceptions listed in ``hard_errors`` are logged at ERROR instead of
    WARNING. Nothing is retried.
    """
    try:
        if timeout is None:
            return await fn()
        return await asyncio.wait_for(fn(), timeout=timeout)

    except asyncio.TimeoutError:
        message = f"timed out after {timeout:g}s" if timeout else "timed out"
        logger.warning(f"{label} {message}")

    except hard_errors as e:
        message = str(e) or type(e).__name__
        logger.error(f"{label} failed: {message}")

    except Exception as e:
        message = str(e) or type(e).__name__
        logger.warning(f"{label} failed: {message}")

    if errors is not None:
        errors[label] = message
    return default


async def run_bounded(
    tasks: list[tuple[str, TaskFactory]],
    max_concurrency: int,
    timeout: Optional[float] = None,
    errors: Optional[dict[str, str]] = None,
    hard_errors: tuple[type[BaseException], ...] = (),
) -> list[Any]:
    """Run named tasks with at most ``max_concurrency`` in flight.

    Permits are granted in FIFO order and always released. The timeout
    starts once a task holds a permit. Results keep task order; a failed
    task yields None.
    """
    if max_concurrency < 1:
        raise ValueError("max_concurrency must be at least 1")

    semaphore = asyncio.Semaphore(max_concurrency)

    async def guarded(label: str, factory: TaskFactory) -> Any:
        async with semaphore:
            return await run_degraded(
                label, factory, timeout=timeout, errors=errors, hard_errors=hard_errors
            )

    return await asyncio.gather(*(guarded(label, factory) for label, factory in tasks))
