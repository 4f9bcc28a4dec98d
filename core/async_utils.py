"""
Discern - Async Utilities

Helpers for the I/O edges of the system. The scoring pipeline is synchronous;
only external lookups go through here.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, List, TypeVar

from core.errors import DiscernTimeoutError

T = TypeVar("T")


async def gather_with_concurrency(
    *coros: Awaitable[T],
    max_concurrency: int = 10,
    return_exceptions: bool = False,
) -> List[T]:
    """
    Like asyncio.gather but with controlled concurrency.

    Results are returned in argument order.

    Usage:
        results = await gather_with_concurrency(
            fetch(url1),
            fetch(url2),
            fetch(url3),
            max_concurrency=5,
        )
    """
    semaphore = asyncio.Semaphore(max(1, max_concurrency))

    async def bounded_coro(coro: Awaitable[T]) -> T:
        async with semaphore:
            return await coro

    return await asyncio.gather(
        *[bounded_coro(coro) for coro in coros],
        return_exceptions=return_exceptions,
    )


async def with_timeout(coro: Awaitable[T], seconds: float, operation: str = "operation") -> T:
    """Await ``coro``, converting a timeout into ``DiscernTimeoutError``."""
    try:
        return await asyncio.wait_for(coro, timeout=seconds)
    except asyncio.TimeoutError as e:
        raise DiscernTimeoutError(
            message=f"{operation} timed out after {seconds} seconds",
            timeout_seconds=seconds,
            cause=e,
        ) from e
