"""Async utilities for the content gallery."""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar


T = TypeVar("T")


async def gather_with_concurrency(
    limit: int, *awaitables: Awaitable[T], return_exceptions: bool = False
) -> list[T | BaseException] | list[T]:
    """Await ``awaitables`` with at most ``limit`` of them running at once.

    Results come back in argument order, not completion order. With
    ``return_exceptions`` a failure is placed in its slot instead of being
    raised.

    Raises:
        ValueError: If ``limit`` is smaller than 1
    """
    if limit < 1:
        raise ValueError("Concurrency limit must be at least 1")

    slots = asyncio.Semaphore(limit)

    async def run(awaitable: Awaitable[T]) -> T:
        async with slots:
            return await awaitable

    return await asyncio.gather(
        *(run(aw) for aw in awaitables), return_exceptions=return_exceptions
    )
