"""Bounded-concurrency helpers for provider fan-out.

Embedding every chunk of a document is the hot path during ingestion.
:func:`throttled_gather` lets callers fire those requests concurrently while
capping how many are in flight against a provider at any moment, and keeps
results in input order so chunk indices stay in chunking order.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

_T = TypeVar("_T")

# Default cap on concurrent provider requests when the caller passes no
# semaphore of its own.
_DEFAULT_CONCURRENCY = 4


async def throttled_gather(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore | None = None,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run awaitables concurrently with semaphore throttling.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    semaphore:
        Semaphore bounding how many awaitables run at once.  A fresh
        semaphore of size 4 is used when omitted.
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than being raised.  Mirrors ``asyncio.gather`` semantics.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input awaitables.
    """
    if semaphore is None:
        semaphore = asyncio.Semaphore(_DEFAULT_CONCURRENCY)

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    tasks = [_wrapped(c) for c in coros]
    return await asyncio.gather(*tasks, return_exceptions=return_exceptions)

