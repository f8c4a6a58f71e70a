"""Bounded fan-out helper for per-page text extraction.

Large documents can have hundreds of pages; firing one vision request per
page at once trips provider rate limits and holds every page image in
memory.  :func:`throttled_gather` runs the requests concurrently but never
more than the semaphore allows, and returns results in *input* order so
chunk order always mirrors page order regardless of completion order.

With ``return_exceptions=False`` the first failure stops the fan-out: work
still waiting for a slot never starts and work in flight is cancelled, so a
document that is already lost does not keep spending provider quota.
"""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine, TypeVar

_T = TypeVar("_T")


async def throttled_gather(
    coros: list[Coroutine[Any, Any, _T]],
    semaphore: asyncio.Semaphore,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run coroutines concurrently, at most ``semaphore`` slots at a time.

    Parameters
    ----------
    coros:
        Coroutine objects to execute.
    semaphore:
        Concurrency limiter.  Callers create one per ingestion call so two
        documents never compete for the same slots.
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than raised, as with ``asyncio.gather``.  If ``False``, the first
        exception cancels every coroutine that has not finished and is
        then raised.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input coroutines.
    """
    if return_exceptions:

        async def _wrapped(coro: Coroutine[Any, Any, _T]) -> _T:
            async with semaphore:
                return await coro

        return await asyncio.gather(*(_wrapped(c) for c in coros), return_exceptions=True)

    return await _gather_fail_fast(coros, semaphore)


async def _gather_fail_fast(
    coros: list[Coroutine[Any, Any, _T]],
    semaphore: asyncio.Semaphore,
) -> list[_T]:
    failed = False

    async def _wrapped(coro: Coroutine[Any, Any, _T]) -> _T | None:
        nonlocal failed
        started = False
        try:
            async with semaphore:
                # A slot freed by the failing call must not start new work.
                if failed:
                    return None
                started = True
                try:
                    return await coro
                except Exception:
                    failed = True
                    raise
        finally:
            if not started:
                coro.close()

    tasks = [asyncio.ensure_future(_wrapped(c)) for c in coros]
    if not tasks:
        return []

    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    finally:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    for task in tasks:
        if not task.cancelled() and task.exception() is not None:
            raise task.exception()
    return [task.result() for task in tasks]
