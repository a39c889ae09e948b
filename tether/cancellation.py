"""Cancellation helpers.

A cancellation signal is an ``asyncio.Event``: set means aborted.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, TypeVar

from .errors import AbortError

T = TypeVar("T")


def is_aborted(signal: Any) -> bool:
    return bool(signal is not None and signal.is_set())


def raise_if_aborted(signal: Any) -> None:
    if is_aborted(signal):
        raise AbortError()


async def abortable(signal: Any, aw: Awaitable[T]) -> T:
    """Await ``aw``, raising AbortError as soon as ``signal`` fires.

    The pending work is cancelled when the signal wins the race, and has
    finished unwinding by the time AbortError is raised, so a tool blocked on
    ``push_and_wait`` no longer holds a pending slot.
    """
    if signal is None:
        return await aw
    task = asyncio.ensure_future(aw)
    if signal.is_set():
        task.cancel()
        raise AbortError()
    waiter = asyncio.ensure_future(signal.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        waiter.cancel()
    if task in done:
        return task.result()
    task.cancel()
    await asyncio.wait({task})
    raise AbortError()
