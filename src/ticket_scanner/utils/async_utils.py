from __future__ import annotations

import asyncio
from concurrent.futures import Executor
from typing import Any, Awaitable, Callable, Optional


async def run_blocking(func: Callable[..., Any], *args, executor: Optional[Executor] = None) -> Any:
    return await asyncio.get_running_loop().run_in_executor(executor, func, *args)


def abandon(future: "asyncio.Future[Any]", on_error: Optional[Callable[[BaseException], None]] = None) -> None:
    """Let a still-running future finish on its own, consuming its eventual error."""

    def _consume(done: "asyncio.Future[Any]") -> None:
        if done.cancelled():
            return
        exc = done.exception()
        if exc is not None and on_error is not None:
            on_error(exc)

    future.add_done_callback(_consume)


async def race_timeout(awaitable: Awaitable[Any], timeout_sec: float) -> "tuple[bool, Optional[asyncio.Future[Any]]]":
    """Wait up to ``timeout_sec`` without cancelling the awaited work.

    Returns ``(finished, future)``. When ``finished`` is false the future is
    still running and belongs to the caller to abandon. If the waiter itself
    is cancelled the work is abandoned here before the cancellation propagates.
    """
    future = asyncio.ensure_future(awaitable)
    try:
        done, _ = await asyncio.wait({future}, timeout=timeout_sec)
    except asyncio.CancelledError:
        abandon(future)
        raise
    return bool(done), future
