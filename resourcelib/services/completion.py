"""One completion, two observers.

Service operations return an awaitable and optionally accept a legacy
``callback(error, result)``. Both observe a single ``asyncio.Task``: the
caller awaits the task, the callback is attached as a done-callback. Each
sees the outcome exactly once.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

Callback = Callable[[Optional[BaseException], Any], Any]


def _callback_adapter(callback: Callback, label: str) -> Callable[['asyncio.Task[Any]'], None]:
    def notify(task: 'asyncio.Task[Any]') -> None:
        if task.cancelled():
            error: Optional[BaseException] = asyncio.CancelledError()
            result = None
        else:
            error = task.exception()
            result = None if error is not None else task.result()

        try:
            callback(error, result)
        except Exception:
            logger.exception(f"Completion callback for {label} raised")

    return notify


def complete(awaitable: Awaitable[Any], callback: Optional[Callback] = None, label: str = "operation") -> 'asyncio.Task[Any]':
    """Schedule ``awaitable`` and return the task that settles with its outcome.

    Args:
        awaitable: Coroutine performing the operation
        callback: Optional legacy ``callback(error, result)``
        label: Name used in log messages

    Returns:
        Task that resolves or rejects with the operation's outcome

    Raises:
        RuntimeError: If called without a running event loop
    """
    if callback is not None and not callable(callback):
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise TypeError(f"callback for {label} must be callable, got {type(callback).__name__}")

    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise RuntimeError(f"{label} must be called from a running event loop") from None

    task = loop.create_task(_await(awaitable), name=label)
    if callback is not None:
        task.add_done_callback(_callback_adapter(callback, label))
    return task


async def _await(awaitable: Awaitable[Any]) -> Any:
    return await awaitable
