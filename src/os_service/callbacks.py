"""Callback-style adapters for the lifecycle operations.

Each adapter takes the same arguments as the async operation plus a trailing
``callback(error)``, called with None on success or the raised exception.

Inside a running event loop the operation is scheduled as a task, which is
returned. Without a loop it runs to completion before the adapter returns.
"""

import asyncio
import functools
from collections.abc import Awaitable, Callable
from typing import Any

import os_service

Callback = Callable[[BaseException | None], object]


def callbackify(func: Callable[..., Awaitable[Any]]) -> Callable[..., Any]:
    """Wrap an async operation so it reports completion through a callback."""

    @functools.wraps(func)
    def wrapper(*args: Any, callback: Callback) -> asyncio.Task | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            try:
                asyncio.run(func(*args))
            except Exception as e:
                callback(e)
            else:
                callback(None)
            return None

        def done(task: asyncio.Task) -> None:
            if task.cancelled():
                callback(asyncio.CancelledError())
            else:
                callback(task.exception())

        task = loop.create_task(func(*args))
        task.add_done_callback(done)
        return task

    return wrapper


def add(name: str, options=None, *, callback: Callback) -> asyncio.Task | None:
    """Callback form of ``os_service.add``."""
    return callbackify(os_service.add)(name, options, callback=callback)


def remove(name: str, *, callback: Callback) -> asyncio.Task | None:
    """Callback form of ``os_service.remove``."""
    return callbackify(os_service.remove)(name, callback=callback)


def enable(name: str, *, callback: Callback) -> asyncio.Task | None:
    """Callback form of ``os_service.enable``."""
    return callbackify(os_service.enable)(name, callback=callback)


def disable(name: str, *, callback: Callback) -> asyncio.Task | None:
    """Callback form of ``os_service.disable``."""
    return callbackify(os_service.disable)(name, callback=callback)
