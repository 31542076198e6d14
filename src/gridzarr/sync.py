"""
Blocking wrappers around the asynchronous array API.

All coroutines submitted through :func:`sync` run on one event loop that lives on a daemon
thread named ``gridzarrIO``. The loop is started lazily by the first call.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import wait
from typing import Any, Coroutine, Optional, TypeVar

from gridzarr.config import config

T = TypeVar("T")

logger = logging.getLogger(__name__)

iothread: list[Optional[threading.Thread]] = [None]
loop: list[Optional[asyncio.AbstractEventLoop]] = [None]
_lock: Optional[threading.Lock] = None


class SyncError(Exception):
    pass


def _get_lock() -> threading.Lock:
    """The lock guarding loop creation, allocated on first use so forked processes get their own."""
    global _lock
    if not _lock:
        _lock = threading.Lock()
    return _lock


async def _runner(coro: Coroutine[Any, Any, T]) -> T | BaseException:
    # exceptions are handed back as values and re-raised in the calling thread
    try:
        return await coro
    except Exception as ex:
        return ex


def sync(
    coro: Coroutine[Any, Any, T],
    loop: Optional[asyncio.AbstractEventLoop] = None,
    timeout: Optional[float] = None,
) -> T:
    """
    Run ``coro`` to completion on the IO loop and return its result.

    ``timeout`` defaults to the ``async.timeout`` config entry; ``None`` waits forever.
    Calling this from a coroutine already running on the IO loop would deadlock and raises
    :class:`SyncError` instead.
    """
    if loop is None:
        loop = _get_loop()
    if not isinstance(loop, asyncio.AbstractEventLoop):
        raise TypeError(f"loop cannot be of type {type(loop)}")
    if loop.is_closed():
        raise RuntimeError("Loop is not running")
    try:
        running_loop = asyncio.get_running_loop()
    except RuntimeError:
        running_loop = None
    if running_loop is loop:
        raise SyncError("Calling sync() from within a running loop")

    if timeout is None:
        timeout = config.get("async.timeout")

    future = asyncio.run_coroutine_threadsafe(_runner(coro), loop)
    done, _ = wait([future], timeout=timeout)
    if not done:
        future.cancel()
        raise asyncio.TimeoutError(f"Coroutine {coro} did not finish within {timeout} s")

    result = future.result()
    if isinstance(result, BaseException):
        raise result
    return result


def _get_loop() -> asyncio.AbstractEventLoop:
    """Return the IO loop, starting it on its own thread if needed."""
    if loop[0] is None:
        with _get_lock():
            # another thread may have started the loop while we waited for the lock
            if loop[0] is None:
                new_loop = asyncio.new_event_loop()
                loop[0] = new_loop
                th = threading.Thread(target=new_loop.run_forever, name="gridzarrIO")
                th.daemon = True
                th.start()
                iothread[0] = th
                logger.debug("Started IO loop on thread %s", th.name)
    assert loop[0] is not None
    return loop[0]


class SyncMixin:
    def _sync(self, coroutine: Coroutine[Any, Any, T]) -> T:
        return sync(coroutine)
