from __future__ import annotations

import asyncio
from typing import Optional

import pytest

from gridzarr.config import config
from gridzarr.sync import SyncError, SyncMixin, _get_lock, _get_loop, iothread, sync


@pytest.fixture(params=[True, False])
def sync_loop(request: pytest.FixtureRequest) -> Optional[asyncio.AbstractEventLoop]:
    if request.param is True:
        return _get_loop()
    return None


def test_get_loop() -> None:
    # test that calling _get_loop() twice returns the same loop
    loop = _get_loop()
    loop2 = _get_loop()
    assert loop is loop2
    assert iothread[0] is not None
    assert iothread[0].name == "gridzarrIO"
    assert iothread[0].daemon


def test_get_lock() -> None:
    # test that calling _get_lock() twice returns the same lock
    lock = _get_lock()
    lock2 = _get_lock()
    assert lock is lock2


def test_sync(sync_loop: Optional[asyncio.AbstractEventLoop]) -> None:
    async def foo() -> str:
        return "foo"

    assert sync(foo(), loop=sync_loop) == "foo"


def test_sync_raises(sync_loop: Optional[asyncio.AbstractEventLoop]) -> None:
    async def foo() -> str:
        raise ValueError("foo")

    with pytest.raises(ValueError):
        sync(foo(), loop=sync_loop)


def test_sync_raises_if_loop_is_closed() -> None:
    loop = asyncio.new_event_loop()
    loop.close()

    async def foo() -> str:
        return "foo"

    coro = foo()
    with pytest.raises(RuntimeError):
        sync(coro, loop=loop)
    coro.close()


def test_sync_raises_if_loop_is_invalid_type() -> None:
    async def foo() -> str:
        return "foo"

    coro = foo()
    with pytest.raises(TypeError):
        sync(coro, loop=1)  # type: ignore[arg-type]
    coro.close()


def test_sync_raises_inside_the_io_loop() -> None:
    async def inner() -> str:
        return "inner"

    async def outer() -> str:
        coro = inner()
        try:
            return sync(coro)
        finally:
            coro.close()

    with pytest.raises(SyncError):
        sync(outer())


def test_sync_mixin() -> None:
    class AsyncFoo:
        async def foo(self) -> str:
            return "foo"

    class SyncFoo(SyncMixin):
        def __init__(self, async_foo: AsyncFoo) -> None:
            self._async_foo = async_foo

        def foo(self) -> str:
            return self._sync(self._async_foo.foo())

    assert SyncFoo(AsyncFoo()).foo() == "foo"


def test_sync_timeout() -> None:
    async def slow() -> None:
        await asyncio.sleep(0.5)

    with pytest.raises(asyncio.TimeoutError):
        sync(slow(), timeout=0.01)


def test_sync_timeout_from_config() -> None:
    async def slow() -> None:
        await asyncio.sleep(0.5)

    with config.set({"async.timeout": 0.01}):
        with pytest.raises(asyncio.TimeoutError):
            sync(slow())
