from __future__ import annotations
from typing import TYPE_CHECKING, Union, Tuple, Iterable, Dict, List, TypeVar
import asyncio
import contextvars
from enum import Enum
import functools
import numbers

if TYPE_CHECKING:
    from typing import (
        Any,
        Awaitable,
        Callable,
        Iterator,
        Literal,
        Optional,
        Type,
    )

ZARR_JSON = "zarr.json"
CHUNK_ROOT = "c"

BytesLike = Union[bytes, bytearray, memoryview]
ChunkCoords = Tuple[int, ...]
ChunkCoordsLike = Iterable[int]
JSON = Union[str, None, int, float, Dict[str, "JSON"], List["JSON"]]


def product(tup: ChunkCoords) -> int:
    return functools.reduce(lambda x, y: x * y, tup, 1)


def ceildiv(a: int, b: int) -> int:
    return -(-a // b)


T = TypeVar("T", bound=Tuple)
V = TypeVar("V")


async def concurrent_map(
    items: List[T], func: Callable[..., Awaitable[V]], limit: Optional[int] = None
) -> List[V]:
    """
    Run ``func(*item)`` for every item, at most ``limit`` at a time.

    Results are returned in the order of ``items``. The first task to fail cancels
    every task still pending, and its exception is raised once they have drained.
    """
    if len(items) == 0:
        return []

    if limit is None:

        async def run(item):
            return await func(*item)

    else:
        sem = asyncio.Semaphore(limit)

        async def run(item):
            async with sem:
                return await func(*item)

    tasks = [asyncio.ensure_future(run(item)) for item in items]
    try:
        _, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        pending = {task for task in tasks if not task.done()}
        await _cancel_all(pending)
        raise

    if pending:
        await _cancel_all(pending)

    for task in tasks:
        if not task.cancelled() and task.exception() is not None:
            raise task.exception()
    return [task.result() for task in tasks]


async def _cancel_all(tasks: Iterable[asyncio.Future]) -> None:
    tasks = list(tasks)
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


async def to_thread(func, /, *args, **kwargs):
    loop = asyncio.get_running_loop()
    ctx = contextvars.copy_context()
    func_call = functools.partial(ctx.run, func, *args, **kwargs)
    return await loop.run_in_executor(None, func_call)


def enum_names(enum: Type[Enum]) -> Iterator[str]:
    for item in enum:
        yield item.name


E = TypeVar("E", bound=Enum)


def parse_enum(data: JSON, cls: Type[E]) -> E:
    if isinstance(data, cls):
        return data
    if data in enum_names(cls):
        return cls(data)
    raise ValueError(f"Value must be one of {repr(list(enum_names(cls)))}. Got {data} instead.")


def parse_name(data: JSON, expected: Optional[str] = None) -> str:
    if isinstance(data, str):
        if expected is None or data == expected:
            return data
        raise ValueError(f"Expected '{expected}'. Got {data} instead.")
    else:
        raise TypeError(f"Expected a string, got an instance of {type(data)}.")


def parse_configuration(data: JSON) -> Dict[str, JSON]:
    if not isinstance(data, dict):
        raise TypeError(f"Expected dict, got {type(data)}")
    return data


def parse_named_configuration(
    data: JSON, expected_name: Optional[str] = None, *, require_configuration: bool = True
) -> Tuple[str, Optional[Dict[str, JSON]]]:
    if not isinstance(data, dict):
        raise TypeError(f"Expected dict, got {type(data)}")
    if "name" not in data:
        raise ValueError(f"Named configuration does not have a 'name' key. Got {data}.")
    name_parsed = parse_name(data["name"], expected_name)
    if "configuration" in data:
        configuration_parsed = parse_configuration(data["configuration"])
    elif require_configuration:
        raise ValueError(f"Named configuration does not have a 'configuration' key. Got {data}.")
    else:
        configuration_parsed = None
    return name_parsed, configuration_parsed


def parse_shapelike(data: Any, *, allow_zero: bool = True) -> Tuple[int, ...]:
    if not isinstance(data, Iterable):
        raise TypeError(f"Expected an iterable. Got {data} instead.")
    data_tuple = tuple(data)
    if len(data_tuple) == 0:
        raise ValueError("Expected at least one element. Got 0.")
    if not all(isinstance(v, numbers.Integral) and not isinstance(v, bool) for v in data_tuple):
        msg = f"Expected an iterable of integers. Got {data} instead."
        raise TypeError(msg)
    data_tuple = tuple(int(v) for v in data_tuple)
    lowest = 0 if allow_zero else 1
    if not all(v >= lowest for v in data_tuple):
        raise ValueError(f"All values must be greater than or equal to {lowest}. Got {data}.")
    return data_tuple


def parse_attributes(data: Any) -> Dict[str, Any]:
    if data is None:
        return {}
    elif isinstance(data, dict) and all(isinstance(k, str) for k in data.keys()):
        return data
    msg = f"Expected dict with string keys. Got {type(data)} instead."
    raise TypeError(msg)
