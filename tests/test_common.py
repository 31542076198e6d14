from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import numpy as np
import pytest

from gridzarr.common import (
    ceildiv,
    concurrent_map,
    parse_name,
    parse_named_configuration,
    parse_shapelike,
    product,
)

if TYPE_CHECKING:
    from typing import Any, List, Tuple


@pytest.mark.parametrize("data", [(0, 0, 0, 0), (1, 3, 4, 5, 6), (2, 4)])
def test_product(data: Tuple[int, ...]) -> None:
    assert product(data) == int(np.prod(data))


@pytest.mark.parametrize(
    "a, b, expected", [(0, 2, 0), (1, 2, 1), (4, 2, 2), (5, 2, 3), (7, 4, 2), (8, 4, 2)]
)
def test_ceildiv(a: int, b: int, expected: int) -> None:
    assert ceildiv(a, b) == expected


def test_parse_name_invalid() -> None:
    with pytest.raises(TypeError, match="Expected a string"):
        parse_name(10)
    with pytest.raises(ValueError, match="Expected 'zstd'"):
        parse_name("gzip", "zstd")


def test_parse_named_configuration() -> None:
    assert parse_named_configuration({"name": "zstd", "configuration": {"level": 1}}) == (
        "zstd",
        {"level": 1},
    )
    assert parse_named_configuration({"name": "crc32c"}, require_configuration=False) == (
        "crc32c",
        None,
    )
    with pytest.raises(ValueError, match="'configuration'"):
        parse_named_configuration({"name": "crc32c"})
    with pytest.raises(ValueError, match="'name'"):
        parse_named_configuration({"configuration": {}})


@pytest.mark.parametrize("data", [[], "", 10])
def test_parse_shapelike_invalid(data: Any) -> None:
    with pytest.raises((TypeError, ValueError)):
        parse_shapelike(data)


def test_parse_shapelike() -> None:
    assert parse_shapelike([3, 0]) == (3, 0)
    with pytest.raises(ValueError, match="greater than or equal to 1"):
        parse_shapelike([3, 0], allow_zero=False)
    with pytest.raises(TypeError):
        parse_shapelike([1.5])


@pytest.mark.asyncio
async def test_concurrent_map_keeps_order() -> None:
    async def delayed(i: int) -> int:
        await asyncio.sleep(0.001 * (5 - i))
        return i * 10

    results = await concurrent_map([(i,) for i in range(5)], delayed, limit=2)
    assert results == [0, 10, 20, 30, 40]


@pytest.mark.asyncio
async def test_concurrent_map_empty() -> None:
    async def never(i: int) -> int:
        raise AssertionError

    assert await concurrent_map([], never) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [None, 2])
async def test_concurrent_map_fails_fast(limit: Any) -> None:
    started: List[int] = []
    finished: List[int] = []

    async def work(i: int) -> int:
        started.append(i)
        if i == 0:
            raise RuntimeError("chunk 0 failed")
        await asyncio.sleep(1)
        finished.append(i)
        return i

    with pytest.raises(RuntimeError, match="chunk 0 failed"):
        await concurrent_map([(i,) for i in range(6)], work, limit=limit)
    # the failure cancels every task still sleeping or waiting for the semaphore
    assert finished == []
    assert 0 in started
