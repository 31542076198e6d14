from __future__ import annotations

import pathlib
from typing import TYPE_CHECKING

import pytest
from hypothesis import HealthCheck, settings

from gridzarr import config
from gridzarr.abc.store import Store
from gridzarr.store import LocalStore, MemoryStore, StorePath

if TYPE_CHECKING:
    from typing import Any, Iterator, Literal


def parse_store(store: Literal["local", "memory"], path: str) -> Store:
    if store == "local":
        return LocalStore(path)
    if store == "memory":
        return MemoryStore()
    raise AssertionError


@pytest.fixture(params=["local", "memory"])
def store(request: pytest.FixtureRequest, tmp_path: pathlib.Path) -> Store:
    return parse_store(request.param, str(tmp_path))


@pytest.fixture
def store_path(store: Store) -> StorePath:
    return StorePath(store)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def local_store(tmp_path: pathlib.Path) -> LocalStore:
    return LocalStore(tmp_path)


@pytest.fixture(params=[str, pathlib.Path])
def path_type(request: pytest.FixtureRequest) -> Any:
    return request.param


@pytest.fixture(autouse=True)
def reset_config() -> Iterator[None]:
    config.reset()
    yield
    config.reset()


settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,
    suppress_health_check=[
        HealthCheck.filter_too_much,
        HealthCheck.too_slow,
        HealthCheck.function_scoped_fixture,
    ],
)
settings.register_profile(
    "local",
    max_examples=50,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.load_profile("local")
