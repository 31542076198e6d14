from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Union

from gridzarr.abc.store import Store
from gridzarr.common import BytesLike
from gridzarr.store.local import LocalStore


def _dereference_path(root: str, path: str) -> str:
    assert isinstance(root, str)
    assert isinstance(path, str)
    root = root.rstrip("/")
    path = f"{root}/{path}" if root != "" else path
    path = path.rstrip("/")
    return path


class StorePath:
    """A key prefix within a store. ``/`` joins further path segments."""

    store: Store
    path: str

    def __init__(self, store: Store, path: Optional[str] = None):
        self.store = store
        self.path = path or ""

    async def get(self) -> Optional[BytesLike]:
        return await self.store.get(self.path)

    async def set(self, value: BytesLike) -> None:
        await self.store.set(self.path, value)

    async def delete(self) -> None:
        await self.store.delete(self.path)

    async def exists(self) -> bool:
        return await self.store.exists(self.path)

    async def list_prefix(self) -> List[str]:
        return await self.store.list_prefix(self.path)

    async def list_dir(self) -> List[str]:
        return await self.store.list_dir(self.path)

    def __truediv__(self, other: str) -> StorePath:
        return self.__class__(self.store, _dereference_path(self.path, other))

    def __str__(self) -> str:
        return _dereference_path(str(self.store), self.path)

    def __repr__(self) -> str:
        return f"StorePath({self.store.__class__.__name__}, {str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StorePath):
            return NotImplemented
        return self.store == other.store and self.path == other.path


StoreLike = Union[Store, StorePath, Path, str]


def make_store_path(store_like: StoreLike) -> StorePath:
    if isinstance(store_like, StorePath):
        return store_like
    elif isinstance(store_like, Store):
        return StorePath(store_like)
    elif isinstance(store_like, (str, Path)):
        return StorePath(LocalStore(Path(store_like)))
    raise TypeError(f"Expected a store, a store path or a local path. Got {type(store_like)}.")
