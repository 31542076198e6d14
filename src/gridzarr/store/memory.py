from __future__ import annotations

from typing import Dict, List, MutableMapping, Optional

from gridzarr.abc.store import Store
from gridzarr.common import BytesLike


class MemoryStore(Store):
    """A store that keeps every value in a dict, mostly useful for tests."""

    supports_writes: bool = True
    supports_listing: bool = True

    _store_dict: MutableMapping[str, bytes]

    def __init__(self, store_dict: Optional[MutableMapping[str, bytes]] = None):
        self._store_dict = store_dict if store_dict is not None else {}

    def __str__(self) -> str:
        return f"memory://{id(self._store_dict)}"

    def __repr__(self) -> str:
        return f"MemoryStore({repr(str(self))})"

    async def get(self, key: str) -> Optional[bytes]:
        assert isinstance(key, str)
        return self._store_dict.get(key)

    async def exists(self, key: str) -> bool:
        return key in self._store_dict

    async def set(self, key: str, value: BytesLike) -> None:
        assert isinstance(key, str)
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise TypeError(f"Expected BytesLike. Got {type(value)}.")
        self._store_dict[key] = bytes(value)

    async def delete(self, key: str) -> None:
        self._store_dict.pop(key, None)

    async def list_prefix(self, prefix: str) -> List[str]:
        if prefix and not prefix.endswith("/"):
            prefix = prefix + "/"
        return sorted(key for key in self._store_dict if key.startswith(prefix))

    async def list_dir(self, prefix: str) -> List[str]:
        if prefix and not prefix.endswith("/"):
            prefix = prefix + "/"
        children: Dict[str, None] = {}
        for key in self._store_dict:
            if key.startswith(prefix):
                children[key[len(prefix) :].split("/", 1)[0]] = None
        return sorted(children)
