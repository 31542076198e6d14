from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from gridzarr.array import Array, AsyncArray, ensure_no_node
from gridzarr.common import ZARR_JSON, concurrent_map
from gridzarr.config import config
from gridzarr.dimensions import collect_dimensions
from gridzarr.errors import GroupNotFoundError
from gridzarr.metadata import ArrayMetadata, GroupMetadata, parse_node_metadata
from gridzarr.store import StoreLike, StorePath, make_store_path
from gridzarr.sync import SyncMixin, sync

if TYPE_CHECKING:
    from typing import Any, Dict, List, Optional, Union
    from gridzarr.common import JSON
    from gridzarr.dimensions import Dimension

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AsyncGroup:
    metadata: GroupMetadata
    store_path: StorePath

    @classmethod
    async def create(
        cls,
        store: StoreLike,
        *,
        attributes: Optional[Dict[str, Any]] = None,
        exists_ok: bool = False,
    ) -> AsyncGroup:
        store_path = make_store_path(store)
        if not exists_ok:
            await ensure_no_node(store_path)
        group = cls(metadata=GroupMetadata(attributes=attributes), store_path=store_path)
        await group._save_metadata()
        logger.debug("Created group %s", store_path)
        return group

    @classmethod
    async def open(cls, store: StoreLike) -> AsyncGroup:
        store_path = make_store_path(store)
        zarr_json_bytes = await (store_path / ZARR_JSON).get()
        if zarr_json_bytes is None:
            raise GroupNotFoundError(str(store_path.store), store_path.path)
        return cls.from_dict(store_path, json.loads(zarr_json_bytes))

    @classmethod
    def from_dict(cls, store_path: StorePath, data: Dict[str, Any]) -> AsyncGroup:
        return cls(metadata=GroupMetadata.from_dict(data), store_path=store_path)

    async def _save_metadata(self) -> None:
        await (self.store_path / ZARR_JSON).set(self.metadata.to_bytes())

    @property
    def attrs(self) -> Dict[str, Any]:
        return self.metadata.attributes

    @property
    def path(self) -> str:
        return self.store_path.path

    async def getitem(self, key: str) -> Union[AsyncArray, AsyncGroup]:
        store_path = self.store_path / key
        zarr_json_bytes = await (store_path / ZARR_JSON).get()
        if zarr_json_bytes is None:
            raise KeyError(key)
        metadata = parse_node_metadata(json.loads(zarr_json_bytes))
        if isinstance(metadata, ArrayMetadata):
            return AsyncArray(metadata=metadata, store_path=store_path)
        return type(self)(metadata=metadata, store_path=store_path)

    async def create_group(self, path: str, **kwargs: Any) -> AsyncGroup:
        return await type(self).create(self.store_path / path, **kwargs)

    async def create_array(self, path: str, **kwargs: Any) -> AsyncArray:
        return await AsyncArray.create(self.store_path / path, **kwargs)

    async def update_attributes(self, new_attributes: Dict[str, Any]) -> AsyncGroup:
        new_group = replace(self, metadata=GroupMetadata(attributes=new_attributes))
        await new_group._save_metadata()
        return new_group

    async def members(self) -> List[Union[AsyncArray, AsyncGroup]]:
        """The arrays and groups directly below this group, ordered by name."""
        keys = [key for key in await self.store_path.list_dir() if key != ZARR_JSON]

        async def _member(key: str) -> Optional[Union[AsyncArray, AsyncGroup]]:
            try:
                return await self.getitem(key)
            except KeyError:
                # a plain directory, not a node
                return None

        found = await concurrent_map(
            [(key,) for key in keys], _member, config.get("async.concurrency")
        )
        return [m for m in found if m is not None]

    async def array_keys(self) -> List[str]:
        return [m.basename for m in await self.members() if isinstance(m, AsyncArray)]

    async def group_keys(self) -> List[str]:
        return [
            m.path.split("/")[-1] for m in await self.members() if isinstance(m, AsyncGroup)
        ]

    async def dimensions(self) -> List[Dimension]:
        """The dimensions of the arrays directly in this group, in order of appearance."""
        arrays = [m for m in await self.members() if isinstance(m, AsyncArray)]
        return collect_dimensions(
            [(a.path, a.metadata) for a in arrays], "/" + self.path if self.path else "/"
        )

    def __repr__(self) -> str:
        return f"<AsyncGroup {self.store_path}>"


@dataclass
class Group(SyncMixin):
    _async_group: AsyncGroup

    @classmethod
    def create(
        cls,
        store: StoreLike,
        *,
        attributes: Optional[Dict[str, Any]] = None,
        exists_ok: bool = False,
    ) -> Group:
        return cls(sync(AsyncGroup.create(store, attributes=attributes, exists_ok=exists_ok)))

    @classmethod
    def open(cls, store: StoreLike) -> Group:
        return cls(sync(AsyncGroup.open(store)))

    @property
    def metadata(self) -> GroupMetadata:
        return self._async_group.metadata

    @property
    def store_path(self) -> StorePath:
        return self._async_group.store_path

    @property
    def attrs(self) -> Dict[str, Any]:
        return self._async_group.attrs

    @property
    def path(self) -> str:
        return self._async_group.path

    def __getitem__(self, key: str) -> Union[Array, Group]:
        obj = self._sync(self._async_group.getitem(key))
        if isinstance(obj, AsyncArray):
            return Array(obj)
        return Group(obj)

    def create_group(self, path: str, **kwargs: Any) -> Group:
        return Group(self._sync(self._async_group.create_group(path, **kwargs)))

    def create_array(self, path: str, **kwargs: Any) -> Array:
        return Array(self._sync(self._async_group.create_array(path, **kwargs)))

    def update_attributes(self, new_attributes: Dict[str, JSON]) -> Group:
        self._async_group = self._sync(self._async_group.update_attributes(new_attributes))
        return self

    def array_keys(self) -> List[str]:
        return self._sync(self._async_group.array_keys())

    def group_keys(self) -> List[str]:
        return self._sync(self._async_group.group_keys())

    def dimensions(self) -> List[Dimension]:
        return self._sync(self._async_group.dimensions())

    def __repr__(self) -> str:
        return f"<Group {self.store_path}>"
