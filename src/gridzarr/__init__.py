from __future__ import annotations

import json
from typing import Union

import gridzarr.codecs  # noqa: F401
from gridzarr.array import Array, AsyncArray  # noqa: F401
from gridzarr.common import ZARR_JSON
from gridzarr.config import config  # noqa: F401
from gridzarr.dimensions import Dimension  # noqa: F401
from gridzarr.dtype import DataType  # noqa: F401
from gridzarr.errors import NodeNotFoundError
from gridzarr.group import AsyncGroup, Group  # noqa: F401
from gridzarr.indexing import Region  # noqa: F401
from gridzarr.metadata import ArrayMetadata, parse_node_metadata
from gridzarr.store import (  # noqa: F401
    LocalStore,
    MemoryStore,
    StoreLike,
    StorePath,
    make_store_path,
)
from gridzarr.sync import sync as _sync

__version__ = "0.1.0"


async def open_auto_async(store: StoreLike) -> Union[AsyncArray, AsyncGroup]:
    store_path = make_store_path(store)
    zarr_json_bytes = await (store_path / ZARR_JSON).get()
    if zarr_json_bytes is None:
        raise NodeNotFoundError(f"No array or group found at {store_path}.")
    metadata = parse_node_metadata(json.loads(zarr_json_bytes))
    if isinstance(metadata, ArrayMetadata):
        return AsyncArray(metadata=metadata, store_path=store_path)
    return AsyncGroup(metadata=metadata, store_path=store_path)


def open_auto(store: StoreLike) -> Union[Array, Group]:
    object = _sync(open_auto_async(store))
    if isinstance(object, AsyncArray):
        return Array(object)
    if isinstance(object, AsyncGroup):
        return Group(object)
    raise TypeError(f"Unexpected object type. Got {type(object)}.")
