from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from gridzarr.common import CHUNK_ROOT, ZARR_JSON, ChunkCoords, concurrent_map, product
from gridzarr.config import config
from gridzarr.dimensions import collect_dimensions
from gridzarr.dtype import DataType
from gridzarr.errors import (
    ArrayNotFoundError,
    ChunkDecodeError,
    ContainsArrayError,
    ContainsGroupError,
    ContentError,
    ShapeError,
)
from gridzarr.indexing import (
    RegionIndexer,
    SliceSelection,
    chunk_bounds,
    region_from_selection,
    resolve_region,
)
from gridzarr.metadata import ArrayMetadata, make_array_metadata
from gridzarr.store import StoreLike, StorePath, make_store_path
from gridzarr.sync import SyncMixin, sync

if TYPE_CHECKING:
    from typing import Any, Dict, Iterable, List, Literal, Optional, Union
    from gridzarr.abc.codec import Codec
    from gridzarr.codecs.pipeline import BoundCodecPipeline
    from gridzarr.common import JSON
    from gridzarr.dimensions import Dimension
    from gridzarr.indexing import RegionLike

logger = logging.getLogger(__name__)


def _filled(shape: ChunkCoords, data_type: DataType, fill_value: Any) -> np.ndarray:
    dtype = data_type.to_numpy()
    if data_type != DataType.string and not fill_value:
        return np.zeros(shape, dtype=dtype)
    return np.full(shape, fill_value, dtype=dtype)


def _all_equal(fill_value: Any, chunk: np.ndarray) -> bool:
    if isinstance(fill_value, (float, np.floating)) and math.isnan(fill_value):
        return bool(np.all(np.isnan(chunk)))
    return bool(np.all(chunk == fill_value))


async def ensure_no_node(store_path: StorePath) -> None:
    zarr_json_bytes = await (store_path / ZARR_JSON).get()
    if zarr_json_bytes is None:
        return
    if json.loads(zarr_json_bytes).get("node_type") == "group":
        raise ContainsGroupError(str(store_path.store), store_path.path)
    raise ContainsArrayError(str(store_path.store), store_path.path)


@dataclass(frozen=True)
class AsyncArray:
    metadata: ArrayMetadata
    store_path: StorePath
    codec_pipeline: Optional[BoundCodecPipeline]

    def __init__(self, metadata: ArrayMetadata, store_path: StorePath) -> None:
        if metadata.data_type is None:
            codec_pipeline = None
        else:
            codec_pipeline = metadata.codecs.build(metadata.chunk_representation)

        object.__setattr__(self, "metadata", metadata)
        object.__setattr__(self, "store_path", store_path)
        object.__setattr__(self, "codec_pipeline", codec_pipeline)

    @classmethod
    async def create(
        cls,
        store: StoreLike,
        *,
        shape: Iterable[int],
        dtype: Any,
        chunk_shape: Iterable[int],
        fill_value: Optional[Any] = None,
        chunk_key_separator: Literal[".", "/"] = "/",
        codecs: Optional[Iterable[Union[Codec, Dict[str, JSON]]]] = None,
        dimension_names: Optional[Iterable[Optional[str]]] = None,
        attributes: Optional[Dict[str, JSON]] = None,
        exists_ok: bool = False,
    ) -> AsyncArray:
        """
        Create an array and write its ``zarr.json``. ``dtype`` may be ``None``, in which case
        the element type is taken from the first value written.
        """
        store_path = make_store_path(store)
        if not exists_ok:
            await ensure_no_node(store_path)

        metadata = make_array_metadata(
            shape=shape,
            dtype=dtype,
            chunk_shape=chunk_shape,
            fill_value=fill_value,
            chunk_key_separator=chunk_key_separator,
            codecs=codecs,
            dimension_names=dimension_names,
            attributes=attributes,
        )
        array = cls(metadata=metadata, store_path=store_path)
        await array._save_metadata()
        logger.debug("Created array %s with shape %s", store_path, metadata.shape)
        return array

    @classmethod
    def from_dict(cls, store_path: StorePath, data: Dict[str, JSON]) -> AsyncArray:
        metadata = ArrayMetadata.from_dict(data)
        return cls(metadata=metadata, store_path=store_path)

    @classmethod
    async def open(cls, store: StoreLike) -> AsyncArray:
        store_path = make_store_path(store)
        zarr_json_bytes = await (store_path / ZARR_JSON).get()
        if zarr_json_bytes is None:
            raise ArrayNotFoundError(str(store_path.store), store_path.path)
        logger.debug("Opening array %s", store_path)
        return cls.from_dict(store_path, json.loads(zarr_json_bytes))

    async def _save_metadata(self) -> None:
        await (self.store_path / ZARR_JSON).set(self.metadata.to_bytes())

    @property
    def ndim(self) -> int:
        return self.metadata.ndim

    @property
    def shape(self) -> ChunkCoords:
        return self.metadata.shape

    @property
    def chunks(self) -> ChunkCoords:
        return self.metadata.chunk_shape

    @property
    def size(self) -> int:
        return product(self.shape)

    @property
    def dtype(self) -> Optional[np.dtype]:
        return self.metadata.dtype

    @property
    def data_type(self) -> Optional[DataType]:
        return self.metadata.data_type

    @property
    def fill_value(self) -> Any:
        return self.metadata.fill_value

    @property
    def attrs(self) -> Dict[str, JSON]:
        return self.metadata.attributes

    @property
    def nchunks(self) -> int:
        return product(self.metadata.grid_shape)

    @property
    def path(self) -> str:
        return self.store_path.path

    @property
    def basename(self) -> str:
        return self.path.split("/")[-1]

    async def nchunks_initialized(self) -> int:
        """Number of chunks present in the store. Missing chunks read as fill value."""
        if self.metadata.chunk_key_encoding.separator == "/":
            chunk_keys = await (self.store_path / CHUNK_ROOT).list_prefix()
        else:
            prefix = CHUNK_ROOT + self.metadata.chunk_key_encoding.separator
            chunk_keys = [k for k in await self.store_path.list_dir() if k.startswith(prefix)]
        return len(chunk_keys)

    def _require_data_type(self) -> ArrayMetadata:
        if self.metadata.data_type is None:
            raise ContentError(
                f"The data type of {self.store_path} is not known until a value is written."
            )
        return self.metadata

    async def read(
        self,
        region: Optional[RegionLike] = None,
        subsampling: Optional[Iterable[int]] = None,
    ) -> np.ndarray:
        """
        Read a region of the array as a flat, row-major array.

        Parameters
        ----------
        region : Region or (lower, upper), optional
            The half-open element range to read along every dimension. Defaults to the
            whole array.
        subsampling : iterable of int, optional
            Read every n-th element along each dimension, starting at the lower bound.

        Returns
        -------
        np.ndarray
            ``prod(ceil((upper - lower) / subsampling))`` elements. Chunks that are not
            stored read as the fill value.
        """
        metadata = self._require_data_type()
        region_parsed = resolve_region(region, subsampling, metadata.shape)
        indexer = RegionIndexer(region_parsed, metadata.shape, metadata.chunk_shape)

        # setup output array
        out = _filled(indexer.shape, metadata.data_type, metadata.fill_value_or_default)

        projections = [
            (chunk_coords, chunk_selection, out_selection, out)
            for chunk_coords, chunk_selection, out_selection in indexer
        ]
        logger.debug("Reading %d chunks from %s", len(projections), self.store_path)

        # reading chunks and decoding them
        await concurrent_map(projections, self._read_chunk, config.get("async.concurrency"))
        return out.reshape(-1)

    async def _read_chunk(
        self,
        chunk_coords: ChunkCoords,
        chunk_selection: SliceSelection,
        out_selection: SliceSelection,
        out: np.ndarray,
    ) -> None:
        store_path = self.store_path / self.metadata.get_chunk_key(chunk_coords)
        chunk_bytes = await store_path.get()
        if chunk_bytes is None:
            logger.debug("Chunk %s of %s is not stored", chunk_coords, self.store_path)
            return

        try:
            chunk_array = await self.codec_pipeline.decode(chunk_bytes)
        except Exception as e:
            raise ChunkDecodeError(chunk_coords, e) from e

        # out_selection is disjoint from the out_selection of every other chunk
        out[out_selection] = chunk_array[chunk_selection]

    async def getitem(self, selection: Any) -> np.ndarray:
        region, out_shape = region_from_selection(selection, self.shape)
        out = (await self.read(region)).reshape(out_shape)
        if out.shape:
            return out
        else:
            return out[()]

    def _normalize_value(self, value: Any) -> np.ndarray:
        shape = self.metadata.shape
        stacked = False
        if (
            len(shape) > 2
            and isinstance(value, (list, tuple))
            and len(value) > 0
            and all(getattr(v, "ndim", None) == 2 for v in value)
        ):
            # one 2-D slice per combination of the outer indices, in row-major order
            if len(value) != product(shape[:-2]):
                raise ShapeError(
                    f"Expected {product(shape[:-2])} slices of shape {shape[-2:]}. "
                    + f"Got {len(value)}."
                )
            for v in value:
                if tuple(v.shape) != shape[-2:]:
                    raise ShapeError(shape[-2:], tuple(v.shape))
            value = np.stack([np.asarray(v) for v in value])
            stacked = True

        array = np.asarray(value, dtype=self.metadata.dtype)
        if stacked:
            return array.reshape(shape)
        if array.shape != shape:
            if array.ndim == 1 and array.size == product(shape):
                array = array.reshape(shape)
            else:
                raise ShapeError(shape, array.shape)
        return array

    async def write(self, value: Any) -> AsyncArray:
        """
        Write the whole array. ``value`` is a flat vector of ``prod(shape)`` elements, an
        array with the shape of this array, or, for arrays of rank 3 and more, a list of 2-D
        slices covering the last two dimensions.

        Every chunk of the grid is rewritten. Returns the array, which is a new instance when
        the element type was only determined by this write.
        """
        array = self
        if self.metadata.data_type is None:
            array = await self._resolve_data_type(DataType.from_value(value))

        value = array._normalize_value(value)
        all_chunk_coords = list(array.metadata.chunk_grid.all_chunk_coords(array.shape))
        logger.debug("Writing %d chunks to %s", len(all_chunk_coords), array.store_path)

        await concurrent_map(
            [(chunk_coords, value) for chunk_coords in all_chunk_coords],
            array._write_chunk,
            config.get("async.concurrency"),
        )
        return array

    async def _write_chunk(self, chunk_coords: ChunkCoords, value: np.ndarray) -> None:
        metadata = self.metadata
        fill_value = metadata.fill_value_or_default
        block = value[chunk_bounds(chunk_coords, metadata.shape, metadata.chunk_shape)]

        if block.shape != metadata.chunk_shape:
            # edge chunks are stored at full size, padded with the fill value
            chunk_array = _filled(metadata.chunk_shape, metadata.data_type, fill_value)
            chunk_array[tuple(slice(0, n) for n in block.shape)] = block
        else:
            chunk_array = block

        store_path = self.store_path / metadata.get_chunk_key(chunk_coords)
        if not config.get("array.write_empty_chunks") and _all_equal(fill_value, chunk_array):
            await store_path.delete()
            return

        chunk_bytes = await self.codec_pipeline.encode(chunk_array)
        await store_path.set(chunk_bytes)

    async def _resolve_data_type(self, data_type: DataType) -> AsyncArray:
        new_array = AsyncArray(
            metadata=self.metadata.with_data_type(data_type), store_path=self.store_path
        )
        await new_array._save_metadata()
        logger.debug("Array %s takes data type %s", self.store_path, data_type.value)
        return new_array

    async def update_attributes(self, new_attributes: Dict[str, JSON]) -> AsyncArray:
        new_metadata = self.metadata.update_attributes(new_attributes)
        new_array = AsyncArray(metadata=new_metadata, store_path=self.store_path)
        await new_array._save_metadata()
        return new_array

    def dimensions(self, dimensions: Optional[List[Dimension]] = None) -> List[Dimension]:
        parent = self.path.rsplit("/", 1)[0] if "/" in self.path else ""
        return collect_dimensions([(self.path, self.metadata)], "/" + parent, dimensions)

    def __repr__(self) -> str:
        return f"<AsyncArray {self.store_path} shape={self.shape} dtype={self.dtype}>"


@dataclass
class Array(SyncMixin):
    _async_array: AsyncArray

    @classmethod
    def create(
        cls,
        store: StoreLike,
        *,
        shape: Iterable[int],
        dtype: Any,
        chunk_shape: Iterable[int],
        fill_value: Optional[Any] = None,
        chunk_key_separator: Literal[".", "/"] = "/",
        codecs: Optional[Iterable[Union[Codec, Dict[str, JSON]]]] = None,
        dimension_names: Optional[Iterable[Optional[str]]] = None,
        attributes: Optional[Dict[str, JSON]] = None,
        exists_ok: bool = False,
    ) -> Array:
        async_array = sync(
            AsyncArray.create(
                store=store,
                shape=shape,
                dtype=dtype,
                chunk_shape=chunk_shape,
                fill_value=fill_value,
                chunk_key_separator=chunk_key_separator,
                codecs=codecs,
                dimension_names=dimension_names,
                attributes=attributes,
                exists_ok=exists_ok,
            )
        )
        return cls(async_array)

    @classmethod
    def open(cls, store: StoreLike) -> Array:
        return cls(sync(AsyncArray.open(store)))

    @property
    def metadata(self) -> ArrayMetadata:
        return self._async_array.metadata

    @property
    def store_path(self) -> StorePath:
        return self._async_array.store_path

    @property
    def ndim(self) -> int:
        return self._async_array.ndim

    @property
    def shape(self) -> ChunkCoords:
        return self._async_array.shape

    @property
    def chunks(self) -> ChunkCoords:
        return self._async_array.chunks

    @property
    def size(self) -> int:
        return self._async_array.size

    @property
    def dtype(self) -> Optional[np.dtype]:
        return self._async_array.dtype

    @property
    def data_type(self) -> Optional[DataType]:
        return self._async_array.data_type

    @property
    def fill_value(self) -> Any:
        return self._async_array.fill_value

    @property
    def attrs(self) -> Dict[str, JSON]:
        return self._async_array.attrs

    @property
    def nchunks(self) -> int:
        return self._async_array.nchunks

    @property
    def nchunks_initialized(self) -> int:
        return self._sync(self._async_array.nchunks_initialized())

    @property
    def path(self) -> str:
        return self._async_array.path

    @property
    def basename(self) -> str:
        return self._async_array.basename

    def read(
        self,
        region: Optional[RegionLike] = None,
        subsampling: Optional[Iterable[int]] = None,
    ) -> np.ndarray:
        return self._sync(self._async_array.read(region, subsampling))

    def __getitem__(self, selection: Any) -> np.ndarray:
        return self._sync(self._async_array.getitem(selection))

    def write(self, value: Any) -> None:
        self._async_array = self._sync(self._async_array.write(value))

    def update_attributes(self, new_attributes: Dict[str, JSON]) -> Array:
        self._async_array = self._sync(self._async_array.update_attributes(new_attributes))
        return self

    def dimensions(self, dimensions: Optional[List[Dimension]] = None) -> List[Dimension]:
        return self._async_array.dimensions(dimensions)

    def __repr__(self) -> str:
        return f"<Array {self.store_path} shape={self.shape} dtype={self.dtype}>"
