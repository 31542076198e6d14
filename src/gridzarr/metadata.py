from __future__ import annotations
from typing import TYPE_CHECKING
from dataclasses import dataclass, field, replace
import json

import numpy as np

from gridzarr.abc.metadata import Metadata
from gridzarr.chunk_grids import ChunkGrid, RegularChunkGrid
from gridzarr.chunk_key_encodings import ChunkKeyEncoding, DefaultChunkKeyEncoding
from gridzarr.codecs import BytesCodec, CodecPipeline, VLenUTF8Codec, ZstdCodec
from gridzarr.common import ChunkCoords, parse_attributes, parse_shapelike
from gridzarr.config import config
from gridzarr.dtype import DataType, parse_data_type
from gridzarr.errors import MetadataValidationError, NodeTypeValidationError
from gridzarr.representation import RepresentationType

if TYPE_CHECKING:
    from typing import Any, Dict, Iterable, List, Literal, Optional, Tuple, Union
    from gridzarr.abc.codec import Codec
    from gridzarr.common import JSON


def parse_zarr_format_v3(data: Any) -> Literal[3]:
    if data == 3:
        return data
    raise MetadataValidationError("zarr_format", 3, data)


def parse_node_type_array(data: Any) -> Literal["array"]:
    if data == "array":
        return data
    raise NodeTypeValidationError("node_type", "array", data)


def parse_node_type_group(data: Any) -> Literal["group"]:
    if data == "group":
        return data
    raise NodeTypeValidationError("node_type", "group", data)


def parse_dimension_names(data: Any) -> Optional[Tuple[Optional[str], ...]]:
    if data is None:
        return data
    if isinstance(data, str):
        raise TypeError(f"Expected an iterable of strings, got the string {data!r}.")
    data_tuple = tuple(data)
    if all(isinstance(x, str) or x is None for x in data_tuple):
        return data_tuple
    msg = f"Expected either None or an iterable of str, got {type(data)}"
    raise TypeError(msg)


def parse_storage_transformers(data: Any) -> Tuple[()]:
    if data is None or len(data) == 0:
        return ()
    raise MetadataValidationError(f"Storage transformers are not supported. Got {data}.")


def default_codecs(data_type: DataType) -> List[Codec]:
    """Strings are stored as vlen-utf8, everything else as little-endian bytes, then zstd."""
    if data_type == DataType.string:
        return [VLenUTF8Codec(), ZstdCodec()]
    return [BytesCodec(), ZstdCodec()]


def parse_codecs(data: Any, data_type: Optional[DataType]) -> Optional[CodecPipeline]:
    if data is None:
        if data_type is None:
            return None
        data = default_codecs(data_type)
    codecs_parsed = data if isinstance(data, CodecPipeline) else CodecPipeline.from_dict(data)
    if data_type is not None:
        codecs_parsed = codecs_parsed.evolve(data_type)
    return codecs_parsed


@dataclass(frozen=True)
class ArrayMetadata(Metadata):
    """
    The ``zarr.json`` document of one array.

    ``data_type`` may be left as ``None`` when the element type is not known yet; it is then
    set once by :meth:`with_data_type`, which also resolves the default codecs.
    """

    shape: ChunkCoords
    data_type: Optional[DataType]
    chunk_grid: ChunkGrid
    chunk_key_encoding: ChunkKeyEncoding
    fill_value: Any
    codecs: Optional[CodecPipeline]
    attributes: Dict[str, Any] = field(default_factory=dict)
    dimension_names: Optional[Tuple[Optional[str], ...]] = None
    zarr_format: Literal[3] = field(default=3, init=False)
    node_type: Literal["array"] = field(default="array", init=False)

    def __init__(
        self,
        *,
        shape,
        data_type,
        chunk_grid,
        chunk_key_encoding=None,
        fill_value=None,
        codecs=None,
        attributes=None,
        dimension_names=None,
    ):
        """
        Because the class is a frozen dataclass, we set attributes using object.__setattr__
        """
        shape_parsed = parse_shapelike(shape)
        data_type_parsed = None if data_type is None else parse_data_type(data_type)
        chunk_grid_parsed = ChunkGrid.from_dict(chunk_grid)
        chunk_key_encoding_parsed = (
            DefaultChunkKeyEncoding()
            if chunk_key_encoding is None
            else ChunkKeyEncoding.from_dict(chunk_key_encoding)
        )
        fill_value_parsed = (
            fill_value if data_type_parsed is None else data_type_parsed.parse_fill_value(fill_value)
        )
        codecs_parsed = parse_codecs(codecs, data_type_parsed)
        dimension_names_parsed = parse_dimension_names(dimension_names)
        attributes_parsed = parse_attributes(attributes)

        object.__setattr__(self, "shape", shape_parsed)
        object.__setattr__(self, "data_type", data_type_parsed)
        object.__setattr__(self, "chunk_grid", chunk_grid_parsed)
        object.__setattr__(self, "chunk_key_encoding", chunk_key_encoding_parsed)
        object.__setattr__(self, "fill_value", fill_value_parsed)
        object.__setattr__(self, "codecs", codecs_parsed)
        object.__setattr__(self, "dimension_names", dimension_names_parsed)
        object.__setattr__(self, "attributes", attributes_parsed)

        self._validate_metadata()

    def _validate_metadata(self) -> None:
        if not isinstance(self.chunk_grid, RegularChunkGrid):
            raise MetadataValidationError("Only the regular chunk grid is supported.")
        if len(self.shape) != len(self.chunk_grid.chunk_shape):
            raise MetadataValidationError(
                "`chunk_shape` and `shape` need to have the same number of dimensions."
            )
        if self.dimension_names is not None and len(self.shape) != len(self.dimension_names):
            raise MetadataValidationError(
                "`dimension_names` and `shape` need to have the same number of dimensions."
            )
        if self.data_type is not None:
            self.codecs.validate(self.data_type)

    @property
    def dtype(self) -> Optional[np.dtype]:
        return None if self.data_type is None else self.data_type.to_numpy()

    @property
    def ndim(self) -> int:
        return len(self.shape)

    @property
    def chunk_shape(self) -> ChunkCoords:
        return self.chunk_grid.chunk_shape

    @property
    def grid_shape(self) -> ChunkCoords:
        return self.chunk_grid.get_grid_shape(self.shape)

    @property
    def fill_value_or_default(self) -> Any:
        if self.fill_value is not None:
            return self.fill_value
        return self.data_type.default_fill_value

    @property
    def chunk_representation(self) -> RepresentationType:
        """The decoded representation of every chunk, edge chunks included."""
        return RepresentationType.array(self.chunk_shape, self.data_type)

    def get_chunk_key(self, chunk_coords: ChunkCoords) -> str:
        return self.chunk_key_encoding.encode_chunk_key(chunk_coords)

    def with_data_type(
        self, data_type: Union[DataType, np.dtype, str], fill_value: Any = None
    ) -> ArrayMetadata:
        """Return a copy with the element type set. Only allowed while it is still unset."""
        if self.data_type is not None:
            raise MetadataValidationError(
                f"The data type is already set to '{self.data_type.value}'."
            )
        data_type_parsed = parse_data_type(data_type)
        if fill_value is None:
            fill_value = self.fill_value
        if fill_value is None:
            fill_value = data_type_parsed.default_fill_value
        return ArrayMetadata(
            shape=self.shape,
            data_type=data_type_parsed,
            chunk_grid=self.chunk_grid,
            chunk_key_encoding=self.chunk_key_encoding,
            fill_value=fill_value,
            codecs=self.codecs,
            attributes=self.attributes,
            dimension_names=self.dimension_names,
        )

    def update_attributes(self, attributes: Dict[str, JSON]) -> ArrayMetadata:
        return replace(self, attributes=attributes)

    def to_bytes(self) -> bytes:
        return json.dumps(self.to_dict(), indent=config.get("json_indent")).encode()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ArrayMetadata:
        data = dict(data)
        # check that the zarr_format attribute is correct
        _ = parse_zarr_format_v3(data.pop("zarr_format", None))
        # check that the node_type attribute is correct
        _ = parse_node_type_array(data.pop("node_type", None))
        _ = parse_storage_transformers(data.pop("storage_transformers", None))

        dimension_names = data.pop("dimension_names", None)

        return cls(**data, dimension_names=dimension_names)

    def to_dict(self) -> Dict[str, Any]:
        out_dict = {
            "zarr_format": self.zarr_format,
            "node_type": self.node_type,
            "shape": list(self.shape),
            "data_type": None if self.data_type is None else self.data_type.value,
            "chunk_grid": self.chunk_grid.to_dict(),
            "chunk_key_encoding": self.chunk_key_encoding.to_dict(),
            "fill_value": (
                self.fill_value
                if self.data_type is None
                else self.data_type.fill_value_to_json(self.fill_value)
            ),
            "codecs": None if self.codecs is None else self.codecs.to_dict(),
            "attributes": self.attributes,
            "storage_transformers": [],
        }
        # if `dimension_names` is `None`, we do not include it in
        # the metadata document
        if self.dimension_names is not None:
            out_dict["dimension_names"] = list(self.dimension_names)
        return out_dict


@dataclass(frozen=True)
class GroupMetadata(Metadata):
    attributes: Dict[str, Any] = field(default_factory=dict)
    zarr_format: Literal[3] = field(default=3, init=False)
    node_type: Literal["group"] = field(default="group", init=False)

    def __init__(self, attributes: Optional[Dict[str, Any]] = None):
        attributes_parsed = parse_attributes(attributes)

        object.__setattr__(self, "attributes", attributes_parsed)

    def to_bytes(self) -> bytes:
        return json.dumps(self.to_dict(), indent=config.get("json_indent")).encode()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> GroupMetadata:
        data = dict(data)
        _ = parse_zarr_format_v3(data.pop("zarr_format", None))
        _ = parse_node_type_group(data.pop("node_type", None))
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "zarr_format": self.zarr_format,
            "node_type": self.node_type,
            "attributes": self.attributes,
        }


def parse_node_metadata(data: Dict[str, Any]) -> Union[ArrayMetadata, GroupMetadata]:
    node_type = data.get("node_type")
    if node_type == "array":
        return ArrayMetadata.from_dict(data)
    if node_type == "group":
        return GroupMetadata.from_dict(data)
    raise NodeTypeValidationError("node_type", "array or group", node_type)


def make_array_metadata(
    *,
    shape: Iterable[int],
    dtype: Any,
    chunk_shape: Iterable[int],
    fill_value: Any = None,
    chunk_key_separator: Literal[".", "/"] = "/",
    codecs: Optional[Iterable[Union[Codec, Dict[str, JSON]]]] = None,
    dimension_names: Optional[Iterable[Optional[str]]] = None,
    attributes: Optional[Dict[str, JSON]] = None,
) -> ArrayMetadata:
    data_type = None if dtype is None else parse_data_type(dtype)
    if fill_value is None and data_type is not None:
        fill_value = data_type.default_fill_value
    return ArrayMetadata(
        shape=shape,
        data_type=data_type,
        chunk_grid=RegularChunkGrid(chunk_shape=chunk_shape),
        chunk_key_encoding=DefaultChunkKeyEncoding(separator=chunk_key_separator),
        fill_value=fill_value,
        codecs=None if codecs is None else list(codecs),
        attributes=attributes,
        dimension_names=dimension_names,
    )
