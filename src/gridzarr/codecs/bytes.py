from __future__ import annotations
from dataclasses import dataclass
from enum import Enum

from typing import TYPE_CHECKING

import numpy as np

from gridzarr.abc.codec import ArrayBytesCodec
from gridzarr.common import parse_enum, parse_named_configuration, product
from gridzarr.dtype import DataType
from gridzarr.errors import ContentError, MetadataValidationError
from gridzarr.registry import register_codec
from gridzarr.representation import RepresentationType

if TYPE_CHECKING:
    from typing import Dict, Optional
    from typing_extensions import Self
    from gridzarr.common import JSON, BytesLike


class Endian(Enum):
    big = "big"
    little = "little"


def parse_endian(data: JSON) -> Endian:
    return parse_enum(data, Endian)


# UTF-16 code units are packed as unsigned 16 bit integers.
_CHAR_UNIT = np.dtype("u2")


def _packed_dtype(data_type: DataType, endian: Optional[Endian]) -> np.dtype:
    if data_type == DataType.char:
        dtype = _CHAR_UNIT
    else:
        dtype = data_type.to_numpy()
    if dtype.itemsize == 1:
        return dtype
    return dtype.newbyteorder("<" if endian == Endian.little else ">")


@dataclass(frozen=True)
class BytesCodec(ArrayBytesCodec):
    """
    Packs the elements of a fixed-size array as raw primitives, without any header.
    """

    is_fixed_size = True

    endian: Optional[Endian]

    def __init__(self, *, endian=Endian.little) -> None:
        endian_parsed = None if endian is None else parse_endian(endian)

        object.__setattr__(self, "endian", endian_parsed)

    @classmethod
    def from_dict(cls, data: Dict[str, JSON]) -> Self:
        _, configuration_parsed = parse_named_configuration(
            data, "bytes", require_configuration=False
        )
        # a missing configuration is what ``to_dict`` writes for ``endian=None``
        if configuration_parsed is None:
            return cls(endian=None)
        return cls(**configuration_parsed)

    def to_dict(self) -> Dict[str, JSON]:
        if self.endian is None:
            return {"name": "bytes"}
        else:
            return {"name": "bytes", "configuration": {"endian": self.endian.value}}

    def validate(self, data_type: DataType) -> None:
        if not data_type.is_fixed_size:
            raise MetadataValidationError(
                f"The bytes codec cannot pack variable-length data type '{data_type.value}'."
            )
        if data_type.has_endianness and self.endian is None:
            raise MetadataValidationError(
                "The `endian` configuration needs to be specified for multi-byte data types."
            )

    def resolve_encoded_type(self, decoded_type: RepresentationType) -> RepresentationType:
        return RepresentationType.bytes(decoded_type.nbytes)

    async def decode(
        self,
        chunk_bytes: BytesLike,
        chunk_type: RepresentationType,
    ) -> np.ndarray:
        data_type = chunk_type.data_type
        if data_type is None or not data_type.is_fixed_size:
            raise ContentError(f"The bytes codec cannot unpack elements of type {data_type}.")
        dtype = _packed_dtype(data_type, self.endian)

        view = memoryview(chunk_bytes)
        expected = product(chunk_type.shape) * dtype.itemsize
        if view.nbytes != expected:
            raise ContentError(
                f"Expected {expected} bytes for a chunk of shape {chunk_type.shape}, "
                + f"got {view.nbytes}."
            )
        packed = np.frombuffer(view.cast("B"), dtype)

        # copying to the native dtype also makes the result writeable
        if data_type == DataType.char:
            chunk_array = packed.astype("u4").view(data_type.to_numpy())
        else:
            chunk_array = packed.astype(data_type.to_numpy())
        return chunk_array.reshape(chunk_type.shape)

    async def encode(
        self,
        chunk_array: np.ndarray,
        chunk_type: RepresentationType,
    ) -> BytesLike:
        data_type = chunk_type.data_type
        if data_type is None or not data_type.is_fixed_size:
            raise ContentError(f"The bytes codec cannot pack elements of type {data_type}.")
        dtype = _packed_dtype(data_type, self.endian)

        chunk_array = np.asarray(chunk_array)
        if data_type == DataType.char:
            code_points = np.ascontiguousarray(chunk_array.astype(data_type.to_numpy())).view("u4")
            if code_points.size and code_points.max() > 0xFFFF:
                raise ContentError("Characters outside the basic multilingual plane.")
            chunk_array = code_points
        return np.ascontiguousarray(chunk_array.astype(dtype, copy=False)).tobytes()


register_codec("bytes", BytesCodec)
