from __future__ import annotations

from abc import abstractmethod, ABC
from typing import TYPE_CHECKING

import numpy as np

from gridzarr.abc.metadata import Metadata
from gridzarr.errors import CodecTypeError
from gridzarr.representation import RepresentationType

if TYPE_CHECKING:
    from typing_extensions import Self
    from gridzarr.common import BytesLike
    from gridzarr.dtype import DataType


class Codec(Metadata, ABC):
    """
    One stage of a codec pipeline.

    A codec turns values of its decoded representation into values of its encoded
    representation and back. ``compute_encoded_type`` is pure and tells the pipeline which
    representation comes out of the codec for a given input representation.
    """

    is_fixed_size: bool

    @abstractmethod
    def compute_encoded_type(self, decoded_type: RepresentationType) -> RepresentationType:
        pass

    def evolve(self, data_type: DataType) -> Self:
        """Fill in settings that depend on the element type of the array."""
        return self

    def validate(self, data_type: DataType) -> None:
        pass


class ArrayBytesCodec(Codec):
    def compute_encoded_type(self, decoded_type: RepresentationType) -> RepresentationType:
        if not decoded_type.is_array:
            raise CodecTypeError(self.to_dict()["name"], decoded_type)
        return self.resolve_encoded_type(decoded_type)

    def resolve_encoded_type(self, decoded_type: RepresentationType) -> RepresentationType:
        return RepresentationType.bytes()

    @abstractmethod
    async def decode(
        self,
        chunk_bytes: BytesLike,
        chunk_type: RepresentationType,
    ) -> np.ndarray:
        pass

    @abstractmethod
    async def encode(
        self,
        chunk_array: np.ndarray,
        chunk_type: RepresentationType,
    ) -> BytesLike:
        pass


class BytesBytesCodec(Codec):
    def compute_encoded_type(self, decoded_type: RepresentationType) -> RepresentationType:
        if not decoded_type.is_bytes:
            raise CodecTypeError(self.to_dict()["name"], decoded_type)
        return self.resolve_encoded_type(decoded_type)

    def resolve_encoded_type(self, decoded_type: RepresentationType) -> RepresentationType:
        return RepresentationType.bytes()

    @abstractmethod
    async def decode(
        self,
        chunk_bytes: BytesLike,
        chunk_type: RepresentationType,
    ) -> BytesLike:
        pass

    @abstractmethod
    async def encode(
        self,
        chunk_bytes: BytesLike,
        chunk_type: RepresentationType,
    ) -> BytesLike:
        pass
