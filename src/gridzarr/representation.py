from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gridzarr.common import ChunkCoords, parse_shapelike, product

if TYPE_CHECKING:
    from typing import Literal, Optional
    from gridzarr.dtype import DataType


@dataclass(frozen=True)
class RepresentationType:
    """
    The form a chunk takes between two codecs of a pipeline: either a typed array of a
    given shape, or a byte sequence. A byte representation may carry the number of bytes
    it is known to hold.

    Representation types are only used to check that adjacent codecs agree; they are
    never persisted.
    """

    kind: Literal["array", "bytes"]
    shape: Optional[ChunkCoords] = None
    data_type: Optional[DataType] = None
    byte_length: Optional[int] = None

    @classmethod
    def array(cls, shape: ChunkCoords, data_type: DataType) -> RepresentationType:
        return cls(kind="array", shape=parse_shapelike(shape), data_type=data_type)

    @classmethod
    def bytes(cls, byte_length: Optional[int] = None) -> RepresentationType:
        return cls(kind="bytes", byte_length=byte_length)

    @property
    def is_bytes(self) -> bool:
        return self.kind == "bytes"

    @property
    def is_array(self) -> bool:
        return self.kind == "array"

    @property
    def nbytes(self) -> Optional[int]:
        """Number of packed bytes, when it follows from the representation alone."""
        if self.is_bytes:
            return self.byte_length
        if self.data_type is None or not self.data_type.is_fixed_size:
            return None
        return product(self.shape) * self.data_type.byte_count

    def __str__(self) -> str:
        if self.is_bytes:
            return "bytes" if self.byte_length is None else f"bytes[{self.byte_length}]"
        return f"array{list(self.shape)}<{self.data_type.value}>"
