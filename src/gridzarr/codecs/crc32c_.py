from __future__ import annotations
from dataclasses import dataclass

from typing import TYPE_CHECKING

import numpy as np

from crc32c import crc32c

from gridzarr.abc.codec import BytesBytesCodec
from gridzarr.common import parse_named_configuration
from gridzarr.errors import ContentError
from gridzarr.registry import register_codec
from gridzarr.representation import RepresentationType

if TYPE_CHECKING:
    from typing import Dict
    from typing_extensions import Self
    from gridzarr.common import BytesLike, JSON


@dataclass(frozen=True)
class Crc32cCodec(BytesBytesCodec):
    """Appends a little-endian CRC-32C checksum of the chunk bytes."""

    is_fixed_size = True

    @classmethod
    def from_dict(cls, data: Dict[str, JSON]) -> Self:
        parse_named_configuration(data, "crc32c", require_configuration=False)
        return cls()

    def to_dict(self) -> Dict[str, JSON]:
        return {"name": "crc32c"}

    def resolve_encoded_type(self, decoded_type: RepresentationType) -> RepresentationType:
        if decoded_type.byte_length is None:
            return RepresentationType.bytes()
        return RepresentationType.bytes(decoded_type.byte_length + 4)

    async def decode(
        self,
        chunk_bytes: BytesLike,
        _chunk_type: RepresentationType,
    ) -> BytesLike:
        data = memoryview(chunk_bytes).cast("B")
        if data.nbytes < 4:
            raise ContentError(f"Chunk of {data.nbytes} bytes is too short to hold a checksum.")
        crc32_bytes = data[-4:]
        inner_bytes = data[:-4]

        computed_checksum = np.array(crc32c(inner_bytes), dtype="<u4").tobytes()
        stored_checksum = bytes(crc32_bytes)
        if computed_checksum != stored_checksum:
            raise ContentError(
                "Stored and computed checksum do not match. "
                + f"Stored: {stored_checksum!r}. Computed: {computed_checksum!r}."
            )
        return inner_bytes

    async def encode(
        self,
        chunk_bytes: BytesLike,
        _chunk_type: RepresentationType,
    ) -> BytesLike:
        checksum = crc32c(chunk_bytes)
        return bytes(chunk_bytes) + np.array(checksum, dtype="<u4").tobytes()


register_codec("crc32c", Crc32cCodec)
