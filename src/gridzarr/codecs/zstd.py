from __future__ import annotations
from typing import TYPE_CHECKING
from dataclasses import dataclass

import zstandard
from zstandard import ZstdCompressor, ZstdDecompressor

from gridzarr.abc.codec import BytesBytesCodec
from gridzarr.common import parse_named_configuration, to_thread
from gridzarr.errors import ContentError
from gridzarr.registry import register_codec

if TYPE_CHECKING:
    from typing import Dict, Optional
    from typing_extensions import Self
    from gridzarr.common import BytesLike, JSON
    from gridzarr.representation import RepresentationType


def parse_zstd_level(data: JSON) -> int:
    if isinstance(data, int) and not isinstance(data, bool):
        if data >= 23:
            msg = f"Value must be less than or equal to 22. Got {data} instead."
            raise ValueError(msg)
        return data
    msg = f"Got value with type {type(data)}, but expected an int"
    raise TypeError(msg)


def parse_checksum(data: JSON) -> bool:
    if isinstance(data, bool):
        return data
    msg = f"Expected bool, got {type(data)}"
    raise TypeError(msg)


def _content_size(data: BytesLike) -> Optional[int]:
    try:
        params = zstandard.get_frame_parameters(data)
    except zstandard.ZstdError as e:
        raise ContentError(f"Not a Zstandard frame: {e}") from e
    if params.content_size == zstandard.CONTENTSIZE_UNKNOWN:
        return None
    return params.content_size


@dataclass(frozen=True)
class ZstdCodec(BytesBytesCodec):
    is_fixed_size = False

    level: int = 1
    checksum: bool = False

    def __init__(self, *, level=1, checksum=False) -> None:
        level_parsed = parse_zstd_level(level)
        checksum_parsed = parse_checksum(checksum)

        object.__setattr__(self, "level", level_parsed)
        object.__setattr__(self, "checksum", checksum_parsed)

    @classmethod
    def from_dict(cls, data: Dict[str, JSON]) -> Self:
        _, configuration_parsed = parse_named_configuration(
            data, "zstd", require_configuration=False
        )
        return cls(**(configuration_parsed or {}))

    def to_dict(self) -> Dict[str, JSON]:
        return {"name": "zstd", "configuration": {"level": self.level, "checksum": self.checksum}}

    def _compress(self, data: BytesLike) -> bytes:
        ctx = ZstdCompressor(level=self.level, write_checksum=self.checksum)
        return ctx.compress(data)

    def _decompress(self, data: BytesLike, expected_size: Optional[int]) -> bytes:
        size = _content_size(data)
        if size is None:
            size = expected_size
        if size is None:
            raise ContentError(
                "The decompressed size is neither in the frame header nor known from the array."
            )
        ctx = ZstdDecompressor()
        try:
            return ctx.decompress(data, max_output_size=size)
        except zstandard.ZstdError as e:
            raise ContentError(f"Zstandard decompression failed: {e}") from e

    async def decode(
        self,
        chunk_bytes: BytesLike,
        chunk_type: RepresentationType,
    ) -> BytesLike:
        return await to_thread(self._decompress, chunk_bytes, chunk_type.byte_length)

    async def encode(
        self,
        chunk_bytes: BytesLike,
        _chunk_type: RepresentationType,
    ) -> BytesLike:
        return await to_thread(self._compress, chunk_bytes)


register_codec("zstd", ZstdCodec)
