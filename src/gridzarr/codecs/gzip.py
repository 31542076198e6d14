from __future__ import annotations
from dataclasses import dataclass

from typing import TYPE_CHECKING

from numcodecs.gzip import GZip

from gridzarr.abc.codec import BytesBytesCodec
from gridzarr.common import parse_named_configuration, to_thread
from gridzarr.registry import register_codec

if TYPE_CHECKING:
    from typing import Dict
    from typing_extensions import Self
    from gridzarr.common import BytesLike, JSON
    from gridzarr.representation import RepresentationType


def parse_gzip_level(data: JSON) -> int:
    if data not in range(0, 10) or isinstance(data, bool):
        raise ValueError(
            f"Expected an integer from the inclusive range (0, 9). Got {data} instead."
        )
    return data


@dataclass(frozen=True)
class GzipCodec(BytesBytesCodec):
    is_fixed_size = False

    level: int = 5

    def __init__(self, *, level=5) -> None:
        level_parsed = parse_gzip_level(level)

        object.__setattr__(self, "level", level_parsed)

    @classmethod
    def from_dict(cls, data: Dict[str, JSON]) -> Self:
        _, configuration_parsed = parse_named_configuration(
            data, "gzip", require_configuration=False
        )
        return cls(**(configuration_parsed or {}))

    def to_dict(self) -> Dict[str, JSON]:
        return {"name": "gzip", "configuration": {"level": self.level}}

    async def decode(
        self,
        chunk_bytes: BytesLike,
        _chunk_type: RepresentationType,
    ) -> BytesLike:
        return await to_thread(GZip(self.level).decode, chunk_bytes)

    async def encode(
        self,
        chunk_bytes: BytesLike,
        _chunk_type: RepresentationType,
    ) -> BytesLike:
        return await to_thread(GZip(self.level).encode, chunk_bytes)


register_codec("gzip", GzipCodec)
