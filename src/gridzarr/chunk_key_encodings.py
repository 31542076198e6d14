from __future__ import annotations
from abc import abstractmethod
from typing import Dict, Literal
from dataclasses import dataclass

from gridzarr.abc.metadata import Metadata
from gridzarr.common import (
    CHUNK_ROOT,
    JSON,
    ChunkCoords,
    parse_named_configuration,
)

SeparatorLiteral = Literal[".", "/"]


def parse_separator(data: JSON) -> SeparatorLiteral:
    if data not in (".", "/"):
        raise ValueError(f"Expected an '.' or '/' separator. Got {data} instead.")
    return data  # type: ignore


@dataclass(frozen=True)
class ChunkKeyEncoding(Metadata):
    name: str
    separator: SeparatorLiteral = "/"

    def __init__(self, *, separator: SeparatorLiteral = "/") -> None:
        separator_parsed = parse_separator(separator)

        object.__setattr__(self, "separator", separator_parsed)

    @classmethod
    def from_dict(cls, data: Dict[str, JSON]) -> ChunkKeyEncoding:
        if isinstance(data, ChunkKeyEncoding):
            return data  # type: ignore

        name_parsed, configuration_parsed = parse_named_configuration(
            data, require_configuration=False
        )
        if name_parsed == "default":
            return DefaultChunkKeyEncoding(**(configuration_parsed or {}))  # type: ignore[arg-type]
        raise ValueError(f"Unknown chunk key encoding. Got {name_parsed}.")

    def to_dict(self) -> Dict[str, JSON]:
        return {"name": self.name, "configuration": {"separator": self.separator}}

    @abstractmethod
    def decode_chunk_key(self, chunk_key: str) -> ChunkCoords:
        pass

    @abstractmethod
    def encode_chunk_key(self, chunk_coords: ChunkCoords) -> str:
        pass


@dataclass(frozen=True, init=False)
class DefaultChunkKeyEncoding(ChunkKeyEncoding):
    """Chunk keys of the form ``c/0/1/2``, all chunks living under the ``c`` prefix."""

    name: Literal["default"] = "default"

    def decode_chunk_key(self, chunk_key: str) -> ChunkCoords:
        if chunk_key == CHUNK_ROOT:
            return ()
        prefix = CHUNK_ROOT + self.separator
        if not chunk_key.startswith(prefix):
            raise ValueError(f"Chunk key {chunk_key!r} does not start with {prefix!r}.")
        return tuple(map(int, chunk_key[len(prefix) :].split(self.separator)))

    def encode_chunk_key(self, chunk_coords: ChunkCoords) -> str:
        return self.separator.join(map(str, (CHUNK_ROOT,) + tuple(chunk_coords)))
