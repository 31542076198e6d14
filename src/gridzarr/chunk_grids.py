from __future__ import annotations
import itertools
from typing import TYPE_CHECKING, Any, Dict
from dataclasses import dataclass

from gridzarr.abc.metadata import Metadata
from gridzarr.common import (
    JSON,
    ChunkCoords,
    ChunkCoordsLike,
    ceildiv,
    parse_named_configuration,
    parse_shapelike,
)

if TYPE_CHECKING:
    from typing import Iterator
    from typing_extensions import Self


@dataclass(frozen=True)
class ChunkGrid(Metadata):
    @classmethod
    def from_dict(cls, data: Dict[str, JSON]) -> ChunkGrid:
        if isinstance(data, ChunkGrid):
            return data  # type: ignore

        name_parsed, _ = parse_named_configuration(data)
        if name_parsed == "regular":
            return RegularChunkGrid.from_dict(data)
        raise ValueError(f"Unknown chunk grid. Got {name_parsed}.")


@dataclass(frozen=True)
class RegularChunkGrid(ChunkGrid):
    chunk_shape: ChunkCoords

    def __init__(self, *, chunk_shape: ChunkCoordsLike) -> None:
        chunk_shape_parsed = parse_shapelike(chunk_shape, allow_zero=False)

        object.__setattr__(self, "chunk_shape", chunk_shape_parsed)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Self:
        _, configuration_parsed = parse_named_configuration(data, "regular")

        return cls(**configuration_parsed)  # type: ignore[arg-type]

    def to_dict(self) -> Dict[str, JSON]:
        return {"name": "regular", "configuration": {"chunk_shape": list(self.chunk_shape)}}

    def get_grid_shape(self, array_shape: ChunkCoords) -> ChunkCoords:
        """
        Number of chunks along each dimension. When the ranks of the array and of the chunks
        differ, the shorter of the two is padded with 1.
        """
        rank = max(len(array_shape), len(self.chunk_shape))
        array_shape = tuple(array_shape) + (1,) * (rank - len(array_shape))
        chunk_shape = self.chunk_shape + (1,) * (rank - len(self.chunk_shape))
        return tuple(ceildiv(s, c) for s, c in zip(array_shape, chunk_shape))

    def all_chunk_coords(self, array_shape: ChunkCoords) -> Iterator[ChunkCoords]:
        """Every chunk of the grid, in row-major order."""
        return itertools.product(*(range(0, n) for n in self.get_grid_shape(array_shape)))
