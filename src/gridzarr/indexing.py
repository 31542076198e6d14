from __future__ import annotations

import itertools
import numbers
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, List, NamedTuple, Tuple

from gridzarr.common import ChunkCoords, ceildiv, product
from gridzarr.errors import RegionError

if TYPE_CHECKING:
    from typing import Any, Optional, Union

    RegionLike = Union["Region", Tuple[Any, Any]]

SliceSelection = Tuple[slice, ...]


def _parse_coords(data: Any, name: str) -> ChunkCoords:
    try:
        data_tuple = tuple(data)
    except TypeError as e:
        raise RegionError(f"Expected an iterable of integers for `{name}`. Got {data!r}.") from e
    if not all(isinstance(v, numbers.Integral) and not isinstance(v, bool) for v in data_tuple):
        raise RegionError(f"Expected an iterable of integers for `{name}`. Got {data!r}.")
    return tuple(int(v) for v in data_tuple)


@dataclass(frozen=True)
class Region:
    """
    A hyper-rectangle of array elements, ``[lower, upper)`` along every dimension, of which
    every ``subsampling``-th element is selected starting at ``lower``.
    """

    lower: ChunkCoords
    upper: ChunkCoords
    subsampling: ChunkCoords

    def __init__(self, lower: Any, upper: Any, subsampling: Optional[Any] = None) -> None:
        lower_parsed = _parse_coords(lower, "lower")
        upper_parsed = _parse_coords(upper, "upper")
        subsampling_parsed = (
            (1,) * len(lower_parsed)
            if subsampling is None
            else _parse_coords(subsampling, "subsampling")
        )
        if not len(lower_parsed) == len(upper_parsed) == len(subsampling_parsed):
            raise RegionError(
                f"`lower`, `upper` and `subsampling` must have the same length. Got "
                + f"{lower_parsed}, {upper_parsed} and {subsampling_parsed}."
            )
        for lo, up, step in zip(lower_parsed, upper_parsed, subsampling_parsed):
            if lo > up:
                raise RegionError(f"Lower bound {lo} is greater than upper bound {up}.")
            if step < 1:
                raise RegionError(f"Subsampling must be at least 1. Got {step}.")

        object.__setattr__(self, "lower", lower_parsed)
        object.__setattr__(self, "upper", upper_parsed)
        object.__setattr__(self, "subsampling", subsampling_parsed)

    @classmethod
    def full(cls, shape: ChunkCoords, subsampling: Optional[Any] = None) -> Region:
        return cls((0,) * len(shape), shape, subsampling)

    @property
    def ndim(self) -> int:
        return len(self.lower)

    @property
    def shape(self) -> ChunkCoords:
        """Number of selected elements along each dimension."""
        return tuple(
            ceildiv(up - lo, step)
            for lo, up, step in zip(self.lower, self.upper, self.subsampling)
        )

    @property
    def size(self) -> int:
        return product(self.shape)

    def with_subsampling(self, subsampling: Any) -> Region:
        return Region(self.lower, self.upper, subsampling)

    def validate(self, shape: ChunkCoords) -> None:
        if self.ndim != len(shape):
            raise RegionError(
                f"The region has {self.ndim} dimensions but the array has {len(shape)}."
            )
        for dim, (lo, up, dim_len) in enumerate(zip(self.lower, self.upper, shape)):
            if lo < 0 or up > dim_len:
                raise RegionError(
                    f"Region [{lo}, {up}) is out of bounds [0, {dim_len}) in dimension {dim}."
                )


def resolve_region(
    region: Optional[RegionLike], subsampling: Optional[Any], shape: ChunkCoords
) -> Region:
    """
    Turn the arguments of a read into a validated region. A missing region selects the whole
    array; a ``(lower, upper)`` pair is accepted in place of a :class:`Region`.
    """
    if region is None:
        region_parsed = Region.full(shape, subsampling)
    elif isinstance(region, Region):
        region_parsed = region if subsampling is None else region.with_subsampling(subsampling)
    else:
        try:
            lower, upper = region
        except (TypeError, ValueError) as e:
            raise RegionError(f"Expected a Region or a (lower, upper) pair. Got {region!r}.") from e
        region_parsed = Region(lower, upper, subsampling)
    region_parsed.validate(shape)
    return region_parsed


def _err_too_many_indices(selection: Tuple[Any, ...], shape: ChunkCoords) -> None:
    raise RegionError(
        "too many indices for array; expected {}, got {}".format(len(shape), len(selection))
    )


def region_from_selection(selection: Any, shape: ChunkCoords) -> Tuple[Region, ChunkCoords]:
    """
    Convert a basic numpy-style selection made of integers and slices with a positive step
    into a region. Also returns the shape of the selection, integer axes being dropped.
    """
    if not isinstance(selection, tuple):
        selection = (selection,)
    if len(selection) > len(shape):
        _err_too_many_indices(selection, shape)
    selection = selection + (slice(None),) * (len(shape) - len(selection))

    lower: List[int] = []
    upper: List[int] = []
    subsampling: List[int] = []
    out_shape: List[int] = []
    for dim_sel, dim_len in zip(selection, shape):
        if isinstance(dim_sel, numbers.Integral) and not isinstance(dim_sel, bool):
            index = int(dim_sel)
            if index < 0:
                index += dim_len
            if not 0 <= index < dim_len:
                raise RegionError(f"index {dim_sel} is out of bounds for axis with size {dim_len}")
            lower.append(index)
            upper.append(index + 1)
            subsampling.append(1)
        elif isinstance(dim_sel, slice):
            start, stop, step = dim_sel.indices(dim_len)
            if step < 1:
                raise RegionError("only slices with step >= 1 are supported")
            stop = max(start, stop)
            lower.append(start)
            upper.append(stop)
            subsampling.append(step)
            out_shape.append(ceildiv(stop - start, step))
        else:
            raise RegionError(f"Unsupported selection item {dim_sel!r}.")
    return Region(lower, upper, subsampling), tuple(out_shape)


class _ChunkDimProjection(NamedTuple):
    """
    Where one chunk meets the region along one dimension: ``dim_chunk_sel`` selects elements
    relative to the chunk origin and ``dim_out_sel`` is where they land in the output.
    """

    dim_chunk_ix: int
    dim_chunk_sel: slice
    dim_out_sel: slice


class _RegionDimIndexer:
    start: int
    stop: int
    step: int
    dim_len: int
    dim_chunk_len: int
    nitems: int

    def __init__(self, start: int, stop: int, step: int, dim_len: int, dim_chunk_len: int):
        self.start = start
        self.stop = stop
        self.step = step
        self.dim_len = dim_len
        self.dim_chunk_len = dim_chunk_len
        self.nitems = max(0, ceildiv(stop - start, step))

    @property
    def grid_min(self) -> int:
        return self.start // self.dim_chunk_len

    @property
    def grid_max(self) -> int:
        """Index of the last chunk holding part of the region, inclusive."""
        return (self.stop - 1) // self.dim_chunk_len

    def __iter__(self) -> Iterator[_ChunkDimProjection]:
        if self.nitems == 0:
            return

        prev_out_stop = 0
        for dim_chunk_ix in range(self.grid_min, self.grid_max + 1):
            # compute offsets for chunk within overall array
            dim_offset = dim_chunk_ix * self.dim_chunk_len
            dim_limit = min(self.dim_len, dim_offset + self.dim_chunk_len)

            if self.start < dim_offset:
                # the first selected element of this chunk lies on the stride grid
                # start + k * step, which may be past the chunk origin
                remainder = (dim_offset - self.start) % self.step
                dim_chunk_sel_start = self.step - remainder if remainder else 0
                # number of elements selected in previous chunks
                dim_out_offset = ceildiv(dim_offset - self.start, self.step)
            else:
                dim_chunk_sel_start = self.start - dim_offset
                dim_out_offset = 0

            dim_chunk_sel_stop = min(self.stop, dim_limit) - dim_offset
            dim_chunk_nitems = ceildiv(dim_chunk_sel_stop - dim_chunk_sel_start, self.step)
            if dim_chunk_nitems <= 0:
                # the stride steps over this chunk entirely
                continue

            assert dim_out_offset >= prev_out_stop, "output regions of chunks overlap"
            prev_out_stop = dim_out_offset + dim_chunk_nitems

            yield _ChunkDimProjection(
                dim_chunk_ix,
                slice(dim_chunk_sel_start, dim_chunk_sel_stop, self.step),
                slice(dim_out_offset, prev_out_stop),
            )


class ChunkProjection(NamedTuple):
    chunk_coords: ChunkCoords
    chunk_selection: SliceSelection
    out_selection: SliceSelection


class RegionIndexer:
    """
    Iterates over the chunks intersecting a region. The output selections of two different
    chunks never overlap, so chunks can be copied into a shared output concurrently.
    """

    dim_indexers: List[_RegionDimIndexer]
    shape: ChunkCoords

    def __init__(self, region: Region, shape: ChunkCoords, chunk_shape: ChunkCoords):
        self.dim_indexers = [
            _RegionDimIndexer(lo, up, step, dim_len, dim_chunk_len)
            for lo, up, step, dim_len, dim_chunk_len in zip(
                region.lower, region.upper, region.subsampling, shape, chunk_shape
            )
        ]
        self.shape = region.shape

    def __iter__(self) -> Iterator[ChunkProjection]:
        for dim_projections in itertools.product(*self.dim_indexers):
            chunk_coords = tuple(p.dim_chunk_ix for p in dim_projections)
            chunk_selection = tuple(p.dim_chunk_sel for p in dim_projections)
            out_selection = tuple(p.dim_out_sel for p in dim_projections)

            yield ChunkProjection(chunk_coords, chunk_selection, out_selection)


def chunk_bounds(
    chunk_coords: ChunkCoords, shape: ChunkCoords, chunk_shape: ChunkCoords
) -> SliceSelection:
    """The elements of the array covered by a chunk, clipped to the array shape."""
    return tuple(
        slice(ix * c, min((ix + 1) * c, s)) for ix, c, s in zip(chunk_coords, chunk_shape, shape)
    )
