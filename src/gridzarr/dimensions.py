from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Iterable, List, Optional, Tuple
    from gridzarr.metadata import ArrayMetadata

DIM_LETTERS = "xyzabcdefghijklmnopqrstuvw"


@dataclass
class Dimension:
    """
    A named axis shared by the arrays of one group. ``path`` is the group the dimension
    belongs to and ``array_paths`` lists the arrays using it.
    """

    name: str
    length: int
    path: str
    array_paths: List[str] = field(default_factory=list)


def _name_used(name: str, length: int, dimensions: Iterable[Dimension]) -> bool:
    return any(d.name == name and d.length != length for d in dimensions)


def generate_dimension_name(index: int, length: int, dimensions: Iterable[Dimension]) -> str:
    """
    Name an anonymous axis after its position: ``x``, ``y``, ``z``, then ``a`` to ``w``. When
    the name is already taken by a dimension of another length, a numeric suffix starting at
    2 is appended until the name is free.
    """
    dimensions = list(dimensions)
    base_name = DIM_LETTERS[index % len(DIM_LETTERS)]
    name = base_name
    suffix = 2
    while _name_used(name, length, dimensions):
        name = f"{base_name}{suffix}"
        suffix += 1
    return name


def dimensions_for(
    metadata: ArrayMetadata,
    path: str = "/",
    existing: Optional[List[Dimension]] = None,
    array_path: Optional[str] = None,
) -> List[Dimension]:
    """
    One :class:`Dimension` per axis of an array stored in group ``path``.

    Axes named in ``dimension_names`` keep their name, the others are named after their
    position. A dimension of ``existing`` with the same name and length in the same group
    (compared case-insensitively) is reused; new dimensions are appended to ``existing``.
    """
    existing = [] if existing is None else existing
    names = metadata.dimension_names
    out = []
    for i, length in enumerate(metadata.shape):
        if names is not None and names[i] is not None:
            name = names[i]
        else:
            name = generate_dimension_name(i, length, existing)

        dimension = next(
            (
                d
                for d in existing
                if d.name == name and d.length == length and d.path.lower() == path.lower()
            ),
            None,
        )
        if dimension is None:
            dimension = Dimension(name, length, path)
            existing.append(dimension)
        if array_path is not None and array_path not in dimension.array_paths:
            dimension.array_paths.append(array_path)
        out.append(dimension)
    return out


def collect_dimensions(
    arrays: Iterable[Tuple[str, ArrayMetadata]],
    group_path: str = "/",
    dimensions: Optional[List[Dimension]] = None,
) -> List[Dimension]:
    """Gather the dimensions of arrays stored in the same group, in order of appearance."""
    dimensions = [] if dimensions is None else dimensions
    for array_path, metadata in arrays:
        dimensions_for(metadata, group_path, dimensions, array_path)
    return dimensions
