from __future__ import annotations

import pytest

from gridzarr import AsyncGroup
from gridzarr.dimensions import (
    Dimension,
    collect_dimensions,
    dimensions_for,
    generate_dimension_name,
)
from gridzarr.metadata import make_array_metadata
from gridzarr.store import MemoryStore, StorePath


def _metadata(shape, dimension_names=None):
    return make_array_metadata(
        shape=shape,
        dtype="float32",
        chunk_shape=[1] * len(shape),
        dimension_names=dimension_names,
    )


def test_generated_names_follow_axis_position() -> None:
    assert [generate_dimension_name(i, 10, []) for i in range(5)] == ["x", "y", "z", "a", "b"]
    assert generate_dimension_name(25, 10, []) == "w"
    assert generate_dimension_name(26, 10, []) == "x"


def test_generated_name_suffix_on_length_conflict() -> None:
    dimensions = [Dimension("x", 10, "/"), Dimension("x2", 20, "/")]
    assert generate_dimension_name(0, 10, dimensions) == "x"
    assert generate_dimension_name(0, 20, dimensions) == "x2"
    assert generate_dimension_name(0, 30, dimensions) == "x3"


def test_collect_dimensions_shares_axes() -> None:
    dimensions = collect_dimensions(
        [
            ("/temperature", _metadata((4, 5))),
            ("/pressure", _metadata((4, 5))),
            ("/mask", _metadata((4, 6))),
        ]
    )
    assert [(d.name, d.length) for d in dimensions] == [("x", 4), ("y", 5), ("y2", 6)]
    assert dimensions[0].array_paths == ["/temperature", "/pressure", "/mask"]
    assert dimensions[1].array_paths == ["/temperature", "/pressure"]
    assert dimensions[2].array_paths == ["/mask"]


def test_collect_dimensions_uses_stored_names() -> None:
    dimensions = collect_dimensions(
        [
            ("/t2m", _metadata((3, 4), ["time", None])),
            ("/sst", _metadata((3, 4), ["time", "lon"])),
        ]
    )
    assert [(d.name, d.length) for d in dimensions] == [("time", 3), ("y", 4), ("lon", 4)]


def test_collect_dimensions_group_path_is_case_insensitive() -> None:
    dimensions = collect_dimensions([("/G/a", _metadata((2,)))], "/G")
    collect_dimensions([("/g/b", _metadata((2,)))], "/g", dimensions)
    assert len(dimensions) == 1
    assert dimensions[0].array_paths == ["/G/a", "/g/b"]

    collect_dimensions([("/h/c", _metadata((2,)))], "/h", dimensions)
    assert [d.path for d in dimensions] == ["/G", "/h"]


@pytest.mark.asyncio
async def test_group_dimensions() -> None:
    root = await AsyncGroup.create(StorePath(MemoryStore()))
    await root.create_array(
        "elevation", shape=(6, 8), dtype="int16", chunk_shape=(3, 4), dimension_names=["lat", "lon"]
    )
    await root.create_array("slope", shape=(6, 8), dtype="float32", chunk_shape=(3, 4))

    dimensions = await root.dimensions()
    assert [(d.name, d.length, d.path) for d in dimensions] == [
        ("lat", 6, "/"),
        ("lon", 8, "/"),
        ("x", 6, "/"),
        ("y", 8, "/"),
    ]
    arr = await root.getitem("slope")
    assert [d.name for d in arr.dimensions()] == ["x", "y"]


def test_dimensions_for_one_per_axis() -> None:
    existing = [Dimension("x", 4, "/")]
    dims = dimensions_for(_metadata((4, 4, 7), ["band", None, None]), "/", existing)
    assert [(d.name, d.length) for d in dims] == [("band", 4), ("y", 4), ("z", 7)]
    # new dimensions are added to the shared list, matching ones are reused
    assert [d.name for d in existing] == ["x", "band", "y", "z"]
    assert dimensions_for(_metadata((4,)), "/", existing)[0] is existing[0]
