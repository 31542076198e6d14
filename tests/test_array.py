from __future__ import annotations

import json
import math
from typing import TYPE_CHECKING

import numpy as np
import pytest
from hypothesis import given
from hypothesis import strategies as st

from gridzarr import Array, AsyncArray, Region, config
from gridzarr.codecs import BytesCodec, Crc32cCodec, GzipCodec
from gridzarr.dtype import DataType
from gridzarr.errors import (
    ArrayNotFoundError,
    ChunkDecodeError,
    ContainsArrayError,
    ContentError,
    RegionError,
    ShapeError,
)
from gridzarr.store import MemoryStore, StorePath

if TYPE_CHECKING:
    from gridzarr.abc.store import Store


@pytest.mark.asyncio
async def test_write_then_read_edge_chunk(store: Store) -> None:
    # five values in chunks of two, the last chunk is padded with the fill value
    arr = await AsyncArray.create(
        StorePath(store, "a"), shape=(5,), dtype="int32", chunk_shape=(2,), fill_value=-1
    )
    await arr.write(np.array([10, 20, 30, 40, 50], dtype="int32"))

    assert await arr.nchunks_initialized() == 3
    assert await store.exists("a/c/0")
    assert await store.exists("a/c/2")

    last_chunk = await arr.codec_pipeline.decode(await store.get("a/c/2"))
    np.testing.assert_array_equal(last_chunk, [50, -1])

    np.testing.assert_array_equal(await arr.read(), [10, 20, 30, 40, 50])
    np.testing.assert_array_equal(await arr.read(((3,), (5,))), [40, 50])


@pytest.mark.asyncio
async def test_subsampled_read() -> None:
    arr = await AsyncArray.create(
        StorePath(MemoryStore()), shape=(8,), dtype="int64", chunk_shape=(4,)
    )
    await arr.write(np.arange(8))
    result = await arr.read(Region((1,), (4,), (2,)))
    assert result.tolist() == [1, 3]
    assert (await arr.read(((0,), (8,)), subsampling=(3,))).tolist() == [0, 3, 6]


@pytest.mark.asyncio
async def test_read_missing_chunks_as_fill_value(store: Store) -> None:
    arr = await AsyncArray.create(
        StorePath(store), shape=(4, 4), dtype="float64", chunk_shape=(2, 2), fill_value="NaN"
    )
    assert await arr.nchunks_initialized() == 0
    result = await arr.read()
    assert result.shape == (16,)
    assert np.isnan(result).all()


@pytest.mark.asyncio
async def test_read_is_flat_row_major() -> None:
    arr = await AsyncArray.create(
        StorePath(MemoryStore()), shape=(3, 4), dtype="uint8", chunk_shape=(2, 3)
    )
    data = np.arange(12, dtype="u1").reshape(3, 4)
    await arr.write(data)

    result = await arr.read(((1, 1), (3, 4)))
    assert result.ndim == 1
    np.testing.assert_array_equal(result, data[1:3, 1:4].ravel())


@pytest.mark.asyncio
async def test_empty_region() -> None:
    arr = await AsyncArray.create(
        StorePath(MemoryStore()), shape=(4,), dtype="int8", chunk_shape=(2,)
    )
    assert (await arr.read(((2,), (2,)))).shape == (0,)


@pytest.mark.asyncio
async def test_region_errors() -> None:
    arr = await AsyncArray.create(
        StorePath(MemoryStore()), shape=(4, 4), dtype="int8", chunk_shape=(2, 2)
    )
    with pytest.raises(RegionError):
        await arr.read(((0,), (4,)))
    with pytest.raises(RegionError):
        await arr.read(((0, 0), (4, 5)))
    with pytest.raises(RegionError):
        await arr.read(((0, 0), (4, 4)), subsampling=(1, 0))


@pytest.mark.asyncio
async def test_corrupt_chunk_raises_decode_error(store: Store) -> None:
    arr = await AsyncArray.create(
        StorePath(store),
        shape=(6,),
        dtype="uint16",
        chunk_shape=(3,),
        codecs=[BytesCodec(), Crc32cCodec()],
    )
    await arr.write(np.arange(6, dtype="u2"))
    chunk = bytearray(await store.get("c/1"))
    chunk[0] ^= 0xFF
    await store.set("c/1", bytes(chunk))

    with pytest.raises(ChunkDecodeError) as excinfo:
        await arr.read()
    assert excinfo.value.chunk_coords == (1,)
    assert isinstance(excinfo.value.__cause__, ContentError)
    # chunk 0 is unaffected
    assert (await arr.read(((0,), (3,)))).tolist() == [0, 1, 2]


@pytest.mark.asyncio
async def test_undetermined_data_type_is_set_by_first_write(store: Store) -> None:
    arr = await AsyncArray.create(StorePath(store), shape=(2, 3), dtype=None, chunk_shape=(2, 2))
    assert arr.data_type is None
    assert json.loads(await store.get("zarr.json"))["data_type"] is None
    with pytest.raises(ContentError, match="not known"):
        await arr.read()

    written = await arr.write(np.ones((2, 3), dtype="f4"))
    assert written.data_type == DataType.float32
    assert written.fill_value == 0.0
    assert arr.data_type is None

    reopened = await AsyncArray.open(StorePath(store))
    assert reopened.data_type == DataType.float32
    assert (await reopened.read()).tolist() == [1.0] * 6

    with pytest.raises(ValueError):
        reopened.metadata.with_data_type(DataType.int8)


@pytest.mark.asyncio
async def test_write_list_of_2d_slices() -> None:
    arr = await AsyncArray.create(
        StorePath(MemoryStore()), shape=(2, 3, 4), dtype=None, chunk_shape=(1, 2, 3)
    )
    slices = [np.full((3, 4), i, dtype="i2") + np.arange(4, dtype="i2") for i in range(2)]
    arr = await arr.write(slices)

    assert arr.data_type == DataType.int16
    np.testing.assert_array_equal(await arr.read(), np.stack(slices).ravel())
    np.testing.assert_array_equal(
        await arr.read(((1, 0, 2), (2, 3, 4))), slices[1][:, 2:].ravel()
    )


@pytest.mark.asyncio
async def test_lazy_text_type_does_not_depend_on_value_form() -> None:
    slices = [np.array([["a", "b"]]), np.array([["c", "d"]])]
    for value in (slices, np.stack(slices)):
        arr = await AsyncArray.create(
            StorePath(MemoryStore()), shape=(2, 1, 2), dtype=None, chunk_shape=(1, 1, 2)
        )
        arr = await arr.write(value)
        assert arr.data_type == DataType.string
        assert (await arr.read()).tolist() == ["a", "b", "c", "d"]


@pytest.mark.asyncio
async def test_write_flat_vector() -> None:
    arr = await AsyncArray.create(
        StorePath(MemoryStore()), shape=(2, 3), dtype="int32", chunk_shape=(2, 2)
    )
    await arr.write(np.arange(6))
    assert (await arr.getitem((1, slice(None)))).tolist() == [3, 4, 5]
    assert await arr.getitem((0, 2)) == 2


@pytest.mark.asyncio
async def test_write_wrong_shape() -> None:
    arr = await AsyncArray.create(
        StorePath(MemoryStore()), shape=(2, 3, 4), dtype="int32", chunk_shape=(2, 2, 2)
    )
    with pytest.raises(ShapeError):
        await arr.write(np.zeros((3, 2, 4)))
    with pytest.raises(ShapeError):
        await arr.write(np.zeros(5))
    with pytest.raises(ShapeError, match="slices"):
        await arr.write([np.zeros((3, 4))] * 3)
    # slices must cover the last two dimensions exactly, not just hold enough elements
    with pytest.raises(ShapeError):
        await arr.write([np.arange(12).reshape(4, 3)] * 2)


@pytest.mark.asyncio
async def test_write_rewrites_every_chunk(store: Store) -> None:
    arr = await AsyncArray.create(StorePath(store), shape=(4,), dtype="uint8", chunk_shape=(2,))
    await arr.write(np.array([1, 2, 3, 4], dtype="u1"))
    await arr.write(np.array([0, 0, 7, 8], dtype="u1"))
    assert (await arr.read()).tolist() == [0, 0, 7, 8]
    # chunks equal to the fill value are still written by default
    assert await arr.nchunks_initialized() == 2


@pytest.mark.asyncio
async def test_write_empty_chunks_disabled(store: Store) -> None:
    arr = await AsyncArray.create(
        StorePath(store), shape=(6,), dtype="float32", chunk_shape=(2,), fill_value="NaN"
    )
    with config.set({"array.write_empty_chunks": False}):
        await arr.write(np.array([1, 2, 3, 4, 5, 6], dtype="f4"))
        assert await arr.nchunks_initialized() == 3
        await arr.write(np.array([math.nan, math.nan, 3, 4, 5, math.nan], dtype="f4"))

    assert await store.get("c/0") is None
    assert await store.exists("c/1")
    assert await store.exists("c/2")
    result = await arr.read()
    assert np.isnan(result[[0, 1, 5]]).all()
    assert result[2:5].tolist() == [3, 4, 5]


@pytest.mark.asyncio
async def test_strings(store: Store) -> None:
    arr = await AsyncArray.create(
        StorePath(store), shape=(5,), dtype=DataType.string, chunk_shape=(2,), fill_value="-"
    )
    await arr.write(np.array(["ab", "", "xyz", "déjà", "日本"], dtype=object))
    assert (await arr.read()).tolist() == ["ab", "", "xyz", "déjà", "日本"]
    assert (await arr.read(((1,), (5,)), subsampling=(3,))).tolist() == ["", "日本"]

    empty = await AsyncArray.create(
        StorePath(store, "empty"), shape=(3,), dtype=DataType.string, chunk_shape=(2,)
    )
    assert (await empty.read()).tolist() == ["", "", ""]


@pytest.mark.asyncio
async def test_chars() -> None:
    arr = await AsyncArray.create(
        StorePath(MemoryStore()), shape=(3,), dtype=DataType.char, chunk_shape=(2,)
    )
    await arr.write(np.array(["a", "Ω", "z"], dtype="U1"))
    assert (await arr.read()).tolist() == ["a", "Ω", "z"]


@pytest.mark.asyncio
async def test_dot_separator(store: Store) -> None:
    arr = await AsyncArray.create(
        StorePath(store, "dots"),
        shape=(4, 4),
        dtype="int16",
        chunk_shape=(2, 2),
        chunk_key_separator=".",
        codecs=[BytesCodec(endian="big"), GzipCodec()],
    )
    await arr.write(np.arange(16, dtype="i2"))
    assert await store.exists("dots/c.1.1")
    assert await arr.nchunks_initialized() == 4
    assert (await arr.read(((2, 2), (4, 4)))).tolist() == [10, 11, 14, 15]


@pytest.mark.asyncio
async def test_create_and_open(store: Store) -> None:
    arr = await AsyncArray.create(
        StorePath(store, "t"),
        shape=(3,),
        dtype="int8",
        chunk_shape=(3,),
        dimension_names=["time"],
        attributes={"units": "days"},
    )
    with pytest.raises(ContainsArrayError):
        await AsyncArray.create(StorePath(store, "t"), shape=(3,), dtype="int8", chunk_shape=(3,))
    await AsyncArray.create(
        StorePath(store, "t"), shape=(3,), dtype="int8", chunk_shape=(3,), exists_ok=True
    )
    with pytest.raises(ArrayNotFoundError):
        await AsyncArray.open(StorePath(store, "missing"))

    arr = await arr.update_attributes({"units": "hours"})
    opened = await AsyncArray.open(StorePath(store, "t"))
    assert opened.attrs == {"units": "hours"}
    assert opened.basename == "t"
    assert opened.nchunks == 1


def test_sync_array(store: Store) -> None:
    arr = Array.create(StorePath(store, "s"), shape=(5, 2), dtype="float64", chunk_shape=(2, 2))
    arr.write(np.arange(10, dtype="f8").reshape(5, 2))

    assert arr.shape == (5, 2)
    assert arr.chunks == (2, 2)
    assert arr.nchunks == 3
    assert arr.nchunks_initialized == 3
    assert arr.read(((4, 0), (5, 2))).tolist() == [8.0, 9.0]
    np.testing.assert_array_equal(arr[1:5:2, 1], [3.0, 7.0])

    opened = Array.open(StorePath(store, "s"))
    assert opened.dtype == np.dtype("f8")
    assert opened.read().tolist() == list(map(float, range(10)))


def test_sync_array_lazy_data_type(tmp_path) -> None:
    arr = Array.create(tmp_path / "lazy", shape=(2,), dtype=None, chunk_shape=(2,))
    arr.write(np.array([True, False]))
    assert arr.data_type == DataType.bool
    assert Array.open(str(tmp_path / "lazy")).read().tolist() == [True, False]


@given(
    shape=st.lists(st.integers(1, 9), min_size=1, max_size=3),
    data=st.data(),
)
def test_region_read_matches_numpy(shape: list, data: st.DataObject) -> None:
    chunk_shape = [data.draw(st.integers(1, n + 1)) for n in shape]
    source = np.arange(int(np.prod(shape)), dtype="i4").reshape(shape)
    arr = Array.create(MemoryStore(), shape=shape, dtype="int32", chunk_shape=chunk_shape)
    arr.write(source)

    lower = [data.draw(st.integers(0, n)) for n in shape]
    upper = [data.draw(st.integers(lo, n)) for lo, n in zip(lower, shape)]
    subsampling = [data.draw(st.integers(1, 4)) for _ in shape]
    expected = source[tuple(slice(lo, up, s) for lo, up, s in zip(lower, upper, subsampling))]

    result = arr.read((lower, upper), subsampling)
    np.testing.assert_array_equal(result, expected.ravel())
