from __future__ import annotations

import numpy as np
import pytest

from gridzarr.codecs import (
    BytesCodec,
    CodecPipeline,
    Crc32cCodec,
    GzipCodec,
    VLenUTF8Codec,
    ZstdCodec,
)
from gridzarr.dtype import DataType
from gridzarr.errors import CodecTypeError
from gridzarr.representation import RepresentationType


def test_from_list_orientation() -> None:
    with pytest.raises(CodecTypeError, match="first codec"):
        CodecPipeline.from_list([ZstdCodec(), BytesCodec()])
    with pytest.raises(CodecTypeError, match="exactly 1 ArrayBytesCodec"):
        CodecPipeline.from_list([BytesCodec(), VLenUTF8Codec()])
    with pytest.raises(CodecTypeError):
        CodecPipeline.from_list([])


def test_from_dict() -> None:
    pipeline = CodecPipeline.from_dict(
        [
            {"name": "bytes", "configuration": {"endian": "big"}},
            {"name": "crc32c"},
            {"name": "zstd", "configuration": {"level": 0, "checksum": False}},
        ]
    )
    assert list(pipeline) == [BytesCodec(endian="big"), Crc32cCodec(), ZstdCodec(level=0)]
    assert len(pipeline) == 3
    assert CodecPipeline.from_dict(pipeline.to_dict()) == pipeline


def test_build_representation_types() -> None:
    pipeline = CodecPipeline.from_list([BytesCodec(), Crc32cCodec(), ZstdCodec()])
    chunk_type = RepresentationType.array((2, 3), DataType.int16)
    bound = pipeline.build(chunk_type)

    assert bound.chunk_type == chunk_type
    assert bound.representation_types == (
        chunk_type,
        RepresentationType.bytes(12),
        RepresentationType.bytes(16),
        RepresentationType.bytes(),
    )


def test_build_string_pipeline() -> None:
    pipeline = CodecPipeline.from_list([VLenUTF8Codec(), ZstdCodec()])
    bound = pipeline.build(RepresentationType.array((4,), DataType.string))
    # the packed size of variable-length strings is unknown
    assert bound.representation_types[1] == RepresentationType.bytes()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "codecs",
    [
        [BytesCodec()],
        [BytesCodec(), ZstdCodec()],
        [BytesCodec(endian="big"), GzipCodec(), Crc32cCodec()],
        [BytesCodec(), Crc32cCodec(), ZstdCodec(checksum=True)],
    ],
)
async def test_round_trip(codecs: list) -> None:
    data = np.linspace(-1, 1, 24, dtype="f8").reshape(2, 3, 4)
    bound = CodecPipeline.from_list(codecs).build(
        RepresentationType.array(data.shape, DataType.float64)
    )
    decoded = await bound.decode(await bound.encode(data))
    np.testing.assert_array_equal(decoded, data)


@pytest.mark.asyncio
async def test_decode_runs_in_reverse() -> None:
    data = np.array(["x", "yy", ""], dtype=object)
    bound = CodecPipeline.from_list([VLenUTF8Codec(), Crc32cCodec(), GzipCodec()]).build(
        RepresentationType.array((3,), DataType.string)
    )
    encoded = await bound.encode(data)
    # gzip is applied last, so the stored bytes are a gzip member
    assert bytes(encoded[:2]) == b"\x1f\x8b"
    assert (await bound.decode(encoded)).tolist() == ["x", "yy", ""]


def test_evolve_and_validate() -> None:
    pipeline = CodecPipeline.from_list([BytesCodec(), ZstdCodec()])
    assert pipeline.evolve(DataType.int8) == pipeline
    pipeline.validate(DataType.int8)
