from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from gridzarr.abc.codec import ArrayBytesCodec
from gridzarr.common import parse_named_configuration, product
from gridzarr.dtype import DataType
from gridzarr.errors import ContentError, MetadataValidationError
from gridzarr.registry import register_codec

if TYPE_CHECKING:
    from typing import Dict
    from typing_extensions import Self
    from gridzarr.common import JSON, BytesLike
    from gridzarr.representation import RepresentationType

_OFFSET = np.dtype("<i4")
_MAX_OFFSET = np.iinfo(_OFFSET).max


def _contiguous_view(data: BytesLike) -> memoryview:
    if isinstance(data, (bytes, bytearray)):
        return memoryview(data)
    view = memoryview(data)
    if view.c_contiguous:
        return view.cast("B")
    return memoryview(bytes(view))


@dataclass(frozen=True)
class VLenUTF8Codec(ArrayBytesCodec):
    """
    Variable-length UTF-8 strings.

    A chunk of ``n`` strings is stored as ``n + 1`` little-endian int32 offsets followed by
    the concatenated UTF-8 payloads. ``offsets[0]`` is 0 and string ``i`` occupies
    ``payload[offsets[i]:offsets[i + 1]]``. ``None`` is stored as an empty string.
    """

    is_fixed_size = False

    @classmethod
    def from_dict(cls, data: Dict[str, JSON]) -> Self:
        parse_named_configuration(data, "vlen-utf8", require_configuration=False)
        return cls()

    def to_dict(self) -> Dict[str, JSON]:
        return {"name": "vlen-utf8", "configuration": {}}

    def validate(self, data_type: DataType) -> None:
        if data_type != DataType.string:
            raise MetadataValidationError(
                f"The vlen-utf8 codec only supports strings. Got '{data_type.value}'."
            )

    async def decode(
        self,
        chunk_bytes: BytesLike,
        chunk_type: RepresentationType,
    ) -> np.ndarray:
        count = product(chunk_type.shape)
        view = _contiguous_view(chunk_bytes)

        header_length = (count + 1) * _OFFSET.itemsize
        if view.nbytes < header_length:
            raise ContentError(
                f"Expected an offset table of {header_length} bytes, "
                + f"but the chunk only has {view.nbytes} bytes."
            )
        offsets = np.frombuffer(view[:header_length], _OFFSET)
        payload = view[header_length:]

        if offsets[0] != 0:
            raise ContentError(f"The first string offset must be 0. Got {offsets[0]}.")
        if np.any(np.diff(offsets) < 0):
            raise ContentError("String offsets must not decrease.")
        if offsets[-1] > payload.nbytes:
            raise ContentError(
                f"String offsets reach byte {offsets[-1]}, "
                + f"but the payload only has {payload.nbytes} bytes."
            )

        out = np.empty(count, dtype=object)
        try:
            for i in range(count):
                out[i] = str(payload[offsets[i] : offsets[i + 1]], "utf-8")
        except UnicodeDecodeError as e:
            raise ContentError(f"String {i} is not valid UTF-8.") from e
        return out.reshape(chunk_type.shape)

    async def encode(
        self,
        chunk_array: np.ndarray,
        chunk_type: RepresentationType,
    ) -> BytesLike:
        payloads = [
            b"" if value is None else str(value).encode("utf-8")
            for value in np.asarray(chunk_array, dtype=object).ravel(order="C")
        ]
        lengths = np.fromiter((len(p) for p in payloads), dtype=np.int64, count=len(payloads))
        total = int(lengths.sum())
        if total > _MAX_OFFSET:
            raise ContentError(f"A chunk cannot hold more than {_MAX_OFFSET} bytes of strings.")

        offsets = np.zeros(len(payloads) + 1, dtype=_OFFSET)
        offsets[1:] = np.cumsum(lengths)
        return offsets.tobytes() + b"".join(payloads)


register_codec("vlen-utf8", VLenUTF8Codec)
