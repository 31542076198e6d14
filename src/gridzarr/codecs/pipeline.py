from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from dataclasses import dataclass

import numpy as np

from gridzarr.abc.codec import ArrayBytesCodec, BytesBytesCodec, Codec
from gridzarr.abc.metadata import Metadata
from gridzarr.errors import CodecTypeError
from gridzarr.registry import get_codec_class

if TYPE_CHECKING:
    from typing import Dict, Iterator, List, Tuple, Union
    from typing_extensions import Self
    from gridzarr.common import JSON, BytesLike
    from gridzarr.dtype import DataType
    from gridzarr.representation import RepresentationType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CodecPipeline(Metadata):
    """
    The ordered codecs of an array: exactly one array-to-bytes codec followed by any number
    of bytes-to-bytes codecs. Encoding applies them in this order, decoding in reverse.
    """

    array_bytes_codec: ArrayBytesCodec
    bytes_bytes_codecs: Tuple[BytesBytesCodec, ...]

    @classmethod
    def from_dict(cls, data: Union[JSON, List[Codec]]) -> Self:
        out: List[Codec] = []
        for c in data:
            if isinstance(c, Codec):
                out.append(c)
            else:
                out.append(get_codec_class(c["name"]).from_dict(c))
        return CodecPipeline.from_list(out)

    def to_dict(self) -> List[Dict[str, JSON]]:
        return [c.to_dict() for c in self]

    def evolve(self, data_type: DataType) -> Self:
        return CodecPipeline.from_list([c.evolve(data_type) for c in self])

    @classmethod
    def from_list(cls, codecs: List[Codec]) -> CodecPipeline:
        if len(codecs) == 0 or not isinstance(codecs[0], ArrayBytesCodec):
            raise CodecTypeError(
                "The first codec must turn the array into bytes. "
                + f"Got {[type(c).__name__ for c in codecs]}."
            )

        prev_codec = codecs[0]
        for codec in codecs[1:]:
            if isinstance(codec, ArrayBytesCodec):
                raise CodecTypeError(
                    f"ArrayBytesCodec '{type(codec).__name__}' cannot follow after "
                    + f"'{type(prev_codec).__name__}' because exactly "
                    + "1 ArrayBytesCodec is allowed."
                )
            if not isinstance(codec, BytesBytesCodec):
                raise CodecTypeError(f"Unsupported codec '{type(codec).__name__}'.")
            prev_codec = codec

        return CodecPipeline(
            array_bytes_codec=codecs[0],
            bytes_bytes_codecs=tuple(codecs[1:]),
        )

    def __iter__(self) -> Iterator[Codec]:
        yield self.array_bytes_codec

        for bb_codec in self.bytes_bytes_codecs:
            yield bb_codec

    def __len__(self) -> int:
        return 1 + len(self.bytes_bytes_codecs)

    def validate(self, data_type: DataType) -> None:
        for codec in self:
            codec.validate(data_type)

    def build(self, chunk_type: RepresentationType) -> BoundCodecPipeline:
        """
        Compute the representation between every pair of adjacent codecs, starting from the
        decoded representation of a chunk.
        """
        types = [chunk_type]
        for codec in self:
            types.append(codec.compute_encoded_type(types[-1]))
        logger.debug("Codec pipeline %s", " -> ".join(str(t) for t in types))
        return BoundCodecPipeline(codecs=tuple(self), representation_types=tuple(types))


@dataclass(frozen=True)
class BoundCodecPipeline:
    """
    A codec pipeline together with the representation types of its stages.
    ``representation_types[i]`` is the input of ``codecs[i]`` when encoding and the output of
    ``codecs[i]`` when decoding. The last entry is the stored bytes.
    """

    codecs: Tuple[Codec, ...]
    representation_types: Tuple[RepresentationType, ...]

    @property
    def chunk_type(self) -> RepresentationType:
        return self.representation_types[0]

    async def decode(self, chunk_bytes: BytesLike) -> np.ndarray:
        value = chunk_bytes
        for codec, decoded_type in reversed(
            list(zip(self.codecs, self.representation_types[:-1]))
        ):
            value = await codec.decode(value, decoded_type)
        return value

    async def encode(self, chunk_array: np.ndarray) -> BytesLike:
        value = chunk_array
        for codec, decoded_type in zip(self.codecs, self.representation_types[:-1]):
            value = await codec.encode(value, decoded_type)
        return value
