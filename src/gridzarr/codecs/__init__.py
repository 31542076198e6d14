from __future__ import annotations

from gridzarr.codecs.bytes import BytesCodec, Endian  # noqa: F401
from gridzarr.codecs.crc32c_ import Crc32cCodec  # noqa: F401
from gridzarr.codecs.gzip import GzipCodec  # noqa: F401
from gridzarr.codecs.pipeline import BoundCodecPipeline, CodecPipeline  # noqa: F401
from gridzarr.codecs.vlen_utf8 import VLenUTF8Codec  # noqa: F401
from gridzarr.codecs.zstd import ZstdCodec  # noqa: F401
