"""
Runtime configuration for gridzarr, based on the Donfig python library.

To select a custom codec implementation, register the class with
:func:`gridzarr.registry.register_codec` and point the matching ``codecs.<name>`` entry at
its fully qualified name::

    from gridzarr.config import config
    from gridzarr.registry import register_codec

    register_codec("zstd", MyZstdCodec)
    config.set({"codecs.zstd": "my.module.MyZstdCodec"})

The same value can be given through the environment variable ``GRIDZARR_CODECS__ZSTD``;
the double underscore ``__`` is used to indicate nested access.
"""

from __future__ import annotations

from donfig import Config as DConfig


class BadConfigError(ValueError):
    _msg = "bad Config: %r"


class Config(DConfig):  # type: ignore[misc]
    """The Config will collect configuration from config files and environment variables

    Example environment variables:
    Grabs environment variables of the form "GRIDZARR_FOO__BAR_BAZ=123" and
    turns these into config variables of the form ``{"foo": {"bar-baz": 123}}``
    It transforms the key and value in the following way:

    -  Lower-cases the key text
    -  Treats ``__`` (double-underscore) as nested access
    -  Calls ``ast.literal_eval`` on the value
    """

    def reset(self) -> None:
        self.clear()
        self.refresh()


config = Config(
    "gridzarr",
    defaults=[
        {
            "array": {
                "atomic_writes": True,
                "write_empty_chunks": True,
            },
            "async": {"concurrency": 10, "timeout": None},
            "json_indent": 2,
            "codecs": {
                "bytes": "gridzarr.codecs.bytes.BytesCodec",
                "vlen-utf8": "gridzarr.codecs.vlen_utf8.VLenUTF8Codec",
                "zstd": "gridzarr.codecs.zstd.ZstdCodec",
                "gzip": "gridzarr.codecs.gzip.GzipCodec",
                "crc32c": "gridzarr.codecs.crc32c_.Crc32cCodec",
            },
        }
    ],
)
