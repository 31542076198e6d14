"""
The registry module keeps track of codec implementations and collects additional ones
from the ``gridzarr.codecs`` entry point group. The implementation used for a codec name is
selected through the ``codecs.<name>`` config entry.
"""

from __future__ import annotations

import logging
import warnings
from collections import defaultdict
from importlib.metadata import entry_points as get_entry_points
from typing import TYPE_CHECKING, Dict, Generic, List, Optional, Type, TypeVar

from gridzarr.config import BadConfigError, config

if TYPE_CHECKING:
    from importlib.metadata import EntryPoint
    from gridzarr.abc.codec import Codec

__all__ = [
    "Registry",
    "fully_qualified_name",
    "get_codec_class",
    "register_codec",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Registry(Dict[str, Type[T]], Generic[T]):
    def __init__(self) -> None:
        super().__init__()
        self.lazy_load_list: List[EntryPoint] = []

    def lazy_load(self) -> None:
        for e in self.lazy_load_list:
            self.register(e.load())

        self.lazy_load_list.clear()

    def register(self, cls: Type[T], qualname: Optional[str] = None) -> None:
        if qualname is None:
            qualname = fully_qualified_name(cls)
        self[qualname] = cls


__codec_registries: Dict[str, Registry[Codec]] = defaultdict(Registry)


def _collect_entrypoints() -> None:
    """
    Collects codecs from entrypoints. Allowed syntax for entry_points.txt is e.g.

        [gridzarr.codecs]
        gzip = package:EntrypointGzipCodec1
        [gridzarr.codecs.gzip]
        some_name = package:EntrypointGzipCodec2
    """
    entry_points = get_entry_points()

    for e in entry_points.select(group="gridzarr.codecs"):
        __codec_registries[e.name].lazy_load_list.append(e)
    for group in entry_points.groups:
        if group.startswith("gridzarr.codecs."):
            codec_name = group.split(".")[2]
            __codec_registries[codec_name].lazy_load_list.extend(entry_points.select(group=group))


def fully_qualified_name(cls: type) -> str:
    module = cls.__module__
    return module + "." + cls.__qualname__


def register_codec(key: str, codec_cls: Type[Codec]) -> None:
    __codec_registries[key].register(codec_cls)


def get_codec_class(key: str, reload_config: bool = False) -> Type[Codec]:
    if reload_config:
        config.refresh()

    if key in __codec_registries:
        __codec_registries[key].lazy_load()

    codec_classes = __codec_registries.get(key)
    if not codec_classes:
        raise BadConfigError(f"Codec '{key}' is not registered.")

    config_entry = config.get("codecs", {}).get(key)
    if config_entry is None:
        if len(codec_classes) == 1:
            return next(iter(codec_classes.values()))
        warnings.warn(
            f"Codec '{key}' not configured in config. Selecting any implementation.",
            stacklevel=2,
        )
        return list(codec_classes.values())[-1]

    selected_codec_cls = codec_classes.get(config_entry)
    if selected_codec_cls is None:
        raise BadConfigError(
            f"Config selected codec implementation '{config_entry}' for '{key}', "
            + f"but only {list(codec_classes)} are registered."
        )
    logger.debug("Resolved codec '%s' to %s", key, config_entry)
    return selected_codec_cls


_collect_entrypoints()
