from __future__ import annotations

import logging
import os
import shutil
import uuid
from pathlib import Path
from typing import Union, Optional, List

from gridzarr.abc.store import Store
from gridzarr.common import BytesLike, to_thread
from gridzarr.config import config
from gridzarr.errors import StoreError

logger = logging.getLogger(__name__)

_PARTIAL_SUFFIX = ".partial"


def _get(path: Path) -> bytes:
    return path.read_bytes()


def _put(
    path: Path,
    value: BytesLike,
    auto_mkdir: bool = True,
    atomic: bool = True,
) -> None:
    if auto_mkdir:
        path.parent.mkdir(parents=True, exist_ok=True)
    if not atomic:
        path.write_bytes(value)
        return
    # readers never observe a partially written file
    tmp = path.with_name(f".{path.name}.{uuid.uuid4().hex}{_PARTIAL_SUFFIX}")
    try:
        tmp.write_bytes(value)
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def _delete(path: Path) -> None:
    if path.is_dir():
        shutil.rmtree(path)
    else:
        path.unlink(missing_ok=True)


class LocalStore(Store):
    """
    A store backed by a directory of the local file system. Every key is a file path
    relative to ``root``.
    """

    supports_writes: bool = True
    supports_listing: bool = True

    root: Path
    auto_mkdir: bool
    atomic_writes: Optional[bool]

    def __init__(
        self,
        root: Union[Path, str],
        auto_mkdir: bool = True,
        atomic_writes: Optional[bool] = None,
    ):
        if isinstance(root, str):
            root = Path(root)
        if not isinstance(root, Path):
            raise TypeError(f"Expected a str or Path root. Got {type(root)} instead.")

        self.root = root
        self.auto_mkdir = auto_mkdir
        # None defers to `array.atomic_writes` at write time
        self.atomic_writes = atomic_writes

    def __str__(self) -> str:
        return f"file://{self.root}"

    def __repr__(self) -> str:
        return f"LocalStore({repr(str(self))})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, type(self)) and self.root == other.root

    async def get(self, key: str) -> Optional[bytes]:
        assert isinstance(key, str)
        path = self.root / key

        try:
            return await to_thread(_get, path)
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            return None
        except OSError as e:
            raise StoreError("read", str(path)) from e

    async def set(self, key: str, value: BytesLike) -> None:
        assert isinstance(key, str)
        path = self.root / key
        atomic = (
            config.get("array.atomic_writes") if self.atomic_writes is None else self.atomic_writes
        )
        try:
            await to_thread(_put, path, value, self.auto_mkdir, atomic)
        except OSError as e:
            raise StoreError("write", str(path)) from e

    async def delete(self, key: str) -> None:
        path = self.root / key
        try:
            await to_thread(_delete, path)
        except OSError as e:
            raise StoreError("delete", str(path)) from e

    async def exists(self, key: str) -> bool:
        path = self.root / key
        return await to_thread(path.is_file)

    async def list_prefix(self, prefix: str) -> List[str]:
        def _list_prefix(root: Path, prefix: str) -> List[str]:
            base = root / prefix
            if not base.is_dir():
                return []
            return sorted(
                p.relative_to(root).as_posix()
                for p in base.rglob("*")
                if p.is_file() and not p.name.endswith(_PARTIAL_SUFFIX)
            )

        return await to_thread(_list_prefix, self.root, prefix)

    async def list_dir(self, prefix: str) -> List[str]:
        def _list_dir(root: Path, prefix: str) -> List[str]:
            base = root / prefix
            try:
                return sorted(
                    key.name for key in base.iterdir() if not key.name.endswith(_PARTIAL_SUFFIX)
                )
            except (FileNotFoundError, NotADirectoryError):
                return []

        return await to_thread(_list_dir, self.root, prefix)
