from __future__ import annotations

from gridzarr.store.core import StoreLike, StorePath, make_store_path  # noqa: F401
from gridzarr.store.local import LocalStore  # noqa: F401
from gridzarr.store.memory import MemoryStore  # noqa: F401
