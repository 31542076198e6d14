from __future__ import annotations

from abc import abstractmethod, ABC
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import List, Optional
    from gridzarr.common import BytesLike


class Store(ABC):
    """
    A flat key-value store of byte strings. Keys are ``/``-separated paths such as
    ``temperature/zarr.json`` or ``temperature/c/0/3``. A missing chunk key is not an error:
    it reads as ``None`` and the array fills the chunk with its fill value.
    """

    supports_writes: bool = True
    supports_listing: bool = True

    @abstractmethod
    async def get(self, key: str) -> Optional[BytesLike]:
        """The value stored under ``key``, or ``None`` when there is none."""
        ...

    @abstractmethod
    async def exists(self, key: str) -> bool:
        ...

    @abstractmethod
    async def set(self, key: str, value: BytesLike) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key``. Removing a missing key is not an error."""
        ...

    @abstractmethod
    async def list_prefix(self, prefix: str) -> List[str]:
        """
        Every key below ``prefix``, sorted.

        Parameters
        ----------
        prefix : str
            A path such as ``temperature/c``. Keys are matched on whole path segments.

        Returns
        -------
        list[str]
            Full keys, not relative to ``prefix``.
        """
        ...

    @abstractmethod
    async def list_dir(self, prefix: str) -> List[str]:
        """
        The names of the keys and sub-paths directly below ``prefix``, sorted.

        Parameters
        ----------
        prefix : str

        Returns
        -------
        list[str]
            Single path segments, relative to ``prefix``.
        """
        ...
