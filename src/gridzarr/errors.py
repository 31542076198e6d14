from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gridzarr.common import ChunkCoords

__all__ = [
    "ArrayNotFoundError",
    "BaseGridZarrError",
    "ChunkDecodeError",
    "CodecTypeError",
    "ContainsArrayError",
    "ContainsGroupError",
    "ContentError",
    "GroupNotFoundError",
    "MetadataValidationError",
    "NodeTypeValidationError",
    "RegionError",
    "ShapeError",
    "StoreError",
    "UnknownDataTypeError",
]


class BaseGridZarrError(ValueError):
    """
    Base error which all gridzarr errors are sub-classed from.
    """

    _msg: str = "{}"

    def __init__(self, *args: object) -> None:
        """
        If a single argument is passed, treat it as a pre-formatted message.

        If multiple arguments are passed, they are used as arguments for the template string
        class variable.
        """
        if len(args) == 1:
            super().__init__(args[0])
        else:
            super().__init__(self._msg.format(*args))


class ContentError(BaseGridZarrError):
    """
    Raised when stored bytes or metadata cannot be interpreted.
    """


class UnknownDataTypeError(ContentError):
    _msg = "Unknown data type: {!r}"


class MetadataValidationError(ContentError):
    """
    Raised when a metadata document is inconsistent with itself.
    """

    _msg = "Invalid value for '{}'. Expected '{}'. Got '{}'."


class NodeTypeValidationError(MetadataValidationError):
    """
    Raised when the ``node_type`` of a metadata document does not match the requested node.
    """


class ChunkDecodeError(ContentError):
    """
    Raised when a stored chunk fails to decode. The chunk grid coordinates are kept in
    ``chunk_coords`` and the underlying failure is chained as ``__cause__``.
    """

    chunk_coords: ChunkCoords

    def __init__(self, chunk_coords: ChunkCoords, reason: object) -> None:
        self.chunk_coords = tuple(chunk_coords)
        super().__init__(f"Failed to decode chunk {self.chunk_coords}: {reason}")


class RegionError(BaseGridZarrError, IndexError):
    """
    Raised when a requested region does not fit the array it is applied to.
    """


class ShapeError(BaseGridZarrError):
    _msg = "Expected a value with shape {}. Got {} instead."


class CodecTypeError(BaseGridZarrError, TypeError):
    """
    Raised when a codec receives a representation it cannot consume.
    """

    _msg = "Codec {!r} cannot encode a value of type {}."


class StoreError(BaseGridZarrError, OSError):
    """
    Raised when the storage backend fails to read or write a key.
    """

    _msg = "Cannot {} {!r}"


class NodeNotFoundError(BaseGridZarrError, FileNotFoundError):
    """
    Raised when a node (array or group) is not found at a certain path.
    """


class ArrayNotFoundError(NodeNotFoundError):
    _msg = "No array found in store {!r} at path {!r}"


class GroupNotFoundError(NodeNotFoundError):
    _msg = "No group found in store {!r} at path {!r}"


class ContainsArrayError(BaseGridZarrError):
    _msg = "An array exists in store {!r} at path {!r}."


class ContainsGroupError(BaseGridZarrError):
    _msg = "A group exists in store {!r} at path {!r}."
