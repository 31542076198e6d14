from __future__ import annotations
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from typing import Dict, Any
    from typing_extensions import Self

from dataclasses import fields
from enum import Enum

from gridzarr.common import JSON


class Metadata:
    def to_dict(self) -> Dict[str, Any]:
        """
        Recursively serialize this model to a dictionary.
        Fields that are instances of `Metadata` are serialized with their own `to_dict`, enums
        are replaced by their value and sequences are recursed into element-wise.
        """
        out_dict = {}
        for field in fields(self):
            key = field.name
            value = getattr(self, key)
            if isinstance(value, Metadata):
                out_dict[key] = value.to_dict()
            elif isinstance(value, Enum):
                out_dict[key] = value.value
            elif isinstance(value, str):
                out_dict[key] = value
            elif isinstance(value, Sequence):
                out_dict[key] = [v.to_dict() if isinstance(v, Metadata) else v for v in value]
            else:
                out_dict[key] = value

        return out_dict

    @classmethod
    def from_dict(cls, data: Dict[str, JSON]) -> Self:
        """
        Create an instance of the model from a dictionary
        """
        return cls(**data)
