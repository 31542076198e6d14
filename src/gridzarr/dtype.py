from __future__ import annotations
from enum import Enum
from typing import TYPE_CHECKING
import math
import numbers

import numpy as np

from gridzarr.errors import UnknownDataTypeError

if TYPE_CHECKING:
    from typing import Any, Optional
    from typing_extensions import Self
    from gridzarr.common import JSON

# For type checking
_bool = bool


class DataType(Enum):
    """
    The element types an array can hold.

    Every variant has one entry in each of the lookup tables below. ``string`` holds
    variable-length UTF-8 text and ``char`` a single UTF-16 code unit.
    """

    bool = "bool"
    int8 = "int8"
    int16 = "int16"
    int32 = "int32"
    int64 = "int64"
    uint8 = "uint8"
    uint16 = "uint16"
    uint32 = "uint32"
    uint64 = "uint64"
    float32 = "float32"
    float64 = "float64"
    string = "string"
    char = "char"

    @property
    def byte_count(self) -> Optional[int]:
        data_type_byte_counts = {
            DataType.bool: 1,
            DataType.int8: 1,
            DataType.int16: 2,
            DataType.int32: 4,
            DataType.int64: 8,
            DataType.uint8: 1,
            DataType.uint16: 2,
            DataType.uint32: 4,
            DataType.uint64: 8,
            DataType.float32: 4,
            DataType.float64: 8,
            DataType.string: None,
            DataType.char: 2,
        }
        return data_type_byte_counts[self]

    @property
    def is_fixed_size(self) -> _bool:
        return self.byte_count is not None

    @property
    def has_endianness(self) -> _bool:
        return self.is_fixed_size and self.byte_count != 1

    def to_numpy_shortname(self) -> str:
        data_type_to_numpy = {
            DataType.bool: "bool",
            DataType.int8: "i1",
            DataType.int16: "i2",
            DataType.int32: "i4",
            DataType.int64: "i8",
            DataType.uint8: "u1",
            DataType.uint16: "u2",
            DataType.uint32: "u4",
            DataType.uint64: "u8",
            DataType.float32: "f4",
            DataType.float64: "f8",
            DataType.string: "O",
            DataType.char: "U1",
        }
        return data_type_to_numpy[self]

    def to_numpy(self) -> np.dtype:
        """The in-memory numpy dtype, in native byte order."""
        return np.dtype(self.to_numpy_shortname())

    @property
    def default_fill_value(self) -> Any:
        if self == DataType.bool:
            return False
        if self in (DataType.string, DataType.char):
            return ""
        if self in (DataType.float32, DataType.float64):
            return 0.0
        return 0

    @classmethod
    def from_dtype(cls, dtype: Any) -> Self:
        dtype = np.dtype(dtype)
        if dtype.kind == "b":
            return cls.bool
        if dtype.kind in "iuf":
            prefix = {"i": "int", "u": "uint", "f": "float"}[dtype.kind]
            name = f"{prefix}{dtype.itemsize * 8}"
            if name in cls.__members__:
                return cls[name]
        if dtype.kind == "U" and dtype.itemsize == 4:
            return cls.char
        if dtype.kind in "UOT":
            return cls.string
        raise UnknownDataTypeError(dtype)

    @classmethod
    def from_value(cls, value: Any) -> Self:
        """Infer the element type of a value handed to a write."""
        if isinstance(value, (list, tuple)) and len(value) > 0 and all(
            hasattr(v, "dtype") for v in value
        ):
            dtype = np.result_type(*(v.dtype for v in value))
        else:
            dtype = np.asarray(value).dtype
        # text is stored as variable-length strings whatever form the value takes
        if dtype.kind in "UO":
            return cls.string
        return cls.from_dtype(dtype)

    def parse_fill_value(self, data: JSON) -> Any:
        """
        Convert a JSON fill value to a scalar of this type. ``None`` is kept as is and means
        the array has no explicit fill value.
        """
        if data is None:
            return None
        if isinstance(data, np.generic):
            data = data.item()
        if self == DataType.bool:
            if isinstance(data, _bool):
                return data
            if isinstance(data, numbers.Integral) and data in (0, 1):
                return _bool(data)
        elif self in (DataType.float32, DataType.float64):
            if isinstance(data, str):
                special = {"NaN": math.nan, "Infinity": math.inf, "-Infinity": -math.inf}
                if data in special:
                    return self.to_numpy().type(special[data])
            elif isinstance(data, numbers.Real) and not isinstance(data, _bool):
                return self.to_numpy().type(data)
        elif self == DataType.string:
            if isinstance(data, str):
                return data
        elif self == DataType.char:
            if isinstance(data, str) and len(data) <= 1:
                return data
        elif isinstance(data, numbers.Integral) and not isinstance(data, _bool):
            info = np.iinfo(self.to_numpy())
            if info.min <= data <= info.max:
                return self.to_numpy().type(data)
        raise ValueError(f"Fill value {data!r} is not valid for data type {self.value}.")

    def fill_value_to_json(self, fill_value: Any) -> JSON:
        if fill_value is None:
            return None
        if self == DataType.bool:
            return _bool(fill_value)
        if self in (DataType.float32, DataType.float64):
            value = float(fill_value)
            if math.isnan(value):
                return "NaN"
            if math.isinf(value):
                return "Infinity" if value > 0 else "-Infinity"
            return value
        if self in (DataType.string, DataType.char):
            return str(fill_value)
        return int(fill_value)


def parse_data_type(data: Any) -> DataType:
    if isinstance(data, DataType):
        return data
    if isinstance(data, str) and data in DataType.__members__:
        return DataType[data]
    try:
        dtype = np.dtype(data)
    except TypeError as e:
        raise UnknownDataTypeError(data) from e
    return DataType.from_dtype(dtype)
