"""
Numeric data types supported by buffers.

Every buffer is tagged with exactly one DataType; reads, writes and
byte encodings are interpreted under that tag.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

import numpy as np

from pydotbuffer.exceptions import InvalidArgumentError

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray


class DataType(Enum):
    """Numeric representation of buffer elements."""

    FLOAT32 = ("float32", np.float32)
    FLOAT64 = ("float64", np.float64)
    INT32 = ("int32", np.int32)
    INT64 = ("int64", np.int64)

    def __init__(self, type_name: str, numpy_type: type[np.generic]) -> None:
        self.type_name = type_name
        self.numpy_type = numpy_type

    @property
    def dtype(self) -> np.dtype[Any]:
        """Get the NumPy dtype in native byte order."""
        return np.dtype(self.numpy_type)

    @property
    def element_size(self) -> int:
        """Get the width of one element in bytes."""
        return self.dtype.itemsize

    @property
    def is_floating(self) -> bool:
        """Check if this is a floating-point type."""
        return np.issubdtype(self.dtype, np.floating)

    def encoding_dtype(self, byte_order: str) -> np.dtype[Any]:
        """
        Get the dtype used to encode elements as bytes.

        Args:
            byte_order: "big", "little" or "native".

        Returns:
            Dtype with the requested byte order.
        """
        prefix = {"big": ">", "little": "<", "native": "="}[byte_order]
        return self.dtype.newbyteorder(prefix)

    @classmethod
    def of(cls, value: object) -> DataType:
        """
        Resolve a DataType from a tag, name or NumPy dtype.

        Args:
            value: DataType, type name ("float32"), NumPy dtype or scalar type.

        Returns:
            The matching DataType.

        Raises:
            InvalidArgumentError: If the value names no supported type.
        """
        if isinstance(value, DataType):
            return value

        if value is None:
            raise InvalidArgumentError("Data type must not be None")

        if isinstance(value, str):
            for member in cls:
                if member.type_name == value.lower():
                    return member

        try:
            dtype = np.dtype(value)  # type: ignore[call-overload]
        except TypeError:
            dtype = None

        if dtype is not None:
            for member in cls:
                if member.dtype == dtype.newbyteorder("="):
                    return member

        raise InvalidArgumentError(f"Unsupported data type {value!r}")

    def __repr__(self) -> str:
        return f"DataType.{self.name}"


def convert(values: ArrayLike, target: DataType) -> NDArray[Any]:
    """
    Convert values to another numeric representation.

    Floating to integer conversion truncates toward zero; widening and
    narrowing between float types follow IEEE 754 rounding.

    Args:
        values: Source values.
        target: Requested representation.

    Returns:
        New 1-D array of the target dtype.
    """
    source = np.asarray(values)
    if source.ndim != 1:
        source = source.reshape(-1)
    if np.issubdtype(source.dtype, np.floating) and not target.is_floating:
        source = np.trunc(source)
    return source.astype(target.dtype, copy=True)
