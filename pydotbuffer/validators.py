"""
Runtime validators for PyDotBuffer.

Provides validation utilities for configuration values and buffer
arguments.
"""

from __future__ import annotations

import numbers
from collections.abc import Sized

from pydotbuffer.dtypes import DataType
from pydotbuffer.exceptions import (
    InvalidArgumentError,
    InvalidConfigurationError,
    LengthMismatchError,
)

BYTE_ORDERS = frozenset({"big", "little", "native"})
BACKEND_NAMES = frozenset({"auto", "cpu", "cuda"})


def validate_byte_order(byte_order: str) -> str:
    """
    Validate a byte order name.

    Args:
        byte_order: "big", "little" or "native".

    Returns:
        Validated byte order.

    Raises:
        InvalidConfigurationError: If the byte order is unknown.
    """
    if byte_order not in BYTE_ORDERS:
        raise InvalidConfigurationError(
            "byte_order",
            byte_order,
            f"must be one of {sorted(BYTE_ORDERS)}",
        )

    return byte_order


def validate_backend_name(name: str) -> str:
    """
    Validate a backend name.

    Args:
        name: "auto", "cpu" or "cuda".

    Returns:
        Validated name.

    Raises:
        InvalidConfigurationError: If the name is unknown.
    """
    if name not in BACKEND_NAMES:
        raise InvalidConfigurationError(
            "default_backend",
            name,
            f"must be one of {sorted(BACKEND_NAMES)}",
        )

    return name


def validate_data_type(value: object, name: str = "default_data_type") -> DataType:
    """
    Validate and resolve a data type setting.

    Raises:
        InvalidConfigurationError: If the value names no supported type.
    """
    try:
        return DataType.of(value)
    except InvalidArgumentError as e:
        raise InvalidConfigurationError(name, value, str(e)) from e


def validate_flag(value: object, name: str) -> bool:
    """Validate a boolean setting."""
    if not isinstance(value, bool):
        raise InvalidConfigurationError(name, value, "must be a bool")

    return value


def validate_length(length: object, name: str = "length") -> int:
    """
    Validate a buffer length.

    Args:
        length: Element count.
        name: Parameter name for error messages.

    Returns:
        Validated length as a Python int.

    Raises:
        InvalidArgumentError: If the length is not a non-negative integer.
    """
    if isinstance(length, bool) or not isinstance(length, numbers.Integral):
        raise InvalidArgumentError(f"{name} must be an integer, got {length!r}")

    if length < 0:
        raise InvalidArgumentError(f"{name} must be >= 0, got {length}")

    return int(length)


def validate_stride(stride: object, name: str = "stride") -> int:
    """Validate an element stride (positive integer, NumPy integers included)."""
    if isinstance(stride, bool) or not isinstance(stride, numbers.Integral) or stride < 1:
        raise InvalidArgumentError(f"{name} must be a positive integer, got {stride!r}")

    return int(stride)


def validate_same_length(what: str, expected: int, values: Sized) -> None:
    """
    Check that a sequence has the expected length.

    Raises:
        LengthMismatchError: If the lengths differ.
    """
    if len(values) != expected:
        raise LengthMismatchError(what, expected, len(values))
