"""
Unit tests for the validators module.
"""

from __future__ import annotations

import numpy as np
import pytest

from pydotbuffer.dtypes import DataType
from pydotbuffer.exceptions import (
    InvalidArgumentError,
    InvalidConfigurationError,
    LengthMismatchError,
)
from pydotbuffer.validators import (
    validate_backend_name,
    validate_byte_order,
    validate_data_type,
    validate_flag,
    validate_length,
    validate_same_length,
    validate_stride,
)


class TestConfigurationValidators:
    """Tests for configuration value validators."""

    @pytest.mark.parametrize("byte_order", ["big", "little", "native"])
    def test_valid_byte_order(self, byte_order: str) -> None:
        """Test known byte orders pass."""
        assert validate_byte_order(byte_order) == byte_order

    def test_invalid_byte_order(self) -> None:
        """Test the error names the parameter."""
        with pytest.raises(InvalidConfigurationError) as exc_info:
            validate_byte_order("BIG")

        assert exc_info.value.parameter == "byte_order"

    def test_backend_name(self) -> None:
        """Test backend names."""
        assert validate_backend_name("cuda") == "cuda"

        with pytest.raises(InvalidConfigurationError):
            validate_backend_name("metal")

    def test_data_type(self) -> None:
        """Test data type settings resolve to DataType."""
        assert validate_data_type("float64") is DataType.FLOAT64

        with pytest.raises(InvalidConfigurationError):
            validate_data_type("bfloat16")

    def test_flag(self) -> None:
        """Test flags must be real booleans."""
        assert validate_flag(False, "strict_bounds") is False

        with pytest.raises(InvalidConfigurationError):
            validate_flag(1, "strict_bounds")


class TestArgumentValidators:
    """Tests for buffer argument validators."""

    @pytest.mark.parametrize("length", [0, 1, 1024])
    def test_valid_length(self, length: int) -> None:
        """Test non-negative integers pass."""
        assert validate_length(length) == length

    @pytest.mark.parametrize("length", [-1, 2.0, True, "3"])
    def test_invalid_length(self, length: object) -> None:
        """Test everything else fails."""
        with pytest.raises(InvalidArgumentError):
            validate_length(length)

    @pytest.mark.parametrize("length", [np.int64(4), np.int32(4), np.uint8(4)])
    def test_numpy_integer_length(self, length: object) -> None:
        """Test NumPy integers are accepted and returned as int."""
        result = validate_length(length)

        assert result == 4
        assert type(result) is int

    def test_numpy_bool_length(self) -> None:
        """Test NumPy booleans are not lengths."""
        with pytest.raises(InvalidArgumentError):
            validate_length(np.bool_(True))

    def test_stride(self) -> None:
        """Test strides must be positive."""
        assert validate_stride(3) == 3
        assert type(validate_stride(np.int64(2))) is int

        with pytest.raises(InvalidArgumentError):
            validate_stride(0)

    def test_same_length(self) -> None:
        """Test the mismatch error carries both lengths."""
        validate_same_length("values", 2, [1, 2])

        with pytest.raises(LengthMismatchError) as exc_info:
            validate_same_length("values", 2, [1, 2, 3])

        assert exc_info.value.expected == 2
        assert exc_info.value.actual == 3
        assert str(exc_info.value) == "values: expected length 2 but found length 3"
