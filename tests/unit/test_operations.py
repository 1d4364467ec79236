"""
Unit tests for operation execution and the built-in kernels.
"""

from __future__ import annotations

import math

import numpy as np
import pytest

from pydotbuffer.backends import CPUBackend
from pydotbuffer.core.data_buffer import DataBuffer
from pydotbuffer.core.device_buffer import DeviceBuffer, LocationState
from pydotbuffer.dtypes import DataType
from pydotbuffer.exceptions import InvalidArgumentError, LengthMismatchError
from pydotbuffer.ops import resolve
from pydotbuffer.ops.transforms import CUT_OFF


def buf(values: list[float], data_type: DataType = DataType.FLOAT64) -> DataBuffer:
    return DataBuffer.from_values(values, data_type)


class TestAccumulations:
    """Tests for accumulation kernels."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("sum", 10.0),
            ("max", 4.0),
            ("min", 1.0),
            ("norm1", 10.0),
            ("norm2", math.sqrt(30.0)),
            ("prod", 24.0),
            ("std", math.sqrt(5.0 / 3.0)),
            ("var", 5.0 / 3.0),
        ],
    )
    def test_reductions(self, name: str, expected: float) -> None:
        """Test single-operand reductions."""
        result = resolve("accumulation", name, buf([1.0, 2.0, 3.0, 4.0])).execute()

        assert result == pytest.approx(expected)
        assert isinstance(result, float)

    def test_norm1_negative(self) -> None:
        """Test the L1 norm uses absolute values."""
        assert resolve("accumulation", "norm1", buf([-1.0, 2.0])).execute() == 3.0

    def test_integer_sum(self) -> None:
        """Test integer buffers reduce to Python ints."""
        result = resolve("accumulation", "sum", buf([1, 2, 3], DataType.INT32)).execute()

        assert result == 6
        assert isinstance(result, int)

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("euclidean", 5.0),
            ("manhattan", 7.0),
        ],
    )
    def test_distances(self, name: str, expected: float) -> None:
        """Test pairwise distances."""
        result = resolve("accumulation", name, buf([0.0, 0.0]), buf([3.0, 4.0])).execute()

        assert result == pytest.approx(expected)

    def test_cosine_similarity(self) -> None:
        """Test cosine similarity."""
        same = resolve("accumulation", "cosine", buf([1.0, 2.0]), buf([2.0, 4.0])).execute()
        orthogonal = resolve("accumulation", "cosine", buf([1.0, 0.0]), buf([0.0, 1.0])).execute()

        assert same == pytest.approx(1.0)
        assert orthogonal == pytest.approx(0.0)

    def test_distance_requires_second_operand(self) -> None:
        """Test distances need y."""
        with pytest.raises(InvalidArgumentError, match="requires two operands"):
            resolve("accumulation", "euclidean", buf([1.0])).execute()

    def test_distance_length_mismatch(self) -> None:
        """Test distance operands must have equal length."""
        x = buf([1.0, 2.0])
        y = buf([1.0, 2.0, 3.0])

        with pytest.raises(LengthMismatchError):
            resolve("accumulation", "manhattan", y, x, DataBuffer(1)).execute()

    def test_result_written_to_z(self) -> None:
        """Test the three-operand form stores the result at z[0]."""
        z = DataBuffer(2, DataType.FLOAT32)

        result = resolve("accumulation", "sum", buf([1.0, 2.0]), buf([0.0, 0.0]), z).execute()

        assert result == 3.0
        assert list(z) == [3.0, 0.0]

    def test_sample_statistics_need_two_values(self) -> None:
        """Test std and var of a single value."""
        assert math.isnan(resolve("accumulation", "var", buf([1.0])).execute())


class TestTransforms:
    """Tests for transform kernels."""

    @pytest.mark.parametrize(
        "name, values, expected",
        [
            ("abs", [-1.5, 2.0], [1.5, 2.0]),
            ("ceil", [1.2, -1.2], [2.0, -1.0]),
            ("floor", [1.8, -1.2], [1.0, -2.0]),
            ("hardtanh", [-3.0, 0.5, 3.0], [-1.0, 0.5, 1.0]),
            ("identity", [1.0, 2.0], [1.0, 2.0]),
            ("maxout", [1.0, 5.0, 3.0], [5.0, 5.0, 5.0]),
            ("negative", [1.0, -2.0], [-1.0, 2.0]),
            ("pow", [2.0, -3.0], [4.0, 9.0]),
            ("relu", [-1.0, 0.0, 2.0], [0.0, 0.0, 2.0]),
            ("round", [0.5, 1.4, -0.5, -1.6], [1.0, 1.0, 0.0, -2.0]),
            ("sign", [-2.0, 0.0, 3.0], [-1.0, 0.0, 1.0]),
            ("sqrt", [4.0, 9.0], [2.0, 3.0]),
        ],
    )
    def test_exact(self, name: str, values: list[float], expected: list[float]) -> None:
        """Test transforms with exact results."""
        x = buf(values)
        resolve("transform", name, x).execute()

        np.testing.assert_array_equal(x.as_double(), expected)

    @pytest.mark.parametrize(
        "name, function",
        [
            ("acos", np.arccos),
            ("asin", np.arcsin),
            ("atan", np.arctan),
            ("cos", np.cos),
            ("exp", np.exp),
            ("log", np.log),
            ("sin", np.sin),
            ("tanh", np.tanh),
        ],
    )
    def test_elementary(self, name: str, function: np.ufunc) -> None:
        """Test elementary functions."""
        values = [0.1, 0.5, 0.9]
        x = buf(values)
        resolve("transform", name, x).execute()

        np.testing.assert_allclose(x.as_double(), function(np.array(values)))

    def test_sigmoid(self) -> None:
        """Test the logistic function."""
        x = buf([0.0, 2.0])
        resolve("transform", "sigmoid", x).execute()

        np.testing.assert_allclose(x.as_double(), [0.5, 1.0 / (1.0 + math.exp(-2.0))])

    def test_softmax(self) -> None:
        """Test softmax sums to one and is shift invariant."""
        x = buf([1000.0, 1001.0])
        resolve("transform", "softmax", x).execute()

        assert x.as_double().sum() == pytest.approx(1.0)
        assert x.get(1) > x.get(0)

    def test_relu_threshold(self) -> None:
        """Test an explicit threshold."""
        x = buf([0.5, 1.5])
        resolve("transform", "relu", x, threshold=1.0).execute()

        np.testing.assert_array_equal(x.as_double(), [0.0, 1.5])

    def test_pow_exponent(self) -> None:
        """Test an explicit exponent."""
        x = buf([2.0])
        resolve("transform", "pow", x, exponent=3).execute()

        assert x.get(0) == 8.0

    def test_stabilize(self) -> None:
        """Test clamping to the representable exponent range."""
        x = buf([1000.0, 0.0, -1000.0])
        resolve("transform", "stabilize", x).execute()

        assert x.get(0) == pytest.approx(-CUT_OFF)
        assert x.get(1) == 0.0
        assert x.get(2) == pytest.approx(CUT_OFF)

    def test_stabilize_bound(self) -> None:
        """Test the bound scales the clamp."""
        x = buf([1000.0])
        resolve("transform", "stabilize", x, bound=2).execute()

        assert x.get(0) == pytest.approx(-CUT_OFF / 2)

    def test_with_output(self) -> None:
        """Test (x, y) leaves x untouched."""
        x = buf([-1.0, 2.0])
        y = DataBuffer(2, DataType.FLOAT64)

        result = resolve("transform", "abs", x, y).execute()

        np.testing.assert_array_equal(result, [1.0, 2.0])
        np.testing.assert_array_equal(x.as_double(), [-1.0, 2.0])
        np.testing.assert_array_equal(y.as_double(), [1.0, 2.0])

    def test_three_operands(self) -> None:
        """Test (x, y, z) writes z."""
        x = buf([1.0, 2.0])
        y = buf([0.0, 0.0])
        z = DataBuffer(2, DataType.FLOAT64)

        resolve("transform", "negative", x, y, z).execute()

        np.testing.assert_array_equal(z.as_double(), [-1.0, -2.0])
        np.testing.assert_array_equal(y.as_double(), [0.0, 0.0])

    def test_integer_output_truncates(self) -> None:
        """Test results are converted to the output type."""
        x = buf([2, 3], DataType.INT32)
        resolve("transform", "sqrt", x).execute()

        assert list(x) == [1, 1]

    def test_numpy_operands(self) -> None:
        """Test plain arrays work as operands."""
        x = np.array([-1.0, 4.0])
        resolve("transform", "abs", x).execute()

        np.testing.assert_array_equal(x, [1.0, 4.0])

    def test_device_buffer_output(self, cpu_backend: CPUBackend) -> None:
        """Test results written to a device buffer leave it host dirty."""
        x = DeviceBuffer.from_values([4.0, 9.0], DataType.FLOAT32, backend=cpu_backend).upload()
        resolve("transform", "sqrt", x).execute()

        assert x.state == LocationState.HOST_DIRTY
        np.testing.assert_array_equal(x.upload().allocation.data, [2.0, 3.0])

    def test_empty(self) -> None:
        """Test zero-length buffers."""
        x = DataBuffer(0, DataType.FLOAT64)

        assert len(resolve("transform", "softmax", x).execute()) == 0
