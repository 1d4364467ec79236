"""
Fixed-length typed numeric buffer.

A DataBuffer holds `length` elements of a single DataType in contiguous
host memory. Its length never changes; contents are mutated in place or
replaced in bulk, and duplicated by value with dup().
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

import numpy as np

from pydotbuffer.config import get_buffer_config
from pydotbuffer.dtypes import DataType, convert
from pydotbuffer.exceptions import (
    InvalidArgumentError,
    TypeValidationError,
    UnsupportedOperationError,
)
from pydotbuffer.validators import validate_length, validate_same_length, validate_stride

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

B = TypeVar("B", bound="DataBuffer")

logger = logging.getLogger(__name__)


class DataBuffer:
    """
    Fixed-length, homogeneously-typed numeric buffer in host memory.

    Example:
        >>> buf = DataBuffer.from_values([1.0, 2.0, 3.0, 4.0], DataType.FLOAT32)
        >>> buf.assign([2], [9.0])
        >>> buf.as_double()
        array([1., 2., 9., 4.])
    """

    def __init__(
        self,
        length: int,
        data_type: DataType | str | None = None,
        *,
        data: ArrayLike | None = None,
    ) -> None:
        """
        Initialize a zero-filled buffer.

        Args:
            length: Number of elements (fixed for the buffer's lifetime).
            data_type: Element type; defaults to the configured default_data_type.
            data: Optional initial values; must have exactly `length` elements.

        Raises:
            InvalidArgumentError: If the length is invalid or data has the wrong length.
        """
        self._length = validate_length(length)
        self._data_type = DataType.of(
            data_type if data_type is not None else get_buffer_config().default_data_type
        )

        initial = None
        if data is not None:
            initial = convert(_as_array(data), self._data_type)
            validate_same_length("Unable to set data", self._length, initial)

        self._init_storage(initial)

    def _init_storage(self, initial: NDArray[Any] | None) -> None:
        if initial is None:
            initial = np.zeros(self._length, dtype=self._data_type.dtype)
        self._data = initial

    @classmethod
    def from_values(
        cls: type[B],
        values: ArrayLike,
        data_type: DataType | str | None = None,
        **kwargs: Any,
    ) -> B:
        """
        Create a buffer initialized from existing host values.

        Args:
            values: Source values.
            data_type: Element type; inferred from NumPy input when omitted.
            **kwargs: Extra constructor arguments for subclasses.

        Returns:
            New buffer holding a copy of the values.
        """
        array = _as_array(values)
        if data_type is None and isinstance(values, (np.ndarray, DataBuffer)):
            try:
                data_type = DataType.of(array.dtype)
            except InvalidArgumentError:
                data_type = None
        return cls(len(array), data_type, data=array, **kwargs)

    # Storage hooks. Subclasses that keep data elsewhere override these.

    def _read_view(self) -> NDArray[Any]:
        """Get an up-to-date host view for reading."""
        return self._data

    def _write_view(self) -> NDArray[Any]:
        """Get the host view that writes must go to."""
        return self._data

    def _after_write(self) -> None:
        """Record that the host view was modified."""
        pass

    @property
    def length(self) -> int:
        """Get the number of elements."""
        return self._length

    @property
    def data_type(self) -> DataType:
        """Get the element type tag."""
        return self._data_type

    @property
    def dtype(self) -> np.dtype[Any]:
        """Get the NumPy dtype of the elements."""
        return self._data_type.dtype

    @property
    def element_size(self) -> int:
        """Get the width of one element in bytes."""
        return self._data_type.element_size

    @property
    def nbytes(self) -> int:
        """Get the total size in bytes."""
        return self._length * self.element_size

    @property
    def is_released(self) -> bool:
        """Check if the buffer's memory has been released."""
        return False

    def _check_index(self, i: int) -> int:
        if isinstance(i, bool) or not isinstance(i, (int, np.integer)):
            raise TypeValidationError(int, type(i), "buffer index")
        if not 0 <= i < self._length:
            raise IndexError(f"Index {i} out of range for buffer of length {self._length}")
        return int(i)

    def get(self, i: int) -> Any:
        """
        Read one element.

        Args:
            i: Element index.

        Returns:
            The element as a Python scalar.

        Raises:
            IndexError: If i is outside [0, length).
        """
        return self._read_view()[self._check_index(i)].item()

    def get_float(self, i: int) -> float:
        """Read one element as a single-precision value."""
        return float(np.float32(self.get(i)))

    def get_double(self, i: int) -> float:
        """Read one element as a double-precision value."""
        return float(self.get(i))

    def get_int(self, i: int) -> int:
        """Read one element truncated to an integer."""
        return int(self.get(i))

    def put(self, i: int, value: float) -> None:
        """
        Write one element, converting to the buffer's data type.

        Raises:
            IndexError: If i is outside [0, length).
        """
        index = self._check_index(i)
        self._write_view()[index] = convert([value], self._data_type)[0]
        self._after_write()

    def assign(
        self,
        indices: Sequence[int],
        values: ArrayLike,
        contiguous: bool = True,
        stride: int = 1,
    ) -> None:
        """
        Write values into the positions described by indices.

        Only a single contiguous run is supported: values[k] is written at
        indices[0] + k * stride.

        Args:
            indices: Target positions; only indices[0] is used for contiguous runs.
            values: Values to write.
            contiguous: Must be True.
            stride: Element stride of the run.

        Raises:
            InvalidArgumentError: If indices and values differ in length, or
                there are more values than buffer elements.
            UnsupportedOperationError: If contiguous is False.
            IndexError: If the run extends past the end of the buffer.
        """
        source = _as_array(values)
        if len(indices) != len(source):
            raise InvalidArgumentError(
                f"Indices and data length must be the same: "
                f"{len(indices)} indices, {len(source)} values"
            )
        if len(indices) > self._length:
            raise InvalidArgumentError(
                f"More elements than space to assign. This buffer is of length "
                f"{self._length} where the indices are of length {len(indices)}"
            )
        if not contiguous:
            raise UnsupportedOperationError("Only contiguous assignment is supported")

        stride = validate_stride(stride)
        if len(source) == 0:
            return

        offset = int(indices[0])
        last = offset + (len(source) - 1) * stride
        if offset < 0 or last >= self._length:
            raise IndexError(
                f"Assignment of {len(source)} elements from offset {offset} with stride "
                f"{stride} exceeds buffer length {self._length}"
            )

        self._write_view()[offset : last + 1 : stride] = convert(source, self._data_type)
        self._after_write()

    def fill(self, value: float, offset: int = 0) -> None:
        """
        Write value to every element from offset to the end.

        Raises:
            IndexError: If offset is outside [0, length].
        """
        if not 0 <= offset <= self._length:
            raise IndexError(f"Offset {offset} out of range for buffer of length {self._length}")
        self._write_view()[offset:] = convert([value], self._data_type)[0]
        self._after_write()

    def set_data(self, values: ArrayLike) -> None:
        """
        Replace the whole contents.

        Args:
            values: Exactly `length` values.

        Raises:
            InvalidArgumentError: If the number of values differs from length.
        """
        source = _as_array(values)
        validate_same_length("Unable to set data", self._length, source)
        self._write_view()[:] = convert(source, self._data_type)
        self._after_write()

    def get_at(
        self,
        offset: int,
        stride: int,
        count: int,
        data_type: DataType | str | None = None,
    ) -> NDArray[Any]:
        """
        Extract `count` elements starting at offset with the given stride.

        With strict_bounds configured (the default) a request that reaches
        past the end fails. Otherwise, when offset + count exceeds the
        length, count is reduced by offset before reading.

        Args:
            offset: First element.
            stride: Element stride.
            count: Number of elements.
            data_type: Requested representation (defaults to the buffer's).

        Returns:
            New array of the requested representation.

        Raises:
            InvalidArgumentError: If the requested range is invalid.
        """
        target = self._data_type if data_type is None else DataType.of(data_type)
        stride = validate_stride(stride)
        if offset < 0 or count < 0:
            raise InvalidArgumentError(
                f"Offset and count must be >= 0, got offset={offset}, count={count}"
            )

        if not get_buffer_config().strict_bounds and offset + count > self._length:
            count -= offset
            if count < 0:
                raise InvalidArgumentError(
                    f"Offset {offset} leaves no elements in buffer of length {self._length}"
                )

        if count == 0:
            return np.empty(0, dtype=target.dtype)

        last = offset + (count - 1) * stride
        if last >= self._length:
            raise InvalidArgumentError(
                f"Requested {count} elements from offset {offset} with stride {stride} "
                f"but buffer length is {self._length}"
            )

        return convert(self._read_view()[offset : last + 1 : stride], target)

    def get_floats_at(self, offset: int, stride: int, count: int) -> NDArray[np.float32]:
        """Strided extraction as float32."""
        return self.get_at(offset, stride, count, DataType.FLOAT32)

    def get_doubles_at(self, offset: int, stride: int, count: int) -> NDArray[np.float64]:
        """Strided extraction as float64."""
        return self.get_at(offset, stride, count, DataType.FLOAT64)

    def get_ints_at(self, offset: int, stride: int, count: int) -> NDArray[np.int32]:
        """Strided extraction as int32."""
        return self.get_at(offset, stride, count, DataType.INT32)

    def as_bytes(self) -> bytes:
        """
        Serialize every element in its native width, in order.

        No length prefix is written. The byte order comes from the
        configured byte_order.
        """
        encoding = self._data_type.encoding_dtype(get_buffer_config().byte_order)
        return self._read_view().astype(encoding).tobytes()

    def as_type(self, data_type: DataType | str) -> NDArray[Any]:
        """Convert the full contents to another representation."""
        return convert(self._read_view(), DataType.of(data_type))

    def as_float(self) -> NDArray[np.float32]:
        """Convert the full contents to float32."""
        return self.as_type(DataType.FLOAT32)

    def as_double(self) -> NDArray[np.float64]:
        """Convert the full contents to float64."""
        return self.as_type(DataType.FLOAT64)

    def as_int(self) -> NDArray[np.int32]:
        """Convert the full contents to int32, truncating toward zero."""
        return self.as_type(DataType.INT32)

    def as_long(self) -> NDArray[np.int64]:
        """Convert the full contents to int64, truncating toward zero."""
        return self.as_type(DataType.INT64)

    def dup(self: B) -> B:
        """Create an independent buffer with a deep copy of the contents."""
        return type(self)(self._length, self._data_type, data=self._read_view())

    def copy_to(self, other: DataBuffer) -> None:
        """
        Copy the contents into another buffer of the same length.

        Raises:
            InvalidArgumentError: If the lengths differ.
        """
        validate_same_length("Unable to copy buffer", other.length, self)
        other.set_data(self._read_view())

    def __array__(self, dtype: Any = None, copy: bool | None = None) -> NDArray[Any]:
        """NumPy array protocol; always returns a copy."""
        array = self._read_view().copy()
        if dtype is not None:
            array = array.astype(dtype)
        return array

    def __reduce__(self) -> tuple[Any, ...]:
        """Pickle through the self-describing buffer codec."""
        from pydotbuffer.core.codec import MsgpackBufferCodec, _unpickle_buffer

        return (_unpickle_buffer, (type(self), MsgpackBufferCodec().encode(self)))

    def __len__(self) -> int:
        """Get the number of elements."""
        return self._length

    def __getitem__(self, i: int) -> Any:
        """Read one element."""
        return self.get(i)

    def __setitem__(self, i: int, value: float) -> None:
        """Write one element."""
        self.put(i, value)

    def __iter__(self) -> Iterator[Any]:
        """Iterate over the elements as Python scalars."""
        return iter(self._read_view().tolist())

    def __repr__(self) -> str:
        """String representation."""
        return f"DataBuffer(length={self._length}, data_type={self._data_type.type_name})"


def _as_array(values: Any) -> NDArray[Any]:
    """View values as a flat array without copying buffers twice."""
    if isinstance(values, DataBuffer):
        return values._read_view()
    array = np.asarray(values)
    if array.ndim != 1:
        array = array.reshape(-1)
    return array
