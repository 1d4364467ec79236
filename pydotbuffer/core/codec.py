"""
Buffer codecs.

Persistence is an explicit operation: a codec turns a buffer into bytes
and back. Two formats are provided:

- StreamBufferCodec: int32 element count followed by the elements in
  their native width. The element type is not stored.
- MsgpackBufferCodec: self-describing msgpack map carrying the data type,
  length and raw element bytes. Used for pickling.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import msgpack
import numpy as np

from pydotbuffer.config import get_buffer_config
from pydotbuffer.core.data_buffer import DataBuffer
from pydotbuffer.core.device_buffer import DeviceBuffer
from pydotbuffer.dtypes import DataType
from pydotbuffer.exceptions import (
    BufferDeserializationError,
    BufferSerializationError,
)
from pydotbuffer.validators import validate_byte_order

if TYPE_CHECKING:
    from pydotbuffer.backends import Backend

logger = logging.getLogger(__name__)


class BufferCodec(ABC):
    """Encodes buffers to bytes and decodes them back."""

    name = "codec"

    @abstractmethod
    def encode(self, buffer: DataBuffer) -> bytes:
        """Encode a buffer."""
        ...

    @abstractmethod
    def decode(self, data: bytes) -> DataBuffer:
        """Decode a buffer."""
        ...


class StreamBufferCodec(BufferCodec):
    """
    Length-prefixed element stream.

    Layout: int32 elementCount, then elementCount elements of the codec's
    data type. A buffer whose memory has been released is written with
    elementCount 0.

    Example:
        >>> codec = StreamBufferCodec(DataType.FLOAT32)
        >>> data = codec.encode(DeviceBuffer.from_values([1.0, 2.0]))
        >>> len(data)
        12
    """

    name = "stream"

    def __init__(
        self,
        data_type: DataType | str | None = None,
        *,
        byte_order: str | None = None,
        backend: Backend | None = None,
    ) -> None:
        """
        Initialize the codec.

        Args:
            data_type: Element type written and read; defaults to the
                configured default_data_type.
            byte_order: "big", "little" or "native"; defaults to the configured order.
            backend: Backend for decoded buffers; defaults to get_backend().
        """
        config = get_buffer_config()
        self._data_type = DataType.of(data_type if data_type is not None else config.default_data_type)
        self._byte_order = validate_byte_order(
            byte_order if byte_order is not None else config.byte_order
        )
        self._backend = backend

    @property
    def data_type(self) -> DataType:
        """Get the element type."""
        return self._data_type

    @property
    def byte_order(self) -> str:
        """Get the byte order."""
        return self._byte_order

    def _count_dtype(self) -> np.dtype[Any]:
        return DataType.INT32.encoding_dtype(self._byte_order)

    def encode(self, buffer: DataBuffer) -> bytes:
        """
        Encode a buffer, downloading device contents first when needed.

        Raises:
            BufferSerializationError: If the contents cannot be encoded.
        """
        if buffer.is_released:
            logger.debug("Encoding released buffer as empty")
            return np.array([0], dtype=self._count_dtype()).tobytes()

        try:
            values = buffer.as_type(self._data_type)
            header = np.array([len(values)], dtype=self._count_dtype()).tobytes()
            body = values.astype(self._data_type.encoding_dtype(self._byte_order)).tobytes()
        except Exception as e:
            raise BufferSerializationError(self.name, e) from e

        return header + body

    def decode(self, data: bytes) -> DeviceBuffer:
        """
        Decode into a fresh DeviceBuffer with its own device allocation.

        Raises:
            BufferDeserializationError: If the data is truncated or malformed.
        """
        header_size = self._count_dtype().itemsize
        if len(data) < header_size:
            raise BufferDeserializationError(
                self.name, f"need {header_size} header bytes, got {len(data)}"
            )

        count = int(np.frombuffer(data, dtype=self._count_dtype(), count=1)[0])
        if count < 0:
            raise BufferDeserializationError(self.name, f"negative element count {count}")

        body_size = count * self._data_type.element_size
        if len(data) != header_size + body_size:
            raise BufferDeserializationError(
                self.name,
                f"expected {body_size} bytes for {count} {self._data_type.type_name} elements, "
                f"got {len(data) - header_size}",
            )

        if count:
            values = np.frombuffer(
                data,
                dtype=self._data_type.encoding_dtype(self._byte_order),
                count=count,
                offset=header_size,
            )
        else:
            values = np.empty(0, dtype=self._data_type.dtype)
        buffer = DeviceBuffer(count, self._data_type, data=values, backend=self._backend)
        return buffer.upload()


class MsgpackBufferCodec(BufferCodec):
    """
    Self-describing msgpack encoding.

    The map stores the data type name, the length and the elements as
    little-endian bytes.
    """

    name = "msgpack"

    def encode(self, buffer: DataBuffer) -> bytes:
        """
        Encode a buffer.

        Raises:
            BufferSerializationError: If encoding fails.
        """
        try:
            if buffer.is_released:
                length, payload = 0, b""
            else:
                values = buffer.as_type(buffer.data_type)
                length = len(values)
                payload = values.astype(buffer.data_type.encoding_dtype("little")).tobytes()

            return msgpack.packb(
                {
                    "data_type": buffer.data_type.type_name,
                    "length": length,
                    "data": payload,
                },
                use_bin_type=True,
            )
        except Exception as e:
            raise BufferSerializationError(self.name, e) from e

    def decode(
        self,
        data: bytes,
        buffer_cls: type[DataBuffer] = DeviceBuffer,
    ) -> DataBuffer:
        """
        Decode a buffer.

        Args:
            data: Encoded bytes.
            buffer_cls: Buffer class to build (DeviceBuffer by default).

        Raises:
            BufferDeserializationError: If decoding fails.
        """
        try:
            unpacked = msgpack.unpackb(data, raw=False)
            data_type = DataType.of(unpacked["data_type"])
            length = int(unpacked["length"])
            values = (
                np.frombuffer(unpacked["data"], dtype=data_type.encoding_dtype("little"), count=length)
                if length
                else np.empty(0, dtype=data_type.dtype)
            )
        except Exception as e:
            raise BufferDeserializationError(self.name, e) from e

        return buffer_cls(len(values), data_type, data=values)


def persist(
    buffer: DataBuffer,
    data_type: DataType | str | None = None,
    codec: BufferCodec | None = None,
) -> bytes:
    """
    Encode a buffer for storage.

    Elements are written as data_type, which defaults to the configured
    default_data_type so that restore() without arguments reads them back.
    Buffers of another type are converted on the way out.

    Args:
        buffer: Buffer to encode.
        data_type: Element type of the stream.
        codec: Explicit codec; overrides data_type.
    """
    if codec is None:
        codec = StreamBufferCodec(data_type)
    return codec.encode(buffer)


def restore(
    data: bytes,
    data_type: DataType | str | None = None,
    codec: BufferCodec | None = None,
) -> DataBuffer:
    """
    Decode a buffer written by persist().

    Args:
        data: Encoded bytes.
        data_type: Element type of the stream (the stream does not store it);
            defaults to the configured default_data_type, as in persist().
        codec: Explicit codec; overrides data_type.
    """
    if codec is None:
        codec = StreamBufferCodec(data_type)
    return codec.decode(data)


def _unpickle_buffer(buffer_cls: type[DataBuffer], data: bytes) -> DataBuffer:
    """Rebuild a pickled buffer."""
    return MsgpackBufferCodec().decode(data, buffer_cls)
