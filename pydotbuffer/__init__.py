"""
PyDotBuffer - typed numeric buffers with host/accelerator synchronization.

Fixed-length buffers of a single element type whose contents live in host
memory, accelerator memory, or both, with an operation registry that binds
named reductions and elementwise transforms to buffers.

Core Features:
    - DataBuffer: fixed-length typed buffer with strided access and conversion
    - DeviceBuffer: explicit location state with lazy download and upload
    - Operation Registry: name-based resolution of accumulations and transforms
    - Codecs: length-prefixed stream persistence and msgpack pickling
    - CPU Fallback: full API compatibility when CUDA is unavailable

Quick Start:
    >>> from pydotbuffer import DeviceBuffer, DataType, resolve
    >>>
    >>> buf = DeviceBuffer.from_values([1.0, 2.0, 3.0, 4.0], DataType.FLOAT32)
    >>> buf.assign([2], [9.0])
    >>> resolve("accumulation", "sum", buf).execute()
    16.0
"""

from pydotbuffer.core.codec import (
    BufferCodec,
    MsgpackBufferCodec,
    StreamBufferCodec,
    persist,
    restore,
)
from pydotbuffer.core.data_buffer import DataBuffer
from pydotbuffer.core.device_buffer import DeviceBuffer, LocationState
from pydotbuffer.backends import get_backend
from pydotbuffer.config import (
    BufferConfig,
    configure_buffers,
    get_buffer_config,
    reset_buffer_config,
)
from pydotbuffer.dtypes import DataType
from pydotbuffer.ops import Arity, OpFamily, Operation, get_op_registry, resolve

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Buffers
    "DataBuffer",
    "DeviceBuffer",
    "LocationState",
    "DataType",
    # Codecs
    "BufferCodec",
    "StreamBufferCodec",
    "MsgpackBufferCodec",
    "persist",
    "restore",
    # Backends
    "get_backend",
    # Configuration
    "BufferConfig",
    "configure_buffers",
    "get_buffer_config",
    "reset_buffer_config",
    # Operations
    "OpFamily",
    "Arity",
    "Operation",
    "get_op_registry",
    "resolve",
]
