"""
Core buffer abstractions for PyDotBuffer.
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

__all__ = [
    "DataBuffer",
    "DeviceBuffer",
    "LocationState",
    "BufferCodec",
    "StreamBufferCodec",
    "MsgpackBufferCodec",
    "persist",
    "restore",
]
