"""
Accelerator-resident buffer with lazy synchronization.

A DeviceBuffer keeps its primary copy in device memory owned through a
backend, plus an optional host mirror. Host reads download first when the
mirror is stale; host writes mark the device copy stale until the next
explicit upload.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

import numpy as np

from pydotbuffer.backends import Backend, DeviceAllocation, get_backend
from pydotbuffer.core.data_buffer import DataBuffer
from pydotbuffer.exceptions import BufferReleasedError, TransferError

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

    from pydotbuffer.dtypes import DataType


logger = logging.getLogger(__name__)


class LocationState(Enum):
    """Where the authoritative copy of a buffer's contents lives."""

    HOST_ONLY = auto()
    DEVICE_ONLY = auto()
    SYNCHRONIZED = auto()
    HOST_DIRTY = auto()  # device copy is stale
    DEVICE_DIRTY = auto()  # host mirror is stale
    RELEASED = auto()


_HOST_STALE = frozenset({LocationState.DEVICE_ONLY, LocationState.DEVICE_DIRTY})
_DEVICE_STALE = frozenset({LocationState.HOST_ONLY, LocationState.HOST_DIRTY})


class DeviceBuffer(DataBuffer):
    """
    Buffer whose primary store is accelerator memory.

    Data is only transferred when needed, based on the location state.
    The device allocation belongs exclusively to this buffer and is freed
    exactly once.

    Example:
        >>> buf = DeviceBuffer.from_values([1.0, 2.0, 3.0, 4.0], DataType.FLOAT32)
        >>> buf.state
        <LocationState.HOST_DIRTY: 4>
        >>> buf.upload().state
        <LocationState.SYNCHRONIZED: 3>
        >>> buf.release_host()
        >>> buf.get(2)  # Triggers download
        3.0
    """

    def __init__(
        self,
        length: int,
        data_type: DataType | str | None = None,
        *,
        data: ArrayLike | None = None,
        backend: Backend | None = None,
        device: bool = True,
    ) -> None:
        """
        Initialize a device buffer.

        Args:
            length: Number of elements.
            data_type: Element type; defaults to the configured default_data_type.
            data: Optional initial values, written to the host mirror only.
            backend: Memory backend; defaults to get_backend().
            device: Whether to allocate device memory now. When False the
                buffer starts host-only and allocates on first upload.
        """
        self._backend = backend if backend is not None else get_backend()
        self._allocate_device = device
        self._host: NDArray[Any] | None = None
        self._allocation: DeviceAllocation[Any] | None = None
        self._state = LocationState.HOST_ONLY
        super().__init__(length, data_type, data=data)

    def _init_storage(self, initial: NDArray[Any] | None) -> None:
        if self._allocate_device:
            self._allocation = self._backend.allocation(self._length, self.dtype)
            logger.debug(
                f"Allocated {self.nbytes} bytes on {self._backend.backend_type.name}"
            )

        if initial is not None:
            self._host = initial
            self._state = (
                LocationState.HOST_DIRTY if self._allocation is not None else LocationState.HOST_ONLY
            )
        elif self._allocation is not None:
            self._state = LocationState.DEVICE_ONLY
        else:
            self._host = np.zeros(self._length, dtype=self.dtype)
            self._state = LocationState.HOST_ONLY

    @property
    def state(self) -> LocationState:
        """Get the current location state."""
        return self._state

    @property
    def backend(self) -> Backend:
        """Get the backend owning the device memory."""
        return self._backend

    @property
    def host_mirror(self) -> NDArray[Any] | None:
        """Get the host mirror without synchronizing (None if absent)."""
        return self._host

    @property
    def allocation(self) -> DeviceAllocation[Any] | None:
        """Get the device allocation handle (None if not allocated)."""
        return self._allocation

    @property
    def is_released(self) -> bool:
        """Check if the buffer's memory has been released."""
        return self._state == LocationState.RELEASED

    def _ensure_live(self) -> None:
        if self._state == LocationState.RELEASED:
            raise BufferReleasedError()

    def _read_view(self) -> NDArray[Any]:
        self._ensure_live()
        if self._state in _HOST_STALE:
            self.download()
        assert self._host is not None
        return self._host

    def _write_view(self) -> NDArray[Any]:
        return self._read_view()

    def _after_write(self) -> None:
        if self._state != LocationState.HOST_ONLY:
            self._state = LocationState.HOST_DIRTY

    def upload(self) -> DeviceBuffer:
        """
        Copy the host mirror to device memory if the device copy is stale.

        Returns:
            Self for method chaining.

        Raises:
            TransferError: If the copy fails.
        """
        self._ensure_live()
        if self._state not in _DEVICE_STALE:
            return self

        if self._allocation is None:
            self._allocation = self._backend.allocation(self._length, self.dtype)

        try:
            self._backend.copy_to_device(self._host, self._allocation.data)
        except Exception as e:
            raise TransferError("host->device", e) from e

        self._state = LocationState.SYNCHRONIZED
        logger.debug(f"Uploaded {self.nbytes} bytes to {self._backend.backend_type.name}")
        return self

    def download(self) -> DeviceBuffer:
        """
        Copy device memory to the host mirror if the mirror is stale.

        Creates the host mirror when it does not exist yet.

        Returns:
            Self for method chaining.

        Raises:
            TransferError: If the copy fails.
        """
        self._ensure_live()
        if self._state not in _HOST_STALE:
            return self

        assert self._allocation is not None
        if self._host is None:
            self._host = np.empty(self._length, dtype=self.dtype)

        try:
            self._backend.copy_to_host(self._allocation.data, self._host)
        except Exception as e:
            raise TransferError("device->host", e) from e

        self._state = LocationState.SYNCHRONIZED
        logger.debug(f"Downloaded {self.nbytes} bytes from {self._backend.backend_type.name}")
        return self

    def synchronize(self) -> None:
        """Transfer in whichever direction the state requires."""
        if self._state in _DEVICE_STALE:
            self.upload()
        elif self._state in _HOST_STALE:
            self.download()

    @property
    def device_array(self) -> Any:
        """
        Get the raw device array, uploading first if the device copy is stale.

        Intended for execution engines; call mark_device_dirty() after
        writing to it.
        """
        self.upload()
        assert self._allocation is not None
        return self._allocation.data

    def mark_device_dirty(self) -> None:
        """Mark the device copy as modified (host mirror needs a download)."""
        self._ensure_live()
        if self._allocation is None:
            self.upload()
        self._state = LocationState.DEVICE_DIRTY

    def release_host(self) -> None:
        """
        Drop the host mirror, keeping the contents on the device.

        Pending host writes are uploaded first.
        """
        self._ensure_live()
        if self._state in _DEVICE_STALE:
            self.upload()
        self._host = None
        self._state = LocationState.DEVICE_ONLY

    def release(self) -> bool:
        """
        Free the device memory and drop the host mirror.

        Returns:
            True if memory was released by this call, False if already released.
        """
        if self._state == LocationState.RELEASED:
            return False
        if self._allocation is not None:
            self._allocation.release()
            self._allocation = None
        self._host = None
        self._state = LocationState.RELEASED
        return True

    def dup(self) -> DeviceBuffer:
        """
        Create an independent buffer with a deep copy of the contents.

        The copy gets its own device allocation on the same backend and is
        uploaded before it is returned.
        """
        copy = DeviceBuffer(
            self._length,
            self._data_type,
            data=self._read_view(),
            backend=self._backend,
            device=self._allocation is not None,
        )
        if self._allocation is not None:
            copy.upload()
        return copy

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"DeviceBuffer(length={self._length}, data_type={self._data_type.type_name}, "
            f"state={self._state.name}, backend={self._backend.backend_type.name})"
        )
