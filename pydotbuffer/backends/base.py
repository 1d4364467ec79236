"""
Backend base classes and interfaces.

Defines the abstract interface that all memory backends must implement.
"""

from __future__ import annotations

import contextlib
import logging
from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import numpy as np

from pydotbuffer.exceptions import BufferReleasedError

if TYPE_CHECKING:
    from numpy.typing import NDArray


T = TypeVar("T", bound=np.generic)

logger = logging.getLogger(__name__)


class BackendType(Enum):
    """Type of memory backend."""

    CPU = auto()
    CUDA = auto()


class Backend(ABC):
    """
    Abstract base class for memory backends.

    A backend owns device memory: it allocates and frees device arrays
    and performs blocking copies between host and device.
    """

    @property
    @abstractmethod
    def backend_type(self) -> BackendType:
        """Get the backend type."""
        ...

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Check if this backend is available."""
        ...

    @property
    @abstractmethod
    def device_count(self) -> int:
        """Get the number of available devices."""
        ...

    @abstractmethod
    def allocate(
        self,
        length: int,
        dtype: np.dtype[T],
    ) -> Any:
        """
        Allocate a zero-filled 1-D array on this backend's device.

        Args:
            length: Number of elements.
            dtype: Data type.

        Returns:
            Device array.
        """
        ...

    @abstractmethod
    def free(self, array: Any) -> None:
        """
        Free an array allocated by this backend.

        Args:
            array: Array to free.
        """
        ...

    @abstractmethod
    def copy_to_device(self, host_array: NDArray[T], device_array: Any) -> None:
        """
        Copy a host array into an existing device array.

        Blocks until the copy has completed.

        Args:
            host_array: Source host array.
            device_array: Destination device array of the same size.
        """
        ...

    @abstractmethod
    def copy_to_host(self, device_array: Any, host_array: NDArray[T]) -> None:
        """
        Copy a device array into an existing host array.

        Blocks until the copy has completed.

        Args:
            device_array: Source device array.
            host_array: Destination host array of the same size.
        """
        ...

    @abstractmethod
    def synchronize(self) -> None:
        """Synchronize all pending operations."""
        ...

    def allocation(self, length: int, dtype: np.dtype[T]) -> DeviceAllocation[T]:
        """
        Allocate device memory wrapped in an owning handle.

        Args:
            length: Number of elements.
            dtype: Data type.

        Returns:
            DeviceAllocation that frees the memory exactly once.
        """
        return DeviceAllocation(self.allocate(length, dtype), self)


class DeviceAllocation(Generic[T]):
    """
    Owning handle to device memory.

    The handle frees its array through the backend exactly once, either
    on release() or when it is garbage collected.
    """

    def __init__(self, data: Any, backend: Backend) -> None:
        """
        Initialize a device allocation.

        Args:
            data: The underlying device array.
            backend: Backend that owns this array.
        """
        self._data = data
        self._backend = backend
        self._released = False

    @property
    def data(self) -> Any:
        """Get the underlying device array."""
        if self._released:
            raise BufferReleasedError()
        return self._data

    @property
    def backend(self) -> Backend:
        """Get the backend."""
        return self._backend

    @property
    def released(self) -> bool:
        """Check if the memory has been freed."""
        return self._released

    @property
    def nbytes(self) -> int:
        """Get total size in bytes."""
        return 0 if self._released else int(self._data.nbytes)

    def release(self) -> bool:
        """
        Free the device memory.

        Returns:
            True if memory was freed by this call, False if already released.
        """
        if self._released:
            return False
        self._backend.free(self._data)
        self._data = None
        self._released = True
        logger.debug(f"Released device allocation on {self._backend.backend_type.name}")
        return True

    def __del__(self) -> None:
        """Free memory if still owned."""
        if not getattr(self, "_released", True):
            with contextlib.suppress(Exception):
                self.release()

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"DeviceAllocation(nbytes={self.nbytes}, released={self._released}, "
            f"backend={self._backend.backend_type.name})"
        )
