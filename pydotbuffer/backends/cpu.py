"""
CPU backend for PyDotBuffer.

Provides a CPU-based implementation of the backend interface. Device
memory is simulated with separate NumPy arrays so that host/device
synchronization behaves as it would on a real accelerator.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

import numpy as np

from pydotbuffer.backends.base import Backend, BackendType

if TYPE_CHECKING:
    from numpy.typing import NDArray


T = TypeVar("T", bound=np.generic)


class CPUBackend(Backend):
    """
    CPU backend implementation.

    Keeps "device" arrays in ordinary host memory. Useful for testing and
    development without a GPU.

    Example:
        >>> backend = CPUBackend()
        >>> device = backend.allocate(1000, np.dtype(np.float32))
        >>> backend.copy_to_device(np.ones(1000, dtype=np.float32), device)
    """

    def __init__(self) -> None:
        """Initialize the CPU backend."""
        self._live_allocations = 0

    @property
    def backend_type(self) -> BackendType:
        """Get the backend type."""
        return BackendType.CPU

    @property
    def is_available(self) -> bool:
        """Check if this backend is available."""
        return True  # CPU is always available

    @property
    def device_count(self) -> int:
        """Get the number of available devices."""
        return 1

    @property
    def live_allocations(self) -> int:
        """Get the number of allocations not yet freed."""
        return self._live_allocations

    def allocate(
        self,
        length: int,
        dtype: np.dtype[T] | type[T],
    ) -> NDArray[T]:
        """
        Allocate a zero-filled NumPy array.

        Args:
            length: Number of elements.
            dtype: Data type.

        Returns:
            Zero-filled NumPy array standing in for device memory.
        """
        self._live_allocations += 1
        return np.zeros(length, dtype=dtype)

    def free(self, array: Any) -> None:
        """
        Free a NumPy array.

        NumPy handles the memory; only the allocation count is tracked.

        Args:
            array: Array to free.
        """
        self._live_allocations -= 1

    def copy_to_device(self, host_array: NDArray[T], device_array: NDArray[T]) -> None:
        """
        Copy a host array into a simulated device array.

        Args:
            host_array: Source array.
            device_array: Destination array.
        """
        np.copyto(device_array, host_array, casting="no")

    def copy_to_host(self, device_array: NDArray[T], host_array: NDArray[T]) -> None:
        """
        Copy a simulated device array into a host array.

        Args:
            device_array: Source array.
            host_array: Destination array.
        """
        np.copyto(host_array, device_array, casting="no")

    def synchronize(self) -> None:
        """Synchronize (no-op for CPU)."""
        # CPU operations are synchronous
        pass

    def __repr__(self) -> str:
        """String representation."""
        return f"CPUBackend(available=True, live_allocations={self._live_allocations})"
