"""
CUDA backend for PyDotBuffer.

Device memory is allocated through CuPy's default memory pool. Every call
runs with the backend's device made current, so buffers created on one
device stay there.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import numpy as np

from pydotbuffer.backends.base import Backend, BackendType
from pydotbuffer.exceptions import BackendNotAvailableError, CUDAError

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)


def _probe_cupy() -> tuple[Any, str | None]:
    """Import CuPy and count devices; returns (module or None, reason)."""
    try:
        import cupy
    except ImportError:
        return None, "cupy is not installed"

    try:
        count = cupy.cuda.runtime.getDeviceCount()
    except Exception as e:  # CUDARuntimeError when no driver is present
        return None, f"CUDA runtime unavailable: {e}"

    if count == 0:
        return None, "no CUDA device found"
    return cupy, None


class CUDABackend(Backend):
    """
    CUDA backend implementation using CuPy.

    Construction never fails; check is_available (and unavailable_reason)
    before allocating.

    Example:
        >>> backend = CUDABackend()
        >>> if backend.is_available:
        ...     device = backend.allocate(1000, np.dtype(np.float32))
    """

    def __init__(self, device_id: int = 0) -> None:
        """
        Initialize the CUDA backend.

        Args:
            device_id: CUDA device the backend allocates on.
        """
        self._device_id = device_id
        self._cp, self._unavailable_reason = _probe_cupy()
        self._live_allocations = 0

        if self._cp is not None:
            count = self._cp.cuda.runtime.getDeviceCount()
            if device_id >= count:
                self._cp = None
                self._unavailable_reason = f"device {device_id} out of range ({count} devices)"
            else:
                logger.info(f"CUDA backend using device {device_id}")

        if self._cp is None:
            logger.debug(f"CUDA backend unavailable: {self._unavailable_reason}")

    @property
    def backend_type(self) -> BackendType:
        """Get the backend type."""
        return BackendType.CUDA

    @property
    def is_available(self) -> bool:
        """Check if a usable CUDA device was found."""
        return self._cp is not None

    @property
    def unavailable_reason(self) -> str | None:
        """Get why CUDA is unavailable (None when available)."""
        return self._unavailable_reason

    @property
    def device_count(self) -> int:
        """Get the number of visible CUDA devices."""
        if self._cp is None:
            return 0
        return int(self._cp.cuda.runtime.getDeviceCount())

    @property
    def device_id(self) -> int:
        """Get the device this backend allocates on."""
        return self._device_id

    @property
    def live_allocations(self) -> int:
        """Get the number of allocations not yet freed."""
        return self._live_allocations

    def _device(self) -> Any:
        if self._cp is None:
            raise BackendNotAvailableError("CUDA", self._unavailable_reason or "unavailable")
        return self._cp.cuda.Device(self._device_id)

    def allocate(self, length: int, dtype: np.dtype[Any] | type[Any]) -> Any:
        """
        Allocate a zero-filled 1-D CuPy array.

        Raises:
            CUDAError: If the device is out of memory.
        """
        with self._device():
            try:
                array = self._cp.zeros(length, dtype=dtype)
            except self._cp.cuda.memory.OutOfMemoryError as e:
                raise CUDAError(f"Out of device memory allocating {length} elements: {e}") from e

        self._live_allocations += 1
        return array

    def free(self, array: Any) -> None:
        """
        Return an array's memory to the pool.

        CuPy recycles the block once the last reference is dropped; the
        caller's handle drops its reference after this call.
        """
        self._live_allocations -= 1

    def copy_to_device(self, host_array: NDArray[Any], device_array: Any) -> None:
        """Copy a host array into a CuPy array and wait for completion."""
        with self._device():
            device_array.set(np.ascontiguousarray(host_array))
            self.synchronize()

    def copy_to_host(self, device_array: Any, host_array: NDArray[Any]) -> None:
        """Copy a CuPy array into a host array and wait for completion."""
        with self._device():
            device_array.get(out=host_array)
            self.synchronize()

    def synchronize(self) -> None:
        """Wait for all work on the backend's device."""
        if self._cp is None:
            return
        with self._device() as device:
            device.synchronize()

    def get_memory_info(self) -> dict[str, int]:
        """
        Get device and pool memory usage in bytes.

        Returns:
            Dictionary with free, total and pool_used bytes.
        """
        if self._cp is None:
            return {"free": 0, "total": 0, "pool_used": 0}

        with self._device():
            free, total = self._cp.cuda.runtime.memGetInfo()
            pool_used = self._cp.get_default_memory_pool().used_bytes()
        return {"free": int(free), "total": int(total), "pool_used": int(pool_used)}

    def __repr__(self) -> str:
        """String representation."""
        if self._cp is None:
            return f"CUDABackend(available=False, reason={self._unavailable_reason!r})"
        return (
            f"CUDABackend(device={self._device_id}, "
            f"live_allocations={self._live_allocations})"
        )
