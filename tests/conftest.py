"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

from typing import Any, Generator

import numpy as np
import pytest

from pydotbuffer.backends import CPUBackend
from pydotbuffer.config import reset_buffer_config
from pydotbuffer.core.data_buffer import DataBuffer
from pydotbuffer.core.device_buffer import DeviceBuffer
from pydotbuffer.dtypes import DataType


@pytest.fixture(autouse=True)
def default_config() -> Generator[None, None, None]:
    """Run every test against the default configuration."""
    reset_buffer_config()
    yield
    reset_buffer_config()


@pytest.fixture
def cpu_backend() -> CPUBackend:
    """Provide a fresh CPU backend."""
    return CPUBackend()


@pytest.fixture
def float_buffer() -> DataBuffer:
    """Provide a host buffer holding [1, 2, 3, 4] as float32."""
    return DataBuffer.from_values([1.0, 2.0, 3.0, 4.0], DataType.FLOAT32)


@pytest.fixture
def device_buffer(cpu_backend: CPUBackend) -> Generator[DeviceBuffer, None, None]:
    """Provide an uploaded device buffer holding [1, 2, 3, 4] as float32."""
    buffer = DeviceBuffer.from_values(
        [1.0, 2.0, 3.0, 4.0], DataType.FLOAT32, backend=cpu_backend
    ).upload()
    yield buffer
    buffer.release()


class FailingBackend(CPUBackend):
    """CPU backend whose copies fail on demand."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_upload = False
        self.fail_download = False

    def copy_to_device(self, host_array: Any, device_array: Any) -> None:
        if self.fail_upload:
            raise RuntimeError("device out of memory")
        super().copy_to_device(host_array, device_array)

    def copy_to_host(self, device_array: Any, host_array: Any) -> None:
        if self.fail_download:
            raise RuntimeError("device lost")
        super().copy_to_host(device_array, host_array)


@pytest.fixture
def failing_backend() -> FailingBackend:
    """Provide a backend whose transfers can be made to fail."""
    return FailingBackend()


@pytest.fixture
def values() -> np.ndarray:
    """Provide a small float64 sample."""
    return np.array([1.0, -2.0, 3.5, 0.25])


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: list[pytest.Item],
) -> None:
    """Skip CUDA tests if CUDA is not available."""
    cuda_available = False
    try:
        import cupy as cp

        cuda_available = cp.cuda.runtime.getDeviceCount() > 0
    except ImportError:
        pass
    except Exception:
        pass

    if not cuda_available:
        skip_cuda = pytest.mark.skip(reason="CUDA not available")
        for item in items:
            if "cuda" in item.keywords:
                item.add_marker(skip_cuda)
