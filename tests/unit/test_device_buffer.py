"""
Unit tests for DeviceBuffer.
"""

from __future__ import annotations

import pickle
from typing import Any

import numpy as np
import pytest

from pydotbuffer.backends import CPUBackend
from pydotbuffer.core.device_buffer import DeviceBuffer, LocationState
from pydotbuffer.dtypes import DataType
from pydotbuffer.exceptions import BufferReleasedError, TransferError


class TestDeviceBufferStates:
    """Tests for location state transitions."""

    def test_allocated_starts_device_only(self, cpu_backend: CPUBackend) -> None:
        """Test a buffer without data starts on the device."""
        buf = DeviceBuffer(8, DataType.FLOAT32, backend=cpu_backend)

        assert buf.state == LocationState.DEVICE_ONLY
        assert buf.host_mirror is None
        assert cpu_backend.live_allocations == 1

    def test_initial_data_is_host_dirty(self, cpu_backend: CPUBackend) -> None:
        """Test initial values wait for an upload."""
        buf = DeviceBuffer.from_values([1.0, 2.0], backend=cpu_backend)

        assert buf.state == LocationState.HOST_DIRTY

    def test_host_only(self, cpu_backend: CPUBackend) -> None:
        """Test buffers created without device memory."""
        buf = DeviceBuffer(4, DataType.INT32, backend=cpu_backend, device=False)

        assert buf.state == LocationState.HOST_ONLY
        assert buf.allocation is None
        assert cpu_backend.live_allocations == 0

        buf.put(0, 3)

        assert buf.state == LocationState.HOST_ONLY

    def test_upload_synchronizes(self, cpu_backend: CPUBackend) -> None:
        """Test upload copies host data to the device."""
        buf = DeviceBuffer.from_values([1.0, 2.0], DataType.FLOAT32, backend=cpu_backend)
        buf.upload()

        assert buf.state == LocationState.SYNCHRONIZED
        np.testing.assert_array_equal(buf.allocation.data, [1.0, 2.0])

    def test_host_only_upload_allocates(self, cpu_backend: CPUBackend) -> None:
        """Test the first upload of a host-only buffer allocates."""
        buf = DeviceBuffer.from_values([5], DataType.INT64, backend=cpu_backend, device=False)
        buf.upload()

        assert buf.state == LocationState.SYNCHRONIZED
        assert buf.allocation is not None
        np.testing.assert_array_equal(buf.allocation.data, [5])

    def test_write_marks_host_dirty(self, device_buffer: DeviceBuffer) -> None:
        """Test host writes leave the device copy stale."""
        device_buffer.put(0, 10.0)

        assert device_buffer.state == LocationState.HOST_DIRTY
        assert device_buffer.allocation.data[0] == 1.0

        device_buffer.upload()

        assert device_buffer.allocation.data[0] == 10.0

    def test_read_downloads(self, device_buffer: DeviceBuffer) -> None:
        """Test reads download when the host mirror is stale."""
        device_buffer.allocation.data[3] = 40.0
        device_buffer.mark_device_dirty()

        assert device_buffer.state == LocationState.DEVICE_DIRTY
        assert device_buffer.get(3) == 40.0
        assert device_buffer.state == LocationState.SYNCHRONIZED

    def test_release_host(self, device_buffer: DeviceBuffer) -> None:
        """Test dropping the host mirror keeps the device contents."""
        device_buffer.put(1, 20.0)
        device_buffer.release_host()

        assert device_buffer.host_mirror is None
        assert device_buffer.state == LocationState.DEVICE_ONLY
        assert device_buffer.get(1) == 20.0

    def test_synchronize(self, device_buffer: DeviceBuffer) -> None:
        """Test synchronize picks the transfer direction."""
        device_buffer.put(0, 2.0)
        device_buffer.synchronize()

        assert device_buffer.state == LocationState.SYNCHRONIZED

    def test_device_array_uploads(self, cpu_backend: CPUBackend) -> None:
        """Test the raw device array is current."""
        buf = DeviceBuffer.from_values([1.0, 2.0], backend=cpu_backend)

        np.testing.assert_array_equal(buf.device_array, [1.0, 2.0])
        assert buf.state == LocationState.SYNCHRONIZED


class TestDeviceBufferRelease:
    """Tests for releasing device memory."""

    def test_release_once(self, cpu_backend: CPUBackend) -> None:
        """Test memory is freed exactly once."""
        buf = DeviceBuffer(4, backend=cpu_backend)

        assert buf.release()
        assert not buf.release()
        assert buf.is_released
        assert buf.state == LocationState.RELEASED
        assert cpu_backend.live_allocations == 0

    def test_access_after_release(self, cpu_backend: CPUBackend) -> None:
        """Test released buffers cannot be read or written."""
        buf = DeviceBuffer(4, backend=cpu_backend)
        buf.release()

        with pytest.raises(BufferReleasedError):
            buf.get(0)

        with pytest.raises(BufferReleasedError):
            buf.put(0, 1.0)

        with pytest.raises(BufferReleasedError):
            buf.upload()


class TestDeviceBufferTransfers:
    """Tests for transfer failures."""

    def test_upload_failure(self, failing_backend: Any) -> None:
        """Test failed uploads raise TransferError and keep the state."""
        buf = DeviceBuffer.from_values([1.0], backend=failing_backend)
        failing_backend.fail_upload = True

        with pytest.raises(TransferError) as exc_info:
            buf.upload()

        assert exc_info.value.direction == "host->device"
        assert buf.state == LocationState.HOST_DIRTY

    def test_download_failure(self, failing_backend: Any) -> None:
        """Test failed downloads surface on the read."""
        buf = DeviceBuffer(2, backend=failing_backend)
        failing_backend.fail_download = True

        with pytest.raises(TransferError, match="device lost"):
            buf.get(0)

        assert buf.state == LocationState.DEVICE_ONLY


class TestDeviceBufferCopies:
    """Tests for duplication and pickling."""

    def test_dup_independent(self, device_buffer: DeviceBuffer) -> None:
        """Test the duplicate owns separate device memory."""
        copy = device_buffer.dup()
        copy.put(0, 99.0)
        copy.upload()

        assert copy.allocation is not device_buffer.allocation
        assert copy.state == LocationState.SYNCHRONIZED
        assert device_buffer.get(0) == 1.0
        assert device_buffer.allocation.data[0] == 1.0
        assert copy.get(0) == 99.0

    def test_dup_uses_same_backend(self, device_buffer: DeviceBuffer) -> None:
        """Test the duplicate allocates on the same backend."""
        assert device_buffer.dup().backend is device_buffer.backend

    def test_pickle(self, device_buffer: DeviceBuffer) -> None:
        """Test pickling round-trips the contents."""
        restored = pickle.loads(pickle.dumps(device_buffer))

        assert isinstance(restored, DeviceBuffer)
        np.testing.assert_array_equal(restored.as_float(), [1.0, 2.0, 3.0, 4.0])

    def test_repr(self, device_buffer: DeviceBuffer) -> None:
        """Test string representation."""
        assert "SYNCHRONIZED" in repr(device_buffer)
        assert "CPU" in repr(device_buffer)
