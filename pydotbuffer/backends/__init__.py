"""
Memory backend implementations for PyDotBuffer.
"""

from __future__ import annotations

import logging

from pydotbuffer.backends.base import Backend, BackendType, DeviceAllocation
from pydotbuffer.backends.cpu import CPUBackend
from pydotbuffer.backends.cuda import CUDABackend
from pydotbuffer.config import get_buffer_config
from pydotbuffer.exceptions import BackendNotAvailableError

logger = logging.getLogger(__name__)

__all__ = [
    "Backend",
    "BackendType",
    "CPUBackend",
    "CUDABackend",
    "DeviceAllocation",
    "get_backend",
]

_backends: dict[str, Backend] = {}


def get_backend(name: str | None = None) -> Backend:
    """
    Get a shared backend instance by name.

    Args:
        name: "cpu", "cuda" or "auto" (CUDA when available, CPU otherwise).
            Defaults to the configured default_backend.

    Returns:
        Backend instance, created on first use.

    Raises:
        BackendNotAvailableError: If "cuda" is requested without a CUDA device.
    """
    if name is None:
        name = get_buffer_config().default_backend

    if name == "auto":
        name = "cuda" if _cuda().is_available else "cpu"
        logger.debug(f"Auto-selected {name} backend")

    if name == "cuda":
        cuda = _cuda()
        if not cuda.is_available:
            raise BackendNotAvailableError("CUDA", cuda.unavailable_reason or "unavailable")
        return cuda

    if name == "cpu":
        if "cpu" not in _backends:
            _backends["cpu"] = CPUBackend()
        return _backends["cpu"]

    raise BackendNotAvailableError(name, "unknown backend")


def _cuda() -> CUDABackend:
    # Probed once per process
    if "cuda" not in _backends:
        _backends["cuda"] = CUDABackend()
    return _backends["cuda"]  # type: ignore[return-value]
