"""
PyDotBuffer exception hierarchy.

This module defines the complete exception hierarchy for PyDotBuffer,
providing specific exception types for different error categories:

- ValidationError: Argument, configuration and type validation errors
- BufferError: Buffer access, transfer and serialization problems
- BackendError: Memory backend availability and device errors
- OperationError: Operation resolution problems

All exceptions inherit from PyDotBufferError for easy catching.
"""

from __future__ import annotations


class PyDotBufferError(Exception):
    """Base exception for all PyDotBuffer errors."""

    pass


class ValidationError(PyDotBufferError):
    """Base exception for validation-related errors."""

    pass


class InvalidArgumentError(ValidationError, ValueError):
    """Raised when an argument is invalid (length mismatch, unknown name)."""

    pass


class LengthMismatchError(InvalidArgumentError):
    """Raised when a sequence does not have the length a buffer requires."""

    def __init__(self, what: str, expected: int, actual: int) -> None:
        self.what = what
        self.expected = expected
        self.actual = actual
        super().__init__(f"{what}: expected length {expected} but found length {actual}")


class InvalidConfigurationError(ValidationError):
    """Raised when configuration is invalid."""

    def __init__(self, parameter: str, value: object, reason: str) -> None:
        self.parameter = parameter
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid configuration: {parameter}={value!r} - {reason}")


class TypeValidationError(ValidationError, TypeError):
    """Raised when an argument has the wrong type."""

    def __init__(self, expected: type, actual: type, context: str) -> None:
        self.expected = expected
        self.actual = actual
        self.context = context
        super().__init__(
            f"Type mismatch in {context}: expected {expected.__name__}, got {actual.__name__}"
        )


class BufferError(PyDotBufferError):
    """Base exception for buffer-related errors."""

    pass


class UnsupportedOperationError(BufferError):
    """Raised when a buffer is asked for an access pattern it does not support."""

    pass


class BufferReleasedError(BufferError):
    """Raised when accessing a buffer whose memory has been released."""

    def __init__(self) -> None:
        super().__init__("Buffer memory has been released and can no longer be accessed.")


class TransferError(BufferError):
    """Raised when a host/device copy fails."""

    def __init__(self, direction: str, cause: Exception) -> None:
        self.direction = direction
        self.cause = cause
        super().__init__(f"Failed to transfer buffer {direction}: {cause}")


class BufferSerializationError(BufferError):
    """Raised when encoding a buffer fails."""

    def __init__(self, codec: str, cause: Exception) -> None:
        self.codec = codec
        self.cause = cause
        super().__init__(f"Failed to encode buffer with {codec}: {cause}")


class BufferDeserializationError(BufferError):
    """Raised when decoding a buffer fails."""

    def __init__(self, codec: str, cause: Exception | str) -> None:
        self.codec = codec
        self.cause = cause
        super().__init__(f"Failed to decode buffer with {codec}: {cause}")


class BackendError(PyDotBufferError):
    """Base exception for backend-related errors."""

    pass


class BackendNotAvailableError(BackendError):
    """Raised when a requested backend is not available."""

    def __init__(self, backend_name: str, reason: str) -> None:
        self.backend_name = backend_name
        self.reason = reason
        super().__init__(f"Backend '{backend_name}' is not available: {reason}")


class CUDAError(BackendError):
    """Raised for CUDA-specific errors."""

    pass


class OperationError(PyDotBufferError):
    """Base exception for operation-related errors."""

    pass


class OperationNotImplementedError(OperationError, NotImplementedError):
    """Raised when an operation family has no implementations."""

    def __init__(self, family: str, name: str) -> None:
        self.family = family
        self.name = name
        super().__init__(f"No {family} operations are implemented (requested '{name}')")
