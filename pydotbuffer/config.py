"""
Process-wide configuration for PyDotBuffer.

Settings are held in a single BufferConfig instance. Use
configure_buffers() to change them and get_buffer_config() to read them.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any

from pydotbuffer.dtypes import DataType
from pydotbuffer.exceptions import InvalidConfigurationError
from pydotbuffer.validators import (
    validate_backend_name,
    validate_byte_order,
    validate_data_type,
    validate_flag,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BufferConfig:
    """Configuration for buffers and codecs."""

    byte_order: str = "big"
    default_backend: str = "auto"
    default_data_type: DataType = DataType.FLOAT32
    strict_bounds: bool = True

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        validate_byte_order(self.byte_order)
        validate_backend_name(self.default_backend)
        object.__setattr__(self, "default_data_type", validate_data_type(self.default_data_type))
        validate_flag(self.strict_bounds, "strict_bounds")


_config = BufferConfig()


def get_buffer_config() -> BufferConfig:
    """Get the active buffer configuration."""
    return _config


def configure_buffers(**changes: Any) -> BufferConfig:
    """
    Update the active buffer configuration.

    Args:
        **changes: BufferConfig fields to change.

    Returns:
        The new configuration.

    Raises:
        InvalidConfigurationError: If a field is unknown or a value is invalid.
    """
    global _config

    known = {f.name for f in dataclasses.fields(BufferConfig)}
    for key, value in changes.items():
        if key not in known:
            raise InvalidConfigurationError(key, value, "unknown setting")

    _config = dataclasses.replace(_config, **changes)
    logger.debug(f"Buffer configuration updated: {changes}")
    return _config


def reset_buffer_config() -> BufferConfig:
    """Restore the default configuration."""
    global _config
    _config = BufferConfig()
    return _config
