"""
PyDotBuffer examples.

This module contains example programs demonstrating buffers, the
operation registry and persistence.
"""

from examples.buffer_ops import run_buffer_ops_example

__all__ = [
    "run_buffer_ops_example",
]
