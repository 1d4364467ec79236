"""
Named operations over buffers.

Operations are resolved by family and name through the registry and bound
to their operands. Importing this package loads the built-in kernels.
"""

from pydotbuffer.ops.base import Arity, OpFamily, Operation
from pydotbuffer.ops.registry import (
    OpRegistry,
    OpSpec,
    accumulation,
    get_op_registry,
    resolve,
    transform,
)
from pydotbuffer.ops import accumulations, transforms  # noqa: F401  (register kernels)

__all__ = [
    "Arity",
    "OpFamily",
    "Operation",
    "OpRegistry",
    "OpSpec",
    "accumulation",
    "transform",
    "get_op_registry",
    "resolve",
]
